import logging
from typing import Optional

from blockchain.block_tree import BlockTree
from blockchain.blockchain import Block, Transaction
from blockchain.transaction_validator import TransactionValidator
from config.config import COINBASE_REWARD, MAX_BLOCK_TRANSACTIONS

logger = logging.getLogger(__name__)


class BlockHandler:
    """Produces blocks on the best tip and feeds incoming blocks and transactions to the tree"""

    def __init__(self, tree: BlockTree, validator: Optional[TransactionValidator] = None):
        self.tree = tree
        self.validator = validator or tree.validator

    def process_block(self, block: Optional[Block]) -> bool:
        if block is None:
            return False
        return self.tree.add_block(block)

    def process_transaction(self, tx: Transaction):
        self.tree.add_transaction(tx)

    def create_block(self, miner_address: str, nonce: int = 0) -> Optional[Block]:
        """
        Build a block on the best tip from the pending pool, paying the coinbase
        to ``miner_address``, and add it to the tree.

        Returns the block, or None if the tree refused it.
        """
        parent_hash, parent_height, utxo_pool = self.tree.get_best_snapshot()
        height = parent_height + 1

        candidates = self.tree.get_transaction_pool().get_transactions_for_block(MAX_BLOCK_TRANSACTIONS)
        accepted, _ = self.validator.validate(utxo_pool, candidates)

        coinbase = Transaction.coinbase(COINBASE_REWARD, miner_address, data=str(height))
        block = Block(parent_hash, coinbase, accepted, nonce=nonce)
        logger.info(f"Created block {block.hash()} at height {height} with {len(accepted)} transactions")

        if self.process_block(block):
            return block
        return None
