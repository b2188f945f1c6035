"""
Block Tree - Holds every retained block, picks the best chain tip, keeps a
UTXO pool per branch and prunes branches that fell out of the retention window
"""
import itertools
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from blockchain.blockchain import Block, Transaction
from blockchain.transaction_validator import TransactionValidator
from blockchain.utxo import UTXO, UTXOPool
from config.config import RETENTION_WINDOW
from errors.exceptions import BlockRejectedError, ConfigurationError, RejectReason
from log_utils.structured_logger import get_logger
from mempool.mempool_manager import TransactionPool


@dataclass
class BlockNode:
    """
    One retained block. ``parent_hash`` is a key into the tree's node store
    rather than a reference, so a prune can drop nodes in bulk.
    """
    block: Block
    block_hash: str
    parent_hash: Optional[str]
    height: int
    utxo_pool: UTXOPool
    sequence: Any


def add_coinbase_output(base: UTXOPool, coinbase: Transaction) -> UTXOPool:
    """``base`` plus output 0 of ``coinbase``; modifies and returns ``base``."""
    base.add_utxo(UTXO(coinbase.txid, 0), coinbase.outputs[0])
    return base


class BlockTree:
    """
    Manages the local block tree:
    - Node store keyed by block hash, forks included
    - Best tip selection (greatest height, oldest node on ties)
    - Per-branch UTXO pools
    - Global pool of unconfirmed transactions
    - Pruning of branches behind the retention window
    """

    def __init__(self, genesis_block: Block, validator: Optional[TransactionValidator] = None,
                 retention_window: Optional[int] = None,
                 sequence: Optional[Callable[[], Any]] = None):
        if retention_window is None:
            retention_window = RETENTION_WINDOW
        if isinstance(retention_window, bool) or not isinstance(retention_window, int) or retention_window < 1:
            raise ConfigurationError(f"retention window must be a positive integer, got {retention_window!r}")

        self.retention_window = retention_window
        self.validator = validator or TransactionValidator()
        self._next_sequence = sequence or itertools.count(1).__next__
        self._lock = threading.RLock()
        self.log = get_logger(__name__)

        self.nodes: Dict[str, BlockNode] = {}
        self.tx_pool = TransactionPool()

        genesis_pool = add_coinbase_output(UTXOPool(), genesis_block.coinbase)
        genesis_hash = genesis_block.hash()
        genesis = BlockNode(genesis_block, genesis_hash, None, 1, genesis_pool, self._next_sequence())
        self.nodes[genesis_hash] = genesis
        self.genesis_hash = genesis_hash
        self.best_tip = genesis
        self.log.info(f"Block tree initialized with genesis {genesis_hash} (retention window {retention_window})")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_best_block(self) -> Block:
        with self._lock:
            return self.best_tip.block

    def get_best_height(self) -> int:
        with self._lock:
            return self.best_tip.height

    def get_best_hash(self) -> str:
        with self._lock:
            return self.best_tip.block_hash

    def get_best_utxo_pool(self) -> UTXOPool:
        """Copy of the UTXO pool at the best tip, for building a block on top of it."""
        with self._lock:
            return self.best_tip.utxo_pool.copy()

    def get_best_snapshot(self) -> Tuple[str, int, UTXOPool]:
        """Best tip hash, its height and a copy of its UTXO pool, read together."""
        with self._lock:
            return self.best_tip.block_hash, self.best_tip.height, self.best_tip.utxo_pool.copy()

    def get_transaction_pool(self) -> TransactionPool:
        """Copy of the pending transactions."""
        with self._lock:
            return self.tx_pool.copy()

    def get_block(self, block_hash: str) -> Optional[Block]:
        with self._lock:
            node = self.nodes.get(block_hash)
            return node.block if node else None

    def get_height(self, block_hash: str) -> Optional[int]:
        with self._lock:
            node = self.nodes.get(block_hash)
            return node.height if node else None

    def get_utxo_pool(self, block_hash: str) -> Optional[UTXOPool]:
        with self._lock:
            node = self.nodes.get(block_hash)
            return node.utxo_pool.copy() if node else None

    def chain_tips(self) -> Set[str]:
        """Hashes of retained blocks that have no retained child"""
        with self._lock:
            tips = set(self.nodes)
            for node in self.nodes.values():
                if node.parent_hash is not None:
                    tips.discard(node.parent_hash)
            return tips

    def get_best_chain(self) -> List[str]:
        """Block hashes from the best tip back to genesis"""
        with self._lock:
            return self._ancestry(self.best_tip.block_hash)

    def is_block_in_main_chain(self, block_hash: str) -> bool:
        with self._lock:
            node = self.nodes.get(block_hash)
            if node is None:
                return False
            current = self.best_tip
            while current is not None and current.height > node.height:
                current = self._parent(current)
            return current is not None and current.block_hash == block_hash

    def find_common_ancestor(self, hash1: str, hash2: str) -> Optional[str]:
        """Deepest block both hashes descend from, or None if either is unknown"""
        with self._lock:
            a, b = self.nodes.get(hash1), self.nodes.get(hash2)
            if a is None or b is None:
                return None
            while a.height > b.height:
                a = self._parent(a)
            while b.height > a.height:
                b = self._parent(b)
            while a.block_hash != b.block_hash:
                a, b = self._parent(a), self._parent(b)
            return a.block_hash

    def get_stats(self) -> dict:
        with self._lock:
            return {
                "best_hash": self.best_tip.block_hash,
                "best_height": self.best_tip.height,
                "nodes": len(self.nodes),
                "tips": len(self.chain_tips()),
                "pending_transactions": self.tx_pool.size(),
                "retention_window": self.retention_window,
            }

    def __contains__(self, block_hash) -> bool:
        with self._lock:
            return block_hash in self.nodes

    def __len__(self) -> int:
        with self._lock:
            return len(self.nodes)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_transaction(self, tx: Transaction):
        """Queue a transaction for a future block; an existing entry with the same txid is replaced."""
        with self._lock:
            self.tx_pool.add_transaction(tx)

    def add_block(self, block: Block) -> bool:
        """
        Add a block on top of its declared parent.

        Returns False, leaving the tree untouched, when the block is a second
        genesis, is already known, has an unknown or pruned parent, sits too
        far behind the best tip, or carries any transaction that fails replay
        against the parent's UTXO pool.
        """
        with self._lock:
            block_hash = block.hash()
            try:
                parent, new_pool = self._check_block(block, block_hash)
            except BlockRejectedError as e:
                self.log.with_context(block_hash=block_hash, reason=e.reason.value).warning(e.message)
                return False

            self._connect_block(block, block_hash, parent, new_pool)
            return True

    def _check_block(self, block: Block, block_hash: str):
        if block.is_genesis:
            raise BlockRejectedError(RejectReason.GENESIS, block_hash, "genesis is fixed at construction")

        if block_hash in self.nodes:
            raise BlockRejectedError(RejectReason.DUPLICATE, block_hash)

        parent = self.nodes.get(block.prev_hash)
        if parent is None:
            raise BlockRejectedError(RejectReason.UNKNOWN_PARENT, block_hash,
                                     f"parent {block.prev_hash} unknown or pruned")

        new_height = parent.height + 1
        if new_height <= self.best_tip.height - self.retention_window:
            raise BlockRejectedError(RejectReason.TOO_OLD, block_hash,
                                     f"height {new_height} vs best {self.best_tip.height}")

        coinbase = block.coinbase
        if not coinbase.is_coinbase or not coinbase.outputs or not coinbase.outputs[0].value.is_finite():
            raise BlockRejectedError(RejectReason.INVALID_TRANSACTIONS, block_hash, "malformed coinbase")

        accepted, new_pool = self.validator.validate(parent.utxo_pool, block.transactions)
        if len(accepted) != len(block.transactions):
            raise BlockRejectedError(RejectReason.INVALID_TRANSACTIONS, block_hash,
                                     f"{len(accepted)} of {len(block.transactions)} transactions valid")

        return parent, add_coinbase_output(new_pool, block.coinbase)

    def _connect_block(self, block: Block, block_hash: str, parent: BlockNode, utxo_pool: UTXOPool):
        node = BlockNode(block, block_hash, parent.block_hash, parent.height + 1,
                         utxo_pool, self._next_sequence())
        self.nodes[block_hash] = node

        tip_changed = False
        if node.height > self.best_tip.height:
            tip_changed = True
        elif node.height == self.best_tip.height and node.sequence < self.best_tip.sequence:
            tip_changed = True

        if tip_changed:
            self.best_tip = node

        self.tx_pool.remove_confirmed_transactions(tx.txid for tx in block.transactions)

        log = self.log.with_context(block_hash=block_hash, height=node.height)
        if tip_changed:
            log.info(f"New best tip {block_hash} at height {node.height}")
            self._prune()
        else:
            log.info(f"Stored side-branch block {block_hash} at height {node.height}")

    def _prune(self):
        """
        Keep every node at or above the cutoff height plus all of its
        ancestors; rebuild the store from that set in one step.
        """
        cutoff = self.best_tip.height - self.retention_window
        if cutoff <= 1:
            return

        keep: Set[str] = set()
        for node in self.nodes.values():
            if node.height < cutoff:
                continue
            current = node
            while current is not None and current.block_hash not in keep:
                keep.add(current.block_hash)
                current = self._parent(current)

        removed = len(self.nodes) - len(keep)
        if removed == 0:
            return
        self.nodes = {block_hash: node for block_hash, node in self.nodes.items() if block_hash in keep}
        self.log.info(f"Pruned {removed} blocks below height {cutoff}; {len(self.nodes)} retained")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _parent(self, node: BlockNode) -> Optional[BlockNode]:
        if node.parent_hash is None:
            return None
        return self.nodes.get(node.parent_hash)

    def _ancestry(self, block_hash: str) -> List[str]:
        chain = []
        node = self.nodes.get(block_hash)
        while node is not None:
            chain.append(node.block_hash)
            node = self._parent(node)
        return chain
