import logging
from typing import Dict, Iterable, Iterator, List, Optional
from collections import OrderedDict

from blockchain.blockchain import Transaction

logger = logging.getLogger(__name__)

class TransactionPool:
    """
    Transactions waiting to be confirmed, keyed by txid in arrival order.

    Nothing is validated on the way in; a transaction is only checked when a
    block that includes it is replayed.
    """

    def __init__(self, transactions: Optional[Iterable[Transaction]] = None):
        self.transactions: OrderedDict[str, Transaction] = OrderedDict()
        for tx in transactions or ():
            self.transactions[tx.txid] = tx

    def add_transaction(self, tx: Transaction) -> str:
        """
        Add a transaction, replacing any entry with the same txid.

        Returns:
            The txid the transaction is stored under
        """
        txid = tx.txid
        if txid in self.transactions:
            logger.debug(f"Transaction {txid} already in pool, replacing")
        self.transactions[txid] = tx
        logger.debug(f"Added transaction {txid} to pool. Size: {len(self.transactions)}")
        return txid

    def remove_transaction(self, txid: str) -> bool:
        """
        Remove a transaction from the pool.

        Returns:
            True if removed, False if not found
        """
        if self.transactions.pop(txid, None) is None:
            return False
        logger.debug(f"Removed transaction {txid} from pool")
        return True

    def remove_confirmed_transactions(self, txids: Iterable[str]) -> int:
        """Drop every txid that was confirmed in a block; returns how many were present."""
        removed_count = 0
        for txid in txids:
            if self.remove_transaction(txid):
                removed_count += 1

        if removed_count > 0:
            logger.info(f"Removed {removed_count} confirmed transactions from pool")
        return removed_count

    def get_transactions_for_block(self, max_count: int = 1000) -> List[Transaction]:
        """Oldest-first candidates for a new block."""
        return list(self.transactions.values())[:max_count]

    def get_transaction(self, txid: str) -> Optional[Transaction]:
        return self.transactions.get(txid)

    def get_all_transactions(self) -> Dict[str, Transaction]:
        return dict(self.transactions)

    def copy(self) -> "TransactionPool":
        pool = TransactionPool()
        pool.transactions = OrderedDict(self.transactions)
        return pool

    def size(self) -> int:
        return len(self.transactions)

    def __len__(self) -> int:
        return len(self.transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(list(self.transactions.values()))

    def __contains__(self, txid) -> bool:
        return txid in self.transactions

    def get_stats(self) -> dict:
        return {
            "size": len(self.transactions),
            "inputs": sum(len(tx.inputs) for tx in self.transactions.values()),
            "outputs": sum(len(tx.outputs) for tx in self.transactions.values()),
        }
