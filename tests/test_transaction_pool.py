from blockchain.blockchain import Transaction
from mempool import TransactionPool


class TestTransactionPool:
    """Pending transaction pool"""

    def create_test_transaction(self, tag: str) -> Transaction:
        tx = Transaction()
        tx.add_input("ab" * 32, 0)
        tx.add_output("1", f"receiver-{tag}")
        return tx

    def test_add_and_remove(self):
        pool = TransactionPool()
        tx = self.create_test_transaction("a")

        txid = pool.add_transaction(tx)
        assert txid == tx.txid
        assert txid in pool
        assert pool.size() == 1
        assert pool.get_transaction(txid) is tx

        assert pool.remove_transaction(txid) is True
        assert pool.remove_transaction(txid) is False
        assert len(pool) == 0

    def test_add_same_txid_overwrites(self):
        pool = TransactionPool()
        tx = self.create_test_transaction("a")
        pool.add_transaction(tx)
        pool.add_transaction(self.create_test_transaction("a"))
        assert pool.size() == 1

    def test_remove_confirmed_counts_present_only(self):
        pool = TransactionPool()
        kept = self.create_test_transaction("kept")
        gone = self.create_test_transaction("gone")
        pool.add_transaction(kept)
        pool.add_transaction(gone)

        removed = pool.remove_confirmed_transactions([gone.txid, "00" * 32])
        assert removed == 1
        assert kept.txid in pool
        assert gone.txid not in pool

    def test_copy_is_independent(self):
        pool = TransactionPool()
        tx = self.create_test_transaction("a")
        pool.add_transaction(tx)

        snapshot = pool.copy()
        snapshot.remove_transaction(tx.txid)
        snapshot.add_transaction(self.create_test_transaction("b"))

        assert list(pool.get_all_transactions()) == [tx.txid]

    def test_block_candidates_keep_arrival_order(self):
        pool = TransactionPool()
        txs = [self.create_test_transaction(str(i)) for i in range(5)]
        for tx in txs:
            pool.add_transaction(tx)

        assert pool.get_transactions_for_block(max_count=3) == txs[:3]
        assert list(pool) == txs

    def test_stats(self):
        pool = TransactionPool([self.create_test_transaction("a"), self.create_test_transaction("b")])
        assert pool.get_stats() == {"size": 2, "inputs": 2, "outputs": 2}
