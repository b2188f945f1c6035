from decimal import Decimal

from blockchain.block_handler import BlockHandler
from blockchain.utxo import UTXO


class TestBlockHandler:
    """Block production on top of the best tip"""

    def test_create_block_on_best_tip(self, tree, genesis, alice):
        handler = BlockHandler(tree)
        block = handler.create_block(alice.address)

        assert block is not None
        assert block.prev_hash == genesis.hash()
        assert tree.get_best_block() is block
        assert block.coinbase.outputs[0].value == Decimal("25")
        assert block.coinbase.coinbase_data == "2"
        assert UTXO(block.coinbase.txid, 0) in tree.get_best_utxo_pool()

    def test_create_block_takes_valid_pending_transactions(self, tree, genesis, alice, bob, make_spend):
        handler = BlockHandler(tree)
        good = make_spend(alice, [(genesis.coinbase.txid, 0)], [("25", bob.address)])
        forged = make_spend(bob, [(genesis.coinbase.txid, 0)], [("25", bob.address)])
        handler.process_transaction(good)
        handler.process_transaction(forged)

        block = handler.create_block(bob.address)

        assert block.transactions == [good]
        pending = tree.get_transaction_pool()
        assert good.txid not in pending
        assert forged.txid in pending

    def test_process_block_none(self, tree):
        assert BlockHandler(tree).process_block(None) is False

    def test_successive_coinbases_are_distinct(self, tree, alice):
        handler = BlockHandler(tree)
        blocks = [handler.create_block(alice.address) for _ in range(3)]
        assert len({b.coinbase.txid for b in blocks}) == 3
        assert tree.get_best_height() == 4
