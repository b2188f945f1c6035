"""
Transaction validation against a UTXO pool.
Replays candidate transactions for a block without touching the caller's pool.
"""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Set, Tuple

from blockchain.blockchain import Transaction
from blockchain.utxo import UTXO, UTXOPool
from wallet.wallet import verify_signature

logger = logging.getLogger(__name__)


class TransactionValidator:
    """Validates regular (non-coinbase) transactions against a UTXO pool"""

    def check_transaction(self, pool: UTXOPool, tx: Transaction) -> Tuple[bool, Optional[str]]:
        """
        Check a single transaction against ``pool``.
        Returns (is_valid, error_message)
        """
        claimed: Set[UTXO] = set()
        input_sum = Decimal("0")

        for index, tx_in in enumerate(tx.inputs):
            utxo = UTXO(tx_in.prev_txid, tx_in.output_index)

            output = pool.get_output(utxo)
            if output is None:
                return False, f"input {index} spends unknown output {utxo}"

            if utxo in claimed:
                return False, f"output {utxo} claimed more than once"
            claimed.add(utxo)

            if not verify_signature(output.address, tx.raw_data_to_sign(index), tx_in.signature):
                return False, f"bad signature on input {index}"

            input_sum += output.value

        output_sum = Decimal("0")
        for index, tx_out in enumerate(tx.outputs):
            if not tx_out.value.is_finite():
                return False, f"output {index} has non-finite value"
            if tx_out.value < 0:
                return False, f"output {index} has negative value {tx_out.value}"
            output_sum += tx_out.value

        if input_sum < output_sum:
            return False, f"outputs {output_sum} exceed inputs {input_sum}"

        return True, None

    def is_valid_transaction(self, pool: UTXOPool, tx: Transaction) -> bool:
        return self.check_transaction(pool, tx)[0]

    @staticmethod
    def apply(pool: UTXOPool, tx: Transaction):
        """Spend the transaction's inputs and add its outputs, in place."""
        for tx_in in tx.inputs:
            pool.remove_utxo(UTXO(tx_in.prev_txid, tx_in.output_index))
        txid = tx.txid
        for index, tx_out in enumerate(tx.outputs):
            pool.add_utxo(UTXO(txid, index), tx_out)

    def validate(self, pool: UTXOPool, txs: Iterable[Transaction]) -> Tuple[List[Transaction], UTXOPool]:
        """
        Replay ``txs`` against a private copy of ``pool``.

        Candidates are swept repeatedly until a pass accepts nothing, so a
        transaction spending an output created later in the list is still
        picked up. Returns the accepted transactions in their original order
        and the resulting pool.
        """
        working = pool.copy()
        candidates = list(txs)
        accepted_at: Set[int] = set()

        progress = True
        while progress:
            progress = False
            for position, tx in enumerate(candidates):
                if position in accepted_at:
                    continue
                is_valid, error = self.check_transaction(working, tx)
                if not is_valid:
                    logger.debug(f"Deferring {tx.txid}: {error}")
                    continue
                self.apply(working, tx)
                accepted_at.add(position)
                progress = True

        accepted = [tx for position, tx in enumerate(candidates) if position in accepted_at]
        if len(accepted) != len(candidates):
            logger.debug(f"Accepted {len(accepted)} of {len(candidates)} transactions")
        return accepted, working
