"""
Unspent-output bookkeeping.

A ``UTXOPool`` maps an outpoint (producing txid, output index) to the output
it refers to. Every block node owns a private pool, so ``copy`` must never
share mutable state with the original.
"""
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from blockchain.blockchain import TxOutput


@dataclass(frozen=True, order=True)
class UTXO:
    txid: str
    index: int

    def __str__(self):
        return f"{self.txid}:{self.index}"


class UTXOPool:
    def __init__(self, utxos: Optional[Dict[UTXO, TxOutput]] = None):
        self._utxos: Dict[UTXO, TxOutput] = {}
        if utxos:
            for utxo, output in utxos.items():
                self.add_utxo(utxo, output)

    def add_utxo(self, utxo: UTXO, output: TxOutput):
        # TxOutput is mutable, keep our own instance
        self._utxos[utxo] = TxOutput(output.value, output.address)

    def remove_utxo(self, utxo: UTXO):
        self._utxos.pop(utxo, None)

    def contains(self, utxo: UTXO) -> bool:
        return utxo in self._utxos

    def get_output(self, utxo: UTXO) -> Optional[TxOutput]:
        return self._utxos.get(utxo)

    def all_utxos(self) -> List[UTXO]:
        return list(self._utxos)

    def copy(self) -> "UTXOPool":
        return UTXOPool(self._utxos)

    def __contains__(self, utxo) -> bool:
        return self.contains(utxo)

    def __iter__(self) -> Iterator[UTXO]:
        return iter(list(self._utxos))

    def __len__(self) -> int:
        return len(self._utxos)

    def __eq__(self, other):
        if not isinstance(other, UTXOPool):
            return NotImplemented
        return self._utxos == other._utxos

    def __repr__(self):
        return f"UTXOPool({len(self._utxos)} outputs)"
