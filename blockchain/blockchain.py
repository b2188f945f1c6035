"""
Blockchain data model - transactions, blocks and the canonical hashing
used for every identifier and signature
"""
import hashlib
import json
from decimal import Decimal
from typing import List, Optional

from wallet.wallet import sign_message


def sha256d(b: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(b).digest()).digest()


def canonical_bytes(obj) -> bytes:
    """Deterministic JSON encoding used for every identifier and signature."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str).encode()


def hash_object(obj) -> str:
    return sha256d(canonical_bytes(obj)).hex()


class TxInput:
    def __init__(self, prev_txid: str, output_index: int, signature: Optional[str] = None):
        self.prev_txid = prev_txid
        self.output_index = output_index
        self.signature = signature

    def outpoint(self) -> dict:
        return {"txid": self.prev_txid, "index": self.output_index}

    def to_dict(self) -> dict:
        return {**self.outpoint(), "signature": self.signature}

    def __repr__(self):
        return f"TxInput({self.prev_txid[:12]}:{self.output_index})"


class TxOutput:
    def __init__(self, value, address: str):
        self.value = Decimal(value)
        self.address = address

    def to_dict(self) -> dict:
        return {"value": str(self.value), "address": self.address}

    def __eq__(self, other):
        if not isinstance(other, TxOutput):
            return NotImplemented
        return self.value == other.value and self.address == other.address

    def __hash__(self):
        return hash((self.value, self.address))

    def __repr__(self):
        return f"TxOutput({self.value} -> {self.address[:12]})"


class Transaction:
    """
    A transfer that spends earlier outputs and creates new ones.

    A coinbase transaction has no inputs; ``coinbase_data`` is folded into the
    identifier so two coinbases paying the same address stay distinct.
    """

    def __init__(self, inputs: List[TxInput] = None, outputs: List[TxOutput] = None,
                 coinbase_data: str = ""):
        self.inputs: List[TxInput] = list(inputs or [])
        self.outputs: List[TxOutput] = list(outputs or [])
        self.coinbase_data = coinbase_data

    @classmethod
    def coinbase(cls, value, address: str, data: str = "") -> "Transaction":
        return cls(outputs=[TxOutput(value, address)], coinbase_data=data)

    @property
    def is_coinbase(self) -> bool:
        return not self.inputs

    def add_input(self, prev_txid: str, output_index: int) -> TxInput:
        tx_in = TxInput(prev_txid, output_index)
        self.inputs.append(tx_in)
        return tx_in

    def add_output(self, value, address: str) -> TxOutput:
        tx_out = TxOutput(value, address)
        self.outputs.append(tx_out)
        return tx_out

    def raw_data_to_sign(self, index: int) -> bytes:
        """Bytes the owner of input ``index`` signs: that outpoint plus every output."""
        if index < 0 or index >= len(self.inputs):
            raise IndexError(f"Transaction has no input {index}")
        return canonical_bytes({
            "input": self.inputs[index].outpoint(),
            "outputs": [out.to_dict() for out in self.outputs],
        })

    def sign_input(self, index: int, private_key) -> str:
        signature = sign_message(private_key, self.raw_data_to_sign(index))
        self.inputs[index].signature = signature
        return signature

    def to_dict(self) -> dict:
        return {
            "inputs": [tx_in.to_dict() for tx_in in self.inputs],
            "outputs": [out.to_dict() for out in self.outputs],
            "coinbase_data": self.coinbase_data,
        }

    @property
    def txid(self) -> str:
        return hash_object(self.to_dict())

    def __eq__(self, other):
        if not isinstance(other, Transaction):
            return NotImplemented
        return self.txid == other.txid

    def __hash__(self):
        return hash(self.txid)

    def __repr__(self):
        return f"Transaction({self.txid[:12]}, in={len(self.inputs)}, out={len(self.outputs)})"


class Block:
    def __init__(self, prev_hash: Optional[str], coinbase: Transaction,
                 transactions: List[Transaction] = None, nonce: int = 0):
        self.prev_hash = prev_hash
        self.coinbase = coinbase
        self.transactions: List[Transaction] = list(transactions or [])
        self.nonce = nonce

    @property
    def is_genesis(self) -> bool:
        return self.prev_hash is None

    def header(self) -> dict:
        return {
            "prev_hash": self.prev_hash,
            "coinbase": self.coinbase.txid,
            "tx_ids": [tx.txid for tx in self.transactions],
            "nonce": self.nonce,
        }

    def hash(self) -> str:
        return hash_object(self.header())

    def to_dict(self) -> dict:
        return {
            "block_hash": self.hash(),
            "prev_hash": self.prev_hash,
            "coinbase": self.coinbase.to_dict(),
            "transactions": [tx.to_dict() for tx in self.transactions],
            "nonce": self.nonce,
        }

    def __repr__(self):
        return f"Block({self.hash()[:12]}, prev={(self.prev_hash or 'none')[:12]}, txs={len(self.transactions)})"
