"""
Pydantic models for input validation
"""

import re
from decimal import Decimal
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from blockchain.blockchain import Block, Transaction, TxInput, TxOutput

_HEX64 = re.compile(r'^[0-9a-f]{64}$')


def _check_hash(v: str) -> str:
    if not _HEX64.match(v):
        raise ValueError('Must be a 64-character lowercase hex digest')
    return v


class TxInputModel(BaseModel):
    txid: str
    index: int = Field(..., ge=0)
    signature: Optional[str] = None

    @field_validator('txid')
    @classmethod
    def validate_txid(cls, v):
        return _check_hash(v)

    @field_validator('signature')
    @classmethod
    def validate_signature(cls, v):
        if v is not None:
            try:
                bytes.fromhex(v)
            except ValueError:
                raise ValueError('Signature must be hex encoded')
        return v

    def to_domain(self) -> TxInput:
        return TxInput(self.txid, self.index, self.signature)

class TxOutputModel(BaseModel):
    # Negative values are left to the transaction validator
    value: Decimal
    address: str = Field(..., min_length=1)

    def to_domain(self) -> TxOutput:
        return TxOutput(self.value, self.address)

class TransactionModel(BaseModel):
    inputs: List[TxInputModel] = Field(default_factory=list)
    outputs: List[TxOutputModel] = Field(default_factory=list)
    coinbase_data: str = ""

    def to_domain(self) -> Transaction:
        return Transaction(
            [i.to_domain() for i in self.inputs],
            [o.to_domain() for o in self.outputs],
            self.coinbase_data,
        )

class BlockModel(BaseModel):
    prev_hash: Optional[str] = None
    coinbase: TransactionModel
    transactions: List[TransactionModel] = Field(default_factory=list)
    nonce: int = Field(0, ge=0)

    @field_validator('prev_hash')
    @classmethod
    def validate_prev_hash(cls, v):
        if v is not None:
            return _check_hash(v)
        return v

    @field_validator('coinbase')
    @classmethod
    def validate_coinbase(cls, v):
        if v.inputs:
            raise ValueError('Coinbase must not have inputs')
        if len(v.outputs) < 1:
            raise ValueError('Coinbase must have an output')
        return v

    def to_domain(self) -> Block:
        return Block(
            self.prev_hash,
            self.coinbase.to_domain(),
            [tx.to_domain() for tx in self.transactions],
            self.nonce,
        )


class BlockStep(BaseModel):
    type: Literal['block']
    block: BlockModel

class TransactionStep(BaseModel):
    type: Literal['transaction']
    transaction: TransactionModel

class ScenarioModel(BaseModel):
    """A genesis block followed by blocks and transactions to feed into a tree"""
    retention_window: Optional[int] = Field(None, ge=1)
    genesis: BlockModel
    steps: List[Union[BlockStep, TransactionStep]] = Field(default_factory=list)

    @field_validator('genesis')
    @classmethod
    def validate_genesis(cls, v):
        if v.prev_hash is not None:
            raise ValueError('Genesis block must not declare a parent')
        return v
