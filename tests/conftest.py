# tests/conftest.py
"""
Shared fixtures for the test suite.

1.  Make project-root importable so `from blockchain.block_tree import …`
    works no matter where pytest is launched.
2.  Provide deterministic-shape builders for keys, spends and blocks so each
    test module only states what differs.
"""

from __future__ import annotations
import pathlib
import sys
from collections import namedtuple
from decimal import Decimal

import pytest

# ─────────────────────────────────────────────────────────────────────────────
#  Ensure the repo root is on sys.path
# ─────────────────────────────────────────────────────────────────────────────
ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from blockchain.block_tree import BlockTree
from blockchain.blockchain import Block, Transaction
from wallet.wallet import generate_keypair

Key = namedtuple("Key", ["private", "address"])

REWARD = Decimal("25")


# ──────────────────────────────── keys ──────────────────────────────────────
@pytest.fixture
def alice() -> Key:
    return Key(*generate_keypair())


@pytest.fixture
def bob() -> Key:
    return Key(*generate_keypair())


# ────────────────────────────── builders ────────────────────────────────────
@pytest.fixture
def make_spend():
    """
    make_spend(owner, [(txid, index), ...], [(value, address), ...]) → a
    transaction spending the given outpoints, every input signed by ``owner``.
    """
    def _make(owner: Key, outpoints, outputs) -> Transaction:
        tx = Transaction()
        for txid, index in outpoints:
            tx.add_input(txid, index)
        for value, address in outputs:
            tx.add_output(Decimal(value), address)
        for i in range(len(tx.inputs)):
            tx.sign_input(i, owner.private)
        return tx
    return _make


@pytest.fixture
def make_block(alice):
    """make_block(parent_hash, txs=None, nonce=0, miner=alice address) → Block"""
    def _make(parent_hash, txs=None, nonce=0, miner=None) -> Block:
        coinbase = Transaction.coinbase(REWARD, miner or alice.address, data=f"{parent_hash}:{nonce}")
        return Block(parent_hash, coinbase, txs, nonce=nonce)
    return _make


# ──────────────────────────── chain fixtures ────────────────────────────────
@pytest.fixture
def genesis(alice) -> Block:
    return Block(None, Transaction.coinbase(REWARD, alice.address, data="genesis"))


@pytest.fixture
def tree(genesis) -> BlockTree:
    return BlockTree(genesis, retention_window=10)
