import argparse
import json
import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from blockchain.block_handler import BlockHandler
from blockchain.block_tree import BlockTree
from blockchain.blockchain import Block, Transaction
from config.config import COINBASE_REWARD, LOG_FILE, LOG_LEVEL, RETENTION_WINDOW, STRUCTURED_LOGS
from errors.exceptions import BlockchainError
from log_utils import setup_logging
from models.validation import BlockStep, ScenarioModel
from wallet.wallet import generate_keypair

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Local block tree with fork choice and pruning.")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Logging level")
    parser.add_argument("--log-file", default=LOG_FILE, help="Also write logs to this file")
    parser.add_argument("--plain-logs", action="store_true", default=not STRUCTURED_LOGS,
                        help="Human readable logs instead of JSON lines")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Mine blocks with periodic forks")
    sim.add_argument("--blocks", type=int, default=25, help="Blocks to mine on the best tip")
    sim.add_argument("--fork-every", type=int, default=5, help="Add a competing sibling every N blocks (0 disables)")
    sim.add_argument("--retention-window", type=int, default=RETENTION_WINDOW)

    replay = sub.add_parser("replay", help="Feed a JSON scenario of blocks and transactions into a tree")
    replay.add_argument("file", help="Scenario file")
    return parser


def _spend_one(tree: BlockTree, private_key, owner: str, recipient: str) -> Optional[Transaction]:
    """Pay the whole of one of ``owner``'s outputs at the best tip to ``recipient``."""
    pool = tree.get_best_utxo_pool()
    pending = {(i.prev_txid, i.output_index) for tx in tree.get_transaction_pool() for i in tx.inputs}
    for utxo in sorted(pool):
        output = pool.get_output(utxo)
        if output.address != owner or (utxo.txid, utxo.index) in pending:
            continue
        tx = Transaction()
        tx.add_input(utxo.txid, utxo.index)
        tx.add_output(output.value, recipient)
        tx.sign_input(0, private_key)
        return tx
    return None


def simulate(blocks: int, fork_every: int, retention_window: int) -> dict:
    miner_key, miner = generate_keypair()
    _, recipient = generate_keypair()

    genesis = Block(None, Transaction.coinbase(COINBASE_REWARD, miner, data="genesis"))
    tree = BlockTree(genesis, retention_window=retention_window)
    handler = BlockHandler(tree)

    forks = 0
    for i in range(1, blocks + 1):
        tx = _spend_one(tree, miner_key, miner, recipient)
        if tx is not None:
            handler.process_transaction(tx)

        parent_hash = tree.get_best_hash()
        if handler.create_block(miner) is None:
            logger.warning(f"Block {i} was not accepted")
            continue

        if fork_every and i % fork_every == 0:
            height = tree.get_height(parent_hash) + 1
            sibling = Block(parent_hash, Transaction.coinbase(COINBASE_REWARD, recipient, data=str(height)), nonce=i)
            if handler.process_block(sibling):
                forks += 1

    stats = tree.get_stats()
    stats["forks"] = forks
    stats["tip_hashes"] = sorted(tree.chain_tips())
    return stats


def replay(path: str) -> List[dict]:
    with open(path) as f:
        scenario = ScenarioModel.model_validate(json.load(f))

    tree = BlockTree(scenario.genesis.to_domain(), retention_window=scenario.retention_window)
    results = []
    for index, step in enumerate(scenario.steps):
        if isinstance(step, BlockStep):
            block = step.block.to_domain()
            accepted = tree.add_block(block)
            results.append({"step": index, "block": block.hash(), "accepted": accepted,
                            "best_height": tree.get_best_height()})
        else:
            tx = step.transaction.to_domain()
            tree.add_transaction(tx)
            results.append({"step": index, "transaction": tx.txid, "pending": len(tree.get_transaction_pool())})
    return results


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
        enable_console=True,
        enable_structured=not args.plain_logs,
    )

    try:
        if args.command == "simulate":
            print(json.dumps(simulate(args.blocks, args.fork_every, args.retention_window), indent=2))
        else:
            for result in replay(args.file):
                print(json.dumps(result))
    except (BlockchainError, PydanticValidationError, OSError, json.JSONDecodeError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    return 0
