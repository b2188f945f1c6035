import json

import pytest

from node import cli


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch):
    """Keep pytest's log capture handlers in place."""
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)


def test_simulate_reports_pruned_tree():
    stats = cli.simulate(blocks=25, fork_every=5, retention_window=4)

    assert stats["best_height"] == 26
    assert stats["forks"] == 5
    # forks older than the window are gone, so the store is tip chain plus recent siblings
    assert stats["nodes"] < 26 + stats["forks"]
    assert stats["best_hash"] in stats["tip_hashes"]


def test_main_simulate(capsys):
    assert cli.main(["simulate", "--blocks", "3", "--fork-every", "0"]) == 0
    stats = json.loads(capsys.readouterr().out)
    assert stats["best_height"] == 4
    assert stats["forks"] == 0


def test_replay(tmp_path, genesis, make_block, make_spend, alice, bob, capsys):
    tx = make_spend(alice, [(genesis.coinbase.txid, 0)], [("25", bob.address)])
    block = make_block(genesis.hash(), [tx])
    scenario = {
        "genesis": genesis.to_dict(),
        "steps": [
            {"type": "transaction", "transaction": tx.to_dict()},
            {"type": "block", "block": block.to_dict()},
            {"type": "block", "block": block.to_dict()},
        ],
    }
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps(scenario))

    assert cli.main(["replay", str(path)]) == 0
    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]

    assert lines[0]["pending"] == 1
    assert lines[1] == {"step": 1, "block": block.hash(), "accepted": True, "best_height": 2}
    assert lines[2]["accepted"] is False


def test_replay_invalid_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"steps": []}))
    assert cli.main(["replay", str(path)]) == 1
