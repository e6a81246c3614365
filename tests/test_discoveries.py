from __future__ import annotations

import json

import pytest

from weakout.discoveries import DiscoveryFile, maybe_update_best


def test_maybe_update_best() -> None:
    data: dict[str, object] = {}
    record = {
        "candidate": "0000000011111111" * 32,
        "runtime": 28.027,
        "worker": 3,
        "checked_outputs": 41,
    }
    assert maybe_update_best(data, record) is True
    assert data["runtime"] == 28.027

    slower = dict(record, runtime=30.0)
    assert maybe_update_best(data, slower) is False
    equal = dict(record, runtime=28.027, worker=5)
    assert maybe_update_best(data, equal) is False
    assert data["worker"] == 3

    faster = dict(record, runtime=12.5)
    assert maybe_update_best(data, faster) is True
    assert data["runtime"] == 12.5


def test_maybe_update_best_requires_fields() -> None:
    with pytest.raises(ValueError):
        maybe_update_best({}, {"runtime": 1.0})


def test_discovery_file(tmp_path) -> None:
    path = tmp_path / "out" / "best.json"
    discoveries = DiscoveryFile(path)
    assert discoveries.best() is None
    assert discoveries.record({"candidate": "01", "runtime": 4.0}) is True
    assert discoveries.record({"candidate": "10", "runtime": 6.0}) is False
    assert json.loads(path.read_text(encoding="utf-8"))["candidate"] == "01"
    assert discoveries.best() == {"candidate": "01", "runtime": 4.0}


def test_discovery_file_keeps_earlier_run(tmp_path) -> None:
    path = tmp_path / "best.json"
    path.write_text(json.dumps({"candidate": "11", "runtime": 2.0}), encoding="utf-8")
    discoveries = DiscoveryFile(path)
    assert discoveries.record({"candidate": "01", "runtime": 4.0}) is False
    assert discoveries.record({"candidate": "00", "runtime": 1.5}) is True
    assert discoveries.best()["candidate"] == "00"


def test_discovery_file_rejects_non_object(tmp_path) -> None:
    path = tmp_path / "best.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        DiscoveryFile(path).best()
