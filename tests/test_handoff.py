"""Tests for records passed between build steps."""

import json
from pathlib import Path

import pytest

from zapgate.errors import HandoffMissingError
from zapgate.modules.build import HandoffRecord, HandoffStore


def record(**overrides) -> HandoffRecord:
    values = {
        "build_success": True,
        "install_dir": "/opt/zap",
        "host": "127.0.0.1",
        "port": 8090,
        "command_line": (("-config", "x=1"),),
        "session_path": "/ws/run.session",
    }
    values.update(overrides)
    return HandoffRecord(**values)


def test_handoff_is_consumed_once(workspace: Path, executor):
    store = HandoffStore(workspace, executor)
    store.write_handoff(record())

    loaded = store.consume_handoff()

    assert loaded.session_path == "/ws/run.session"
    assert loaded.extras()[0].option == "-config"
    with pytest.raises(HandoffMissingError):
        store.consume_handoff()


def test_records_are_json_under_state_dir(workspace: Path, executor):
    store = HandoffStore(workspace, executor)

    path = store.write_launch(record(pid=1234))

    assert path == workspace / ".zapgate" / "launch.json"
    data = json.loads(path.read_text())
    assert data["pid"] == 1234
    assert data["command_line"] == [["-config", "x=1"]]
    assert not (workspace / ".zapgate" / "handoff.json").exists()


def test_missing_record(workspace: Path, executor):
    with pytest.raises(HandoffMissingError):
        HandoffStore(workspace, executor).consume_launch()


def test_record_from_another_build_is_rejected(workspace: Path, executor):
    store = HandoffStore(workspace, executor)
    store.write_handoff(record(build_id="nightly-41"))

    with pytest.raises(HandoffMissingError, match="nightly-41"):
        store.consume_handoff("nightly-42")

    assert not store.path_for("handoff.json").exists()


def test_matching_build_is_accepted(workspace: Path, executor):
    store = HandoffStore(workspace, executor)
    store.write_handoff(record(build_id="nightly-42"))

    assert store.consume_handoff("nightly-42").build_id == "nightly-42"


def test_discard(workspace: Path, executor):
    store = HandoffStore(workspace, executor)
    store.write_handoff(record())

    store.discard("handoff.json")
    store.discard("handoff.json")

    assert not store.path_for("handoff.json").exists()
