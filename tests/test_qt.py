"""Tests for the Qt polling bridge (skipped without PySide6)."""

import pytest

QtCore = pytest.importorskip("PySide6.QtCore")

from devcrypt.errors import GenerationFailedError  # noqa: E402
from devcrypt.models import Algorithm, KeyPair, TaskState, TaskStatus  # noqa: E402
from devcrypt.qt import KeyGenWatcher  # noqa: E402


@pytest.fixture(scope="module")
def app():
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])


class ScriptedSource:
    """Stands in for the scheduler: replays a fixed list of states per handle."""

    def __init__(self, script):
        self.script = {h: list(states) for h, states in script.items()}
        self.cancelled = []

    def poll(self, handle):
        states = self.script.get(handle)
        if not states:
            raise KeyError(handle)
        state = states.pop(0)
        return TaskStatus(
            handle,
            Algorithm.ECDSA,
            state,
            keypair=KeyPair(Algorithm.ECDSA, 256, "04", "01") if state is TaskState.COMPLETED else None,
            error=GenerationFailedError("no primes") if state is TaskState.FAILED else None,
        )

    def cancel(self, handle):
        self.cancelled.append(handle)
        return True


def _record(watcher):
    events = []
    watcher.stateChanged.connect(lambda h, s: events.append(("state", h, s)))
    watcher.finished.connect(lambda h, kp: events.append(("finished", h, kp.algorithm)))
    watcher.failed.connect(lambda h, msg: events.append(("failed", h, msg)))
    watcher.cancelled.connect(lambda h: events.append(("cancelled", h)))
    return events


def test_completed_task_emits_once(app):
    source = ScriptedSource({"a": [TaskState.RUNNING, TaskState.RUNNING, TaskState.COMPLETED]})
    watcher = KeyGenWatcher(source, interval_ms=10)
    events = _record(watcher)
    watcher.watch("a")
    assert watcher.watching
    for _ in range(4):
        watcher.poll_once()
    assert events == [
        ("state", "a", "running"),
        ("state", "a", "completed"),
        ("finished", "a", Algorithm.ECDSA),
    ]
    assert not watcher.watching


def test_failed_task_reports_message(app):
    source = ScriptedSource({"b": [TaskState.FAILED]})
    watcher = KeyGenWatcher(source)
    events = _record(watcher)
    watcher.watch("b")
    watcher.poll_once()
    kind, handle, message = events[-1]
    assert (kind, handle) == ("failed", "b")
    assert "no primes" in message


def test_cancel_emits_at_once(app):
    source = ScriptedSource({"c": [TaskState.PENDING, TaskState.RUNNING, TaskState.RUNNING]})
    watcher = KeyGenWatcher(source)
    events = _record(watcher)
    watcher.watch("c")
    watcher.poll_once()
    assert watcher.cancel("c") is True
    assert source.cancelled == ["c"]
    assert events[-2:] == [("state", "c", "cancelled"), ("cancelled", "c")]
    assert not watcher.watching
    watcher.poll_once()
    assert events.count(("cancelled", "c")) == 1


def test_cancel_that_does_not_take_effect(app):
    source = ScriptedSource({"d": [TaskState.RUNNING]})
    source.cancel = lambda handle: False
    watcher = KeyGenWatcher(source)
    events = _record(watcher)
    watcher.watch("d")
    assert watcher.cancel("d") is False
    assert events == []
    assert watcher.watching


def test_cancelled_state_seen_by_poll(app):
    source = ScriptedSource({"e": [TaskState.RUNNING, TaskState.CANCELLED]})
    watcher = KeyGenWatcher(source)
    events = _record(watcher)
    watcher.watch("e")
    watcher.poll_once()
    watcher.poll_once()
    watcher.poll_once()
    assert events == [
        ("state", "e", "running"),
        ("state", "e", "cancelled"),
        ("cancelled", "e"),
    ]


def test_unknown_handle_is_dropped(app):
    watcher = KeyGenWatcher(ScriptedSource({}))
    events = _record(watcher)
    watcher.watch("missing")
    watcher.poll_once()
    assert events == []
    assert not watcher.watching


def test_stop_clears_everything(app):
    watcher = KeyGenWatcher(ScriptedSource({"d": [TaskState.RUNNING] * 5}))
    watcher.watch("d")
    watcher.stop()
    assert not watcher.watching
