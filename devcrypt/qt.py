"""
devcrypt Qt Bridge
==================

Connects the key-generation scheduler to a PySide6 front end.

:class:`KeyGenWatcher` lives on the GUI thread, polls the scheduler from a
``QTimer`` and re-emits task transitions as Qt signals, so widgets can
show progress and pick up finished key pairs without touching threads.
The scheduler does the background work; nothing here blocks.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from devcrypt.config import DEFAULT_POLL_INTERVAL_MS
from devcrypt.facade import message_for
from devcrypt.models import TaskState

logger = logging.getLogger(__name__)


class KeyGenWatcher(QObject):
    """
    Poll submitted key-generation tasks and report them as signals.

    Parameters
    ----------
    source
        A :class:`~devcrypt.scheduler.KeyGenScheduler` or
        :class:`~devcrypt.facade.CryptoFacade` (anything with ``poll`` and
        ``cancel``).
    interval_ms : int, optional
        Polling period (default 50 ms, about 20 checks per second).
    """

    stateChanged = Signal(str, str)   # (handle, state)
    finished = Signal(str, object)    # (handle, KeyPair)
    failed = Signal(str, str)         # (handle, user-facing message)
    cancelled = Signal(str)           # handle

    def __init__(self, source, interval_ms: Optional[int] = None, parent=None):
        super().__init__(parent)
        self._source = source
        self._watched: Dict[str, Optional[TaskState]] = {}
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms or DEFAULT_POLL_INTERVAL_MS)
        self._timer.timeout.connect(self.poll_once)

    @property
    def watching(self) -> bool:
        return bool(self._watched)

    def watch(self, handle: str) -> None:
        """Start reporting on *handle*."""
        self._watched[handle] = None
        if not self._timer.isActive():
            self._timer.start()

    def cancel(self, handle: str) -> bool:
        """Cancel *handle*; ``cancelled`` is emitted at once if it took effect."""
        if not self._source.cancel(handle):
            return False
        if handle in self._watched:
            del self._watched[handle]
            self.stateChanged.emit(handle, TaskState.CANCELLED.value)
        self.cancelled.emit(handle)
        if not self._watched:
            self._timer.stop()
        return True

    def stop(self) -> None:
        self._timer.stop()
        self._watched.clear()

    def poll_once(self) -> None:
        """One polling pass over every watched handle (the timer slot)."""
        for handle, last_state in list(self._watched.items()):
            try:
                status = self._source.poll(handle)
            except KeyError:
                logger.debug("Task %s vanished while watched", handle)
                del self._watched[handle]
                continue

            if status.state is not last_state:
                self._watched[handle] = status.state
                self.stateChanged.emit(handle, status.state.value)

            if not status.is_terminal:
                continue
            del self._watched[handle]
            if status.state is TaskState.COMPLETED:
                self.finished.emit(handle, status.keypair)
            elif status.state is TaskState.FAILED:
                self.failed.emit(handle, message_for(status.error))
            else:
                self.cancelled.emit(handle)

        if not self._watched:
            self._timer.stop()
