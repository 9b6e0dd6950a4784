"""
devcrypt Async Key Generation Scheduler
=======================================

Runs key-pair generation on worker threads so the single-threaded GUI
loop never waits on a prime search.  The foreground loop talks to the
scheduler through three non-blocking calls:

* :meth:`KeyGenScheduler.submit` returns a handle immediately;
* :meth:`KeyGenScheduler.poll` returns a :class:`~devcrypt.models.TaskStatus`
  snapshot and is cheap enough to call on every redraw;
* :meth:`KeyGenScheduler.cancel` is advisory: a running generation is not
  interrupted, its result is thrown away when it arrives.

Task lifecycle::

    PENDING -> RUNNING -> COMPLETED | FAILED | CANCELLED
    PENDING -> CANCELLED

Terminal states are final.  A COMPLETED or FAILED status is handed out by
exactly one ``poll``; the task is forgotten afterwards.  A cancelled task is
forgotten as soon as no worker holds it: at once if it never started,
otherwise when its worker returns.  Nobody has to poll it.  All task state is
read and written under one lock, so a poll never observes a half-written
result.  Exceptions raised by the generator never cross the thread
boundary: they become a FAILED task carrying a
:class:`~devcrypt.errors.GenerationFailedError`.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
import uuid
from typing import Callable, Dict, List, Optional

from devcrypt import keygen
from devcrypt.config import DEFAULT_KEYGEN_WORKERS
from devcrypt.errors import CryptoEngineError, GenerationFailedError
from devcrypt.models import Algorithm, KeyPair, TaskState, TaskStatus
from devcrypt.validator import validate_keypair_request

logger = logging.getLogger(__name__)

KeyPairGenerator = Callable[[Algorithm, Optional[int]], KeyPair]

_TRANSITIONS = {
    TaskState.PENDING: frozenset({TaskState.RUNNING, TaskState.CANCELLED}),
    TaskState.RUNNING: frozenset({TaskState.COMPLETED, TaskState.FAILED, TaskState.CANCELLED}),
    TaskState.COMPLETED: frozenset(),
    TaskState.FAILED: frozenset(),
    TaskState.CANCELLED: frozenset(),
}


class _Task:
    """Book-keeping for one submitted generation.  Guarded by the scheduler lock."""

    __slots__ = (
        "handle",
        "algorithm",
        "bit_size",
        "state",
        "keypair",
        "error",
        "future",
        "started",
        "finished",
    )

    def __init__(self, handle: str, algorithm: Algorithm, bit_size: int):
        self.handle = handle
        self.algorithm = algorithm
        self.bit_size = bit_size
        self.state = TaskState.PENDING
        self.keypair: Optional[KeyPair] = None
        self.error: Optional[CryptoEngineError] = None
        self.future: Optional[concurrent.futures.Future] = None
        self.started: Optional[float] = None
        self.finished: Optional[float] = None

    def elapsed(self) -> float:
        if self.started is None:
            return 0.0
        end = self.finished if self.finished is not None else time.perf_counter()
        return end - self.started

    def snapshot(self) -> TaskStatus:
        return TaskStatus(
            handle=self.handle,
            algorithm=self.algorithm,
            state=self.state,
            keypair=self.keypair if self.state is TaskState.COMPLETED else None,
            error=self.error if self.state is TaskState.FAILED else None,
            elapsed=self.elapsed(),
        )


class KeyGenScheduler:
    """
    Background key-pair generation with a polled state machine.

    Parameters
    ----------
    max_workers : int, optional
        Worker threads (default :data:`devcrypt.config.DEFAULT_KEYGEN_WORKERS`).
    generator : callable(algorithm, bit_size) -> KeyPair, optional
        The synchronous generator run on the workers
        (default :func:`devcrypt.keygen.generate_keypair`).
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        generator: Optional[KeyPairGenerator] = None,
    ):
        self._generator = generator or keygen.generate_keypair
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers or DEFAULT_KEYGEN_WORKERS,
            thread_name_prefix="devcrypt-keygen",
        )
        self._lock = threading.Lock()
        self._tasks: Dict[str, _Task] = {}
        self._closed = False

    # ----- context manager -----

    def __enter__(self) -> "KeyGenScheduler":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown(wait=True)

    # ----- foreground API -----

    def submit(self, algorithm: Algorithm, bit_size: Optional[int] = None) -> str:
        """
        Queue generation of an *algorithm* key pair and return its handle.

        Raises
        ------
        InvalidKeyMaterialError
            If *bit_size* does not match *algorithm*.
        InvalidOperationForKeyError
            If *algorithm* is symmetric.
        RuntimeError
            If the scheduler has been shut down.
        """
        bits = validate_keypair_request(algorithm, bit_size)
        handle = uuid.uuid4().hex[:12]
        task = _Task(handle, algorithm, bits)
        with self._lock:
            if self._closed:
                raise RuntimeError("Key generation scheduler has been shut down.")
            self._tasks[handle] = task
            task.future = self._executor.submit(self._run, task)
        logger.info("Queued %s key generation as task %s", algorithm.label, handle)
        return handle

    def poll(self, handle: str) -> TaskStatus:
        """
        Return the current status of *handle* without blocking.

        COMPLETED and FAILED statuses are returned once; the task is then
        discarded.  A cancelled task reports CANCELLED only while its worker
        is still running.

        Raises
        ------
        KeyError
            If *handle* is unknown or was already consumed.
        """
        with self._lock:
            task = self._tasks.get(handle)
            if task is None:
                raise KeyError(handle)
            status = task.snapshot()
            if task.state in (TaskState.COMPLETED, TaskState.FAILED):
                del self._tasks[handle]
                task.keypair = None
        return status

    def cancel(self, handle: str) -> bool:
        """
        Ask for *handle* to be cancelled.

        Returns ``True`` if the task moved to CANCELLED.  A task that never
        started is forgotten immediately; a running one when its worker
        returns.  A task that already completed or failed is left alone
        (``False``) and its result stays retrievable by one ``poll``.
        """
        with self._lock:
            task = self._tasks.get(handle)
            if task is None or task.state.is_terminal:
                return False
            self._cancel_locked(task)
        logger.info("Cancelled key generation task %s", handle)
        return True

    def wait(self, handle: str, timeout: Optional[float] = None) -> TaskStatus:
        """
        Block until *handle* leaves RUNNING, then :meth:`poll` it.

        A task cancelled while waiting is already forgotten when the wait
        ends; its final CANCELLED snapshot is returned instead.
        For scripts and tests only; the GUI loop must use :meth:`poll`.
        """
        with self._lock:
            task = self._tasks.get(handle)
            if task is None:
                raise KeyError(handle)
            future = task.future
        if future is not None:
            concurrent.futures.wait([future], timeout=timeout)
        with self._lock:
            if handle not in self._tasks and task.state is TaskState.CANCELLED:
                return task.snapshot()
        return self.poll(handle)

    def active_handles(self) -> List[str]:
        """Handles of tasks that are still PENDING or RUNNING."""
        with self._lock:
            return [h for h, t in self._tasks.items() if not t.state.is_terminal]

    def shutdown(self, wait: bool = True) -> None:
        """Cancel queued work and stop the workers."""
        with self._lock:
            self._closed = True
            pending = [t for t in self._tasks.values() if t.state is TaskState.PENDING]
            for task in pending:
                self._cancel_locked(task)
        self._executor.shutdown(wait=wait)

    # ----- worker side -----

    def _run(self, task: _Task) -> None:
        with self._lock:
            if task.state is TaskState.CANCELLED:
                self._tasks.pop(task.handle, None)
                return
            self._transition(task, TaskState.RUNNING)
            task.started = time.perf_counter()

        keypair: Optional[KeyPair] = None
        error: Optional[CryptoEngineError] = None
        try:
            keypair = self._generator(task.algorithm, task.bit_size)
        except GenerationFailedError as exc:
            error = exc
        except Exception as exc:
            logger.exception("Key generation task %s raised", task.handle)
            error = GenerationFailedError(f"{task.algorithm.label} key generation failed: {exc}")

        with self._lock:
            task.finished = time.perf_counter()
            if task.state is TaskState.CANCELLED:
                self._tasks.pop(task.handle, None)
                logger.info(
                    "Discarded result of cancelled task %s after %.2fs",
                    task.handle,
                    task.elapsed(),
                )
                return
            if error is not None:
                task.error = error
                self._transition(task, TaskState.FAILED)
                logger.warning("Key generation task %s failed: %s", task.handle, error)
            else:
                task.keypair = keypair
                self._transition(task, TaskState.COMPLETED)

    def _cancel_locked(self, task: _Task) -> None:
        """Move *task* to CANCELLED and drop it if no worker holds it; caller holds the lock."""
        self._transition(task, TaskState.CANCELLED)
        if task.future is not None and task.future.cancel():
            del self._tasks[task.handle]

    @staticmethod
    def _transition(task: _Task, new_state: TaskState) -> None:
        """Move *task* to *new_state*; caller holds the lock."""
        if new_state not in _TRANSITIONS[task.state]:
            raise RuntimeError(
                f"Illegal task transition {task.state.value} -> {new_state.value} "
                f"for {task.handle}."
            )
        logger.debug("Task %s: %s -> %s", task.handle, task.state.value, new_state.value)
        task.state = new_state
