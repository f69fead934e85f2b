"""
Base classes for diff workers.

A worker wraps one unit of work identified by a ticket. It keeps its state
under a mutex, reports through Qt signals, and captures failures instead of
raising them into whatever thread runs it.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, Optional

from PyQt6.QtCore import QMutex, QMutexLocker, QObject, pyqtSignal, pyqtSlot


class WorkerState(Enum):
    """Lifecycle of a worker."""
    PENDING = auto()
    RUNNING = auto()
    CANCELLING = auto()  # Cancel requested, work still unwinding
    CANCELLED = auto()
    COMPLETED = auto()
    FAILED = auto()

    @property
    def is_finished(self) -> bool:
        return self in (WorkerState.CANCELLED, WorkerState.COMPLETED, WorkerState.FAILED)


class WorkerSignals(QObject):
    """
    Signals emitted by a worker, each tagged with the worker's ticket.

    Connect from the controller thread; emission happens on the thread
    that calls run().
    """
    started = pyqtSignal(str)                # ticket
    status = pyqtSignal(str, str)            # ticket, message
    finished = pyqtSignal(str, object)       # ticket, result
    failed = pyqtSignal(str, str, str)       # ticket, error type, message
    cancelled = pyqtSignal(str)              # ticket
    state_changed = pyqtSignal(str, object)  # ticket, WorkerState


class CancelledException(Exception):
    """Raised inside do_work when the worker has been cancelled."""
    pass


class WorkerMeta(type(QObject), type(ABC)):
    pass


class BaseWorker(QObject, ABC, metaclass=WorkerMeta):
    """
    One ticketed unit of background work.

    Subclasses implement `do_work`. `run` may be called from a QThread,
    a thread pool, or directly; it never raises.
    """

    def __init__(self, ticket: str, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.ticket = ticket
        self.signals = WorkerSignals()
        self._mutex = QMutex()
        self._state = WorkerState.PENDING
        self._cancelled = False
        self._result: Any = None
        self._error: Optional[tuple[str, str]] = None
        self._started_at: Optional[float] = None
        self._elapsed: Optional[float] = None

    @property
    def state(self) -> WorkerState:
        with QMutexLocker(self._mutex):
            return self._state

    @property
    def is_cancelled(self) -> bool:
        with QMutexLocker(self._mutex):
            return self._cancelled

    @property
    def result(self) -> Any:
        """Return value of do_work, None unless completed."""
        return self._result

    @property
    def error(self) -> Optional[tuple[str, str]]:
        """(error type, message) after a failure."""
        return self._error

    @property
    def elapsed(self) -> Optional[float]:
        """Seconds spent in do_work, None until it returns or raises."""
        return self._elapsed

    def cancel(self) -> None:
        """Request cancellation. Work notices it at its next check."""
        with QMutexLocker(self._mutex):
            if self._state.is_finished:
                return
            self._cancelled = True
            running = self._state is WorkerState.RUNNING
        if running:
            self._set_state(WorkerState.CANCELLING)

    @pyqtSlot()
    def run(self) -> None:
        """Execute do_work and settle into a finished state."""
        self._started_at = time.perf_counter()
        self._set_state(WorkerState.RUNNING)
        self.signals.started.emit(self.ticket)

        try:
            result = self.do_work()
        except Exception as e:
            self._stop_clock()
            if self.is_cancelled:
                self._mark_cancelled()
            else:
                self._mark_failed(e)
            return

        self._stop_clock()
        if self.is_cancelled:
            self._mark_cancelled()
        else:
            self._mark_completed(result)

    @abstractmethod
    def do_work(self) -> Any:
        """Perform the work. Long loops should poll for cancellation."""
        pass

    def report_status(self, message: str) -> None:
        self.signals.status.emit(self.ticket, message)

    def check_cancelled(self) -> None:
        """Raise CancelledException if cancellation was requested."""
        if self.is_cancelled:
            raise CancelledException(f"{self.ticket} cancelled")

    def _set_state(self, state: WorkerState) -> None:
        with QMutexLocker(self._mutex):
            self._state = state
        self.signals.state_changed.emit(self.ticket, state)

    def _stop_clock(self) -> None:
        if self._started_at is not None:
            self._elapsed = time.perf_counter() - self._started_at

    def _mark_completed(self, result: Any) -> None:
        self._result = result
        self._set_state(WorkerState.COMPLETED)
        self.signals.finished.emit(self.ticket, result)

    def _mark_cancelled(self) -> None:
        self._set_state(WorkerState.CANCELLED)
        self.signals.cancelled.emit(self.ticket)

    def _mark_failed(self, exc: Exception) -> None:
        self._error = (type(exc).__name__, str(exc))
        self._set_state(WorkerState.FAILED)
        self.signals.failed.emit(self.ticket, *self._error)


class CancellableWorker(BaseWorker):
    """
    Worker whose cancellation checks are cheap enough to call in hot loops.
    """

    def __init__(
        self,
        ticket: str,
        check_interval: int = 100,
        parent: Optional[QObject] = None
    ):
        super().__init__(ticket, parent)
        self._check_interval = check_interval
        self._calls_since_check = 0

    def maybe_check_cancelled(self) -> bool:
        """
        Return True once cancellation has been requested.

        Only reads the flag every `check_interval` calls.
        """
        self._calls_since_check += 1
        if self._calls_since_check < self._check_interval:
            return False
        self._calls_since_check = 0
        return self.is_cancelled
