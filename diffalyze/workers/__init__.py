"""
Background workers for non-blocking diff computation.

Provides QObject-based workers and a ticketed dispatcher that runs the
exact diff engine off the controller thread within a time budget.

All workers use Qt signals for thread-safe communication
with the controller thread.
"""

from diffalyze.workers.base_worker import (
    BaseWorker,
    CancellableWorker,
    CancelledException,
    WorkerSignals,
    WorkerState,
)
from diffalyze.workers.diff_worker import (
    ComputationTier,
    DiffRequest,
    DiffResponse,
    DiffWorker,
)
from diffalyze.workers.dispatcher import (
    DiffDispatcher,
)

__all__ = [
    # Base
    'BaseWorker',
    'CancellableWorker',
    'CancelledException',
    'WorkerSignals',
    'WorkerState',
    # Diff
    'ComputationTier',
    'DiffRequest',
    'DiffResponse',
    'DiffWorker',
    # Dispatch
    'DiffDispatcher',
]
