"""
Ticketed diff dispatch with a time budget.

The exact engine runs on a dedicated worker thread. Each request is
identified by a ticket and answered once. If the worker fails, runs past
its budget, or the input is too large for the exact engine, the caller
gets the degraded positional comparison instead, with the same schema.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError
from threading import Lock
from typing import Optional, Sequence

from diffalyze.core.diff.fallback import positional_diff
from diffalyze.core.diff.normalizer import CompareOptions
from diffalyze.workers.base_worker import WorkerState
from diffalyze.workers.diff_worker import (
    ComputationTier,
    DiffRequest,
    DiffResponse,
    DiffWorker,
)


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_EXACT_LINES = 20000


class DiffDispatcher:
    """
    Runs diff requests on a single background thread.

    Usage:
        with DiffDispatcher(timeout=5.0) as dispatcher:
            response = dispatcher.run(original_lines, changed_lines, options)
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_exact_lines: int = DEFAULT_MAX_EXACT_LINES
    ):
        self.timeout = timeout
        self.max_exact_lines = max_exact_lines
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="diff-worker")
        self._lock = Lock()
        self._ticket_counter = 0
        self._workers: dict[str, DiffWorker] = {}

    def __enter__(self) -> 'DiffDispatcher':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.shutdown()

    @property
    def pending_tickets(self) -> list[str]:
        with self._lock:
            return list(self._workers)

    def next_ticket(self) -> str:
        """Allocate a new correlation ticket."""
        with self._lock:
            self._ticket_counter += 1
            return f"diff_{self._ticket_counter}"

    def submit(
        self,
        original_lines: Sequence[str],
        changed_lines: Sequence[str],
        options: Optional[CompareOptions] = None,
        detect_moves: bool = True
    ) -> tuple[str, Future]:
        """
        Queue a request for the exact engine.

        Returns:
            The request ticket and a future resolving to its DiffResponse
        """
        request = DiffRequest(
            self.next_ticket(),
            tuple(original_lines),
            tuple(changed_lines),
            options or CompareOptions(),
            detect_moves,
        )
        worker = DiffWorker(request)
        with self._lock:
            self._workers[request.ticket] = worker

        logger.debug("Submitting %s (%d lines)", request.ticket, request.line_count)
        return request.ticket, self._executor.submit(self._execute, worker)

    def cancel(self, ticket: str) -> bool:
        """Request cancellation of a pending ticket."""
        with self._lock:
            worker = self._workers.get(ticket)
        if worker is None:
            return False
        worker.cancel()
        return True

    def run(
        self,
        original_lines: Sequence[str],
        changed_lines: Sequence[str],
        options: Optional[CompareOptions] = None,
        detect_moves: bool = True
    ) -> DiffResponse:
        """
        Compute a diff, falling back to the positional comparison when the
        exact engine fails, times out, or the input is too large.
        """
        options = options or CompareOptions()

        if len(original_lines) + len(changed_lines) > self.max_exact_lines:
            ticket = self.next_ticket()
            logger.warning(
                "%s exceeds %d lines, using positional comparison",
                ticket, self.max_exact_lines,
            )
            return self._fallback(ticket, original_lines, changed_lines, options)

        ticket, future = self.submit(original_lines, changed_lines, options, detect_moves)
        try:
            response = future.result(timeout=self.timeout)
        except TimeoutError:
            self.cancel(ticket)
            logger.warning("%s timed out after %.1fs, using positional comparison",
                           ticket, self.timeout)
            return self._fallback(ticket, original_lines, changed_lines, options)

        if not response.success:
            logger.warning("%s failed (%s), using positional comparison",
                           ticket, response.error)
            return self._fallback(ticket, original_lines, changed_lines, options)

        return response

    def shutdown(self, wait: bool = False) -> None:
        """Cancel outstanding work and stop the worker thread."""
        with self._lock:
            workers = list(self._workers.values())
        for worker in workers:
            worker.cancel()
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def _execute(self, worker: DiffWorker) -> DiffResponse:
        """Run a worker on the pool thread and convert its outcome."""
        ticket = worker.ticket
        try:
            worker.run()
        finally:
            with self._lock:
                self._workers.pop(ticket, None)

        if worker.state is WorkerState.COMPLETED:
            logger.debug("%s finished in %.3fs", ticket, worker.elapsed)
            return worker.result
        if worker.state is WorkerState.CANCELLED:
            return DiffResponse(ticket, None, False, error="cancelled")

        error_type, message = worker.error or ("Error", "unknown failure")
        logger.error("%s failed: %s: %s", ticket, error_type, message)
        return DiffResponse(ticket, None, False, error=f"{error_type}: {message}")

    @staticmethod
    def _fallback(
        ticket: str,
        original_lines: Sequence[str],
        changed_lines: Sequence[str],
        options: CompareOptions
    ) -> DiffResponse:
        result = positional_diff(original_lines, changed_lines, options)
        return DiffResponse(ticket, result, True, ComputationTier.DEGRADED)
