"""
Worker for line diff computation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from PyQt6.QtCore import QObject

from diffalyze.core.diff.normalizer import CompareOptions
from diffalyze.core.diff.text_diff import TextDiffEngine
from diffalyze.core.models import DiffResult
from diffalyze.workers.base_worker import CancellableWorker


class ComputationTier(Enum):
    """Which implementation produced a diff."""
    EXACT = auto()     # Myers edit script with move detection
    DEGRADED = auto()  # Positional comparison


@dataclass(frozen=True)
class DiffRequest:
    """One diff job, identified by its ticket."""
    ticket: str
    original_lines: tuple[str, ...]
    changed_lines: tuple[str, ...]
    options: CompareOptions = field(default_factory=CompareOptions)
    detect_moves: bool = True

    @property
    def line_count(self) -> int:
        return len(self.original_lines) + len(self.changed_lines)


@dataclass
class DiffResponse:
    """Answer to a DiffRequest."""
    ticket: str
    result: Optional[DiffResult]
    success: bool
    tier: ComputationTier = ComputationTier.EXACT
    error: str = ""

    @property
    def is_degraded(self) -> bool:
        return self.tier is ComputationTier.DEGRADED


class DiffWorker(CancellableWorker):
    """
    Worker for comparing two line sequences.

    Runs the exact diff engine; cancellation is polled between
    edit distance rounds.
    """

    def __init__(
        self,
        request: DiffRequest,
        check_interval: int = 16,
        parent: Optional[QObject] = None
    ):
        super().__init__(request.ticket, check_interval=check_interval, parent=parent)
        self.request = request

    def do_work(self) -> DiffResponse:
        """Perform the comparison."""
        self.check_cancelled()
        self.report_status(f"Comparing {self.request.line_count} lines")

        engine = TextDiffEngine(
            self.request.options,
            detect_moves=self.request.detect_moves,
            cancel_check=self.maybe_check_cancelled,
        )
        result = engine.compute(self.request.original_lines, self.request.changed_lines)

        self.report_status("Complete")
        return DiffResponse(self.request.ticket, result, True, ComputationTier.EXACT)
