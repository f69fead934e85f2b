"""
Comparison controller.

Holds everything one comparison needs: the immutable diff handed to the
display, the statistics captured for summaries, and the merge session that
mutates its own copy of the diff. Starting a new comparison or clearing
replaces all of it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from diffalyze.core.diff.blocks import compute_blocks
from diffalyze.core.diff.normalizer import CompareOptions
from diffalyze.core.diff.regex_guard import check_pattern
from diffalyze.core.merge.session import MergeSession
from diffalyze.core.models import (
    ChangeBlock,
    DiffResult,
    DiffStats,
    MergeStatus,
    Side,
    split_lines,
)
from diffalyze.services.settings import ApplicationSettings, LimitSettings
from diffalyze.workers.diff_worker import ComputationTier
from diffalyze.workers.dispatcher import DiffDispatcher


logger = logging.getLogger(__name__)


class ControllerState(Enum):
    """Lifecycle of the merge session."""
    IDLE = auto()    # No diff to merge
    ACTIVE = auto()  # Merge session available


class OutcomeStatus(Enum):
    """Result of a compare call."""
    COMPLETED = auto()  # Differences found, merge session started
    IDENTICAL = auto()  # No differences
    REJECTED = auto()   # Input failed validation
    FAILED = auto()     # No usable diff could be produced


@dataclass
class ComparisonOutcome:
    """Everything the caller needs to render one comparison."""
    status: OutcomeStatus
    display_diff: Optional[DiffResult] = None
    stats: DiffStats = field(default_factory=DiffStats)
    blocks: list[ChangeBlock] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    tier: Optional[ComputationTier] = None
    ticket: Optional[str] = None

    @property
    def has_changes(self) -> bool:
        return self.status is OutcomeStatus.COMPLETED


def validate_input(text: str, label: str, limits: LimitSettings) -> list[str]:
    """Check an input text against the configured size limits."""
    errors = []

    if len(text) > limits.max_file_size:
        errors.append(
            f"{label} is too large ({len(text) / 1024 / 1024:.1f}MB > "
            f"{limits.max_file_size / 1024 / 1024:.1f}MB limit)"
        )

    line_count = text.count("\n") + 1
    if line_count > limits.max_lines:
        errors.append(
            f"{label} has too many lines ({line_count} > {limits.max_lines} limit)"
        )

    return errors


class ComparisonController:
    """
    Explicit context for comparing two texts and merging the result.

    Usage:
        controller = ComparisonController(settings)
        outcome = controller.compare(original_text, changed_text)
        if outcome.has_changes:
            controller.accept_block(0, 2, Side.CHANGED)
    """

    def __init__(
        self,
        settings: Optional[ApplicationSettings] = None,
        dispatcher: Optional[DiffDispatcher] = None
    ):
        self.settings = settings or ApplicationSettings()
        limits = self.settings.limits
        self._owns_dispatcher = dispatcher is None
        self.dispatcher = dispatcher or DiffDispatcher(
            timeout=limits.worker_timeout,
            max_exact_lines=limits.max_exact_lines,
        )
        self._session: Optional[MergeSession] = None
        self._last_outcome: Optional[ComparisonOutcome] = None

    def __enter__(self) -> 'ComparisonController':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    @property
    def state(self) -> ControllerState:
        return ControllerState.ACTIVE if self._session else ControllerState.IDLE

    @property
    def session(self) -> Optional[MergeSession]:
        return self._session

    @property
    def last_outcome(self) -> Optional[ComparisonOutcome]:
        return self._last_outcome

    def compare(
        self,
        original_text: str,
        changed_text: str,
        options: Optional[CompareOptions] = None
    ) -> ComparisonOutcome:
        """
        Compare two texts and start a merge session if they differ.

        Args:
            original_text: Original text
            changed_text: Changed text
            options: Comparison options (defaults to the settings)

        Returns:
            ComparisonOutcome describing the result
        """
        self.clear()

        if not original_text and not changed_text:
            return self._finish(ComparisonOutcome(
                OutcomeStatus.REJECTED,
                errors=["Enter text in at least one of the inputs"],
            ))

        limits = self.settings.limits
        errors = (validate_input(original_text, "Original", limits)
                  + validate_input(changed_text, "Changed", limits))
        if errors:
            return self._finish(ComparisonOutcome(OutcomeStatus.REJECTED, errors=errors))

        options = options or self.settings.comparison.to_options()
        warnings: list[str] = []
        if options.has_pattern:
            check = check_pattern(options.regex, limits.regex_timeout, limits.regex_probe_budget)
            if not check.is_safe:
                warnings.append(check.warning)
                options = options.without_pattern()

        response = self.dispatcher.run(
            split_lines(original_text),
            split_lines(changed_text),
            options,
            self.settings.comparison.detect_moves,
        )
        if not response.success or response.result is None:
            logger.error("Comparison %s produced no result", response.ticket)
            return self._finish(ComparisonOutcome(
                OutcomeStatus.FAILED,
                warnings=warnings,
                errors=[response.error or "Diff calculation failed"],
                ticket=response.ticket,
            ))
        if response.is_degraded:
            warnings.append("Exact comparison unavailable, showing positional comparison")

        # The display keeps its own copy; stats are captured before blocks
        display_diff = response.result.copy()
        stats = DiffStats(**display_diff.stats.as_dict())

        if not stats.has_changes:
            return self._finish(ComparisonOutcome(
                OutcomeStatus.IDENTICAL,
                display_diff=display_diff,
                stats=stats,
                warnings=warnings,
                tier=response.tier,
                ticket=response.ticket,
            ))

        self._session = MergeSession(response.result, self.settings.merge.history_limit)
        logger.info("Comparison %s: %s", response.ticket, stats)
        return self._finish(ComparisonOutcome(
            OutcomeStatus.COMPLETED,
            display_diff=display_diff,
            stats=stats,
            blocks=compute_blocks(response.result),
            warnings=warnings,
            tier=response.tier,
            ticket=response.ticket,
        ))

    def accept_line(self, index: int, side: Side) -> Optional[MergeStatus]:
        if self._session is None:
            return None
        return self._session.accept_line(index, side)

    def accept_block(self, start_index: int, end_index: int, side: Side) -> Optional[MergeStatus]:
        if self._session is None:
            return None
        return self._session.accept_block(start_index, end_index, side)

    def accept_all(self, side: Side) -> Optional[MergeStatus]:
        if self._session is None:
            return None
        return self._session.accept_all(side)

    def undo(self) -> Optional[MergeStatus]:
        if self._session is None:
            return None
        return self._session.undo()

    def redo(self) -> Optional[MergeStatus]:
        if self._session is None:
            return None
        return self._session.redo()

    def clear(self) -> None:
        """Drop the current comparison and merge session."""
        self._session = None
        self._last_outcome = None

    def close(self) -> None:
        self.clear()
        if self._owns_dispatcher:
            self.dispatcher.shutdown()

    def _finish(self, outcome: ComparisonOutcome) -> ComparisonOutcome:
        for message in outcome.warnings:
            logger.warning(message)
        self._last_outcome = outcome
        return outcome
