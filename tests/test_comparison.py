"""
Tests for diffalyze.services.comparison - the controller tying validation,
dispatch and the merge session together.
"""

from __future__ import annotations

import pytest

from diffalyze.core.diff.normalizer import CompareOptions
from diffalyze.core.models import ChangeBlock, EntryType, Side
from diffalyze.services.comparison import (
    ComparisonController,
    ControllerState,
    OutcomeStatus,
    validate_input,
)
from diffalyze.services.settings import ApplicationSettings, LimitSettings
from diffalyze.workers.diff_worker import ComputationTier
from diffalyze.workers.dispatcher import DiffDispatcher


@pytest.fixture
def controller():
    with ComparisonController() as controller:
        yield controller


def test_validate_input():
    limits = LimitSettings(max_file_size=10, max_lines=2)
    assert validate_input("a\nb", "Original", limits) == []
    errors = validate_input("a\nb\nc\nd\ne\nf", "Changed", limits)
    assert len(errors) == 2
    assert errors[0].startswith("Changed is too large")
    assert "too many lines (6 > 2 limit)" in errors[1]


class TestCompare:
    """Tests for ComparisonController.compare"""

    def test_differences_start_a_session(self, controller):
        outcome = controller.compare("a\nb\nc", "a\nB\nc")
        assert outcome.status is OutcomeStatus.COMPLETED
        assert outcome.has_changes
        assert outcome.tier is ComputationTier.EXACT
        assert outcome.ticket == "diff_1"
        assert outcome.stats.modified == 1
        assert outcome.blocks == [ChangeBlock(1, 1)]
        assert controller.state is ControllerState.ACTIVE
        assert controller.last_outcome is outcome

    def test_identical_texts(self, controller):
        outcome = controller.compare("same\ntext", "same\ntext")
        assert outcome.status is OutcomeStatus.IDENTICAL
        assert outcome.stats.unchanged == 2
        assert controller.state is ControllerState.IDLE

    def test_both_empty_is_rejected(self, controller):
        outcome = controller.compare("", "")
        assert outcome.status is OutcomeStatus.REJECTED
        assert outcome.errors

    def test_one_empty_side_is_compared(self, controller):
        outcome = controller.compare("", "new")
        assert outcome.status is OutcomeStatus.COMPLETED
        assert outcome.stats.modified == 1

    def test_limits_reject_input(self):
        settings = ApplicationSettings()
        settings.limits.max_lines = 2
        with ComparisonController(settings) as controller:
            outcome = controller.compare("a\nb\nc", "a")
        assert outcome.status is OutcomeStatus.REJECTED
        assert "Original has too many lines" in outcome.errors[0]

    def test_options_override_settings(self, controller):
        outcome = controller.compare("Hello World", "hello   world", CompareOptions(ignore_spaces_case=True))
        assert outcome.status is OutcomeStatus.IDENTICAL

    def test_invalid_pattern_becomes_warning(self, controller):
        outcome = controller.compare("x=1 // c", "x=1", CompareOptions(regex="("))
        assert outcome.status is OutcomeStatus.COMPLETED
        assert len(outcome.warnings) == 1
        assert "does not compile" in outcome.warnings[0]

    def test_safe_pattern_is_applied(self, controller):
        outcome = controller.compare("x=1 // c", "x=1", CompareOptions(regex="//.*"))
        assert outcome.status is OutcomeStatus.IDENTICAL
        assert outcome.warnings == []

    def test_degraded_tier_is_reported(self):
        settings = ApplicationSettings()
        settings.limits.max_exact_lines = 1
        with ComparisonController(settings) as controller:
            outcome = controller.compare("a\nb", "a\nc")
        assert outcome.tier is ComputationTier.DEGRADED
        assert any("positional" in warning for warning in outcome.warnings)
        assert outcome.stats.modified == 1

    def test_new_comparison_replaces_session(self, controller):
        controller.compare("a", "b")
        first = controller.session
        controller.compare("c", "d")
        assert controller.session is not first


class TestMergeThroughController:
    """Merge operations routed through the controller"""

    def test_idle_operations_return_none(self, controller):
        assert controller.accept_line(0, Side.CHANGED) is None
        assert controller.accept_block(0, 1, Side.CHANGED) is None
        assert controller.accept_all(Side.CHANGED) is None
        assert controller.undo() is None
        assert controller.redo() is None

    def test_display_diff_is_not_mutated_by_merging(self, controller):
        outcome = controller.compare("a\nb\nc", "a\nB\nc")
        status = controller.accept_line(1, Side.CHANGED)

        assert status.merged_text == "a\nB\nc"
        assert outcome.display_diff.original[1].entry_type is EntryType.MODIFIED
        assert outcome.display_diff.original[1].content == "b"
        assert outcome.stats.modified == 1

    def test_accept_undo_redo(self, controller):
        controller.compare("1\n2\n3\n4", "1\ntwo\n3\nfour")
        assert controller.accept_block(1, 3, Side.CHANGED).merged_text == "1\ntwo\n3\nfour"
        assert controller.undo().merged_text == "1\n2\n3\n4"
        assert controller.redo().can_undo

    def test_clear(self, controller):
        controller.compare("a", "b")
        controller.clear()
        assert controller.state is ControllerState.IDLE
        assert controller.last_outcome is None


def test_shared_dispatcher_is_not_closed():
    dispatcher = DiffDispatcher()
    with ComparisonController(dispatcher=dispatcher) as controller:
        controller.compare("a", "b")
    # Still usable after the controller is closed
    response = dispatcher.run(["a"], ["a"])
    assert response.success
    dispatcher.shutdown()
