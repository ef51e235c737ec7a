"""
Unit tests for rollover orchestration.

The project service is mocked; these tests check selection, the per-item
mutation loop, summary counts and stage tagging of failures.
"""
from unittest.mock import Mock

import pytest

from gh_projects.errors import (
    FetchError,
    MutationError,
    NoCurrentIterationError,
    ProjectNotFoundError,
    RolloverCancelled,
)
from gh_projects.models import IterationWindow, MoveResult, Project, ProjectItem
from gh_projects.rollover import apply_moves, run_rollover, select_issues, stage, summarize
from gh_projects.services.project_service import ProjectService
from gh_projects.ui import Prompter
from gh_projects.validation import ProjectRef

from conftest import make_issue, make_iteration


def scripted_prompter(*answers):
    """Prompter whose confirm_issue returns (or raises) the given answers in order"""
    prompter = Mock(spec=Prompter)
    prompter.confirm_issue.side_effect = list(answers)
    return prompter


class TestStage:
    """Test stage tagging."""

    def test_sets_stage(self):
        with pytest.raises(FetchError) as exc_info:
            with stage("failed to fetch issues"):
                raise FetchError(message="boom")
        assert exc_info.value.stage == "failed to fetch issues"
        assert exc_info.value.describe() == "failed to fetch issues: boom"

    def test_inner_stage_kept(self):
        with pytest.raises(FetchError) as exc_info:
            with stage("outer"):
                with stage("inner"):
                    raise FetchError(message="boom")
        assert exc_info.value.stage == "inner"

    def test_other_exceptions_untouched(self):
        with pytest.raises(KeyError):
            with stage("anything"):
                raise KeyError("x")


class TestSelectIssues:
    """Test issue selection."""

    def test_silent_selects_all(self):
        issues = [make_issue(1), make_issue(2)]
        prompter = scripted_prompter()

        assert select_issues(issues, silent=True, prompter=prompter) == issues
        prompter.confirm_issue.assert_not_called()

    def test_interactive_keeps_order(self):
        issues = [make_issue(1), make_issue(2), make_issue(3)]
        prompter = scripted_prompter(True, False, True)

        selected = select_issues(issues, prompter=prompter)

        assert [i.number for i in selected] == [1, 3]

    def test_quit_cancels(self):
        issues = [make_issue(1), make_issue(2), make_issue(3)]
        prompter = scripted_prompter(True, RolloverCancelled())

        with pytest.raises(RolloverCancelled):
            select_issues(issues, prompter=prompter)
        assert prompter.confirm_issue.call_count == 2


class TestApplyMoves:
    """Test the per-item mutation loop."""

    def setup_method(self):
        self.service = Mock(spec=ProjectService)

    def test_failure_does_not_stop_loop(self):
        """Test that a failure on item 2 of 3 still attempts item 3."""
        issues = [make_issue(1), make_issue(2), make_issue(3)]
        self.service.apply_move.side_effect = [
            "PVTI_1",
            MutationError(item_id="PVTI_2", original_error=FetchError(message="nope")),
            "PVTI_3",
        ]

        results = apply_moves(self.service, issues, "PVTIF_1", "current")

        assert self.service.apply_move.call_count == 3
        assert [c[0] for c in self.service.apply_move.call_args_list] == [
            ("PVTI_1", "PVTIF_1", "current"),
            ("PVTI_2", "PVTIF_1", "current"),
            ("PVTI_3", "PVTIF_1", "current"),
        ]
        assert [r.success for r in results] == [True, False, True]
        assert isinstance(results[1].error, MutationError)

        summary = summarize(3, 3, results)
        assert summary.moved == 2
        assert summary.failed == 1

    def test_every_project_item_moved(self):
        issue = make_issue(1)
        issue.project_items.append(ProjectItem(id="PVTI_1b"))
        self.service.apply_move.return_value = "ok"

        results = apply_moves(self.service, [issue], "PVTIF_1", "current")

        assert [r.item_id for r in results] == ["PVTI_1", "PVTI_1b"]

    def test_reports_progress(self):
        issues = [make_issue(1), make_issue(2)]
        self.service.apply_move.return_value = "ok"
        seen = []

        apply_moves(self.service, issues, "f", "c", on_result=lambda r, pos, total: seen.append((pos, total)))

        assert seen == [(1, 2), (2, 2)]

    def test_other_errors_propagate(self):
        self.service.apply_move.side_effect = RuntimeError("Project ID is not set")
        with pytest.raises(RuntimeError):
            apply_moves(self.service, [make_issue(1)], "f", "c")


class TestSummarize:
    """Test summary counts."""

    def test_counts(self):
        issue = make_issue(1)
        results = [
            MoveResult(issue=issue, item_id="a", success=True),
            MoveResult(issue=issue, item_id="b", success=False),
        ]
        summary = summarize(total_incomplete=5, selected=2, results=results)
        assert summary.moved == 1
        assert summary.failed == 1
        assert summary.skipped == 3
        assert not summary.dry_run

    def test_dry_run(self):
        summary = summarize(4, 4, [], dry_run=True)
        assert summary.dry_run
        assert summary.moved == 0


class TestRunRollover:
    """Test the full flow against a mocked service."""

    def setup_method(self):
        self.service = Mock(spec=ProjectService)
        self.service.find_project.return_value = Project(id="PVT_1", title="Board", number=7, owner="acme")
        self.service.get_iterations.return_value = IterationWindow(
            current=make_iteration("cur", "2024-01-15"),
            previous=make_iteration("prev", "2024-01-01"),
            field_id="PVTIF_iteration",
        )
        self.service.get_iteration_items.return_value = [
            make_issue(1, status="Todo"),
            make_issue(2, status="Done"),
            make_issue(3, state="CLOSED"),
            make_issue(4),
        ]
        self.service.apply_move.return_value = "ok"
        self.ref = ProjectRef(owner="acme", number=7)

    def test_silent_moves_incomplete(self):
        summary = run_rollover(self.service, self.ref, silent=True)

        self.service.find_project.assert_called_once_with("acme", 7)
        self.service.get_iteration_items.assert_called_once_with("prev")
        moved = [c[0][0] for c in self.service.apply_move.call_args_list]
        assert moved == ["PVTI_1", "PVTI_4"]
        assert all(c[0][1:] == ("PVTIF_iteration", "cur") for c in self.service.apply_move.call_args_list)
        assert summary.total_incomplete == 2
        assert summary.moved == 2

    def test_dry_run_never_mutates(self):
        summary = run_rollover(self.service, self.ref, dry_run=True, silent=True)

        self.service.apply_move.assert_not_called()
        assert summary.dry_run
        assert summary.selected == 2
        assert summary.moved == 0

    def test_interactive_selection(self):
        prompter = scripted_prompter(False, True)

        summary = run_rollover(self.service, self.ref, prompter=prompter)

        assert [c[0][0] for c in self.service.apply_move.call_args_list] == ["PVTI_4"]
        assert summary.selected == 1
        assert summary.skipped == 1

    def test_quit_before_any_mutation(self):
        prompter = scripted_prompter(RolloverCancelled())

        with pytest.raises(RolloverCancelled):
            run_rollover(self.service, self.ref, prompter=prompter)

        self.service.apply_move.assert_not_called()

    def test_nothing_incomplete(self):
        self.service.get_iteration_items.return_value = [make_issue(1, status="Done")]

        assert run_rollover(self.service, self.ref, silent=True) is None
        self.service.apply_move.assert_not_called()

    def test_lookup_failure_stage(self):
        self.service.find_project.side_effect = ProjectNotFoundError("acme", 7)

        with pytest.raises(ProjectNotFoundError) as exc_info:
            run_rollover(self.service, self.ref, silent=True)

        assert exc_info.value.stage == "failed to find project"
        self.service.get_iterations.assert_not_called()

    def test_resolution_failure_stage(self):
        self.service.get_iterations.side_effect = NoCurrentIterationError()

        with pytest.raises(NoCurrentIterationError) as exc_info:
            run_rollover(self.service, self.ref, silent=True)

        assert exc_info.value.describe().startswith("failed to get iterations: ")
        self.service.get_iteration_items.assert_not_called()
        self.service.apply_move.assert_not_called()

    def test_fetch_failure_stage(self):
        self.service.get_iteration_items.side_effect = FetchError(message="boom")

        with pytest.raises(FetchError) as exc_info:
            run_rollover(self.service, self.ref, silent=True)

        assert exc_info.value.stage == "failed to fetch issues"
        self.service.apply_move.assert_not_called()
