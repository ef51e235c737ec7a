"""
Iteration rollover orchestration.

Ties the pieces together: resolve iterations, fetch the previous
iteration's issues, keep the incomplete ones, let the user pick, then move
each picked item on its own. A failed move is reported and the run goes on;
earlier moves are never undone.
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Callable, List, Optional, Union

from . import ui
from .errors import GitHubProjectsError, MutationError
from .filters import filter_incomplete
from .models import Issue, MoveResult, RolloverSummary
from .services.project_service import ProjectService
from .validation import ProjectRef

logger = logging.getLogger(__name__)


@contextmanager
def stage(name: str):
    """Tag errors raised inside the block with the stage that failed"""
    try:
        yield
    except GitHubProjectsError as e:
        if e.stage is None:
            e.stage = name
        raise


def select_issues(
    issues: List[Issue],
    silent: bool = False,
    prompter: Optional[ui.Prompter] = None
) -> List[Issue]:
    """
    Pick the issues to move.

    Silent mode takes all of them; otherwise each one is confirmed.

    Raises:
        RolloverCancelled: If the user quits the review
    """
    if silent:
        return list(issues)

    prompter = prompter or ui.Prompter()
    return [issue for issue in issues if prompter.confirm_issue(issue)]


def apply_moves(
    service: ProjectService,
    issues: List[Issue],
    field_id: str,
    target_iteration_id: str,
    on_result: Optional[Callable[[MoveResult, int, int], None]] = None
) -> List[MoveResult]:
    """
    Move every project item of the given issues to the target iteration.

    Each item is attempted independently; a MutationError is recorded and
    the loop continues.

    Args:
        service: Project service used for the mutation
        issues: Issues to move
        field_id: Iteration field ID
        target_iteration_id: Iteration to move into
        on_result: Called with (result, position, total) after each attempt

    Returns:
        One MoveResult per project item, in order
    """
    results = []
    total = len(issues)

    for position, issue in enumerate(issues, start=1):
        for item in issue.project_items:
            try:
                service.apply_move(item.id, field_id, target_iteration_id)
                result = MoveResult(issue=issue, item_id=item.id, success=True)
            except MutationError as e:
                logger.error(f"Failed to move issue #{issue.number}: {e}")
                result = MoveResult(issue=issue, item_id=item.id, success=False, error=e)

            results.append(result)
            if on_result:
                on_result(result, position, total)

    return results


def summarize(
    total_incomplete: int,
    selected: int,
    results: List[MoveResult],
    dry_run: bool = False
) -> RolloverSummary:
    """Count successful and failed moves"""
    moved = sum(1 for r in results if r.success)
    return RolloverSummary(
        total_incomplete=total_incomplete,
        selected=selected,
        moved=moved,
        failed=len(results) - moved,
        dry_run=dry_run,
    )


def run_rollover(
    service: ProjectService,
    project_ref: ProjectRef,
    dry_run: bool = False,
    silent: bool = False,
    prompter: Optional[ui.Prompter] = None,
    now: Optional[Union[datetime, date]] = None
) -> Optional[RolloverSummary]:
    """
    Run a full rollover for one project.

    Returns:
        The summary, or None when the previous iteration has nothing left
        to move

    Raises:
        GitHubProjectsError: Any lookup, fetch or resolution failure, with
                             its stage set; raised before any mutation
        RolloverCancelled: If the user quits the review
    """
    with stage("failed to find project"):
        project = service.find_project(project_ref.owner, project_ref.number)
    ui.print_project(project)

    with stage("failed to get iterations"):
        window = service.get_iterations(now=now)
    ui.print_iteration_info(window)

    ui.print_status("\n🔍 Fetching issues from previous iteration...")
    with stage("failed to fetch issues"):
        issues = service.get_iteration_items(window.previous.id)

    incomplete = filter_incomplete(issues)
    logger.debug(f"{len(incomplete)} of {len(issues)} issues in {window.previous.title} are incomplete")
    if not incomplete:
        ui.print_status("\n✅ No incomplete issues found in the previous iteration!")
        return None

    ui.print_issue_list(incomplete, "📋 Incomplete issues found")

    if silent:
        ui.print_status(f"\n🤖 Silent mode: All {len(incomplete)} incomplete issues will be moved")
    else:
        ui.print_status("\n🤔 Please review each issue:")
    selected = select_issues(incomplete, silent=silent, prompter=prompter)

    results: List[MoveResult] = []
    if not dry_run and selected:
        ui.print_status("\n🔄 Moving issues to current iteration...")
        results = apply_moves(
            service,
            selected,
            window.field_id,
            window.current.id,
            on_result=ui.print_move_result,
        )

    summary = summarize(len(incomplete), len(selected), results, dry_run=dry_run)
    ui.show_summary(summary)
    return summary
