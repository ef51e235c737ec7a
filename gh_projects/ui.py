"""
Terminal output and interactive review for the rollover command
"""
from typing import List

import click

from .errors import RolloverCancelled
from .filters import status_of
from .models import Issue, IterationWindow, MoveResult, Project, RolloverSummary

RULE_WIDTH = 50


def print_banner() -> None:
    click.echo("🚀 GitHub Projects - Iteration Rollover")
    click.echo("=" * 38)


def print_status(message: str) -> None:
    click.echo(message)


def print_project(project: Project) -> None:
    title = f" ({project.title})" if project.title else ""
    click.echo(f"📂 Project: {project.owner}/{project.number}{title}")


def print_iteration_info(window: IterationWindow) -> None:
    click.echo("\n🔄 Iteration Information")
    click.echo("=" * RULE_WIDTH)
    click.echo(f"Previous iteration: {window.previous.title}")
    click.echo(f"Current iteration: {window.current.title}")
    click.echo(f"Iteration field: {window.current.field_name}")


def print_issue_list(issues: List[Issue], title: str) -> None:
    click.echo(f"\n{title} ({len(issues)} issues):")
    click.echo("-" * RULE_WIDTH)
    for issue in issues:
        click.echo(f"• #{issue.number}: {issue.title} [{status_of(issue)}]")


def print_move_result(result: MoveResult, position: int, total: int) -> None:
    if result.success:
        click.echo(f"✅ Moved issue #{result.issue.number} ({position}/{total})")
    else:
        click.echo(f"❌ Failed to move issue #{result.issue.number}: {result.error}")


def show_summary(summary: RolloverSummary) -> None:
    click.echo("\n" + "=" * RULE_WIDTH)
    click.echo("📊 Summary")
    click.echo("=" * RULE_WIDTH)
    click.echo(f"Total incomplete issues found: {summary.total_incomplete}")

    if summary.dry_run:
        click.echo(f"Issues that would be moved: {summary.selected}")
        click.echo("\n🔍 This was a dry run. No changes were made.")
        return

    click.echo(f"Issues moved to current iteration: {summary.moved}")
    click.echo(f"Issues skipped: {summary.skipped}")
    if summary.failed:
        click.echo(f"Moves failed: {summary.failed}")


class Prompter:
    """Asks, issue by issue, whether to move it"""

    def confirm_issue(self, issue: Issue) -> bool:
        """
        Show an issue and read the answer.

        'y' selects the issue, 'q' cancels the whole run, anything else
        skips it.

        Raises:
            RolloverCancelled: On 'q', end of input or Ctrl-C
        """
        click.echo(f"\n📋 Issue #{issue.number}: {issue.title}")
        click.echo(f"   Status: {status_of(issue)}")
        click.echo(f"   State: {issue.state}")

        try:
            response = click.prompt(
                "   Move to current iteration? (y/n/q)",
                default="",
                show_default=False,
                prompt_suffix=" ",
            )
        except click.Abort:
            raise RolloverCancelled()

        response = response.strip().lower()
        if response in ("y", "yes"):
            return True
        if response in ("q", "quit"):
            raise RolloverCancelled()
        return False
