"""
Command-line interface for gh-projects.

    gh-projects iteration rollover --project https://github.com/orgs/acme/projects/7

The version is passed in when the command tree is built rather than kept in
module state; main() reads it from the installed package metadata.
"""
import logging
from importlib.metadata import PackageNotFoundError, version as package_version
from typing import Optional

import click

from . import ui
from .auth import GitHubAuth
from .client import GraphQLClient
from .config import Settings, configure_logging
from .constants import EnvVars
from .errors import GitHubProjectsError, RolloverCancelled
from .log_sanitizer import sanitize_log_message
from .rollover import run_rollover, stage
from .services.project_service import ProjectService
from .validation import parse_project_url

logger = logging.getLogger(__name__)

DIST_NAME = "gh-projects"


def get_version() -> str:
    try:
        return package_version(DIST_NAME)
    except PackageNotFoundError:
        return "dev"


def _fail(error: GitHubProjectsError) -> None:
    raise click.ClickException(sanitize_log_message(error.describe()))


def build_rollover_command() -> click.Command:
    @click.command("rollover")
    @click.option("--project", "-p", "project_url", required=True, help="GitHub project URL")
    @click.option("--dry-run", is_flag=True, help="Preview changes without making them")
    @click.option("--silent", "-s", is_flag=True, help="Run in silent mode (no prompts)")
    @click.option(
        "--token", "-t",
        envvar=EnvVars.TOKEN,
        help="GitHub token for authentication (can also use GITHUB_TOKEN env var)",
    )
    @click.pass_obj
    def rollover(settings: Settings, project_url: str, dry_run: bool, silent: bool, token: Optional[str]):
        """Roll over incomplete issues from previous iteration.

        Reassigns incomplete issues from the previous iteration to the
        current iteration in GitHub Projects.
        """
        ui.print_banner()

        try:
            with stage("failed to parse project URL"):
                project_ref = parse_project_url(project_url)

            with stage("failed to initialize GitHub client"):
                auth = GitHubAuth(token=token or settings.token)
                auth.initialize()
            logger.debug(f"Authentication: {auth.get_auth_info()}")

            with GraphQLClient(auth, api_url=settings.api_url, timeout=settings.timeout) as client:
                run_rollover(
                    ProjectService(client),
                    project_ref,
                    dry_run=dry_run,
                    silent=silent,
                )
        except RolloverCancelled:
            ui.print_status("\n❌ Operation cancelled by user")
            return
        except GitHubProjectsError as e:
            logger.debug(f"Rollover aborted: {e.to_dict()}", exc_info=True)
            _fail(e)

    return rollover


def build_cli(version: str) -> click.Group:
    """
    Build the command tree.

    Args:
        version: Version string shown by --version
    """
    @click.group(help="A CLI tool for managing GitHub Projects.")
    @click.version_option(version=version, prog_name=DIST_NAME)
    @click.option("--verbose", "-v", is_flag=True, help="Log API calls and iteration resolution")
    @click.pass_context
    def cli(ctx: click.Context, verbose: bool):
        try:
            settings = Settings.from_env()
        except GitHubProjectsError as e:
            _fail(e)
        if verbose:
            settings.log_level = logging.DEBUG
        configure_logging(settings.log_level)
        ctx.obj = settings

    @cli.group()
    def iteration():
        """Manage project iterations."""

    iteration.add_command(build_rollover_command())
    return cli


def main() -> None:
    build_cli(get_version())(prog_name=DIST_NAME)


if __name__ == "__main__":
    main()
