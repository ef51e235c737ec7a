"""
Project service for GitHub Projects (v2) operations
Handles project lookup, iteration metadata, iteration items and item moves
"""
import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from ..client import GraphQLClient
from ..constants import (
    GET_ITERATION_ITEMS_QUERY,
    GET_PROJECT_FIELDS_QUERY,
    GET_PROJECT_QUERY,
    QueryLimits,
    UPDATE_ITEM_ITERATION_MUTATION,
)
from ..decorators import handle_github_error, log_execution, PerformanceMonitor
from ..errors import GitHubProjectsError, MutationError
from ..iterations import resolve_iterations
from ..log_sanitizer import sanitize_error
from ..models import Issue, IterationField, IterationWindow, Project, ProjectItem
from ..responses import (
    decode_items_page,
    decode_iteration_field,
    decode_project,
    decode_update_item,
)
from ..validation import validate_node_id

logger = logging.getLogger(__name__)


class ProjectService:
    """Service for reading and updating one GitHub project"""

    def __init__(self, client: GraphQLClient, project_id: Optional[str] = None):
        """
        Initialize project service

        Args:
            client: GraphQLClient bound to initialized credentials
            project_id: Project node ID; set later by find_project if unknown
        """
        self.client = client
        self.project_id = project_id
        self.project: Optional[Project] = None

    def _require_project_id(self) -> str:
        if not self.project_id:
            raise RuntimeError("Project ID is not set. Call find_project() first.")
        return self.project_id

    @log_execution(log_args=True)
    @handle_github_error("failed to look up project")
    def find_project(self, owner: str, number: int) -> Project:
        """
        Look up a project by owner login and number

        Args:
            owner: User or organization login
            number: Project number from the URL

        Returns:
            The project; its ID is remembered for later calls

        Raises:
            ProjectNotFoundError: If no user or organization owns it
        """
        data = self.client.execute(
            GET_PROJECT_QUERY,
            {"owner": owner, "number": number},
            allow_partial=True,
        )
        project = decode_project(data, owner, number)

        self.project = project
        self.project_id = project.id
        return project

    @log_execution()
    @handle_github_error("failed to fetch project fields")
    def get_iteration_field(self) -> IterationField:
        """
        Get the project's iteration field with all iterations, active and
        completed, ordered by start date

        Raises:
            NoIterationFieldError: If the project has no iteration field
            NoIterationsConfiguredError: If the field has no iterations
        """
        data = self.client.execute(
            GET_PROJECT_FIELDS_QUERY,
            {"projectId": self._require_project_id()},
        )
        iteration_field = decode_iteration_field(data)
        logger.debug(
            f"Iteration field '{iteration_field.name}' has "
            f"{len(iteration_field.iterations)} usable iterations"
        )
        return iteration_field

    def get_iterations(self, now: Optional[Union[datetime, date]] = None) -> IterationWindow:
        """
        Resolve the current and previous iteration

        Args:
            now: Reference time, defaults to the current UTC time

        Raises:
            IterationResolutionError: If current or previous cannot be chosen
        """
        iteration_field = self.get_iteration_field()
        return resolve_iterations(
            iteration_field.iterations,
            now=now,
            field_id=iteration_field.id,
        )

    @log_execution(log_args=True)
    @handle_github_error("failed to fetch iteration items")
    def get_iteration_items(self, iteration_id: str) -> List[Issue]:
        """
        Get issues whose project item is assigned to an iteration

        Walks every page of project items; items that are not issues
        (pull requests, draft issues) are skipped.

        Args:
            iteration_id: Iteration to match

        Returns:
            Matching issues in board order, each once, with their project
            item and field values attached
        """
        project_id = self._require_project_id()

        issues: Dict[str, Issue] = {}
        cursor: Optional[str] = None
        has_next_page = True
        pages = 0

        with PerformanceMonitor(
            operation_name="get_iteration_items",
            warn_threshold_ms=QueryLimits.SLOW_PAGINATION_MS
        ):
            while has_next_page:
                data = self.client.execute(
                    GET_ITERATION_ITEMS_QUERY,
                    {"projectId": project_id, "after": cursor},
                )
                page = decode_items_page(data)
                pages += 1

                for item in page.items:
                    if item.issue is None or not item.is_in_iteration(iteration_id):
                        continue

                    project_item = ProjectItem(id=item.id, field_values=item.field_values)
                    existing = issues.get(item.issue.id)
                    if existing is None:
                        item.issue.project_items.append(project_item)
                        issues[item.issue.id] = item.issue
                    elif all(p.id != item.id for p in existing.project_items):
                        existing.project_items.append(project_item)

                has_next_page = page.has_next_page
                if has_next_page and not page.end_cursor:
                    logger.warning("API reported another page without a cursor; stopping pagination")
                    break
                if has_next_page and page.end_cursor == cursor:
                    logger.warning(f"API returned cursor {cursor} again; stopping pagination")
                    break
                cursor = page.end_cursor

        logger.debug(f"Fetched {pages} page(s), {len(issues)} issue(s) in iteration {iteration_id}")
        return list(issues.values())

    @log_execution(log_args=True)
    def update_item_iteration(self, item_id: str, field_id: str, iteration_id: str) -> str:
        """
        Move one project item to an iteration

        Args:
            item_id: Project item node ID
            field_id: Iteration field node ID
            iteration_id: Target iteration ID

        Returns:
            ID of the updated item

        Raises:
            MutationError: If the update fails for any reason
        """
        try:
            validate_node_id(item_id, "item_id")
            validate_node_id(field_id, "field_id")
            validate_node_id(iteration_id, "iteration_id")

            data = self.client.execute(
                UPDATE_ITEM_ITERATION_MUTATION,
                {
                    "projectId": self._require_project_id(),
                    "itemId": item_id,
                    "fieldId": field_id,
                    "iterationId": iteration_id,
                },
            )
            return decode_update_item(data)
        except GitHubProjectsError as e:
            logger.error(f"Failed to move item {item_id}: {sanitize_error(e)}")
            raise MutationError(item_id=item_id, original_error=e)

    # The mutation applier's single-item operation
    apply_move = update_item_iteration
