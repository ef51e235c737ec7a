"""
Typed decoding of GitHub GraphQL responses.

Each GraphQL operation used by the tool has one decoder here. Responses are
checked once at this boundary and turned into the records in models.py;
anything that does not match the expected shape raises FetchError, so the
rest of the code never inspects raw dictionaries.
"""
import logging
from dataclasses import dataclass, field
import re
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from .constants import FieldDataTypes, TypeNames
from .errors import (
    FetchError,
    NoIterationFieldError,
    NoIterationsConfiguredError,
    ProjectNotFoundError,
)
from .models import (
    FieldValue,
    Issue,
    Iteration,
    IterationField,
    IterationValue,
    Project,
    SingleSelectValue,
)

logger = logging.getLogger(__name__)


@dataclass
class PageItem:
    """One node of a project items page"""
    id: str
    issue: Optional[Issue]
    field_values: List[FieldValue] = field(default_factory=list)

    def is_in_iteration(self, iteration_id: str) -> bool:
        return any(
            isinstance(value, IterationValue) and value.iteration_id == iteration_id
            for value in self.field_values
        )


@dataclass
class ItemsPage:
    """One page of project items with its cursor"""
    items: List[PageItem]
    has_next_page: bool
    end_cursor: Optional[str] = None


# ============================================================================
# Shape helpers
# ============================================================================

def _get_object(data: Any, key: str, context: str) -> Dict[str, Any]:
    value = data.get(key) if isinstance(data, dict) else None
    if not isinstance(value, dict):
        raise FetchError(message=f"invalid {context} response structure: missing '{key}'")
    return value


def _get_list(data: Any, key: str, context: str) -> List[Any]:
    value = data.get(key) if isinstance(data, dict) else None
    if not isinstance(value, list):
        raise FetchError(message=f"invalid {context} response structure: missing '{key}' list")
    return value


def _get_str(data: Dict[str, Any], key: str, context: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise FetchError(message=f"invalid {context} response structure: missing '{key}'")
    return value


# ============================================================================
# GET_PROJECT_QUERY
# ============================================================================

def decode_project(data: Dict[str, Any], owner: str, number: int) -> Project:
    """
    Decode the project lookup, which asks for the number under both the user
    and the organization with that login.

    A user project wins over an organization project.

    Raises:
        ProjectNotFoundError: If neither owner type has the project
    """
    for owner_type in ("user", "organization"):
        owner_data = data.get(owner_type)
        if not isinstance(owner_data, dict):
            continue
        project = owner_data.get("projectV2")
        if not isinstance(project, dict) or not project.get("id"):
            continue

        logger.debug(f"Found project {owner}/{number} as {owner_type} project")
        return Project(
            id=project["id"],
            title=project.get("title") or "",
            number=int(project.get("number") or number),
            owner=owner,
        )

    raise ProjectNotFoundError(owner=owner, number=number)


# ============================================================================
# GET_PROJECT_FIELDS_QUERY
# ============================================================================

START_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def _parse_start_date(value: Any, title: str) -> date:
    """Parse a YYYY-MM-DD start date; other ISO 8601 forms are rejected"""
    if not isinstance(value, str) or not START_DATE_PATTERN.match(value):
        raise ValueError(f"iteration {title} has invalid start date: {value!r}")
    return datetime.strptime(value, "%Y-%m-%d").date()


def decode_iteration(node: Dict[str, Any], field_id: str, field_name: str) -> Iteration:
    """
    Decode one iteration configuration entry.

    Raises:
        ValueError: If the start date is not YYYY-MM-DD, the duration is not
                    a non-negative integer, or id/title are missing
    """
    if not isinstance(node, dict):
        raise ValueError(f"iteration entry is not an object: {node!r}")

    iteration_id = node.get("id")
    title = node.get("title")
    if not isinstance(iteration_id, str) or not iteration_id:
        raise ValueError("iteration has no id")
    if not isinstance(title, str):
        raise ValueError(f"iteration {iteration_id} has no title")

    start_date = _parse_start_date(node.get("startDate"), title)

    duration = node.get("duration")
    if isinstance(duration, bool) or not isinstance(duration, (int, float)) or (
        isinstance(duration, float) and not duration.is_integer()
    ):
        raise ValueError(f"iteration {title} has invalid duration: {duration!r}")
    if duration < 0:
        raise ValueError(f"iteration {title} has negative duration: {duration}")

    try:
        start_date + timedelta(days=int(duration))
    except OverflowError:
        raise ValueError(f"iteration {title} ends after the last representable date")

    return Iteration(
        id=iteration_id,
        title=title,
        start_date=start_date,
        duration=int(duration),
        field_id=field_id,
        field_name=field_name,
    )


def decode_iteration_field(data: Dict[str, Any]) -> IterationField:
    """
    Decode the project's fields and return its iteration field.

    Active and completed iterations are merged into one list ordered by start
    date. Entries that cannot be decoded are skipped with a warning.

    Raises:
        NoIterationFieldError: If no field has dataType ITERATION
        NoIterationsConfiguredError: If the field has no iterations at all
        FetchError: If the response does not have the expected shape
    """
    node = _get_object(data, "node", "project")
    fields = _get_list(_get_object(node, "fields", "project"), "nodes", "project fields")

    iteration_field = next(
        (
            f for f in fields
            if isinstance(f, dict) and f.get("dataType") == FieldDataTypes.ITERATION
        ),
        None,
    )
    if iteration_field is None:
        raise NoIterationFieldError()

    field_id = _get_str(iteration_field, "id", "iteration field")
    field_name = iteration_field.get("name") or ""

    configuration = iteration_field.get("configuration")
    if not isinstance(configuration, dict):
        raise NoIterationsConfiguredError("Iteration field has no configuration")

    active = configuration.get("iterations") or []
    completed = configuration.get("completedIterations") or []
    raw_iterations = list(completed) + list(active)

    logger.debug(f"Found {len(active)} active iterations from API")
    logger.debug(f"Found {len(completed)} completed iterations from API")

    if not raw_iterations:
        raise NoIterationsConfiguredError()

    iterations = []
    for raw in raw_iterations:
        try:
            iteration = decode_iteration(raw, field_id, field_name)
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping iteration that could not be decoded: {e}")
            continue
        logger.debug(
            f"Iteration {iteration.title}: {iteration.start_date.isoformat()} "
            f"to {iteration.end_date.isoformat()}"
        )
        iterations.append(iteration)

    iterations.sort(key=lambda it: it.start_date)

    return IterationField(id=field_id, name=field_name, iterations=iterations)


# ============================================================================
# GET_ITERATION_ITEMS_QUERY
# ============================================================================

def decode_issue(content: Any) -> Optional[Issue]:
    """
    Decode item content as an issue.

    Returns None for content that is not an issue: pull requests and draft
    issues come back without the fields requested on the Issue fragment.
    """
    if not isinstance(content, dict):
        return None

    issue_id = content.get("id")
    number = content.get("number")
    if not isinstance(issue_id, str) or isinstance(number, bool) or not isinstance(number, (int, float)):
        return None

    repository = None
    repo = content.get("repository")
    if isinstance(repo, dict) and repo.get("name"):
        repo_owner = repo.get("owner") or {}
        login = repo_owner.get("login") if isinstance(repo_owner, dict) else None
        repository = f"{login}/{repo['name']}" if login else repo["name"]

    return Issue(
        id=issue_id,
        number=int(number),
        title=content.get("title") or "",
        state=content.get("state") or "",
        repository=repository,
    )


def decode_field_value(node: Any) -> Optional[FieldValue]:
    """Decode a field value node; unsupported field types yield None"""
    if not isinstance(node, dict):
        return None

    typename = node.get("__typename")
    field_info = node.get("field") if isinstance(node.get("field"), dict) else {}

    if typename == TypeNames.ITERATION_VALUE:
        iteration_id = node.get("iterationId")
        if not isinstance(iteration_id, str):
            logger.debug("No iterationId found in field value")
            return None
        return IterationValue(
            field_id=field_info.get("id") or "",
            field_name=field_info.get("name") or "",
            iteration_id=iteration_id,
            title=node.get("title"),
        )

    if typename == TypeNames.SINGLE_SELECT_VALUE:
        name = node.get("name")
        if not isinstance(name, str):
            return None
        return SingleSelectValue(
            field_id=field_info.get("id") or "",
            field_name=field_info.get("name") or "",
            name=name,
        )

    return None


def decode_items_page(data: Dict[str, Any]) -> ItemsPage:
    """
    Decode one page of project items.

    Raises:
        FetchError: If the page or its pageInfo is missing
    """
    node = _get_object(data, "node", "project items")
    items = _get_object(node, "items", "project items")
    page_info = _get_object(items, "pageInfo", "project items")
    nodes = _get_list(items, "nodes", "project items")

    page_items = []
    for item in nodes:
        if not isinstance(item, dict) or not isinstance(item.get("id"), str):
            logger.debug("Skipping project item without an id")
            continue

        content = item.get("content")
        if content is None:
            logger.debug(f"Item {item['id']} has no content")

        values_container = item.get("fieldValues")
        raw_values = values_container.get("nodes") if isinstance(values_container, dict) else None

        field_values = []
        for raw_value in raw_values or []:
            value = decode_field_value(raw_value)
            if value is not None:
                field_values.append(value)

        page_items.append(PageItem(
            id=item["id"],
            issue=decode_issue(content),
            field_values=field_values,
        ))

    end_cursor = page_info.get("endCursor")
    return ItemsPage(
        items=page_items,
        has_next_page=bool(page_info.get("hasNextPage")),
        end_cursor=end_cursor if isinstance(end_cursor, str) else None,
    )


def decode_update_item(data: Dict[str, Any]) -> str:
    """Decode the iteration update mutation and return the updated item's id"""
    payload = _get_object(data, "updateProjectV2ItemFieldValue", "update item")
    item = _get_object(payload, "projectV2Item", "update item")
    return _get_str(item, "id", "update item")
