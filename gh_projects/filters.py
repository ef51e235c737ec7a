"""
Issue completion filtering.

An issue is complete when GitHub reports it closed or when any of its
project items has a Status (or State) single-select set to Done, Completed
or Closed. Everything else still needs work and is a rollover candidate.
"""
from typing import Iterable, List, Optional

from .constants import COMPLETED_STATUS_VALUES, NO_STATUS, STATUS_FIELD_NAMES
from .models import Issue, SingleSelectValue


def _status_values(issue: Issue) -> Iterable[SingleSelectValue]:
    for item in issue.project_items:
        for value in item.single_select_values:
            if (value.field_name or "").lower() in STATUS_FIELD_NAMES:
                yield value


def is_complete(issue: Issue) -> bool:
    """True when the issue is closed or its status says it is finished"""
    if issue.is_closed:
        return True
    return any(
        (value.name or "").lower() in COMPLETED_STATUS_VALUES
        for value in _status_values(issue)
    )


def filter_incomplete(issues: Iterable[Issue]) -> List[Issue]:
    """Incomplete issues, in their original order"""
    return [issue for issue in issues if not is_complete(issue)]


def status_of(issue: Issue, default: Optional[str] = NO_STATUS) -> Optional[str]:
    """Display text of the issue's first status value"""
    for value in _status_values(issue):
        return value.name
    return default
