"""
Data models for GitHub Projects iteration rollover
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, List, Union

from .constants import IssueStates


def day_start(day: date) -> datetime:
    """Midnight UTC at the beginning of a calendar day"""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


@dataclass
class Project:
    """Represents a GitHub project (v2)"""
    id: str
    title: str
    number: int
    owner: Optional[str] = None


@dataclass
class Iteration:
    """
    Represents one iteration window of a project's iteration field.

    The window is half-open: it starts at midnight UTC of start_date and
    ends, exclusively, at midnight UTC duration days later.
    """
    id: str
    title: str
    start_date: date
    duration: int
    field_id: Optional[str] = None
    field_name: Optional[str] = None

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=self.duration)

    @property
    def starts_at(self) -> datetime:
        return day_start(self.start_date)

    @property
    def ends_at(self) -> datetime:
        return day_start(self.end_date)

    def contains(self, now: datetime) -> bool:
        """True when now falls inside [start, end)"""
        return self.starts_at <= now < self.ends_at

    def has_ended(self, now: datetime) -> bool:
        return self.ends_at <= now

    def is_future(self, now: datetime) -> bool:
        return self.starts_at > now


@dataclass
class IterationField:
    """The project's iteration-type field with all of its iterations"""
    id: str
    name: str
    iterations: List[Iteration] = field(default_factory=list)


@dataclass
class IterationValue:
    """An item's assignment to an iteration"""
    field_id: str
    field_name: str
    iteration_id: str
    title: Optional[str] = None


@dataclass
class SingleSelectValue:
    """An item's single-select option, e.g. its Status"""
    field_id: str
    field_name: str
    name: str


FieldValue = Union[IterationValue, SingleSelectValue]


@dataclass
class ProjectItem:
    """A row on the project board linking an issue to the project"""
    id: str
    field_values: List[FieldValue] = field(default_factory=list)

    @property
    def single_select_values(self) -> List[SingleSelectValue]:
        return [v for v in self.field_values if isinstance(v, SingleSelectValue)]

    @property
    def iteration_values(self) -> List[IterationValue]:
        return [v for v in self.field_values if isinstance(v, IterationValue)]


@dataclass
class Issue:
    """Represents a GitHub issue tracked on the project"""
    id: str
    number: int
    title: str
    state: str
    repository: Optional[str] = None
    project_items: List[ProjectItem] = field(default_factory=list)

    @property
    def is_closed(self) -> bool:
        return (self.state or "").upper() == IssueStates.CLOSED


@dataclass
class IterationWindow:
    """Result of iteration resolution"""
    current: Iteration
    previous: Iteration
    field_id: Optional[str] = None


@dataclass
class MoveResult:
    """Outcome of moving one project item to the target iteration"""
    issue: Issue
    item_id: str
    success: bool
    error: Optional[Exception] = None


@dataclass
class RolloverSummary:
    """Represents a rollover summary with statistics"""
    total_incomplete: int
    selected: int
    moved: int
    failed: int
    dry_run: bool = False

    @property
    def skipped(self) -> int:
        return self.total_incomplete - self.selected
