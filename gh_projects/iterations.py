"""
Iteration resolution.

Chooses the current and previous iteration of a project from the iteration
windows configured on its iteration field and the present moment.

Each iteration covers the half-open window [start, start + duration days),
both ends at midnight UTC. An iteration whose end equals now has ended: a
two-week iteration starting on day 0 is over on day 14, the day the next one
starts.
"""
import logging
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Union

from .errors import (
    InsufficientIterationsError,
    NoCurrentIterationError,
    NoIterationsConfiguredError,
    NoPreviousIterationError,
)
from .models import Iteration, IterationWindow, day_start

logger = logging.getLogger(__name__)

Instant = Union[datetime, date]


def as_instant(now: Optional[Instant] = None) -> datetime:
    """
    Normalize a reference time to an aware UTC datetime.

    Naive datetimes are taken to be UTC; plain dates mean midnight UTC.
    """
    if now is None:
        return datetime.now(timezone.utc)
    if isinstance(now, datetime):
        if now.tzinfo is None:
            return now.replace(tzinfo=timezone.utc)
        return now.astimezone(timezone.utc)
    return day_start(now)


def sort_iterations(iterations: Iterable[Iteration]) -> List[Iteration]:
    """Order by start date; iterations sharing a start date keep their input order"""
    return sorted(iterations, key=lambda it: it.start_date)


def find_first_future(iterations: Iterable[Iteration], now: datetime) -> Optional[Iteration]:
    """Earliest iteration starting strictly after now"""
    for iteration in sort_iterations(iterations):
        if iteration.is_future(now):
            return iteration
    return None


def resolve_iterations(
    iterations: Iterable[Iteration],
    now: Optional[Instant] = None,
    field_id: Optional[str] = None
) -> IterationWindow:
    """
    Pick the current and previous iteration.

    The current iteration is the one whose window contains now; its
    immediate predecessor by start date is the previous one. When no window
    contains now, the earliest future iteration becomes current and the most
    recently ended iteration becomes previous.

    Args:
        iterations: Iterations in any order
        now: Reference time, defaults to the current UTC time
        field_id: Iteration field ID, copied into the result

    Returns:
        IterationWindow with current and previous

    Raises:
        NoIterationsConfiguredError: If there are no iterations
        InsufficientIterationsError: If there is only one iteration
        NoCurrentIterationError: If every iteration has ended
        NoPreviousIterationError: If nothing precedes the current iteration
    """
    ordered = sort_iterations(iterations)
    now = as_instant(now)

    if not ordered:
        raise NoIterationsConfiguredError()
    if len(ordered) < 2:
        raise InsufficientIterationsError(count=len(ordered))

    logger.debug(f"Resolving {len(ordered)} iterations at {now.isoformat()}")

    current: Optional[Iteration] = None
    previous: Optional[Iteration] = None

    for index, iteration in enumerate(ordered):
        logger.debug(
            f"Checking iteration {iteration.title}: start={iteration.starts_at.isoformat()}, "
            f"end={iteration.ends_at.isoformat()}"
        )

        if iteration.contains(now):
            current = iteration
            previous = ordered[index - 1] if index > 0 else None
            logger.debug(f"Found current iteration: {current.title}")
            break

        if iteration.has_ended(now):
            previous = iteration
            logger.debug(f"Setting previous iteration: {previous.title}")
            continue

        # Starts after now. Input is sorted, so this is the earliest future one.
        current = iteration
        logger.debug(f"Found future iteration as current: {current.title}")
        break

    if current is None:
        current = find_first_future(ordered, now)

    if current is None:
        raise NoCurrentIterationError()

    if previous is None:
        raise NoPreviousIterationError(current_title=current.title)

    logger.debug(f"Selected current iteration: {current.title}")
    logger.debug(f"Selected previous iteration: {previous.title}")

    return IterationWindow(
        current=current,
        previous=previous,
        field_id=field_id if field_id is not None else current.field_id,
    )
