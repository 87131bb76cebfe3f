"""
Admission policies used by the slot search.

A policy is a plain value bundling three things the search loop needs:
which start offsets are legal, when a candidate slot is admissible, and how
the winning event's invitee list is adjusted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Callable, Iterator, List, Sequence, Tuple

from .models import MINUTES_PER_DAY, MINUTES_PER_WEEK, DAYS_PER_WEEK, Event, Weekday


class PolicyKind(str, Enum):
    """The closed set of scheduling policies."""

    UNRESTRICTED = "unrestricted"
    WORK_HOURS = "work-hours"
    LENIENT_QUORUM = "lenient"


@dataclass(frozen=True)
class WorkingHours:
    """
    Daily working window and the canonical weekdays that are never worked.

    ``exclude_weekdays`` uses canonical numbering (0=Monday, 6=Sunday) and is
    not rotated by the first day of the week.
    """
    start_time: time = time(9, 0)
    end_time: time = time(17, 0)
    exclude_weekdays: Tuple[int, ...] = (Weekday.SATURDAY, Weekday.SUNDAY)

    def __post_init__(self):
        if self.start_minute >= self.end_minute:
            raise ValueError(
                f"Working hours must start before they end, got {self.start_time}-{self.end_time}"
            )
        object.__setattr__(
            self,
            "exclude_weekdays",
            tuple(Weekday.parse(day) for day in self.exclude_weekdays),
        )

    @property
    def start_minute(self) -> int:
        return self.start_time.hour * 60 + self.start_time.minute

    @property
    def end_minute(self) -> int:
        return self.end_time.hour * 60 + self.end_time.minute

    @property
    def length_minutes(self) -> int:
        return self.end_minute - self.start_minute

    def is_working_day(self, day: Weekday) -> bool:
        """Check if a canonical weekday is a working day."""
        return Weekday.parse(day) not in self.exclude_weekdays

    def candidate_offsets(self, duration: int, anchor: Weekday) -> Iterator[int]:
        """
        Yield legal start offsets (minutes since the anchor's midnight).

        Walks the 7 days starting at ``anchor``, skips excluded days, and on
        each working day yields every start that still ends by ``end_time``.
        """
        for day_index in range(DAYS_PER_WEEK):
            if not self.is_working_day(anchor.shifted(day_index)):
                continue
            day_base = day_index * MINUTES_PER_DAY
            last_start = self.end_minute - duration
            for minute in range(self.start_minute, last_start + 1):
                yield day_base + minute


DEFAULT_WORKING_HOURS = WorkingHours()


def _whole_week(duration: int, anchor: Weekday) -> Iterator[int]:
    return iter(range(MINUTES_PER_WEEK))


def _everyone_free(host: str, free_owners: Sequence[str], total: int) -> bool:
    return len(free_owners) == total


def _host_and_one_more(host: str, free_owners: Sequence[str], total: int) -> bool:
    return host in free_owners and len(free_owners) > 1


def _keep_invitees(event: Event, free_owners: Sequence[str]) -> Tuple[str, ...]:
    return event.invitees


def _free_invitees_only(event: Event, free_owners: Sequence[str]) -> Tuple[str, ...]:
    # Event normalisation puts the host first
    return tuple(free_owners)


@dataclass(frozen=True)
class SchedulingPolicy:
    """
    Strategy value driving one slot search.

    Attributes:
        kind: Which variant this is
        max_duration_minutes: Longest duration the variant accepts
        candidate_offsets: ``(duration, anchor) -> offsets`` in increasing order
        admits: ``(host, free_owners, total_schedules) -> bool``
        adjust_invitees: ``(draft, free_owners) -> invitees`` of the final event
    """
    kind: PolicyKind
    max_duration_minutes: int
    candidate_offsets: Callable[[int, Weekday], Iterator[int]] = field(compare=False)
    admits: Callable[[str, Sequence[str], int], bool] = field(compare=False)
    adjust_invitees: Callable[[Event, Sequence[str]], Tuple[str, ...]] = field(compare=False)
    working_hours: WorkingHours | None = None

    def __str__(self) -> str:
        return self.kind.value


def policy_for(kind: PolicyKind | str, working_hours: WorkingHours | None = None) -> SchedulingPolicy:
    """
    Build a scheduling policy.

    Args:
        kind: Policy kind or its string value ("unrestricted", "work-hours", "lenient")
        working_hours: Working window for the work-hour variants

    Raises:
        ValueError: If the kind is unknown
    """
    kind = PolicyKind(kind)
    hours = working_hours or DEFAULT_WORKING_HOURS

    if kind is PolicyKind.UNRESTRICTED:
        return SchedulingPolicy(
            kind=kind,
            max_duration_minutes=MINUTES_PER_WEEK - 1,
            candidate_offsets=_whole_week,
            admits=_everyone_free,
            adjust_invitees=_keep_invitees,
        )

    if kind is PolicyKind.WORK_HOURS:
        return SchedulingPolicy(
            kind=kind,
            max_duration_minutes=hours.length_minutes,
            candidate_offsets=hours.candidate_offsets,
            admits=_everyone_free,
            adjust_invitees=_keep_invitees,
            working_hours=hours,
        )

    return SchedulingPolicy(
        kind=kind,
        max_duration_minutes=hours.length_minutes,
        candidate_offsets=hours.candidate_offsets,
        admits=_host_and_one_more,
        adjust_invitees=_free_invitees_only,
        working_hours=hours,
    )


UNRESTRICTED = policy_for(PolicyKind.UNRESTRICTED)


def available_policies() -> List[str]:
    return [kind.value for kind in PolicyKind]
