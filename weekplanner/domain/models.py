"""
Domain models for cyclic weekly time intervals and calendar events.

All times are naive wall-clock values inside a repeating 7-day week. Day
arithmetic is always done relative to an explicit first-day-of-week
``anchor``; nothing here keeps the anchor as shared state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Iterable, Optional, Tuple

from pendulum import DateTime

from .exceptions import (
    DegenerateDuration,
    InvalidDuration,
    InvalidEventSpec,
    InvalidTimeSpec,
)

MINUTES_PER_DAY = 24 * 60
DAYS_PER_WEEK = 7
MINUTES_PER_WEEK = DAYS_PER_WEEK * MINUTES_PER_DAY


class Weekday(IntEnum):
    """Days of the week, numbered like ``pendulum.WeekDay`` (Monday=0)."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def parse(cls, value) -> "Weekday":
        """
        Parse a weekday from a full English name (any case) or a number 0-6.

        Raises:
            InvalidTimeSpec: If the value does not name a weekday
        """
        if isinstance(value, Weekday):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value < DAYS_PER_WEEK:
                return cls(value)
            raise InvalidTimeSpec(f"Weekday number must be between 0 and 6, got {value}")
        if not isinstance(value, str) or not value.strip():
            raise InvalidTimeSpec(f"Invalid day: {value!r}")
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise InvalidTimeSpec(f"Invalid day: {value!r}") from None

    def display_name(self) -> str:
        """Capitalized day name, e.g. ``Monday``."""
        return self.name.capitalize()

    def offset_from(self, anchor: "Weekday") -> int:
        """Number of days walking forward from ``anchor`` to this day (0-6)."""
        return (self - anchor) % DAYS_PER_WEEK

    def shifted(self, days: int) -> "Weekday":
        """The weekday ``days`` days after this one."""
        return Weekday((self + days) % DAYS_PER_WEEK)


# Canonical weekend, independent of the configured first day of the week
WEEKEND = frozenset({Weekday.SATURDAY, Weekday.SUNDAY})


def _check_minute(value, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidTimeSpec(f"{label} must be an integer minute of the day, got {value!r}")
    if not 0 <= value < MINUTES_PER_DAY:
        raise InvalidTimeSpec(f"{label} must be between 0 and 1439, got {value}")
    return value


def parse_clock(value: str) -> int:
    """
    Parse a 4-digit 24-hour ``HHMM`` string into minutes after midnight.

    Example: ``"0930"`` -> 570

    Raises:
        InvalidTimeSpec: If the string is not a valid HHMM time
    """
    if (
        not isinstance(value, str)
        or len(value) != 4
        or not value.isascii()
        or not value.isdigit()
    ):
        raise InvalidTimeSpec(f"Time must be a 4-digit HHMM string, got {value!r}")

    hours, minutes = int(value[:2]), int(value[2:])
    if hours > 23 or minutes > 59:
        raise InvalidTimeSpec(f"Time out of range: {value!r}")
    return hours * 60 + minutes


def format_clock(minute: int) -> str:
    """Format minutes after midnight as a 4-digit ``HHMM`` string."""
    _check_minute(minute, "minute")
    return f"{minute // 60:02d}{minute % 60:02d}"


@dataclass(frozen=True)
class CyclicTime:
    """
    A start/end pair of (weekday, minute-of-day) points on the weekly cycle.

    Walking forward from the start, the interval covers everything up to but
    excluding the end. When the end comes "before" the start in day/time
    terms, the interval continues into the next pass of the week.

    Invariant: start and end never name the same (day, minute) point.
    """

    start_day: Weekday
    start_time: int
    end_day: Weekday
    end_time: int

    def __post_init__(self):
        object.__setattr__(self, "start_day", Weekday.parse(self.start_day))
        object.__setattr__(self, "end_day", Weekday.parse(self.end_day))
        _check_minute(self.start_time, "start_time")
        _check_minute(self.end_time, "end_time")

        if self.start_day == self.end_day and self.start_time == self.end_time:
            raise DegenerateDuration(
                f"An event cannot start and end at the same time "
                f"({self.start_day.display_name()} {format_clock(self.start_time)})"
            )

    @classmethod
    def parse(
        cls,
        start_day: str,
        start_time: str,
        end_day: str,
        end_time: str,
    ) -> "CyclicTime":
        """Build a CyclicTime from day names and ``HHMM`` strings."""
        return cls(
            start_day=Weekday.parse(start_day),
            start_time=parse_clock(start_time),
            end_day=Weekday.parse(end_day),
            end_time=parse_clock(end_time),
        )

    @classmethod
    def from_offset(cls, offset: int, duration: int, anchor: Weekday) -> "CyclicTime":
        """
        Build the interval starting ``offset`` minutes after the anchor's
        midnight and lasting ``duration`` minutes.

        Args:
            offset: Start, in minutes since the anchor day's 00:00 (0-10079)
            duration: Length in minutes, strictly less than one week
            anchor: First day of the week

        Raises:
            InvalidTimeSpec: If the offset is outside the week
            InvalidDuration: If the duration is not in ``(0, 10080)``
        """
        if not 0 <= offset < MINUTES_PER_WEEK:
            raise InvalidTimeSpec(f"Offset must be within one week, got {offset}")
        if not 0 < duration < MINUTES_PER_WEEK:
            raise InvalidDuration(f"Duration must be between 1 and 10079 minutes, got {duration}")

        end = offset + duration
        return cls(
            start_day=anchor.shifted(offset // MINUTES_PER_DAY),
            start_time=offset % MINUTES_PER_DAY,
            end_day=anchor.shifted(end // MINUTES_PER_DAY),
            end_time=end % MINUTES_PER_DAY,
        )

    def to_fields(self) -> Tuple[str, str, str, str]:
        """Return (start day, start HHMM, end day, end HHMM) as strings."""
        return (
            self.start_day.display_name(),
            format_clock(self.start_time),
            self.end_day.display_name(),
            format_clock(self.end_time),
        )

    def _raw_offsets(self, anchor: Weekday) -> Tuple[int, int]:
        start = self.start_day.offset_from(anchor) * MINUTES_PER_DAY + self.start_time
        end = self.end_day.offset_from(anchor) * MINUTES_PER_DAY + self.end_time
        return start, end

    def anchored_span(self, anchor: Weekday) -> Tuple[int, int]:
        """
        Half-open ``[start, end)`` range in minutes since the anchor's midnight.

        An end that falls before the start is moved one week forward, so the
        range is never empty or negative.
        """
        start, end = self._raw_offsets(anchor)
        if end < start:
            end += MINUTES_PER_WEEK
        return start, end

    def wraps(self, anchor: Weekday) -> bool:
        """True when the interval runs past the start of the next week."""
        start, end = self._raw_offsets(anchor)
        # ending exactly at the anchor's midnight stays within this week
        return 0 < end < start

    @property
    def duration_minutes(self) -> int:
        """Length of the interval in minutes (the same for every anchor)."""
        start, end = self.anchored_span(Weekday.MONDAY)
        return end - start

    def contains(self, day, minute: int, anchor: Weekday) -> bool:
        """Check whether the instant ``(day, minute)`` falls inside this interval."""
        _check_minute(minute, "minute")
        instant = Weekday.parse(day).offset_from(anchor) * MINUTES_PER_DAY + minute
        start, end = self.anchored_span(anchor)
        return start <= instant < end or start <= instant + MINUTES_PER_WEEK < end

    def overlaps(self, other: "CyclicTime", anchor: Weekday) -> bool:
        """
        Check if this interval shares any minute with ``other`` on the weekly cycle.

        Both intervals are compared as half-open anchored ranges; ``other`` is
        also tried one week earlier and later because both are periodic.
        """
        if self == other:
            return True

        a_start, a_end = self.anchored_span(anchor)
        b_start, b_end = other.anchored_span(anchor)

        for shift in (-MINUTES_PER_WEEK, 0, MINUTES_PER_WEEK):
            if not (a_end <= b_start + shift or b_end + shift <= a_start):
                return True
        return False

    def occurrence(self, week_start: DateTime, anchor: Weekday) -> "TimeRange":
        """
        Place this interval in a concrete calendar week.

        Args:
            week_start: Any moment on the anchor day of the target week
            anchor: First day of the week

        Returns:
            TimeRange with concrete start and end datetimes
        """
        if int(week_start.day_of_week) != int(anchor):
            raise InvalidTimeSpec(
                f"Week start {week_start.to_date_string()} is not a "
                f"{anchor.display_name()}"
            )
        midnight = week_start.start_of("day")
        start, end = self.anchored_span(anchor)
        return TimeRange(start=midnight.add(minutes=start), end=midnight.add(minutes=end))

    def __str__(self) -> str:
        start_day, start_time, end_day, end_time = self.to_fields()
        return f"{start_day} {start_time} -> {end_day} {end_time}"


def check_overlap(a: CyclicTime, b: CyclicTime, anchor: Weekday) -> bool:
    """Return True if two cyclic intervals overlap; see ``CyclicTime.overlaps``."""
    return a.overlaps(b, anchor)


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def __str__(self) -> str:
        return f"{self.start.format('dddd DD.MM.YYYY HH:mm')} - {self.end.format('dddd DD.MM.YYYY HH:mm')}"


def _require_text(value, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidEventSpec(f"{label} cannot be null or empty")
    return value.strip()


def _normalize_invitees(host: str, invitees: Optional[Iterable[str]]) -> Tuple[str, ...]:
    if invitees is None:
        raise InvalidEventSpec("Invitees list cannot be null")

    # Host first, then invitees in the given order without duplicates
    ordered = [host]
    for invitee in invitees:
        user = _require_text(invitee, "Invitee")
        if user not in ordered:
            ordered.append(user)
    return tuple(ordered)


@dataclass(frozen=True)
class Event:
    """
    A named calendar event shared by its host and invitees.

    ``invitees`` always lists the host first. ``time`` is None for a draft
    that still has to be placed by the scheduler.
    """

    name: str
    host: str
    invitees: Tuple[str, ...] = ()
    location: str = ""
    is_online: bool = False
    time: Optional[CyclicTime] = None

    def __post_init__(self):
        name = _require_text(self.name, "Event name")
        host = _require_text(self.host, "Host")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "host", host)
        object.__setattr__(self, "invitees", _normalize_invitees(host, self.invitees))
        if self.location is None:
            location = ""
        elif isinstance(self.location, str):
            location = self.location.strip()
        else:
            raise InvalidEventSpec(f"Event location must be text, got {type(self.location).__name__}")
        object.__setattr__(self, "location", location)
        object.__setattr__(self, "is_online", bool(self.is_online))

        if self.time is not None and not isinstance(self.time, CyclicTime):
            raise InvalidEventSpec(f"Event time must be a CyclicTime, got {type(self.time).__name__}")

    @property
    def is_scheduled(self) -> bool:
        return self.time is not None

    def require_time(self) -> CyclicTime:
        """Return the event's time, failing for unscheduled drafts."""
        if not self.is_scheduled:
            raise InvalidEventSpec(f"Event '{self.name}' has no time")
        return self.time

    def with_time(self, time: CyclicTime) -> "Event":
        return replace(self, time=time)

    def with_invitees(self, invitees: Iterable[str]) -> "Event":
        return replace(self, invitees=tuple(invitees))

    def occurs_at(self, day, minute: int, anchor: Weekday) -> bool:
        return self.require_time().contains(day, minute, anchor)
