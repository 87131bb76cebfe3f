"""
Domain-specific exception hierarchy for the weekly planner.

Validation errors also derive from ``ValueError`` so callers that only care
about "bad input" can keep catching the builtin.
"""


class PlannerError(Exception):
    """Base class for all application-level errors."""


class InvalidTimeSpec(PlannerError, ValueError):
    """Raised when a day name or HHMM time literal cannot be parsed."""


class DegenerateDuration(PlannerError, ValueError):
    """Raised when an interval would start and end at the same instant."""


class InvalidDuration(PlannerError, ValueError):
    """Raised when a requested duration is not a positive number of minutes."""


class DurationTooLong(InvalidDuration):
    """Raised when a duration exceeds the maximum of the active policy."""


class InvalidScheduleSet(PlannerError, ValueError):
    """Raised when the schedules handed to a search are empty or contain None."""


class InvalidEventSpec(PlannerError, ValueError):
    """Raised when an event is missing a name, host, invitee or time."""


class ScheduleConflict(PlannerError, ValueError):
    """Raised when an event overlaps an event already in a schedule."""

    def __init__(self, message: str, conflicting=None):
        super().__init__(message)
        self.conflicting = conflicting


class EventNotFound(PlannerError, ValueError):
    """Raised when an event is not part of the schedule it is removed from."""


class UnknownUser(PlannerError, ValueError):
    """Raised when no schedule exists for a user id."""


class DuplicateUser(PlannerError, ValueError):
    """Raised when a schedule is registered twice for the same user id."""


class ScheduleSourceError(PlannerError):
    """Raised when schedule data cannot be read or has the wrong structure."""
