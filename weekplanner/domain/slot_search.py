"""
Core business logic for automatically placing an event in the week.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). Schedules are
only read; reserving the winning slot is the caller's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .exceptions import DurationTooLong, InvalidDuration, InvalidEventSpec, InvalidScheduleSet
from .models import CyclicTime, Event, Weekday
from .policies import UNRESTRICTED, SchedulingPolicy
from .schedule import DEFAULT_ANCHOR, ParticipantSchedule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulingRequest:
    """
    Everything one search needs. Validated eagerly on construction.

    Raises:
        InvalidEventSpec: If ``event`` is not an Event
        InvalidDuration: If ``duration`` is not a positive integer
        DurationTooLong: If ``duration`` exceeds the policy maximum
        InvalidScheduleSet: If ``schedules`` is empty or contains None
    """
    event: Event
    duration: int
    schedules: Tuple[ParticipantSchedule, ...]
    anchor: Weekday = DEFAULT_ANCHOR
    policy: SchedulingPolicy = field(default=UNRESTRICTED)

    def __post_init__(self):
        if not isinstance(self.event, Event):
            raise InvalidEventSpec("A draft event is required to schedule")

        if isinstance(self.duration, bool) or not isinstance(self.duration, int) or self.duration <= 0:
            raise InvalidDuration(f"Duration must be a positive number of minutes, got {self.duration!r}")
        if self.duration > self.policy.max_duration_minutes:
            raise DurationTooLong(
                f"The duration cannot be more than {self.policy.max_duration_minutes} minutes "
                f"under the {self.policy} policy, got {self.duration}"
            )

        if self.schedules is None:
            raise InvalidScheduleSet("Invalid list of schedules: None")
        schedules = tuple(self.schedules)
        if not schedules or any(schedule is None for schedule in schedules):
            raise InvalidScheduleSet("Invalid list of schedules: empty or containing None")
        object.__setattr__(self, "schedules", schedules)
        object.__setattr__(self, "anchor", Weekday.parse(self.anchor))


class SlotSearchEngine:
    """
    Finds the earliest slot where a policy admits all participant schedules.

    Algorithm:
    1. Ask the policy for legal start offsets, in increasing order
    2. Materialise a trial CyclicTime of the requested duration at each offset
    3. Collect the owners whose schedules have no conflict with the trial
    4. Return the first trial the policy admits (earliest slot wins)
    5. Report exhaustion as None - it is a normal outcome, not an error
    """

    def find_slot(self, request: SchedulingRequest) -> Optional[CyclicTime]:
        """
        Find the earliest admissible time for the request.

        Returns:
            CyclicTime of the winning slot, or None if every offset is rejected
        """
        found = self._scan(request)
        if found is None:
            return None
        return found[0]

    def schedule(self, request: SchedulingRequest) -> Optional[Event]:
        """
        Find the earliest admissible slot and return the finished event.

        The draft is re-timed to the winning slot and its invitees are
        adjusted by the policy (LenientQuorum keeps only the free participants).

        Returns:
            The time-stamped Event, or None if no slot exists
        """
        found = self._scan(request)
        if found is None:
            return None

        slot, free_owners = found
        invitees = request.policy.adjust_invitees(request.event, free_owners)
        return request.event.with_time(slot).with_invitees(invitees)

    def _scan(self, request: SchedulingRequest) -> Optional[Tuple[CyclicTime, List[str]]]:
        policy = request.policy
        host = request.event.host
        total = len(request.schedules)

        logger.debug(
            "Searching %d-minute slot for '%s' (%s policy, %d schedules, week starts %s)",
            request.duration,
            request.event.name,
            policy,
            total,
            request.anchor.display_name(),
        )

        for offset in policy.candidate_offsets(request.duration, request.anchor):
            trial = CyclicTime.from_offset(offset, request.duration, request.anchor)
            free_owners = self._free_owners(trial, request.schedules, request.anchor)

            if policy.admits(host, free_owners, total):
                logger.debug("Found slot %s at offset %d", trial, offset)
                return trial, free_owners

        logger.debug("No slot found for '%s'", request.event.name)
        return None

    @staticmethod
    def _free_owners(
        trial: CyclicTime,
        schedules: Sequence[ParticipantSchedule],
        anchor: Weekday,
    ) -> List[str]:
        """Owners, in schedule order, whose schedules do not conflict with ``trial``."""
        return [
            schedule.owner for schedule in schedules
            if not schedule.has_conflict(trial, anchor)
        ]


_DEFAULT_ENGINE = SlotSearchEngine()


def find_slot(request: SchedulingRequest) -> Optional[CyclicTime]:
    """Find the earliest admissible slot with a shared engine instance."""
    return _DEFAULT_ENGINE.find_slot(request)
