"""
Application service managing the schedules of every planner user.

The service keeps one ``ParticipantSchedule`` per user, copies shared events
into each invitee's schedule, and delegates automatic placement to the
domain-level ``SlotSearchEngine``. Schedule data can be fed in from any
object satisfying ``ScheduleSource``, which keeps adapters swappable in tests.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from ..domain.exceptions import DuplicateUser, EventNotFound, ScheduleConflict, UnknownUser
from ..domain.models import CyclicTime, Event, Weekday, parse_clock
from ..domain.policies import (
    PolicyKind,
    SchedulingPolicy,
    WorkingHours,
    policy_for,
)
from ..domain.schedule import DEFAULT_ANCHOR, ParticipantSchedule
from ..domain.slot_search import SchedulingRequest, SlotSearchEngine

logger = logging.getLogger(__name__)


class ScheduleSource(Protocol):
    """Protocol describing where the planner gets existing schedules from."""

    def load_schedules(self) -> List[ParticipantSchedule]:
        """Return one schedule per owner."""


class PlannerService:
    """
    Multi-user planner: create, modify, remove and auto-schedule events.

    The first day of the week is fixed per planner instance and passed to
    every overlap check and search explicitly.
    """

    def __init__(
        self,
        anchor: Weekday | str = DEFAULT_ANCHOR,
        engine: SlotSearchEngine | None = None,
        working_hours: WorkingHours | None = None,
    ) -> None:
        self._anchor = Weekday.parse(anchor)
        self._engine = engine or SlotSearchEngine()
        self._working_hours = working_hours
        self._schedules: Dict[str, ParticipantSchedule] = {}

    @property
    def anchor(self) -> Weekday:
        return self._anchor

    @property
    def users(self) -> List[str]:
        return sorted(self._schedules)

    # ------------------------------------------------------------------
    # Users and schedules
    # ------------------------------------------------------------------

    def add_user(self, user_id: str) -> ParticipantSchedule:
        """Register a user with an empty schedule."""
        if user_id in self._schedules:
            raise DuplicateUser(f"User already exists: {user_id}")
        schedule = ParticipantSchedule(user_id)
        self._schedules[schedule.owner] = schedule
        return schedule

    def get_schedule(self, user_id: str) -> ParticipantSchedule:
        try:
            return self._schedules[user_id]
        except KeyError:
            raise UnknownUser(f"User schedule for {user_id} does not exist in the system") from None

    def remove_user(self, user_id: str) -> bool:
        """
        Remove a user and take them out of every event.

        Events the user hosts are removed for everyone.

        Returns:
            False if the user was not known
        """
        schedule = self._schedules.get(user_id)
        if schedule is None:
            return False

        for event in schedule.events:
            self.remove_event(user_id, event)
        del self._schedules[user_id]
        logger.info("Removed user %s", user_id)
        return True

    def add_schedule(self, schedule: ParticipantSchedule) -> None:
        """
        Register a schedule and copy its events into every invitee's schedule.

        Raises:
            DuplicateUser: If the owner already has a schedule
            ScheduleConflict: If any event clashes; nothing is added then
        """
        if schedule.owner in self._schedules:
            raise DuplicateUser(f"A schedule for {schedule.owner} already exists")
        self._apply([schedule])

    def load(self, source: ScheduleSource) -> None:
        """
        Merge every schedule from ``source`` into the planner.

        All events are validated before any is applied.
        """
        schedules = source.load_schedules()
        self._apply(schedules)
        logger.info("Loaded %d schedule(s)", len(schedules))

    def _apply(self, schedules: Iterable[ParticipantSchedule]) -> None:
        staged = {
            owner: ParticipantSchedule(owner, existing.events, self._anchor)
            for owner, existing in self._schedules.items()
        }
        for schedule in schedules:
            staged.setdefault(schedule.owner, ParticipantSchedule(schedule.owner))
            for event in schedule.events:
                self._add_everywhere(event, staged)
        self._schedules = staged

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def create_event(
        self,
        host: str,
        name: str,
        time: CyclicTime,
        invitees: Sequence[str] = (),
        location: str = "",
        is_online: bool = False,
    ) -> Event:
        """
        Create an event and add it to the schedule of the host and every invitee.

        Raises:
            ScheduleConflict: If the event clashes with any participant's schedule
        """
        event = Event(
            name=name,
            host=host,
            invitees=tuple(invitees),
            location=location,
            is_online=is_online,
            time=time,
        )
        self._add_everywhere(event, self._schedules)
        logger.info("Created '%s' (%s) for %s", event.name, event.time, ", ".join(event.invitees))
        return event

    def modify_event(self, user_id: str, event: Event, **changes) -> Event:
        """
        Change an event for every participant.

        Accepted keyword changes: ``name``, ``time``, ``location``,
        ``is_online`` and ``invitees``. The host is always preserved. If the
        changed event cannot be placed, the original is restored.

        Returns:
            The modified event
        """
        allowed = {"name", "time", "location", "is_online", "invitees"}
        unknown = set(changes) - allowed
        if unknown:
            raise TypeError(f"Unsupported event change(s): {', '.join(sorted(unknown))}")

        original = self._require_event(user_id, event)
        if "invitees" in changes:
            changes["invitees"] = tuple(changes["invitees"])

        self._remove_everywhere(original)
        try:
            updated = replace(original, **changes)
            self._add_everywhere(updated, self._schedules)
        except Exception:
            self._add_everywhere(original, self._schedules)
            raise

        logger.info("Modified '%s' -> '%s' (%s)", original.name, updated.name, updated.time)
        return updated

    def remove_event(self, user_id: str, event: Event) -> None:
        """
        Remove an event as seen by ``user_id``.

        The host removes the event for everyone; an invitee only leaves it.
        """
        original = self._require_event(user_id, event)
        self._remove_everywhere(original)

        if user_id != original.host:
            remaining = [user for user in original.invitees if user != user_id]
            self._add_everywhere(original.with_invitees(remaining), self._schedules)
            logger.info("%s left '%s'", user_id, original.name)
        else:
            logger.info("%s removed '%s' for all participants", user_id, original.name)

    def is_conflict_free(self, event: Event) -> bool:
        """Check whether ``event`` could be added without any conflict."""
        try:
            self._validate(event, self._schedules)
        except ScheduleConflict:
            return False
        return True

    def event_at(self, user_id: str, day: str, time: str) -> Optional[Event]:
        """Return the event ``user_id`` has at a day name and ``HHMM`` time."""
        schedule = self.get_schedule(user_id)
        return schedule.find_at(Weekday.parse(day), parse_clock(time), self._anchor)

    def schedule_event(
        self,
        host: str,
        name: str,
        duration: int,
        invitees: Sequence[str] = (),
        policy: SchedulingPolicy | PolicyKind | str = PolicyKind.UNRESTRICTED,
        location: str = "",
        is_online: bool = False,
    ) -> Optional[Event]:
        """
        Let the search engine place a new event and add it to every schedule.

        Returns:
            The scheduled event, or None if no slot satisfies the policy
        """
        if not isinstance(policy, SchedulingPolicy):
            policy = policy_for(policy, self._working_hours)

        draft = Event(
            name=name,
            host=host,
            invitees=tuple(invitees),
            location=location,
            is_online=is_online,
        )
        schedules = [
            self._schedules[user] if user in self._schedules else ParticipantSchedule(user)
            for user in draft.invitees
        ]
        request = SchedulingRequest(
            event=draft,
            duration=duration,
            schedules=tuple(schedules),
            anchor=self._anchor,
            policy=policy,
        )

        scheduled = self._engine.schedule(request)
        if scheduled is None:
            logger.info("No available time to schedule '%s' (%s policy)", name, policy)
            return None

        self._add_everywhere(scheduled, self._schedules)
        logger.info("Scheduled '%s' at %s", scheduled.name, scheduled.time)
        return scheduled

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_event(self, user_id: str, event: Event) -> Event:
        schedule = self.get_schedule(user_id)
        if not schedule.has_event(event):
            raise EventNotFound(f"Event '{event.name}' doesn't exist in {user_id}'s schedule")
        return event

    def _validate(self, event: Event, schedules: Dict[str, ParticipantSchedule]) -> None:
        time = event.require_time()
        for user in event.invitees:
            schedule = schedules.get(user)
            if schedule is None or schedule.has_event(event):
                continue
            if schedule.has_conflict(time, self._anchor):
                raise ScheduleConflict(f"There is a time conflict in {user}'s schedule")

    def _add_everywhere(self, event: Event, schedules: Dict[str, ParticipantSchedule]) -> None:
        # Validate every participant first so a conflict leaves nothing half-added
        self._validate(event, schedules)
        for user in event.invitees:
            schedule = schedules.setdefault(user, ParticipantSchedule(user))
            if not schedule.has_event(event):
                schedule.insert(event, self._anchor)

    def _remove_everywhere(self, event: Event) -> None:
        for user in event.invitees:
            schedule = self._schedules.get(user)
            if schedule is not None and schedule.has_event(event):
                schedule.remove(event)
