"""
A single participant's collection of non-overlapping events.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .exceptions import EventNotFound, InvalidEventSpec, ScheduleConflict
from .models import CyclicTime, Event, Weekday

logger = logging.getLogger(__name__)

DEFAULT_ANCHOR = Weekday.SUNDAY


class ParticipantSchedule:
    """
    Events owned by one participant, kept in insertion order.

    Insertion rejects any event that overlaps one already stored, so the
    events of a schedule never overlap each other.
    """

    def __init__(
        self,
        owner: str,
        events: Iterable[Event] | None = None,
        anchor: Weekday = DEFAULT_ANCHOR,
    ):
        if not isinstance(owner, str) or not owner.strip():
            raise InvalidEventSpec("Schedule owner cannot be null or empty")
        self.owner = owner.strip()
        self._events: List[Event] = []

        for event in events or []:
            self.insert(event, anchor)

    @property
    def events(self) -> List[Event]:
        """Copy of the stored events in insertion order."""
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def __repr__(self) -> str:
        return f"ParticipantSchedule(owner={self.owner!r}, events={len(self._events)})"

    def conflicts(self, candidate: CyclicTime, anchor: Weekday) -> List[Event]:
        """Return all stored events whose time overlaps ``candidate``."""
        return [
            event for event in self._events
            if event.require_time().overlaps(candidate, anchor)
        ]

    def has_conflict(self, candidate: CyclicTime, anchor: Weekday) -> bool:
        """Check if any stored event overlaps ``candidate``."""
        return any(
            event.require_time().overlaps(candidate, anchor)
            for event in self._events
        )

    def has_event(self, event: Event) -> bool:
        return event in self._events

    def insert(self, event: Event, anchor: Weekday) -> None:
        """
        Add an event to the schedule.

        Raises:
            InvalidEventSpec: If the event has no time yet
            ScheduleConflict: If the event overlaps an existing event
        """
        if event is None:
            raise InvalidEventSpec("Cannot add a null event")
        candidate = event.require_time()

        clashes = self.conflicts(candidate, anchor)
        if clashes:
            raise ScheduleConflict(
                f"'{event.name}' ({candidate}) conflicts with '{clashes[0].name}' "
                f"in {self.owner}'s schedule",
                conflicting=clashes[0],
            )

        self._events.append(event)
        logger.debug("Added '%s' to %s's schedule", event.name, self.owner)

    def remove(self, event: Event) -> None:
        """
        Remove an event from the schedule.

        Raises:
            EventNotFound: If the event is not in this schedule
        """
        try:
            self._events.remove(event)
        except ValueError:
            raise EventNotFound(
                f"Event '{getattr(event, 'name', event)}' doesn't exist in {self.owner}'s schedule"
            ) from None
        logger.debug("Removed '%s' from %s's schedule", event.name, self.owner)

    def find_at(self, day, minute: int, anchor: Weekday) -> Optional[Event]:
        """Return the first event occurring at ``(day, minute)``, if any."""
        for event in self._events:
            if event.occurs_at(day, minute, anchor):
                return event
        return None

    def sorted_events(self, anchor: Weekday) -> List[Event]:
        """Events ordered by start (relative to ``anchor``), then end, then name."""
        return sorted(
            self._events,
            key=lambda event: (*event.require_time().anchored_span(anchor), event.name),
        )
