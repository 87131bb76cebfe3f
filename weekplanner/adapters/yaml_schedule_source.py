"""
Schedule source reading participant schedules from a YAML document.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from ..domain.exceptions import ScheduleSourceError
from ..domain.models import CyclicTime, Event
from ..domain.schedule import ParticipantSchedule

logger = logging.getLogger(__name__)

TIME_FIELDS = ("start-day", "start", "end-day", "end")


class YamlScheduleSource:
    """
    Loads schedules from a YAML file shaped like::

        schedules:
          - owner: "Prof. Lucia"
            events:
              - name: "CS3500 Morning Lecture"
                time: {start-day: Tuesday, start: "0950", end-day: Tuesday, end: "1130"}
                location: {online: false, place: "Churchill Hall 101"}
                users: ["Prof. Lucia", "Student Anon"]

    The first entry of ``users`` is the host. Times must be quoted so YAML
    keeps values like ``"0700"`` as strings.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load_schedules(self) -> List[ParticipantSchedule]:
        """
        Read and parse the YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ScheduleSourceError: If the YAML is malformed or has the wrong structure
            InvalidTimeSpec: If an event time cannot be parsed
        """
        if not self.path.exists():
            raise FileNotFoundError(f"Schedule file not found: {self.path}")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ScheduleSourceError(f"Invalid YAML in {self.path}: {exc}") from exc

        schedules = self.parse_document(data)
        logger.debug("Read %d schedule(s) from %s", len(schedules), self.path)
        return schedules

    @classmethod
    def parse_document(cls, data: Any) -> List[ParticipantSchedule]:
        """Convert an already-loaded YAML document into schedules."""
        if not isinstance(data, dict):
            raise ScheduleSourceError("Schedule file must contain a mapping at the root level.")

        entries = data.get("schedules", [])
        if not isinstance(entries, list):
            raise ScheduleSourceError("'schedules' must be a list.")

        schedules: List[ParticipantSchedule] = []
        for entry in entries:
            if not isinstance(entry, dict) or "owner" not in entry:
                raise ScheduleSourceError(f"Each schedule needs an 'owner', got: {entry!r}")

            events = entry.get("events") or []
            if not isinstance(events, list):
                raise ScheduleSourceError(f"'events' of {entry['owner']} must be a list.")

            schedules.append(
                ParticipantSchedule(
                    owner=str(entry["owner"]),
                    events=[cls._parse_event(item) for item in events],
                )
            )
        return schedules

    @staticmethod
    def _parse_event(item: Dict[str, Any]) -> Event:
        if not isinstance(item, dict):
            raise ScheduleSourceError(f"Event must be a mapping, got: {item!r}")

        try:
            name = item["name"]
            time_data = item["time"]
            users = item["users"]
        except KeyError as exc:
            raise ScheduleSourceError(f"Event is missing the {exc} field: {item!r}") from exc

        if not isinstance(time_data, dict):
            raise ScheduleSourceError(f"'time' of event '{name}' must be a mapping.")
        if not isinstance(users, list) or not users:
            raise ScheduleSourceError(f"'users' of event '{name}' must be a non-empty list.")

        fields = []
        for key in TIME_FIELDS:
            value = time_data.get(key)
            if not isinstance(value, str):
                raise ScheduleSourceError(
                    f"Time field '{key}' of event '{name}' must be a quoted string, got {value!r}"
                )
            fields.append(value)

        location = item.get("location") or {}
        if not isinstance(location, dict):
            raise ScheduleSourceError(f"'location' of event '{name}' must be a mapping.")
        place = location.get("place") or ""
        if not isinstance(place, str):
            raise ScheduleSourceError(
                f"'place' of event '{name}' must be a quoted string, got {place!r}"
            )

        return Event(
            name=name,
            host=users[0],
            invitees=tuple(users),
            location=place,
            is_online=bool(location.get("online", False)),
            time=CyclicTime.parse(*fields),
        )
