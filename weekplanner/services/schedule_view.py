"""
Plain-text rendering of a participant schedule.
"""

from typing import List

from ..domain.models import DAYS_PER_WEEK, Weekday
from ..domain.schedule import ParticipantSchedule

INDENT = " " * 8


def render_schedule(schedule: ParticipantSchedule, anchor: Weekday) -> str:
    """
    Render a schedule day by day, starting at ``anchor``.

    Each event is listed under the day it starts on:

        Monday:
                name: Standup
                time: Monday: 0900 -> Monday: 0915
                location: Room 1
                online: false
                invitees: alice
                          bob
    """
    lines: List[str] = [f"User: {schedule.owner}"]
    events = schedule.sorted_events(anchor)

    for day_index in range(DAYS_PER_WEEK):
        day = anchor.shifted(day_index)
        lines.append(f"{day.display_name()}:")

        for event in events:
            time = event.require_time()
            if time.start_day != day:
                continue
            start_day, start, end_day, end = time.to_fields()
            lines.append(f"{INDENT}name: {event.name}")
            lines.append(f"{INDENT}time: {start_day}: {start} -> {end_day}: {end}")
            lines.append(f"{INDENT}location: {event.location}")
            lines.append(f"{INDENT}online: {str(event.is_online).lower()}")
            first, *rest = event.invitees
            lines.append(f"{INDENT}invitees: {first}")
            lines.extend(f"{INDENT}          {invitee}" for invitee in rest)

    return "\n".join(lines) + "\n"
