"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import CyclicTime, Event, TimeRange, Weekday, check_overlap
from .policies import PolicyKind, SchedulingPolicy, WorkingHours, policy_for
from .schedule import ParticipantSchedule
from .slot_search import SchedulingRequest, SlotSearchEngine, find_slot

__all__ = [
    "CyclicTime",
    "Event",
    "TimeRange",
    "Weekday",
    "check_overlap",
    "PolicyKind",
    "SchedulingPolicy",
    "WorkingHours",
    "policy_for",
    "ParticipantSchedule",
    "SchedulingRequest",
    "SlotSearchEngine",
    "find_slot",
]
