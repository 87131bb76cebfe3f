"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .planner import PlannerService, ScheduleSource
from .schedule_view import render_schedule

__all__ = ["PlannerService", "ScheduleSource", "render_schedule"]
