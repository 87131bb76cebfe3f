"""
Tests for the PlannerService orchestration layer.
"""

from typing import List

import pytest

from weekplanner.domain.exceptions import (
    DuplicateUser,
    DurationTooLong,
    EventNotFound,
    InvalidTimeSpec,
    ScheduleConflict,
    UnknownUser,
)
from weekplanner.domain.models import CyclicTime, Event, Weekday
from weekplanner.domain.policies import PolicyKind, policy_for
from weekplanner.domain.schedule import ParticipantSchedule
from weekplanner.services.planner import PlannerService

WORK_HOURS = policy_for(PolicyKind.WORK_HOURS)


class StubScheduleSource:
    """Minimal stub matching the ScheduleSource protocol."""

    def __init__(self, schedules: List[ParticipantSchedule]):
        self._schedules = schedules
        self.calls = 0

    def load_schedules(self) -> List[ParticipantSchedule]:
        self.calls += 1
        return self._schedules


def _time(start_day, start, end_day, end) -> CyclicTime:
    return CyclicTime.parse(start_day, start, end_day, end)


@pytest.fixture
def planner():
    """Planner with alice, bob and carol registered."""
    service = PlannerService()
    for user in ("alice", "bob", "carol"):
        service.add_user(user)
    return service


class TestUsers:
    """Tests for user and schedule registration."""

    def test_anchor_is_fixed_per_instance(self):
        """Test the first day of the week comes from the constructor."""
        assert PlannerService().anchor == Weekday.SUNDAY
        assert PlannerService("Monday").anchor == Weekday.MONDAY

    def test_users_sorted(self, planner):
        """Test user ids are listed alphabetically."""
        planner.add_user("aaron")
        assert planner.users == ["aaron", "alice", "bob", "carol"]

    def test_duplicate_user_raises(self, planner):
        """Test a user id can only be registered once."""
        with pytest.raises(DuplicateUser):
            planner.add_user("alice")

    def test_unknown_user_raises(self, planner):
        """Test looking up a missing schedule raises UnknownUser."""
        with pytest.raises(UnknownUser):
            planner.get_schedule("mallory")

    def test_add_schedule_copies_events_to_invitees(self):
        """Test shared events of a new schedule reach every invitee."""
        planner = PlannerService()
        lecture = Event(
            name="Lecture",
            host="lucia",
            invitees=("anon",),
            time=_time("Tuesday", "0950", "Tuesday", "1130"),
        )

        planner.add_schedule(ParticipantSchedule("lucia", [lecture]))

        assert planner.users == ["anon", "lucia"]
        assert planner.get_schedule("anon").events == [lecture]

    def test_add_schedule_twice_raises(self, planner):
        """Test an owner cannot get a second schedule."""
        with pytest.raises(DuplicateUser):
            planner.add_schedule(ParticipantSchedule("alice"))

    def test_remove_user(self, planner):
        """Test hosted events vanish and invited events lose the user."""
        hosted = planner.create_event("alice", "Alice's", _time("Monday", "0900", "Monday", "1000"), ["bob"])
        invited = planner.create_event("bob", "Bob's", _time("Tuesday", "0900", "Tuesday", "1000"), ["alice"])

        assert planner.remove_user("alice")

        bob_events = planner.get_schedule("bob").events
        assert hosted not in bob_events
        assert [event.name for event in bob_events] == [invited.name]
        assert bob_events[0].invitees == ("bob",)
        assert "alice" not in planner.users

    def test_remove_unknown_user(self, planner):
        """Test removing a missing user reports False."""
        assert not planner.remove_user("mallory")


class TestLoad:
    """Tests for loading schedules from a source."""

    def test_load_merges_schedules(self):
        """Test every owner and every shared event is registered."""
        lecture = Event(
            name="Lecture",
            host="lucia",
            invitees=("anon",),
            time=_time("Tuesday", "0950", "Tuesday", "1130"),
        )
        shift = Event(name="Shift", host="anon", time=_time("Friday", "1800", "Sunday", "1200"))
        source = StubScheduleSource([
            ParticipantSchedule("lucia", [lecture]),
            ParticipantSchedule("anon", [lecture, shift]),
        ])
        planner = PlannerService()

        planner.load(source)

        assert source.calls == 1
        assert planner.get_schedule("lucia").events == [lecture]
        assert planner.get_schedule("anon").events == [lecture, shift]

    def test_load_is_all_or_nothing(self, planner):
        """Test a conflict anywhere leaves the planner unchanged."""
        existing = planner.create_event("alice", "Standup", _time("Monday", "0900", "Monday", "0915"))
        shared = Event(name="Sync", host="bob", invitees=("carol",), time=_time("Monday", "1000", "Monday", "1100"))
        clash = Event(name="Read", host="dave", invitees=("carol",), time=_time("Monday", "1030", "Monday", "1100"))
        source = StubScheduleSource([
            ParticipantSchedule("bob", [shared]),
            ParticipantSchedule("dave", [clash]),
        ])

        with pytest.raises(ScheduleConflict):
            planner.load(source)

        assert planner.users == ["alice", "bob", "carol"]
        assert planner.get_schedule("alice").events == [existing]
        assert planner.get_schedule("bob").events == []
        assert planner.get_schedule("carol").events == []


class TestEvents:
    """Tests for creating, modifying and removing events."""

    def test_create_event_adds_to_all_invitees(self, planner):
        """Test the event lands in the host's and every invitee's schedule."""
        event = planner.create_event(
            "alice",
            "Standup",
            _time("Monday", "0900", "Monday", "0915"),
            invitees=["bob", "carol"],
            location="Room 1",
        )

        assert event.invitees == ("alice", "bob", "carol")
        for user in ("alice", "bob", "carol"):
            assert planner.get_schedule(user).events == [event]

    def test_create_event_registers_unknown_invitee(self, planner):
        """Test invitees without a schedule get one."""
        planner.create_event("alice", "Coffee", _time("Monday", "1500", "Monday", "1530"), ["zoe"])
        assert "zoe" in planner.users

    def test_create_event_conflict_adds_nothing(self, planner):
        """Test a clash in one schedule keeps the event out of all schedules."""
        planner.create_event("carol", "Gym", _time("Monday", "0930", "Monday", "1030"))

        with pytest.raises(ScheduleConflict, match="carol"):
            planner.create_event("alice", "Standup", _time("Monday", "0900", "Monday", "1000"), ["bob", "carol"])

        assert planner.get_schedule("alice").events == []
        assert planner.get_schedule("bob").events == []

    def test_is_conflict_free(self, planner):
        """Test the dry-run conflict check."""
        planner.create_event("alice", "Standup", _time("Monday", "0900", "Monday", "1000"))

        clash = Event(name="X", host="bob", invitees=("alice",), time=_time("Monday", "0930", "Monday", "1030"))
        free = Event(name="Y", host="bob", invitees=("alice",), time=_time("Monday", "1000", "Monday", "1100"))

        assert not planner.is_conflict_free(clash)
        assert planner.is_conflict_free(free)

    def test_event_at(self, planner):
        """Test looking up an event by day name and HHMM."""
        event = planner.create_event("alice", "Standup", _time("Monday", "0900", "Monday", "1000"), ["bob"])

        assert planner.event_at("bob", "Monday", "0930") == event
        assert planner.event_at("bob", "monday", "1000") is None

    def test_event_at_validation(self, planner):
        """Test unknown users and bad times raise."""
        with pytest.raises(UnknownUser):
            planner.event_at("mallory", "Monday", "0930")
        with pytest.raises(InvalidTimeSpec):
            planner.event_at("alice", "Someday", "0930")

    def test_modify_event(self, planner):
        """Test a modified event replaces the original everywhere."""
        event = planner.create_event("alice", "Standup", _time("Monday", "0900", "Monday", "0915"), ["bob"])

        updated = planner.modify_event(
            "bob", event, name="Daily", time=_time("Tuesday", "0900", "Tuesday", "0915")
        )

        assert updated.host == "alice"
        for user in ("alice", "bob"):
            assert planner.get_schedule(user).events == [updated]

    def test_modify_invitees(self, planner):
        """Test changing invitees moves the event between schedules."""
        event = planner.create_event("alice", "Standup", _time("Monday", "0900", "Monday", "0915"), ["bob"])

        updated = planner.modify_event("alice", event, invitees=["carol"])

        assert updated.invitees == ("alice", "carol")
        assert planner.get_schedule("bob").events == []
        assert planner.get_schedule("carol").events == [updated]

    def test_modify_conflict_restores_original(self, planner):
        """Test a failed modification leaves the original event in place."""
        first = planner.create_event("alice", "First", _time("Monday", "0900", "Monday", "1000"))
        second = planner.create_event("alice", "Second", _time("Monday", "1100", "Monday", "1200"), ["bob"])

        with pytest.raises(ScheduleConflict):
            planner.modify_event("alice", second, time=_time("Monday", "0930", "Monday", "1030"))

        assert planner.get_schedule("alice").events == [first, second]
        assert planner.get_schedule("bob").events == [second]

    def test_modify_host_not_allowed(self, planner):
        """Test the host cannot be changed."""
        event = planner.create_event("alice", "Standup", _time("Monday", "0900", "Monday", "0915"))

        with pytest.raises(TypeError):
            planner.modify_event("alice", event, host="bob")

    def test_modify_unknown_event_raises(self, planner):
        """Test modifying an event the user doesn't have raises EventNotFound."""
        event = planner.create_event("alice", "Standup", _time("Monday", "0900", "Monday", "0915"))

        with pytest.raises(EventNotFound):
            planner.modify_event("bob", event, name="Daily")

    def test_host_removes_for_everyone(self, planner):
        """Test the host deleting an event clears every schedule."""
        event = planner.create_event("alice", "Standup", _time("Monday", "0900", "Monday", "0915"), ["bob", "carol"])

        planner.remove_event("alice", event)

        for user in ("alice", "bob", "carol"):
            assert planner.get_schedule(user).events == []

    def test_invitee_only_leaves(self, planner):
        """Test an invitee deleting an event only takes themselves out."""
        event = planner.create_event("alice", "Standup", _time("Monday", "0900", "Monday", "0915"), ["bob", "carol"])

        planner.remove_event("bob", event)

        assert planner.get_schedule("bob").events == []
        for user in ("alice", "carol"):
            [remaining] = planner.get_schedule(user).events
            assert remaining.invitees == ("alice", "carol")

    def test_remove_missing_event_raises(self, planner):
        """Test removing an event that isn't in the user's schedule."""
        event = Event(name="Ghost", host="alice", time=_time("Monday", "0900", "Monday", "0915"))

        with pytest.raises(EventNotFound):
            planner.remove_event("alice", event)


class TestScheduleEvent:
    """Tests for automatic scheduling through the planner."""

    def test_schedule_event_books_slot(self, planner):
        """Test the found slot is added to every invitee."""
        planner.create_event("alice", "Standup", _time("Monday", "0900", "Monday", "1000"))

        event = planner.schedule_event("alice", "Review", 60, ["bob"], policy=PolicyKind.WORK_HOURS)

        assert event.time.to_fields() == ("Monday", "1000", "Monday", "1100")
        assert planner.get_schedule("bob").events == [event]
        assert event in planner.get_schedule("alice").events

    def test_schedule_event_accepts_policy_names_and_values(self, planner):
        """Test the policy can be a name or a policy value."""
        by_name = planner.schedule_event("alice", "A", 60, policy="work-hours")
        by_value = planner.schedule_event("alice", "B", 60, policy=WORK_HOURS)

        assert by_name.time.to_fields() == ("Monday", "0900", "Monday", "1000")
        assert by_value.time.to_fields() == ("Monday", "1000", "Monday", "1100")

    def test_schedule_event_unrestricted_default(self, planner):
        """Test the default policy may use any minute of the week."""
        event = planner.schedule_event("alice", "Night shift", 120)
        assert event.time.to_fields() == ("Sunday", "0000", "Sunday", "0200")

    def test_lenient_drops_busy_invitee(self, planner):
        """Test busy invitees are left out and their schedule untouched."""
        planner.create_event("carol", "Offsite", _time("Monday", "0000", "Saturday", "0000"))

        event = planner.schedule_event("alice", "Sync", 30, ["bob", "carol"], policy="lenient")

        assert event.invitees == ("alice", "bob")
        assert [e.name for e in planner.get_schedule("carol").events] == ["Offsite"]

    def test_no_slot_returns_none(self, planner):
        """Test exhaustion returns None and books nothing."""
        planner.create_event("bob", "Offsite", _time("Monday", "0000", "Saturday", "0000"))

        assert planner.schedule_event("alice", "Sync", 30, ["bob"], policy="work-hours") is None
        assert planner.get_schedule("alice").events == []

    def test_unknown_users_treated_as_free(self, planner):
        """Test invitees without a schedule count as free and are registered."""
        event = planner.schedule_event("alice", "Intro", 30, ["newcomer"], policy="work-hours")

        assert event.time.to_fields() == ("Monday", "0900", "Monday", "0930")
        assert planner.get_schedule("newcomer").events == [event]

    def test_duration_too_long(self, planner):
        """Test the policy maximum is enforced."""
        with pytest.raises(DurationTooLong):
            planner.schedule_event("alice", "Marathon", 600, policy="work-hours")

    def test_anchor_shapes_search(self):
        """Test an unrestricted search starts at the planner's first day."""
        planner = PlannerService(anchor="Wednesday")

        event = planner.schedule_event("alice", "Kickoff", 60)

        assert event.time.to_fields() == ("Wednesday", "0000", "Wednesday", "0100")
