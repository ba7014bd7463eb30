"""Tests for FestivalService scheduling, lifecycle and participation."""

from datetime import timedelta

import pytest

from myrefell.domain.enums import FestivalStatus
from myrefell.factory import create_festival_service
from myrefell.models import utc_now
from myrefell.services.errors import NotFoundError


@pytest.fixture
def festivals(session, world):
    return create_festival_service(session)


@pytest.fixture
def active_fair(world, festivals):
    fair = festivals.schedule_festival(
        "midsummer-fair", "village", world.village.id, utc_now(), organizer=world.elder
    )
    return festivals.start_festival(fair.id)


class TestScheduling:
    def test_duration_comes_from_the_type(self, world, festivals):
        starts = utc_now() + timedelta(days=2)

        festival = festivals.schedule_festival(
            "planting-festival", "village", world.village.id, starts, budget=200
        )

        assert festival.status == FestivalStatus.SCHEDULED
        assert festival.name == "Planting Festival"
        assert festival.ends_at - festival.starts_at == timedelta(days=3)
        assert festival.budget == 200

    def test_unknown_type(self, world, festivals):
        with pytest.raises(ValueError, match="Invalid festival type"):
            festivals.schedule_festival("carnival", "village", world.village.id, utc_now())

    def test_unknown_location(self, world, festivals):
        with pytest.raises(NotFoundError):
            festivals.schedule_festival("midsummer-fair", "village", 999, utc_now())

    def test_upcoming_filters_by_location(self, world, festivals):
        here = festivals.schedule_festival(
            "midsummer-fair", "village", world.village.id, utc_now() + timedelta(days=1)
        )
        festivals.schedule_festival(
            "midsummer-fair", "town", world.town.id, utc_now() + timedelta(days=2)
        )

        assert festivals.upcoming_festivals("village", world.village.id) == [here]
        assert len(festivals.upcoming_festivals()) == 2


class TestLifecycle:
    def test_start_and_end(self, world, festivals, active_fair):
        assert active_fair.status == FestivalStatus.ACTIVE
        festivals.join_festival(world.alice, active_fair.id)
        festivals.join_festival(world.bob, active_fair.id, "vendor")

        festival = festivals.end_festival(active_fair.id)

        assert festival.status == FestivalStatus.COMPLETED
        assert festival.attendance_count == 2

    def test_only_scheduled_festivals_start(self, festivals, active_fair):
        with pytest.raises(ValueError, match="Only scheduled"):
            festivals.start_festival(active_fair.id)

    def test_only_active_festivals_end(self, world, festivals):
        festival = festivals.schedule_festival(
            "midsummer-fair", "village", world.village.id, utc_now()
        )
        with pytest.raises(ValueError, match="Only active"):
            festivals.end_festival(festival.id)

    def test_process_festivals_follows_the_clock(self, world, festivals):
        starts = utc_now() + timedelta(hours=1)
        festival = festivals.schedule_festival(
            "planting-festival", "village", world.village.id, starts
        )

        assert festivals.process_festivals(now=starts - timedelta(minutes=1)) == {
            "started": 0,
            "ended": 0,
        }
        assert festivals.process_festivals(now=starts) == {"started": 1, "ended": 0}
        assert festival.status == FestivalStatus.ACTIVE
        assert festivals.process_festivals(now=starts + timedelta(days=3)) == {
            "started": 0,
            "ended": 1,
        }
        assert festival.status == FestivalStatus.COMPLETED

    def test_missing_festival(self, festivals):
        with pytest.raises(NotFoundError):
            festivals.get_festival(404)


class TestParticipation:
    @pytest.mark.parametrize("role", ["attendee", "performer", "vendor"])
    def test_join_roles(self, world, festivals, active_fair, role):
        participant = festivals.join_festival(world.alice, active_fair.id, role)
        assert participant.role == role

    def test_organizer_role_is_not_joinable(self, world, festivals, active_fair):
        with pytest.raises(ValueError, match="Cannot join"):
            festivals.join_festival(world.alice, active_fair.id, "organizer")

    def test_join_requires_active_festival(self, world, festivals):
        festival = festivals.schedule_festival(
            "midsummer-fair", "village", world.village.id, utc_now() + timedelta(days=1)
        )
        with pytest.raises(ValueError, match="not active"):
            festivals.join_festival(world.alice, festival.id)

    def test_join_once(self, world, festivals, active_fair):
        festivals.join_festival(world.alice, active_fair.id)
        with pytest.raises(ValueError, match="Already participating"):
            festivals.join_festival(world.alice, active_fair.id, "performer")

    def test_leave_then_rejoin(self, world, festivals, active_fair):
        festivals.join_festival(world.alice, active_fair.id)
        festivals.leave_festival(world.alice, active_fair.id)

        with pytest.raises(ValueError, match="not participating"):
            festivals.leave_festival(world.alice, active_fair.id)
        assert festivals.join_festival(world.alice, active_fair.id).role == "attendee"

    def test_cannot_leave_finished_festival(self, world, festivals, active_fair):
        festivals.join_festival(world.alice, active_fair.id)
        festivals.end_festival(active_fair.id)

        with pytest.raises(ValueError, match="over"):
            festivals.leave_festival(world.alice, active_fair.id)
