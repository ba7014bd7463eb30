"""Festival Service for Myrefell.

Festivals are scheduled at a location, become active when their start time
passes and complete when their end time passes. Players join active
festivals as attendees, performers or vendors.
"""

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from myrefell.domain import rules
from myrefell.domain.enums import FestivalStatus
from myrefell.interfaces import ILocationService
from myrefell.models import Festival, FestivalParticipant, FestivalType, Player, utc_now
from myrefell.services.errors import NotFoundError


class FestivalService:
    """Service for festival scheduling, lifecycle and participation."""

    def __init__(self, session: Session, locations: ILocationService):
        self.session = session
        self.locations = locations

    def get_festival(self, festival_id: int) -> Festival:
        festival = self.session.get(Festival, festival_id)
        if festival is None:
            raise NotFoundError(f"Festival {festival_id} not found.")
        return festival

    def schedule_festival(
        self,
        festival_type_slug: str,
        location_type: str,
        location_id: int,
        starts_at: datetime,
        organizer: Player | None = None,
        name: str | None = None,
        budget: int = 0,
    ) -> Festival:
        festival_type = (
            self.session.query(FestivalType).filter(FestivalType.slug == festival_type_slug).first()
        )
        if festival_type is None:
            raise ValueError("Invalid festival type.")
        self.locations.require(location_type, location_id)

        festival = Festival(
            festival_type_id=festival_type.id,
            location_type=location_type,
            location_id=location_id,
            name=name or festival_type.name,
            status=FestivalStatus.SCHEDULED,
            starts_at=starts_at,
            ends_at=starts_at + timedelta(days=festival_type.duration_days),
            budget=budget,
            organized_by_id=organizer.id if organizer is not None else None,
            attendance_count=0,
        )
        self.session.add(festival)
        self.session.commit()
        return festival

    def start_festival(self, festival_id: int) -> Festival:
        festival = self.get_festival(festival_id)
        if festival.status != FestivalStatus.SCHEDULED:
            raise ValueError("Only scheduled festivals can start.")
        festival.status = FestivalStatus.ACTIVE
        self.session.commit()
        return festival

    def end_festival(self, festival_id: int) -> Festival:
        festival = self.get_festival(festival_id)
        if festival.status != FestivalStatus.ACTIVE:
            raise ValueError("Only active festivals can end.")
        self._complete(festival)
        self.session.commit()
        return festival

    def _complete(self, festival: Festival) -> None:
        festival.status = FestivalStatus.COMPLETED
        festival.attendance_count = (
            self.session.query(FestivalParticipant)
            .filter(FestivalParticipant.festival_id == festival.id)
            .count()
        )

    def _participant(self, festival: Festival, player: Player) -> FestivalParticipant | None:
        return (
            self.session.query(FestivalParticipant)
            .filter(
                FestivalParticipant.festival_id == festival.id,
                FestivalParticipant.player_id == player.id,
            )
            .first()
        )

    def join_festival(
        self, player: Player, festival_id: int, role: str = "attendee"
    ) -> FestivalParticipant:
        festival = self.get_festival(festival_id)
        if role not in rules.FESTIVAL_JOIN_ROLES:
            raise ValueError(f"Cannot join a festival as '{role}'.")
        if festival.status != FestivalStatus.ACTIVE:
            raise ValueError("Festival is not active.")
        if self._participant(festival, player) is not None:
            raise ValueError("Already participating in this festival.")

        participant = FestivalParticipant(
            festival_id=festival.id,
            player_id=player.id,
            role=role,
            gold_spent=0,
            gold_earned=0,
        )
        self.session.add(participant)
        self.session.commit()
        return participant

    def leave_festival(self, player: Player, festival_id: int) -> None:
        festival = self.get_festival(festival_id)
        if festival.status in (FestivalStatus.COMPLETED, FestivalStatus.CANCELLED):
            raise ValueError("This festival is over.")
        participant = self._participant(festival, player)
        if participant is None:
            raise ValueError("You are not participating in this festival.")

        self.session.delete(participant)
        self.session.commit()

    def upcoming_festivals(
        self, location_type: str | None = None, location_id: int | None = None
    ) -> list[Festival]:
        query = self.session.query(Festival).filter(
            Festival.status.in_([FestivalStatus.SCHEDULED, FestivalStatus.ACTIVE])
        )
        if location_type and location_id:
            query = query.filter(
                Festival.location_type == location_type, Festival.location_id == location_id
            )
        return query.order_by(Festival.starts_at).all()

    def process_festivals(self, now: datetime | None = None) -> dict[str, Any]:
        """Start due festivals and complete finished ones."""
        now = now or utc_now()
        started = (
            self.session.query(Festival)
            .filter(Festival.status == FestivalStatus.SCHEDULED, Festival.starts_at <= now)
            .all()
        )
        for festival in started:
            festival.status = FestivalStatus.ACTIVE

        ended = (
            self.session.query(Festival)
            .filter(Festival.status == FestivalStatus.ACTIVE, Festival.ends_at <= now)
            .all()
        )
        for festival in ended:
            self._complete(festival)

        self.session.commit()
        return {"started": len(started), "ended": len(ended)}
