"""Court and Trial Service for Myrefell.

Trials move through a fixed set of states:

    scheduled -> awaiting_verdict (defense submitted) -> concluded -> appealed

A trial is heard by the court named on its crime type. Village verdicts can
be appealed to the barony court and barony verdicts to the kingdom court;
kingdom and church verdicts are final. Exactly one verdict is rendered per
trial: once concluded, a trial never takes another verdict.
"""

import logging
import math
from datetime import timedelta
from typing import Any

from sqlalchemy.orm import Session

from myrefell.domain import rules
from myrefell.domain.enums import (
    BountyStatus,
    CaptureType,
    CourtLevel,
    CrimeStatus,
    ExileStatus,
    LocationType,
    OutlawStatus,
    PunishmentStatus,
    PunishmentType,
    TransactionType,
    TrialStatus,
    Verdict,
)
from myrefell.interfaces import ILocationService, ITreasuryService
from myrefell.models import (
    Accusation,
    Bounty,
    Crime,
    Exile,
    JailInmate,
    Outlaw,
    Player,
    PlayerRole,
    Punishment,
    Role,
    Trial,
    utc_now,
)
from myrefell.services.errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)

CLOSED_TRIAL_STATUSES = (TrialStatus.CONCLUDED, TrialStatus.APPEALED, TrialStatus.DISMISSED)
SENTENCE_TYPES = (
    PunishmentType.FINE,
    PunishmentType.JAIL,
    PunishmentType.EXILE,
    PunishmentType.OUTLAWRY,
    PunishmentType.EXECUTION,
    PunishmentType.COMMUNITY_SERVICE,
)


class TrialService:
    """Service for scheduling trials, verdicts, sentences and appeals."""

    def __init__(
        self, session: Session, treasury: ITreasuryService, locations: ILocationService
    ):
        self.session = session
        self.treasury = treasury
        self.locations = locations

    # ------------------------------------------------------------------
    # Judges
    # ------------------------------------------------------------------

    def _active_roles(self, slugs: tuple[str, ...]):
        return (
            self.session.query(PlayerRole)
            .join(Role, PlayerRole.role_id == Role.id)
            .filter(PlayerRole.is_active.is_(True), Role.slug.in_(slugs))
            .order_by(PlayerRole.id)
        )

    def has_judicial_authority(
        self, player: Player, location_type: str, location_id: int
    ) -> bool:
        """True if the player may judge at a village, barony or kingdom."""
        if player.is_admin:
            return True

        slugs = rules.JUDGE_ROLES.get(location_type)
        if not slugs or location_type == CourtLevel.CHURCH:
            return False

        return (
            self._active_roles(slugs)
            .filter(
                PlayerRole.player_id == player.id,
                PlayerRole.location_type == location_type,
                PlayerRole.location_id == location_id,
            )
            .first()
            is not None
        )

    def court_seat(
        self, court_level: str, location_type: str, location_id: int
    ) -> tuple[str, int]:
        """Return the location where ``court_level`` sits for a crime location.

        Village and church courts sit where the crime happened; barony and
        kingdom courts sit at the location's barony and kingdom.
        """
        if court_level == CourtLevel.BARONY:
            barony = self.locations.barony_of(location_type, location_id)
            if barony is not None:
                return LocationType.BARONY, barony.id
        elif court_level == CourtLevel.KINGDOM:
            kingdom = self.locations.kingdom_of(location_type, location_id)
            if kingdom is not None:
                return LocationType.KINGDOM, kingdom.id
        return location_type, location_id

    def find_judge(self, court_level: str, location_type: str, location_id: int) -> int | None:
        """Return the player id of the first active judge for the court, if any."""
        slugs = rules.JUDGE_ROLES.get(court_level, ())
        if not slugs:
            return None

        query = self._active_roles(slugs)
        if court_level != CourtLevel.CHURCH:
            query = query.filter(
                PlayerRole.location_type == location_type,
                PlayerRole.location_id == location_id,
            )
        holder = query.first()
        return holder.player_id if holder is not None else None

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule_trial(
        self,
        crime: Crime,
        accusation: Accusation | None = None,
        court_level: str | None = None,
        appeal_of: Trial | None = None,
    ) -> Trial:
        """Create a scheduled trial for ``crime``. Does not commit.

        Args:
            crime: The crime being tried
            accusation: Accusation that led to the trial, if any
            court_level: Override for the court (used by appeals)
            appeal_of: Trial being appealed, if any

        Returns:
            The new Trial
        """
        level = court_level or crime.crime_type.court_level
        seat_type, seat_id = self.court_seat(level, crime.location_type, crime.location_id)

        trial = Trial(
            crime_id=crime.id,
            accusation_id=accusation.id if accusation is not None else None,
            appeal_of_id=appeal_of.id if appeal_of is not None else None,
            defendant_id=crime.perpetrator_id,
            judge_id=self.find_judge(level, seat_type, seat_id),
            court_level=level,
            location_type=seat_type,
            location_id=seat_id,
            status=TrialStatus.SCHEDULED,
            scheduled_at=utc_now() + timedelta(days=rules.TRIAL_DELAY_DAYS),
        )
        crime.status = CrimeStatus.TRIAL_PENDING
        self.session.add(trial)
        self.session.flush()
        return trial

    def get_trial(self, trial_id: int) -> Trial:
        trial = self.session.get(Trial, trial_id)
        if trial is None:
            raise NotFoundError(f"Trial {trial_id} not found.")
        return trial

    def pending_trials_for_judge(self, judge: Player) -> list[Trial]:
        return (
            self.session.query(Trial)
            .filter(
                Trial.judge_id == judge.id,
                Trial.status.in_(
                    [TrialStatus.SCHEDULED, TrialStatus.IN_PROGRESS, TrialStatus.AWAITING_VERDICT]
                ),
            )
            .order_by(Trial.scheduled_at)
            .all()
        )

    # ------------------------------------------------------------------
    # Proceedings
    # ------------------------------------------------------------------

    def submit_defense(self, player: Player, trial_id: int, argument: str) -> Trial:
        trial = self.get_trial(trial_id)
        if trial.defendant_id != player.id:
            raise ForbiddenError("Only the defendant may submit a defense.")
        if trial.status not in (TrialStatus.SCHEDULED, TrialStatus.IN_PROGRESS):
            raise ValueError("This trial is not accepting a defense.")
        if not argument or not argument.strip():
            raise ValueError("A defense argument is required.")

        trial.defense_argument = argument.strip()
        if trial.started_at is None:
            trial.started_at = utc_now()
        trial.status = TrialStatus.AWAITING_VERDICT
        self.session.commit()
        return trial

    def render_verdict(
        self,
        judge: Player,
        trial_id: int,
        verdict: str,
        reasoning: str,
        punishments: list[dict[str, Any]] | None = None,
    ) -> Trial:
        """Conclude a trial, applying punishments on a guilty verdict.

        Args:
            judge: The acting judge (or an admin)
            trial_id: Trial to conclude
            verdict: guilty, not_guilty or dismissed
            reasoning: Written reasoning
            punishments: Sentence dicts with ``type`` and optional ``fine_amount``,
                ``jail_days``, ``exile_from_type``, ``exile_from_id``,
                ``community_service_hours``, ``notes``

        Raises:
            ForbiddenError: If the caller is not the trial's judge
            ValueError: If the trial is closed or a sentence is not allowed
        """
        trial = self.get_trial(trial_id)
        if trial.judge_id != judge.id and not judge.is_admin:
            raise ForbiddenError("You are not the judge in this trial.")
        if trial.status in CLOSED_TRIAL_STATUSES:
            raise ValueError("This trial has already concluded.")
        if verdict not in set(Verdict):
            raise ValueError(f"Unknown verdict '{verdict}'.")

        sentences = list(punishments or []) if verdict == Verdict.GUILTY else []
        crime_type = trial.crime.crime_type
        for sentence in sentences:
            kind = sentence.get("type")
            if kind not in SENTENCE_TYPES:
                raise ValueError(f"Unknown punishment type '{kind}'.")
            if kind == PunishmentType.OUTLAWRY and not crime_type.can_be_outlawed:
                raise ValueError(f"{crime_type.name} cannot be punished with outlawry.")
            if kind == PunishmentType.EXECUTION and not crime_type.can_be_executed:
                raise ValueError(f"{crime_type.name} cannot be punished with execution.")

        try:
            now = utc_now()
            trial.verdict = verdict
            trial.verdict_reasoning = reasoning
            trial.concluded_at = now
            trial.status = TrialStatus.CONCLUDED
            if trial.started_at is None:
                trial.started_at = now
            trial.crime.status = CrimeStatus.RESOLVED

            for sentence in sentences:
                self._apply_punishment(trial, judge, sentence)

            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            "Verdict rendered",
            extra={
                "trial_id": trial.id,
                "verdict": verdict,
                "punishments": [s.get("type") for s in sentences],
            },
        )
        return trial

    # ------------------------------------------------------------------
    # Punishments
    # ------------------------------------------------------------------

    def _apply_punishment(self, trial: Trial, judge: Player, data: dict[str, Any]) -> Punishment:
        crime_type = trial.crime.crime_type
        kind = data["type"]
        punishment = Punishment(
            trial_id=trial.id,
            criminal_id=trial.defendant_id,
            issued_by=judge.id,
            type=kind,
            fine_amount=data.get("fine_amount"),
            jail_days=data.get("jail_days"),
            exile_from_type=data.get("exile_from_type"),
            exile_from_id=data.get("exile_from_id"),
            community_service_hours=data.get("community_service_hours"),
            status=PunishmentStatus.PENDING,
            notes=data.get("notes"),
        )
        self.session.add(punishment)
        self.session.flush()

        criminal = trial.defendant
        if kind == PunishmentType.FINE:
            if punishment.fine_amount is None:
                punishment.fine_amount = crime_type.base_fine
            self._execute_fine(punishment, trial, criminal)
        elif kind == PunishmentType.JAIL:
            if not punishment.jail_days:
                punishment.jail_days = max(1, crime_type.base_jail_days)
            self._execute_jail(punishment, trial, criminal)
        elif kind == PunishmentType.EXILE:
            self._execute_exile(punishment, trial, criminal)
        elif kind == PunishmentType.OUTLAWRY:
            self._execute_outlawry(punishment, trial, criminal)
        elif kind == PunishmentType.EXECUTION:
            self._activate(punishment)
            criminal.hp = 0
            criminal.is_dead = True
            self._complete(punishment)
        else:
            self._activate(punishment)
        return punishment

    @staticmethod
    def _activate(punishment: Punishment) -> None:
        punishment.status = PunishmentStatus.ACTIVE
        punishment.starts_at = utc_now()

    @staticmethod
    def _complete(punishment: Punishment) -> None:
        punishment.status = PunishmentStatus.COMPLETED
        punishment.completed_at = utc_now()

    def _execute_fine(self, punishment: Punishment, trial: Trial, criminal: Player) -> None:
        amount = punishment.fine_amount or 0
        if criminal.gold >= amount:
            criminal.gold -= amount
            if amount > 0:
                treasury = self.treasury.get_treasury(trial.location_type, trial.location_id)
                self.treasury.deposit(
                    treasury,
                    amount,
                    TransactionType.FINE,
                    f"Fine from {criminal.username}",
                    criminal.id,
                )
            self._activate(punishment)
            self._complete(punishment)
            return

        # Unpaid remainder is served in jail at 100 gold per day.
        paid = criminal.gold
        jail_days = math.ceil((amount - paid) / rules.FINE_TO_JAIL_DIVISOR)
        if paid > 0:
            criminal.gold = 0
            treasury = self.treasury.get_treasury(trial.location_type, trial.location_id)
            self.treasury.deposit(
                treasury,
                paid,
                TransactionType.FINE,
                f"Partial fine from {criminal.username}",
                criminal.id,
            )
        punishment.type = PunishmentType.JAIL
        punishment.jail_days = jail_days
        punishment.notes = f"Converted from fine of {amount} gold (unable to pay)"
        self._execute_jail(punishment, trial, criminal)

    def _execute_jail(self, punishment: Punishment, trial: Trial, criminal: Player) -> None:
        self._activate(punishment)
        now = utc_now()
        release_at = now + timedelta(days=punishment.jail_days or 0)
        punishment.ends_at = release_at
        self.session.add(
            JailInmate(
                prisoner_id=criminal.id,
                punishment_id=punishment.id,
                jail_location_type=trial.location_type,
                jail_location_id=trial.location_id,
                jailed_at=now,
                release_at=release_at,
                escaped=False,
            )
        )

    def _execute_exile(self, punishment: Punishment, trial: Trial, criminal: Player) -> None:
        self._activate(punishment)
        if punishment.exile_from_type is None or punishment.exile_from_id is None:
            punishment.exile_from_type = trial.location_type
            punishment.exile_from_id = trial.location_id
        self.session.add(
            Exile(
                player_id=criminal.id,
                punishment_id=punishment.id,
                exiled_from_type=punishment.exile_from_type,
                exiled_from_id=punishment.exile_from_id,
                reason=punishment.notes or "Sentenced by court",
                status=ExileStatus.ACTIVE,
                exiled_at=utc_now(),
                expires_at=punishment.ends_at,
            )
        )

    def _execute_outlawry(self, punishment: Punishment, trial: Trial, criminal: Player) -> None:
        self._activate(punishment)
        declared_type, declared_id = trial.location_type, trial.location_id
        if declared_type in (LocationType.VILLAGE, LocationType.TOWN):
            barony = self.locations.barony_of(declared_type, declared_id)
            if barony is not None:
                declared_type, declared_id = LocationType.BARONY, barony.id

        now = utc_now()
        self.session.add(
            Outlaw(
                player_id=criminal.id,
                punishment_id=punishment.id,
                declared_by_type=declared_type,
                declared_by_id=declared_id,
                reason=punishment.notes or "Declared outlaw by court",
                status=OutlawStatus.ACTIVE,
                declared_at=now,
                expires_at=punishment.ends_at,
            )
        )
        self.session.add(
            Bounty(
                target_id=criminal.id,
                crime_id=trial.crime_id,
                poster_type=declared_type,
                poster_location_id=declared_id,
                reward_amount=rules.OUTLAW_BOUNTY_REWARD,
                capture_type=CaptureType.DEAD_OR_ALIVE,
                reason="Wanted outlaw",
                status=BountyStatus.ACTIVE,
                expires_at=now + timedelta(days=rules.BOUNTY_DURATION_DAYS),
            )
        )

    # ------------------------------------------------------------------
    # Appeals
    # ------------------------------------------------------------------

    @staticmethod
    def can_appeal(trial: Trial) -> bool:
        return (
            trial.status == TrialStatus.CONCLUDED
            and trial.verdict == Verdict.GUILTY
            and trial.court_level in rules.APPEAL_COURTS
        )

    def appeal_verdict(self, player: Player, trial_id: int) -> Trial:
        """Appeal a guilty verdict to the next court up.

        Returns:
            The newly scheduled appeal trial
        """
        trial = self.get_trial(trial_id)
        if trial.defendant_id != player.id:
            raise ForbiddenError("Only the defendant may appeal a verdict.")
        if not self.can_appeal(trial):
            raise ValueError("This verdict cannot be appealed.")

        try:
            trial.status = TrialStatus.APPEALED
            appeal = self.schedule_trial(
                trial.crime,
                trial.accusation,
                court_level=rules.APPEAL_COURTS[CourtLevel(trial.court_level)],
                appeal_of=trial,
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return appeal
