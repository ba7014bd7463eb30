"""Crime, Accusation and Bounty Service for Myrefell.

This module covers everything that happens before and after a court sits:
- Recording crimes and their witnesses
- Filing, reviewing and withdrawing accusations
- Posting, cancelling, claiming and expiring bounties
- Royal pardons
- Jail releases and punishment status queries (jailed, outlawed, exiled)
- The crime type catalog

Trials themselves are handled by :mod:`myrefell.services.trial_service`.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from myrefell.domain import rules
from myrefell.domain.enums import (
    AccusationStatus,
    BountyStatus,
    CaptureType,
    CrimeSeverity,
    CrimeStatus,
    ExileStatus,
    OutlawStatus,
    PunishmentStatus,
    ReviewDecision,
    TransactionType,
    TrialStatus,
)
from myrefell.interfaces import ILocationService, ITreasuryService, ITrialService
from myrefell.models import (
    Accusation,
    Bounty,
    Crime,
    CrimeType,
    CrimeWitness,
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

PLAYER_POSTER = "player"
RECENT_PUNISHMENTS = 10


class CrimeService:
    """Service for accusations, bounties, pardons and punishment status."""

    def __init__(
        self,
        session: Session,
        trials: ITrialService,
        treasury: ITreasuryService,
        locations: ILocationService,
    ):
        self.session = session
        self.trials = trials
        self.treasury = treasury
        self.locations = locations

    def _get_player(self, player_id: int) -> Player:
        player = self.session.get(Player, player_id)
        if player is None:
            raise NotFoundError(f"Player {player_id} not found.")
        return player

    # ------------------------------------------------------------------
    # Crimes
    # ------------------------------------------------------------------

    def commit_crime(
        self,
        perpetrator: Player,
        crime_type_slug: str,
        location_type: str,
        location_id: int,
        victim_id: int | None = None,
        description: str | None = None,
        evidence: dict[str, Any] | None = None,
        witness_ids: list[int] | None = None,
    ) -> Crime:
        """Record a crime. Witnessed crimes are reported at once, others go undetected."""
        crime_type = (
            self.session.query(CrimeType).filter(CrimeType.slug == crime_type_slug).first()
        )
        if crime_type is None:
            raise ValueError("Invalid crime type.")
        if not self.locations.exists(location_type, location_id):
            raise ValueError("Invalid location.")
        if victim_id is not None:
            self._get_player(victim_id)
        witnesses = []
        for witness_id in dict.fromkeys(witness_ids or []):
            if witness_id == perpetrator.id:
                raise ValueError("You cannot witness your own crime.")
            witnesses.append(self._get_player(witness_id))

        now = utc_now()
        try:
            crime = Crime(
                crime_type=crime_type,
                perpetrator_id=perpetrator.id,
                victim_id=victim_id,
                location_type=location_type,
                location_id=location_id,
                description=description,
                evidence=evidence or {},
                status=CrimeStatus.REPORTED if witnesses else CrimeStatus.UNDETECTED,
                committed_at=now,
                detected_at=now if witnesses else None,
            )
            self.session.add(crime)
            for witness in witnesses:
                crime.witnesses.append(CrimeWitness(witness_id=witness.id, is_npc=False))
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            "Crime recorded",
            extra={
                "crime_id": crime.id,
                "crime_type": crime_type.slug,
                "perpetrator_id": perpetrator.id,
                "witnesses": len(witnesses),
            },
        )
        return crime

    # ------------------------------------------------------------------
    # Accusations
    # ------------------------------------------------------------------

    def file_accusation(
        self,
        accuser: Player,
        accused_id: int,
        crime_type_slug: str,
        accusation_text: str,
        evidence: dict[str, Any] | None = None,
        crime_id: int | None = None,
    ) -> Accusation:
        """File an accusation at the accuser's current location.

        ``crime_id`` links the accusation to an already recorded crime by the
        accused; accepting it then sends that crime to trial.
        """
        crime_type = (
            self.session.query(CrimeType).filter(CrimeType.slug == crime_type_slug).first()
        )
        if crime_type is None:
            raise ValueError("Invalid crime type.")
        if accuser.id == accused_id:
            raise ValueError("You cannot accuse yourself.")
        self._get_player(accused_id)
        if accuser.current_location_type is None or accuser.current_location_id is None:
            raise ValueError("You must be at a location to file an accusation.")
        if crime_id is not None:
            crime = self.session.get(Crime, crime_id)
            if crime is None:
                raise NotFoundError(f"Crime {crime_id} not found.")
            if crime.perpetrator_id != accused_id or crime.crime_type_id != crime_type.id:
                raise ValueError("That crime was not committed by the accused.")
            if crime.status == CrimeStatus.RESOLVED:
                raise ValueError("That crime has already been resolved.")

        existing = (
            self.session.query(Accusation)
            .filter(
                Accusation.accuser_id == accuser.id,
                Accusation.accused_id == accused_id,
                Accusation.crime_type_id == crime_type.id,
                Accusation.status == AccusationStatus.PENDING,
            )
            .first()
        )
        if existing is not None:
            raise ValueError(
                "You already have a pending accusation against this person for this crime."
            )

        accusation = Accusation(
            crime_id=crime_id,
            accuser_id=accuser.id,
            accused_id=accused_id,
            crime_type_id=crime_type.id,
            location_type=accuser.current_location_type,
            location_id=accuser.current_location_id,
            accusation_text=accusation_text,
            evidence_provided=evidence or {},
            status=AccusationStatus.PENDING,
        )
        self.session.add(accusation)
        self.session.commit()
        return accusation

    def get_accusation(self, accusation_id: int) -> Accusation:
        accusation = self.session.get(Accusation, accusation_id)
        if accusation is None:
            raise NotFoundError(f"Accusation {accusation_id} not found.")
        return accusation

    def review_accusation(
        self,
        reviewer: Player,
        accusation_id: int,
        decision: str,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """Accept, reject or mark an accusation as false.

        Accepting creates the crime record (unless one is linked already) and
        schedules its trial.

        Returns:
            Dictionary with the accusation status and the trial id, if any
        """
        accusation = self.get_accusation(accusation_id)
        if accusation.status != AccusationStatus.PENDING:
            raise ValueError("This accusation has already been reviewed.")
        if not self.trials.has_judicial_authority(
            reviewer, accusation.location_type, accusation.location_id
        ):
            raise ForbiddenError("You do not have authority to review accusations here.")
        if decision not in set(ReviewDecision):
            raise ValueError(f"Unknown decision '{decision}'.")

        trial = None
        try:
            now = utc_now()
            accusation.reviewed_by = reviewer.id
            accusation.review_notes = notes
            accusation.reviewed_at = now

            if decision == ReviewDecision.ACCEPT:
                accusation.status = AccusationStatus.ACCEPTED
                crime = accusation.crime
                if crime is None:
                    crime = Crime(
                        crime_type=accusation.crime_type,
                        perpetrator_id=accusation.accused_id,
                        victim_id=accusation.accuser_id,
                        location_type=accusation.location_type,
                        location_id=accusation.location_id,
                        description=accusation.accusation_text,
                        evidence=accusation.evidence_provided,
                        status=CrimeStatus.TRIAL_PENDING,
                        committed_at=accusation.created_at or now,
                        detected_at=now,
                    )
                    self.session.add(crime)
                    self.session.flush()
                    accusation.crime = crime
                trial = self.trials.schedule_trial(crime, accusation)
            elif decision == ReviewDecision.REJECT:
                accusation.status = AccusationStatus.REJECTED
            else:
                accusation.status = AccusationStatus.FALSE_ACCUSATION

            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return {
            "accusation_id": accusation.id,
            "status": accusation.status,
            "crime_id": accusation.crime_id,
            "trial_id": trial.id if trial is not None else None,
        }

    def withdraw_accusation(self, player: Player, accusation_id: int) -> Accusation:
        accusation = self.get_accusation(accusation_id)
        if accusation.accuser_id != player.id:
            raise ForbiddenError("This is not your accusation.")
        if accusation.status != AccusationStatus.PENDING:
            raise ValueError("Only pending accusations can be withdrawn.")

        accusation.status = AccusationStatus.WITHDRAWN
        self.session.commit()
        return accusation

    def pending_accusations_for(self, reviewer: Player) -> list[Accusation]:
        """Pending accusations at every location the reviewer may judge."""
        query = self.session.query(Accusation).filter(
            Accusation.status == AccusationStatus.PENDING
        )
        if reviewer.is_admin:
            return query.order_by(Accusation.id.desc()).all()

        seats = {
            (held.location_type, held.location_id)
            for held in self.session.query(PlayerRole)
            .filter(PlayerRole.player_id == reviewer.id, PlayerRole.is_active.is_(True))
            .all()
            if held.role.slug in rules.JUDGE_ROLES.get(held.location_type, ())
        }
        return [
            accusation
            for accusation in query.order_by(Accusation.id.desc()).all()
            if (accusation.location_type, accusation.location_id) in seats
        ]

    # ------------------------------------------------------------------
    # Bounties
    # ------------------------------------------------------------------

    def post_bounty(
        self,
        poster: Player,
        target_id: int,
        reward_amount: int,
        capture_type: str = CaptureType.DEAD_OR_ALIVE,
        reason: str = "",
    ) -> Bounty:
        """Post a player bounty. The reward is held from the poster up front."""
        if reward_amount < rules.MIN_BOUNTY_REWARD or reward_amount > rules.MAX_BOUNTY_REWARD:
            raise ValueError(
                f"Reward must be between {rules.MIN_BOUNTY_REWARD} "
                f"and {rules.MAX_BOUNTY_REWARD} gold."
            )
        if capture_type not in set(CaptureType):
            raise ValueError(f"Unknown capture type '{capture_type}'.")
        if poster.id == target_id:
            raise ValueError("You cannot post a bounty on yourself.")
        self._get_player(target_id)
        if poster.gold < reward_amount:
            raise ValueError("You do not have enough gold to post this bounty.")

        poster.gold -= reward_amount
        bounty = Bounty(
            target_id=target_id,
            posted_by=poster.id,
            poster_type=PLAYER_POSTER,
            reward_amount=reward_amount,
            capture_type=capture_type,
            reason=reason,
            status=BountyStatus.ACTIVE,
            expires_at=utc_now() + timedelta(days=rules.BOUNTY_DURATION_DAYS),
        )
        self.session.add(bounty)
        self.session.commit()
        return bounty

    def get_bounty(self, bounty_id: int) -> Bounty:
        bounty = self.session.get(Bounty, bounty_id)
        if bounty is None:
            raise NotFoundError(f"Bounty {bounty_id} not found.")
        return bounty

    def cancel_bounty(self, player: Player, bounty_id: int) -> Bounty:
        bounty = self.get_bounty(bounty_id)
        if bounty.poster_type != PLAYER_POSTER or bounty.posted_by != player.id:
            raise ForbiddenError("This is not your bounty.")
        if bounty.status != BountyStatus.ACTIVE:
            raise ValueError("This bounty is no longer active.")

        bounty.status = BountyStatus.CANCELLED
        player.gold += bounty.reward_amount
        self.session.commit()
        return bounty

    def claim_bounty(self, claimant: Player, bounty_id: int) -> Bounty:
        """Claim an active bounty on a target standing at the claimant's location.

        Player bounties pay out the reward held at posting time; location
        bounties are paid from the posting location's treasury.
        """
        bounty = self.get_bounty(bounty_id)
        now = utc_now()
        if bounty.status != BountyStatus.ACTIVE or (
            bounty.expires_at is not None and bounty.expires_at <= now
        ):
            raise ValueError("This bounty is no longer active.")
        if claimant.id == bounty.target_id:
            raise ValueError("You cannot claim a bounty on yourself.")
        if bounty.posted_by is not None and claimant.id == bounty.posted_by:
            raise ValueError("You cannot claim your own bounty.")

        target = bounty.target
        if claimant.is_traveling or target.is_traveling:
            raise ValueError("You must both be at the same location.")
        if claimant.current_location_type is None or claimant.current_location_id is None:
            raise ValueError("You must both be at the same location.")
        if (claimant.current_location_type, claimant.current_location_id) != (
            target.current_location_type,
            target.current_location_id,
        ):
            raise ValueError("You must both be at the same location.")
        if bounty.capture_type == CaptureType.DEAD and not target.is_dead:
            raise ValueError("This bounty requires the target dead.")
        if bounty.capture_type == CaptureType.ALIVE and target.is_dead:
            raise ValueError("This bounty requires the target alive.")

        try:
            if bounty.poster_type != PLAYER_POSTER:
                treasury = self.treasury.get_treasury(
                    bounty.poster_type, bounty.poster_location_id
                )
                self.treasury.withdraw(
                    treasury,
                    bounty.reward_amount,
                    TransactionType.BOUNTY,
                    f"Bounty on {target.username} claimed by {claimant.username}",
                    claimant.id,
                )
            claimant.gold += bounty.reward_amount
            bounty.status = BountyStatus.CLAIMED
            bounty.claimed_by = claimant.id
            bounty.claimed_at = now

            outlaw_status = OutlawStatus.KILLED if target.is_dead else OutlawStatus.CAPTURED
            for outlaw in (
                self.session.query(Outlaw)
                .filter(Outlaw.player_id == target.id, Outlaw.status == OutlawStatus.ACTIVE)
                .all()
            ):
                outlaw.status = outlaw_status

            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return bounty

    def active_bounties(self, target_id: int | None = None) -> list[Bounty]:
        query = self.session.query(Bounty).filter(Bounty.status == BountyStatus.ACTIVE)
        if target_id is not None:
            query = query.filter(Bounty.target_id == target_id)
        now = utc_now()
        return [
            bounty
            for bounty in query.order_by(Bounty.reward_amount.desc(), Bounty.id).all()
            if bounty.expires_at is None or bounty.expires_at > now
        ]

    def expire_bounties(self, now: datetime | None = None) -> int:
        """Expire overdue bounties, refunding player posters. Returns the count."""
        now = now or utc_now()
        overdue = (
            self.session.query(Bounty)
            .filter(
                Bounty.status == BountyStatus.ACTIVE,
                Bounty.expires_at.is_not(None),
                Bounty.expires_at <= now,
            )
            .all()
        )
        for bounty in overdue:
            bounty.status = BountyStatus.EXPIRED
            if bounty.poster_type == PLAYER_POSTER and bounty.poster is not None:
                bounty.poster.gold += bounty.reward_amount
        self.session.commit()
        return len(overdue)

    # ------------------------------------------------------------------
    # Pardons
    # ------------------------------------------------------------------

    def can_pardon(self, player: Player) -> bool:
        if player.is_admin:
            return True
        return (
            self.session.query(PlayerRole)
            .join(Role, PlayerRole.role_id == Role.id)
            .filter(
                PlayerRole.player_id == player.id,
                PlayerRole.is_active.is_(True),
                Role.slug.in_(rules.PARDON_ROLES),
            )
            .first()
            is not None
        )

    def pardon(self, player: Player, punishment_id: int, notes: str | None = None) -> Punishment:
        """Pardon a punishment, ending any jail term, outlawry or exile it caused."""
        if not self.can_pardon(player):
            raise ForbiddenError("You do not have the authority to issue pardons.")
        punishment = self.session.get(Punishment, punishment_id)
        if punishment is None:
            raise NotFoundError(f"Punishment {punishment_id} not found.")
        if punishment.status in (PunishmentStatus.COMPLETED, PunishmentStatus.PARDONED):
            raise ValueError("This punishment has already been completed or pardoned.")

        now = utc_now()
        punishment.status = PunishmentStatus.PARDONED
        punishment.completed_at = now
        if notes:
            punishment.notes = notes

        for inmate in (
            self.session.query(JailInmate)
            .filter(JailInmate.punishment_id == punishment.id, JailInmate.released_at.is_(None))
            .all()
        ):
            inmate.released_at = now
        for outlaw in self.session.query(Outlaw).filter(Outlaw.punishment_id == punishment.id):
            if outlaw.status == OutlawStatus.ACTIVE:
                outlaw.status = OutlawStatus.PARDONED
        for exile in self.session.query(Exile).filter(Exile.punishment_id == punishment.id):
            if exile.status == ExileStatus.ACTIVE:
                exile.status = ExileStatus.PARDONED

        self.session.commit()
        return punishment

    # ------------------------------------------------------------------
    # Status queries
    # ------------------------------------------------------------------

    def is_jailed(self, player: Player) -> bool:
        return (
            self.session.query(JailInmate.id)
            .filter(
                JailInmate.prisoner_id == player.id,
                JailInmate.released_at.is_(None),
                JailInmate.escaped.is_(False),
            )
            .first()
            is not None
        )

    def is_outlaw(self, player: Player) -> bool:
        return (
            self.session.query(Outlaw.id)
            .filter(Outlaw.player_id == player.id, Outlaw.status == OutlawStatus.ACTIVE)
            .first()
            is not None
        )

    def is_exiled_from(self, player: Player, location_type: str, location_id: int) -> bool:
        """True if an active exile covers the location or a barony/kingdom containing it."""
        now = utc_now()
        exiles = (
            self.session.query(Exile)
            .filter(Exile.player_id == player.id, Exile.status == ExileStatus.ACTIVE)
            .all()
        )
        return any(
            (exile.expires_at is None or exile.expires_at > now)
            and self.locations.is_within(
                exile.exiled_from_type, exile.exiled_from_id, location_type, location_id
            )
            for exile in exiles
        )

    def player_status(self, player: Player) -> dict[str, Any]:
        """Everything the courts currently hold against a player."""
        now = utc_now()
        inmate = (
            self.session.query(JailInmate)
            .filter(
                JailInmate.prisoner_id == player.id,
                JailInmate.released_at.is_(None),
                JailInmate.escaped.is_(False),
            )
            .first()
        )
        jail = None
        if inmate is not None:
            jail = {
                "location_type": inmate.jail_location_type,
                "location_id": inmate.jail_location_id,
                "location_name": self.locations.name_of(
                    inmate.jail_location_type, inmate.jail_location_id
                ),
                "release_at": inmate.release_at,
                "remaining_days": max(0, (inmate.release_at - now).days),
            }

        outlaw = (
            self.session.query(Outlaw)
            .filter(Outlaw.player_id == player.id, Outlaw.status == OutlawStatus.ACTIVE)
            .first()
        )
        outlawry = None
        if outlaw is not None:
            outlawry = {
                "declared_by": self.locations.name_of(
                    outlaw.declared_by_type, outlaw.declared_by_id
                ),
                "reason": outlaw.reason,
                "expires_at": outlaw.expires_at,
            }

        exiles = [
            {
                "id": exile.id,
                "location_type": exile.exiled_from_type,
                "location_id": exile.exiled_from_id,
                "location_name": self.locations.name_of(
                    exile.exiled_from_type, exile.exiled_from_id
                ),
                "reason": exile.reason,
                "expires_at": exile.expires_at,
                "is_permanent": exile.expires_at is None,
            }
            for exile in self.session.query(Exile)
            .filter(Exile.player_id == player.id, Exile.status == ExileStatus.ACTIVE)
            .order_by(Exile.id)
            .all()
            if exile.expires_at is None or exile.expires_at > now
        ]

        bounties = [
            {
                "id": bounty.id,
                "reward": bounty.reward_amount,
                "capture_type": bounty.capture_type,
                "reason": bounty.reason,
                "posted_by": (
                    bounty.poster.username
                    if bounty.poster_type == PLAYER_POSTER and bounty.poster is not None
                    else bounty.poster_type
                ),
            }
            for bounty in self.active_bounties(player.id)
        ]

        punishments = [
            {
                "id": punishment.id,
                "type": punishment.type,
                "status": punishment.status,
                "crime": (
                    punishment.trial.crime.crime_type.name
                    if punishment.trial is not None
                    else None
                ),
                "created_at": punishment.created_at,
            }
            for punishment in self.session.query(Punishment)
            .filter(Punishment.criminal_id == player.id)
            .order_by(Punishment.id.desc())
            .limit(RECENT_PUNISHMENTS)
            .all()
        ]

        trials = [
            {
                "id": trial.id,
                "crime": trial.crime.crime_type.name,
                "court_level": trial.court_level,
                "status": trial.status,
                "judge": trial.judge.username if trial.judge is not None else None,
                "scheduled_at": trial.scheduled_at,
            }
            for trial in self.session.query(Trial)
            .filter(
                Trial.defendant_id == player.id,
                Trial.status.in_(
                    [
                        TrialStatus.SCHEDULED,
                        TrialStatus.IN_PROGRESS,
                        TrialStatus.AWAITING_VERDICT,
                    ]
                ),
            )
            .order_by(Trial.id)
            .all()
        ]

        return {
            "is_jailed": jail is not None,
            "is_outlaw": outlawry is not None,
            "jail": jail,
            "outlaw": outlawry,
            "exiles": exiles,
            "bounties": bounties,
            "punishments": punishments,
            "pending_trials": trials,
        }

    def crime_types(self) -> list[CrimeType]:
        """The crime catalog, lightest offences first."""
        rank = {severity: index for index, severity in enumerate(CrimeSeverity)}
        return sorted(
            self.session.query(CrimeType).all(),
            key=lambda crime_type: (rank.get(crime_type.severity, len(rank)), crime_type.name),
        )

    def process_jail_releases(self, now: datetime | None = None) -> int:
        """Release inmates whose sentence is over and complete their punishments."""
        now = now or utc_now()
        due = (
            self.session.query(JailInmate)
            .filter(
                JailInmate.released_at.is_(None),
                JailInmate.escaped.is_(False),
                JailInmate.release_at <= now,
            )
            .all()
        )
        for inmate in due:
            inmate.released_at = now
            punishment = inmate.punishment
            if punishment.status == PunishmentStatus.ACTIVE:
                punishment.status = PunishmentStatus.COMPLETED
                punishment.completed_at = now
        self.session.commit()
        return len(due)
