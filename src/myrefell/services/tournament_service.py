"""Tournament Service for Myrefell.

Tournaments are single-elimination brackets. Bracket invariants:
- Every active competitor plays exactly once per round (a bye counts as a win)
- Round r holds ceil(remaining / 2) matches
- The bracket finishes with exactly one winner after ceil(log2 n) rounds

Seeding and match rolls come from :mod:`myrefell.utils.rng`, seeded from the
tournament, round and match, so resolving the same match always produces the
same result.
"""

import logging
import math
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from myrefell.domain import rules
from myrefell.domain.enums import CompetitorStatus, MatchStatus, TournamentStatus
from myrefell.models import (
    Festival,
    Player,
    Tournament,
    TournamentCompetitor,
    TournamentMatch,
    TournamentType,
    utc_now,
)
from myrefell.services.errors import ForbiddenError, NotFoundError
from myrefell.utils.rng import generate_seed, roll_dice, shuffled

logger = logging.getLogger(__name__)

PLACES = ("1st", "2nd", "3rd")


class TournamentService:
    """Service for tournament registration and bracket resolution."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_tournament(self, tournament_id: int) -> Tournament:
        tournament = self.session.get(Tournament, tournament_id)
        if tournament is None:
            raise NotFoundError(f"Tournament {tournament_id} not found.")
        return tournament

    def get_match(self, match_id: int) -> TournamentMatch:
        match = self.session.get(TournamentMatch, match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found.")
        return match

    def round_matches(self, tournament: Tournament, round_number: int) -> list[TournamentMatch]:
        return (
            self.session.query(TournamentMatch)
            .filter(
                TournamentMatch.tournament_id == tournament.id,
                TournamentMatch.round_number == round_number,
            )
            .order_by(TournamentMatch.match_number)
            .all()
        )

    def _entrants(self, tournament: Tournament) -> list[TournamentCompetitor]:
        return (
            self.session.query(TournamentCompetitor)
            .filter(
                TournamentCompetitor.tournament_id == tournament.id,
                TournamentCompetitor.status != CompetitorStatus.WITHDREW,
            )
            .order_by(TournamentCompetitor.id)
            .all()
        )

    def open_tournaments(self, now: datetime | None = None) -> dict[str, list[dict[str, Any]]]:
        """Tournaments still taking entrants, and those with a bracket under way."""
        now = now or utc_now()
        registration_open = (
            self.session.query(Tournament)
            .filter(
                Tournament.status == TournamentStatus.REGISTRATION,
                Tournament.registration_ends_at > now,
            )
            .order_by(Tournament.registration_ends_at, Tournament.id)
            .all()
        )
        in_progress = (
            self.session.query(Tournament)
            .filter(Tournament.status == TournamentStatus.IN_PROGRESS)
            .order_by(Tournament.starts_at, Tournament.id)
            .all()
        )
        return {
            "registration_open": [self._summary(t) for t in registration_open],
            "in_progress": [self._summary(t) for t in in_progress],
        }

    def _summary(self, tournament: Tournament) -> dict[str, Any]:
        tournament_type = tournament.tournament_type
        return {
            "id": tournament.id,
            "name": tournament.name,
            "type": tournament_type.slug,
            "combat_type": tournament_type.combat_type,
            "entry_fee": tournament_type.entry_fee,
            "min_level": tournament_type.min_level,
            "max_participants": tournament_type.max_participants,
            "status": tournament.status,
            "location_type": tournament.location_type,
            "location_id": tournament.location_id,
            "festival_id": tournament.festival_id,
            "registration_ends_at": tournament.registration_ends_at,
            "starts_at": tournament.starts_at,
            "prize_pool": tournament.prize_pool,
            "competitor_count": len(self._entrants(tournament)),
        }

    def require_manager(self, player: Player, tournament: Tournament) -> None:
        """Only admins, the sponsor or the host festival's organizer run the bracket."""
        if player.is_admin or tournament.sponsored_by_id == player.id:
            return
        festival = tournament.festival
        if festival is not None and festival.organized_by_id == player.id:
            return
        raise ForbiddenError("You are not organizing this tournament.")

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def create_tournament(
        self,
        tournament_type_slug: str,
        location_type: str,
        location_id: int,
        name: str,
        registration_ends_at: datetime,
        starts_at: datetime,
        festival_id: int | None = None,
        sponsor: Player | None = None,
        sponsor_contribution: int = 0,
    ) -> Tournament:
        """Open a tournament for registration. The sponsor funds the starting prize pool."""
        tournament_type = (
            self.session.query(TournamentType)
            .filter(TournamentType.slug == tournament_type_slug)
            .first()
        )
        if tournament_type is None:
            raise ValueError("Invalid tournament type.")
        if festival_id is not None and self.session.get(Festival, festival_id) is None:
            raise NotFoundError(f"Festival {festival_id} not found.")
        if sponsor_contribution < 0:
            raise ValueError("Sponsor contribution cannot be negative.")
        if sponsor_contribution and sponsor is None:
            raise ValueError("A contribution needs a sponsor.")
        if sponsor is not None and sponsor.gold < sponsor_contribution:
            raise ValueError("The sponsor cannot afford this contribution.")

        if sponsor is not None:
            sponsor.gold -= sponsor_contribution
        tournament = Tournament(
            tournament_type_id=tournament_type.id,
            festival_id=festival_id,
            location_type=location_type,
            location_id=location_id,
            name=name,
            status=TournamentStatus.REGISTRATION,
            registration_ends_at=registration_ends_at,
            starts_at=starts_at,
            prize_pool=sponsor_contribution,
            current_round=0,
            total_rounds=0,
            sponsored_by_id=sponsor.id if sponsor is not None else None,
            sponsor_contribution=sponsor_contribution,
        )
        self.session.add(tournament)
        self.session.commit()
        return tournament

    def register(self, player: Player, tournament_id: int) -> TournamentCompetitor:
        """Register a player, charging the entry fee into the prize pool.

        Raises:
            ValueError: If registration is closed, the player is under-levelled,
                already entered, short of gold, or the bracket is full
        """
        tournament = self.get_tournament(tournament_id)
        tournament_type = tournament.tournament_type
        if (
            tournament.status != TournamentStatus.REGISTRATION
            or tournament.registration_ends_at <= utc_now()
        ):
            raise ValueError("Registration is closed.")
        if player.skill_level("combat_level") < tournament_type.min_level:
            raise ValueError(f"Minimum combat level {tournament_type.min_level} required.")

        existing = (
            self.session.query(TournamentCompetitor)
            .filter(
                TournamentCompetitor.tournament_id == tournament.id,
                TournamentCompetitor.player_id == player.id,
            )
            .first()
        )
        if existing is not None and existing.status != CompetitorStatus.WITHDREW:
            raise ValueError("Already registered for this tournament.")
        if len(self._entrants(tournament)) >= tournament_type.max_participants:
            raise ValueError("Tournament is full.")
        if player.gold < tournament_type.entry_fee:
            raise ValueError(f"Entry fee of {tournament_type.entry_fee} gold required.")

        player.gold -= tournament_type.entry_fee
        tournament.prize_pool += tournament_type.entry_fee
        if existing is not None:
            competitor = existing
            competitor.status = CompetitorStatus.REGISTERED
        else:
            competitor = TournamentCompetitor(
                tournament_id=tournament.id,
                player_id=player.id,
                status=CompetitorStatus.REGISTERED,
                wins=0,
                losses=0,
                prize_won=0,
            )
            self.session.add(competitor)
        self.session.commit()
        return competitor

    def withdraw(self, player: Player, tournament_id: int) -> TournamentCompetitor:
        """Leave a tournament during registration. The entry fee is not refunded."""
        tournament = self.get_tournament(tournament_id)
        if tournament.status != TournamentStatus.REGISTRATION:
            raise ValueError("You can only withdraw during registration.")
        competitor = (
            self.session.query(TournamentCompetitor)
            .filter(
                TournamentCompetitor.tournament_id == tournament.id,
                TournamentCompetitor.player_id == player.id,
                TournamentCompetitor.status == CompetitorStatus.REGISTERED,
            )
            .first()
        )
        if competitor is None:
            raise ValueError("You are not registered for this tournament.")

        competitor.status = CompetitorStatus.WITHDREW
        self.session.commit()
        return competitor

    # ------------------------------------------------------------------
    # Bracket
    # ------------------------------------------------------------------

    def _create_round(
        self, tournament: Tournament, round_number: int, competitors: list[TournamentCompetitor]
    ) -> list[TournamentMatch]:
        """Pair competitors in order; an odd one out gets a bye."""
        matches = []
        for index in range(0, len(competitors), 2):
            pair = competitors[index : index + 2]
            match = TournamentMatch(
                tournament_id=tournament.id,
                round_number=round_number,
                match_number=index // 2 + 1,
                competitor1_id=pair[0].id,
                competitor2_id=pair[1].id if len(pair) > 1 else None,
                status=MatchStatus.PENDING,
                competitor1_score=0,
                competitor2_score=0,
            )
            self.session.add(match)
            matches.append(match)
        self.session.flush()
        return matches

    def start_tournament(self, tournament_id: int) -> dict[str, Any]:
        tournament = self.get_tournament(tournament_id)
        if tournament.status != TournamentStatus.REGISTRATION:
            raise ValueError("Tournament not in registration phase.")
        entrants = self._entrants(tournament)
        if len(entrants) < 2:
            raise ValueError("Need at least 2 competitors.")

        try:
            total_rounds = math.ceil(math.log2(len(entrants)))
            order = shuffled(generate_seed("bracket", tournament.id), entrants)
            for seed, competitor in enumerate(order, start=1):
                competitor.seed = seed
                competitor.status = CompetitorStatus.ACTIVE
            matches = self._create_round(tournament, 1, order)

            tournament.status = TournamentStatus.IN_PROGRESS
            tournament.current_round = 1
            tournament.total_rounds = total_rounds
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return {
            "tournament_id": tournament.id,
            "total_rounds": total_rounds,
            "matches": len(matches),
        }

    def _stat(self, competitor: TournamentCompetitor, primary_stat: str) -> int:
        return competitor.player.skill_level(primary_stat)

    def resolve_match(self, match_id: int) -> dict[str, Any]:
        """Resolve a pending match: a bye advances competitor 1, otherwise best of three.

        Each exchange is 1d100 plus the type's primary stat for each side, the
        higher total taking the exchange (competitor 2 takes ties).
        """
        match = self.get_match(match_id)
        tournament = match.tournament
        if tournament.status != TournamentStatus.IN_PROGRESS:
            raise ValueError("Tournament is not in progress.")
        if match.status != MatchStatus.PENDING:
            raise ValueError("Match not pending.")

        now = utc_now()
        if match.is_bye:
            match.winner_id = match.competitor1_id
            match.status = MatchStatus.COMPLETED
            match.completed_at = now
            match.competitor1.wins += 1
            self.session.commit()
            return {"match_id": match.id, "winner_id": match.competitor1_id, "bye": True}

        tournament_type = tournament.tournament_type
        first, second = match.competitor1, match.competitor2
        first_stat = self._stat(first, tournament_type.primary_stat)
        second_stat = self._stat(second, tournament_type.primary_stat)

        first_score = 0
        second_score = 0
        combat_log = []
        for exchange in range(1, rules.MATCH_EXCHANGES + 1):
            base = ("match", tournament.id, match.round_number, match.match_number, exchange)
            first_roll = roll_dice(generate_seed(*base, 1), rules.MATCH_ROLL)
            second_roll = roll_dice(generate_seed(*base, 2), rules.MATCH_ROLL)
            first_total = first_roll["total"] + first_stat
            second_total = second_roll["total"] + second_stat
            if first_total > second_total:
                first_score += 1
            else:
                second_score += 1
            combat_log.append(
                {
                    "exchange": exchange,
                    "competitor1_total": first_total,
                    "competitor2_total": second_total,
                    "winner": 1 if first_total > second_total else 2,
                    "seeds": [first_roll["seed"], second_roll["seed"]],
                }
            )

        winner, loser = (first, second) if first_score > second_score else (second, first)
        try:
            match.winner_id = winner.id
            match.status = MatchStatus.COMPLETED
            match.competitor1_score = first_score
            match.competitor2_score = second_score
            match.combat_log = combat_log
            match.completed_at = now

            winner.wins += 1
            loser.losses += 1
            loser.status = CompetitorStatus.ELIMINATED
            if match.round_number == tournament.total_rounds:
                loser.final_placement = 2
            elif match.round_number == tournament.total_rounds - 1:
                loser.final_placement = 3
            if tournament_type.is_lethal:
                loser.player.hp = 0
                loser.player.is_dead = True
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return {
            "match_id": match.id,
            "winner_id": winner.id,
            "loser_id": loser.id,
            "score": f"{first_score}-{second_score}",
            "bye": False,
        }

    def advance_tournament(self, tournament_id: int) -> dict[str, Any]:
        """Move to the next round, or complete the tournament if one winner remains."""
        tournament = self.get_tournament(tournament_id)
        if tournament.status != TournamentStatus.IN_PROGRESS:
            raise ValueError("Tournament is not in progress.")

        matches = self.round_matches(tournament, tournament.current_round)
        if any(match.status != MatchStatus.COMPLETED for match in matches):
            raise ValueError("Not all matches completed.")

        winners = [match.winner for match in matches if match.winner is not None]
        if len(winners) == 1:
            return self._complete(tournament, winners[0])

        try:
            next_round = tournament.current_round + 1
            self._create_round(tournament, next_round, winners)
            tournament.current_round = next_round
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return {
            "tournament_id": tournament.id,
            "next_round": next_round,
            "competitors_remaining": len(winners),
        }

    def _complete(self, tournament: Tournament, champion: TournamentCompetitor) -> dict[str, Any]:
        """Crown the champion and pay 1st/2nd/3rd prizes from the pool.

        2nd goes to the final's loser; 3rd goes to the competitor the champion
        beat in the semi-final. Any undistributed share stays unpaid.
        """
        distribution = tournament.tournament_type.prize_distribution or {"1st": 100}
        pool = tournament.prize_pool
        placed: dict[str, TournamentCompetitor | None] = {"1st": champion, "2nd": None, "3rd": None}

        final = self.round_matches(tournament, tournament.total_rounds)
        if final and not final[0].is_bye:
            placed["2nd"] = self._opponent(final[0], champion)
        if tournament.total_rounds >= 2:
            for semi in self.round_matches(tournament, tournament.total_rounds - 1):
                if semi.winner_id == champion.id and not semi.is_bye:
                    placed["3rd"] = self._opponent(semi, champion)

        try:
            champion.status = CompetitorStatus.WINNER
            champion.final_placement = 1
            prizes = {}
            for place in PLACES:
                competitor = placed[place]
                share = distribution.get(place, 0)
                if competitor is None or share <= 0:
                    continue
                prize = pool * share // 100
                competitor.prize_won = prize
                competitor.player.gold += prize
                prizes[place] = {"competitor_id": competitor.id, "prize": prize}

            tournament.status = TournamentStatus.COMPLETED
            tournament.completed_at = utc_now()
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            "Tournament completed",
            extra={"tournament_id": tournament.id, "winner_id": champion.player_id},
        )
        return {
            "tournament_id": tournament.id,
            "completed": True,
            "winner_id": champion.id,
            "prizes": prizes,
        }

    @staticmethod
    def _opponent(
        match: TournamentMatch, competitor: TournamentCompetitor
    ) -> TournamentCompetitor | None:
        if match.competitor1_id == competitor.id:
            return match.competitor2
        return match.competitor1

    def bracket(self, tournament_id: int) -> dict[str, Any]:
        """Rounds and matches for display."""
        tournament = self.get_tournament(tournament_id)
        competitors = sorted(
            self.session.query(TournamentCompetitor)
            .filter(TournamentCompetitor.tournament_id == tournament.id)
            .all(),
            key=lambda c: (c.seed is None, c.seed or 0, c.id),
        )
        rounds = []
        for round_number in range(1, tournament.current_round + 1):
            rounds.append(
                {
                    "round": round_number,
                    "matches": [
                        {
                            "id": match.id,
                            "match_number": match.match_number,
                            "competitor1_id": match.competitor1_id,
                            "competitor2_id": match.competitor2_id,
                            "winner_id": match.winner_id,
                            "status": match.status,
                            "score": f"{match.competitor1_score}-{match.competitor2_score}",
                        }
                        for match in self.round_matches(tournament, round_number)
                    ],
                }
            )
        return {
            "tournament_id": tournament.id,
            "name": tournament.name,
            "status": tournament.status,
            "prize_pool": tournament.prize_pool,
            "current_round": tournament.current_round,
            "total_rounds": tournament.total_rounds,
            "competitors": [
                {
                    "id": competitor.id,
                    "player_id": competitor.player_id,
                    "username": competitor.player.username,
                    "seed": competitor.seed,
                    "status": competitor.status,
                    "wins": competitor.wins,
                    "losses": competitor.losses,
                    "final_placement": competitor.final_placement,
                    "prize_won": competitor.prize_won,
                }
                for competitor in competitors
            ],
            "rounds": rounds,
        }
