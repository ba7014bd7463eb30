"""Religion Headquarters Service for Myrefell.

A religion's headquarters starts life unbuilt. The prophet places it at a
settlement, after which it can be upgraded through six tiers and fitted with
features. Upgrades and features are funded through construction projects
that members contribute gold, devotion and items to. Once a project is fully
funded a construction timer starts; the world tick completes the project
when the timer runs out.

Rule failures are reported as ``{"success": False, "message": ...}`` result
dictionaries. Missing records raise ``NotFoundError`` and prophet-only
actions attempted by anyone else raise ``ForbiddenError``.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from myrefell.domain import rules
from myrefell.domain.enums import (
    ACTIVE_PROJECT_STATUSES,
    OPEN_PROJECT_STATUSES,
    ProjectStatus,
    ProjectType,
    ReligionTransactionType,
)
from myrefell.interfaces import IInventoryService, ILocationService
from myrefell.models import (
    HqConstructionProject,
    HqFeatureType,
    Item,
    Player,
    PlayerFeatureBuff,
    Religion,
    ReligionHeadquarters,
    ReligionHqFeature,
    ReligionMember,
    ReligionTreasury,
    ReligionTreasuryTransaction,
    utc_now,
)
from myrefell.services.errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


def _fail(message: str) -> dict[str, Any]:
    return {"success": False, "message": message}


class ReligionHqService:
    """Service for religion treasuries, headquarters, projects and prayer."""

    def __init__(
        self,
        session: Session,
        inventory: IInventoryService,
        locations: ILocationService,
    ):
        self.session = session
        self.inventory = inventory
        self.locations = locations

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_religion(self, religion_id: int) -> Religion:
        religion = self.session.get(Religion, religion_id)
        if religion is None:
            raise NotFoundError(f"Religion {religion_id} not found.")
        return religion

    def headquarters(self, religion_id: int) -> ReligionHeadquarters:
        """Return the religion's HQ row, creating an unbuilt one if missing."""
        religion = self.get_religion(religion_id)
        hq = (
            self.session.query(ReligionHeadquarters)
            .filter(ReligionHeadquarters.religion_id == religion.id)
            .first()
        )
        if hq is None:
            hq = ReligionHeadquarters(religion_id=religion.id, tier=1, is_built=False)
            self.session.add(hq)
            self.session.flush()
        return hq

    def get_project(
        self, project_id: int, religion_id: int | None = None
    ) -> HqConstructionProject:
        project = self.session.get(HqConstructionProject, project_id)
        if project is None or (
            religion_id is not None and project.headquarters.religion_id != religion_id
        ):
            raise NotFoundError(f"Project {project_id} not found.")
        return project

    def membership(self, player: Player, religion_id: int) -> ReligionMember | None:
        return (
            self.session.query(ReligionMember)
            .filter(
                ReligionMember.religion_id == religion_id,
                ReligionMember.player_id == player.id,
            )
            .first()
        )

    def _require_prophet(self, player: Player, religion_id: int) -> ReligionMember:
        member = self.membership(player, religion_id)
        if member is None or not member.is_prophet:
            raise ForbiddenError("Only the prophet can do that.")
        return member

    def _feature_type(self, slug: str) -> HqFeatureType | None:
        return self.session.query(HqFeatureType).filter(HqFeatureType.slug == slug).first()

    def _feature(
        self, hq: ReligionHeadquarters, feature_type: HqFeatureType
    ) -> ReligionHqFeature | None:
        return (
            self.session.query(ReligionHqFeature)
            .filter(
                ReligionHqFeature.hq_id == hq.id,
                ReligionHqFeature.feature_type_id == feature_type.id,
            )
            .first()
        )

    def features(self, hq: ReligionHeadquarters) -> list[ReligionHqFeature]:
        return (
            self.session.query(ReligionHqFeature)
            .filter(ReligionHqFeature.hq_id == hq.id)
            .order_by(ReligionHqFeature.id)
            .all()
        )

    def _open_project(
        self,
        hq: ReligionHeadquarters,
        project_type: str | None = None,
        feature_type_id: int | None = None,
    ) -> HqConstructionProject | None:
        query = self.session.query(HqConstructionProject).filter(
            HqConstructionProject.hq_id == hq.id,
            HqConstructionProject.status.in_(OPEN_PROJECT_STATUSES),
        )
        if project_type is not None:
            query = query.filter(HqConstructionProject.project_type == project_type)
        if feature_type_id is not None:
            query = query.filter(HqConstructionProject.feature_type_id == feature_type_id)
        return query.first()

    # ------------------------------------------------------------------
    # Treasury
    # ------------------------------------------------------------------

    def get_treasury(self, religion_id: int) -> ReligionTreasury:
        treasury = (
            self.session.query(ReligionTreasury)
            .filter(ReligionTreasury.religion_id == religion_id)
            .first()
        )
        if treasury is None:
            treasury = ReligionTreasury(
                religion_id=religion_id, balance=0, total_collected=0, total_distributed=0
            )
            self.session.add(treasury)
            self.session.flush()
        return treasury

    def _record(
        self,
        treasury: ReligionTreasury,
        amount: int,
        transaction_type: str,
        player: Player | None,
        description: str,
    ) -> ReligionTreasuryTransaction:
        """Apply a signed ``amount`` to the treasury and write the ledger row."""
        if amount < 0 and treasury.balance < -amount:
            raise ValueError("The religion treasury cannot cover that.")

        treasury.balance += amount
        if amount >= 0:
            treasury.total_collected += amount
        else:
            treasury.total_distributed += -amount

        transaction = ReligionTreasuryTransaction(
            treasury_id=treasury.id,
            type=transaction_type,
            amount=amount,
            balance_after=treasury.balance,
            player_id=player.id if player is not None else None,
            description=description,
        )
        self.session.add(transaction)
        self.session.flush()
        return transaction

    def active_buff_effect(self, player: Player, effect: str, now: datetime | None = None) -> int:
        """Sum ``effect`` across the player's unexpired prayer buffs."""
        now = now or utc_now()
        buffs = (
            self.session.query(PlayerFeatureBuff)
            .filter(PlayerFeatureBuff.player_id == player.id, PlayerFeatureBuff.expires_at > now)
            .all()
        )
        return sum(int((buff.effects or {}).get(effect, 0)) for buff in buffs)

    def donate(self, player: Player, religion_id: int, amount: int) -> dict[str, Any]:
        """Give gold to the religion treasury."""
        religion = self.get_religion(religion_id)
        if amount < 1:
            return _fail("You must donate at least 1 gold.")
        if self.membership(player, religion.id) is None:
            return _fail("You are not a member of this religion.")
        if player.gold < amount:
            return _fail("You do not have enough gold.")

        try:
            treasury = self.get_treasury(religion.id)
            bonus = amount * self.active_buff_effect(player, "treasury_bonus") // 100
            player.gold -= amount
            self._record(
                treasury,
                amount + bonus,
                ReligionTransactionType.DONATION,
                player,
                f"Donation from {player.username}"
                + (f" (+{bonus} offering bonus)" if bonus else ""),
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        message = f"You donated {amount} gold to the treasury."
        if bonus:
            message += f" Your blessing added {bonus} more."
        return {
            "success": True,
            "message": message,
            "donated": amount,
            "bonus": bonus,
            "new_balance": treasury.balance,
        }

    def treasury_info(self, religion_id: int, limit: int = 10) -> dict[str, Any]:
        self.get_religion(religion_id)
        treasury = self.get_treasury(religion_id)
        transactions = (
            self.session.query(ReligionTreasuryTransaction)
            .filter(ReligionTreasuryTransaction.treasury_id == treasury.id)
            .order_by(ReligionTreasuryTransaction.id.desc())
            .limit(limit)
            .all()
        )
        self.session.commit()
        return {
            "balance": treasury.balance,
            "total_collected": treasury.total_collected,
            "total_distributed": treasury.total_distributed,
            "recent_transactions": [
                {
                    "type": t.type,
                    "amount": t.amount,
                    "balance_after": t.balance_after,
                    "description": t.description,
                    "created_at": t.created_at.isoformat() if t.created_at else None,
                }
                for t in transactions
            ],
        }

    # ------------------------------------------------------------------
    # Building and starting projects
    # ------------------------------------------------------------------

    def build(self, player: Player, religion_id: int) -> dict[str, Any]:
        """Place the headquarters at the prophet's current location."""
        religion = self.get_religion(religion_id)
        self._require_prophet(player, religion.id)
        hq = self.headquarters(religion.id)
        if hq.is_built:
            return _fail("Your headquarters is already built.")
        if player.is_traveling or player.current_location_type not in rules.HQ_LOCATION_TYPES:
            return _fail("Headquarters can only be built in a village, town, barony or kingdom.")

        try:
            hq.location_type = player.current_location_type
            hq.location_id = player.current_location_id
            hq.tier = 1
            hq.name = f"{religion.name} {rules.TIER_NAMES[1]}"
            hq.is_built = True
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            "Headquarters built",
            extra={
                "religion_id": religion.id,
                "location_type": hq.location_type,
                "location_id": hq.location_id,
            },
        )
        return {"success": True, "message": f"{hq.name} has been founded.", "hq_id": hq.id}

    def _new_project(
        self,
        player: Player,
        hq: ReligionHeadquarters,
        project_type: str,
        target_level: int,
        gold: int,
        devotion: int,
        items: dict[str, int] | None = None,
        feature_type: HqFeatureType | None = None,
    ) -> HqConstructionProject:
        project = HqConstructionProject(
            hq_id=hq.id,
            feature_type_id=feature_type.id if feature_type is not None else None,
            project_type=project_type,
            target_level=target_level,
            status=ProjectStatus.PENDING,
            progress=0,
            gold_required=gold,
            gold_invested=0,
            devotion_required=devotion,
            devotion_invested=0,
            items_required=dict(items or {}),
            items_invested={},
            started_by_id=player.id,
        )
        try:
            self.session.add(project)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return project

    def start_hq_upgrade(self, player: Player, religion_id: int) -> dict[str, Any]:
        religion = self.get_religion(religion_id)
        self._require_prophet(player, religion.id)
        hq = self.headquarters(religion.id)
        if not hq.is_built:
            return _fail("Your headquarters has not been built yet.")
        if hq.tier >= rules.MAX_HQ_TIER:
            return _fail("Your headquarters is already at the highest tier.")
        if self._open_project(hq, ProjectType.HQ_UPGRADE) is not None:
            return _fail("An upgrade is already under way.")

        target = hq.tier + 1
        required_prayer = rules.TIER_PRAYER_REQUIREMENTS[target]
        if player.prayer_level < required_prayer:
            return _fail(
                f"You need level {required_prayer} Prayer to raise a {rules.TIER_NAMES[target]}."
            )

        cost = rules.TIER_COSTS[target]
        project = self._new_project(
            player,
            hq,
            ProjectType.HQ_UPGRADE,
            target,
            int(cost["gold"]),
            int(cost["devotion"]),
            dict(cost["items"]),
        )
        return {
            "success": True,
            "message": f"Work on the {rules.TIER_NAMES[target]} has been proposed.",
            "project": self.project_view(project),
        }

    def start_feature_build(
        self, player: Player, religion_id: int, feature_slug: str
    ) -> dict[str, Any]:
        religion = self.get_religion(religion_id)
        self._require_prophet(player, religion.id)
        hq = self.headquarters(religion.id)
        if not hq.is_built:
            return _fail("Your headquarters has not been built yet.")

        feature_type = self._feature_type(feature_slug)
        if feature_type is None:
            raise NotFoundError(f"Feature '{feature_slug}' not found.")
        if self._feature(hq, feature_type) is not None:
            return _fail(f"{feature_type.name} is already built.")
        if self._open_project(hq, feature_type_id=feature_type.id) is not None:
            return _fail(f"{feature_type.name} already has a project under way.")
        if hq.tier < feature_type.min_hq_tier:
            return _fail(
                f"{feature_type.name} requires a "
                f"{rules.TIER_NAMES[feature_type.min_hq_tier]} or better."
            )

        cost = feature_type.cost_at(1)
        project = self._new_project(
            player,
            hq,
            ProjectType.FEATURE_BUILD,
            1,
            cost.get("gold", 0),
            cost.get("devotion", 0),
            feature_type=feature_type,
        )
        return {
            "success": True,
            "message": f"Construction of the {feature_type.name} has been proposed.",
            "project": self.project_view(project),
        }

    def start_feature_upgrade(
        self, player: Player, religion_id: int, feature_slug: str
    ) -> dict[str, Any]:
        religion = self.get_religion(religion_id)
        self._require_prophet(player, religion.id)
        hq = self.headquarters(religion.id)

        feature_type = self._feature_type(feature_slug)
        if feature_type is None:
            raise NotFoundError(f"Feature '{feature_slug}' not found.")
        feature = self._feature(hq, feature_type)
        if feature is None:
            return _fail(f"{feature_type.name} has not been built.")
        if feature.level >= feature_type.max_level:
            return _fail(f"{feature_type.name} is already at its highest level.")
        if self._open_project(hq, feature_type_id=feature_type.id) is not None:
            return _fail(f"{feature_type.name} already has a project under way.")

        target = feature.level + 1
        cost = feature_type.cost_at(target)
        project = self._new_project(
            player,
            hq,
            ProjectType.FEATURE_UPGRADE,
            target,
            cost.get("gold", 0),
            cost.get("devotion", 0),
            feature_type=feature_type,
        )
        return {
            "success": True,
            "message": f"An upgrade of the {feature_type.name} to level {target} has been proposed.",
            "project": self.project_view(project),
        }

    # ------------------------------------------------------------------
    # Funding
    # ------------------------------------------------------------------

    @staticmethod
    def _build_hours(project: HqConstructionProject) -> int:
        if project.project_type == ProjectType.HQ_UPGRADE:
            return rules.HQ_UPGRADE_HOURS[project.target_level]
        return rules.FEATURE_BUILD_HOURS[project.target_level]

    @staticmethod
    def _funded_percent(project: HqConstructionProject) -> int:
        """Average the funded fraction of every required resource."""
        fractions = []
        if project.gold_required:
            fractions.append(min(1.0, project.gold_invested / project.gold_required))
        if project.devotion_required:
            fractions.append(min(1.0, project.devotion_invested / project.devotion_required))
        invested = project.items_invested or {}
        for name, quantity in (project.items_required or {}).items():
            if quantity:
                fractions.append(min(1.0, invested.get(name, 0) / quantity))
        if not fractions:
            return 100
        return int(sum(fractions) / len(fractions) * 100)

    def _update_funding_state(self, project: HqConstructionProject, now: datetime) -> None:
        if project.is_funded():
            project.status = ProjectStatus.CONSTRUCTING
            project.progress = 100
            project.construction_ends_at = now + timedelta(hours=self._build_hours(project))
        else:
            project.status = ProjectStatus.IN_PROGRESS
            project.progress = self._funded_percent(project)

    def contribute(
        self,
        player: Player,
        project_id: int,
        gold: int = 0,
        devotion: int = 0,
        items: dict[str, int] | None = None,
    ) -> dict[str, Any]:
        """Put gold, devotion and items towards an active project.

        Each resource is capped at what the project still needs; anything
        beyond that is reported as overage and left with the player.
        """
        project = self.get_project(project_id)
        hq = project.headquarters
        if project.status not in ACTIVE_PROJECT_STATUSES:
            return _fail("This project is not accepting contributions.")
        member = self.membership(player, hq.religion_id)
        if member is None:
            return _fail("You are not a member of this religion.")
        if gold < 0 or devotion < 0 or any(qty < 0 for qty in (items or {}).values()):
            return _fail("Contributions cannot be negative.")

        remaining = project.remaining()
        give_gold = min(gold, remaining["gold"])
        give_devotion = min(devotion, remaining["devotion"])
        overage: dict[str, Any] = {
            "gold": gold - give_gold,
            "devotion": devotion - give_devotion,
            "items": {},
        }

        if player.gold < give_gold:
            return _fail("You do not have enough gold.")
        if member.devotion < give_devotion:
            return _fail("You do not have enough devotion.")

        give_items: list[tuple[Item, int]] = []
        for name, quantity in (items or {}).items():
            if quantity == 0:
                continue
            needed = remaining["items"].get(name, 0)
            give = min(quantity, needed)
            if quantity > give:
                overage["items"][name] = quantity - give
            if give == 0:
                continue
            item = self.session.query(Item).filter(Item.name == name).first()
            if item is None or not self.inventory.has_item(player, item, give):
                return _fail(f"You do not have {give} {name}.")
            give_items.append((item, give))

        if give_gold == 0 and give_devotion == 0 and not give_items:
            return _fail("Nothing you offered is still needed.")

        now = utc_now()
        try:
            player.gold -= give_gold
            member.devotion -= give_devotion
            project.gold_invested += give_gold
            project.devotion_invested += give_devotion

            invested = dict(project.items_invested or {})
            for item, give in give_items:
                if not self.inventory.remove_item(player, item, give):
                    raise ValueError(f"You do not have {give} {item.name}.")
                invested[item.name] = invested.get(item.name, 0) + give
            project.items_invested = invested

            hq.total_gold_invested += give_gold
            hq.total_devotion_invested += give_devotion
            self._update_funding_state(project, now)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        message = "Thank you for your contribution."
        if project.status == ProjectStatus.CONSTRUCTING:
            message += " The project is fully funded and construction has begun."
        return {
            "success": True,
            "message": message,
            "contributed": {
                "gold": give_gold,
                "devotion": give_devotion,
                "items": {item.name: give for item, give in give_items},
            },
            "overage": overage,
            "project": self.project_view(project),
        }

    def fund_from_treasury(self, player: Player, project_id: int, amount: int) -> dict[str, Any]:
        """Let the prophet pay a project's gold out of the religion treasury."""
        project = self.get_project(project_id)
        hq = project.headquarters
        self._require_prophet(player, hq.religion_id)
        if project.status not in ACTIVE_PROJECT_STATUSES:
            return _fail("This project is not accepting contributions.")
        if amount < 1:
            return _fail("You must spend at least 1 gold.")

        give = min(amount, project.remaining()["gold"])
        if give == 0:
            return _fail("This project needs no more gold.")
        treasury = self.get_treasury(hq.religion_id)
        if treasury.balance < give:
            return _fail("The religion treasury cannot cover that.")

        transaction_type = (
            ReligionTransactionType.UPGRADE_COST
            if project.project_type == ProjectType.HQ_UPGRADE
            else ReligionTransactionType.FEATURE_COST
        )
        try:
            self._record(treasury, -give, transaction_type, player, f"Funding project {project.id}")
            project.gold_invested += give
            hq.total_gold_invested += give
            self._update_funding_state(project, utc_now())
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return {
            "success": True,
            "message": f"{give} gold from the treasury was put towards the project.",
            "project": self.project_view(project),
        }

    # ------------------------------------------------------------------
    # Completion and cancellation
    # ------------------------------------------------------------------

    def _finalize(self, project: HqConstructionProject, now: datetime) -> None:
        hq = project.headquarters
        if project.project_type == ProjectType.HQ_UPGRADE:
            hq.tier = project.target_level
            hq.name = f"{hq.religion.name} {rules.TIER_NAMES[project.target_level]}"
        elif project.project_type == ProjectType.FEATURE_BUILD:
            self.session.add(
                ReligionHqFeature(
                    hq_id=hq.id,
                    feature_type=project.feature_type,
                    level=1,
                )
            )
        else:
            feature = (
                self.session.query(ReligionHqFeature)
                .filter(
                    ReligionHqFeature.hq_id == hq.id,
                    ReligionHqFeature.feature_type_id == project.feature_type_id,
                )
                .first()
            )
            if feature is None:
                raise ValueError("The feature being upgraded no longer exists.")
            feature.level = project.target_level

        project.status = ProjectStatus.COMPLETED
        project.completed_at = now
        self.session.flush()
        logger.info(
            "HQ project completed",
            extra={
                "project_id": project.id,
                "religion_id": hq.religion_id,
                "project_type": project.project_type,
                "target_level": project.target_level,
            },
        )

    def complete_project(self, project_id: int, now: datetime | None = None) -> dict[str, Any]:
        now = now or utc_now()
        project = self.get_project(project_id)
        if project.status != ProjectStatus.CONSTRUCTING:
            return _fail("This project is not under construction.")
        if project.construction_ends_at is not None and project.construction_ends_at > now:
            return _fail("Construction is not finished yet.")

        try:
            self._finalize(project, now)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return {
            "success": True,
            "message": "Construction is complete.",
            "project": self.project_view(project),
        }

    def cancel_project(self, player: Player, project_id: int) -> dict[str, Any]:
        """Cancel a project; gold already contributed goes to the religion treasury."""
        project = self.get_project(project_id)
        hq = project.headquarters
        self._require_prophet(player, hq.religion_id)
        if project.status not in ACTIVE_PROJECT_STATUSES:
            return _fail("Only projects that are still being funded can be cancelled.")

        try:
            refunded = project.gold_invested
            if refunded:
                self._record(
                    self.get_treasury(hq.religion_id),
                    refunded,
                    ReligionTransactionType.REFUND,
                    player,
                    f"Refund from cancelled project {project.id}",
                )
            project.status = ProjectStatus.CANCELLED
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return {
            "success": True,
            "message": "The project has been cancelled.",
            "refunded_to_treasury": refunded,
        }

    def process_constructions(self, now: datetime | None = None) -> int:
        """Complete every project whose construction timer has run out."""
        now = now or utc_now()
        due = (
            self.session.query(HqConstructionProject)
            .filter(
                HqConstructionProject.status == ProjectStatus.CONSTRUCTING,
                HqConstructionProject.construction_ends_at <= now,
            )
            .all()
        )
        try:
            for project in due:
                self._finalize(project, now)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return len(due)

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def combined_effects(self, hq: ReligionHeadquarters) -> dict[str, int]:
        """Tier bonuses plus the effects of every built feature at its level."""
        if not hq.is_built:
            return {}
        effects = dict(rules.TIER_BONUSES[hq.tier])
        for feature in self.features(hq):
            for key, value in feature.effects.items():
                effects[key] = effects.get(key, 0) + value
        return effects

    def devotion_gain_modifier(self, religion_id: int) -> float:
        effects = self.combined_effects(self.headquarters(religion_id))
        return 1 + effects.get("devotion_gain", 0) / 100

    def blessing_cost_modifier(self, religion_id: int) -> float:
        effects = self.combined_effects(self.headquarters(religion_id))
        return 1 + effects.get("blessing_cost", 0) / 100

    def blessing_duration_modifier(self, religion_id: int) -> float:
        effects = self.combined_effects(self.headquarters(religion_id))
        return 1 + effects.get("blessing_duration", 0) / 100

    # ------------------------------------------------------------------
    # Prayer
    # ------------------------------------------------------------------

    @staticmethod
    def prayer_costs(feature: ReligionHqFeature) -> dict[str, int]:
        feature_type = feature.feature_type
        return {
            "energy": rules.PRAYER_BASE_ENERGY
            + rules.PRAYER_ENERGY_PER_TIER * (feature_type.min_hq_tier - 1),
            "devotion": rules.PRAYER_DEVOTION_PER_LEVEL * feature.level,
            "minutes": rules.PRAYER_MINUTES_PER_LEVEL * feature.level,
        }

    def pray_at_feature(
        self, player: Player, religion_id: int, feature_slug: str
    ) -> dict[str, Any]:
        religion = self.get_religion(religion_id)
        member = self.membership(player, religion.id)
        if member is None:
            return _fail("You are not a member of this religion.")
        hq = self.headquarters(religion.id)
        if not hq.is_built:
            return _fail("Your headquarters has not been built yet.")
        if (
            player.is_traveling
            or player.current_location_type != hq.location_type
            or player.current_location_id != hq.location_id
        ):
            return _fail("You must be at your headquarters to pray there.")

        feature_type = self._feature_type(feature_slug)
        if feature_type is None:
            raise NotFoundError(f"Feature '{feature_slug}' not found.")
        feature = self._feature(hq, feature_type)
        if feature is None:
            return _fail(f"{feature_type.name} has not been built.")

        costs = self.prayer_costs(feature)
        if player.energy < costs["energy"]:
            return _fail(f"You need {costs['energy']} energy to pray here.")
        if member.devotion < costs["devotion"]:
            return _fail(f"You need {costs['devotion']} devotion to pray here.")

        now = utc_now()
        effects = feature.effects
        expires_at = now + timedelta(minutes=costs["minutes"])
        try:
            player.energy -= costs["energy"]
            member.devotion -= costs["devotion"]

            buff = (
                self.session.query(PlayerFeatureBuff)
                .filter(
                    PlayerFeatureBuff.player_id == player.id,
                    PlayerFeatureBuff.hq_feature_id == feature.id,
                )
                .first()
            )
            if buff is None:
                buff = PlayerFeatureBuff(
                    player_id=player.id,
                    hq_feature_id=feature.id,
                    effects=dict(effects),
                    expires_at=expires_at,
                )
                self.session.add(buff)
            else:
                buff.effects = dict(effects)
                buff.expires_at = expires_at

            restored = 0
            if effects.get("energy_restore"):
                before = player.energy
                player.energy = min(player.max_energy, player.energy + effects["energy_restore"])
                restored = player.energy - before
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return {
            "success": True,
            "message": f"You pray at the {feature_type.name}.",
            "effects": effects,
            "expires_at": expires_at.isoformat(),
            "energy_spent": costs["energy"],
            "devotion_spent": costs["devotion"],
            "energy_restored": restored,
        }

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @staticmethod
    def project_view(project: HqConstructionProject) -> dict[str, Any]:
        return {
            "id": project.id,
            "project_type": project.project_type,
            "feature": project.feature_type.slug if project.feature_type else None,
            "target_level": project.target_level,
            "status": project.status,
            "progress": project.progress,
            "gold_required": project.gold_required,
            "gold_invested": project.gold_invested,
            "devotion_required": project.devotion_required,
            "devotion_invested": project.devotion_invested,
            "items_required": dict(project.items_required or {}),
            "items_invested": dict(project.items_invested or {}),
            "remaining": project.remaining(),
            "construction_ends_at": (
                project.construction_ends_at.isoformat() if project.construction_ends_at else None
            ),
        }

    def hq_overview(self, religion_id: int) -> dict[str, Any]:
        hq = self.headquarters(religion_id)
        projects = (
            self.session.query(HqConstructionProject)
            .filter(
                HqConstructionProject.hq_id == hq.id,
                HqConstructionProject.status.in_(OPEN_PROJECT_STATUSES),
            )
            .order_by(HqConstructionProject.id)
            .all()
        )
        overview = {
            "religion_id": hq.religion_id,
            "name": hq.name,
            "is_built": hq.is_built,
            "tier": hq.tier,
            "tier_name": rules.TIER_NAMES[hq.tier],
            "location_type": hq.location_type,
            "location_id": hq.location_id,
            "location_name": (
                self.locations.name_of(hq.location_type, hq.location_id)
                if hq.is_built
                else None
            ),
            "total_gold_invested": hq.total_gold_invested,
            "total_devotion_invested": hq.total_devotion_invested,
            "features": [
                {
                    "slug": feature.feature_type.slug,
                    "name": feature.feature_type.name,
                    "level": feature.level,
                    "max_level": feature.feature_type.max_level,
                    "effects": feature.effects,
                    "prayer_costs": self.prayer_costs(feature),
                }
                for feature in self.features(hq)
            ],
            "projects": [self.project_view(project) for project in projects],
            "effects": self.combined_effects(hq),
        }
        self.session.commit()
        return overview
