"""Tax and Treasury Service for Myrefell.

Every governed location keeps a treasury. Gold flows up the hierarchy once
per tax period:

    players -> home village/town/barony -> barony -> kingdom

Collection only moves gold between players and treasuries, so the total
amount of gold in the world is unchanged by it. Salaries flow back down from
each role's location treasury to the role holder.
"""

import logging
from typing import Any

from sqlalchemy.orm import Session

from myrefell.domain import rules
from myrefell.domain.enums import LocationType, TaxType, TransactionType
from myrefell.interfaces import ILocationService
from myrefell.models import (
    Barony,
    Kingdom,
    LocationTreasury,
    Player,
    PlayerRole,
    Role,
    SalaryPayment,
    TaxCollection,
    Town,
    TreasuryTransaction,
    Village,
)
from myrefell.services.errors import ForbiddenError

logger = logging.getLogger(__name__)

TAXABLE_LOCATION_TYPES = (LocationType.BARONY, LocationType.KINGDOM)


class TaxService:
    """Service for tax rates, treasuries, tax collection and salaries."""

    def __init__(self, session: Session, locations: ILocationService):
        self.session = session
        self.locations = locations

    # ------------------------------------------------------------------
    # Treasuries
    # ------------------------------------------------------------------

    def get_treasury(self, location_type: str, location_id: int) -> LocationTreasury:
        """Fetch the treasury of a location, creating an empty one if missing."""
        treasury = (
            self.session.query(LocationTreasury)
            .filter(
                LocationTreasury.location_type == location_type,
                LocationTreasury.location_id == location_id,
            )
            .first()
        )
        if treasury is None:
            treasury = LocationTreasury(
                location_type=location_type,
                location_id=location_id,
                balance=0,
                total_collected=0,
                total_distributed=0,
            )
            self.session.add(treasury)
            self.session.flush()
        return treasury

    def deposit(
        self,
        treasury: LocationTreasury,
        amount: int,
        transaction_type: str,
        description: str,
        related_player_id: int | None = None,
    ) -> TreasuryTransaction:
        """Add gold to a treasury and record the ledger entry. Does not commit."""
        if amount <= 0:
            raise ValueError("Deposit amount must be positive.")

        treasury.balance += amount
        treasury.total_collected += amount
        entry = TreasuryTransaction(
            treasury_id=treasury.id,
            type=transaction_type,
            amount=amount,
            balance_after=treasury.balance,
            description=description,
            related_player_id=related_player_id,
        )
        self.session.add(entry)
        return entry

    def withdraw(
        self,
        treasury: LocationTreasury,
        amount: int,
        transaction_type: str,
        description: str,
        related_player_id: int | None = None,
    ) -> TreasuryTransaction:
        """Remove gold from a treasury and record the ledger entry. Does not commit."""
        if amount <= 0:
            raise ValueError("Withdrawal amount must be positive.")
        if treasury.balance < amount:
            raise ValueError(
                f"Insufficient treasury funds: {treasury.balance} < {amount}."
            )

        treasury.balance -= amount
        treasury.total_distributed += amount
        entry = TreasuryTransaction(
            treasury_id=treasury.id,
            type=transaction_type,
            amount=-amount,
            balance_after=treasury.balance,
            description=description,
            related_player_id=related_player_id,
        )
        self.session.add(entry)
        return entry

    def treasury_status(
        self, location_type: str, location_id: int, limit: int = 20
    ) -> dict[str, Any]:
        """Balance, tax rate and recent ledger entries for a location."""
        self.locations.require(location_type, location_id)
        treasury = self.get_treasury(location_type, location_id)
        transactions = (
            self.session.query(TreasuryTransaction)
            .filter(TreasuryTransaction.treasury_id == treasury.id)
            .order_by(TreasuryTransaction.id.desc())
            .limit(limit)
            .all()
        )
        self.session.commit()

        return {
            "id": treasury.id,
            "location_type": location_type,
            "location_id": location_id,
            "location_name": self.locations.name_of(location_type, location_id),
            "balance": treasury.balance,
            "total_collected": treasury.total_collected,
            "total_distributed": treasury.total_distributed,
            "tax_rate": self.get_tax_rate(location_type, location_id),
            "transactions": [
                {
                    "id": tx.id,
                    "type": tx.type,
                    "amount": tx.amount,
                    "balance_after": tx.balance_after,
                    "description": tx.description,
                    "related_player_id": tx.related_player_id,
                    "created_at": tx.created_at.isoformat() if tx.created_at else None,
                }
                for tx in transactions
            ],
        }

    # ------------------------------------------------------------------
    # Rates
    # ------------------------------------------------------------------

    def get_tax_rate(self, location_type: str | None, location_id: int | None) -> float:
        """Return the rate that applies at a location.

        Baronies and kingdoms carry their own rate; villages and towns use
        their barony's rate. Anything else uses the default rate.
        """
        location = self.locations.get(location_type, location_id)
        if location is None:
            return float(rules.DEFAULT_TAX_RATE)

        if isinstance(location, (Barony, Kingdom)):
            rate = location.tax_rate
        elif isinstance(location, (Village, Town)):
            rate = location.barony.tax_rate if location.barony is not None else None
        else:
            rate = None

        return float(rate if rate is not None else rules.DEFAULT_TAX_RATE)

    def can_configure_taxes(self, player: Player, location_type: str, location_id: int) -> bool:
        if player.is_admin:
            return True

        permission = rules.TAX_PERMISSIONS.get(location_type)
        if permission is None:
            return False

        roles = (
            self.session.query(Role)
            .join(PlayerRole, PlayerRole.role_id == Role.id)
            .filter(
                PlayerRole.player_id == player.id,
                PlayerRole.location_type == location_type,
                PlayerRole.location_id == location_id,
                PlayerRole.is_active.is_(True),
            )
            .all()
        )
        return any(role.has_permission(permission) for role in roles)

    def set_tax_rate(
        self, location_type: str, location_id: int, rate: float, player: Player
    ) -> dict[str, Any]:
        """Set the tax rate of a barony or kingdom.

        Args:
            location_type: 'barony' or 'kingdom'
            location_id: Location ID
            rate: New rate in percent, within [MIN_TAX_RATE, MAX_TAX_RATE]
            player: Player making the change

        Returns:
            Dictionary with success flag, message and the new rate

        Raises:
            ForbiddenError: If the player may not configure taxes here
        """
        if location_type not in TAXABLE_LOCATION_TYPES:
            return {
                "success": False,
                "message": "Tax rates can only be set for baronies and kingdoms.",
            }

        if rate < rules.MIN_TAX_RATE or rate > rules.MAX_TAX_RATE:
            return {
                "success": False,
                "message": (
                    f"Tax rate must be between {rules.MIN_TAX_RATE}% "
                    f"and {rules.MAX_TAX_RATE}%."
                ),
            }

        location = self.locations.get(location_type, location_id)
        if location is None:
            return {"success": False, "message": "Location not found."}

        if not self.can_configure_taxes(player, location_type, location_id):
            raise ForbiddenError("You do not have permission to set taxes here.")

        location.tax_rate = float(rate)
        self.session.commit()

        logger.info(
            "Tax rate updated",
            extra={
                "location_type": location_type,
                "location_id": location_id,
                "new_rate": rate,
                "set_by": player.id,
            },
        )

        return {
            "success": True,
            "message": f"Tax rate set to {rate:g}%.",
            "tax_rate": float(rate),
        }

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    def collect_daily_taxes(self, tax_period: str) -> dict[str, int]:
        """Collect one period of taxes, bottom-up through the hierarchy.

        Args:
            tax_period: ISO date identifying the period; each payer pays once per period

        Returns:
            Dictionary of counts and totals per step
        """
        results = {
            "players_taxed": 0,
            "player_tax_total": 0,
            "village_upstream_total": 0,
            "town_upstream_total": 0,
            "barony_upstream_total": 0,
        }

        try:
            taxed, total = self._collect_player_taxes(tax_period)
            results["players_taxed"] = taxed
            results["player_tax_total"] = total
            results["village_upstream_total"] = self._collect_upstream(Village, tax_period)
            results["town_upstream_total"] = self._collect_upstream(Town, tax_period)
            results["barony_upstream_total"] = self._collect_upstream(Barony, tax_period)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return results

    def _collect_player_taxes(self, tax_period: str) -> tuple[int, int]:
        players = (
            self.session.query(Player)
            .filter(
                Player.gold > 0,
                Player.home_location_type.is_not(None),
                Player.home_location_id.is_not(None),
            )
            .order_by(Player.id)
            .all()
        )
        already_paid = {
            payer_id
            for (payer_id,) in self.session.query(TaxCollection.payer_player_id).filter(
                TaxCollection.tax_period == tax_period,
                TaxCollection.tax_type == TaxType.INCOME,
                TaxCollection.payer_player_id.is_not(None),
            )
        }

        taxed = 0
        total = 0
        for player in players:
            if player.id in already_paid:
                continue
            location_type = player.home_location_type
            location_id = player.home_location_id
            if not self.locations.exists(location_type, location_id):
                continue
            if location_type == LocationType.WILDERNESS:
                continue

            rate = self.get_tax_rate(location_type, location_id)
            amount = int(player.gold * rate // 100)
            if amount <= 0:
                continue

            player.gold -= amount
            treasury = self.get_treasury(location_type, location_id)
            self.deposit(
                treasury,
                amount,
                TransactionType.TAX_INCOME,
                f"Income tax from {player.username}",
                player.id,
            )
            self.session.add(
                TaxCollection(
                    payer_player_id=player.id,
                    receiver_location_type=location_type,
                    receiver_location_id=location_id,
                    amount=amount,
                    tax_rate=rate,
                    tax_type=TaxType.INCOME,
                    tax_period=tax_period,
                )
            )
            taxed += 1
            total += amount

        return taxed, total

    def _collect_upstream(self, model: type, tax_period: str) -> int:
        """Move a share of each lower treasury up to its parent."""
        payer_type = {
            Village: LocationType.VILLAGE,
            Town: LocationType.TOWN,
            Barony: LocationType.BARONY,
        }[model]
        total = 0

        for location in self.session.query(model).order_by(model.id).all():
            if model is Barony:
                parent = location.kingdom
                receiver_type = LocationType.KINGDOM
            else:
                parent = location.barony
                receiver_type = LocationType.BARONY
            if parent is None:
                continue

            paid = (
                self.session.query(TaxCollection.id)
                .filter(
                    TaxCollection.payer_location_type == payer_type,
                    TaxCollection.payer_location_id == location.id,
                    TaxCollection.tax_period == tax_period,
                )
                .first()
            )
            if paid is not None:
                continue

            source = self.get_treasury(payer_type, location.id)
            rate = float(parent.tax_rate if parent.tax_rate is not None else rules.DEFAULT_TAX_RATE)
            amount = int(source.balance * rate // 100)
            if amount <= 0:
                continue

            target = self.get_treasury(receiver_type, parent.id)
            self.withdraw(
                source, amount, TransactionType.UPSTREAM_TAX, f"Tax paid to {parent.name}"
            )
            self.deposit(
                target, amount, TransactionType.UPSTREAM_TAX, f"Tax received from {location.name}"
            )
            self.session.add(
                TaxCollection(
                    payer_location_type=payer_type,
                    payer_location_id=location.id,
                    receiver_location_type=receiver_type,
                    receiver_location_id=parent.id,
                    amount=amount,
                    tax_rate=rate,
                    tax_type=TaxType.UPSTREAM,
                    tax_period=tax_period,
                )
            )
            total += amount

        return total

    def distribute_salaries(self, pay_period: str) -> dict[str, int]:
        """Pay every active salaried role once for ``pay_period``."""
        results = {"salaries_paid": 0, "total_amount": 0, "failed": 0}

        try:
            player_roles = (
                self.session.query(PlayerRole)
                .join(Role, PlayerRole.role_id == Role.id)
                .filter(PlayerRole.is_active.is_(True), Role.salary > 0)
                .order_by(PlayerRole.id)
                .all()
            )
            for player_role in player_roles:
                already_paid = (
                    self.session.query(SalaryPayment.id)
                    .filter(
                        SalaryPayment.player_role_id == player_role.id,
                        SalaryPayment.pay_period == pay_period,
                    )
                    .first()
                )
                if already_paid is not None:
                    continue

                salary = player_role.role.salary
                treasury = self.get_treasury(player_role.location_type, player_role.location_id)
                if treasury.balance < salary:
                    logger.warning(
                        "Insufficient treasury funds for salary",
                        extra={
                            "player_role_id": player_role.id,
                            "player_id": player_role.player_id,
                            "salary": salary,
                            "treasury_balance": treasury.balance,
                        },
                    )
                    results["failed"] += 1
                    continue

                self.withdraw(
                    treasury,
                    salary,
                    TransactionType.SALARY,
                    f"Salary for {player_role.role.name}: {player_role.player.username}",
                    player_role.player_id,
                )
                player_role.player.gold += salary
                player_role.total_salary_earned += salary
                self.session.add(
                    SalaryPayment(
                        player_role_id=player_role.id,
                        player_id=player_role.player_id,
                        treasury_id=treasury.id,
                        amount=salary,
                        pay_period=pay_period,
                    )
                )
                results["salaries_paid"] += 1
                results["total_amount"] += salary

            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return results

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def player_tax_history(self, player: Player, limit: int = 20) -> list[dict[str, Any]]:
        collections = (
            self.session.query(TaxCollection)
            .filter(TaxCollection.payer_player_id == player.id)
            .order_by(TaxCollection.id.desc())
            .limit(limit)
            .all()
        )
        return [
            {
                "id": tax.id,
                "amount": tax.amount,
                "tax_rate": tax.tax_rate,
                "tax_type": tax.tax_type,
                "receiver_type": tax.receiver_location_type,
                "receiver_name": self.locations.name_of(
                    tax.receiver_location_type, tax.receiver_location_id
                ),
                "tax_period": tax.tax_period,
            }
            for tax in collections
        ]

    def player_salary_history(self, player: Player, limit: int = 20) -> list[dict[str, Any]]:
        payments = (
            self.session.query(SalaryPayment)
            .filter(SalaryPayment.player_id == player.id)
            .order_by(SalaryPayment.id.desc())
            .limit(limit)
            .all()
        )
        return [
            {
                "id": payment.id,
                "amount": payment.amount,
                "role_name": payment.player_role.role.name,
                "source_type": payment.player_role.location_type,
                "source_name": self.locations.name_of(
                    payment.player_role.location_type, payment.player_role.location_id
                ),
                "pay_period": payment.pay_period,
            }
            for payment in payments
        ]
