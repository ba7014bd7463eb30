"""Tests for religion headquarters, construction projects and prayer."""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from myrefell.domain.enums import ProjectStatus
from myrefell.factory import create_inventory_service, create_religion_hq_service
from myrefell.models import (
    Item,
    PlayerFeatureBuff,
    Religion,
    ReligionHqFeature,
    ReligionMember,
    utc_now,
)
from myrefell.services.errors import ForbiddenError, NotFoundError


@pytest.fixture
def hq_service(session, world):
    return create_religion_hq_service(session)


@pytest.fixture
def faith(session, world):
    """The Order of the Dawn: Alice is its prophet, Bob a follower."""
    religion = Religion(name="Order of the Dawn", founder_id=world.alice.id)
    session.add(religion)
    session.flush()
    prophet = ReligionMember(
        religion_id=religion.id, player_id=world.alice.id, rank="prophet", devotion=20_000
    )
    follower = ReligionMember(
        religion_id=religion.id, player_id=world.bob.id, rank="follower", devotion=500
    )
    session.add_all([prophet, follower])
    session.commit()
    return SimpleNamespace(id=religion.id, religion=religion, prophet=prophet, follower=follower)


@pytest.fixture
def built(world, faith, hq_service):
    hq_service.build(world.alice, faith.id)
    return faith


def fund_feature(session, world, faith, hq_service, slug="sacred-altar"):
    """Start, fully fund and finish a level 1 feature."""
    world.alice.gold = 100_000
    session.commit()
    project_id = hq_service.start_feature_build(world.alice, faith.id, slug)["project"]["id"]
    cost = hq_service.get_project(project_id).remaining()
    hq_service.contribute(world.alice, project_id, gold=cost["gold"], devotion=cost["devotion"])
    hq_service.complete_project(project_id, now=utc_now() + timedelta(hours=2))
    return project_id


class TestBuild:
    def test_prophet_founds_a_chapel_where_they_stand(self, world, faith, hq_service):
        result = hq_service.build(world.alice, faith.id)

        assert result["success"] is True
        hq = hq_service.headquarters(faith.id)
        assert hq.is_built is True
        assert hq.name == "Order of the Dawn Chapel"
        assert (hq.location_type, hq.location_id) == ("village", world.village.id)

    def test_only_the_prophet_builds(self, world, faith, hq_service):
        with pytest.raises(ForbiddenError):
            hq_service.build(world.bob, faith.id)

    def test_build_once(self, world, built, hq_service):
        result = hq_service.build(world.alice, built.id)
        assert result == {"success": False, "message": "Your headquarters is already built."}

    def test_cannot_build_while_traveling(self, session, world, faith, hq_service):
        world.alice.is_traveling = True
        session.commit()

        assert hq_service.build(world.alice, faith.id)["success"] is False

    def test_unknown_religion(self, world, hq_service):
        with pytest.raises(NotFoundError):
            hq_service.build(world.alice, 404)

    def test_overview_of_unbuilt_headquarters(self, faith, hq_service):
        overview = hq_service.hq_overview(faith.id)

        assert overview["is_built"] is False
        assert overview["tier_name"] == "Chapel"
        assert overview["location_name"] is None
        assert overview["effects"] == {}


class TestTreasury:
    def test_members_donate(self, world, faith, hq_service):
        result = hq_service.donate(world.bob, faith.id, 120)

        assert result["success"] is True
        assert result["new_balance"] == 120
        assert result["bonus"] == 0
        assert world.bob.gold == 380

        info = hq_service.treasury_info(faith.id)
        assert info["balance"] == 120
        assert info["recent_transactions"][0]["type"] == "donation"

    @pytest.mark.parametrize(
        ("amount", "message"),
        [(0, "at least 1 gold"), (10_000, "enough gold")],
    )
    def test_bad_donations(self, world, faith, hq_service, amount, message):
        result = hq_service.donate(world.bob, faith.id, amount)
        assert result["success"] is False
        assert message in result["message"]

    def test_outsiders_cannot_donate(self, world, faith, hq_service):
        assert hq_service.donate(world.king, faith.id, 100)["success"] is False


class TestProjects:
    def test_feature_needs_a_built_headquarters(self, world, faith, hq_service):
        result = hq_service.start_feature_build(world.alice, faith.id, "sacred-altar")
        assert result["message"] == "Your headquarters has not been built yet."

    def test_feature_project_costs(self, world, built, hq_service):
        result = hq_service.start_feature_build(world.alice, built.id, "sacred-altar")

        project = result["project"]
        assert project["gold_required"] == 10_000
        assert project["devotion_required"] == 1_000
        assert project["status"] == ProjectStatus.PENDING
        again = hq_service.start_feature_build(world.alice, built.id, "sacred-altar")
        assert "already has a project" in again["message"]

    def test_feature_tier_requirement(self, world, built, hq_service):
        result = hq_service.start_feature_build(world.alice, built.id, "prayer-candles")
        assert result["message"] == "Prayer Candles requires a Church or better."

    def test_unknown_feature(self, world, built, hq_service):
        with pytest.raises(NotFoundError):
            hq_service.start_feature_build(world.alice, built.id, "bell-tower")

    def test_partial_contribution_reports_progress(self, world, built, hq_service):
        project_id = hq_service.start_feature_build(world.alice, built.id, "sacred-altar")[
            "project"
        ]["id"]

        result = hq_service.contribute(world.alice, project_id, gold=500, devotion=500)

        # 5% of the gold and 50% of the devotion average to 27%.
        assert result["success"] is True
        assert result["project"]["status"] == ProjectStatus.IN_PROGRESS
        assert result["project"]["progress"] == 27
        assert world.alice.gold == 500
        assert built.prophet.devotion == 19_500

    def test_overage_stays_with_the_player(self, session, world, built, hq_service):
        world.alice.gold = 15_000
        session.commit()
        project_id = hq_service.start_feature_build(world.alice, built.id, "sacred-altar")[
            "project"
        ]["id"]

        result = hq_service.contribute(
            world.alice, project_id, gold=12_000, devotion=1_000, items={"Bread": 2}
        )

        assert result["contributed"] == {"gold": 10_000, "devotion": 1_000, "items": {}}
        assert result["overage"] == {"gold": 2_000, "devotion": 0, "items": {"Bread": 2}}
        assert world.alice.gold == 5_000
        project = hq_service.get_project(project_id)
        assert project.status == ProjectStatus.CONSTRUCTING
        assert project.progress == 100
        assert project.construction_ends_at is not None

        later = hq_service.contribute(world.bob, project_id, gold=10)
        assert later["message"] == "This project is not accepting contributions."

    def test_nothing_needed(self, world, built, hq_service):
        project_id = hq_service.start_feature_build(world.alice, built.id, "sacred-altar")[
            "project"
        ]["id"]

        result = hq_service.contribute(world.bob, project_id, items={"Bread": 1})

        assert result["message"] == "Nothing you offered is still needed."

    def test_contribution_checks_resources(self, world, built, hq_service):
        project_id = hq_service.start_feature_build(world.alice, built.id, "sacred-altar")[
            "project"
        ]["id"]

        assert hq_service.contribute(world.bob, project_id, gold=501)["success"] is False
        assert hq_service.contribute(world.bob, project_id, devotion=501)["success"] is False
        assert hq_service.contribute(world.bob, project_id, gold=-1)["success"] is False
        assert hq_service.contribute(world.king, project_id, gold=1)["success"] is False

    def test_construction_finishes_on_time(self, session, world, built, hq_service):
        world.alice.gold = 10_000
        session.commit()
        project_id = hq_service.start_feature_build(world.alice, built.id, "sacred-altar")[
            "project"
        ]["id"]
        hq_service.contribute(world.alice, project_id, gold=10_000, devotion=1_000)

        early = hq_service.complete_project(project_id)
        assert early["message"] == "Construction is not finished yet."

        assert hq_service.process_constructions(now=utc_now() + timedelta(hours=2)) == 1
        feature = session.query(ReligionHqFeature).one()
        assert feature.level == 1
        assert feature.effects == {"devotion_bonus": 5}
        overview = hq_service.hq_overview(built.id)
        assert overview["features"][0]["slug"] == "sacred-altar"
        assert overview["effects"]["devotion_bonus"] == 5
        assert overview["projects"] == []

    def test_feature_upgrade(self, session, world, built, hq_service):
        fund_feature(session, world, built, hq_service)

        result = hq_service.start_feature_upgrade(world.alice, built.id, "sacred-altar")

        assert result["project"]["target_level"] == 2
        assert result["project"]["gold_required"] == 50_000
        missing = hq_service.start_feature_upgrade(world.alice, built.id, "offering-box")
        assert missing["message"] == "Offering Box has not been built."

    def test_project_must_belong_to_the_religion(self, world, built, hq_service):
        project_id = hq_service.start_feature_build(world.alice, built.id, "sacred-altar")[
            "project"
        ]["id"]
        with pytest.raises(NotFoundError):
            hq_service.get_project(project_id, religion_id=built.id + 1)


class TestTierUpgrade:
    def test_prayer_level_gate(self, world, built, hq_service):
        result = hq_service.start_hq_upgrade(world.alice, built.id)
        assert result["message"] == "You need level 15 Prayer to raise a Church."

    def test_upgrade_to_church(self, session, world, built, hq_service):
        world.alice.prayer_level = 15
        world.alice.gold = 100_000
        session.commit()

        result = hq_service.start_hq_upgrade(world.alice, built.id)
        project_id = result["project"]["id"]
        assert result["project"]["gold_required"] == 100_000
        assert result["project"]["devotion_required"] == 5_000
        assert "already under way" in hq_service.start_hq_upgrade(world.alice, built.id)["message"]

        hq_service.contribute(world.alice, project_id, gold=100_000, devotion=5_000)
        hq_service.complete_project(project_id, now=utc_now() + timedelta(hours=3))

        hq = hq_service.headquarters(built.id)
        assert hq.tier == 2
        assert hq.name == "Order of the Dawn Church"
        assert hq.total_gold_invested == 100_000
        assert hq_service.devotion_gain_modifier(built.id) == pytest.approx(1.05)
        assert hq_service.blessing_cost_modifier(built.id) == pytest.approx(0.95)
        assert hq_service.blessing_duration_modifier(built.id) == pytest.approx(1.10)

    def test_tier_upgrade_with_items(self, session, world, built, hq_service):
        hq = hq_service.headquarters(built.id)
        hq.tier = 2
        world.alice.prayer_level = 30
        session.commit()
        stone = session.query(Item).filter(Item.name == "Stone Block").one()
        create_inventory_service(session).add_item(world.alice, stone, 40)
        session.commit()
        project_id = hq_service.start_hq_upgrade(world.alice, built.id)["project"]["id"]

        result = hq_service.contribute(world.alice, project_id, items={"Stone Block": 40})

        assert result["contributed"]["items"] == {"Stone Block": 40}
        assert result["project"]["remaining"]["items"] == {"Stone Block": 60}
        assert create_inventory_service(session).count_item(world.alice, stone) == 0
        short = hq_service.contribute(world.alice, project_id, items={"Stone Block": 1})
        assert short["message"] == "You do not have 1 Stone Block."


class TestTreasuryFunding:
    def test_prophet_funds_from_treasury(self, world, built, hq_service):
        hq_service.donate(world.bob, built.id, 300)
        project_id = hq_service.start_feature_build(world.alice, built.id, "sacred-altar")[
            "project"
        ]["id"]

        result = hq_service.fund_from_treasury(world.alice, project_id, 200)

        assert result["project"]["gold_invested"] == 200
        assert hq_service.get_treasury(built.id).balance == 100
        too_much = hq_service.fund_from_treasury(world.alice, project_id, 500)
        assert too_much["message"] == "The religion treasury cannot cover that."
        with pytest.raises(ForbiddenError):
            hq_service.fund_from_treasury(world.bob, project_id, 50)

    def test_cancel_refunds_gold_to_treasury(self, world, built, hq_service):
        project_id = hq_service.start_feature_build(world.alice, built.id, "sacred-altar")[
            "project"
        ]["id"]
        hq_service.contribute(world.bob, project_id, gold=250)

        with pytest.raises(ForbiddenError):
            hq_service.cancel_project(world.bob, project_id)
        result = hq_service.cancel_project(world.alice, project_id)

        assert result["refunded_to_treasury"] == 250
        assert hq_service.get_project(project_id).status == ProjectStatus.CANCELLED
        info = hq_service.treasury_info(built.id)
        assert info["balance"] == 250
        assert info["recent_transactions"][0]["type"] == "refund"
        again = hq_service.cancel_project(world.alice, project_id)
        assert again["success"] is False


class TestPrayer:
    def test_prayer_grants_a_buff(self, session, world, built, hq_service):
        fund_feature(session, world, built, hq_service)
        devotion_before = built.prophet.devotion

        result = hq_service.pray_at_feature(world.alice, built.id, "sacred-altar")

        assert result["success"] is True
        assert result["energy_spent"] == 25
        assert result["devotion_spent"] == 50
        assert world.alice.energy == 75
        assert built.prophet.devotion == devotion_before - 50
        assert hq_service.active_buff_effect(world.alice, "devotion_bonus") == 5
        later = utc_now() + timedelta(minutes=61)
        assert hq_service.active_buff_effect(world.alice, "devotion_bonus", now=later) == 0

    def test_praying_again_refreshes_the_same_buff(self, session, world, built, hq_service):
        fund_feature(session, world, built, hq_service)

        hq_service.pray_at_feature(world.alice, built.id, "sacred-altar")
        hq_service.pray_at_feature(world.alice, built.id, "sacred-altar")

        assert session.query(PlayerFeatureBuff).count() == 1

    def test_must_be_at_headquarters(self, session, world, built, hq_service):
        fund_feature(session, world, built, hq_service)
        world.alice.current_location_type = "town"
        world.alice.current_location_id = world.town.id
        session.commit()

        result = hq_service.pray_at_feature(world.alice, built.id, "sacred-altar")

        assert result["message"] == "You must be at your headquarters to pray there."

    def test_prayer_needs_energy(self, session, world, built, hq_service):
        fund_feature(session, world, built, hq_service)
        world.alice.energy = 10
        session.commit()

        result = hq_service.pray_at_feature(world.alice, built.id, "sacred-altar")

        assert result["message"] == "You need 25 energy to pray here."

    def test_offering_box_multiplies_donations(self, session, world, built, hq_service):
        fund_feature(session, world, built, hq_service, slug="offering-box")
        hq_service.pray_at_feature(world.alice, built.id, "offering-box")
        balance_before = hq_service.get_treasury(built.id).balance

        result = hq_service.donate(world.alice, built.id, 100)

        assert result["bonus"] == 5
        assert result["new_balance"] == balance_before + 105
