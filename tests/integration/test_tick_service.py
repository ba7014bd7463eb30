"""Integration tests for the world tick."""

from datetime import timedelta

from myrefell.factory import (
    create_crime_service,
    create_festival_service,
    create_travel_service,
)
from myrefell.models import LocationTreasury, utc_now
from myrefell.services.tick_service import run_world_tick

SUMMARY_KEYS = {
    "ran_at",
    "period",
    "arrivals",
    "jail_releases",
    "bounties_expired",
    "festivals_started",
    "festivals_ended",
    "constructions_completed",
    "taxes",
    "salaries",
}


def test_quiet_tick_collects_taxes_and_salaries(session, world):
    now = utc_now()

    summary = run_world_tick(session, now)

    assert set(summary) == SUMMARY_KEYS
    assert summary["period"] == now.date().isoformat()
    assert summary["arrivals"] == 0
    assert summary["jail_releases"] == 0
    assert summary["taxes"]["players_taxed"] == 5
    assert summary["taxes"]["player_tax_total"] == 855
    assert summary["taxes"]["village_upstream_total"] == 15
    assert summary["taxes"]["barony_upstream_total"] == 21
    salaries = summary["salaries"]
    assert salaries["salaries_paid"] + salaries["failed"] == 3
    assert salaries["salaries_paid"] >= 1


def test_tick_conserves_gold(session, world):
    players = [world.alice, world.bob, world.elder, world.baron, world.king, world.admin]
    before = sum(p.gold for p in players)

    run_world_tick(session, utc_now())

    for player in players:
        session.refresh(player)
    treasuries = sum(t.balance for t in session.query(LocationTreasury).all())
    assert sum(p.gold for p in players) + treasuries == before


def test_second_tick_in_the_same_period_takes_nothing(session, world):
    now = utc_now()
    run_world_tick(session, now)
    session.refresh(world.alice)
    gold = world.alice.gold

    summary = run_world_tick(session, now + timedelta(minutes=5))

    assert summary["taxes"]["players_taxed"] == 0
    assert summary["salaries"]["salaries_paid"] == 0
    session.refresh(world.alice)
    assert world.alice.gold == gold


def test_tick_lands_travellers_and_runs_festivals(session, world):
    now = utc_now()
    create_travel_service(session).start_travel(world.bob, "kingdom", world.kingdom.id)
    fair = create_festival_service(session).schedule_festival(
        "midsummer-fair", "village", world.village.id, now, organizer=world.elder
    )

    summary = run_world_tick(session, now + timedelta(hours=1))

    assert summary["arrivals"] == 1
    assert summary["festivals_started"] == 1
    session.refresh(world.bob)
    assert world.bob.is_traveling is False
    assert world.bob.current_location_type == "kingdom"

    later = run_world_tick(session, fair.ends_at + timedelta(minutes=1))
    assert later["festivals_ended"] == 1


def test_tick_expires_bounties(session, world):
    crime = create_crime_service(session)
    bounty = crime.post_bounty(world.alice, world.bob.id, 100, reason="Stole my goat")

    summary = run_world_tick(session, bounty.expires_at + timedelta(minutes=1))

    assert summary["bounties_expired"] == 1
    session.refresh(world.alice)
    # Refunded before the period's taxes are taken.
    assert world.alice.gold == 900
