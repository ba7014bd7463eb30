"""Pytest configuration and shared fixtures.

This adds the `src/` directory to `sys.path` so tests can import the
`myrefell` package without requiring an editable install in CI, and
provides an in-memory database with a small seeded world.
"""

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from myrefell.models import (  # noqa: E402
    Barony,
    Base,
    Kingdom,
    Player,
    PlayerRole,
    Role,
    Town,
    Village,
    seed_all_catalog_data,
)


@pytest.fixture
def engine():
    """Create in-memory SQLite database shared across threads for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory configured like the production one."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    """Create database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def make_player(session, username, location=None, **fields):
    """Add a player standing (and living) at ``location``."""
    location_type, location_id = location if location is not None else (None, None)
    values = {
        "gold": 0,
        "energy": 100,
        "max_energy": 100,
        "hp": 10,
        "max_hp": 10,
        "is_admin": False,
        "is_dead": False,
        "is_traveling": False,
        "current_location_type": location_type,
        "current_location_id": location_id,
        "home_location_type": location_type,
        "home_location_id": location_id,
    }
    values.update(fields)
    player = Player(username=username, **values)
    session.add(player)
    session.commit()
    return player


def grant_role(session, player, slug, location_type, location_id):
    role = session.query(Role).filter(Role.slug == slug).one()
    held = PlayerRole(
        player_id=player.id,
        role_id=role.id,
        location_type=location_type,
        location_id=location_id,
        is_active=True,
        total_salary_earned=0,
    )
    session.add(held)
    session.commit()
    return held


@pytest.fixture
def world(session):
    """A kingdom with one barony, two villages, a town and a handful of players.

    Map coordinates:
        kingdom Eldmoor (0, 0), barony Ashford (30, 40),
        village Millbrook (30, 0), town Harrowgate (0, 40),
        village Farreach (500, 500), out of travel range.
    """
    seed_all_catalog_data(session)

    kingdom = Kingdom(name="Eldmoor", coordinates_x=0.0, coordinates_y=0.0, tax_rate=10.0)
    session.add(kingdom)
    session.flush()
    barony = Barony(
        kingdom_id=kingdom.id,
        name="Ashford",
        coordinates_x=30.0,
        coordinates_y=40.0,
        tax_rate=10.0,
    )
    session.add(barony)
    session.flush()
    village = Village(barony_id=barony.id, name="Millbrook", coordinates_x=30.0, coordinates_y=0.0)
    town = Town(barony_id=barony.id, name="Harrowgate", coordinates_x=0.0, coordinates_y=40.0)
    far_village = Village(
        barony_id=barony.id, name="Farreach", coordinates_x=500.0, coordinates_y=500.0
    )
    session.add_all([village, town, far_village])
    session.commit()

    at_village = ("village", village.id)
    alice = make_player(session, "alice", at_village, gold=1000)
    bob = make_player(session, "bob", at_village, gold=500)
    elder = make_player(session, "elder_oswin", at_village, gold=50)
    baron = make_player(session, "baron_hale", ("barony", barony.id), gold=2000)
    king = make_player(session, "king_aldric", ("kingdom", kingdom.id), gold=5000)
    admin = make_player(session, "warden", at_village, is_admin=True)

    grant_role(session, elder, "elder", "village", village.id)
    grant_role(session, baron, "baron", "barony", barony.id)
    grant_role(session, king, "king", "kingdom", kingdom.id)

    return SimpleNamespace(
        kingdom=kingdom,
        barony=barony,
        village=village,
        town=town,
        far_village=far_village,
        alice=alice,
        bob=bob,
        elder=elder,
        baron=baron,
        king=king,
        admin=admin,
    )


@pytest.fixture
def add_player(session):
    """Factory fixture: ``add_player("name", ("village", 1), gold=10)``."""

    def _add(username, location=None, **fields):
        return make_player(session, username, location, **fields)

    return _add


@pytest.fixture
def add_role(session):
    def _add(player, slug, location_type, location_id):
        return grant_role(session, player, slug, location_type, location_id)

    return _add
