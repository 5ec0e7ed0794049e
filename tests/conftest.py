"""
Shared fixtures: in-memory SQLite store, fake millisecond clock, engine.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.auction_engine import AuctionEngine
from core.notifier import ChangeNotifier
from core.roster_manager import RosterManager
from core.state_store import StateStore
from database import Base
import models  # noqa: F401  registers AppStateSnapshot on Base.metadata


class FakeClock:
    """Epoch-millis clock that only moves when told to."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def session_factory():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=test_engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def store(session_factory, notifier):
    return StateStore(session_factory, notifier)


@pytest.fixture
def engine(store, clock):
    return AuctionEngine(store, clock=clock)


@pytest.fixture
def roster(engine):
    return RosterManager(engine)


@pytest.fixture
def two_teams(roster):
    """Teams A and B, candidates Amy (A001) and Ben (A002), both class 1."""
    roster.add_team("A", "Alice")
    roster.add_team("B", "Bob", assistant="Bea")
    roster.add_candidate("Amy", "A001", "1")
    roster.add_candidate("Ben", "A002", "1")
    return roster


@pytest.fixture
def started(engine, two_teams):
    """Two-team auction in progress with turn order A, B."""
    engine.start()
    engine.set_turn_order(["A", "B"])
    return engine
