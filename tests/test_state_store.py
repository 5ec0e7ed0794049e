"""
StateStore / ChangeNotifier tests

- Monotonic versioning across saves
- Version-gated loads never regress local state
- Storage failures surface as StorageError
- Observers sharing a notifier converge
"""
import pytest

from core.auction_engine import AuctionEngine
from core.exceptions import StorageError
from core.notifier import ChangeNotifier
from core.roster_manager import RosterManager
from core.state_store import StateStore
from database import Base
from models import AppState, AppStateSnapshot


class TestVersioning:

    def test_empty_store(self, store):
        assert store.fetch() is None
        assert store.load(0) is None

    def test_n_saves_bump_version_by_n(self, store):
        state = store.save(AppState())
        initial = state.auction.state_version

        for _ in range(5):
            state = store.save(state)

        assert state.auction.state_version == initial + 5
        assert store.fetch().auction.state_version == initial + 5

    def test_save_does_not_mutate_argument(self, store):
        state = AppState()

        saved = store.save(state)

        assert state.auction.state_version == 0
        assert saved.auction.state_version == 1

    def test_stale_writer_still_moves_version_forward(self, store):
        store.save(AppState())
        store.save(AppState())

        saved = store.save(AppState())

        assert saved.auction.state_version == 3

    def test_load_is_version_gated(self, store):
        saved = store.save(AppState())
        current = saved.auction.state_version

        assert store.load(current) is None
        assert store.load(current + 10) is None
        assert store.load(current - 1).auction.state_version == current

    def test_round_trips_full_state(self, two_teams, store):
        state = store.fetch()

        assert [t.name for t in state.teams] == ["A", "B"]
        assert state.find_team("B").assistant == "Bea"
        assert state.find_candidate("A002").name == "Ben"


class TestStorageErrors:

    def test_corrupt_payload(self, store, session_factory):
        db = session_factory()
        db.add(AppStateSnapshot(
            id=AppStateSnapshot.SINGLETON_ID,
            state_version=3,
            payload={"auction": {"status": "bogus"}}
        ))
        db.commit()
        db.close()

        with pytest.raises(StorageError):
            store.fetch()

    def test_missing_table_on_save(self, store, session_factory):
        Base.metadata.drop_all(bind=session_factory.kw["bind"])

        with pytest.raises(StorageError):
            store.save(AppState())

    def test_missing_table_on_load(self, store, session_factory):
        Base.metadata.drop_all(bind=session_factory.kw["bind"])

        with pytest.raises(StorageError):
            store.load(0)


class TestChangeNotifier:

    def test_save_signals_new_version(self, store, notifier):
        received = []
        notifier.on_signal(received.append)

        store.save(AppState())
        store.save(AppState())

        assert received == [1, 2]

    def test_failing_handler_does_not_block_others(self):
        notifier = ChangeNotifier()
        received = []

        def broken(version):
            raise RuntimeError("observer crashed")

        notifier.on_signal(broken)
        notifier.on_signal(received.append)

        notifier.signal(7)

        assert received == [7]

    def test_remove_and_duplicate_subscription(self):
        notifier = ChangeNotifier()
        received = []

        notifier.on_signal(received.append)
        notifier.on_signal(received.append)
        notifier.signal(1)
        notifier.remove(received.append)
        notifier.signal(2)

        assert received == [1]


class TestObserversConverge:

    def test_peer_engine_picks_up_changes(self, session_factory, notifier, clock):
        admin = AuctionEngine(StateStore(session_factory, notifier), clock=clock)
        audience = AuctionEngine(StateStore(session_factory, notifier), clock=clock)

        RosterManager(admin).add_team("A", "Alice")

        assert audience.state.find_team("A") is not None
        assert audience.state.auction.state_version == admin.state.auction.state_version

    def test_peer_mutation_builds_on_latest_state(self, session_factory, notifier, clock):
        admin = AuctionEngine(StateStore(session_factory, notifier), clock=clock)
        leader = AuctionEngine(StateStore(session_factory, notifier), clock=clock)
        admin_roster = RosterManager(admin)
        admin_roster.add_team("A", "Alice")
        admin_roster.add_team("B", "Bob")
        admin_roster.add_candidate("Amy", "A001", "1")
        admin_roster.add_candidate("Ben", "A002", "1")
        admin.start()
        admin.set_turn_order(["A", "B"])

        leader.request_candidate("A", "A001")
        state = admin.accept_request()

        assert state.find_candidate("A001").assigned
        assert leader.current_team == "B"

    def test_stale_signal_does_not_regress(self, engine, two_teams):
        before = engine.state

        engine._on_change_signal(1)

        assert engine.refresh() is False
        assert engine.state is before
