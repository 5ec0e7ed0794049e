"""
TurnTimer tests

- Remaining time is recomputed from turn_start_time
- Expiry with a pending request auto-accepts
- Expiry without a request forfeits the turn exactly once
- No activity outside an active turn
"""
import asyncio

import pytest

from core.turn_timer import TurnTimer
from models import AuctionState, AuctionStatus
from services.timer_service import remaining_seconds, timer_active

START = 1_700_000_000_000


def active_auction(**overrides):
    fields = dict(
        status=AuctionStatus.IN_PROGRESS,
        turn_order=["A", "B"],
        turn_start_time=START
    )
    fields.update(overrides)
    return AuctionState(**fields)


class TestRemainingSeconds:

    @pytest.mark.parametrize("elapsed_ms, expected", [
        (0, 30),
        (999, 30),
        (1000, 29),
        (12_500, 18),
        (29_999, 1),
        (30_000, 0),
        (45_000, 0),
    ])
    def test_counts_down_from_start(self, elapsed_ms, expected):
        assert remaining_seconds(active_auction(), START + elapsed_ms, 30) == expected

    def test_clock_skew_never_exceeds_duration(self):
        assert remaining_seconds(active_auction(), START - 5_000, 30) == 30

    @pytest.mark.parametrize("auction", [
        AuctionState(),
        active_auction(status=AuctionStatus.COMPLETED),
        active_auction(turn_order=[]),
        active_auction(turn_start_time=None),
    ])
    def test_inactive_shows_full_duration(self, auction):
        assert not timer_active(auction)
        assert remaining_seconds(auction, START + 90_000, 30) == 30


class TestTick:

    def test_no_activity_before_start(self, engine, two_teams, clock):
        timer = TurnTimer(engine, duration=30)
        before = engine.state.auction.state_version

        clock.advance(120)

        assert timer.tick() == 30
        assert engine.state.auction.state_version == before

    def test_no_activity_while_awaiting_turn_order(self, engine, two_teams, clock):
        engine.start()
        timer = TurnTimer(engine, duration=30)
        before = engine.state.auction.state_version

        clock.advance(120)

        assert timer.tick() == 30
        assert engine.state.auction.state_version == before

    def test_reports_remaining_before_expiry(self, started, clock):
        timer = TurnTimer(started, duration=30)
        before = started.state.auction.state_version

        clock.advance(10)

        assert timer.tick() == 20
        assert timer.remaining() == 20
        assert started.state.auction.state_version == before

    def test_expiry_auto_accepts_pending_request(self, started, clock):
        timer = TurnTimer(started, duration=30)
        started.request_candidate("A", "A001")

        clock.advance(30)

        assert timer.tick() == 0
        state = started.state
        assert state.find_candidate("A001").assigned
        assert state.find_team("A").roster[0].admission_number == "A001"
        assert state.auction.pending_request is None
        assert started.current_team == "B"

    def test_expiry_without_request_forfeits_turn_once(self, started, clock):
        timer = TurnTimer(started, duration=30)

        clock.advance(31)
        assert timer.tick() == 0
        version_after_expiry = started.state.auction.state_version

        assert started.current_team == "B"
        assert started.state.auction.turn_start_time == clock.now
        assert not any(c.assigned for c in started.state.candidates)

        assert timer.tick() == 30
        assert started.state.auction.state_version == version_after_expiry

    def test_recomputes_from_persisted_start_time(self, started, clock, session_factory, notifier):
        from core.auction_engine import AuctionEngine
        from core.state_store import StateStore

        clock.advance(12)
        late_observer = AuctionEngine(StateStore(session_factory, notifier), clock=clock)

        assert TurnTimer(late_observer, duration=30).remaining() == 18


class TestRunLoop:

    def test_run_ticks_until_stopped(self, started, clock):
        timer = TurnTimer(started, duration=30, period=0.01)
        clock.advance(30)

        async def scenario():
            timer.start()
            await asyncio.sleep(0.05)
            await timer.stop()

        asyncio.run(scenario())

        assert started.current_team == "B"
