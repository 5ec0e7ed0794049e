"""
API 依賴注入

整個 process 共用一個 AuctionEngine（擁有本地 AppState 與鎖）；
測試透過 app.dependency_overrides[get_engine] 換成測試用 engine
"""
from functools import lru_cache

from fastapi import Depends

from core.auction_engine import AuctionEngine
from core.roster_manager import RosterManager
from core.state_store import StateStore
from core.turn_timer import TurnTimer


@lru_cache()
def get_engine() -> AuctionEngine:
    return AuctionEngine(StateStore())


def get_roster_manager(engine: AuctionEngine = Depends(get_engine)) -> RosterManager:
    return RosterManager(engine)


def get_turn_timer(engine: AuctionEngine = Depends(get_engine)) -> TurnTimer:
    return TurnTimer(engine)
