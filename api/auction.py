"""
Auction API Endpoints - 短輪詢版

重點：
1. 所有業務邏輯集中在 AuctionEngine
2. 每次變更都會提升 state_version，前端靠 /state?known_version= 短輪詢
3. 業務異常轉成 4xx，儲存失敗轉成 503，其他錯誤 500
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
import logging

from api.deps import get_engine, get_turn_timer
from core.auction_engine import AuctionEngine
from core.turn_timer import TurnTimer
from core.exceptions import (
    AuctionRuleViolation,
    StorageError,
    ValidationError
)
from models import AppState
from schemas import (
    ActionResponse,
    CandidateRequestSubmit,
    StateResponse,
    TimerResponse,
    TurnOrderSubmit
)
from services.auction_phase_service import get_auction_phase, get_current_team
from services.timer_service import timer_active

router = APIRouter(prefix="/api", tags=["auction"])
logger = logging.getLogger(__name__)


def _ok(state: AppState) -> ActionResponse:
    return ActionResponse(status="ok", state_version=state.auction.state_version)


@router.get("/auction/state", response_model=StateResponse)
def get_state(
    known_version: Optional[int] = Query(None),
    engine: AuctionEngine = Depends(get_engine),
    timer: TurnTimer = Depends(get_turn_timer)
):
    """
    取得共享狀態（短輪詢）

    參數：
        known_version: 前端目前持有的版本；版本沒變時不回傳 state

    返回：
        - changed: 是否有比 known_version 新的版本
        - phase / current_team / remaining_seconds: 畫面需要的推導欄位
        - state: 完整 AppState（changed=False 時省略）
    """
    try:
        state = engine.snapshot()
        version = state.auction.state_version
        changed = known_version is None or version > known_version

        return StateResponse(
            changed=changed,
            state_version=version,
            phase=get_auction_phase(state.auction),
            current_team=get_current_team(state.auction),
            remaining_seconds=timer.remaining(),
            state=state if changed else None
        )

    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get state: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/auction/timer", response_model=TimerResponse)
def get_timer(
    engine: AuctionEngine = Depends(get_engine),
    timer: TurnTimer = Depends(get_turn_timer)
):
    """
    取得回合剩餘時間（計時器沒在跑時回傳完整秒數）
    """
    try:
        remaining = timer.remaining()
        return TimerResponse(
            active=timer_active(engine.snapshot().auction),
            remaining_seconds=remaining,
            duration=timer.duration
        )

    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get timer: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/auction/start", response_model=ActionResponse)
def start_auction(engine: AuctionEngine = Depends(get_engine)):
    """
    開始拍賣（Admin endpoint）

    前置條件：
    - 至少 1 位學生、2 個隊伍，學生數 >= 隊伍數
    - 拍賣不在進行中

    之後必須呼叫 /auction/turn-order 設定第一個班級的順序
    """
    try:
        state = engine.start()
        return _ok(state)

    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AuctionRuleViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to start auction: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/auction/turn-order", response_model=ActionResponse)
def set_turn_order(data: TurnOrderSubmit, engine: AuctionEngine = Depends(get_engine)):
    """
    設定目前班級的隊伍順序（Admin endpoint）

    參數：
        order: 隊伍名稱清單，或 order_text: "TeamA,TeamB,TeamC"
    """
    try:
        state = engine.set_turn_order(data.order)
        return _ok(state)

    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AuctionRuleViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to set turn order: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/auction/requests", response_model=ActionResponse)
def request_candidate(data: CandidateRequestSubmit, engine: AuctionEngine = Depends(get_engine)):
    """
    隊伍提出挑選請求（Leader endpoint）

    失敗情況（409）：
    - 拍賣不在進行中
    - 還沒輪到這個隊伍
    - 已有待審核請求
    - 學生不存在或已分配
    """
    try:
        logger.info(f"Team {data.team} requesting candidate {data.admission_number}")
        state = engine.request_candidate(data.team, data.admission_number)
        return _ok(state)

    except AuctionRuleViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to request candidate: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/auction/requests/accept", response_model=ActionResponse)
def accept_request(engine: AuctionEngine = Depends(get_engine)):
    """
    接受待審核請求（Admin endpoint，冪等：沒有請求時不做任何事）
    """
    try:
        state = engine.accept_request()
        return _ok(state)

    except AuctionRuleViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to accept request: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/auction/requests/reject", response_model=ActionResponse)
def reject_request(engine: AuctionEngine = Depends(get_engine)):
    """
    拒絕待審核請求（Admin endpoint）；回合不推進
    """
    try:
        state = engine.reject_request()
        return _ok(state)

    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to reject request: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/auction/turn/skip", response_model=ActionResponse)
def skip_turn(engine: AuctionEngine = Depends(get_engine)):
    """
    跳過目前隊伍的回合（Admin endpoint）

    用途：
    - 隊伍長時間不選擇，管理員決定提前換下一隊
    - 與計時器逾時（沒有待審核請求時）的效果相同
    """
    try:
        state = engine.advance_turn()
        return _ok(state)

    except AuctionRuleViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to skip turn: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/auction/stop", response_model=ActionResponse)
def stop_auction(engine: AuctionEngine = Depends(get_engine)):
    """
    停止拍賣（Admin endpoint）；已完成的分配保留
    """
    try:
        state = engine.stop()
        return _ok(state)

    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to stop auction: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/system/reset", response_model=ActionResponse)
def reset_system(engine: AuctionEngine = Depends(get_engine)):
    """
    清空所有資料（Admin endpoint）
    """
    try:
        state = engine.reset_system()
        return _ok(state)

    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to reset system: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
