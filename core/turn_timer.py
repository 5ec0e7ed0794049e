"""
TurnTimer：回合計時器

每秒 tick 一次，每次都從持久化的 turn_start_time 重新計算剩餘時間
（不自行倒數），時間到時強制推進：
- 有待審核請求：自動接受
- 沒有請求：放棄這一回合，換下一隊

檢查與推進在 engine 的鎖內完成，同一個逾時不會被處理兩次。
"""
import asyncio
import logging
from typing import Optional

from core.auction_engine import AuctionEngine
from database import get_settings
from services.timer_service import remaining_seconds, timer_active

logger = logging.getLogger(__name__)


class TurnTimer:
    def __init__(
        self,
        engine: AuctionEngine,
        duration: Optional[int] = None,
        period: Optional[float] = None
    ):
        settings = get_settings()
        self.engine = engine
        self.duration = duration if duration is not None else settings.turn_duration_seconds
        self.period = period if period is not None else settings.timer_period_seconds
        self._task: Optional[asyncio.Task] = None

    def remaining(self) -> int:
        """目前回合剩餘秒數（不觸發任何狀態變更）"""
        state = self.engine.snapshot()
        return remaining_seconds(state.auction, self.engine.clock(), self.duration)

    def tick(self) -> int:
        """
        處理一次 tick

        返回：
            本次 tick 計算出的剩餘秒數（計時器沒在跑時為完整的 duration）
        """
        with self.engine.lock:
            auction = self.engine.snapshot().auction
            if not timer_active(auction):
                return self.duration

            left = remaining_seconds(auction, self.engine.clock(), self.duration)
            if left > 0:
                return left

            if auction.pending_request is not None:
                logger.info(
                    f"Turn expired with pending request from {auction.pending_request.team}, "
                    f"auto-accepting"
                )
                self.engine.accept_request()
            else:
                logger.info(
                    f"Turn expired for {auction.turn_order[auction.current_team_index]}, "
                    f"forfeiting turn"
                )
                self.engine.advance_turn()
            return 0

    async def run(self) -> None:
        """持續 tick，直到被取消"""
        logger.info(f"Turn timer running (duration={self.duration}s, period={self.period}s)")
        while True:
            try:
                await asyncio.to_thread(self.tick)
            except Exception as e:
                logger.error(f"Timer tick failed: {e}", exc_info=True)
            await asyncio.sleep(self.period)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Turn timer stopped")
