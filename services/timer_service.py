"""
計時服務：計算目前回合的剩餘秒數

純計算邏輯，每次都從持久化的 turn_start_time 重新計算，
新開啟或重新載入的觀察者能立即得到正確的剩餘時間。
"""
import time

from models import AuctionState, AuctionStatus


def epoch_millis() -> int:
    return int(time.time() * 1000)


def timer_active(auction: AuctionState) -> bool:
    """
    計時器是否在跑

    條件：拍賣進行中、已設定順序、有回合開始時間
    """
    return (
        auction.status == AuctionStatus.IN_PROGRESS
        and bool(auction.turn_order)
        and auction.turn_start_time is not None
    )


def remaining_seconds(auction: AuctionState, now_ms: int, duration: int) -> int:
    """
    計算剩餘秒數

    公式：max(0, duration - floor((now - turn_start_time) / 1000))

    參數：
        auction: 拍賣狀態
        now_ms: 目前時間（epoch millis）
        duration: 每回合秒數

    返回：
        剩餘秒數；計時器沒在跑時回傳完整的 duration

    範例（duration=30）：
        經過 0.9 秒 -> 30
        經過 12.5 秒 -> 18
        經過 45 秒 -> 0
    """
    if not timer_active(auction):
        return duration

    elapsed = (now_ms - auction.turn_start_time) // 1000
    # 時鐘不同步時 elapsed 可能為負
    return min(duration, max(0, duration - elapsed))
