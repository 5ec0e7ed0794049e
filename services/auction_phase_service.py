"""
拍賣階段服務：由 AuctionState 推導目前的子階段

IN_PROGRESS 內部的循環：
- AWAITING_TURN_ORDER：新班級開始，等待管理員設定順序
- AWAITING_REQUEST：輪到某隊伍挑選
- PENDING_REQUEST：隊伍已提出請求，等待管理員接受/拒絕
"""
from typing import Optional

from models import AuctionPhase, AuctionState, AuctionStatus


def get_auction_phase(auction: AuctionState) -> AuctionPhase:
    """
    根據拍賣狀態決定目前階段

    範例：
        status=not_started                         -> NOT_STARTED
        status=in_progress, turn_order=[]          -> AWAITING_TURN_ORDER
        status=in_progress, pending_request=None   -> AWAITING_REQUEST
        status=in_progress, pending_request=...    -> PENDING_REQUEST
        status=completed                           -> COMPLETED
    """
    if auction.status == AuctionStatus.NOT_STARTED:
        return AuctionPhase.NOT_STARTED
    if auction.status == AuctionStatus.COMPLETED:
        return AuctionPhase.COMPLETED
    if not auction.turn_order:
        return AuctionPhase.AWAITING_TURN_ORDER
    if auction.pending_request is not None:
        return AuctionPhase.PENDING_REQUEST
    return AuctionPhase.AWAITING_REQUEST


def get_current_team(auction: AuctionState) -> Optional[str]:
    """
    目前輪到的隊伍

    返回：
        隊伍名稱；未進行中或尚未設定順序時為 None
    """
    if auction.status != AuctionStatus.IN_PROGRESS or not auction.turn_order:
        return None
    return auction.turn_order[auction.current_team_index]
