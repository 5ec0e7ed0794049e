"""
AuctionEngine：拍賣狀態機

職責：
1. 拍賣生命週期：not_started -> in_progress -> completed（進行中可 stop 回 not_started）
2. 班級內的子循環：設定順序 -> 等待請求 -> 待審核 -> 接受/拒絕 -> 下一隊或下一班級
3. 每次變更都經過 StateStore.save（版本 +1 並通知其他觀察者）

原子性：
- 所有變更操作都套用 @mutation：取得鎖 -> 版本閘門重新載入 -> 在副本上修改 -> 寫入
- 修改途中拋出異常時副本直接丟棄，永遠不會寫入一半的狀態
- 操作判斷為 no-op 時不寫入、不升版本
"""
import logging
import threading
from functools import wraps
from typing import Callable, List, Optional

from core.exceptions import (
    AuctionAlreadyRunning,
    NotAvailableError,
    NotInProgressError,
    RequestAlreadyPending,
    TurnError,
    ValidationError
)
from core.state_store import StateStore
from models import (
    AppState,
    AuctionPhase,
    AuctionState,
    AuctionStatus,
    LastSelection,
    PendingRequest,
    Selection
)
from services.auction_phase_service import get_auction_phase, get_current_team
from services.class_service import (
    lowest_class_label,
    next_class_with_candidates,
    unassigned_in_class
)
from services.timer_service import epoch_millis
from services.turn_order_service import validate_turn_order

logger = logging.getLogger(__name__)


def mutation(func):
    """
    變更操作 decorator：確保操作的原子性

    使用方式：
        @mutation
        def reject_request(self, state: AppState) -> bool:
            state.auction.pending_request = None
            return True

        engine.reject_request()  # 呼叫端不需要傳 state

    被裝飾的函式：
        - 第二個參數會收到目前狀態的 deep copy（可以直接修改）
        - 回傳 False 表示 no-op，不寫入
        - 拋出異常時副本被丟棄，異常重新拋出

    返回：
        操作後的 AppState（no-op 時為目前狀態）
    """
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        return self.apply(func.__name__, lambda state: func(self, state, *args, **kwargs))

    return wrapper


class AuctionEngine:
    """拍賣狀態機（每個 process 一個實例，擁有本地 AppState）"""

    def __init__(self, store: StateStore, clock: Callable[[], int] = epoch_millis):
        self.store = store
        self.clock = clock
        self.lock = threading.RLock()
        self.state = AppState()
        self._saving = False
        self.store.notifier.on_signal(self._on_change_signal)

    # ============ 讀取 ============

    def refresh(self) -> bool:
        """
        版本閘門重新載入：只套用比本地新的持久化狀態

        返回：
            True 如果本地狀態被更新
        """
        with self.lock:
            fresh = self.store.load(self.state.auction.state_version)
            if fresh is None:
                return False
            self.state = fresh
            return True

    def snapshot(self) -> AppState:
        """重新載入後回傳目前狀態（唯讀，呼叫端不應修改）"""
        with self.lock:
            self.refresh()
            return self.state

    @property
    def phase(self) -> AuctionPhase:
        return get_auction_phase(self.state.auction)

    @property
    def current_team(self) -> Optional[str]:
        return get_current_team(self.state.auction)

    def _on_change_signal(self, state_version: int) -> None:
        # 自己的 save 觸發的通知不需要重新載入
        if self._saving:
            return
        if state_version > self.state.auction.state_version:
            self.refresh()

    # ============ 變更 ============

    def apply(self, reason: str, change: Callable[[AppState], Optional[bool]]) -> AppState:
        """
        在鎖內對狀態副本套用變更並寫入

        參數：
            reason: 記錄在 log 的操作名稱
            change: 修改副本的函式；回傳 False 表示 no-op

        返回：
            操作後的 AppState

        異常：
            change 拋出的業務異常；StorageError（寫入失敗）
        """
        with self.lock:
            self.refresh()
            draft = self.state.model_copy(deep=True)

            if change(draft) is False:
                logger.debug(f"{reason}: no-op, nothing saved")
                return self.state

            self._saving = True
            try:
                self.state = self.store.save(draft)
            finally:
                self._saving = False
            logger.info(
                f"{reason}: state_version={self.state.auction.state_version} "
                f"status={self.state.auction.status.value} phase={self.phase.value}"
            )
            return self.state

    @mutation
    def start(self, state: AppState) -> bool:
        """
        開始拍賣（not_started/completed -> in_progress）

        前置條件：
        1. 至少 1 位學生
        2. 至少 2 個隊伍
        3. 學生數 >= 隊伍數

        效果：
        - 重設 AuctionState（版本號延續）
        - 所有學生改為未分配、所有隊伍名單清空
        - 目前班級設為名單中最小的班級
        - 之後必須呼叫 set_turn_order 才能接受請求

        異常：
            AuctionAlreadyRunning: 拍賣已經在進行中
            ValidationError: 人數不符合要求
        """
        if state.auction.status == AuctionStatus.IN_PROGRESS:
            raise AuctionAlreadyRunning()

        if not state.candidates:
            raise ValidationError("Please add at least one candidate")
        if len(state.teams) < 2:
            raise ValidationError("Please add at least two teams")
        if len(state.candidates) < len(state.teams):
            raise ValidationError("Not enough candidates for the number of teams")

        for candidate in state.candidates:
            candidate.assigned = False
        for team in state.teams:
            team.roster = []

        state.auction = AuctionState(
            status=AuctionStatus.IN_PROGRESS,
            current_class=lowest_class_label(state.candidates),
            turn_start_time=self.clock(),
            state_version=state.auction.state_version
        )

        logger.info(
            f"Starting auction with {len(state.candidates)} candidates "
            f"and {len(state.teams)} teams, class {state.auction.current_class}"
        )
        return True

    @mutation
    def set_turn_order(self, state: AppState, order: List[str]) -> bool:
        """
        設定目前班級的隊伍順序

        參數：
            order: 隊伍名稱，必須恰好是所有隊伍的排列（不重複、不遺漏、不含未知隊伍）

        效果：
            current_team_index 歸零、turn_start_time 設為現在

        異常：
            NotInProgressError: 拍賣不在進行中
            RequestAlreadyPending: 有待審核請求（必須先接受或拒絕）
            ValidationError: order 不是隊伍名稱的排列
        """
        if state.auction.status != AuctionStatus.IN_PROGRESS:
            raise NotInProgressError()
        # 待審核請求屬於目前隊伍，換順序會讓它失去歸屬
        if state.auction.pending_request is not None:
            raise RequestAlreadyPending()

        validate_turn_order(order, state.team_names())

        state.auction.turn_order = list(order)
        state.auction.current_team_index = 0
        state.auction.turn_start_time = self.clock()

        logger.info(f"Turn order for class {state.auction.current_class}: {order}")
        return True

    @mutation
    def request_candidate(self, state: AppState, team: str, admission_number: str) -> bool:
        """
        隊伍提出挑選請求

        檢查順序：
        1. 拍賣進行中
        2. 輪到該隊伍
        3. 沒有其他待審核請求
        4. 學生存在、未分配、屬於目前班級

        異常：
            NotInProgressError / TurnError / RequestAlreadyPending / NotAvailableError
        """
        auction = state.auction
        if auction.status != AuctionStatus.IN_PROGRESS:
            raise NotInProgressError()

        current_team = get_current_team(auction)
        if current_team is None:
            raise TurnError("Turn order has not been set for this class")
        if current_team != team:
            raise TurnError(f"Not {team}'s turn (current team: {current_team})")

        if auction.pending_request is not None:
            raise RequestAlreadyPending()

        candidate = state.find_candidate(admission_number)
        if candidate is None or candidate.assigned:
            raise NotAvailableError(admission_number)
        # 只能挑目前班級的學生
        if candidate.class_label != auction.current_class:
            raise NotAvailableError(admission_number)

        auction.pending_request = PendingRequest(
            team=team,
            candidate=candidate.name,
            class_label=candidate.class_label,
            admission_number=candidate.admission_number
        )

        logger.info(f"Team {team} requested {candidate.name} ({admission_number})")
        return True

    @mutation
    def accept_request(self, state: AppState) -> bool:
        """
        接受待審核請求（管理員操作，或計時器逾時自動接受）

        流程：
        1. 沒有待審核請求 -> no-op
        2. 學生已不可用（被其他觀察者刪除/分配） -> 只清除請求
        3. 分配學生、加到隊伍名單最前面、記錄 Selection 與 last_selection
        4. 清除請求並推進回合（同一次寫入）
        """
        auction = state.auction
        request = auction.pending_request
        if request is None:
            return False

        auction.pending_request = None

        candidate = state.find_candidate(request.admission_number)
        team = state.find_team(request.team)
        if candidate is None or candidate.assigned or team is None:
            logger.warning(
                f"Dropping request of {request.team} for {request.admission_number}: "
                f"candidate no longer available"
            )
            return True

        candidate.assigned = True
        team.roster.insert(0, candidate.model_copy())

        selection = Selection(
            candidate=candidate.name,
            class_label=candidate.class_label,
            team=team.name,
            admission_number=candidate.admission_number
        )
        auction.selections.append(selection)
        auction.last_selection = LastSelection(**selection.model_dump(), time=self.clock())

        logger.info(f"{candidate.name} ({candidate.admission_number}) assigned to {team.name}")

        if auction.status == AuctionStatus.IN_PROGRESS:
            self._advance(state)
        return True

    @mutation
    def reject_request(self, state: AppState) -> bool:
        """
        拒絕待審核請求；回合不推進，同一隊伍可以再次請求
        """
        if state.auction.pending_request is None:
            return False

        logger.info(f"Rejected request: {state.auction.pending_request.model_dump()}")
        state.auction.pending_request = None
        return True

    @mutation
    def advance_turn(self, state: AppState) -> bool:
        """
        推進回合（計時器逾時、或管理員跳過回合）

        異常：
            NotInProgressError: 拍賣不在進行中
            TurnError: 班級還有學生但尚未設定順序
            RequestAlreadyPending: 有待審核請求（必須先接受或拒絕）
        """
        if state.auction.status != AuctionStatus.IN_PROGRESS:
            raise NotInProgressError()
        if state.auction.pending_request is not None:
            raise RequestAlreadyPending()

        self._advance(state)
        return True

    @mutation
    def stop(self, state: AppState) -> bool:
        """
        強制停止（-> not_started）

        注意：
            已完成的 Selection 與分配不會回復（保留歷史）
        """
        auction = state.auction
        auction.status = AuctionStatus.NOT_STARTED
        auction.turn_order = []
        auction.current_team_index = 0
        auction.pending_request = None
        auction.turn_start_time = None

        logger.info("Auction stopped")
        return True

    @mutation
    def reset_system(self, state: AppState) -> bool:
        """
        清空所有學生、隊伍與拍賣資料

        版本號延續（寫入後仍 +1），其他觀察者才會套用這份空狀態
        """
        version = state.auction.state_version
        state.candidates = []
        state.teams = []
        state.auction = AuctionState(state_version=version)

        logger.warning("System reset: all candidates, teams and results discarded")
        return True

    def _advance(self, state: AppState) -> None:
        """
        推進到下一隊或下一班級

        - 目前班級還有未分配學生：下一隊（循環），重設回合開始時間
        - 目前班級已分配完：跳到下一個還有學生的班級，清空順序（等待重新設定）
        - 沒有更高的班級有學生：拍賣完成
        """
        auction = state.auction

        if unassigned_in_class(state.candidates, auction.current_class):
            if not auction.turn_order:
                raise TurnError("Turn order has not been set for this class")
            auction.current_team_index = (auction.current_team_index + 1) % len(auction.turn_order)
            auction.turn_start_time = self.clock()
            logger.info(f"Next turn: team {auction.turn_order[auction.current_team_index]}")
            return

        auction.turn_order = []
        auction.current_team_index = 0
        auction.turn_start_time = None

        next_class = next_class_with_candidates(state.candidates, auction.current_class)
        if next_class is None:
            auction.status = AuctionStatus.COMPLETED
            auction.pending_request = None
            logger.info("Auction completed: no more candidates")
            return

        auction.current_class = next_class
        logger.info(f"Moved to class {next_class}, awaiting new turn order")
