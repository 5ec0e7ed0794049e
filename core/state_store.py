"""
StateStore：共享狀態的版本化持久層

職責：
1. 把整份 AppState 寫入單一資料列，每次寫入版本號 +1
2. 依版本號決定是否套用讀到的狀態（只接受比本地更新的版本）
3. 寫入成功後透過 ChangeNotifier 通知其他觀察者

跨 process 的一致性：
- 寫入採 last-write-wins
- 讀取端只套用 state_version 嚴格大於本地版本的狀態
- 所有觀察者看到最高版本後即收斂，與訊息到達順序無關
"""
import logging
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import StorageError
from core.locks import with_snapshot_lock
from core.notifier import ChangeNotifier
from database import SessionLocal, transactional
from models import AppState, AppStateSnapshot

logger = logging.getLogger(__name__)


@transactional
def _write_snapshot(db: Session, state: AppState) -> int:
    """
    在同一個 transaction 內讀取目前版本並寫入新版本

    新版本 = max(本地版本, 持久化版本) + 1：
    - 單一 process 連續 N 次 save，版本恰好增加 N
    - 本地版本落後時，寫入仍會比其他觀察者已看過的版本大

    返回：
        寫入的新版本號
    """
    row = with_snapshot_lock(db).first()
    persisted_version = row.state_version if row else 0
    new_version = max(state.auction.state_version, persisted_version) + 1

    state.auction.state_version = new_version
    payload = state.model_dump(mode="json")

    if row is None:
        row = AppStateSnapshot(
            id=AppStateSnapshot.SINGLETON_ID,
            state_version=new_version,
            payload=payload
        )
        db.add(row)
    else:
        row.state_version = new_version
        row.payload = payload

    return new_version


class StateStore:
    """共享狀態存取（每個觀察者一個實例，可共用同一個 notifier）"""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        notifier: Optional[ChangeNotifier] = None
    ):
        self.session_factory = session_factory
        self.notifier = notifier or ChangeNotifier()

    def fetch(self) -> Optional[AppState]:
        """
        無條件讀取目前持久化的狀態

        返回：
            AppState，若尚未寫入過則為 None

        異常：
            StorageError: 資料庫錯誤或 payload 損毀
        """
        db = self.session_factory()
        try:
            row = db.query(AppStateSnapshot).filter(
                AppStateSnapshot.id == AppStateSnapshot.SINGLETON_ID
            ).first()
            if row is None:
                return None
            state = AppState.model_validate(row.payload)
            # 以欄位為準，payload 與欄位不一致時不會讓版本倒退
            state.auction.state_version = row.state_version
            return state
        except SQLAlchemyError as e:
            logger.error(f"Failed to read shared state: {e}", exc_info=True)
            raise StorageError("Error loading shared state") from e
        except PydanticValidationError as e:
            logger.error(f"Persisted state is corrupt: {e}", exc_info=True)
            raise StorageError("Persisted state is corrupt") from e
        finally:
            db.close()

    def load(self, known_version: int) -> Optional[AppState]:
        """
        版本閘門讀取：只回傳比 known_version 新的狀態

        參數：
            known_version: 呼叫端最後套用的版本

        返回：
            較新的 AppState；沒有新版本時為 None（呼叫端保持本地狀態不變）
        """
        state = self.fetch()
        if state is None or state.auction.state_version <= known_version:
            logger.debug(f"Skipped state load: no version newer than {known_version}")
            return None

        logger.debug(
            f"Loaded state_version={state.auction.state_version} (local was {known_version})"
        )
        return state

    def save(self, state: AppState) -> AppState:
        """
        寫入整份狀態（版本 +1）並通知其他觀察者

        參數：
            state: 要寫入的狀態（不會被修改）

        返回：
            已寫入的狀態副本（含新版本號）

        異常：
            StorageError: 寫入失敗，本次變更未生效
        """
        draft = state.model_copy(deep=True)
        db = self.session_factory()
        try:
            new_version = _write_snapshot(db, draft)
        except SQLAlchemyError as e:
            raise StorageError("Failed to save shared state") from e
        finally:
            db.close()

        logger.debug(f"Saved state_version={new_version}")
        self.notifier.signal(new_version)
        return draft
