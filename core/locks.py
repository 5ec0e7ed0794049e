"""
並發控制工具

提供 Database-level 的鎖定機制，防止多個 process 同時寫入共享狀態時
互相覆蓋版本號

主要使用 PostgreSQL 的 SELECT ... FOR UPDATE 來實現悲觀鎖（Pessimistic Locking）；
SQLite 會忽略 FOR UPDATE，由單一檔案寫鎖負責序列化
"""
from sqlalchemy.orm import Session, Query

from models import AppStateSnapshot


def with_snapshot_lock(db: Session) -> Query:
    """
    鎖定共享狀態列（行級鎖）

    使用場景：
    - 寫入新版本前讀取目前持久化的 state_version
    - 確保「讀版本 → 寫版本+1」在整個 transaction 期間不被其他 process 插隊

    範例：
        row = with_snapshot_lock(db).first()
        version = row.state_version if row else 0
        ...
        db.commit()

    參數：
        db: SQLAlchemy Session

    返回：
        Query object（需要呼叫 .first() 來取得結果）

    注意：
        - nowait=False 表示如果鎖被佔用，會等待
        - 必須在 transaction 內使用（確保有 commit 或 rollback）
    """
    return db.query(AppStateSnapshot).filter(
        AppStateSnapshot.id == AppStateSnapshot.SINGLETON_ID
    ).with_for_update(nowait=False)
