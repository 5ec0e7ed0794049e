"""
資料模型

- Enum：拍賣狀態與階段
- 領域模型（pydantic）：AppState 整份狀態，序列化後整份寫入 StateStore
- ORM（SQLAlchemy）：AppStateSnapshot，單列儲存最新版本的 AppState
"""
import enum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import Column, DateTime, Integer, JSON

from database import Base


class AuctionStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class AuctionPhase(str, enum.Enum):
    """IN_PROGRESS 內部的子循環（由 AuctionState 推導，不另外儲存）"""
    NOT_STARTED = "not_started"
    AWAITING_TURN_ORDER = "awaiting_turn_order"
    AWAITING_REQUEST = "awaiting_request"
    PENDING_REQUEST = "pending_request"
    COMPLETED = "completed"


UNASSIGNED_TEAM = "Unassigned"


# ============ 領域模型 ============

class Candidate(BaseModel):
    name: str
    class_label: str
    admission_number: str
    assigned: bool = False
    image: Optional[str] = None


class Team(BaseModel):
    name: str
    leader: str
    assistant: Optional[str] = None
    # 最新選到的在最前面
    roster: List[Candidate] = Field(default_factory=list)


class PendingRequest(BaseModel):
    team: str
    candidate: str
    class_label: str
    admission_number: str


class Selection(BaseModel):
    candidate: str
    class_label: str
    team: str
    admission_number: str


class LastSelection(Selection):
    time: int


class AuctionState(BaseModel):
    status: AuctionStatus = AuctionStatus.NOT_STARTED
    current_class: str = "1"
    current_team_index: int = 0
    turn_order: List[str] = Field(default_factory=list)
    selections: List[Selection] = Field(default_factory=list)
    pending_request: Optional[PendingRequest] = None
    last_selection: Optional[LastSelection] = None
    # epoch millis
    turn_start_time: Optional[int] = None
    state_version: int = 0


class AppState(BaseModel):
    candidates: List[Candidate] = Field(default_factory=list)
    teams: List[Team] = Field(default_factory=list)
    auction: AuctionState = Field(default_factory=AuctionState)

    def find_candidate(self, admission_number: str) -> Optional[Candidate]:
        return next(
            (c for c in self.candidates if c.admission_number == admission_number),
            None
        )

    def find_team(self, name: str) -> Optional[Team]:
        return next((t for t in self.teams if t.name == name), None)

    def team_names(self) -> List[str]:
        return [t.name for t in self.teams]


# ============ ORM ============

class AppStateSnapshot(Base):
    """
    整份 AppState 的持久化鏡像

    只會有一列（id=1）；state_version 另存一欄，讀取端不需解析 payload
    就能判斷是否有新版本。
    """
    __tablename__ = "app_state_snapshots"

    SINGLETON_ID = 1

    id = Column(Integer, primary_key=True)
    state_version = Column(Integer, nullable=False, default=0)
    payload = Column(JSON, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
