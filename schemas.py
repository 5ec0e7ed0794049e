"""
API 請求 / 回應格式
"""
from typing import List, Optional

from pydantic import BaseModel, model_validator

from models import AppState, AuctionPhase, Candidate, Team
from services.turn_order_service import parse_turn_order


class ActionResponse(BaseModel):
    status: str
    state_version: int


class StateResponse(BaseModel):
    changed: bool
    state_version: int
    phase: AuctionPhase
    current_team: Optional[str] = None
    remaining_seconds: int
    # 版本沒有變化時省略
    state: Optional[AppState] = None


class TimerResponse(BaseModel):
    active: bool
    remaining_seconds: int
    duration: int


class TurnOrderSubmit(BaseModel):
    """順序可以是隊伍名稱清單，或以逗號分隔的文字（例如 "TeamA,TeamB"）"""
    order: Optional[List[str]] = None
    order_text: Optional[str] = None

    @model_validator(mode="after")
    def resolve_order(self):
        if self.order is None:
            if self.order_text is None:
                raise ValueError("Either order or order_text is required")
            self.order = parse_turn_order(self.order_text)
        return self


class CandidateRequestSubmit(BaseModel):
    team: str
    admission_number: str


class CandidateCreate(BaseModel):
    name: str
    admission_number: str
    class_label: str
    image: Optional[str] = None


class CandidateUpdate(BaseModel):
    admission_number: Optional[str] = None
    image: Optional[str] = None


class CandidateListResponse(BaseModel):
    candidates: List[Candidate]


class ImportReportResponse(BaseModel):
    processed: int
    added: int
    errors: List[str]


class TeamCreate(BaseModel):
    name: str
    leader: str
    assistant: Optional[str] = None


class TeamListResponse(BaseModel):
    teams: List[Team]


class TeamHistoryEntry(BaseModel):
    pick_number: int
    candidate: str
    class_label: str
    admission_number: str


class TeamHistoryResponse(BaseModel):
    team: str
    history: List[TeamHistoryEntry]


class ResultRowResponse(BaseModel):
    candidate: str
    class_label: str
    team: str


class ResultsResponse(BaseModel):
    rows: List[ResultRowResponse]
