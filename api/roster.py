"""
Roster API Endpoints

職責：
1. 學生名單：查詢、新增、編輯、刪除、CSV 匯入
2. 隊伍名單：查詢、新增、刪除、挑選歷史

拍賣進行中名單被鎖定（409）
"""
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
import logging

from api.deps import get_engine, get_roster_manager
from core.auction_engine import AuctionEngine
from core.roster_manager import RosterManager
from core.exceptions import (
    AuctionRuleViolation,
    CandidateNotFound,
    StorageError,
    TeamNotFound,
    ValidationError
)
from models import Candidate, Team
from schemas import (
    ActionResponse,
    CandidateCreate,
    CandidateListResponse,
    CandidateUpdate,
    ImportReportResponse,
    TeamCreate,
    TeamHistoryResponse,
    TeamListResponse
)
from services.history_service import get_team_history

router = APIRouter(prefix="/api", tags=["roster"])
logger = logging.getLogger(__name__)


@router.get("/candidates", response_model=CandidateListResponse)
def list_candidates(engine: AuctionEngine = Depends(get_engine)):
    try:
        return CandidateListResponse(candidates=engine.snapshot().candidates)

    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to list candidates: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/candidates", response_model=Candidate)
def add_candidate(data: CandidateCreate, roster: RosterManager = Depends(get_roster_manager)):
    """
    新增學生

    前置條件：
    - 拍賣不在進行中
    - 學號未被使用、班級在 1-9
    """
    try:
        return roster.add_candidate(
            name=data.name,
            admission_number=data.admission_number,
            class_label=data.class_label,
            image=data.image
        )

    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AuctionRuleViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to add candidate: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.patch("/candidates/{admission_number}", response_model=Candidate)
def edit_candidate(
    admission_number: str,
    data: CandidateUpdate,
    roster: RosterManager = Depends(get_roster_manager)
):
    """
    編輯學生的學號或照片（照片為 data URL 或連結）
    """
    try:
        return roster.edit_candidate(
            admission_number,
            new_admission_number=data.admission_number,
            image=data.image
        )

    except CandidateNotFound:
        raise HTTPException(status_code=404, detail="Candidate not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AuctionRuleViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to edit candidate: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/candidates/{admission_number}", response_model=ActionResponse)
def delete_candidate(
    admission_number: str,
    roster: RosterManager = Depends(get_roster_manager)
):
    try:
        state = roster.delete_candidate(admission_number)
        return ActionResponse(status="ok", state_version=state.auction.state_version)

    except CandidateNotFound:
        raise HTTPException(status_code=404, detail="Candidate not found")
    except AuctionRuleViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to delete candidate: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/candidates/import", response_model=ImportReportResponse)
async def import_candidates(
    file: UploadFile = File(...),
    roster: RosterManager = Depends(get_roster_manager)
):
    """
    CSV 匯入學生（無標題列）：Name, AdmissionNumber, Class[, ImageLink]

    返回：
        - processed: 處理的列數（不含空白列）
        - added: 新增的學生數
        - errors: 每一個被略過的列的原因
    """
    try:
        text = (await file.read()).decode("utf-8-sig")
        report = roster.import_candidates(text)
        return ImportReportResponse(
            processed=report.processed,
            added=len(report.added),
            errors=report.errors
        )

    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV file must be UTF-8 encoded")
    except AuctionRuleViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to import candidates: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/teams", response_model=TeamListResponse)
def list_teams(engine: AuctionEngine = Depends(get_engine)):
    try:
        return TeamListResponse(teams=engine.snapshot().teams)

    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to list teams: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/teams", response_model=Team)
def add_team(data: TeamCreate, roster: RosterManager = Depends(get_roster_manager)):
    try:
        return roster.add_team(name=data.name, leader=data.leader, assistant=data.assistant)

    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AuctionRuleViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to add team: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/teams/{name}", response_model=ActionResponse)
def delete_team(name: str, roster: RosterManager = Depends(get_roster_manager)):
    """
    刪除隊伍；有挑選紀錄的隊伍回傳 409
    """
    try:
        state = roster.delete_team(name)
        return ActionResponse(status="ok", state_version=state.auction.state_version)

    except TeamNotFound:
        raise HTTPException(status_code=404, detail="Team not found")
    except AuctionRuleViolation as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to delete team: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/teams/{name}/history", response_model=TeamHistoryResponse)
def get_team_pick_history(name: str, engine: AuctionEngine = Depends(get_engine)):
    """
    取得隊伍的挑選歷史（依挑選順序，含全場挑選編號）
    """
    try:
        history = get_team_history(engine.snapshot(), name)
        return TeamHistoryResponse(team=name, history=history)

    except TeamNotFound:
        raise HTTPException(status_code=404, detail="Team not found")
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get team history: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
