"""
Results API Endpoints

- GET /api/results：結果預覽（每筆 Selection，接著每位未分配學生）
- GET /api/results/export：下載 auction_results.csv
"""
from fastapi import APIRouter, Depends, HTTPException, Response
import logging

from api.deps import get_engine
from core.auction_engine import AuctionEngine
from core.exceptions import StorageError
from schemas import ResultRowResponse, ResultsResponse
from services.results_service import (
    EXPORT_FILENAME,
    has_results,
    project_results,
    render_csv
)

router = APIRouter(prefix="/api/results", tags=["results"])
logger = logging.getLogger(__name__)


@router.get("", response_model=ResultsResponse)
def get_results(engine: AuctionEngine = Depends(get_engine)):
    try:
        rows = project_results(engine.snapshot())
        return ResultsResponse(rows=[
            ResultRowResponse(candidate=r.candidate, class_label=r.class_label, team=r.team)
            for r in rows
        ])

    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get results: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/export")
def export_results(engine: AuctionEngine = Depends(get_engine)):
    """
    下載結果 CSV

    沒有任何 Selection 也沒有未分配學生時回傳 404
    """
    try:
        state = engine.snapshot()
        if not has_results(state):
            raise HTTPException(status_code=404, detail="No results available to download")

        return Response(
            content=render_csv(project_results(state)),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'}
        )

    except HTTPException:
        raise
    except StorageError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to export results: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
