# admin/routes.py
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from fanmunch.core.dependencies import get_stadium_repository
from fanmunch.Stadium.repository import StadiumNotFound, StadiumRepository

logger = logging.getLogger("admin.routes")

router = APIRouter(prefix="/api/admin", tags=["admin"])


class UpdateStadiumRequest(BaseModel):
    stadiumId: Optional[str] = None
    flags: Optional[Dict[str, Any]] = None


@router.post("/update-stadium")
def update_stadium(body: UpdateStadiumRequest, repo: StadiumRepository = Depends(get_stadium_repository)):
    """Patch feature flags (or any fields) on a stadium document."""
    if not body.stadiumId or not body.flags:
        raise HTTPException(status_code=400, detail="Missing stadiumId or flags")

    try:
        repo.update_stadium(body.stadiumId, body.flags)
    except StadiumNotFound:
        raise HTTPException(status_code=404, detail=f"Stadium {body.stadiumId} not found")
    except Exception as e:
        logger.exception("Error updating stadium %s", body.stadiumId)
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "success": True,
        "message": "Stadium updated",
        "stadiumId": body.stadiumId,
        "flags": body.flags,
    }
