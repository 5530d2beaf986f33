# Stadium/routes.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from fanmunch.core.dependencies import get_stadium_repository
from fanmunch.Stadium.repository import StadiumRepository

router = APIRouter(prefix="/api/stadiums", tags=["stadiums"])


@router.get("")
def list_stadiums(
    search: Optional[str] = Query(None, min_length=1),
    location: Optional[str] = Query(None, min_length=1),
    repo: StadiumRepository = Depends(get_stadium_repository),
):
    if search:
        stadiums = repo.search_stadiums(search)
    elif location:
        stadiums = repo.get_stadiums_by_location(location)
    else:
        stadiums = repo.get_all_stadiums()
    return {"success": True, "data": [s.to_map() for s in stadiums], "total": len(stadiums)}


@router.get("/featured")
def featured_stadiums(
    limit: int = Query(6, ge=1, le=50),
    repo: StadiumRepository = Depends(get_stadium_repository),
):
    stadiums = repo.get_featured_stadiums(limit)
    return {"success": True, "data": [s.to_map() for s in stadiums]}


@router.get("/{stadium_id}")
def get_stadium(stadium_id: str, repo: StadiumRepository = Depends(get_stadium_repository)):
    stadium = repo.get_stadium_by_id(stadium_id)
    if stadium is None:
        raise HTTPException(status_code=404, detail="Stadium not found")
    return {
        "success": True,
        "data": stadium.to_map(),
        "displayName": stadium.display_name(),
        "features": stadium.features(),
    }
