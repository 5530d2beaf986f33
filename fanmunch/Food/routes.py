# Food/routes.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from fanmunch.core.dependencies import get_food_repository
from fanmunch.Food.models import Food
from fanmunch.Food.repository import FoodRepository

logger = logging.getLogger("food.routes")

router = APIRouter(prefix="/api/menu", tags=["menu"])


def _food_payload(food: Food) -> dict:
    data = food.model_dump(mode="json")
    data["badges"] = food.food_type_badges()
    data["displayName"] = food.display_name()
    return data


def _listing(foods) -> dict:
    return {"success": True, "data": [_food_payload(f) for f in foods], "total": len(foods)}


@router.get("")
def list_menu(
    stadiumId: Optional[str] = Query(None, min_length=1),
    category: Optional[str] = Query(None, min_length=1),
    search: Optional[str] = Query(None, min_length=1),
    repo: FoodRepository = Depends(get_food_repository),
):
    try:
        if search:
            foods = repo.search_menu_items(search, stadiumId)
        elif category:
            foods = repo.get_menu_items_by_category(category, stadiumId)
        elif stadiumId:
            foods = repo.get_stadium_menu(stadiumId)
        else:
            foods = repo.get_all_menu_items()
    except Exception:
        logger.exception("Error fetching menu items")
        raise HTTPException(status_code=500, detail="Failed to fetch menu items")
    return _listing(foods)


@router.get("/shop/{shop_id}")
def shop_menu(
    shop_id: str,
    limit: int = Query(30, ge=1, le=100),
    repo: FoodRepository = Depends(get_food_repository),
):
    try:
        foods = repo.get_menu_items_by_shop(shop_id, limit)
    except Exception:
        logger.exception("Error fetching menu for shop %s", shop_id)
        raise HTTPException(status_code=500, detail="Failed to fetch shop menu")
    return _listing(foods)


@router.get("/items/{food_id}")
def get_food(food_id: str, repo: FoodRepository = Depends(get_food_repository)):
    food = repo.get_food_by_id(food_id)
    if food is None:
        raise HTTPException(status_code=404, detail="Menu item not found")
    data = _food_payload(food)
    if food.isCombo:
        data["comboItems"] = [_food_payload(f) for f in repo.get_combo_items(food.comboItemIds)]
    return {"success": True, "data": data}
