# Shop/routes.py
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from fanmunch.core.dependencies import get_shop_repository
from fanmunch.Shop.models import Shop
from fanmunch.Shop.repository import ShopRepository

router = APIRouter(prefix="/api/shops", tags=["shops"])


def _shop_payload(shop: Shop) -> dict:
    data = shop.model_dump(mode="json", exclude={"fcmToken", "shopUserFcmToken"})
    data["isOpen"] = {
        "inside": shop.is_open("inside"),
        "outside": shop.is_open("outside"),
    }
    data["deliveryFees"] = {
        "inside": shop.get_delivery_fee("inside"),
        "outside": shop.get_delivery_fee("outside"),
    }
    return data


@router.get("")
def list_shops(
    stadiumId: str = Query(..., min_length=1),
    deliveryType: Optional[Literal["inside", "outside"]] = None,
    repo: ShopRepository = Depends(get_shop_repository),
):
    if deliveryType:
        shops = repo.get_available_shops(stadiumId, deliveryType)
    else:
        shops = repo.get_shops_by_stadium(stadiumId)
    return {"success": True, "data": [_shop_payload(s) for s in shops], "total": len(shops)}


@router.get("/{shop_id}")
def get_shop(shop_id: str, repo: ShopRepository = Depends(get_shop_repository)):
    shop = repo.get_shop_by_id(shop_id)
    if shop is None:
        raise HTTPException(status_code=404, detail="Shop not found")
    return {"success": True, "data": _shop_payload(shop)}
