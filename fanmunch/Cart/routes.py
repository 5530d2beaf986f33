# Cart/routes.py
from fastapi import APIRouter

from fanmunch.Cart.cart import calculate_totals
from fanmunch.Cart.models import CartTotalsRequest

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.post("/totals")
def cart_totals(body: CartTotalsRequest):
    totals = calculate_totals(body.items)
    return {"success": True, **totals.model_dump()}
