# Order/routes.py
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from fanmunch.core.dependencies import get_order_repository
from fanmunch.Order.models import Order
from fanmunch.Order.repository import DEFAULT_DELIVERY_FEE, OrderRepository, calculate_order_totals

logger = logging.getLogger("order.routes")

router = APIRouter(prefix="/api/orders", tags=["orders"])


class CreateOrderRequest(BaseModel):
    cart: List[Dict[str, Any]] = Field(min_length=1)
    user: Dict[str, Any]
    shopId: str = Field(min_length=1)
    stadiumId: str = ""
    subtotal: Optional[float] = Field(default=None, ge=0)
    deliveryFee: float = Field(default=DEFAULT_DELIVERY_FEE, ge=0)
    discount: float = Field(default=0, ge=0)
    tipAmount: float = Field(default=0, ge=0)
    tipPercentage: float = Field(default=0, ge=0)
    seatInfo: Optional[Dict[str, Any]] = None
    customerLocation: Any = None
    location: Any = None
    deliveryUserId: str = ""


def _order_payload(order: Order) -> dict:
    return {**order.model_dump(mode="json"), "statusLabel": order.status_label, "isActive": order.is_active()}


def _listing(orders: List[Order]) -> dict:
    return {"success": True, "data": [_order_payload(o) for o in orders], "total": len(orders)}


@router.post("", status_code=201)
def create_order(body: CreateOrderRequest, repo: OrderRepository = Depends(get_order_repository)):
    subtotal = body.subtotal
    if subtotal is None:
        subtotal = calculate_order_totals(body.cart)["subtotal"]

    order = Order.create_from_cart(
        body.cart,
        body.user,
        shop_id=body.shopId,
        stadium_id=body.stadiumId,
        subtotal=subtotal,
        delivery_fee=body.deliveryFee,
        discount=body.discount,
        tip_amount=body.tipAmount,
        tip_percentage=body.tipPercentage,
        seat_info=body.seatInfo,
        customer_location=body.customerLocation,
        location=body.location,
        delivery_user_id=body.deliveryUserId,
    )
    if not order.userInfo.userId:
        raise HTTPException(status_code=400, detail="user.id is required")

    try:
        order = repo.create_order(order)
    except Exception:
        logger.exception("❌ Error creating order")
        raise HTTPException(status_code=500, detail="Failed to create order")
    return {"success": True, "data": _order_payload(order), "summary": order.summary()}


@router.get("")
def list_orders(repo: OrderRepository = Depends(get_order_repository)):
    return _listing(repo.fetch_all_orders())


@router.get("/user/{user_id}")
def user_orders(user_id: str, repo: OrderRepository = Depends(get_order_repository)):
    return _listing(repo.fetch_orders_for_user(user_id))


@router.get("/shop/{shop_id}")
def shop_orders(shop_id: str, repo: OrderRepository = Depends(get_order_repository)):
    return _listing(repo.fetch_orders_for_shop(shop_id))
