# Order/repository.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

from google.cloud import firestore

from fanmunch.core.errors import ModelValidationError
from fanmunch.Order.models import Order

logger = logging.getLogger("order.repository")

COLLECTION = "orders"
DEFAULT_DELIVERY_FEE = 2


def calculate_order_totals(
    cart_items: List[Dict[str, Any]],
    delivery_fee: float = DEFAULT_DELIVERY_FEE,
    tip: float = 0,
    discount: float = 0,
) -> Dict[str, float]:
    subtotal = sum(float(item.get("price") or 0) * (item.get("quantity") or 1) for item in cart_items)
    total = subtotal + delivery_fee + tip - discount
    return {
        "subtotal": round(subtotal, 2),
        "deliveryFee": round(delivery_fee, 2),
        "tip": round(tip, 2),
        "discount": round(discount, 2),
        "total": round(total, 2),
    }


class OrderRepository:
    def __init__(self, db):
        self.db = db

    @property
    def _ref(self):
        return self.db.collection(COLLECTION)

    @staticmethod
    def _orders(docs: Iterable) -> List[Order]:
        orders = []
        for doc in docs:
            try:
                orders.append(Order.from_firestore(doc.to_dict(), doc.id))
            except ModelValidationError as e:
                logger.warning("Skipping order %s: %s", doc.id, e)
        return orders

    def create_order(self, order: Order) -> Order:
        now = datetime.now(timezone.utc)
        order.createdAt = now
        order.updatedAt = now
        _, ref = self._ref.add(order.to_firestore())
        order.id = ref.id
        logger.info("🧾 Order %s created (code %s) for shop %s", ref.id, order.orderCode, order.shopId)
        return order

    def fetch_orders_for_user(self, user_id: str) -> List[Order]:
        if not user_id:
            raise ValueError("User ID is required to fetch orders")
        docs = (
            self._ref.where("userInfo.userId", "==", user_id)
            .order_by("createdAt", direction=firestore.Query.DESCENDING)
            .stream()
        )
        return self._orders(docs)

    def fetch_orders_for_shop(self, shop_id: str) -> List[Order]:
        if not shop_id:
            raise ValueError("Shop ID is required to fetch orders")
        docs = (
            self._ref.where("shopId", "==", shop_id)
            .order_by("createdAt", direction=firestore.Query.DESCENDING)
            .stream()
        )
        return self._orders(docs)

    def fetch_all_orders(self) -> List[Order]:
        docs = self._ref.order_by("createdAt", direction=firestore.Query.DESCENDING).stream()
        return self._orders(docs)
