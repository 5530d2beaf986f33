# Cart/cart.py
"""
Cart kept in a client-side key/value store under one JSON-encoded key.

Two stored layouts exist in the wild: a bare list of items (older apps) and
{"items": [...]} (newer ones). Both are read; writes use the bare list.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, MutableMapping, Optional

from pydantic import ValidationError

from fanmunch.Cart.models import CartItem, CartTotals

logger = logging.getLogger("cart")

CART_STORAGE_KEY = "food_munch_cart"
DELIVERY_FEE_PER_ITEM = 2


class CartStorage:
    def __init__(self, backend: Optional[MutableMapping[str, str]] = None, key: str = CART_STORAGE_KEY):
        self.backend = backend if backend is not None else {}
        self.key = key

    def load(self) -> List[Dict[str, Any]]:
        raw = self.backend.get(self.key)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning("⚠️ Cart data is not valid JSON, returning empty cart")
            return []
        if isinstance(parsed, dict):
            parsed = parsed.get("items")
        if isinstance(parsed, list) and all(isinstance(item, dict) for item in parsed):
            return parsed
        logger.warning("⚠️ Invalid cart data format, returning empty cart")
        return []

    def save(self, items: List[Dict[str, Any]]) -> None:
        self.backend[self.key] = json.dumps(items)

    def clear(self) -> None:
        self.backend.pop(self.key, None)


@dataclass
class CartResult:
    success: bool
    message: str = ""
    items: List[Dict[str, Any]] = field(default_factory=list)
    total_items: int = 0
    needs_confirmation: bool = False


class Cart:
    def __init__(self, storage: Optional[CartStorage] = None):
        self.storage = storage or CartStorage()

    @property
    def items(self) -> List[Dict[str, Any]]:
        return self.storage.load()

    @staticmethod
    def _find(items: List[Dict[str, Any]], food_id: str) -> Optional[Dict[str, Any]]:
        return next((item for item in items if item.get("id") == food_id), None)

    def add_to_cart(self, food: Dict[str, Any], quantity: int = 1) -> CartResult:
        if not food or not food.get("id") or not food.get("name"):
            logger.error("❌ Invalid food item: %s", food)
            return CartResult(success=False, message="Invalid food item")

        items = self.storage.load()
        existing = self._find(items, food["id"])
        if existing is not None:
            existing["quantity"] = existing.get("quantity", 0) + quantity
        else:
            discount = food.get("discountPercentage") or 0
            price = food.get("price") or 0
            actual_price = price * (1 - discount / 100) if discount > 0 else price
            shop_ids = list(food.get("shopIds") or ([food["shopId"]] if food.get("shopId") else []))
            try:
                item = CartItem(
                    id=food["id"],
                    name=food["name"],
                    price=actual_price,
                    originalPrice=price,
                    discountPercentage=discount,
                    currency=food.get("currency") or "ILS",
                    quantity=quantity,
                    images=food.get("images") or [],
                    shopId=food.get("shopId") or (shop_ids[0] if shop_ids else ""),
                    shopIds=shop_ids,
                    stadiumId=food.get("stadiumId"),
                    preparationTime=food.get("preparationTime") or 15,
                    description=food.get("description") or "",
                    allergens=food.get("allergens") or [],
                    category=food.get("category") or "",
                )
            except ValidationError as e:
                logger.error("❌ Rejected cart item %s: %s", food.get("id"), e)
                return CartResult(success=False, message="Invalid food item")
            items.append(item.model_dump())

        self.storage.save(items)
        logger.info("🛒 Added %s x%d to cart", food["name"], quantity)
        return CartResult(
            success=True,
            message=f"{food['name']} added to cart!",
            items=items,
            total_items=_count(items),
        )

    def remove_from_cart(self, food_id: str) -> List[Dict[str, Any]]:
        items = self.storage.load()
        remaining = [item for item in items if item.get("id") != food_id]
        if len(remaining) != len(items):
            self.storage.save(remaining)
        return remaining

    def update_quantity(self, food_id: str, quantity: int) -> List[Dict[str, Any]]:
        items = self.storage.load()
        item = self._find(items, food_id)
        if item is None:
            return items
        if quantity <= 0:
            return self.remove_from_cart(food_id)
        item["quantity"] = quantity
        self.storage.save(items)
        return items

    def decrease_quantity(self, food_id: str) -> CartResult:
        """
        Take one unit off an item. The last unit is never removed here: the
        caller must ask the user and then call confirm_removal().
        """
        items = self.storage.load()
        item = self._find(items, food_id)
        if item is None:
            return CartResult(success=False, message="Item not in cart", items=items, total_items=_count(items))
        if item.get("quantity", 0) <= 1:
            return CartResult(
                success=False,
                message=f"Remove {item.get('name', 'item')} from cart?",
                items=items,
                total_items=_count(items),
                needs_confirmation=True,
            )
        items = self.update_quantity(food_id, item["quantity"] - 1)
        return CartResult(success=True, items=items, total_items=_count(items))

    def confirm_removal(self, food_id: str) -> List[Dict[str, Any]]:
        return self.remove_from_cart(food_id)

    def clear_cart(self) -> List[Dict[str, Any]]:
        self.storage.clear()
        logger.info("🧹 Cart cleared")
        return []

    def is_in_cart(self, food_id: str) -> bool:
        return self._find(self.storage.load(), food_id) is not None

    def get_item_quantity(self, food_id: str) -> int:
        item = self._find(self.storage.load(), food_id)
        return item.get("quantity", 0) if item else 0

    def get_total_items(self) -> int:
        return _count(self.storage.load())

    def get_total_price(self) -> float:
        return sum(item.get("price", 0) * item.get("quantity", 0) for item in self.storage.load())


def _count(items: Iterable[Dict[str, Any]]) -> int:
    return sum(item.get("quantity", 0) for item in items)


def calculate_totals(items: Iterable[Any]) -> CartTotals:
    """
    subtotal = sum(price * quantity); delivery is a flat 2 per unit.
    Tip and discount are applied later in checkout, so they are 0 here.
    """
    subtotal = 0.0
    units = 0
    for item in items:
        price = item["price"] if isinstance(item, dict) else item.price
        quantity = item["quantity"] if isinstance(item, dict) else item.quantity
        subtotal += price * quantity
        units += quantity
    delivery_fee = DELIVERY_FEE_PER_ITEM * units
    return CartTotals(
        subtotal=subtotal,
        deliveryFee=delivery_fee,
        tip=0,
        discount=0,
        total=subtotal + delivery_fee,
    )
