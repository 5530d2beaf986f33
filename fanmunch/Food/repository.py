# Food/repository.py
"""
Firestore access for the `menuItems` collection.

A document that does not map to Food is logged and skipped so one bad item
never hides a whole menu. Unavailable items are left out of every listing.
"""
import logging
from typing import Iterable, List, Optional

from fanmunch.core.errors import ModelValidationError
from fanmunch.Food.models import Food

logger = logging.getLogger("food.repository")

COLLECTION = "menuItems"
SHOP_MENU_LIMIT = 30
STADIUM_MENU_LIMIT = 10
ALL_ITEMS_LIMIT = 50


class FoodRepository:
    def __init__(self, db):
        self.db = db

    @property
    def _ref(self):
        return self.db.collection(COLLECTION)

    @staticmethod
    def _available(docs: Iterable) -> List[Food]:
        foods = []
        for doc in docs:
            try:
                food = Food.from_firestore(doc.to_dict(), doc.id)
            except ModelValidationError as e:
                logger.error("Error mapping food %s: %s", doc.id, e)
                continue
            if food.isAvailable:
                foods.append(food)
        return foods

    def get_food_by_id(self, food_id: str) -> Optional[Food]:
        doc = self._ref.document(food_id).get()
        if not doc.exists:
            return None
        return Food.from_firestore(doc.to_dict(), doc.id)

    def get_menu_items_by_shop(self, shop_id: str, limit: int = SHOP_MENU_LIMIT) -> List[Food]:
        docs = self._ref.where("shopIds", "array_contains", shop_id).limit(limit).stream()
        return self._available(docs)

    def get_stadium_menu(self, stadium_id: str, limit: int = STADIUM_MENU_LIMIT) -> List[Food]:
        docs = self._ref.where("stadiumId", "==", stadium_id).limit(limit).stream()
        foods = self._available(docs)
        # newest first
        foods.sort(key=lambda f: f.createdAt, reverse=True)
        logger.info("Stadium %s menu: %d items", stadium_id, len(foods))
        return foods

    def get_all_menu_items(self, limit: int = ALL_ITEMS_LIMIT) -> List[Food]:
        return self._available(self._ref.limit(limit).stream())

    def _menu(self, stadium_id: Optional[str]) -> List[Food]:
        if stadium_id:
            return self.get_stadium_menu(stadium_id, ALL_ITEMS_LIMIT)
        return self.get_all_menu_items()

    def get_menu_items_by_category(self, category: str, stadium_id: Optional[str] = None) -> List[Food]:
        return [f for f in self._menu(stadium_id) if f.matches_category(category)]

    def search_menu_items(self, term: str, stadium_id: Optional[str] = None) -> List[Food]:
        return [f for f in self._menu(stadium_id) if f.matches(term)]

    def get_combo_items(self, item_ids: List[str]) -> List[Food]:
        items = []
        for item_id in item_ids or []:
            try:
                food = self.get_food_by_id(item_id)
            except ModelValidationError as e:
                logger.error("❌ Error fetching combo item %s: %s", item_id, e)
                continue
            if food is None:
                logger.warning("⚠️ Combo item not found: %s", item_id)
                continue
            items.append(food)
        return items
