# Shop/repository.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fanmunch.core.errors import ModelValidationError
from fanmunch.Shop.models import Shop

logger = logging.getLogger("shop.repository")

COLLECTION = "shops"


class ShopRepository:
    def __init__(self, db):
        self.db = db

    @property
    def _ref(self):
        return self.db.collection(COLLECTION)

    def get_shop_by_id(self, shop_id: str) -> Optional[Shop]:
        doc = self._ref.document(shop_id).get()
        if not doc.exists:
            return None
        return Shop.from_firestore(doc.to_dict(), doc.id)

    def get_shops_by_stadium(self, stadium_id: str) -> List[Shop]:
        docs = self._ref.where("stadiumId", "==", stadium_id).stream()
        shops = []
        for doc in docs:
            try:
                shops.append(Shop.from_firestore(doc.to_dict(), doc.id))
            except ModelValidationError as e:
                logger.warning("Skipping shop %s: %s", doc.id, e)
        return shops

    def get_available_shops(
        self,
        stadium_id: str,
        delivery_type: str = "inside",
        now: Optional[datetime] = None,
    ) -> List[Shop]:
        shops = self.get_shops_by_stadium(stadium_id)
        available = [
            s for s in shops
            if s.is_delivery_available(delivery_type) and s.is_open(delivery_type, now)
        ]
        logger.debug(
            "Stadium %s: %d/%d shops open for %s delivery",
            stadium_id, len(available), len(shops), delivery_type,
        )
        return available

    def get_shop_document(self, shop_id: str) -> Optional[Dict[str, Any]]:
        """The stored document as-is, without model defaults filled in."""
        doc = self._ref.document(shop_id).get()
        if not doc.exists:
            return None
        return doc.to_dict() or {}

    def get_notification_token(self, shop_id: str) -> Optional[str]:
        doc = self._ref.document(shop_id).get()
        if not doc.exists:
            return None
        data = doc.to_dict() or {}
        return data.get("shopUserFcmToken") or data.get("fcmToken")
