# Stadium/repository.py
"""
Firestore access for the `stadiums` collection.

Read failures never reach the caller: listing calls fall back to the static
stadium list, single lookups return None.
"""
import logging
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import NotFound
from google.cloud import firestore

from fanmunch.Stadium.models import Stadium, fallback_stadiums

logger = logging.getLogger("stadium.repository")

COLLECTION = "stadiums"


class StadiumNotFound(LookupError):
    pass


class StadiumRepository:
    def __init__(self, db):
        self.db = db

    @property
    def _ref(self):
        return self.db.collection(COLLECTION)

    @staticmethod
    def _to_stadium(doc) -> Stadium:
        return Stadium.from_map({**(doc.to_dict() or {}), "id": doc.id})

    def get_all_stadiums(self) -> List[Stadium]:
        try:
            docs = self._ref.order_by("name", direction=firestore.Query.ASCENDING).stream()
            return [self._to_stadium(doc) for doc in docs]
        except Exception as e:
            logger.error("Error fetching stadiums, serving fallback list: %s", e)
            return fallback_stadiums()

    def get_stadium_by_id(self, stadium_id: str) -> Optional[Stadium]:
        try:
            doc = self._ref.document(stadium_id).get()
            if not doc.exists:
                logger.info("No stadium found with ID: %s", stadium_id)
                return None
            return self._to_stadium(doc)
        except Exception as e:
            logger.error("Error fetching stadium %s: %s", stadium_id, e)
            return None

    def get_stadiums_by_location(self, location: str) -> List[Stadium]:
        try:
            docs = (
                self._ref.where("location", "==", location)
                .order_by("name", direction=firestore.Query.ASCENDING)
                .stream()
            )
            return [self._to_stadium(doc) for doc in docs]
        except Exception as e:
            logger.error("Error fetching stadiums by location %s: %s", location, e)
            return []

    def get_featured_stadiums(self, limit: int = 6) -> List[Stadium]:
        try:
            docs = (
                self._ref.order_by("capacity", direction=firestore.Query.DESCENDING)
                .limit(limit)
                .stream()
            )
            return [self._to_stadium(doc) for doc in docs]
        except Exception as e:
            logger.error("Error fetching featured stadiums: %s", e)
            return fallback_stadiums()[:limit]

    def search_stadiums(self, term: str) -> List[Stadium]:
        # Firestore has no full-text search; filter client side
        needle = (term or "").lower()
        try:
            stadiums = [self._to_stadium(doc) for doc in self._ref.stream()]
        except Exception as e:
            logger.error("Error searching stadiums: %s", e)
            return []
        return [
            s for s in stadiums
            if needle in s.name.lower() or needle in s.location.lower()
        ]

    def is_firebase_available(self) -> bool:
        try:
            list(self._ref.limit(1).stream())
            return True
        except Exception as e:
            logger.warning("Firebase not available: %s", e)
            return False

    def update_stadium(self, stadium_id: str, fields: Dict[str, Any]) -> None:
        """Patch arbitrary fields on a stadium document."""
        try:
            self._ref.document(stadium_id).update(fields)
        except NotFound as e:
            raise StadiumNotFound(stadium_id) from e
        logger.info("Stadium %s updated: %s", stadium_id, sorted(fields))
