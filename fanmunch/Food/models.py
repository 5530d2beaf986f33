# Food/models.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from fanmunch.core.errors import ModelValidationError

FOOD_TYPES = ("halal", "kosher", "vegan")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Food(BaseModel):
    """
    A menu item. Names and descriptions come in two shapes: a plain string
    and a per-language map ({"en": ..., "he": ...}).
    """

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    docId: Optional[str] = None

    name: str = ""
    nameMap: Dict[str, str] = Field(default_factory=dict)
    description: str = ""
    descriptionMap: Dict[str, str] = Field(default_factory=dict)

    price: float = Field(default=0, ge=0)
    currency: str = "USD"

    category: str = ""
    images: List[str] = Field(default_factory=list)
    isAvailable: bool = True
    preparationTime: int = 15

    shopIds: List[str] = Field(default_factory=list)
    shopId: str = ""
    stadiumId: str = ""

    customization: Dict[str, Any] = Field(default_factory=lambda: {"options": []})
    allergens: List[str] = Field(default_factory=list)
    nutritionalInfo: Dict[str, Any] = Field(default_factory=dict)
    foodType: Dict[str, bool] = Field(default_factory=lambda: {t: False for t in FOOD_TYPES})

    isCombo: bool = False
    comboItemIds: List[str] = Field(default_factory=list)

    createdAt: datetime = Field(default_factory=_utcnow)
    updatedAt: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _fill_legacy_fields(self) -> "Food":
        if not self.name:
            self.name = self.nameMap.get("en", "")
        if not self.description:
            self.description = self.descriptionMap.get("en", "")
        # Older items carry a single shopId; newer ones a shopIds list
        if self.shopId and self.shopId not in self.shopIds:
            self.shopIds.append(self.shopId)
        if not self.shopId and self.shopIds:
            self.shopId = self.shopIds[0]
        self.docId = self.docId or self.id or None
        return self

    @classmethod
    def from_firestore(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "Food":
        cleaned = {k: v for k, v in (data or {}).items() if v is not None}
        if doc_id:
            cleaned["id"] = doc_id
        try:
            return cls.model_validate(cleaned)
        except ValidationError as e:
            raise ModelValidationError.from_pydantic("Food", e) from e

    def display_name(self, lang: str = "he") -> str:
        return self.nameMap.get(lang) or self.nameMap.get("en") or self.name

    def food_type_badges(self) -> List[str]:
        return [t.capitalize() for t in FOOD_TYPES if self.foodType.get(t)]

    def matches_category(self, category: str) -> bool:
        return category == "all" or self.category.lower() == category.lower()

    def matches(self, term: str) -> bool:
        """Case-insensitive match on any name, description or the category."""
        needle = term.lower()
        texts = [self.name, self.description, self.category]
        texts += list(self.nameMap.values()) + list(self.descriptionMap.values())
        return any(needle in text.lower() for text in texts)
