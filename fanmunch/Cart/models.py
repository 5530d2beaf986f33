# Cart/models.py
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CartItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    price: float = Field(ge=0)
    originalPrice: Optional[float] = None
    discountPercentage: float = Field(default=0, ge=0, le=100)
    currency: str = "ILS"
    quantity: int = Field(default=1, ge=1)
    images: List[str] = Field(default_factory=list)
    shopId: str = ""
    shopIds: List[str] = Field(default_factory=list)
    stadiumId: Optional[str] = None
    preparationTime: int = 15
    description: str = ""
    allergens: List[str] = Field(default_factory=list)
    category: str = ""
    addedAt: str = Field(default_factory=_now_iso)


class CartLine(BaseModel):
    """The two fields totals are computed from."""

    model_config = ConfigDict(extra="ignore")

    price: float = Field(ge=0)
    quantity: int = Field(ge=0)


class CartTotalsRequest(BaseModel):
    items: List[CartLine]


class CartTotals(BaseModel):
    subtotal: float
    deliveryFee: float
    tip: float = 0
    discount: float = 0
    total: float
