# Shop/models.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from fanmunch.core.errors import ModelValidationError

DeliveryType = Literal["inside", "outside"]
SplitModel = Literal["2-way", "3-way", "cog-based"]

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeliveryPolicy(BaseModel):
    """Delivery inside the venue, or outside it."""

    model_config = ConfigDict(extra="ignore")

    enabled: bool = False
    fee: float = Field(default=0, ge=0)
    currency: str = "ILS"
    openTime: str = Field(default="09:00", pattern=TIME_PATTERN)
    closeTime: str = Field(default="22:00", pattern=TIME_PATTERN)
    locations: List[Any] = Field(default_factory=list)


class PaymentOptions(BaseModel):
    """
    How an order's money is divided. Stored documents use dashed keys
    ("platform-fee"); camelCase is accepted too.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    model: SplitModel = "2-way"
    platformFee: float = Field(default=0, ge=0, le=1, validation_alias=AliasChoices("platformFee", "platform-fee"))
    vendorFee: float = Field(default=1.0, ge=0, le=1, validation_alias=AliasChoices("vendorFee", "vendor-fee"))
    hotelFee: float = Field(default=0, ge=0, le=1, validation_alias=AliasChoices("hotelFee", "hotel-fee"))
    deliveryDestination: str = Field(
        default="platform",
        validation_alias=AliasChoices("deliveryDestination", "delivery-destination"),
    )
    tipDestination: str = Field(
        default="platform",
        validation_alias=AliasChoices("tipDestination", "tip-destination"),
    )
    deliverySplit: Optional[Dict[str, float]] = Field(
        default=None, validation_alias=AliasChoices("deliverySplit", "delivery-split")
    )
    tipSplit: Optional[Dict[str, float]] = Field(
        default=None, validation_alias=AliasChoices("tipSplit", "tip-split")
    )
    vendorId: Optional[str] = Field(default=None, validation_alias=AliasChoices("vendorId", "vendor-id"))
    hotelId: Optional[str] = Field(default=None, validation_alias=AliasChoices("hotelId", "hotel-id"))

    def to_firestore(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "platform-fee": self.platformFee,
            "vendor-fee": self.vendorFee,
            "hotel-fee": self.hotelFee,
            "delivery-destination": self.deliveryDestination,
            "tip-destination": self.tipDestination,
            "delivery-split": self.deliverySplit,
            "tip-split": self.tipSplit,
            "vendor-id": self.vendorId,
            "hotel-id": self.hotelId,
        }


class Shop(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[str] = None
    name: str = ""
    location: str = ""
    floor: str = ""
    gate: str = ""
    description: str = ""
    admins: List[str] = Field(default_factory=list)
    stadiumId: str = ""
    stadiumName: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    imageUrl: Optional[str] = None

    # Legacy flat fee, used when no delivery policy is enabled
    deliveryFee: float = Field(default=0, ge=0)
    deliveryFeeCurrency: str = "ILS"

    insideDelivery: DeliveryPolicy = Field(default_factory=DeliveryPolicy)
    outsideDelivery: DeliveryPolicy = Field(default_factory=DeliveryPolicy)
    shopAvailability: bool = True
    paymentOptions: PaymentOptions = Field(
        default_factory=PaymentOptions,
        validation_alias=AliasChoices("paymentOptions", "payment-options"),
    )

    fcmToken: Optional[str] = None
    shopUserFcmToken: Optional[str] = None

    createdAt: datetime = Field(default_factory=_utcnow)
    updatedAt: datetime = Field(default_factory=_utcnow)

    @field_validator("floor", "gate", mode="before")
    def _stringify(cls, v: Any) -> Any:
        # Floors and gates are often typed as numbers in the console
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @classmethod
    def from_firestore(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "Shop":
        cleaned = {k: v for k, v in (data or {}).items() if v is not None}
        if doc_id:
            cleaned["id"] = doc_id
        try:
            return cls.model_validate(cleaned)
        except ValidationError as e:
            raise ModelValidationError.from_pydantic("Shop", e) from e

    def to_firestore(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "location": self.location,
            "floor": self.floor,
            "gate": self.gate,
            "description": self.description,
            "admins": list(self.admins),
            "stadiumId": self.stadiumId,
            "stadiumName": self.stadiumName,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "imageUrl": self.imageUrl,
            "deliveryFee": self.deliveryFee,
            "deliveryFeeCurrency": self.deliveryFeeCurrency,
            "insideDelivery": self.insideDelivery.model_dump(),
            "outsideDelivery": self.outsideDelivery.model_dump(),
            "shopAvailability": self.shopAvailability,
            "payment-options": self.paymentOptions.to_firestore(),
            "createdAt": self.createdAt,
            "updatedAt": self.updatedAt,
        }
        # Tokens are owned by the shop app; don't overwrite them with nulls
        if self.fcmToken:
            data["fcmToken"] = self.fcmToken
        if self.shopUserFcmToken:
            data["shopUserFcmToken"] = self.shopUserFcmToken
        return data

    # ---------------------------
    # Delivery helpers
    # ---------------------------
    def _policy(self, delivery_type: str) -> Optional[DeliveryPolicy]:
        if delivery_type == "inside" and self.insideDelivery.enabled:
            return self.insideDelivery
        if delivery_type == "outside" and self.outsideDelivery.enabled:
            return self.outsideDelivery
        return None

    def get_delivery_fee(self, delivery_type: str = "inside") -> Dict[str, Any]:
        policy = self._policy(delivery_type)
        if policy is None:
            return {"fee": self.deliveryFee, "currency": self.deliveryFeeCurrency}
        return {"fee": policy.fee, "currency": policy.currency}

    def is_open(self, delivery_type: str = "inside", now: Optional[datetime] = None) -> bool:
        if not self.shopAvailability:
            return False
        policy = self._policy(delivery_type)
        if policy is None:
            # No hours configured for this delivery type: assume open
            return True
        current = (now or datetime.now()).strftime("%H:%M")
        return policy.openTime <= current <= policy.closeTime

    def is_delivery_available(self, delivery_type: str = "inside") -> bool:
        if delivery_type == "inside":
            return self.insideDelivery.enabled
        if delivery_type == "outside":
            return self.outsideDelivery.enabled
        return False

    def notification_token(self) -> Optional[str]:
        return self.shopUserFcmToken or self.fcmToken
