# Order/models.py
import random
import time
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, List, Optional

from google.cloud.firestore import GeoPoint
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from fanmunch.core.errors import ModelValidationError


class OrderStatus(IntEnum):
    PENDING = 0
    PREPARING = 1
    DELIVERING = 2
    DELIVERED = 3
    CANCELED = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_geopoint(value: Any) -> Optional[GeoPoint]:
    """Accept {lat, lng}, {latitude, longitude} or a [lat, lng] pair."""
    if value is None or isinstance(value, GeoPoint):
        return value
    if isinstance(value, dict):
        if "lat" in value and "lng" in value:
            return GeoPoint(value["lat"], value["lng"])
        if "latitude" in value and "longitude" in value:
            return GeoPoint(value["latitude"], value["longitude"])
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return GeoPoint(value[0], value[1])
    return None


class UserInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    userId: str = ""
    userEmail: str = ""
    userName: str = ""
    userPhoneNo: str = ""


class SeatInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    row: str = ""
    seatNo: str = ""
    section: str = ""
    seatDetails: str = ""
    area: str = ""
    entrance: str = ""
    stand: str = ""
    ticketImage: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _stringify(cls, v):
        return "" if v is None else str(v)


class Order(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    cart: List[Dict[str, Any]] = Field(default_factory=list)

    subtotal: float = 0
    deliveryFee: float = 0
    discount: float = 0
    total: float = 0
    tipAmount: float = 0
    tipPercentage: float = 0
    isTipAdded: bool = False

    userInfo: UserInfo = Field(default_factory=UserInfo)
    seatInfo: SeatInfo = Field(default_factory=SeatInfo)
    stadiumId: str = ""
    shopId: str = ""

    orderId: str = ""
    orderCode: str = ""
    deliveryUserId: str = ""
    status: OrderStatus = OrderStatus.PENDING

    # Stored as Firestore GeoPoints, exposed as {"latitude", "longitude"}
    customerLocation: Optional[Dict[str, float]] = None
    location: Optional[Dict[str, float]] = None

    createdAt: datetime = Field(default_factory=_utcnow)
    updatedAt: datetime = Field(default_factory=_utcnow)
    deliveryTime: Optional[datetime] = None

    @field_validator("customerLocation", "location", mode="before")
    @classmethod
    def _location(cls, v):
        point = to_geopoint(v)
        if point is None:
            return None
        return {"latitude": point.latitude, "longitude": point.longitude}

    @classmethod
    def from_firestore(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "Order":
        cleaned = {k: v for k, v in (data or {}).items() if v is not None}
        if doc_id:
            cleaned["id"] = doc_id
        try:
            return cls.model_validate(cleaned)
        except ValidationError as e:
            raise ModelValidationError.from_pydantic("Order", e) from e

    def to_firestore(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={"id"})
        data["status"] = int(self.status)
        data["customerLocation"] = to_geopoint(self.customerLocation)
        data["location"] = to_geopoint(self.location)
        return data

    @classmethod
    def create_from_cart(
        cls,
        cart_items: List[Dict[str, Any]],
        user: Dict[str, Any],
        *,
        shop_id: str,
        stadium_id: str = "",
        subtotal: float = 0,
        delivery_fee: float = 0,
        discount: float = 0,
        tip_amount: float = 0,
        tip_percentage: float = 0,
        seat_info: Optional[Dict[str, Any]] = None,
        customer_location: Any = None,
        location: Any = None,
        delivery_user_id: str = "",
    ) -> "Order":
        """A new pending order, with its order id and pickup code assigned."""
        return cls(
            cart=cart_items,
            subtotal=subtotal,
            deliveryFee=delivery_fee,
            discount=discount,
            tipAmount=tip_amount,
            tipPercentage=tip_percentage,
            isTipAdded=tip_amount > 0,
            total=round(subtotal + delivery_fee + tip_amount - discount, 2),
            userInfo=UserInfo(
                userId=user.get("id") or user.get("uid") or "",
                userEmail=user.get("email") or "",
                userName=user.get("firstName") or user.get("displayName") or "",
                userPhoneNo=user.get("phone") or user.get("phoneNumber") or "",
            ),
            seatInfo=SeatInfo.model_validate(seat_info or {}),
            stadiumId=stadium_id,
            shopId=shop_id,
            orderId=str(int(time.time() * 1000)),
            orderCode=str(random.randint(100000, 999999)),
            deliveryUserId=delivery_user_id,
            customerLocation=customer_location,
            location=location,
        )

    @property
    def status_label(self) -> str:
        return self.status.label

    def is_active(self) -> bool:
        return self.status not in (OrderStatus.DELIVERED, OrderStatus.CANCELED)

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "orderId": self.orderId,
            "orderCode": self.orderCode,
            "status": self.status_label,
            "total": self.total,
            "itemCount": sum(item.get("quantity") or 1 for item in self.cart),
            "createdAt": self.createdAt.isoformat(),
        }
