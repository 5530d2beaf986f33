# Notification/routes.py
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from fanmunch.core.dependencies import get_db, get_notification_service
from fanmunch.Notification.service import NotificationService

logger = logging.getLogger("notification.routes")

router = APIRouter(prefix="/api/notify", tags=["notification"])


class NewOrderRequest(BaseModel):
    orderData: Dict[str, Any]
    deliveryUserId: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    userId: str = Field(min_length=1)
    orderData: Dict[str, Any]
    status: str = Field(min_length=1)


# -------------------------
# Token lookups
# -------------------------
def _user_doc(db, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
    doc = db.collection(collection).document(doc_id).get()
    if not doc.exists:
        return None
    return doc.to_dict() or {}


@router.post("/send-new-order")
def send_new_order(
    body: NewOrderRequest,
    db=Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    """
    Notify the delivery user (when given) and the shop about a new order.
    Either side failing is logged; the request itself still succeeds.
    """
    order = body.orderData
    delivery_message_id = None
    shop_message_id = None

    if body.deliveryUserId:
        try:
            user = _user_doc(db, "deliveryUsers", body.deliveryUserId)
            if user is None:
                logger.warning("Delivery user not found: %s", body.deliveryUserId)
            elif not user.get("fcmToken"):
                logger.warning("Delivery user %s has no FCM token", body.deliveryUserId)
            else:
                delivery_message_id = notifier.send_new_order_notification(user["fcmToken"], order)
        except Exception as e:
            logger.warning("⚠️ Failed to send delivery notification: %s", e)

    shop_id = order.get("shopId")
    if shop_id:
        try:
            shop = _user_doc(db, "shops", shop_id)
            if shop is None:
                logger.warning("Shop not found: %s", shop_id)
            else:
                token = shop.get("shopUserFcmToken") or shop.get("fcmToken")
                if token:
                    shop_message_id = notifier.send_new_order_notification(token, order)
                else:
                    logger.warning("Shop %s has no FCM token field (shopUserFcmToken/fcmToken)", shop_id)
        except Exception as e:
            logger.warning("⚠️ Failed to send shop notification: %s", e)

    return {
        "success": True,
        "deliveryMessageId": delivery_message_id,
        "shopMessageId": shop_message_id,
        "message": "Notification attempt complete",
    }


@router.post("/send-status-update")
def send_status_update(
    body: StatusUpdateRequest,
    db=Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
):
    user = _user_doc(db, "users", body.userId)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    token = user.get("fcmToken")
    if not token:
        raise HTTPException(status_code=400, detail="User does not have an FCM token")

    try:
        message_id = notifier.send_order_status_notification(token, body.orderData, body.status)
    except Exception as e:
        logger.exception("❌ Error sending order status notification")
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to send notification", "details": str(e)},
        )
    return {
        "success": True,
        "messageId": message_id,
        "message": "Status notification sent successfully",
    }


@router.get("/delivery-user/{delivery_user_id}/token")
def get_delivery_user_token(delivery_user_id: str, db=Depends(get_db)):
    user = _user_doc(db, "deliveryUsers", delivery_user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="Delivery user not found")
    token = user.get("fcmToken")
    return {"success": True, "fcmToken": token or None, "hasToken": bool(token)}
