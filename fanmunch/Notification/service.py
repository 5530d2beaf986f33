# Notification/service.py
"""
FCM push notifications for order events.

Every message carries the same platform options the delivery and shop apps
rely on: high-priority Android with the delivery_orders channel, an APNs
sound and badge, and a web push icon when one is given.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from firebase_admin import messaging

from fanmunch.core.logger import mask_token

logger = logging.getLogger("notification.service")

ANDROID_CHANNEL = "delivery_orders"

STATUS_MESSAGES = {
    "accepted": (
        "✅ Order Accepted",
        "Your order #{order_id} has been accepted by the delivery person",
    ),
    "picked_up": (
        "📦 Order Picked Up",
        "Your order #{order_id} has been picked up and is on the way",
    ),
    "delivered": (
        "🎉 Order Delivered",
        "Your order #{order_id} has been delivered successfully",
    ),
}
DEFAULT_STATUS_MESSAGE = ("📱 Order Update", "Your order #{order_id} status: {status}")


class NotificationError(RuntimeError):
    pass


def _stringify(data: Optional[Dict[str, Any]]) -> Dict[str, str]:
    # FCM data payloads only accept string values
    return {str(k): "" if v is None else str(v) for k, v in (data or {}).items()}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class NotificationService:
    def __init__(self, app=None):
        self.app = app

    @property
    def is_initialized(self) -> bool:
        return self.app is not None

    def _require_app(self):
        if not self.is_initialized:
            raise NotificationError("Firebase Admin SDK not initialized")

    @staticmethod
    def _android() -> messaging.AndroidConfig:
        return messaging.AndroidConfig(
            priority="high",
            notification=messaging.AndroidNotification(sound="default", channel_id=ANDROID_CHANNEL),
        )

    @staticmethod
    def _apns() -> messaging.APNSConfig:
        return messaging.APNSConfig(
            payload=messaging.APNSPayload(aps=messaging.Aps(sound="default", badge=1)),
        )

    def send_notification(
        self,
        token: str,
        notification: Dict[str, Any],
        data: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Send to one device. Returns the FCM message id."""
        self._require_app()
        if not token:
            raise NotificationError("FCM token is required")

        logger.info("[FCM] Sending to token: %s", mask_token(token))
        icon = notification.get("icon")
        message = messaging.Message(
            token=token,
            notification=messaging.Notification(
                title=notification.get("title") or "New Notification",
                body=notification.get("body") or "",
            ),
            data=_stringify(data),
            android=self._android(),
            apns=self._apns(),
            webpush=(
                messaging.WebpushConfig(notification=messaging.WebpushNotification(icon=icon))
                if icon else None
            ),
        )
        try:
            message_id = messaging.send(message, app=self.app)
        except Exception:
            logger.exception("❌ Failed to send FCM notification to %s", mask_token(token))
            raise
        logger.info("✅ FCM notification sent: %s", message_id)
        return message_id

    def send_multicast_notification(
        self,
        tokens: List[str],
        notification: Dict[str, Any],
        data: Optional[Dict[str, Any]] = None,
    ):
        self._require_app()
        tokens = [t for t in tokens or [] if t]
        if not tokens:
            raise NotificationError("At least one FCM token is required")

        message = messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(
                title=notification.get("title") or "New Notification",
                body=notification.get("body") or "",
            ),
            data=_stringify(data),
            android=self._android(),
            apns=self._apns(),
        )
        try:
            response = messaging.send_each_for_multicast(message, app=self.app)
        except Exception:
            logger.exception("❌ Failed to send FCM multicast to %d tokens", len(tokens))
            raise
        logger.info(
            "✅ FCM multicast sent to %d tokens (success=%s failure=%s)",
            len(tokens), response.success_count, response.failure_count,
        )
        return response

    def send_new_order_notification(self, token: str, order: Dict[str, Any]) -> str:
        notification = {
            "title": "🍔 New Order Available!",
            "body": (
                f"Order #{order.get('orderId')} - {order.get('customerName')} "
                f"at {order.get('stadiumName')}"
            ),
            "icon": "order_icon",
        }
        data = {
            "type": "new_order",
            "orderId": order.get("orderId"),
            "customerName": order.get("customerName") or "",
            "stadiumName": order.get("stadiumName") or "",
            "seatInfo": json.dumps(order.get("seatInfo") or {}),
            "totalAmount": order.get("totalAmount") or 0,
            "deliveryFee": order.get("deliveryFee") or 0,
            "customerLocation": json.dumps(order.get("customerLocation") or {}),
            "timestamp": _now_iso(),
        }
        return self.send_notification(token, notification, data)

    def send_order_status_notification(self, token: str, order: Dict[str, Any], status: str) -> str:
        title, body = STATUS_MESSAGES.get(status, DEFAULT_STATUS_MESSAGE)
        order_id = order.get("orderId")
        notification = {
            "title": title,
            "body": body.format(order_id=order_id, status=status),
        }
        data = {
            "type": "order_status_update",
            "orderId": order_id,
            "status": status,
            "timestamp": _now_iso(),
        }
        return self.send_notification(token, notification, data)
