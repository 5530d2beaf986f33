"""
Tests for FCM message building and the notification endpoints.
"""
import asyncio
import json
import time
from unittest.mock import MagicMock, patch

import httpx
import pytest

from fanmunch.core.logger import mask_token
from fanmunch.Notification.service import NotificationError, NotificationService

TOKEN = "fcm-token-abcdefghijklmnopqrstuvwxyz"

ORDER = {
    "orderId": "A100",
    "customerName": "Dana",
    "stadiumName": "Wembley Stadium",
    "seatInfo": {"section": "112", "row": "F", "seat": "7"},
    "totalAmount": 31,
    "deliveryFee": 6,
    "customerLocation": {"lat": 51.55, "lng": -0.27},
    "shopId": "burger-bar",
}


@pytest.fixture
def send():
    with patch("fanmunch.Notification.service.messaging.send", return_value="projects/x/messages/1") as mock:
        yield mock


@pytest.fixture
def service() -> NotificationService:
    return NotificationService(app=MagicMock())


class TestNotificationService:
    def test_message_platform_options(self, service, send) -> None:
        message_id = service.send_notification(
            TOKEN, {"title": "Hi", "body": "There", "icon": "order_icon"}, {"count": 3, "flag": True}
        )
        assert message_id == "projects/x/messages/1"

        message = send.call_args.args[0]
        assert message.token == TOKEN
        assert message.data == {"count": "3", "flag": "True"}
        assert message.android.priority == "high"
        assert message.android.notification.channel_id == "delivery_orders"
        assert message.android.notification.sound == "default"
        assert message.apns.payload.aps.badge == 1
        assert message.apns.payload.aps.sound == "default"
        assert message.webpush.notification.icon == "order_icon"

    def test_no_icon_no_webpush(self, service, send) -> None:
        service.send_notification(TOKEN, {"title": "Hi"})
        assert send.call_args.args[0].webpush is None

    def test_requires_initialized_sdk(self, send) -> None:
        with pytest.raises(NotificationError, match="not initialized"):
            NotificationService(app=None).send_notification(TOKEN, {"title": "Hi"})
        send.assert_not_called()

    def test_requires_token(self, service, send) -> None:
        with pytest.raises(NotificationError, match="token is required"):
            service.send_notification("", {"title": "Hi"})

    def test_new_order_notification(self, service, send) -> None:
        service.send_new_order_notification(TOKEN, ORDER)
        message = send.call_args.args[0]
        assert message.notification.title == "🍔 New Order Available!"
        assert message.notification.body == "Order #A100 - Dana at Wembley Stadium"
        assert message.data["type"] == "new_order"
        assert json.loads(message.data["seatInfo"]) == ORDER["seatInfo"]
        assert message.data["totalAmount"] == "31"
        assert message.data["deliveryFee"] == "6"
        assert "timestamp" in message.data

    @pytest.mark.parametrize(
        "status,title",
        [
            ("accepted", "✅ Order Accepted"),
            ("picked_up", "📦 Order Picked Up"),
            ("delivered", "🎉 Order Delivered"),
            ("cancelled", "📱 Order Update"),
        ],
    )
    def test_status_notification_titles(self, service, send, status, title) -> None:
        service.send_order_status_notification(TOKEN, {"orderId": "A100"}, status)
        message = send.call_args.args[0]
        assert message.notification.title == title
        assert "A100" in message.notification.body
        assert message.data["type"] == "order_status_update"
        assert message.data["status"] == status

    def test_multicast(self, service) -> None:
        response = MagicMock(success_count=2, failure_count=0)
        with patch(
            "fanmunch.Notification.service.messaging.send_each_for_multicast",
            return_value=response,
        ) as send_each:
            assert service.send_multicast_notification([TOKEN, "", "second-token"], {"title": "Hi"}) is response
        assert send_each.call_args.args[0].tokens == [TOKEN, "second-token"]

    def test_multicast_needs_tokens(self, service) -> None:
        with pytest.raises(NotificationError):
            service.send_multicast_notification([], {"title": "Hi"})

    def test_token_mask(self) -> None:
        assert mask_token(TOKEN) == "fcm-toke...uvwxyz"
        assert mask_token("short") == "[token]"


class TestNotificationEndpoints:
    def test_new_order_requires_order_data(self, client) -> None:
        resp = client.post("/api/notify/send-new-order", json={"deliveryUserId": "d1"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "orderData is required"

    def test_new_order_notifies_delivery_user_and_shop(self, client, db, notifier) -> None:
        db.seed("deliveryUsers", "d1", {"fcmToken": "delivery-token"})
        db.seed("shops", "burger-bar", {"shopUserFcmToken": "shop-token"})
        notifier.send_new_order_notification.side_effect = ["m-delivery", "m-shop"]

        resp = client.post("/api/notify/send-new-order", json={"deliveryUserId": "d1", "orderData": ORDER})
        body = resp.json()
        assert resp.status_code == 200
        assert body["deliveryMessageId"] == "m-delivery"
        assert body["shopMessageId"] == "m-shop"
        tokens = [c.args[0] for c in notifier.send_new_order_notification.call_args_list]
        assert tokens == ["delivery-token", "shop-token"]

    def test_delivery_failure_does_not_block_shop(self, client, db, notifier) -> None:
        db.seed("deliveryUsers", "d1", {"fcmToken": "delivery-token"})
        db.seed("shops", "burger-bar", {"fcmToken": "shop-token"})
        notifier.send_new_order_notification.side_effect = [RuntimeError("FCM down"), "m-shop"]

        body = client.post(
            "/api/notify/send-new-order", json={"deliveryUserId": "d1", "orderData": ORDER}
        ).json()
        assert body["success"] is True
        assert body["deliveryMessageId"] is None
        assert body["shopMessageId"] == "m-shop"

    def test_missing_tokens_are_skipped(self, client, db, notifier) -> None:
        db.seed("deliveryUsers", "d1", {"name": "No token"})
        body = client.post(
            "/api/notify/send-new-order", json={"deliveryUserId": "d1", "orderData": ORDER}
        ).json()
        assert body == {
            "success": True,
            "deliveryMessageId": None,
            "shopMessageId": None,
            "message": "Notification attempt complete",
        }
        notifier.send_new_order_notification.assert_not_called()

    def test_status_update_requires_fields(self, client) -> None:
        resp = client.post("/api/notify/send-status-update", json={"userId": "u1"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "orderData, status are required"

    @pytest.mark.parametrize("field", ["userId", "status"])
    def test_status_update_rejects_empty_fields(self, client, db, notifier, field) -> None:
        db.seed("users", "u1", {"fcmToken": "user-token"})
        body = {"userId": "u1", "orderData": ORDER, "status": "accepted", field: ""}
        resp = client.post("/api/notify/send-status-update", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"].startswith(field)
        notifier.send_order_status_notification.assert_not_called()

    def test_status_update_user_missing(self, client) -> None:
        resp = client.post(
            "/api/notify/send-status-update",
            json={"userId": "ghost", "orderData": ORDER, "status": "accepted"},
        )
        assert resp.status_code == 404

    def test_status_update_user_without_token(self, client, db) -> None:
        db.seed("users", "u1", {"name": "Dana"})
        resp = client.post(
            "/api/notify/send-status-update",
            json={"userId": "u1", "orderData": ORDER, "status": "accepted"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "User does not have an FCM token"

    def test_status_update_sent(self, client, db, notifier) -> None:
        db.seed("users", "u1", {"fcmToken": "user-token"})
        notifier.send_order_status_notification.return_value = "m-status"
        resp = client.post(
            "/api/notify/send-status-update",
            json={"userId": "u1", "orderData": ORDER, "status": "delivered"},
        )
        assert resp.json()["messageId"] == "m-status"
        notifier.send_order_status_notification.assert_called_once_with("user-token", ORDER, "delivered")

    def test_delivery_user_token(self, client, db) -> None:
        db.seed("deliveryUsers", "d1", {"fcmToken": "delivery-token"})
        db.seed("deliveryUsers", "d2", {})
        assert client.get("/api/notify/delivery-user/d1/token").json() == {
            "success": True,
            "fcmToken": "delivery-token",
            "hasToken": True,
        }
        assert client.get("/api/notify/delivery-user/d2/token").json()["hasToken"] is False
        assert client.get("/api/notify/delivery-user/d3/token").status_code == 404


class TestNotificationConcurrency:
    async def test_slow_send_does_not_block_other_requests(self, app, db, notifier) -> None:
        db.seed("users", "u1", {"fcmToken": "user-token"})
        notifier.send_order_status_notification.side_effect = lambda *args: time.sleep(1) or "m-slow"

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            pending = asyncio.ensure_future(ac.post(
                "/api/notify/send-status-update",
                json={"userId": "u1", "orderData": ORDER, "status": "accepted"},
            ))
            await asyncio.sleep(0.1)
            started = time.perf_counter()
            health = await ac.get("/health")
            elapsed = time.perf_counter() - started
            resp = await pending

        assert health.status_code == 200
        assert elapsed < 0.5
        assert resp.json()["messageId"] == "m-slow"
