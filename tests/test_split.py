"""
Tests for the payment split calculator and the split preview endpoint.
"""
import pytest

from fanmunch.payment.split import (
    OrderAmounts,
    PaymentSplitError,
    Split,
    StripeFees,
    build_transfer_metadata,
    calculate_complete_payment_breakdown,
    calculate_final_amounts,
    calculate_payment_split,
    calculate_stripe_fees,
)

THREE_WAY = {
    "model": "3-way",
    "platform-fee": 0.1,
    "hotel-fee": 0.2,
    "vendor-fee": 0.7,
    "delivery-destination": "hotel",
    "tip-destination": "split",
    "vendor-id": "acct_vendor",
    "hotel-id": "acct_hotel",
}


class TestSplitModels:
    def test_two_way(self) -> None:
        shop = {"payment-options": {
            "model": "2-way",
            "platform-fee": 0.1,
            "vendor-fee": 0.9,
            "delivery-destination": "vendor",
        }}
        split = calculate_payment_split({"itemsTotal": 100, "deliveryFee": 10, "tip": 5}, shop)
        assert split.model == "2-way"
        assert split.platform == pytest.approx(15)
        assert split.vendor == pytest.approx(100)
        assert split.hotel == 0

    def test_cog_based_pays_cost_of_goods_first(self) -> None:
        shop = {"paymentOptions": {
            "model": "cog-based",
            "platformFee": 0.2,
            "vendorFee": 0.8,
            "deliveryDestination": "split",
            "deliverySplit": {"platform": 0.5, "vendor": 0.5},
        }}
        split = calculate_payment_split({"itemsTotal": 100, "cog": 40, "deliveryFee": 10}, shop)
        assert split.model == "cog-based"
        assert split.platform == pytest.approx(12 + 5)
        assert split.vendor == pytest.approx(88 + 5)

    def test_three_way(self) -> None:
        split = calculate_payment_split(
            {"itemsTotal": 100, "cog": 40, "deliveryFee": 10, "tip": 5},
            {"payment-options": THREE_WAY},
        )
        assert split.model == "3-way"
        # tip has no ratios: all of it to the platform
        assert split.platform == pytest.approx(6 + 5)
        assert split.hotel == pytest.approx(12 + 10)
        assert split.vendor == pytest.approx(82)
        assert split.platform + split.hotel + split.vendor == pytest.approx(115)

    def test_three_way_without_hotel_falls_back(self) -> None:
        shop = {"payment-options": {"model": "3-way", "platform-fee": 0.3, "vendor-fee": 0.7}}
        split = calculate_payment_split({"itemsTotal": 100}, shop)
        assert split.model == "2-way"
        assert split.platform == pytest.approx(30)
        assert split.vendor == pytest.approx(70)

    def test_fees_must_add_up(self) -> None:
        shop = {"payment-options": {"platform-fee": 0.2, "vendor-fee": 0.9}}
        with pytest.raises(PaymentSplitError, match="100%"):
            calculate_payment_split({"itemsTotal": 10}, shop)

    def test_missing_payment_options(self) -> None:
        with pytest.raises(PaymentSplitError, match="missing"):
            calculate_payment_split({"itemsTotal": 10}, {"name": "No config"})

    def test_unknown_destination(self) -> None:
        shop = {"payment-options": {
            "platform-fee": 0.5,
            "vendor-fee": 0.5,
            "delivery-destination": "hotel",
        }}
        with pytest.raises(PaymentSplitError, match="Unknown destination"):
            calculate_payment_split({"itemsTotal": 10, "deliveryFee": 2}, shop)

    def test_negative_amounts_are_rejected(self) -> None:
        with pytest.raises(PaymentSplitError):
            calculate_payment_split({"itemsTotal": -1}, {"payment-options": THREE_WAY})


class TestStripeFees:
    def test_usd_fee_is_shared_proportionally(self) -> None:
        fees = calculate_stripe_fees(Split(platform=10, vendor=90), 100, "USD")
        assert fees.total == pytest.approx(3.2)
        assert fees.platform == pytest.approx(0.32)
        assert fees.vendor == pytest.approx(2.88)
        assert fees.hotel == 0

    def test_other_currencies_use_higher_fixed_fee(self) -> None:
        fees = calculate_stripe_fees(Split(platform=100), 100, "ils")
        assert fees.total == pytest.approx(4.1)

    def test_zero_total(self) -> None:
        fees = calculate_stripe_fees(Split(), 0, "usd")
        assert (fees.platform, fees.hotel, fees.vendor) == (0, 0, 0)

    def test_final_amounts_never_negative(self) -> None:
        final = calculate_final_amounts(
            Split(platform=1, vendor=5),
            StripeFees(platform=2, hotel=0, vendor=1, total=3),
        )
        assert final.platform == 0
        assert final.vendor == 4
        assert final.stripeFeeTotal == 3


class TestBreakdown:
    def test_complete_breakdown(self) -> None:
        result = calculate_complete_payment_breakdown(
            OrderAmounts(itemsTotal=100, cog=40), {"payment-options": THREE_WAY}, "usd"
        )
        assert result["breakdown"]["profit"] == 60
        assert result["breakdown"]["total"] == 100
        assert result["finalAmounts"]["hotel"] == pytest.approx(12 - 0.384)
        assert result["finalAmounts"]["vendor"] == pytest.approx(82 - 2.624)

    def test_transfer_metadata_for_three_way(self) -> None:
        metadata = build_transfer_metadata(
            {"hotel": 11.616, "vendor": 79.376}, {"payment-options": THREE_WAY}, "USD"
        )
        assert metadata == {
            "requiresManualTransfers": "true",
            "currency": "usd",
            "hotelId": "acct_hotel",
            "hotelAmount": "11.62",
            "vendorAmount": "79.38",
            "vendorId": "acct_vendor",
        }

    def test_no_transfer_metadata_for_two_way(self) -> None:
        shop = {"payment-options": {"platform-fee": 0.1, "vendor-fee": 0.9}}
        assert build_transfer_metadata({"hotel": 0, "vendor": 9}, shop, "ils") == {}


class TestSplitPreviewEndpoint:
    def test_inline_options(self, client) -> None:
        resp = client.post("/api/payments/split-preview", json={
            "order": {"itemsTotal": 100, "cog": 40},
            "paymentOptions": THREE_WAY,
            "currency": "usd",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["splits"]["model"] == "3-way"
        assert body["transferMetadata"]["hotelAmount"] == "11.62"
        assert body["transferMetadata"]["vendorAmount"] == "79.38"

    def test_shop_lookup(self, client, db) -> None:
        db.seed("shops", "burger-bar", {"name": "Burger Bar", "payment-options": THREE_WAY})
        body = client.post("/api/payments/split-preview", json={
            "order": {"itemsTotal": 50},
            "shopId": "burger-bar",
        }).json()
        assert body["success"] is True
        assert body["transferMetadata"]["currency"] == "ils"

    def test_unknown_shop(self, client) -> None:
        resp = client.post("/api/payments/split-preview", json={
            "order": {"itemsTotal": 50},
            "shopId": "missing",
        })
        assert resp.status_code == 404

    def test_needs_shop_or_options(self, client) -> None:
        resp = client.post("/api/payments/split-preview", json={"order": {"itemsTotal": 50}})
        assert resp.status_code == 400
        assert resp.json()["error"] == "shopId or paymentOptions is required"

    def test_bad_options(self, client) -> None:
        resp = client.post("/api/payments/split-preview", json={
            "order": {"itemsTotal": 50},
            "paymentOptions": {"platform-fee": 0.5, "vendor-fee": 0.2},
        })
        assert resp.status_code == 400
        assert "100%" in resp.json()["error"]

    def test_shop_without_payment_options(self, client, db) -> None:
        db.seed("shops", "kiosk", {"name": "Kiosk", "stadiumId": "s1"})
        resp = client.post("/api/payments/split-preview", json={
            "order": {"itemsTotal": 50},
            "shopId": "kiosk",
        })
        assert resp.status_code == 400
        assert resp.json()["error"] == "Shop payment-options configuration is missing"
