# file: fanmunch/payment/split.py
"""
Payment split calculator.

Three models, picked from the shop's payment-options:
  2-way      platform + vendor share the items total
  cog-based  vendor is paid cost of goods first, the profit is shared
  3-way      like cog-based with a hotel share; needs hotel-id and is
             settled with manual Stripe transfers after capture
Delivery fee and tip are routed separately (platform, vendor, hotel or a
ratio split). Stripe's fee is then charged to each party in proportion to
what it receives.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from fanmunch.Shop.models import PaymentOptions

logger = logging.getLogger("payment.split")

FEE_TOLERANCE = 0.001
STRIPE_PERCENT_FEE = 0.029
STRIPE_FIXED_FEE = {"usd": 0.30}
STRIPE_FIXED_FEE_DEFAULT = 1.20


class PaymentSplitError(ValueError):
    pass


class OrderAmounts(BaseModel):
    itemsTotal: float = Field(ge=0)
    deliveryFee: float = Field(default=0, ge=0)
    tip: float = Field(default=0, ge=0)
    cog: float = Field(default=0, ge=0)

    @property
    def total(self) -> float:
        return self.itemsTotal + self.deliveryFee + self.tip


class Split(BaseModel):
    platform: float = 0
    hotel: float = 0
    vendor: float = 0
    model: str = "2-way"


class StripeFees(BaseModel):
    platform: float
    hotel: float
    vendor: float
    total: float


class FinalAmounts(BaseModel):
    platform: float
    hotel: float
    vendor: float
    stripeFeeTotal: float


# ==============================
# Helpers
# ==============================
def _payment_options(shop_config: Mapping[str, Any]) -> PaymentOptions:
    raw = shop_config.get("payment-options") or shop_config.get("paymentOptions")
    if not raw:
        raise PaymentSplitError("Shop payment-options configuration is missing")
    if isinstance(raw, PaymentOptions):
        return raw
    try:
        return PaymentOptions.model_validate(raw)
    except ValidationError as e:
        raise PaymentSplitError(f"Invalid payment-options: {e}") from e


def _order(order: Any) -> OrderAmounts:
    if isinstance(order, OrderAmounts):
        return order
    try:
        return OrderAmounts.model_validate(order)
    except ValidationError as e:
        raise PaymentSplitError(f"Invalid order amounts: {e}") from e


def _check_fees(*fees: float) -> None:
    total = sum(fees)
    if abs(total - 1.0) > FEE_TOLERANCE:
        raise PaymentSplitError(f"Fees must add up to 100% (got {total:g})")


def _route(split: Split, amount: float, destination: str, ratios: Optional[Dict[str, float]], parties) -> None:
    """Credit amount to one party, or across parties by ratio for 'split'."""
    if not amount:
        return
    if destination == "split":
        ratios = ratios or {"platform": 1.0}
        for party in parties:
            setattr(split, party, getattr(split, party) + amount * (ratios.get(party) or 0))
    elif destination in parties:
        setattr(split, destination, getattr(split, destination) + amount)
    else:
        raise PaymentSplitError(f"Unknown destination '{destination}' for {split.model} split")


# ==============================
# Split models
# ==============================
def calculate_2way_split(order: OrderAmounts, options: PaymentOptions) -> Split:
    _check_fees(options.platformFee, options.vendorFee)
    split = Split(
        platform=order.itemsTotal * options.platformFee,
        vendor=order.itemsTotal * options.vendorFee,
        model="2-way",
    )
    parties = ("platform", "vendor")
    _route(split, order.deliveryFee, options.deliveryDestination, options.deliverySplit, parties)
    _route(split, order.tip, options.tipDestination, options.tipSplit, parties)
    return split


def calculate_cog_based_split(order: OrderAmounts, options: PaymentOptions) -> Split:
    _check_fees(options.platformFee, options.vendorFee)
    profit = order.itemsTotal - order.cog
    split = Split(
        platform=profit * options.platformFee,
        vendor=order.cog + profit * options.vendorFee,
        model="cog-based",
    )
    parties = ("platform", "vendor")
    _route(split, order.deliveryFee, options.deliveryDestination, options.deliverySplit, parties)
    _route(split, order.tip, options.tipDestination, options.tipSplit, parties)
    return split


def calculate_3way_split(order: OrderAmounts, options: PaymentOptions) -> Split:
    _check_fees(options.platformFee, options.hotelFee, options.vendorFee)
    profit = order.itemsTotal - order.cog
    split = Split(
        platform=profit * options.platformFee,
        hotel=profit * options.hotelFee,
        vendor=order.cog + profit * options.vendorFee,
        model="3-way",
    )
    parties = ("platform", "hotel", "vendor")
    _route(split, order.deliveryFee, options.deliveryDestination, options.deliverySplit, parties)
    _route(split, order.tip, options.tipDestination, options.tipSplit, parties)
    return split


def calculate_payment_split(order: Any, shop_config: Mapping[str, Any]) -> Split:
    options = _payment_options(shop_config)
    amounts = _order(order)
    if options.model == "3-way" and options.hotelId:
        return calculate_3way_split(amounts, options)
    if options.model == "cog-based":
        return calculate_cog_based_split(amounts, options)
    if options.model == "3-way":
        logger.warning("[SPLIT] 3-way model without hotel-id, using 2-way split")
    return calculate_2way_split(amounts, options)


# ==============================
# Stripe fees
# ==============================
def calculate_stripe_fees(split: Split, total_amount: float, currency: str = "ils") -> StripeFees:
    fixed = STRIPE_FIXED_FEE.get(currency.lower(), STRIPE_FIXED_FEE_DEFAULT)
    total_fee = total_amount * STRIPE_PERCENT_FEE + fixed

    def share(amount: float) -> float:
        return total_fee * amount / total_amount if total_amount else 0

    return StripeFees(
        platform=share(split.platform),
        hotel=share(split.hotel),
        vendor=share(split.vendor),
        total=total_fee,
    )


def calculate_final_amounts(split: Split, fees: StripeFees) -> FinalAmounts:
    return FinalAmounts(
        platform=max(0, split.platform - fees.platform),
        hotel=max(0, split.hotel - fees.hotel),
        vendor=max(0, split.vendor - fees.vendor),
        stripeFeeTotal=fees.total,
    )


def calculate_complete_payment_breakdown(
    order: Any,
    shop_config: Mapping[str, Any],
    currency: str = "ils",
) -> Dict[str, Any]:
    amounts = _order(order)
    split = calculate_payment_split(amounts, shop_config)
    fees = calculate_stripe_fees(split, amounts.total, currency)
    final = calculate_final_amounts(split, fees)
    return {
        "splits": split.model_dump(),
        "stripeFees": fees.model_dump(),
        "finalAmounts": final.model_dump(),
        "breakdown": {
            "itemsTotal": amounts.itemsTotal,
            "cog": amounts.cog,
            "profit": amounts.itemsTotal - amounts.cog,
            "deliveryFee": amounts.deliveryFee,
            "tip": amounts.tip,
            "total": amounts.total,
        },
    }


def build_transfer_metadata(
    final: Mapping[str, Any],
    shop_config: Mapping[str, Any],
    currency: str,
) -> Dict[str, str]:
    """
    Payment intent metadata read back by the webhook to pay vendor and hotel
    after capture. Only 3-way splits need it.
    """
    options = _payment_options(shop_config)
    if options.model != "3-way" or not options.hotelId:
        return {}
    metadata = {
        "requiresManualTransfers": "true",
        "currency": currency.lower(),
        "hotelId": options.hotelId,
        "hotelAmount": f"{final['hotel']:.2f}",
        "vendorAmount": f"{final['vendor']:.2f}",
    }
    if options.vendorId:
        metadata["vendorId"] = options.vendorId
    return metadata
