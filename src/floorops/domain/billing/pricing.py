"""Deterministic money arithmetic for orders, bills and booking-time estimates.

Every function here is pure: the same inputs always give the same ``Money``.
Percentages are ``Decimal`` and fractional cents round half-up.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable

from floorops.domain.billing.entities import (
    SPLIT_TOLERANCE_CENTS,
    DiscountType,
    Promotion,
    TaxSetting,
)
from floorops.domain.common.money import Money, sum_money
from floorops.domain.order.entities import OrderItem


class ServiceChargeMode(str, Enum):
    TAX_RATE = "tax_rate"
    FIXED = "fixed"
    NONE = "none"


@dataclass(frozen=True)
class ServiceChargePolicy:
    mode: ServiceChargeMode = ServiceChargeMode.TAX_RATE
    rate: Decimal = Decimal(0)

    def __post_init__(self) -> None:
        if not Decimal(0) <= self.rate <= Decimal(100):
            raise ValueError("service charge rate must be between 0 and 100")


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Money
    tax_amount: Money
    discount_amount: Money
    total_amount: Money


def tax(subtotal: Money, setting: TaxSetting | None) -> Money:
    if setting is None:
        return Money.zero(subtotal.currency)
    return subtotal.percent(setting.effective_rate)


def discount(subtotal: Money, promotion: Promotion) -> Money:
    if promotion.discount_type == DiscountType.PERCENTAGE:
        amount = subtotal.percent(promotion.discount_value)
    else:
        cents = (promotion.discount_value * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP)
        amount = Money(amount_cents=int(cents), currency=subtotal.currency)
    return amount.min(subtotal)


def service_charge(
    subtotal: Money,
    setting: TaxSetting | None,
    policy: ServiceChargePolicy,
) -> Money:
    if policy.mode == ServiceChargeMode.NONE:
        return Money.zero(subtotal.currency)
    if policy.mode == ServiceChargeMode.FIXED:
        return subtotal.percent(policy.rate)
    return tax(subtotal, setting)


def order_totals(
    items: Iterable[OrderItem],
    setting: TaxSetting | None,
    discount_amount: Money,
) -> OrderTotals:
    subtotal = sum_money([item.total_price for item in items], discount_amount.currency)
    capped_discount = discount_amount.min(subtotal)
    tax_amount = tax(subtotal, setting)
    return OrderTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount_amount=capped_discount,
        total_amount=subtotal + tax_amount - capped_discount,
    )


def splits_match_total(split_amounts: Iterable[Money], total: Money) -> bool:
    split_sum = sum_money(list(split_amounts), total.currency)
    return abs(split_sum.amount_cents - total.amount_cents) <= SPLIT_TOLERANCE_CENTS
