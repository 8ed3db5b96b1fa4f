from __future__ import annotations

import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from floorops.domain.billing.entities import DiscountType, Promotion, TaxSetting, TaxType
from floorops.domain.billing.pricing import (
    ServiceChargeMode,
    ServiceChargePolicy,
    discount,
    order_totals,
    service_charge,
    splits_match_total,
    tax,
)
from floorops.domain.common.ids import OrderItemId, PromotionId, TaxSettingId
from floorops.domain.common.money import Money
from floorops.domain.order.entities import ProductKind, StandaloneItem


def _usd(cents: int) -> Money:
    return Money(amount_cents=cents, currency="USD")


def _tax(rate: str | None, tax_type: TaxType = TaxType.MANUAL) -> TaxSetting:
    return TaxSetting(
        tax_setting_id=TaxSettingId("tax_001"),
        name="Sales tax",
        tax_type=tax_type,
        rate=Decimal(rate) if rate is not None else None,
        is_active=True,
    )


def _promotion(discount_type: DiscountType, value: str) -> Promotion:
    return Promotion(
        promotion_id=PromotionId("prm_001"),
        code="SAVE",
        name="Save",
        discount_type=discount_type,
        discount_value=Decimal(value),
        starts_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        ends_at=datetime(2026, 12, 31, tzinfo=timezone.utc),
    )


def _item(item_id: str, cents: int, quantity: int = 1) -> StandaloneItem:
    return StandaloneItem(
        item_id=OrderItemId(item_id),
        product_kind=ProductKind.MENU_ITEM,
        product_id=item_id,
        name=item_id,
        quantity=quantity,
        unit_price=_usd(cents),
        total_price=_usd(cents * quantity),
    )


def test_tax_uses_the_active_setting_rate() -> None:
    assert tax(_usd(15000), _tax("10")) == _usd(1500)
    assert tax(_usd(15000), _tax(None, TaxType.FREE)) == _usd(0)
    assert tax(_usd(15000), None) == _usd(0)


def test_percentage_discount() -> None:
    assert discount(_usd(15000), _promotion(DiscountType.PERCENTAGE, "10")) == _usd(1500)


def test_fixed_discount_is_in_major_units_and_capped_at_subtotal() -> None:
    assert discount(_usd(15000), _promotion(DiscountType.FIXED_AMOUNT, "5")) == _usd(500)
    assert discount(_usd(300), _promotion(DiscountType.FIXED_AMOUNT, "5")) == _usd(300)


def test_service_charge_modes() -> None:
    subtotal = _usd(20000)
    setting = _tax("10")

    assert service_charge(subtotal, setting, ServiceChargePolicy()) == _usd(2000)
    assert service_charge(
        subtotal, setting, ServiceChargePolicy(mode=ServiceChargeMode.NONE)
    ) == _usd(0)
    assert service_charge(
        subtotal, None, ServiceChargePolicy(mode=ServiceChargeMode.FIXED, rate=Decimal("12.5"))
    ) == _usd(2500)


def test_service_charge_policy_rate_is_a_percentage() -> None:
    with pytest.raises(ValueError):
        ServiceChargePolicy(mode=ServiceChargeMode.FIXED, rate=Decimal("101"))


def test_order_totals_sum_items_and_apply_tax_then_discount() -> None:
    totals = order_totals(
        [_item("itm_a", 10000), _item("itm_b", 2500, quantity=2)], _tax("10"), _usd(1500)
    )
    assert totals.subtotal == _usd(15000)
    assert totals.tax_amount == _usd(1500)
    assert totals.discount_amount == _usd(1500)
    assert totals.total_amount == _usd(15000)


def test_order_totals_cap_a_stale_discount_at_the_new_subtotal() -> None:
    totals = order_totals([_item("itm_a", 400)], None, _usd(1500))
    assert totals.discount_amount == _usd(400)
    assert totals.total_amount == _usd(0)


def test_splits_match_within_one_cent() -> None:
    total = _usd(20000)
    assert splits_match_total([_usd(12000), _usd(8000)], total)
    assert splits_match_total([_usd(12000), _usd(7999)], total)
    assert not splits_match_total([_usd(12000), _usd(7000)], total)
