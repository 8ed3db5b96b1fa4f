from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from floorops.domain.billing.entities import (
    Bill,
    BillAlreadyPaidError,
    BillPaymentStatus,
    DiscountType,
    Payment,
    PaymentAmountInvalidError,
    PaymentMethod,
    PaymentStatus,
    Promotion,
    PromotionMinimumNotMetError,
    SplitAmountMismatchError,
    TaxSetting,
    TaxType,
)
from floorops.domain.common.ids import (
    ActorId,
    BillId,
    OrderId,
    PaymentId,
    PromotionId,
    ReservationId,
    TableId,
    TaxSettingId,
)
from floorops.domain.common.money import Money

NOW = datetime(2026, 10, 17, 18, 0, tzinfo=timezone.utc)


def _usd(cents: int) -> Money:
    return Money(amount_cents=cents, currency="USD")


def _bill(total: int = 10000) -> Bill:
    return Bill(
        bill_id=BillId("bil_001"),
        bill_number="BILL-20261017-ABCDEF",
        order_id=OrderId("ord_001"),
        table_id=TableId("tbl_001"),
        subtotal=_usd(total),
        tax_amount=_usd(0),
        service_charge=_usd(0),
        discount_amount=_usd(0),
        total_amount=_usd(total),
        payment_status=BillPaymentStatus.PENDING,
        paid_amount=_usd(0),
        created_by=ActorId("cashier_01"),
        created_at=NOW,
    )


def _promotion(**overrides) -> Promotion:
    values = {
        "promotion_id": PromotionId("prm_001"),
        "code": "WELCOME10",
        "name": "Welcome",
        "discount_type": DiscountType.PERCENTAGE,
        "discount_value": Decimal("10"),
        "starts_at": NOW - timedelta(days=1),
        "ends_at": NOW + timedelta(days=1),
    }
    values.update(overrides)
    return Promotion(**values)


def test_bill_total_must_include_service_charge() -> None:
    with pytest.raises(ValueError):
        Bill(
            bill_id=BillId("bil_001"),
            bill_number="BILL-1",
            order_id=OrderId("ord_001"),
            table_id=None,
            subtotal=_usd(10000),
            tax_amount=_usd(1000),
            service_charge=_usd(1000),
            discount_amount=_usd(0),
            total_amount=_usd(11000),
            payment_status=BillPaymentStatus.PENDING,
            paid_amount=_usd(0),
            created_by=ActorId("cashier_01"),
            created_at=NOW,
        )


def test_partial_then_full_payment() -> None:
    partial = _bill().apply_payment(_usd(4000), NOW)
    assert partial.payment_status == BillPaymentStatus.PARTIAL
    assert partial.remaining() == _usd(6000)

    paid = partial.apply_payment(_usd(6000), NOW)
    assert paid.payment_status == BillPaymentStatus.PAID
    assert paid.paid_at == NOW
    with pytest.raises(BillAlreadyPaidError):
        paid.apply_payment(_usd(1), NOW)


def test_settle_covers_the_remaining_balance_of_a_partly_paid_bill() -> None:
    partial = _bill().apply_payment(_usd(4000), NOW)

    paid = partial.settle(_usd(6000), NOW)

    assert paid.payment_status == BillPaymentStatus.PAID
    assert paid.paid_amount == _usd(10000)
    assert paid.remaining() == _usd(0)


def test_settle_writes_off_a_one_cent_shortfall() -> None:
    paid = _bill().settle(_usd(9999), NOW)

    assert paid.paid_amount == paid.total_amount


def test_settle_refuses_amounts_off_the_remaining_balance() -> None:
    with pytest.raises(SplitAmountMismatchError) as exc_info:
        _bill().settle(_usd(9000), NOW)
    assert exc_info.value.details == {"expected": 10000, "received": 9000}
    with pytest.raises(BillAlreadyPaidError):
        _bill().settle(_usd(10000), NOW).settle(_usd(0), NOW)


def test_payment_cannot_exceed_remaining_balance() -> None:
    with pytest.raises(PaymentAmountInvalidError):
        _bill().apply_payment(_usd(10001), NOW)


def test_payment_targets_exactly_one_of_order_or_reservation() -> None:
    common = {
        "payment_id": PaymentId("pay_001"),
        "amount": _usd(500),
        "method": PaymentMethod.CASH,
        "status": PaymentStatus.COMPLETED,
        "processed_by": ActorId("cashier_01"),
        "created_at": NOW,
    }
    with pytest.raises(ValueError):
        Payment(**common)
    with pytest.raises(ValueError):
        Payment(
            **common, order_id=OrderId("ord_001"), reservation_id=ReservationId("res_001")
        )
    assert Payment(**common, reservation_id=ReservationId("res_001")).order_id is None


def test_promotion_redeemable_window_and_usage() -> None:
    promotion = _promotion(usage_limit=1)
    assert promotion.is_redeemable(NOW)
    assert not promotion.is_redeemable(NOW + timedelta(days=2))

    used = promotion.redeemed()
    assert not used.is_redeemable(NOW)
    assert used.is_redeemable(NOW, already_applied=True)
    assert not _promotion(is_active=False).is_redeemable(NOW)


def test_promotion_minimum_order_amount() -> None:
    promotion = _promotion(minimum_order_amount=_usd(2000))
    promotion.ensure_minimum_met(_usd(2000))
    with pytest.raises(PromotionMinimumNotMetError):
        promotion.ensure_minimum_met(_usd(1999))


def test_percentage_promotion_value_is_bounded() -> None:
    with pytest.raises(ValueError):
        _promotion(discount_value=Decimal("120"))


def test_free_tax_setting_has_zero_effective_rate() -> None:
    free = TaxSetting(
        tax_setting_id=TaxSettingId("tax_free"), name="Exempt", tax_type=TaxType.FREE, rate=None
    )
    assert free.effective_rate == Decimal(0)
    with pytest.raises(ValueError):
        TaxSetting(
            tax_setting_id=TaxSettingId("tax_bad"),
            name="Broken",
            tax_type=TaxType.MANUAL,
            rate=None,
        )
