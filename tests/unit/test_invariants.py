"""Seeded randomized checks of the floor invariants."""

from __future__ import annotations

import random
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from floorops.application.dto.requests import CreateReservationRequest, SplitPaymentLineRequest
from floorops.application.use_cases.billing import BillingEngine
from floorops.application.use_cases.order_lifecycle import OrderLifecycle
from floorops.application.use_cases.reservations import ReservationScheduler
from floorops.domain.billing.entities import (
    BillPaymentStatus,
    DiscountType,
    PaymentMethod,
    Promotion,
    SplitAmountMismatchError,
)
from floorops.domain.billing.pricing import discount
from floorops.domain.common.errors import DomainError
from floorops.domain.common.ids import ActorId, MenuItemId, PromotionId, TableId
from floorops.domain.common.money import Money
from floorops.domain.order.entities import OrderStatus
from floorops.domain.reservation.entities import ReservationConflictError, intervals_overlap

STAFF = ActorId("staff_01")
SEEDS = [7, 11, 23, 42, 101]
DAY_START = datetime(2026, 10, 17, 11, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("seed", SEEDS)
def test_active_reservations_never_overlap_on_a_table(store, ctx, seed: int) -> None:
    rng = random.Random(seed)
    store.add_table(table_id="tbl_001", number="T1")
    store.add_table(table_id="tbl_002", number="T2")
    scheduler = ReservationScheduler(ctx)

    for _ in range(40):
        request = CreateReservationRequest(
            table_id=rng.choice(["tbl_001", "tbl_002"]),
            party_size=2,
            start_time=DAY_START + timedelta(minutes=15 * rng.randint(0, 40)),
            duration_minutes=rng.choice([30, 45, 60, 90, 120]),
            customer_name="Guest",
        )
        try:
            reservation = scheduler.create_reservation(request, STAFF)
        except ReservationConflictError:
            continue
        if rng.random() < 0.2:
            scheduler.cancel(reservation.reservation_id, STAFF)

    live = [r for r in store.reservations.values() if not r.is_terminal]
    for index, first in enumerate(live):
        for second in live[index + 1 :]:
            if first.table_id != second.table_id:
                continue
            assert not intervals_overlap(
                first.starts_at, first.ends_at, second.starts_at, second.ends_at
            )


@pytest.mark.parametrize("seed", SEEDS)
def test_adjacent_windows_are_always_accepted(store, ctx, seed: int) -> None:
    rng = random.Random(seed)
    store.add_table()
    scheduler = ReservationScheduler(ctx)

    starts_at = DAY_START
    for _ in range(8):
        duration = rng.choice([30, 60, 90])
        scheduler.create_reservation(
            CreateReservationRequest(
                table_id="tbl_001",
                party_size=2,
                start_time=starts_at,
                duration_minutes=duration,
                customer_name="Guest",
            ),
            STAFF,
        )
        starts_at += timedelta(minutes=duration)

    assert len(store.reservations) == 8


@pytest.mark.parametrize("seed", SEEDS)
def test_each_table_has_at_most_one_active_order(store, ctx, seed: int) -> None:
    rng = random.Random(seed)
    tables = [TableId(f"tbl_00{n}") for n in range(1, 4)]
    for number, table_id in enumerate(tables, start=1):
        store.add_table(table_id=table_id, number=f"T{number}")
    store.add_menu_item("itm_001", "Pizza", 1450)
    store.add_menu_item("itm_002", "Salad", 900)
    lifecycle = OrderLifecycle(ctx)

    for _ in range(60):
        table_id = rng.choice(tables)
        active = store.active_order_for(table_id)
        if active is None or rng.random() < 0.7:
            lifecycle.add_item(
                table_id, MenuItemId(rng.choice(["itm_001", "itm_002"])), 1, None, STAFF
            )
        else:
            target = rng.choice(
                [OrderStatus.PREPARING, OrderStatus.SERVED, OrderStatus.COMPLETED]
            )
            try:
                lifecycle.change_status(active.order_id, target, STAFF)
            except DomainError:
                pass

        for candidate in tables:
            active_orders = [
                order
                for order in store.orders.values()
                if order.table_id == candidate and order.is_active and order.deleted_at is None
            ]
            assert len(active_orders) <= 1


@pytest.mark.parametrize("seed", SEEDS)
def test_order_totals_always_balance(store, ctx, seed: int) -> None:
    rng = random.Random(seed)
    store.add_table()
    store.add_tax_setting(rate=str(rng.choice(["0", "5", "8.25", "10", "20"])))
    for n in range(5):
        store.add_menu_item(f"itm_00{n}", f"Dish {n}", rng.randint(100, 5000))
    store.add_promotion(code="PCT", discount_value=str(rng.randint(0, 100)))
    lifecycle = OrderLifecycle(ctx)

    order = None
    for _ in range(rng.randint(1, 8)):
        menu_item_id = MenuItemId(f"itm_00{rng.randint(0, 4)}")
        order, _ = lifecycle.add_item(
            TableId("tbl_001"), menu_item_id, rng.randint(1, 3), None, STAFF
        )
    assert order is not None
    order = BillingEngine(ctx).apply_promotion(order.order_id, "PCT", STAFF).order

    items_total = sum(item.total_price.amount_cents for item in order.items)
    assert order.subtotal.amount_cents == items_total
    assert order.discount_amount.amount_cents <= order.subtotal.amount_cents
    assert order.total_amount.amount_cents == (
        order.subtotal.amount_cents
        + order.tax_amount.amount_cents
        - order.discount_amount.amount_cents
    )


@pytest.mark.parametrize("seed", SEEDS)
def test_discount_never_exceeds_subtotal(seed: int) -> None:
    rng = random.Random(seed)
    for _ in range(200):
        discount_type = rng.choice(list(DiscountType))
        value = (
            Decimal(rng.randint(0, 100))
            if discount_type == DiscountType.PERCENTAGE
            else Decimal(rng.randint(0, 50000)) / 100
        )
        promotion = Promotion(
            promotion_id=PromotionId("prm_x"),
            code="X",
            name="X",
            discount_type=discount_type,
            discount_value=value,
            starts_at=DAY_START,
            ends_at=DAY_START + timedelta(days=1),
        )
        subtotal = Money(amount_cents=rng.randint(0, 100000), currency="USD")
        assert discount(subtotal, promotion).amount_cents <= subtotal.amount_cents


@pytest.mark.parametrize("seed", SEEDS)
def test_split_payments_close_the_bill_only_when_they_add_up(store, ctx, seed: int) -> None:
    rng = random.Random(seed)
    store.add_table()
    store.add_tax_setting(rate=rng.choice(["5", "8.25", "10", "12.5"]))
    store.add_menu_item("itm_001", "Dish", rng.randint(1000, 20000))
    order, _ = OrderLifecycle(ctx).add_item(
        TableId("tbl_001"), MenuItemId("itm_001"), 1, None, STAFF
    )
    total = BillingEngine(ctx).estimate(order.subtotal.amount_cents).total.amount_cents

    cut = rng.randint(1, total - 10)
    drift = rng.choice([-5, -2, -1, 0, 1, 2, 5])
    second = total - cut + drift
    splits = [
        SplitPaymentLineRequest(amount_cents=cut, method=PaymentMethod.CASH),
        SplitPaymentLineRequest(amount_cents=second, method=PaymentMethod.CARD),
    ]

    if abs(drift) <= 1:
        bill = BillingEngine(ctx).apply_split_payment(order.order_id, splits, STAFF).bill
        assert bill.payment_status == BillPaymentStatus.PAID
        assert bill.total_amount.amount_cents == total
        assert bill.paid_amount.amount_cents >= bill.total_amount.amount_cents
        assert bill.remaining().amount_cents == 0
        assert len(store.payments) == 2
    else:
        with pytest.raises(SplitAmountMismatchError):
            BillingEngine(ctx).apply_split_payment(order.order_id, splits, STAFF)
        assert store.payments == {}
        assert store.bills == {}
