from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Sequence

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from floorops.application.ports.repositories import StaleOrderError
from floorops.application.use_cases.context import OperationContext
from floorops.domain.billing.entities import (
    Bill,
    DiscountType,
    Payment,
    PaymentStatus,
    Promotion,
    TaxSetting,
    TaxType,
)
from floorops.domain.common.ids import (
    BillId,
    ComboId,
    MenuItemId,
    OrderId,
    OrderItemId,
    PromotionId,
    ReservationId,
    TableId,
    TaxSettingId,
)
from floorops.domain.common.money import Money
from floorops.domain.menu.entities import Combo, ComboComponent, MenuItem
from floorops.domain.order.entities import TERMINAL_ORDER_STATUSES, Order, OrderStatus
from floorops.domain.reservation.entities import Reservation, ReservationStatus
from floorops.domain.table.entities import Table, TableStatus

START_OF_SERVICE = datetime(2026, 10, 17, 18, 0, tzinfo=timezone.utc)

_COLLECTIONS = (
    "tables",
    "reservations",
    "orders",
    "bills",
    "payments",
    "promotions",
    "tax_settings",
    "menu_items",
    "combos",
)


@dataclass
class InMemoryStore:
    """Committed state shared by every fake unit of work of one test."""

    tables: dict[str, Table] = field(default_factory=dict)
    reservations: dict[str, Reservation] = field(default_factory=dict)
    orders: dict[str, Order] = field(default_factory=dict)
    bills: dict[str, Bill] = field(default_factory=dict)
    payments: dict[str, Payment] = field(default_factory=dict)
    promotions: dict[str, Promotion] = field(default_factory=dict)
    tax_settings: dict[str, TaxSetting] = field(default_factory=dict)
    menu_items: dict[str, MenuItem] = field(default_factory=dict)
    combos: dict[str, Combo] = field(default_factory=dict)
    commits: int = 0

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return {name: dict(getattr(self, name)) for name in _COLLECTIONS}

    def restore(self, state: dict[str, dict[str, Any]]) -> None:
        for name in _COLLECTIONS:
            setattr(self, name, dict(state[name]))

    def add_table(
        self,
        table_id: str = "tbl_001",
        number: str = "T1",
        capacity: int = 4,
        min_capacity: int = 1,
        status: TableStatus = TableStatus.AVAILABLE,
        is_active: bool = True,
    ) -> Table:
        table = Table(
            table_id=TableId(table_id),
            number=number,
            min_capacity=min_capacity,
            capacity=capacity,
            status=status,
            is_active=is_active,
        )
        self.tables[table_id] = table
        return table

    def add_menu_item(
        self,
        item_id: str = "itm_001",
        name: str = "Margherita Pizza",
        price_cents: int = 1450,
        is_available: bool = True,
    ) -> MenuItem:
        item = MenuItem(
            item_id=MenuItemId(item_id),
            name=name,
            price=Money(amount_cents=price_cents, currency="USD"),
            is_available=is_available,
        )
        self.menu_items[item_id] = item
        return item

    def add_combo(
        self,
        combo_id: str = "cmb_001",
        name: str = "Pizza Lunch",
        price_cents: int = 1700,
        components: Iterable[tuple[str, int]] = (("itm_001", 1), ("itm_005", 1)),
        is_active: bool = True,
    ) -> Combo:
        combo = Combo(
            combo_id=ComboId(combo_id),
            name=name,
            price=Money(amount_cents=price_cents, currency="USD"),
            is_active=is_active,
            components=[
                ComboComponent(menu_item_id=MenuItemId(menu_item_id), quantity=quantity)
                for menu_item_id, quantity in components
            ],
        )
        self.combos[combo_id] = combo
        return combo

    def add_promotion(
        self,
        code: str = "WELCOME10",
        discount_type: DiscountType = DiscountType.PERCENTAGE,
        discount_value: str = "10",
        minimum_cents: int | None = None,
        usage_limit: int | None = None,
        usage_count: int = 0,
        is_active: bool = True,
    ) -> Promotion:
        promotion = Promotion(
            promotion_id=PromotionId(f"prm_{code.lower()}"),
            code=code,
            name=f"{code} promotion",
            discount_type=discount_type,
            discount_value=Decimal(discount_value),
            starts_at=START_OF_SERVICE - timedelta(days=30),
            ends_at=START_OF_SERVICE + timedelta(days=30),
            is_active=is_active,
            minimum_order_amount=(
                Money(amount_cents=minimum_cents, currency="USD")
                if minimum_cents is not None
                else None
            ),
            usage_limit=usage_limit,
            usage_count=usage_count,
        )
        self.promotions[str(promotion.promotion_id)] = promotion
        return promotion

    def add_tax_setting(
        self,
        tax_setting_id: str = "tax_001",
        rate: str | None = "10",
        tax_type: TaxType = TaxType.MANUAL,
        is_active: bool = True,
    ) -> TaxSetting:
        setting = TaxSetting(
            tax_setting_id=TaxSettingId(tax_setting_id),
            name="Sales tax",
            tax_type=tax_type,
            rate=Decimal(rate) if rate is not None else None,
            is_active=is_active,
        )
        self.tax_settings[tax_setting_id] = setting
        return setting

    def active_order_for(self, table_id: str) -> Order | None:
        for order in self.orders.values():
            if order.table_id == table_id and order.is_active and order.deleted_at is None:
                return order
        return None


class FakeTableRepository:
    def __init__(self, state: dict[str, dict[str, Any]]) -> None:
        self._tables: dict[str, Table] = state["tables"]

    def get(self, table_id: TableId) -> Table | None:
        return self._tables.get(table_id)

    def get_for_update(self, table_id: TableId) -> Table | None:
        return self._tables.get(table_id)

    def list_all(self) -> list[Table]:
        return sorted(self._tables.values(), key=lambda table: table.number)

    def add(self, table: Table) -> None:
        self._tables[table.table_id] = table

    def update(self, table: Table) -> Table:
        persisted = replace(table, version=table.version + 1)
        self._tables[table.table_id] = persisted
        return persisted


class FakeReservationRepository:
    def __init__(self, state: dict[str, dict[str, Any]]) -> None:
        self._reservations: dict[str, Reservation] = state["reservations"]

    def add(self, reservation: Reservation) -> None:
        self._reservations[reservation.reservation_id] = reservation

    def get(self, reservation_id: ReservationId) -> Reservation | None:
        return self._reservations.get(reservation_id)

    def get_for_update(self, reservation_id: ReservationId) -> Reservation | None:
        return self._reservations.get(reservation_id)

    def update(self, reservation: Reservation) -> None:
        self._reservations[reservation.reservation_id] = reservation

    def list_for_table(self, table_id: TableId) -> list[Reservation]:
        return sorted(
            (r for r in self._reservations.values() if r.table_id == table_id),
            key=lambda reservation: reservation.starts_at,
        )

    def list_overlapping(
        self,
        table_id: TableId,
        starts_at: datetime,
        ends_at: datetime,
        exclude_statuses: Iterable[ReservationStatus],
    ) -> list[Reservation]:
        excluded = frozenset(exclude_statuses)
        return [
            reservation
            for reservation in self._reservations.values()
            if reservation.table_id == table_id
            and reservation.status not in excluded
            and reservation.starts_at < ends_at
            and reservation.ends_at > starts_at
        ]


class FakeOrderRepository:
    def __init__(self, state: dict[str, dict[str, Any]]) -> None:
        self._orders: dict[str, Order] = state["orders"]

    def add(self, order: Order) -> None:
        self._orders[order.order_id] = order

    def get(self, order_id: OrderId) -> Order | None:
        return self._orders.get(order_id)

    def get_for_update(self, order_id: OrderId) -> Order | None:
        return self._orders.get(order_id)

    def get_by_item_for_update(self, item_id: OrderItemId) -> Order | None:
        for order in self._orders.values():
            if any(item.item_id == item_id for item in order.items):
                return order
        return None

    def update(self, order: Order) -> Order:
        stored = self._orders.get(order.order_id)
        if stored is None or stored.version != order.version:
            raise StaleOrderError(f"order {order.order_id} was modified concurrently")
        persisted = replace(order, version=order.version + 1)
        self._orders[order.order_id] = persisted
        return persisted

    def delete(self, order_id: OrderId) -> None:
        self._orders.pop(order_id, None)

    def find_active_for_table(self, table_id: TableId) -> Order | None:
        for order in self._active():
            if order.table_id == table_id:
                return order
        return None

    def count_active_for_table(self, table_id: TableId) -> int:
        return sum(1 for order in self._active() if order.table_id == table_id)

    def list_by_status(self, statuses: Iterable[OrderStatus]) -> list[Order]:
        wanted = frozenset(statuses)
        return [order for order in self._active() if order.status in wanted]

    def _active(self) -> list[Order]:
        return [
            order
            for order in self._orders.values()
            if order.status not in TERMINAL_ORDER_STATUSES and order.deleted_at is None
        ]


class FakeBillRepository:
    def __init__(self, state: dict[str, dict[str, Any]]) -> None:
        self._bills: dict[str, Bill] = state["bills"]

    def add(self, bill: Bill) -> None:
        self._bills[bill.bill_id] = bill

    def get(self, bill_id: BillId) -> Bill | None:
        return self._bills.get(bill_id)

    def get_for_update(self, bill_id: BillId) -> Bill | None:
        return self._bills.get(bill_id)

    def get_for_order(self, order_id: OrderId) -> Bill | None:
        for bill in self._bills.values():
            if bill.order_id == order_id:
                return bill
        return None

    def update(self, bill: Bill) -> None:
        self._bills[bill.bill_id] = bill


class FakePaymentRepository:
    def __init__(self, state: dict[str, dict[str, Any]]) -> None:
        self._payments: dict[str, Payment] = state["payments"]

    def add(self, payment: Payment) -> None:
        self._payments[payment.payment_id] = payment

    def list_for_order(self, order_id: OrderId) -> list[Payment]:
        return [p for p in self._payments.values() if p.order_id == order_id]

    def list_for_reservation(self, reservation_id: ReservationId) -> list[Payment]:
        return [p for p in self._payments.values() if p.reservation_id == reservation_id]

    def has_completed_for_order(self, order_id: OrderId) -> bool:
        return any(
            payment.status == PaymentStatus.COMPLETED
            for payment in self.list_for_order(order_id)
        )


class FakePromotionRepository:
    def __init__(self, state: dict[str, dict[str, Any]]) -> None:
        self._promotions: dict[str, Promotion] = state["promotions"]

    def get(self, promotion_id: PromotionId) -> Promotion | None:
        return self._promotions.get(promotion_id)

    def get_by_code(self, code: str) -> Promotion | None:
        for promotion in self._promotions.values():
            if promotion.code == code:
                return promotion
        return None

    def update(self, promotion: Promotion) -> None:
        self._promotions[promotion.promotion_id] = promotion


class FakeTaxSettingRepository:
    def __init__(self, state: dict[str, dict[str, Any]]) -> None:
        self._settings: dict[str, TaxSetting] = state["tax_settings"]

    def add(self, setting: TaxSetting) -> None:
        self._settings[setting.tax_setting_id] = setting

    def get(self, tax_setting_id: TaxSettingId) -> TaxSetting | None:
        return self._settings.get(tax_setting_id)

    def get_active(self) -> TaxSetting | None:
        for setting in self._settings.values():
            if setting.is_active:
                return setting
        return None

    def list_all(self) -> list[TaxSetting]:
        return list(self._settings.values())

    def update(self, setting: TaxSetting) -> None:
        self._settings[setting.tax_setting_id] = setting

    def deactivate_all_except(self, tax_setting_id: TaxSettingId) -> None:
        for key, setting in list(self._settings.items()):
            if key != tax_setting_id and setting.is_active:
                self._settings[key] = replace(setting, is_active=False)


class FakeCatalogRepository:
    def __init__(self, state: dict[str, dict[str, Any]]) -> None:
        self._menu_items: dict[str, MenuItem] = state["menu_items"]
        self._combos: dict[str, Combo] = state["combos"]

    def get_menu_item(self, menu_item_id: MenuItemId) -> MenuItem | None:
        return self._menu_items.get(menu_item_id)

    def get_menu_items(self, menu_item_ids: Iterable[MenuItemId]) -> dict[str, MenuItem]:
        return {
            str(item_id): self._menu_items[item_id]
            for item_id in menu_item_ids
            if item_id in self._menu_items
        }

    def get_combo(self, combo_id: ComboId) -> Combo | None:
        return self._combos.get(combo_id)


class FakeUnitOfWork:
    """Works on a copy of the store; ``commit`` writes the copy back."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self.outbox: list[str] = []

    def __enter__(self) -> FakeUnitOfWork:
        self._state = self._store.snapshot()
        self.tables = FakeTableRepository(self._state)
        self.reservations = FakeReservationRepository(self._state)
        self.orders = FakeOrderRepository(self._state)
        self.bills = FakeBillRepository(self._state)
        self.payments = FakePaymentRepository(self._state)
        self.promotions = FakePromotionRepository(self._state)
        self.tax_settings = FakeTaxSettingRepository(self._state)
        self.catalog = FakeCatalogRepository(self._state)
        self.outbox = []
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    def commit(self) -> None:
        self._store.restore(self._state)
        self._store.commits += 1

    def rollback(self) -> None:
        return None


class RecordingPublisher:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.messages: list[tuple[str, str]] = []

    def publish_batch(self, channel: str, messages: Sequence[str]) -> None:
        if self.fail:
            raise ConnectionError("redis unavailable")
        self.messages.extend((channel, message) for message in messages)

    def envelopes(self) -> list[dict[str, Any]]:
        return [json.loads(message) for _, message in self.messages]

    def event_types(self) -> list[str]:
        return [envelope["event_type"] for envelope in self.envelopes()]


class MutableClock:
    def __init__(self, start: datetime = START_OF_SERVICE) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, minutes: int) -> None:
        self.current = self.current + timedelta(minutes=minutes)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def ctx(
    store: InMemoryStore,
    publisher: RecordingPublisher,
    clock: MutableClock,
) -> OperationContext:
    return OperationContext(
        uow_factory=lambda: FakeUnitOfWork(store),
        publisher=publisher,
        clock=clock,
    )
