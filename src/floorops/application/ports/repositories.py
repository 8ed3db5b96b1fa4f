from __future__ import annotations

from datetime import datetime
from typing import Iterable, Protocol

from floorops.domain.billing.entities import Bill, Payment, Promotion, TaxSetting
from floorops.domain.common.errors import ConflictError
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
from floorops.domain.menu.entities import Combo, MenuItem
from floorops.domain.order.entities import Order, OrderStatus
from floorops.domain.reservation.entities import Reservation, ReservationStatus
from floorops.domain.table.entities import Table


class TableRepository(Protocol):
    def get(self, table_id: TableId) -> Table | None: ...

    def get_for_update(self, table_id: TableId) -> Table | None: ...

    def list_all(self) -> list[Table]: ...

    def add(self, table: Table) -> None: ...

    def update(self, table: Table) -> Table: ...


class ReservationRepository(Protocol):
    def add(self, reservation: Reservation) -> None: ...

    def get(self, reservation_id: ReservationId) -> Reservation | None: ...

    def get_for_update(self, reservation_id: ReservationId) -> Reservation | None: ...

    def update(self, reservation: Reservation) -> None: ...

    def list_for_table(self, table_id: TableId) -> list[Reservation]: ...

    def list_overlapping(
        self,
        table_id: TableId,
        starts_at: datetime,
        ends_at: datetime,
        exclude_statuses: Iterable[ReservationStatus],
    ) -> list[Reservation]: ...


class OrderRepository(Protocol):
    def add(self, order: Order) -> None: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def get_for_update(self, order_id: OrderId) -> Order | None: ...

    def get_by_item_for_update(self, item_id: OrderItemId) -> Order | None: ...

    def update(self, order: Order) -> Order: ...

    def delete(self, order_id: OrderId) -> None: ...

    def find_active_for_table(self, table_id: TableId) -> Order | None: ...

    def count_active_for_table(self, table_id: TableId) -> int: ...

    def list_by_status(self, statuses: Iterable[OrderStatus]) -> list[Order]: ...


class BillRepository(Protocol):
    def add(self, bill: Bill) -> None: ...

    def get(self, bill_id: BillId) -> Bill | None: ...

    def get_for_update(self, bill_id: BillId) -> Bill | None: ...

    def get_for_order(self, order_id: OrderId) -> Bill | None: ...

    def update(self, bill: Bill) -> None: ...


class PaymentRepository(Protocol):
    def add(self, payment: Payment) -> None: ...

    def list_for_order(self, order_id: OrderId) -> list[Payment]: ...

    def list_for_reservation(self, reservation_id: ReservationId) -> list[Payment]: ...

    def has_completed_for_order(self, order_id: OrderId) -> bool: ...


class PromotionRepository(Protocol):
    def get(self, promotion_id: PromotionId) -> Promotion | None: ...

    def get_by_code(self, code: str) -> Promotion | None: ...

    def update(self, promotion: Promotion) -> None: ...


class TaxSettingRepository(Protocol):
    def add(self, setting: TaxSetting) -> None: ...

    def get(self, tax_setting_id: TaxSettingId) -> TaxSetting | None: ...

    def get_active(self) -> TaxSetting | None: ...

    def list_all(self) -> list[TaxSetting]: ...

    def update(self, setting: TaxSetting) -> None: ...

    def deactivate_all_except(self, tax_setting_id: TaxSettingId) -> None: ...


class CatalogRepository(Protocol):
    def get_menu_item(self, menu_item_id: MenuItemId) -> MenuItem | None: ...

    def get_menu_items(self, menu_item_ids: Iterable[MenuItemId]) -> dict[str, MenuItem]: ...

    def get_combo(self, combo_id: ComboId) -> Combo | None: ...


class StaleOrderError(ConflictError):
    code = "ORDER_VERSION_CONFLICT"
