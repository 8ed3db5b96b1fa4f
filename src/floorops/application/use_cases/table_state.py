from __future__ import annotations

import logging
from dataclasses import dataclass

from floorops.application.dto.requests import BookTableRequest
from floorops.application.metrics.floor_metrics import (
    record_reservation_created,
    record_table_release_blocked,
)
from floorops.application.use_cases.order_lifecycle import OrderLifecycle
from floorops.application.use_cases.reservations import ReservationScheduler
from floorops.application.use_cases.table_transitions import (
    TableNotFoundError,
    TableTransitions,
    booking_for,
)
from floorops.domain.common.ids import ActorId, TableId
from floorops.domain.order.entities import Order
from floorops.domain.reservation.entities import Reservation, ReservationStatus
from floorops.domain.table.entities import (
    Table,
    TableHasActiveOrdersError,
    TableNotAvailableError,
    TableStatus,
)

logger = logging.getLogger("floorops.tables")

_RELEASED_STATUSES = frozenset({TableStatus.AVAILABLE, TableStatus.RESERVED})


@dataclass(frozen=True)
class BookingResult:
    table: Table
    reservation: Reservation
    order: Order | None = None


class TableStateManager(TableTransitions):
    """The only writer of table status.

    ``book``, ``release`` and ``update_status`` run in their own unit of work; the
    ``on_*`` hooks inherited from ``TableTransitions`` join the caller's.
    """

    def book(self, table_id: TableId, request: BookTableRequest, actor: ActorId) -> BookingResult:
        with self._ctx.uow_factory() as uow:
            table = self._lock_table(uow, table_id)
            if not table.is_active or table.status != TableStatus.AVAILABLE:
                raise TableNotAvailableError(
                    f"table {table_id} is not available for booking",
                    details={"status": table.status.value, "is_active": table.is_active},
                )
            table.ensure_fits(request.party_size)

            status = ReservationStatus.SEATED if request.open_order else ReservationStatus.CONFIRMED
            reservation = ReservationScheduler(self._ctx).reserve(
                uow, table_id, request, actor, status
            )
            booking = booking_for(reservation, actor, self._ctx.now())
            booked = self._save(uow, table, table.book(booking, request.open_order), actor)

            order: Order | None = None
            if request.open_order:
                order = OrderLifecycle(self._ctx).get_or_create_active_order(uow, table_id, actor)
                booked = uow.tables.get(table_id) or booked
            uow.commit()

        self._ctx.flush_events(uow)
        record_reservation_created(reservation.status.value)
        logger.info(
            "table_booked",
            extra={
                "table_id": str(table_id),
                "reservation_id": str(reservation.reservation_id),
                "actor": str(actor),
                "new_status": booked.status.value,
            },
        )
        return BookingResult(table=booked, reservation=reservation, order=order)

    def release(self, table_id: TableId, actor: ActorId) -> Table:
        with self._ctx.uow_factory() as uow:
            table = self._lock_table(uow, table_id)
            if uow.orders.count_active_for_table(table_id) > 0:
                record_table_release_blocked()
                raise TableHasActiveOrdersError(
                    f"table {table_id} still has an active order",
                    details={"table_id": str(table_id)},
                )
            self._advance_linked_reservation(uow, table, ReservationStatus.COMPLETED)
            released = self._save(uow, table, table.free(actor), actor)
            uow.commit()

        self._ctx.flush_events(uow)
        return released

    def update_status(self, table_id: TableId, new_status: TableStatus, actor: ActorId) -> Table:
        with self._ctx.uow_factory() as uow:
            table = self._lock_table(uow, table_id)
            if new_status in _RELEASED_STATUSES and uow.orders.count_active_for_table(table_id) > 0:
                raise TableHasActiveOrdersError(
                    f"table {table_id} still has an active order",
                    details={"table_id": str(table_id), "to": new_status.value},
                )
            updated = self._save(uow, table, table.override_status(new_status, actor), actor)
            uow.commit()

        self._ctx.flush_events(uow)
        return updated

    def get(self, table_id: TableId) -> Table:
        with self._ctx.uow_factory() as uow:
            table = uow.tables.get(table_id)
        if table is None:
            raise TableNotFoundError(f"table {table_id} not found")
        return table

    def list_tables(self) -> list[Table]:
        with self._ctx.uow_factory() as uow:
            return uow.tables.list_all()
