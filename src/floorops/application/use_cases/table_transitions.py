from __future__ import annotations

import logging
from datetime import datetime

from floorops.application.mappers.event_envelope import table_status_changed_payload
from floorops.application.metrics.floor_metrics import record_table_transition
from floorops.application.ports.unit_of_work import UnitOfWork
from floorops.application.use_cases.context import OperationContext
from floorops.domain.common.errors import NotFoundError
from floorops.domain.common.ids import ActorId, ReservationId, TableId
from floorops.domain.reservation.entities import Reservation, ReservationStatus
from floorops.domain.table.entities import BookingInfo, Table, TableStatus

logger = logging.getLogger("floorops.tables")


class TableNotFoundError(NotFoundError):
    code = "TABLE_NOT_FOUND"


def booking_for(reservation: Reservation, actor: ActorId, now: datetime) -> BookingInfo:
    return BookingInfo(
        reservation_id=reservation.reservation_id,
        customer_name=reservation.customer_name,
        party_size=reservation.party_size,
        starts_at=reservation.starts_at,
        duration_minutes=reservation.duration_minutes,
        notes=reservation.special_requests,
        booked_by=actor,
        booked_at=now,
    )


class TableTransitions:
    """Table status changes driven by orders and reservations.

    Every method joins the caller's unit of work and never commits.
    """

    def __init__(self, ctx: OperationContext) -> None:
        self._ctx = ctx

    def on_order_opened(self, uow: UnitOfWork, table_id: TableId, actor: ActorId) -> Table:
        table = self._lock_table(uow, table_id)
        occupied = table.occupy(actor)
        if table.status == TableStatus.RESERVED:
            self._advance_linked_reservation(uow, table, ReservationStatus.SEATED)
        return self._save(uow, table, occupied, actor)

    def on_order_closed(
        self,
        uow: UnitOfWork,
        table_id: TableId | None,
        actor: ActorId,
    ) -> Table | None:
        if table_id is None:
            return None
        table = self._lock_table(uow, table_id)
        if uow.orders.count_active_for_table(table_id) > 0:
            return table
        self._advance_linked_reservation(uow, table, ReservationStatus.COMPLETED)
        return self._save(uow, table, table.free(actor), actor)

    def on_reservation_seated(
        self,
        uow: UnitOfWork,
        reservation: Reservation,
        actor: ActorId,
    ) -> Table:
        """Occupy the reservation's table and link the booking to it.

        A booking that already belongs to another seated party is left in place.
        """
        table = self._lock_table(uow, reservation.table_id)
        booking = table.booking
        if booking is not None and (
            booking.reservation_id == reservation.reservation_id
            or self._is_seated(uow, booking.reservation_id)
        ):
            return self._save(uow, table, table.occupy(actor), actor)
        seated = table.seat(booking_for(reservation, actor, self._ctx.now()), actor)
        return self._save(uow, table, seated, actor)

    def on_reservation_ended(
        self,
        uow: UnitOfWork,
        reservation: Reservation,
        actor: ActorId,
    ) -> Table:
        table = self._lock_table(uow, reservation.table_id)
        booking = table.booking
        if booking is None:
            # Seated without a linked booking: only a completed party vacates the table.
            if (
                reservation.status != ReservationStatus.COMPLETED
                or table.status != TableStatus.OCCUPIED
            ):
                return table
        elif booking.reservation_id != reservation.reservation_id:
            return table
        if uow.orders.count_active_for_table(table.table_id) > 0:
            return table
        return self._save(uow, table, table.free(actor), actor)

    def _lock_table(self, uow: UnitOfWork, table_id: TableId) -> Table:
        table = uow.tables.get_for_update(table_id)
        if table is None:
            raise TableNotFoundError(f"table {table_id} not found")
        return table

    def _is_seated(self, uow: UnitOfWork, reservation_id: ReservationId | None) -> bool:
        if reservation_id is None:
            return False
        reservation = uow.reservations.get(reservation_id)
        return reservation is not None and reservation.status == ReservationStatus.SEATED

    def _advance_linked_reservation(
        self,
        uow: UnitOfWork,
        table: Table,
        target: ReservationStatus,
    ) -> None:
        if table.booking is None or table.booking.reservation_id is None:
            return
        reservation = uow.reservations.get_for_update(table.booking.reservation_id)
        if reservation is None or reservation.is_terminal or reservation.status == target:
            return
        if target == ReservationStatus.COMPLETED and reservation.status != ReservationStatus.SEATED:
            target = ReservationStatus.CANCELLED
        uow.reservations.update(reservation.transition_to(target, self._ctx.now()))

    def _save(self, uow: UnitOfWork, before: Table, after: Table, actor: ActorId) -> Table:
        if after == before:
            return before
        persisted = uow.tables.update(after)
        if persisted.status != before.status:
            record_table_transition(before.status, persisted.status)
            self._ctx.record_event(
                uow,
                "table.status_changed",
                actor,
                table_status_changed_payload(persisted, before.status),
            )
            logger.info(
                "table_status_changed",
                extra={
                    "table_id": str(persisted.table_id),
                    "old_status": before.status.value,
                    "new_status": persisted.status.value,
                    "actor": str(actor),
                },
            )
        return persisted
