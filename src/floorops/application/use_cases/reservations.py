from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable

from floorops.application.dto.requests import CreateReservationRequest, ReservationDetails
from floorops.application.mappers.event_envelope import reservation_created_payload
from floorops.application.metrics.floor_metrics import (
    record_reservation_conflict,
    record_reservation_created,
)
from floorops.application.ports.unit_of_work import UnitOfWork
from floorops.application.use_cases.context import OperationContext
from floorops.application.use_cases.table_transitions import TableNotFoundError, TableTransitions
from floorops.domain.billing.entities import Payment, PaymentStatus
from floorops.domain.common.errors import NotFoundError, ValidationError
from floorops.domain.common.ids import ActorId, PaymentId, ReservationId, TableId, new_id
from floorops.domain.common.money import Money
from floorops.domain.reservation.entities import (
    TERMINAL_RESERVATION_STATUSES,
    Reservation,
    ReservationConflictError,
    ReservationStatus,
    confirmation_code_for,
    validate_booking_window,
)
from floorops.domain.table.entities import Table, TableStatus

logger = logging.getLogger("floorops.reservations")


class ReservationNotFoundError(NotFoundError):
    code = "RESERVATION_NOT_FOUND"


@dataclass(frozen=True)
class ReservationWithDeposits:
    reservation: Reservation
    deposits: list[Payment]


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ReservationScheduler:
    def __init__(self, ctx: OperationContext) -> None:
        self._ctx = ctx

    def find_conflict(
        self,
        uow: UnitOfWork,
        table_id: TableId,
        starts_at: datetime,
        duration_minutes: int,
        exclude_statuses: Iterable[ReservationStatus] = TERMINAL_RESERVATION_STATUSES,
    ) -> Reservation | None:
        """Return a reservation on ``table_id`` overlapping ``[start, start + duration)``."""
        ends_at = starts_at + timedelta(minutes=duration_minutes)
        return self._conflict_between(uow, table_id, starts_at, ends_at, exclude_statuses)

    def check_availability(
        self,
        day: date,
        window_start: time,
        window_end: time,
        party_size: int,
    ) -> list[Table]:
        if party_size < 1:
            raise ValidationError(
                "party size must be >= 1", details={"field": "partySize", "value": party_size}
            )
        starts_at = datetime.combine(day, window_start, tzinfo=timezone.utc)
        ends_at = datetime.combine(day, window_end, tzinfo=timezone.utc)
        if ends_at <= starts_at:
            raise ValidationError(
                "window end must be after window start", details={"field": "windowEnd"}
            )

        with self._ctx.uow_factory() as uow:
            available = [
                table
                for table in uow.tables.list_all()
                if table.is_active
                and table.status != TableStatus.MAINTENANCE
                and table.fits(party_size)
                and self._conflict_between(
                    uow, table.table_id, starts_at, ends_at, TERMINAL_RESERVATION_STATUSES
                )
                is None
            ]
        return sorted(available, key=lambda table: (table.capacity, table.number))

    def create_reservation(
        self,
        request: CreateReservationRequest,
        actor: ActorId,
    ) -> Reservation:
        with self._ctx.uow_factory() as uow:
            reservation = self.reserve(
                uow, TableId(request.table_id), request, actor, ReservationStatus.PENDING
            )
            uow.commit()
        self._ctx.flush_events(uow)
        record_reservation_created(reservation.status.value)
        return reservation

    def reserve(
        self,
        uow: UnitOfWork,
        table_id: TableId,
        details: ReservationDetails,
        actor: ActorId,
        status: ReservationStatus,
    ) -> Reservation:
        """Validate and insert a reservation under the table row lock. Joins ``uow``."""
        validate_booking_window(
            details.party_size, details.duration_minutes, details.deposit_amount_cents
        )
        table = uow.tables.get_for_update(table_id)
        if table is None:
            raise TableNotFoundError(f"table {table_id} not found")
        table.ensure_usable()
        table.ensure_fits(details.party_size)

        starts_at = as_utc(details.start_time)
        conflict = self.find_conflict(uow, table_id, starts_at, details.duration_minutes)
        if conflict is not None:
            record_reservation_conflict()
            raise ReservationConflictError(
                f"table {table_id} is already reserved for an overlapping window",
                details={"conflicting_reservation_id": str(conflict.reservation_id)},
            )

        now = self._ctx.now()
        reservation_id = ReservationId(new_id("res"))
        reservation = Reservation(
            reservation_id=reservation_id,
            table_id=table_id,
            customer_name=details.customer_name,
            customer_phone=details.customer_phone,
            customer_email=details.customer_email,
            party_size=details.party_size,
            starts_at=starts_at,
            duration_minutes=details.duration_minutes,
            status=status,
            deposit=Money(amount_cents=details.deposit_amount_cents, currency=self._ctx.currency),
            special_requests=details.special_requests,
            confirmation_code=confirmation_code_for(reservation_id, details.customer_email),
            created_by=actor,
            created_at=now,
            confirmed_at=now if status != ReservationStatus.PENDING else None,
        )
        uow.reservations.add(reservation)

        if reservation.deposit.amount_cents > 0:
            uow.payments.add(
                Payment(
                    payment_id=PaymentId(new_id("pay")),
                    amount=reservation.deposit,
                    method=details.deposit_method,
                    status=PaymentStatus.COMPLETED,
                    processed_by=actor,
                    created_at=now,
                    reservation_id=reservation_id,
                    payer_name=details.customer_name,
                )
            )

        self._ctx.record_event(
            uow, "reservation.created", actor, reservation_created_payload(reservation)
        )
        logger.info(
            "reservation_created",
            extra={
                "reservation_id": str(reservation_id),
                "table_id": str(table_id),
                "actor": str(actor),
                "new_status": status.value,
            },
        )
        return reservation

    def confirm(self, reservation_id: ReservationId, actor: ActorId) -> Reservation:
        return self._transition(reservation_id, ReservationStatus.CONFIRMED, actor)

    def seat(self, reservation_id: ReservationId, actor: ActorId) -> Reservation:
        return self._transition(reservation_id, ReservationStatus.SEATED, actor)

    def complete(self, reservation_id: ReservationId, actor: ActorId) -> Reservation:
        return self._transition(reservation_id, ReservationStatus.COMPLETED, actor)

    def cancel(self, reservation_id: ReservationId, actor: ActorId) -> Reservation:
        return self._transition(reservation_id, ReservationStatus.CANCELLED, actor)

    def mark_no_show(self, reservation_id: ReservationId, actor: ActorId) -> Reservation:
        return self._transition(reservation_id, ReservationStatus.NO_SHOW, actor)

    def get_detail(self, reservation_id: ReservationId) -> ReservationWithDeposits:
        """The reservation together with the deposit payments taken for it."""
        with self._ctx.uow_factory() as uow:
            reservation = uow.reservations.get(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(f"reservation {reservation_id} not found")
            deposits = uow.payments.list_for_reservation(reservation_id)
        return ReservationWithDeposits(reservation=reservation, deposits=deposits)

    def list_for_table(self, table_id: TableId) -> list[Reservation]:
        with self._ctx.uow_factory() as uow:
            if uow.tables.get(table_id) is None:
                raise TableNotFoundError(f"table {table_id} not found")
            return uow.reservations.list_for_table(table_id)

    def _transition(
        self,
        reservation_id: ReservationId,
        target: ReservationStatus,
        actor: ActorId,
    ) -> Reservation:
        with self._ctx.uow_factory() as uow:
            reservation = uow.reservations.get_for_update(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(f"reservation {reservation_id} not found")
            updated = reservation.transition_to(target, self._ctx.now())
            if updated is reservation:
                return reservation

            uow.reservations.update(updated)
            tables = TableTransitions(self._ctx)
            if target == ReservationStatus.SEATED:
                tables.on_reservation_seated(uow, updated, actor)
            elif updated.is_terminal:
                tables.on_reservation_ended(uow, updated, actor)
            uow.commit()

        self._ctx.flush_events(uow)
        logger.info(
            "reservation_status_changed",
            extra={
                "reservation_id": str(reservation_id),
                "old_status": reservation.status.value,
                "new_status": updated.status.value,
                "actor": str(actor),
            },
        )
        return updated

    def _conflict_between(
        self,
        uow: UnitOfWork,
        table_id: TableId,
        starts_at: datetime,
        ends_at: datetime,
        exclude_statuses: Iterable[ReservationStatus],
    ) -> Reservation | None:
        excluded = frozenset(exclude_statuses)
        for candidate in uow.reservations.list_overlapping(table_id, starts_at, ends_at, excluded):
            if candidate.status in excluded:
                continue
            if candidate.overlaps(starts_at, ends_at):
                return candidate
        return None
