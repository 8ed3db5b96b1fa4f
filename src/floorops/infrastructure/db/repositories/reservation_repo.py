from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from floorops.application.ports.repositories import ReservationRepository
from floorops.domain.common.ids import ActorId, ReservationId, TableId
from floorops.domain.common.money import Money
from floorops.domain.reservation.entities import (
    Reservation,
    ReservationConflictError,
    ReservationStatus,
)
from floorops.infrastructure.db.models.reservation import ReservationModel
from floorops.infrastructure.db.repositories.converters import aware, aware_or_none

NO_OVERLAP_CONSTRAINT = "ex_reservations_no_overlap"


class SqlAlchemyReservationRepository(ReservationRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, reservation: Reservation) -> None:
        model = ReservationModel(id=str(reservation.reservation_id))
        self._apply(model, reservation)
        self._session.add(model)
        try:
            self._session.flush()
        except IntegrityError as exc:
            if NO_OVERLAP_CONSTRAINT in str(exc.orig):
                raise ReservationConflictError(
                    f"table {reservation.table_id} is already reserved for an overlapping window",
                    details={"table_id": str(reservation.table_id)},
                ) from exc
            raise

    def get(self, reservation_id: ReservationId) -> Reservation | None:
        model = self._session.get(ReservationModel, str(reservation_id))
        return self._to_domain(model) if model is not None else None

    def get_for_update(self, reservation_id: ReservationId) -> Reservation | None:
        statement = (
            select(ReservationModel)
            .where(ReservationModel.id == str(reservation_id))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = self._session.execute(statement).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def update(self, reservation: Reservation) -> None:
        model = self._session.get(ReservationModel, str(reservation.reservation_id))
        if model is None:
            raise RuntimeError(f"reservation {reservation.reservation_id} not found during update")
        self._apply(model, reservation)
        self._session.flush()

    def list_for_table(self, table_id: TableId) -> list[Reservation]:
        statement = (
            select(ReservationModel)
            .where(ReservationModel.table_id == str(table_id))
            .order_by(ReservationModel.starts_at)
        )
        return [self._to_domain(model) for model in self._session.execute(statement).scalars()]

    def list_overlapping(
        self,
        table_id: TableId,
        starts_at: datetime,
        ends_at: datetime,
        exclude_statuses: Iterable[ReservationStatus],
    ) -> list[Reservation]:
        excluded = [status.value for status in exclude_statuses]
        statement = select(ReservationModel).where(
            ReservationModel.table_id == str(table_id),
            ReservationModel.starts_at < ends_at,
            ReservationModel.ends_at > starts_at,
        )
        if excluded:
            statement = statement.where(ReservationModel.status.not_in(excluded))
        statement = statement.order_by(ReservationModel.starts_at)
        return [self._to_domain(model) for model in self._session.execute(statement).scalars()]

    def _apply(self, model: ReservationModel, reservation: Reservation) -> None:
        model.table_id = str(reservation.table_id)
        model.customer_name = reservation.customer_name
        model.customer_phone = reservation.customer_phone
        model.customer_email = reservation.customer_email
        model.party_size = reservation.party_size
        model.starts_at = reservation.starts_at
        model.ends_at = reservation.ends_at
        model.duration_minutes = reservation.duration_minutes
        model.status = reservation.status.value
        model.deposit_cents = reservation.deposit.amount_cents
        model.currency = reservation.deposit.currency
        model.special_requests = reservation.special_requests
        model.confirmation_code = reservation.confirmation_code
        model.created_by = str(reservation.created_by)
        model.created_at = reservation.created_at
        model.confirmed_at = reservation.confirmed_at
        model.cancelled_at = reservation.cancelled_at

    def _to_domain(self, model: ReservationModel) -> Reservation:
        return Reservation(
            reservation_id=ReservationId(model.id),
            table_id=TableId(model.table_id),
            customer_name=model.customer_name,
            customer_phone=model.customer_phone,
            customer_email=model.customer_email,
            party_size=model.party_size,
            starts_at=aware(model.starts_at),
            duration_minutes=model.duration_minutes,
            status=ReservationStatus(model.status),
            deposit=Money(amount_cents=model.deposit_cents, currency=model.currency),
            special_requests=model.special_requests,
            confirmation_code=model.confirmation_code,
            created_by=ActorId(model.created_by),
            created_at=aware(model.created_at),
            confirmed_at=aware_or_none(model.confirmed_at),
            cancelled_at=aware_or_none(model.cancelled_at),
        )
