from __future__ import annotations

from dataclasses import replace

from sqlalchemy import select
from sqlalchemy.orm import Session

from floorops.application.ports.repositories import TableRepository
from floorops.domain.common.ids import ActorId, ReservationId, TableId
from floorops.domain.table.entities import BookingInfo, Table, TableStatus
from floorops.infrastructure.db.models.table import TableModel
from floorops.infrastructure.db.repositories.converters import aware, aware_or_none


class SqlAlchemyTableRepository(TableRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, table_id: TableId) -> Table | None:
        model = self._session.get(TableModel, str(table_id))
        return self._to_domain(model) if model is not None else None

    def get_for_update(self, table_id: TableId) -> Table | None:
        statement = (
            select(TableModel)
            .where(TableModel.id == str(table_id))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = self._session.execute(statement).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def list_all(self) -> list[Table]:
        statement = select(TableModel).order_by(TableModel.number)
        return [self._to_domain(model) for model in self._session.execute(statement).scalars()]

    def add(self, table: Table) -> None:
        model = TableModel(id=str(table.table_id), version=table.version)
        self._apply(model, table)
        self._session.add(model)
        self._session.flush()

    def update(self, table: Table) -> Table:
        model = self._session.get(TableModel, str(table.table_id))
        if model is None:
            raise RuntimeError(f"table {table.table_id} not found during update")
        self._apply(model, table)
        model.version = model.version + 1
        self._session.flush()
        return replace(table, version=model.version)

    def _apply(self, model: TableModel, table: Table) -> None:
        model.number = table.number
        model.min_capacity = table.min_capacity
        model.capacity = table.capacity
        model.status = table.status.value
        model.is_active = table.is_active
        model.updated_by = table.updated_by

        booking = table.booking
        model.booking_reservation_id = booking.reservation_id if booking else None
        model.booking_customer_name = booking.customer_name if booking else None
        model.booking_party_size = booking.party_size if booking else None
        model.booking_starts_at = booking.starts_at if booking else None
        model.booking_duration_minutes = booking.duration_minutes if booking else None
        model.booking_notes = booking.notes if booking else None
        model.booked_by = booking.booked_by if booking else None
        model.booked_at = booking.booked_at if booking else None

    def _to_domain(self, model: TableModel) -> Table:
        booking: BookingInfo | None = None
        if model.booking_customer_name is not None and model.booking_starts_at is not None:
            booking = BookingInfo(
                reservation_id=(
                    ReservationId(model.booking_reservation_id)
                    if model.booking_reservation_id
                    else None
                ),
                customer_name=model.booking_customer_name,
                party_size=model.booking_party_size or 0,
                starts_at=aware(model.booking_starts_at),
                duration_minutes=model.booking_duration_minutes or 0,
                notes=model.booking_notes,
                booked_by=ActorId(model.booked_by or ""),
                booked_at=aware_or_none(model.booked_at) or aware(model.booking_starts_at),
            )
        return Table(
            table_id=TableId(model.id),
            number=model.number,
            min_capacity=model.min_capacity,
            capacity=model.capacity,
            status=TableStatus(model.status),
            is_active=model.is_active,
            booking=booking,
            updated_by=ActorId(model.updated_by) if model.updated_by else None,
            version=model.version,
        )
