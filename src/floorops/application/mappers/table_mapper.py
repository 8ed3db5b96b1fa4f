from __future__ import annotations

from floorops.application.dto.responses import BookingResponse, TableResponse
from floorops.domain.table.entities import BookingInfo, Table


def _to_booking_response(booking: BookingInfo) -> BookingResponse:
    return BookingResponse(
        reservationId=str(booking.reservation_id) if booking.reservation_id else None,
        customerName=booking.customer_name,
        partySize=booking.party_size,
        startsAt=booking.starts_at,
        durationMinutes=booking.duration_minutes,
        notes=booking.notes,
        bookedBy=str(booking.booked_by),
        bookedAt=booking.booked_at,
    )


def to_table_response(table: Table) -> TableResponse:
    return TableResponse(
        tableId=str(table.table_id),
        number=table.number,
        minCapacity=table.min_capacity,
        capacity=table.capacity,
        status=table.status.value,
        isActive=table.is_active,
        booking=_to_booking_response(table.booking) if table.booking else None,
        updatedBy=str(table.updated_by) if table.updated_by else None,
        version=table.version,
    )
