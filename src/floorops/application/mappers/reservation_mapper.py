from __future__ import annotations

from floorops.application.dto.responses import ReservationResponse
from floorops.application.mappers.money_mapper import to_money_response
from floorops.domain.reservation.entities import Reservation


def to_reservation_response(reservation: Reservation) -> ReservationResponse:
    return ReservationResponse(
        reservationId=str(reservation.reservation_id),
        tableId=str(reservation.table_id),
        customerName=reservation.customer_name,
        customerPhone=reservation.customer_phone,
        customerEmail=reservation.customer_email,
        partySize=reservation.party_size,
        startsAt=reservation.starts_at,
        endsAt=reservation.ends_at,
        durationMinutes=reservation.duration_minutes,
        status=reservation.status.value,
        depositAmount=to_money_response(reservation.deposit),
        specialRequests=reservation.special_requests,
        confirmationCode=reservation.confirmation_code,
        createdBy=str(reservation.created_by),
        createdAt=reservation.created_at,
        confirmedAt=reservation.confirmed_at,
        cancelledAt=reservation.cancelled_at,
    )
