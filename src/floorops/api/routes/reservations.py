from __future__ import annotations

from datetime import date, time

from fastapi import APIRouter, Depends, Query, status

from floorops.api import dependencies
from floorops.api.dependencies import actor_id
from floorops.application.dto.requests import CreateReservationRequest
from floorops.application.dto.responses import (
    AvailabilityResponse,
    ReservationDetailResponse,
    ReservationEnvelopeResponse,
)
from floorops.application.mappers.billing_mapper import to_payment_response
from floorops.application.mappers.reservation_mapper import to_reservation_response
from floorops.application.mappers.table_mapper import to_table_response
from floorops.application.use_cases.reservations import ReservationScheduler
from floorops.domain.common.ids import ActorId, ReservationId

router = APIRouter()


def _scheduler() -> ReservationScheduler:
    return ReservationScheduler(dependencies.operation_context())


@router.post(
    "/v1/reservations",
    response_model=ReservationEnvelopeResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_reservation(
    request_dto: CreateReservationRequest,
    actor: ActorId = Depends(actor_id),
) -> ReservationEnvelopeResponse:
    reservation = _scheduler().create_reservation(request_dto, actor)
    return ReservationEnvelopeResponse(reservation=to_reservation_response(reservation))


@router.get("/v1/reservations/{reservation_id}", response_model=ReservationDetailResponse)
def get_reservation(reservation_id: str) -> ReservationDetailResponse:
    detail = _scheduler().get_detail(ReservationId(reservation_id))
    return ReservationDetailResponse(
        reservation=to_reservation_response(detail.reservation),
        depositPayments=[to_payment_response(payment) for payment in detail.deposits],
    )


@router.post(
    "/v1/reservations/{reservation_id}/confirm",
    response_model=ReservationEnvelopeResponse,
)
def confirm_reservation(
    reservation_id: str,
    actor: ActorId = Depends(actor_id),
) -> ReservationEnvelopeResponse:
    reservation = _scheduler().confirm(ReservationId(reservation_id), actor)
    return ReservationEnvelopeResponse(reservation=to_reservation_response(reservation))


@router.post("/v1/reservations/{reservation_id}/seat", response_model=ReservationEnvelopeResponse)
def seat_reservation(
    reservation_id: str,
    actor: ActorId = Depends(actor_id),
) -> ReservationEnvelopeResponse:
    reservation = _scheduler().seat(ReservationId(reservation_id), actor)
    return ReservationEnvelopeResponse(reservation=to_reservation_response(reservation))


@router.post(
    "/v1/reservations/{reservation_id}/complete",
    response_model=ReservationEnvelopeResponse,
)
def complete_reservation(
    reservation_id: str,
    actor: ActorId = Depends(actor_id),
) -> ReservationEnvelopeResponse:
    reservation = _scheduler().complete(ReservationId(reservation_id), actor)
    return ReservationEnvelopeResponse(reservation=to_reservation_response(reservation))


@router.post(
    "/v1/reservations/{reservation_id}/cancel",
    response_model=ReservationEnvelopeResponse,
)
def cancel_reservation(
    reservation_id: str,
    actor: ActorId = Depends(actor_id),
) -> ReservationEnvelopeResponse:
    reservation = _scheduler().cancel(ReservationId(reservation_id), actor)
    return ReservationEnvelopeResponse(reservation=to_reservation_response(reservation))


@router.post(
    "/v1/reservations/{reservation_id}/no-show",
    response_model=ReservationEnvelopeResponse,
)
def mark_reservation_no_show(
    reservation_id: str,
    actor: ActorId = Depends(actor_id),
) -> ReservationEnvelopeResponse:
    reservation = _scheduler().mark_no_show(ReservationId(reservation_id), actor)
    return ReservationEnvelopeResponse(reservation=to_reservation_response(reservation))


@router.get("/v1/availability", response_model=AvailabilityResponse)
def availability(
    day: date = Query(alias="date"),
    window_start: time = Query(alias="windowStart"),
    window_end: time = Query(alias="windowEnd"),
    party_size: int = Query(alias="partySize"),
) -> AvailabilityResponse:
    tables = _scheduler().check_availability(day, window_start, window_end, party_size)
    return AvailabilityResponse(availableTables=[to_table_response(table) for table in tables])
