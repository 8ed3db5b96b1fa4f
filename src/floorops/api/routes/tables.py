from __future__ import annotations

from fastapi import APIRouter, Depends, status

from floorops.api import dependencies
from floorops.api.dependencies import actor_id
from floorops.application.dto.requests import (
    AddComboRequest,
    AddItemRequest,
    BookTableRequest,
    TableStatusRequest,
)
from floorops.application.dto.responses import (
    AddItemResponse,
    BookTableResponse,
    OrderEnvelopeResponse,
    ReservationListResponse,
    TableEnvelopeResponse,
    TableListResponse,
)
from floorops.application.mappers.order_mapper import to_order_item_response, to_order_response
from floorops.application.mappers.reservation_mapper import to_reservation_response
from floorops.application.mappers.table_mapper import to_table_response
from floorops.application.use_cases.order_lifecycle import OrderLifecycle
from floorops.application.use_cases.reservations import ReservationScheduler
from floorops.application.use_cases.table_state import TableStateManager
from floorops.domain.common.ids import ActorId, ComboId, MenuItemId, TableId

router = APIRouter()


def _table_state() -> TableStateManager:
    return TableStateManager(dependencies.operation_context())


def _order_lifecycle() -> OrderLifecycle:
    return OrderLifecycle(dependencies.operation_context())


@router.get("/v1/tables", response_model=TableListResponse)
def list_tables() -> TableListResponse:
    tables = _table_state().list_tables()
    return TableListResponse(tables=[to_table_response(table) for table in tables])


@router.get("/v1/tables/{table_id}", response_model=TableEnvelopeResponse)
def get_table(table_id: str) -> TableEnvelopeResponse:
    return TableEnvelopeResponse(table=to_table_response(_table_state().get(TableId(table_id))))


@router.post(
    "/v1/tables/{table_id}/book",
    response_model=BookTableResponse,
    status_code=status.HTTP_201_CREATED,
)
def book_table(
    table_id: str,
    request_dto: BookTableRequest,
    actor: ActorId = Depends(actor_id),
) -> BookTableResponse:
    result = _table_state().book(TableId(table_id), request_dto, actor)
    return BookTableResponse(
        table=to_table_response(result.table),
        reservation=to_reservation_response(result.reservation),
        order=to_order_response(result.order) if result.order is not None else None,
    )


@router.post("/v1/tables/{table_id}/release", response_model=TableEnvelopeResponse)
def release_table(table_id: str, actor: ActorId = Depends(actor_id)) -> TableEnvelopeResponse:
    table = _table_state().release(TableId(table_id), actor)
    return TableEnvelopeResponse(table=to_table_response(table))


@router.post("/v1/tables/{table_id}/status", response_model=TableEnvelopeResponse)
def update_table_status(
    table_id: str,
    request_dto: TableStatusRequest,
    actor: ActorId = Depends(actor_id),
) -> TableEnvelopeResponse:
    table = _table_state().update_status(TableId(table_id), request_dto.status, actor)
    return TableEnvelopeResponse(table=to_table_response(table))


@router.post(
    "/v1/tables/{table_id}/items",
    response_model=AddItemResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_item(
    table_id: str,
    request_dto: AddItemRequest,
    actor: ActorId = Depends(actor_id),
) -> AddItemResponse:
    order, line = _order_lifecycle().add_item(
        table_id=TableId(table_id),
        menu_item_id=MenuItemId(request_dto.menu_item_id),
        quantity=request_dto.quantity,
        notes=request_dto.special_instructions,
        actor=actor,
    )
    return AddItemResponse(orderItem=to_order_item_response(line), order=to_order_response(order))


@router.post(
    "/v1/tables/{table_id}/combos",
    response_model=OrderEnvelopeResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_combo(
    table_id: str,
    request_dto: AddComboRequest,
    actor: ActorId = Depends(actor_id),
) -> OrderEnvelopeResponse:
    order, _ = _order_lifecycle().add_combo(
        table_id=TableId(table_id),
        combo_id=ComboId(request_dto.combo_id),
        quantity=request_dto.quantity,
        notes=request_dto.special_instructions,
        actor=actor,
    )
    return OrderEnvelopeResponse(order=to_order_response(order))


@router.get("/v1/tables/{table_id}/reservations", response_model=ReservationListResponse)
def list_table_reservations(table_id: str) -> ReservationListResponse:
    scheduler = ReservationScheduler(dependencies.operation_context())
    reservations = scheduler.list_for_table(TableId(table_id))
    return ReservationListResponse(
        reservations=[to_reservation_response(reservation) for reservation in reservations]
    )
