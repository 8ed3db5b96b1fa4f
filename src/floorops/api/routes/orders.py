from __future__ import annotations

from fastapi import APIRouter, Depends

from floorops.api import dependencies
from floorops.api.dependencies import actor_id
from floorops.application.dto.requests import (
    AssignOrderRequest,
    ItemStatusRequest,
    OrderPriorityRequest,
    OrderStatusRequest,
    UpdateItemQuantityRequest,
)
from floorops.application.dto.responses import OrderEnvelopeResponse, RemoveItemResponse
from floorops.application.mappers.order_mapper import to_order_response
from floorops.application.mappers.table_mapper import to_table_response
from floorops.application.use_cases.order_lifecycle import OrderLifecycle
from floorops.domain.common.ids import ActorId, OrderId, OrderItemId

router = APIRouter()


def _order_lifecycle() -> OrderLifecycle:
    return OrderLifecycle(dependencies.operation_context())


@router.get("/v1/orders/{order_id}", response_model=OrderEnvelopeResponse)
def get_order(order_id: str) -> OrderEnvelopeResponse:
    return OrderEnvelopeResponse(order=to_order_response(_order_lifecycle().get(OrderId(order_id))))


@router.post("/v1/orders/{order_id}/status", response_model=OrderEnvelopeResponse)
def change_order_status(
    order_id: str,
    request_dto: OrderStatusRequest,
    actor: ActorId = Depends(actor_id),
) -> OrderEnvelopeResponse:
    order = _order_lifecycle().change_status(OrderId(order_id), request_dto.status, actor)
    return OrderEnvelopeResponse(order=to_order_response(order))


@router.post("/v1/orders/{order_id}/priority", response_model=OrderEnvelopeResponse)
def change_order_priority(
    order_id: str,
    request_dto: OrderPriorityRequest,
    actor: ActorId = Depends(actor_id),
) -> OrderEnvelopeResponse:
    order = _order_lifecycle().change_priority(OrderId(order_id), request_dto.priority, actor)
    return OrderEnvelopeResponse(order=to_order_response(order))


@router.post("/v1/orders/{order_id}/assign", response_model=OrderEnvelopeResponse)
def assign_order(
    order_id: str,
    request_dto: AssignOrderRequest,
    actor: ActorId = Depends(actor_id),
) -> OrderEnvelopeResponse:
    order = _order_lifecycle().assign(OrderId(order_id), ActorId(request_dto.assignee), actor)
    return OrderEnvelopeResponse(order=to_order_response(order))


@router.post(
    "/v1/orders/{order_id}/items/{item_id}/status",
    response_model=OrderEnvelopeResponse,
)
def update_item_status(
    order_id: str,
    item_id: str,
    request_dto: ItemStatusRequest,
    actor: ActorId = Depends(actor_id),
) -> OrderEnvelopeResponse:
    order = _order_lifecycle().update_item_status(
        OrderId(order_id), OrderItemId(item_id), request_dto.status, actor
    )
    return OrderEnvelopeResponse(order=to_order_response(order))


@router.patch("/v1/order-items/{item_id}", response_model=OrderEnvelopeResponse)
def update_item_quantity(
    item_id: str,
    request_dto: UpdateItemQuantityRequest,
    actor: ActorId = Depends(actor_id),
) -> OrderEnvelopeResponse:
    order = _order_lifecycle().update_item_quantity(
        OrderItemId(item_id), request_dto.quantity, actor
    )
    return OrderEnvelopeResponse(order=to_order_response(order))


@router.delete("/v1/order-items/{item_id}", response_model=RemoveItemResponse)
def remove_item(item_id: str, actor: ActorId = Depends(actor_id)) -> RemoveItemResponse:
    order, table = _order_lifecycle().remove_item(OrderItemId(item_id), actor)
    return RemoveItemResponse(
        order=to_order_response(order) if order is not None else None,
        table=to_table_response(table) if table is not None else None,
    )
