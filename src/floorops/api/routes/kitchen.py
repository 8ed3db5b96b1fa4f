from __future__ import annotations

from fastapi import APIRouter, Query

from floorops.api import dependencies
from floorops.application.dto.responses import KitchenQueueResponse
from floorops.application.mappers.order_mapper import to_order_response
from floorops.application.use_cases.order_lifecycle import OrderLifecycle
from floorops.domain.order.entities import OrderStatus

router = APIRouter()


@router.get("/v1/kitchen/orders", response_model=KitchenQueueResponse)
def kitchen_orders(status: OrderStatus | None = Query(default=None)) -> KitchenQueueResponse:
    queue = OrderLifecycle(dependencies.operation_context()).kitchen_queue(status)
    return KitchenQueueResponse(
        orders=[to_order_response(order) for order in queue.orders],
        counts=queue.counts,
    )
