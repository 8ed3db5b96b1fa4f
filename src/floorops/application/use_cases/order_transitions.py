from __future__ import annotations

import logging
from dataclasses import replace

from floorops.application.mappers.event_envelope import order_status_changed_payload
from floorops.application.metrics.floor_metrics import record_time_to_ready, record_transition
from floorops.application.ports.unit_of_work import UnitOfWork
from floorops.application.use_cases.context import OperationContext
from floorops.application.use_cases.table_transitions import TableTransitions
from floorops.domain.common.errors import NotFoundError
from floorops.domain.common.ids import ActorId, OrderId
from floorops.domain.order.entities import TERMINAL_ORDER_STATUSES, Order, OrderStatus
from floorops.domain.order.events import OrderStatusChanged

logger = logging.getLogger("floorops.orders")


class OrderNotFoundError(NotFoundError):
    code = "ORDER_NOT_FOUND"


def lock_order(uow: UnitOfWork, order_id: OrderId) -> Order:
    order = uow.orders.get_for_update(order_id)
    if order is None:
        raise OrderNotFoundError(f"order {order_id} not found")
    return order


def apply_order_transition(
    ctx: OperationContext,
    uow: UnitOfWork,
    order: Order,
    new_status: OrderStatus,
    actor: ActorId,
) -> Order:
    """Move ``order`` to ``new_status`` inside the caller's unit of work.

    Terminal moves release the table in the same transaction. A cancelled order
    without a completed payment is soft-deleted.
    """
    if new_status == order.status:
        return order

    now = ctx.now()
    updated = order.transition_to(new_status, now)
    if new_status == OrderStatus.CANCELLED and not uow.payments.has_completed_for_order(
        order.order_id
    ):
        updated = replace(updated, deleted_at=now)
    persisted = uow.orders.update(updated)

    if persisted.status in TERMINAL_ORDER_STATUSES:
        TableTransitions(ctx).on_order_closed(uow, persisted.table_id, actor)

    event = OrderStatusChanged(
        order_id=persisted.order_id,
        table_id=persisted.table_id,
        old_status=order.status,
        new_status=persisted.status,
        actor=actor,
        occurred_at=now,
    )
    ctx.record_event(
        uow,
        "order.status_changed",
        actor,
        order_status_changed_payload(event, persisted),
        occurred_at=now,
    )
    record_transition(from_status=order.status, to_status=persisted.status)
    if persisted.status == OrderStatus.READY:
        record_time_to_ready(persisted, now=now)
    logger.info(
        "order_status_changed",
        extra={
            "order_id": str(persisted.order_id),
            "old_status": order.status.value,
            "new_status": persisted.status.value,
            "actor": str(actor),
        },
    )
    return persisted
