from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from floorops.application.mappers.billing_mapper import to_bill_response
from floorops.application.mappers.order_mapper import to_order_response
from floorops.application.mappers.reservation_mapper import to_reservation_response
from floorops.application.mappers.table_mapper import to_table_response
from floorops.domain.billing.entities import Bill
from floorops.domain.order.entities import Order
from floorops.domain.order.events import (
    OrderAssigned,
    OrderPlaced,
    OrderPriorityChanged,
    OrderStatusChanged,
)
from floorops.domain.reservation.entities import Reservation
from floorops.domain.table.entities import Table, TableStatus


def serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    actor: str,
    payload: dict[str, Any],
    trace_id: str | None,
    request_id: str | None,
) -> str:
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "request_id": request_id,
        "trace_id": trace_id,
        "actor": actor,
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def order_placed_payload(event: OrderPlaced, order: Order) -> dict[str, Any]:
    return {"order": to_order_response(order).model_dump(mode="json")}


def order_status_changed_payload(event: OrderStatusChanged, order: Order) -> dict[str, Any]:
    return {
        "order": to_order_response(order).model_dump(mode="json"),
        "oldStatus": event.old_status.value,
        "newStatus": event.new_status.value,
    }


def order_priority_changed_payload(event: OrderPriorityChanged) -> dict[str, Any]:
    return {
        "orderId": str(event.order_id),
        "oldPriority": event.old_priority.value,
        "newPriority": event.new_priority.value,
    }


def order_assigned_payload(event: OrderAssigned) -> dict[str, Any]:
    return {"orderId": str(event.order_id), "assignee": str(event.assignee)}


def table_status_changed_payload(table: Table, old_status: TableStatus) -> dict[str, Any]:
    return {
        "table": to_table_response(table).model_dump(mode="json"),
        "oldStatus": old_status.value,
        "newStatus": table.status.value,
    }


def reservation_created_payload(reservation: Reservation) -> dict[str, Any]:
    return {"reservation": to_reservation_response(reservation).model_dump(mode="json")}


def bill_payload(bill: Bill) -> dict[str, Any]:
    return {"bill": to_bill_response(bill).model_dump(mode="json")}
