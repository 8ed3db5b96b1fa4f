from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from floorops.domain.common.ids import ActorId, OrderId, TableId
from floorops.domain.order.entities import OrderPriority, OrderStatus


@dataclass(frozen=True)
class OrderPlaced:
    order_id: OrderId
    table_id: TableId | None
    actor: ActorId
    occurred_at: datetime


@dataclass(frozen=True)
class OrderStatusChanged:
    order_id: OrderId
    table_id: TableId | None
    old_status: OrderStatus
    new_status: OrderStatus
    actor: ActorId
    occurred_at: datetime


@dataclass(frozen=True)
class OrderPriorityChanged:
    order_id: OrderId
    old_priority: OrderPriority
    new_priority: OrderPriority
    actor: ActorId
    occurred_at: datetime


@dataclass(frozen=True)
class OrderAssigned:
    order_id: OrderId
    assignee: ActorId
    actor: ActorId
    occurred_at: datetime
