from __future__ import annotations

from datetime import datetime

from prometheus_client import Counter, Gauge, Histogram

from floorops.domain.order.entities import Order, OrderStatus
from floorops.domain.table.entities import TableStatus

ORDERS_PLACED_TOTAL = Counter(
    "floorops_orders_placed_total",
    "Total number of orders opened for a table.",
)

ORDER_TRANSITION_TOTAL = Counter(
    "floorops_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_TIME_TO_READY_SECONDS = Histogram(
    "floorops_order_time_to_ready_seconds",
    "Time between order creation and readiness.",
)

KITCHEN_QUEUE_SIZE = Gauge(
    "floorops_kitchen_queue_size",
    "Number of active kitchen orders by status at the last queue query.",
    ["status"],
)

TABLE_TRANSITION_TOTAL = Counter(
    "floorops_table_transition_total",
    "Total number of table status transitions.",
    ["from", "to"],
)

TABLE_RELEASE_BLOCKED_TOTAL = Counter(
    "floorops_table_release_blocked_total",
    "Total number of table releases refused because of active orders.",
)

RESERVATIONS_CREATED_TOTAL = Counter(
    "floorops_reservations_created_total",
    "Total number of reservations created.",
    ["status"],
)

RESERVATION_CONFLICTS_TOTAL = Counter(
    "floorops_reservation_conflicts_total",
    "Total number of reservation attempts rejected for overlapping an existing one.",
)

BILLS_GENERATED_TOTAL = Counter(
    "floorops_bills_generated_total",
    "Total number of bills generated.",
)

PAYMENTS_RECORDED_TOTAL = Counter(
    "floorops_payments_recorded_total",
    "Total number of completed payments by method.",
    ["method", "split"],
)

PROMOTION_APPLICATIONS_TOTAL = Counter(
    "floorops_promotion_applications_total",
    "Total number of promotion applications by outcome.",
    ["outcome"],
)


def record_order_placed() -> None:
    ORDERS_PLACED_TOTAL.inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_time_to_ready(order: Order, now: datetime) -> None:
    ORDER_TIME_TO_READY_SECONDS.observe(max((now - order.created_at).total_seconds(), 0.0))


def record_kitchen_queue_size(counts: dict[str, int]) -> None:
    for status, size in counts.items():
        KITCHEN_QUEUE_SIZE.labels(status=status).set(size)


def record_table_transition(from_status: TableStatus, to_status: TableStatus) -> None:
    TABLE_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_table_release_blocked() -> None:
    TABLE_RELEASE_BLOCKED_TOTAL.inc()


def record_reservation_created(status: str) -> None:
    RESERVATIONS_CREATED_TOTAL.labels(status=status).inc()


def record_reservation_conflict() -> None:
    RESERVATION_CONFLICTS_TOTAL.inc()


def record_bill_generated() -> None:
    BILLS_GENERATED_TOTAL.inc()


def record_payment(method: str, split: bool) -> None:
    PAYMENTS_RECORDED_TOTAL.labels(method=method, split=str(split).lower()).inc()


def record_promotion_application(outcome: str) -> None:
    PROMOTION_APPLICATIONS_TOTAL.labels(outcome=outcome).inc()
