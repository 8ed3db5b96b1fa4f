from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Sequence

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from floorops.application.use_cases.context import OperationContext, TraceContext
from floorops.application.use_cases.order_lifecycle import OrderLifecycle
from floorops.domain.common.ids import ActorId, MenuItemId, TableId
from floorops.domain.order.entities import OrderStatus
from floorops.domain.table.entities import TableNotAvailableError, TableStatus

WAITER = ActorId("waiter_01")
TABLE = TableId("tbl_001")


@pytest.fixture
def floor(store):
    store.add_table()
    store.add_menu_item()
    return store


class CommitObservingPublisher:
    def __init__(self, store) -> None:
        self._store = store
        self.commits_seen: list[int] = []

    def publish_batch(self, channel: str, messages: Sequence[str]) -> None:
        self.commits_seen.extend(self._store.commits for _ in messages)


def test_events_are_published_only_after_commit(floor, ctx) -> None:
    observer = CommitObservingPublisher(floor)
    observed = OperationContext(uow_factory=ctx.uow_factory, publisher=observer, clock=ctx.clock)

    OrderLifecycle(observed).add_item(TABLE, MenuItemId("itm_001"), 1, None, WAITER)

    assert observer.commits_seen == [1, 1]


def test_envelope_carries_trace_and_actor(floor, ctx, publisher) -> None:
    traced = OperationContext(
        uow_factory=ctx.uow_factory,
        publisher=publisher,
        trace=TraceContext(trace_id="4bf92f3577b34da6a3ce929d0e0e4736", request_id="req-123"),
        clock=ctx.clock,
    )

    order, _ = OrderLifecycle(traced).add_item(TABLE, MenuItemId("itm_001"), 1, None, WAITER)

    channels = {channel for channel, _ in publisher.messages}
    assert channels == {"floorops:events"}
    placed = next(e for e in publisher.envelopes() if e["event_type"] == "order.placed")
    assert placed["actor"] == "waiter_01"
    assert placed["trace_id"] == "4bf92f3577b34da6a3ce929d0e0e4736"
    assert placed["request_id"] == "req-123"
    assert placed["occurred_at"] == "2026-10-17T18:00:00+00:00"
    assert placed["payload"]["order"]["orderId"] == order.order_id
    assert placed["event_id"]


def test_status_change_payload_names_both_statuses(floor, ctx, publisher) -> None:
    lifecycle = OrderLifecycle(ctx)
    order, _ = lifecycle.add_item(TABLE, MenuItemId("itm_001"), 1, None, WAITER)

    lifecycle.change_status(order.order_id, OrderStatus.PREPARING, WAITER)

    changed = publisher.envelopes()[-1]
    assert changed["event_type"] == "order.status_changed"
    assert changed["payload"]["oldStatus"] == "pending"
    assert changed["payload"]["newStatus"] == "preparing"


def test_failed_operation_publishes_nothing(floor, ctx, publisher) -> None:
    floor.add_table(table_id="tbl_009", number="T9", status=TableStatus.MAINTENANCE)

    with pytest.raises(TableNotAvailableError):
        OrderLifecycle(ctx).add_item(TableId("tbl_009"), MenuItemId("itm_001"), 1, None, WAITER)

    assert publisher.messages == []
    assert floor.commits == 0


def test_publish_failure_is_logged_and_does_not_undo_the_commit(
    floor, ctx, publisher, caplog
) -> None:
    publisher.fail = True

    with caplog.at_level(logging.WARNING, logger="floorops.events"):
        order, _ = OrderLifecycle(ctx).add_item(TABLE, MenuItemId("itm_001"), 1, None, WAITER)

    assert floor.orders[order.order_id].status == OrderStatus.PENDING
    assert floor.tables[TABLE].status == TableStatus.OCCUPIED
    assert any(record.getMessage() == "event_publish_failed" for record in caplog.records)
