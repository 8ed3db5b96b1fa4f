from __future__ import annotations

import concurrent.futures
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from floorops.api import dependencies
from floorops.api.main import app
from floorops.application.dto.requests import CreateReservationRequest
from floorops.application.use_cases.context import OperationContext
from floorops.application.use_cases.order_lifecycle import OrderLifecycle
from floorops.application.use_cases.reservations import ReservationScheduler
from floorops.domain.common.errors import ConflictError
from floorops.domain.common.ids import ActorId, MenuItemId, TableId
from floorops.infrastructure.db.models.order import OrderModel
from floorops.infrastructure.db.models.reservation import ReservationModel
from floorops.infrastructure.db.session import get_engine
from floorops.infrastructure.db.unit_of_work import SqlAlchemyUnitOfWork

pytestmark = pytest.mark.integration

STAFF = ActorId("staff_01")
EVENING = datetime(2026, 11, 1, 19, 0, tzinfo=timezone.utc)


def _context(publisher) -> OperationContext:
    return OperationContext(uow_factory=SqlAlchemyUnitOfWork, publisher=publisher)


def _reservation_row(reservation_id: str, starts_at: datetime) -> ReservationModel:
    return ReservationModel(
        id=reservation_id,
        table_id="tbl_002",
        customer_name="Guest",
        party_size=2,
        starts_at=starts_at,
        ends_at=starts_at + timedelta(minutes=90),
        duration_minutes=90,
        status="confirmed",
        deposit_cents=0,
        currency="USD",
        confirmation_code=reservation_id[-8:].upper(),
        created_by="staff_01",
        created_at=EVENING,
    )


def test_exclusion_constraint_rejects_overlapping_rows() -> None:
    with Session(get_engine()) as session:
        session.add(_reservation_row("res_overlap_a", EVENING))
        session.commit()

        session.add(_reservation_row("res_overlap_b", EVENING + timedelta(minutes=45)))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

        session.add(_reservation_row("res_adjacent", EVENING + timedelta(minutes=90)))
        session.commit()


def test_concurrent_overlapping_reservations_admit_exactly_one(publisher) -> None:
    scheduler = ReservationScheduler(_context(publisher))

    def _reserve(offset_minutes: int) -> str:
        request = CreateReservationRequest(
            table_id="tbl_002",
            party_size=2,
            start_time=EVENING + timedelta(minutes=offset_minutes),
            duration_minutes=90,
            customer_name=f"Guest {offset_minutes}",
        )
        try:
            return scheduler.create_reservation(request, STAFF).status.value
        except ConflictError as exc:
            return exc.code

    with concurrent.futures.ThreadPoolExecutor(max_workers=4) as executor:
        results = list(executor.map(_reserve, [0, 15, 30, 45]))

    assert results.count("pending") == 1
    assert len(results) == 4
    with Session(get_engine()) as session:
        stored = session.scalar(select(func.count()).select_from(ReservationModel))
    assert stored == 1


def test_concurrent_first_items_open_a_single_order(publisher) -> None:
    lifecycle = OrderLifecycle(_context(publisher))

    def _add(menu_item_id: str) -> str:
        order, _ = lifecycle.add_item(TableId("tbl_003"), MenuItemId(menu_item_id), 1, None, STAFF)
        return order.order_id

    with concurrent.futures.ThreadPoolExecutor(max_workers=3) as executor:
        order_ids = set(executor.map(_add, ["itm_001", "itm_002", "itm_003"]))

    assert len(order_ids) == 1
    with Session(get_engine()) as session:
        active = session.scalar(
            select(func.count())
            .select_from(OrderModel)
            .where(OrderModel.table_id == "tbl_003", OrderModel.deleted_at.is_(None))
        )
    assert active == 1
    order = lifecycle.get(order_ids.pop())
    assert len(order.items) == 3
    assert order.subtotal.amount_cents == 1450 + 1690 + 990


def test_concurrent_adds_of_one_item_merge_into_a_single_line(publisher) -> None:
    lifecycle = OrderLifecycle(_context(publisher))

    def _add(_: int) -> str:
        order, _line = lifecycle.add_item(TableId("tbl_002"), MenuItemId("itm_001"), 1, None, STAFF)
        return order.order_id

    with concurrent.futures.ThreadPoolExecutor(max_workers=6) as executor:
        order_ids = set(executor.map(_add, range(6)))

    assert len(order_ids) == 1
    order = lifecycle.get(order_ids.pop())
    [line] = order.items
    assert line.quantity == 6
    assert order.subtotal.amount_cents == 6 * 1450
    assert order.total_amount == order.subtotal + order.tax_amount - order.discount_amount


def test_service_flow_over_http(monkeypatch, publisher) -> None:
    monkeypatch.setattr(dependencies, "publisher", lambda: publisher)

    with TestClient(app) as client:
        added = client.post("/v1/tables/tbl_004/items", json={"menuItemId": "itm_002"})
        assert added.status_code == 201, added.text
        order_id = added.json()["order"]["orderId"]

        promotion = client.post(f"/v1/orders/{order_id}/promotion", json={"code": "WELCOME10"})
        assert promotion.status_code == 409
        assert promotion.json()["error"]["code"] == "PROMOTION_MINIMUM_NOT_MET"

        bill = client.post(f"/v1/orders/{order_id}/bill").json()["bill"]
        paid = client.post(
            f"/v1/bills/{bill['billId']}/payments",
            json={"amountCents": bill["totalAmount"]["amountCents"], "method": "card"},
        )
        assert paid.status_code == 201, paid.text

        table = client.get("/v1/tables/tbl_004").json()["table"]
        order = client.get(f"/v1/orders/{order_id}").json()["order"]

    assert table["status"] == "available"
    assert order["status"] == "completed"
    assert [channel for channel, _ in publisher.messages] == ["floorops:events"] * len(
        publisher.messages
    )
