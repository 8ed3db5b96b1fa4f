from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from floorops.domain.common.ids import ActorId, ReservationId, TableId
from floorops.domain.table.entities import (
    BookingInfo,
    InvalidTableTransitionError,
    PartySizeOutOfRangeError,
    Table,
    TableNotAvailableError,
    TableStatus,
)

ACTOR = ActorId("host_01")


def _table(status: TableStatus = TableStatus.AVAILABLE, is_active: bool = True) -> Table:
    return Table(
        table_id=TableId("tbl_001"),
        number="T1",
        min_capacity=2,
        capacity=4,
        status=status,
        is_active=is_active,
    )


def _booking(party_size: int = 2) -> BookingInfo:
    return BookingInfo(
        reservation_id=ReservationId("res_001"),
        customer_name="Ada",
        party_size=party_size,
        starts_at=datetime(2026, 10, 17, 19, 0, tzinfo=timezone.utc),
        duration_minutes=90,
        notes=None,
        booked_by=ACTOR,
        booked_at=datetime(2026, 10, 17, 18, 0, tzinfo=timezone.utc),
    )


def test_table_capacity_bounds_are_validated() -> None:
    with pytest.raises(ValueError):
        Table(
            table_id=TableId("tbl_001"),
            number="T1",
            min_capacity=0,
            capacity=4,
            status=TableStatus.AVAILABLE,
        )
    with pytest.raises(ValueError):
        Table(
            table_id=TableId("tbl_001"),
            number="T1",
            min_capacity=5,
            capacity=4,
            status=TableStatus.AVAILABLE,
        )


def test_fits_uses_inclusive_capacity_range() -> None:
    table = _table()
    assert table.fits(2)
    assert table.fits(4)
    assert not table.fits(1)
    assert not table.fits(5)
    with pytest.raises(PartySizeOutOfRangeError):
        table.ensure_fits(5)


def test_book_reserves_or_occupies_depending_on_order_flag() -> None:
    reserved = _table().book(_booking(), with_order=False)
    occupied = _table().book(_booking(), with_order=True)

    assert reserved.status == TableStatus.RESERVED
    assert reserved.booking is not None
    assert reserved.booking.customer_name == "Ada"
    assert occupied.status == TableStatus.OCCUPIED


def test_book_requires_an_available_active_table() -> None:
    with pytest.raises(TableNotAvailableError):
        _table(status=TableStatus.OCCUPIED).book(_booking(), with_order=False)
    with pytest.raises(TableNotAvailableError):
        _table(is_active=False).book(_booking(), with_order=False)


def test_free_clears_booking_but_keeps_maintenance() -> None:
    booked = _table().book(_booking(), with_order=False)
    freed = booked.free(ACTOR)
    assert freed.status == TableStatus.AVAILABLE
    assert freed.booking is None

    maintenance = _table(status=TableStatus.MAINTENANCE)
    assert maintenance.free(ACTOR) is maintenance


def test_occupy_refuses_maintenance_tables() -> None:
    with pytest.raises(TableNotAvailableError):
        _table(status=TableStatus.MAINTENANCE).occupy(ACTOR)
    occupied = _table(status=TableStatus.OCCUPIED)
    assert occupied.occupy(ACTOR) is occupied


def test_maintenance_is_entered_and_left_only_through_available() -> None:
    with pytest.raises(InvalidTableTransitionError):
        _table(status=TableStatus.OCCUPIED).override_status(TableStatus.MAINTENANCE, ACTOR)
    with pytest.raises(InvalidTableTransitionError):
        _table(status=TableStatus.MAINTENANCE).override_status(TableStatus.RESERVED, ACTOR)

    entered = _table().override_status(TableStatus.MAINTENANCE, ACTOR)
    assert entered.status == TableStatus.MAINTENANCE
    assert entered.override_status(TableStatus.AVAILABLE, ACTOR).status == TableStatus.AVAILABLE
