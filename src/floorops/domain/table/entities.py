from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from floorops.domain.common.errors import ConflictError, PreconditionError, ValidationError
from floorops.domain.common.ids import ActorId, ReservationId, TableId


class TableStatus(str, Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


@dataclass(frozen=True)
class BookingInfo:
    reservation_id: ReservationId | None
    customer_name: str
    party_size: int
    starts_at: datetime
    duration_minutes: int
    notes: str | None
    booked_by: ActorId
    booked_at: datetime


@dataclass(frozen=True)
class Table:
    table_id: TableId
    number: str
    min_capacity: int
    capacity: int
    status: TableStatus
    is_active: bool = True
    booking: BookingInfo | None = None
    updated_by: ActorId | None = None
    version: int = 1

    def __post_init__(self) -> None:
        if self.min_capacity < 1:
            raise ValueError("min_capacity must be >= 1")
        if self.capacity < self.min_capacity:
            raise ValueError("capacity must be >= min_capacity")

    def fits(self, party_size: int) -> bool:
        return self.min_capacity <= party_size <= self.capacity

    def ensure_fits(self, party_size: int) -> None:
        if not self.fits(party_size):
            raise PartySizeOutOfRangeError(
                f"party of {party_size} does not fit table {self.table_id} "
                f"({self.min_capacity}-{self.capacity} seats)",
                details={
                    "field": "party_size",
                    "min_capacity": self.min_capacity,
                    "capacity": self.capacity,
                },
            )

    def ensure_usable(self) -> None:
        if not self.is_active:
            raise TableNotAvailableError(f"table {self.table_id} is inactive")
        if self.status == TableStatus.MAINTENANCE:
            raise TableNotAvailableError(f"table {self.table_id} is under maintenance")

    def book(self, booking: BookingInfo, with_order: bool) -> Table:
        if not self.is_active or self.status != TableStatus.AVAILABLE:
            raise TableNotAvailableError(
                f"table {self.table_id} is not available for booking",
                details={"status": self.status.value},
            )
        self.ensure_fits(booking.party_size)
        status = TableStatus.OCCUPIED if with_order else TableStatus.RESERVED
        return replace(self, status=status, booking=booking, updated_by=booking.booked_by)

    def occupy(self, actor: ActorId) -> Table:
        self.ensure_usable()
        if self.status == TableStatus.OCCUPIED:
            return self
        return replace(self, status=TableStatus.OCCUPIED, updated_by=actor)

    def seat(self, booking: BookingInfo, actor: ActorId) -> Table:
        """Occupy the table for a reservation that is being seated."""
        self.ensure_usable()
        return replace(self, status=TableStatus.OCCUPIED, booking=booking, updated_by=actor)

    def free(self, actor: ActorId) -> Table:
        if self.status == TableStatus.MAINTENANCE:
            return self
        return replace(self, status=TableStatus.AVAILABLE, booking=None, updated_by=actor)

    def override_status(self, new_status: TableStatus, actor: ActorId) -> Table:
        if new_status == self.status:
            return self
        if new_status == TableStatus.MAINTENANCE and self.status != TableStatus.AVAILABLE:
            raise InvalidTableTransitionError(
                "maintenance can only be entered from available",
                details={"from": self.status.value, "to": new_status.value},
            )
        if self.status == TableStatus.MAINTENANCE and new_status != TableStatus.AVAILABLE:
            raise InvalidTableTransitionError(
                "maintenance can only be left to available",
                details={"from": self.status.value, "to": new_status.value},
            )
        booking = self.booking if new_status != TableStatus.AVAILABLE else None
        return replace(self, status=new_status, booking=booking, updated_by=actor)


class TableNotAvailableError(ConflictError):
    code = "TABLE_NOT_AVAILABLE"


class TableHasActiveOrdersError(PreconditionError):
    code = "TABLE_HAS_ACTIVE_ORDERS"


class InvalidTableTransitionError(PreconditionError):
    code = "INVALID_TABLE_TRANSITION"


class PartySizeOutOfRangeError(ValidationError):
    code = "PARTY_SIZE_OUT_OF_RANGE"
