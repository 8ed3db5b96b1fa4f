from __future__ import annotations

import hashlib
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from floorops.domain.common.errors import ConflictError, PreconditionError, ValidationError
from floorops.domain.common.ids import ActorId, ReservationId, TableId
from floorops.domain.common.money import Money

MIN_DURATION_MINUTES = 30
MAX_DURATION_MINUTES = 480


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SEATED = "seated"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


TERMINAL_RESERVATION_STATUSES = frozenset(
    {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW}
)

_ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {
            ReservationStatus.CONFIRMED,
            ReservationStatus.SEATED,
            ReservationStatus.CANCELLED,
            ReservationStatus.NO_SHOW,
        }
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.SEATED, ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW}
    ),
    ReservationStatus.SEATED: frozenset({ReservationStatus.COMPLETED}),
}


def intervals_overlap(
    first_start: datetime,
    first_end: datetime,
    second_start: datetime,
    second_end: datetime,
) -> bool:
    """Half-open interval overlap: touching endpoints do not overlap."""
    return first_start < second_end and second_start < first_end


@dataclass(frozen=True)
class Reservation:
    reservation_id: ReservationId
    table_id: TableId
    customer_name: str
    customer_phone: str | None
    customer_email: str | None
    party_size: int
    starts_at: datetime
    duration_minutes: int
    status: ReservationStatus
    deposit: Money
    special_requests: str | None
    confirmation_code: str
    created_by: ActorId
    created_at: datetime
    confirmed_at: datetime | None = None
    cancelled_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.party_size < 1:
            raise ValueError("party_size must be >= 1")
        if self.duration_minutes < 1:
            raise ValueError("duration_minutes must be >= 1")
        if not self.customer_name.strip():
            raise ValueError("customer_name must be non-empty")

    @property
    def ends_at(self) -> datetime:
        return self.starts_at + timedelta(minutes=self.duration_minutes)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_RESERVATION_STATUSES

    def overlaps(self, starts_at: datetime, ends_at: datetime) -> bool:
        return intervals_overlap(self.starts_at, self.ends_at, starts_at, ends_at)

    def transition_to(self, new_status: ReservationStatus, now: datetime) -> Reservation:
        if new_status == self.status:
            return self
        allowed = _ALLOWED_TRANSITIONS.get(self.status, frozenset())
        if new_status not in allowed:
            raise InvalidReservationTransitionError(
                f"cannot move reservation {self.reservation_id} "
                f"from {self.status.value} to {new_status.value}",
                details={"from": self.status.value, "to": new_status.value},
            )
        if new_status == ReservationStatus.CONFIRMED:
            return replace(self, status=new_status, confirmed_at=self.confirmed_at or now)
        if new_status == ReservationStatus.CANCELLED:
            return replace(self, status=new_status, cancelled_at=now)
        return replace(self, status=new_status)


def validate_booking_window(party_size: int, duration_minutes: int, deposit_cents: int) -> None:
    errors: dict[str, str] = {}
    if party_size < 1:
        errors["party_size"] = "must be >= 1"
    if not MIN_DURATION_MINUTES <= duration_minutes <= MAX_DURATION_MINUTES:
        errors["duration_minutes"] = (
            f"must be between {MIN_DURATION_MINUTES} and {MAX_DURATION_MINUTES}"
        )
    if deposit_cents < 0:
        errors["deposit_amount"] = "must be >= 0"
    if errors:
        raise ReservationRequestInvalidError("invalid reservation request", details=errors)


def confirmation_code_for(reservation_id: ReservationId, customer_email: str | None) -> str:
    digest = hashlib.sha256(f"{reservation_id}:{customer_email or ''}".encode("utf-8"))
    return digest.hexdigest()[:8].upper()


class ReservationRequestInvalidError(ValidationError):
    code = "INVALID_RESERVATION_REQUEST"


class InvalidReservationTransitionError(PreconditionError):
    code = "INVALID_RESERVATION_TRANSITION"


class ReservationConflictError(ConflictError):
    code = "RESERVATION_CONFLICT"
