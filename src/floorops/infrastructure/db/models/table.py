from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from floorops.infrastructure.db.models.menu import Base


class TableModel(Base):
    __tablename__ = "tables"
    __table_args__ = (
        CheckConstraint("min_capacity >= 1", name="ck_tables_min_capacity"),
        CheckConstraint("capacity >= min_capacity", name="ck_tables_capacity"),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    min_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Populated while the table is reserved or occupied through a booking.
    booking_reservation_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    booking_customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    booking_party_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    booking_starts_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    booking_duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    booking_notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    booked_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    booked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    updated_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
