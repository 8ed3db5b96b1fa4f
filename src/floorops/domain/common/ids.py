from __future__ import annotations

from typing import NewType
from uuid import uuid4

ActorId = NewType("ActorId", str)
TableId = NewType("TableId", str)
ReservationId = NewType("ReservationId", str)
OrderId = NewType("OrderId", str)
OrderItemId = NewType("OrderItemId", str)
MenuItemId = NewType("MenuItemId", str)
ComboId = NewType("ComboId", str)
BillId = NewType("BillId", str)
PaymentId = NewType("PaymentId", str)
PromotionId = NewType("PromotionId", str)
TaxSettingId = NewType("TaxSettingId", str)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"
