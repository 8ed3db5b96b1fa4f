from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from floorops.domain.billing.entities import PaymentMethod, TaxType
from floorops.domain.order.entities import ItemStatus, OrderPriority, OrderStatus
from floorops.domain.table.entities import TableStatus


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class ReservationDetails(CamelBaseModel):
    # Ranges are checked by the scheduler so that they surface as field-level 422s.
    party_size: int
    start_time: datetime
    duration_minutes: int = 120
    deposit_amount_cents: int = 0
    deposit_method: PaymentMethod = PaymentMethod.CASH
    customer_name: str = Field(min_length=1, max_length=255)
    customer_phone: str | None = None
    customer_email: str | None = None
    special_requests: str | None = None


class BookTableRequest(ReservationDetails):
    open_order: bool = False


class CreateReservationRequest(ReservationDetails):
    table_id: str


class TableStatusRequest(CamelBaseModel):
    status: TableStatus


class AddItemRequest(CamelBaseModel):
    menu_item_id: str
    quantity: int = 1
    special_instructions: str | None = None


class AddComboRequest(CamelBaseModel):
    combo_id: str
    quantity: int = 1
    special_instructions: str | None = None


class UpdateItemQuantityRequest(CamelBaseModel):
    quantity: int


class OrderStatusRequest(CamelBaseModel):
    status: OrderStatus


class ItemStatusRequest(CamelBaseModel):
    status: ItemStatus


class OrderPriorityRequest(CamelBaseModel):
    priority: OrderPriority


class AssignOrderRequest(CamelBaseModel):
    assignee: str = Field(min_length=1, max_length=50)


class SplitPaymentLineRequest(CamelBaseModel):
    amount_cents: int
    method: PaymentMethod
    payer_name: str | None = None


class SplitPaymentRequest(CamelBaseModel):
    splits: list[SplitPaymentLineRequest]


class ApplyPromotionRequest(CamelBaseModel):
    code: str = Field(min_length=1, max_length=50)


class RecordPaymentRequest(CamelBaseModel):
    amount_cents: int
    method: PaymentMethod


class CreateTaxSettingRequest(CamelBaseModel):
    name: str = Field(min_length=1, max_length=100)
    tax_type: TaxType = Field(alias="type")
    rate: Decimal | None = None
    activate: bool = False
