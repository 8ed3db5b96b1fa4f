from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str


class BookingResponse(BaseModel):
    reservationId: str | None = None
    customerName: str
    partySize: int
    startsAt: datetime
    durationMinutes: int
    notes: str | None = None
    bookedBy: str
    bookedAt: datetime


class TableResponse(BaseModel):
    tableId: str
    number: str
    minCapacity: int
    capacity: int
    status: str
    isActive: bool
    booking: BookingResponse | None = None
    updatedBy: str | None = None
    version: int


class TableEnvelopeResponse(BaseModel):
    table: TableResponse


class TableListResponse(BaseModel):
    tables: list[TableResponse] = Field(default_factory=list)


class ReservationResponse(BaseModel):
    reservationId: str
    tableId: str
    customerName: str
    customerPhone: str | None = None
    customerEmail: str | None = None
    partySize: int
    startsAt: datetime
    endsAt: datetime
    durationMinutes: int
    status: str
    depositAmount: MoneyResponse
    specialRequests: str | None = None
    confirmationCode: str
    createdBy: str
    createdAt: datetime
    confirmedAt: datetime | None = None
    cancelledAt: datetime | None = None


class ReservationListResponse(BaseModel):
    reservations: list[ReservationResponse] = Field(default_factory=list)


class OrderItemResponse(BaseModel):
    itemId: str
    kind: str
    productKind: str | None = None
    productId: str | None = None
    parentItemId: str | None = None
    menuItemId: str | None = None
    name: str
    quantity: int
    unitPrice: MoneyResponse
    totalPrice: MoneyResponse
    status: str
    notes: str | None = None


class OrderResponse(BaseModel):
    orderId: str
    orderNumber: str
    tableId: str | None = None
    status: str
    priority: str
    items: list[OrderItemResponse] = Field(default_factory=list)
    subtotal: MoneyResponse
    taxAmount: MoneyResponse
    discountAmount: MoneyResponse
    totalAmount: MoneyResponse
    promotionId: str | None = None
    specialInstructions: str | None = None
    createdBy: str
    assignedTo: str | None = None
    createdAt: datetime
    readyAt: datetime | None = None
    servedAt: datetime | None = None
    completedAt: datetime | None = None
    cancelledAt: datetime | None = None
    version: int


class OrderEnvelopeResponse(BaseModel):
    order: OrderResponse


class BookTableResponse(BaseModel):
    table: TableResponse
    reservation: ReservationResponse
    order: OrderResponse | None = None


class AddItemResponse(BaseModel):
    orderItem: OrderItemResponse
    order: OrderResponse


class RemoveItemResponse(BaseModel):
    order: OrderResponse | None = None
    table: TableResponse | None = None


class KitchenQueueResponse(BaseModel):
    orders: list[OrderResponse] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)


class BillResponse(BaseModel):
    billId: str
    billNumber: str
    orderId: str
    tableId: str | None = None
    subtotal: MoneyResponse
    taxAmount: MoneyResponse
    serviceCharge: MoneyResponse
    discountAmount: MoneyResponse
    totalAmount: MoneyResponse
    paymentStatus: str
    paidAmount: MoneyResponse
    remaining: MoneyResponse
    createdBy: str
    createdAt: datetime
    paidAt: datetime | None = None


class BillEnvelopeResponse(BaseModel):
    bill: BillResponse


class PaymentResponse(BaseModel):
    paymentId: str
    orderId: str | None = None
    reservationId: str | None = None
    billId: str | None = None
    amount: MoneyResponse
    method: str
    status: str
    payerName: str | None = None
    processedBy: str
    isSplit: bool
    createdAt: datetime


class SplitPaymentResponse(BaseModel):
    payments: list[PaymentResponse] = Field(default_factory=list)
    bill: BillResponse


class RecordPaymentResponse(BaseModel):
    bill: BillResponse
    payment: PaymentResponse


class PromotionResultResponse(BaseModel):
    discountAmount: MoneyResponse
    newTotal: MoneyResponse


class AvailabilityResponse(BaseModel):
    availableTables: list[TableResponse] = Field(default_factory=list)


class EstimateResponse(BaseModel):
    subtotal: MoneyResponse
    taxAmount: MoneyResponse
    serviceCharge: MoneyResponse
    total: MoneyResponse
    taxSettingId: str | None = None


class TaxSettingResponse(BaseModel):
    taxSettingId: str
    name: str
    type: str
    rate: str | None = None
    isActive: bool


class TaxSettingEnvelopeResponse(BaseModel):
    taxSetting: TaxSettingResponse


class TaxSettingListResponse(BaseModel):
    taxSettings: list[TaxSettingResponse] = Field(default_factory=list)


class ReservationEnvelopeResponse(BaseModel):
    reservation: ReservationResponse


class ReservationDetailResponse(BaseModel):
    reservation: ReservationResponse
    depositPayments: list[PaymentResponse] = Field(default_factory=list)
