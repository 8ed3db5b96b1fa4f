from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from floorops.domain.common.errors import ConflictError, PreconditionError, ValidationError
from floorops.domain.common.ids import (
    ActorId,
    BillId,
    OrderId,
    PaymentId,
    PromotionId,
    ReservationId,
    TableId,
    TaxSettingId,
)
from floorops.domain.common.money import Money

SPLIT_TOLERANCE_CENTS = 1


class BillPaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE = "mobile"
    QR_CODE = "qr_code"
    BANK_TRANSFER = "bank_transfer"
    DIGITAL_WALLET = "digital_wallet"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class TaxType(str, Enum):
    FREE = "free"
    MANUAL = "manual"


def new_bill_number(now: datetime) -> str:
    return f"BILL-{now:%Y%m%d}-{uuid4().hex[:6].upper()}"


@dataclass(frozen=True)
class Bill:
    bill_id: BillId
    bill_number: str
    order_id: OrderId
    table_id: TableId | None
    subtotal: Money
    tax_amount: Money
    service_charge: Money
    discount_amount: Money
    total_amount: Money
    payment_status: BillPaymentStatus
    paid_amount: Money
    created_by: ActorId
    created_at: datetime
    paid_at: datetime | None = None

    def __post_init__(self) -> None:
        expected = (
            self.subtotal.amount_cents
            + self.tax_amount.amount_cents
            + self.service_charge.amount_cents
            - self.discount_amount.amount_cents
        )
        if self.total_amount.amount_cents != expected:
            raise ValueError(
                "total_amount must equal subtotal + tax_amount + service_charge - discount_amount"
            )

    @property
    def is_paid(self) -> bool:
        return self.payment_status == BillPaymentStatus.PAID

    def remaining(self) -> Money:
        outstanding = self.total_amount.amount_cents - self.paid_amount.amount_cents
        return Money(amount_cents=max(outstanding, 0), currency=self.total_amount.currency)

    def apply_payment(self, amount: Money, now: datetime) -> Bill:
        if self.is_paid:
            raise BillAlreadyPaidError(f"bill {self.bill_id} is already paid")
        if amount.amount_cents <= 0:
            raise PaymentAmountInvalidError(
                "payment amount must be > 0",
                details={"field": "amount", "value": amount.amount_cents},
            )
        if amount.amount_cents > self.remaining().amount_cents:
            raise PaymentAmountInvalidError(
                "payment amount exceeds the remaining balance",
                details={
                    "field": "amount",
                    "value": amount.amount_cents,
                    "remaining": self.remaining().amount_cents,
                },
            )
        paid_amount = self.paid_amount + amount
        if paid_amount.amount_cents >= self.total_amount.amount_cents:
            return replace(
                self,
                paid_amount=paid_amount,
                payment_status=BillPaymentStatus.PAID,
                paid_at=now,
            )
        return replace(self, paid_amount=paid_amount, payment_status=BillPaymentStatus.PARTIAL)

    def settle(self, collected: Money, now: datetime) -> Bill:
        """Mark the bill paid with one settlement of the remaining balance.

        A shortfall within ``SPLIT_TOLERANCE_CENTS`` is written off, so a paid bill
        never shows a balance.
        """
        if self.is_paid:
            raise BillAlreadyPaidError(f"bill {self.bill_id} is already paid")
        due = self.remaining()
        if abs(collected.amount_cents - due.amount_cents) > SPLIT_TOLERANCE_CENTS:
            raise SplitAmountMismatchError(
                "settlement must cover the remaining balance",
                details={"expected": due.amount_cents, "received": collected.amount_cents},
            )
        paid_amount = self.paid_amount + collected
        if paid_amount.amount_cents < self.total_amount.amount_cents:
            paid_amount = self.total_amount
        return replace(
            self,
            paid_amount=paid_amount,
            payment_status=BillPaymentStatus.PAID,
            paid_at=now,
        )


@dataclass(frozen=True)
class Payment:
    payment_id: PaymentId
    amount: Money
    method: PaymentMethod
    status: PaymentStatus
    processed_by: ActorId
    created_at: datetime
    order_id: OrderId | None = None
    reservation_id: ReservationId | None = None
    bill_id: BillId | None = None
    payer_name: str | None = None
    is_split: bool = False

    def __post_init__(self) -> None:
        if (self.order_id is None) == (self.reservation_id is None):
            raise ValueError("payment must target exactly one of order or reservation")
        if self.amount.amount_cents <= 0:
            raise ValueError("payment amount must be > 0")


@dataclass(frozen=True)
class Promotion:
    promotion_id: PromotionId
    code: str
    name: str
    discount_type: DiscountType
    discount_value: Decimal
    starts_at: datetime
    ends_at: datetime
    is_active: bool = True
    minimum_order_amount: Money | None = None
    usage_limit: int | None = None
    usage_count: int = 0

    def __post_init__(self) -> None:
        if self.discount_value < 0:
            raise ValueError("discount_value must be >= 0")
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("percentage discount_value must be <= 100")
        if self.ends_at < self.starts_at:
            raise ValueError("ends_at must not precede starts_at")
        if self.usage_limit is not None and self.usage_limit < 0:
            raise ValueError("usage_limit must be >= 0")

    def has_uses_left(self) -> bool:
        return self.usage_limit is None or self.usage_count < self.usage_limit

    def is_redeemable(self, now: datetime, already_applied: bool = False) -> bool:
        """An order re-applying its own promotion does not consume another use."""
        if not self.is_active:
            return False
        if not self.starts_at <= now <= self.ends_at:
            return False
        return already_applied or self.has_uses_left()

    def ensure_minimum_met(self, subtotal: Money) -> None:
        minimum = self.minimum_order_amount
        if minimum is not None and subtotal.amount_cents < minimum.amount_cents:
            raise PromotionMinimumNotMetError(
                f"order subtotal is below the promotion minimum of {minimum.amount_cents} cents",
                details={
                    "subtotal": subtotal.amount_cents,
                    "minimum_order_amount": minimum.amount_cents,
                },
            )

    def redeemed(self) -> Promotion:
        return replace(self, usage_count=self.usage_count + 1)


@dataclass(frozen=True)
class TaxSetting:
    tax_setting_id: TaxSettingId
    name: str
    tax_type: TaxType
    rate: Decimal | None
    is_active: bool = False

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")
        if self.tax_type == TaxType.MANUAL:
            if self.rate is None or not Decimal(0) <= self.rate <= Decimal(100):
                raise ValueError("manual tax settings need a rate between 0 and 100")

    @property
    def effective_rate(self) -> Decimal:
        if self.tax_type == TaxType.FREE or self.rate is None:
            return Decimal(0)
        return self.rate


class BillAlreadyExistsError(ConflictError):
    code = "BILL_ALREADY_EXISTS"


class BillAlreadyPaidError(PreconditionError):
    code = "BILL_ALREADY_PAID"


class OrderAlreadyBilledError(PreconditionError):
    code = "ORDER_ALREADY_BILLED"


class PaymentAmountInvalidError(ValidationError):
    code = "INVALID_PAYMENT_AMOUNT"


class SplitAmountMismatchError(ValidationError):
    code = "SPLIT_AMOUNT_MISMATCH"


class PromotionMinimumNotMetError(PreconditionError):
    code = "PROMOTION_MINIMUM_NOT_MET"


class InvalidTaxSettingError(ValidationError):
    code = "INVALID_TAX_SETTING"
