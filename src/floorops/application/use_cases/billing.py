from __future__ import annotations

import logging
from dataclasses import dataclass

from floorops.application.dto.requests import SplitPaymentLineRequest
from floorops.application.mappers.event_envelope import bill_payload
from floorops.application.metrics.floor_metrics import (
    record_bill_generated,
    record_payment,
    record_promotion_application,
)
from floorops.application.ports.unit_of_work import UnitOfWork
from floorops.application.use_cases.context import OperationContext
from floorops.application.use_cases.order_transitions import apply_order_transition, lock_order
from floorops.domain.billing.entities import (
    Bill,
    BillAlreadyExistsError,
    BillAlreadyPaidError,
    BillPaymentStatus,
    OrderAlreadyBilledError,
    Payment,
    PaymentAmountInvalidError,
    PaymentMethod,
    PaymentStatus,
    SplitAmountMismatchError,
    new_bill_number,
)
from floorops.domain.billing.pricing import (
    discount,
    order_totals,
    service_charge,
    splits_match_total,
    tax,
)
from floorops.domain.common.errors import NotFoundError, PreconditionError, ValidationError
from floorops.domain.common.ids import ActorId, BillId, OrderId, PaymentId, new_id
from floorops.domain.common.money import Money, sum_money
from floorops.domain.order.entities import Order, OrderStatus

logger = logging.getLogger("floorops.billing")


class BillNotFoundError(NotFoundError):
    code = "BILL_NOT_FOUND"


class PromotionNotFoundError(NotFoundError):
    code = "PROMOTION_NOT_FOUND"


class OrderNotBillableError(PreconditionError):
    code = "ORDER_NOT_BILLABLE"


@dataclass(frozen=True)
class PromotionResult:
    order: Order
    discount_amount: Money
    new_total: Money


@dataclass(frozen=True)
class SplitPaymentResult:
    order: Order
    bill: Bill
    payments: list[Payment]


@dataclass(frozen=True)
class PaymentResult:
    bill: Bill
    payment: Payment
    order: Order | None


@dataclass(frozen=True)
class BillEstimate:
    subtotal: Money
    tax_amount: Money
    service_charge: Money
    total: Money
    tax_setting_id: str | None


class BillingEngine:
    def __init__(self, ctx: OperationContext) -> None:
        self._ctx = ctx

    def recompute(self, uow: UnitOfWork, order: Order) -> Order:
        """Refresh the four monetary fields from the order's items and persist them together."""
        totals = order_totals(order.items, uow.tax_settings.get_active(), order.discount_amount)
        refreshed = order.with_totals(totals.subtotal, totals.tax_amount, totals.discount_amount)
        return uow.orders.update(refreshed)

    def ensure_unbilled(self, uow: UnitOfWork, order: Order) -> None:
        if uow.bills.get_for_order(order.order_id) is not None:
            raise OrderAlreadyBilledError(
                f"order {order.order_id} already has a bill; its contents are frozen"
            )

    def apply_promotion(self, order_id: OrderId, code: str, actor: ActorId) -> PromotionResult:
        now = self._ctx.now()
        with self._ctx.uow_factory() as uow:
            order = lock_order(uow, order_id)
            order.ensure_items_mutable()
            self.ensure_unbilled(uow, order)

            promotion = uow.promotions.get_by_code(code)
            already_applied = promotion is not None and order.promotion_id == promotion.promotion_id
            if promotion is None or not promotion.is_redeemable(now, already_applied):
                record_promotion_application("rejected")
                raise PromotionNotFoundError(f"no redeemable promotion matches code {code!r}")
            promotion.ensure_minimum_met(order.subtotal)

            amount = discount(order.subtotal, promotion)
            if not already_applied:
                uow.promotions.update(promotion.redeemed())
            updated = self.recompute(uow, order.with_promotion(promotion.promotion_id, amount))
            uow.commit()

        record_promotion_application("reapplied" if already_applied else "applied")
        logger.info(
            "promotion_applied",
            extra={"order_id": str(order_id), "actor": str(actor), "promotion_code": code},
        )
        return PromotionResult(
            order=updated,
            discount_amount=updated.discount_amount,
            new_total=updated.total_amount,
        )

    def generate_bill(self, order_id: OrderId, actor: ActorId) -> Bill:
        with self._ctx.uow_factory() as uow:
            order = lock_order(uow, order_id)
            bill = self._create_bill(uow, order, actor)
            uow.commit()
        self._ctx.flush_events(uow)
        record_bill_generated()
        return bill

    def apply_split_payment(
        self,
        order_id: OrderId,
        splits: list[SplitPaymentLineRequest],
        actor: ActorId,
    ) -> SplitPaymentResult:
        if not splits:
            raise PaymentAmountInvalidError(
                "at least one split is required", details={"field": "splits"}
            )
        for index, split in enumerate(splits):
            if split.amount_cents <= 0:
                raise PaymentAmountInvalidError(
                    "every split amount must be > 0",
                    details={"field": f"splits[{index}].amountCents", "value": split.amount_cents},
                )

        now = self._ctx.now()
        with self._ctx.uow_factory() as uow:
            order = lock_order(uow, order_id)
            if not order.is_active:
                raise OrderNotBillableError(f"order {order_id} is {order.status.value}")

            amounts = [Money(amount_cents=s.amount_cents, currency=order.currency) for s in splits]
            bill = self._lock_bill_for_order(uow, order)
            if bill is not None and bill.is_paid:
                raise BillAlreadyPaidError(f"bill {bill.bill_id} is already paid")
            amount_due = bill.remaining() if bill is not None else self._bill_total(uow, order)
            if not splits_match_total(amounts, amount_due):
                raise SplitAmountMismatchError(
                    "split amounts must add up to the amount due on the bill",
                    details={
                        "field": "splits",
                        "expected": amount_due.amount_cents,
                        "received": sum_money(amounts, order.currency).amount_cents,
                    },
                )
            if bill is None:
                bill = self._create_bill(uow, order, actor)

            payments = [
                Payment(
                    payment_id=PaymentId(new_id("pay")),
                    amount=amount,
                    method=split.method,
                    status=PaymentStatus.COMPLETED,
                    processed_by=actor,
                    created_at=now,
                    order_id=order.order_id,
                    bill_id=bill.bill_id,
                    payer_name=split.payer_name,
                    is_split=True,
                )
                for split, amount in zip(splits, amounts)
            ]
            for payment in payments:
                uow.payments.add(payment)

            paid_bill = bill.settle(sum_money(amounts, order.currency), now)
            uow.bills.update(paid_bill)
            completed = apply_order_transition(self._ctx, uow, order, OrderStatus.COMPLETED, actor)
            self._ctx.record_event(
                uow, "bill.paid", actor, bill_payload(paid_bill), occurred_at=now
            )
            uow.commit()

        self._ctx.flush_events(uow)
        for payment in payments:
            record_payment(payment.method.value, split=True)
        logger.info(
            "bill_paid",
            extra={
                "bill_id": str(paid_bill.bill_id),
                "order_id": str(order_id),
                "actor": str(actor),
            },
        )
        return SplitPaymentResult(order=completed, bill=paid_bill, payments=payments)

    def record_payment(
        self,
        bill_id: BillId,
        amount_cents: int,
        method: PaymentMethod,
        actor: ActorId,
    ) -> PaymentResult:
        now = self._ctx.now()
        with self._ctx.uow_factory() as uow:
            bill = uow.bills.get_for_update(bill_id)
            if bill is None:
                raise BillNotFoundError(f"bill {bill_id} not found")
            if bill.is_paid:
                raise BillAlreadyPaidError(f"bill {bill_id} is already paid")
            if amount_cents <= 0:
                raise PaymentAmountInvalidError(
                    "payment amount must be > 0",
                    details={"field": "amountCents", "value": amount_cents},
                )

            amount = Money(amount_cents=amount_cents, currency=bill.total_amount.currency)
            updated = bill.apply_payment(amount, now)
            payment = Payment(
                payment_id=PaymentId(new_id("pay")),
                amount=amount,
                method=method,
                status=PaymentStatus.COMPLETED,
                processed_by=actor,
                created_at=now,
                order_id=bill.order_id,
                bill_id=bill.bill_id,
            )
            uow.payments.add(payment)
            uow.bills.update(updated)

            order: Order | None = None
            if updated.payment_status == BillPaymentStatus.PAID:
                order = lock_order(uow, bill.order_id)
                if order.is_active:
                    order = apply_order_transition(
                        self._ctx, uow, order, OrderStatus.COMPLETED, actor
                    )
                self._ctx.record_event(
                    uow, "bill.paid", actor, bill_payload(updated), occurred_at=now
                )
            uow.commit()

        self._ctx.flush_events(uow)
        record_payment(method.value, split=False)
        logger.info(
            "payment_recorded",
            extra={
                "bill_id": str(bill_id),
                "actor": str(actor),
                "new_status": updated.payment_status.value,
            },
        )
        return PaymentResult(bill=updated, payment=payment, order=order)

    def get_bill(self, bill_id: BillId) -> Bill:
        with self._ctx.uow_factory() as uow:
            bill = uow.bills.get(bill_id)
        if bill is None:
            raise BillNotFoundError(f"bill {bill_id} not found")
        return bill

    def get_bill_for_order(self, order_id: OrderId) -> Bill:
        with self._ctx.uow_factory() as uow:
            bill = uow.bills.get_for_order(order_id)
        if bill is None:
            raise BillNotFoundError(f"order {order_id} has no bill")
        return bill

    def estimate(self, subtotal_cents: int) -> BillEstimate:
        if subtotal_cents < 0:
            raise ValidationError(
                "subtotal must be >= 0",
                details={"field": "subtotalCents", "value": subtotal_cents},
            )
        subtotal = Money(amount_cents=subtotal_cents, currency=self._ctx.currency)
        with self._ctx.uow_factory() as uow:
            setting = uow.tax_settings.get_active()
        tax_amount = tax(subtotal, setting)
        charge = service_charge(subtotal, setting, self._ctx.service_charge)
        return BillEstimate(
            subtotal=subtotal,
            tax_amount=tax_amount,
            service_charge=charge,
            total=subtotal + tax_amount + charge,
            tax_setting_id=str(setting.tax_setting_id) if setting else None,
        )

    def _lock_bill_for_order(self, uow: UnitOfWork, order: Order) -> Bill | None:
        existing = uow.bills.get_for_order(order.order_id)
        if existing is None:
            return None
        return uow.bills.get_for_update(existing.bill_id)

    def _service_charge(self, uow: UnitOfWork, order: Order) -> Money:
        return service_charge(
            order.subtotal, uow.tax_settings.get_active(), self._ctx.service_charge
        )

    def _bill_total(self, uow: UnitOfWork, order: Order) -> Money:
        """Total of the bill ``order`` would get if it were generated now."""
        return order.total_amount + self._service_charge(uow, order)

    def _create_bill(self, uow: UnitOfWork, order: Order, actor: ActorId) -> Bill:
        if uow.bills.get_for_order(order.order_id) is not None:
            raise BillAlreadyExistsError(f"order {order.order_id} already has a bill")
        if order.status == OrderStatus.CANCELLED:
            raise OrderNotBillableError(f"order {order.order_id} is cancelled")

        now = self._ctx.now()
        charge = self._service_charge(uow, order)
        bill = Bill(
            bill_id=BillId(new_id("bil")),
            bill_number=new_bill_number(now),
            order_id=order.order_id,
            table_id=order.table_id,
            subtotal=order.subtotal,
            tax_amount=order.tax_amount,
            service_charge=charge,
            discount_amount=order.discount_amount,
            total_amount=order.subtotal + order.tax_amount + charge - order.discount_amount,
            payment_status=BillPaymentStatus.PENDING,
            paid_amount=Money.zero(order.currency),
            created_by=actor,
            created_at=now,
        )
        uow.bills.add(bill)
        self._ctx.record_event(uow, "bill.generated", actor, bill_payload(bill), occurred_at=now)
        logger.info(
            "bill_generated",
            extra={
                "bill_id": str(bill.bill_id),
                "order_id": str(order.order_id),
                "actor": str(actor),
            },
        )
        return bill
