from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from floorops.application.ports.repositories import (
    BillRepository,
    PaymentRepository,
    PromotionRepository,
    TaxSettingRepository,
)
from floorops.domain.billing.entities import (
    Bill,
    BillPaymentStatus,
    DiscountType,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Promotion,
    TaxSetting,
    TaxType,
)
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
from floorops.infrastructure.db.models.billing import (
    BillModel,
    PaymentModel,
    PromotionModel,
    TaxSettingModel,
)
from floorops.infrastructure.db.repositories.converters import aware, aware_or_none


class SqlAlchemyBillRepository(BillRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, bill: Bill) -> None:
        model = BillModel(id=str(bill.bill_id))
        self._apply(model, bill)
        self._session.add(model)
        self._session.flush()

    def get(self, bill_id: BillId) -> Bill | None:
        model = self._session.get(BillModel, str(bill_id))
        return self._to_domain(model) if model is not None else None

    def get_for_update(self, bill_id: BillId) -> Bill | None:
        statement = (
            select(BillModel)
            .where(BillModel.id == str(bill_id))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = self._session.execute(statement).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def get_for_order(self, order_id: OrderId) -> Bill | None:
        statement = select(BillModel).where(BillModel.order_id == str(order_id))
        model = self._session.execute(statement).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def update(self, bill: Bill) -> None:
        model = self._session.get(BillModel, str(bill.bill_id))
        if model is None:
            raise RuntimeError(f"bill {bill.bill_id} not found during update")
        self._apply(model, bill)
        self._session.flush()

    def _apply(self, model: BillModel, bill: Bill) -> None:
        model.bill_number = bill.bill_number
        model.order_id = str(bill.order_id)
        model.table_id = str(bill.table_id) if bill.table_id is not None else None
        model.subtotal_cents = bill.subtotal.amount_cents
        model.tax_cents = bill.tax_amount.amount_cents
        model.service_charge_cents = bill.service_charge.amount_cents
        model.discount_cents = bill.discount_amount.amount_cents
        model.total_cents = bill.total_amount.amount_cents
        model.paid_cents = bill.paid_amount.amount_cents
        model.currency = bill.total_amount.currency
        model.payment_status = bill.payment_status.value
        model.created_by = str(bill.created_by)
        model.created_at = bill.created_at
        model.paid_at = bill.paid_at

    def _to_domain(self, model: BillModel) -> Bill:
        currency = model.currency
        return Bill(
            bill_id=BillId(model.id),
            bill_number=model.bill_number,
            order_id=OrderId(model.order_id),
            table_id=TableId(model.table_id) if model.table_id is not None else None,
            subtotal=Money(amount_cents=model.subtotal_cents, currency=currency),
            tax_amount=Money(amount_cents=model.tax_cents, currency=currency),
            service_charge=Money(amount_cents=model.service_charge_cents, currency=currency),
            discount_amount=Money(amount_cents=model.discount_cents, currency=currency),
            total_amount=Money(amount_cents=model.total_cents, currency=currency),
            payment_status=BillPaymentStatus(model.payment_status),
            paid_amount=Money(amount_cents=model.paid_cents, currency=currency),
            created_by=ActorId(model.created_by),
            created_at=aware(model.created_at),
            paid_at=aware_or_none(model.paid_at),
        )


class SqlAlchemyPaymentRepository(PaymentRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, payment: Payment) -> None:
        self._session.add(
            PaymentModel(
                id=str(payment.payment_id),
                order_id=str(payment.order_id) if payment.order_id else None,
                reservation_id=str(payment.reservation_id) if payment.reservation_id else None,
                bill_id=str(payment.bill_id) if payment.bill_id else None,
                amount_cents=payment.amount.amount_cents,
                currency=payment.amount.currency,
                method=payment.method.value,
                status=payment.status.value,
                payer_name=payment.payer_name,
                is_split=payment.is_split,
                processed_by=str(payment.processed_by),
                created_at=payment.created_at,
            )
        )
        self._session.flush()

    def list_for_order(self, order_id: OrderId) -> list[Payment]:
        statement = (
            select(PaymentModel)
            .where(PaymentModel.order_id == str(order_id))
            .order_by(PaymentModel.created_at, PaymentModel.id)
        )
        return [self._to_domain(model) for model in self._session.execute(statement).scalars()]

    def list_for_reservation(self, reservation_id: ReservationId) -> list[Payment]:
        statement = (
            select(PaymentModel)
            .where(PaymentModel.reservation_id == str(reservation_id))
            .order_by(PaymentModel.created_at, PaymentModel.id)
        )
        return [self._to_domain(model) for model in self._session.execute(statement).scalars()]

    def has_completed_for_order(self, order_id: OrderId) -> bool:
        statement = (
            select(PaymentModel.id)
            .where(
                PaymentModel.order_id == str(order_id),
                PaymentModel.status == PaymentStatus.COMPLETED.value,
            )
            .limit(1)
        )
        return self._session.execute(statement).scalar_one_or_none() is not None

    def _to_domain(self, model: PaymentModel) -> Payment:
        return Payment(
            payment_id=PaymentId(model.id),
            amount=Money(amount_cents=model.amount_cents, currency=model.currency),
            method=PaymentMethod(model.method),
            status=PaymentStatus(model.status),
            processed_by=ActorId(model.processed_by),
            created_at=aware(model.created_at),
            order_id=OrderId(model.order_id) if model.order_id else None,
            reservation_id=ReservationId(model.reservation_id) if model.reservation_id else None,
            bill_id=BillId(model.bill_id) if model.bill_id else None,
            payer_name=model.payer_name,
            is_split=model.is_split,
        )


class SqlAlchemyPromotionRepository(PromotionRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, promotion_id: PromotionId) -> Promotion | None:
        model = self._session.get(PromotionModel, str(promotion_id))
        return self._to_domain(model) if model is not None else None

    def get_by_code(self, code: str) -> Promotion | None:
        # Locked so concurrent redemptions cannot both take the last use.
        statement = (
            select(PromotionModel)
            .where(PromotionModel.code == code)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        model = self._session.execute(statement).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def update(self, promotion: Promotion) -> None:
        model = self._session.get(PromotionModel, str(promotion.promotion_id))
        if model is None:
            raise RuntimeError(f"promotion {promotion.promotion_id} not found during update")
        model.is_active = promotion.is_active
        model.usage_limit = promotion.usage_limit
        model.usage_count = promotion.usage_count
        self._session.flush()

    def _to_domain(self, model: PromotionModel) -> Promotion:
        minimum = (
            Money(amount_cents=model.minimum_order_cents, currency=model.currency)
            if model.minimum_order_cents is not None
            else None
        )
        return Promotion(
            promotion_id=PromotionId(model.id),
            code=model.code,
            name=model.name,
            discount_type=DiscountType(model.discount_type),
            discount_value=model.discount_value,
            starts_at=aware(model.starts_at),
            ends_at=aware(model.ends_at),
            is_active=model.is_active,
            minimum_order_amount=minimum,
            usage_limit=model.usage_limit,
            usage_count=model.usage_count,
        )


class SqlAlchemyTaxSettingRepository(TaxSettingRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def add(self, setting: TaxSetting) -> None:
        self._session.add(
            TaxSettingModel(
                id=str(setting.tax_setting_id),
                name=setting.name,
                tax_type=setting.tax_type.value,
                rate=setting.rate,
                is_active=setting.is_active,
            )
        )
        self._session.flush()

    def get(self, tax_setting_id: TaxSettingId) -> TaxSetting | None:
        model = self._session.get(TaxSettingModel, str(tax_setting_id))
        return self._to_domain(model) if model is not None else None

    def get_active(self) -> TaxSetting | None:
        statement = select(TaxSettingModel).where(TaxSettingModel.is_active.is_(True)).limit(1)
        model = self._session.execute(statement).scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    def list_all(self) -> list[TaxSetting]:
        statement = select(TaxSettingModel).order_by(TaxSettingModel.name, TaxSettingModel.id)
        return [self._to_domain(model) for model in self._session.execute(statement).scalars()]

    def update(self, setting: TaxSetting) -> None:
        model = self._session.get(TaxSettingModel, str(setting.tax_setting_id))
        if model is None:
            raise RuntimeError(f"tax setting {setting.tax_setting_id} not found during update")
        model.name = setting.name
        model.tax_type = setting.tax_type.value
        model.rate = setting.rate
        model.is_active = setting.is_active
        self._session.flush()

    def deactivate_all_except(self, tax_setting_id: TaxSettingId) -> None:
        statement = (
            update(TaxSettingModel)
            .where(
                TaxSettingModel.id != str(tax_setting_id),
                TaxSettingModel.is_active.is_(True),
            )
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        self._session.execute(statement)

    def _to_domain(self, model: TaxSettingModel) -> TaxSetting:
        return TaxSetting(
            tax_setting_id=TaxSettingId(model.id),
            name=model.name,
            tax_type=TaxType(model.tax_type),
            rate=model.rate,
            is_active=model.is_active,
        )
