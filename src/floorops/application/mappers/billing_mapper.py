from __future__ import annotations

from floorops.application.dto.responses import BillResponse, PaymentResponse, TaxSettingResponse
from floorops.application.mappers.money_mapper import to_money_response
from floorops.domain.billing.entities import Bill, Payment, TaxSetting


def to_bill_response(bill: Bill) -> BillResponse:
    return BillResponse(
        billId=str(bill.bill_id),
        billNumber=bill.bill_number,
        orderId=str(bill.order_id),
        tableId=str(bill.table_id) if bill.table_id else None,
        subtotal=to_money_response(bill.subtotal),
        taxAmount=to_money_response(bill.tax_amount),
        serviceCharge=to_money_response(bill.service_charge),
        discountAmount=to_money_response(bill.discount_amount),
        totalAmount=to_money_response(bill.total_amount),
        paymentStatus=bill.payment_status.value,
        paidAmount=to_money_response(bill.paid_amount),
        remaining=to_money_response(bill.remaining()),
        createdBy=str(bill.created_by),
        createdAt=bill.created_at,
        paidAt=bill.paid_at,
    )


def to_payment_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        paymentId=str(payment.payment_id),
        orderId=str(payment.order_id) if payment.order_id else None,
        reservationId=str(payment.reservation_id) if payment.reservation_id else None,
        billId=str(payment.bill_id) if payment.bill_id else None,
        amount=to_money_response(payment.amount),
        method=payment.method.value,
        status=payment.status.value,
        payerName=payment.payer_name,
        processedBy=str(payment.processed_by),
        isSplit=payment.is_split,
        createdAt=payment.created_at,
    )


def to_tax_setting_response(setting: TaxSetting) -> TaxSettingResponse:
    return TaxSettingResponse(
        taxSettingId=str(setting.tax_setting_id),
        name=setting.name,
        type=setting.tax_type.value,
        rate=str(setting.rate) if setting.rate is not None else None,
        isActive=setting.is_active,
    )
