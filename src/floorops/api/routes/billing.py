from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from floorops.api import dependencies
from floorops.api.dependencies import actor_id
from floorops.application.dto.requests import (
    ApplyPromotionRequest,
    RecordPaymentRequest,
    SplitPaymentRequest,
)
from floorops.application.dto.responses import (
    BillEnvelopeResponse,
    EstimateResponse,
    PromotionResultResponse,
    RecordPaymentResponse,
    SplitPaymentResponse,
)
from floorops.application.mappers.billing_mapper import to_bill_response, to_payment_response
from floorops.application.mappers.money_mapper import to_money_response
from floorops.application.use_cases.billing import BillingEngine
from floorops.domain.common.ids import ActorId, BillId, OrderId

router = APIRouter()


def _billing_engine() -> BillingEngine:
    return BillingEngine(dependencies.operation_context())


@router.post(
    "/v1/orders/{order_id}/bill",
    response_model=BillEnvelopeResponse,
    status_code=status.HTTP_201_CREATED,
)
def generate_bill(order_id: str, actor: ActorId = Depends(actor_id)) -> BillEnvelopeResponse:
    bill = _billing_engine().generate_bill(OrderId(order_id), actor)
    return BillEnvelopeResponse(bill=to_bill_response(bill))


@router.get("/v1/orders/{order_id}/bill", response_model=BillEnvelopeResponse)
def get_order_bill(order_id: str) -> BillEnvelopeResponse:
    bill = _billing_engine().get_bill_for_order(OrderId(order_id))
    return BillEnvelopeResponse(bill=to_bill_response(bill))


@router.post("/v1/orders/{order_id}/split-payment", response_model=SplitPaymentResponse)
def split_payment(
    order_id: str,
    request_dto: SplitPaymentRequest,
    actor: ActorId = Depends(actor_id),
) -> SplitPaymentResponse:
    result = _billing_engine().apply_split_payment(OrderId(order_id), request_dto.splits, actor)
    return SplitPaymentResponse(
        payments=[to_payment_response(payment) for payment in result.payments],
        bill=to_bill_response(result.bill),
    )


@router.post("/v1/orders/{order_id}/promotion", response_model=PromotionResultResponse)
def apply_promotion(
    order_id: str,
    request_dto: ApplyPromotionRequest,
    actor: ActorId = Depends(actor_id),
) -> PromotionResultResponse:
    result = _billing_engine().apply_promotion(OrderId(order_id), request_dto.code, actor)
    return PromotionResultResponse(
        discountAmount=to_money_response(result.discount_amount),
        newTotal=to_money_response(result.new_total),
    )


@router.get("/v1/bills/{bill_id}", response_model=BillEnvelopeResponse)
def get_bill(bill_id: str) -> BillEnvelopeResponse:
    return BillEnvelopeResponse(bill=to_bill_response(_billing_engine().get_bill(BillId(bill_id))))


@router.post(
    "/v1/bills/{bill_id}/payments",
    response_model=RecordPaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
def record_payment(
    bill_id: str,
    request_dto: RecordPaymentRequest,
    actor: ActorId = Depends(actor_id),
) -> RecordPaymentResponse:
    result = _billing_engine().record_payment(
        BillId(bill_id), request_dto.amount_cents, request_dto.method, actor
    )
    return RecordPaymentResponse(
        bill=to_bill_response(result.bill),
        payment=to_payment_response(result.payment),
    )


@router.get("/v1/estimate", response_model=EstimateResponse)
def estimate(subtotal_cents: int = Query(alias="subtotalCents")) -> EstimateResponse:
    result = _billing_engine().estimate(subtotal_cents)
    return EstimateResponse(
        subtotal=to_money_response(result.subtotal),
        taxAmount=to_money_response(result.tax_amount),
        serviceCharge=to_money_response(result.service_charge),
        total=to_money_response(result.total),
        taxSettingId=result.tax_setting_id,
    )
