from __future__ import annotations

from fastapi import APIRouter, status

from floorops.api import dependencies
from floorops.application.dto.requests import CreateTaxSettingRequest
from floorops.application.dto.responses import (
    TaxSettingEnvelopeResponse,
    TaxSettingListResponse,
)
from floorops.application.mappers.billing_mapper import to_tax_setting_response
from floorops.application.use_cases.tax_settings import TaxPolicyAdmin
from floorops.domain.common.ids import TaxSettingId

router = APIRouter()


def _tax_admin() -> TaxPolicyAdmin:
    return TaxPolicyAdmin(dependencies.operation_context())


@router.get("/v1/tax-settings", response_model=TaxSettingListResponse)
def list_tax_settings() -> TaxSettingListResponse:
    settings = _tax_admin().list()
    return TaxSettingListResponse(
        taxSettings=[to_tax_setting_response(setting) for setting in settings]
    )


@router.post(
    "/v1/tax-settings",
    response_model=TaxSettingEnvelopeResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_tax_setting(request_dto: CreateTaxSettingRequest) -> TaxSettingEnvelopeResponse:
    setting = _tax_admin().create(
        name=request_dto.name,
        tax_type=request_dto.tax_type,
        rate=request_dto.rate,
        activate=request_dto.activate,
    )
    return TaxSettingEnvelopeResponse(taxSetting=to_tax_setting_response(setting))


@router.post(
    "/v1/tax-settings/{tax_setting_id}/activate",
    response_model=TaxSettingEnvelopeResponse,
)
def activate_tax_setting(tax_setting_id: str) -> TaxSettingEnvelopeResponse:
    setting = _tax_admin().activate(TaxSettingId(tax_setting_id))
    return TaxSettingEnvelopeResponse(taxSetting=to_tax_setting_response(setting))


@router.post(
    "/v1/tax-settings/{tax_setting_id}/deactivate",
    response_model=TaxSettingEnvelopeResponse,
)
def deactivate_tax_setting(tax_setting_id: str) -> TaxSettingEnvelopeResponse:
    setting = _tax_admin().deactivate(TaxSettingId(tax_setting_id))
    return TaxSettingEnvelopeResponse(taxSetting=to_tax_setting_response(setting))
