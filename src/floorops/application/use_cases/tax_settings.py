from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal

from floorops.application.use_cases.context import OperationContext
from floorops.domain.billing.entities import InvalidTaxSettingError, TaxSetting, TaxType
from floorops.domain.common.errors import NotFoundError
from floorops.domain.common.ids import TaxSettingId, new_id

logger = logging.getLogger("floorops.tax")


class TaxSettingNotFoundError(NotFoundError):
    code = "TAX_SETTING_NOT_FOUND"


class TaxPolicyAdmin:
    """Maintains the tax settings; at most one is active at a time."""

    def __init__(self, ctx: OperationContext) -> None:
        self._ctx = ctx

    def create(
        self,
        name: str,
        tax_type: TaxType,
        rate: Decimal | None,
        activate: bool = False,
    ) -> TaxSetting:
        if not name.strip():
            raise InvalidTaxSettingError("name must be non-empty", details={"field": "name"})
        if tax_type == TaxType.MANUAL and (rate is None or not Decimal(0) <= rate <= Decimal(100)):
            raise InvalidTaxSettingError(
                "manual tax settings need a rate between 0 and 100",
                details={"field": "rate", "value": str(rate) if rate is not None else None},
            )

        setting = TaxSetting(
            tax_setting_id=TaxSettingId(new_id("tax")),
            name=name.strip(),
            tax_type=tax_type,
            rate=rate if tax_type == TaxType.MANUAL else None,
            is_active=False,
        )
        with self._ctx.uow_factory() as uow:
            uow.tax_settings.add(setting)
            if activate:
                uow.tax_settings.deactivate_all_except(setting.tax_setting_id)
                setting = replace(setting, is_active=True)
                uow.tax_settings.update(setting)
            uow.commit()

        logger.info(
            "tax_setting_created",
            extra={"tax_setting_id": str(setting.tax_setting_id), "new_status": _state(setting)},
        )
        return setting

    def activate(self, tax_setting_id: TaxSettingId) -> TaxSetting:
        with self._ctx.uow_factory() as uow:
            setting = self._require(uow.tax_settings.get(tax_setting_id), tax_setting_id)
            uow.tax_settings.deactivate_all_except(tax_setting_id)
            activated = replace(setting, is_active=True)
            uow.tax_settings.update(activated)
            uow.commit()

        logger.info("tax_setting_activated", extra={"tax_setting_id": str(tax_setting_id)})
        return activated

    def deactivate(self, tax_setting_id: TaxSettingId) -> TaxSetting:
        with self._ctx.uow_factory() as uow:
            setting = self._require(uow.tax_settings.get(tax_setting_id), tax_setting_id)
            deactivated = replace(setting, is_active=False)
            uow.tax_settings.update(deactivated)
            uow.commit()
        return deactivated

    def get_active(self) -> TaxSetting | None:
        with self._ctx.uow_factory() as uow:
            return uow.tax_settings.get_active()

    def list(self) -> list[TaxSetting]:
        with self._ctx.uow_factory() as uow:
            return uow.tax_settings.list_all()

    def _require(self, setting: TaxSetting | None, tax_setting_id: TaxSettingId) -> TaxSetting:
        if setting is None:
            raise TaxSettingNotFoundError(f"tax setting {tax_setting_id} not found")
        return setting


def _state(setting: TaxSetting) -> str:
    return "active" if setting.is_active else "inactive"
