"""Environment-driven settings for the floor operations core."""

from __future__ import annotations

import os
from decimal import Decimal, InvalidOperation
from functools import lru_cache

from floorops.application.use_cases.context import DEFAULT_EVENTS_CHANNEL
from floorops.domain.billing.pricing import ServiceChargeMode, ServiceChargePolicy


@lru_cache(maxsize=1)
def default_currency() -> str:
    currency = os.getenv("DEFAULT_CURRENCY", "USD").strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        raise RuntimeError(f"DEFAULT_CURRENCY must be a 3-letter code, got {currency!r}")
    return currency


@lru_cache(maxsize=1)
def events_channel() -> str:
    return os.getenv("EVENTS_CHANNEL", DEFAULT_EVENTS_CHANNEL).strip() or DEFAULT_EVENTS_CHANNEL


@lru_cache(maxsize=1)
def service_charge_policy() -> ServiceChargePolicy:
    raw_mode = os.getenv("SERVICE_CHARGE_MODE", ServiceChargeMode.TAX_RATE.value).strip().lower()
    try:
        mode = ServiceChargeMode(raw_mode)
    except ValueError as exc:
        raise RuntimeError(f"unsupported SERVICE_CHARGE_MODE {raw_mode!r}") from exc

    if mode != ServiceChargeMode.FIXED:
        return ServiceChargePolicy(mode=mode)
    raw_rate = os.getenv("SERVICE_CHARGE_RATE", "0").strip()
    try:
        return ServiceChargePolicy(mode=mode, rate=Decimal(raw_rate))
    except (InvalidOperation, ValueError) as exc:
        raise RuntimeError(f"SERVICE_CHARGE_RATE must be a percentage, got {raw_rate!r}") from exc


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise RuntimeError(f"{name} is not set")
    return value


def database_url() -> str:
    return _required("DATABASE_URL")


def redis_url() -> str:
    return _required("REDIS_URL")


def db_pool_size() -> int:
    raw_size = os.getenv("DB_POOL_SIZE", "5").strip()
    if not raw_size.isdigit() or int(raw_size) < 1:
        raise RuntimeError(f"DB_POOL_SIZE must be a positive integer, got {raw_size!r}")
    return int(raw_size)
