from __future__ import annotations

from floorops.application.dto.responses import MoneyResponse
from floorops.domain.common.money import Money


def to_money_response(money: Money) -> MoneyResponse:
    return MoneyResponse(amountCents=money.amount_cents, currency=money.currency)
