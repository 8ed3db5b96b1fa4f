from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from floorops.domain.common.money import Money, sum_money


def test_money_rejects_negative_amounts_and_bad_currency() -> None:
    with pytest.raises(ValueError):
        Money(amount_cents=-1, currency="USD")
    with pytest.raises(ValueError):
        Money(amount_cents=100, currency="usd")
    with pytest.raises(ValueError):
        Money(amount_cents=100, currency="US")


def test_money_arithmetic_requires_same_currency() -> None:
    usd = Money(amount_cents=500, currency="USD")
    eur = Money(amount_cents=500, currency="EUR")

    assert (usd + usd).amount_cents == 1000
    assert (usd - Money(amount_cents=200, currency="USD")).amount_cents == 300
    with pytest.raises(ValueError):
        usd + eur


def test_percent_rounds_half_up_to_the_cent() -> None:
    assert Money(amount_cents=15000, currency="USD").percent(Decimal("10")).amount_cents == 1500
    assert Money(amount_cents=5, currency="USD").percent(Decimal("10")).amount_cents == 1
    assert Money(amount_cents=4, currency="USD").percent(Decimal("10")).amount_cents == 0
    assert Money(amount_cents=1999, currency="USD").percent(Decimal("8.25")).amount_cents == 165


def test_sum_money_of_empty_list_is_zero() -> None:
    assert sum_money([], "USD") == Money.zero("USD")
    assert sum_money(
        [Money(amount_cents=100, currency="USD"), Money(amount_cents=250, currency="USD")],
        "USD",
    ) == Money(amount_cents=350, currency="USD")
