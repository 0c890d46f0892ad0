"""Unit tests for market valuation of positions."""

from decimal import Decimal

import pytest

from folio.services.position import Position, value_position


@pytest.fixture
def position() -> Position:
    return Position(asset_id="PETR4", quantity=Decimal("100"), average_cost=Decimal("10"))


def test_value_position_gain(position: Position) -> None:
    valuation = value_position(position, Decimal("12.00"))

    assert valuation.current_price == Decimal("12.00")
    assert valuation.market_value == Decimal("1200")
    assert valuation.profit == Decimal("200")
    assert valuation.profitability == Decimal("20")


def test_value_position_loss(position: Position) -> None:
    valuation = value_position(position, Decimal("7.50"))

    assert valuation.profit == Decimal("-250")
    assert valuation.profitability == Decimal("-25")


def test_zero_cost_has_no_profitability() -> None:
    bonus_only = Position(asset_id="ITSA4", quantity=Decimal("10"), average_cost=Decimal("0"))

    valuation = value_position(bonus_only, Decimal("9"))

    assert valuation.market_value == Decimal("90")
    assert valuation.profitability is None


def test_zero_price_is_allowed(position: Position) -> None:
    assert value_position(position, Decimal("0")).profitability == Decimal("-100")


def test_negative_price_rejected(position: Position) -> None:
    with pytest.raises(ValueError, match="cannot be negative"):
        value_position(position, Decimal("-1"))
