"""Market valuation of positions.

Prices come from an external quote provider; the engine only receives them
as plain Decimals.
"""

from decimal import Decimal

from folio.services.position.models import Position, PositionValuation


def value_position(position: Position, price: Decimal) -> PositionValuation:
    """
    Mark a position to a market price.

    Args:
        position: Reduced position
        price: Current price per unit

    Returns:
        PositionValuation with market value, profit and profitability
        (profitability is None when nothing is invested)

    Raises:
        ValueError: If price is negative

    Example:
        >>> value_position(position, Decimal("12.00")).profit
        Decimal('200.00')
    """
    if price < 0:
        raise ValueError(f"Price cannot be negative, got {price}")

    market_value = position.quantity * price
    invested = position.invested_value
    profit = market_value - invested
    profitability = (profit / invested) * Decimal("100") if invested != 0 else None

    return PositionValuation(
        current_price=price,
        market_value=market_value,
        profit=profit,
        profitability=profitability,
    )
