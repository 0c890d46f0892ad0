"""Position service - replays ownership events into positions.

Key components:
- reduce_events: Fold one asset's events into a Position (WAC accounting)
- aggregate: Consolidate a portfolio from events grouped by asset
- value_position: Mark a position to a market price
- Models: Position, AssetPosition, PositionValuation, TypeAllocation, PortfolioPosition

Example:
    >>> from folio.services.position import aggregate
    >>>
    >>> portfolio = aggregate(
    ...     {"PETR4": petr4_events, "HGLG11": hglg11_events},
    ...     asset_types={"PETR4": "stock", "HGLG11": "reit"},
    ... )
    >>> print(f"Invested: {portfolio.total_invested}")
"""

from folio.services.position.aggregator import aggregate, allocate_by_type
from folio.services.position.models import (
    AssetPosition,
    PortfolioPosition,
    Position,
    PositionValuation,
    TypeAllocation,
)
from folio.services.position.reducer import PositionAccumulator, reduce_events
from folio.services.position.valuation import value_position

__all__ = [
    # Operations
    "reduce_events",
    "aggregate",
    "allocate_by_type",
    "value_position",
    "PositionAccumulator",
    # Models
    "Position",
    "PositionValuation",
    "AssetPosition",
    "TypeAllocation",
    "PortfolioPosition",
]
