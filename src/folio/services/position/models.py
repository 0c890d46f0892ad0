"""Data models for position service.

Defines the derived value objects of the position engine:
- Position: Consolidated holding of one asset
- PositionValuation: Position marked at a market price
- AssetPosition: Retained position with asset-type label and optional valuation
- TypeAllocation: Share of a portfolio held in one asset type
- PortfolioPosition: Consolidated portfolio snapshot

All models are frozen. They are recomputed from events on every call and
never mutated across invocations.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Position(BaseModel):
    """
    Consolidated position for one asset.

    Attributes:
        asset_id: Instrument identifier (None when reduced from an empty sequence)
        quantity: Units held, never negative
        average_cost: Weighted-average unit cost, 0 when quantity is 0
        distributions_received: Cumulative dividends and interest on capital
        first_buy_at: Timestamp of the first BUY, if any
        last_event_at: Timestamp of the last event of any kind

    Example:
        >>> position = reduce_events(events)
        >>> position.invested_value
        Decimal('1600.0')
    """

    asset_id: str | None = None
    quantity: Decimal = Decimal("0")
    average_cost: Decimal = Decimal("0")
    distributions_received: Decimal = Decimal("0")
    first_buy_at: datetime | None = None
    last_event_at: datetime | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def invested_value(self) -> Decimal:
        """Cost basis of units held (quantity * average_cost)."""
        return self.quantity * self.average_cost

    @property
    def is_open(self) -> bool:
        """Position still holds units."""
        return self.quantity > 0

    @property
    def side(self) -> Literal["long", "flat"]:
        """Position side based on quantity (short positions are not modeled)."""
        return "long" if self.quantity > 0 else "flat"


class PositionValuation(BaseModel):
    """
    Position marked to a market price.

    Attributes:
        current_price: Price per unit used for marking
        market_value: quantity * current_price
        profit: market_value - invested_value
        profitability: profit / invested_value * 100 (None when nothing invested)
    """

    current_price: Decimal
    market_value: Decimal
    profit: Decimal
    profitability: Decimal | None

    model_config = ConfigDict(frozen=True)


class AssetPosition(BaseModel):
    """
    Position retained in a portfolio snapshot.

    Attributes:
        position: Reduced position (always open)
        asset_type: Asset-type label supplied by the caller
        valuation: Market valuation when a price was supplied
    """

    position: Position
    asset_type: str
    valuation: PositionValuation | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def asset_id(self) -> str | None:
        return self.position.asset_id

    @property
    def invested_value(self) -> Decimal:
        return self.position.invested_value


class TypeAllocation(BaseModel):
    """
    Share of a portfolio held in one asset type.

    Attributes:
        asset_type: Asset-type label
        value: Sum of the bucket's values (invested or market, see caller)
        percentage: value / total * 100, 0 when total is 0
        asset_count: Number of positions in the bucket
    """

    asset_type: str
    value: Decimal
    percentage: Decimal
    asset_count: int

    model_config = ConfigDict(frozen=True)


class PortfolioPosition(BaseModel):
    """
    Consolidated snapshot of one portfolio.

    Closed positions are not listed, but their distributions count in
    total_distributions.

    Attributes:
        positions: Open positions, in input asset order
        total_invested: Sum of invested_value over open positions
        total_distributions: Distributions received across all assets, closed ones included
        allocation: Breakdown by asset type against total_invested, largest first
        total_market_value: Sum of market values of priced positions (None if none priced)
        total_profit: total_market_value - invested value of the priced positions
        total_profitability: total_profit as percentage of that invested value
    """

    positions: list[AssetPosition] = Field(default_factory=list)
    total_invested: Decimal = Decimal("0")
    total_distributions: Decimal = Decimal("0")
    allocation: list[TypeAllocation] = Field(default_factory=list)

    total_market_value: Decimal | None = None
    total_profit: Decimal | None = None
    total_profitability: Decimal | None = None

    model_config = ConfigDict(frozen=True)

    def get_position(self, asset_id: str) -> AssetPosition | None:
        """Find the retained position of an asset."""
        for entry in self.positions:
            if entry.asset_id == asset_id:
                return entry
        return None

    @property
    def asset_ids(self) -> list[str]:
        return [entry.asset_id for entry in self.positions if entry.asset_id is not None]
