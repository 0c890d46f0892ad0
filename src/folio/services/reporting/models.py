"""Report data models.

Frozen value objects handed to report renderers and dashboards. Rendering
itself (PDF, spreadsheet, JSON) happens outside the engine.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from folio.services.position.models import TypeAllocation


class MonthlyValue(BaseModel):
    """
    Invested value at the end of one calendar month.

    Attributes:
        month: "YYYY-MM"
        invested_value: Cost basis of open positions after the month's events
        purchases: Buy notional inside the month
    """

    month: str
    invested_value: Decimal
    purchases: Decimal

    model_config = ConfigDict(frozen=True)


class ProfitabilityReport(BaseModel):
    """
    Returns of one portfolio over a closed window.

    Attributes:
        start: Window start (UTC, inclusive)
        end: Window end (UTC, inclusive)
        begin_value: Invested value replayed over events before start
        end_value: Value at end (market value for priced assets, cost otherwise)
        deposits: Buy notional inside the window
        withdrawals: Sell proceeds inside the window
        distributions: Dividends and interest on capital inside the window
        irr: Annualized money-weighted return (None if unavailable)
        twr: Time-weighted return estimate (None if unavailable)
        simple_return: Gain over capital employed (None if unavailable)
        monthly: Month-end invested value inside the window
    """

    start: datetime
    end: datetime
    begin_value: Decimal
    end_value: Decimal
    deposits: Decimal
    withdrawals: Decimal
    distributions: Decimal
    irr: Decimal | None = None
    twr: Decimal | None = Field(
        default=None,
        description="Chained approximation from flow totals, not valuations observed at each flow date",
    )
    simple_return: Decimal | None = None
    monthly: list[MonthlyValue] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class AssetDistribution(BaseModel):
    """
    Distributions received from one asset.

    Attributes:
        asset_id: Instrument identifier
        total_received: Sum of payouts
        payment_count: Number of distribution events
        last_payment_at: Timestamp of the latest payout
    """

    asset_id: str
    total_received: Decimal
    payment_count: int
    last_payment_at: datetime

    model_config = ConfigDict(frozen=True)


class DistributionsReport(BaseModel):
    """
    Distributions received by one portfolio over a closed window.

    Attributes:
        start: Window start (UTC, inclusive)
        end: Window end (UTC, inclusive)
        assets: Per-asset totals, largest first
        total_cash_dividends: Sum of cash dividends
        total_interest_on_capital: Sum of interest on capital
        total: Sum of both
    """

    start: datetime
    end: datetime
    assets: list[AssetDistribution] = Field(default_factory=list)
    total_cash_dividends: Decimal = Decimal("0")
    total_interest_on_capital: Decimal = Decimal("0")
    total: Decimal = Decimal("0")

    model_config = ConfigDict(frozen=True)


class AssetRanking(BaseModel):
    """Profitability of one position, used for best/worst asset."""

    portfolio_id: str
    asset_id: str
    profitability: Decimal

    model_config = ConfigDict(frozen=True)


class DashboardMetrics(BaseModel):
    """
    Summary across all portfolios of a user.

    Attributes:
        total_invested: Cost basis of all open positions
        total_market_value: Market value of priced positions (None if none priced)
        total_profitability: Profit of priced positions over their cost, in percent
        portfolio_count: Number of portfolios
        asset_count: Distinct assets held across portfolios
        best_asset: Highest-profitability priced position
        worst_asset: Lowest-profitability priced position
        allocation: Breakdown by asset type (market value when priced, cost otherwise)
    """

    total_invested: Decimal = Decimal("0")
    total_market_value: Decimal | None = None
    total_profitability: Decimal | None = None
    portfolio_count: int = 0
    asset_count: int = 0
    best_asset: AssetRanking | None = None
    worst_asset: AssetRanking | None = None
    allocation: list[TypeAllocation] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)
