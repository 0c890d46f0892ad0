"""Portfolio aggregator - rolls per-asset positions up into a portfolio snapshot.

Map step: reduce each asset group independently.
Reduce step: discard closed positions, sum invested value, break down by type.
"""

from decimal import Decimal
from typing import Iterable, Mapping, Sequence

import structlog

from folio.events import Event
from folio.services.position.models import AssetPosition, PortfolioPosition, Position, TypeAllocation
from folio.services.position.reducer import reduce_events
from folio.services.position.valuation import value_position
from folio.system import get_system_config

logger = structlog.get_logger()

HUNDRED = Decimal("100")


def allocate_by_type(values: Iterable[tuple[str, Decimal]]) -> list[TypeAllocation]:
    """
    Break (asset_type, value) pairs down into percentage buckets.

    Percentages are computed against the sum of all values and are 0 for
    every bucket when that sum is 0. Buckets are ordered by value, largest
    first; equal values keep first-seen order.

    Example:
        >>> allocate_by_type([("stock", Decimal("75")), ("reit", Decimal("25"))])[0].percentage
        Decimal('75')
    """
    totals: dict[str, Decimal] = {}
    counts: dict[str, int] = {}
    for asset_type, value in values:
        totals[asset_type] = totals.get(asset_type, Decimal("0")) + value
        counts[asset_type] = counts.get(asset_type, 0) + 1

    grand_total = sum(totals.values(), start=Decimal("0"))

    allocation = [
        TypeAllocation(
            asset_type=asset_type,
            value=value,
            percentage=(value / grand_total) * HUNDRED if grand_total != 0 else Decimal("0"),
            asset_count=counts[asset_type],
        )
        for asset_type, value in totals.items()
    ]
    allocation.sort(key=lambda a: a.value, reverse=True)
    return allocation


def aggregate(
    events_by_asset: Mapping[str, Sequence[Event]],
    asset_types: Mapping[str, str] | None = None,
    prices: Mapping[str, Decimal] | None = None,
    unknown_asset_type: str | None = None,
) -> PortfolioPosition:
    """
    Consolidate a portfolio from its events grouped by asset.

    Args:
        events_by_asset: asset_id → events of that asset (any order)
        asset_types: asset_id → asset-type label for the allocation breakdown
        prices: asset_id → current price; priced positions get a valuation
        unknown_asset_type: Label for assets missing from asset_types
            (defaults to SystemConfig.unknown_asset_type)

    Returns:
        PortfolioPosition with open positions only. Distributions of closed
        positions still count in total_distributions.
    """
    asset_types = asset_types or {}
    prices = prices or {}
    if unknown_asset_type is None:
        unknown_asset_type = get_system_config().unknown_asset_type

    reduced: list[Position] = []
    for asset_id, events in events_by_asset.items():
        if not events:
            continue
        position = reduce_events(events)
        reduced.append(position.model_copy(update={"asset_id": asset_id}))

    total_distributions = sum((p.distributions_received for p in reduced), start=Decimal("0"))

    retained: list[AssetPosition] = []
    untyped: list[str] = []
    for position in reduced:
        if position.quantity <= 0:
            continue

        asset_id = position.asset_id or ""
        asset_type = asset_types.get(asset_id)
        if asset_type is None:
            untyped.append(asset_id)
            asset_type = unknown_asset_type

        price = prices.get(asset_id)
        valuation = value_position(position, price) if price is not None else None

        retained.append(AssetPosition(position=position, asset_type=asset_type, valuation=valuation))

    if untyped:
        logger.warning(
            "aggregator.asset_type_missing",
            asset_ids=untyped,
            fallback=unknown_asset_type,
        )

    total_invested = sum((entry.invested_value for entry in retained), start=Decimal("0"))
    allocation = allocate_by_type((entry.asset_type, entry.invested_value) for entry in retained)

    total_market_value, total_profit, total_profitability = _roll_up_valuations(retained)

    logger.debug(
        "aggregator.portfolio_aggregated",
        assets=len(reduced),
        open_positions=len(retained),
        total_invested=str(total_invested),
    )

    return PortfolioPosition(
        positions=retained,
        total_invested=total_invested,
        total_distributions=total_distributions,
        allocation=allocation,
        total_market_value=total_market_value,
        total_profit=total_profit,
        total_profitability=total_profitability,
    )


def _roll_up_valuations(
    entries: Sequence[AssetPosition],
) -> tuple[Decimal | None, Decimal | None, Decimal | None]:
    priced = [entry for entry in entries if entry.valuation is not None]
    if not priced:
        return None, None, None

    market_value = sum((e.valuation.market_value for e in priced if e.valuation), start=Decimal("0"))
    invested = sum((e.invested_value for e in priced), start=Decimal("0"))
    profit = market_value - invested
    profitability = (profit / invested) * HUNDRED if invested != 0 else None

    return market_value, profit, profitability
