"""Position reducer - replays ownership events into a Position.

Sequential left fold over events sorted by occurred_at. Each step's output
is the next step's input, so the fold for one asset is never parallelized.

Update rules by kind:
- BUY: weighted-average cost (WAC) over held + bought units
- SELL: units removed, average cost unchanged; a closed position forgets its cost
- CASH_DIVIDEND / INTEREST_ON_CAPITAL: distributions += unit_price * |quantity|
- STOCK_BONUS: free units, unchanged cost basis spread over the new unit count
- SPLIT / REVERSE_SPLIT: quantity scaled by the factor, average cost inversely
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, assert_never

import structlog

from folio.events import Event, EventKind, ensure_utc, sort_events
from folio.services.position.models import Position

logger = structlog.get_logger()

ZERO = Decimal("0")


class PositionAccumulator:
    """
    Running state of the fold for a single asset.

    Created per reduction and discarded afterwards; never shared between
    calls, so identical input always yields an identical Position.

    Example:
        >>> acc = PositionAccumulator(asset_id="ITSA4")
        >>> for event in sort_events(events):
        ...     acc.apply(event)
        >>> position = acc.snapshot()
    """

    def __init__(self, asset_id: str | None = None) -> None:
        """Initialize empty running position."""
        self.asset_id = asset_id
        self.quantity = ZERO
        self.average_cost = ZERO
        self.distributions = ZERO
        self.first_buy_at: datetime | None = None
        self.last_event_at: datetime | None = None

    def apply(self, event: Event) -> None:
        """
        Apply one event to the running position.

        Args:
            event: Next event in ascending occurred_at order
        """
        if self.asset_id is None:
            self.asset_id = event.asset_id

        self.last_event_at = event.occurred_at
        kind = event.kind

        if kind is EventKind.BUY:
            self._apply_buy(event)
        elif kind is EventKind.SELL:
            self._apply_sell(event)
        elif kind is EventKind.CASH_DIVIDEND or kind is EventKind.INTEREST_ON_CAPITAL:
            self.distributions += event.unit_price * abs(event.quantity)
        elif kind is EventKind.STOCK_BONUS:
            self._apply_bonus(event)
        elif kind is EventKind.SPLIT:
            self.quantity *= event.quantity
            self.average_cost /= event.quantity
        elif kind is EventKind.REVERSE_SPLIT:
            self.quantity /= event.quantity
            self.average_cost *= event.quantity
        else:
            assert_never(kind)

    def _apply_buy(self, event: Event) -> None:
        if self.first_buy_at is None:
            self.first_buy_at = event.occurred_at

        new_quantity = self.quantity + event.quantity
        if new_quantity > 0:
            self.average_cost = (self.quantity * self.average_cost + event.quantity * event.unit_price) / new_quantity
        else:
            self.average_cost = event.unit_price

        self.quantity = new_quantity

    def _apply_sell(self, event: Event) -> None:
        self.quantity -= abs(event.quantity)

        # Round-trip to zero: cost basis is forgotten
        if self.quantity <= 0:
            self.quantity = ZERO
            self.average_cost = ZERO

    def _apply_bonus(self, event: Event) -> None:
        cost_basis = self.quantity * self.average_cost
        self.quantity += event.quantity

        if self.quantity > 0:
            self.average_cost = cost_basis / self.quantity
        else:
            self.average_cost = ZERO

    def snapshot(self) -> Position:
        """
        Freeze the running state into a Position.

        Quantity is clamped at zero and average cost is zero for a flat position.
        """
        quantity = self.quantity if self.quantity > 0 else ZERO
        average_cost = self.average_cost if quantity > 0 else ZERO

        return Position(
            asset_id=self.asset_id,
            quantity=quantity,
            average_cost=average_cost,
            distributions_received=self.distributions,
            first_buy_at=self.first_buy_at,
            last_event_at=self.last_event_at,
        )


def reduce_events(events: Iterable[Event], as_of: datetime | None = None) -> Position:
    """
    Replay events for one asset into a consolidated Position.

    Events are sorted ascending by occurred_at before folding (stable, ties
    keep input order). Total: an empty sequence yields a zero Position.

    Args:
        events: Events of a single asset, in any order
        as_of: Only replay events with occurred_at <= as_of

    Returns:
        Position snapshot

    Example:
        >>> reduce_events([buy(100, "10"), buy(50, "12")]).average_cost
        Decimal('10.66666666666666666666666667')
    """
    ordered = sort_events(events)
    if as_of is not None:
        cutoff = ensure_utc(as_of)
        ordered = [e for e in ordered if e.occurred_at <= cutoff]

    accumulator = PositionAccumulator()
    for event in ordered:
        accumulator.apply(event)

    position = accumulator.snapshot()

    logger.debug(
        "position.reduced",
        asset_id=position.asset_id,
        events=len(ordered),
        quantity=str(position.quantity),
        average_cost=str(position.average_cost),
    )

    return position
