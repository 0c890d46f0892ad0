"""Stateful calculators that derive return inputs from events.

Calculators maintain state and update incrementally as events arrive.
Used by ReportingService to turn an event list into the cash-flow series
consumed by the return functions in metrics.py.

Usage:
    >>> from folio.libraries.performance.calculators import CashFlowCalculator
    >>>
    >>> calc = CashFlowCalculator()
    >>> for event in events:
    ...     calc.update(event)
    >>> calc.deposits
    Decimal('1500.00')
    >>> summary = calc.summary()
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Iterable, assert_never

from folio.events import Event, EventKind, sort_events
from folio.libraries.performance.models import CashFlow, CashFlowSummary, ExternalFlow


class CashFlowCalculator:
    """
    Converts events into signed cash flows with running totals.

    Sign convention:
    - BUY: -(|quantity| * unit_price), counted as deposit
    - SELL: +|quantity| * unit_price, counted as withdrawal
    - CASH_DIVIDEND / INTEREST_ON_CAPITAL: +unit_price * |quantity|
    - Corporate actions: no cash flow

    Purchases and sales are also merged per calendar day (UTC) into
    ExternalFlow entries for time-weighted return.
    """

    def __init__(self) -> None:
        """Initialize cash flow calculator."""
        self._flows: list[CashFlow] = []
        self._daily: dict[date, tuple[Decimal, Decimal]] = {}
        self._deposits = Decimal("0")
        self._withdrawals = Decimal("0")
        self._cash_dividends = Decimal("0")
        self._interest_on_capital = Decimal("0")

    def update(self, event: Event) -> CashFlow | None:
        """
        Record cash impact of one event.

        Args:
            event: Next event

        Returns:
            CashFlow produced by the event, or None for corporate actions
        """
        kind = event.kind
        amount = event.amount

        if kind is EventKind.BUY:
            self._deposits += amount
            self._add_external(event.occurred_at, deposit=amount)
            flow = CashFlow(occurred_at=event.occurred_at, amount=-amount)
        elif kind is EventKind.SELL:
            self._withdrawals += amount
            self._add_external(event.occurred_at, withdrawal=amount)
            flow = CashFlow(occurred_at=event.occurred_at, amount=amount)
        elif kind is EventKind.CASH_DIVIDEND:
            self._cash_dividends += amount
            flow = CashFlow(occurred_at=event.occurred_at, amount=amount)
        elif kind is EventKind.INTEREST_ON_CAPITAL:
            self._interest_on_capital += amount
            flow = CashFlow(occurred_at=event.occurred_at, amount=amount)
        elif kind is EventKind.STOCK_BONUS or kind is EventKind.SPLIT or kind is EventKind.REVERSE_SPLIT:
            return None
        else:
            assert_never(kind)

        self._flows.append(flow)
        return flow

    def _add_external(
        self,
        occurred_at: datetime,
        deposit: Decimal = Decimal("0"),
        withdrawal: Decimal = Decimal("0"),
    ) -> None:
        day = occurred_at.date()
        deposits, withdrawals = self._daily.get(day, (Decimal("0"), Decimal("0")))
        self._daily[day] = (deposits + deposit, withdrawals + withdrawal)

    @property
    def flows(self) -> list[CashFlow]:
        """All cash flows recorded so far."""
        return self._flows.copy()

    @property
    def external_flows(self) -> list[ExternalFlow]:
        """Purchases and sales merged per day, ascending."""
        return [
            ExternalFlow(
                occurred_at=datetime.combine(day, time.min, tzinfo=timezone.utc),
                deposits=deposits,
                withdrawals=withdrawals,
            )
            for day, (deposits, withdrawals) in sorted(self._daily.items())
        ]

    @property
    def deposits(self) -> Decimal:
        return self._deposits

    @property
    def withdrawals(self) -> Decimal:
        return self._withdrawals

    @property
    def distributions(self) -> Decimal:
        return self._cash_dividends + self._interest_on_capital

    def summary(self) -> CashFlowSummary:
        """Freeze current state into a CashFlowSummary."""
        return CashFlowSummary(
            flows=self.flows,
            external_flows=self.external_flows,
            deposits=self._deposits,
            withdrawals=self._withdrawals,
            cash_dividends=self._cash_dividends,
            interest_on_capital=self._interest_on_capital,
        )

    def __len__(self) -> int:
        """Number of cash flows recorded."""
        return len(self._flows)


def build_cash_flows(events: Iterable[Event]) -> CashFlowSummary:
    """
    Derive the cash-flow series of an event list.

    Events are processed in ascending occurred_at order.

    Example:
        >>> summary = build_cash_flows(events)
        >>> calculate_irr(summary.flows + [terminal_flow])
    """
    calculator = CashFlowCalculator()
    for event in sort_events(events):
        calculator.update(event)
    return calculator.summary()
