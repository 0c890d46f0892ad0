"""Reporting service - profitability, distributions and dashboard data.

Builds report value objects from events grouped by asset. Every method is a
pure function of its arguments and the service config; the service keeps no
state between calls and is safe to share across threads.

Example:
    >>> service = ReportingService()
    >>> report = service.profitability_report(
    ...     events_by_asset,
    ...     start=date(2024, 1, 1),
    ...     end=date(2024, 12, 31),
    ...     prices={"PETR4": Decimal("38.10")},
    ... )
    >>> report.irr, report.twr, report.simple_return
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Mapping, Sequence

import structlog

from folio.events import Event, EventKind, ensure_utc
from folio.libraries.performance import (
    CashFlow,
    build_cash_flows,
    calculate_irr,
    calculate_simple_return,
    calculate_twr,
)
from folio.services.position import PortfolioPosition, allocate_by_type, reduce_events, value_position
from folio.services.reporting.models import (
    AssetDistribution,
    AssetRanking,
    DashboardMetrics,
    DistributionsReport,
    MonthlyValue,
    ProfitabilityReport,
)
from folio.system import SystemConfig, get_system_config

logger = structlog.get_logger()

HUNDRED = Decimal("100")
ZERO = Decimal("0")


def resolve_window(start: date | datetime, end: date | datetime) -> tuple[datetime, datetime]:
    """
    Turn report bounds into an inclusive UTC window.

    A plain date as end covers the whole day.

    Raises:
        ValueError: If start is after end
    """
    start_dt = ensure_utc(start)
    if isinstance(end, datetime):
        end_dt = ensure_utc(end)
    else:
        end_dt = datetime.combine(end, time.max, tzinfo=timezone.utc)

    if start_dt > end_dt:
        raise ValueError(f"Report start ({start_dt.isoformat()}) is after end ({end_dt.isoformat()})")

    return start_dt, end_dt


def _month_starts(start: datetime, end: datetime) -> list[datetime]:
    current = datetime(start.year, start.month, 1, tzinfo=timezone.utc)
    months = []
    while current <= end:
        months.append(current)
        current = _next_month(current)
    return months


def _next_month(month_start: datetime) -> datetime:
    if month_start.month == 12:
        return month_start.replace(year=month_start.year + 1, month=1)
    return month_start.replace(month=month_start.month + 1)


class ReportingService:
    """
    Builds report data from ownership events.

    Attributes:
        config: System configuration (solver constants for IRR)
    """

    def __init__(self, config: SystemConfig | None = None) -> None:
        """
        Initialize reporting service.

        Args:
            config: System configuration (defaults to get_system_config())
        """
        self.config = config or get_system_config()

    # ==================== Profitability ====================

    def profitability_report(
        self,
        events_by_asset: Mapping[str, Sequence[Event]],
        start: date | datetime,
        end: date | datetime,
        prices: Mapping[str, Decimal] | None = None,
    ) -> ProfitabilityReport:
        """
        Compute money-weighted, time-weighted and simple returns over a window.

        Processing:
        1. begin_value: replay events before start, sum invested value
        2. end_value: replay events up to end, market value where priced
        3. Cash flows from in-window events (buys out, sales and distributions in)
        4. IRR over opening value, flows and terminal value
        5. TWR over opening value, daily flows and terminal value

        Args:
            events_by_asset: asset_id → events of that asset
            start: Window start (inclusive)
            end: Window end (inclusive; a date covers the whole day)
            prices: asset_id → current price for terminal valuation

        Returns:
            ProfitabilityReport (returns are None when not computable)

        Raises:
            ValueError: If start is after end
        """
        start_dt, end_dt = resolve_window(start, end)
        prices = prices or {}

        begin_value = ZERO
        end_value = ZERO
        window_events: list[Event] = []

        for asset_id, events in events_by_asset.items():
            before = [e for e in events if e.occurred_at < start_dt]
            begin_value += reduce_events(before).invested_value

            closing = reduce_events(events, as_of=end_dt)
            price = prices.get(asset_id)
            if price is not None and closing.is_open:
                end_value += value_position(closing, price).market_value
            else:
                end_value += closing.invested_value

            window_events.extend(e for e in events if start_dt <= e.occurred_at <= end_dt)

        summary = build_cash_flows(window_events)

        irr_flows: list[CashFlow] = []
        if begin_value > 0:
            irr_flows.append(CashFlow(occurred_at=start_dt, amount=-begin_value))
        irr_flows.extend(summary.flows)
        if end_value > 0:
            irr_flows.append(CashFlow(occurred_at=end_dt, amount=end_value))

        irr = calculate_irr(irr_flows, self.config.solver)
        twr = calculate_twr(begin_value, end_value, summary.external_flows)
        simple_return = self._simple_return(
            begin_value, end_value, summary.deposits, summary.withdrawals, summary.distributions
        )

        report = ProfitabilityReport(
            start=start_dt,
            end=end_dt,
            begin_value=begin_value,
            end_value=end_value,
            deposits=summary.deposits,
            withdrawals=summary.withdrawals,
            distributions=summary.distributions,
            irr=irr,
            twr=twr,
            simple_return=simple_return,
            monthly=self.invested_value_history(events_by_asset, start_dt, end_dt),
        )

        logger.info(
            "reporting.profitability_built",
            assets=len(events_by_asset),
            events=len(window_events),
            irr=str(irr) if irr is not None else None,
            twr=str(twr) if twr is not None else None,
        )

        return report

    @staticmethod
    def _simple_return(
        begin_value: Decimal,
        end_value: Decimal,
        deposits: Decimal,
        withdrawals: Decimal,
        distributions: Decimal,
    ) -> Decimal | None:
        """Gain over capital employed: opening value, else money put in during the window."""
        net_income = distributions - deposits + withdrawals
        simple_return = calculate_simple_return(begin_value, end_value, net_income)
        if simple_return is not None:
            return simple_return
        if deposits > 0:
            return ((end_value - begin_value + net_income) / deposits) * HUNDRED
        return None

    # ==================== Distributions ====================

    def distributions_report(
        self,
        events_by_asset: Mapping[str, Sequence[Event]],
        start: date | datetime,
        end: date | datetime,
    ) -> DistributionsReport:
        """
        Summarize dividends and interest on capital received over a window.

        Args:
            events_by_asset: asset_id → events of that asset
            start: Window start (inclusive)
            end: Window end (inclusive; a date covers the whole day)

        Returns:
            DistributionsReport with per-asset totals, largest first

        Raises:
            ValueError: If start is after end
        """
        start_dt, end_dt = resolve_window(start, end)

        assets: list[AssetDistribution] = []
        total_dividends = ZERO
        total_interest = ZERO

        for asset_id, events in events_by_asset.items():
            payouts = [
                e for e in events if e.kind.is_distribution and start_dt <= e.occurred_at <= end_dt
            ]
            if not payouts:
                continue

            for payout in payouts:
                if payout.kind is EventKind.CASH_DIVIDEND:
                    total_dividends += payout.amount
                else:
                    total_interest += payout.amount

            assets.append(
                AssetDistribution(
                    asset_id=asset_id,
                    total_received=sum((p.amount for p in payouts), start=ZERO),
                    payment_count=len(payouts),
                    last_payment_at=max(p.occurred_at for p in payouts),
                )
            )

        assets.sort(key=lambda a: a.total_received, reverse=True)

        logger.info("reporting.distributions_built", assets=len(assets), total=str(total_dividends + total_interest))

        return DistributionsReport(
            start=start_dt,
            end=end_dt,
            assets=assets,
            total_cash_dividends=total_dividends,
            total_interest_on_capital=total_interest,
            total=total_dividends + total_interest,
        )

    # ==================== History ====================

    def invested_value_history(
        self,
        events_by_asset: Mapping[str, Sequence[Event]],
        start: date | datetime,
        end: date | datetime,
    ) -> list[MonthlyValue]:
        """
        Month-end invested value for every calendar month in a window.

        Each month replays all events up to the month's end (or the window
        end, whichever comes first), so corporate actions are honoured.

        Args:
            events_by_asset: asset_id → events of that asset
            start: Window start (inclusive)
            end: Window end (inclusive; a date covers the whole day)

        Returns:
            One MonthlyValue per month, ascending

        Raises:
            ValueError: If start is after end
        """
        start_dt, end_dt = resolve_window(start, end)

        history: list[MonthlyValue] = []
        for month_start in _month_starts(start_dt, end_dt):
            month_end = _next_month(month_start)

            invested = ZERO
            purchases = ZERO
            for events in events_by_asset.values():
                replayed = [e for e in events if e.occurred_at < month_end and e.occurred_at <= end_dt]
                invested += reduce_events(replayed).invested_value
                purchases += sum(
                    (
                        e.amount
                        for e in replayed
                        if e.kind is EventKind.BUY and e.occurred_at >= max(month_start, start_dt)
                    ),
                    start=ZERO,
                )

            history.append(
                MonthlyValue(
                    month=month_start.strftime("%Y-%m"),
                    invested_value=invested,
                    purchases=purchases,
                )
            )

        return history

    # ==================== Dashboard ====================

    def dashboard(self, portfolios: Mapping[str, PortfolioPosition]) -> DashboardMetrics:
        """
        Summarize consolidated portfolios for a dashboard.

        Args:
            portfolios: portfolio_id → PortfolioPosition (from aggregate())

        Returns:
            DashboardMetrics (market figures are None when nothing is priced)
        """
        total_invested = ZERO
        priced_invested = ZERO
        market_value: Decimal | None = None
        asset_ids: set[str] = set()
        rankings: list[AssetRanking] = []
        allocation_values: list[tuple[str, Decimal]] = []

        for portfolio_id, portfolio in portfolios.items():
            total_invested += portfolio.total_invested

            for entry in portfolio.positions:
                asset_id = entry.asset_id or ""
                asset_ids.add(asset_id)

                if entry.valuation is None:
                    allocation_values.append((entry.asset_type, entry.invested_value))
                    continue

                allocation_values.append((entry.asset_type, entry.valuation.market_value))
                market_value = (market_value or ZERO) + entry.valuation.market_value
                priced_invested += entry.invested_value

                if entry.valuation.profitability is not None:
                    rankings.append(
                        AssetRanking(
                            portfolio_id=portfolio_id,
                            asset_id=asset_id,
                            profitability=entry.valuation.profitability,
                        )
                    )

        total_profitability = self._profitability(market_value, priced_invested)

        metrics = DashboardMetrics(
            total_invested=total_invested,
            total_market_value=market_value,
            total_profitability=total_profitability,
            portfolio_count=len(portfolios),
            asset_count=len(asset_ids),
            best_asset=max(rankings, key=lambda r: r.profitability) if rankings else None,
            worst_asset=min(rankings, key=lambda r: r.profitability) if rankings else None,
            allocation=allocate_by_type(allocation_values),
        )

        logger.info(
            "reporting.dashboard_built",
            portfolios=metrics.portfolio_count,
            assets=metrics.asset_count,
        )

        return metrics

    @staticmethod
    def _profitability(market_value: Decimal | None, invested: Decimal) -> Decimal | None:
        if market_value is None or invested == 0:
            return None
        return ((market_value - invested) / invested) * HUNDRED
