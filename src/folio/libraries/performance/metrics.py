"""Return calculation functions.

Pure functions for money-weighted, time-weighted and simple returns.
All functions are stateless: same inputs always produce same outputs.

Results are percentages (15.5 means 15.5%). When inputs are insufficient
or the solver does not converge the result is None, never a sentinel
number; callers render it as "not available".

Usage:
    >>> from folio.libraries.performance import metrics
    >>> from decimal import Decimal
    >>>
    >>> metrics.calculate_irr([
    ...     CashFlow(occurred_at=date(2024, 1, 1), amount=Decimal("-1000")),
    ...     CashFlow(occurred_at=date(2024, 12, 31), amount=Decimal("1100")),
    ... ])
    Decimal('10.0...')
    >>>
    >>> metrics.calculate_twr(Decimal("1000"), Decimal("1100"), [])
    Decimal('10.0')
"""

from decimal import Decimal
from typing import Sequence

import structlog

from folio.libraries.performance.models import CashFlow, ExternalFlow, SolverConfig

logger = structlog.get_logger()

HUNDRED = Decimal("100")
SECONDS_PER_DAY = 86400.0


def calculate_simple_return(
    begin_value: Decimal,
    end_value: Decimal,
    distributions: Decimal = Decimal("0"),
) -> Decimal | None:
    """
    Calculate simple percentage return including distributions.

    Args:
        begin_value: Value at start of period
        end_value: Value at end of period
        distributions: Income received during the period

    Returns:
        (end - begin + distributions) / begin * 100, or None if begin <= 0

    Example:
        >>> calculate_simple_return(Decimal("1000"), Decimal("1050"), Decimal("20"))
        Decimal('7.00')
    """
    if begin_value <= 0:
        return None

    return ((end_value - begin_value + distributions) / begin_value) * HUNDRED


def calculate_irr(flows: Sequence[CashFlow], config: SolverConfig | None = None) -> Decimal | None:
    """
    Calculate annualized money-weighted return (IRR) by Newton-Raphson.

    Finds r such that NPV(r) = Σ amount_i / (1 + r)^years_i = 0, where
    years_i is the day distance from the earliest flow divided by
    config.days_per_year.

    The iteration cap and divergence bounds make the loop self-bounding but
    do not prove convergence: a None result means "no answer found", not
    "no rate exists".

    Args:
        flows: Signed cash flows, any order (sorted internally)
        config: Solver constants (defaults to SolverConfig())

    Returns:
        Rate as percentage, or None when there are fewer than two flows,
        flows are single-signed, the slope flattens, the rate diverges past
        the bounds, or the iteration cap is reached

    Example:
        >>> calculate_irr([
        ...     CashFlow(occurred_at=date(2023, 1, 1), amount=Decimal("-1000")),
        ...     CashFlow(occurred_at=date(2024, 1, 1), amount=Decimal("1100")),
        ... ])  # ≈ 10.0
    """
    if config is None:
        config = SolverConfig()

    if len(flows) < 2:
        return None

    ordered = sorted(flows, key=lambda cf: cf.occurred_at)

    has_inflow = any(cf.amount > 0 for cf in ordered)
    has_outflow = any(cf.amount < 0 for cf in ordered)
    if not has_inflow or not has_outflow:
        logger.debug("irr.single_signed_flows", flows=len(ordered))
        return None

    start = ordered[0].occurred_at
    terms = [
        ((cf.occurred_at - start).total_seconds() / SECONDS_PER_DAY / config.days_per_year, float(cf.amount))
        for cf in ordered
    ]

    rate = config.initial_guess

    for iteration in range(config.max_iterations):
        try:
            npv = _npv(terms, rate)
            derivative = _npv_derivative(terms, rate)
        except OverflowError:
            logger.debug("irr.overflow", iteration=iteration, rate=rate)
            return None

        if abs(derivative) < config.min_derivative:
            logger.debug("irr.flat_derivative", iteration=iteration, rate=rate)
            return None

        next_rate = rate - npv / derivative

        if abs(next_rate - rate) < config.tolerance:
            logger.debug("irr.converged", iterations=iteration + 1, rate=next_rate)
            return Decimal(str(next_rate * 100))

        if next_rate < config.lower_bound or next_rate > config.upper_bound:
            logger.debug("irr.diverged", iteration=iteration, rate=next_rate)
            return None

        rate = next_rate

    logger.debug("irr.not_converged", iterations=config.max_iterations, rate=rate)
    return None


def _npv(terms: Sequence[tuple[float, float]], rate: float) -> float:
    """NPV(r) = Σ amount / (1 + r)^years."""
    base = 1.0 + rate
    return sum(amount / base**years for years, amount in terms)


def _npv_derivative(terms: Sequence[tuple[float, float]], rate: float) -> float:
    """dNPV/dr = Σ -years * amount / (1 + r)^(years + 1)."""
    base = 1.0 + rate
    return sum(-years * amount / base ** (years + 1) for years, amount in terms)


def calculate_twr(
    begin_value: Decimal,
    end_value: Decimal,
    flows: Sequence[ExternalFlow],
) -> Decimal | None:
    """
    Calculate time-weighted return by chaining sub-period factors.

    Approximation: a true TWR needs an independent valuation right before
    every flow. Only aggregate deposits/withdrawals per flow date are
    available here, so each sub-period factor is inferred from a running
    balance instead of an observed value. Present the result as an estimate.

    Per flow (ascending by date, all-zero entries skipped):
        after = balance + deposits - withdrawals
        deposit day:    factor = after / (balance + deposits)
        withdrawal day: factor = (after + withdrawals) / balance
        balance = after
    The final stretch contributes end_value / balance.

    Args:
        begin_value: Value at start of period
        end_value: Value at end of period
        flows: External flows during the period

    Returns:
        (Π factors - 1) * 100, the simple percentage change when there are
        no non-zero flows, or None if begin_value <= 0 or the running
        balance reaches zero or below

    Example:
        >>> calculate_twr(Decimal("1000"), Decimal("1200"), [])
        Decimal('20.0')
    """
    if begin_value <= 0:
        return None

    ordered = sorted((f for f in flows if not f.is_empty), key=lambda f: f.occurred_at)
    if not ordered:
        return ((end_value - begin_value) / begin_value) * HUNDRED

    product = Decimal("1")
    balance = begin_value

    for flow in ordered:
        if balance <= 0:
            logger.debug("twr.non_positive_balance", occurred_at=flow.occurred_at.isoformat())
            return None

        after = balance + flow.deposits - flow.withdrawals

        if flow.deposits > 0:
            product *= after / (balance + flow.deposits)
        elif flow.withdrawals > 0:
            product *= (after + flow.withdrawals) / balance

        balance = after

    if balance <= 0:
        logger.debug("twr.non_positive_balance", occurred_at=None)
        return None

    product *= end_value / balance

    return (product - Decimal("1")) * HUNDRED


def calculate_twr_simple(
    begin_value: Decimal,
    end_value: Decimal,
    total_deposits: Decimal,
    total_withdrawals: Decimal,
) -> Decimal | None:
    """
    Approximate time-weighted return without a flow timeline.

    Args:
        begin_value: Value at start of period
        end_value: Value at end of period
        total_deposits: Money added during the period
        total_withdrawals: Money removed during the period

    Returns:
        (end + withdrawals - deposits - begin) / begin * 100, or None if begin <= 0

    Example:
        >>> calculate_twr_simple(Decimal("1000"), Decimal("1600"), Decimal("500"), Decimal("0"))
        Decimal('10.0')
    """
    if begin_value <= 0:
        return None

    return ((end_value + total_withdrawals - total_deposits - begin_value) / begin_value) * HUNDRED
