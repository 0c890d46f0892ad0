"""Tests for return calculations."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from folio.libraries.performance import (
    CashFlow,
    ExternalFlow,
    SolverConfig,
    calculate_irr,
    calculate_simple_return,
    calculate_twr,
    calculate_twr_simple,
)


def _flow(when: str, amount: str) -> CashFlow:
    return CashFlow(occurred_at=when, amount=Decimal(amount))


def _external(when: str, deposits: str = "0", withdrawals: str = "0") -> ExternalFlow:
    return ExternalFlow(occurred_at=when, deposits=Decimal(deposits), withdrawals=Decimal(withdrawals))


class TestSimpleReturn:
    """Test simple return with distributions."""

    def test_with_distributions(self):
        result = calculate_simple_return(Decimal("1000"), Decimal("1050"), Decimal("20"))

        assert result == Decimal("7")

    def test_negative(self):
        assert calculate_simple_return(Decimal("1000"), Decimal("800")) == Decimal("-20")

    def test_zero_begin_is_unavailable(self):
        assert calculate_simple_return(Decimal("0"), Decimal("1000")) is None


class TestIrr:
    """Test money-weighted return."""

    def test_one_year_ten_percent(self):
        flows = [_flow("2023-01-01", "-1000"), _flow("2024-01-01", "1100")]

        result = calculate_irr(flows)

        assert result is not None
        assert abs(result - Decimal("10")) < Decimal("0.1")

    def test_unsorted_flows(self):
        flows = [_flow("2024-01-01", "1100"), _flow("2023-01-01", "-1000")]

        result = calculate_irr(flows)

        assert result is not None
        assert abs(result - Decimal("10")) < Decimal("0.1")

    def test_loss(self):
        flows = [_flow("2023-01-01", "-1000"), _flow("2024-01-01", "900")]

        result = calculate_irr(flows)

        assert result is not None
        assert abs(result - Decimal("-10")) < Decimal("0.1")

    def test_several_flows(self):
        """Test monthly contributions with a terminal value above the total."""
        flows = [_flow(f"2023-{month:02d}-01", "-100") for month in range(1, 13)]
        flows.append(_flow("2024-01-01", "1300"))

        result = calculate_irr(flows)

        assert result is not None
        assert Decimal("0") < result < Decimal("30")

    @pytest.mark.parametrize(
        "amounts",
        [
            ["1000", "1100"],
            ["-1000", "-1100"],
            ["-1000", "0"],
        ],
    )
    def test_single_signed_flows(self, amounts):
        flows = [_flow("2023-01-01", amounts[0]), _flow("2024-01-01", amounts[1])]

        assert calculate_irr(flows) is None

    def test_fewer_than_two_flows(self):
        assert calculate_irr([]) is None
        assert calculate_irr([_flow("2023-01-01", "-1000")]) is None

    def test_divergence_returns_none(self):
        """Test a 100x gain in one day runs past the upper bound."""
        flows = [_flow("2023-01-01", "-1000"), _flow("2023-01-02", "100000")]

        assert calculate_irr(flows) is None

    def test_divergence_below_lower_bound_returns_none(self):
        """Test a near-total loss steps past -99% on the first iteration."""
        flows = [_flow("2023-01-01", "-1000"), _flow("2024-01-01", "1")]

        assert calculate_irr(flows) is None

    def test_converged_rate_outside_bounds_is_returned(self):
        """Test convergence is checked before the divergence bounds."""
        flows = [_flow("2023-01-01", "-1000"), _flow("2024-01-01", "1100")]
        config = SolverConfig(initial_guess=0.05, upper_bound=0.08, tolerance=0.1)

        result = calculate_irr(flows, config)

        # One Newton step from 5% lands at ~9.77%, above upper_bound but within tolerance
        assert result is not None
        assert abs(result - Decimal("9.77")) < Decimal("0.01")

    def test_flat_derivative_returns_none(self):
        flows = [_flow("2023-01-01", "-1000"), _flow("2024-01-01", "1100")]

        assert calculate_irr(flows, SolverConfig(min_derivative=1e9)) is None

    def test_iteration_cap_returns_none(self):
        flows = [_flow("2023-01-01", "-1000"), _flow("2024-01-01", "1100")]
        config = SolverConfig(initial_guess=0.5, max_iterations=1)

        assert calculate_irr(flows, config) is None

    def test_days_per_year_is_configurable(self):
        flows = [_flow("2023-01-01", "-1000"), _flow("2024-01-01", "1100")]

        result = calculate_irr(flows, SolverConfig(days_per_year=730.0))

        # Same flows over "half a year": 1.1^2 - 1 = 21%
        assert result is not None
        assert abs(result - Decimal("21")) < Decimal("0.1")

    def test_same_input_same_output(self):
        flows = [_flow("2023-01-01", "-1000"), _flow("2023-07-01", "-500"), _flow("2024-01-01", "1700")]

        assert calculate_irr(flows) == calculate_irr(flows)


class TestTwr:
    """Test time-weighted return."""

    def test_no_flows_equals_simple_change(self):
        begin, end = Decimal("1000"), Decimal("1234.56")

        assert calculate_twr(begin, end, []) == ((end - begin) / begin) * Decimal("100")

    def test_zero_flows_are_ignored(self):
        begin, end = Decimal("1000"), Decimal("1100")

        result = calculate_twr(begin, end, [_external("2024-03-01")])

        assert result == ((end - begin) / begin) * Decimal("100")

    def test_deposit(self):
        flows = [_external("2024-03-01", deposits="500")]

        result = calculate_twr(Decimal("1000"), Decimal("1650"), flows)

        assert result == Decimal("10")

    def test_withdrawal(self):
        flows = [_external("2024-03-01", withdrawals="200")]

        result = calculate_twr(Decimal("1000"), Decimal("880"), flows)

        assert result == Decimal("10")

    def test_chain_sorts_flows(self):
        flows = [
            _external("2024-06-01", withdrawals="300"),
            _external("2024-03-01", deposits="500"),
        ]

        result = calculate_twr(Decimal("1000"), Decimal("1320"), flows)

        # balance 1000 -> 1500 -> 1200, final stretch 1320 / 1200
        assert result == Decimal("10")

    def test_zero_begin_is_unavailable(self):
        assert calculate_twr(Decimal("0"), Decimal("1000"), []) is None

    def test_balance_exhausted_is_unavailable(self):
        flows = [_external("2024-03-01", withdrawals="1000")]

        assert calculate_twr(Decimal("1000"), Decimal("0"), flows) is None

    def test_balance_exhausted_midway_is_unavailable(self):
        flows = [
            _external("2024-03-01", withdrawals="1500"),
            _external("2024-06-01", deposits="2000"),
        ]

        assert calculate_twr(Decimal("1000"), Decimal("2000"), flows) is None


class TestTwrSimple:
    """Test time-weighted return from period totals."""

    def test_with_deposits(self):
        result = calculate_twr_simple(Decimal("1000"), Decimal("1600"), Decimal("500"), Decimal("0"))

        assert result == Decimal("10")

    def test_with_withdrawals(self):
        result = calculate_twr_simple(Decimal("1000"), Decimal("900"), Decimal("0"), Decimal("200"))

        assert result == Decimal("10")

    def test_zero_begin_is_unavailable(self):
        assert calculate_twr_simple(Decimal("0"), Decimal("1000"), Decimal("1000"), Decimal("0")) is None


def test_cash_flow_dates_are_utc():
    flow = _flow("2024-01-01", "-1")

    assert flow.occurred_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
