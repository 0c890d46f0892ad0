"""Tests for performance models - solver constants and flow validation."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from folio.libraries.performance import ExternalFlow, SolverConfig


class TestSolverConfig:
    """Test Newton-Raphson constants."""

    def test_defaults(self):
        config = SolverConfig()

        assert config.initial_guess == 0.10
        assert config.max_iterations == 100
        assert config.tolerance == 1e-4
        assert config.min_derivative == 1e-5
        assert config.lower_bound == -0.99
        assert config.upper_bound == 10.0
        assert config.days_per_year == 365.0

    def test_immutable(self):
        config = SolverConfig()

        with pytest.raises(ValidationError):
            config.max_iterations = 5  # type: ignore[misc]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_iterations": 0},
            {"tolerance": 0},
            {"min_derivative": -1e-5},
            {"days_per_year": 0},
            {"lower_bound": -1.0},
            {"lower_bound": 5.0, "upper_bound": 5.0},
            {"initial_guess": 12.0},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValidationError):
            SolverConfig(**overrides)


class TestExternalFlow:
    """Test external flow validation."""

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="non-negative"):
            ExternalFlow(occurred_at="2024-01-01", deposits=Decimal("-1"))

    def test_is_empty(self):
        assert ExternalFlow(occurred_at="2024-01-01").is_empty
        assert not ExternalFlow(occurred_at="2024-01-01", withdrawals=Decimal("1")).is_empty
