"""Performance data models.

Pydantic models for the inputs of the return calculators and the
configuration of the money-weighted return solver.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from folio.events import ensure_utc


class CashFlow(BaseModel):
    """
    Dated signed cash flow.

    Outflows (purchases) are negative; inflows (sales, distributions,
    terminal valuation) are positive.
    """

    occurred_at: datetime
    amount: Decimal

    model_config = ConfigDict(frozen=True)

    @field_validator("occurred_at", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> datetime:
        return ensure_utc(v)


class ExternalFlow(BaseModel):
    """
    External money movement on one date, used by time-weighted return.

    Attributes:
        occurred_at: Flow date
        deposits: Money added (non-negative)
        withdrawals: Money removed (non-negative)
    """

    occurred_at: datetime
    deposits: Decimal = Decimal("0")
    withdrawals: Decimal = Decimal("0")

    model_config = ConfigDict(frozen=True)

    @field_validator("occurred_at", mode="before")
    @classmethod
    def _ensure_utc(cls, v: Any) -> datetime:
        return ensure_utc(v)

    @field_validator("deposits", "withdrawals")
    @classmethod
    def validate_non_negative(cls, v: Decimal) -> Decimal:
        """Validate amounts are non-negative (direction is given by the field)."""
        if v < 0:
            raise ValueError(f"Flow amounts must be non-negative, got {v}")
        return v

    @property
    def is_empty(self) -> bool:
        return self.deposits == 0 and self.withdrawals == 0


class CashFlowSummary(BaseModel):
    """
    Cash flows derived from an event list, with running totals.

    Attributes:
        flows: Signed cash flows in event order
        external_flows: Purchases/sales merged per calendar day (for TWR)
        deposits: Total bought notional
        withdrawals: Total sold notional
        cash_dividends: Total cash dividends
        interest_on_capital: Total interest on capital
    """

    flows: list[CashFlow] = Field(default_factory=list)
    external_flows: list[ExternalFlow] = Field(default_factory=list)
    deposits: Decimal = Decimal("0")
    withdrawals: Decimal = Decimal("0")
    cash_dividends: Decimal = Decimal("0")
    interest_on_capital: Decimal = Decimal("0")

    model_config = ConfigDict(frozen=True)

    @property
    def distributions(self) -> Decimal:
        """All distributions received (dividends + interest on capital)."""
        return self.cash_dividends + self.interest_on_capital


class SolverConfig(BaseModel):
    """
    Newton-Raphson constants for money-weighted return.

    The iteration cap and divergence bounds are a circuit breaker, not a
    convergence guarantee.

    Attributes:
        initial_guess: Starting annual rate (0.10 = 10%)
        max_iterations: Iteration cap
        tolerance: Stop when successive rates differ by less than this
        min_derivative: Give up when |dNPV/dr| falls below this
        lower_bound: Give up when the next rate falls below this
        upper_bound: Give up when the next rate rises above this
        days_per_year: Day-count divisor (simple, not actual/actual)

    Example:
        >>> config = SolverConfig(max_iterations=200, tolerance=1e-6)
    """

    initial_guess: float = 0.10
    max_iterations: int = 100
    tolerance: float = 1e-4
    min_derivative: float = 1e-5
    lower_bound: float = -0.99
    upper_bound: float = 10.0
    days_per_year: float = 365.0

    model_config = ConfigDict(frozen=True)

    @field_validator("max_iterations")
    @classmethod
    def validate_max_iterations(cls, v: int) -> int:
        """Validate at least one iteration is allowed."""
        if v < 1:
            raise ValueError(f"max_iterations must be at least 1, got {v}")
        return v

    @field_validator("tolerance", "min_derivative", "days_per_year")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Validate tolerances and day count are positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @model_validator(mode="after")
    def validate_bounds(self) -> "SolverConfig":
        """Validate the divergence bounds form a usable interval above -100%."""
        if self.lower_bound <= -1:
            raise ValueError(f"lower_bound must be greater than -1, got {self.lower_bound}")
        if self.lower_bound >= self.upper_bound:
            raise ValueError(f"lower_bound ({self.lower_bound}) must be below upper_bound ({self.upper_bound})")
        if not self.lower_bound < self.initial_guess < self.upper_bound:
            raise ValueError(f"initial_guess must lie inside the bounds, got {self.initial_guess}")
        return self
