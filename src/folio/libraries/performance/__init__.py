"""Performance library for portfolio return analysis.

1. **Models** (`models.py`): Pydantic data structures
   - CashFlow: Dated signed cash flow
   - ExternalFlow: Deposits/withdrawals on one date
   - CashFlowSummary: Flows derived from events, with totals
   - SolverConfig: Newton-Raphson constants

2. **Metrics** (`metrics.py`): Pure calculation functions
   - calculate_irr: Money-weighted return (Newton-Raphson)
   - calculate_twr: Time-weighted return (chained approximation)
   - calculate_twr_simple: Time-weighted return from period totals
   - calculate_simple_return: Percentage change including distributions

3. **Calculators** (`calculators.py`): Stateful incremental calculators
   - CashFlowCalculator: Events → cash flows and totals

Design Principles:
    - Decimal precision for money; float only inside the root finder
    - None for unavailable results, never a sentinel number
"""

from folio.libraries.performance.calculators import CashFlowCalculator, build_cash_flows
from folio.libraries.performance.metrics import (
    calculate_irr,
    calculate_simple_return,
    calculate_twr,
    calculate_twr_simple,
)
from folio.libraries.performance.models import CashFlow, CashFlowSummary, ExternalFlow, SolverConfig

__all__ = [
    # Models
    "CashFlow",
    "ExternalFlow",
    "CashFlowSummary",
    "SolverConfig",
    # Metrics (pure functions)
    "calculate_irr",
    "calculate_twr",
    "calculate_twr_simple",
    "calculate_simple_return",
    # Calculators (stateful)
    "CashFlowCalculator",
    "build_cash_flows",
]
