"""Reporting service - report data built from ownership events.

Produces value objects only; rendering to PDF, spreadsheets or HTTP
responses is left to callers.
"""

from folio.services.reporting.models import (
    AssetDistribution,
    AssetRanking,
    DashboardMetrics,
    DistributionsReport,
    MonthlyValue,
    ProfitabilityReport,
)
from folio.services.reporting.service import ReportingService, resolve_window

__all__ = [
    "ReportingService",
    "resolve_window",
    "ProfitabilityReport",
    "DistributionsReport",
    "AssetDistribution",
    "MonthlyValue",
    "DashboardMetrics",
    "AssetRanking",
]
