"""Data models module."""

from equiscan.core.models.financials import (
    BalanceHistory,
    BalanceSnapshot,
    FinancialData,
    IncomeHistory,
    IncomeSnapshot,
)
from equiscan.core.models.market import ListType, ScraperStatus
from equiscan.core.models.stock import (
    ComputedMetrics,
    IncomeMetrics,
    ProviderState,
    SeedEntry,
    StockRecord,
)

__all__ = [
    "BalanceSnapshot",
    "BalanceHistory",
    "IncomeSnapshot",
    "IncomeHistory",
    "FinancialData",
    "ListType",
    "ScraperStatus",
    "IncomeMetrics",
    "ComputedMetrics",
    "StockRecord",
    "SeedEntry",
    "ProviderState",
]
