"""Seed and detail provider service wrappers."""

from equiscan.core.providers.base import (
    DetailProvider,
    ProviderService,
    SeedProvider,
    now_ms,
)
from equiscan.core.providers.session import ScrapingSession, get_session
from equiscan.core.providers.universe import CsvSeedProvider
from equiscan.core.providers.yfinance import YFinanceDetailProvider

__all__ = [
    "ProviderService",
    "SeedProvider",
    "DetailProvider",
    "now_ms",
    "ScrapingSession",
    "get_session",
    "CsvSeedProvider",
    "YFinanceDetailProvider",
]
