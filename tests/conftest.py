"""Pytest configuration for equiscan test suite."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date

import pytest

from equiscan.core.data.storage import InMemoryBackend
from equiscan.core.models import (
    BalanceHistory,
    BalanceSnapshot,
    FinancialData,
    IncomeHistory,
    IncomeSnapshot,
)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--equiscan-run-integration",
        action="store_true",
        default=False,
        help="Run equiscan integration tests that require external services.",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the integration marker for equiscan tests."""

    config.addinivalue_line(
        "markers",
        "integration: marks equiscan tests requiring network or external services",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--equiscan-run-integration"):
        return

    skip_integration = pytest.mark.skip(
        reason="integration tests require --equiscan-run-integration",
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def build_financials(
    annual_income: Sequence[float | None] = (100.0, 120.0, 150.0, 200.0),
    quarterly_income: Sequence[float | None] = (30.0, 35.0, 40.0, 45.0),
    annual_balance: int = 4,
    quarterly_balance: int = 4,
    latest_assets: float | None = 500.0,
    latest_liabilities: float | None = 250.0,
    market_cap: float | None = 1_000_000.0,
) -> FinancialData:
    """Build financial data with consecutive yearly/quarterly periods."""

    annual_years = range(2024 - annual_balance + 1, 2025)
    balance_annual = [
        BalanceSnapshot(period=date(year, 12, 31), total_assets=400.0, total_liabilities=200.0)
        for year in annual_years
    ]
    if balance_annual:
        balance_annual[-1] = BalanceSnapshot(
            period=date(2024, 12, 31),
            total_assets=latest_assets,
            total_liabilities=latest_liabilities,
        )
    balance_quarterly = [
        BalanceSnapshot(period=date(2020 + i, 3, 31), total_assets=100.0, total_liabilities=50.0)
        for i in range(quarterly_balance)
    ]

    income_annual = [
        IncomeSnapshot(period=date(2024 - len(annual_income) + 1 + i, 12, 31), net_income=value)
        for i, value in enumerate(annual_income)
    ]
    income_quarterly = [
        IncomeSnapshot(period=date(2020 + i, 6, 30), net_income=value)
        for i, value in enumerate(quarterly_income)
    ]
    return FinancialData(
        balance=BalanceHistory(annual=balance_annual, quarterly=balance_quarterly),
        income=IncomeHistory(annual=income_annual, quarterly=income_quarterly),
        market_cap=market_cap,
    )


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def make_financials() -> Callable[..., FinancialData]:
    return build_financials
