"""Yahoo Finance财务数据提供商实现."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date
from typing import Any

import pandas as pd
import yfinance as yf
from loguru import logger

from equiscan.core.data.storage.base import KeyValueBackend
from equiscan.core.exceptions import ProviderFetchError
from equiscan.core.models import (
    BalanceHistory,
    BalanceSnapshot,
    FinancialData,
    IncomeHistory,
    IncomeSnapshot,
)

from .base import DetailProvider
from .session import ScrapingSession

TOTAL_ASSETS_ROWS = ("Total Assets",)
TOTAL_LIABILITIES_ROWS = ("Total Liabilities Net Minority Interest", "Total Liabilities")
TOTAL_REVENUE_ROWS = ("Total Revenue", "Operating Revenue")
NET_INCOME_ROWS = ("Net Income", "Net Income Common Stockholders")


def _frame_value(frame: pd.DataFrame, column: Any, labels: Sequence[str]) -> float | None:
    for label in labels:
        if label in frame.index:
            value = frame.at[label, column]
            if pd.isna(value):
                return None
            return float(value)
    return None


def _column_date(column: Any) -> date | None:
    try:
        return pd.Timestamp(column).date()
    except (TypeError, ValueError):
        return None


def balance_snapshots(frame: pd.DataFrame | None) -> list[BalanceSnapshot]:
    """将yfinance资产负债表转换为快照列表."""
    if frame is None or frame.empty:
        return []
    return [
        BalanceSnapshot(
            period=_column_date(column),
            total_assets=_frame_value(frame, column, TOTAL_ASSETS_ROWS),
            total_liabilities=_frame_value(frame, column, TOTAL_LIABILITIES_ROWS),
        )
        for column in frame.columns
    ]


def income_snapshots(frame: pd.DataFrame | None) -> list[IncomeSnapshot]:
    """将yfinance利润表转换为快照列表."""
    if frame is None or frame.empty:
        return []
    return [
        IncomeSnapshot(
            period=_column_date(column),
            total_revenue=_frame_value(frame, column, TOTAL_REVENUE_ROWS),
            net_income=_frame_value(frame, column, NET_INCOME_ROWS),
        )
        for column in frame.columns
    ]


class YFinanceDetailProvider(DetailProvider):
    """Yahoo Finance财务报表提供商."""

    def __init__(
        self,
        backend: KeyValueBackend,
        session: ScrapingSession | None = None,
        ticker_factory: Callable[..., Any] | None = None,
        name: str = "yfinance",
    ):
        """初始化YFinance提供商.

        Args:
            backend: 保存运行时间戳的键值后端
            session: 共享抓取会话
            ticker_factory: ``yf.Ticker`` 兼容的构造函数
        """
        super().__init__(name, backend)
        self.session = session
        self._ticker_factory = ticker_factory or yf.Ticker

    async def get_financial_data(self, symbol: str) -> FinancialData | None:
        """获取财务数据, 失败或无数据时返回 ``None``."""
        try:
            return self._fetch(symbol)
        except ProviderFetchError as e:
            logger.bind(provider=self.name, symbol=symbol, error_code=e.error_code).warning("{}", e.message)
        except Exception as e:
            logger.bind(provider=self.name, symbol=symbol).warning("Error getting financial data from Yahoo Finance: {}", e)
        return None

    def _fetch(self, symbol: str) -> FinancialData | None:
        if self.session is not None:
            ticker = self._ticker_factory(symbol, session=self.session.acquire())
        else:
            ticker = self._ticker_factory(symbol)

        balance = BalanceHistory(
            annual=balance_snapshots(ticker.balance_sheet),
            quarterly=balance_snapshots(ticker.quarterly_balance_sheet),
        )
        income = IncomeHistory(
            annual=income_snapshots(ticker.income_stmt),
            quarterly=income_snapshots(ticker.quarterly_income_stmt),
        )
        if not (balance.annual or balance.quarterly) or not (income.annual or income.quarterly):
            raise ProviderFetchError(f"No financial statements for {symbol}", self.name, symbol=symbol)

        return FinancialData(balance=balance, income=income, market_cap=self._market_cap(ticker))

    def _market_cap(self, ticker: Any) -> float | None:
        try:
            value = ticker.fast_info["marketCap"]
        except Exception as e:
            logger.bind(provider=self.name).debug("Market cap unavailable: {}", e)
            return None
        if value is None or pd.isna(value):
            return None
        return float(value)
