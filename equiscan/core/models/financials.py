"""Financial statement models."""

from datetime import date
from typing import TypeVar

from pydantic import BaseModel, Field, model_validator


class BalanceSnapshot(BaseModel):
    """资产负债表快照."""

    period: date | None = None
    total_assets: float | None = None
    total_liabilities: float | None = None


class IncomeSnapshot(BaseModel):
    """利润表快照."""

    period: date | None = None
    total_revenue: float | None = None
    net_income: float | None = None


_Snapshot = TypeVar("_Snapshot", BalanceSnapshot, IncomeSnapshot)


def _chronological(snapshots: list[_Snapshot]) -> list[_Snapshot]:
    # undated snapshots first, relative order otherwise preserved
    return sorted(snapshots, key=lambda s: (s.period is not None, s.period or date.min))


class BalanceHistory(BaseModel):
    """年度与季度资产负债表序列."""

    annual: list[BalanceSnapshot] = Field(default_factory=list)
    quarterly: list[BalanceSnapshot] = Field(default_factory=list)


class IncomeHistory(BaseModel):
    """年度与季度利润表序列."""

    annual: list[IncomeSnapshot] = Field(default_factory=list)
    quarterly: list[IncomeSnapshot] = Field(default_factory=list)


class FinancialData(BaseModel):
    """完整财务数据.

    ``balance`` 与 ``income`` 必须同时提供, 所有快照按日期升序排列.
    """

    balance: BalanceHistory
    income: IncomeHistory
    market_cap: float | None = None

    @model_validator(mode="after")
    def _sort_snapshots(self) -> "FinancialData":
        self.balance.annual = _chronological(self.balance.annual)
        self.balance.quarterly = _chronological(self.balance.quarterly)
        self.income.annual = _chronological(self.income.annual)
        self.income.quarterly = _chronological(self.income.quarterly)
        return self

    def latest_annual_balance(self) -> BalanceSnapshot | None:
        """返回最近一期年度资产负债表."""
        if not self.balance.annual:
            return None
        return self.balance.annual[-1]
