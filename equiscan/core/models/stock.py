"""Stock record and provider state models."""

from pydantic import BaseModel, Field, field_serializer

from .financials import FinancialData
from .market import ListType, ScraperStatus


class IncomeMetrics(BaseModel):
    """利润增长百分比指标."""

    avg_percentage: float | None = None
    annual_percentages: list[float | None] = Field(default_factory=list)


class ComputedMetrics(BaseModel):
    """派生指标, 每次刷新重新计算, 不从存储读取."""

    income: IncomeMetrics = Field(default_factory=IncomeMetrics)


class StockRecord(BaseModel):
    """股票记录, 以代码为主键."""

    name: str = Field(..., min_length=1)
    country: str | None = None
    sector: str | None = None
    financials: FinancialData | None = None
    computed: ComputedMetrics = Field(default_factory=ComputedMetrics, exclude=True)
    tags: set[ListType] = Field(default_factory=set)

    @field_serializer("tags")
    def serialize_tags(self, value: set[ListType]) -> list[str]:
        """Serialize tags in a stable order."""
        return sorted(tag.value for tag in value)

    def has_four_annual_balance(self) -> bool:
        """年度资产负债表至少四期."""
        return self.financials is not None and len(self.financials.balance.annual) >= 4

    def has_four_quarterly_balance(self) -> bool:
        """季度资产负债表至少四期."""
        return self.financials is not None and len(self.financials.balance.quarterly) >= 4


class SeedEntry(BaseModel):
    """种子列表条目."""

    symbol: str = Field(..., min_length=1)
    country: str | None = None
    sector: str | None = None


class ProviderState(BaseModel):
    """提供商状态快照."""

    status: ScraperStatus = ScraperStatus.IDLE
    last_update: int = Field(0, ge=0, description="Epoch milliseconds, 0 when never run")
