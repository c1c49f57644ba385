"""
Eligibility engine.

Derives classification tags and income growth percentages from a record's
financial statements. Every function here is pure with respect to
``financials``; only ``tags`` and ``computed`` of a record are written.
"""

from __future__ import annotations

from collections.abc import Sequence

from equiscan.core.models import (
    ComputedMetrics,
    FinancialData,
    IncomeMetrics,
    IncomeSnapshot,
    ListType,
    StockRecord,
)

MIN_TREND_PERIODS = 2


def income_trend_ok(snapshots: Sequence[IncomeSnapshot]) -> bool:
    """利润趋势规则: 至少两期, 每期净利润为正且逐期严格增长."""
    if len(snapshots) < MIN_TREND_PERIODS:
        return False

    values = [snapshot.net_income for snapshot in snapshots]
    if any(value is None or value <= 0 for value in values):
        return False
    return all(current > previous for previous, current in zip(values, values[1:]))


def classify(financials: FinancialData | None) -> set[ListType]:
    """计算分类标签集合."""
    if financials is None:
        return set()

    annual_ok = income_trend_ok(financials.income.annual)
    quarterly_ok = income_trend_ok(financials.income.quarterly)

    tags: set[ListType] = set()
    if annual_ok:
        tags.add(ListType.ANNUAL_OK)
    if quarterly_ok:
        tags.add(ListType.QUARTERLY_OK)
    else:
        tags.add(ListType.QUARTERLY_NO)
    if annual_ok and quarterly_ok:
        tags.add(ListType.ANNUAL_OK_QUARTERLY_OK)
    if annual_ok and not quarterly_ok:
        tags.add(ListType.ANNUAL_OK_QUARTERLY_NO)
    return tags


def _percentage_change(previous: float | None, current: float | None) -> float | None:
    if previous is None or current is None or previous == 0:
        return None
    return round((current - previous) / abs(previous) * 100, 2)


def annual_percentages(financials: FinancialData | None) -> list[float | None]:
    """逐年净利润变化百分比, 每对相邻年度一项."""
    if financials is None:
        return []
    values = [snapshot.net_income for snapshot in financials.income.annual]
    return [_percentage_change(previous, current) for previous, current in zip(values, values[1:])]


def average_percentage(percentages: Sequence[float | None]) -> float | None:
    """有效百分比的算术平均值, 无有效项时为 ``None``."""
    valid = [value for value in percentages if value is not None]
    if not valid:
        return None
    return round(sum(valid) / len(valid), 2)


def compute_metrics(financials: FinancialData | None) -> ComputedMetrics:
    percentages = annual_percentages(financials)
    return ComputedMetrics(
        income=IncomeMetrics(
            avg_percentage=average_percentage(percentages),
            annual_percentages=percentages,
        )
    )


def apply_eligibility(record: StockRecord) -> StockRecord:
    """重新计算记录的分类标签和派生指标 (覆盖旧值)."""
    record.tags = classify(record.financials)
    record.computed = compute_metrics(record.financials)
    return record
