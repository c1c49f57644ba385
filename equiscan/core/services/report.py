"""
Monthly spreadsheet report.

One sheet per classification tag (symbols only) plus two percentage sheets:
``%`` lists every record tagged ``ANNUAL_OK_QUARTERLY_OK`` and ``% OK``
narrows it to records with four annual and four quarterly balance snapshots.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import date
from pathlib import Path
from typing import Any

from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.worksheet.worksheet import Worksheet

from equiscan.core.data.repositories.stock import StockRepository
from equiscan.core.exceptions import ReportGenerationError
from equiscan.core.models import ListType, StockRecord

from .eligibility import compute_metrics

REPORT_EXTENSION = "xlsx"
PERCENT_SHEET = "%"
PERCENT_OK_SHEET = "% OK"
MIN_PERCENT_COLUMNS = 5

TAG_SHEETS: tuple[ListType, ...] = (
    ListType.ANNUAL_OK,
    ListType.ANNUAL_OK_QUARTERLY_OK,
    ListType.ANNUAL_OK_QUARTERLY_NO,
    ListType.QUARTERLY_OK,
    ListType.QUARTERLY_NO,
)


class WorkbookSink:
    """Minimal spreadsheet writer over an openpyxl workbook."""

    def __init__(self) -> None:
        self._workbook = Workbook()
        # drop the default sheet, every sheet is named explicitly
        self._workbook.remove(self._workbook.active)

    def add_sheet(self, name: str) -> Worksheet:
        return self._workbook.create_sheet(title=name)

    def append_row(self, sheet: Worksheet, cells: Sequence[Any], bold: bool = False) -> None:
        sheet.append(list(cells))
        if bold:
            for cell in sheet[sheet.max_row]:
                cell.font = Font(bold=True)

    def save(self, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._workbook.save(path)
        except OSError as e:
            raise ReportGenerationError(f"Cannot write report: {e}", path=str(path)) from e


def partition_by_tag(records: Iterable[StockRecord]) -> dict[ListType, list[StockRecord]]:
    """按分类标签分组, 一条记录可出现在多个分组中."""
    groups: dict[ListType, list[StockRecord]] = {tag: [] for tag in TAG_SHEETS}
    for record in records:
        for tag in TAG_SHEETS:
            if tag in record.tags:
                groups[tag].append(record)
    return groups


def assets_to_liabilities(record: StockRecord) -> float | None:
    """最近一期年度 总资产/总负债, 负债为零或缺失时为 ``None``."""
    if record.financials is None:
        return None
    latest = record.financials.latest_annual_balance()
    if latest is None:
        return None
    liabilities = latest.total_liabilities or 0
    if liabilities == 0:
        return None
    return (latest.total_assets or 0) / liabilities


def percent_header(percent_columns: int) -> list[str]:
    return [
        "Name",
        "Sector",
        "Avg %",
        *(f"{index}. %" for index in range(1, percent_columns + 1)),
        "Market Cap",
        "Total assets/Total liabilities",
    ]


def percent_row(record: StockRecord, percent_columns: int) -> list[Any]:
    metrics = compute_metrics(record.financials).income
    percentages = list(metrics.annual_percentages)
    percentages += [None] * (percent_columns - len(percentages))
    return [
        record.name,
        record.sector,
        metrics.avg_percentage,
        *percentages,
        record.financials.market_cap if record.financials else None,
        assets_to_liabilities(record),
    ]


def report_filename(today: date) -> str:
    return f"{today.year}-{today.month:02d}.{REPORT_EXTENSION}"


class ReportBuilder:
    """报表生成器, 读取全部记录并写出月度工作簿."""

    def __init__(
        self,
        repository: StockRepository,
        report_dir: str | Path,
        sink_factory: Callable[[], WorkbookSink] = WorkbookSink,
    ):
        self.repository = repository
        self.report_dir = Path(report_dir)
        self._sink_factory = sink_factory

    async def generate(self, today: date | None = None) -> Path | None:
        """生成报表; 任何失败只记录日志, 返回 ``None``."""
        path = self.report_dir / report_filename(today or date.today())
        try:
            records = await self.repository.list_records()
            sink = self._sink_factory()
            self._write(sink, records)
            sink.save(path)
        except ReportGenerationError as e:
            logger.bind(error_code=e.error_code).error("Error while creating report: {}", e.message)
            return None
        except Exception as e:
            logger.bind(error_code="REPORT_GENERATION_ERROR").error("Error while creating report: {}", e)
            return None

        logger.info("Report created", path=str(path), records=len(records))
        return path

    def _write(self, sink: WorkbookSink, records: list[StockRecord]) -> None:
        groups = partition_by_tag(records)
        for tag in TAG_SHEETS:
            sheet = sink.add_sheet(tag.value)
            for record in groups[tag]:
                sink.append_row(sheet, [record.name])

        qualifying = groups[ListType.ANNUAL_OK_QUARTERLY_OK]
        with_history = [
            record
            for record in qualifying
            if record.has_four_annual_balance() and record.has_four_quarterly_balance()
        ]
        self._write_percent_sheet(sink, PERCENT_SHEET, qualifying)
        self._write_percent_sheet(sink, PERCENT_OK_SHEET, with_history)

    def _write_percent_sheet(self, sink: WorkbookSink, name: str, records: list[StockRecord]) -> None:
        widest = max((len(compute_metrics(r.financials).income.annual_percentages) for r in records), default=0)
        percent_columns = max(MIN_PERCENT_COLUMNS, widest)

        sheet = sink.add_sheet(name)
        sink.append_row(sheet, percent_header(percent_columns), bold=True)
        for record in records:
            sink.append_row(sheet, percent_row(record, percent_columns))
