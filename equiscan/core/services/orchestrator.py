"""更新编排服务, 负责种子周期与明细周期的执行顺序."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass

from loguru import logger

from equiscan.core.data.repositories.stock import StockRepository
from equiscan.core.exceptions import DataValidationError, NotFoundError, ProviderFetchError
from equiscan.core.logging import log_context
from equiscan.core.models import ProviderState, SeedEntry, StockRecord
from equiscan.core.providers.base import DetailProvider, SeedProvider
from equiscan.core.providers.session import ScrapingSession

from .eligibility import apply_eligibility
from .staleness import DEFAULT_WINDOW_HOURS, should_refresh


@dataclass(slots=True)
class CycleResult:
    """一次刷新周期的结果摘要."""

    cycle: str
    ran: bool = False
    processed: int = 0
    updated: int = 0
    skipped: int = 0
    failed: bool = False


def merge_seed(existing: StockRecord | None, entry: SeedEntry) -> StockRecord:
    """合并种子条目: 已有记录保留财务数据和分类, 仅刷新国家和行业."""
    if existing is None:
        return StockRecord(name=entry.symbol, country=entry.country, sector=entry.sector)
    return existing.model_copy(update={"country": entry.country, "sector": entry.sector})


class UpdateOrchestrator:
    """更新编排器.

    种子周期从种子提供商批量写入股票身份; 明细周期逐条加载记录,
    获取财务数据, 重新分类后保存. 两个周期都先查询提供商状态快照,
    再由陈旧度策略决定是否执行.
    """

    def __init__(
        self,
        repository: StockRepository,
        seed_provider: SeedProvider,
        detail_provider: DetailProvider,
        session: ScrapingSession | None = None,
        window_hours: int = DEFAULT_WINDOW_HOURS,
        max_records_per_cycle: int | None = None,
    ):
        """初始化更新编排器.

        Args:
            repository: 股票记录仓储
            seed_provider: 种子提供商
            detail_provider: 明细提供商
            session: 明细周期结束后释放的共享抓取会话
            window_hours: 陈旧度窗口 (小时)
            max_records_per_cycle: 每个明细周期处理记录数上限
        """
        self.repository = repository
        self.seed_provider = seed_provider
        self.detail_provider = detail_provider
        self.session = session
        self.window_hours = window_hours
        self.max_records_per_cycle = max_records_per_cycle

    def _is_due(self, state: ProviderState, now: int | None) -> bool:
        return should_refresh(state.last_update, state.status, now=now, window_hours=self.window_hours)

    async def run_seed_cycle(self, now: int | None = None) -> CycleResult:
        """执行种子周期."""
        result = CycleResult(cycle="seed")
        with log_context(cycle="seed", provider=self.seed_provider.name):
            state = await self.seed_provider.get_state()
            if not self._is_due(state, now):
                logger.info("Seed cycle not due", status=state.status.value, last_update=state.last_update)
                return result

            result.ran = True
            try:
                async with self.seed_provider.cycle():
                    for entry in await self.seed_provider.get_bulk_data():
                        await self.repository.save(merge_seed(await self._find_for_seed(entry.symbol), entry))
                        result.processed += 1
                        result.updated += 1
            except ProviderFetchError as e:
                logger.bind(error_code=e.error_code).error("Seed fetch failed: {}", e.message)
                result.failed = True
                return result
            except BaseException:
                result.failed = True
                raise

            logger.info("Seed cycle finished", processed=result.processed)
        return result

    async def run_detail_cycle(self, now: int | None = None) -> CycleResult:
        """执行明细周期.

        记录逐条按 加载 -> 获取 -> 分类 -> 保存 的顺序处理. 无论周期
        成功与否, 共享抓取会话都在全部记录处理后释放一次.
        """
        result = CycleResult(cycle="detail")
        with log_context(cycle="detail", provider=self.detail_provider.name):
            state = await self.detail_provider.get_state()
            if not self._is_due(state, now):
                logger.info("Detail cycle not due", status=state.status.value, last_update=state.last_update)
                return result

            result.ran = True
            try:
                async with self.detail_provider.cycle():
                    keys = await self._next_batch()
                    for key in keys:
                        result.processed += 1
                        if await self._refresh_record(key):
                            result.updated += 1
                        else:
                            result.skipped += 1
                    if self.max_records_per_cycle is not None and keys:
                        await self.detail_provider.set_cursor(keys[-1])
            except BaseException:
                result.failed = True
                raise
            finally:
                if self.session is not None:
                    self.session.close()

            logger.info(
                "Detail cycle finished",
                processed=result.processed,
                updated=result.updated,
                skipped=result.skipped,
            )
        return result

    async def _find_for_seed(self, symbol: str) -> StockRecord | None:
        try:
            return await self.repository.find(symbol)
        except DataValidationError as e:
            logger.bind(symbol=symbol, error_code=e.error_code).warning("Replacing undecodable record: {}", e.message)
            return None

    async def _next_batch(self) -> list[str]:
        """本周期待处理的键.

        有上限时从上次游标之后继续, 到末尾回绕, 保证每条记录轮流刷新.
        """
        keys = sorted(await self.repository.list_record_keys())
        if self.max_records_per_cycle is None or not keys:
            return keys

        cursor = await self.detail_provider.get_cursor()
        start = bisect_right(keys, cursor) if cursor is not None else 0
        return (keys[start:] + keys[:start])[: self.max_records_per_cycle]

    async def _refresh_record(self, key: str) -> bool:
        try:
            record = await self.repository.load(key)
        except (NotFoundError, DataValidationError) as e:
            logger.bind(symbol=key, error_code=e.error_code).warning("Skipping record: {}", e.message)
            return False

        financials = await self.detail_provider.get_financial_data(key)
        if financials is None:
            logger.info("Got no financial data, record left unchanged", symbol=key)
            return False

        record.financials = financials
        apply_eligibility(record)
        await self.repository.save(record)
        logger.debug("Record refreshed", symbol=key, tags=sorted(tag.value for tag in record.tags))
        return True
