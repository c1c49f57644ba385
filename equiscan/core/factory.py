"""组件装配: 根据配置创建存储后端, 提供商和服务."""

from __future__ import annotations

from dataclasses import dataclass

from equiscan.core.config import EquiscanConfig
from equiscan.core.data.repositories.stock import StockRepository
from equiscan.core.data.storage import DuckDBBackend, InMemoryBackend, KeyValueBackend
from equiscan.core.providers import (
    CsvSeedProvider,
    ScrapingSession,
    YFinanceDetailProvider,
    get_session,
)
from equiscan.core.services.orchestrator import UpdateOrchestrator
from equiscan.core.services.report import ReportBuilder


@dataclass(slots=True)
class Services:
    """装配完成的服务集合."""

    backend: KeyValueBackend
    repository: StockRepository
    seed_provider: CsvSeedProvider
    detail_provider: YFinanceDetailProvider
    session: ScrapingSession
    orchestrator: UpdateOrchestrator
    report_builder: ReportBuilder

    async def close(self) -> None:
        self.session.close()
        await self.backend.close()


def create_backend(config: EquiscanConfig) -> KeyValueBackend:
    """创建键值存储后端."""
    if config.store.backend == "memory":
        return InMemoryBackend()
    return DuckDBBackend(config.store.path)


def create_services(config: EquiscanConfig, backend: KeyValueBackend | None = None) -> Services:
    """根据配置创建全部服务."""
    if backend is None:
        backend = create_backend(config)
    session = get_session(config.providers.impersonate)
    seed_provider = CsvSeedProvider(backend, config.providers.universe_path)
    detail_provider = YFinanceDetailProvider(backend, session=session)

    reserved_keys = {*config.store.reserved_keys, *seed_provider.reserved_keys, *detail_provider.reserved_keys}
    repository = StockRepository(backend, reserved_keys=reserved_keys)

    orchestrator = UpdateOrchestrator(
        repository,
        seed_provider,
        detail_provider,
        session=session,
        window_hours=config.refresh.window_hours,
        max_records_per_cycle=config.refresh.max_records_per_cycle,
    )
    return Services(
        backend=backend,
        repository=repository,
        seed_provider=seed_provider,
        detail_provider=detail_provider,
        session=session,
        orchestrator=orchestrator,
        report_builder=ReportBuilder(repository, config.report.directory),
    )
