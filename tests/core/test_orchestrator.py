"""测试更新编排器."""

import pytest

from equiscan.core.data.repositories import StockRepository
from equiscan.core.exceptions import ProviderFetchError, StoreUnavailableError
from equiscan.core.models import FinancialData, ListType, ScraperStatus, SeedEntry, StockRecord
from equiscan.core.providers import DetailProvider, ScrapingSession, SeedProvider
from equiscan.core.providers.base import now_ms
from equiscan.core.services.orchestrator import UpdateOrchestrator, merge_seed
from equiscan.core.services.staleness import HOUR_MS


class StubSeedProvider(SeedProvider):
    def __init__(self, backend, entries=None, error=None):
        super().__init__("seed", backend)
        self.entries = entries or []
        self.error = error
        self.calls = 0

    async def get_bulk_data(self) -> list[SeedEntry]:
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.entries)


class StubDetailProvider(DetailProvider):
    def __init__(self, backend, data=None):
        super().__init__("detail", backend)
        self.data: dict[str, FinancialData | None] = data or {}
        self.requested: list[str] = []
        self.status_during_fetch: list[ScraperStatus] = []

    async def get_financial_data(self, symbol: str) -> FinancialData | None:
        self.requested.append(symbol)
        self.status_during_fetch.append(await self.get_status())
        return self.data.get(symbol)


class CountingHandle:
    closes = 0

    def close(self):
        CountingHandle.closes += 1


class FailingSaveRepository(StockRepository):
    async def save(self, record):
        raise StoreUnavailableError("connection refused", backend="test")


def _orchestrator(backend, seed=None, detail=None, session=None, **kwargs):
    seed = seed or StubSeedProvider(backend)
    detail = detail or StubDetailProvider(backend)
    repository = StockRepository(backend, reserved_keys={*seed.reserved_keys, *detail.reserved_keys})
    return UpdateOrchestrator(repository, seed, detail, session=session, **kwargs), repository


class TestMergeSeed:
    """测试种子合并策略."""

    def test_new_record(self):
        record = merge_seed(None, SeedEntry(symbol="AAPL", country="US", sector="Tech"))

        assert record == StockRecord(name="AAPL", country="US", sector="Tech")

    def test_existing_record_keeps_financials(self, make_financials):
        existing = StockRecord(name="AAPL", country="US", sector="Tech", financials=make_financials(), tags={ListType.ANNUAL_OK})

        merged = merge_seed(existing, SeedEntry(symbol="AAPL", country="USA", sector="Technology"))

        assert merged.sector == "Technology"
        assert merged.country == "USA"
        assert merged.financials == existing.financials
        assert merged.tags == {ListType.ANNUAL_OK}


class TestSeedCycle:
    """测试种子周期."""

    @pytest.mark.asyncio
    async def test_first_run_seeds_records(self, backend):
        seed = StubSeedProvider(backend, [SeedEntry(symbol="AAPL", country="US", sector="Tech")])
        orchestrator, repository = _orchestrator(backend, seed=seed)

        result = await orchestrator.run_seed_cycle()

        assert result.ran is True
        assert result.processed == 1
        assert await repository.list_record_keys() == ["AAPL"]
        record = await repository.load("AAPL")
        assert (record.country, record.sector, record.financials) == ("US", "Tech", None)

    @pytest.mark.asyncio
    async def test_not_due_is_noop(self, backend):
        seed = StubSeedProvider(backend, [SeedEntry(symbol="AAPL")])
        orchestrator, repository = _orchestrator(backend, seed=seed)
        await orchestrator.run_seed_cycle()
        await backend.set("AAPL", StockRecord(name="AAPL", sector="Old").model_dump_json().encode())

        result = await orchestrator.run_seed_cycle(now=now_ms() + HOUR_MS)

        assert result.ran is False
        assert seed.calls == 1
        assert (await repository.load("AAPL")).sector == "Old"

    @pytest.mark.asyncio
    async def test_reseed_preserves_financials(self, backend, make_financials):
        seed = StubSeedProvider(backend, [SeedEntry(symbol="AAPL", country="US", sector="Technology")])
        orchestrator, repository = _orchestrator(backend, seed=seed)
        await repository.save(StockRecord(name="AAPL", sector="Tech", financials=make_financials(), tags={ListType.ANNUAL_OK}))

        await orchestrator.run_seed_cycle()

        record = await repository.load("AAPL")
        assert record.sector == "Technology"
        assert record.financials is not None
        assert record.tags == {ListType.ANNUAL_OK}

    @pytest.mark.asyncio
    async def test_fetch_error_is_not_fatal(self, backend):
        seed = StubSeedProvider(backend, error=ProviderFetchError("down", "seed"))
        orchestrator, repository = _orchestrator(backend, seed=seed)

        result = await orchestrator.run_seed_cycle()

        assert result.failed is True
        assert await seed.get_status() is ScraperStatus.ERROR
        assert await repository.list_record_keys() == []

    @pytest.mark.asyncio
    async def test_error_status_retries_inside_window(self, backend):
        seed = StubSeedProvider(backend, [SeedEntry(symbol="AAPL")])
        orchestrator, _ = _orchestrator(backend, seed=seed)
        await orchestrator.run_seed_cycle()
        await seed.set_status(ScraperStatus.ERROR)

        result = await orchestrator.run_seed_cycle(now=now_ms() + 2 * HOUR_MS)

        assert result.ran is True
        assert seed.calls == 2


class TestDetailCycle:
    """测试明细周期."""

    @pytest.mark.asyncio
    async def test_classifies_and_persists(self, backend, make_financials):
        detail = StubDetailProvider(backend, {"AAPL": make_financials()})
        orchestrator, repository = _orchestrator(backend, detail=detail)
        await repository.save(StockRecord(name="AAPL", country="US", sector="Tech"))

        result = await orchestrator.run_detail_cycle()

        record = await repository.load("AAPL")
        assert record.tags == {ListType.ANNUAL_OK, ListType.QUARTERLY_OK, ListType.ANNUAL_OK_QUARTERLY_OK}
        assert record.has_four_annual_balance() is True
        assert (result.processed, result.updated, result.skipped) == (1, 1, 0)
        assert await detail.get_status() is ScraperStatus.FINISHED
        assert detail.status_during_fetch == [ScraperStatus.RUNNING]

    @pytest.mark.asyncio
    async def test_null_fetch_leaves_record_unchanged(self, backend, make_financials):
        detail = StubDetailProvider(backend, {"AAPL": make_financials(), "XYZ": None})
        orchestrator, repository = _orchestrator(backend, detail=detail)
        await repository.save(StockRecord(name="XYZ", sector="Energy", tags={ListType.QUARTERLY_NO}))
        await repository.save(StockRecord(name="AAPL"))
        before = await backend.get("XYZ")

        result = await orchestrator.run_detail_cycle()

        assert await backend.get("XYZ") == before
        assert sorted(detail.requested) == ["AAPL", "XYZ"]
        assert (result.updated, result.skipped) == (1, 1)
        assert ListType.ANNUAL_OK in (await repository.load("AAPL")).tags

    @pytest.mark.asyncio
    async def test_reserved_keys_are_not_fetched(self, backend, make_financials):
        seed = StubSeedProvider(backend, [SeedEntry(symbol="AAPL")])
        detail = StubDetailProvider(backend, {"AAPL": make_financials()})
        orchestrator, _ = _orchestrator(backend, seed=seed, detail=detail)
        await orchestrator.run_seed_cycle()

        await orchestrator.run_detail_cycle()

        assert detail.requested == ["AAPL"]

    @pytest.mark.asyncio
    async def test_not_due_is_noop(self, backend, make_financials):
        detail = StubDetailProvider(backend, {"AAPL": make_financials()})
        orchestrator, repository = _orchestrator(backend, detail=detail)
        await repository.save(StockRecord(name="AAPL"))
        await orchestrator.run_detail_cycle()

        result = await orchestrator.run_detail_cycle(now=now_ms() + HOUR_MS)

        assert result.ran is False
        assert detail.requested == ["AAPL"]

    @pytest.mark.asyncio
    async def test_session_closed_once_per_cycle(self, backend, make_financials):
        CountingHandle.closes = 0
        session = ScrapingSession(CountingHandle)
        session.acquire()
        detail = StubDetailProvider(backend, {"AAPL": make_financials(), "MSFT": make_financials()})
        orchestrator, repository = _orchestrator(backend, detail=detail, session=session)
        await repository.save(StockRecord(name="AAPL"))
        await repository.save(StockRecord(name="MSFT"))

        await orchestrator.run_detail_cycle()

        assert CountingHandle.closes == 1
        assert session.is_active is False

    @pytest.mark.asyncio
    async def test_store_failure_is_fatal_and_releases_session(self, backend, make_financials):
        CountingHandle.closes = 0
        session = ScrapingSession(CountingHandle)
        session.acquire()
        seed = StubSeedProvider(backend)
        detail = StubDetailProvider(backend, {"AAPL": make_financials()})
        repository = FailingSaveRepository(backend, reserved_keys={*seed.reserved_keys, *detail.reserved_keys})
        await backend.set("AAPL", StockRecord(name="AAPL").model_dump_json().encode())
        orchestrator = UpdateOrchestrator(repository, seed, detail, session=session)

        with pytest.raises(StoreUnavailableError):
            await orchestrator.run_detail_cycle()

        assert await detail.get_status() is ScraperStatus.ERROR
        assert CountingHandle.closes == 1

    @pytest.mark.asyncio
    async def test_bounded_cycles_rotate_through_all_records(self, backend, make_financials):
        detail = StubDetailProvider(backend, {s: make_financials() for s in ("A", "B", "C")})
        orchestrator, repository = _orchestrator(backend, detail=detail, max_records_per_cycle=2)
        for symbol in ("C", "A", "B"):
            await repository.save(StockRecord(name=symbol))

        results = [await orchestrator.run_detail_cycle(now=now_ms() + 25 * HOUR_MS) for _ in range(3)]

        assert [result.processed for result in results] == [2, 2, 2]
        assert detail.requested == ["A", "B", "C", "A", "B", "C"]
        assert await detail.get_cursor() == "C"

    @pytest.mark.asyncio
    async def test_failed_bounded_cycle_keeps_cursor(self, backend, make_financials):
        seed = StubSeedProvider(backend)
        detail = StubDetailProvider(backend, {s: make_financials() for s in ("A", "B", "C")})
        reserved = {*seed.reserved_keys, *detail.reserved_keys}
        for symbol in ("A", "B", "C"):
            await backend.set(symbol, StockRecord(name=symbol).model_dump_json().encode())
        failing = UpdateOrchestrator(
            FailingSaveRepository(backend, reserved_keys=reserved), seed, detail, max_records_per_cycle=2
        )

        with pytest.raises(StoreUnavailableError):
            await failing.run_detail_cycle()

        assert await detail.get_cursor() is None
        orchestrator = UpdateOrchestrator(StockRepository(backend, reserved), seed, detail, max_records_per_cycle=2)
        await orchestrator.run_detail_cycle(now=now_ms() + 2 * HOUR_MS)
        assert detail.requested == ["A", "A", "B"]

    @pytest.mark.asyncio
    async def test_order_independent_results(self, make_financials):
        from equiscan.core.data.storage import InMemoryBackend

        data = {"AAA": make_financials(), "BBB": make_financials(annual_income=(3.0, 2.0, 1.0))}
        outcomes = []
        for order in (["AAA", "BBB"], ["BBB", "AAA"]):
            backend = InMemoryBackend()
            orchestrator, repository = _orchestrator(backend, detail=StubDetailProvider(backend, data))
            for symbol in order:
                await repository.save(StockRecord(name=symbol))
            await orchestrator.run_detail_cycle()
            outcomes.append({symbol: await backend.get(symbol) for symbol in data})

        assert outcomes[0] == outcomes[1]


class TestSeedRecovery:
    """测试种子周期的失败恢复."""

    @pytest.mark.asyncio
    async def test_save_failure_does_not_start_cooldown(self, backend):
        seed = StubSeedProvider(backend, [SeedEntry(symbol="AAPL"), SeedEntry(symbol="MSFT")])
        detail = StubDetailProvider(backend)
        reserved = {*seed.reserved_keys, *detail.reserved_keys}
        failing = UpdateOrchestrator(FailingSaveRepository(backend, reserved), seed, detail)

        with pytest.raises(StoreUnavailableError):
            await failing.run_seed_cycle()

        state = await seed.get_state()
        assert state.status is ScraperStatus.ERROR
        assert state.last_update == 0

        repository = StockRepository(backend, reserved)
        result = await UpdateOrchestrator(repository, seed, detail).run_seed_cycle(now=now_ms() + 2 * HOUR_MS)

        assert result.ran is True
        assert sorted(await repository.list_record_keys()) == ["AAPL", "MSFT"]

    @pytest.mark.asyncio
    async def test_undecodable_record_is_reseeded(self, backend):
        seed = StubSeedProvider(backend, [SeedEntry(symbol="AAPL", sector="Tech"), SeedEntry(symbol="MSFT")])
        orchestrator, repository = _orchestrator(backend, seed=seed)
        await backend.set("AAPL", b"not json")

        result = await orchestrator.run_seed_cycle()

        assert result.processed == 2
        assert result.failed is False
        assert (await repository.load("AAPL")).sector == "Tech"
        assert await repository.find("MSFT") is not None


class TestStateAcrossProcesses:
    """测试状态在新进程中的可见性."""

    @pytest.mark.asyncio
    async def test_finished_detail_cycle_holds_cooldown_for_fresh_objects(self, backend, make_financials):
        first, repository = _orchestrator(backend, detail=StubDetailProvider(backend, {"A": make_financials()}))
        await repository.save(StockRecord(name="A"))
        await first.run_detail_cycle()

        detail = StubDetailProvider(backend, {"A": make_financials()})
        second, _ = _orchestrator(backend, detail=detail)
        result = await second.run_detail_cycle(now=now_ms() + 5 * 60 * 1000)

        assert result.ran is False
        assert detail.requested == []
        assert await detail.get_status() is ScraperStatus.FINISHED

    @pytest.mark.asyncio
    async def test_finished_seed_cycle_holds_cooldown_for_fresh_objects(self, backend):
        first, _ = _orchestrator(backend, seed=StubSeedProvider(backend, [SeedEntry(symbol="AAPL")]))
        await first.run_seed_cycle()

        seed = StubSeedProvider(backend, [SeedEntry(symbol="AAPL")])
        second, _ = _orchestrator(backend, seed=seed)

        assert (await second.run_seed_cycle(now=now_ms() + HOUR_MS)).ran is False
        assert seed.calls == 0
