"""
Provider service wrappers.

A provider wrapper owns its :class:`ScraperStatus` and the timestamp of its
last successful run. Both are persisted under reserved keys in the same
key-value namespace as the stock records, so they survive across processes
and the record store must exclude :attr:`ProviderService.reserved_keys`
from enumeration.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger

from equiscan.core.data.storage.base import KeyValueBackend
from equiscan.core.exceptions import StoreUnavailableError
from equiscan.core.models import FinancialData, ProviderState, ScraperStatus, SeedEntry


def now_ms() -> int:
    """Current wall clock in epoch milliseconds."""
    return int(time.time() * 1000)


class ProviderService(ABC):
    """Base class tracking the status lifecycle of a provider."""

    def __init__(self, name: str, backend: KeyValueBackend):
        self.name = name
        self.backend = backend

    @property
    def last_update_key(self) -> str:
        """Reserved key holding the last successful run timestamp."""
        return f"{self.name}:last_update"

    @property
    def status_key(self) -> str:
        """Reserved key holding the current scrape status."""
        return f"{self.name}:status"

    @property
    def reserved_keys(self) -> tuple[str, ...]:
        """All metadata keys written by this provider."""
        return (self.last_update_key, self.status_key)

    async def get_last_update(self) -> int:
        """Epoch milliseconds of the last successful run, 0 when never run."""
        raw = await self.backend.get(self.last_update_key)
        if not raw:
            return 0
        try:
            return int(raw.decode("utf-8"))
        except ValueError:
            logger.warning("Ignoring malformed last update marker", provider=self.name, value=raw)
            return 0

    async def get_status(self) -> ScraperStatus:
        """Current scrape status, IDLE when nothing was recorded."""
        raw = await self.backend.get(self.status_key)
        if not raw:
            return ScraperStatus.IDLE
        try:
            return ScraperStatus(raw.decode("utf-8"))
        except ValueError:
            logger.warning("Ignoring malformed status marker", provider=self.name, value=raw)
            return ScraperStatus.IDLE

    async def set_status(self, status: ScraperStatus) -> None:
        await self.backend.set(self.status_key, status.value.encode("utf-8"))

    async def get_state(self) -> ProviderState:
        """Status and last update as one immutable snapshot."""
        return ProviderState(status=await self.get_status(), last_update=await self.get_last_update())

    @asynccontextmanager
    async def tracked_run(self) -> AsyncIterator[None]:
        """Move the status through RUNNING to FINISHED or ERROR.

        The last update marker is only written on success.
        """
        await self.set_status(ScraperStatus.RUNNING)
        logger.info("Provider run started", provider=self.name)
        try:
            yield
        except BaseException:
            logger.error("Provider run failed", provider=self.name)
            try:
                await self.set_status(ScraperStatus.ERROR)
            except StoreUnavailableError as e:
                # a RUNNING marker is also retried on the next check
                logger.bind(provider=self.name, error_code=e.error_code).warning("Cannot record error status: {}", e.message)
            raise
        await self.backend.set(self.last_update_key, str(now_ms()).encode("utf-8"))
        await self.set_status(ScraperStatus.FINISHED)
        logger.info("Provider run finished", provider=self.name)

    def cycle(self):
        """Context manager wrapping one full refresh cycle of this provider."""
        return self.tracked_run()


class SeedProvider(ProviderService):
    """Provider of the bulk symbol universe."""

    @abstractmethod
    async def get_bulk_data(self) -> list[SeedEntry]:
        """Fetch the full list of symbol identities.

        Raises:
            ProviderFetchError: when the list cannot be fetched
        """
        pass


class DetailProvider(ProviderService):
    """Provider of per-symbol financial statements.

    When a cycle is bounded, the last processed key is kept under
    :attr:`cursor_key` so the next cycle continues after it.
    """

    @property
    def cursor_key(self) -> str:
        return f"{self.name}:cursor"

    @property
    def reserved_keys(self) -> tuple[str, ...]:
        return (*super().reserved_keys, self.cursor_key)

    async def get_cursor(self) -> str | None:
        raw = await self.backend.get(self.cursor_key)
        return raw.decode("utf-8") if raw else None

    async def set_cursor(self, key: str) -> None:
        await self.backend.set(self.cursor_key, key.encode("utf-8"))

    @abstractmethod
    async def get_financial_data(self, symbol: str) -> FinancialData | None:
        """Fetch financial statements for ``symbol``; ``None`` when unavailable."""
        pass
