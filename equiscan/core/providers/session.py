"""Process-wide scraping session shared by providers."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from curl_cffi import requests as curl_requests
from loguru import logger


class ScrapingSession:
    """Lazily acquired session handle.

    The handle is created on the first :meth:`acquire` and released by
    :meth:`close`, which is safe to call when nothing was acquired. After
    ``close`` the next ``acquire`` creates a fresh handle.
    """

    def __init__(self, factory: Callable[[], Any]):
        self._factory = factory
        self._handle: Any | None = None

    @property
    def is_active(self) -> bool:
        return self._handle is not None

    def acquire(self) -> Any:
        if self._handle is None:
            self._handle = self._factory()
            logger.debug("Scraping session acquired")
        return self._handle

    def close(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        handle.close()
        logger.debug("Scraping session closed")


def browser_session_factory(impersonate: str = "chrome") -> Callable[[], Any]:
    """Factory for a curl_cffi session impersonating a browser fingerprint."""

    def _create() -> Any:
        return curl_requests.Session(impersonate=impersonate)

    return _create


_session: ScrapingSession | None = None


def get_session(impersonate: str = "chrome") -> ScrapingSession:
    """获取全局抓取会话实例."""
    global _session
    if _session is None:
        _session = ScrapingSession(browser_session_factory(impersonate))
    return _session
