"""键值存储后端."""

from equiscan.core.data.storage.base import KeyValueBackend
from equiscan.core.data.storage.duckdb import DuckDBBackend
from equiscan.core.data.storage.memory import InMemoryBackend

__all__ = ["KeyValueBackend", "InMemoryBackend", "DuckDBBackend"]
