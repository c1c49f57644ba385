"""DuckDB键值存储实现."""

from pathlib import Path

import duckdb
from duckdb import DuckDBPyConnection
from loguru import logger

from equiscan.core.exceptions import StoreUnavailableError

from .base import KeyValueBackend


class DuckDBBackend(KeyValueBackend):
    """基于DuckDB的持久化键值存储.

    连接在首次访问时建立; 所有 ``duckdb.Error`` 都转换为
    :class:`StoreUnavailableError`, 不做内部重试.
    """

    name = "duckdb"

    def __init__(self, db_path: str | Path = ":memory:"):
        self.db_path = str(db_path)
        self._conn: DuckDBPyConnection | None = None

    def _connection(self) -> DuckDBPyConnection:
        if self._conn is not None:
            return self._conn

        try:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = duckdb.connect(self.db_path)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key VARCHAR PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
        except (duckdb.Error, OSError) as e:
            raise StoreUnavailableError(
                f"Cannot open DuckDB store at {self.db_path}: {e}",
                backend=self.name,
                details={"path": self.db_path},
            ) from e

        logger.debug("DuckDB store opened", path=self.db_path)
        self._conn = conn
        return conn

    def _unavailable(self, action: str, error: Exception) -> StoreUnavailableError:
        return StoreUnavailableError(
            f"DuckDB {action} failed: {error}",
            backend=self.name,
            details={"path": self.db_path, "action": action},
        )

    async def keys(self, pattern: str = "*") -> list[str]:
        try:
            rows = self._connection().execute(
                "SELECT key FROM kv_store WHERE key GLOB ? ORDER BY key", [pattern]
            ).fetchall()
        except duckdb.Error as e:
            raise self._unavailable("keys", e) from e
        return [row[0] for row in rows]

    async def get(self, key: str) -> bytes | None:
        try:
            row = self._connection().execute("SELECT value FROM kv_store WHERE key = ?", [key]).fetchone()
        except duckdb.Error as e:
            raise self._unavailable("get", e) from e
        if row is None:
            return None
        return bytes(row[0])

    async def set(self, key: str, value: bytes) -> None:
        try:
            self._connection().execute(
                """
                INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
            """,
                [key, bytes(value)],
            )
        except duckdb.Error as e:
            raise self._unavailable("set", e) from e

    async def delete(self, key: str) -> bool:
        try:
            conn = self._connection()
            existing = conn.execute("SELECT 1 FROM kv_store WHERE key = ?", [key]).fetchone()
            if existing is None:
                return False
            conn.execute("DELETE FROM kv_store WHERE key = ?", [key])
        except duckdb.Error as e:
            raise self._unavailable("delete", e) from e
        return True

    async def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def is_connected(self) -> bool:
        """检查数据库连接是否处于活动状态."""
        return self._conn is not None
