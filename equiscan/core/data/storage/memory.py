"""内存键值存储实现."""

from fnmatch import fnmatchcase

from .base import KeyValueBackend


class InMemoryBackend(KeyValueBackend):
    """基于字典的内存键值存储, 主要用于测试和临时运行."""

    name = "memory"

    def __init__(self, initial: dict[str, bytes] | None = None):
        self._data: dict[str, bytes] = dict(initial or {})

    async def keys(self, pattern: str = "*") -> list[str]:
        return [key for key in self._data if fnmatchcase(key, pattern)]

    async def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._data)
