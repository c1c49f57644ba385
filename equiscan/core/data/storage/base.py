"""键值存储后端接口定义."""

from abc import ABC, abstractmethod


class KeyValueBackend(ABC):
    """键值存储后端抽象基类."""

    name: str = "kv"

    @abstractmethod
    async def keys(self, pattern: str = "*") -> list[str]:
        """返回匹配glob模式的所有键."""
        pass

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """读取键对应的值."""
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """写入(覆盖)键值."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """删除键."""
        pass

    async def close(self) -> None:
        """释放后端资源."""
        return None
