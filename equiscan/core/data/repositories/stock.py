"""股票记录仓储实现."""

from collections.abc import Iterable

from loguru import logger
from pydantic import ValidationError

from equiscan.core.data.storage.base import KeyValueBackend
from equiscan.core.exceptions import DataValidationError, NotFoundError
from equiscan.core.models import StockRecord


class StockRepository:
    """股票记录仓储, 在键值后端上按代码读写 :class:`StockRecord`.

    键空间中同时存放提供商元数据, 这些保留键通过 ``reserved_keys``
    显式排除在记录枚举之外.
    """

    def __init__(self, backend: KeyValueBackend, reserved_keys: Iterable[str] = ()):
        """初始化股票仓储.

        Args:
            backend: 键值存储后端
            reserved_keys: 非股票记录的保留键
        """
        self.backend = backend
        self.reserved_keys = frozenset(reserved_keys)

    async def list_record_keys(self) -> list[str]:
        """列出所有股票记录键 (排除保留键)."""
        keys = await self.backend.keys("*")
        return [key for key in keys if key not in self.reserved_keys]

    async def load(self, key: str) -> StockRecord:
        """加载股票记录.

        Raises:
            NotFoundError: 键不存在
            DataValidationError: 存储内容无法解析
        """
        payload = await self.backend.get(key)
        if payload is None:
            raise NotFoundError(f"No stock record stored under '{key}'", key=key)

        try:
            record = StockRecord.model_validate_json(payload)
        except ValidationError as e:
            raise DataValidationError(
                f"Stored record '{key}' cannot be decoded",
                validation_errors={"errors": e.errors(include_url=False)},
                details={"key": key},
            ) from e

        if record.name != key:
            logger.warning("Stored record name differs from its key", key=key, stored_name=record.name)
            record.name = key
        return record

    async def find(self, key: str) -> StockRecord | None:
        """查找股票记录, 不存在时返回 ``None``."""
        try:
            return await self.load(key)
        except NotFoundError:
            return None

    async def save(self, record: StockRecord) -> None:
        """按代码保存(覆盖)股票记录."""
        await self.backend.set(record.name, self.serialize(record))

    async def list_records(self) -> list[StockRecord]:
        """加载所有股票记录, 每次调用返回新的列表."""
        records: list[StockRecord] = []
        for key in await self.list_record_keys():
            try:
                records.append(await self.load(key))
            except NotFoundError:
                logger.debug("Record disappeared during enumeration", key=key)
            except DataValidationError as e:
                logger.warning("Skipping undecodable record", key=key, error_code=e.error_code)
        return records

    @staticmethod
    def serialize(record: StockRecord) -> bytes:
        """序列化记录, 派生指标不写入存储."""
        return record.model_dump_json().encode("utf-8")
