"""数据存储仓储模式实现."""

from equiscan.core.data.repositories.stock import StockRepository

__all__ = ["StockRepository"]
