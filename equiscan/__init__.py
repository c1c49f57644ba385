"""equiscan - 股票池缓存, 定时刷新, 资格分类与月度报表."""

from equiscan.core.data.repositories.stock import StockRepository
from equiscan.core.models import FinancialData, ListType, ProviderState, ScraperStatus, StockRecord
from equiscan.core.services.orchestrator import CycleResult, UpdateOrchestrator
from equiscan.core.services.report import ReportBuilder
from equiscan.core.services.staleness import should_refresh

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "StockRecord",
    "FinancialData",
    "ListType",
    "ScraperStatus",
    "ProviderState",
    "StockRepository",
    "UpdateOrchestrator",
    "CycleResult",
    "ReportBuilder",
    "should_refresh",
]
