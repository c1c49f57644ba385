"""Classification and provider status enums."""

from enum import Enum


class ListType(str, Enum):
    """资格分类标签枚举."""

    ANNUAL_OK = "ANNUAL_OK"
    QUARTERLY_OK = "QUARTERLY_OK"
    ANNUAL_OK_QUARTERLY_OK = "ANNUAL_OK_QUARTERLY_OK"
    ANNUAL_OK_QUARTERLY_NO = "ANNUAL_OK_QUARTERLY_NO"
    QUARTERLY_NO = "QUARTERLY_NO"


class ScraperStatus(str, Enum):
    """数据提供商抓取状态枚举."""

    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"
    ERROR = "error"
