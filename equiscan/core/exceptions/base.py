"""equiscan核心异常类."""

from typing import Any


class EquiscanError(Exception):
    """equiscan基础异常类."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        """初始化异常.

        Args:
            message: 错误消息
            error_code: 错误代码
            details: 额外详情
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class NotFoundError(EquiscanError):
    """记录不存在异常."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if key is not None:
            super_details["key"] = key
        super().__init__(message, "NOT_FOUND", super_details)
        self.key = key


class StoreUnavailableError(EquiscanError):
    """存储后端不可用异常."""

    def __init__(
        self,
        message: str,
        backend: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if backend:
            super_details["backend"] = backend
        super().__init__(message, "STORE_UNAVAILABLE", super_details)
        self.backend = backend


class ProviderFetchError(EquiscanError):
    """数据提供商抓取异常."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        symbol: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if symbol:
            super_details["symbol"] = symbol
        super().__init__(message, "PROVIDER_FETCH_ERROR", super_details)
        self.provider_name = provider_name
        self.symbol = symbol


class ReportGenerationError(EquiscanError):
    """报表生成异常."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if path:
            super_details["path"] = path
        super().__init__(message, "REPORT_GENERATION_ERROR", super_details)
        self.path = path


class DataValidationError(EquiscanError):
    """数据验证异常."""

    def __init__(
        self,
        message: str,
        validation_errors: dict[str, Any] | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if validation_errors:
            super_details["validation_errors"] = validation_errors
        super().__init__(message, "VALIDATION_ERROR", super_details)
        self.validation_errors = validation_errors or {}
