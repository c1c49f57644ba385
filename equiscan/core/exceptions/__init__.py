"""Exception handling module."""

from equiscan.core.exceptions.base import (
    DataValidationError,
    EquiscanError,
    NotFoundError,
    ProviderFetchError,
    ReportGenerationError,
    StoreUnavailableError,
)

__all__ = [
    "EquiscanError",
    "NotFoundError",
    "StoreUnavailableError",
    "ProviderFetchError",
    "ReportGenerationError",
    "DataValidationError",
]
