"""Logging utilities for monitoring and debugging."""

from equiscan.core.logging.config import LogConfig
from equiscan.core.logging.logger import configure_logging, log_context, logger

__all__ = ["LogConfig", "configure_logging", "log_context", "logger"]
