"""
Configuration management for equiscan.

Settings are resolved from (highest priority first) explicit keyword
arguments, ``EQUISCAN_*`` environment variables, a ``.env`` file and an
optional TOML configuration file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import toml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreConfig(BaseModel):
    """Configuration for the key-value record store."""

    backend: Literal["duckdb", "memory"] = Field("duckdb", description="Key-value backend")
    path: Path = Field(
        default_factory=lambda: Path.home() / ".equiscan" / "equiscan.duckdb",
        description="DuckDB database file",
    )
    reserved_keys: list[str] = Field(
        default_factory=list,
        description="Additional non-record keys excluded from enumeration",
    )


class RefreshConfig(BaseModel):
    """Configuration for refresh scheduling."""

    window_hours: int = Field(24, ge=1, description="Staleness window in hours")
    max_records_per_cycle: int | None = Field(
        None, ge=1, description="Upper bound of records processed per detail cycle"
    )


class ProvidersConfig(BaseModel):
    """Configuration for the seed and detail providers."""

    universe_path: Path = Field(Path("universe.csv"), description="Seed universe CSV file")
    impersonate: str = Field("chrome", description="Browser fingerprint for the scraping session")


class ReportConfig(BaseModel):
    """Configuration for spreadsheet reports."""

    directory: Path = Field(Path("public"), description="Report output directory")


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field("INFO", description="Log level")
    file_path: Path | None = Field(None, description="Log file path")


class EquiscanConfig(BaseSettings):
    """Main equiscan configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EQUISCAN_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    store: StoreConfig = Field(default_factory=StoreConfig, description="Store configuration")
    refresh: RefreshConfig = Field(default_factory=RefreshConfig, description="Refresh configuration")
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig, description="Provider configuration")
    report: ReportConfig = Field(default_factory=ReportConfig, description="Report configuration")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")

    @classmethod
    def load_from_file(cls, config_path: Path, **overrides: Any) -> EquiscanConfig:
        """Load configuration from a TOML file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        config_data = toml.load(config_path)
        config_data.update(overrides)
        return cls(**config_data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to a TOML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            toml.dump(self.model_dump(mode="json", exclude_none=True), f)


def default_config_path() -> Path:
    """Get default configuration file path."""
    config_dir = Path.home() / ".config" / "equiscan"
    if os.name == "nt":  # Windows
        config_dir = Path.home() / "AppData" / "Local" / "equiscan"
    return config_dir / "config.toml"


def load_config(config_path: Path | None = None) -> EquiscanConfig:
    """Load configuration from ``config_path`` or the default location.

    A missing default file yields the default configuration; an explicitly
    requested file must exist.
    """
    if config_path is not None:
        return EquiscanConfig.load_from_file(config_path)

    path = default_config_path()
    if path.exists():
        return EquiscanConfig.load_from_file(path)
    return EquiscanConfig()


# Global configuration instance
_config: EquiscanConfig | None = None


def get_config() -> EquiscanConfig:
    """Get current configuration."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: EquiscanConfig | None) -> None:
    """Replace (or reset with ``None``) the global configuration."""
    global _config
    _config = config
