"""CSV universe seed provider."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
from loguru import logger

from equiscan.core.data.storage.base import KeyValueBackend
from equiscan.core.exceptions import ProviderFetchError
from equiscan.core.models import SeedEntry

from .base import SeedProvider

REQUIRED_COLUMNS = ("symbol", "country", "sector")


class CsvSeedProvider(SeedProvider):
    """Reads the symbol universe from a CSV export with ``symbol,country,sector`` columns."""

    def __init__(self, backend: KeyValueBackend, path: str | Path, name: str = "universe"):
        super().__init__(name, backend)
        self.path = Path(path)

    async def get_bulk_data(self) -> list[SeedEntry]:
        entries = self._to_entries(self._read_frame())
        logger.info("Universe loaded", provider=self.name, count=len(entries))
        return entries

    def _read_frame(self) -> pd.DataFrame:
        try:
            frame = pd.read_csv(self.path, dtype=str, keep_default_na=False)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise ProviderFetchError(
                f"Cannot read universe file {self.path}: {e}",
                self.name,
                details={"path": str(self.path)},
            ) from e

        frame.columns = [str(column).strip().lower() for column in frame.columns]
        missing = [column for column in REQUIRED_COLUMNS if column not in frame.columns]
        if missing:
            raise ProviderFetchError(
                f"Universe file {self.path} is missing columns: {', '.join(missing)}",
                self.name,
                details={"missing_columns": missing},
            )
        return frame

    def _to_entries(self, frame: pd.DataFrame) -> list[SeedEntry]:
        entries: dict[str, SeedEntry] = {}
        for row in frame[list(REQUIRED_COLUMNS)].itertuples(index=False):
            symbol = row.symbol.strip().upper()
            if not symbol:
                continue
            entries[symbol] = SeedEntry(
                symbol=symbol,
                country=row.country.strip() or None,
                sector=row.sector.strip() or None,
            )
        return list(entries.values())
