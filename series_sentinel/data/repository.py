"""
Series repository: where the alert engine gets its data.

The engine only depends on the ``SeriesRepository`` interface. The in-memory
implementation groups flat records (from a file, a DataFrame or a list) and is
what the command-line runner and the tests use.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional, Union

import pandas as pd

from series_sentinel.core.config import AlertConfig
from series_sentinel.data.aggregation import collect_current, group_historical
from series_sentinel.data.ingestion import ingest_records, parse_records
from series_sentinel.data.schema import CurrentObservation, HistoricalSeries, RawRecord

logger = logging.getLogger(__name__)


class SeriesRepository(ABC):
    """
    Source of historical series and current observations.

    Implementations may raise any exception on failure; the engine turns it
    into an unsuccessful response.
    """

    @abstractmethod
    def fetch_historical(
        self,
        period: str,
        branch_filter: Optional[str],
        business_unit_filter: Optional[str],
        config: AlertConfig,
    ) -> List[HistoricalSeries]:
        """Historical series per key, without any point for ``period``."""
        pass

    @abstractmethod
    def fetch_current(
        self,
        period: str,
        branch_filter: Optional[str],
        business_unit_filter: Optional[str],
        config: AlertConfig,
    ) -> List[CurrentObservation]:
        """Observations for ``period``; may contain several per key."""
        pass


class InMemorySeriesRepository(SeriesRepository):
    """Repository over a list of already-parsed records."""

    def __init__(self, records: Iterable[RawRecord]):
        self.records: List[RawRecord] = list(records)

    @classmethod
    def from_source(
        cls,
        source: Union[str, Path, pd.DataFrame],
        format: str = "auto",
    ) -> "InMemorySeriesRepository":
        """
        Build a repository from a record file or DataFrame.

        Raises:
            IngestionError: If the file is missing or unreadable
        """
        records, skipped = parse_records(list(ingest_records(source, format=format)))
        logger.info(f"Loaded {len(records)} records ({skipped} skipped)")
        return cls(records)

    def fetch_historical(
        self,
        period: str,
        branch_filter: Optional[str],
        business_unit_filter: Optional[str],
        config: AlertConfig,
    ) -> List[HistoricalSeries]:
        return group_historical(self.records, period, config, branch_filter, business_unit_filter)

    def fetch_current(
        self,
        period: str,
        branch_filter: Optional[str],
        business_unit_filter: Optional[str],
        config: AlertConfig,
    ) -> List[CurrentObservation]:
        return collect_current(self.records, period, config, branch_filter, business_unit_filter)

    @property
    def periods(self) -> List[str]:
        """Distinct periods present in the records, sorted."""
        return sorted({r.period for r in self.records})
