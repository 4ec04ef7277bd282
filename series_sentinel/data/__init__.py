"""
Data module: record ingestion, series schema, cleaning, and grouping.

Responsible for turning flat business records into the per-key series the
alert engine evaluates. Pipeline:

    Flat records (CSV/JSON/DataFrame)
        ↓
    Ingestion (series_sentinel/data/ingestion.py) → RawRecord
        ↓
    Grouping + filters (series_sentinel/data/aggregation.py)
        ↓
    Repository (series_sentinel/data/repository.py)
        → HistoricalSeries, CurrentObservation
        ↓
    Cleaning (series_sentinel/data/preprocessing.py) inside the engine
"""

from series_sentinel.data.aggregation import (
    collect_current,
    group_historical,
    is_excluded,
    matches_filters,
    merge_current_observations,
)
from series_sentinel.data.ingestion import (
    CSVRecordSource,
    DataFrameRecordSource,
    JSONRecordSource,
    ingest_records,
    parse_record,
    parse_records,
    parse_value,
)
from series_sentinel.data.preprocessing import clean_series, is_finite_number
from series_sentinel.data.repository import InMemorySeriesRepository, SeriesRepository
from series_sentinel.data.schema import (
    CurrentObservation,
    HistoricalSeries,
    ObservationPoint,
    RawRecord,
    SeriesKey,
    normalize_component,
)

__all__ = [
    # Schema
    "SeriesKey",
    "ObservationPoint",
    "HistoricalSeries",
    "CurrentObservation",
    "RawRecord",
    "normalize_component",

    # Ingestion
    "ingest_records",
    "CSVRecordSource",
    "JSONRecordSource",
    "DataFrameRecordSource",
    "parse_record",
    "parse_records",
    "parse_value",

    # Cleaning
    "clean_series",
    "is_finite_number",

    # Grouping
    "group_historical",
    "collect_current",
    "merge_current_observations",
    "matches_filters",
    "is_excluded",

    # Repository
    "SeriesRepository",
    "InMemorySeriesRepository",
]
