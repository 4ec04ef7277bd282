"""
Record ingestion from flat files and DataFrames.

Supports CSV, JSON (array or NDJSON) and pandas DataFrame sources. Malformed
entries are skipped and logged rather than crashing the pipeline. Sources
yield raw dictionaries; ``parse_records`` maps them onto ``RawRecord``.

Design:
- Format detection from file extension, or explicit format
- Iterator-based for memory efficiency with large exports
- Column names are matched against known aliases (English and the legacy
  Spanish export headers), case-insensitively
- Bad rows logged but don't crash the pipeline
"""

import csv
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

import pandas as pd
from pydantic import ValidationError

from series_sentinel.core.exceptions import IngestionError
from series_sentinel.data.preprocessing import is_finite_number
from series_sentinel.data.schema import RawRecord

logger = logging.getLogger(__name__)


COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "position": ("position", "puesto", "fcdetalle5"),
    "indicator": ("indicator", "indicador", "fcdetalle6"),
    "concept": ("concept", "concepto", "conceptodetalle"),
    "branch": ("branch", "sucursal"),
    "business_unit": ("business_unit", "businessunit", "negocio"),
    "period": ("period", "periodo", "periodoactual"),
    "value": ("value", "valor", "variacion"),
}

REQUIRED_FIELDS = ("position", "indicator", "concept", "branch", "business_unit", "period")


class BaseRecordSource(ABC):
    """
    Abstract base class for record sources.

    Each source type (CSV, JSON, DataFrame) implements this interface.
    """

    @abstractmethod
    def ingest(self) -> Iterator[Dict[str, Any]]:
        """
        Ingest records from source.

        Yields:
            Dict representing a single raw row
        """
        pass


class FileRecordSource(BaseRecordSource):
    """Base class for sources backed by a file on disk."""

    def __init__(self, filepath: Union[str, Path], encoding: str = "utf-8"):
        """
        Initialize file source.

        Args:
            filepath: Path to the record file
            encoding: File encoding (default utf-8)

        Raises:
            IngestionError: If file doesn't exist
        """
        self.filepath = Path(filepath)
        self.encoding = encoding

        if not self.filepath.exists():
            raise IngestionError(f"Record file not found: {self.filepath}")


class JSONRecordSource(FileRecordSource):
    """
    Ingests JSON records (array of objects or one object per line).

    Example NDJSON:
        {"position": "Cashier", "indicator": "Sales", "concept": 1002, ...}
    """

    def ingest(self) -> Iterator[Dict[str, Any]]:
        try:
            with open(self.filepath, "r", encoding=self.encoding) as f:
                content = f.read().lstrip("\ufeff").strip()
        except OSError as e:
            logger.error(f"Error reading JSON record file {self.filepath}: {e}")
            raise IngestionError(f"Failed to read JSON records: {e}") from e

        if content.startswith("["):
            try:
                rows = json.loads(content)
            except json.JSONDecodeError as e:
                raise IngestionError(f"Invalid JSON array: {e}") from e

            for idx, row in enumerate(rows):
                if isinstance(row, dict):
                    yield row
                else:
                    logger.warning(f"Non-dict entry at index {idx}: {type(row)}")
            return

        for line_num, line in enumerate(content.split("\n"), start=1):
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError:
                logger.warning(f"Malformed JSON at line {line_num}: {line[:100]}")
                continue
            if isinstance(row, dict):
                yield row
            else:
                logger.warning(f"NDJSON line {line_num} not a dict: {type(row)}")


class CSVRecordSource(FileRecordSource):
    """
    Ingests CSV records. First row must contain headers.

    Example:
        puesto,indicador,conceptoDetalle,sucursal,negocio,periodo,valor
        Cashier,Sales,1002,North,1,202401,0.034
    """

    def __init__(
        self,
        filepath: Union[str, Path],
        encoding: str = "utf-8",
        delimiter: str = ","
    ):
        super().__init__(filepath, encoding)
        self.delimiter = delimiter

    def ingest(self) -> Iterator[Dict[str, Any]]:
        try:
            with open(self.filepath, "r", encoding=self.encoding, newline="") as f:
                reader = csv.DictReader(f, delimiter=self.delimiter)

                if reader.fieldnames is None:
                    raise IngestionError("CSV file is empty")

                # Normalize BOM in header if present
                reader.fieldnames = [
                    name.lstrip("\ufeff") if isinstance(name, str) else name
                    for name in reader.fieldnames
                ]

                for line_num, row in enumerate(reader, start=2):
                    if row is None or all(v in (None, "") for v in row.values()):
                        logger.warning(f"Empty row at line {line_num}")
                        continue
                    yield row
        except IngestionError:
            raise
        except (OSError, csv.Error) as e:
            logger.error(f"Error reading CSV record file {self.filepath}: {e}")
            raise IngestionError(f"Failed to read CSV records: {e}") from e


class DataFrameRecordSource(BaseRecordSource):
    """Ingests rows of an in-memory pandas DataFrame."""

    def __init__(self, frame: pd.DataFrame):
        self.frame = frame

    def ingest(self) -> Iterator[Dict[str, Any]]:
        # NaN cells become None so missing values stay distinguishable from 0
        cleaned = self.frame.astype(object).where(pd.notna(self.frame), None)
        for row in cleaned.to_dict(orient="records"):
            yield row


def ingest_records(
    source: Union[str, Path, pd.DataFrame],
    format: str = "auto"
) -> Iterator[Dict[str, Any]]:
    """
    Convenience function to ingest raw rows from a file or DataFrame.

    Args:
        source: Path to a record file, or a DataFrame
        format: "csv", "json", or "auto" for detection by extension

    Yields:
        Raw row dicts

    Raises:
        IngestionError: If file not found or format unsupported
    """
    if isinstance(source, pd.DataFrame):
        yield from DataFrameRecordSource(source).ingest()
        return

    filepath = Path(source)
    if format == "auto":
        suffix = filepath.suffix.lower()
        if suffix in (".json", ".ndjson", ".jsonl"):
            format = "json"
        elif suffix in (".csv", ".txt"):
            format = "csv"
        else:
            raise IngestionError(f"Cannot detect record format for: {filepath}")

    if format == "json":
        record_source: BaseRecordSource = JSONRecordSource(filepath)
    elif format == "csv":
        record_source = CSVRecordSource(filepath)
    else:
        raise IngestionError(f"Unknown format: {format}")

    yield from record_source.ingest()


def _resolve_columns(row: Mapping[str, Any]) -> Dict[str, str]:
    """Map canonical field names to the row's actual column names."""
    lowered = {str(name).strip().lower(): name for name in row.keys()}
    resolved: Dict[str, str] = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in lowered:
                resolved[field] = lowered[alias]
                break
    return resolved


def parse_value(raw: Any) -> Optional[float]:
    """
    Parse a numeric cell.

    Empty cells and unparseable text become None; "12.5%" becomes 0.125.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    text = str(raw).strip()
    if not text:
        return None
    scale = 1.0
    if text.endswith("%"):
        text = text[:-1].strip()
        scale = 0.01
    try:
        return float(text) * scale
    except ValueError:
        return None


def parse_record(raw: Mapping[str, Any]) -> Optional[RawRecord]:
    """
    Convert one raw row into a RawRecord.

    Returns:
        RawRecord, or None if a key column is missing or invalid
    """
    columns = _resolve_columns(raw)
    missing = [f for f in REQUIRED_FIELDS if f not in columns or raw.get(columns[f]) in (None, "")]
    if missing:
        logger.debug(f"Skipping row without {missing}")
        return None

    value = parse_value(raw.get(columns["value"])) if "value" in columns else None
    if value is not None and not is_finite_number(value):
        value = None

    try:
        return RawRecord(
            position=raw[columns["position"]],
            indicator=raw[columns["indicator"]],
            concept=raw[columns["concept"]],
            branch=raw[columns["branch"]],
            business_unit=raw[columns["business_unit"]],
            period=raw[columns["period"]],
            value=value,
        )
    except ValidationError as e:
        logger.debug(f"Invalid row skipped: {e}")
        return None


def parse_records(raw_rows: List[Mapping[str, Any]]) -> Tuple[List[RawRecord], int]:
    """
    Parse multiple rows, collecting results and skip count.

    Example:
        records, skipped = parse_records(list(ingest_records("export.csv")))
        logger.info(f"Parsed {len(records)} records, skipped {skipped}")
    """
    records: List[RawRecord] = []
    skipped = 0

    for raw in raw_rows:
        record = parse_record(raw)
        if record is not None:
            records.append(record)
        else:
            skipped += 1

    if skipped:
        logger.warning(f"Skipped {skipped} malformed rows out of {len(raw_rows)}")
    return records, skipped
