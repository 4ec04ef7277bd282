"""
Command-line runner for Series Sentinel.

Loads a record file, evaluates one or both alert families for a period and
prints the JSON response.

Example:
    series-sentinel export.csv --period 202452 --family all --branch north
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, ValidationError

from series_sentinel.anomaly import AlertEngine
from series_sentinel.core.config import AlertConfig, config
from series_sentinel.core.exceptions import ConfigurationError, IngestionError
from series_sentinel.core.logging_config import setup_logging
from series_sentinel.data.repository import InMemorySeriesRepository

logger = logging.getLogger("series_sentinel.cli")

PRESETS = {
    "default": AlertConfig,
    "conservative": AlertConfig.conservative,
    "exhaustive": AlertConfig.exhaustive,
}


def _option_names() -> Dict[str, str]:
    """Map every accepted option name (field name or camelCase alias) to its field."""
    names: Dict[str, str] = {}
    for name, info in AlertConfig.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
        if isinstance(info.validation_alias, AliasChoices):
            for choice in info.validation_alias.choices:
                if isinstance(choice, str):
                    names[choice] = name
    return names


def load_alert_config(path: Optional[str], preset: str = "default") -> AlertConfig:
    """
    Build the alert configuration from a preset and an optional JSON document.

    Keys in the document override the preset; camelCase option names are
    accepted.

    Raises:
        ConfigurationError: If the file is unreadable or the values are invalid
    """
    base = config.alerts if preset == "default" else PRESETS[preset]()
    if path is None:
        return base

    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e

    if not isinstance(document, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")

    names = _option_names()
    overrides: Dict[str, Any] = {}
    for option, value in document.items():
        if option not in names:
            logger.warning(f"Unknown alert option ignored: {option}")
            continue
        overrides[names[option]] = value

    try:
        return AlertConfig.model_validate({**base.model_dump(), **overrides})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid alert configuration in {path}: {e}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Business time-series anomaly alerts")
    parser.add_argument("source", help="Record file (.csv, .json, .ndjson)")
    parser.add_argument("--period", help="Period to evaluate (default: latest period in the file)")
    parser.add_argument("--family", choices=["zscore", "arima", "all"], default="zscore")
    parser.add_argument("--branch", default=None, help="Branch substring filter")
    parser.add_argument("--business-unit", default=None, help="Exact business unit filter")
    parser.add_argument("--config", default=None, help="JSON alert configuration document")
    parser.add_argument("--preset", choices=sorted(PRESETS), default="default")
    parser.add_argument("--workers", type=int, default=None, help="Threads used to evaluate keys")
    parser.add_argument("--output", default=None, help="Write the JSON response to this file")
    parser.add_argument("--log-level", default=None, help="Override SENTINEL_LOG_LEVEL")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level)

    try:
        alert_config = load_alert_config(args.config, args.preset)
        if args.workers is not None:
            if args.workers < 1:
                raise ConfigurationError("--workers must be at least 1")
            alert_config = alert_config.model_copy(update={"max_workers": args.workers})
        repository = InMemorySeriesRepository.from_source(args.source)
    except (ConfigurationError, IngestionError) as e:
        logger.error(str(e))
        return 2

    period = args.period
    if period is None:
        if not repository.periods:
            logger.error(f"No records found in {args.source}")
            return 2
        period = repository.periods[-1]
        logger.info(f"No period given, evaluating latest period {period}")

    engine = AlertEngine(repository=repository, config=alert_config)
    if args.family == "all":
        response = engine.run_all(period, args.branch, args.business_unit)
    else:
        response = engine.run(period, args.family, args.branch, args.business_unit)

    payload = response.model_dump_json(indent=2)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        logger.info(f"Response written to {args.output}")
    else:
        print(payload)

    return 0 if response.success else 1


if __name__ == "__main__":
    sys.exit(main())
