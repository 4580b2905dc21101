from __future__ import annotations

import codecs
import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from ridershipatlas.analytics.aggregate import DEFAULT_TIMEZONE, WEEKDAY_LABELS
from ridershipatlas.config.models import (
    AggregationSettings,
    AppConfig,
    AppSettings,
    FeedSettings,
    IngestionSettings,
    LoggingSettings,
    PivotSettings,
)


DEFAULT_RIDE_ALIGHT_INDEX_KEYS = ["노선번호", "노선명", "역명"]


def _as_path(value: str, *, base_dir: Path) -> Path:
    candidate = Path(value)
    return candidate if candidate.is_absolute() else (base_dir / candidate)


def _check_encoding(value: str) -> str:
    try:
        codecs.lookup(value)
    except LookupError as err:
        raise ValueError(f"Unknown encoding: {value}") from err
    return value


def load_config(path: Optional[str | Path] = None, *, base_dir: Optional[Path] = None) -> AppConfig:
    """
    Load typed application config from JSON.

    - Path resolution is relative to `base_dir` (defaults to current working directory).
    - `.env` is loaded first so `RIDERSHIPATLAS_*` variables can override file values.
    """

    load_dotenv(".env")

    config_path = Path(
        path
        or os.getenv("RIDERSHIPATLAS_CONFIG_PATH", "config/default.json")
    ).resolve()
    base_dir = (base_dir or Path.cwd()).resolve()

    raw = json.loads(config_path.read_text(encoding="utf-8"))

    app_raw: Mapping[str, Any] = raw.get("app", {})
    app = AppSettings(name=str(app_raw.get("name", "RidershipAtlas")))

    ingestion_raw: Mapping[str, Any] = raw.get("ingestion", {})
    ingestion = IngestionSettings(
        csv_encoding=_check_encoding(
            os.getenv("RIDERSHIPATLAS_CSV_ENCODING") or str(ingestion_raw.get("csv_encoding", "cp949"))
        ),
        upload_encoding=_check_encoding(str(ingestion_raw.get("upload_encoding", "utf-8"))),
        preview_rows=int(ingestion_raw.get("preview_rows", 200)),
    )
    if ingestion.preview_rows <= 0:
        raise ValueError(f"ingestion.preview_rows must be positive: {ingestion.preview_rows}")

    pivot_raw: Mapping[str, Any] = raw.get("pivot", {})
    pivot = PivotSettings(
        ride_alight_index_keys=[
            str(k) for k in pivot_raw.get("ride_alight_index_keys", DEFAULT_RIDE_ALIGHT_INDEX_KEYS)
        ],
        route_key=str(pivot_raw.get("route_key", "노선번호")),
        station_key=str(pivot_raw.get("station_key", "역명")),
        strict_schema=bool(pivot_raw.get("strict_schema", False)),
        pad_hours=bool(pivot_raw.get("pad_hours", True)),
    )

    aggregation_raw: Mapping[str, Any] = raw.get("aggregation", {})
    aggregation = AggregationSettings(
        timezone=str(aggregation_raw.get("timezone", DEFAULT_TIMEZONE)),
        station_order=[str(s) for s in aggregation_raw.get("station_order", [])],
        weekday_labels=[str(s) for s in aggregation_raw.get("weekday_labels", WEEKDAY_LABELS)],
    )
    if len(aggregation.weekday_labels) != 7:
        raise ValueError(f"aggregation.weekday_labels must have 7 entries: {aggregation.weekday_labels}")

    feed_raw: Mapping[str, Any] = raw.get("feed", {})
    ride_alight_value = feed_raw.get("ride_alight_path")
    feed = FeedSettings(
        path=_as_path(
            os.getenv("RIDERSHIPATLAS_FEED_PATH") or str(feed_raw.get("path", "data/data.json")),
            base_dir=base_dir,
        ),
        ride_alight_path=(
            None if not ride_alight_value else _as_path(str(ride_alight_value), base_dir=base_dir)
        ),
    )

    logging_raw: Mapping[str, Any] = raw.get("logging", {})
    file_value = logging_raw.get("file")
    log_file = None if not file_value else _as_path(str(file_value), base_dir=base_dir)
    logging_settings = LoggingSettings(
        level=os.getenv("RIDERSHIPATLAS_LOG_LEVEL") or str(logging_raw.get("level", "INFO")),
        format=str(logging_raw.get("format", "%(asctime)s %(levelname)s %(name)s - %(message)s")),
        file=log_file,
    )

    return AppConfig(
        app=app,
        ingestion=ingestion,
        pivot=pivot,
        aggregation=aggregation,
        feed=feed,
        logging=logging_settings,
    )
