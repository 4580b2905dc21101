from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class AppSettings:
    name: str = "RidershipAtlas"


@dataclass(frozen=True)
class IngestionSettings:
    # Korean agency exports are cp949 (the EUC-KR superset) on disk; browser uploads arrive as UTF-8.
    csv_encoding: str = "cp949"
    upload_encoding: str = "utf-8"
    preview_rows: int = 200


@dataclass(frozen=True)
class PivotSettings:
    ride_alight_index_keys: list[str]
    route_key: str = "노선번호"
    station_key: str = "역명"
    strict_schema: bool = False
    pad_hours: bool = True


@dataclass(frozen=True)
class AggregationSettings:
    timezone: str
    station_order: list[str]
    weekday_labels: list[str]


@dataclass(frozen=True)
class FeedSettings:
    path: Path
    ride_alight_path: Optional[Path] = None


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    format: str
    file: Optional[Path] = None


@dataclass(frozen=True)
class AppConfig:
    app: AppSettings
    ingestion: IngestionSettings
    pivot: PivotSettings
    aggregation: AggregationSettings
    feed: FeedSettings
    logging: LoggingSettings
