from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Optional, Sequence

from ridershipatlas.analytics.aggregate import (
    FEED_FIELDS,
    AggregateMode,
    aggregate,
    by_hour_direction,
    long_fields,
)
from ridershipatlas.analytics.pivot_views import PivotBoards
from ridershipatlas.analytics.selection import RecordFilter, candidates
from ridershipatlas.config.models import AppConfig
from ridershipatlas.errors import EmptyDataset
from ridershipatlas.ingestion.decoder import decode_bytes, merge_parsed_files
from ridershipatlas.ingestion.feed import load_feed, load_table
from ridershipatlas.ingestion.kinds import classify
from ridershipatlas.preprocessing.pivot import pivot_ride_alight
from ridershipatlas.schemas.core import CrowdRecord, Direction, FlatRow, LongRecord, ParsedFile
from ridershipatlas.utils.memo import Memoizer


logger = logging.getLogger(__name__)


# `RidershipService` sits between the HTTP routes and the pure pivot/aggregate functions.
# It owns the in-memory files for this process and memoizes results per dataset version.
class RidershipService:
    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._files: list[ParsedFile] = []
        # Bumped on every upload so memo keys from older file sets never match.
        self._version = 0
        self._memo = Memoizer()
        # The crowd feed and the ride/alight table come from disk and are read lazily.
        self._feed: Optional[list[CrowdRecord]] = None
        self._ride_alight: Optional[list[LongRecord]] = None

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def dataset_version(self) -> int:
        return self._version

    # --- uploaded files -------------------------------------------------

    def decode_upload(self, name: str, data: bytes) -> ParsedFile:
        """Classify and decode one upload without storing it."""

        kind, _ = classify(name)
        rows = decode_bytes(name, data, encoding=self._config.ingestion.upload_encoding)
        if not rows:
            raise EmptyDataset(name)
        return ParsedFile(name=name, kind=kind, rows=rows)

    def add_files(self, parsed: Sequence[ParsedFile]) -> None:
        """Store an already decoded batch as one dataset version."""

        if not parsed:
            return
        self._files = merge_parsed_files(self._files, parsed)
        self._version += 1
        if any(f.kind == "ride_alight_by_hour" for f in parsed):
            self._ride_alight = None
        for f in parsed:
            logger.info("Stored %s as %s (%s rows, version=%s)", f.name, f.kind, len(f.rows), self._version)

    def add_upload(self, name: str, data: bytes) -> ParsedFile:
        parsed = self.decode_upload(name, data)
        self.add_files([parsed])
        return parsed

    def list_files(self) -> list[ParsedFile]:
        return list(self._files)

    def get_file(self, name: str) -> ParsedFile:
        for f in self._files:
            if f.name == name:
                return f
        raise KeyError(name)

    def preview(self, name: str, *, limit: Optional[int] = None) -> tuple[ParsedFile, list[FlatRow]]:
        parsed = self.get_file(name)
        n = limit or self._config.ingestion.preview_rows
        return parsed, parsed.rows[:n]

    # --- stop/route pivot boards -----------------------------------------

    def boards(self) -> PivotBoards:
        return PivotBoards.from_files(self._files)

    def board_candidates(self) -> dict[str, list[str]]:
        boards = self.boards()
        return {
            "routes": boards.route_candidates(),
            "stations": boards.stop_candidates(),
            "time_files": boards.time_file_names(),
        }

    def board_timeseries(
        self,
        metric: Direction,
        *,
        route: Optional[str] = None,
        stop: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        return self._memo.get_or_compute(
            "board_timeseries",
            {"v": self._version, "metric": metric, "route": route, "stop": stop},
            lambda: [asdict(b) for b in self.boards().time_series(metric, route=route, stop=stop)],
        )

    # --- ride/alight by hour ---------------------------------------------

    def _ride_alight_rows(self) -> list[FlatRow]:
        for f in self._files:
            if f.kind == "ride_alight_by_hour":
                return f.rows
        path = self._config.feed.ride_alight_path
        if path is None or not path.exists():
            return []
        return load_table(path, encoding=self._config.ingestion.csv_encoding)

    def ride_alight_records(self) -> list[LongRecord]:
        if self._ride_alight is None:
            pivot = self._config.pivot
            self._ride_alight = pivot_ride_alight(
                self._ride_alight_rows(),
                pivot.ride_alight_index_keys,
                strict=pivot.strict_schema,
                pad_hours=pivot.pad_hours,
            )
        return self._ride_alight

    def ride_alight_candidates(self) -> dict[str, list[str]]:
        records = self.ride_alight_records()
        return {
            "routes": candidates(records, self._config.pivot.route_key),
            "stations": candidates(records, self._config.pivot.station_key),
        }

    def ride_alight_hourly(self, *, route: Optional[str] = None, station: Optional[str] = None) -> list[dict[str, Any]]:
        pivot = self._config.pivot
        fields = long_fields(station=pivot.station_key, route=pivot.route_key)
        return self._memo.get_or_compute(
            "ride_alight_hourly",
            {"v": self._version, "route": route, "station": station},
            lambda: [
                asdict(b)
                for b in by_hour_direction(
                    self.ride_alight_records(),
                    filters=RecordFilter(route=route, station=station),
                    fields=fields,
                )
            ],
        )

    # --- crowd feed --------------------------------------------------------

    def feed_records(self) -> list[CrowdRecord]:
        if self._feed is None:
            self._feed = load_feed(self._config.feed.path)
        return self._feed

    def feed_candidates(self) -> dict[str, list[str]]:
        records = self.feed_records()
        return {
            "routes": candidates(records, FEED_FIELDS.route),
            "stations": candidates(records, FEED_FIELDS.station),
        }

    def feed_aggregate(
        self,
        mode: AggregateMode,
        *,
        route: Optional[str] = None,
        station: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        agg = self._config.aggregation

        def _compute() -> list[dict[str, Any]]:
            out = aggregate(
                self.feed_records(),
                mode,
                filters=RecordFilter(route=route, station=station),
                fields=FEED_FIELDS,
                stations=agg.station_order or None,
                timezone=agg.timezone,
                weekday_labels=agg.weekday_labels,
            )
            return [asdict(item) for item in out]

        return self._memo.get_or_compute(
            "feed_aggregate", {"mode": mode, "route": route, "station": station}, _compute
        )
