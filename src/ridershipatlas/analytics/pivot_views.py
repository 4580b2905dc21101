from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from ridershipatlas.analytics.aggregate import by_hour, long_fields
from ridershipatlas.analytics.selection import RecordFilter, candidates, field_equals, select
from ridershipatlas.preprocessing.pivot import index_columns, pivot_plain
from ridershipatlas.schemas.core import AggregateBucket, Direction, FlatRow, ParsedFile


def _leading_keys(rows: Sequence[FlatRow]) -> tuple[Optional[str], Optional[str]]:
    if not rows:
        return None, None
    keys = index_columns(rows[0].keys())
    first = keys[0] if keys else None
    second = keys[1] if len(keys) > 1 else None
    return first, second


def _first_rows(files: Iterable[ParsedFile], kind: str) -> list[FlatRow]:
    for f in files:
        if f.kind == kind:
            return f.rows
    return []


@dataclass(frozen=True)
class PivotBoards:
    """
    The stop/route pivot exports loaded side by side.

    Route tables lead with (route, stop) columns; stop tables lead with (stop, route).
    """

    stop_board: list[FlatRow] = field(default_factory=list)
    stop_alight: list[FlatRow] = field(default_factory=list)
    route_board: list[FlatRow] = field(default_factory=list)
    route_alight: list[FlatRow] = field(default_factory=list)
    time_files: list[ParsedFile] = field(default_factory=list)

    @classmethod
    def from_files(cls, files: Sequence[ParsedFile]) -> "PivotBoards":
        return cls(
            stop_board=_first_rows(files, "stop_pivot_board"),
            stop_alight=_first_rows(files, "stop_pivot_alight"),
            route_board=_first_rows(files, "route_pivot_board"),
            route_alight=_first_rows(files, "route_pivot_alight"),
            time_files=[f for f in files if f.kind == "by_time"],
        )

    def _route_rows(self, metric: Optional[Direction] = None) -> list[FlatRow]:
        if metric is None:
            return self.route_board or self.route_alight
        return self.route_board if metric == "boarding" else self.route_alight

    def _stop_rows(self, metric: Optional[Direction] = None) -> list[FlatRow]:
        if metric is None:
            return self.stop_board or self.stop_alight
        return self.stop_board if metric == "boarding" else self.stop_alight

    def route_candidates(self) -> list[str]:
        rows = self._route_rows()
        route_key, _ = _leading_keys(rows)
        return [] if route_key is None else candidates(rows, route_key)

    def stop_candidates(self) -> list[str]:
        rows = self._stop_rows()
        stop_key, _ = _leading_keys(rows)
        return [] if stop_key is None else candidates(rows, stop_key)

    def time_series(
        self,
        metric: Direction = "boarding",
        *,
        route: Optional[str] = None,
        stop: Optional[str] = None,
    ) -> list[AggregateBucket]:
        """
        Hourly totals for the selected route (optionally narrowed to one stop) or stop.

        Route selection takes precedence when a route table is loaded.
        """

        if route and (self.route_board or self.route_alight):
            rows = self._route_rows(metric)
            route_key, stop_key = _leading_keys(rows)
            if route_key is None:
                return []
            stop_key = stop_key or route_key
            selected = select(rows, field_equals(route_key, route))
            long = pivot_plain(selected, [route_key, stop_key])
            fields = long_fields(station=stop_key, route=route_key)
            return by_hour(long, filters=RecordFilter(station=stop or None), fields=fields)

        if stop and (self.stop_board or self.stop_alight):
            rows = self._stop_rows(metric)
            stop_key, route_key = _leading_keys(rows)
            if stop_key is None:
                return []
            route_key = route_key or stop_key
            selected = select(rows, field_equals(stop_key, stop))
            long = pivot_plain(selected, [stop_key, route_key])
            return by_hour(long, fields=long_fields(station=stop_key, route=route_key))

        return []

    def time_file_names(self) -> list[str]:
        return [f.name for f in self.time_files]

    def time_file(self, name: str) -> list[FlatRow]:
        for f in self.time_files:
            if f.name == name:
                return f.rows
        return []
