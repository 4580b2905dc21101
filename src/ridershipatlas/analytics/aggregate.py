from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Literal, Optional, Sequence, Union

import pandas as pd

from ridershipatlas.analytics.selection import RecordFilter, apply_filters, as_text
from ridershipatlas.preprocessing.pivot import RecordLike, coerce_numbers, records_to_frame
from ridershipatlas.schemas.core import (
    AggregateBucket,
    DirectionalBucket,
    HeatmapPoint,
    HeatmapSeries,
)


logger = logging.getLogger(__name__)

AggregateMode = Literal["by_hour", "by_hour_direction", "by_station", "by_day_of_week", "heatmap"]

DEFAULT_TIMEZONE = "Asia/Seoul"
# Sunday-first, matching weekday index 0=Sunday..6=Saturday.
WEEKDAY_LABELS: tuple[str, ...] = ("일", "월", "화", "수", "목", "금", "토")
# A trailing UTC offset (or `Z`) after a clock time marks an offset-aware timestamp.
_OFFSET_SUFFIX = r"\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?\s*(?:Z|[+-]\d{2}(?::?\d{2})?)$"


@dataclass(frozen=True)
class FieldMap:
    """Names of the record fields the aggregator reads."""

    time: str = "time"
    value: str = "value"
    station: str = "역명"
    route: str = "노선번호"
    type: str = "type"
    # True when `time` holds a timestamp rather than an `HH` label.
    time_is_timestamp: bool = False


FEED_FIELDS = FieldMap(value="crowd", station="stopName", route="routeNo", time_is_timestamp=True)
LONG_FIELDS = FieldMap()


def long_fields(*, station: str, route: str) -> FieldMap:
    return FieldMap(station=station, route=route)


def round_half_up(value: Optional[float]) -> int:
    if value is None or pd.isna(value):
        return 0
    return int(math.floor(float(value) + 0.5))


def _prepare(
    records: Iterable[RecordLike],
    filters: Optional[RecordFilter],
    fields: FieldMap,
) -> pd.DataFrame:
    selected = apply_filters(records, filters, route_field=fields.route, station_field=fields.station)
    df = records_to_frame(selected, columns=[fields.time, fields.value, fields.station, fields.route, fields.type])
    df["_value"] = coerce_numbers(df[fields.value])
    df["_station"] = df[fields.station].map(as_text)
    return df


def local_timestamps(values: pd.Series, *, timezone: str = DEFAULT_TIMEZONE) -> pd.Series:
    """
    Parse ISO 8601 timestamps into naive local wall-clock time.

    Offset-aware values are converted to `timezone`; naive values are taken as local already.
    Unparseable values become NaT.
    """

    out = pd.Series(pd.NaT, index=values.index, dtype="datetime64[ns]")
    if values.empty:
        return out

    text = values.map(as_text).astype(str).str.strip()
    aware = text.str.contains(_OFFSET_SUFFIX, case=False, regex=True).fillna(False).astype(bool)
    if aware.any():
        parsed = pd.to_datetime(text[aware], errors="coerce", utc=True, format="ISO8601")
        out[aware] = parsed.dt.tz_convert(timezone).dt.tz_localize(None)
    if (~aware).any():
        out[~aware] = pd.to_datetime(text[~aware], errors="coerce", format="ISO8601")
    return out


def _hour_labels(df: pd.DataFrame, fields: FieldMap, timezone: str) -> pd.Series:
    if fields.time_is_timestamp:
        ts = local_timestamps(df[fields.time], timezone=timezone)
        return ts.dt.strftime("%H")
    labels = df[fields.time].map(as_text)
    return labels.where(labels != "")


def _station_domain(observed: Iterable[str], stations: Optional[Sequence[str]]) -> list[str]:
    if stations is not None:
        return [str(s) for s in stations]
    return sorted({s for s in observed if s})


def by_hour(
    records: Iterable[RecordLike],
    *,
    filters: Optional[RecordFilter] = None,
    fields: FieldMap = LONG_FIELDS,
    timezone: str = DEFAULT_TIMEZONE,
) -> list[AggregateBucket]:
    """Sum of values per hour label, ascending by label."""

    df = _prepare(records, filters, fields)
    if df.empty:
        return []
    df["_hour"] = _hour_labels(df, fields, timezone)
    df = df.dropna(subset=["_hour"])
    grouped = df.groupby("_hour", sort=True)["_value"].sum()
    return [AggregateBucket(category=str(hour), metric=float(total)) for hour, total in grouped.items()]


def by_hour_direction(
    records: Iterable[RecordLike],
    *,
    filters: Optional[RecordFilter] = None,
    fields: FieldMap = LONG_FIELDS,
    timezone: str = DEFAULT_TIMEZONE,
) -> list[DirectionalBucket]:
    """Boarding and alighting sums side by side per hour; untyped records count as alighting."""

    df = _prepare(records, filters, fields)
    if df.empty:
        return []
    df["_hour"] = _hour_labels(df, fields, timezone)
    df = df.dropna(subset=["_hour"])
    is_boarding = df[fields.type].map(as_text) == "boarding"
    boarding = df[is_boarding].groupby("_hour")["_value"].sum()
    alighting = df[~is_boarding].groupby("_hour")["_value"].sum()

    out = []
    for hour in sorted(df["_hour"].unique()):
        out.append(
            DirectionalBucket(
                category=str(hour),
                boarding=float(boarding.get(hour, 0.0)),
                alighting=float(alighting.get(hour, 0.0)),
            )
        )
    return out


def by_station(
    records: Iterable[RecordLike],
    *,
    filters: Optional[RecordFilter] = None,
    fields: FieldMap = FEED_FIELDS,
    stations: Optional[Sequence[str]] = None,
) -> list[AggregateBucket]:
    """
    Rounded mean per station over a fixed station domain.

    `stations` is the known ordering; without it the observed stations are used alphabetically.
    Stations outside a supplied domain are not reported. With a station filter active,
    zero buckets are dropped.
    """

    df = _prepare(records, filters, fields)
    means = df.groupby("_station")["_value"].mean() if not df.empty else pd.Series(dtype=float)
    domain = _station_domain(means.index, stations)

    out = [AggregateBucket(category=name, metric=round_half_up(means.get(name))) for name in domain]
    if filters is not None and filters.has_station:
        out = [b for b in out if b.metric != 0]
    return out


def by_day_of_week(
    records: Iterable[RecordLike],
    *,
    filters: Optional[RecordFilter] = None,
    fields: FieldMap = FEED_FIELDS,
    timezone: str = DEFAULT_TIMEZONE,
    labels: Sequence[str] = WEEKDAY_LABELS,
) -> list[AggregateBucket]:
    """Rounded mean per weekday; always seven buckets, Sunday first."""

    if len(labels) != 7:
        raise ValueError(f"Expected 7 weekday labels, got {len(labels)}")

    df = _prepare(records, filters, fields)
    means: Union[pd.Series, dict] = {}
    if not df.empty:
        ts = local_timestamps(df[fields.time], timezone=timezone)
        df["_weekday"] = (ts.dt.dayofweek + 1) % 7
        df = df.dropna(subset=["_weekday"])
        if not df.empty:
            df["_weekday"] = df["_weekday"].astype(int)
            means = df.groupby("_weekday")["_value"].mean()

    return [AggregateBucket(category=labels[i], metric=round_half_up(means.get(i))) for i in range(7)]


def heatmap(
    records: Iterable[RecordLike],
    *,
    filters: Optional[RecordFilter] = None,
    fields: FieldMap = FEED_FIELDS,
    stations: Optional[Sequence[str]] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> list[HeatmapSeries]:
    """
    Station x hour matrix of rounded means.

    One series per known station, in reverse station order so the first station renders on top.
    Every series spans the hours observed anywhere in the filtered records.
    """

    df = _prepare(records, filters, fields)
    hours: list[str] = []
    cells: Union[pd.Series, dict] = {}
    if not df.empty:
        df["_hour"] = _hour_labels(df, fields, timezone)
        df = df.dropna(subset=["_hour"])
        if not df.empty:
            hours = sorted(str(h) for h in df["_hour"].unique())
            cells = df.groupby(["_station", "_hour"])["_value"].mean()

    observed = df["_station"].unique() if "_station" in df.columns else []
    domain = _station_domain(observed, stations)

    out = []
    for name in reversed(domain):
        data = [HeatmapPoint(x=hour, y=round_half_up(cells.get((name, hour)))) for hour in hours]
        out.append(HeatmapSeries(name=name, data=data))
    return out


def aggregate(
    records: Iterable[RecordLike],
    mode: AggregateMode,
    *,
    filters: Optional[RecordFilter] = None,
    fields: FieldMap = FEED_FIELDS,
    stations: Optional[Sequence[str]] = None,
    timezone: str = DEFAULT_TIMEZONE,
    weekday_labels: Sequence[str] = WEEKDAY_LABELS,
) -> Union[list[AggregateBucket], list[DirectionalBucket], list[HeatmapSeries]]:
    """Dispatch to one grouping; every mode is total over empty input."""

    records = list(records)
    logger.debug("aggregate mode=%s records=%s filters=%s", mode, len(records), filters)
    if mode == "by_hour":
        return by_hour(records, filters=filters, fields=fields, timezone=timezone)
    if mode == "by_hour_direction":
        return by_hour_direction(records, filters=filters, fields=fields, timezone=timezone)
    if mode == "by_station":
        return by_station(records, filters=filters, fields=fields, stations=stations)
    if mode == "by_day_of_week":
        return by_day_of_week(records, filters=filters, fields=fields, timezone=timezone, labels=weekday_labels)
    if mode == "heatmap":
        return heatmap(records, filters=filters, fields=fields, stations=stations, timezone=timezone)
    raise ValueError(f"Unsupported aggregate mode: {mode}")
