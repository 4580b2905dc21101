from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field


class HealthOut(BaseModel):
    status: str = "ok"
    files_loaded: int
    dataset_version: int


class PivotConfigOut(BaseModel):
    ride_alight_index_keys: list[str]
    route_key: str
    station_key: str
    strict_schema: bool
    pad_hours: bool


class AggregationConfigOut(BaseModel):
    timezone: str
    station_order: list[str]
    weekday_labels: list[str]


class AppConfigOut(BaseModel):
    app_name: str
    csv_encoding: str
    upload_encoding: str
    preview_rows: int
    pivot: PivotConfigOut
    aggregation: AggregationConfigOut


class ParsedFileOut(BaseModel):
    name: str
    kind: str = Field(..., examples=["stop_pivot_board", "ride_alight_by_hour", "by_time"])
    rows: int
    columns: list[str] = Field(default_factory=list)


class FilesOut(BaseModel):
    items: list[ParsedFileOut] = Field(default_factory=list)
    dataset_version: int


class PreviewOut(BaseModel):
    name: str
    kind: str
    total_rows: int
    rows: list[dict[str, Union[str, int, float, bool, None]]] = Field(default_factory=list)


class CandidatesOut(BaseModel):
    routes: list[str] = Field(default_factory=list)
    stations: list[str] = Field(default_factory=list)
    time_files: list[str] = Field(default_factory=list)


class BucketOut(BaseModel):
    category: str
    metric: float


class DirectionalBucketOut(BaseModel):
    category: str
    boarding: float
    alighting: float


class HeatmapPointOut(BaseModel):
    x: str
    y: int


class HeatmapSeriesOut(BaseModel):
    name: str
    data: list[HeatmapPointOut]


class FiltersOut(BaseModel):
    route: Optional[str] = None
    station: Optional[str] = None


class TimeSeriesOut(BaseModel):
    metric: str = Field(..., examples=["boarding", "alighting"])
    filters: FiltersOut
    points: list[BucketOut] = Field(default_factory=list)


class DirectionalSeriesOut(BaseModel):
    filters: FiltersOut
    points: list[DirectionalBucketOut] = Field(default_factory=list)


class AggregateOut(BaseModel):
    mode: str = Field(..., examples=["by_hour", "by_station", "by_day_of_week", "heatmap"])
    filters: FiltersOut
    buckets: list[BucketOut] = Field(default_factory=list)
    series: list[HeatmapSeriesOut] = Field(default_factory=list)
