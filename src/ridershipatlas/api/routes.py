from __future__ import annotations

import logging
# `Literal` restricts query parameters to the documented set of values (FastAPI validates them).
from typing import Literal, NoReturn, Optional

# FastAPI primitives:
# - `APIRouter` groups endpoints so the app factory can include them cleanly.
# - `Depends` injects the service per request (no global variables needed).
# - `HTTPException` turns domain errors into HTTP status codes + JSON error payloads.
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from ridershipatlas.api.schemas import (
    AggregateOut,
    AppConfigOut,
    CandidatesOut,
    DirectionalSeriesOut,
    FilesOut,
    FiltersOut,
    HealthOut,
    ParsedFileOut,
    PreviewOut,
    TimeSeriesOut,
)
from ridershipatlas.api.service import RidershipService
from ridershipatlas.errors import DecodeError, EmptyDataset, SchemaMismatch, UnsupportedFormat
from ridershipatlas.schemas.core import ParsedFile


logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> RidershipService:
    return request.app.state.ridership_service  # type: ignore[attr-defined]


def _raise_http(err: Exception) -> NoReturn:
    # Decode-time errors abort the load and are reported verbatim; nothing is retried.
    if isinstance(err, UnsupportedFormat):
        raise HTTPException(status_code=415, detail=str(err)) from err
    if isinstance(err, (DecodeError, EmptyDataset, SchemaMismatch)):
        raise HTTPException(status_code=422, detail=str(err)) from err
    if isinstance(err, FileNotFoundError):
        raise HTTPException(status_code=404, detail=f"Data file not found: {err}") from err
    raise err


def _file_out(parsed: ParsedFile) -> ParsedFileOut:
    columns = list(parsed.rows[0].keys()) if parsed.rows else []
    return ParsedFileOut(name=parsed.name, kind=parsed.kind, rows=len(parsed.rows), columns=columns)


def _filters(route: Optional[str], station: Optional[str]) -> FiltersOut:
    return FiltersOut(route=route or None, station=station or None)


@router.get("/health", response_model=HealthOut)
def health(service: RidershipService = Depends(get_service)) -> HealthOut:
    return HealthOut(files_loaded=len(service.list_files()), dataset_version=service.dataset_version)


@router.get("/config", response_model=AppConfigOut)
def get_config(service: RidershipService = Depends(get_service)) -> AppConfigOut:
    cfg = service.config
    return AppConfigOut(
        app_name=cfg.app.name,
        csv_encoding=cfg.ingestion.csv_encoding,
        upload_encoding=cfg.ingestion.upload_encoding,
        preview_rows=cfg.ingestion.preview_rows,
        pivot={
            "ride_alight_index_keys": cfg.pivot.ride_alight_index_keys,
            "route_key": cfg.pivot.route_key,
            "station_key": cfg.pivot.station_key,
            "strict_schema": cfg.pivot.strict_schema,
            "pad_hours": cfg.pivot.pad_hours,
        },
        aggregation={
            "timezone": cfg.aggregation.timezone,
            "station_order": cfg.aggregation.station_order,
            "weekday_labels": cfg.aggregation.weekday_labels,
        },
    )


# Upload endpoint: files are classified by name, decoded as UTF-8 and kept in memory.
# A file with the same name replaces the earlier one.
# The whole batch is decoded before anything is stored, so one bad file rejects the batch.
@router.post("/files", response_model=FilesOut)
def upload_files(
    files: list[UploadFile] = File(...),
    service: RidershipService = Depends(get_service),
) -> FilesOut:
    parsed: list[ParsedFile] = []
    for upload in files:
        name = upload.filename or "upload"
        try:
            parsed.append(service.decode_upload(name, upload.file.read()))
        except (UnsupportedFormat, DecodeError, EmptyDataset) as err:
            logger.warning("Rejected upload batch at %s: %s", name, err)
            _raise_http(err)
    service.add_files(parsed)
    return FilesOut(items=[_file_out(f) for f in service.list_files()], dataset_version=service.dataset_version)


@router.get("/files", response_model=FilesOut)
def list_files(service: RidershipService = Depends(get_service)) -> FilesOut:
    return FilesOut(items=[_file_out(f) for f in service.list_files()], dataset_version=service.dataset_version)


@router.get("/files/{name}/preview", response_model=PreviewOut)
def preview_file(
    name: str,
    limit: Optional[int] = None,
    service: RidershipService = Depends(get_service),
) -> PreviewOut:
    if limit is not None and limit <= 0:
        raise HTTPException(status_code=400, detail="limit must be positive")
    try:
        parsed, rows = service.preview(name, limit=limit)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown file: {name}")
    return PreviewOut(name=parsed.name, kind=parsed.kind, total_rows=len(parsed.rows), rows=rows)


@router.get("/boards/candidates", response_model=CandidatesOut)
def board_candidates(service: RidershipService = Depends(get_service)) -> CandidatesOut:
    return CandidatesOut(**service.board_candidates())


@router.get("/boards/timeseries", response_model=TimeSeriesOut)
def board_timeseries(
    metric: Literal["boarding", "alighting"] = "boarding",
    route: Optional[str] = None,
    stop: Optional[str] = None,
    service: RidershipService = Depends(get_service),
) -> TimeSeriesOut:
    points = service.board_timeseries(metric, route=route or None, stop=stop or None)
    return TimeSeriesOut(metric=metric, filters=_filters(route, stop), points=points)


@router.get("/ride_alight/candidates", response_model=CandidatesOut)
def ride_alight_candidates(service: RidershipService = Depends(get_service)) -> CandidatesOut:
    try:
        return CandidatesOut(**service.ride_alight_candidates())
    except (DecodeError, UnsupportedFormat, SchemaMismatch) as err:
        _raise_http(err)


@router.get("/ride_alight/hourly", response_model=DirectionalSeriesOut)
def ride_alight_hourly(
    route: Optional[str] = None,
    station: Optional[str] = None,
    service: RidershipService = Depends(get_service),
) -> DirectionalSeriesOut:
    try:
        points = service.ride_alight_hourly(route=route or None, station=station or None)
    except (DecodeError, UnsupportedFormat, SchemaMismatch) as err:
        _raise_http(err)
    return DirectionalSeriesOut(filters=_filters(route, station), points=points)


@router.get("/feed/candidates", response_model=CandidatesOut)
def feed_candidates(service: RidershipService = Depends(get_service)) -> CandidatesOut:
    try:
        return CandidatesOut(**service.feed_candidates())
    except (DecodeError, EmptyDataset, FileNotFoundError) as err:
        _raise_http(err)


@router.get("/feed/aggregate", response_model=AggregateOut)
def feed_aggregate(
    mode: Literal["by_hour", "by_station", "by_day_of_week", "heatmap"] = "by_hour",
    route: Optional[str] = None,
    station: Optional[str] = None,
    service: RidershipService = Depends(get_service),
) -> AggregateOut:
    try:
        items = service.feed_aggregate(mode, route=route or None, station=station or None)
    except (DecodeError, EmptyDataset, FileNotFoundError) as err:
        _raise_http(err)

    if mode == "heatmap":
        return AggregateOut(mode=mode, filters=_filters(route, station), series=items)
    return AggregateOut(mode=mode, filters=_filters(route, station), buckets=items)
