from __future__ import annotations

import logging
import math
import re
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import pandas as pd

from ridershipatlas.quality.schema import validate_uniform_schema
from ridershipatlas.schemas.core import CrowdRecord, Direction, LongRecord


logger = logging.getLogger(__name__)

PLAIN_HOUR_PATTERN = re.compile(r"^(\d{2})(?:시)?$")
RIDE_ALIGHT_PATTERN = re.compile(r"^(\d{1,2})시(승차|하차)총승객수$")
_DIRECTIONS: dict[str, Direction] = {"승차": "boarding", "하차": "alighting"}


def coerce_numbers(values: pd.Series) -> pd.Series:
    """Coerce cells to finite floats; blanks, garbage and booleans become 0 (thousands separators allowed)."""

    text = values.astype(str).str.strip().str.replace(",", "", regex=False)
    numbers = pd.to_numeric(text, errors="coerce")
    return numbers.replace([math.inf, -math.inf], math.nan).fillna(0.0).astype(float)


def to_number(value: Any) -> float:
    return float(coerce_numbers(pd.Series([value], dtype=object)).iloc[0])


def _hour_matrix(rows: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> list[list[float]]:
    # Missing cells come through as NaN and coerce to 0 with the rest of the block.
    frame = pd.DataFrame([dict(r) for r in rows], columns=list(columns), dtype=object)
    return frame.apply(coerce_numbers).to_numpy(dtype=float).tolist()


def _index_values(row: Mapping[str, Any], index_keys: Sequence[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for key in index_keys:
        value = row.get(key)
        out[key] = "" if value is None else str(value)
    return out


def plain_time_columns(columns: Iterable[str]) -> list[tuple[str, str]]:
    """Return `(column, hour)` pairs for `HH` / `HH시` columns in discovery order."""

    out = []
    for col in columns:
        match = PLAIN_HOUR_PATTERN.fullmatch(col)
        if match:
            out.append((col, match.group(1)))
    return out


def index_columns(columns: Iterable[str], *, limit: int = 2) -> list[str]:
    """Leading columns before the first `HH` / `HH시` column, at most `limit` of them."""

    out: list[str] = []
    for col in columns:
        if len(out) >= limit or PLAIN_HOUR_PATTERN.fullmatch(col):
            break
        out.append(col)
    return out


def ride_alight_time_columns(columns: Iterable[str], *, pad_hours: bool = True) -> list[tuple[str, str, Direction]]:
    out = []
    for col in columns:
        match = RIDE_ALIGHT_PATTERN.fullmatch(col)
        if match:
            hour = match.group(1).zfill(2) if pad_hours else match.group(1)
            out.append((col, hour, _DIRECTIONS[match.group(2)]))
    return out


def pivot_plain(
    rows: Sequence[Mapping[str, Any]],
    index_keys: Sequence[str],
    *,
    strict: bool = False,
) -> list[LongRecord]:
    """
    Melt a wide table with `HH`/`HH시` hour columns into one LongRecord per (row, hour column).

    The hour columns are taken from the first row only. Output is row-major in column
    discovery order; callers sort by `time` when they need to.
    """

    if not rows:
        return []

    time_cols = plain_time_columns(rows[0].keys())
    if strict:
        validate_uniform_schema(rows, time_columns=[c for c, _ in time_cols], strict=True)

    if not time_cols:
        return []

    matrix = _hour_matrix(rows, [c for c, _ in time_cols])
    out: list[LongRecord] = []
    for row, values in zip(rows, matrix):
        index_fields = _index_values(row, index_keys)
        for (_, hour), value in zip(time_cols, values):
            out.append(LongRecord(time=hour, value=value, index_fields=dict(index_fields)))

    logger.debug("pivot_plain: %s rows x %s hour columns -> %s records", len(rows), len(time_cols), len(out))
    return out


def pivot_ride_alight(
    rows: Sequence[Mapping[str, Any]],
    index_keys: Sequence[str],
    *,
    strict: bool = False,
    pad_hours: bool = True,
) -> list[LongRecord]:
    """
    Melt a `<H>시승차총승객수` / `<H>시하차총승객수` table into typed LongRecords.

    Boarding and alighting for the same hour stay separate records.
    """

    if not rows:
        return []

    time_cols = ride_alight_time_columns(rows[0].keys(), pad_hours=pad_hours)
    if strict:
        validate_uniform_schema(rows, time_columns=[c for c, _, _ in time_cols], strict=True)

    if not time_cols:
        return []

    matrix = _hour_matrix(rows, [c for c, _, _ in time_cols])
    out: list[LongRecord] = []
    for row, values in zip(rows, matrix):
        index_fields = _index_values(row, index_keys)
        for (_, hour, direction), value in zip(time_cols, values):
            out.append(
                LongRecord(
                    time=hour,
                    value=value,
                    type=direction,
                    index_fields=dict(index_fields),
                )
            )

    logger.debug(
        "pivot_ride_alight: %s rows x %s hour columns -> %s records", len(rows), len(time_cols), len(out)
    )
    return out


RecordLike = Union[LongRecord, CrowdRecord, Mapping[str, Any]]


def record_mapping(record: RecordLike) -> Mapping[str, Any]:
    if isinstance(record, (LongRecord, CrowdRecord)):
        return record.as_dict()
    return record


def records_to_frame(records: Iterable[RecordLike], *, columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    rows = [dict(record_mapping(r)) for r in records]
    df = pd.DataFrame(rows, dtype=object) if rows else pd.DataFrame(columns=list(columns or []))
    if columns is not None:
        for col in columns:
            if col not in df.columns:
                df[col] = None
    return df
