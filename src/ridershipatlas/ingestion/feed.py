from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from ridershipatlas.analytics.selection import as_text
from ridershipatlas.errors import DecodeError, EmptyDataset
from ridershipatlas.ingestion.decoder import decode_path
from ridershipatlas.ingestion.kinds import file_extension
from ridershipatlas.preprocessing.pivot import to_number
from ridershipatlas.schemas.core import CrowdRecord, FlatRow


logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as err:
        raise DecodeError(path.name, str(err)) from err


def parse_feed(payload: Any, *, name: str = "feed") -> list[CrowdRecord]:
    """
    Parse a `{status, count, data: [...]}` crowd feed (or a bare list of items).

    Items that are not JSON objects are skipped with a warning.
    """

    if isinstance(payload, Mapping):
        items = payload.get("data")
    else:
        items = payload
    if not isinstance(items, list):
        raise DecodeError(name, "expected a `data` array of records")

    records: list[CrowdRecord] = []
    skipped = 0
    for item in items:
        if not isinstance(item, Mapping):
            skipped += 1
            continue
        records.append(
            CrowdRecord(
                time=as_text(item.get("time")),
                stop_name=as_text(item.get("stopName")),
                route_no=as_text(item.get("routeNo")),
                vehicle_no=as_text(item.get("vehicleNo")),
                crowd=to_number(item.get("crowd")),
            )
        )
    if skipped:
        logger.warning("Skipped %s non-object items in %s", skipped, name)
    if not records:
        raise EmptyDataset(name)

    count = payload.get("count") if isinstance(payload, Mapping) else None
    if isinstance(count, int) and count != len(records):
        logger.warning("%s declares count=%s but holds %s records", name, count, len(records))
    logger.info("Loaded %s crowd records from %s", len(records), name)
    return records


def load_feed(path: str | Path) -> list[CrowdRecord]:
    path = Path(path)
    return parse_feed(_read_json(path), name=path.name)


def load_json_rows(path: str | Path) -> list[FlatRow]:
    """Read a JSON array of wide rows (the output of `convert_csv_to_feed`)."""

    path = Path(path)
    payload = _read_json(path)
    if not isinstance(payload, list) or not all(isinstance(r, Mapping) for r in payload):
        raise DecodeError(path.name, "expected a JSON array of objects")
    return [dict(r) for r in payload]


def load_table(path: str | Path, *, encoding: Optional[str] = None) -> list[FlatRow]:
    """Load wide rows from a converted JSON file or any decodable CSV/workbook."""

    path = Path(path)
    if file_extension(path.name) == "json":
        return load_json_rows(path)
    return decode_path(path, encoding=encoding)


def infer_scalar(value: Any) -> Union[str, int, float, bool]:
    """Turn numeric/boolean-looking cells into numbers/booleans; everything else stays text."""

    if not isinstance(value, str):
        return value
    text = value.strip()
    if text.lower() in ("true", "false"):
        return text.lower() == "true"
    if _INT_RE.match(text):
        return int(text)
    if _FLOAT_RE.match(text):
        return float(text)
    return value


def convert_csv_to_feed(csv_path: str | Path, json_path: str | Path, *, encoding: str = "cp949") -> int:
    """
    Convert a legacy-encoded CSV export into the JSON row array the dashboard loads.

    Returns the number of rows written.
    """

    csv_path = Path(csv_path)
    json_path = Path(json_path)
    if not csv_path.exists():
        raise FileNotFoundError(csv_path)

    rows = decode_path(csv_path, encoding=encoding)
    typed = [{k: infer_scalar(v) for k, v in row.items()} for row in rows]

    json_path.parent.mkdir(parents=True, exist_ok=True)
    json_path.write_text(json.dumps(typed, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Wrote %s rows to %s", len(typed), json_path)
    return len(typed)
