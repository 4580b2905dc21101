from __future__ import annotations

import sys
from pathlib import Path

# Allow running scripts without requiring an editable install (`pip install -e .`).
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
sys.path.insert(0, str(SRC_PATH))

import argparse
import logging
from dataclasses import asdict

import pandas as pd

from ridershipatlas.analytics.aggregate import by_hour, by_hour_direction, long_fields
from ridershipatlas.analytics.selection import RecordFilter
from ridershipatlas.config.loader import load_config
from ridershipatlas.errors import EmptyDataset
from ridershipatlas.ingestion.decoder import decode_path
from ridershipatlas.ingestion.kinds import classify
from ridershipatlas.preprocessing.pivot import index_columns, pivot_plain, pivot_ride_alight, records_to_frame
from ridershipatlas.utils.logging import configure_logging


logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(
        description=(
            "Pivot one ridership export to long form and print hourly totals.\n"
            "Pivot boards use up to two leading non-hour columns as index keys."
        )
    )
    parser.add_argument("input_file", help="CSV or workbook export.")
    parser.add_argument("--config", default=None, help="Config JSON path.")
    parser.add_argument("--encoding", default=None, help="CSV encoding (defaults to ingestion.csv_encoding).")
    parser.add_argument("--route", default=None)
    parser.add_argument("--station", default=None)
    parser.add_argument("--long-csv", default=None, help="Optional path to write the long-form records.")
    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(config.logging)

    input_path = Path(args.input_file)
    if not input_path.exists():
        raise FileNotFoundError(input_path)

    kind, _ = classify(input_path.name)
    rows = decode_path(input_path, encoding=args.encoding or config.ingestion.csv_encoding)
    if not rows:
        raise EmptyDataset(input_path.name)

    filters = RecordFilter(route=args.route, station=args.station)
    if kind == "ride_alight_by_hour":
        pivot = config.pivot
        records = pivot_ride_alight(
            rows, pivot.ride_alight_index_keys, strict=pivot.strict_schema, pad_hours=pivot.pad_hours
        )
        fields = long_fields(station=pivot.station_key, route=pivot.route_key)
        summary = pd.DataFrame([asdict(b) for b in by_hour_direction(records, filters=filters, fields=fields)])
    else:
        keys = index_columns(rows[0].keys())
        if not keys:
            raise ValueError(f"{input_path.name} has no index columns before its hour columns")
        if kind.startswith("stop_pivot"):
            fields = long_fields(station=keys[0], route=keys[-1])
        else:
            fields = long_fields(station=keys[-1], route=keys[0])
        records = pivot_plain(rows, keys, strict=config.pivot.strict_schema)
        summary = pd.DataFrame([asdict(b) for b in by_hour(records, filters=filters, fields=fields)])

    logger.info("%s: kind=%s rows=%s long_records=%s", input_path.name, kind, len(rows), len(records))
    if args.long_csv:
        out_path = Path(args.long_csv)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        records_to_frame(records).to_csv(out_path, index=False)
        logger.info("Wrote %s (%s rows)", out_path, len(records))

    print(summary.to_string(index=False) if not summary.empty else "(no hourly data)")


if __name__ == "__main__":
    main()
