from __future__ import annotations

import sys
from pathlib import Path

# Allow running scripts without requiring an editable install (`pip install -e .`).
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
sys.path.insert(0, str(SRC_PATH))

import argparse
import logging

from ridershipatlas.config.loader import load_config
from ridershipatlas.errors import DecodeError, UnsupportedFormat
from ridershipatlas.ingestion.feed import convert_csv_to_feed
from ridershipatlas.utils.logging import configure_logging


logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Convert a legacy-encoded ridership CSV into the JSON row array served to the dashboard."
    )
    parser.add_argument("input_csv", nargs="?", default="dataFile/data.csv")
    parser.add_argument("--output-json", default="data/data.json")
    parser.add_argument("--config", default=None, help="Config JSON path.")
    parser.add_argument("--encoding", default=None, help="Source encoding (defaults to ingestion.csv_encoding).")
    args = parser.parse_args()

    config = load_config(args.config)
    configure_logging(config.logging)

    encoding = args.encoding or config.ingestion.csv_encoding
    logger.info("Reading %s with %s encoding", args.input_csv, encoding)
    try:
        count = convert_csv_to_feed(args.input_csv, args.output_json, encoding=encoding)
    except FileNotFoundError as err:
        logger.error("CSV file not found: %s", err)
        raise SystemExit(1)
    except (DecodeError, UnsupportedFormat) as err:
        logger.error("Conversion failed: %s", err)
        raise SystemExit(1)
    logger.info("Conversion done (%s rows)", count)


if __name__ == "__main__":
    main()
