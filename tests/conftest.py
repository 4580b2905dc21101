from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    """
    Keep a `src/` layout while allowing `pytest` to run without requiring an editable install.
    """

    project_root = Path(__file__).resolve().parents[1]
    src_path = project_root / "src"
    sys.path.insert(0, str(src_path))


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a config JSON under `tmp_path`; keyword overrides replace whole sections."""

    def _write(**sections: object) -> Path:
        cfg = {
            "app": {"name": "Test"},
            "ingestion": {"csv_encoding": "cp949", "upload_encoding": "utf-8", "preview_rows": 2},
            "pivot": {
                "ride_alight_index_keys": ["노선번호", "노선명", "역명"],
                "route_key": "노선번호",
                "station_key": "역명",
                "strict_schema": False,
                "pad_hours": True,
            },
            "aggregation": {"timezone": "Asia/Seoul", "station_order": []},
            "feed": {"path": "data/data.json", "ride_alight_path": None},
            "logging": {"level": "INFO", "format": "%(message)s"},
        }
        cfg.update(sections)
        path = tmp_path / "config.json"
        path.write_text(json.dumps(cfg, ensure_ascii=False), encoding="utf-8")
        return path

    return _write
