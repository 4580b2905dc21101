from __future__ import annotations

import json

from fastapi.testclient import TestClient

from ridershipatlas.api.app import create_app
from ridershipatlas.config.loader import load_config


def _client(write_config, tmp_path, **sections) -> TestClient:
    cfg = load_config(write_config(**sections), base_dir=tmp_path)
    return TestClient(create_app(cfg))


def _write_feed(tmp_path) -> None:
    items = [
        {"time": "2024-05-05T08:00:00", "stopName": "X", "routeNo": "100", "vehicleNo": "V1", "crowd": 10},
        {"time": "2024-05-05T08:20:00", "stopName": "X", "routeNo": "100", "vehicleNo": "V2", "crowd": 21},
        {"time": "2024-05-06T09:00:00", "stopName": "Y", "routeNo": "200", "vehicleNo": "V3", "crowd": 3},
    ]
    path = tmp_path / "data" / "data.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"status": "ok", "count": len(items), "data": items}), encoding="utf-8")


def test_health_and_config(write_config, tmp_path) -> None:
    client = _client(write_config, tmp_path)

    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "files_loaded": 0, "dataset_version": 0}

    cfg = client.get("/config").json()
    assert cfg["csv_encoding"] == "cp949"
    assert cfg["pivot"]["pad_hours"] is True
    assert len(cfg["aggregation"]["weekday_labels"]) == 7


def test_upload_list_and_preview(write_config, tmp_path) -> None:
    client = _client(write_config, tmp_path)
    body = "station,07,08\nA,1,2\nB,3,4\nC,5,6\n".encode("utf-8")

    resp = client.post("/files", files=[("files", ("stops.csv", body, "text/csv"))])
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["dataset_version"] == 1
    assert payload["items"] == [{"name": "stops.csv", "kind": "unknown", "rows": 3, "columns": ["station", "07", "08"]}]

    # Default preview size comes from ingestion.preview_rows.
    preview = client.get("/files/stops.csv/preview").json()
    assert preview["total_rows"] == 3
    assert [r["station"] for r in preview["rows"]] == ["A", "B"]
    assert len(client.get("/files/stops.csv/preview", params={"limit": 3}).json()["rows"]) == 3
    assert client.get("/files/stops.csv/preview", params={"limit": 0}).status_code == 400

    # Re-uploading the same name replaces the file.
    client.post("/files", files=[("files", ("stops.csv", b"station,07\nZ,9\n", "text/csv"))])
    files = client.get("/files").json()
    assert [(f["name"], f["rows"]) for f in files["items"]] == [("stops.csv", 1)]
    assert files["dataset_version"] == 2


def test_upload_errors(write_config, tmp_path) -> None:
    client = _client(write_config, tmp_path)

    resp = client.post("/files", files=[("files", ("notes.txt", b"hello", "text/plain"))])
    assert resp.status_code == 415

    resp = client.post("/files", files=[("files", ("empty.csv", b"a,b\n", "text/csv"))])
    assert resp.status_code == 422
    assert "no rows" in resp.json()["detail"]

    assert client.get("/files/missing.csv/preview").status_code == 404


def test_rejected_batch_stores_nothing(write_config, tmp_path) -> None:
    client = _client(write_config, tmp_path)
    client.post("/files", files=[("files", ("kept.csv", b"station,07\nA,1\n", "text/csv"))])

    resp = client.post(
        "/files",
        files=[
            ("files", ("kept.csv", b"station,07\nB,2\n", "text/csv")),
            ("files", ("good.csv", b"station,07\nC,3\n", "text/csv")),
            ("files", ("bad.txt", b"hello", "text/plain")),
        ],
    )
    assert resp.status_code == 415

    files = client.get("/files").json()
    assert [f["name"] for f in files["items"]] == ["kept.csv"]
    assert files["dataset_version"] == 1
    assert client.get("/files/kept.csv/preview").json()["rows"] == [{"station": "A", "07": "1"}]


def test_batch_upload_is_one_dataset_version(write_config, tmp_path) -> None:
    client = _client(write_config, tmp_path)
    resp = client.post(
        "/files",
        files=[
            ("files", ("a.csv", b"station,07\nA,1\n", "text/csv")),
            ("files", ("b.csv", b"station,07\nB,2\n", "text/csv")),
        ],
    )
    assert resp.status_code == 200
    assert [f["name"] for f in resp.json()["items"]] == ["a.csv", "b.csv"]
    assert resp.json()["dataset_version"] == 1


def test_board_timeseries_and_candidates(write_config, tmp_path) -> None:
    client = _client(write_config, tmp_path)
    service = client.app.state.ridership_service
    service.add_upload(
        "노선기반_승차피벗_모음.csv",
        "노선,정류장,07,08\n100,A,1,2\n100,B,3,4\n200,A,9,9\n".encode("utf-8"),
    )
    service.add_upload("시간대별_07시.csv", "노선,합계\n100,3\n".encode("utf-8"))

    cands = client.get("/boards/candidates").json()
    assert cands["routes"] == ["100", "200"]
    assert cands["stations"] == []
    assert cands["time_files"] == ["시간대별_07시.csv"]

    resp = client.get("/boards/timeseries", params={"metric": "boarding", "route": "100"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["filters"] == {"route": "100", "station": None}
    assert data["points"] == [{"category": "07", "metric": 4.0}, {"category": "08", "metric": 6.0}]

    resp = client.get("/boards/timeseries", params={"metric": "sideways"})
    assert resp.status_code == 422


def test_ride_alight_hourly_from_configured_file(write_config, tmp_path) -> None:
    csv_path = tmp_path / "dataFile" / "ride_alight.csv"
    csv_path.parent.mkdir()
    csv_path.write_bytes(
        (
            "노선번호,노선명,역명,7시승차총승객수,7시하차총승객수\n"
            "100,간선,A역,10,4\n"
            "200,지선,B역,5,6\n"
        ).encode("euc-kr")
    )
    client = _client(
        write_config, tmp_path, feed={"path": "data/data.json", "ride_alight_path": "dataFile/ride_alight.csv"}
    )

    cands = client.get("/ride_alight/candidates").json()
    assert cands["routes"] == ["100", "200"]
    assert cands["stations"] == ["A역", "B역"]

    data = client.get("/ride_alight/hourly").json()
    assert data["points"] == [{"category": "07", "boarding": 15.0, "alighting": 10.0}]

    data = client.get("/ride_alight/hourly", params={"route": "200"}).json()
    assert data["points"] == [{"category": "07", "boarding": 5.0, "alighting": 6.0}]


def test_feed_aggregates(write_config, tmp_path) -> None:
    _write_feed(tmp_path)
    client = _client(
        write_config, tmp_path, aggregation={"timezone": "Asia/Seoul", "station_order": ["X", "Y", "Z"]}
    )

    assert client.get("/feed/candidates").json()["stations"] == ["X", "Y"]

    weekly = client.get("/feed/aggregate", params={"mode": "by_day_of_week"}).json()
    assert [b["metric"] for b in weekly["buckets"]] == [16, 3, 0, 0, 0, 0, 0]
    assert weekly["series"] == []

    stations = client.get("/feed/aggregate", params={"mode": "by_station"}).json()
    assert [(b["category"], b["metric"]) for b in stations["buckets"]] == [("X", 16), ("Y", 3), ("Z", 0)]

    filtered = client.get("/feed/aggregate", params={"mode": "by_station", "station": "X"}).json()
    assert [b["category"] for b in filtered["buckets"]] == ["X"]

    heat = client.get("/feed/aggregate", params={"mode": "heatmap"}).json()
    assert [s["name"] for s in heat["series"]] == ["Z", "Y", "X"]
    assert heat["series"][2]["data"] == [{"x": "08", "y": 16}, {"x": "09", "y": 0}]

    assert client.get("/feed/aggregate", params={"mode": "bogus"}).status_code == 422


def test_missing_feed_is_not_found(write_config, tmp_path) -> None:
    client = _client(write_config, tmp_path)
    assert client.get("/feed/aggregate", params={"mode": "by_hour"}).status_code == 404
    assert client.get("/feed/candidates").status_code == 404
