from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from ridershipatlas.errors import DecodeError, UnsupportedFormat
from ridershipatlas.ingestion.decoder import decode_bytes, decode_path, load_files, merge_parsed_files
from ridershipatlas.schemas.core import ParsedFile


def test_decode_path_reads_legacy_korean_by_default(tmp_path: Path) -> None:
    p = tmp_path / "정류장별_승차피벗_모음.csv"
    p.write_bytes("정류장,노선,07,08\n강남역,100,5,3\n".encode("euc-kr"))

    rows = decode_path(p)
    assert rows == [{"정류장": "강남역", "노선": "100", "07": "5", "08": "3"}]


def test_decode_path_handles_extended_hangul(tmp_path: Path) -> None:
    # 똠 is outside KS X 1001, so a strict EUC-KR decoder rejects it.
    p = tmp_path / "2024_버스_승하차_인원_정보.csv"
    p.write_bytes("역명,7시승차총승객수\n똠방역,5\n".encode("cp949"))

    assert decode_path(p) == [{"역명": "똠방역", "7시승차총승객수": "5"}]


def test_decode_bytes_defaults_to_utf8_and_skips_blank_lines() -> None:
    data = "역명,07\nA,1\n,\n\nB,2\n".encode("utf-8")
    rows = decode_bytes("upload.csv", data)
    assert [r["역명"] for r in rows] == ["A", "B"]
    assert rows[1]["07"] == "2"


def test_decode_bytes_with_wrong_encoding_raises_decode_error() -> None:
    data = "역명,07\n강남,1\n".encode("euc-kr")
    with pytest.raises(DecodeError) as excinfo:
        decode_bytes("upload.csv", data, encoding="utf-8")
    assert "upload.csv" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)


def test_malformed_csv_raises_decode_error() -> None:
    with pytest.raises(DecodeError):
        decode_bytes("bad.csv", b"a,b\n1,2\n3,4,5\n")


def test_empty_csv_yields_no_rows() -> None:
    assert decode_bytes("empty.csv", b"") == []


def test_unsupported_extension() -> None:
    with pytest.raises(UnsupportedFormat) as excinfo:
        decode_bytes("notes.txt", b"hello")
    assert excinfo.value.extension == "txt"


def test_decode_xlsx_first_sheet(tmp_path: Path) -> None:
    p = tmp_path / "report.xlsx"
    with pd.ExcelWriter(p) as writer:
        pd.DataFrame([{"역명": "A역", "07": 5, "08": None}]).to_excel(writer, sheet_name="first", index=False)
        pd.DataFrame([{"other": 1}]).to_excel(writer, sheet_name="second", index=False)

    rows = decode_path(p)
    assert rows == [{"역명": "A역", "07": "5", "08": ""}]


def test_garbage_workbook_raises_decode_error() -> None:
    with pytest.raises(DecodeError):
        decode_bytes("broken.xlsx", b"this is not a workbook")


def test_load_files_classifies_each_file(tmp_path: Path) -> None:
    a = tmp_path / "시간대별_07시.csv"
    a.write_bytes("노선,정류장,합계\n100,A,3\n".encode("euc-kr"))
    parsed = load_files([a])
    assert parsed[0].name == "시간대별_07시.csv"
    assert parsed[0].kind == "by_time"
    assert parsed[0].rows[0]["합계"] == "3"


def test_merge_replaces_same_name_and_keeps_order() -> None:
    first = [ParsedFile("a.csv", "unknown", [{"x": "1"}]), ParsedFile("b.csv", "unknown", [])]
    merged = merge_parsed_files(first, [ParsedFile("a.csv", "unknown", [{"x": "2"}]), ParsedFile("c.csv", "unknown", [])])
    assert [f.name for f in merged] == ["a.csv", "b.csv", "c.csv"]
    assert merged[0].rows == [{"x": "2"}]
