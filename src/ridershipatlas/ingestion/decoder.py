from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

import pandas as pd

from ridershipatlas.errors import DecodeError, UnsupportedFormat
from ridershipatlas.ingestion.kinds import DELIMITED_EXTENSIONS, SPREADSHEET_EXTENSIONS, classify
from ridershipatlas.schemas.core import FlatRow, ParsedFile


logger = logging.getLogger(__name__)

# Superset of EUC-KR; agency exports contain syllables outside KS X 1001.
DEFAULT_DISK_ENCODING = "cp949"
DEFAULT_UPLOAD_ENCODING = "utf-8"

Source = Union[Path, io.BytesIO]


def _frame_to_rows(df: pd.DataFrame) -> list[FlatRow]:
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]
    df = df.fillna("")
    # Lines holding only delimiters decode to all-empty rows; treat them as blank lines.
    if len(df.columns):
        blank = (df.astype(str).apply(lambda col: col.str.strip()) == "").all(axis=1)
        df = df[~blank]
    return df.to_dict(orient="records")


def _read_csv(source: Source, *, name: str, encoding: str) -> list[FlatRow]:
    try:
        df = pd.read_csv(
            source,
            header=0,
            dtype=str,
            encoding=encoding,
            skip_blank_lines=True,
            keep_default_na=False,
        )
    except pd.errors.EmptyDataError:
        logger.warning("%s has no header row; treating as empty", name)
        return []
    except ValueError as err:
        # ParserError and UnicodeDecodeError are both ValueError subclasses.
        raise DecodeError(name, str(err)) from err
    return _frame_to_rows(df)


def _read_excel(source: Source, *, name: str) -> list[FlatRow]:
    try:
        df = pd.read_excel(source, sheet_name=0, header=0, dtype=str)
    except (ValueError, OSError, ImportError, KeyError, zipfile.BadZipFile) as err:
        raise DecodeError(name, str(err)) from err
    return _frame_to_rows(df)


def _dispatch(source: Source, *, name: str, encoding: str) -> list[FlatRow]:
    _, extension = classify(name)
    if extension in DELIMITED_EXTENSIONS:
        rows = _read_csv(source, name=name, encoding=encoding)
    elif extension in SPREADSHEET_EXTENSIONS:
        rows = _read_excel(source, name=name)
    else:
        raise UnsupportedFormat(name, extension)
    logger.info("Decoded %s (%s rows)", name, len(rows))
    return rows


def decode_path(path: str | Path, *, encoding: Optional[str] = None) -> list[FlatRow]:
    """
    Decode a CSV or workbook on disk into FlatRows.

    CSV exports on disk default to cp949; workbooks ignore `encoding`.
    """

    path = Path(path)
    return _dispatch(path, name=path.name, encoding=encoding or DEFAULT_DISK_ENCODING)


def decode_bytes(name: str, data: bytes, *, encoding: Optional[str] = None) -> list[FlatRow]:
    """Decode an uploaded file body; uploads default to UTF-8."""

    return _dispatch(io.BytesIO(data), name=name, encoding=encoding or DEFAULT_UPLOAD_ENCODING)


def load_files(paths: Iterable[str | Path], *, encoding: Optional[str] = None) -> list[ParsedFile]:
    parsed: list[ParsedFile] = []
    for p in paths:
        path = Path(p)
        kind, _ = classify(path.name)
        parsed.append(ParsedFile(name=path.name, kind=kind, rows=decode_path(path, encoding=encoding)))
    return parsed


def merge_parsed_files(existing: Sequence[ParsedFile], new: Iterable[ParsedFile]) -> list[ParsedFile]:
    """Later files replace earlier ones with the same name; first-seen order is kept."""

    merged: dict[str, ParsedFile] = {f.name: f for f in existing}
    for f in new:
        merged[f.name] = f
    return list(merged.values())
