from __future__ import annotations

import logging

from ridershipatlas.schemas.core import FileKind


logger = logging.getLogger(__name__)

SPREADSHEET_EXTENSIONS = frozenset({"xlsx", "xls"})
DELIMITED_EXTENSIONS = frozenset({"csv"})

# Substring markers in export file names, checked in priority order.
_NAME_MARKERS: tuple[tuple[str, FileKind], ...] = (
    ("승하차_인원_정보", "ride_alight_by_hour"),
    ("정류장별_승차피벗_모음", "stop_pivot_board"),
    ("정류장별_하차피벗_모음", "stop_pivot_alight"),
    ("노선기반_승차피벗_모음", "route_pivot_board"),
    ("노선기반_하차피벗_모음", "route_pivot_alight"),
)
BY_TIME_PREFIX = "시간대별_"


def file_extension(name: str) -> str:
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def classify(name: str) -> tuple[FileKind, str]:
    """
    Map a file name to its layout kind and lower-cased extension.

    Name markers win over the extension, so a `..._승차피벗_모음.xlsx` is still a pivot board.
    """

    extension = file_extension(name)
    kind: FileKind = "unknown"
    for marker, marker_kind in _NAME_MARKERS:
        if marker in name:
            kind = marker_kind
            break
    else:
        if name.startswith(BY_TIME_PREFIX):
            kind = "by_time"
        elif extension in SPREADSHEET_EXTENSIONS:
            kind = "excel"

    logger.debug("Classified %s as %s (extension=%r)", name, kind, extension)
    return kind, extension
