from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Union


FileKind = Literal[
    "ride_alight_by_hour",
    "stop_pivot_board",
    "stop_pivot_alight",
    "route_pivot_board",
    "route_pivot_alight",
    "by_time",
    "excel",
    "unknown",
]
Direction = Literal["boarding", "alighting"]

# One decoded input line: column name -> cell value.
FlatRow = dict[str, Union[str, int, float]]


@dataclass(frozen=True)
class LongRecord:
    """
    One (entity, hour) observation produced by the pivot.

    `index_fields` carries the caller-selected index columns (route, station, ...) verbatim.
    """

    time: str
    value: float
    type: Optional[Direction] = None
    index_fields: dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"time": self.time, "value": self.value}
        if self.type is not None:
            out["type"] = self.type
        out.update(self.index_fields)
        return out


@dataclass(frozen=True)
class CrowdRecord:
    time: str
    stop_name: str
    route_no: str
    vehicle_no: str
    crowd: float

    def as_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "stopName": self.stop_name,
            "routeNo": self.route_no,
            "vehicleNo": self.vehicle_no,
            "crowd": self.crowd,
        }


@dataclass(frozen=True)
class AggregateBucket:
    category: str
    metric: float


@dataclass(frozen=True)
class DirectionalBucket:
    category: str
    boarding: float
    alighting: float


@dataclass(frozen=True)
class HeatmapPoint:
    x: str
    y: int


@dataclass(frozen=True)
class HeatmapSeries:
    name: str
    data: list[HeatmapPoint]


@dataclass(frozen=True)
class ParsedFile:
    name: str
    kind: FileKind
    rows: list[FlatRow]
