from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional

from ridershipatlas.preprocessing.pivot import RecordLike, record_mapping


Predicate = Callable[[Mapping[str, Any]], bool]


def as_text(value: Any) -> str:
    """String form used for exact matching; `100.0` compares equal to `"100"`."""

    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def field_equals(field: str, value: Any) -> Predicate:
    target = as_text(value)

    def _pred(record: Mapping[str, Any]) -> bool:
        return as_text(record.get(field)) == target

    return _pred


def all_of(*predicates: Predicate) -> Predicate:
    def _pred(record: Mapping[str, Any]) -> bool:
        return all(p(record) for p in predicates)

    return _pred


@dataclass(frozen=True)
class RecordFilter:
    """Exact-match route/station selection; unset (None or "") means no constraint."""

    route: Optional[str] = None
    station: Optional[str] = None

    @property
    def has_station(self) -> bool:
        return bool(self.station)

    @property
    def is_empty(self) -> bool:
        return not self.route and not self.station

    def predicate(self, *, route_field: str, station_field: str) -> Predicate:
        preds: list[Predicate] = []
        if self.route:
            preds.append(field_equals(route_field, self.route))
        if self.station:
            preds.append(field_equals(station_field, self.station))
        return all_of(*preds)


def select(records: Iterable[RecordLike], predicate: Predicate) -> list[RecordLike]:
    return [r for r in records if predicate(record_mapping(r))]


def apply_filters(
    records: Iterable[RecordLike],
    filters: Optional[RecordFilter],
    *,
    route_field: str,
    station_field: str,
) -> list[RecordLike]:
    if filters is None or filters.is_empty:
        return list(records)
    return select(records, filters.predicate(route_field=route_field, station_field=station_field))


def candidates(records: Iterable[RecordLike], field: str) -> list[str]:
    """Distinct non-empty values of `field`, sorted (dropdown options)."""

    values = {as_text(record_mapping(r).get(field)) for r in records}
    values.discard("")
    return sorted(values)
