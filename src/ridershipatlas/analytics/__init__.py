__all__ = [
    "FieldMap",
    "PivotBoards",
    "RecordFilter",
    "aggregate",
    "apply_filters",
    "candidates",
]

from ridershipatlas.analytics.aggregate import FieldMap, aggregate
from ridershipatlas.analytics.pivot_views import PivotBoards
from ridershipatlas.analytics.selection import RecordFilter, apply_filters, candidates
