from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Mapping, Sequence

from ridershipatlas.errors import SchemaMismatch


logger = logging.getLogger(__name__)

IssueLevel = Literal["error", "warning"]


@dataclass(frozen=True)
class SchemaIssue:
    level: IssueLevel
    row: int
    message: str


def validate_uniform_schema(
    rows: Sequence[Mapping[str, object]],
    *,
    time_columns: Sequence[str] = (),
    strict: bool = True,
) -> list[SchemaIssue]:
    """
    Check that every row carries the first row's column set.

    Missing hour columns are errors (they would silently pivot to 0); missing index columns
    and extra columns are warnings. If `strict=True`, any issue raises SchemaMismatch.
    """

    issues: list[SchemaIssue] = []
    if not rows:
        return issues

    expected = list(rows[0].keys())
    expected_set = set(expected)
    time_set = set(time_columns)

    for i, row in enumerate(rows[1:], start=1):
        keys = set(row.keys())
        missing = expected_set - keys
        extra = keys - expected_set
        missing_time = sorted(missing & time_set)
        if missing_time:
            issues.append(SchemaIssue("error", i, f"Missing hour columns: {missing_time}"))
        missing_other = sorted(missing - time_set)
        if missing_other:
            issues.append(SchemaIssue("warning", i, f"Missing columns: {missing_other}"))
        if extra:
            issues.append(SchemaIssue("warning", i, f"Columns not in first row (ignored): {sorted(extra)}"))

    for issue in issues:
        log_fn = logger.error if issue.level == "error" else logger.warning
        log_fn("[%s] row %s - %s", issue.level, issue.row, issue.message)

    if strict and issues:
        raise SchemaMismatch(f"Rows do not share the first row's schema ({len(issues)} issue(s)).")

    return issues
