from __future__ import annotations

from ridershipatlas.analytics.pivot_views import PivotBoards
from ridershipatlas.schemas.core import AggregateBucket, ParsedFile


ROUTE_BOARD = [
    {"노선": "100", "정류장": "A", "07": "1", "08": "2"},
    {"노선": "100", "정류장": "B", "07": "3", "08": "4"},
    {"노선": "200", "정류장": "A", "07": "9", "08": "9"},
]
STOP_ALIGHT = [
    {"정류장": "A", "노선": "100", "07시": "1", "08시": "0"},
    {"정류장": "A", "노선": "200", "07시": "5", "08시": "2"},
    {"정류장": "B", "노선": "100", "07시": "7", "08시": "7"},
]


def _boards() -> PivotBoards:
    return PivotBoards.from_files(
        [
            ParsedFile("노선기반_승차피벗_모음.csv", "route_pivot_board", ROUTE_BOARD),
            ParsedFile("정류장별_하차피벗_모음.csv", "stop_pivot_alight", STOP_ALIGHT),
            ParsedFile("시간대별_07시.csv", "by_time", [{"노선": "100", "합계": "3"}]),
            ParsedFile("notes.csv", "unknown", [{"x": "1"}]),
        ]
    )


def test_route_series_sums_stops_of_the_route() -> None:
    out = _boards().time_series("boarding", route="100")
    assert out == [AggregateBucket("07", 4.0), AggregateBucket("08", 6.0)]


def test_route_series_narrowed_to_one_stop() -> None:
    out = _boards().time_series("boarding", route="100", stop="A")
    assert out == [AggregateBucket("07", 1.0), AggregateBucket("08", 2.0)]


def test_stop_series_sums_routes_through_the_stop() -> None:
    out = _boards().time_series("alighting", stop="A")
    assert out == [AggregateBucket("07", 6.0), AggregateBucket("08", 2.0)]


def test_missing_table_or_selection_gives_empty_series() -> None:
    boards = _boards()
    assert boards.time_series("boarding") == []
    # No stop-boarding table is loaded.
    assert boards.time_series("boarding", stop="A") == []
    assert PivotBoards().time_series("boarding", route="100") == []


def test_candidates_and_time_files() -> None:
    boards = _boards()
    assert boards.route_candidates() == ["100", "200"]
    assert boards.stop_candidates() == ["A", "B"]
    assert boards.time_file_names() == ["시간대별_07시.csv"]
    assert boards.time_file("시간대별_07시.csv") == [{"노선": "100", "합계": "3"}]
    assert boards.time_file("missing.csv") == []
    assert PivotBoards().route_candidates() == []


def test_single_index_column_board_keeps_hour_columns_as_values() -> None:
    boards = PivotBoards.from_files(
        [ParsedFile("정류장별_승차피벗_모음.csv", "stop_pivot_board", [{"정류장": "A", "07": "2", "08": "5"}])]
    )
    assert boards.stop_candidates() == ["A"]
    assert boards.time_series("boarding", stop="A") == [AggregateBucket("07", 2.0), AggregateBucket("08", 5.0)]
