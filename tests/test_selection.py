from ooh.data import empty_records, generate_demo_records
from ooh.filters import DashboardSettings
from ooh.selection import DEFAULT_VIEW, SINGLE_POINT_ZOOM, map_bounds, map_points, map_view, resolve_detail_rows
from tests.conftest import make_records


def test_selected_record_pins_detail(records):
    rows = resolve_detail_rows(records, "A3")
    assert rows["id"].tolist() == ["A3"]


def test_missing_selection_falls_back_to_top_grp(records):
    expected = ["A5", "A7", "A1", "A4", "A8", "A2", "A3", "A6"]
    assert resolve_detail_rows(records, "nope")["id"].tolist() == expected
    assert resolve_detail_rows(records, None)["id"].tolist() == expected


def test_selection_outside_subset_is_ignored(records):
    moscow = records[records["city"] == "Москва"]
    rows = resolve_detail_rows(moscow, "A5")
    assert "A5" not in rows["id"].tolist()
    assert len(rows) == len(moscow)


def test_top_rows_capped_at_twenty():
    demo = generate_demo_records(100)
    rows = resolve_detail_rows(demo, None)
    assert len(rows) == 20
    assert rows["grp"].is_monotonic_decreasing
    assert rows["grp"].iloc[0] == demo["grp"].max()


def test_detail_on_empty_subset():
    assert resolve_detail_rows(empty_records(), "A1").empty


def test_map_points_skip_unknown_locations(records):
    points, truncated = map_points(records)
    assert "A5" not in points["id"].tolist()
    assert len(points) == 7
    assert not truncated
    assert points.set_index("id").loc["A7", "high_grp"]
    assert not points.set_index("id").loc["A4", "high_grp"]


def test_map_points_cap_sets_truncated_flag(records):
    points, truncated = map_points(records, DashboardSettings(map_point_cap=3))
    assert truncated
    assert points["id"].tolist() == ["A1", "A2", "A3"]


def test_map_points_on_empty_subset():
    points, truncated = map_points(empty_records())
    assert points.empty
    assert not truncated


def test_map_view_defaults_and_single_point(records):
    assert map_view(empty_records()) == DEFAULT_VIEW
    single = make_records([{"lat": 55.0, "lng": 82.9}, {"lat": 55.0, "lng": 82.9}])
    view = map_view(single)
    assert view == {"latitude": 55.0, "longitude": 82.9, "zoom": SINGLE_POINT_ZOOM}


def test_map_bounds_ignore_zero_coordinates(records):
    bounds = map_bounds(records)
    assert bounds["min_lat"] == 55.7
    assert bounds["max_lat"] == 59.94
    assert bounds["min_lng"] == 30.33
    view = map_view(records)
    assert 1 <= view["zoom"] < SINGLE_POINT_ZOOM
