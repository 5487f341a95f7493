from ooh.dashboard import prepare_context
from ooh.filters import DashboardSettings, FilterState


def test_accepts_raw_filter_mapping(records):
    ctx = prepare_context(records, {"city": "Москва", "year": 2024, "month": "март"})
    assert ctx["filters"] == FilterState(city="Москва", year="2024", month="март")
    assert ctx["filtered"]["id"].tolist() == ["A1", "A8"]
    assert ctx["map_ready"]


def test_settings_drive_caps(records):
    settings = DashboardSettings(detail_top_n=2, format_top_k=3, map_point_cap=1)
    ctx = prepare_context(records, {"city": "Москва", "year": "2024", "month": "март"}, settings=settings)
    assert len(ctx["map_points"]) == 1
    assert ctx["map_truncated"]

    ctx = prepare_context(records, FilterState(), settings=settings)
    assert ctx["detail_rows"]["id"].tolist() == ["A5", "A7"]
    assert ctx["top_formats"]["format"].tolist() == ["MF", "CB", "BB"]
    assert len(ctx["formats"]) == 6
    assert not ctx["map_ready"]
    assert ctx["map_points"].empty
    assert not ctx["map_truncated"]


def test_empty_subset_never_raises(records):
    ctx = prepare_context(records, {"city": "Казань"})
    assert ctx["filtered"].empty
    assert ctx["kpis"]["avg_grp"] == 0
    assert ctx["trend"].empty
    assert ctx["detail_rows"].empty
    assert ctx["options"]["city"] == ["Москва", "Санкт-Петербург"]
