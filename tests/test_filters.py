import pytest

from ooh.filters import (
    ALL,
    DashboardSettings,
    FilterState,
    filter_summary,
    is_map_ready,
    normalize_filter_value,
    normalize_filters,
    normalize_settings,
)


def test_default_state_is_unconstrained():
    state = FilterState()
    assert all(getattr(state, f) == ALL for f in ("city", "year", "month", "format", "vendor"))


@pytest.mark.parametrize(
    "value, expected",
    [(None, ALL), ("", ""), ("  ", ""), (2024, "2024"), (2024.0, "2024"), (" Москва ", "Москва"), ("All", ALL)],
)
def test_normalize_filter_value(value, expected):
    assert normalize_filter_value(value) == expected


def test_normalize_filters_ignores_unknown_keys():
    state = normalize_filters({"city": "Казань", "year": 2025, "top_n": 5})
    assert state == FilterState(city="Казань", year="2025")


def test_with_values_sets_several_fields_atomically():
    state = FilterState(city="Казань").with_values({"year": 2024, "month": "март"})
    assert state == FilterState(city="Казань", year="2024", month="март")


def test_with_values_rejects_unknown_field():
    with pytest.raises(KeyError):
        FilterState().with_values({"region": "Сибирь"})


def test_map_readiness_only_depends_on_city_year_month():
    assert not is_map_ready(FilterState(city="Казань", year="2024"))
    assert not is_map_ready(FilterState(format="SS", vendor="RUSS", year="2024", month="март"))
    assert is_map_ready(FilterState(city="Казань", year="2024", month="март"))


def test_filter_summary_lists_every_field():
    summary = filter_summary(FilterState(city="Казань"))
    assert summary.startswith("Город: Казань")
    assert summary.count("Все") == 4


def test_normalize_settings_clamps_values():
    settings = normalize_settings({"detail_top_n": "0", "map_point_cap": 10**9, "format_top_k": "x", "high_grp_point": -1})
    assert settings.detail_top_n == 1
    assert settings.map_point_cap == 50000
    assert settings.format_top_k == DashboardSettings().format_top_k
    assert settings.high_grp_point == 0.0
    assert normalize_settings(None) == DashboardSettings()


def test_filter_summary_shows_blank_value():
    assert "Продавец: (не указано)" in filter_summary(FilterState(vendor=""))
