from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Optional, Tuple

ALL = "All"
FILTER_FIELDS: Tuple[str, ...] = ("city", "year", "month", "format", "vendor")
MAP_GATE_FIELDS: Tuple[str, ...] = ("city", "year", "month")
BLANK_LABEL = "(не указано)"


@dataclass(frozen=True)
class DashboardSettings:
    detail_top_n: int = 20
    format_top_k: int = 10
    map_point_cap: int = 5000
    high_grp_point: float = 3.0


@dataclass(frozen=True)
class FilterState:
    city: str = ALL
    year: str = ALL
    month: str = ALL
    format: str = ALL
    vendor: str = ALL

    def is_constrained(self, field_name: str) -> bool:
        return getattr(self, field_name) != ALL

    def with_values(self, partial: Mapping[str, object]) -> "FilterState":
        unknown = [k for k in partial if k not in FILTER_FIELDS]
        if unknown:
            raise KeyError(f"Unknown filter field(s): {', '.join(unknown)}")
        return replace(self, **{k: normalize_filter_value(v) for k, v in partial.items()})


def normalize_filter_value(value: object) -> str:
    """Coerce a UI/chart value into a filter value; only None means unconstrained.

    A blank string stays a concrete value: records with a missing text field
    are loaded as "" and must stay selectable.
    """
    if value is None:
        return ALL
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def normalize_filters(raw: Optional[Mapping[str, object]]) -> FilterState:
    raw = raw or {}
    return FilterState(**{f: normalize_filter_value(raw.get(f)) for f in FILTER_FIELDS})


def is_map_ready(filters: FilterState) -> bool:
    return all(filters.is_constrained(f) for f in MAP_GATE_FIELDS)


def display_value(value: str) -> str:
    if value == ALL:
        return "Все"
    return value if value else BLANK_LABEL


def filter_summary(filters: FilterState) -> str:
    labels = {"city": "Город", "year": "Год", "month": "Месяц", "format": "Формат", "vendor": "Продавец"}
    return " | ".join(f"{labels[f]}: {display_value(getattr(filters, f))}" for f in FILTER_FIELDS)


def _clamp_int(value: object, default: int, lo: int, hi: int) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except Exception:
        out = default
    return max(lo, min(hi, out))


def normalize_settings(raw: Optional[Mapping[str, object]]) -> DashboardSettings:
    raw = raw or {}
    defaults = DashboardSettings()
    try:
        high_grp = float(raw.get("high_grp_point", defaults.high_grp_point))  # type: ignore[arg-type]
    except Exception:
        high_grp = defaults.high_grp_point
    return DashboardSettings(
        detail_top_n=_clamp_int(raw.get("detail_top_n", defaults.detail_top_n), defaults.detail_top_n, 1, 500),
        format_top_k=_clamp_int(raw.get("format_top_k", defaults.format_top_k), defaults.format_top_k, 1, 100),
        map_point_cap=_clamp_int(raw.get("map_point_cap", defaults.map_point_cap), defaults.map_point_cap, 1, 50000),
        high_grp_point=max(0.0, high_grp),
    )
