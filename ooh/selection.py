from __future__ import annotations

import math
from typing import Any, Dict, Optional, Tuple

import pandas as pd

from ooh.filters import DashboardSettings

DEFAULT_VIEW = {"latitude": 55.75, "longitude": 37.61, "zoom": 5}
SINGLE_POINT_ZOOM = 14


def resolve_detail_rows(filtered: pd.DataFrame, selected_id: Optional[str], top_n: int = 20) -> pd.DataFrame:
    """The pinned record if it is still in the subset, else the top rows by GRP."""
    if selected_id is not None and not filtered.empty:
        hit = filtered[filtered["id"] == selected_id]
        if not hit.empty:
            return hit.head(1)
    if filtered.empty:
        return filtered
    return filtered.sort_values("grp", ascending=False, kind="mergesort").head(top_n)


def located_mask(df: pd.DataFrame) -> pd.Series:
    lat = pd.to_numeric(df["lat"], errors="coerce").fillna(0)
    lng = pd.to_numeric(df["lng"], errors="coerce").fillna(0)
    return (lat != 0) & (lng != 0)


def map_points(filtered: pd.DataFrame, settings: Optional[DashboardSettings] = None) -> Tuple[pd.DataFrame, bool]:
    """Located points capped at ``map_point_cap``; the flag tells whether rows were cut."""
    settings = settings or DashboardSettings()
    if filtered.empty:
        return filtered.assign(high_grp=pd.Series(dtype=bool)), False
    located = filtered[located_mask(filtered)]
    truncated = len(located) > settings.map_point_cap
    points = located.head(settings.map_point_cap)
    return points.assign(high_grp=points["grp"] > settings.high_grp_point), truncated


def map_bounds(points: pd.DataFrame) -> Optional[Dict[str, float]]:
    if points.empty:
        return None
    located = points[located_mask(points)]
    if located.empty:
        return None
    return {
        "min_lat": float(located["lat"].min()),
        "max_lat": float(located["lat"].max()),
        "min_lng": float(located["lng"].min()),
        "max_lng": float(located["lng"].max()),
    }


def map_view(points: pd.DataFrame) -> Dict[str, Any]:
    bounds = map_bounds(points)
    if bounds is None:
        return dict(DEFAULT_VIEW)
    lat = (bounds["min_lat"] + bounds["max_lat"]) / 2
    lng = (bounds["min_lng"] + bounds["max_lng"]) / 2
    span = max(bounds["max_lat"] - bounds["min_lat"], bounds["max_lng"] - bounds["min_lng"])
    if span == 0:
        return {"latitude": lat, "longitude": lng, "zoom": SINGLE_POINT_ZOOM}
    zoom = int(math.log2(360 / span))
    return {"latitude": lat, "longitude": lng, "zoom": max(1, min(SINGLE_POINT_ZOOM, zoom))}
