from __future__ import annotations

from typing import Dict, Mapping, Optional, Union

import pandas as pd

from ooh.filtering import apply_filters
from ooh.filters import DashboardSettings, FilterState, is_map_ready, normalize_filters
from ooh.metrics import compute_kpis, format_ranking, monthly_trend, vendor_distribution, vendor_ots
from ooh.options import derive_options
from ooh.selection import map_points, map_view, resolve_detail_rows


def prepare_context(
    records: pd.DataFrame,
    filters: Union[FilterState, Mapping[str, object]],
    selected_id: Optional[str] = None,
    settings: Optional[DashboardSettings] = None,
) -> Dict[str, object]:
    """Recompute everything the UI shows for one filter state."""
    settings = settings or DashboardSettings()
    filters = filters if isinstance(filters, FilterState) else normalize_filters(filters)
    filtered = apply_filters(records, filters)

    map_ready = is_map_ready(filters)
    if map_ready:
        points, truncated = map_points(filtered, settings)
    else:
        points, truncated = map_points(filtered.iloc[0:0], settings)

    return {
        "filters": filters,
        "settings": settings,
        "options": derive_options(records, filters),
        "filtered": filtered,
        "kpis": compute_kpis(filtered),
        "trend": monthly_trend(filtered),
        "formats": format_ranking(filtered),
        "top_formats": format_ranking(filtered, top_k=settings.format_top_k),
        "vendors": vendor_distribution(filtered),
        "vendor_ots": vendor_ots(filtered),
        "detail_rows": resolve_detail_rows(filtered, selected_id, settings.detail_top_n),
        "map_ready": map_ready,
        "map_points": points,
        "map_truncated": truncated,
        "map_view": map_view(points),
    }
