from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

TREND_SELECTION = "trend_pick"
FORMAT_SELECTION = "format_pick"
VENDOR_SELECTION = "vendor_pick"
BAR_COLOR = "#374151"


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def trend_chart(trend: pd.DataFrame) -> alt.Chart:
    """Mean GRP by month; a clicked point carries (year, month) back."""
    pick = alt.selection_point(name=TREND_SELECTION, fields=["year", "month"], on="click")
    base = alt.Chart(trend).encode(
        x=alt.X("label:N", title=None, sort=None, axis=alt.Axis(labelAngle=-30)),
        y=alt.Y("avg_grp:Q", title="Средний GRP", axis=alt.Axis(gridDash=[3, 3], domain=False, ticks=False)),
    )
    line = base.mark_line(color=BAR_COLOR, strokeWidth=2)
    points = (
        base.mark_point(filled=True, size=70, color=BAR_COLOR)
        .encode(
            opacity=alt.condition(pick, alt.value(1), alt.value(0.4)),
            tooltip=["label", alt.Tooltip("avg_grp:Q", format=".2f", title="Средний GRP"), "count"],
        )
        .add_params(pick)
    )
    labels = base.mark_text(dy=-12, fontSize=10, color="#4b5563").encode(text=alt.Text("avg_grp:Q", format=".2f"))
    return (line + points + labels).properties(height=260)


def format_chart(formats: pd.DataFrame) -> alt.Chart:
    pick = alt.selection_point(name=FORMAT_SELECTION, fields=["format"], on="click")
    base = alt.Chart(formats).encode(
        y=alt.Y("format:N", title=None, sort="-x"),
        x=alt.X("avg_grp:Q", title=None, axis=None),
    )
    bars = (
        base.mark_bar(color=BAR_COLOR, cornerRadiusEnd=4)
        .encode(
            opacity=alt.condition(pick, alt.value(1), alt.value(0.4)),
            tooltip=["format", alt.Tooltip("avg_grp:Q", format=".2f", title="Средний GRP"), "count"],
        )
        .add_params(pick)
    )
    labels = base.mark_text(align="left", dx=4, fontSize=11).encode(text=alt.Text("avg_grp:Q", format=".2f"))
    return (bars + labels).properties(height=260)


def vendor_chart(vendors: pd.DataFrame) -> alt.Chart:
    pick = alt.selection_point(name=VENDOR_SELECTION, fields=["vendor"], on="click")
    return (
        alt.Chart(vendors)
        .mark_bar()
        .encode(
            y=alt.Y("vendor:N", title=None, sort="-x"),
            x=alt.X("count:Q", title="Кол-во сторон"),
            color=alt.Color("vendor:N", legend=None, scale=alt.Scale(scheme="tableau10")),
            opacity=alt.condition(pick, alt.value(1), alt.value(0.4)),
            tooltip=["vendor", "count", alt.Tooltip("share_pct:Q", format=".1f", title="Доля, %")],
        )
        .add_params(pick)
        .properties(height=260)
    )
