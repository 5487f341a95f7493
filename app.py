import os
from contextlib import contextmanager
from typing import Dict, Optional

import pandas as pd
import pydeck as pdk
import streamlit as st

from ooh.charts import FORMAT_SELECTION, TREND_SELECTION, VENDOR_SELECTION, format_chart, trend_chart, vendor_chart
from ooh.data import format_compact_ru, format_number_ru, format_percent, generate_demo_records, load_source_records
from ooh.export import DETAIL_COLUMNS, EXCEL_MAX_DATA_ROWS, build_workbook, export_file_name
from ooh.filters import FILTER_FIELDS, DashboardSettings, display_value, filter_summary, normalize_settings
from ooh.options import select_options
from ooh.store import RecordStore


FIELD_LABELS = {"city": "Город", "year": "Год", "month": "Месяц", "format": "Формат", "vendor": "Продавец"}
MAP_LAYER_ID = "surfaces"


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .card-actions {font-size: 0.9rem;color: #2563eb;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def render_filter_chips(summary: str):
    chips = "".join(f"<span class='chip'>{txt}</span>" for txt in summary.split(" | "))
    st.markdown(f"<div class='chip-row'>{chips}</div>", unsafe_allow_html=True)


def use_demo_data() -> bool:
    return os.environ.get("OOH_DEMO", "").strip() in {"1", "true", "yes"}


def get_store(demo: bool) -> RecordStore:
    store: Optional[RecordStore] = st.session_state.get("store")
    if store is None or st.session_state.get("store_demo") != demo:
        store = RecordStore()
        if demo:
            store.ingest(generate_demo_records)
        else:
            store.ingest(load_source_records)
        st.session_state["store"] = store
        st.session_state["store_demo"] = demo
    return store


def apply_click(store: RecordStore, key: str, selection: Optional[Dict[str, object]]):
    """Apply a chart/map click once; a persisted widget selection is not re-applied after a reset."""
    marker = f"_applied_{key}"
    if not selection or st.session_state.get(marker) == selection:
        return
    st.session_state[marker] = selection
    if key == "map":
        store.select(selection["id"])
    else:
        store.set_filters(selection)
    st.rerun()


def first_point(event, name: str, fields) -> Optional[Dict[str, object]]:
    try:
        points = event.selection.get(name) or []
    except AttributeError:
        return None
    if not points:
        return None
    return {f: points[0].get(f) for f in fields}


# ---------- UI setup ----------
st.set_page_config(page_title="OOH Analytics", layout="wide")
inject_base_styles()
st.title("OOH Analytics")
st.caption("Аналитика наружной рекламы: GRP, OTS, форматы и продавцы.")

with st.sidebar:
    demo = st.checkbox("Демо-данные", value=use_demo_data())
    filters_box = st.container()
    st.markdown("---")
    with st.expander("Настройки", expanded=False):
        defaults = DashboardSettings()
        settings = normalize_settings(
            {
                "detail_top_n": st.slider("Строк в таблице", 5, 100, defaults.detail_top_n, 5),
                "format_top_k": st.slider("Форматов в рейтинге", 3, 30, defaults.format_top_k, 1),
                "map_point_cap": st.number_input("Максимум точек на карте", 100, 50000, defaults.map_point_cap, 500),
                "high_grp_point": st.slider("Высокий GRP (цвет точки)", 0.0, 10.0, defaults.high_grp_point, 0.5),
            }
        )
    export_box = st.container()

store = get_store(demo)
store.settings = settings
if store.status == "error":
    st.error(store.error or "Не удалось загрузить данные.")
    if st.button("Перезагрузить"):
        st.session_state.pop("store", None)
        st.rerun()
    st.stop()

ctx = store.context()
filters = store.filters
kpis = ctx["kpis"]
filtered: pd.DataFrame = ctx["filtered"]

# ----- Sidebar: cross-filtered selects -----
with filters_box:
    st.markdown("### Фильтры")
    for field_name in FILTER_FIELDS:
        current = getattr(filters, field_name)
        choices = select_options(ctx["options"][field_name], current)
        choice = st.selectbox(
            FIELD_LABELS[field_name],
            options=choices,
            index=choices.index(current),
            format_func=display_value,
        )
        if choice != current:
            store.set_filter(field_name, choice)
            st.rerun()
    if st.button("Сбросить все фильтры"):
        store.reset_filters()
        st.rerun()

with export_box:
    st.markdown("---")
    st.markdown("### Экспорт")
    include_details = st.checkbox("Включить детализацию", value=True)
    export_key = (filters, include_details, len(filtered))
    if st.button("Сформировать Excel", disabled=filtered.empty):
        with st.spinner("Формирование файла..."):
            st.session_state["export_payload"] = (
                export_key,
                build_workbook(filtered, include_details=include_details),
                export_file_name(include_details=include_details),
            )
    payload = st.session_state.get("export_payload")
    if payload and payload[0] == export_key and payload[1] is not None:
        if include_details and len(filtered) > EXCEL_MAX_DATA_ROWS:
            st.caption("Детализация разбита на несколько листов.")
        st.download_button(
            "Скачать Excel",
            data=payload[1],
            file_name=payload[2],
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

render_filter_chips(filter_summary(filters))

# ----- KPI tiles -----
with card("Ключевые показатели"):
    cols = st.columns(5)
    cols[0].metric("Средний GRP", format_number_ru(kpis["avg_grp"]))
    cols[1].metric("Общий OTS", f"{format_number_ru(kpis['total_ots_millions'])} млн", help="Сумма OTS (тыс.) / 1000.")
    cols[2].metric(
        "Поверхностей",
        format_compact_ru(kpis["unique_surfaces"]),
        delta=f"{kpis['total_surfaces']} записей",
        delta_color="off",
        help="Уникальные адреса; записи считаются по всем периодам.",
    )
    cols[3].metric("Выше среднего GRP", format_percent(kpis["percent_high_grp"]))
    cols[4].metric("Доля Digital", format_percent(kpis["digital_share"]), delta=f"{kpis['digital_count']} шт.", delta_color="off")

if filtered.empty:
    st.warning("Нет данных, соответствующих выбранным фильтрам.")
    st.stop()

# ----- Charts (click-to-filter) -----
with card("Динамика среднего GRP по месяцам"):
    event = st.altair_chart(trend_chart(ctx["trend"]), use_container_width=True, on_select="rerun", key="trend")
    apply_click(store, "trend", first_point(event, TREND_SELECTION, ["year", "month"]))

chart_cols = st.columns(2)
with chart_cols[0]:
    with card("Средний GRP по форматам", actions=f"топ-{store.settings.format_top_k}"):
        event = st.altair_chart(format_chart(ctx["top_formats"]), use_container_width=True, on_select="rerun", key="formats")
        apply_click(store, "formats", first_point(event, FORMAT_SELECTION, ["format"]))
with chart_cols[1]:
    with card("Распределение по продавцам"):
        event = st.altair_chart(vendor_chart(ctx["vendors"]), use_container_width=True, on_select="rerun", key="vendors")
        apply_click(store, "vendors", first_point(event, VENDOR_SELECTION, ["vendor"]))
        with st.expander("OTS по продавцам"):
            ots = ctx["vendor_ots"].assign(ots=lambda d: d["ots"].map(lambda v: f"{format_number_ru(v, 0)} тыс."))
            st.dataframe(ots.rename(columns={"vendor": "Продавец", "ots": "OTS"}), hide_index=True, use_container_width=True)

# ----- Map -----
with card("Карта поверхностей"):
    if not ctx["map_ready"]:
        st.info("Выберите город, год и месяц, чтобы построить карту.")
    else:
        points: pd.DataFrame = ctx["map_points"]
        if ctx["map_truncated"]:
            st.caption(f"Показаны первые {store.settings.map_point_cap} точек.")
        layer = pdk.Layer(
            "ScatterplotLayer",
            id=MAP_LAYER_ID,
            data=points.assign(color=points["high_grp"].map(lambda hi: [239, 68, 68, 180] if hi else [14, 165, 233, 180])),
            get_position="[lng, lat]",
            get_fill_color="color",
            get_radius=40,
            radius_min_pixels=3,
            pickable=True,
        )
        deck = pdk.Deck(
            layers=[layer],
            initial_view_state=pdk.ViewState(**ctx["map_view"], pitch=0),
            tooltip={"text": "{address}\n{vendor} | {format}\nGRP: {grp}  OTS: {ots}"},
        )
        event = st.pydeck_chart(deck, on_select="rerun", selection_mode="single-object", key="map")
        try:
            picked = (event.selection.get("objects") or {}).get(MAP_LAYER_ID) or []
        except AttributeError:
            picked = []
        apply_click(store, "map", {"id": picked[0].get("id")} if picked else None)

# ----- Detail table -----
with card("Поверхности", actions="выбранная точка" if store.selected_id else f"топ-{store.settings.detail_top_n} по GRP"):
    if store.selected_id and st.button("Сбросить выбор"):
        store.clear_selection()
        st.rerun()
    detail = ctx["detail_rows"][list(DETAIL_COLUMNS)].rename(columns=DETAIL_COLUMNS)
    st.dataframe(detail, hide_index=True, use_container_width=True)
