"""Excel export of the filtered subset.

The summary sheet carries every KPI plus the trend, format and vendor
tables; the optional detail sheet has one row per filtered record.
"""

from __future__ import annotations

import io
from datetime import date
from typing import List, Optional, Tuple

import pandas as pd

from ooh.metrics import compute_kpis, format_ranking, monthly_trend, vendor_distribution

SUMMARY_SHEET = "Сводка KPI"
DETAIL_SHEET = "Детализация"
UNKNOWN_FORMAT = "Не указан"
UNKNOWN_VENDOR = "Неизвестный"

DETAIL_COLUMNS = {
    "city": "Город",
    "address": "Адрес",
    "vendor": "Продавец",
    "format": "Формат",
    "grp": "GRP",
    "ots": "OTS",
    "year": "Год",
    "month": "Месяц",
    "lat": "Широта",
    "lng": "Долгота",
}
SUMMARY_WIDTHS = {"A": 30, "B": 20, "C": 15}
DETAIL_WIDTHS = [15, 40, 20, 15, 10, 12, 8, 10, 12, 12]
# one row per sheet goes to the header
EXCEL_MAX_DATA_ROWS = 1_048_575


def summary_rows(filtered: pd.DataFrame, include_details: bool, export_date: date) -> List[list]:
    kpis = compute_kpis(filtered)
    rows: List[list] = [
        ["ОТЧЕТ ПО OOH АНАЛИТИКЕ"],
        ["Дата выгрузки", export_date.strftime("%d.%m.%Y")],
        ["Режим", "Полная выгрузка" if include_details else "Только сводка"],
        [],
        ["ОСНОВНЫЕ KPI", ""],
        ["Средний GRP", kpis["avg_grp"]],
        ["Общий OTS (тыс.)", kpis["total_ots_thousands"]],
        ["Общий OTS (млн)", kpis["total_ots_millions"]],
        ["Всего поверхностей", kpis["total_surfaces"]],
        ["Уникальных адресов", kpis["unique_surfaces"]],
        ["Цифровых (DOOH)", kpis["digital_count"]],
        ["Доля Digital (%)", kpis["digital_share"]],
        ["Выше среднего (%)", kpis["percent_high_grp"]],
        [],
        [],
        ["ДИНАМИКА СРЕДНЕГО GRP", "", ""],
        ["Год", "Месяц", "Средний GRP"],
    ]
    rows += [[int(r.year), r.month, float(r.avg_grp)] for r in monthly_trend(filtered).itertuples(index=False)]

    rows += [[], [], ["СРЕДНИЙ GRP ПО ФОРМАТАМ", ""], ["Формат", "Средний GRP"]]
    rows += [[r.format or UNKNOWN_FORMAT, float(r.avg_grp)] for r in format_ranking(filtered).itertuples(index=False)]

    rows += [[], [], ["РАСПРЕДЕЛЕНИЕ ПО ПРОДАВЦАМ", "", ""], ["Продавец", "Кол-во сторон", "Доля (%)"]]
    vendors = vendor_distribution(filtered)
    rows += [
        [vendor or UNKNOWN_VENDOR, int(count), float(share)]
        for vendor, count, share in zip(vendors["vendor"], vendors["count"], vendors["share_pct"])
    ]
    return rows


def detail_frame(filtered: pd.DataFrame) -> pd.DataFrame:
    return filtered[list(DETAIL_COLUMNS)].rename(columns=DETAIL_COLUMNS)


def detail_chunks(filtered: pd.DataFrame, max_rows: int = EXCEL_MAX_DATA_ROWS) -> List[Tuple[str, pd.DataFrame]]:
    """Detail sheets as (name, frame); a subset over the Excel row limit spills into numbered sheets."""
    frame = detail_frame(filtered)
    if len(frame) <= max_rows:
        return [(DETAIL_SHEET, frame)]
    return [
        (DETAIL_SHEET if i == 0 else f"{DETAIL_SHEET} {i + 1}", frame.iloc[start : start + max_rows])
        for i, start in enumerate(range(0, len(frame), max_rows))
    ]


def build_workbook(
    filtered: pd.DataFrame,
    include_details: bool = True,
    export_date: Optional[date] = None,
    max_sheet_rows: int = EXCEL_MAX_DATA_ROWS,
) -> Optional[bytes]:
    """XLSX bytes for the subset, or None when there is nothing to export."""
    if filtered is None or filtered.empty:
        return None
    export_date = export_date or date.today()

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        summary = pd.DataFrame(summary_rows(filtered, include_details, export_date))
        summary.to_excel(writer, sheet_name=SUMMARY_SHEET, header=False, index=False)
        ws = writer.sheets[SUMMARY_SHEET]
        for col, width in SUMMARY_WIDTHS.items():
            ws.column_dimensions[col].width = width

        if include_details:
            for sheet_name, chunk in detail_chunks(filtered, max_sheet_rows):
                chunk.to_excel(writer, sheet_name=sheet_name, index=False)
                ws = writer.sheets[sheet_name]
                for idx, width in enumerate(DETAIL_WIDTHS):
                    ws.column_dimensions[chr(ord("A") + idx)].width = width
    return output.getvalue()


def export_file_name(prefix: str = "OOH_Analytics", include_details: bool = True, export_date: Optional[date] = None) -> str:
    export_date = export_date or date.today()
    suffix = "Full" if include_details else "KPI_Only"
    return f"{prefix}_{suffix}_{export_date.strftime('%d-%m-%Y')}.xlsx"
