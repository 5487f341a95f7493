"""Canonical month vocabulary.

Source files spell months in several ways ("март", "мар", "03", "3").
Filter equality stays exact-string; this table is only used for ordering
option lists and the monthly trend, and for chart labels.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

MONTH_ABBREVIATIONS = ("янв", "фев", "мар", "апр", "май", "июн", "июл", "авг", "сен", "окт", "ноя", "дек")
MONTH_NAMES = (
    "январь",
    "февраль",
    "март",
    "апрель",
    "май",
    "июнь",
    "июль",
    "август",
    "сентябрь",
    "октябрь",
    "ноябрь",
    "декабрь",
)
_ENGLISH_ABBREVIATIONS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")


def _build_month_table() -> Dict[str, int]:
    table: Dict[str, int] = {}
    for idx in range(1, 13):
        table[MONTH_ABBREVIATIONS[idx - 1]] = idx
        table[MONTH_NAMES[idx - 1]] = idx
        table[_ENGLISH_ABBREVIATIONS[idx - 1]] = idx
        table[str(idx)] = idx
        table[f"{idx:02d}"] = idx
    # genitive "мая" does not share the "май" prefix
    table["мая"] = 5
    return table


MONTH_TABLE: Dict[str, int] = _build_month_table()


def month_index(value: object) -> Optional[int]:
    """Return 1..12 for a recognised month spelling, otherwise None."""
    if value is None:
        return None
    s = str(value).strip().lower().rstrip(".")
    if not s:
        return None
    if s in MONTH_TABLE:
        return MONTH_TABLE[s]
    return MONTH_TABLE.get(s[:3]) if len(s) > 3 and not s.isdigit() else None


def month_sort_key(value: object) -> Tuple[int, str]:
    idx = month_index(value)
    return (idx if idx is not None else 13, str(value))


def month_label(value: object) -> str:
    idx = month_index(value)
    return MONTH_ABBREVIATIONS[idx - 1] if idx is not None else str(value)
