from __future__ import annotations

from typing import Dict

import pandas as pd

from ooh.filters import ALL, FILTER_FIELDS, FilterState


def field_values(df: pd.DataFrame, field_name: str) -> pd.Series:
    """Column as compared by filters; year is matched on its string form."""
    col = df[field_name]
    return col.astype(str) if field_name == "year" else col


def field_mask(df: pd.DataFrame, field_name: str, value: str) -> pd.Series:
    if value == ALL:
        return pd.Series(True, index=df.index)
    return field_values(df, field_name) == value


def filter_masks(df: pd.DataFrame, filters: FilterState) -> Dict[str, pd.Series]:
    return {f: field_mask(df, f, getattr(filters, f)) for f in FILTER_FIELDS}


def apply_filters(records: pd.DataFrame, filters: FilterState) -> pd.DataFrame:
    """Rows matching every constrained field, in their original order."""
    if records.empty:
        return records
    mask = pd.Series(True, index=records.index)
    for m in filter_masks(records, filters).values():
        mask &= m
    return records[mask]
