from __future__ import annotations

from typing import Any, Dict, Optional

import pandas as pd

from ooh.months import month_index, month_label, month_sort_key


TREND_COLUMNS = ["year", "month", "month_index", "label", "avg_grp", "count"]
FORMAT_COLUMNS = ["format", "avg_grp", "count"]
VENDOR_COLUMNS = ["vendor", "count", "share_pct"]
VENDOR_OTS_COLUMNS = ["vendor", "ots"]


def is_digital(fmt: object) -> bool:
    s = str(fmt or "").upper()
    return s.startswith("D") or s == "MF"


def digital_mask(formats: pd.Series) -> pd.Series:
    upper = formats.astype(str).str.upper()
    return upper.str.startswith("D") | (upper == "MF")


def empty_kpis() -> Dict[str, Any]:
    return {
        "avg_grp": 0.0,
        "total_ots_thousands": 0.0,
        "total_ots_millions": 0.0,
        "unique_surfaces": 0,
        "total_surfaces": 0,
        "high_grp_count": 0,
        "percent_high_grp": 0.0,
        "digital_count": 0,
        "digital_share": 0.0,
    }


def compute_kpis(df: pd.DataFrame) -> Dict[str, Any]:
    """Scalar KPIs over a record subset. Values are unrounded."""
    total = len(df)
    if total == 0:
        return empty_kpis()

    grp = df["grp"].astype(float)
    avg_grp = float(grp.mean())
    total_ots = float(df["ots"].astype(float).sum())
    # compared against the unrounded mean of this same subset
    high_grp_count = int((grp > avg_grp).sum())
    digital_count = int(digital_mask(df["format"]).sum())
    return {
        "avg_grp": avg_grp,
        "total_ots_thousands": total_ots,
        "total_ots_millions": total_ots / 1000,
        "unique_surfaces": int(df["address"].nunique()),
        "total_surfaces": total,
        "high_grp_count": high_grp_count,
        "percent_high_grp": high_grp_count / total * 100,
        "digital_count": digital_count,
        "digital_share": digital_count / total * 100,
    }


def monthly_trend(df: pd.DataFrame) -> pd.DataFrame:
    """Mean GRP per (year, month), in chronological order."""
    if df.empty:
        return pd.DataFrame(columns=TREND_COLUMNS)
    g = df.groupby(["year", "month"], sort=False)["grp"].agg(avg_grp="mean", count="size").reset_index()
    order = sorted(range(len(g)), key=lambda i: (int(g.at[i, "year"]), month_sort_key(g.at[i, "month"])))
    g = g.iloc[order].reset_index(drop=True)
    g["month_index"] = g["month"].map(lambda m: month_index(m) or 0).astype(int)
    g["label"] = [f"{month_label(m)} {y}" for m, y in zip(g["month"], g["year"])]
    clash = g["label"].duplicated(keep=False)
    g.loc[clash, "label"] = g.loc[clash, "label"] + " (" + g.loc[clash, "month"].astype(str) + ")"
    return g[TREND_COLUMNS]


def format_ranking(df: pd.DataFrame, top_k: Optional[int] = None) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=FORMAT_COLUMNS)
    g = (
        df.groupby("format")["grp"]
        .agg(avg_grp="mean", count="size")
        .reset_index()
        .sort_values(["avg_grp", "format"], ascending=[False, True], kind="mergesort")
        .reset_index(drop=True)
    )
    return g.head(top_k) if top_k is not None else g


def vendor_distribution(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=VENDOR_COLUMNS)
    vendors = df["vendor"].astype(str).str.strip()
    g = vendors.value_counts(sort=False).rename_axis("vendor").reset_index(name="count")
    g["share_pct"] = g["count"] / len(df) * 100
    return g.sort_values(["count", "vendor"], ascending=[False, True], kind="mergesort").reset_index(drop=True)[VENDOR_COLUMNS]


def vendor_ots(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=VENDOR_OTS_COLUMNS)
    g = (
        df.assign(vendor=df["vendor"].astype(str).str.strip())
        .groupby("vendor")["ots"]
        .sum()
        .reset_index()
        .sort_values(["ots", "vendor"], ascending=[False, True], kind="mergesort")
        .reset_index(drop=True)
    )
    return g[VENDOR_OTS_COLUMNS]
