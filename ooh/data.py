from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ooh.months import MONTH_ABBREVIATIONS


logger = logging.getLogger(__name__)

DATA_DIR = Path(os.environ.get("OOH_DATA_DIR") or Path(__file__).resolve().parents[1] / "data")
FILE_GLOBS = ("*.parquet", "*.xlsx", "*.csv")
MAX_LOAD_WORKERS = 8

RECORD_COLUMNS = ["id", "address", "city", "year", "month", "vendor", "format", "grp", "ots", "lat", "lng"]
TEXT_COLUMNS = ["id", "address", "city", "vendor", "format"]
FLOAT_COLUMNS = ["grp", "ots", "lat", "lng"]

SOURCE_COLUMNS = {
    "id": "id",
    "surface_id": "id",
    "ID": "id",
    "Номер кс": "id",
    "Номер конструкции": "id",
    "address": "address",
    "Адрес": "address",
    "city": "city",
    "Город": "city",
    "year": "year",
    "Год": "year",
    "month": "month",
    "Месяц": "month",
    "vendor": "vendor",
    "seller": "vendor",
    "Продавец": "vendor",
    "format": "format",
    "Формат": "format",
    "Формат поверхности": "format",
    "Формат поверхности2": "format",
    "grp": "grp",
    "GRP": "grp",
    "GRP (18+)": "grp",
    "GRP (18+) в сутки": "grp",
    "ots": "ots",
    "OTS": "ots",
    "OTS (18+)": "ots",
    "OTS (18+) тыс.чел. в сутки": "ots",
    "lat": "lat",
    "Широта": "lat",
    "lng": "lng",
    "lon": "lng",
    "Долгота": "lng",
}


class IngestionError(Exception):
    """The dataset could not be loaded at all."""


def get_source_files(data_dir: Optional[Path] = None) -> List[Path]:
    base = Path(data_dir) if data_dir is not None else DATA_DIR
    if not base.is_dir():
        return []
    files: List[Path] = []
    for pattern in FILE_GLOBS:
        files.extend(base.glob(pattern))
    return sorted(files)


def file_signature(files: Sequence[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((str(f), f.stat().st_mtime) for f in files)


def read_source_file(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        return pd.read_parquet(path)
    if suffix in {".xlsx", ".xls"}:
        return pd.read_excel(path)
    if suffix == ".csv":
        return pd.read_csv(path)
    raise ValueError(f"Unsupported source file type: {path.name}")


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def rename_source_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.rename(columns={c: SOURCE_COLUMNS[c] for c in df.columns if c in SOURCE_COLUMNS})
    return drop_duplicate_columns(df)


def to_number(series: pd.Series) -> pd.Series:
    """Numeric coercion; unparseable or non-finite cells become 0 (a bad cell never drops the row)."""
    if series.dtype == object or pd.api.types.is_string_dtype(series):
        series = (
            series.astype("string")
            .str.replace("\u00a0", "", regex=False)
            .str.replace(" ", "", regex=False)
            .str.replace(",", ".", regex=False)
        )
    out = pd.to_numeric(series, errors="coerce").fillna(0.0)
    return out.where(np.isfinite(out.astype("float64")), 0.0)


def coerce_text(series: pd.Series) -> pd.Series:
    out = series.astype("string").str.strip()
    out = out.replace({"nan": pd.NA, "None": pd.NA, "<NA>": pd.NA})
    return out.fillna("").astype(object)


def normalize_month_value(value: object) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        return str(int(value)) if float(value).is_integer() else str(value)
    return str(value).strip()


def normalize_records(raw: pd.DataFrame) -> pd.DataFrame:
    """Map a raw source frame onto the record columns with safe defaults."""
    df = rename_source_columns(raw.copy())
    n = len(df)
    out = pd.DataFrame(index=pd.RangeIndex(n))
    for col in TEXT_COLUMNS:
        out[col] = coerce_text(df[col].reset_index(drop=True)) if col in df.columns else pd.Series([""] * n, dtype=object)
    if "year" in df.columns:
        out["year"] = to_number(df["year"].reset_index(drop=True)).astype("float64").astype("int64")
    else:
        out["year"] = pd.Series(np.zeros(n, dtype="int64"))
    if "month" in df.columns:
        out["month"] = df["month"].reset_index(drop=True).map(normalize_month_value).astype(object)
    else:
        out["month"] = pd.Series([""] * n, dtype=object)
    for col in FLOAT_COLUMNS:
        out[col] = to_number(df[col].reset_index(drop=True)).astype("float64") if col in df.columns else 0.0
    return assign_ids(out[RECORD_COLUMNS])


def assign_ids(df: pd.DataFrame) -> pd.DataFrame:
    ids = df["id"]
    if len(df) and ((ids == "").any() or ids.duplicated().any()):
        df = df.copy()
        df["id"] = [f"ID-{i}" for i in range(len(df))]
    return df.reset_index(drop=True)


def empty_records() -> pd.DataFrame:
    return normalize_records(pd.DataFrame(columns=RECORD_COLUMNS))


def load_records(files: Sequence[Path], max_workers: int = MAX_LOAD_WORKERS) -> pd.DataFrame:
    """Read all files in parallel; a failed file contributes zero rows."""
    files = [Path(f) for f in files]
    if not files:
        raise IngestionError("Файлы с данными не найдены.")

    frames: Dict[int, pd.DataFrame] = {}
    errors: List[str] = []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(files)))) as pool:
        futures = {pool.submit(read_source_file, path): idx for idx, path in enumerate(files)}
        for future in as_completed(futures):
            idx = futures[future]
            try:
                frames[idx] = future.result()
            except Exception as exc:
                logger.warning("Failed to read %s: %s", files[idx].name, exc)
                errors.append(f"{files[idx].name}: {exc}")

    if not frames:
        raise IngestionError("Не удалось загрузить данные: " + "; ".join(errors))

    parts = [rename_source_columns(frames[i]) for i in sorted(frames)]
    records = normalize_records(pd.concat(parts, ignore_index=True, sort=False))
    logger.info("Loaded %d records from %d of %d file(s)", len(records), len(frames), len(files))
    return records


@lru_cache(maxsize=4)
def _load_records_cached(files_sig: Tuple[Tuple[str, float], ...]) -> pd.DataFrame:
    return load_records([Path(name) for name, _ in files_sig])


def load_source_records(data_dir: Optional[Path] = None) -> pd.DataFrame:
    files = get_source_files(data_dir)
    if not files:
        raise IngestionError(f"Файлы с данными не найдены в {data_dir or DATA_DIR}.")
    return _load_records_cached(file_signature(files))


# ---------------- Demo dataset ----------------
DEMO_CITIES = {
    "Москва и МО": (55.75, 37.61),
    "Санкт-Петербург": (59.93, 30.33),
    "Новосибирск": (55.00, 82.93),
    "Екатеринбург": (56.83, 60.60),
    "Казань": (55.78, 49.12),
}
DEMO_VENDORS = ["RUSS", "РИМ MEDIAGROUP", "ГОРИНФОР", "GALLERY", "POSTER", "NORTH STAR", "OUTDOOR"]
DEMO_FORMATS = ["SS", "CB", "DSS", "BB", "DBB", "DCB", "MF"]
DEMO_YEARS = [2024, 2025]


def generate_demo_records(count: int = 1500, seed: int = 42) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    cities = list(DEMO_CITIES)
    city = rng.choice(cities, size=count)
    base = np.array([DEMO_CITIES[c] for c in city]) if count else np.zeros((0, 2))
    lat = base[:, 0] + (rng.random(count) - 0.5) * 0.5
    lng = base[:, 1] + (rng.random(count) - 0.5) * 0.8
    street = rng.integers(0, 100, size=count)
    position = rng.integers(0, 50, size=count)
    raw = pd.DataFrame(
        {
            "id": [f"ID-{i}" for i in range(count)],
            "address": [f"Ул. Примерная {s}, Позиция {p}" for s, p in zip(street, position)],
            "city": city,
            "year": rng.choice(DEMO_YEARS, size=count),
            "month": rng.choice(list(MONTH_ABBREVIATIONS), size=count),
            "vendor": rng.choice(DEMO_VENDORS, size=count),
            "format": rng.choice(DEMO_FORMATS, size=count),
            "grp": np.round(rng.random(count) * 8, 2),
            "ots": np.round(rng.random(count) * 150 + 10, 2),
            "lat": lat,
            "lng": lng,
        }
    )
    return normalize_records(raw)


# ---------------- Formatting ----------------
def format_number_ru(value: object, decimals: int = 2) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value):,.{decimals}f}".replace(",", "\u00a0").replace(".", ",")


def format_compact_ru(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    num = float(value)
    if abs(num) >= 1_000_000:
        return f"{num / 1_000_000:.1f}".replace(".", ",") + " млн"
    if abs(num) >= 1000:
        return f"{num / 1000:.1f}".replace(".", ",") + " тыс."
    return f"{num:g}".replace(".", ",")


def format_percent(value: object, decimals: int = 1) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value):.{decimals}f}%".replace(".", ",")
