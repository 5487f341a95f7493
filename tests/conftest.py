import sys
from pathlib import Path

import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from ooh.data import normalize_records


def make_records(rows):
    return normalize_records(pd.DataFrame(rows))


@pytest.fixture
def records():
    """Eight rows across two cities, two years and mixed month spellings."""
    return make_records(
        [
            {"id": "A1", "address": "Тверская 1", "city": "Москва", "year": 2024, "month": "март", "vendor": "RUSS", "format": "DBB", "grp": 4.0, "ots": 100.0, "lat": 55.7, "lng": 37.6},
            {"id": "A2", "address": "Тверская 1", "city": "Москва", "year": 2024, "month": "апрель", "vendor": "RUSS", "format": "DBB", "grp": 2.0, "ots": 80.0, "lat": 55.7, "lng": 37.6},
            {"id": "A3", "address": "Арбат 5", "city": "Москва", "year": 2025, "month": "март", "vendor": "GALLERY", "format": "SS", "grp": 1.0, "ots": 50.0, "lat": 55.75, "lng": 37.59},
            {"id": "A4", "address": "Невский 10", "city": "Санкт-Петербург", "year": 2024, "month": "март", "vendor": "GALLERY", "format": "BB", "grp": 3.0, "ots": 60.0, "lat": 59.93, "lng": 30.33},
            {"id": "A5", "address": "Невский 12", "city": "Санкт-Петербург", "year": 2024, "month": "январь", "vendor": "POSTER", "format": "MF", "grp": 6.0, "ots": 120.0, "lat": 0.0, "lng": 30.3},
            {"id": "A6", "address": "Литейный 3", "city": "Санкт-Петербург", "year": 2025, "month": "декабрь", "vendor": "POSTER", "format": "dcf", "grp": 0.0, "ots": 0.0, "lat": 59.94, "lng": 30.35},
            {"id": "A7", "address": "Арбат 7", "city": "Москва", "year": 2025, "month": "январь", "vendor": "RUSS", "format": "CB", "grp": 5.0, "ots": 90.0, "lat": 55.74, "lng": 37.58},
            {"id": "A8", "address": "Арбат 9", "city": "Москва", "year": 2024, "month": "март", "vendor": "POSTER", "format": "SS", "grp": 2.5, "ots": 70.0, "lat": 55.76, "lng": 37.62},
        ]
    )
