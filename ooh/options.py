"""Cross-filter option lists.

Each field's options come from the rows matching the *other* four filters,
so picking a city narrows years/months/formats/vendors but leaves the city
list intact.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

import pandas as pd

from ooh.filtering import field_values, filter_masks
from ooh.filters import ALL, FILTER_FIELDS, FilterState
from ooh.months import month_sort_key


def sort_options(field_name: str, values: Iterable[object]) -> List[str]:
    distinct = {str(v) for v in values}
    if field_name == "month":
        return sorted(distinct, key=month_sort_key)
    return sorted(distinct)


def derive_options(records: pd.DataFrame, filters: FilterState) -> Dict[str, List[str]]:
    if records.empty:
        return {f: [] for f in FILTER_FIELDS}

    masks = filter_masks(records, filters)
    options: Dict[str, List[str]] = {}
    for target in FILTER_FIELDS:
        mask = pd.Series(True, index=records.index)
        for other in FILTER_FIELDS:
            if other != target:
                mask &= masks[other]
        options[target] = sort_options(target, field_values(records.loc[mask], target).unique())
    return options


def select_options(options: List[str], current: str) -> List[str]:
    """Choices for a select box: "All", the derived options, and the current value if it fell out."""
    out = [ALL] + list(options)
    if current not in out:
        out.append(current)
    return out
