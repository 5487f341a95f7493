from __future__ import annotations

import logging
from typing import Callable, Dict, Literal, Mapping, Optional

import pandas as pd

from ooh.dashboard import prepare_context
from ooh.data import IngestionError, empty_records
from ooh.filtering import apply_filters
from ooh.filters import DashboardSettings, FilterState

logger = logging.getLogger(__name__)

StoreStatus = Literal["loading", "ready", "error"]


class RecordStore:
    """Loaded records plus the mutable filter and selection state.

    Records are never modified after ``load``; every mutator below replaces
    ``filters`` with a new frozen ``FilterState`` and clears the selection.
    """

    def __init__(self, settings: Optional[DashboardSettings] = None) -> None:
        self.settings = settings or DashboardSettings()
        self.status: StoreStatus = "loading"
        self.error: Optional[str] = None
        self.records: pd.DataFrame = empty_records()
        self.filters = FilterState()
        self.selected_id: Optional[str] = None

    # ----- lifecycle -----
    def load(self, records: pd.DataFrame) -> None:
        self.records = records
        self.filters = FilterState()
        self.selected_id = None
        self.status = "ready"
        self.error = None

    def fail(self, message: str) -> None:
        self.records = empty_records()
        self.filters = FilterState()
        self.selected_id = None
        self.status = "error"
        self.error = message

    def ingest(self, loader: Callable[[], pd.DataFrame]) -> None:
        """Run a one-shot loader and move to ``ready`` or ``error``."""
        try:
            records = loader()
        except IngestionError as exc:
            logger.error("Ingestion failed: %s", exc)
            self.fail(str(exc))
        except Exception as exc:
            logger.exception("Ingestion failed")
            self.fail(f"Ошибка загрузки данных: {exc}")
        else:
            self.load(records)

    # ----- filter mutators -----
    def set_filter(self, field_name: str, value: object) -> None:
        self.set_filters({field_name: value})

    def set_filters(self, partial: Mapping[str, object]) -> None:
        self.filters = self.filters.with_values(partial)
        self.selected_id = None

    def reset_filters(self) -> None:
        self.filters = FilterState()
        self.selected_id = None

    # ----- selection -----
    def select(self, record_id: object) -> None:
        rid = str(record_id)
        filtered = self.filtered()
        self.selected_id = rid if (filtered["id"] == rid).any() else None

    def clear_selection(self) -> None:
        self.selected_id = None

    # ----- derived -----
    def filtered(self) -> pd.DataFrame:
        return apply_filters(self.records, self.filters)

    def context(self) -> Dict[str, object]:
        return prepare_context(self.records, self.filters, self.selected_id, self.settings)
