"""Core (UI-agnostic) OOH analytics logic.

This package contains:
- data loading (Parquet / XLSX / CSV -> pandas)
- filter state, cross-filter options and the filter predicate
- KPI and grouped aggregates (JSON-serializable payloads)
- detail-table / map selection helpers
- chart helpers (Altair -> Vega-Lite spec dict) and Excel export
"""
