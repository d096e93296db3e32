"""Core (UI-agnostic) housing permit dashboard logic.

This package contains:
- data loading (CSV / generated sample -> pandas -> permit records)
- pipeline options
- series compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
