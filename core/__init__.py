"""Core (UI-agnostic) clarification tracker logic.

This package contains:
- workbook ingestion and header validation (XLSX -> pandas)
- filter normalization and the record filter
- the engine holding loaded records and filter state
- summary / details payloads (JSON-serializable)
- Excel / CSV export
"""
