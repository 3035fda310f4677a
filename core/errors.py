from __future__ import annotations


class IngestionError(Exception):
    """Base class for fatal workbook ingestion failures."""


class EmptySourceError(IngestionError):
    """The workbook has no sheets to read."""


class SourceUnreadableError(IngestionError):
    """The workbook could not be opened (missing, locked, corrupt or not Excel)."""


class IngestionCancelled(IngestionError):
    """The load was cancelled before it finished."""
