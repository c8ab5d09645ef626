"""
Data models for the record mapping engine.

Contains Pydantic models for mapping state, results, configuration and
API request/response validation.
"""

from recordsheet.models.mapping_models import (
    CellError,
    CellKind,
    ColumnMeta,
    DatumError,
    MappingErrorResponse,
    MappingOptions,
    ParseOutcome,
    ParseRecordsResponse,
    ParseResult,
    ParseStatus,
    SaveRecordsRequest,
    SaveResult,
)

__all__ = [
    "CellKind",
    "ColumnMeta",
    "DatumError",
    "CellError",
    "MappingOptions",
    "ParseResult",
    "ParseStatus",
    "ParseOutcome",
    "SaveResult",
    "SaveRecordsRequest",
    "ParseRecordsResponse",
    "MappingErrorResponse",
]
