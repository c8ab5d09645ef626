"""
Service layer of the record mapping engine.

Contains the mapping logic for saving records to worksheets and parsing
records out of them, decoupled from the HTTP transport.
"""

from recordsheet.services.header_resolver import HeaderResolver
from recordsheet.services.property_access import (
    Accessor,
    PropertyAccessAdapter,
    setter_for,
)
from recordsheet.services.record_service import RecordService
from recordsheet.services.row_mapper import RecordRowMapper
from recordsheet.services.sheet_orchestrator import SheetOrchestrator
from recordsheet.services.type_coercion import TypeCoercionService

__all__ = [
    "Accessor",
    "HeaderResolver",
    "PropertyAccessAdapter",
    "RecordRowMapper",
    "RecordService",
    "SheetOrchestrator",
    "TypeCoercionService",
    "setter_for",
]
