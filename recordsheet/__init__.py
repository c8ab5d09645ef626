"""
recordsheet: map Python records to and from spreadsheet sheets.

Columns are addressed by their header text through a declared header map,
so callers never deal with column indexes.

Architecture:
    - Service layer: header resolution, type coercion, property access,
      row mapping and sheet orchestration
    - openpyxl adapter for all workbook I/O
    - Optional FastAPI interface (recordsheet.main)

Example:
    import recordsheet

    recordsheet.save({"id": "Id", "name": "Name"}, users, "users.xlsx")
    users = recordsheet.parse({"Id": "id", "Name": "name"}, "users.xlsx", User)
"""

from recordsheet.exceptions import (
    InvalidArgumentError,
    InvalidFormatError,
    InvalidHeaderRowError,
    MappingServiceError,
    SheetNotFoundError,
    WriteError,
)
from recordsheet.models import CellError, DatumError, MappingOptions
from recordsheet.services import RecordService, setter_for

__version__ = "0.1.0"

_default_service = RecordService()

save = _default_service.save
save_if_no_datum_error = _default_service.save_if_no_datum_error
save_and_get = _default_service.save_and_get
append_sheet = _default_service.append_sheet
parse = _default_service.parse
parse_ignoring_errors = _default_service.parse_ignoring_errors

__all__ = [
    "CellError",
    "DatumError",
    "InvalidArgumentError",
    "InvalidFormatError",
    "InvalidHeaderRowError",
    "MappingOptions",
    "MappingServiceError",
    "RecordService",
    "SheetNotFoundError",
    "WriteError",
    "append_sheet",
    "parse",
    "parse_ignoring_errors",
    "save",
    "save_and_get",
    "save_if_no_datum_error",
    "setter_for",
]
