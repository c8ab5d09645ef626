"""
Pydantic models for record/sheet mapping.

This module contains the data carried through a save or parse run (column
metadata, per-field errors, aggregate results), the engine configuration,
and the request/response models of the HTTP interface.

All models use Pydantic v2 for validation and serialization. Models that
hold live Python objects (exceptions, records, openpyxl workbooks) allow
arbitrary types; exceptions serialize to their message.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_serializer


class CellKind(str, Enum):
    """
    Classification of a worksheet cell as seen by the mapping engine.

    DATE is a numeric cell carrying a date number format.
    """

    BLANK = "blank"
    BOOLEAN = "boolean"
    ERROR = "error"
    FORMULA = "formula"
    NUMERIC = "numeric"
    DATE = "date"
    STRING = "string"


class ColumnMeta(BaseModel):
    """
    What a resolved column of a parsed sheet maps to.

    Attributes:
        column_index: 0-based column index in the sheet.
        property_name: Record property the column feeds.
        header_text: Header text found in row 0.
    """

    column_index: int = Field(ge=0, description="0-based column index")
    property_name: str = Field(description="Record property the column feeds")
    header_text: str = Field(description="Header text found in row 0")


class DatumError(BaseModel):
    """
    A save-direction failure: one property of one record could not be read.

    Attributes:
        record_index: 0-based index of the record in the saved collection.
        property_name: The property that failed.
        cause: The exception raised while reading it.
    """

    model_config = {"arbitrary_types_allowed": True}

    record_index: int = Field(ge=0, description="0-based record index")
    property_name: str = Field(description="The property that failed")
    cause: Exception | None = Field(default=None, description="Underlying failure")

    @field_serializer("cause")
    def serialize_cause(self, cause: Exception | None) -> str | None:
        return None if cause is None else str(cause)


class CellError(BaseModel):
    """
    A parse-direction failure: one cell could not be set into its record.

    Attributes:
        row_index: 0-based row index in the sheet (the header row is 0).
        column_index: 0-based column index.
        header_text: Header text of the column.
        property_name: The property the cell was mapped to.
        cause: The exception raised while coercing or setting it.
    """

    model_config = {"arbitrary_types_allowed": True}

    row_index: int = Field(ge=0, description="0-based row index")
    column_index: int = Field(ge=0, description="0-based column index")
    header_text: str = Field(description="Header text of the column")
    property_name: str = Field(description="The property the cell maps to")
    cause: Exception | None = Field(default=None, description="Underlying failure")

    @field_serializer("cause")
    def serialize_cause(self, cause: Exception | None) -> str | None:
        return None if cause is None else str(cause)


class MappingOptions(BaseModel):
    """
    Configuration of the mapping engine.

    Attributes:
        datum_error_placeholder: Text written to cells whose property failed
            to read. None writes an empty cell.
        still_save_if_data_error: Whether a save still writes the workbook
            when datum errors were collected.
        header_fill_color: RGB fill of the header row.
        error_fill_color: RGB fill of cells whose property failed to read.
        auto_size_columns: Whether column widths follow header text length.
        max_column_width: Upper bound for auto-sized widths, in characters.
    """

    datum_error_placeholder: str | None = Field(
        default=None,
        description="Text written in place of a property that failed to read",
    )
    still_save_if_data_error: bool = Field(
        default=True,
        description="Write the workbook even if datum errors were collected",
    )
    header_fill_color: str = Field(
        default="FFFF00",
        pattern=r"^[0-9A-Fa-f]{6}$",
        description="RGB fill colour of the header row",
    )
    error_fill_color: str = Field(
        default="FF0000",
        pattern=r"^[0-9A-Fa-f]{6}$",
        description="RGB fill colour of cells with datum errors",
    )
    auto_size_columns: bool = Field(
        default=True,
        description="Size columns to their header text",
    )
    max_column_width: int = Field(
        default=50,
        gt=0,
        description="Maximum auto-sized column width in characters",
    )


class ParseResult(BaseModel):
    """
    Records parsed from one sheet together with the cell errors met.

    Attributes:
        sheet_name: Title of the parsed sheet (None for a workbook with no sheets).
        records: Parsed records, one per present data row.
        cell_errors: Per-cell failures, in row then column order.
    """

    model_config = {"arbitrary_types_allowed": True}

    sheet_name: str | None = Field(default=None, description="Title of the parsed sheet")
    records: list[Any] = Field(default_factory=list, description="Parsed records")
    cell_errors: list[CellError] = Field(
        default_factory=list,
        description="Cells that could not be set",
    )


class ParseStatus(str, Enum):
    """Outcome of a parse attempt that tolerates format and header failures."""

    OK = "ok"
    FORMAT_ERROR = "format_error"
    HEADER_ERROR = "header_error"


class ParseOutcome(BaseModel):
    """
    Result variant of a parse attempt.

    Exactly one of ``result`` (status OK) or ``error`` (any other status)
    is set.
    """

    model_config = {"arbitrary_types_allowed": True}

    status: ParseStatus
    result: ParseResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.OK


class SaveResult(BaseModel):
    """
    Outcome of saving records to one sheet.

    Attributes:
        workbook: The openpyxl workbook the sheet was added to.
        sheet_name: Title of the created sheet.
        rows_written: Number of data rows created (header excluded).
        datum_errors: Per-field failures of this sheet.
        written: Whether the workbook was serialized to the output.
    """

    model_config = {"arbitrary_types_allowed": True}

    workbook: Any = Field(description="The openpyxl workbook")
    sheet_name: str = Field(description="Title of the created sheet")
    rows_written: int = Field(ge=0, description="Data rows created")
    datum_errors: list[DatumError] = Field(default_factory=list)
    written: bool = Field(description="Whether the workbook was written out")


class SaveRecordsRequest(BaseModel):
    """
    Request model for saving records over HTTP.

    Attributes:
        header_map: Ordered property name to header text mapping.
        records: Records as JSON objects.
        sheet_name: Optional title of the sheet.
        datum_error_placeholder: Text for properties missing from a record.
        strict: Refuse to produce a workbook if any datum error occurs.
    """

    header_map: dict[str, str | None] = Field(
        description="Ordered mapping of property name to header text",
    )
    records: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Records to save, one JSON object each",
    )
    sheet_name: str | None = Field(
        default=None,
        description="Title of the sheet",
    )
    datum_error_placeholder: str | None = Field(
        default=None,
        description="Text written for properties that fail to read",
    )
    strict: bool = Field(
        default=False,
        description="Fail instead of writing if any datum error occurs",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "header_map": {"id": "Id", "name": "Name"},
                    "records": [{"id": 1, "name": "Lei"}, {"id": 2, "name": "Jim"}],
                }
            ]
        }
    }


class ParseRecordsResponse(BaseModel):
    """
    Response model for parsing an uploaded workbook.

    Attributes:
        sheet_name: Title of the parsed sheet.
        records: Parsed records as JSON objects.
        cell_errors: Cells that could not be mapped, causes as text.
    """

    sheet_name: str | None = None
    records: list[dict[str, Any]] = Field(default_factory=list)
    cell_errors: list[dict[str, Any]] = Field(default_factory=list)


class MappingErrorResponse(BaseModel):
    """
    Standard error response model for the API.

    Attributes:
        success: Always False for error responses.
        error_code: Machine-readable error code.
        message: Human-readable error description.
        details: Additional error context.
    """

    success: bool = Field(
        default=False,
        description="Always False for error responses",
    )
    error_code: str = Field(
        description="Machine-readable error code",
    )
    message: str = Field(
        description="Human-readable error description",
    )
    details: dict | None = Field(
        default=None,
        description="Additional error context",
    )
