"""
Custom exceptions for record/sheet mapping operations.

This module defines a hierarchy of exceptions for handling the error
conditions met while saving records to a worksheet or parsing records
out of one. All exceptions inherit from MappingServiceError for
consistent error handling.

Per-field failures (PropertyAccessError, NoSuitableSetterError) are never
raised out of a save or parse call; they are recorded as the ``cause`` of a
DatumError or CellError instead.

Example:
    try:
        records = parse({"Id": "id"}, "users.xlsx", User)
    except InvalidHeaderRowError:
        logger.error("No header matched")
    except MappingServiceError as e:
        logger.error(f"General error: {e}")
"""

from typing import Any


class MappingServiceError(Exception):
    """
    Base exception for all mapping errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code for API responses.
        details: Optional additional context about the error.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "MAPPING_ERROR",
        details: dict | None = None,
    ) -> None:
        """
        Initialize the MappingServiceError.

        Args:
            message: Human-readable error description.
            error_code: Machine-readable error code for API responses.
            details: Optional additional context about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """
        Convert exception to a dictionary for API responses.

        Returns:
            Dictionary containing error_code, message, and details.
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidArgumentError(MappingServiceError, ValueError):
    """
    Raised when a call is misconfigured before any I/O takes place.

    Covers blank or missing header maps, a missing record type and a
    missing output destination.

    Attributes:
        argument: Name of the offending argument.
    """

    def __init__(self, argument: str, reason: str) -> None:
        self.argument = argument
        super().__init__(
            message=reason,
            error_code="INVALID_ARGUMENT",
            details={"argument": argument},
        )


class InvalidFormatError(MappingServiceError):
    """
    Raised when the input is not a readable spreadsheet workbook.

    Attributes:
        source: Description of the input (a path or the stream repr).
        reason: Specific reason for the format error.
    """

    def __init__(self, source: str, reason: str | None = None) -> None:
        """
        Initialize the InvalidFormatError.

        Args:
            source: Description of the input that failed to load.
            reason: Specific reason for the format error.
        """
        self.source = source
        self.reason = reason

        message = f"Invalid spreadsheet format: {source}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="INVALID_FILE_FORMAT",
            details={"source": source, "reason": reason},
        )


class InvalidHeaderRowError(MappingServiceError):
    """
    Raised when no header text in row 0 matches the header map.

    This is distinct from some headers being unmatched, which is tolerated.

    Attributes:
        sheet_name: Title of the sheet whose header row was rejected.
        expected_headers: Header texts that were looked for.
    """

    def __init__(
        self,
        sheet_name: str | None = None,
        expected_headers: list[str] | None = None,
    ) -> None:
        self.sheet_name = sheet_name
        self.expected_headers = expected_headers or []

        message = "The header row does not contain any of the expected headers"
        if sheet_name:
            message += f" (sheet: {sheet_name})"

        super().__init__(
            message=message,
            error_code="INVALID_HEADER_ROW",
            details={
                "sheet_name": sheet_name,
                "expected_headers": self.expected_headers,
            },
        )


class SheetNotFoundError(MappingServiceError, LookupError):
    """
    Raised when the requested sheet does not exist in the workbook.

    Attributes:
        sheet_name: Name (or "index N") of the sheet that was not found.
        available_sheets: List of sheets available in the workbook.
    """

    def __init__(
        self,
        sheet_name: str,
        available_sheets: list[str] | None = None,
    ) -> None:
        """
        Initialize the SheetNotFoundError.

        Args:
            sheet_name: Name of the sheet that was not found.
            available_sheets: List of sheets available in the workbook.
        """
        self.sheet_name = sheet_name
        self.available_sheets = available_sheets or []

        message = f"Sheet not found: {sheet_name}"
        if available_sheets:
            message += f". Available sheets: {', '.join(available_sheets)}"

        super().__init__(
            message=message,
            error_code="SHEET_NOT_FOUND",
            details={
                "sheet_name": sheet_name,
                "available_sheets": self.available_sheets,
            },
        )


class WriteError(MappingServiceError):
    """
    Raised when the workbook cannot be serialized to its destination.

    Attributes:
        destination: Description of the output (a path or the stream repr).
        reason: Specific reason for the write failure.
    """

    def __init__(self, destination: str, reason: str | None = None) -> None:
        self.destination = destination
        self.reason = reason

        message = f"Failed to write workbook to: {destination}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="WRITE_ERROR",
            details={"destination": destination, "reason": reason},
        )


class PropertyAccessError(MappingServiceError):
    """
    Raised when a record property cannot be read or written.

    The original exception, if any, is chained as ``__cause__``.

    Attributes:
        property_name: The property being accessed.
        operation: "read" or "write".
    """

    def __init__(
        self,
        property_name: str,
        operation: str = "read",
        reason: str | None = None,
    ) -> None:
        self.property_name = property_name
        self.operation = operation
        self.reason = reason

        message = f"Failed to {operation} property \"{property_name}\""
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="PROPERTY_ACCESS_ERROR",
            details={
                "property_name": property_name,
                "operation": operation,
                "reason": reason,
            },
        )


class NoSuitableSetterError(MappingServiceError):
    """
    Raised when no setter of a property accepts a cell value.

    Attributes:
        property_name: The property that could not be set.
        cell_value: The normalized cell value that was offered.
    """

    def __init__(self, property_name: str, cell_value: Any) -> None:
        self.property_name = property_name
        self.cell_value = cell_value

        super().__init__(
            message=(
                f"No suitable setter for property \"{property_name}\" "
                f"with cell value \"{cell_value}\""
            ),
            error_code="NO_SUITABLE_SETTER",
            details={
                "property_name": property_name,
                "cell_value": None if cell_value is None else str(cell_value),
            },
        )


class RecordInstantiationError(MappingServiceError):
    """
    Raised when the record type cannot be built with a zero-argument call.

    Attributes:
        record_type: Qualified name of the record type.
    """

    def __init__(self, record_type: str, reason: str | None = None) -> None:
        self.record_type = record_type
        self.reason = reason

        message = f"Cannot instantiate record type: {record_type}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="RECORD_INSTANTIATION_ERROR",
            details={"record_type": record_type, "reason": reason},
        )
