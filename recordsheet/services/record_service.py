"""
Record service: the entry points of the mapping engine.

This module provides the RecordService class, the single entry point for
library callers and for the HTTP interface. It selects sheets, applies the
save policy and translates between the aggregate results of the
orchestrator and the caller-supplied error lists of the classic API.

Example:
    service = RecordService()

    # Save
    errors: list[DatumError] = []
    service.save({"id": "Id", "name": "Name"}, users, "users.xlsx", datum_errors=errors)

    # Parse
    cell_errors: list[CellError] = []
    users = service.parse({"Id": "id", "Name": "name"}, "users.xlsx", User, cell_errors)
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from openpyxl import Workbook

from recordsheet.adapters.openpyxl_adapter import OpenpyxlAdapter, Source
from recordsheet.models.mapping_models import (
    CellError,
    DatumError,
    MappingOptions,
    ParseOutcome,
    ParseResult,
    ParseStatus,
    SaveResult,
)
from recordsheet.services.property_access import PropertyAccessAdapter
from recordsheet.services.sheet_orchestrator import SheetOrchestrator

logger = logging.getLogger(__name__)


class RecordService:
    """
    Saves records to worksheets and parses records out of them.

    Caller-supplied ``datum_errors``/``cell_errors`` lists are only ever
    appended to.

    Attributes:
        options: Engine configuration (placeholder, save policy, styling).
        adapter: openpyxl adapter.
        accessors: Property access adapter; register extra setters on it.
        orchestrator: Sheet orchestrator doing the work.
    """

    def __init__(
        self,
        options: MappingOptions | None = None,
        adapter: OpenpyxlAdapter | None = None,
        accessors: PropertyAccessAdapter | None = None,
    ) -> None:
        """
        Initialize the RecordService.

        Args:
            options: Engine configuration. Defaults to MappingOptions().
            adapter: Optional OpenpyxlAdapter instance.
            accessors: Optional PropertyAccessAdapter instance.
        """
        self.options = options or MappingOptions()
        self.adapter = adapter or OpenpyxlAdapter()
        self.accessors = accessors or PropertyAccessAdapter()
        self.orchestrator = SheetOrchestrator(
            options=self.options,
            adapter=self.adapter,
            accessors=self.accessors,
        )

    # ==================== SAVE ====================

    def save(
        self,
        header_map: Mapping[str, str | None],
        records: Iterable[Any] | None,
        output: Source,
        datum_error_placeholder: str | None = None,
        datum_errors: list[DatumError] | None = None,
    ) -> None:
        """
        Save records to a new workbook, even if some properties fail to read.

        Failed properties are written as ``datum_error_placeholder`` (or
        the configured default) in an error-styled cell.

        Args:
            header_map: ``{property_name: header_text}`` in column order.
            records: Records to save.
            output: Path or writable binary stream.
            datum_error_placeholder: Text for properties that fail to read.
            datum_errors: Optional list to receive the datum errors.
        """
        self.save_and_get(
            header_map,
            records,
            output,
            datum_error_placeholder=datum_error_placeholder,
            datum_errors=datum_errors,
            still_save_if_data_error=True,
        )

    def save_if_no_datum_error(
        self,
        header_map: Mapping[str, str | None],
        records: Iterable[Any] | None,
        output: Source,
        datum_errors: list[DatumError] | None = None,
    ) -> bool:
        """
        Save records to a new workbook only if every property reads cleanly.

        Returns:
            Whether the workbook was written.
        """
        result = self.save_sheet(
            self.adapter.create_workbook(),
            header_map,
            records,
            output,
            still_save_if_data_error=False,
        )
        if datum_errors is not None:
            datum_errors.extend(result.datum_errors)
        return result.written

    def save_and_get(
        self,
        header_map: Mapping[str, str | None],
        records: Iterable[Any] | None,
        output: Source,
        sheet_name: str | None = None,
        datum_error_placeholder: str | None = None,
        datum_errors: list[DatumError] | None = None,
        still_save_if_data_error: bool | None = None,
    ) -> Workbook:
        """
        Save records to a new workbook and return it for further sheets.

        Args:
            header_map: ``{property_name: header_text}`` in column order.
            records: Records to save.
            output: Path or writable binary stream.
            sheet_name: Title of the sheet.
            datum_error_placeholder: Text for properties that fail to read.
            datum_errors: Optional list to receive the datum errors.
            still_save_if_data_error: Write even with datum errors. Defaults
                to the configured policy.

        Returns:
            The created openpyxl Workbook; pass it to ``append_sheet``.
        """
        return self.append_sheet(
            self.adapter.create_workbook(),
            header_map,
            records,
            output,
            sheet_name=sheet_name,
            datum_error_placeholder=datum_error_placeholder,
            datum_errors=datum_errors,
            still_save_if_data_error=still_save_if_data_error,
        )

    def append_sheet(
        self,
        workbook: Workbook,
        header_map: Mapping[str, str | None],
        records: Iterable[Any] | None,
        output: Source,
        sheet_name: str | None = None,
        datum_error_placeholder: str | None = None,
        datum_errors: list[DatumError] | None = None,
        still_save_if_data_error: bool | None = None,
    ) -> Workbook:
        """
        Add a sheet of records to an existing workbook and write it out.

        The whole workbook, earlier sheets included, is written to
        ``output``.

        Returns:
            The same workbook.
        """
        result = self.save_sheet(
            workbook,
            header_map,
            records,
            output,
            sheet_name=sheet_name,
            datum_error_placeholder=datum_error_placeholder,
            still_save_if_data_error=still_save_if_data_error,
        )
        if datum_errors is not None:
            datum_errors.extend(result.datum_errors)
        return result.workbook

    def save_sheet(
        self,
        workbook: Workbook,
        header_map: Mapping[str, str | None],
        records: Iterable[Any] | None,
        output: Source,
        sheet_name: str | None = None,
        datum_error_placeholder: str | None = None,
        still_save_if_data_error: bool | None = None,
    ) -> SaveResult:
        """
        Add a sheet to ``workbook`` and return the aggregate SaveResult.

        Unset arguments fall back to the configured MappingOptions.
        """
        if datum_error_placeholder is None:
            datum_error_placeholder = self.options.datum_error_placeholder
        if still_save_if_data_error is None:
            still_save_if_data_error = self.options.still_save_if_data_error

        return self.orchestrator.save_sheet(
            workbook,
            header_map,
            records,
            output,
            sheet_name=sheet_name,
            datum_error_placeholder=datum_error_placeholder,
            still_save_if_data_error=still_save_if_data_error,
        )

    # ==================== PARSE ====================

    def parse(
        self,
        reverse_header_map: Mapping[str, str],
        source: Source,
        record_type: type,
        cell_errors: list[CellError] | None = None,
        sheet_index: int = 0,
        sheet_name: str | None = None,
    ) -> list[Any]:
        """
        Parse a sheet into a list of records.

        Columns are found by their header text, not their position.

        Args:
            reverse_header_map: ``{header_text: property_name}``.
            source: Path or readable binary stream of the workbook.
            record_type: Record type; must be callable with no arguments.
            cell_errors: Optional list to receive the cell errors.
            sheet_index: 0-based index of the sheet. Defaults to the first.
            sheet_name: Title of the sheet; takes precedence over the index.

        Returns:
            One record per present data row.

        Raises:
            InvalidFormatError: If the source is not a workbook.
            InvalidHeaderRowError: If no header matched.
            SheetNotFoundError: If the sheet does not exist.
        """
        result = self.parse_sheet(
            reverse_header_map,
            source,
            record_type,
            sheet_index=sheet_index,
            sheet_name=sheet_name,
        )
        if cell_errors is not None:
            cell_errors.extend(result.cell_errors)
        return result.records

    def parse_sheet(
        self,
        reverse_header_map: Mapping[str, str],
        source: Source,
        record_type: type,
        sheet_index: int = 0,
        sheet_name: str | None = None,
    ) -> ParseResult:
        """Parse a sheet and return records and cell errors together."""
        return self.orchestrator.parse_sheet(
            reverse_header_map,
            source,
            record_type,
            sheet_index=sheet_index,
            sheet_name=sheet_name,
        )

    def try_parse(
        self,
        reverse_header_map: Mapping[str, str],
        source: Source,
        record_type: type,
        sheet_index: int = 0,
        sheet_name: str | None = None,
    ) -> ParseOutcome:
        """Parse a sheet, reporting format and header failures as a ParseOutcome."""
        return self.orchestrator.try_parse(
            reverse_header_map,
            source,
            record_type,
            sheet_index=sheet_index,
            sheet_name=sheet_name,
        )

    def parse_ignoring_errors(
        self,
        reverse_header_map: Mapping[str, str],
        source: Source,
        record_type: type,
        sheet_index: int = 0,
        sheet_name: str | None = None,
    ) -> list[Any]:
        """
        Parse like ``parse`` but return an empty list on format or header errors.

        Cell errors are discarded. A bad sheet index or name still raises
        SheetNotFoundError.
        """
        outcome = self.try_parse(
            reverse_header_map,
            source,
            record_type,
            sheet_index=sheet_index,
            sheet_name=sheet_name,
        )
        if outcome.status is ParseStatus.OK:
            return outcome.result.records

        logger.warning("Ignoring parse failure (%s): %s", outcome.status.value, outcome.error)
        return []
