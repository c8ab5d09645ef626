"""
Sheet-level orchestration of saves and parses.

Save: create the sheet, write the header row, write one row per record,
then write the workbook out unless strict mode is on and datum errors were
collected. Skipping the write never drops rows or errors.

Parse: open the workbook, select the sheet, resolve the header row, then
map every present data row to a record. Rows with no stored cell are
skipped; a row holding only empty cells is present and yields a record, as
does every row whatever number of its cells failed.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from recordsheet.adapters.openpyxl_adapter import OpenpyxlAdapter, Source, describe
from recordsheet.exceptions.mapping_exceptions import (
    InvalidArgumentError,
    InvalidFormatError,
    InvalidHeaderRowError,
)
from recordsheet.models.mapping_models import (
    DatumError,
    MappingOptions,
    ParseOutcome,
    ParseResult,
    ParseStatus,
    SaveResult,
)
from recordsheet.services.header_resolver import HeaderResolver
from recordsheet.services.property_access import PropertyAccessAdapter
from recordsheet.services.row_mapper import RecordRowMapper
from recordsheet.services.type_coercion import TypeCoercionService

logger = logging.getLogger(__name__)


def should_save(datum_errors: list[DatumError], still_save_if_data_error: bool) -> bool:
    """Whether a generated sheet may be written out."""
    return still_save_if_data_error or not datum_errors


class SheetOrchestrator:
    """
    Runs a whole sheet through the row mapper.

    Attributes:
        options: Engine configuration.
        adapter: Spreadsheet adapter.
        resolver: Header resolver.
        mapper: Record/row mapper.
    """

    def __init__(
        self,
        options: MappingOptions | None = None,
        adapter: OpenpyxlAdapter | None = None,
        accessors: PropertyAccessAdapter | None = None,
        coercion: TypeCoercionService | None = None,
    ) -> None:
        self.options = options or MappingOptions()
        self.adapter = adapter or OpenpyxlAdapter()
        self.resolver = HeaderResolver(self.adapter)
        self.mapper = RecordRowMapper(
            adapter=self.adapter,
            resolver=self.resolver,
            accessors=accessors,
            coercion=coercion,
        )

    # ==================== SAVE ====================

    def save_sheet(
        self,
        workbook: Workbook,
        header_map: Mapping[str, str | None],
        records: Iterable[Any] | None,
        output: Source,
        sheet_name: str | None = None,
        datum_error_placeholder: str | None = None,
        still_save_if_data_error: bool = True,
    ) -> SaveResult:
        """
        Add a sheet of records to a workbook and write the workbook out.

        Args:
            workbook: Workbook to add the sheet to.
            header_map: ``{property_name: header_text}`` in column order.
            records: Records to save; None saves a header-only sheet.
            output: Path or writable binary stream.
            sheet_name: Title of the new sheet.
            datum_error_placeholder: Text for properties that fail to read.
            still_save_if_data_error: Write even if datum errors occurred.

        Returns:
            SaveResult describing the sheet and whether it was written.

        Raises:
            InvalidArgumentError: If the header map or output is invalid.
            WriteError: If writing the workbook fails.
        """
        self.resolver.validate_header_map(header_map)
        if output is None:
            raise InvalidArgumentError("output", "the output can not be None")
        if records is None:
            records = []

        sheet = self.adapter.create_sheet(workbook, sheet_name)
        header_texts = self.resolver.header_texts(header_map)
        self.adapter.write_header_row(sheet, header_texts, self.options.header_fill_color)
        if self.options.auto_size_columns:
            self.adapter.size_columns(sheet, header_texts, self.options.max_column_width)

        datum_errors: list[DatumError] = []
        rows_written = 0
        for record_index, record in enumerate(records):
            datum_errors.extend(
                self.mapper.write_row(
                    sheet,
                    record_index + 1,
                    record,
                    record_index,
                    header_map,
                    datum_error_placeholder=datum_error_placeholder,
                    error_fill_color=self.options.error_fill_color,
                )
            )
            rows_written += 1

        written = should_save(datum_errors, still_save_if_data_error)
        if written:
            self.adapter.write_workbook(workbook, output)
            logger.info(
                "Saved %d record(s) to sheet %r (%d datum error(s))",
                rows_written,
                sheet.title,
                len(datum_errors),
            )
        else:
            logger.info(
                "Not writing sheet %r to %s: %d datum error(s)",
                sheet.title,
                describe(output),
                len(datum_errors),
            )

        return SaveResult(
            workbook=workbook,
            sheet_name=sheet.title,
            rows_written=rows_written,
            datum_errors=datum_errors,
            written=written,
        )

    # ==================== PARSE ====================

    def select_sheet(
        self,
        workbook: Workbook,
        sheet_index: int = 0,
        sheet_name: str | None = None,
    ) -> Worksheet:
        """
        Pick the sheet to parse; a name takes precedence over an index.

        Raises:
            SheetNotFoundError: If the index or name matches no sheet.
        """
        if sheet_name is not None:
            return self.adapter.sheet_by_name(workbook, sheet_name)
        return self.adapter.sheet_at(workbook, sheet_index)

    def parse_sheet(
        self,
        reverse_header_map: Mapping[str, str],
        source: Source,
        record_type: type,
        sheet_index: int = 0,
        sheet_name: str | None = None,
    ) -> ParseResult:
        """
        Parse one sheet into records.

        Args:
            reverse_header_map: ``{header_text: property_name}``.
            source: Path or readable binary stream of the workbook.
            record_type: Record type; must be callable with no arguments.
            sheet_index: 0-based index of the sheet, used without sheet_name.
            sheet_name: Title of the sheet.

        Returns:
            ParseResult with the records and cell errors.

        Raises:
            InvalidArgumentError: If an argument is missing or invalid.
            InvalidFormatError: If the source is not a workbook.
            SheetNotFoundError: If the sheet does not exist.
            InvalidHeaderRowError: If no header matched.
            RecordInstantiationError: If the record type cannot be built.
        """
        self.resolver.validate_reverse_header_map(reverse_header_map)
        if record_type is None:
            raise InvalidArgumentError("record_type", "the record_type can not be None")
        if source is None:
            raise InvalidArgumentError("source", "the source can not be None")

        workbook = self.adapter.open_workbook(source)
        if self.adapter.sheet_count(workbook) <= 0:
            return ParseResult()

        sheet = self.select_sheet(workbook, sheet_index=sheet_index, sheet_name=sheet_name)
        column_metas = self.resolver.resolve(reverse_header_map, sheet)

        result = ParseResult(sheet_name=sheet.title)
        row_widths = self.adapter.row_widths(sheet)
        for row_index in range(1, self.adapter.last_row_index(sheet) + 1):
            cells = self.adapter.get_row(sheet, row_index, row_widths.get(row_index, 0))
            if cells is None:
                continue

            record, cell_errors = self.mapper.read_row(cells, row_index, column_metas, record_type)
            result.records.append(record)
            result.cell_errors.extend(cell_errors)

        logger.info(
            "Parsed %d record(s) from sheet %r (%d cell error(s))",
            len(result.records),
            sheet.title,
            len(result.cell_errors),
        )
        return result

    def try_parse(
        self,
        reverse_header_map: Mapping[str, str],
        source: Source,
        record_type: type,
        sheet_index: int = 0,
        sheet_name: str | None = None,
    ) -> ParseOutcome:
        """
        Parse one sheet, reporting format and header failures as outcomes.

        Lookup and argument errors are still raised.
        """
        try:
            result = self.parse_sheet(
                reverse_header_map,
                source,
                record_type,
                sheet_index=sheet_index,
                sheet_name=sheet_name,
            )
        except InvalidFormatError as e:
            return ParseOutcome(status=ParseStatus.FORMAT_ERROR, error=e)
        except InvalidHeaderRowError as e:
            return ParseOutcome(status=ParseStatus.HEADER_ERROR, error=e)
        return ParseOutcome(status=ParseStatus.OK, result=result)
