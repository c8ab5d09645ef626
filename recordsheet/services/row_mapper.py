"""
Record/row mapping.

Writes one record into one worksheet row and reads one worksheet row into
one new record. A failing field never stops the row: it is recorded as a
DatumError (save) or CellError (parse) and the next column is processed.
"""

import logging
from collections.abc import Mapping
from typing import Any

from openpyxl.cell.cell import Cell
from openpyxl.worksheet.worksheet import Worksheet

from recordsheet.adapters.openpyxl_adapter import OpenpyxlAdapter
from recordsheet.exceptions.mapping_exceptions import (
    MappingServiceError,
    PropertyAccessError,
    RecordInstantiationError,
)
from recordsheet.models.mapping_models import CellError, ColumnMeta, DatumError
from recordsheet.services.header_resolver import HeaderResolver
from recordsheet.services.property_access import PropertyAccessAdapter
from recordsheet.services.type_coercion import TypeCoercionService

logger = logging.getLogger(__name__)


class RecordRowMapper:
    """
    Maps single records to rows and rows to single records.

    Attributes:
        adapter: Spreadsheet adapter for cell writes.
        resolver: Header resolver, for the shared cell-reading rule.
        accessors: Property access adapter.
        coercion: Type coercion service.
    """

    def __init__(
        self,
        adapter: OpenpyxlAdapter | None = None,
        resolver: HeaderResolver | None = None,
        accessors: PropertyAccessAdapter | None = None,
        coercion: TypeCoercionService | None = None,
    ) -> None:
        self.adapter = adapter or OpenpyxlAdapter()
        self.resolver = resolver or HeaderResolver(self.adapter)
        self.accessors = accessors or PropertyAccessAdapter()
        self.coercion = coercion or TypeCoercionService()

    # ==================== SAVE DIRECTION ====================

    def write_row(
        self,
        sheet: Worksheet,
        row_index: int,
        record: Any,
        record_index: int,
        header_map: Mapping[str, str | None],
        datum_error_placeholder: str | None = None,
        error_fill_color: str = "FF0000",
    ) -> list[DatumError]:
        """
        Write a record's mapped properties into a row.

        Args:
            sheet: Target worksheet.
            row_index: 0-based row to write.
            record: The record.
            record_index: 0-based position of the record in its collection.
            header_map: ``{property_name: header_text}`` in column order.
            datum_error_placeholder: Text for properties that fail to read.
            error_fill_color: Fill of cells whose property failed to read.

        Returns:
            The datum errors of this record, in column order.
        """
        datum_errors: list[DatumError] = []

        for column_index, property_name in enumerate(header_map):
            try:
                value = self.accessors.read_property(record, property_name)
            except PropertyAccessError as e:
                logger.debug("Record %d: %s", record_index, e.message)
                datum_errors.append(
                    DatumError(record_index=record_index, property_name=property_name, cause=e)
                )
                self.adapter.write_text_cell(
                    sheet,
                    row_index,
                    column_index,
                    self.coercion.stringify(datum_error_placeholder),
                    error_fill_color=error_fill_color,
                )
                continue

            self.adapter.write_text_cell(
                sheet,
                row_index,
                column_index,
                self.coercion.stringify(value),
            )

        return datum_errors

    # ==================== PARSE DIRECTION ====================

    def create_record(self, record_type: type) -> Any:
        """
        Instantiate a record with no arguments.

        Raises:
            RecordInstantiationError: If the call fails.
        """
        try:
            return record_type()
        except Exception as e:
            raise RecordInstantiationError(
                record_type=getattr(record_type, "__qualname__", repr(record_type)),
                reason=str(e),
            ) from e

    def set_property(self, record_type: type, record: Any, property_name: str, raw_value: Any) -> None:
        """
        Write a normalized cell value into a record property.

        Raises:
            NoSuitableSetterError: If no accessor exists or none takes the value.
            PropertyAccessError: If the chosen accessor raises.
        """
        candidates = self.accessors.find_accessors(record_type, property_name)
        accessor, value = self.coercion.coerce_from_cell(property_name, raw_value, candidates)
        self.accessors.invoke(accessor, record, value)

    def read_row(
        self,
        cells: tuple[Cell, ...],
        row_index: int,
        column_metas: dict[int, ColumnMeta],
        record_type: type,
    ) -> tuple[Any, list[CellError]]:
        """
        Build a record from a row.

        Only columns up to the row's last stored cell are examined.

        Args:
            cells: The row's cells, as returned by ``OpenpyxlAdapter.get_row``.
            row_index: 0-based index of the row.
            column_metas: Resolved header columns.
            record_type: Type of the record to build.

        Returns:
            The record and the cell errors met while filling it.
        """
        record = self.create_record(record_type)
        cell_errors: list[CellError] = []

        for column_index, cell in enumerate(cells):
            column_meta = column_metas.get(column_index)
            if column_meta is None:
                continue

            raw_value = self.resolver.read_cell(cell)
            try:
                self.set_property(record_type, record, column_meta.property_name, raw_value)
            except MappingServiceError as e:
                logger.debug("Row %d column %d: %s", row_index, column_index, e.message)
                cell_errors.append(
                    CellError(
                        row_index=row_index,
                        column_index=column_index,
                        header_text=column_meta.header_text,
                        property_name=column_meta.property_name,
                        cause=e,
                    )
                )

        return record, cell_errors
