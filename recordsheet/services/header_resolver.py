"""
Header resolution and the shared cell-reading rule.

Saving needs no resolution: the declared header map is the column order,
so only validation happens here. Parsing reads row 0 of the sheet and maps
each column whose header text appears in the reverse header map to the
property it feeds.
"""

import logging
from collections.abc import Mapping
from datetime import date, datetime, time
from typing import Any

from openpyxl.cell.cell import Cell
from openpyxl.worksheet.worksheet import Worksheet

from recordsheet.adapters.openpyxl_adapter import OpenpyxlAdapter
from recordsheet.exceptions.mapping_exceptions import (
    InvalidArgumentError,
    InvalidHeaderRowError,
)
from recordsheet.models.mapping_models import CellKind, ColumnMeta

logger = logging.getLogger(__name__)


def is_blank(text: Any) -> bool:
    return text is None or not str(text).strip()


class HeaderResolver:
    """
    Validates header maps and resolves header rows into column metadata.

    Attributes:
        adapter: The spreadsheet adapter used to read and classify cells.
    """

    HEADER_ROW_INDEX = 0

    def __init__(self, adapter: OpenpyxlAdapter | None = None) -> None:
        self.adapter = adapter or OpenpyxlAdapter()

    def validate_header_map(self, header_map: Mapping[str, str | None] | None) -> None:
        """
        Check a save-direction ``{property_name: header_text}`` map.

        Raises:
            InvalidArgumentError: If the map is missing or empty, or a
                property name is blank.
        """
        if not header_map:
            raise InvalidArgumentError("header_map", "the header_map can not be None or empty")

        for column_index, property_name in enumerate(header_map):
            if is_blank(property_name):
                raise InvalidArgumentError(
                    "header_map",
                    "One header has a blank property name. "
                    f"Header Index (0-based) = {column_index}",
                )

    def validate_reverse_header_map(self, reverse_header_map: Mapping[str, str] | None) -> None:
        """
        Check a parse-direction ``{header_text: property_name}`` map.

        Raises:
            InvalidArgumentError: If the map is missing or empty, or a header
                text or property name is blank.
        """
        if not reverse_header_map:
            raise InvalidArgumentError(
                "reverse_header_map",
                "the reverse_header_map can not be None or empty",
            )

        for column_index, (header_text, property_name) in enumerate(reverse_header_map.items()):
            if is_blank(header_text):
                raise InvalidArgumentError(
                    "reverse_header_map",
                    "One header defined in the reverse_header_map has a blank header text. "
                    f"Header Index (0-based) = {column_index}",
                )
            if is_blank(property_name):
                raise InvalidArgumentError(
                    "reverse_header_map",
                    "One header defined in the reverse_header_map has a blank property name. "
                    f"Header Index (0-based) = {column_index}",
                )

    def header_texts(self, header_map: Mapping[str, str | None]) -> list[str]:
        """Header texts in column order; a missing text is written empty."""
        return [header_text or "" for header_text in header_map.values()]

    def read_cell(self, cell: Cell | None) -> str | datetime | None:
        """
        Normalize a cell to None, text or a datetime.

        Blank, error and formula cells give None. Booleans give "true" or
        "false". Date-formatted numbers give a datetime, other numbers
        their text. Strings are stripped and an empty string gives None.
        """
        kind = self.adapter.classify_cell(cell)

        if kind in (CellKind.BLANK, CellKind.ERROR, CellKind.FORMULA):
            return None

        value = cell.value

        if kind is CellKind.BOOLEAN:
            return "true" if value else "false"

        if kind is CellKind.DATE:
            if isinstance(value, datetime):
                return value
            if isinstance(value, date):
                return datetime.combine(value, time())
            return str(value)

        if kind is CellKind.NUMERIC:
            return str(value)

        return str(value).strip() or None

    def resolve(
        self,
        reverse_header_map: Mapping[str, str],
        sheet: Worksheet,
    ) -> dict[int, ColumnMeta]:
        """
        Map the columns of row 0 to record properties.

        Columns whose header text is blank or not in the reverse header map
        are left out.

        Args:
            reverse_header_map: ``{header_text: property_name}``.
            sheet: The sheet being parsed.

        Returns:
            Column metadata keyed by 0-based column index.

        Raises:
            InvalidHeaderRowError: If no column matched.
        """
        header_row = self.adapter.get_row(sheet, self.HEADER_ROW_INDEX) or ()
        column_metas: dict[int, ColumnMeta] = {}

        for column_index, cell in enumerate(header_row):
            header_value = self.read_cell(cell)
            if header_value is None:
                continue

            header_text = str(header_value)
            property_name = reverse_header_map.get(header_text)
            if property_name is None:
                logger.debug("Ignoring unmapped header %r at column %d", header_text, column_index)
                continue

            column_metas[column_index] = ColumnMeta(
                column_index=column_index,
                property_name=property_name,
                header_text=header_text,
            )

        if not column_metas:
            raise InvalidHeaderRowError(
                sheet_name=sheet.title,
                expected_headers=list(reverse_header_map),
            )

        logger.debug(
            "Resolved %d of %d header(s) in sheet %r",
            len(column_metas),
            len(reverse_header_map),
            sheet.title,
        )
        return column_metas
