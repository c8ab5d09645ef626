"""
Openpyxl adapter for the record mapping engine.

This module provides the OpenpyxlAdapter class, the only place that talks
to openpyxl. The mapping services above it see worksheets as 0-based rows
and columns of classified cells and never touch openpyxl's 1-based
coordinates, styles or I/O directly.

Capabilities:
    - Create workbooks and sheets, write string cells, header and error styling
    - Open workbooks from a path or a binary stream
    - Select sheets by index or name
    - Read stored rows as tuples of cells and classify each cell
    - Serialize a workbook to a path or a binary stream

Example:
    adapter = OpenpyxlAdapter()

    workbook = adapter.create_workbook()
    sheet = adapter.create_sheet(workbook, "Users")
    adapter.write_header_row(sheet, ["Id", "Name"], fill_color="FFFF00")
    adapter.write_text_cell(sheet, 1, 0, "1")
    adapter.write_workbook(workbook, "/path/to/output.xlsx")
"""

import logging
from datetime import date, datetime, time
from os import PathLike
from pathlib import Path
from typing import IO, Any, Union

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE, Cell
from openpyxl.styles import Border, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from recordsheet.exceptions.mapping_exceptions import (
    InvalidFormatError,
    SheetNotFoundError,
    WriteError,
)
from recordsheet.models.mapping_models import CellKind

logger = logging.getLogger(__name__)

Source = Union[str, PathLike, IO[bytes]]


def describe(target: Any) -> str:
    """Human-readable name of a path or stream for error messages."""
    if isinstance(target, (str, PathLike)):
        return str(target)
    name = getattr(target, "name", None)
    if isinstance(name, str):
        return name
    return f"<{type(target).__name__}>"


class OpenpyxlAdapter:
    """
    Adapter over openpyxl workbooks for the mapping engine.

    All row and column indexes taken and returned by this class are 0-based.

    Attributes:
        DEFAULT_COLUMN_WIDTH: Minimum width given to an auto-sized column.
        MAX_COLUMN_WIDTH: Default upper bound for auto-sized columns.
    """

    DEFAULT_COLUMN_WIDTH = 10
    MAX_COLUMN_WIDTH = 50

    # ==================== WRITE OPERATIONS ====================

    def create_workbook(self) -> Workbook:
        """
        Create an empty workbook.

        openpyxl always starts a workbook with one sheet; it is removed so
        that every sheet in the result is one the caller created.

        Returns:
            A Workbook without sheets.
        """
        workbook = Workbook()
        workbook.remove(workbook.active)
        return workbook

    def create_sheet(self, workbook: Workbook, sheet_name: str | None = None) -> Worksheet:
        """
        Append a sheet to the workbook.

        Args:
            workbook: The workbook to extend.
            sheet_name: Title of the sheet. None lets openpyxl pick one.

        Returns:
            The created Worksheet.
        """
        return workbook.create_sheet(title=sheet_name)

    def write_header_row(
        self,
        sheet: Worksheet,
        header_texts: list[str],
        fill_color: str,
    ) -> None:
        """
        Write row 0 with solid fill and thin borders.

        Args:
            sheet: Target worksheet.
            header_texts: Header texts in column order.
            fill_color: RGB fill colour, e.g. "FFFF00".
        """
        thin = Side(style="thin")
        border = Border(left=thin, right=thin, top=thin, bottom=thin)
        fill = PatternFill(start_color=fill_color, end_color=fill_color, fill_type="solid")

        for column_index, header_text in enumerate(header_texts):
            cell = self.write_text_cell(sheet, 0, column_index, header_text)
            cell.fill = fill
            cell.border = border

    def write_text_cell(
        self,
        sheet: Worksheet,
        row_index: int,
        column_index: int,
        text: str,
        error_fill_color: str | None = None,
    ) -> Cell:
        """
        Write a string-typed cell.

        Text that openpyxl would take for a formula (leading "=") is still
        stored as a string, and characters illegal in XML are dropped.

        Args:
            sheet: Target worksheet.
            row_index: 0-based row index.
            column_index: 0-based column index.
            text: The cell text.
            error_fill_color: If given, the cell gets this solid fill.

        Returns:
            The written Cell.
        """
        cell = sheet.cell(row=row_index + 1, column=column_index + 1)
        cell.value = ILLEGAL_CHARACTERS_RE.sub("", text)
        cell.data_type = "s"

        if error_fill_color is not None:
            cell.fill = PatternFill(
                start_color=error_fill_color,
                end_color=error_fill_color,
                fill_type="solid",
            )

        return cell

    def size_columns(
        self,
        sheet: Worksheet,
        header_texts: list[str],
        max_width: int | None = None,
    ) -> list[int]:
        """
        Size columns to fit their header text.

        Args:
            sheet: Target worksheet.
            header_texts: Header texts in column order.
            max_width: Upper bound in characters.

        Returns:
            The widths applied, in column order.
        """
        limit = max_width or self.MAX_COLUMN_WIDTH
        widths = [
            max(self.DEFAULT_COLUMN_WIDTH, min(len(text) + 2, limit))
            for text in header_texts
        ]

        for column_index, width in enumerate(widths):
            sheet.column_dimensions[get_column_letter(column_index + 1)].width = width

        return widths

    def write_workbook(self, workbook: Workbook, output: Source) -> None:
        """
        Serialize the workbook.

        Args:
            workbook: The workbook to write.
            output: A file path or a writable binary stream.

        Raises:
            WriteError: If the destination cannot be written.
        """
        try:
            if isinstance(output, (str, PathLike)):
                Path(output).parent.mkdir(parents=True, exist_ok=True)
            workbook.save(output)
        except (OSError, MemoryError) as e:
            raise WriteError(destination=describe(output), reason=str(e)) from e

        logger.debug("Wrote workbook with sheets %s to %s", workbook.sheetnames, describe(output))

    # ==================== READ OPERATIONS ====================

    def open_workbook(self, source: Source) -> Workbook:
        """
        Load a workbook from a path or a binary stream.

        Formulas are kept as formulas so that formula cells can be
        recognised and skipped.

        Args:
            source: A file path or a readable, seekable binary stream.

        Returns:
            The loaded Workbook.

        Raises:
            InvalidFormatError: If the source is missing or not a workbook.
        """
        if isinstance(source, (str, PathLike)) and not Path(source).exists():
            raise InvalidFormatError(source=describe(source), reason="File not found")

        try:
            return load_workbook(source, data_only=False)
        except Exception as e:
            raise InvalidFormatError(source=describe(source), reason=str(e)) from e

    def sheet_count(self, workbook: Workbook) -> int:
        return len(workbook.sheetnames)

    def sheet_at(self, workbook: Workbook, sheet_index: int) -> Worksheet:
        """
        Select a sheet by 0-based position.

        Raises:
            SheetNotFoundError: If the index is out of range.
        """
        available_sheets = workbook.sheetnames
        if sheet_index < 0 or sheet_index >= len(available_sheets):
            raise SheetNotFoundError(
                sheet_name=f"index {sheet_index}",
                available_sheets=available_sheets,
            )
        return workbook.worksheets[sheet_index]

    def sheet_by_name(self, workbook: Workbook, sheet_name: str) -> Worksheet:
        """
        Select a sheet by title.

        Raises:
            SheetNotFoundError: If no sheet has that title.
        """
        available_sheets = workbook.sheetnames
        if sheet_name not in available_sheets:
            raise SheetNotFoundError(
                sheet_name=sheet_name,
                available_sheets=available_sheets,
            )
        return workbook[sheet_name]

    def last_row_index(self, sheet: Worksheet) -> int:
        """0-based index of the last row openpyxl knows about."""
        return sheet.max_row - 1

    def row_widths(self, sheet: Worksheet) -> dict[int, int]:
        """
        Width of every row that has cells stored in the sheet.

        A cell counts once it exists in the sheet, whatever its value, so a
        row saved with only empty cells is present while a row never written
        is not. Reading a row through ``get_row`` never widens it.

        Returns:
            ``{row_index: column_count}`` with 0-based row indexes, where the
            column count runs up to the last stored cell of the row.
        """
        widths: dict[int, int] = {}
        for row, column in sheet._cells:
            if column > widths.get(row - 1, 0):
                widths[row - 1] = column
        return widths

    def get_row(
        self,
        sheet: Worksheet,
        row_index: int,
        width: int | None = None,
    ) -> tuple[Cell, ...] | None:
        """
        Read one row, trimmed after its last stored cell.

        Args:
            sheet: Source worksheet.
            row_index: 0-based row index.
            width: The row's width from ``row_widths``; looked up when omitted.

        Returns:
            The row's cells from column 0 up to the last stored one, or
            None when the row has no stored cell.
        """
        if width is None:
            width = self.row_widths(sheet).get(row_index)
        if not width or row_index < 0:
            return None

        return next(
            sheet.iter_rows(
                min_row=row_index + 1,
                max_row=row_index + 1,
                max_col=width,
            )
        )

    def classify_cell(self, cell: Cell | None) -> CellKind:
        """
        Classify a cell for the cell-reading rule.

        Args:
            cell: The cell, or None for a missing one.

        Returns:
            The CellKind of the cell.
        """
        if cell is None or cell.value is None:
            return CellKind.BLANK

        data_type = cell.data_type
        if data_type == "e":
            return CellKind.ERROR
        if data_type == "f":
            return CellKind.FORMULA
        if data_type == "b" or isinstance(cell.value, bool):
            return CellKind.BOOLEAN
        if cell.is_date or isinstance(cell.value, (datetime, date, time)):
            return CellKind.DATE
        if data_type == "n":
            return CellKind.NUMERIC
        return CellKind.STRING
