"""
Test fixtures and utilities for the record mapping tests.

This module provides shared fixtures including temporary directories,
service instances and a factory for workbooks with hand-placed cells.
"""

import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

from recordsheet.adapters.openpyxl_adapter import OpenpyxlAdapter
from recordsheet.services.record_service import RecordService


@pytest.fixture
def record_service() -> RecordService:
    """
    Create a RecordService instance for testing.

    Returns:
        RecordService instance.
    """
    return RecordService()


@pytest.fixture
def openpyxl_adapter() -> OpenpyxlAdapter:
    """
    Create an OpenpyxlAdapter instance for testing.

    Returns:
        OpenpyxlAdapter instance.
    """
    return OpenpyxlAdapter()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_workbook(temp_dir: Path) -> Callable[..., Path]:
    """
    Return a factory writing rows to an .xlsx file.

    The factory takes ``{sheet_name: rows}``; each row is a list of cell
    values, where None leaves the cell unwritten and a row of None leaves
    the whole row absent.

    Returns:
        Factory returning the path of the written workbook.
    """
    counter = iter(range(1000))

    def factory(sheets: dict[str, list[list[Any] | None]]) -> Path:
        workbook = Workbook()
        workbook.remove(workbook.active)

        for sheet_name, rows in sheets.items():
            sheet = workbook.create_sheet(sheet_name)
            for row_index, row in enumerate(rows, start=1):
                if row is None:
                    continue
                for column_index, value in enumerate(row, start=1):
                    if value is not None:
                        sheet.cell(row=row_index, column=column_index, value=value)

        file_path = temp_dir / f"workbook_{next(counter)}.xlsx"
        workbook.save(file_path)
        return file_path

    return factory


@pytest.fixture
def users_file(make_workbook: Callable[..., Path]) -> Path:
    """
    Create a workbook with one "Users" sheet of text cells.

    Returns:
        Path to the workbook.
    """
    return make_workbook(
        {
            "Users": [
                ["Id", "Name", "Email"],
                ["1", "Lei", "lei@example.com"],
                ["2", "Jim", "jim@example.com"],
            ]
        }
    )
