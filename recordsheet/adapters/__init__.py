"""
Adapters for spreadsheet containers.

- OpenpyxlAdapter: workbook creation, cell writes and styling, reading and
  classification of cells, and serialization, all through openpyxl
"""

from recordsheet.adapters.openpyxl_adapter import OpenpyxlAdapter

__all__ = [
    "OpenpyxlAdapter",
]
