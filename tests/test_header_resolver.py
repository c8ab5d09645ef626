"""
Tests for the HeaderResolver.

Tests header map validation, the shared cell-reading rule and header row
resolution.
"""

from collections.abc import Callable
from datetime import date, datetime
from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook

from recordsheet.exceptions.mapping_exceptions import (
    InvalidArgumentError,
    InvalidHeaderRowError,
)
from recordsheet.services.header_resolver import HeaderResolver


@pytest.fixture
def resolver() -> HeaderResolver:
    """Create a HeaderResolver instance for testing."""
    return HeaderResolver()


@pytest.fixture
def sheet():
    """Create an in-memory worksheet."""
    return Workbook().active


class TestValidation:
    """Tests for header map validation."""

    @pytest.mark.parametrize("header_map", [None, {}])
    def test_empty_header_map(self, resolver: HeaderResolver, header_map) -> None:
        """Test that a missing or empty header map is rejected."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            resolver.validate_header_map(header_map)

        assert exc_info.value.error_code == "INVALID_ARGUMENT"

    def test_blank_property_name(self, resolver: HeaderResolver) -> None:
        """Test that a blank property name is rejected with its index."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            resolver.validate_header_map({"id": "Id", "  ": "Name"})

        assert "Header Index (0-based) = 1" in exc_info.value.message

    def test_missing_header_text_allowed(self, resolver: HeaderResolver) -> None:
        """Test that a None header text is written as an empty header."""
        resolver.validate_header_map({"id": None})

        assert resolver.header_texts({"id": None, "name": "Name"}) == ["", "Name"]

    @pytest.mark.parametrize(
        "reverse_header_map",
        [None, {}, {"": "id"}, {"Id": " "}],
    )
    def test_invalid_reverse_header_map(self, resolver: HeaderResolver, reverse_header_map) -> None:
        """Test that empty maps, blank header texts and blank property names are rejected."""
        with pytest.raises(InvalidArgumentError):
            resolver.validate_reverse_header_map(reverse_header_map)

    def test_invalid_argument_is_value_error(self, resolver: HeaderResolver) -> None:
        """Test that configuration errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            resolver.validate_reverse_header_map({})


class TestReadCell:
    """Tests for the shared cell-reading rule."""

    def test_missing_and_blank_cells(self, resolver: HeaderResolver, sheet) -> None:
        """Test that missing and empty cells read as None."""
        assert resolver.read_cell(None) is None
        assert resolver.read_cell(sheet["A1"]) is None

    def test_string_cells_are_stripped(self, resolver: HeaderResolver, sheet) -> None:
        """Test that text is stripped and whitespace-only text is None."""
        sheet["A1"] = "  Lei  "
        sheet["A2"] = "   "

        assert resolver.read_cell(sheet["A1"]) == "Lei"
        assert resolver.read_cell(sheet["A2"]) is None

    def test_boolean_cells(self, resolver: HeaderResolver, sheet) -> None:
        """Test that booleans read as lower-case text."""
        sheet["A1"] = True
        sheet["A2"] = False

        assert resolver.read_cell(sheet["A1"]) == "true"
        assert resolver.read_cell(sheet["A2"]) == "false"

    def test_numeric_cells(self, resolver: HeaderResolver, sheet) -> None:
        """Test that numbers read as their text."""
        sheet["A1"] = 42
        sheet["A2"] = 2.5

        assert resolver.read_cell(sheet["A1"]) == "42"
        assert resolver.read_cell(sheet["A2"]) == "2.5"

    def test_date_cells(self, resolver: HeaderResolver, sheet) -> None:
        """Test that date cells read as datetimes."""
        sheet["A1"] = datetime(2024, 1, 2, 3, 4, 5)
        sheet["A2"] = date(2024, 1, 2)

        assert resolver.read_cell(sheet["A1"]) == datetime(2024, 1, 2, 3, 4, 5)
        assert resolver.read_cell(sheet["A2"]) == datetime(2024, 1, 2)

    def test_formula_and_error_cells(self, resolver: HeaderResolver, sheet) -> None:
        """Test that formula and error cells read as None."""
        sheet["A1"] = "=1+1"
        sheet["A2"] = "#N/A"

        assert resolver.read_cell(sheet["A1"]) is None
        assert resolver.read_cell(sheet["A2"]) is None

    def test_date_cells_after_reload(
        self,
        resolver: HeaderResolver,
        make_workbook: Callable[..., Path],
    ) -> None:
        """Test that a saved date-formatted number reads back as a datetime."""
        path = make_workbook({"Dates": [[datetime(2023, 6, 7, 8, 9)]]})

        cell = load_workbook(path)["Dates"]["A1"]

        assert resolver.read_cell(cell) == datetime(2023, 6, 7, 8, 9)


class TestResolve:
    """Tests for header row resolution."""

    def test_matched_columns(self, resolver: HeaderResolver, sheet) -> None:
        """Test that matched headers map to their properties by column index."""
        sheet.append(["Name", "Unknown", None, " Id "])

        metas = resolver.resolve({"Id": "id", "Name": "name", "Email": "email"}, sheet)

        assert sorted(metas) == [0, 3]
        assert metas[0].property_name == "name"
        assert metas[3].header_text == "Id"
        assert metas[3].column_index == 3

    def test_numeric_header_text(self, resolver: HeaderResolver, sheet) -> None:
        """Test that numeric header cells match by their text."""
        sheet.append([2024, "Name"])

        metas = resolver.resolve({"2024": "year"}, sheet)

        assert metas[0].property_name == "year"

    def test_no_header_matches(self, resolver: HeaderResolver, sheet) -> None:
        """Test that a header row without any match is rejected."""
        sheet.append(["Foo", "Bar"])

        with pytest.raises(InvalidHeaderRowError) as exc_info:
            resolver.resolve({"Id": "id"}, sheet)

        assert exc_info.value.error_code == "INVALID_HEADER_ROW"
        assert exc_info.value.expected_headers == ["Id"]

    def test_empty_sheet(self, resolver: HeaderResolver, sheet) -> None:
        """Test that a sheet without a header row is rejected."""
        with pytest.raises(InvalidHeaderRowError):
            resolver.resolve({"Id": "id"}, sheet)
