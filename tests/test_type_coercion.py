"""
Tests for the TypeCoercionService.

Tests conversion of normalized cell values into property values and the
stringification of property values for output cells.
"""

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

import pytest

from recordsheet.exceptions.mapping_exceptions import NoSuitableSetterError
from recordsheet.services.property_access import Accessor
from recordsheet.services.type_coercion import TypeCoercionService


class Color(Enum):
    RED = "red"
    GREEN = "green"


class Level(Enum):
    LOW = 1
    HIGH = 2


def accessor(value_type: Any, nullable: bool = False) -> Accessor:
    return Accessor("prop", value_type, nullable, lambda record, value: None, "attribute")


@pytest.fixture
def coercion() -> TypeCoercionService:
    """Create a TypeCoercionService instance for testing."""
    return TypeCoercionService()


class TestCoerceNull:
    """Tests for None cell values."""

    def test_null_goes_to_nullable_accessor(self, coercion: TypeCoercionService) -> None:
        """Test that None picks the first accessor accepting null."""
        nullable = accessor(int, nullable=True)

        chosen, value = coercion.coerce_from_cell("prop", None, [accessor(str), nullable])

        assert chosen is nullable
        assert value is None

    def test_null_rejected_without_nullable_accessor(self, coercion: TypeCoercionService) -> None:
        """Test that None fails when every accessor is non-nullable."""
        with pytest.raises(NoSuitableSetterError):
            coercion.coerce_from_cell("prop", None, [accessor(int), accessor(str)])


class TestCoerceDatetime:
    """Tests for date-formatted cell values."""

    def test_datetime_accessor_takes_datetime(self, coercion: TypeCoercionService) -> None:
        """Test that a datetime accessor receives the value unchanged."""
        moment = datetime(2024, 1, 2, 3, 4, 5)

        _, value = coercion.coerce_from_cell("prop", moment, [accessor(str), accessor(datetime)])

        assert value == moment

    def test_date_accessor_takes_date_part(self, coercion: TypeCoercionService) -> None:
        """Test that a date accessor receives the date part."""
        _, value = coercion.coerce_from_cell("prop", datetime(2024, 1, 2, 3, 4), [accessor(date)])

        assert value == date(2024, 1, 2)

    def test_datetime_rejected_by_other_types(self, coercion: TypeCoercionService) -> None:
        """Test that non-date targets, text included, reject a datetime."""
        with pytest.raises(NoSuitableSetterError):
            coercion.coerce_from_cell("prop", datetime(2024, 1, 2), [accessor(str), accessor(int)])

    def test_untyped_accessor_takes_datetime(self, coercion: TypeCoercionService) -> None:
        """Test that an untyped accessor receives the datetime when no date type is declared."""
        moment = datetime(2024, 1, 2, 3, 4)

        chosen, value = coercion.coerce_from_cell("prop", moment, [accessor(int), accessor(Any, True)])

        assert chosen.value_type is Any
        assert value == moment


class TestCoerceText:
    """Tests for text cell values."""

    def test_string_accessor_wins(self, coercion: TypeCoercionService) -> None:
        """Test that a str accessor takes text even if an earlier type could parse it."""
        text_accessor = accessor(str)

        chosen, value = coercion.coerce_from_cell("prop", "42", [accessor(int), text_accessor])

        assert chosen is text_accessor
        assert value == "42"

    def test_integer_text(self, coercion: TypeCoercionService) -> None:
        """Test that integer text becomes an int."""
        _, value = coercion.coerce_from_cell("prop", "42", [accessor(int)])

        assert value == 42
        assert isinstance(value, int)

    def test_integral_decimal_text_to_int(self, coercion: TypeCoercionService) -> None:
        """Test that numeric cell text like "42.0" still fills an int."""
        _, value = coercion.coerce_from_cell("prop", "42.0", [accessor(int)])

        assert value == 42

    def test_fractional_text_rejected_by_int(self, coercion: TypeCoercionService) -> None:
        """Test that "42.5" does not fit an int."""
        with pytest.raises(NoSuitableSetterError):
            coercion.coerce_from_cell("prop", "42.5", [accessor(int)])

    def test_unparsable_text_fails(self, coercion: TypeCoercionService) -> None:
        """Test that text no parser accepts fails with no suitable setter."""
        with pytest.raises(NoSuitableSetterError) as exc_info:
            coercion.coerce_from_cell("age", "abc", [accessor(int)])

        assert exc_info.value.error_code == "NO_SUITABLE_SETTER"
        assert "No suitable setter" in exc_info.value.message
        assert "age" in exc_info.value.message

    def test_first_accepting_type_wins(self, coercion: TypeCoercionService) -> None:
        """Test that accessors are tried in order and the first parser to accept wins."""
        bool_accessor = accessor(bool)

        chosen, value = coercion.coerce_from_cell(
            "prop", "TRUE", [accessor(int), bool_accessor, accessor(Any)]
        )

        assert chosen is bool_accessor
        assert value is True

    @pytest.mark.parametrize(
        ("value_type", "text", "expected"),
        [
            (float, "2.5", 2.5),
            (Decimal, "10.10", Decimal("10.10")),
            (bool, "false", False),
            (date, "2024-03-01", date(2024, 3, 1)),
            (datetime, "2024-03-01 10:30:00", datetime(2024, 3, 1, 10, 30)),
            (Color, "green", Color.GREEN),
            (Color, "RED", Color.RED),
            (Level, "2", Level.HIGH),
            (Any, "anything", "anything"),
        ],
    )
    def test_supported_types(
        self,
        coercion: TypeCoercionService,
        value_type: Any,
        text: str,
        expected: Any,
    ) -> None:
        """Test the parser of each supported type."""
        _, value = coercion.coerce_from_cell("prop", text, [accessor(value_type)])

        assert value == expected

    def test_no_accessors_fails(self, coercion: TypeCoercionService) -> None:
        """Test that a property without accessors fails for any value."""
        with pytest.raises(NoSuitableSetterError):
            coercion.coerce_from_cell("prop", "x", [])

    def test_unsupported_type_skipped(self, coercion: TypeCoercionService) -> None:
        """Test that accessors of unsupported types are skipped."""
        _, value = coercion.coerce_from_cell("prop", "7", [accessor(list), accessor(int)])

        assert value == 7

    @pytest.mark.parametrize("value_type", [list[int], dict[str, int], tuple[int, ...]])
    def test_generic_alias_skipped(self, coercion: TypeCoercionService, value_type: Any) -> None:
        """Test that parameterized generic types are unsupported rather than failing."""
        assert coercion.supports(value_type) is False

        _, value = coercion.coerce_from_cell("prop", "7", [accessor(value_type), accessor(int)])

        assert value == 7

    def test_generic_alias_alone_fails_cleanly(self, coercion: TypeCoercionService) -> None:
        """Test that text for a generic-typed property reports no suitable setter."""
        with pytest.raises(NoSuitableSetterError):
            coercion.coerce_from_cell("prop", "7", [accessor(list[int])])


class TestStringify:
    """Tests for property to cell text conversion."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, ""),
            ("Lei", "Lei"),
            (42, "42"),
            (2.5, "2.5"),
            (True, "true"),
            (False, "false"),
            (Color.RED, "red"),
            (Level.HIGH, "2"),
            (date(2024, 1, 2), "2024-01-02"),
            (datetime(2024, 1, 2, 3, 4, 5), "2024-01-02T03:04:05"),
            (time(8, 30), "08:30:00"),
            (Decimal("1.50"), "1.50"),
        ],
    )
    def test_stringify(self, coercion: TypeCoercionService, value: Any, expected: str) -> None:
        """Test the text written for common values."""
        assert coercion.stringify(value) == expected
