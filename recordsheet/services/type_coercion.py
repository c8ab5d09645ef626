"""
Type coercion between cell values and record property values.

Cells reach this service already normalized to ``None``, a ``datetime`` or
a string (see ``HeaderResolver.read_cell``). Output
cells are always written as strings, so the other direction is plain
stringification.

Cell to property rules, given the accessors of the target property:
    - None goes to the first accessor that accepts null.
    - A datetime goes to a ``datetime`` accessor, else to a ``date``
      accessor (as its date part), else to an untyped accessor.
    - Text goes unconverted to a ``str`` accessor if there is one.
      Otherwise each accessor's type is tried in order and the first one
      whose parser accepts the text wins.
"""

import inspect
import logging
import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, get_origin

from recordsheet.exceptions.mapping_exceptions import NoSuitableSetterError
from recordsheet.services.property_access import Accessor

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"^[+-]?\d+$")

_BOOLEAN_TEXT = {"true": True, "false": False}


def _parse_bool(text: str) -> bool:
    try:
        return _BOOLEAN_TEXT[text.lower()]
    except KeyError:
        raise ValueError(f"not a boolean: {text!r}") from None


def _parse_decimal(text: str) -> Decimal:
    if "_" in text:
        raise ValueError(f"not a number: {text!r}")
    try:
        return Decimal(text)
    except InvalidOperation:
        raise ValueError(f"not a number: {text!r}") from None


def _parse_int(text: str) -> int:
    if _INTEGER_RE.match(text):
        return int(text)
    # numeric cells read back as "42.0"
    number = _parse_decimal(text)
    if not number.is_finite() or number != number.to_integral_value():
        raise ValueError(f"not an integer: {text!r}")
    return int(number)


def _parse_float(text: str) -> float:
    return float(_parse_decimal(text))


def _is_enum_type(value_type: Any) -> bool:
    # list[int] and other generic aliases pass isinstance(..., type) on 3.10
    return (
        inspect.isclass(value_type)
        and get_origin(value_type) is None
        and issubclass(value_type, Enum)
    )


def _parse_enum(text: str, enum_type: type[Enum]) -> Enum:
    for member in enum_type:
        if str(member.value) == text:
            return member
    try:
        return enum_type[text]
    except KeyError:
        raise ValueError(f"not a {enum_type.__name__}: {text!r}") from None


_PARSERS = {
    bool: _parse_bool,
    int: _parse_int,
    float: _parse_float,
    Decimal: _parse_decimal,
    datetime: datetime.fromisoformat,
    date: date.fromisoformat,
    time: time.fromisoformat,
}


class TypeCoercionService:
    """Converts normalized cell values to property values and back."""

    def supports(self, value_type: Any) -> bool:
        """Whether text can be parsed into ``value_type``."""
        if value_type is Any or value_type is str or value_type in _PARSERS:
            return True
        return _is_enum_type(value_type)

    def parse_text(self, text: str, value_type: Any) -> Any:
        """
        Parse text into ``value_type``.

        Raises:
            ValueError: If the text is not a valid ``value_type``.
        """
        if value_type is Any or value_type is str:
            return text
        if value_type in _PARSERS:
            return _PARSERS[value_type](text)
        if _is_enum_type(value_type):
            return _parse_enum(text, value_type)
        raise ValueError(f"unsupported type: {value_type!r}")

    def coerce_from_cell(
        self,
        property_name: str,
        raw_value: Any,
        accessors: list[Accessor],
    ) -> tuple[Accessor, Any]:
        """
        Pick the accessor for a cell value and convert the value for it.

        Args:
            property_name: The target property, for error reporting.
            raw_value: Normalized cell value (None, datetime or str).
            accessors: The property's accessors, in resolution order.

        Returns:
            The chosen accessor and the value to pass to it.

        Raises:
            NoSuitableSetterError: If no accessor can take the value.
        """
        if raw_value is None:
            for accessor in accessors:
                if accessor.nullable:
                    return accessor, None
            raise NoSuitableSetterError(property_name, raw_value)

        if isinstance(raw_value, datetime):
            return self._coerce_datetime(property_name, raw_value, accessors)

        text = str(raw_value)

        for accessor in accessors:
            if accessor.value_type is str:
                return accessor, text

        for accessor in accessors:
            if not self.supports(accessor.value_type):
                continue
            try:
                return accessor, self.parse_text(text, accessor.value_type)
            except ValueError:
                logger.debug(
                    "Text %r rejected by %s setter of %s",
                    text,
                    getattr(accessor.value_type, "__name__", accessor.value_type),
                    property_name,
                )

        raise NoSuitableSetterError(property_name, raw_value)

    def _coerce_datetime(
        self,
        property_name: str,
        raw_value: datetime,
        accessors: list[Accessor],
    ) -> tuple[Accessor, Any]:
        for accessor in accessors:
            if accessor.value_type is datetime:
                return accessor, raw_value
        for accessor in accessors:
            if accessor.value_type is date:
                return accessor, raw_value.date()
        for accessor in accessors:
            if accessor.value_type is Any:
                return accessor, raw_value
        raise NoSuitableSetterError(property_name, raw_value)

    def stringify(self, value: Any) -> str:
        """
        Text written to a cell for a property value.

        None becomes an empty string, booleans "true"/"false", enum
        members the text of their value and dates and times ISO 8601 text.
        """
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, Enum):
            return str(value.value)
        if isinstance(value, (datetime, date, time)):
            return value.isoformat()
        return str(value)
