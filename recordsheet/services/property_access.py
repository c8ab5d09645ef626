"""
Property access for record types.

Finds the ways a record property can be written (its accessors) and reads
property values back. An accessor is a setter plus the value type it
declares; a property may have several, tried in discovery order:

    1. methods marked with ``@setter_for`` (class definition order, base
       classes first; a subclass override replaces the base method)
    2. setters registered on the adapter with ``register_setter``
    3. the property itself: an annotated attribute, a dataclass or pydantic
       field, a ``property`` with a setter, or a plain class attribute.
       A union annotation such as ``date | str`` yields one accessor per
       member, in declaration order.

Mutable mapping record types get a single untyped accessor per key.

Example:
    class Person:
        birth_date: date | None = None

        @setter_for("birth_date", str)
        def set_birth_date_text(self, text):
            self.birth_date = date.fromisoformat(text)

    adapter = PropertyAccessAdapter()
    adapter.find_accessors(Person, "birth_date")  # [str setter, date attribute]
"""

import inspect
import logging
import types
from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any, ClassVar, Union, get_args, get_origin, get_type_hints

from recordsheet.exceptions.mapping_exceptions import PropertyAccessError

logger = logging.getLogger(__name__)

SETTER_MARKER = "__recordsheet_setter__"

_NONE_TYPE = type(None)
_MISSING = object()


@dataclass(frozen=True)
class Accessor:
    """
    One way of writing a record property.

    Attributes:
        property_name: The property written.
        value_type: The declared value type (``Any`` when undeclared).
        nullable: Whether None may be written through this accessor.
        setter: Callable taking ``(record, value)``.
        origin: Where the accessor was found: "decorated", "registered",
            "attribute", "property" or "mapping".
    """

    property_name: str
    value_type: Any
    nullable: bool
    setter: Callable[[Any, Any], None]
    origin: str


def setter_for(property_name: str, value_type: Any = None):
    """
    Mark a method as an extra setter of ``property_name``.

    The value type defaults to the annotation of the method's value
    parameter.
    """

    def decorate(func):
        setattr(func, SETTER_MARKER, (property_name, value_type))
        return func

    return decorate


def expand_type(hint: Any) -> list[tuple[Any, bool]]:
    """
    Split a type hint into ``(value_type, nullable)`` candidates.

    ``int`` gives ``[(int, False)]``, ``int | None`` gives ``[(int, True)]``,
    ``date | str`` gives ``[(date, False), (str, False)]`` and ``Any``,
    ``object`` or a missing hint give ``[(Any, True)]``.
    """
    if hint is None or hint is Any or hint is object or isinstance(hint, str):
        return [(Any, True)]

    if get_origin(hint) in (Union, types.UnionType):
        members = get_args(hint)
        nullable = _NONE_TYPE in members
        expanded = [(member, nullable) for member in members if member is not _NONE_TYPE]
        return expanded or [(Any, True)]

    if hint is _NONE_TYPE:
        return [(Any, True)]

    return [(hint, False)]


def _type_hints(owner: Any) -> dict[str, Any]:
    """Resolved type hints, falling back to raw annotations on forward refs."""
    try:
        return get_type_hints(owner)
    except (NameError, TypeError):
        annotations: dict[str, Any] = {}
        for klass in reversed(getattr(owner, "__mro__", (owner,))):
            annotations.update(getattr(klass, "__annotations__", {}))
        return annotations


def _value_parameter_hint(func: Callable) -> Any:
    """Annotation of the value parameter of a ``(self, value)`` setter."""
    try:
        parameters = list(inspect.signature(func).parameters)
    except (TypeError, ValueError):
        return None
    if len(parameters) < 2:
        return None
    return _type_hints(func).get(parameters[1])


class PropertyAccessAdapter:
    """
    Resolves and invokes property accessors of record types.

    Lookups are cached per ``(record_type, property_name)`` for the lifetime
    of the adapter; registering a setter clears the cache.
    """

    def __init__(self) -> None:
        self._registered: dict[tuple[type, str], list[Accessor]] = {}
        self._cache: dict[tuple[type, str], list[Accessor]] = {}

    def register_setter(
        self,
        record_type: type,
        property_name: str,
        value_type: Any,
        setter: Callable[[Any, Any], None],
    ) -> None:
        """
        Declare an additional setter for a property.

        Args:
            record_type: The record type.
            property_name: The property the setter writes.
            value_type: The type of value the setter accepts.
            setter: Callable taking ``(record, value)``.
        """
        accessors = [
            Accessor(property_name, member, nullable, setter, "registered")
            for member, nullable in expand_type(value_type)
        ]
        self._registered.setdefault((record_type, property_name), []).extend(accessors)
        self._cache.clear()

    def find_accessors(self, record_type: type, property_name: str) -> list[Accessor]:
        """
        List every accessor of a property, in resolution order.

        Args:
            record_type: The record type.
            property_name: The property.

        Returns:
            The accessors found; empty if the property cannot be written.
        """
        key = (record_type, property_name)
        if key not in self._cache:
            self._cache[key] = self._discover(record_type, property_name)
            logger.debug(
                "Resolved %d accessor(s) for %s.%s",
                len(self._cache[key]),
                record_type.__name__,
                property_name,
            )
        return self._cache[key]

    def find_accessor_by_type(
        self,
        record_type: type,
        property_name: str,
        exact_type: Any,
    ) -> Accessor | None:
        """
        Find the first accessor declaring exactly ``exact_type``.

        Returns:
            The accessor, or None if no accessor declares that type.
        """
        for accessor in self.find_accessors(record_type, property_name):
            if accessor.value_type is exact_type:
                return accessor
        return None

    def invoke(self, accessor: Accessor, record: Any, value: Any) -> None:
        """
        Write a value through an accessor.

        Raises:
            PropertyAccessError: If the setter raises for any reason.
        """
        try:
            accessor.setter(record, value)
        except Exception as e:
            raise PropertyAccessError(
                property_name=accessor.property_name,
                operation="write",
                reason=str(e) or type(e).__name__,
            ) from e

    def read_property(self, record: Any, property_name: str) -> Any:
        """
        Read a property of a record.

        Mapping records are read by key, anything else by attribute.

        Raises:
            PropertyAccessError: If the property is missing or its getter raises.
        """
        try:
            if isinstance(record, Mapping):
                return record[property_name]
            return getattr(record, property_name)
        except Exception as e:
            raise PropertyAccessError(
                property_name=property_name,
                operation="read",
                reason=str(e) or type(e).__name__,
            ) from e

    def _discover(self, record_type: type, property_name: str) -> list[Accessor]:
        if isinstance(record_type, type) and issubclass(record_type, MutableMapping):
            return [
                Accessor(
                    property_name,
                    Any,
                    True,
                    lambda record, value: record.__setitem__(property_name, value),
                    "mapping",
                )
            ]

        accessors = self._decorated(record_type, property_name)
        accessors.extend(self._registered.get((record_type, property_name), []))
        accessors.extend(self._declared(record_type, property_name))
        return accessors

    def _decorated(self, record_type: type, property_name: str) -> list[Accessor]:
        # base classes first, each name once, resolved to its most derived definition
        names: dict[str, None] = {}
        for klass in reversed(record_type.__mro__):
            for name in vars(klass):
                names.setdefault(name, None)

        accessors: list[Accessor] = []
        for name in names:
            member = inspect.getattr_static(record_type, name)
            marker = getattr(member, SETTER_MARKER, None)
            if marker is None or marker[0] != property_name:
                continue

            value_type = marker[1]
            if value_type is None:
                value_type = _value_parameter_hint(member)

            for candidate, nullable in expand_type(value_type):
                accessors.append(
                    Accessor(property_name, candidate, nullable, member, "decorated")
                )
        return accessors

    def _declared(self, record_type: type, property_name: str) -> list[Accessor]:
        static = inspect.getattr_static(record_type, property_name, _MISSING)

        if isinstance(static, property):
            if static.fset is None:
                return []
            hint = _value_parameter_hint(static.fset)
            if hint is None and static.fget is not None:
                hint = _type_hints(static.fget).get("return")
            origin = "property"
        else:
            hints = _type_hints(record_type)
            if property_name in hints:
                hint = hints[property_name]
                if get_origin(hint) is ClassVar or hint is ClassVar:
                    return []
            elif static is not _MISSING and not callable(static):
                hint = None
            else:
                return []
            origin = "attribute"

        def set_attribute(record: Any, value: Any) -> None:
            setattr(record, property_name, value)

        return [
            Accessor(property_name, candidate, nullable, set_attribute, origin)
            for candidate, nullable in expand_type(hint)
        ]
