"""
Custom exceptions for the record mapping engine.

Provides type-safe, descriptive exceptions for error handling throughout
the package.
"""

from recordsheet.exceptions.mapping_exceptions import (
    InvalidArgumentError,
    InvalidFormatError,
    InvalidHeaderRowError,
    MappingServiceError,
    NoSuitableSetterError,
    PropertyAccessError,
    RecordInstantiationError,
    SheetNotFoundError,
    WriteError,
)

__all__ = [
    "MappingServiceError",
    "InvalidArgumentError",
    "InvalidFormatError",
    "InvalidHeaderRowError",
    "SheetNotFoundError",
    "WriteError",
    "PropertyAccessError",
    "NoSuitableSetterError",
    "RecordInstantiationError",
]
