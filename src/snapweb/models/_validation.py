"""Shared validation helpers for model values.

Private module, not part of the public API. Used by constructors in the
models and data layers to enforce runtime type constraints and null-byte
safety on user supplied names and addresses.
"""

from __future__ import annotations

import re
from typing import Any


_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_str_no_null(value: Any, name: str) -> None:
    """Raise if *value* is not a ``str`` or contains null bytes."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if "\x00" in value:
        raise ValueError(f"{name} contains null bytes")


def validate_identifier(value: Any, name: str) -> None:
    """Raise if *value* is not a usable entity or property name.

    Names end up as CSV column headers and as ``/<name>.table`` file
    names, so they are restricted to ASCII identifiers.
    """
    validate_str_no_null(value, name)
    if not _IDENTIFIER.match(value):
        raise ValueError(f"{name} must be an identifier, got {value!r}")
