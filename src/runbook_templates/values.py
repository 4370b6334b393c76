"""Value stringification and coercion.

Rendered runbooks are shell, SQL and JS source, so every value is turned into
text with fixed rules:

- absent values render as ``""``
- booleans render as ``true`` / ``false``
- numbers render in plain decimal notation: no exponent, no trailing ``.0``
  for integral values, no trailing zeros in the fraction
- strings render verbatim (no quoting or escaping)
"""

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any

from runbook_templates.types import MISSING

_NUMBER_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]+)?|\.[0-9]+)")

_BOOL_VALUES = {"true": True, "false": False}


def is_absent(value: Any) -> bool:
    """True for the ``MISSING`` sentinel and for ``None``."""
    return value is MISSING or value is None


def stringify(value: Any) -> str:
    """Convert a variable value to its rendered text.

    Raises:
        ValueError: If a number is not finite
        TypeError: If the value is not a string, number or boolean
    """
    if is_absent(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return format_decimal(Decimal(value))
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"non-finite number {value!r}")
        return format_decimal(Decimal(repr(value)))
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"non-finite number {value!r}")
        return format_decimal(value)
    raise TypeError(f"unsupported value type {type(value).__name__}")


def format_decimal(value: Decimal) -> str:
    """Canonical plain-notation text for a finite decimal.

    Exact for any length: no rounding to the context precision and no
    int-to-str conversion.
    """
    integral = value.to_integral_value()
    if value == integral:
        return "0" if integral.is_zero() else format(integral, "f")
    return format(value, "f").rstrip("0")


def coerce_number(value: Any) -> int | Decimal:
    """Coerce a value to a number.

    The stringified value, with surrounding whitespace removed, must be a
    complete base-10 integer or decimal. Integral results are returned as
    ``int``, others as ``Decimal``.

    Raises:
        ValueError: If the value is not numeric
    """
    if isinstance(value, bool):
        raise ValueError(f"{stringify(value)!r} is not a number")
    text = stringify(value).strip()
    if not _NUMBER_PATTERN.fullmatch(text):
        raise ValueError(f"{text!r} is not a number")
    try:
        number = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"{text!r} is not a number") from e
    if number == number.to_integral_value():
        return int(number)
    return number


def coerce_bool(value: Any) -> bool:
    """Coerce ``true`` / ``false`` (any case) to a boolean.

    Raises:
        ValueError: If the value is not a boolean literal
    """
    if isinstance(value, bool):
        return value
    text = stringify(value).strip().lower()
    if text not in _BOOL_VALUES:
        raise ValueError(f"{stringify(value)!r} is not a boolean")
    return _BOOL_VALUES[text]
