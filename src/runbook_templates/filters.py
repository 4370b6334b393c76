"""Filter engine: the built-in placeholder filters and their registry.

A placeholder's filters run left to right, each receiving the previous
filter's output. A filter either returns a value or raises ``FilterFailure``,
which stops the chain for that placeholder. The renderer turns failures into
``FieldError`` records.

Built-in filters:

- ``required <message>``: fails with ``<message>`` if the value is absent or
  an empty string
- ``default <value>``: substitutes ``<value>`` when the value is absent
- ``type <number|string|bool>``: coerces, or fails on mismatch
- ``pattern <regex>``: the whole stringified value must match
- ``description <text>``: no-op; documentation for introspection

``type`` and ``pattern`` let absent values through so that optional fields
render empty; pair them with ``required`` or ``default`` to insist on a value.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from runbook_templates.exceptions import RunbookTemplateError
from runbook_templates.registry import Registry
from runbook_templates.types import ErrorKind, FilterCall, ValueType
from runbook_templates.values import (
    coerce_bool,
    coerce_number,
    is_absent,
    stringify,
)

logger = logging.getLogger(__name__)


class FilterFailure(RunbookTemplateError):
    """Fatal filter outcome for one placeholder.

    Attributes:
        kind: Error category
        message: Human-readable message
        filter_name: Name of the failing filter, set by the registry
    """

    def __init__(self, kind: ErrorKind, message: str, **context: Any):
        super().__init__(message, context=context)
        self.kind = kind
        self.message = message
        self.filter_name: str | None = None


@dataclass(frozen=True)
class FilterDefinition:
    """A named filter implementation.

    Attributes:
        name: Name used in templates
        arity: Exact number of arguments
        apply: Callable ``(value, args) -> value``; raises FilterFailure
        check_args: Optional callable validating arguments at parse time;
            raises ValueError with a reason
        mutating: False for documentation-only filters
        summary: One-line description for help output
    """
    name: str
    arity: int
    apply: Callable[[Any, Sequence[str]], Any]
    check_args: Callable[[Sequence[str]], None] | None = None
    mutating: bool = True
    summary: str = ""


def _display(value: Any) -> str:
    try:
        return stringify(value)
    except (TypeError, ValueError):
        return repr(value)


def _required(value: Any, args: Sequence[str]) -> Any:
    if is_absent(value) or (isinstance(value, str) and value == ""):
        raise FilterFailure(ErrorKind.REQUIRED_MISSING, args[0])
    return value


def _default(value: Any, args: Sequence[str]) -> Any:
    if is_absent(value):
        return args[0]
    return value


def _type(value: Any, args: Sequence[str]) -> Any:
    if is_absent(value):
        return value
    expected = ValueType.from_string(args[0])
    try:
        if expected is ValueType.NUMBER:
            return coerce_number(value)
        if expected is ValueType.BOOL:
            return coerce_bool(value)
        return stringify(value)
    except (TypeError, ValueError) as e:
        actual = _display(value)
        raise FilterFailure(
            ErrorKind.TYPE_MISMATCH,
            f"expected {expected.value}, got {actual!r}",
            expected=expected.value,
            actual=actual,
        ) from e


def _check_type(args: Sequence[str]) -> None:
    ValueType.from_string(args[0])


def _pattern(value: Any, args: Sequence[str]) -> Any:
    if is_absent(value):
        return value
    pattern = args[0]
    try:
        text = stringify(value)
    except (TypeError, ValueError) as e:
        raise FilterFailure(
            ErrorKind.INVALID_VALUE,
            f"cannot match {type(value).__name__} value against pattern",
            pattern=pattern,
        ) from e
    if re.fullmatch(pattern, text) is None:
        raise FilterFailure(
            ErrorKind.PATTERN_MISMATCH,
            f"value {text!r} does not match pattern {pattern!r}",
            pattern=pattern,
            value=text,
        )
    return value


def _check_pattern(args: Sequence[str]) -> None:
    try:
        re.compile(args[0])
    except re.error as e:
        raise ValueError(f"bad regular expression {args[0]!r}: {e}") from e


def _description(value: Any, args: Sequence[str]) -> Any:
    return value


BUILTIN_FILTERS = (
    FilterDefinition(
        "required", 1, _required,
        summary="Fail with the given message when the value is absent or empty",
    ),
    FilterDefinition(
        "default", 1, _default,
        summary="Use the given value when the variable is absent",
    ),
    FilterDefinition(
        "type", 1, _type, check_args=_check_type,
        summary="Coerce to number, string or bool",
    ),
    FilterDefinition(
        "pattern", 1, _pattern, check_args=_check_pattern,
        summary="Require the whole value to match a regular expression",
    ),
    FilterDefinition(
        "description", 1, _description, mutating=False,
        summary="Document the variable; no effect on output",
    ),
)


class FilterRegistry(Registry[FilterDefinition]):
    """Registry mapping filter names to definitions."""

    def __init__(self, name: str = "filters"):
        super().__init__(name)

    @classmethod
    def with_builtins(cls, freeze: bool = True) -> "FilterRegistry":
        """Create a registry holding the built-in filters.

        Args:
            freeze: Close the registry to further registration
        """
        registry = cls()
        for definition in BUILTIN_FILTERS:
            registry.register_filter(definition)
        if freeze:
            registry.freeze()
        return registry

    def register_filter(self, definition: FilterDefinition) -> None:
        """Register a filter definition under its own name."""
        self.register(definition.name, definition)

    def apply(self, call: FilterCall, value: Any) -> Any:
        """Run one filter call against a value.

        Raises:
            FilterFailure: If the filter rejects the value
            RegistryError: If the filter is not registered
        """
        definition = self.get(call.name)
        try:
            return definition.apply(value, call.args)
        except FilterFailure as e:
            e.filter_name = call.name
            logger.debug("Filter %s rejected value: %s", call.name, e.kind.value)
            raise

    def apply_chain(self, calls: Sequence[FilterCall], value: Any) -> Any:
        """Run filters left to right, stopping at the first failure.

        Raises:
            FilterFailure: From the first filter that rejects its input
        """
        for call in calls:
            value = self.apply(call, value)
        return value


_default_registry = FilterRegistry.with_builtins()


def default_registry() -> FilterRegistry:
    """The shared, frozen registry of built-in filters."""
    return _default_registry
