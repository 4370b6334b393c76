"""Core type definitions for runbook templates.

This module defines:
- The parsed template model (literal and placeholder segments, filter calls)
- The absent-value sentinel
- Render results (``Rendered`` / ``Invalid``) and field errors
- Variable documentation records produced by introspection
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple, Union


class _Missing:
    """Sentinel type for a variable that was not supplied.

    Distinct from ``""``: an empty string is a value, ``MISSING`` is not.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class ValueType(Enum):
    """Type names accepted by the ``type`` filter."""
    NUMBER = "number"
    STRING = "string"
    BOOL = "bool"

    @classmethod
    def from_string(cls, value: str) -> "ValueType":
        """Parse a type name.

        Raises:
            ValueError: If value is not a known type name
        """
        try:
            return cls(value)
        except ValueError as e:
            raise ValueError(
                f"Unknown type '{value}'. "
                f"Valid types: {', '.join(t.value for t in cls)}"
            ) from e


class ErrorKind(Enum):
    """Categories of render-time field errors."""
    REQUIRED_MISSING = "required_missing"
    TYPE_MISMATCH = "type_mismatch"
    PATTERN_MISMATCH = "pattern_mismatch"
    INVALID_VALUE = "invalid_value"


@dataclass(frozen=True)
class FilterCall:
    """A filter invocation inside a placeholder, e.g. ``default "24"``.

    Attributes:
        name: Filter name
        args: Filter arguments, already unquoted
        offset: Character offset of the filter name in the template source
    """
    name: str
    args: Tuple[str, ...] = ()
    offset: int = 0


@dataclass(frozen=True)
class Literal:
    """Verbatim text between placeholders."""
    text: str


@dataclass(frozen=True)
class Placeholder:
    """A ``{{ .path | filter ... }}`` expression.

    Attributes:
        path: Dotted variable path without the leading dot (``"user_id"``)
        filters: Filters in application order
        offset: Character offset of the opening ``{{``
        byte_offset: UTF-8 byte offset of the opening ``{{``
        source: The raw placeholder text, delimiters included
    """
    path: str
    filters: Tuple[FilterCall, ...] = ()
    offset: int = 0
    byte_offset: int = 0
    source: str = ""

    @property
    def segments(self) -> Tuple[str, ...]:
        """Path split on dots."""
        return tuple(self.path.split("."))

    def filter_args(self, name: str) -> Tuple[str, ...] | None:
        """Arguments of the first filter called ``name``, or None if absent."""
        for call in self.filters:
            if call.name == name:
                return call.args
        return None


Segment = Union[Literal, Placeholder]


@dataclass(frozen=True)
class Template:
    """A parsed template: ordered literal and placeholder segments.

    Attributes:
        segments: Segments in source order
        source: The original template text
    """
    segments: Tuple[Segment, ...]
    source: str = ""

    @property
    def placeholders(self) -> Tuple[Placeholder, ...]:
        """All placeholder segments in order."""
        return tuple(s for s in self.segments if isinstance(s, Placeholder))

    @property
    def variable_paths(self) -> Tuple[str, ...]:
        """Distinct variable paths in first-appearance order."""
        seen: Dict[str, None] = {}
        for placeholder in self.placeholders:
            seen.setdefault(placeholder.path, None)
        return tuple(seen)


@dataclass(frozen=True)
class FieldError:
    """A validation failure for one placeholder.

    Attributes:
        path: Variable path of the failing placeholder
        filter_name: Filter that raised the error (None for value errors
            detected outside a filter, such as unsupported value types)
        message: Human-readable message
        kind: Error category
        offset: Character offset of the placeholder in the template
    """
    path: str
    filter_name: str | None
    message: str
    kind: ErrorKind
    offset: int = 0

    def __str__(self) -> str:
        where = f"{self.path}"
        if self.filter_name:
            where += f" [{self.filter_name}]"
        return f"{where}: {self.message}"


@dataclass(frozen=True)
class Rendered:
    """Successful render.

    Attributes:
        text: The fully substituted template text
        values: Final (post-filter) value for each variable path
    """
    text: str
    values: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Invalid:
    """Failed render; no text is produced.

    Attributes:
        errors: Every field error found, in template order
    """
    errors: Tuple[FieldError, ...]

    @property
    def ok(self) -> bool:
        return False

    def messages(self) -> list[str]:
        """Error messages in order."""
        return [error.message for error in self.errors]


RenderResult = Union[Rendered, Invalid]


@dataclass
class VariableSpec:
    """Documentation for one template variable, merged across placeholders.

    Attributes:
        path: Variable path
        description: Text of the first ``description`` filter, if any
        required: Whether any placeholder for this path has ``required``
        required_message: Message of the first ``required`` filter
        default: Argument of the first ``default`` filter
        value_type: Declared ``type``, if any
        pattern: Argument of the first ``pattern`` filter
        occurrences: Number of placeholders referencing this path
    """
    path: str
    description: str | None = None
    required: bool = False
    required_message: str | None = None
    default: str | None = None
    value_type: ValueType | None = None
    pattern: str | None = None
    occurrences: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary form for serialization."""
        return {
            "path": self.path,
            "description": self.description,
            "required": self.required,
            "required_message": self.required_message,
            "default": self.default,
            "type": self.value_type.value if self.value_type else None,
            "pattern": self.pattern,
            "occurrences": self.occurrences,
        }


@dataclass(frozen=True)
class LintWarning:
    """A non-fatal authoring issue found in a template.

    Attributes:
        path: Variable path concerned
        code: Short machine-readable code (e.g. ``required-after-default``)
        message: Human-readable explanation
        offset: Character offset of the placeholder
    """
    path: str
    code: str
    message: str
    offset: int = 0

    def __str__(self) -> str:
        return f"{self.code}: {self.path}: {self.message}"
