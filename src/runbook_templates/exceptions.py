"""Exception hierarchy for runbook template processing.

Every exception raised by this package extends ``RunbookTemplateError``, which
carries an optional context dictionary with structured details about the
failure (offsets, filter names, file paths).

Parse errors are raised eagerly: a template that does not parse cannot be
rendered. Filter failures during rendering are *not* exceptions; they are
collected as ``FieldError`` records (see ``runbook_templates.types``) so that
a single render reports every problem at once. ``RenderValidationError`` wraps
those records for callers that prefer an exception.

Example:
    ```python
    from runbook_templates import parse_template, TemplateParseError

    try:
        parse_template('{{ .user_id | type "number" ')
    except TemplateParseError as e:
        print(e.byte_offset, e.context)
    ```
"""

from typing import Any, Dict, Sequence


class RunbookTemplateError(Exception):
    """Base exception for the runbook_templates package.

    Attributes:
        context: Dictionary containing contextual information about the error
    """

    def __init__(self, message: str, context: Dict[str, Any] | None = None):
        """Initialize the exception with optional context.

        Args:
            message: Human-readable error message
            context: Optional context dictionary
        """
        super().__init__(message)
        self.context = context or {}


class TemplateParseError(RunbookTemplateError):
    """Raised when template text cannot be parsed.

    Carries the location of the problem both as a character offset into the
    template string and as a UTF-8 byte offset into the encoded source, plus
    1-indexed line and column numbers for display.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str,
        offset: int,
        context: Dict[str, Any] | None = None,
    ):
        self.offset = offset
        self.byte_offset = len(source[:offset].encode("utf-8"))
        self.line, self.column = _line_col(source, offset)
        self.snippet = _snippet(source, offset)
        ctx = {
            "offset": self.offset,
            "byte_offset": self.byte_offset,
            "line": self.line,
            "column": self.column,
        }
        ctx.update(context or {})
        super().__init__(message, context=ctx)
        self.message = message

    def __str__(self) -> str:
        return (
            f"{self.message} (line {self.line}, column {self.column}, "
            f"byte {self.byte_offset})"
        )


class UnterminatedPlaceholderError(TemplateParseError):
    """Raised when ``{{`` has no matching ``}}``."""

    def __init__(self, *, source: str, offset: int):
        super().__init__(
            "Unterminated placeholder: '{{' without matching '}}'",
            source=source,
            offset=offset,
        )


class UnknownFilterError(TemplateParseError):
    """Raised when a placeholder uses a filter name that is not registered."""

    def __init__(self, name: str, *, source: str, offset: int, known: Sequence[str] = ()):
        self.name = name
        super().__init__(
            f"Unknown filter '{name}'",
            source=source,
            offset=offset,
            context={"filter": name, "known_filters": list(known)},
        )


class InvalidFilterArityError(TemplateParseError):
    """Raised when a known filter receives the wrong number of arguments."""

    def __init__(self, name: str, expected: int, actual: int, *, source: str, offset: int):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Filter '{name}' takes {expected} argument(s), got {actual}",
            source=source,
            offset=offset,
            context={"filter": name, "expected": expected, "actual": actual},
        )


class InvalidFilterArgumentError(TemplateParseError):
    """Raised when a filter argument is unusable (unknown type name, bad regex)."""

    def __init__(self, name: str, reason: str, *, source: str, offset: int):
        self.name = name
        super().__init__(
            f"Invalid argument for filter '{name}': {reason}",
            source=source,
            offset=offset,
            context={"filter": name},
        )


class MalformedPlaceholderError(TemplateParseError):
    """Raised when placeholder syntax is otherwise invalid."""


class RenderValidationError(RunbookTemplateError):
    """Raised by strict rendering when one or more placeholders fail validation.

    Attributes:
        errors: The ordered ``FieldError`` records from the render pass
    """

    def __init__(self, errors: Sequence[Any]):
        self.errors = tuple(errors)
        lines = "; ".join(str(error) for error in self.errors)
        super().__init__(
            f"Template validation failed with {len(self.errors)} error(s): {lines}",
            context={"error_count": len(self.errors)},
        )


class VariablesError(RunbookTemplateError):
    """Raised when a variable file or ``key=value`` assignment is invalid."""


class ConfigurationError(RunbookTemplateError):
    """Raised when settings are invalid."""


class RunbookNotFoundError(RunbookTemplateError):
    """Raised when a runbook path or name does not resolve to a file."""


class RegistryError(RunbookTemplateError):
    """Raised when a registry lookup or registration fails."""


def _line_col(source: str, offset: int) -> tuple[int, int]:
    lines = source[:offset].split("\n")
    return len(lines), len(lines[-1]) + 1


def _snippet(source: str, offset: int, context: int = 20) -> str:
    start = max(0, offset - context)
    end = min(len(source), offset + context)
    before = source[start:offset].replace("\n", "\\n")
    after = source[offset:end].replace("\n", "\\n")
    return before + "⮜HERE⮞" + after
