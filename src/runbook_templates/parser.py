"""Template parser.

Splits runbook text into literal spans and ``{{ ... }}`` placeholders:

    {{ .s3_bucket | required "s3_bucket is required" | pattern "^[a-z0-9.-]+$" }}

Grammar inside the delimiters::

    placeholder := ws? path ws? ("|" ws? filter)* ws?
    path        := "." ident ("." ident)*
    filter      := ident (ws? string)*
    string      := '"' (char | escape)* '"' | '`' raw-chars '`'

Filter names are checked against a filter registry and their argument counts
and arguments validated while parsing, so a template that parses can always
be rendered. Literal text is kept byte for byte.
"""

import logging
import re
from typing import List, Tuple

from runbook_templates.exceptions import (
    InvalidFilterArgumentError,
    InvalidFilterArityError,
    MalformedPlaceholderError,
    UnknownFilterError,
    UnterminatedPlaceholderError,
)
from runbook_templates.filters import FilterRegistry, default_registry
from runbook_templates.types import FilterCall, Literal, Placeholder, Segment, Template

logger = logging.getLogger(__name__)

OPEN = "{{"
CLOSE = "}}"

_WHITESPACE = " \t\r\n"
_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_PATH = re.compile(r"\.[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*")
_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "'": "'",
    "n": "\n",
    "t": "\t",
    "r": "\r",
}


class TemplateParser:
    """Parses template text against a filter registry.

    Example:
        >>> parser = TemplateParser()
        >>> template = parser.parse('id={{ .user_id | type "number" }}')
        >>> template.placeholders[0].path
        'user_id'
    """

    def __init__(self, registry: FilterRegistry | None = None):
        """Initialize the parser.

        Args:
            registry: Filter registry used to validate filter calls
                (default: the built-in filters)
        """
        self._registry = registry if registry is not None else default_registry()

    def parse(self, text: str) -> Template:
        """Parse template text.

        Args:
            text: Template source

        Returns:
            Parsed Template

        Raises:
            TemplateParseError: On the first syntax or filter error
        """
        segments: List[Segment] = []
        pos = 0
        byte_pos = 0
        while True:
            start = text.find(OPEN, pos)
            if start == -1:
                if pos < len(text):
                    segments.append(Literal(text[pos:]))
                break
            if start > pos:
                segments.append(Literal(text[pos:start]))
            byte_pos += len(text[pos:start].encode("utf-8"))
            placeholder, end = self._parse_placeholder(text, start, byte_pos)
            segments.append(placeholder)
            byte_pos += len(text[start:end].encode("utf-8"))
            pos = end

        template = Template(segments=tuple(segments), source=text)
        logger.debug(
            "Parsed template: %d segments, %d placeholders",
            len(template.segments),
            len(template.placeholders),
        )
        return template

    def _parse_placeholder(
        self, text: str, start: int, byte_offset: int
    ) -> Tuple[Placeholder, int]:
        pos = _skip_ws(text, start + len(OPEN))
        if pos >= len(text):
            raise UnterminatedPlaceholderError(source=text, offset=start)

        match = _PATH.match(text, pos)
        if match is None:
            if text.startswith(CLOSE, pos):
                message = "Placeholder has no variable path"
            elif text[pos] == ".":
                message = "Invalid variable path"
            else:
                message = f"Expected '.' to start variable path, found {text[pos]!r}"
            raise MalformedPlaceholderError(message, source=text, offset=pos)
        path = match.group(0)[1:]
        pos = match.end()

        filters: List[FilterCall] = []
        while True:
            pos = _skip_ws(text, pos)
            if pos >= len(text):
                raise UnterminatedPlaceholderError(source=text, offset=start)
            if text.startswith(CLOSE, pos):
                end = pos + len(CLOSE)
                break
            if text[pos] != "|":
                raise MalformedPlaceholderError(
                    f"Unexpected character {text[pos]!r} in placeholder",
                    source=text,
                    offset=pos,
                )
            call, pos = self._parse_filter(text, start, pos + 1)
            filters.append(call)

        placeholder = Placeholder(
            path=path,
            filters=tuple(filters),
            offset=start,
            byte_offset=byte_offset,
            source=text[start:end],
        )
        return placeholder, end

    def _parse_filter(self, text: str, start: int, pos: int) -> Tuple[FilterCall, int]:
        pos = _skip_ws(text, pos)
        if pos >= len(text):
            raise UnterminatedPlaceholderError(source=text, offset=start)
        match = _IDENT.match(text, pos)
        if match is None:
            raise MalformedPlaceholderError(
                "Expected filter name after '|'", source=text, offset=pos
            )
        name = match.group(0)
        name_offset = pos
        pos = match.end()

        args: List[str] = []
        while True:
            next_pos = _skip_ws(text, pos)
            if next_pos >= len(text):
                raise UnterminatedPlaceholderError(source=text, offset=start)
            if text[next_pos] not in ('"', "`"):
                break
            arg, pos = _read_string(text, next_pos)
            args.append(arg)

        self._check_call(text, name, args, name_offset)
        return FilterCall(name=name, args=tuple(args), offset=name_offset), pos

    def _check_call(self, text: str, name: str, args: List[str], offset: int) -> None:
        definition = self._registry.get_optional(name)
        if definition is None:
            raise UnknownFilterError(
                name, source=text, offset=offset, known=self._registry.list_keys()
            )
        if len(args) != definition.arity:
            raise InvalidFilterArityError(
                name, definition.arity, len(args), source=text, offset=offset
            )
        if definition.check_args is not None:
            try:
                definition.check_args(args)
            except ValueError as e:
                raise InvalidFilterArgumentError(
                    name, str(e), source=text, offset=offset
                ) from e


def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in _WHITESPACE:
        pos += 1
    return pos


def _read_string(text: str, pos: int) -> Tuple[str, int]:
    """Read a quoted argument starting at ``pos``; returns (value, end)."""
    quote = text[pos]
    if quote == "`":
        end = text.find("`", pos + 1)
        if end == -1:
            raise MalformedPlaceholderError(
                "Unterminated raw string argument", source=text, offset=pos
            )
        return text[pos + 1:end], end + 1

    chars: List[str] = []
    i = pos + 1
    while i < len(text):
        c = text[i]
        if c == '"':
            return "".join(chars), i + 1
        if c == "\n":
            break
        if c == "\\":
            if i + 1 >= len(text):
                break
            escape = text[i + 1]
            if escape == "u":
                digits = text[i + 2:i + 6]
                if len(digits) != 4 or not all(d in "0123456789abcdefABCDEF" for d in digits):
                    raise MalformedPlaceholderError(
                        "Invalid \\u escape in string argument", source=text, offset=i
                    )
                chars.append(chr(int(digits, 16)))
                i += 6
                continue
            if escape not in _ESCAPES:
                raise MalformedPlaceholderError(
                    f"Invalid escape sequence '\\{escape}' in string argument",
                    source=text,
                    offset=i,
                )
            chars.append(_ESCAPES[escape])
            i += 2
            continue
        chars.append(c)
        i += 1
    raise MalformedPlaceholderError(
        "Unterminated string argument", source=text, offset=pos
    )


def parse_template(text: str, registry: FilterRegistry | None = None) -> Template:
    """Parse template text with the given (or built-in) filter registry.

    Raises:
        TemplateParseError: On the first syntax or filter error
    """
    return TemplateParser(registry).parse(text)
