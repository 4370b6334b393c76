"""Unit tests for the template parser."""

import pytest

from runbook_templates import (
    FilterCall,
    FilterDefinition,
    FilterRegistry,
    InvalidFilterArgumentError,
    InvalidFilterArityError,
    Literal,
    MalformedPlaceholderError,
    Placeholder,
    TemplateParseError,
    TemplateParser,
    UnknownFilterError,
    UnterminatedPlaceholderError,
    parse_template,
)


class TestSegments:
    """Test splitting text into literal and placeholder segments."""

    def test_no_placeholders(self):
        """Text without placeholders is a single literal."""
        template = parse_template("echo 'hello'\n")
        assert template.segments == (Literal("echo 'hello'\n"),)
        assert template.placeholders == ()

    def test_empty_text(self):
        """Empty text has no segments."""
        assert parse_template("").segments == ()

    def test_simple_placeholder(self):
        """Literal text around a placeholder is kept on both sides."""
        template = parse_template("Hello {{ .name }}!")
        assert len(template.segments) == 3
        assert template.segments[0] == Literal("Hello ")
        assert isinstance(template.segments[1], Placeholder)
        assert template.segments[1].path == "name"
        assert template.segments[1].filters == ()
        assert template.segments[2] == Literal("!")

    def test_placeholder_without_spaces(self):
        """Whitespace inside delimiters is optional."""
        template = parse_template("{{.user_id}}")
        assert template.placeholders[0].path == "user_id"

    def test_adjacent_placeholders(self):
        """Placeholders can follow each other with no literal between."""
        template = parse_template("{{ .a }}{{ .b }}")
        assert [p.path for p in template.placeholders] == ["a", "b"]
        assert len(template.segments) == 2

    def test_literal_whitespace_preserved(self):
        """Indentation, tabs and CRLF line endings survive untouched."""
        text = "  if [ -z \"$X\" ]; then\r\n\t{{ .x }}\r\n  fi\n"
        template = parse_template(text)
        assert template.segments[0] == Literal("  if [ -z \"$X\" ]; then\r\n\t")
        assert template.segments[2] == Literal("\r\n  fi\n")

    def test_placeholder_source_and_offsets(self):
        """Placeholders record their raw text and character/byte offsets."""
        template = parse_template("é{{ .x }} and {{ .y }}")
        first, second = template.placeholders
        assert first.source == "{{ .x }}"
        assert first.offset == 1
        assert first.byte_offset == 2
        assert second.offset == 14
        assert second.byte_offset == 15

    def test_variable_paths_deduplicated(self):
        """variable_paths lists each path once, in order of appearance."""
        template = parse_template("{{ .b }} {{ .a }} {{ .b }}")
        assert template.variable_paths == ("b", "a")

    def test_dotted_path(self):
        """Dotted paths are kept whole and split into segments on demand."""
        placeholder = parse_template("{{ .db.primary.host }}").placeholders[0]
        assert placeholder.path == "db.primary.host"
        assert placeholder.segments == ("db", "primary", "host")


class TestFilters:
    """Test filter chain parsing."""

    def test_filter_chain_order(self):
        """Filters are kept in source order with unquoted arguments."""
        placeholder = parse_template(
            '{{ .user_id | type "number" | required "User ID is required"}}'
        ).placeholders[0]
        assert [f.name for f in placeholder.filters] == ["type", "required"]
        assert placeholder.filters[0].args == ("number",)
        assert placeholder.filters[1].args == ("User ID is required",)

    def test_filter_offsets(self):
        """Each filter call records where its name starts."""
        placeholder = parse_template('{{ .x | default "a" }}').placeholders[0]
        assert placeholder.filters[0] == FilterCall("default", ("a",), 8)

    def test_escaped_quotes(self):
        """Backslash escapes are decoded in double-quoted arguments."""
        placeholder = parse_template('{{ .x | default "say \\"hi\\"\\n" }}').placeholders[0]
        assert placeholder.filters[0].args == ('say "hi"\n',)

    def test_unicode_escape(self):
        """\\u escapes produce the code point."""
        placeholder = parse_template('{{ .x | default "\\u00e9" }}').placeholders[0]
        assert placeholder.filters[0].args == ("é",)

    def test_close_delimiter_inside_argument(self):
        """A '}}' inside a quoted argument does not end the placeholder."""
        template = parse_template('{{ .x | default "}}" }} tail')
        assert template.placeholders[0].filters[0].args == ("}}",)
        assert template.segments[-1] == Literal(" tail")

    def test_raw_string_argument(self):
        """Backtick arguments are taken literally, backslashes included."""
        placeholder = parse_template("{{ .x | pattern `^\\d+$` }}").placeholders[0]
        assert placeholder.filters[0].args == (r"^\d+$",)

    def test_empty_string_argument(self):
        """An empty quoted argument is a valid argument."""
        placeholder = parse_template('{{ .key | default "" }}').placeholders[0]
        assert placeholder.filters[0].args == ("",)

    def test_filter_args_lookup(self):
        """filter_args returns the first matching call's arguments."""
        placeholder = parse_template(
            '{{ .x | default "24" | description "Hours" }}'
        ).placeholders[0]
        assert placeholder.filter_args("default") == ("24",)
        assert placeholder.filter_args("pattern") is None

    def test_multiline_placeholder(self):
        """Whitespace between filters may include newlines."""
        placeholder = parse_template(
            '{{ .x\n   | default "a"\n   | description "b" }}'
        ).placeholders[0]
        assert [f.name for f in placeholder.filters] == ["default", "description"]


class TestParseErrors:
    """Test parse error detection and reporting."""

    def test_unterminated_placeholder(self):
        """An open delimiter without a close is reported at the open delimiter."""
        with pytest.raises(UnterminatedPlaceholderError) as exc_info:
            parse_template('abc {{ .x | required "m"')
        assert exc_info.value.offset == 4
        assert exc_info.value.byte_offset == 4

    def test_unterminated_byte_offset_counts_utf8(self):
        """Byte offsets count encoded bytes, not characters."""
        with pytest.raises(UnterminatedPlaceholderError) as exc_info:
            parse_template("é {{ .x")
        assert exc_info.value.offset == 2
        assert exc_info.value.byte_offset == 3

    def test_bare_open_delimiter(self):
        """'{{' at the end of the text is unterminated."""
        with pytest.raises(UnterminatedPlaceholderError):
            parse_template("trailing {{")

    def test_unknown_filter(self):
        """Unknown filter names fail at parse time with the name and offset."""
        with pytest.raises(UnknownFilterError) as exc_info:
            parse_template("{{ .x | upper }}")
        assert exc_info.value.name == "upper"
        assert exc_info.value.offset == 8
        assert "required" in exc_info.value.context["known_filters"]

    def test_missing_argument(self):
        """A filter with too few arguments is an arity error."""
        with pytest.raises(InvalidFilterArityError) as exc_info:
            parse_template("{{ .x | required }}")
        assert exc_info.value.expected == 1
        assert exc_info.value.actual == 0

    def test_extra_argument(self):
        """A filter with too many arguments is an arity error."""
        with pytest.raises(InvalidFilterArityError) as exc_info:
            parse_template('{{ .x | default "a" "b" }}')
        assert exc_info.value.actual == 2

    def test_unknown_type_name(self):
        """The type filter only accepts number, string and bool."""
        with pytest.raises(InvalidFilterArgumentError):
            parse_template('{{ .x | type "integer" }}')

    def test_invalid_regex(self):
        """Patterns are compiled while parsing."""
        with pytest.raises(InvalidFilterArgumentError):
            parse_template('{{ .x | pattern "([a-z" }}')

    @pytest.mark.parametrize("text", [
        "{{ x }}",
        "{{ }}",
        "{{ .x y }}",
        "{{ .x | }}",
        "{{ .1abc }}",
        '{{ .x | default "abc }}',
        '{{ .x | default "bad \\q escape" }}',
        '{{ .x | default "line\nbreak" }}',
    ])
    def test_malformed_placeholders(self, text):
        """Other syntax problems are malformed-placeholder errors."""
        with pytest.raises(MalformedPlaceholderError):
            parse_template(text)

    def test_error_location(self):
        """Parse errors carry line and column numbers and a snippet."""
        with pytest.raises(TemplateParseError) as exc_info:
            parse_template("line1\nab {{ .x | nope }}")
        error = exc_info.value
        assert error.line == 2
        assert error.column == 12
        assert "⮜HERE⮞nope" in error.snippet
        assert "line 2, column 12" in str(error)

    def test_first_error_wins(self):
        """Parsing stops at the first error in the text."""
        with pytest.raises(UnknownFilterError) as exc_info:
            parse_template("{{ .a | first }} {{ .b | second }}")
        assert exc_info.value.name == "first"


class TestCustomRegistry:
    """Test parsing against a non-default filter registry."""

    def test_registered_filter_is_accepted(self):
        """A parser only knows the filters of its registry."""
        registry = FilterRegistry.with_builtins(freeze=False)
        registry.register_filter(FilterDefinition("upper", 0, lambda value, args: value.upper()))
        template = TemplateParser(registry).parse("{{ .x | upper }}")
        assert template.placeholders[0].filters[0].name == "upper"

    def test_empty_registry_rejects_builtins(self):
        """Built-in names are unknown to an empty registry."""
        with pytest.raises(UnknownFilterError):
            parse_template('{{ .x | required "m" }}', registry=FilterRegistry())
