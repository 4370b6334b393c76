"""Template renderer.

Rendering is all-or-nothing. Every placeholder is evaluated, failures are
collected as ``FieldError`` records, and if there is at least one failure the
result is ``Invalid`` with no text. A runbook is never handed over with a
placeholder left unsubstituted or with a value that failed validation.

Parse errors are different: a template that does not parse raises
``TemplateParseError`` before any variable is looked at.

The renderer keeps no state between calls. The same template and variables
always render to the same text.
"""

import logging
from typing import Any, Dict, List, Mapping

from runbook_templates.exceptions import RenderValidationError
from runbook_templates.filters import FilterFailure, FilterRegistry, default_registry
from runbook_templates.parser import TemplateParser
from runbook_templates.types import (
    MISSING,
    ErrorKind,
    FieldError,
    Invalid,
    Literal,
    Placeholder,
    Rendered,
    RenderResult,
    Template,
)
from runbook_templates.values import stringify

logger = logging.getLogger(__name__)


def resolve_path(variables: Mapping[str, Any], path: str) -> Any:
    """Look up a dotted variable path.

    Nested mappings are walked one segment at a time. If the walk does not
    reach a value, the whole dotted path is tried as a flat key. ``None`` is
    treated as absent.

    Returns:
        The value, or ``MISSING``
    """
    value: Any = MISSING
    segments = path.split(".")
    if len(segments) > 1:
        current: Any = variables
        for segment in segments:
            if isinstance(current, Mapping) and segment in current:
                current = current[segment]
            else:
                current = MISSING
                break
        value = current
    if value is MISSING:
        value = variables.get(path, MISSING)
    return MISSING if value is None else value


class TemplateRenderer:
    """Renders runbook templates against variable maps.

    Example:
        >>> renderer = TemplateRenderer()
        >>> result = renderer.render(
        ...     'SELECT * FROM users WHERE id = {{ .id | type "number" }};',
        ...     {"id": "42"},
        ... )
        >>> result.text
        'SELECT * FROM users WHERE id = 42;'
    """

    def __init__(self, registry: FilterRegistry | None = None):
        """Initialize the renderer.

        Args:
            registry: Filter registry (default: the built-in filters)
        """
        self._registry = registry if registry is not None else default_registry()
        self._parser = TemplateParser(self._registry)

    @property
    def registry(self) -> FilterRegistry:
        """The filter registry used for parsing and rendering."""
        return self._registry

    def parse(self, text: str) -> Template:
        """Parse template text.

        Raises:
            TemplateParseError: If the text does not parse
        """
        return self._parser.parse(text)

    def render(
        self,
        template: Template | str,
        variables: Mapping[str, Any] | None = None,
    ) -> RenderResult:
        """Render a template.

        Args:
            template: Parsed template or template text
            variables: Variable map; missing keys and None values are absent

        Returns:
            ``Rendered`` with the text, or ``Invalid`` with every field error

        Raises:
            TemplateParseError: If template text does not parse
        """
        if isinstance(template, str):
            template = self.parse(template)
        variables = variables if variables is not None else {}

        parts: List[str] = []
        errors: List[FieldError] = []
        values: Dict[str, Any] = {}

        for segment in template.segments:
            if isinstance(segment, Literal):
                parts.append(segment.text)
                continue
            rendered = self._render_placeholder(segment, variables, errors)
            if rendered is not None:
                text, value = rendered
                parts.append(text)
                values[segment.path] = None if value is MISSING else value

        if errors:
            logger.warning(
                "Template render failed: %d error(s) in %d placeholder(s)",
                len(errors),
                len(template.placeholders),
            )
            return Invalid(errors=tuple(errors))

        logger.debug("Rendered template with %d placeholder(s)", len(template.placeholders))
        return Rendered(text="".join(parts), values=values)

    def render_strict(
        self,
        template: Template | str,
        variables: Mapping[str, Any] | None = None,
    ) -> str:
        """Render a template, raising instead of returning ``Invalid``.

        Raises:
            TemplateParseError: If template text does not parse
            RenderValidationError: If any placeholder fails validation
        """
        result = self.render(template, variables)
        if isinstance(result, Invalid):
            raise RenderValidationError(result.errors)
        return result.text

    def _render_placeholder(
        self,
        placeholder: Placeholder,
        variables: Mapping[str, Any],
        errors: List[FieldError],
    ) -> tuple[str, Any] | None:
        raw = resolve_path(variables, placeholder.path)
        try:
            value = self._registry.apply_chain(placeholder.filters, raw)
        except FilterFailure as e:
            errors.append(FieldError(
                path=placeholder.path,
                filter_name=e.filter_name,
                message=e.message,
                kind=e.kind,
                offset=placeholder.offset,
            ))
            return None

        try:
            return stringify(value), value
        except (TypeError, ValueError) as e:
            errors.append(FieldError(
                path=placeholder.path,
                filter_name=None,
                message=f"cannot render value: {e}",
                kind=ErrorKind.INVALID_VALUE,
                offset=placeholder.offset,
            ))
            return None


# Convenience functions for one-off rendering

def render_template(
    text: str,
    variables: Mapping[str, Any] | None = None,
    registry: FilterRegistry | None = None,
) -> RenderResult:
    """Parse and render template text in one call.

    Raises:
        TemplateParseError: If the text does not parse
    """
    return TemplateRenderer(registry).render(text, variables)


def render_template_strict(
    text: str,
    variables: Mapping[str, Any] | None = None,
    registry: FilterRegistry | None = None,
) -> str:
    """Parse and render template text, raising on validation errors.

    Raises:
        TemplateParseError: If the text does not parse
        RenderValidationError: If any placeholder fails validation
    """
    return TemplateRenderer(registry).render_strict(text, variables)
