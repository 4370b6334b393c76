"""Placeholder parsing, validation and rendering for operator runbooks.

Runbooks are shell, SQL or JS bodies with embedded placeholders:

    UPDATE users
    SET email = '{{ .email | required "New email is required" }}'
    WHERE user_id = {{ .user_id | type "number" | required "User ID is required" }};

Example:
    ```python
    from runbook_templates import TemplateRenderer, Invalid

    renderer = TemplateRenderer()
    result = renderer.render(template_text, {"email": "a@b.com", "user_id": 42})
    if isinstance(result, Invalid):
        for error in result.errors:
            print(error)
    else:
        print(result.text)
    ```
"""

__version__ = "0.1.0"

from runbook_templates.exceptions import (
    ConfigurationError,
    InvalidFilterArgumentError,
    InvalidFilterArityError,
    MalformedPlaceholderError,
    RegistryError,
    RenderValidationError,
    RunbookNotFoundError,
    RunbookTemplateError,
    TemplateParseError,
    UnknownFilterError,
    UnterminatedPlaceholderError,
    VariablesError,
)
from runbook_templates.filters import (
    FilterDefinition,
    FilterFailure,
    FilterRegistry,
    default_registry,
)
from runbook_templates.introspection import describe_variables, lint_template
from runbook_templates.loader import (
    Runbook,
    discover_runbooks,
    load_runbook,
    resolve_runbook,
)
from runbook_templates.parser import TemplateParser, parse_template
from runbook_templates.renderer import (
    TemplateRenderer,
    render_template,
    render_template_strict,
    resolve_path,
)
from runbook_templates.settings import RunbookSettings, load_settings
from runbook_templates.types import (
    MISSING,
    ErrorKind,
    FieldError,
    FilterCall,
    Invalid,
    LintWarning,
    Literal,
    Placeholder,
    Rendered,
    RenderResult,
    Template,
    ValueType,
    VariableSpec,
)
from runbook_templates.variables import (
    load_variables_file,
    merge_variables,
    parse_assignments,
)

__all__ = [
    "__version__",
    # Exceptions
    "RunbookTemplateError",
    "TemplateParseError",
    "UnterminatedPlaceholderError",
    "UnknownFilterError",
    "InvalidFilterArityError",
    "InvalidFilterArgumentError",
    "MalformedPlaceholderError",
    "RenderValidationError",
    "VariablesError",
    "ConfigurationError",
    "RunbookNotFoundError",
    "RegistryError",
    # Types
    "MISSING",
    "ErrorKind",
    "FieldError",
    "FilterCall",
    "Invalid",
    "LintWarning",
    "Literal",
    "Placeholder",
    "Rendered",
    "RenderResult",
    "Template",
    "ValueType",
    "VariableSpec",
    # Engine
    "FilterDefinition",
    "FilterFailure",
    "FilterRegistry",
    "default_registry",
    "TemplateParser",
    "parse_template",
    "TemplateRenderer",
    "render_template",
    "render_template_strict",
    "resolve_path",
    "describe_variables",
    "lint_template",
    # Runbooks, variables and settings
    "Runbook",
    "discover_runbooks",
    "load_runbook",
    "resolve_runbook",
    "load_variables_file",
    "merge_variables",
    "parse_assignments",
    "RunbookSettings",
    "load_settings",
]
