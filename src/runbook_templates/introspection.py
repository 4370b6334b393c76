"""Template introspection: variable documentation and lint checks.

``describe_variables`` gathers what a template says about each variable
(``description``, ``required``, ``default``, ``type``, ``pattern``) so forms
and help output can be generated from the runbook itself.

``lint_template`` reports chains that parse and render but are probably not
what the author meant. Lint findings never block rendering.
"""

import logging
from typing import Dict, List

from runbook_templates.types import LintWarning, Template, ValueType, VariableSpec

logger = logging.getLogger(__name__)


def describe_variables(template: Template) -> List[VariableSpec]:
    """Collect per-variable documentation in first-appearance order.

    Placeholders referencing the same path are merged: the first value seen
    for each attribute wins and ``required`` is true if any placeholder
    requires the variable.
    """
    specs: Dict[str, VariableSpec] = {}
    for placeholder in template.placeholders:
        spec = specs.setdefault(placeholder.path, VariableSpec(path=placeholder.path))
        spec.occurrences += 1
        for call in placeholder.filters:
            arg = call.args[0] if call.args else None
            if call.name == "description" and spec.description is None:
                spec.description = arg
            elif call.name == "required":
                spec.required = True
                if spec.required_message is None:
                    spec.required_message = arg
            elif call.name == "default" and spec.default is None:
                spec.default = arg
            elif call.name == "type" and spec.value_type is None and arg is not None:
                spec.value_type = ValueType.from_string(arg)
            elif call.name == "pattern" and spec.pattern is None:
                spec.pattern = arg
    return list(specs.values())


def lint_template(template: Template) -> List[LintWarning]:
    """Find suspicious but valid filter usage.

    Codes:
        required-after-default: ``required`` follows ``default`` and can only
            reject empty values
        duplicate-filter: the same filter appears twice in one chain
        conflicting-default: one path has different defaults in different places
    """
    warnings: List[LintWarning] = []
    defaults: Dict[str, str] = {}

    for placeholder in template.placeholders:
        seen: List[str] = []
        for call in placeholder.filters:
            if call.name == "required" and "default" in seen:
                warnings.append(LintWarning(
                    path=placeholder.path,
                    code="required-after-default",
                    message="'required' after 'default' only rejects empty values",
                    offset=placeholder.offset,
                ))
            if call.name in seen:
                warnings.append(LintWarning(
                    path=placeholder.path,
                    code="duplicate-filter",
                    message=f"filter '{call.name}' appears more than once",
                    offset=placeholder.offset,
                ))
            seen.append(call.name)

        default_args = placeholder.filter_args("default")
        if default_args is not None:
            previous = defaults.setdefault(placeholder.path, default_args[0])
            if previous != default_args[0]:
                warnings.append(LintWarning(
                    path=placeholder.path,
                    code="conflicting-default",
                    message=f"default {default_args[0]!r} differs from earlier {previous!r}",
                    offset=placeholder.offset,
                ))

    for warning in warnings:
        logger.debug("Lint: %s", warning)
    return warnings
