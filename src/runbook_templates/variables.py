"""Building variable maps from files and ``key=value`` assignments.

Variable files are YAML (``.yaml``/``.yml``) or JSON (``.json``) documents
whose top level is a mapping. Values keep their parsed types, so a YAML file
can supply numbers and booleans directly; command-line assignments always
supply strings.

Example:
    ```python
    variables = merge_variables(
        load_variables_file("prod.yaml"),
        parse_assignments(["user_id=42", "email=a@b.com"]),
    )
    ```
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Union

import yaml

from runbook_templates.exceptions import VariablesError


def load_variables_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a variable map from a YAML or JSON file.

    Raises:
        VariablesError: If the file is missing, malformed, of an unsupported
            format, or does not contain a mapping
    """
    path = Path(path)
    if not path.exists():
        raise VariablesError(
            f"Variables file not found: {path}", context={"path": str(path)}
        )

    suffix = path.suffix.lower()
    try:
        with open(path, encoding="utf-8") as f:
            if suffix in [".yaml", ".yml"]:
                data = yaml.safe_load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise VariablesError(
                    f"Unsupported variables file format: {suffix}",
                    context={"path": str(path)},
                )
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise VariablesError(
            f"Could not parse variables file {path}: {e}", context={"path": str(path)}
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise VariablesError(
            f"Variables file {path} must contain a mapping, got {type(data).__name__}",
            context={"path": str(path)},
        )
    return {str(key): value for key, value in data.items()}


def parse_assignments(assignments: Iterable[str]) -> Dict[str, str]:
    """Parse ``key=value`` strings into a flat map.

    The value is everything after the first ``=`` and may be empty. A dotted
    key such as ``db.host=x`` stays a flat key; path resolution falls back to
    flat keys.

    Raises:
        VariablesError: If an assignment has no ``=`` or an empty key
    """
    result: Dict[str, str] = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        key = key.strip()
        if not sep or not key:
            raise VariablesError(
                f"Invalid variable assignment {assignment!r}, expected key=value",
                context={"assignment": assignment},
            )
        result[key] = value
    return result


def merge_variables(*maps: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge variable maps; later maps override earlier ones key by key."""
    merged: Dict[str, Any] = {}
    for mapping in maps:
        merged.update(mapping)
    return merged
