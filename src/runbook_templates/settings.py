"""Settings for the runbooks command line.

Settings come from, in increasing precedence:

1. Defaults on ``RunbookSettings``
2. An optional YAML or JSON settings file
3. Environment variables ``RUNBOOKS_<FIELD>`` (e.g. ``RUNBOOKS_RUNBOOK_DIR``);
   other ``RUNBOOKS_*`` variables are ignored

Example settings file:
    ```yaml
    runbook_dir: ./runbooks
    suffixes: [.runbook.sh, .runbook.sql]
    log_level: info
    lint_as_errors: true
    ```
"""

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Union

import yaml

from runbook_templates.exceptions import ConfigurationError
from runbook_templates.loader import DEFAULT_SUFFIXES

logger = logging.getLogger(__name__)

ENV_PREFIX = "RUNBOOKS_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RunbookSettings:
    """Command line settings.

    Attributes:
        runbook_dir: Directory searched for runbooks by name
        suffixes: File suffixes recognized as runbooks
        log_level: Logging level name
        lint_as_errors: Treat lint warnings as failures in ``check``
    """
    runbook_dir: Path = Path(".")
    suffixes: Tuple[str, ...] = DEFAULT_SUFFIXES
    log_level: str = "WARNING"
    lint_as_errors: bool = False

    def __post_init__(self) -> None:
        self.runbook_dir = Path(self.runbook_dir)
        self.suffixes = tuple(self.suffixes)
        self.log_level = str(self.log_level).upper()
        if self.log_level not in _LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level: {self.log_level}. "
                f"Valid levels: {', '.join(_LOG_LEVELS)}",
                context={"log_level": self.log_level},
            )
        if not self.suffixes:
            raise ConfigurationError("At least one runbook suffix is required")


def load_settings(
    config_file: Union[str, Path, None] = None,
    environ: Mapping[str, str] | None = None,
) -> RunbookSettings:
    """Build settings from an optional file and the environment.

    Args:
        config_file: Optional YAML/JSON settings file
        environ: Environment mapping (default: ``os.environ``)

    Raises:
        ConfigurationError: If the file or any value is invalid
    """
    values: Dict[str, Any] = {}
    if config_file is not None:
        values.update(_read_settings_file(Path(config_file)))
    values.update(_environment_overrides(os.environ if environ is None else environ))

    known = {f.name for f in fields(RunbookSettings)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(
            f"Unknown settings: {', '.join(unknown)}",
            context={"unknown": unknown, "known": sorted(known)},
        )
    if isinstance(values.get("suffixes"), str):
        values["suffixes"] = _parse_list(values["suffixes"])
    if "lint_as_errors" in values and not isinstance(values["lint_as_errors"], bool):
        values["lint_as_errors"] = _parse_bool("lint_as_errors", str(values["lint_as_errors"]))
    return RunbookSettings(**values)


def _read_settings_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(
            f"Settings file not found: {path}", context={"path": str(path)}
        )
    suffix = path.suffix.lower()
    try:
        with open(path, encoding="utf-8") as f:
            if suffix in [".yaml", ".yml"]:
                data = yaml.safe_load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                raise ConfigurationError(
                    f"Unsupported settings file format: {suffix}",
                    context={"path": str(path)},
                )
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(
            f"Could not parse settings file {path}: {e}", context={"path": str(path)}
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Settings file {path} must contain a mapping", context={"path": str(path)}
        )
    logger.debug("Loaded settings file %s", path)
    return data


def _environment_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    known = {f.name for f in fields(RunbookSettings)}
    overrides: Dict[str, Any] = {}
    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX):].lower()
        if name not in known:
            continue
        if name == "lint_as_errors":
            overrides[name] = _parse_bool(key, value)
        elif name == "suffixes":
            overrides[name] = _parse_list(value)
        else:
            overrides[name] = value
    return overrides


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ["true", "yes", "1", "on"]:
        return True
    if lowered in ["false", "no", "0", "off", ""]:
        return False
    raise ConfigurationError(
        f"Invalid boolean for {key}: {value}", context={"key": key, "value": value}
    )


def _parse_list(value: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())
