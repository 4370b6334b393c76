"""Runbook discovery and loading.

Runbooks are files named ``<name>.runbook.<ext>`` where the extension gives
the body language (``sh``, ``sql``, ``js``). Within a runbook directory a
runbook is addressed by its relative path without the suffix, for example
``mysql/update_user`` for ``mysql/update_user.runbook.sql``.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Union

from runbook_templates.exceptions import RunbookNotFoundError
from runbook_templates.filters import FilterRegistry
from runbook_templates.parser import parse_template
from runbook_templates.types import Template

logger = logging.getLogger(__name__)

DEFAULT_SUFFIXES = (".runbook.sh", ".runbook.sql", ".runbook.js")

LANGUAGES = {
    "sh": "shell",
    "sql": "sql",
    "js": "javascript",
}


@dataclass
class Runbook:
    """A runbook file.

    Attributes:
        name: Runbook name (relative path without the runbook suffix)
        path: File path
        language: Body language derived from the file extension
        source: File contents, line endings preserved
    """
    name: str
    path: Path
    language: str
    source: str

    @property
    def template(self) -> Template:
        """Parse the runbook body with the built-in filters.

        Raises:
            TemplateParseError: If the body does not parse
        """
        return self.parse()

    def parse(self, registry: FilterRegistry | None = None) -> Template:
        """Parse the runbook body.

        Raises:
            TemplateParseError: If the body does not parse
        """
        return parse_template(self.source, registry)


def runbook_suffix(path: Path, suffixes: Sequence[str] = DEFAULT_SUFFIXES) -> str | None:
    """The matching runbook suffix of a file name, or None."""
    for suffix in suffixes:
        if path.name.endswith(suffix):
            return suffix
    return None


def load_runbook(
    path: Union[str, Path],
    root: Union[str, Path, None] = None,
    suffixes: Sequence[str] = DEFAULT_SUFFIXES,
) -> Runbook:
    """Load a single runbook file.

    Args:
        path: Runbook file path
        root: Directory the runbook name is relative to (default: the
            file's own directory)
        suffixes: Recognized runbook suffixes

    Raises:
        RunbookNotFoundError: If the file does not exist
    """
    path = Path(path)
    if not path.is_file():
        raise RunbookNotFoundError(
            f"Runbook file not found: {path}", context={"path": str(path)}
        )

    suffix = runbook_suffix(path, suffixes) or path.suffix
    relative = path.relative_to(root) if root is not None else Path(path.name)
    name = relative.as_posix()[: -len(suffix)] if suffix else relative.as_posix()
    extension = suffix.rsplit(".", 1)[-1] if suffix else ""

    with open(path, encoding="utf-8", newline="") as f:
        source = f.read()

    logger.debug("Loaded runbook %s from %s", name, path)
    return Runbook(
        name=name,
        path=path,
        language=LANGUAGES.get(extension, "text"),
        source=source,
    )


def discover_runbooks(
    root: Union[str, Path],
    suffixes: Sequence[str] = DEFAULT_SUFFIXES,
) -> List[Runbook]:
    """Find all runbooks below a directory, sorted by name.

    Raises:
        RunbookNotFoundError: If the directory does not exist
    """
    root = Path(root)
    if not root.is_dir():
        raise RunbookNotFoundError(
            f"Runbook directory not found: {root}", context={"path": str(root)}
        )

    runbooks = [
        load_runbook(path, root=root, suffixes=suffixes)
        for path in root.rglob("*")
        if path.is_file() and runbook_suffix(path, suffixes)
    ]
    runbooks.sort(key=lambda runbook: runbook.name)
    logger.debug("Discovered %d runbook(s) under %s", len(runbooks), root)
    return runbooks


def resolve_runbook(
    ref: Union[str, Path],
    root: Union[str, Path],
    suffixes: Sequence[str] = DEFAULT_SUFFIXES,
) -> Runbook:
    """Resolve a file path or a runbook name under ``root``.

    Raises:
        RunbookNotFoundError: If neither a file nor a named runbook matches
    """
    path = Path(ref)
    if path.is_file():
        return load_runbook(path, suffixes=suffixes)

    root = Path(root)
    for suffix in suffixes:
        candidate = root / f"{ref}{suffix}"
        if candidate.is_file():
            return load_runbook(candidate, root=root, suffixes=suffixes)

    raise RunbookNotFoundError(
        f"No runbook named '{ref}' under {root}",
        context={"ref": str(ref), "root": str(root)},
    )
