"""Pytest configuration and fixtures for runbook template tests."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from runbook_templates import TemplateRenderer

FIXTURES_DIR = Path(__file__).parent / "fixtures"

UPDATE_USER_SQL = (
    "UPDATE users SET email = '{{ .email | required \"New email is required\" }}' "
    "WHERE user_id = {{ .user_id | type \"number\" | required \"User ID is required\"}};"
)


@pytest.fixture
def runbooks_dir() -> Path:
    """Directory holding the sample runbooks (shell, SQL, JS)."""
    return FIXTURES_DIR / "runbooks"


@pytest.fixture
def renderer() -> TemplateRenderer:
    """Renderer with the built-in filters."""
    return TemplateRenderer()


@pytest.fixture
def update_user_sql() -> str:
    """Single-line version of the MySQL update-user runbook."""
    return UPDATE_USER_SQL


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def write_runbook(tmp_path):
    """Write a runbook file under a temporary runbook directory."""
    def _write(name: str, body: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")
        return path
    return _write
