"""Command line interface for runbook templates."""

from .main import cli, main

__all__ = ["cli", "main"]
