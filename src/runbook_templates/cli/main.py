"""Runbooks CLI for rendering and checking runbook templates.

This module provides a command-line interface for:
- Rendering a runbook with variables from files and ``key=value`` flags
- Checking runbooks for parse errors and lint warnings
- Describing the variables a runbook expects
- Listing the runbooks in a directory

Exit codes: 0 on success, 1 on validation failures (or other errors),
2 when a runbook does not parse.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Tuple

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..exceptions import (
    ConfigurationError,
    RunbookNotFoundError,
    TemplateParseError,
    VariablesError,
)
from ..introspection import describe_variables, lint_template
from ..loader import Runbook, discover_runbooks, resolve_runbook
from ..renderer import TemplateRenderer
from ..settings import RunbookSettings, load_settings
from ..types import Invalid
from ..variables import load_variables_file, merge_variables, parse_assignments

console = Console()
err_console = Console(stderr=True)

EXIT_INVALID = 1
EXIT_PARSE_ERROR = 2


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--config', 'config_file',
    type=click.Path(exists=True, dir_okay=False),
    envvar='RUNBOOKS_CONFIG',
    help='Settings file (YAML or JSON)',
)
@click.option(
    '--log-level',
    type=click.Choice(['debug', 'info', 'warning', 'error', 'critical'], case_sensitive=False),
    help='Logging level (overrides settings)',
)
@click.pass_context
def cli(ctx: click.Context, config_file: str | None, log_level: str | None):
    """Runbooks CLI - render and validate operator runbook templates"""
    try:
        settings = load_settings(config_file)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    if log_level:
        settings.log_level = log_level.upper()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        stream=sys.stderr,
    )
    ctx.obj = settings


def _resolve(settings: RunbookSettings, ref: str) -> Runbook:
    try:
        return resolve_runbook(ref, settings.runbook_dir, settings.suffixes)
    except RunbookNotFoundError as e:
        raise click.ClickException(str(e)) from e


def _report_parse_error(name: str, error: TemplateParseError) -> None:
    err_console.print(f"[red]✗[/red] {escape(name)}: {escape(str(error))}", soft_wrap=True)
    err_console.print(f"    {escape(error.snippet)}", soft_wrap=True)


@cli.command()
@click.argument('runbook')
@click.option('--var', '-v', 'assignments', multiple=True, help='Variable as key=value (repeatable)')
@click.option(
    '--vars-file', '-f', 'vars_files', multiple=True,
    type=click.Path(exists=True, dir_okay=False),
    help='YAML/JSON variables file (repeatable, later files win)',
)
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write rendered text to a file')
@click.pass_obj
def render(settings: RunbookSettings, runbook: str, assignments: Tuple[str, ...],
           vars_files: Tuple[str, ...], output: str | None):
    """Render a runbook (file path or name under the runbook directory)"""
    target = _resolve(settings, runbook)

    try:
        variables = merge_variables(
            *[load_variables_file(path) for path in vars_files],
            parse_assignments(assignments),
        )
    except VariablesError as e:
        raise click.ClickException(str(e)) from e

    try:
        template = target.template
    except TemplateParseError as e:
        _report_parse_error(target.name, e)
        sys.exit(EXIT_PARSE_ERROR)

    result = TemplateRenderer().render(template, variables)
    if isinstance(result, Invalid):
        err_console.print(
            f"[red]✗[/red] Cannot render {escape(target.name)}: "
            f"{len(result.errors)} error(s)",
            soft_wrap=True,
        )
        for error in result.errors:
            err_console.print(f"  - {escape(str(error))}", soft_wrap=True)
        sys.exit(EXIT_INVALID)

    if output:
        with open(output, 'w', encoding='utf-8', newline='') as f:
            f.write(result.text)
        err_console.print(f"[green]✓[/green] Rendered {escape(target.name)} to {escape(output)}")
    else:
        click.echo(result.text, nl=False)


@cli.command()
@click.argument('runbooks', nargs=-1)
@click.option('--strict', is_flag=True, help='Treat lint warnings as failures')
@click.pass_obj
def check(settings: RunbookSettings, runbooks: Tuple[str, ...], strict: bool):
    """Check runbooks for parse errors and lint warnings (default: all)"""
    if runbooks:
        targets = [_resolve(settings, ref) for ref in runbooks]
    else:
        try:
            targets = discover_runbooks(settings.runbook_dir, settings.suffixes)
        except RunbookNotFoundError as e:
            raise click.ClickException(str(e)) from e

    strict = strict or settings.lint_as_errors
    parse_failed = False
    lint_failed = False

    for target in targets:
        try:
            template = target.template
        except TemplateParseError as e:
            _report_parse_error(target.name, e)
            parse_failed = True
            continue

        warnings = lint_template(template)
        for warning in warnings:
            console.print(f"[yellow]![/yellow] {escape(target.name)}: {escape(str(warning))}", soft_wrap=True)
        if warnings and strict:
            lint_failed = True
        elif not warnings:
            console.print(f"[green]✓[/green] {escape(target.name)}", soft_wrap=True)

    console.print(f"\nChecked {len(targets)} runbook(s)")
    if parse_failed:
        sys.exit(EXIT_PARSE_ERROR)
    if lint_failed:
        sys.exit(EXIT_INVALID)


@cli.command()
@click.argument('runbook')
@click.option('--format', '-f', 'output_format',
              type=click.Choice(['table', 'yaml', 'json']), default='table')
@click.pass_obj
def describe(settings: RunbookSettings, runbook: str, output_format: str):
    """Describe the variables a runbook expects"""
    target = _resolve(settings, runbook)
    try:
        specs = describe_variables(target.template)
    except TemplateParseError as e:
        _report_parse_error(target.name, e)
        sys.exit(EXIT_PARSE_ERROR)

    if output_format == 'yaml':
        click.echo(yaml.safe_dump([spec.to_dict() for spec in specs], sort_keys=False), nl=False)
        return
    if output_format == 'json':
        click.echo(json.dumps([spec.to_dict() for spec in specs], indent=2))
        return

    table = Table(title=f"{target.name} ({target.language})")
    table.add_column("Variable", style="cyan")
    table.add_column("Required", style="red")
    table.add_column("Default")
    table.add_column("Type", style="green")
    table.add_column("Pattern")
    table.add_column("Description")
    for spec in specs:
        table.add_row(
            escape(spec.path),
            "yes" if spec.required else "",
            escape(spec.default) if spec.default is not None else "",
            spec.value_type.value if spec.value_type else "",
            escape(spec.pattern or ""),
            escape(spec.description or ""),
        )
    console.print(table)


@cli.command(name='list')
@click.argument('directory', required=False, type=click.Path(file_okay=False))
@click.pass_obj
def list_runbooks(settings: RunbookSettings, directory: str | None):
    """List runbooks under a directory (default: the runbook directory)"""
    root = Path(directory) if directory else settings.runbook_dir
    try:
        runbooks = discover_runbooks(root, settings.suffixes)
    except RunbookNotFoundError as e:
        raise click.ClickException(str(e)) from e

    if not runbooks:
        console.print(f"No runbooks found under {escape(str(root))}")
        return

    table = Table(title=f"Runbooks in {root}")
    table.add_column("Name", style="cyan")
    table.add_column("Language", style="green")
    table.add_column("Variables")
    for runbook in runbooks:
        try:
            variables = escape(", ".join(runbook.template.variable_paths))
        except TemplateParseError:
            variables = "[red]parse error[/red]"
        table.add_row(escape(runbook.name), runbook.language, variables)
    console.print(table)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
