#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File: cli.py

Description:
------------
Command-line interface for the assembly_bridge package, powered by Typer.
"""

from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape as escape_markup
from rich.table import Table

from . import __version__
from .core import RunContext
from .exceptions import BridgeGenError, ConfigError
from .generator import BridgeGenerator
from .introspector import Introspector
from .logging_config import setup_logging
from .options import GeneratorOptions

app = typer.Typer(
    name="assembly-bridge",
    help="Generate a config.toml manifest and an edge-js handler.js for a compiled component.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"assembly-bridge version: {__version__}")
        raise typer.Exit()


@app.callback()
def main_options(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging."),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Also write the log to this file."),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True, help="Show version and exit."
    ),
):
    """Manage global options."""
    setup_logging("DEBUG" if verbose else "WARNING", log_file)


def _get_options_from_args(config_file: Optional[Path], **kwargs) -> GeneratorOptions:
    """Create GeneratorOptions from config file and CLI arguments."""
    options = GeneratorOptions()
    if config_file:
        logger.info(f"Loading options from config file: {config_file}")
        options = GeneratorOptions.from_file(config_file)
    return options.merged(**kwargs)


@app.command("generate")
def generate_command(
    component: str = typer.Argument(..., help="Component to introspect (.dll, .exe, .winmd or description file)."),
    output_dir: str = typer.Argument(..., help="Existing directory receiving config.toml and handler.js."),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p", help="Provider: auto, clr or description."),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to JSON/YAML configuration file.", exists=True),
    collision_policy: Optional[str] = typer.Option(
        None, "--collision-policy", help="How to treat colliding identifiers: ignore or ordinal."),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Render both artifacts without writing them."),
):
    """Generate the manifest and bridge module for a component."""
    try:
        options = _get_options_from_args(
            config, provider=provider, collision_policy=collision_policy)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape_markup(str(e))}")
        raise typer.Exit(code=1)

    component = component.strip()
    output_dir = output_dir.strip()
    context = RunContext.create(
        Path(component).resolve() if component else "",
        Path(output_dir).resolve() if output_dir else "",
    )
    result = BridgeGenerator(options).run(context, dry_run=dry_run)

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape_markup(warning)}")
    if not result.ok:
        console.print(result.message, style="red", markup=False, highlight=False)
        raise typer.Exit(code=1)

    console.print(f"[green]✔[/green] {escape_markup(result.message)}", highlight=False)
    if dry_run:
        console.print(result.manifest_text, markup=False, highlight=False)
        console.print(result.bridge_text, markup=False, highlight=False)
    for file_path in result.written_files:
        console.print(f"  - {file_path}")


@app.command("inspect")
def inspect_command(
    component: Path = typer.Argument(
        ..., help="Component to introspect.", exists=True),
    show_all: bool = typer.Option(
        False, "--all", "-a", help="List every member with the reason it is excluded."),
    provider: str = typer.Option(
        "auto", "--provider", "-p", help="Provider: auto, clr or description."),
):
    """List the invocable members of a component."""
    try:
        introspector = Introspector(provider_kind=GeneratorOptions(provider=provider).provider_kind)
        candidates = introspector.candidates(component.resolve())
    except BridgeGenError as e:
        console.print(f"[red]Error:[/red] {escape_markup(str(e))}")
        for cause in getattr(e, "causes", []):
            console.print(f"  - {escape_markup(cause)}")
        raise typer.Exit(code=1)

    table = Table(title=f"Members of {escape_markup(component.name)}")
    table.add_column("Type", style="cyan")
    table.add_column("Member", style="bold")
    table.add_column("Static")
    table.add_column("Returns")
    table.add_column("Parameters")
    if show_all:
        table.add_column("Excluded because", style="yellow")

    for candidate in candidates:
        reason = candidate.exclusion_reason()
        if reason is not None and not show_all:
            continue
        qualified = (
            f"{candidate.namespace_name}.{candidate.type_name}"
            if candidate.namespace_name else candidate.type_name
        )
        row = [
            qualified,
            candidate.member_name,
            "yes" if candidate.is_static else "no",
            candidate.return_type_name,
            ", ".join(candidate.parameter_type_names),
        ]
        if show_all:
            row.append(reason or "")
        table.add_row(*(escape_markup(cell) for cell in row))

    console.print(table)
    invocable = sum(1 for c in candidates if c.is_invocable)
    console.print(f"{invocable} invocable of {len(candidates)} member(s).")


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
