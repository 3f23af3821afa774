"""CLI entry point: Typer app for inspecting filters and components.

Usage:
    portvec compile "country in ['UK', 'NL'] && year >= 2020" -d sql -f country:text -f year:number
    portvec compile "genre = 'drama'" --dialect weaviate --settings settings.yaml
    portvec status
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

app = typer.Typer(
    name="portvec",
    help="Portable vector store: compile filters, inspect backends.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _load_schema(settings_path: Path | None, fields: list[str]):
    from portvec.config import load_settings
    from portvec.filters.schema import MetadataField

    schema = load_settings(settings_path).build_schema()
    extra = []
    for option in fields:
        name, sep, type_name = option.partition(":")
        if not sep:
            raise typer.BadParameter(f"Expected NAME:TYPE, got '{option}'", param_hint="--field")
        extra.append(MetadataField(name.strip(), type_name.strip().lower()))
    return schema.with_fields(*extra) if extra else schema


@app.command("compile")
def compile_filter(
    expression: str = typer.Argument(..., help="Portable filter expression"),
    dialect: str = typer.Option("sql", "--dialect", "-d", help="Target translator dialect"),
    field: list[str] = typer.Option(
        [], "--field", "-f", help="Schema field as NAME:TYPE (text, number, boolean)",
    ),
    settings: Path | None = typer.Option(
        None, "--settings", "-s", help="settings.yaml declaring metadata_fields",
    ),
) -> None:
    """Parse, validate and translate a filter for one backend dialect."""
    from portvec.errors import ParseError, PortVecError
    from portvec.filters.formatter import to_text
    from portvec.filters.parser import parse
    from portvec.filters.validator import validate
    from portvec.translators.factory import get_translator

    try:
        schema = _load_schema(settings, field)
        translator = get_translator(dialect)
        ast = parse(expression)
        native = translator.translate(validate(ast, schema))
    except ParseError as exc:
        console.print(f"[bold red]Parse error:[/] {escape(exc.message)}")
        console.print(f"  {expression}", markup=False, highlight=False)
        console.print("  " + " " * exc.position + "^", markup=False, highlight=False)
        raise typer.Exit(code=1) from exc
    except (PortVecError, ValueError) as exc:
        console.print(f"[bold red]Error:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    console.print(f"[bold]Canonical:[/] {escape(to_text(ast))}", highlight=False)
    if isinstance(native, (dict, list)):
        rendered = json.dumps(native, indent=2)
    elif isinstance(native, str):
        rendered = native
    else:
        rendered = f"<{type(native).__name__} predicate>"
    console.print(f"[bold green]{translator.name}:[/]")
    console.print(rendered, markup=False, highlight=False)


@app.command()
def status(
    settings: Path | None = typer.Option(
        None, "--settings", "-s", help="settings.yaml to inspect",
    ),
) -> None:
    """Show available components and the configured metadata schema."""
    from portvec import __version__
    from portvec.backends.factory import available_backends
    from portvec.config import load_settings
    from portvec.embeddings.factory import available_providers
    from portvec.translators.factory import available_translators

    cfg = load_settings(settings)

    console.print(f"\n[bold green]portvec[/] v{__version__}\n")

    table = Table(title="Available Components")
    table.add_column("Layer", style="cyan")
    table.add_column("Available")
    table.add_row("Embedding Providers", ", ".join(available_providers()))
    table.add_row("Backends", ", ".join(available_backends()))
    table.add_row("Filter Dialects", ", ".join(available_translators()))
    console.print(table)

    schema_table = Table(title="Metadata Schema")
    schema_table.add_column("Field", style="cyan")
    schema_table.add_column("Type")
    for f in cfg.metadata_fields:
        schema_table.add_row(f.name, f.type.value)
    console.print(schema_table)
    console.print(
        f"[dim]Backend: {cfg.vectorstore.backend} | "
        f"Embedding: {cfg.embedding.provider} (dim={cfg.embedding.dimension})[/]",
    )


if __name__ == "__main__":
    app()
