"""CLI entry point.

Thin adapter over the validator:
- check: decode a value file and a schema file, then validate
- version: print the installed version
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
import yaml
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from schemaguard.exceptions import SchemaValidationException
from schemaguard.logging_config import configure_logging
from schemaguard.validator import SchemaValidator, ValidatorOptions

app = typer.Typer(
    name="schemaguard",
    help="Validate decoded JSON/YAML documents against declarative schemas",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

EXIT_INVALID = 1
EXIT_CONFIGURATION = 2


class StrictKeyMode(str, Enum):
    """How $strict compares key sets."""

    count = "count"
    set = "set"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


def load_document(path: Path) -> Any:
    """Decode a JSON or YAML file into a value.

    ``.json`` files go through the json module; everything else through
    ``yaml.safe_load`` (which also reads plain JSON).
    """
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


@app.command()
def check(
    value_file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="JSON/YAML file to validate"),
    ],
    schema_file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="JSON/YAML schema file"),
    ],
    prefix: Annotated[
        Optional[str],  # noqa: UP007
        typer.Option("--prefix", "-p", help="Prefix marking schema control keys (default '$')"),
    ] = None,
    strict_key_mode: Annotated[
        Optional[StrictKeyMode],  # noqa: UP007
        typer.Option("--strict-key-mode", help="Compare $strict key sets by count or by set"),
    ] = None,
    max_depth: Annotated[
        Optional[int],  # noqa: UP007
        typer.Option("--max-depth", min=1, max=500, help="Maximum nesting depth to walk"),
    ] = None,
    log_level: Annotated[
        Optional[LogLevel],  # noqa: UP007
        typer.Option("--log-level", "-l", help="Console log level"),
    ] = None,
) -> None:
    """Validate VALUE_FILE against SCHEMA_FILE.

    Exits 0 when the document conforms, 1 when it does not, and 2 when a
    file cannot be decoded or the schema itself is malformed.
    """
    configure_logging(log_level.value if log_level else None)

    try:
        value = load_document(value_file)
        schema = load_document(schema_file)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]❌ Could not decode input: {e}[/red]")
        raise typer.Exit(code=EXIT_CONFIGURATION) from e

    try:
        options = ValidatorOptions(
            throws_exception=True,
            custom_attributes_prefix=prefix,
            strict_key_mode=strict_key_mode.value if strict_key_mode else None,
            max_depth=max_depth,
        )
    except PydanticValidationError as e:
        console.print(f"[red]❌ Invalid options: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(code=EXIT_CONFIGURATION) from e

    try:
        SchemaValidator(value, schema, options).validate()
    except SchemaValidationException as failure:
        _print_failure(value_file, failure)
        code = EXIT_CONFIGURATION if failure.is_unexpected() else EXIT_INVALID
        raise typer.Exit(code=code) from failure

    console.print(f"[bold green]✅ {value_file.name} is valid[/bold green]")


@app.command()
def version() -> None:
    """Print the installed schemaguard version."""
    from schemaguard import __version__

    console.print(f"schemaguard {__version__}")


def _print_failure(value_file: Path, failure: SchemaValidationException) -> None:
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Path", failure.arguments.get("actual_path") or "(root)")
    table.add_row("Level", failure.level)
    if failure.body_key:
        table.add_row("Detail", failure.body_key)
    if failure.e is not None:
        table.add_row("Cause", f"{type(failure.e).__name__}: {failure.e}")

    console.print(
        Panel(
            table,
            title=f"❌ {failure.title_key}",
            subtitle=value_file.name,
            border_style="red",
        )
    )


if __name__ == "__main__":
    app()
