"""CLI application setup using Typer.

Provides the command-line interface for validating files.
"""

from schemaguard.cli.main import app

__all__ = ["app"]
