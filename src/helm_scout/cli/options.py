"""Shared CLI options."""

from __future__ import annotations

import enum

import typer


class OutputFormat(str, enum.Enum):
    TABLE = "table"
    JSON = "json"
    YAML = "yaml"


OutputOption = typer.Option(OutputFormat.TABLE, "--output", "-o", help="Output format")
NamespaceOption = typer.Option(None, "--namespace", "-n", help="Kubernetes namespace (default: all)")
ContextOption = typer.Option(None, "--context", help="Kubernetes context name")
ConfigOption = typer.Option(
    None, "--config", "-c", help="YAML config file", exists=True, dir_okay=False,
)
VerboseOption = typer.Option(0, "--verbose", "-v", count=True, help="Increase log verbosity (-v, -vv)")
