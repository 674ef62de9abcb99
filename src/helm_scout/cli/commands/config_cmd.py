"""hscout generate-config - Write a config file with every default."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import yaml

from helm_scout.config.settings import Settings

app = typer.Typer(context_settings={"allow_interspersed_args": True})


@app.callback(invoke_without_command=True)
def generate_config(
    path: Optional[Path] = typer.Argument(None, help="Destination file (default: stdout)"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Print or write a YAML config file populated with the defaults."""
    text = yaml.safe_dump(Settings().to_dict(), default_flow_style=False, sort_keys=False)
    if path is None:
        typer.echo(text, nl=False)
        return
    if path.exists() and not force:
        typer.echo(f"{path} already exists, use --force to overwrite.", err=True)
        raise typer.Exit(code=1)
    path.write_text(text, encoding="utf-8")
    typer.echo(f"Wrote {path}")
