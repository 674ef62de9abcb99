"""Root Typer application, mounts sub-commands."""

from __future__ import annotations

import typer

app = typer.Typer(
    name="hscout",
    help="Helm Scout - Find outdated Helm charts and container images.",
    no_args_is_help=True,
)


def _register_commands() -> None:
    from helm_scout.cli.commands.find_cmd import app as find_app
    from helm_scout.cli.commands.config_cmd import app as config_app

    app.add_typer(find_app, name="find", help="Find outdated charts and images")
    app.add_typer(config_app, name="generate-config", help="Generate a config file")


_register_commands()


def main() -> None:
    app()
