"""Config commands.

Shows the effective configuration and writes an initial config file.
Credentials are never written; the API key comes from FTRACK_API_KEY.
"""

import json
from typing import Annotated

import typer

from ftclean.core.config import (
    AppConfig,
    ConfigError,
    ConnectionConfig,
    load_config,
    mask_secret,
    save_config,
)
from ftclean.core.paths import get_config_path
from ftclean.utils.formatting import console, create_table, print_error, print_info, print_success

app = typer.Typer(
    help="Show or initialize ftclean configuration.",
    no_args_is_help=True,
)


@app.command()
def show(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON (API key masked)."),
    ] = False,
) -> None:
    """Show the effective configuration (file values plus environment overrides)."""
    try:
        config = load_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    data = config.model_dump()
    data["connection"]["api_key"] = mask_secret(config.connection.api_key)

    if json_output:
        console.print_json(json.dumps(data))
        return

    table = create_table(f"Configuration ({get_config_path()})")
    table.add_column("Setting", style="muted")
    table.add_column("Value")
    table.add_row("project", config.project or "(all projects)")
    for section in ("connection", "deletion", "selection"):
        for key, value in data[section].items():
            table.add_row(f"{section}.{key}", "-" if value is None else str(value))
    console.print(table)

    missing = config.connection.missing_fields()
    if missing:
        print_info(f"Not configured yet: {', '.join(missing)}")


@app.command()
def init(
    server: Annotated[
        str,
        typer.Option("--server", "-s", help="Server URL, e.g. https://studio.ftrackapp.com"),
    ],
    api_user: Annotated[
        str,
        typer.Option("--user", "-u", help="API username."),
    ],
    project: Annotated[
        str | None,
        typer.Option("--project", help="Default project name."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file with the server and user (never the API key)."""
    path = get_config_path()
    if path.exists() and not force:
        print_error(f"Config already exists: {path}. Use --force to overwrite.")
        raise typer.Exit(code=1)

    config = AppConfig(
        connection=ConnectionConfig(server_url=server, api_user=api_user),
        project=project,
    )
    try:
        written = save_config(config, path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {written}")
    print_info("Set FTRACK_API_KEY in your environment to authenticate.")
