#!/usr/bin/env python3
"""
NoteVault CLI.

Primary entry point for all application operations.
Use --service to select what to run.

Usage:
    python cli.py --help
    python cli.py --service server --verbose
    python cli.py --service db-init
    python cli.py --service token --owner alice
    python cli.py --service config
"""

import asyncio
import subprocess
import sys

import click

from notevault.backend.core.config import validate_project_root
from notevault.backend.core.logging import bind_source, get_logger, setup_logging


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice(["server", "db-init", "token", "config", "info"]),
    default="info",
    help="Service or command to run.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (INFO level logging).",
)
@click.option(
    "--debug", "-d",
    is_flag=True,
    help="Enable debug output (DEBUG level logging).",
)
@click.option(
    "--host",
    default=None,
    help="Server host.",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Server port.",
)
@click.option(
    "--reload",
    is_flag=True,
    help="Enable auto-reload (server only).",
)
@click.option(
    "--owner",
    default=None,
    help="Owner ID to put in the token subject (token only).",
)
def main(
    service: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    owner: str | None,
) -> None:
    """
    NoteVault CLI.

    \b
    Examples:
        python cli.py --service server --verbose
        python cli.py --service server --reload --port 8099
        python cli.py --service db-init
        python cli.py --service token --owner alice
        python cli.py --service config
        python cli.py --service info
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")

    bind_source("cli")

    logger = get_logger(__name__)

    logger.debug("CLI invoked", extra={"service": service, "log_level": log_level})

    if service == "server":
        run_server(logger, host, port, reload)
    elif service == "db-init":
        init_database(logger)
    elif service == "token":
        issue_token(logger, owner)
    elif service == "config":
        show_config(logger)
    elif service == "info":
        show_info(logger)


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start the FastAPI development server."""
    from notevault.backend.core.config import get_app_config

    try:
        server_config = get_app_config().application.server
    except Exception as e:
        logger.error("Failed to load configuration.", extra={"error": str(e)})
        click.echo(
            click.style("Error: Could not load config/settings/application.yaml.", fg="red"),
            err=True,
        )
        sys.exit(1)

    server_host = host or server_config.host
    server_port = port or server_config.port

    logger.info(
        "Starting server",
        extra={"host": server_host, "port": server_port, "reload": reload},
    )

    cmd = [
        sys.executable, "-m", "uvicorn",
        "notevault.backend.main:app",
        "--host", server_host,
        "--port", str(server_port),
    ]

    if reload:
        cmd.append("--reload")

    click.echo(f"Starting server at http://{server_host}:{server_port}")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def init_database(logger) -> None:
    """Create the note tables if they do not exist."""
    from notevault.backend.core.database import create_tables, dispose_engine

    async def _run() -> list[str]:
        try:
            return await create_tables()
        finally:
            await dispose_engine()

    try:
        tables = asyncio.run(_run())
    except Exception as e:
        logger.error("Database initialization failed", extra={"error": str(e)})
        click.echo(click.style(f"Error initializing database: {e}", fg="red"), err=True)
        sys.exit(1)

    logger.info("Tables created", extra={"tables": tables})
    click.echo(f"Tables ready: {', '.join(tables)}")


def issue_token(logger, owner: str | None) -> None:
    """Print an access token for local testing."""
    from notevault.backend.core.security import create_access_token

    if not owner:
        click.echo(click.style("Error: --owner is required for token.", fg="red"), err=True)
        sys.exit(2)

    try:
        token = create_access_token({"sub": owner})
    except Exception as e:
        logger.error("Failed to create token", extra={"error": str(e)})
        click.echo(click.style(f"Error creating token: {e}", fg="red"), err=True)
        sys.exit(1)

    logger.info("Access token issued", extra={"owner": owner})
    click.echo(token)


def _echo_section(title: str, values: dict) -> None:
    click.echo(f"{title}:")
    click.echo("-" * 40)
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"  {key}:")
            for k, v in value.items():
                click.echo(f"    {k}: {v}")
        else:
            click.echo(f"  {key}: {value}")
    click.echo()


def show_config(logger) -> None:
    """Display loaded configuration."""
    click.echo("Application Configuration:\n")

    try:
        from notevault.backend.core.config import get_app_config

        app_config = get_app_config()

        _echo_section("Application Settings (from YAML)", app_config.application.model_dump())
        _echo_section("Database Settings (from YAML)", app_config.database.model_dump())
        _echo_section("Logging Settings (from YAML)", app_config.logging.model_dump())
        _echo_section("Note Settings (from YAML)", app_config.notes.model_dump())

        logger.info("Configuration displayed successfully")

    except Exception as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        click.echo(click.style(f"Error loading configuration: {e}", fg="red"))
        sys.exit(1)


def show_info(logger) -> None:
    """Display application information."""
    click.echo("NoteVault")
    click.echo("=" * 40)

    try:
        from notevault.backend.core.config import get_app_config, get_server_base_url
        app_config = get_app_config()
        click.echo(f"Name: {app_config.application.name}")
        click.echo(f"Version: {app_config.application.version}")
        click.echo(f"Description: {app_config.application.description}")
        click.echo(f"Server: {get_server_base_url()}")
    except Exception as e:
        logger.error(
            "Failed to load application configuration",
            extra={"error": str(e)},
        )
        click.echo(
            click.style(
                "Error: Could not load application.yaml configuration.",
                fg="red",
            ),
            err=True,
        )
        sys.exit(1)

    click.echo()
    click.echo("Services (--service):")
    click.echo("  server         FastAPI development server")
    click.echo("  db-init        Create database tables")
    click.echo("  token          Issue an access token (--owner)")
    click.echo("  config         Display configuration")
    click.echo("  info           Show this information")
    click.echo()
    click.echo("Options:")
    click.echo("  --verbose, -v  Enable INFO level logging")
    click.echo("  --debug, -d    Enable DEBUG level logging")

    logger.debug("Info displayed")


if __name__ == "__main__":
    main()
