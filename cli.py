#!/usr/bin/env python3
"""
Menu Bot Builder CLI.

Primary entry point for all application operations.
Use --service to select what to run, --action to control the server lifecycle.

Usage:
    python cli.py --help
    python cli.py --service server --verbose
    python cli.py --service server --action stop
    python cli.py --service config
    python cli.py --service migrate --migrate-action upgrade
    python cli.py --service webhooks
"""

import asyncio
import os
import signal
import subprocess
import sys
from pathlib import Path

import click
import structlog

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from botbuilder.backend.core.config import PROJECT_ROOT_MARKER
from botbuilder.backend.core.logging import get_logger, setup_logging

# --migrate-action -> (alembic arguments, message)
ALEMBIC_COMMANDS = {
    "upgrade": (["upgrade"], "Upgrading database to revision: {revision}"),
    "downgrade": (["downgrade"], "Downgrading database to revision: {revision}"),
    "current": (["current"], "Showing current database revision..."),
    "history": (["history", "--verbose"], "Showing migration history..."),
}


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / PROJECT_ROOT_MARKER).exists():
        click.echo(
            click.style(f"Error: {PROJECT_ROOT_MARKER} not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


def _find_process_on_port(port: int) -> list[int]:
    """Find PIDs listening on a port."""
    result = subprocess.run(
        ["lsof", "-ti", f":{port}"],
        capture_output=True, text=True,
    )
    pids = result.stdout.strip().split("\n")
    return [int(p) for p in pids if p.strip()]


def _server_port(port: int | None) -> int:
    if port is not None:
        return port
    from botbuilder.backend.core.config import get_app_config
    return get_app_config().application.server.port


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice(["server", "config", "info", "migrate", "webhooks"]),
    default="info",
    help="Service or command to run.",
)
@click.option(
    "--action", "-a",
    type=click.Choice(["start", "stop", "status"]),
    default="start",
    help="Lifecycle action for the server.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output (INFO level logging).")
@click.option("--debug", "-d", is_flag=True, help="Enable debug output (DEBUG level logging).")
@click.option("--host", default=None, help="Server host.")
@click.option("--port", default=None, type=int, help="Server port.")
@click.option("--reload", is_flag=True, help="Enable auto-reload (server only).")
@click.option(
    "--migrate-action",
    type=click.Choice(list(ALEMBIC_COMMANDS)),
    default="current",
    help="Migration action.",
)
@click.option("--revision", default="head", help="Target revision for upgrade/downgrade.")
def main(
    service: str,
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    migrate_action: str,
    revision: str,
) -> None:
    """
    Menu Bot Builder CLI.

    \b
    Examples:
        python cli.py --service server --verbose
        python cli.py --service server --action status
        python cli.py --service config
        python cli.py --service migrate --migrate-action upgrade
        python cli.py --service webhooks --verbose
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")

    structlog.contextvars.bind_contextvars(source="cli")

    logger = get_logger(__name__)

    logger.debug("CLI invoked", extra={"service": service, "action": action, "log_level": log_level})

    if service == "server":
        if action == "stop":
            stop_server(logger, _server_port(port))
        elif action == "status":
            server_status(_server_port(port))
        else:
            run_server(logger, host, port, reload)
    elif service == "config":
        show_config(logger)
    elif service == "info":
        show_info(logger)
    elif service == "migrate":
        run_migrations(logger, migrate_action, revision)
    elif service == "webhooks":
        register_webhooks(logger)


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start the FastAPI server."""
    from botbuilder.backend.core.config import get_app_config

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
        "botbuilder.backend.main:app",
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


def stop_server(logger, port: int) -> None:
    """Stop a running server by finding its process on the port."""
    pids = _find_process_on_port(port)
    if not pids:
        click.echo(f"No server running on port {port}.")
        return

    for pid in pids:
        os.kill(pid, signal.SIGINT)
        logger.info("Sent SIGINT", extra={"pid": pid, "port": port})

    click.echo(f"Server on port {port} stopped (PID: {', '.join(str(p) for p in pids)}).")


def server_status(port: int) -> None:
    """Check if the server is running on a port."""
    pids = _find_process_on_port(port)
    if pids:
        click.echo(f"Server is running on port {port} (PID: {', '.join(str(p) for p in pids)}).")
    else:
        click.echo(f"Server is not running on port {port}.")


def show_config(logger) -> None:
    """Display loaded configuration. Secrets from config/.env are not shown."""
    from botbuilder.backend.core.config import get_app_config

    try:
        app_config = get_app_config()
    except Exception as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        click.echo(click.style(f"Error loading configuration: {e}", fg="red"))
        sys.exit(1)

    sections = {
        "Application Settings": app_config.application,
        "Database Settings": app_config.database,
        "Logging Settings": app_config.logging,
        "Feature Flags": app_config.features,
    }

    click.echo("Application Configuration:")
    for title, schema in sections.items():
        click.echo(f"\n{title} (from YAML):")
        click.echo("-" * 40)
        _echo_mapping(schema.model_dump(), indent=2)

    logger.info("Configuration displayed successfully")


def _echo_mapping(values: dict, indent: int) -> None:
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_mapping(value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def run_migrations(logger, migrate_action: str, revision: str) -> None:
    """Run database migrations using Alembic."""
    logger.info(
        "Running migrations",
        extra={"action": migrate_action, "revision": revision},
    )

    alembic_ini = PROJECT_ROOT / "botbuilder" / "backend" / "migrations" / "alembic.ini"

    if not alembic_ini.exists():
        click.echo(
            click.style("Error: botbuilder/backend/migrations/alembic.ini not found.", fg="red"),
            err=True,
        )
        sys.exit(1)

    alembic_args, banner = ALEMBIC_COMMANDS[migrate_action]
    cmd = [sys.executable, "-m", "alembic", "-c", str(alembic_ini), *alembic_args]
    if migrate_action in ("upgrade", "downgrade"):
        cmd.append(revision)
    click.echo(banner.format(revision=revision))
    click.echo()

    try:
        result = subprocess.run(cmd, cwd=PROJECT_ROOT)
        if result.returncode != 0:
            logger.error("Migration failed", extra={"exit_code": result.returncode})
            sys.exit(result.returncode)
        logger.info("Migration completed successfully")
    except FileNotFoundError:
        logger.error("alembic not found. Install with: pip install alembic")
        sys.exit(1)


def register_webhooks(logger) -> None:
    """Re-point every active bot's webhook at the configured public URL."""
    from botbuilder.backend.core.config import get_app_config

    click.echo(f"Registering webhooks at {get_app_config().application.public_base_url}\n")

    try:
        results = asyncio.run(_register_webhooks())
    except Exception as e:
        logger.error("Webhook registration failed", extra={"error": str(e)})
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if not results:
        click.echo("No active bots registered.")
        return

    for username, ok in results.items():
        status = click.style("✓ OK  ", fg="green") if ok else click.style("✗ FAIL", fg="red")
        click.echo(f"  {status}  @{username}")

    if not all(results.values()):
        sys.exit(1)


async def _register_webhooks() -> dict[str, bool]:
    from botbuilder.backend.core.database import dispose_engine, session_scope
    from botbuilder.backend.services.bot import BotService
    from botbuilder.telegram.transport import AiogramTransport

    try:
        async with session_scope() as session:
            return await BotService(session, AiogramTransport()).register_webhooks()
    finally:
        await dispose_engine()


def show_info(logger) -> None:
    """Display application information."""
    click.echo("Menu Bot Builder")
    click.echo("=" * 40)

    try:
        from botbuilder.backend.core.config import get_app_config
        app_config = get_app_config()
        click.echo(f"Name: {app_config.application.name}")
        click.echo(f"Version: {app_config.application.version}")
        click.echo(f"Description: {app_config.application.description}")
        click.echo(f"Public URL: {app_config.application.public_base_url}")
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
    click.echo("  server         FastAPI server (management API + Telegram webhooks)")
    click.echo("  config         Display configuration")
    click.echo("  migrate        Database migrations")
    click.echo("  webhooks       Re-register webhooks of all active bots")
    click.echo("  info           Show this information")
    click.echo()
    click.echo("Server actions (--action):")
    click.echo("  start          Start the server (default)")
    click.echo("  stop           Stop a running server")
    click.echo("  status         Check if running")
    click.echo()
    click.echo("Options:")
    click.echo("  --verbose, -v  Enable INFO level logging")
    click.echo("  --debug, -d    Enable DEBUG level logging")
    click.echo()


if __name__ == "__main__":
    main()
