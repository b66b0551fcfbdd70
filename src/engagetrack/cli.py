"""Command-line interface for Engagement Tracker.

This module provides the CLI commands for running and managing
the role management service.
"""

import asyncio
import sys
from typing import NoReturn

import click

from engagetrack.core.config import get_settings
from engagetrack.core.logging import configure_logging, get_logger


@click.group()
@click.version_option(version="0.1.0", prog_name="engagetrack")
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Enable debug mode",
)
def cli(debug: bool) -> None:
    """Engagement Tracker - role management service.

    Settings are loaded from environment variables and the .env file.
    """


@cli.command()
@click.option(
    "--host",
    type=str,
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of worker processes (overrides config)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
def serve(host: str | None, port: int | None, workers: int | None, reload: bool) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()

    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers

    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info(
        "Starting Engagement Tracker server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    # Keyed locks are per process; more than one worker needs a row-locking database.
    if bind_workers > 1 and settings.database_url.startswith("sqlite"):
        logger.warning(
            "Multiple workers on SQLite: role changes only serialize within one process",
            workers=bind_workers,
        )

    uvicorn.run(
        "engagetrack.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command()
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def init_db(force: bool) -> None:
    """Initialize the database.

    Creates all database tables and bootstraps the SUPER_ADMIN from
    configuration. Use this only in development. In production, use
    migrations instead.
    """
    from engagetrack.infrastructure.persistence.database import (
        get_db_manager,
        init_database,
    )

    settings = get_settings()
    configure_logging(settings)

    if settings.is_production and not force:
        click.echo(
            "ERROR: Running in production mode. Use migrations instead of init_db.",
            err=True,
        )
        raise SystemExit(1)

    if not force:
        click.confirm(
            "This will create all database tables. Continue?",
            abort=True,
            default=False,
        )

    async def initialize():
        try:
            await init_database()
            click.echo("Database initialized successfully.")
        finally:
            await get_db_manager().disconnect()

    asyncio.run(initialize())


@cli.command()
@click.option(
    "--email",
    type=str,
    default=None,
    help="SUPER_ADMIN email (prompts if not provided)",
)
@click.option(
    "--name",
    type=str,
    default=None,
    help="Display name used if the user has to be created",
)
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt if a SUPER_ADMIN already exists",
)
def create_superadmin(email: str | None, name: str | None, force: bool) -> None:
    """Create a SUPER_ADMIN, or promote an existing user to one."""
    from engagetrack.domain.services.superadmin_service import (
        SuperadminBootstrapError,
        SuperadminService,
    )
    from engagetrack.infrastructure.persistence.database import get_db_manager

    settings = get_settings()
    configure_logging(settings)
    logger = get_logger(__name__)

    async def create() -> None:
        nonlocal email
        db = get_db_manager()

        try:
            async with db.session() as session:
                count = await SuperadminService.count_superadmins(session)
            if count and not force:
                if not click.confirm(
                    f"{count} SUPER_ADMIN user(s) already exist. Add another one?",
                    default=False,
                ):
                    click.echo("Cancelled.")
                    raise SystemExit(0)

            if email is None:
                email = click.prompt("SUPER_ADMIN email", type=str)

            try:
                async with db.session() as session:
                    user_id, created = await SuperadminService.ensure_superadmin(
                        email=email,
                        session=session,
                        full_name=name,
                    )
            except SuperadminBootstrapError as e:
                click.echo(f"Error: {e.message}", err=True)
                logger.error("SUPER_ADMIN creation failed", error=str(e))
                raise SystemExit(1)

            verb = "created" if created else "promoted"
            click.echo(
                f"\nSUPER_ADMIN {verb} successfully!\n"
                f"  User ID: {user_id}\n"
                f"  Email:   {email.strip().lower()}\n"
            )
            logger.info("SUPER_ADMIN bootstrapped via CLI", user_id=user_id, created=created)
        finally:
            await db.disconnect()

    asyncio.run(create())


@cli.command()
@click.option(
    "--user-id",
    type=str,
    required=True,
    help="User the token is issued for",
)
@click.option(
    "--minutes",
    type=int,
    default=None,
    help="Lifetime in minutes (defaults to the configured access token lifetime)",
)
def issue_token(user_id: str, minutes: int | None) -> None:
    """Issue an access token for a user, for local testing."""
    from datetime import timedelta

    from engagetrack.infrastructure.auth import jwt_service

    expires = timedelta(minutes=minutes) if minutes else None
    click.echo(jwt_service.create_access_token(user_id, expires_delta=expires))


@cli.command()
def info() -> None:
    """Display configuration and system information."""
    settings = get_settings()

    click.echo(f"""
Engagement Tracker v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}
  API Prefix:   {settings.api_prefix}

Server:
  Host:         {settings.host}
  Port:         {settings.port}
  Workers:      {settings.workers}

Database:
  URL:          {settings.database_url}
  Pool Size:    {settings.db_pool_size}
  Echo:         {settings.db_echo}

Role changes:
  Timeout:      {settings.role_change_timeout_seconds} seconds
  Email:        {settings.email_provider}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `engagetrack` command is run
    or when using `python -m engagetrack`.
    """
    cli()


def serve_main() -> NoReturn:
    """Entry point that defaults to the serve command."""
    sys.argv[0] = "engagetrack"
    if len(sys.argv) == 1:
        sys.argv.append("serve")
    main()


if __name__ == "__main__":
    main()
