"""CLI command for preparing the database.

Usage:
    scribe init-db
    DATABASE_URL=postgresql+asyncpg://... scribe init-db
"""

from __future__ import annotations

import asyncio

import typer

from scribe.config import settings
from scribe.persistence.db import Database

app = typer.Typer(help="Create the Scribe database tables")


async def _init(database: Database) -> None:
    try:
        await database.create_all()
    finally:
        await database.dispose()


@app.callback(invoke_without_command=True)
def init(
    database_url: str | None = typer.Option(
        None,
        "--database-url",
        help="Database URL (defaults to DATABASE_URL)",
    ),
) -> None:
    """Create any tables that do not exist yet. Existing data is kept."""
    config = settings
    if database_url:
        config = settings.model_copy(update={"database_url": database_url})
    database = Database.from_settings(config)

    typer.echo(f"Initializing database at {database.url}")
    asyncio.run(_init(database))
    typer.echo("Database ready")
