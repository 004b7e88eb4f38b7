"""CLI commands for Scribe.

Provides command-line interface using Typer:
- scribe serve: Run the blog server
- scribe init-db: Create the database tables

Usage:
    scribe --help
    scribe init-db
    scribe serve --port 8080
"""

import typer

from scribe.cli.db_cmd import app as db_app
from scribe.cli.serve import app as serve_app

# Main CLI application
app = typer.Typer(
    name="scribe",
    help="Scribe: a blog engine with an in-process page cache",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.add_typer(db_app, name="init-db")


@app.callback()
def callback() -> None:
    """Scribe: a blog engine with an in-process page cache."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
