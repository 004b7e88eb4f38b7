"""CLI command for running the blog server.

Usage:
    scribe serve
    scribe serve --port 8080 --host 0.0.0.0
    scribe serve --reload --log-level debug

The page cache lives in process memory, so every worker keeps its own
copy and only sees invalidations for changes made through it. Run a
single worker unless stale pages on other workers are acceptable.
"""

from __future__ import annotations

import typer

from scribe.config import settings

app = typer.Typer(help="Run the Scribe blog server")


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(
        settings.host,
        "--host",
        "-h",
        help="Host to bind to",
    ),
    port: int = typer.Option(
        settings.port,
        "--port",
        "-p",
        help="Port to listen on",
    ),
    reload: bool = typer.Option(
        False,
        "--reload",
        "-r",
        help="Enable auto-reload for development",
    ),
    workers: int = typer.Option(
        1,
        "--workers",
        "-w",
        help="Number of worker processes",
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, error",
    ),
    access_log: bool = typer.Option(
        True,
        "--access-log/--no-access-log",
        help="Enable/disable access logging",
    ),
) -> None:
    """Run the Scribe blog server.

    Starts the uvicorn server with the FastAPI application.
    """
    import uvicorn

    workers_effective = workers if not reload else 1  # Reload requires single worker

    typer.echo("Starting Scribe server...")
    typer.echo(f"  Host: {host}")
    typer.echo(f"  Port: {port}")
    typer.echo(f"  Workers: {workers_effective}")
    typer.echo(f"  Log level: {log_level}")
    if reload:
        typer.echo("  Reload: enabled")
    if workers_effective > 1:
        typer.echo("  Warning: page caches are not shared between workers", err=True)
    typer.echo()
    typer.echo(f"Blog: http://{host}:{port}{settings.route_prefix or '/'}")
    typer.echo()

    uvicorn.run(
        app="scribe.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        workers=workers_effective,
        log_level=log_level.lower(),
        access_log=access_log,
    )
