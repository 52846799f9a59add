from __future__ import annotations

import logging
import os

import typer
from dotenv import load_dotenv

from jira_archive.config import load_config
from jira_archive.errors import ConfigError
from jira_archive.reporter import EXIT_ERROR
from jira_archive.runner import run_sync

app = typer.Typer(add_completion=False, help="Archive every Jira issue in a project that carries a label.")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging() -> None:
    level_name = (os.getenv("LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # httpx logs every request at INFO; keep that behind DEBUG.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


@app.command()
def archive(
    dry_run: bool = typer.Option(False, "--dry-run", help="List the matching issues without archiving them"),
) -> None:
    load_dotenv()
    _configure_logging()

    try:
        config = load_config()
    except ConfigError as exc:
        typer.echo(f"[Archiver] Failed to load configuration: {exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR)

    code = run_sync(config, dry_run=dry_run)
    raise typer.Exit(code=code)


if __name__ == "__main__":
    app()
