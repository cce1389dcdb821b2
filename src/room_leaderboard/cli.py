"""Command-line interface for the room leaderboard."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from .config import EngineSettings
from .paths import get_data_dir

app = typer.Typer(help="Presence and pomodoro leaderboard for a shared timer room.")

logger = logging.getLogger(__name__)


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _settings(grace_minutes: float, gap_minutes: float) -> EngineSettings:
    return EngineSettings.from_minutes(grace_minutes=grace_minutes, gap_minutes=gap_minutes)


@app.command()
def build(
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        path_type=Path,
        help="Directory holding the raw logs and generated reports.",
    ),
    grace_minutes: float = typer.Option(
        5.0,
        "--grace-minutes",
        min=0.0,
        help="Minutes after a timer starts during which a join still earns count credit.",
    ),
    gap_minutes: float = typer.Option(
        30.0,
        "--gap-minutes",
        min=1.0,
        help="Longest gap between snapshots credited as presence before a join.",
    ),
    markdown: bool = typer.Option(
        True,
        "--markdown/--no-markdown",
        help="Also write a markdown leaderboard report.",
    ),
) -> None:
    """Recompute the leaderboard from the full logs and overwrite the reports."""
    from .engine import compute_from_dir
    from .reporting import write_outputs

    resolved = get_data_dir(data_dir)
    result = compute_from_dir(resolved, _settings(grace_minutes, gap_minutes))
    for path in write_outputs(resolved, result, markdown=markdown):
        typer.echo(f"Saved {path}")


@app.command()
def summary(
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        path_type=Path,
        help="Directory holding the raw logs and generated reports.",
    ),
    top: int = typer.Option(5, "--top", min=1, help="Number of users to list."),
    grace_minutes: float = typer.Option(5.0, "--grace-minutes", min=0.0),
    gap_minutes: float = typer.Option(30.0, "--gap-minutes", min=1.0),
) -> None:
    """Print who is in the room now and the top users by presence."""
    from .engine import compute_from_dir
    from .reporting import SummaryPrinter

    result = compute_from_dir(get_data_dir(data_dir), _settings(grace_minutes, gap_minutes))
    SummaryPrinter(result.leaderboard).print_summary(limit=top)


@app.command()
def ingest(
    payload_path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        path_type=Path,
        help="JSON file with one scrape (scrape_time, users, activities, timer).",
    ),
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        path_type=Path,
        help="Directory holding the raw logs and generated reports.",
    ),
) -> None:
    """Append one collector scrape to the raw logs, skipping known activities."""
    from .ingest import ScrapePayload, record_scrape

    try:
        payload = ScrapePayload.model_validate_json(payload_path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        logger.error("Invalid scrape payload %s: %s", payload_path, exc)
        raise typer.Exit(code=1) from exc

    outcome = record_scrape(get_data_dir(data_dir), payload)
    typer.echo(
        f"Recorded {outcome.users_present} present users and "
        f"{outcome.activities_added} of {outcome.activities_seen} activities."
    )


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(8766, "--port", min=1, max=65535, help="TCP port for the API."),
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        path_type=Path,
        help="Directory holding the raw logs and generated reports.",
    ),
    grace_minutes: float = typer.Option(5.0, "--grace-minutes", min=0.0),
    gap_minutes: float = typer.Option(30.0, "--gap-minutes", min=1.0),
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the leaderboard endpoint in your default browser.",
    ),
) -> None:
    """Serve the leaderboard API."""
    from .server_runner import run_server

    run_server(
        host=host,
        port=port,
        data_dir=data_dir,
        settings=_settings(grace_minutes, gap_minutes),
        open_browser=open_browser,
    )
