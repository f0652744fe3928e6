"""eventseed all / users / event-types / events — run seeding phases.

Interactive mode (a TTY and no ``--quiet``) prompts for any phase bound not
given on the command line and draws one progress bar per phase. Quiet mode
takes the settings defaults for anything missing and logs instead.

Exit codes: 0 every phase hit its target, 1 a phase failed, 2 the
configuration or the database connection is unusable, 130 cancelled.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from dataclasses import dataclass
from typing import Optional

import asyncpg
import typer
from rich.console import Console
from rich.table import Table

from eventseed.ontology.types import Phase
from eventseed.services.database import Database
from eventseed.services.errors import ConfigurationError
from eventseed.services.metrics import create_metrics_sink
from eventseed.services.orchestrator import SeedOrchestrator
from eventseed.services.reports import PhaseStatus, RunReport
from eventseed.settings import SeedConfig, get_settings

log = logging.getLogger(__name__)

EXIT_CONFIG = 2

ALL_PHASES = (Phase.USERS, Phase.EVENT_TYPES, Phase.EVENTS)

# field → (prompt, default) for interactive mode
PROMPTS: dict[str, tuple[str, int]] = {
    "min_users": ("Minimum number of users to generate", 10_000),
    "max_users": ("Maximum number of users to generate", 100_000),
    "min_event_types": ("Minimum number of event types to generate", 50),
    "max_event_types": ("Maximum number of event types to generate", 200),
    "target_events": ("Total number of events to generate", 10_000_000),
}


@dataclass
class CliOptions:
    database_url: str | None = None
    quiet: bool = False
    seed: int | None = None
    pool_min: int | None = None
    pool_max: int | None = None
    workers: int | None = None
    loaders: int | None = None
    pipeline_capacity: int | None = None

    @property
    def interactive(self) -> bool:
        return not self.quiet and sys.stdin.isatty()

    def overrides(self) -> dict:
        return {
            "database_url": self.database_url,
            "quiet": self.quiet,
            "random_seed": self.seed,
            "db_pool_min": self.pool_min,
            "db_pool_max": self.pool_max,
            "generation_workers": self.workers,
            "loader_count": self.loaders,
            "pipeline_capacity": self.pipeline_capacity,
        }


# ── Shared helpers ────────────────────────────────────────────────────────────


def _options(ctx: typer.Context) -> CliOptions:
    return ctx.obj if isinstance(ctx.obj, CliOptions) else CliOptions()


def _prompt_missing(opts: CliOptions, values: dict, *, batch_size: bool = False) -> dict:
    """Fill unset phase bounds interactively. A no-op outside interactive mode."""
    if not opts.interactive:
        return values
    for name, value in values.items():
        if value is None and name in PROMPTS:
            text, default = PROMPTS[name]
            values[name] = typer.prompt(text, default=default, type=int)
    if batch_size and values.get("event_batch_size") is None:
        if typer.confirm("Use custom batch size for events?", default=False):
            values["event_batch_size"] = typer.prompt("Event batch size", default=10_000, type=int)
    return values


def _configure_logging(quiet: bool, level_name: str) -> None:
    if level_name:
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            raise ConfigurationError(f"Unknown log level: {level_name}")
    else:
        level = logging.INFO if quiet else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    )


def _print_report(report: RunReport, quiet: bool, console: Console) -> None:
    if quiet:
        for r in report.phases:
            log.info(
                "%s: %s, %d/%d committed in %.2fs",
                r.phase.label, r.status.value, r.committed, r.target, r.elapsed,
            )
        if report.succeeded:
            log.info("Seeding completed successfully")
        else:
            log.error("Seeding finished in state %s", report.state.value)
        return

    table = Table(title="Seeding report")
    table.add_column("Phase", style="bold")
    table.add_column("Target", justify="right")
    table.add_column("Committed", justify="right")
    table.add_column("Status")
    table.add_column("Rows/s", justify="right")
    table.add_column("Error", style="red")
    colours = {
        PhaseStatus.COMPLETE: "green",
        PhaseStatus.FAILED: "red",
        PhaseStatus.CANCELLED: "yellow",
    }
    for r in report.phases:
        colour = colours[r.status]
        table.add_row(
            r.phase.label,
            f"{r.target:,}",
            f"{r.committed:,}",
            f"[{colour}]{r.status.value}[/{colour}]",
            f"{r.rate:,.0f}",
            r.error or "",
        )
    console.print(table)
    if report.succeeded:
        console.print("[green bold]Seeding completed successfully[/green bold]")
    else:
        console.print(f"[red bold]Seeding finished in state {report.state.value}[/red bold]")


def _install_signal_handlers(orchestrator: SeedOrchestrator) -> dict:
    """Route SIGINT/SIGTERM to orchestrator cancellation. Returns previous handlers."""
    loop = asyncio.get_running_loop()

    def _shutdown(sig, _frame):
        log.warning("Received %s, stopping after in-flight batches...", signal.Signals(sig).name)
        loop.call_soon_threadsafe(orchestrator.cancel, f"received {signal.Signals(sig).name}")

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _shutdown)
    return previous


async def _seed(config: SeedConfig, phases: list[Phase]) -> int:
    console = Console(stderr=True)
    db = Database.from_config(config)
    try:
        await db.connect()
    except ConfigurationError as e:
        console.print(f"[red bold]Database connection failed:[/red bold] {e}")
        return EXIT_CONFIG
    log.info("Connected to database")

    sink = create_metrics_sink(config.quiet, console)
    orchestrator = SeedOrchestrator(db, config, sink)
    previous = _install_signal_handlers(orchestrator)
    try:
        report = await orchestrator.run(phases)
    except ConfigurationError as e:
        console.print(f"[red bold]Configuration error:[/red bold] {e}")
        return EXIT_CONFIG
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
        # Loaders handle their own storage errors; these come from the preflight reads.
        console.print(f"[red bold]Database error before seeding:[/red bold] {type(e).__name__}: {e}")
        return EXIT_CONFIG
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        sink.close()
        await db.close()

    _print_report(report, config.quiet, console)
    return report.exit_code


def execute(opts: CliOptions, phases: list[Phase], **phase_options) -> None:
    """Resolve configuration, run the phases and exit with the report's code."""
    settings = get_settings()
    try:
        config = SeedConfig.resolve(settings, **opts.overrides(), **phase_options)
        _configure_logging(config.quiet, settings.log_level)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_CONFIG)

    log.info("Starting seeding: %s", ", ".join(p.label for p in phases))
    raise typer.Exit(asyncio.run(_seed(config, phases)))


# ── Commands ──────────────────────────────────────────────────────────────────


def register_seed_commands(app: typer.Typer) -> None:
    @app.command("all")
    def seed_all(
        ctx: typer.Context,
        min_users: Optional[int] = typer.Option(None, "--min-users", help="Minimum users to generate"),
        max_users: Optional[int] = typer.Option(None, "--max-users", help="Maximum users to generate"),
        min_event_types: Optional[int] = typer.Option(None, "--min-event-types", "--min-types"),
        max_event_types: Optional[int] = typer.Option(None, "--max-event-types", "--max-types"),
        target_events: Optional[int] = typer.Option(None, "--target-events", help="Events to generate"),
        event_batch_size: Optional[int] = typer.Option(None, "--event-batch-size", "--batch-size"),
    ):
        """Seed users, event types and events, in that order."""
        opts = _options(ctx)
        values = _prompt_missing(
            opts,
            {
                "min_users": min_users,
                "max_users": max_users,
                "min_event_types": min_event_types,
                "max_event_types": max_event_types,
                "target_events": target_events,
                "event_batch_size": event_batch_size,
            },
            batch_size=True,
        )
        execute(opts, list(ALL_PHASES), **values)

    @app.command("users")
    def seed_users(
        ctx: typer.Context,
        min_users: Optional[int] = typer.Option(None, "--min-users", help="Minimum users to generate"),
        max_users: Optional[int] = typer.Option(None, "--max-users", help="Maximum users to generate"),
    ):
        """Seed users only."""
        opts = _options(ctx)
        values = _prompt_missing(opts, {"min_users": min_users, "max_users": max_users})
        execute(opts, [Phase.USERS], **values)

    @app.command("event-types")
    def seed_event_types(
        ctx: typer.Context,
        min_event_types: Optional[int] = typer.Option(None, "--min-event-types", "--min-types"),
        max_event_types: Optional[int] = typer.Option(None, "--max-event-types", "--max-types"),
    ):
        """Seed event types only."""
        opts = _options(ctx)
        values = _prompt_missing(
            opts, {"min_event_types": min_event_types, "max_event_types": max_event_types}
        )
        execute(opts, [Phase.EVENT_TYPES], **values)

    @app.command("events")
    def seed_events(
        ctx: typer.Context,
        target_events: Optional[int] = typer.Option(None, "--target-events", help="Events to generate"),
        event_batch_size: Optional[int] = typer.Option(None, "--event-batch-size", "--batch-size"),
    ):
        """Seed events for the users and event types already in the database."""
        opts = _options(ctx)
        values = _prompt_missing(
            opts,
            {"target_events": target_events, "event_batch_size": event_batch_size},
            batch_size=True,
        )
        execute(opts, [Phase.EVENTS], **values)
