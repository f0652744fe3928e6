"""CLI entry point — Typer app for the seeding phases.

Global options (connection, pool, parallelism, seed, output mode) live on
the callback; each subcommand adds its phase bounds and runs the
orchestrator through ``eventseed.cli.seed.execute``.
"""

from __future__ import annotations

from typing import Optional

import typer

from eventseed.cli.seed import CliOptions, register_seed_commands

app = typer.Typer(
    name="eventseed",
    no_args_is_help=True,
    help="Seed PostgreSQL with synthetic users, event types and events.",
)


@app.callback()
def main(
    ctx: typer.Context,
    database_url: Optional[str] = typer.Option(
        None, "--database-url", "-d", help="PostgreSQL URL (default: SEED_DATABASE_URL / DATABASE_URL)"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Log progress instead of drawing progress bars"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducible data"),
    pool_min: Optional[int] = typer.Option(None, "--pool-min", help="Minimum pooled connections"),
    pool_max: Optional[int] = typer.Option(None, "--pool-max", help="Maximum pooled connections"),
    workers: Optional[int] = typer.Option(None, "--workers", help="Synthesis processes (0 = one per core)"),
    loaders: Optional[int] = typer.Option(None, "--loaders", help="Concurrent COPY loaders"),
    pipeline_capacity: Optional[int] = typer.Option(
        None, "--pipeline-capacity", help="Batches buffered between synthesis and loading"
    ),
):
    ctx.obj = CliOptions(
        database_url=database_url,
        quiet=quiet,
        seed=seed,
        pool_min=pool_min,
        pool_max=pool_max,
        workers=workers,
        loaders=loaders,
        pipeline_capacity=pipeline_capacity,
    )


register_seed_commands(app)
