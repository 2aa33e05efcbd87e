"""watch command: audit passes on a fixed interval."""

from __future__ import annotations

import click
from rich.console import Console

from govaudit_cli.commands.run import make_source
from govaudit_core.pipeline import build_pipeline
from govaudit_core.scheduler import Scheduler

console = Console()


@click.command("watch")
@click.option(
    "--interval",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds between passes. Overrides config file.",
)
@click.pass_context
def watch_cmd(ctx, interval: float | None):
    """Poll for proposals and audit new ones until interrupted (Ctrl-C)."""
    from govaudit_cli.auth import require_model_key

    config = ctx.obj["config"]
    storage = ctx.obj["store"]
    require_model_key(config)

    pipeline = build_pipeline(config, storage)
    source = make_source(config)
    topic = config["proposal_topic"]
    limit = config["proposal_limit"]

    def job(cancelled):
        proposals = source.fetch(topic, limit)
        return pipeline.run(proposals, cancelled=cancelled)

    if interval is None:
        interval = config["poll_interval_seconds"]
    scheduler = Scheduler(job, interval)
    console.print(f"[cyan]Watching {topic} every {interval}s. Ctrl-C to stop.[/cyan]")
    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        scheduler.stop()
        console.print("[yellow]Stopped.[/yellow]")
