"""history command: list stored reports."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.table import Table

from govaudit_store.codec import decode_payload

console = Console()
logger = logging.getLogger(__name__)


def load_reports(storage) -> list[tuple[str, dict]]:
    """Return (shard_id, decoded report) for every readable stored report."""
    reports = []
    for shard_id, item in storage.iter_reports():
        try:
            reports.append((shard_id, decode_payload(item.report)))
        except ValueError as e:
            logger.warning("Skipping unreadable report %s on %s: %s", item.proposal_id, shard_id, e)
    return reports


def _timestamp(report: dict) -> int:
    value = str(report.get("timestamp") or "")
    return int(value) if value.isdigit() else 0


def require_store(ctx):
    from govaudit_store.noop import NoOpStorage

    store = ctx.obj.get("store") if ctx.obj else None
    if store is None or isinstance(store, NoOpStorage):
        raise click.UsageError("No store configured. Set 'store: sqlite' in .govaudit.yml.")
    return store


@click.command("history")
@click.option("--limit", default=20, show_default=True, help="Maximum number of reports to show.")
@click.pass_context
def history_cmd(ctx, limit: int):
    """Show stored audit reports, newest proposal first."""
    reports = load_reports(require_store(ctx))
    if not reports:
        console.print("[yellow]No reports found.[/yellow]")
        return

    reports.sort(key=lambda r: _timestamp(r[1]), reverse=True)

    table = Table(title="Audit reports", show_header=True, header_style="bold cyan")
    table.add_column("Proposal", style="bold", no_wrap=True)
    table.add_column("Title", max_width=40)
    table.add_column("Repository", max_width=40)
    table.add_column("Commits", width=17)
    table.add_column("Issues", justify="right")
    table.add_column("Shard", no_wrap=True)

    for shard_id, report in reports[:limit]:
        issues = report.get("audit", {}).get("issues", [])
        table.add_row(
            f"#{report.get('id', '')}",
            (report.get("title") or "")[:40],
            report.get("repository", ""),
            f"{report.get('previousCommit', '')[:7]}…{report.get('latestCommit', '')[:7]}",
            str(len(issues)),
            shard_id,
        )

    console.print(table)
