"""run command: one audit pass over the latest proposals."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from govaudit_core.pipeline import PassSummary, build_pipeline
from govaudit_core.proposals import DashboardProposalSource

console = Console()

_STATUS_STYLE = {
    "written": "green",
    "audited": "cyan",
    "already_reported": "dim",
    "no_summary": "dim",
    "no_commit_range": "yellow",
    "capacity_rejected": "red",
    "rejected": "red",
    "failed": "red",
}
SEVERITY_STYLE = {"high": "red", "medium": "yellow", "low": "blue"}


def make_source(config: dict) -> DashboardProposalSource:
    return DashboardProposalSource(
        api_base=config.get("proposal_api_base", "https://ic-api.internetcomputer.org/api/v3"),
        timeout=config.get("http_timeout_seconds", 30),
    )


def print_summary(summary: PassSummary) -> None:
    if not summary.outcomes:
        console.print("[yellow]No proposals to process.[/yellow]")
        return
    table = Table(title="Audit pass", show_header=True, header_style="bold cyan")
    table.add_column("Proposal", style="bold", no_wrap=True)
    table.add_column("Title", max_width=40)
    table.add_column("Status")
    table.add_column("Issues", justify="right")
    table.add_column("Shard / error", max_width=40)
    for o in summary.outcomes:
        style = _STATUS_STYLE.get(o.status, "white")
        table.add_row(
            o.proposal_id,
            o.title[:40],
            f"[{style}]{o.status}[/{style}]",
            str(len(o.issues)) if o.commit_range else "—",
            o.error or o.shard or "",
        )
    console.print(table)


def print_shadow_issues(summary: PassSummary) -> None:
    """Print audit findings to the terminal for a run that persisted nothing."""
    for o in summary.outcomes:
        if o.status != "audited":
            continue
        console.print(f"\n[bold]Proposal {o.proposal_id}[/bold] — {o.title}")
        if not o.issues:
            console.print("  [green]No issues found.[/green]")
            continue
        for issue in o.issues:
            color = SEVERITY_STYLE.get(issue.severity, "white")
            console.print(
                f"  [bold cyan]{issue.file}[/bold cyan]  line [bold]{issue.line}[/bold]  "
                f"[{color}]{issue.severity.upper()}[/{color}]  {issue.issue}"
            )


@click.command("run")
@click.option("--shadow", "-s", is_flag=True, help="Dry-run mode: audit and print findings without storing reports.")
@click.option(
    "--limit",
    type=click.IntRange(min=0),
    default=None,
    help="Number of proposals to fetch. Overrides config file.",
)
@click.option("--topic", default=None, help="Proposal topic to fetch. Overrides config file.")
@click.pass_context
def run_cmd(ctx, shadow: bool, limit: int | None, topic: str | None):
    """Fetch the latest proposals and audit every one not yet reported.

    \b
    Required environment variables:
      OPENAI_API_KEY       Required when model: openai
      ANTHROPIC_API_KEY    Required when model: anthropic
      GITHUB_TOKEN         Optional; raises the GitHub API rate limit
    """
    from govaudit_cli.auth import require_model_key

    config = ctx.obj["config"]
    storage = ctx.obj["store"]
    require_model_key(config)

    pipeline = build_pipeline(config, storage, shadow=shadow)
    if limit is None:
        limit = config["proposal_limit"]
    proposals = make_source(config).fetch(topic or config["proposal_topic"], limit)
    summary = pipeline.run(proposals)

    print_summary(summary)
    if shadow:
        print_shadow_issues(summary)
