"""stats command: aggregate issue patterns across stored reports."""

from __future__ import annotations

from collections import Counter

import click
from rich.console import Console
from rich.table import Table

from govaudit_cli.commands.history import load_reports, require_store
from govaudit_cli.commands.run import SEVERITY_STYLE

console = Console()


@click.command("stats")
@click.option("--top", default=10, show_default=True, help="Number of top entries to show per category.")
@click.pass_context
def stats_cmd(ctx, top: int):
    """Show severity distribution and the most flagged files across all reports."""
    reports = load_reports(require_store(ctx))
    if not reports:
        console.print("[yellow]No reports found.[/yellow]")
        return

    severity_counter: Counter[str] = Counter()
    file_counter: Counter[str] = Counter()
    repo_counter: Counter[str] = Counter()

    for _, report in reports:
        repo_counter[report.get("repository", "")] += 1
        for issue in report.get("audit", {}).get("issues", []):
            severity_counter[issue.get("severity", "low")] += 1
            file_counter[issue.get("file", "")] += 1

    total_reports = len(reports)
    total_issues = sum(severity_counter.values())

    console.print("\n[bold]Audit stats[/bold]")
    console.print(f"  Total reports:  {total_reports}")
    console.print(f"  Total issues:   {total_issues}")
    console.print(f"  Avg per report: {total_issues / total_reports:.1f}")

    if severity_counter:
        sev_table = Table(title="Severity Breakdown", show_header=True)
        sev_table.add_column("Severity", style="bold")
        sev_table.add_column("Count", justify="right")
        sev_table.add_column("% of total", justify="right")
        for sev in ("high", "medium", "low"):
            count = severity_counter.get(sev, 0)
            pct = f"{count / total_issues * 100:.1f}%" if total_issues else "0%"
            style = SEVERITY_STYLE[sev]
            sev_table.add_row(f"[{style}]{sev}[/{style}]", str(count), pct)
        console.print(sev_table)

    if file_counter:
        file_table = Table(title=f"Top {top} Most Flagged Files", show_header=True)
        file_table.add_column("File")
        file_table.add_column("Issues", justify="right")
        for file_path, count in file_counter.most_common(top):
            file_table.add_row(file_path, str(count))
        console.print(file_table)

    repo_table = Table(title="Reports per Repository", show_header=True)
    repo_table.add_column("Repository")
    repo_table.add_column("Reports", justify="right")
    for repo, count in repo_counter.most_common(top):
        repo_table.add_row(repo, str(count))
    console.print(repo_table)
