"""CLI entry point for govaudit.

Commands:
  run       one audit pass over the latest proposals
  watch     audit passes on a fixed interval until interrupted
  history   list stored reports
  stats     aggregate issue patterns across stored reports
"""

from __future__ import annotations

import importlib.metadata

import click
from rich.console import Console

from govaudit_cli.commands.history import history_cmd
from govaudit_cli.commands.run import run_cmd
from govaudit_cli.commands.stats import stats_cmd
from govaudit_cli.commands.watch import watch_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured report storage from .govaudit.yml settings.

      store: sqlite → SQLiteReportStorage (store_path, shard_capacity, max_shards)
      store: noop   → NoOpStorage (nothing persisted, nothing deduplicated)
    """
    store_type = config.get("store", "sqlite")

    if store_type == "sqlite":
        from govaudit_store.sqlite import SQLiteReportStorage

        return SQLiteReportStorage(
            db_path=config.get("store_path", ".govaudit.db"),
            shard_capacity=config.get("shard_capacity", 500),
            max_shards=config.get("max_shards", 8),
        )

    if store_type == "noop":
        from govaudit_store.noop import NoOpStorage

        console.print("[yellow]No report storage configured: reports will not be persisted.[/yellow]")
        return NoOpStorage()

    raise click.UsageError(f"Unknown store {store_type!r}. Choose 'sqlite' or 'noop'.")


@click.group()
@click.version_option(
    version=importlib.metadata.version("govaudit"),
    prog_name="govaudit",
)
@click.option(
    "--config",
    "config_path",
    default=".govaudit.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="GOVAUDIT_CONFIG",
)
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v, -vv, -vvv).")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: int):
    """Audit the source changes referenced by governance proposals."""
    from govaudit_cli.auth import resolve_github_token
    from govaudit_cli.logging_setup import configure_logging
    from govaudit_core.config import load_config

    configure_logging(verbose)
    ctx.ensure_object(dict)

    config = load_config(config_path)

    token = resolve_github_token()
    if token:
        config["github_token"] = token

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(run_cmd)
main.add_command(watch_cmd)
main.add_command(history_cmd)
main.add_command(stats_cmd)
