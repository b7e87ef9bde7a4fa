"""CLI entry point for showtape."""

import logging
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from showtape.config.logging import setup_logging
from showtape.config.manager import ConfigManager
from showtape.config.schema import RecorderConfig
from showtape.pipeline import PipelineOrchestrator, RunReport
from showtape.storage import RetentionEnforcer, open_store
from showtape.utils.errors import ConfigError, PipelineError, ShowtapeError
from showtape.utils.naming import episode_key_pattern, normalize
from showtape.utils.retry import RetryExecutor

app = typer.Typer(
    name="showtape",
    help="Record live radio streams into published episodes",
    no_args_is_help=True,
)
console = Console()

CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Config file (default: user config dir)")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"
    ),
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs to file"
    ),
) -> None:
    """showtape - record, publish and prune radio show episodes."""
    setup_logging(verbose=verbose, log_file=log_file)
    ctx.obj = {"verbose": verbose}


def _load_config(
    ctx: typer.Context, config_file: Path | None, overrides: dict[str, Any]
) -> RecorderConfig:
    config = ConfigManager(config_file).load_config(overrides)
    if not (ctx.obj or {}).get("verbose"):
        logging.getLogger().setLevel(config.log_level)
    return config


def _print_report(report: RunReport) -> None:
    table = Table(title="[bold]Recording complete[/bold]", show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Series", report.series_name)
    table.add_row("Episode", report.episode.file_name)
    table.add_row("Fragments", str(report.fragment_count))
    if report.stored:
        table.add_row("Stored", f"{report.stored.container}/{report.stored.key}")
        table.add_row("Size", f"{report.stored.size_bytes} bytes")
    table.add_row("Removed", str(len(report.deleted)))
    if report.duration_seconds is not None:
        table.add_row("Run time", f"{report.duration_seconds:.1f}s")

    console.print(table)
    if report.empty_capture:
        console.print("[yellow]⚠[/yellow] Nothing was captured: the episode is empty")


@app.command("version")
def show_version() -> None:
    """Show version information."""
    from showtape import __version__

    console.print(f"[bold cyan]showtape[/bold cyan] v{__version__}")


@app.command("record")
def record_command(
    ctx: typer.Context,
    config_file: Path | None = CONFIG_OPTION,
    series: str | None = typer.Option(None, "--series", "-s", help="Series name"),
    source: str | None = typer.Option(None, "--source", help="Stream URL"),
    runtime: int | None = typer.Option(None, "--runtime", "-r", help="Runtime in seconds"),
    media_type: str | None = typer.Option(None, "--media-type", help="File extension, e.g. mp3"),
    keep: int | None = typer.Option(None, "--keep", "-k", help="Episodes to keep after upload"),
    container: str | None = typer.Option(None, "--container", help="Storage container"),
    webhook: str | None = typer.Option(None, "--webhook", help="Webhook URL"),
    no_start_notify: bool = typer.Option(
        False, "--no-start-notify", help="Only send the finish notification"
    ),
    keep_workdir: bool = typer.Option(
        False, "--keep-workdir", help="Keep captured fragments after upload"
    ),
) -> None:
    """Record one episode, publish it and apply retention.

    Examples:
        showtape record

        showtape record --series "Morning Show" --runtime 7200 --keep 5
    """
    overrides: dict[str, Any] = {
        "series_name": series,
        "source_url": source,
        "runtime_seconds": runtime,
        "media_type": media_type,
        "retention_count": keep,
        "container": container,
        "webhook_url": webhook,
    }
    if no_start_notify:
        overrides["notify_start"] = False
    if keep_workdir:
        overrides["keep_workdir"] = True

    try:
        config = _load_config(ctx, config_file, overrides)
        with PipelineOrchestrator.from_config(config) as orchestrator:
            report = orchestrator.run()
        _print_report(report)

    except ConfigError as e:
        console.print(f"[red]✗[/red] {e}")
        sys.exit(1)
    except PipelineError as e:
        console.print(f"[red]✗[/red] Recording failed during {e.stage}: {e.cause}")
        sys.exit(1)
    except ShowtapeError as e:
        console.print(f"[red]✗[/red] Error: {e}")
        sys.exit(1)


@app.command("prune")
def prune_command(
    ctx: typer.Context,
    config_file: Path | None = CONFIG_OPTION,
    keep: int | None = typer.Option(None, "--keep", "-k", help="Episodes to keep"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only list what would be deleted"),
) -> None:
    """Apply the retention policy without recording.

    Examples:
        showtape prune --keep 5 --dry-run
    """
    try:
        config = _load_config(ctx, config_file, {"retention_count": keep})
        credential = config.auth.resolve()
        store = open_store(config.storage.root, config.account, credential)
        enforcer = RetentionEnforcer(store, RetryExecutor(config.retry))
        prefix = f"{normalize(config.series_name)}_"
        pattern = episode_key_pattern(config.series_name)

        if dry_run:
            keys = enforcer.plan(
                config.container, config.retention_count, prefix=prefix, pattern=pattern
            )
            verb = "Would remove"
        else:
            keys = enforcer.enforce(
                config.container, config.retention_count, prefix=prefix, pattern=pattern
            )
            verb = "Removed"

        if not keys:
            console.print(
                f"[green]✓[/green] Nothing to remove (keeping {config.retention_count})"
            )
            return

        for key in keys:
            console.print(f"  {verb.lower()}: {config.container}/{key}")
        console.print(f"\n[green]✓[/green] {verb} {len(keys)} episode(s)")

    except ConfigError as e:
        console.print(f"[red]✗[/red] {e}")
        sys.exit(1)
    except ShowtapeError as e:
        console.print(f"[red]✗[/red] Error: {e}")
        sys.exit(1)


@app.command("config")
def config_command(
    action: str = typer.Argument(..., help="Action: init or show"),
    config_file: Path | None = CONFIG_OPTION,
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file (init)"),
) -> None:
    """Manage showtape configuration.

    Actions:
        init: Write a commented default config file
        show: Display the effective configuration

    Examples:
        showtape config init

        showtape config show
    """
    try:
        manager = ConfigManager(config_file)

        if action == "init":
            path = manager.init_config(force=force)
            console.print(f"[green]✓[/green] Wrote default config to {path}")
            console.print("[dim]  Edit it before running 'showtape record'[/dim]")

        elif action == "show":
            config = manager.load_config()

            console.print("\n[bold]showtape Configuration[/bold]\n")

            table = Table(show_header=False, box=None)
            table.add_column("Key", style="cyan")
            table.add_column("Value", style="white")

            table.add_row("Config file", str(manager.config_file))
            table.add_row("", "")
            table.add_row("Series", config.series_name)
            table.add_row("Source", str(config.source_url))
            table.add_row("Runtime", f"{config.runtime_seconds}s")
            table.add_row("Media type", config.media_type)
            table.add_row("Account / container", f"{config.account} / {config.container}")
            table.add_row("Storage root", str(config.storage.root))
            table.add_row("Auth", config.auth.type)
            table.add_row("Retention", str(config.retention_count))
            table.add_row("Webhook", str(config.webhook_url))
            table.add_row("Start notification", "✓" if config.notify_start else "✗")
            table.add_row(
                "Retry",
                f"{config.retry.max_retries}x, {config.retry.initial_delay_seconds:g}s "
                f"+{config.retry.backoff_increment_seconds:g}s",
            )
            table.add_row("Log level", config.log_level)

            console.print(table)

        else:
            console.print(f"[red]✗[/red] Unknown action: {action}")
            console.print("Available actions: init, show")
            sys.exit(1)

    except ConfigError as e:
        console.print(f"[red]✗[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    app()
