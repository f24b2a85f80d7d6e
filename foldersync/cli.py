"""CLI entry point for foldersync."""

from __future__ import annotations

import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Annotated

import typer
from rich import print as rprint
from rich.table import Table

from foldersync.config import FolderSyncConfig, load_config
from foldersync.elevation import AdminPrivilegeHandler
from foldersync.interval import INTERVAL_HELP, IntervalParseError, format_interval, parse_interval
from foldersync.logging_config import LogConfigurationProvider, setup_logging, sync_log_name
from foldersync.models import ConfigError, SyncOptions, SyncRequest, SyncStatistics
from foldersync.prompts import InputSource, resolve_arguments, to_flags
from foldersync.scheduler import Scheduler
from foldersync.synchronizer import Synchronizer

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="foldersync",
    help="Mirror a source folder onto a destination, once or on a schedule.",
    add_completion=False,
)

# Global state
_config: FolderSyncConfig | None = None


def _get_config() -> FolderSyncConfig:
    if _config is None:
        return load_config()
    return _config


def _get_synchronizer(cfg: FolderSyncConfig) -> Synchronizer:
    return Synchronizer.from_config(cfg.sync)


def _get_scheduler(synchronizer: Synchronizer, cfg: FolderSyncConfig) -> Scheduler:
    return Scheduler(synchronizer, cfg.scheduler)


def _get_admin_handler() -> AdminPrivilegeHandler:
    return AdminPrivilegeHandler()


def _get_log_provider(cfg: FolderSyncConfig) -> LogConfigurationProvider:
    return LogConfigurationProvider(cfg.logging)


# ---------------------------------------------------------------------------
# Validation and log placement
# ---------------------------------------------------------------------------


def parse_options(
    source: str | None,
    destination: str | None,
    interval: str | None = None,
    admin: bool = False,
    log_file: str | None = None,
) -> SyncOptions | ConfigError:
    """Validate raw option values. Errors are returned, not raised."""
    if not source or not source.strip():
        return ConfigError("Source directory is required")
    if not destination or not destination.strip():
        return ConfigError("Destination directory is required")

    parsed = parse_interval(interval)
    if isinstance(parsed, IntervalParseError):
        return ConfigError(parsed.message, value=parsed.text)

    return SyncOptions(
        request=SyncRequest(source=source.strip(), destination=destination.strip()),
        interval=parsed,
        admin=admin,
        log_file=log_file.strip() if log_file and log_file.strip() else None,
    )


def resolve_log_path(
    log_file: str | None,
    source: str,
    destination: str,
    provider: LogConfigurationProvider,
) -> Path:
    """Pick the log file for this run.

    A path ending in a separator is treated as a directory and gets a
    generated file name; any other path is used as given; no path means
    the provider's default.
    """
    if log_file:
        if log_file.endswith(("/", "\\")):
            return Path(log_file) / sync_log_name(source, destination)
        return Path(log_file)
    return provider.default_log_path(source, destination)


# ---------------------------------------------------------------------------
# Output and shutdown helpers
# ---------------------------------------------------------------------------


def _display_summary(stats: SyncStatistics) -> None:
    table = Table(title="Synchronization Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Files changed/added", str(stats.changed_files))
    table.add_row("Folders added", str(stats.changed_folders))
    table.add_row("Files moved/renamed", str(stats.files_moved))
    table.add_row("Folders moved/renamed", str(stats.folders_moved))
    table.add_row("Files in moved folders", str(stats.files_in_moved_folders))
    table.add_row("Files deleted", str(stats.deleted_files))
    table.add_row("Folders deleted", str(stats.deleted_folders))
    rprint(table)


def _install_signal_handlers(shutdown: threading.Event) -> dict[int, object]:
    """Route SIGINT/SIGTERM to *shutdown*. Returns the handlers replaced."""

    def _signal_handler(sig, frame):
        logger.info("Interrupt received. Stopping scheduler...")
        shutdown.set()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _signal_handler)
    return previous


def _restore_signal_handlers(previous: dict[int, object]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def _wait_for_shutdown(shutdown: threading.Event) -> None:
    # Short waits keep the main thread responsive to signals on every platform.
    while not shutdown.wait(1.0):
        pass


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


@app.command()
def sync(
    source: Annotated[
        str | None, typer.Option("--source", "-s", help="Source directory path")
    ] = None,
    destination: Annotated[
        str | None, typer.Option("--destination", "-d", help="Destination directory path")
    ] = None,
    interval: Annotated[
        str | None, typer.Option("--interval", "-i", help=f"Sync interval. {INTERVAL_HELP}")
    ] = None,
    admin: Annotated[
        bool, typer.Option("--admin", help="Run with administrator privileges")
    ] = False,
    log_file: Annotated[
        str | None, typer.Option("--log-file", "-l", help="Custom log file path")
    ] = None,
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to foldersync.yaml")
    ] = None,
) -> None:
    """Synchronize SOURCE onto DESTINATION, once or every INTERVAL."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    cfg = _get_config()
    setup_logging(cfg.logging)

    options = parse_options(source, destination, interval, admin, log_file)
    if isinstance(options, ConfigError):
        rprint(f"[red]Error:[/red] {options.message}")
        raise typer.Exit(1)
    request = options.request

    log_provider = _get_log_provider(cfg)
    log_path = resolve_log_path(options.log_file, request.source, request.destination, log_provider)
    log_provider.set_log_file(log_path)
    if options.log_file:
        logger.info("Using custom log file: %s", log_path)

    try:
        admin_handler = _get_admin_handler()
        if options.admin and not admin_handler.is_elevated():
            flags = to_flags(
                request.source,
                request.destination,
                interval=interval,
                log_file=options.log_file,
                admin=True,
            )
            if config:
                flags += ["--config", config]
            admin_handler.restart_elevated(flags)
            raise typer.Exit(0)

        synchronizer = _get_synchronizer(cfg)

        if options.interval is None:
            try:
                stats = synchronizer.synchronize(request)
            except Exception as e:
                logger.error("Error: %s", e)
                raise
            _display_summary(stats)
            return

        shutdown = threading.Event()
        scheduler = _get_scheduler(synchronizer, cfg)
        previous = _install_signal_handlers(shutdown)
        try:
            scheduler.start(request, options.interval, cancel=shutdown)
            rprint(
                f"[bold]Syncing[/bold] {request.source} -> {request.destination} "
                f"every {format_interval(options.interval)}. Press Ctrl+C to stop the scheduler."
            )
            _wait_for_shutdown(shutdown)
        finally:
            _restore_signal_handlers(previous)
            shutdown.set()
            scheduler.stop()
    finally:
        log_provider.close()


def _once_token() -> str:
    try:
        return load_config().prompts.once_token
    except ValueError:
        return "once"


def main(argv: list[str] | None = None, input_source: InputSource | None = None) -> None:
    """Console entry point; prompts for arguments when none are given."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        rprint("No arguments provided. Please enter the required parameters:")
        args = resolve_arguments(args, input_source, once_token=_once_token())
    app(args=args, prog_name="foldersync")


if __name__ == "__main__":
    main()
