"""Typer CLI entrypoint for kitwatch."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from threading import Event
from typing import Callable, List, Optional

import typer
import yaml
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, KitwatchConfig
from .engine import DedupStore, StoreError
from .engine.reporter import BaseReporter, ConsoleReporter, JsonlReporter, SlackReporter
from .engine.results import RunSummary
from .feeds import ChainedFeed, DirectoryTraversalFeed, FileFeed, ManualFeed
from .infra import SQLiteManager
from .logging_conf import available_feed_logs, configure_logging, feed_logger, main_log_path, tail_log
from .orchestrator import Orchestrator, PipelineHooks, build_orchestrator
from .scheduler import APSchedulerAdapter
from .ui import ProgressReporter

app = typer.Typer(
    help="Hunt phishing kits: validate, deduplicate and download candidate archives.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(name="config", help="Show or initialise configuration.", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Inspect log files.", no_args_is_help=True)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    config: KitwatchConfig
    storage: SQLiteManager
    scheduler: APSchedulerAdapter
    orchestrator_factory: Callable[..., Orchestrator] = build_orchestrator

    def build_orchestrator(
        self, config: KitwatchConfig, reporters: list[BaseReporter]
    ) -> Orchestrator:
        return self.orchestrator_factory(config, storage=self.storage, reporters=reporters)

    def dedup_store(self) -> DedupStore:
        return DedupStore(self.storage, Path(self.config.database))


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    config = repository.load()
    return AppState(
        repository=repository,
        config=config,
        storage=SQLiteManager(),
        scheduler=APSchedulerAdapter(),
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _apply_overrides(
    config: KitwatchConfig,
    *,
    threads: Optional[int] = None,
    timeout: Optional[float] = None,
    download_to: Optional[Path] = None,
    no_download: bool = False,
    directory_traveling: bool = False,
    post_to_slack: bool = False,
) -> KitwatchConfig:
    updates: dict[str, object] = {}
    if threads is not None:
        updates["threads"] = threads
    if timeout is not None:
        updates["timeout"] = timeout
    if download_to is not None:
        updates["download_to"] = download_to.expanduser().resolve()
    if no_download:
        updates["auto_download"] = False
    if directory_traveling:
        updates["directory_traveling"] = True
    if post_to_slack:
        updates["slack"] = config.slack.model_copy(update={"enabled": True})
    return config.model_copy(update=updates) if updates else config


def _build_feed(urls: List[str], files: List[Path], config: KitwatchConfig):
    feeds = []
    if urls:
        feeds.append(ManualFeed(urls))
    feeds.extend(FileFeed(path) for path in files)
    if not feeds:
        return None
    feed = feeds[0] if len(feeds) == 1 else ChainedFeed(feeds)
    if config.directory_traveling:
        feed = DirectoryTraversalFeed(feed, config.valid_extensions)
    return feed


def _build_reporters(
    config: KitwatchConfig, *, quiet: bool, show_all: bool, jsonl: bool
) -> list[BaseReporter]:
    reporters: list[BaseReporter] = [
        ConsoleReporter(console, show_all=show_all, show_summary=not quiet)
    ]
    if jsonl:
        reporters.append(JsonlReporter(config.outputs_dir))
    if config.slack.active:
        reporters.append(SlackReporter(config.slack))
    elif config.slack.enabled:
        console.print("Slack posting requested but SLACK_WEBHOOK_URL is not set.", style="yellow")
    return reporters


def _print_quiet_summary(summary: RunSummary) -> None:
    console.print(
        f"Run finished: seen {summary.seen}, confirmed {summary.confirmed}, "
        f"downloaded {summary.downloaded}"
    )


app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.", is_flag=True),
) -> None:
    try:
        ctx.obj = build_state(verbose)
    except (ValidationError, ValueError) as exc:
        console.print(f"Invalid configuration: {exc}", style="red", markup=False)
        raise typer.Exit(code=1)


@app.command("run", help="Validate candidate URLs once and download confirmed kits.")
def run(
    ctx: typer.Context,
    urls: Optional[List[str]] = typer.Argument(None, help="Candidate URLs."),
    files: Optional[List[Path]] = typer.Option(
        None, "--file", "-f", help="File with one URL per line (repeatable)."
    ),
    threads: Optional[int] = typer.Option(None, "--threads", min=1, help="Worker pool size."),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.1, help="Per-request timeout (s)."),
    download_to: Optional[Path] = typer.Option(None, "--download-to", help="Download root."),
    no_download: bool = typer.Option(False, "--no-download", help="Only confirm, do not download.", is_flag=True),
    directory_traveling: bool = typer.Option(
        False, "--directory-traveling", help="Also probe archives named after parent directories.", is_flag=True
    ),
    post_to_slack: bool = typer.Option(False, "--post-to-slack", help="Post kits to Slack.", is_flag=True),
    jsonl: bool = typer.Option(False, "--jsonl", help="Write outcomes to a JSON-lines file.", is_flag=True),
    show_all: bool = typer.Option(False, "--all", help="Print every outcome, not only kits.", is_flag=True),
    quiet: bool = typer.Option(False, "--quiet", help="Print a one-line summary only.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    config = _apply_overrides(
        state.config,
        threads=threads,
        timeout=timeout,
        download_to=download_to,
        no_download=no_download,
        directory_traveling=directory_traveling,
        post_to_slack=post_to_slack,
    )
    feed = _build_feed(list(urls or []), list(files or []), config)
    if feed is None:
        console.print("No candidate URLs given; pass URLs or --file.", style="red")
        raise typer.Exit(code=1)

    reporters = _build_reporters(config, quiet=quiet, show_all=show_all, jsonl=jsonl)
    orchestrator = state.build_orchestrator(config, reporters)
    known_total = len(urls) if urls and not files and not config.directory_traveling else None
    progress = ProgressReporter(
        enabled=_progress_default_enabled() and not quiet, label=feed.name, console=console
    )
    progress.start(known_total)
    try:
        summary = orchestrator.run(feed, hooks=PipelineHooks(on_result=[progress.advance]))
    except StoreError as exc:
        console.print(f"Dedup store failure, run halted: {exc}", style="red", markup=False)
        raise typer.Exit(code=1)
    except FileNotFoundError as exc:
        console.print(str(exc), style="red", markup=False)
        raise typer.Exit(code=1)
    finally:
        progress.close()
        orchestrator.close()
    if quiet:
        _print_quiet_summary(summary)


def _wait_until_stopped(stop: Event) -> None:
    while not stop.is_set():
        stop.wait(0.5)


@app.command("watch", help="Re-poll URL list files on an interval until interrupted.")
def watch(
    ctx: typer.Context,
    files: List[Path] = typer.Option(..., "--file", "-f", help="File with one URL per line (repeatable)."),
    interval: float = typer.Option(300.0, "--interval", min=1.0, help="Seconds between polls."),
    threads: Optional[int] = typer.Option(None, "--threads", min=1, help="Worker pool size."),
    no_download: bool = typer.Option(False, "--no-download", help="Only confirm, do not download.", is_flag=True),
    directory_traveling: bool = typer.Option(
        False, "--directory-traveling", help="Also probe archives named after parent directories.", is_flag=True
    ),
    post_to_slack: bool = typer.Option(False, "--post-to-slack", help="Post kits to Slack.", is_flag=True),
    jsonl: bool = typer.Option(False, "--jsonl", help="Write outcomes to a JSON-lines file.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    config = _apply_overrides(
        state.config,
        threads=threads,
        no_download=no_download,
        directory_traveling=directory_traveling,
        post_to_slack=post_to_slack,
    )
    feed = _build_feed([], list(files), config)
    reporters = _build_reporters(config, quiet=True, show_all=False, jsonl=jsonl)
    orchestrator = state.build_orchestrator(config, reporters)
    stop = Event()
    log = feed_logger(feed.name)

    def poll(target) -> None:
        try:
            summary = orchestrator.run(target, cancel_event=stop)
        except StoreError as exc:
            log.error("store_failure", error=str(exc))
            stop.set()
            return
        except FileNotFoundError as exc:
            log.warning("feed_missing", error=str(exc))
            return
        log.info("poll_finished", **summary.to_dict())
        _print_quiet_summary(summary)

    state.scheduler.schedule_feed(feed, interval, poll)
    state.scheduler.start()
    console.print(f"Watching {feed.name} every {interval:g}s; press Ctrl+C to stop.", style="dim")
    try:
        _wait_until_stopped(stop)
    except KeyboardInterrupt:
        stop.set()
    finally:
        state.scheduler.shutdown(wait=True)
        orchestrator.close()


@app.command("history", help="List recently recorded candidate identifiers.")
def history(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", min=1, help="Number of records to show."),
) -> None:
    state = _get_state(ctx)
    try:
        store = state.dedup_store()
        records = store.history(limit)
        total = store.count()
    except StoreError as exc:
        console.print(f"Dedup store failure: {exc}", style="red", markup=False)
        raise typer.Exit(code=1)
    table = Table(title=f"Dedup history · {total} total", box=box.SIMPLE_HEAD)
    table.add_column("First seen", style="green", no_wrap=True)
    table.add_column("Source", style="magenta")
    table.add_column("Identifier", style="cyan", overflow="fold")
    for record in records:
        table.add_row(record.first_seen.isoformat(), record.source or "-", record.identifier)
    console.print(table)


@app.command("history-reset", help="Forget every recorded identifier.")
def history_reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    if not yes and not typer.confirm("Delete the whole dedup history?"):
        raise typer.Exit(code=0)
    try:
        state.dedup_store().reset()
    except StoreError as exc:
        console.print(f"Dedup store failure: {exc}", style="red", markup=False)
        raise typer.Exit(code=1)
    console.print("Dedup history cleared.", style="green")


@config_app.command("show", help="Print the effective configuration.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    payload = state.config.model_dump(mode="json", exclude={"slack": {"webhook_url"}})
    console.print(yaml.safe_dump(payload, sort_keys=False, allow_unicode=True), markup=False)


@config_app.command("init", help="Write the default configuration file.")
def config_init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    path = state.repository.locator.config_path()
    if path.exists() and not force:
        console.print(f"Configuration already exists: {path}", style="yellow", markup=False)
        raise typer.Exit(code=1)
    written = state.repository.save(KitwatchConfig())
    console.print(f"Configuration written to {written}", style="green", markup=False)


@log_app.command("show", help="Print the tail of the main or a feed log.")
def log_show(
    feed: Optional[str] = typer.Option(None, "--feed", help="Feed log name."),
    lines: int = typer.Option(50, "--lines", "-n", min=1, help="Number of lines."),
) -> None:
    if feed is None:
        path = main_log_path()
    else:
        matches = [p for p in available_feed_logs() if p.stem == feed]
        if not matches:
            console.print(f"No log for feed `{feed}`.", style="red", markup=False)
            raise typer.Exit(code=1)
        path = matches[0]
    for line in tail_log(path, lines):
        console.print(line.rstrip("\n"), markup=False, highlight=False)


__all__ = ["AppState", "app", "build_state"]
