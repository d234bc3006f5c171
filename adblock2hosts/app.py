"""Typer CLI entrypoint for adblock2hosts."""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

import typer
import yaml
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigLocator, ConfigRepository, GlobalConfig
from .engine import Accepted, RuleConverter
from .logging_conf import configure_logging
from .orchestrator import Orchestrator, RunResult
from .scheduler import APSchedulerAdapter

app = typer.Typer(
    help="Convert remote adblock lists into a deduplicated hosts file.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(
    name="config",
    help="Configuration helpers.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
app.add_typer(config_app, name="config")

console = Console()
err_console = Console(stderr=True)


@dataclass
class AppState:
    repository: ConfigRepository
    verbose: bool = False


def build_state(verbose: bool, config_path: Optional[Path]) -> AppState:
    locator = ConfigLocator(config_path=config_path.resolve() if config_path else None)
    repository = ConfigRepository(locator)
    configure_logging(verbose=verbose)
    return AppState(repository=repository, verbose=verbose)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False, config_path=None)
        ctx.obj = state
    return state


def _load_config(state: AppState) -> GlobalConfig:
    try:
        return state.repository.load_global_config()
    except (ValidationError, ValueError, yaml.YAMLError) as exc:
        raise typer.BadParameter(f"Invalid configuration {state.repository.path}: {exc}") from exc


def _apply_overrides(
    config: GlobalConfig,
    sources: Optional[List[str]],
    output: Optional[Path],
    timeout: Optional[float],
) -> GlobalConfig:
    payload = config.model_dump()
    if sources:
        payload["sources"] = sources
    if output is not None:
        payload["output_path"] = output
    if timeout is not None:
        payload["request_timeout"] = timeout
    try:
        return GlobalConfig.model_validate(payload)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _render_result_table(result: RunResult) -> Table:
    table = Table(title="Sources", box=box.SIMPLE_HEAD)
    table.add_column("Source", style="cyan", overflow="fold")
    table.add_column("Fetched", justify="right", style="green")
    table.add_column("Converted", justify="right", style="green")
    table.add_column("Status")
    for stat in result.stats:
        status = "ok" if stat.ok else f"[red]{stat.error}[/red]"
        table.add_row(stat.source, str(stat.fetched_count), str(stat.converted_count), status)
    return table


def _execute(config: GlobalConfig) -> RunResult:
    orchestrator = Orchestrator(config)
    try:
        return orchestrator.run_and_write()
    finally:
        orchestrator.close()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.", is_flag=True),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to a YAML or JSON configuration file."
    ),
) -> None:
    ctx.obj = build_state(verbose, config)


@app.command("run", help="Fetch all sources and write the hosts file.")
def run_command(
    ctx: typer.Context,
    source: Optional[List[str]] = typer.Option(
        None, "--source", "-s", help="Source URL; repeat to replace the configured list."
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Destination file."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-request timeout in seconds."),
    quiet: bool = typer.Option(False, "--quiet", help="Print a one-line summary only.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    config = _apply_overrides(_load_config(state), source, output, timeout)
    try:
        result = _execute(config)
    except OSError as exc:
        err_console.print(f"[red]Failed to write {config.output_path}: {exc}[/red]")
        raise typer.Exit(code=1) from exc

    if not result.has_data:
        console.print("No rules fetched; hosts file was not written.")
        if not quiet:
            console.print(_render_result_table(result))
        return
    if quiet:
        console.print(
            f"Wrote {result.unique_converted_count} entries "
            f"({result.unique_raw_count} unique raw rules) to {result.output_path}"
        )
        return
    console.print(_render_result_table(result))
    summary = Table(box=box.SIMPLE_HEAD)
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", style="green", justify="right")
    summary.add_row("Unique raw rules", str(result.unique_raw_count))
    summary.add_row("Unique converted rules", str(result.unique_converted_count))
    summary.add_row("Output", str(result.output_path))
    console.print(summary)


def _iter_rules(rules: Iterable[str], file: Optional[Path]) -> Iterable[str]:
    yield from rules
    if file is not None:
        if str(file) == "-":
            yield from sys.stdin.read().splitlines()
        else:
            text = file.read_text(encoding="utf-8", errors="replace")
            yield from text.splitlines()


@app.command("convert", help="Convert rules locally and print hosts lines.")
def convert_command(
    rules: Optional[List[str]] = typer.Argument(None, help="Adblock rules to convert."),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", help="Read rules from a file ('-' for stdin)."
    ),
    show_rejected: bool = typer.Option(
        False, "--show-rejected", help="Report rejected rules on stderr.", is_flag=True
    ),
) -> None:
    converter = RuleConverter()
    for rule in _iter_rules(rules or [], file):
        result = converter.convert(rule)
        if isinstance(result, Accepted):
            typer.echo(result.entry.line)
        elif show_rejected:
            typer.echo(f"{result.reason}\t{rule}", err=True)


@app.command("watch", help="Regenerate the hosts file on the configured schedule.")
def watch_command(
    ctx: typer.Context,
    now: bool = typer.Option(False, "--now", help="Run once before waiting.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    config = _load_config(state)
    logger = configure_logging(
        state.verbose, log_dir=state.repository.locator.logs_dir, force=True
    ).bind(component="watch")

    def _job() -> None:
        try:
            result = _execute(config)
        except OSError as exc:
            logger.error("scheduled_run_failed", error=str(exc))
            return
        logger.info(
            "scheduled_run_finished",
            status=result.status.value,
            unique_converted=result.unique_converted_count,
        )

    adapter = APSchedulerAdapter()
    try:
        adapter.schedule_run(_job, config.schedule)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid schedule: {exc}") from exc
    if now:
        _job()
    adapter.start()
    for job in adapter.list_jobs():
        console.print(f"Next run: {job['next_run_time']} ({job['trigger']})")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("Stopping scheduler.")
    finally:
        adapter.shutdown()


@config_app.command("init", help="Write a configuration file with default values.")
def config_init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    if state.repository.exists() and not force:
        console.print(f"{state.repository.path} already exists; use --force to overwrite.")
        raise typer.Exit(code=1)
    path = state.repository.save_global_config(GlobalConfig())
    console.print(f"Configuration written to {path}")


@config_app.command("show", help="Print the effective configuration.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    config = _load_config(state)
    typer.echo(yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False))


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
