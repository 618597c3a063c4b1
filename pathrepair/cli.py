from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer

from .config import AppConfig, load_config
from .core.assembler import entry_key, expand_references, split_path_value
from .core.backup import BackupManager, resolve_backup_dir
from .core.catalog import default_env_lookup
from .core.env_store import EnvStore, create_store
from .core.runner import Runner
from .logging_setup import setup_logging
from .types import RepairPlan, RunReport

app = typer.Typer(add_completion=False)

SCOPE_LABELS: Dict[str, str] = {"system": "System", "user": "User"}


def _default_config_path() -> Path:
    return Path(__file__).resolve().parent.parent / "configs" / "config.example.yaml"


def _load_config(path: Optional[Path]) -> AppConfig:
    if path is None:
        return AppConfig()
    return load_config(path)


def _create_store(logger: logging.Logger) -> EnvStore:
    try:
        return create_store(logger)
    except RuntimeError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _echo_entries(title: str, entries: List[str]) -> None:
    typer.secho(f"{title} ({len(entries)} entries)", fg=typer.colors.CYAN, bold=True)
    for index, entry in enumerate(entries, start=1):
        typer.echo(f"  {index:3d}. {entry}")


def _echo_plan(plan: RepairPlan) -> None:
    if "system" in plan.scopes:
        _echo_entries("System PATH", plan.system_entries)
    if "user" in plan.scopes:
        _echo_entries("User PATH", plan.user_entries)
    if plan.duplicates:
        typer.secho(f"Duplicates removed: {len(plan.duplicates)}", fg=typer.colors.YELLOW)
    if plan.missing:
        typer.secho(f"Missing directories removed: {len(plan.missing)}", fg=typer.colors.YELLOW)
        for entry in plan.missing:
            typer.echo(f"  - {entry}")


def _confirm_plan(plan: RepairPlan) -> bool:
    _echo_plan(plan)
    return typer.confirm("Apply these PATH changes?", default=False)


def _echo_report(report: RunReport, show_tools: bool, plan_shown: bool) -> None:
    if show_tools:
        typer.secho("Discovered tools", fg=typer.colors.CYAN, bold=True)
        if not report.discovery.tools:
            typer.echo("  (none)")
        for name, directory in sorted(report.discovery.tools.items(), key=lambda item: item[0].lower()):
            typer.echo(f"  {name:<12} {directory}")
    if report.backup is not None:
        typer.echo(f"Backup: {report.backup.directory}")
    if not plan_shown:
        _echo_plan(report.plan)
    if report.dry_run:
        typer.secho("Dry run: no changes written.", fg=typer.colors.YELLOW)
        return
    if report.cancelled:
        typer.secho("Cancelled. PATH was not modified.", fg=typer.colors.YELLOW)
        return
    if report.commit is not None:
        for scope in report.commit.written:
            typer.secho(f"{SCOPE_LABELS[scope]} PATH updated.", fg=typer.colors.GREEN)
        for message in report.commit.errors:
            typer.secho(message, fg=typer.colors.RED, err=True)
    for path in report.final_files:
        typer.echo(f"Saved: {path}")


@app.command()
def repair(
    config: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    skip_backup: bool = typer.Option(False, "--skip-backup"),
    system_only: bool = typer.Option(False, "--system-only"),
    user_only: bool = typer.Option(False, "--user-only"),
    show_tools: bool = typer.Option(False, "--show-tools", help="List located executables"),
    verbose: bool = typer.Option(False, "--verbose"),
    ignore_access_errors: bool = typer.Option(False, "--ignore-access-errors"),
    thorough: bool = typer.Option(False, "--thorough", help="Search without a depth limit"),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", min=0, help="Search depth (default 4)"),
    no_tool_search: bool = typer.Option(False, "--no-tool-search"),
    dry_run: bool = typer.Option(False, "--dry-run"),
    search_timeout: Optional[float] = typer.Option(
        None, "--search-timeout", min=0.001, help="Stop the executable search after this many seconds"
    ),
) -> None:
    if system_only and user_only:
        raise typer.BadParameter("--system-only and --user-only are mutually exclusive")
    if config is None:
        config = _default_config_path() if _default_config_path().exists() else None

    cfg = _load_config(config)

    if yes:
        cfg.behavior.confirm = False
    if skip_backup:
        cfg.backup.enabled = False
    if system_only:
        cfg.behavior.scope = "system"
    if user_only:
        cfg.behavior.scope = "user"
    if show_tools:
        cfg.behavior.show_tools = True
    if verbose:
        cfg.logging.verbose = True
    if ignore_access_errors:
        cfg.search.ignore_access_errors = True
    if thorough:
        cfg.search.thorough = True
    if max_depth is not None:
        cfg.search.max_depth = max_depth
    if no_tool_search:
        cfg.search.enabled = False
    if dry_run:
        cfg.behavior.dry_run = True
    if search_timeout is not None:
        cfg.search.timeout_sec = search_timeout

    logger = setup_logging(cfg.logging)
    store = _create_store(logger)
    confirm = _confirm_plan if cfg.behavior.confirm else None
    runner = Runner(cfg, store, logger, confirm=confirm)
    report = runner.run()

    plan_shown = confirm is not None and not report.dry_run
    _echo_report(report, cfg.behavior.show_tools, plan_shown)
    if report.cancelled:
        raise typer.Exit(code=1)
    if report.commit is not None and not report.commit.success:
        raise typer.Exit(code=1)


@app.command()
def show(
    config: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config"),
) -> None:
    cfg = _load_config(config)
    logger = setup_logging(cfg.logging)
    store = _create_store(logger)
    for scope in cfg.selected_scopes():
        entries = split_path_value(store.read(scope))
        typer.secho(f"{SCOPE_LABELS[scope]} PATH ({len(entries)} entries)", fg=typer.colors.CYAN, bold=True)
        seen = set()
        for index, entry in enumerate(entries, start=1):
            key = entry_key(entry, default_env_lookup)
            if key in seen:
                typer.secho(f"  {index:3d}. {entry}  [duplicate]", fg=typer.colors.YELLOW)
            elif not Path(expand_references(entry, default_env_lookup)).is_dir():
                typer.secho(f"  {index:3d}. {entry}  [missing]", fg=typer.colors.RED)
            else:
                typer.echo(f"  {index:3d}. {entry}")
            seen.add(key)


@app.command()
def restore(
    config: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config"),
    backup_dir: Optional[Path] = typer.Option(None, "--backup-dir"),
    scope: str = typer.Option("both", "--scope", help="both|system|user"),
    yes: bool = typer.Option(False, "--yes", "-y"),
) -> None:
    if scope not in {"both", "system", "user"}:
        raise typer.BadParameter("--scope must be one of both|system|user")
    cfg = _load_config(config)
    cfg.behavior.scope = scope  # type: ignore[assignment]
    logger = setup_logging(cfg.logging)
    directory = backup_dir or resolve_backup_dir(cfg, default_env_lookup)
    manager = BackupManager(directory)

    restorable: Dict[str, str] = {}
    for selected in cfg.selected_scopes():
        latest = manager.latest_backup(selected)  # type: ignore[arg-type]
        if latest is None:
            typer.secho(f"No {selected} PATH backup found in {directory}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
        restorable[selected] = manager.read_backup(latest)
        typer.echo(f"{SCOPE_LABELS[selected]} PATH <- {latest.name}")

    if not yes and not typer.confirm("Restore these backups?", default=False):
        typer.secho("Cancelled. PATH was not modified.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)

    store = _create_store(logger)
    failed = False
    for selected, value in restorable.items():
        try:
            store.write(selected, value)  # type: ignore[arg-type]
        except OSError as exc:
            failed = True
            typer.secho(f"Failed to restore {selected} PATH: {exc}", fg=typer.colors.RED, err=True)
            continue
        logger.info("%s PATH restored", SCOPE_LABELS[selected])
        typer.secho(f"{SCOPE_LABELS[selected]} PATH restored.", fg=typer.colors.GREEN)
    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
