from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..config import AppConfig
from ..io.executable_locator import ExecutableLocator
from ..types import BackupResult, CommitResult, DiscoveryResult, RepairPlan, RunReport, Scope
from .assembler import PathAssembler
from .backup import BackupManager, resolve_backup_dir
from .catalog import EnvLookup, default_env_lookup, resolve_catalog, resolve_home, resolve_templates
from .env_store import EnvStore
from .expander import expand_patterns

ADMIN_HINT = "Administrator privileges are required to modify the System PATH"


class Runner:
    """Backup, discover, assemble and commit, in that order."""

    def __init__(
        self,
        config: AppConfig,
        store: EnvStore,
        logger: logging.Logger,
        env_lookup: EnvLookup = default_env_lookup,
        confirm: Optional[Callable[[RepairPlan], bool]] = None,
        is_dir: Callable[[str], bool] = os.path.isdir,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self.store = store
        self.logger = logger
        self.env_lookup = env_lookup
        self.confirm = confirm
        self.home = resolve_home(env_lookup)
        self.assembler = PathAssembler(self.home, env_lookup=env_lookup, is_dir=is_dir)
        self.backups = BackupManager(resolve_backup_dir(config, env_lookup), clock=clock)

    @property
    def scopes(self) -> List[Scope]:
        return self.config.selected_scopes()  # type: ignore[return-value]

    def read_current(self) -> Dict[str, str]:
        return {scope: self.store.read(scope) for scope in ("system", "user")}

    def backup(self, values: Dict[str, str]) -> Optional[BackupResult]:
        if not self.config.backup.enabled:
            self.logger.info("Backup skipped")
            return None
        result = self.backups.snapshot(values)
        self.logger.info("PATH backup written to %s", result.directory)
        return result

    def discover(self) -> DiscoveryResult:
        search = self.config.search
        report_errors = not search.ignore_access_errors
        patterns = resolve_catalog(self.config.catalog.categories(), self.env_lookup, self.logger)

        categories: Dict[str, List[str]] = {}
        for category, category_patterns in patterns.items():
            found = expand_patterns(category_patterns, logger=self.logger, report_errors=report_errors)
            categories[category] = found
            self.logger.debug("%s: %d directories", category, len(found))

        tools: Dict[str, str] = {}
        if search.enabled:
            roots = resolve_templates(search.roots, self.env_lookup, self.logger)
            locator = ExecutableLocator(
                roots=roots,
                executables=search.executables,
                max_depth=search.max_depth,
                thorough=search.thorough,
                ignore_access_errors=search.ignore_access_errors,
                logger=self.logger,
                timeout_sec=search.timeout_sec,
            )
            tools = locator.locate()
            self.logger.info("Located %d of %d known executables", len(tools), len(search.executables))

        return DiscoveryResult(categories=categories, tools=tools)

    def assemble(self, current: Dict[str, str], discovery: DiscoveryResult) -> RepairPlan:
        plan = self.assembler.assemble(current, discovery, scopes=self.scopes)
        if plan.duplicates:
            self.logger.info("Removed %d duplicate entries", len(plan.duplicates))
        if plan.missing:
            self.logger.info("Removed %d missing directories", len(plan.missing))
        return plan

    def commit(self, plan: RepairPlan) -> CommitResult:
        written: List[Scope] = []
        failed: List[Scope] = []
        errors: List[str] = []
        values = {"system": plan.system_value, "user": plan.user_value}
        for scope in plan.scopes:
            try:
                self.store.write(scope, values[scope])
            except OSError as exc:
                failed.append(scope)
                if scope == "system":
                    message = f"{ADMIN_HINT}: {exc}"
                else:
                    message = f"Failed to update {scope} PATH: {exc}"
                errors.append(message)
                self.logger.error(message)
                continue
            written.append(scope)
            self.logger.info("%s PATH updated", scope.capitalize())
        return CommitResult(written=written, failed=failed, errors=errors)

    def run(self) -> RunReport:
        current = self.read_current()
        backup = self.backup(current)
        discovery = self.discover()
        plan = self.assemble(current, discovery)
        report = RunReport(discovery=discovery, plan=plan, backup=backup, dry_run=self.config.behavior.dry_run)

        if report.dry_run:
            self.logger.info("Dry run; no changes written")
            return report

        if self.confirm is not None and not self.confirm(plan):
            self.logger.info("Cancelled by user; PATH left unchanged")
            report.cancelled = True
            return report

        report.commit = self.commit(plan)
        report.final_files = [str(path) for path in self.backups.write_final(plan)]
        return report
