from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..config import AppConfig
from ..types import BackupResult, RepairPlan, Scope
from .catalog import EnvLookup, resolve_home, resolve_template

FILE_PREFIXES: Dict[str, str] = {"system": "SystemPATH", "user": "UserPATH"}


def _timestamp(now: datetime) -> str:
    return now.strftime("%Y%m%d_%H%M%S")


def resolve_backup_dir(config: AppConfig, env_lookup: EnvLookup) -> Path:
    directory = resolve_template(config.backup.directory, env_lookup)
    if directory is None:
        return Path(resolve_home(env_lookup)) / "PATH_Backups"
    return Path(directory)


class BackupManager:
    def __init__(self, directory: Path, clock: Callable[[], datetime] = datetime.now) -> None:
        self.directory = Path(directory)
        self.clock = clock

    def _target(self, scope: str, kind: str, stamp: str) -> Path:
        return self.directory / f"{FILE_PREFIXES[scope]}_{kind}_{stamp}.txt"

    def snapshot(self, values: Dict[str, str]) -> BackupResult:
        self.directory.mkdir(parents=True, exist_ok=True)
        stamp = _timestamp(self.clock())
        files: Dict[str, str] = {}
        for scope in ("system", "user"):
            if scope not in values:
                continue
            target = self._target(scope, "backup", stamp)
            target.write_text(values[scope] + "\n", encoding="utf-8")
            files[scope] = str(target)
        return BackupResult(directory=str(self.directory), files=files)

    def write_final(self, plan: RepairPlan) -> List[Path]:
        self.directory.mkdir(parents=True, exist_ok=True)
        stamp = _timestamp(self.clock())
        written: List[Path] = []
        entries = {"system": plan.system_entries, "user": plan.user_entries}
        for scope in plan.scopes:
            target = self._target(scope, "final", stamp)
            target.write_text("".join(f"{entry}\n" for entry in entries[scope]), encoding="utf-8")
            written.append(target)
        return written

    def latest_backup(self, scope: Scope) -> Optional[Path]:
        if not self.directory.exists():
            return None
        candidates = sorted(self.directory.glob(f"{FILE_PREFIXES[scope]}_backup_*.txt"))
        return candidates[-1] if candidates else None

    @staticmethod
    def read_backup(path: Path) -> str:
        return Path(path).read_text(encoding="utf-8").rstrip("\r\n")
