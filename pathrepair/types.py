from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

Scope = Literal["system", "user"]


@dataclass
class DiscoveryResult:
    categories: Dict[str, List[str]]
    tools: Dict[str, str]


@dataclass
class RepairPlan:
    system_entries: List[str]
    user_entries: List[str]
    system_value: str
    user_value: str
    scopes: List[Scope]
    duplicates: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)


@dataclass
class BackupResult:
    directory: str
    files: Dict[str, str]


@dataclass
class CommitResult:
    written: List[Scope]
    failed: List[Scope]
    errors: List[str]

    @property
    def success(self) -> bool:
        return not self.failed


@dataclass
class RunReport:
    discovery: DiscoveryResult
    plan: RepairPlan
    backup: Optional[BackupResult] = None
    commit: Optional[CommitResult] = None
    final_files: List[str] = field(default_factory=list)
    cancelled: bool = False
    dry_run: bool = False
