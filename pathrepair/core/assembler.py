from __future__ import annotations

import ntpath
import os
import re
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..types import DiscoveryResult, RepairPlan, Scope
from .catalog import EnvLookup, default_env_lookup

PATH_SEPARATOR = ";"

_REFERENCE = re.compile(r"%([^%;]+)%")


def split_path_value(value: str) -> List[str]:
    entries: List[str] = []
    for raw in (value or "").split(PATH_SEPARATOR):
        entry = raw.strip().strip('"').strip()
        if entry:
            entries.append(entry)
    return entries


def join_path_entries(entries: Iterable[str]) -> str:
    return PATH_SEPARATOR.join(entries)


def trim_separator(entry: str) -> str:
    trimmed = entry.rstrip("\\/")
    if not trimmed or trimmed.endswith(":"):
        # Drive roots and "/" keep their separator.
        return entry
    return trimmed


def expand_references(entry: str, env_lookup: EnvLookup) -> str:
    def _replace(match: "re.Match[str]") -> str:
        return env_lookup(match.group(1)) or match.group(0)

    return _REFERENCE.sub(_replace, entry)


def entry_key(entry: str, env_lookup: EnvLookup) -> str:
    return trim_separator(expand_references(entry, env_lookup)).replace("/", "\\").casefold()


def is_under_home(path: str, home: str, env_lookup: EnvLookup = default_env_lookup) -> bool:
    if not home:
        return False
    normalized_path = ntpath.normpath(expand_references(path, env_lookup)).rstrip("\\").casefold()
    normalized_home = ntpath.normpath(expand_references(home, env_lookup)).rstrip("\\").casefold()
    if not normalized_home:
        return False
    return normalized_path == normalized_home or normalized_path.startswith(normalized_home + "\\")


def dedupe_entries(
    entries: Iterable[str],
    is_dir: Callable[[str], bool] = os.path.isdir,
    env_lookup: EnvLookup = default_env_lookup,
) -> Tuple[List[str], List[str], List[str]]:
    """Keep first occurrences of existing directories.

    Returns (kept, duplicates, missing).
    """
    kept: List[str] = []
    duplicates: List[str] = []
    missing: List[str] = []
    seen = set()
    for entry in entries:
        key = entry_key(entry, env_lookup)
        if key in seen:
            duplicates.append(entry)
            continue
        if not is_dir(expand_references(entry, env_lookup)):
            missing.append(entry)
            continue
        seen.add(key)
        kept.append(trim_separator(entry))
    return kept, duplicates, missing


class PathAssembler:
    def __init__(
        self,
        home: str,
        env_lookup: EnvLookup = default_env_lookup,
        is_dir: Callable[[str], bool] = os.path.isdir,
    ) -> None:
        self.home = home
        self.env_lookup = env_lookup
        self.is_dir = is_dir

    def partition(self, paths: Iterable[str]) -> Tuple[List[str], List[str]]:
        system: List[str] = []
        user: List[str] = []
        for path in paths:
            if is_under_home(path, self.home, self.env_lookup):
                user.append(path)
            else:
                system.append(path)
        return system, user

    def system_candidates(self, existing_system: str, discovery: DiscoveryResult) -> List[str]:
        categories = discovery.categories
        java_system, _ = self.partition(categories.get("java_variants", []))
        tools_system, _ = self.partition(discovery.tools.values())
        return (
            list(categories.get("critical_system", []))
            + split_path_value(existing_system)
            + list(categories.get("common_system", []))
            + list(categories.get("applications", []))
            + java_system
            + tools_system
        )

    def user_candidates(self, existing_user: str, discovery: DiscoveryResult) -> List[str]:
        categories = discovery.categories
        _, java_user = self.partition(categories.get("java_variants", []))
        _, tools_user = self.partition(discovery.tools.values())
        return (
            list(categories.get("user_specific", []))
            + split_path_value(existing_user)
            + java_user
            + tools_user
        )

    def assemble(
        self,
        existing: Dict[str, str],
        discovery: DiscoveryResult,
        scopes: Optional[Sequence[Scope]] = None,
    ) -> RepairPlan:
        selected: List[Scope] = list(scopes) if scopes else ["system", "user"]
        system_entries: List[str] = []
        user_entries: List[str] = []
        duplicates: List[str] = []
        missing: List[str] = []

        if "system" in selected:
            system_entries, dup, miss = dedupe_entries(
                self.system_candidates(existing.get("system", ""), discovery),
                is_dir=self.is_dir,
                env_lookup=self.env_lookup,
            )
            duplicates.extend(dup)
            missing.extend(miss)
        if "user" in selected:
            user_entries, dup, miss = dedupe_entries(
                self.user_candidates(existing.get("user", ""), discovery),
                is_dir=self.is_dir,
                env_lookup=self.env_lookup,
            )
            duplicates.extend(dup)
            missing.extend(miss)

        return RepairPlan(
            system_entries=system_entries,
            user_entries=user_entries,
            system_value=join_path_entries(system_entries),
            user_value=join_path_entries(user_entries),
            scopes=selected,
            duplicates=duplicates,
            missing=missing,
        )
