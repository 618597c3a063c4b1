from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, root_validator, validator

from .core.catalog import CATEGORY_ORDER, DEFAULT_CATALOG, DEFAULT_EXECUTABLES, DEFAULT_SEARCH_ROOTS


class SearchConfig(BaseModel):
    enabled: bool = True
    max_depth: int = 4
    thorough: bool = False
    ignore_access_errors: bool = False
    timeout_sec: Optional[float] = None
    roots: List[str] = Field(default_factory=lambda: list(DEFAULT_SEARCH_ROOTS))
    executables: List[str] = Field(default_factory=lambda: list(DEFAULT_EXECUTABLES))

    @validator("max_depth")
    def _non_negative_depth(cls, value: int) -> int:
        if value < 0:
            raise ValueError("max_depth must be >= 0")
        return value

    @validator("timeout_sec")
    def _positive_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("timeout_sec must be positive")
        return value

    @validator("executables", pre=True, always=True)
    def _unique_executables(cls, value: List[str]) -> List[str]:
        seen = set()
        unique = []
        for name in value or []:
            key = str(name).strip().lower()
            if not key or key in seen:
                continue
            seen.add(key)
            unique.append(str(name).strip())
        return unique


class CatalogConfig(BaseModel):
    critical_system: List[str] = Field(default_factory=lambda: list(DEFAULT_CATALOG["critical_system"]))
    common_system: List[str] = Field(default_factory=lambda: list(DEFAULT_CATALOG["common_system"]))
    applications: List[str] = Field(default_factory=lambda: list(DEFAULT_CATALOG["applications"]))
    java_variants: List[str] = Field(default_factory=lambda: list(DEFAULT_CATALOG["java_variants"]))
    user_specific: List[str] = Field(default_factory=lambda: list(DEFAULT_CATALOG["user_specific"]))

    def categories(self) -> Dict[str, List[str]]:
        return {name: list(getattr(self, name)) for name in CATEGORY_ORDER}


class BackupConfig(BaseModel):
    enabled: bool = True
    directory: str = r"{USERPROFILE}\PATH_Backups"


class BehaviorConfig(BaseModel):
    confirm: bool = True
    scope: Literal["both", "system", "user"] = "both"
    show_tools: bool = False
    dry_run: bool = False


class LoggingConfig(BaseModel):
    directory: str = "logs"
    text_filename: str = "pathrepair.log"
    rotate_bytes: int = 1_048_576
    backups: int = 5
    verbose: bool = False
    file_level: str = "DEBUG"

    @validator("file_level")
    def _known_level(cls, value: str) -> str:
        level = str(value).strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


class AppConfig(BaseModel):
    search: SearchConfig = Field(default_factory=SearchConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)
    behavior: BehaviorConfig = Field(default_factory=BehaviorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    class Config:
        extra = "ignore"

    @root_validator(pre=True)
    def _map_flat_switches(cls, values: dict) -> dict:
        # Flat keys named after the script switches.
        flat_search = {
            "max_search_depth": "max_depth",
            "thorough_search": "thorough",
            "ignore_access_errors": "ignore_access_errors",
        }
        for legacy, target in flat_search.items():
            if legacy in values:
                search = values.get("search")
                if search is None:
                    search = {}
                if isinstance(search, dict):
                    search.setdefault(target, values[legacy])
                    values["search"] = search
        if "skip_backup" in values:
            backup = values.get("backup")
            if backup is None:
                backup = {}
            if isinstance(backup, dict):
                backup.setdefault("enabled", not values["skip_backup"])
                values["backup"] = backup
        return values

    def selected_scopes(self) -> List[str]:
        if self.behavior.scope == "system":
            return ["system"]
        if self.behavior.scope == "user":
            return ["user"]
        return ["system", "user"]


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    return AppConfig.parse_obj(payload)


def save_config(config: AppConfig, path: Path) -> None:
    data = config.dict()
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False, allow_unicode=False)
