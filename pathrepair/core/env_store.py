from __future__ import annotations

import ctypes
import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..types import Scope

MACHINE_ENVIRONMENT_KEY = r"SYSTEM\CurrentControlSet\Control\Session Manager\Environment"
USER_ENVIRONMENT_KEY = "Environment"
PATH_VALUE_NAME = "Path"

HWND_BROADCAST = 0xFFFF
WM_SETTINGCHANGE = 0x001A
SMTO_ABORTIFHUNG = 0x0002


class EnvStore(ABC):
    @abstractmethod
    def read(self, scope: Scope) -> str:
        raise NotImplementedError

    @abstractmethod
    def write(self, scope: Scope, value: str) -> None:
        raise NotImplementedError


class MemoryEnvStore(EnvStore):
    def __init__(self, values: Optional[Dict[str, str]] = None) -> None:
        self.values: Dict[str, str] = dict(values or {})
        self.writes: list[tuple[str, str]] = []

    def read(self, scope: Scope) -> str:
        return self.values.get(scope, "")

    def write(self, scope: Scope, value: str) -> None:
        self.values[scope] = value
        self.writes.append((scope, value))


class RegistryEnvStore(EnvStore):
    """PATH values in the Windows registry, written as REG_EXPAND_SZ."""

    def __init__(self, logger: Optional[logging.Logger] = None, broadcast: bool = True) -> None:
        import winreg

        self._winreg = winreg
        self.logger = logger or logging.getLogger("pathrepair")
        self.broadcast = broadcast

    def _location(self, scope: Scope) -> tuple[int, str]:
        if scope == "system":
            return self._winreg.HKEY_LOCAL_MACHINE, MACHINE_ENVIRONMENT_KEY
        if scope == "user":
            return self._winreg.HKEY_CURRENT_USER, USER_ENVIRONMENT_KEY
        raise ValueError(f"Unknown scope: {scope}")

    def read(self, scope: Scope) -> str:
        winreg = self._winreg
        root, sub_key = self._location(scope)
        try:
            with winreg.OpenKey(root, sub_key, 0, winreg.KEY_READ) as key:
                value, _value_type = winreg.QueryValueEx(key, PATH_VALUE_NAME)
        except FileNotFoundError:
            return ""
        return str(value or "")

    def write(self, scope: Scope, value: str) -> None:
        winreg = self._winreg
        root, sub_key = self._location(scope)
        with winreg.CreateKeyEx(root, sub_key, 0, winreg.KEY_SET_VALUE) as key:
            winreg.SetValueEx(key, PATH_VALUE_NAME, 0, winreg.REG_EXPAND_SZ, value)
        self.logger.debug("Wrote %s PATH (%d characters)", scope, len(value))
        if self.broadcast:
            self.notify_change()

    def notify_change(self) -> None:
        result = ctypes.c_ulong()
        ok = ctypes.windll.user32.SendMessageTimeoutW(  # type: ignore[attr-defined]
            HWND_BROADCAST,
            WM_SETTINGCHANGE,
            0,
            "Environment",
            SMTO_ABORTIFHUNG,
            5000,
            ctypes.byref(result),
        )
        if not ok:
            self.logger.warning("Failed to broadcast environment change; new shells may need a re-login")


def create_store(logger: Optional[logging.Logger] = None) -> EnvStore:
    if os.name != "nt":
        raise RuntimeError("Editing the PATH registry values requires Windows")
    return RegistryEnvStore(logger=logger)
