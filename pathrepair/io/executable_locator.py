from __future__ import annotations

import logging
import os
import stat
import time
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple


def _is_reparse_point(entry: os.DirEntry) -> bool:
    try:
        info = entry.stat(follow_symlinks=False)
    except OSError:
        return False
    attributes = getattr(info, "st_file_attributes", 0)
    return bool(attributes & stat.FILE_ATTRIBUTE_REPARSE_POINT)


class ExecutableLocator:
    """Breadth-first search of known executables below a set of roots."""

    def __init__(
        self,
        roots: List[str],
        executables: List[str],
        max_depth: int,
        thorough: bool,
        ignore_access_errors: bool,
        logger: logging.Logger,
        timeout_sec: Optional[float] = None,
    ) -> None:
        self.roots = roots
        self.executables = executables
        self.max_depth = max(max_depth, 0)
        self.thorough = thorough
        self.ignore_access_errors = ignore_access_errors
        self.logger = logger
        self.timeout_sec = timeout_sec
        self.skipped: List[str] = []
        self.timed_out = False

    def locate(self) -> Dict[str, str]:
        remaining = {name.casefold(): name for name in self.executables}
        found: Dict[str, str] = {}
        deadline = time.monotonic() + self.timeout_sec if self.timeout_sec else None

        for root in self.roots:
            if not remaining or self.timed_out:
                break
            if not os.path.isdir(root):
                self.logger.debug("Search root not found: %s", root)
                continue
            self.logger.debug("Searching %s for %d executables", root, len(remaining))
            self._walk(root, remaining, found, deadline)

        return found

    def _walk(
        self,
        root: str,
        remaining: Dict[str, str],
        found: Dict[str, str],
        deadline: Optional[float],
    ) -> None:
        pending: Deque[Tuple[str, int]] = deque([(root, 0)])
        while pending and remaining:
            if deadline is not None and time.monotonic() > deadline:
                self.timed_out = True
                self.logger.warning(
                    "Executable search stopped after %.1fs; results may be incomplete",
                    self.timeout_sec,
                )
                return
            directory, depth = pending.popleft()
            try:
                with os.scandir(directory) as iterator:
                    entries = list(iterator)
            except OSError as exc:
                self._report(directory, exc)
                continue

            descend = self.thorough or depth < self.max_depth
            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        if descend and not _is_reparse_point(entry):
                            pending.append((entry.path, depth + 1))
                        continue
                    if not entry.is_file():
                        continue
                except OSError as exc:
                    self._report(entry.path, exc)
                    continue
                name = remaining.pop(entry.name.casefold(), None)
                if name is None:
                    continue
                stem = os.path.splitext(name)[0]
                if stem in found:
                    continue
                found[stem] = os.path.abspath(directory)
                self.logger.debug("Found %s in %s", name, directory)

    def _report(self, path: str, exc: OSError) -> None:
        self.skipped.append(path)
        if self.ignore_access_errors:
            self.logger.debug("Skipping %s: %s", path, exc)
        else:
            self.logger.warning("Cannot access %s: %s", path, exc)
