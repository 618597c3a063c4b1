from __future__ import annotations

import fnmatch
import logging
import os
import re
from typing import Iterable, List, Optional, Tuple

_SEPARATORS = re.compile(r"[\\/]")


def has_wildcard(value: str) -> bool:
    return "*" in value or "?" in value


def split_pattern(pattern: str) -> Optional[Tuple[str, str, str]]:
    """Split ``pattern`` into (parent, leaf glob, tail) at its wildcard segment.

    Returns None for literal patterns. The parent keeps its trailing
    separator so drive roots such as ``C:\\`` stay absolute.
    """
    segments = _SEPARATORS.split(pattern)
    offsets = [0] + [match.end() for match in _SEPARATORS.finditer(pattern)]
    for index, segment in enumerate(segments):
        if not has_wildcard(segment):
            continue
        start = offsets[index]
        parent = pattern[:start]
        tail = pattern[start + len(segment):].strip("\\/")
        return parent, segment, tail
    return None


def _match_leaf(name: str, leaf: str) -> bool:
    return fnmatch.fnmatchcase(name.casefold(), leaf.casefold())


def expand_pattern(
    pattern: str,
    logger: Optional[logging.Logger] = None,
    report_errors: bool = True,
) -> List[str]:
    parts = split_pattern(pattern)
    if parts is None:
        return [pattern] if os.path.isdir(pattern) else []

    parent, leaf, tail = parts
    if not parent or not os.path.isdir(parent):
        return []

    matches: List[str] = []
    try:
        with os.scandir(parent) as entries:
            for entry in entries:
                try:
                    if not entry.is_dir():
                        continue
                except OSError:
                    continue
                if not _match_leaf(entry.name, leaf):
                    continue
                candidate = os.path.join(parent, entry.name)
                if tail:
                    candidate = os.path.join(candidate, tail)
                    if not os.path.isdir(candidate):
                        continue
                matches.append(candidate)
    except OSError as exc:
        if logger is not None:
            if report_errors:
                logger.warning("Cannot enumerate %s: %s", parent, exc)
            else:
                logger.debug("Cannot enumerate %s: %s", parent, exc)
        return []
    return matches


def expand_patterns(
    patterns: Iterable[str],
    logger: Optional[logging.Logger] = None,
    report_errors: bool = True,
) -> List[str]:
    found: List[str] = []
    for pattern in patterns:
        found.extend(expand_pattern(pattern, logger=logger, report_errors=report_errors))
    return found
