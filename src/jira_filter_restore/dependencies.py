"""Detect saved filters referenced from a JQL query."""
from __future__ import annotations

import re
from typing import Iterable, List

# The keyword must be written in lowercase; names are returned exactly as written.
FILTER_REFERENCE = re.compile(r'\bfilter\s*=\s*"([^"]+)"')


def find_dependencies(jql: str) -> List[str]:
    """Return the filter names referenced by ``filter = "<name>"`` clauses.

    Names come back in order of appearance; repeated references are repeated.
    """

    if not jql:
        return []
    return [match.group(1) for match in FILTER_REFERENCE.finditer(jql)]


def dedupe_names(names: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    unique: List[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            unique.append(name)
    return unique


__all__ = ["FILTER_REFERENCE", "dedupe_names", "find_dependencies"]
