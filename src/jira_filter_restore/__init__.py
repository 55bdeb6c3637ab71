"""Jira Cloud filter backup, export and restore toolkit."""

from __future__ import annotations

import os
from pathlib import Path


def _load_local_env() -> None:
    """Load environment variables from the nearest .env file if present."""

    search_roots = [Path.cwd(), *Path.cwd().parents]
    for directory in search_roots:
        env_path = directory / ".env"
        if env_path.is_file():
            with env_path.open("r", encoding="utf-8") as env_file:
                for raw_line in env_file:
                    line = raw_line.strip()
                    if not line or line.startswith("#") or "=" not in line:
                        continue
                    key, value = line.split("=", 1)
                    os.environ.setdefault(key.strip(), value.strip().strip('"').strip("'"))
            break


_load_local_env()

__all__ = [
    "backup",
    "config",
    "dependencies",
    "export",
    "http_client",
    "jira_api",
    "permissions",
    "report",
    "restore",
    "results",
]
