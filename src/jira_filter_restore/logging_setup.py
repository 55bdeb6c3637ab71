"""Logging helpers for the filter restore tooling."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def configure_logging(
    level: int = logging.INFO,
    *,
    modules: Iterable[str] | None = None,
    log_file: Path | str | None = None,
) -> None:
    """Configure console logging for CLI commands, optionally mirrored to a file."""

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, mode="w", encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)
    if modules:
        for module in modules:
            logging.getLogger(module).setLevel(level)


__all__ = ["configure_logging"]
