"""Readers for the filter backup CSV files."""
from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Mapping, Sequence

from .permissions import PermissionPayload, normalize_permission

LOGGER = logging.getLogger(__name__)

FILTER_COLUMNS = ("id", "name", "jql", "owner")
PERMISSION_COLUMNS = ("id", "type", "rights", "param1", "param2")


class BackupFormatError(ValueError):
    """Raised when a backup CSV does not have the expected layout."""


@dataclass(frozen=True, slots=True)
class BackupFilter:
    """A saved filter as recorded in the backup."""

    reference_id: str
    name: str
    jql: str
    owner: str


def _read_rows(path: Path | str, required: Sequence[str]) -> Iterator[Dict[str, str]]:
    path = Path(path)
    # utf-8-sig swallows the BOM that spreadsheet exports prepend.
    with path.open("r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if reader.fieldnames is None:
            msg = f"{path} is empty"
            raise BackupFormatError(msg)
        headers = [name.strip().lower() for name in reader.fieldnames]
        missing = [column for column in required if column not in headers]
        if missing:
            msg = f"{path} is missing column(s): {', '.join(missing)}"
            raise BackupFormatError(msg)
        for line_no, raw in enumerate(reader, start=2):
            row = {
                header: (value or "")
                for header, value in zip(headers, (raw.get(name) for name in reader.fieldnames))
            }
            if not row.get("id", "").strip():
                LOGGER.warning("Skipping %s line %s without an id", path.name, line_no)
                continue
            yield row


def load_filters(path: Path | str) -> Dict[str, BackupFilter]:
    """Load backup filters keyed by their backup reference id.

    The last row wins when an id is repeated.
    """

    filters: Dict[str, BackupFilter] = {}
    for row in _read_rows(path, FILTER_COLUMNS):
        reference_id = row["id"].strip()
        name = row["name"].strip()
        if not name:
            msg = f"Filter {reference_id} in {path} has no name"
            raise BackupFormatError(msg)
        if reference_id in filters:
            LOGGER.warning("Duplicate backup filter id %s; keeping the last row", reference_id)
        filters[reference_id] = BackupFilter(
            reference_id=reference_id,
            name=name,
            jql=row["jql"].strip(),
            owner=row["owner"].strip(),
        )
    LOGGER.info("Loaded %s backup filters from %s", len(filters), path)
    return filters


def load_permissions(path: Path | str) -> Dict[str, PermissionPayload]:
    """Group backup permission rows into one payload per filter reference id."""

    payloads: Dict[str, PermissionPayload] = {}
    dropped = 0
    for row in _read_rows(path, PERMISSION_COLUMNS):
        entry = normalize_permission(row)
        if entry is None:
            dropped += 1
            continue
        payloads.setdefault(entry.reference_id, PermissionPayload()).add(entry)
    LOGGER.info("Loaded permissions for %s filters from %s (%s rows dropped)", len(payloads), path, dropped)
    return payloads


def permissions_for(payloads: Mapping[str, PermissionPayload], reference_id: str) -> PermissionPayload:
    return payloads.get(reference_id) or PermissionPayload()


__all__ = [
    "BackupFilter",
    "BackupFormatError",
    "FILTER_COLUMNS",
    "PERMISSION_COLUMNS",
    "load_filters",
    "load_permissions",
    "permissions_for",
]
