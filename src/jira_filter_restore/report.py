"""Per-filter outcome rows and the CSV writer that records them."""
from __future__ import annotations

import csv
import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Dict, Optional, Tuple

LOGGER = logging.getLogger(__name__)

RESULT_COLUMNS = ("BackupId", "CurrentId", "Name", "Jql", "Owner", "Create", "ChangeOwner", "Messages")
MESSAGE_SEPARATOR = " | "


class CreateStatus(str, enum.Enum):
    ALREADY_EXISTS = "AlreadyExists"
    SUCCESS = "Success"
    FAILED = "Failed"
    ERROR = "Error"


class OwnerStatus(str, enum.Enum):
    NOT_ATTEMPTED = ""
    SUCCESS = "Success"
    FAILED = "Failed"
    SKIPPED = "Skipped"


class Outcome(str, enum.Enum):
    ALREADY_EXISTS = "already-exists"
    CREATED = "created"
    CREATED_OWNER_NOT_CHANGED = "created-owner-not-changed"
    CREATE_FAILED = "create-failed"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class RestoreResult:
    """The recorded outcome of restoring one backup filter."""

    backup_id: str
    current_id: Optional[str]
    name: str
    jql: str
    owner: str
    create: CreateStatus
    change_owner: OwnerStatus
    messages: Tuple[str, ...]

    @property
    def outcome(self) -> Outcome:
        if self.create is CreateStatus.ALREADY_EXISTS:
            return Outcome.ALREADY_EXISTS
        if self.create is CreateStatus.ERROR:
            return Outcome.ERROR
        if self.create is CreateStatus.FAILED:
            return Outcome.CREATE_FAILED
        if self.change_owner is OwnerStatus.FAILED:
            return Outcome.CREATED_OWNER_NOT_CHANGED
        return Outcome.CREATED

    @property
    def failed(self) -> bool:
        """True when the filter was not restored; an unchanged owner does not count."""
        return self.outcome in (Outcome.ERROR, Outcome.CREATE_FAILED)

    def to_row(self) -> Dict[str, str]:
        return {
            "BackupId": self.backup_id,
            "CurrentId": self.current_id or "",
            "Name": self.name,
            "Jql": self.jql,
            "Owner": self.owner,
            "Create": self.create.value,
            "ChangeOwner": self.change_owner.value,
            "Messages": MESSAGE_SEPARATOR.join(self.messages),
        }


class ResultWriter:
    """Write restore results to CSV, one flushed row per processed filter."""

    def __init__(self, path: Path | str | None = None, *, stream: IO[str] | None = None) -> None:
        if (path is None) == (stream is None):
            msg = "ResultWriter requires exactly one of path or stream"
            raise ValueError(msg)
        self._owns_stream = stream is None
        self._stream: IO[str]
        if stream is None:
            target = Path(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            self._stream = target.open("w", encoding="utf-8", newline="")
        else:
            self._stream = stream
        self._writer = csv.DictWriter(self._stream, fieldnames=RESULT_COLUMNS)
        self._writer.writeheader()
        self._stream.flush()
        self.count = 0

    def write(self, result: RestoreResult) -> None:
        self._writer.writerow(result.to_row())
        self._stream.flush()
        self.count += 1
        LOGGER.info(
            "Filter %s (%s): Create=%s ChangeOwner=%s",
            result.backup_id,
            result.name,
            result.create.value,
            result.change_owner.value or "-",
        )

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> "ResultWriter":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


__all__ = [
    "CreateStatus",
    "MESSAGE_SEPARATOR",
    "Outcome",
    "OwnerStatus",
    "RESULT_COLUMNS",
    "RestoreResult",
    "ResultWriter",
]
