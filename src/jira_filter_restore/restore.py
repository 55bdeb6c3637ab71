"""Rebuild saved filters from backup data into a live Jira instance.

Each backup filter goes through the same sequence:

1. look for an existing filter with the same name and owner;
2. make sure every filter referenced from its JQL exists, creating empty
   placeholder filters for the missing ones;
3. create the filter with its share and edit permissions;
4. hand ownership over to the original owner;
5. delete the placeholders created in step 2.

A failure in one step is recorded on the filter's :class:`RestoreResult` and
never stops the batch.  Placeholders are deleted whatever happened in steps
3 and 4.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional, Sequence

from .backup import BackupFilter, permissions_for
from .config import RestoreConfig
from .dependencies import dedupe_names, find_dependencies
from .jira_api import JiraAPI, LiveFilter
from .permissions import PermissionPayload
from .report import CreateStatus, OwnerStatus, RestoreResult, ResultWriter
from .results import Failed

LOGGER = logging.getLogger(__name__)

PauseFn = Callable[[str], object]


@dataclass(slots=True)
class _Progress:
    """Mutable bookkeeping for the filter currently being restored."""

    backup: BackupFilter
    current_id: Optional[str] = None
    create: CreateStatus = CreateStatus.ERROR
    change_owner: OwnerStatus = OwnerStatus.NOT_ATTEMPTED
    messages: List[str] = field(default_factory=list)

    def note(self, message: str, level: int = logging.INFO) -> None:
        LOGGER.log(level, "[%s] %s", self.backup.reference_id, message)
        self.messages.append(message)

    def freeze(self) -> RestoreResult:
        return RestoreResult(
            backup_id=self.backup.reference_id,
            current_id=self.current_id,
            name=self.backup.name,
            jql=self.backup.jql,
            owner=self.backup.owner,
            create=self.create,
            change_owner=self.change_owner,
            messages=tuple(self.messages),
        )


class FilterRestorer:
    """Restore backup filters one at a time through :class:`JiraAPI`."""

    def __init__(
        self,
        api: JiraAPI,
        options: RestoreConfig | None = None,
        *,
        pause: PauseFn = input,
    ) -> None:
        self._api = api
        self._options = options or RestoreConfig()
        self._pause = pause

    def restore_all(
        self,
        filters: Mapping[str, BackupFilter],
        permissions: Mapping[str, PermissionPayload],
        writer: ResultWriter | None = None,
    ) -> List[RestoreResult]:
        """Restore every backup filter in input order, recording each result."""

        results: List[RestoreResult] = []
        for index, backup in enumerate(filters.values()):
            if index and self._options.pause_between_filters:
                self._pause(f"Press Enter to restore filter {backup.reference_id} ({backup.name})...")
            result = self.restore(backup, permissions_for(permissions, backup.reference_id))
            if writer is not None:
                writer.write(result)
            results.append(result)
        return results

    def restore(self, backup: BackupFilter, permissions: PermissionPayload | None = None) -> RestoreResult:
        """Restore a single backup filter; never raises."""

        progress = _Progress(backup=backup)
        dummies: List[LiveFilter] = []
        LOGGER.info("Restoring filter %s (%s)", backup.reference_id, backup.name)
        try:
            self._restore(backup, permissions or PermissionPayload(), progress, dummies)
        except Exception as exc:  # keep the batch running
            LOGGER.exception("Unexpected error restoring filter %s", backup.reference_id)
            progress.create = CreateStatus.ERROR if progress.current_id is None else progress.create
            progress.note(f"Unexpected error: {exc}", logging.ERROR)
        finally:
            self._delete_dummies(dummies, progress)
        return progress.freeze()

    # Phases -------------------------------------------------------------

    def _restore(
        self,
        backup: BackupFilter,
        permissions: PermissionPayload,
        progress: _Progress,
        dummies: List[LiveFilter],
    ) -> None:
        existing = self._find_existing(backup, progress)
        if existing is None:
            return
        if self._counts_as_existing(existing):
            progress.current_id = existing[0].id
            progress.create = CreateStatus.ALREADY_EXISTS
            progress.note(f"Filter already exists with id {existing[0].id}")
            return
        if len(existing) > 1:
            progress.note(
                f"{len(existing)} filters named {backup.name!r} owned by {backup.owner}; creating another one",
                logging.WARNING,
            )

        if not self._ensure_dependencies(backup, progress, dummies):
            return

        self._step(f"create filter {backup.name!r}")
        created = self._api.create_filter(backup.name, backup.jql, permissions)
        if isinstance(created, Failed):
            progress.create = CreateStatus.FAILED
            progress.note(f"Create failed: {created.describe()}", logging.ERROR)
            return
        progress.current_id = created.value.id
        progress.create = CreateStatus.SUCCESS
        progress.note(
            f"Created filter {created.value.id} with {len(permissions.share_grants)} share"
            f" and {len(permissions.edit_grants)} edit permissions"
        )

        self._change_owner(backup, created.value, progress)

    def _find_existing(self, backup: BackupFilter, progress: _Progress) -> Optional[Sequence[LiveFilter]]:
        lookup = self._api.search_filters(
            backup.name,
            owner=backup.owner or None,
            override_share_permissions=True,
        )
        if isinstance(lookup, Failed):
            progress.create = CreateStatus.ERROR
            progress.note(f"Existence check failed: {lookup.describe()}", logging.ERROR)
            return None
        return lookup.value

    def _counts_as_existing(self, matches: Sequence[LiveFilter]) -> bool:
        if self._options.existence_policy == "any":
            return len(matches) >= 1
        return len(matches) == 1

    def _ensure_dependencies(self, backup: BackupFilter, progress: _Progress, dummies: List[LiveFilter]) -> bool:
        names = find_dependencies(backup.jql)
        if self._options.dedupe_dependencies:
            names = dedupe_names(names)
        for name in names:
            self._step(f"check dependency {name!r}")
            lookup = self._api.search_filters(name, ignore_case=True)
            if isinstance(lookup, Failed):
                progress.create = CreateStatus.ERROR
                progress.note(f"Dependency check for {name!r} failed: {lookup.describe()}", logging.ERROR)
                return False
            if lookup.value:
                progress.note(f"Dependency {name!r} satisfied by filter {lookup.value[0].id}")
                continue

            self._step(f"create placeholder filter {name!r}")
            dummy = self._api.create_filter(name, self._options.dummy_jql)
            if isinstance(dummy, Failed):
                progress.create = CreateStatus.ERROR
                progress.note(f"Placeholder filter {name!r} could not be created: {dummy.describe()}", logging.ERROR)
                return False
            dummies.append(dummy.value)
            progress.note(f"Created placeholder filter {dummy.value.id} for dependency {name!r}")
        return True

    def _change_owner(self, backup: BackupFilter, live: LiveFilter, progress: _Progress) -> None:
        if not backup.owner:
            progress.change_owner = OwnerStatus.SKIPPED
            progress.note("No owner recorded in the backup; ownership left unchanged", logging.WARNING)
            return
        self._step(f"change owner of filter {live.id} to {backup.owner}")
        changed = self._api.change_filter_owner(live.id, backup.owner)
        if isinstance(changed, Failed):
            progress.change_owner = OwnerStatus.FAILED
            progress.note(f"Change owner failed: {changed.describe()}", logging.ERROR)
            return
        progress.change_owner = OwnerStatus.SUCCESS
        progress.note(f"Owner changed to {backup.owner}")

    def _delete_dummies(self, dummies: Sequence[LiveFilter], progress: _Progress) -> None:
        for dummy in dummies:
            try:
                self._step(f"delete placeholder filter {dummy.id} ({dummy.name!r})")
            except Exception as exc:
                progress.note(
                    f"Pause before deleting placeholder {dummy.id} failed ({exc!r}); deleting anyway",
                    logging.WARNING,
                )
            deleted = self._api.delete_filter(dummy.id)
            if isinstance(deleted, Failed):
                progress.note(
                    f"Placeholder filter {dummy.id} ({dummy.name!r}) could not be deleted: {deleted.describe()}",
                    logging.ERROR,
                )
            else:
                progress.note(f"Deleted placeholder filter {dummy.id} ({dummy.name!r})")

    def _step(self, action: str) -> None:
        if self._options.pause_between_actions:
            self._pause(f"Press Enter to {action}...")


__all__ = ["FilterRestorer", "PauseFn"]
