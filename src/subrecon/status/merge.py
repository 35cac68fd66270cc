"""Merge the four stores into one record per submodule.

Records are merged by name for `.gitmodules`, `.git/config` and
`.git/modules`, then by path for the index, since the index only knows
paths. Index entries no record claims are "nameless".
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from subrecon.errors import SubmoduleNotFoundError
from subrecon.status import readers
from subrecon.status.classify import is_healthy
from subrecon.status.records import CombinedRecord

logger = logging.getLogger(__name__)


@dataclass
class Status:
    """All submodules of a repository, keyed by name."""

    records: dict[str, CombinedRecord] = field(default_factory=dict)
    nameless: list[CombinedRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records) + len(self.nameless)

    def flattened(self) -> list[CombinedRecord]:
        """Named records in name order, followed by the nameless ones."""
        return [self.records[name] for name in sorted(self.records)] + list(self.nameless)

    def nameless_entries(self):
        """Index entries that matched no named submodule."""
        return [record.index for record in self.nameless]

    def is_healthy(self, context) -> bool:
        return all(is_healthy(record, context) for record in self.flattened())

    def find(self, name: str) -> CombinedRecord:
        """Look up a submodule by name.

        Raises:
            SubmoduleNotFoundError: If no submodule has that name. When a
                submodule has ``name`` as its path, the error hints at the
                submodule's actual name.
        """
        record = self.records.get(name)
        if record is not None:
            return record

        hint = None
        wanted = name.rstrip("/")
        for candidate in self.flattened():
            if candidate.path is not None and candidate.path.rstrip("/") == wanted:
                if candidate.name is not None:
                    hint = (
                        f"`{name}` is the path of submodule `{candidate.name}`; "
                        f"use the name `{candidate.name}` instead"
                    )
                else:
                    hint = (
                        f"`{name}` is a submodule path in the index without a name; "
                        "run `subrecon status --all` to inspect it"
                    )
                break
        raise SubmoduleNotFoundError(name, hint=hint)


def _worktree_relative_to_top(record: CombinedRecord, context) -> str | None:
    if record.modules is None or record.modules.worktree is None:
        return None
    module_dir = context.git_dir() / "modules" / record.modules.name
    worktree = os.path.normpath(module_dir / record.modules.worktree)
    relative = os.path.relpath(worktree, context.top_level_dir())
    if relative.startswith(".."):
        return None
    return Path(relative).as_posix()


def read_status(context, include_all: bool = False) -> Status:
    """Read every store and merge the results.

    Args:
        context: GitContext of the repository.
        include_all: Also pick up modules that only exist in `.git/modules`
            and index entries that match no name ("nameless").

    Returns:
        Merged Status.
    """
    status = Status()
    records = status.records

    for name, entry in readers.read_manifest(context).items():
        records[name] = CombinedRecord(manifest=entry)

    for name, entry in readers.read_local_config(context).items():
        if name in records:
            records[name].config = entry
        else:
            records[name] = CombinedRecord(config=entry)

    if include_all:
        modules = readers.read_module_store(context)
    else:
        modules = {}
        for name in records:
            try:
                modules[name] = readers.read_module(context, name)
            except SubmoduleNotFoundError:
                continue
    for name, entry in modules.items():
        if name in records:
            records[name].modules = entry
        else:
            records[name] = CombinedRecord(modules=entry)

    index = readers.read_index(context)
    unmatched = []
    for record in records.values():
        path = record.path
        entry = index.pop(path, None) if path is not None else None
        if entry is None:
            unmatched.append(record)
            continue
        logger.debug("Connect index path `%s` to submodule `%s`", path, record.name)
        record.index = entry

    # direct path matches take precedence; the checked out worktree still
    # locates the gitlink when the .gitmodules path is wrong
    for record in unmatched:
        path = _worktree_relative_to_top(record, context)
        entry = index.pop(path, None) if path is not None else None
        if entry is not None:
            logger.debug("Connect index path `%s` to submodule `%s` by its worktree", path, record.name)
            record.index = entry

    if include_all:
        status.nameless = [CombinedRecord(index=entry) for _, entry in sorted(index.items())]
    return status
