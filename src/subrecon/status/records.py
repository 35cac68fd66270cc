"""Submodule data as found in each of the four stores, and the combined view.

A submodule can leave traces in `.gitmodules`, `.git/config`,
`.git/modules/<name>` and the index. Each store gets its own record type;
CombinedRecord holds whichever of them exist for one submodule.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from subrecon.errors import CanonicalizeError
from subrecon.git.context import canonicalize

GITLINK_MODE = "160000"


@dataclass
class InManifest:
    """Section `[submodule "<name>"]` in .gitmodules."""

    name: str
    path: str | None = None
    url: str | None = None
    branch: str | None = None


@dataclass
class InLocalConfig:
    """Section `[submodule "<name>"]` in .git/config (resolved URL)."""

    name: str
    url: str | None = None


@dataclass
class InModuleStore:
    """Directory .git/modules/<name>.

    ``worktree`` is `core.worktree` from the module's config, relative to
    the module directory. ``head_sha`` and ``git_dir`` are queried from
    inside that worktree and are None when the query failed.
    """

    name: str
    worktree: str | None = None
    head_sha: str | None = None
    git_dir: str | None = None


@dataclass
class IndexEntry:
    """Gitlink entry (mode 160000) in the index."""

    path: str
    sha: str


@dataclass
class CombinedRecord:
    """Everything known about one submodule.

    Presence of each part means the submodule was found in that store.
    """

    manifest: InManifest | None = None
    config: InLocalConfig | None = None
    modules: InModuleStore | None = None
    index: IndexEntry | None = None

    def __post_init__(self):
        if self.manifest is None and self.config is None and self.modules is None and self.index is None:
            raise ValueError("CombinedRecord needs at least one source record")

    @property
    def name(self) -> str | None:
        """Best-effort name: .gitmodules, then .git/config, then .git/modules."""
        for part in (self.manifest, self.config, self.modules):
            if part is not None:
                return part.name
        return None

    @property
    def path(self) -> str | None:
        """Best-effort path: .gitmodules, then the index, then core.worktree."""
        if self.manifest is not None and self.manifest.path is not None:
            return self.manifest.path
        if self.index is not None:
            return self.index.path
        if self.modules is not None and self.modules.worktree is not None:
            return self.modules.worktree
        return None

    @property
    def url(self) -> str | None:
        """Resolved URL from .git/config, falling back to .gitmodules."""
        if self.config is not None and self.config.url is not None:
            return self.config.url
        if self.manifest is not None:
            return self.manifest.url
        return None

    @property
    def branch(self) -> str | None:
        return self.manifest.branch if self.manifest is not None else None

    @property
    def index_commit(self) -> str | None:
        return self.index.sha if self.index is not None else None

    @property
    def index_commit_short(self) -> str | None:
        commit = self.index_commit
        return commit[:7] if commit else None

    @property
    def head_commit(self) -> str | None:
        return self.modules.head_sha if self.modules is not None else None

    @property
    def head_commit_short(self) -> str | None:
        commit = self.head_commit
        return commit[:7] if commit else None

    @property
    def presence(self) -> tuple[bool, bool, bool, bool]:
        """(manifest, config, modules, index) presence flags."""
        return (
            self.manifest is not None,
            self.config is not None,
            self.modules is not None,
            self.index is not None,
        )

    @property
    def is_empty(self) -> bool:
        """True once a repair has cleared every part."""
        return not any(self.presence)


@dataclass(frozen=True)
class ResolvedPaths:
    """Absolute paths implied by .gitmodules, the index and .git/modules.

    A path is None when the store has no path or the path does not exist.
    """

    manifest: Path | None = None
    index: Path | None = None
    modules: Path | None = None

    @property
    def consistent(self) -> bool:
        if self.manifest == self.index == self.modules:
            return True
        return self.manifest == self.index and self.modules is None


def _existing(path: Path) -> Path | None:
    try:
        return canonicalize(path)
    except CanonicalizeError:
        return None


def resolve_paths(record: CombinedRecord, context) -> ResolvedPaths:
    """Resolve the paths stored for ``record`` against the repository."""
    manifest_path = None
    if record.manifest is not None and record.manifest.path is not None:
        manifest_path = _existing(context.top_level_dir() / record.manifest.path)

    index_path = None
    if record.index is not None:
        index_path = _existing(context.top_level_dir() / record.index.path)

    modules_path = None
    if record.modules is not None and record.modules.worktree is not None:
        module_dir = context.git_dir() / "modules" / record.modules.name
        modules_path = _existing(module_dir / record.modules.worktree)

    return ResolvedPaths(manifest=manifest_path, index=index_path, modules=modules_path)
