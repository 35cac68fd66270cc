"""Read submodule traces from each store.

Readers only query; they never modify the repository. Each returns a dict
keyed by submodule name, except the index reader which is keyed by path
(the index knows no submodule names).
"""

from __future__ import annotations

import logging
from pathlib import Path

from subrecon.errors import InvalidIndexError, SubmoduleNotFoundError, SubreconError
from subrecon.git.context import GitContext
from subrecon.status.records import GITLINK_MODE, IndexEntry, InLocalConfig, InManifest, InModuleStore

logger = logging.getLogger(__name__)

_SUBMODULE_PREFIX = "submodule."
_MANIFEST_FIELDS = ("path", "url", "branch")


def _submodule_entries(context, config_path: Path) -> list[tuple[str, str]]:
    """Return `submodule.*` entries with the prefix stripped.

    `submodule.<name>.url` becomes ("<name>.url", value).
    """
    entries = []
    for key, value in context.get_config_by_regex(config_path, r"^submodule\."):
        if not key.startswith(_SUBMODULE_PREFIX):
            continue
        entries.append((key[len(_SUBMODULE_PREFIX):], value))
    return entries


def read_manifest(context) -> dict[str, InManifest]:
    """Read `.gitmodules` in the top level directory.

    Returns:
        Dict of name → InManifest. Empty when `.gitmodules` does not exist.

    Raises:
        InvalidConfigError: If git's key and value listings disagree.
    """
    path = context.top_level_dir() / ".gitmodules"
    if not path.is_file():
        logger.debug(".gitmodules does not exist")
        return {}

    manifest: dict[str, InManifest] = {}
    for key, value in _submodule_entries(context, path):
        name, _, field = key.rpartition(".")
        if not name or field not in _MANIFEST_FIELDS:
            continue
        entry = manifest.setdefault(name, InManifest(name=name))
        setattr(entry, field, value)
        logger.debug("Found submodule in .gitmodules: %s.%s = %s", name, field, value)
    return manifest


def read_local_config(context) -> dict[str, InLocalConfig]:
    """Read submodule URLs from `.git/config`.

    A config that cannot be read is treated as having no submodules.
    """
    path = context.git_dir() / "config"
    if not path.is_file():
        return {}
    try:
        entries = _submodule_entries(context, path)
    except SubreconError as e:
        logger.debug("Error reading submodules from .git/config, assuming none: %s", e)
        return {}

    config: dict[str, InLocalConfig] = {}
    for key, value in entries:
        name, _, field = key.rpartition(".")
        if not name or field != "url":
            continue
        config[name] = InLocalConfig(name=name, url=value)
        logger.debug("Found submodule in .git/config: %s", name)
    return config


def read_module(context, name: str) -> InModuleStore:
    """Read `.git/modules/<name>`.

    The module's own HEAD and git dir are queried inside its worktree; a
    failing query leaves that field None instead of failing the read.

    Raises:
        SubmoduleNotFoundError: If `.git/modules/<name>` does not exist.
    """
    module_dir = context.git_dir() / "modules" / name
    if not module_dir.exists():
        logger.debug("Module `%s` not found in .git/modules", name)
        raise SubmoduleNotFoundError(name)

    try:
        worktree = context.get_config(module_dir / "config", "core.worktree")
    except SubreconError as e:
        logger.debug("Cannot read core.worktree of module `%s`: %s", name, e)
        worktree = None
    if worktree is None:
        return InModuleStore(name=name)

    worktree_path = module_dir / worktree
    try:
        sub_git = GitContext(worktree_path)
    except SubreconError as e:
        logger.debug("Worktree of module `%s` is not accessible: %s", name, e)
        return InModuleStore(name=name, worktree=worktree)

    head_sha = _query(sub_git.head, name, "HEAD")
    git_dir = _query(sub_git.git_dir_raw, name, "git dir")
    if git_dir is not None:
        # rev-parse prints the git dir relative to where it ran
        git_dir = str(sub_git.working_dir / git_dir)
    return InModuleStore(name=name, worktree=worktree, head_sha=head_sha, git_dir=git_dir)


def _query(fn, name: str, what: str) -> str | None:
    try:
        return fn()
    except SubreconError as e:
        logger.debug("Cannot read %s of module `%s`: %s", what, name, e)
        return None


def read_module_store(context) -> dict[str, InModuleStore]:
    """Find every module under `.git/modules`.

    A directory that directly contains a `config` file is a module; any
    other directory is walked into, its name joined to the module name
    with `/`.
    """
    modules: dict[str, InModuleStore] = {}
    root = context.git_dir() / "modules"
    if not root.is_dir():
        logger.debug(".git/modules does not exist")
        return modules
    _walk_modules(context, None, root, modules)
    return modules


def _walk_modules(context, name: str | None, dir_path: Path, modules: dict[str, InModuleStore]) -> None:
    logger.debug("Scanning for git modules in `%s`", dir_path)
    if (dir_path / "config").is_file():
        if name is None:
            return
        try:
            modules[name] = read_module(context, name)
            logger.debug("Found git module `%s`", name)
        except SubreconError as e:
            logger.debug("Failed to read git module `%s`: %s", name, e)
        return

    try:
        children = sorted(dir_path.iterdir())
    except OSError as e:
        logger.debug("Failed to read directory `%s`: %s", dir_path, e)
        return
    for child in children:
        if not child.is_dir():
            continue
        child_name = child.name if name is None else f"{name}/{child.name}"
        _walk_modules(context, child_name, child, modules)


def read_index(context) -> dict[str, IndexEntry]:
    """List the gitlink entries of the index, keyed by path.

    Parses NUL-separated `git ls-files -z --stage` entries of the form
    "<mode> <sha> <stage>\\t<path>" and keeps mode 160000.

    Raises:
        InvalidIndexError: If a gitlink line is malformed.
    """
    entries: dict[str, IndexEntry] = {}
    for line in context.ls_files("--stage"):
        if not line.startswith(GITLINK_MODE + " "):
            continue
        meta, tab, path = line[len(GITLINK_MODE) + 1:].partition("\t")
        if not tab or not path:
            raise InvalidIndexError(f"missing path in output: {line!r}")
        sha = meta.split(" ", 1)[0]
        if not sha:
            raise InvalidIndexError(f"missing commit hash in output: {line!r}")
        entries[path] = IndexEntry(path=path, sha=sha)
        logger.debug("Found submodule in index: %s %s", sha, path)
    return entries
