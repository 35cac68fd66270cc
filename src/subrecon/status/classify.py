"""Decide whether a submodule's traces are consistent."""

import enum
from pathlib import Path

from subrecon.git.context import canonicalize
from subrecon.status.records import CombinedRecord, resolve_paths


class Issue(enum.Enum):
    """What is wrong with the combination of stores a submodule is found in."""

    HEALTHY = "none"
    RESIDUE = "has residue from removal"
    MISSING_INDEX = "missing in index"
    MISSING_MANIFEST = "not in .gitmodules"

    @property
    def description(self) -> str:
        return self.value


def classify(record: CombinedRecord) -> Issue:
    """Classify the (manifest, config, modules, index) presence pattern.

    Patterns are checked in order; the first match wins.
    """
    pattern = record.presence
    if pattern == (False, False, False, False):
        return Issue.HEALTHY
    if pattern == (True, True, True, True):
        return Issue.HEALTHY
    # declared but not initialized
    if pattern == (True, False, False, True):
        return Issue.HEALTHY
    # left over after the submodule was deinitialized
    if pattern in ((True, True, False, True), (True, False, True, True)):
        return Issue.RESIDUE

    has_manifest, _, _, has_index = pattern
    if not has_index:
        return Issue.MISSING_INDEX
    # the only pattern left here is `not has_manifest`
    return Issue.MISSING_MANIFEST


def module_consistent(record: CombinedRecord, context) -> bool:
    """Check the .git/modules entry against itself and the repository.

    - a worktree implies both HEAD and git dir could be read from it
    - the git dir must be `<git-dir>/modules/<name>`

    Raises:
        CanonicalizeError: If the reported git dir does not exist.
    """
    module = record.modules
    if module is None:
        return True
    if module.worktree is not None and (module.head_sha is None or module.git_dir is None):
        return False
    if module.git_dir is not None:
        expected = context.git_dir() / "modules" / module.name
        if canonicalize(Path(module.git_dir)) != expected:
            return False
    return True


def is_healthy(record: CombinedRecord, context) -> bool:
    """True when nothing about the record needs `fix`."""
    if not module_consistent(record, context):
        return False
    if not resolve_paths(record, context).consistent:
        return False
    return classify(record) is Issue.HEALTHY


def diagnose(record: CombinedRecord, context) -> list[str]:
    """Describe each problem of the record, in the order `fix` handles them."""
    problems = []
    if not module_consistent(record, context):
        problems.append("submodule has residue")
    if not resolve_paths(record, context).consistent:
        problems.append("inconsistent paths")
    issue = classify(record)
    if issue is not Issue.HEALTHY:
        problems.append(f"inconsistent state ({issue.description})")
    return problems
