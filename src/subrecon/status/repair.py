"""Bring a submodule back to a consistent state.

`fix` leaves a submodule in one of three states: healthy and initialized,
healthy but not initialized, or deleted from every store.

There is no transaction spanning `.gitmodules`, `.git/config`,
`.git/modules` and the index, so each removal step is best-effort: a
failing step is logged and recorded, and the remaining steps still run.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field

from subrecon.errors import SubreconError
from subrecon.status.classify import Issue, classify, diagnose, module_consistent
from subrecon.status.readers import read_manifest
from subrecon.status.records import CombinedRecord, resolve_paths

logger = logging.getLogger(__name__)


@dataclass
class RepairResult:
    """What `fix` did to one submodule."""

    name: str | None
    issue: Issue
    problems: list[str] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    final_issue: Issue = Issue.HEALTHY

    @property
    def changed(self) -> bool:
        return bool(self.actions)

    def summary(self) -> str:
        label = self.name or "<unknown>"
        if not self.actions:
            return f"{label}: nothing to fix"
        lines = [f"{label}: {'; '.join(self.problems) or self.issue.description}"]
        for action in self.actions:
            lines.append(f"  {action}")
        for error in self.errors:
            lines.append(f"  failed: {error}")
        return "\n".join(lines)


def _step(result: RepairResult, action: str, fn, *args) -> None:
    """Run one best-effort repair step."""
    result.actions.append(action)
    logger.info(action)
    try:
        fn(*args)
    except (SubreconError, OSError) as e:
        logger.warning("%s: failed: %s", action, e)
        result.errors.append(f"{action}: {e}")


def _stage_manifest(context, result: RepairResult) -> None:
    if (context.top_level_dir() / ".gitmodules").exists():
        _step(result, "Staging .gitmodules", context.add, ".gitmodules")


def remove_from_index(record: CombinedRecord, context, result: RepairResult) -> None:
    """Remove the gitlink from the index."""
    if record.index is not None:
        _step(result, f"Deleting `{record.index.path}` in index", context.remove_from_index, record.index.path)
        _stage_manifest(context, result)
    record.index = None


def remove_module_dir(record: CombinedRecord, context, result: RepairResult) -> None:
    """Delete `.git/modules/<name>` and the worktree it points to."""
    module = record.modules
    if module is not None:
        module_dir = context.git_dir() / "modules" / module.name
        if module_dir.exists():
            if module.worktree is not None:
                worktree = module_dir / module.worktree
                if worktree.exists():
                    _step(
                        result,
                        f"Deleting the worktree of submodule `{module.name}` at `{worktree}`",
                        shutil.rmtree,
                        worktree,
                    )
            _step(result, f"Deleting `.git/modules/{module.name}`", shutil.rmtree, module_dir)
    record.modules = None


def remove_local_config(record: CombinedRecord, context, result: RepairResult) -> None:
    """Delete the `[submodule "<name>"]` section of `.git/config`."""
    if record.config is not None:
        name = record.config.name
        _step(
            result,
            f"Deleting submodule `{name}` in .git/config",
            context.remove_config_section,
            context.git_dir() / "config",
            f"submodule.{name}",
        )
    record.config = None


def remove_from_manifest(record: CombinedRecord, context, result: RepairResult) -> None:
    """Delete the `[submodule "<name>"]` section of `.gitmodules` and stage it."""
    if record.manifest is not None:
        name = record.manifest.name
        if name not in read_manifest(context):
            # `git rm` of a submodule already dropped its section
            logger.debug("Submodule `%s` is already gone from .gitmodules", name)
            record.manifest = None
            return
        _step(
            result,
            f"Deleting submodule `{name}` in .gitmodules",
            context.remove_config_section,
            context.top_level_dir() / ".gitmodules",
            f"submodule.{name}",
        )
        _stage_manifest(context, result)
    record.manifest = None


def delete_submodule(record: CombinedRecord, context, result: RepairResult) -> None:
    """Remove every trace of the submodule."""
    remove_from_index(record, context, result)
    remove_module_dir(record, context, result)
    remove_local_config(record, context, result)
    remove_from_manifest(record, context, result)


def _reconcile_paths(record: CombinedRecord, context, result: RepairResult) -> None:
    paths = resolve_paths(record, context)
    if paths.consistent or record.index is None:
        # without an index entry the submodule gets deleted anyway
        return
    index_path = record.index.path
    if record.modules is not None and paths.index != paths.modules:
        remove_module_dir(record, context, result)
    if record.manifest is not None and paths.index != paths.manifest:
        name = record.manifest.name
        action = f"Setting path of submodule `{name}` in .gitmodules to `{index_path}`"
        errors_before = len(result.errors)
        _step(
            result,
            action,
            context.set_config,
            context.top_level_dir() / ".gitmodules",
            f"submodule.{name}.path",
            index_path,
        )
        if len(result.errors) == errors_before:
            record.manifest.path = index_path
            _stage_manifest(context, result)


def fix(record: CombinedRecord, context, prefer_delete: bool = False) -> RepairResult:
    """Repair one submodule in place.

    Steps, in order:
    1. an internally inconsistent `.git/modules` entry is deleted;
    2. if the paths disagree and the index has the submodule, the index
       path wins: a module dir elsewhere is deleted and the `.gitmodules`
       path is rewritten;
    3. the presence pattern is classified: residue is de-initialized,
       a submodule missing in the index or in `.gitmodules` is deleted.

    Args:
        record: Submodule to repair. Updated to reflect what was removed.
        context: GitContext of the repository.
        prefer_delete: Delete residue entirely instead of leaving the
            submodule declared but uninitialized.

    Returns:
        RepairResult listing the actions taken. A healthy record yields no
        actions and runs no mutating git command.
    """
    result = RepairResult(
        name=record.name,
        issue=classify(record),
        problems=diagnose(record, context),
    )

    if not module_consistent(record, context):
        remove_module_dir(record, context, result)

    _reconcile_paths(record, context, result)

    issue = classify(record)
    if issue is Issue.RESIDUE:
        if prefer_delete:
            logger.debug("Fix: deleting submodule with residue")
            delete_submodule(record, context, result)
        else:
            logger.debug("Fix: removing uninitialized submodule directory and config")
            remove_local_config(record, context, result)
            remove_module_dir(record, context, result)
    elif issue is Issue.MISSING_INDEX:
        logger.debug("Fix: deleting submodule missing in index")
        delete_submodule(record, context, result)
    elif issue is Issue.MISSING_MANIFEST:
        logger.debug("Fix: deleting submodule missing in .gitmodules")
        delete_submodule(record, context, result)

    result.final_issue = classify(record)
    return result
