"""The status, install, update and remove workflows.

Each workflow takes the repository lock before reading any store and
holds it until it returns. Workflows that change submodules first check
that every submodule is healthy, so they never build on a broken state.
"""

from __future__ import annotations

import logging

from subrecon.config import Settings
from subrecon.console import Console
from subrecon.errors import NeedFixError, SubreconError
from subrecon.git.version import is_supported, parse_git_version, supported_versions_text
from subrecon.status import repair
from subrecon.status.classify import classify, is_healthy
from subrecon.status.merge import Status, read_status
from subrecon.status.render import render_record, render_status

logger = logging.getLogger(__name__)


def _lock(context, settings: Settings, console: Console):
    return context.lock(
        settings.lock_file,
        poll_interval=settings.lock_poll_interval,
        notify=console.warn,
    )


def _print_lines(console: Console, lines) -> None:
    for line in lines:
        console.emit(line.level, line.text)


def _require_healthy(context, console: Console, status: Status, dir_switch: str) -> None:
    """Print the unhealthy submodules and stop when there are any."""
    unhealthy = [r for r in status.flattened() if not is_healthy(r, context)]
    if not unhealthy:
        return
    console.error("There are issues with the submodules in the repository:")
    for record in unhealthy:
        _print_lines(console, render_record(record, context, long=True, dir_switch=dir_switch))
    raise NeedFixError(fatal=True)


def git_version_info(context) -> dict:
    """Report the installed git version against the supported versions."""
    output = context.version() or ""
    version = parse_git_version(output)
    return {
        "supported_versions": supported_versions_text(),
        "version_output": output,
        "supported": version is not None and is_supported(version),
    }


def run_status(
    context,
    settings: Settings,
    console: Console,
    include_all: bool = False,
    fix: bool = False,
    git: bool = False,
    long: bool = False,
    prefer_delete: bool = False,
    dir_switch: str = "",
) -> dict:
    """Show, or with ``fix`` repair, the state of every submodule.

    Returns:
        Dict with: records (list of CombinedRecord), repairs (list of
        RepairResult, empty unless fixing), healthy.

    Raises:
        NeedFixError: (non-fatal) when showing status and some submodule
            needs fixing.
    """
    if git:
        info = git_version_info(context)
        console.info(f"The officially supported git versions are: {info['supported_versions']}")
        console.info("Your `git --version` is:")
        console.info(info["version_output"])
        if not info["supported"]:
            console.warn("This git version is not officially supported.")
        return {"records": [], "repairs": [], "healthy": True, "git": info}

    with _lock(context, settings, console):
        status = read_status(context, include_all=include_all)
        records = status.flattened()

        if fix:
            repairs = [repair.fix(record, context, prefer_delete=prefer_delete) for record in records]
            changed = [r for r in repairs if r.changed]
            for result in changed:
                console.info(result.summary())
            if not changed:
                console.info("All submodules are healthy, nothing to fix.")
            healthy = all(not r.errors for r in repairs)
            return {"records": records, "repairs": repairs, "healthy": healthy}

        _print_lines(console, render_status(status, context, long=long, dir_switch=dir_switch))
        healthy = status.is_healthy(context)
        if not healthy:
            raise NeedFixError(fatal=False)
        return {"records": records, "repairs": [], "healthy": True}


def run_install(
    context,
    settings: Settings,
    console: Console,
    url: str | None = None,
    path: str | None = None,
    branch: str | None = None,
    name: str | None = None,
    depth: int | None = None,
    force: bool = False,
    no_recursive: bool = False,
    dir_switch: str = "",
) -> dict:
    """Install all submodules, or add a new one from ``url``.

    Returns:
        Dict with: added (name of the added submodule or None), path.
    """
    if url is None and (path or branch or name or depth is not None):
        raise ValueError("path, --branch, --name and --depth require a url")
    if depth is not None and depth <= 0:
        raise ValueError("--depth must be positive")

    recursive = not no_recursive
    with _lock(context, settings, console):
        status = read_status(context)
        _require_healthy(context, console, status, dir_switch)

        if url is None:
            if not status.flattened():
                console.info("No submodules to install")
                return {"added": None, "path": None}
            context.submodule_sync(recursive=recursive)
            context.submodule_update(init=True, recursive=recursive, force=force)
            return {"added": None, "path": None}

        context.submodule_add(url, path=path, branch=branch, name=name, depth=depth, force=force)

        added = read_status(context)
        record = added.records.get(name) if name else None
        if record is None:
            for candidate in added.flattened():
                if candidate.manifest is not None and candidate.manifest.url == url:
                    if path is None or candidate.path == path:
                        record = candidate
                        break
        if record is None or record.path is None:
            raise SubreconError(f"submodule added from `{url}` not found in .gitmodules")

        context.submodule_update(record.path, init=True, recursive=recursive, force=force)
        console.info(f"Installed submodule `{record.name}` at `{record.path}`")
        return {"added": record.name, "path": record.path}


def run_update(
    context,
    settings: Settings,
    console: Console,
    name: str | None = None,
    branch: str | None = None,
    unset_branch: bool = False,
    url: str | None = None,
    force: bool = False,
    bypass: bool = False,
    dir_switch: str = "",
) -> dict:
    """Update submodules from their remote branch.

    With ``name``, the submodule's branch or URL can be changed first.

    Returns:
        Dict with: updated (list of names, or ["*"] for all).
    """
    if name is None and (branch or unset_branch or url):
        raise ValueError("--branch, --unset-branch and --url require a submodule name")
    if branch and unset_branch:
        raise ValueError("--branch and --unset-branch cannot be used together")

    with _lock(context, settings, console):
        status = read_status(context)
        if not bypass:
            _require_healthy(context, console, status, dir_switch)

        if name is None:
            context.submodule_sync()
            context.submodule_update(init=True, remote=True, force=force)
            return {"updated": ["*"]}

        record = status.find(name)
        path = record.path
        if path is None:
            raise SubreconError(f"submodule `{name}` has no path")

        if branch:
            context.submodule_set_branch(path, branch)
        elif unset_branch:
            context.submodule_set_branch(path, None)
        if url:
            context.submodule_set_url(path, url)
            context.submodule_sync(path)
        context.submodule_update(path, init=True, remote=True, force=force)
        return {"updated": [name]}


def run_remove(
    context,
    settings: Settings,
    console: Console,
    name: str,
    force: bool = False,
    force_deinit: bool = False,
    dir_switch: str = "",
) -> dict:
    """Remove a submodule from every store.

    The submodule is de-initialized first; with ``force`` a failing
    de-initialization (or an unhealthy submodule) does not stop the removal.

    Returns:
        Dict with: removed (name), repair (RepairResult of the deletion).
    """
    with _lock(context, settings, console):
        status = read_status(context)
        record = status.find(name)

        if not force and not is_healthy(record, context):
            console.error(f"Submodule `{name}` is not in a consistent state:")
            _print_lines(console, render_record(record, context, long=True, dir_switch=dir_switch))
            raise NeedFixError(fatal=True)

        if record.modules is not None and record.path is not None:
            try:
                context.submodule_deinit(record.path, force=force_deinit)
            except SubreconError as e:
                if not force:
                    raise
                logger.warning("Failed to deinit submodule `%s`, removing anyway: %s", name, e)
            # deinit rewrote .git/config; read the stores again
            record = read_status(context).find(name)

        result = repair.RepairResult(name=record.name, issue=classify(record))
        repair.delete_submodule(record, context, result)
        for error in result.errors:
            console.warn(f"warning: {error}")
        console.info(f"Removed submodule `{name}`")
        return {"removed": name, "repair": result}
