"""Render submodule status as text lines.

Lines carry a level (info, warn, error, hint) so the caller decides where
and how they are printed.
"""

from __future__ import annotations

from dataclasses import dataclass

from subrecon.errors import SubreconError
from subrecon.git.context import GitContext, quote_arg
from subrecon.status.classify import diagnose
from subrecon.status.records import CombinedRecord

INFO = "info"
WARN = "warn"
ERROR = "error"
HINT = "hint"


@dataclass(frozen=True)
class Line:
    level: str
    text: str


def _describe(context, path: str | None, commit: str) -> str | None:
    """`git describe --all` inside the submodule worktree, if there is one."""
    if path is None:
        return None
    try:
        sub_git = GitContext(context.top_level_dir() / path)
    except SubreconError:
        return None
    return sub_git.describe(commit)


def _git_c(context) -> str:
    switch = context.top_level_switch()
    return f"git -C {switch}" if switch else "git"


def render_record(
    record: CombinedRecord,
    context,
    long: bool = False,
    dir_switch: str = "",
) -> list[Line]:
    """Render one submodule.

    Args:
        record: Submodule to render.
        context: GitContext of the repository.
        long: Multi-line form with URL, branch and command hints.
        dir_switch: `--dir ...` to repeat in subrecon command hints.
    """
    lines: list[Line] = []
    current: list[tuple[str, str]] = []

    def put(level: str, text: str) -> None:
        current.append((level, text))

    def end_line() -> None:
        if current:
            # a line takes the most severe level of its parts
            level = WARN if any(lv == WARN for lv, _ in current) else current[0][0]
            lines.append(Line(level, "".join(text for _, text in current)))
            current.clear()

    name = f'"{record.name}"' if record.name is not None else "<unknown>"
    path = record.path

    if long:
        lines.append(Line(INFO, f"submodule {name}:"))
        if record.url is not None:
            lines.append(Line(INFO, f"  from {record.url}"))
        if record.branch is not None:
            lines.append(Line(INFO, f"  update branch is {record.branch}"))
    else:
        put(INFO, f"{name:<15}")

    index_commit = record.index_commit
    if index_commit is not None:
        put(INFO, f"  {index_commit[:7]}" if long else f" at {index_commit[:7]}")
        if path is not None:
            put(INFO, f' "{path}"')
            describe = _describe(context, path, index_commit)
            if describe:
                put(INFO, f" ({describe})")
        else:
            put(WARN, " <unknown path>")
        if long:
            end_line()

    head_commit = record.head_commit
    if head_commit is not None:
        if index_commit is not None and head_commit != index_commit:
            head_short = head_commit[:7]
            describe = _describe(context, path, head_commit)
            suffix = f" ({describe})" if describe else ""
            if long:
                end_line()
                lines.append(Line(WARN, f"! checked out {head_short}{suffix}"))
                if path is not None:
                    quoted = quote_arg(path)
                    lines.append(Line(HINT, (
                        f"    run `{_git_c(context)} submodule update -- {quoted}` to revert this "
                        f"submodule to index (`subrecon{dir_switch} install` to revert all)"
                    )))
                    lines.append(Line(HINT, (
                        f"    run `{_git_c(context)} add {quoted}` to update the index "
                        f"to {head_short}{suffix}"
                    )))
                else:
                    lines.append(Line(HINT, (
                        f"    run `subrecon{dir_switch} install` to revert all submodules to index"
                    )))
            else:
                put(WARN, f", checked out {head_short}{suffix}")
    elif path is not None:
        if long:
            end_line()
            lines.append(Line(WARN, "! not initialized"))
            lines.append(Line(HINT, f"    run `subrecon{dir_switch} install` to initialize all submodules"))
            lines.append(Line(HINT, (
                f"    run `{_git_c(context)} submodule update --init -- {quote_arg(path)}` "
                "to initialize only this submodule"
            )))
        else:
            put(WARN, ", not initialized")

    end_line()

    for problem in diagnose(record, context):
        lines.append(Line(ERROR, f"! {problem}"))
        lines.append(Line(HINT, f"    run `subrecon{dir_switch} status --fix` to fix all submodules"))

    if long:
        lines.append(Line(INFO, ""))
    return lines


def render_status(status, context, long: bool = False, dir_switch: str = "") -> list[Line]:
    """Render every submodule of a Status."""
    records = status.flattened()
    if not records:
        return [Line(INFO, "No submodules found")]
    lines: list[Line] = []
    for record in records:
        lines.extend(render_record(record, context, long=long, dir_switch=dir_switch))
    return lines
