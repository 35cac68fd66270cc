"""Run git commands against one repository.

GitContext is the only place that spawns processes. The core reads and
mutates the four submodule stores exclusively through it, so tests can
substitute a recording stub with the same methods.
"""

from __future__ import annotations

import enum
import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable

from subrecon.errors import (
    CanonicalizeError,
    CommandFailedError,
    ExitStatusError,
    GitNotInstalledError,
    InvalidConfigError,
    UnexpectedOutputError,
)

logger = logging.getLogger(__name__)


class OutputMode(enum.Enum):
    """Whether a command's stdout is echoed while it runs."""

    QUIET = "quiet"
    NORMAL = "normal"


def canonicalize(path: Path | str) -> Path:
    """Resolve a path that must exist to its absolute canonical form."""
    try:
        return Path(path).resolve(strict=True)
    except OSError as e:
        raise CanonicalizeError(str(path), e.strerror or str(e)) from e


def quote_arg(arg: str) -> str:
    """Quote an argument for display in a shell command hint."""
    if not arg:
        return "''"
    if " " in arg or "'" in arg:
        return f"'{arg}'"
    return arg


def _format_command(args: list[str]) -> str:
    return "git " + " ".join(f"'{a}'" if " " in a else a for a in args)


class GitContext:
    """Context for running git commands in one working directory.

    ``git_dir()`` and ``top_level_dir()`` are computed once and cached for
    the lifetime of the context.
    """

    def __init__(self, working_dir: Path | str, echo: Callable[[str], None] | None = None):
        if shutil.which("git") is None:
            raise GitNotInstalledError()
        self.working_dir = canonicalize(working_dir)
        self.echo = echo
        self._git_dir: Path | None = None
        self._top_level_dir: Path | None = None

    def __repr__(self) -> str:
        return f"GitContext({str(self.working_dir)!r})"

    # ── Process execution ────────────────────────────────────────────

    def run(
        self,
        args: list[str],
        mode: OutputMode = OutputMode.QUIET,
        null_separated: bool = False,
    ) -> list[str]:
        """Run git with ``args`` and return its stdout lines.

        With ``null_separated`` (quiet mode only) stdout is split on NUL
        instead of newlines, for `-z` output where paths are not quoted.

        Raises:
            CommandFailedError: If git could not be spawned.
            ExitStatusError: If git exited with a non-zero status.
        """
        command = _format_command(args)
        logger.debug("Running `%s` in %s", command, self.working_dir)

        try:
            if mode is OutputMode.QUIET:
                result = subprocess.run(
                    ["git", *args],
                    cwd=self.working_dir,
                    capture_output=True,
                    text=True,
                    encoding="utf-8",
                    errors="surrogateescape",
                )
                if null_separated:
                    lines = [item for item in result.stdout.split("\0") if item]
                else:
                    lines = result.stdout.splitlines()
                stderr = result.stderr.strip()
                returncode = result.returncode
            else:
                lines = []
                stderr = ""
                with subprocess.Popen(
                    ["git", *args],
                    cwd=self.working_dir,
                    stdout=subprocess.PIPE,
                    text=True,
                    encoding="utf-8",
                    errors="surrogateescape",
                ) as process:
                    for raw in process.stdout:
                        line = raw.rstrip("\n")
                        if self.echo is not None:
                            self.echo(line)
                        lines.append(line)
                    returncode = process.wait()
        except OSError as e:
            raise CommandFailedError(command, f"failed to spawn process: {e}") from e

        if stderr:
            logger.debug("git stderr: %s", stderr)
        logger.debug("Git command finished with exit status %d", returncode)
        if returncode != 0:
            raise ExitStatusError(command, returncode, stderr)
        return lines

    def _first_line(self, args: list[str]) -> str | None:
        output = self.run(args)
        return output[0] if output else None

    # ── Repository locations ─────────────────────────────────────────

    def git_dir_raw(self) -> str | None:
        """Return the raw output of `git rev-parse --git-dir`."""
        return self._first_line(["rev-parse", "--git-dir"])

    def git_dir(self) -> Path:
        """Return the absolute path to the .git directory."""
        if self._git_dir is None:
            raw = self.git_dir_raw()
            if raw is None:
                raise UnexpectedOutputError("git did not return the .git directory")
            self._git_dir = canonicalize(self.working_dir / raw)
        return self._git_dir

    def top_level_dir(self) -> Path:
        """Return the absolute path to the top level of the work tree."""
        if self._top_level_dir is None:
            raw = self._first_line(["rev-parse", "--show-toplevel"])
            if raw is None:
                raise UnexpectedOutputError("git did not return the top level directory")
            self._top_level_dir = canonicalize(self.working_dir / raw)
        return self._top_level_dir

    def top_level_switch(self) -> str | None:
        """Return the `-C` argument that reaches the top level from the cwd.

        None when the process already runs in the top level directory.
        """
        top_level = self.top_level_dir()
        try:
            cwd = Path.cwd().resolve()
        except OSError:
            return quote_arg(str(top_level))
        if cwd == top_level:
            return None
        return quote_arg(os.path.relpath(top_level, cwd))

    def lock(self, lock_file: str, poll_interval: float = 1.0, notify=None):
        """Return a RepoLock on a file inside the .git directory."""
        from subrecon.git.lock import RepoLock

        return RepoLock(self.git_dir() / lock_file, poll_interval=poll_interval, notify=notify)

    # ── Queries ──────────────────────────────────────────────────────

    def version(self) -> str | None:
        """Return the first line of `git --version`."""
        return self._first_line(["--version"])

    def head(self) -> str | None:
        """Return the commit checked out in this repository."""
        return self._first_line(["rev-parse", "HEAD"])

    def describe(self, commit: str) -> str | None:
        """Run `git describe --all <commit>`; None when it fails."""
        try:
            return self._first_line(["describe", "--all", commit])
        except (ExitStatusError, CommandFailedError):
            return None

    def ls_files(self, *extra_args: str) -> list[str]:
        """Run `git ls-files -z` from the top level directory.

        Entries are NUL-separated, so paths come back verbatim instead of
        C-quoted (`core.quotePath`).
        """
        return self.run(
            ["-C", str(self.top_level_dir()), "ls-files", "-z", *extra_args],
            null_separated=True,
        )

    def get_config(self, config_path: Path | str, key: str) -> str | None:
        """Return the value of ``key`` in a config file, None if unset."""
        try:
            return self._first_line(["config", "-f", str(config_path), "--get", key])
        except ExitStatusError as e:
            if e.returncode == 1:
                return None
            raise

    def get_config_by_regex(self, config_path: Path | str, pattern: str) -> list[tuple[str, str]]:
        """Return (key, value) pairs of keys matching ``pattern`` in a config file.

        Keys and values are correlated with two queries: `--get-regexp`
        prints "key value" lines, `--name-only --get-regexp` prints the
        keys alone, so a value never has to be split from its key by
        guessing at whitespace.

        Raises:
            InvalidConfigError: If the two listings do not line up.
        """
        config_path = str(config_path)
        try:
            names_and_values = self.run(["config", "-f", config_path, "--get-regexp", pattern])
            names = self.run(
                ["config", "-f", config_path, "--name-only", "--get-regexp", pattern]
            )
        except ExitStatusError as e:
            # exit status 1: no key matched
            if e.returncode == 1:
                return []
            raise

        if len(names) != len(names_and_values):
            raise InvalidConfigError(
                f"{len(names)} keys but {len(names_and_values)} values in git output"
            )
        pairs = []
        for name, name_and_value in zip(names, names_and_values):
            if not name_and_value.startswith(name):
                raise InvalidConfigError("unexpected config key mismatch in git output")
            pairs.append((name.strip(), name_and_value[len(name):].strip()))
        return pairs

    # ── Mutations ────────────────────────────────────────────────────

    def set_config(self, config_path: Path | str, key: str, value: str | None) -> None:
        """Set ``key`` in a config file, or unset it when ``value`` is None."""
        args = ["config", "-f", str(config_path)]
        if value is None:
            args += ["--unset", key]
        else:
            args += [key, value]
        self.run(args)

    def remove_config_section(self, config_path: Path | str, section: str) -> None:
        self.run(["config", "-f", str(config_path), "--remove-section", section])

    def add(self, path: str) -> None:
        """Run `git add <path>` from the top level directory."""
        self.run(["-C", str(self.top_level_dir()), "add", "--", path])

    def remove_from_index(self, path: str) -> None:
        """Remove ``path`` from the index, deleting the work tree copy if git allows.

        Falls back to `git rm --cached` when git refuses to remove the
        work tree (for example a submodule with its own .git directory).
        """
        top_level = str(self.top_level_dir())
        try:
            self.run(["-C", top_level, "rm", "-f", "--", path])
        except ExitStatusError:
            logger.debug("`git rm` refused `%s`, removing from the index only", path)
            self.run(["-C", top_level, "rm", "--cached", "-f", "--", path])

    # ── Submodule verbs ──────────────────────────────────────────────

    def _submodule(self, args: list[str]) -> None:
        self.run(["-C", str(self.top_level_dir()), "submodule", *args], OutputMode.NORMAL)

    def submodule_deinit(self, path: str | None = None, force: bool = False) -> None:
        args = ["deinit"]
        if force:
            args.append("--force")
        args += ["--", path] if path is not None else ["--all"]
        self._submodule(args)

    def submodule_sync(self, path: str | None = None, recursive: bool = False) -> None:
        args = ["sync"]
        if recursive:
            args.append("--recursive")
        if path is not None:
            args += ["--", path]
        self._submodule(args)

    def submodule_update(
        self,
        path: str | None = None,
        init: bool = False,
        recursive: bool = False,
        force: bool = False,
        remote: bool = False,
    ) -> None:
        args = ["update"]
        if init:
            args.append("--init")
        if recursive:
            args.append("--recursive")
        if force:
            args.append("--force")
        if remote:
            args.append("--remote")
        if path is not None:
            args += ["--", path]
        self._submodule(args)

    def submodule_add(
        self,
        url: str,
        path: str | None = None,
        branch: str | None = None,
        name: str | None = None,
        depth: int | None = None,
        force: bool = False,
    ) -> None:
        args = ["add"]
        if force:
            args.append("--force")
        if branch:
            args += ["--branch", branch]
        if name:
            args += ["--name", name]
        if depth is not None:
            args += ["--depth", str(depth)]
        args += ["--", url]
        if path:
            args.append(path)
        self._submodule(args)

    def submodule_set_branch(self, path: str, branch: str | None) -> None:
        """Set the update branch, or reset it to the default when None."""
        args = ["set-branch"]
        args += ["--branch", branch] if branch else ["--default"]
        args += ["--", path]
        self._submodule(args)

    def submodule_set_url(self, path: str, url: str) -> None:
        self._submodule(["set-url", "--", path, url])
