"""Tests for the git layer: command runner, config queries, lock, version."""

import threading
import time

import pytest

from conftest import git
from subrecon.errors import CanonicalizeError, ExitStatusError, LockFailedError
from subrecon.git.context import GitContext, OutputMode, canonicalize, quote_arg
from subrecon.git.lock import RepoLock
from subrecon.git.version import (
    SUPPORTED_GIT_VERSIONS,
    is_supported,
    parse_git_version,
    supported_versions_text,
)


class TestGitContext:
    def test_missing_directory(self, tmp_path):
        with pytest.raises(CanonicalizeError):
            GitContext(tmp_path / "nope")

    def test_locations_from_subdirectory(self, superproject):
        sub = superproject / "a" / "b"
        sub.mkdir(parents=True)
        context = GitContext(sub)
        assert context.top_level_dir() == superproject.resolve()
        assert context.git_dir() == (superproject / ".git").resolve()

    def test_failing_command(self, context):
        with pytest.raises(ExitStatusError) as exc:
            context.run(["rev-parse", "--verify", "no-such-ref"])
        assert exc.value.returncode != 0

    def test_normal_mode_echoes(self, superproject):
        echoed = []
        context = GitContext(superproject, echo=echoed.append)
        lines = context.run(["log", "--format=%s"], OutputMode.NORMAL)
        assert lines == ["init super"]
        assert echoed == ["init super"]

    def test_ls_files_paths_are_not_quoted(self, context, superproject):
        names = ["café", 'say "hi"', "tab\there"]
        for name in names:
            (superproject / name).write_text("x\n")
        git(superproject, "add", "--", *names)
        assert sorted(context.ls_files()) == sorted(["README", *names])

    def test_describe_unknown_commit(self, context):
        assert context.describe("0" * 40) is None


class TestConfigQueries:
    def test_get_config(self, context, superproject):
        path = superproject / "test.cfg"
        git(superproject, "config", "-f", str(path), "a.b", "value")
        assert context.get_config(path, "a.b") == "value"
        assert context.get_config(path, "a.missing") is None

    def test_get_by_regex_keeps_spaces_in_values(self, context, superproject):
        path = superproject / "test.cfg"
        git(superproject, "config", "-f", str(path), "submodule.my lib.path", "some dir/lib")
        git(superproject, "config", "-f", str(path), "submodule.my lib.url", "../lib")
        pairs = context.get_config_by_regex(path, r"^submodule\.")
        assert pairs == [
            ("submodule.my lib.path", "some dir/lib"),
            ("submodule.my lib.url", "../lib"),
        ]

    def test_get_by_regex_no_match(self, context, superproject):
        path = superproject / "test.cfg"
        git(superproject, "config", "-f", str(path), "core.bare", "false")
        assert context.get_config_by_regex(path, r"^submodule\.") == []

    def test_set_unset_and_remove_section(self, context, superproject):
        path = superproject / "test.cfg"
        context.set_config(path, "submodule.lib.path", "lib")
        context.set_config(path, "submodule.lib.url", "u")
        context.set_config(path, "submodule.lib.url", None)
        assert context.get_config_by_regex(path, r"^submodule\.") == [("submodule.lib.path", "lib")]
        context.remove_config_section(path, "submodule.lib")
        assert context.get_config_by_regex(path, r"^submodule\.") == []


class TestHelpers:
    def test_quote_arg(self):
        assert quote_arg("lib") == "lib"
        assert quote_arg("my lib") == "'my lib'"
        assert quote_arg("") == "''"

    def test_canonicalize(self, tmp_path):
        assert canonicalize(tmp_path / "." / "") == tmp_path.resolve()
        with pytest.raises(CanonicalizeError):
            canonicalize(tmp_path / "missing")


class TestRepoLock:
    def test_acquire_and_release(self, tmp_path):
        path = tmp_path / "test.lock"
        with RepoLock(path) as lock:
            assert lock.held
            assert path.exists()
        assert not lock.held
        assert not path.exists()

    def test_released_on_error(self, tmp_path):
        path = tmp_path / "test.lock"
        with pytest.raises(RuntimeError):
            with RepoLock(path):
                raise RuntimeError("boom")
        assert not path.exists()

    def test_waits_for_existing_lock(self, tmp_path):
        path = tmp_path / "test.lock"
        path.write_text("")
        messages = []

        def release_later():
            time.sleep(0.2)
            path.unlink()

        thread = threading.Thread(target=release_later)
        thread.start()
        try:
            with RepoLock(path, poll_interval=0.02, notify=messages.append):
                assert path.exists()
        finally:
            thread.join()
        assert len(messages) == 1
        assert str(path) in messages[0]

    def test_unwritable_location(self, tmp_path):
        with pytest.raises(LockFailedError):
            RepoLock(tmp_path / "missing-dir" / "test.lock").acquire()

    def test_lock_inside_git_dir(self, context):
        lock = context.lock("subrecon.lock", poll_interval=0.05)
        assert lock.path == context.git_dir() / "subrecon.lock"


class TestVersion:
    @pytest.mark.parametrize("output,expected", [
        ("git version 2.45.1", (2, 45, 1)),
        ("git version 2.43.0.windows.1", (2, 43, 0)),
        ("git version 2.39.3 (Apple Git-146)", (2, 39, 3)),
        ("version 2.45.1", None),
        ("git version two", None),
    ])
    def test_parse(self, output, expected):
        assert parse_git_version(output) == expected

    @pytest.mark.parametrize("version,supported", [
        ((2, 45, 1), True),
        ((3, 0, 0), True),
        ((2, 44, 1), True),
        ((2, 44, 0), False),
        ((2, 43, 4), True),
        ((2, 42, 9), False),
    ])
    def test_supported(self, version, supported):
        assert is_supported(version) is supported

    def test_text_lists_requirements(self):
        assert supported_versions_text() == ", ".join(SUPPORTED_GIT_VERSIONS)
