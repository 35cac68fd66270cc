"""Tests for the consistency rules: presence table, module checks, diagnosis."""

import itertools
from types import SimpleNamespace

import pytest

from subrecon.errors import CanonicalizeError
from subrecon.status.classify import Issue, classify, diagnose, is_healthy, module_consistent
from subrecon.status.records import (
    CombinedRecord,
    IndexEntry,
    InLocalConfig,
    InManifest,
    InModuleStore,
)

SHA = "c" * 40

EXPECTED = {
    (False, False, False, False): Issue.HEALTHY,
    (True, True, True, True): Issue.HEALTHY,
    (True, False, False, True): Issue.HEALTHY,
    (True, True, False, True): Issue.RESIDUE,
    (True, False, True, True): Issue.RESIDUE,
}


def expected_issue(pattern):
    if pattern in EXPECTED:
        return EXPECTED[pattern]
    if not pattern[3]:
        return Issue.MISSING_INDEX
    return Issue.MISSING_MANIFEST


def make_record(pattern):
    record = CombinedRecord(manifest=InManifest("lib"))
    record.manifest = InManifest("lib", path="lib") if pattern[0] else None
    record.config = InLocalConfig("lib", url="u") if pattern[1] else None
    record.modules = InModuleStore("lib") if pattern[2] else None
    record.index = IndexEntry("lib", SHA) if pattern[3] else None
    return record


def fake_context(top):
    return SimpleNamespace(top_level_dir=lambda: top, git_dir=lambda: top / ".git")


@pytest.fixture
def repo_dirs(tmp_path):
    top = tmp_path.resolve()
    (top / "lib").mkdir()
    module_dir = top / ".git" / "modules" / "lib"
    module_dir.mkdir(parents=True)
    return top, module_dir


class TestPresenceTable:
    @pytest.mark.parametrize("pattern", list(itertools.product([False, True], repeat=4)))
    def test_every_pattern(self, pattern):
        assert classify(make_record(pattern)) is expected_issue(pattern)

    def test_descriptions(self):
        assert Issue.RESIDUE.description == "has residue from removal"
        assert Issue.MISSING_INDEX.description == "missing in index"
        assert Issue.MISSING_MANIFEST.description == "not in .gitmodules"


class TestModuleConsistent:
    def test_no_module_is_consistent(self, repo_dirs):
        top, _ = repo_dirs
        record = CombinedRecord(manifest=InManifest("lib"))
        assert module_consistent(record, fake_context(top))

    def test_module_without_worktree(self, repo_dirs):
        top, _ = repo_dirs
        record = CombinedRecord(modules=InModuleStore("lib"))
        assert module_consistent(record, fake_context(top))

    def test_worktree_without_head(self, repo_dirs):
        top, module_dir = repo_dirs
        record = CombinedRecord(
            modules=InModuleStore("lib", worktree="../../../lib", git_dir=str(module_dir)),
        )
        assert not module_consistent(record, fake_context(top))

    def test_git_dir_must_be_module_dir(self, repo_dirs):
        top, module_dir = repo_dirs
        good = InModuleStore("lib", worktree="../../../lib", head_sha=SHA, git_dir=str(module_dir))
        assert module_consistent(CombinedRecord(modules=good), fake_context(top))

        bad = InModuleStore("lib", worktree="../../../lib", head_sha=SHA, git_dir=str(top / ".git"))
        assert not module_consistent(CombinedRecord(modules=bad), fake_context(top))

    def test_missing_git_dir_raises(self, repo_dirs):
        top, _ = repo_dirs
        module = InModuleStore("lib", worktree="../../../lib", head_sha=SHA, git_dir=str(top / "nope"))
        with pytest.raises(CanonicalizeError):
            module_consistent(CombinedRecord(modules=module), fake_context(top))


class TestDiagnose:
    def test_healthy_record(self, repo_dirs):
        top, module_dir = repo_dirs
        record = CombinedRecord(
            manifest=InManifest("lib", path="lib"),
            config=InLocalConfig("lib", url="u"),
            modules=InModuleStore("lib", worktree="../../../lib", head_sha=SHA, git_dir=str(module_dir)),
            index=IndexEntry("lib", SHA),
        )
        context = fake_context(top)
        assert is_healthy(record, context)
        assert diagnose(record, context) == []

    def test_problems_in_fix_order(self, repo_dirs):
        top, _ = repo_dirs
        (top / "elsewhere").mkdir()
        record = CombinedRecord(
            manifest=InManifest("lib", path="elsewhere"),
            modules=InModuleStore("lib", worktree="../../../lib", head_sha=SHA, git_dir=str(top / ".git")),
        )
        context = fake_context(top)
        assert not is_healthy(record, context)
        assert diagnose(record, context) == [
            "submodule has residue",
            "inconsistent paths",
            "inconsistent state (missing in index)",
        ]
