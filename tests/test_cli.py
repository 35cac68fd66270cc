"""Tests for the command line interface.

Covers:
- Parser construction and argument parsing
- Exit codes for healthy, unhealthy and failing runs
- Console output levels
"""

import argparse
import io

import pytest

from conftest import git
from subrecon.cli import _report_fatal, build_parser, main
from subrecon.cli.common import dir_switch
from subrecon.console import Console
from subrecon.errors import SubmoduleNotFoundError


class TestParser:
    def test_build_parser_returns_parser(self):
        assert isinstance(build_parser(), argparse.ArgumentParser)

    def test_no_args_shows_help(self, capsys):
        assert main([]) == 0
        assert "subrecon" in capsys.readouterr().out

    def test_global_options(self):
        args = build_parser().parse_args(["-C", "repo", "--quiet", "status", "-a", "--fix", "--delete"])
        assert args.dir == "repo"
        assert args.quiet
        assert args.all and args.fix and args.delete

    def test_install_positionals(self):
        args = build_parser().parse_args(["install", "https://example.com/x.git", "vendor/x", "--depth", "1"])
        assert (args.url, args.path, args.depth) == ("https://example.com/x.git", "vendor/x", 1)

    def test_depth_must_be_positive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["install", "u", "--depth", "0"])

    def test_branch_options_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["update", "lib", "--branch", "main", "--unset-branch"])

    def test_dir_default_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SUBRECON_DIR", str(tmp_path))
        assert build_parser().parse_args(["status"]).dir == str(tmp_path)

    def test_dir_switch(self):
        assert dir_switch(".") == ""
        assert dir_switch("sub/repo") == " --dir sub/repo"


class TestExitCodes:
    def test_healthy_status(self, with_submodule, capsys):
        assert main(["--dir", str(with_submodule), "status"]) == 0
        assert '"lib"' in capsys.readouterr().out

    def test_unhealthy_status(self, with_submodule, capsys):
        gitmodules = with_submodule / ".gitmodules"
        git(with_submodule, "config", "-f", str(gitmodules), "submodule.ghost.path", "ghost")
        assert main(["--dir", str(with_submodule), "status"]) == 1
        assert "status --fix" in capsys.readouterr().out

        assert main(["--dir", str(with_submodule), "status", "--fix"]) == 0
        assert main(["--dir", str(with_submodule), "status"]) == 0

    def test_fatal_error(self, tmp_path, git_env, capsys):
        assert main(["--dir", str(tmp_path / "missing"), "status"]) == 2
        assert "subrecon: fatal:" in capsys.readouterr().err

    def test_invalid_arguments_are_fatal(self, superproject, capsys):
        assert main(["--dir", str(superproject), "update", "--branch", "main"]) == 2
        assert "require a submodule name" in capsys.readouterr().err

    def test_hint_printed(self, superproject, upstream, capsys):
        git(superproject, "submodule", "add", "-q", "--name", "up", str(upstream), "deps/up")
        assert main(["--dir", str(superproject), "remove", "deps/up"]) == 2
        err = capsys.readouterr().err
        assert "cannot find module `deps/up`" in err
        assert "hint:" in err

    def test_fatal_error_shown_when_quiet(self, tmp_path, git_env, capsys):
        assert main(["--quiet", "--dir", str(tmp_path / "missing"), "status"]) == 2
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.startswith("subrecon: fatal: ")

    def test_bad_settings_file(self, superproject, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("- not a mapping\n")
        assert main(["--config", str(path), "--dir", str(superproject), "status"]) == 2


class TestConsole:
    def test_quiet_hides_info_only(self):
        out, err = io.StringIO(), io.StringIO()
        console = Console(quiet=True, out=out, err=err)
        console.info("info")
        console.hint("hint")
        console.warn("warn")
        console.error("error")
        console.fatal("fatal")
        assert out.getvalue() == "warn\nerror\n"
        assert err.getvalue() == "fatal\n"

    def test_fatal_report_goes_to_console_err(self):
        out, err = io.StringIO(), io.StringIO()
        error = SubmoduleNotFoundError("deps/up", hint="use the name `up`")
        _report_fatal(error, Console(quiet=True, out=out, err=err))
        assert out.getvalue() == ""
        assert err.getvalue().splitlines() == [
            f"subrecon: fatal: {error}",
            "  hint: use the name `up`",
        ]

    def test_verbose_wins_over_quiet(self):
        out = io.StringIO()
        Console(quiet=True, verbose=True, out=out).emit("info", "shown")
        assert out.getvalue() == "shown\n"
