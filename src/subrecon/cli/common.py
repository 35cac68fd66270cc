"""Shared setup for the CLI commands."""

import argparse
import logging
from dataclasses import dataclass

from subrecon.config import Settings, load_settings
from subrecon.console import Console
from subrecon.git.context import GitContext


@dataclass
class Runtime:
    """What every command needs: settings, output and the repository."""

    settings: Settings
    console: Console
    context: GitContext
    dir_switch: str


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def dir_switch(directory: str) -> str:
    """The `--dir` switch to repeat in command hints ("" for the cwd)."""
    if directory in ("", "."):
        return ""
    return f" --dir {directory}"


def make_runtime(args: argparse.Namespace) -> Runtime:
    """Load settings, apply the global flags and open the repository.

    Raises:
        SubreconError: If the settings file is invalid, git is missing or
            the directory does not exist.
    """
    settings = load_settings(args.config).override(verbose=args.verbose, quiet=args.quiet)
    setup_logging(settings.verbose)
    console = Console(quiet=settings.quiet, verbose=settings.verbose)
    context = GitContext(args.dir, echo=console.info)
    return Runtime(
        settings=settings,
        console=console,
        context=context,
        dir_switch=dir_switch(str(args.dir)),
    )
