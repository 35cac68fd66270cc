"""User-facing output.

A Console is created once by the CLI from the Settings and handed to
whatever needs to print, instead of a process-wide print switch.
"""

import sys
from typing import TextIO


class Console:
    """Print messages honoring the quiet/verbose settings.

    Info and hint lines are suppressed by ``quiet`` (unless ``verbose`` is
    also set). Warnings and errors are part of the report and always
    printed; ``fatal`` goes to stderr.
    """

    def __init__(
        self,
        quiet: bool = False,
        verbose: bool = False,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ):
        self.quiet = quiet and not verbose
        self.verbose = verbose
        self._out = out
        self._err = err

    @property
    def out(self) -> TextIO:
        return self._out or sys.stdout

    @property
    def err(self) -> TextIO:
        return self._err or sys.stderr

    def info(self, message: str = "") -> None:
        if not self.quiet:
            print(message, file=self.out)

    def hint(self, message: str) -> None:
        if not self.quiet:
            print(message, file=self.out)

    def warn(self, message: str) -> None:
        print(message, file=self.out)

    def error(self, message: str) -> None:
        print(message, file=self.out)

    def fatal(self, message: str) -> None:
        print(message, file=self.err)

    def emit(self, level: str, message: str) -> None:
        """Print a message at a level name (info, hint, warn or error)."""
        getattr(self, level)(message)
