"""Error types raised by subrecon.

Every error derives from SubreconError so the CLI can report it as fatal
with one handler. An optional ``hint`` is shown under the message.
"""


class SubreconError(Exception):
    """Base class for all subrecon failures."""

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        self.hint = hint


class GitNotInstalledError(SubreconError):
    def __init__(self):
        super().__init__("git is not installed or not in PATH")


class CanonicalizeError(SubreconError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"fail to read `{path}`: {reason}")
        self.path = path


class UnexpectedOutputError(SubreconError):
    """A query that must print exactly one line printed nothing."""


class CommandFailedError(SubreconError):
    """The git process could not be spawned or did not finish."""

    def __init__(self, command: str, reason: str):
        super().__init__(f"failed to execute `{command}`: {reason}")
        self.command = command


class ExitStatusError(SubreconError):
    """The git process finished with a non-zero exit status."""

    def __init__(self, command: str, returncode: int, stderr: str = ""):
        message = f"command `{command}` finished with exit status {returncode}"
        if stderr:
            message += f": {stderr}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class InvalidConfigError(SubreconError):
    def __init__(self, reason: str):
        super().__init__(f"cannot process config: {reason}")


class InvalidIndexError(SubreconError):
    def __init__(self, reason: str):
        super().__init__(f"cannot process index: {reason}")


class SubmoduleNotFoundError(SubreconError):
    def __init__(self, name: str, hint: str | None = None):
        super().__init__(f"cannot find module `{name}`", hint=hint)
        self.name = name


class LockFailedError(SubreconError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"cannot lock `{path}`: {reason}")
        self.path = path


class NeedFixError(SubreconError):
    """The submodules need attention before the command can continue.

    ``fatal`` decides whether the CLI reports it as a fatal error (exit 2)
    or as a plain "needs fix" result (exit 1).
    """

    def __init__(self, fatal: bool = True):
        super().__init__("fix the issues above and try again.")
        self.fatal = fatal


class ConfigFileError(SubreconError):
    """The settings file is not a valid YAML mapping of known settings."""
