"""Git process execution, the repository lock and version checks."""

from subrecon.git.context import GitContext, OutputMode, canonicalize, quote_arg
from subrecon.git.lock import RepoLock

__all__ = [
    "GitContext",
    "OutputMode",
    "RepoLock",
    "canonicalize",
    "quote_arg",
]
