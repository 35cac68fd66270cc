"""Check the installed git version against the supported versions.

Versions are not enforced at run time; unsupported versions might work
fine. `subrecon status --git` reports them.
"""

import re

# `>=X.Y.Z` or `~X.Y.Z` (same major.minor, patch at least Z)
SUPPORTED_GIT_VERSIONS = [">=2.45.1", "~2.44.1", "~2.43.4"]

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)")


def parse_git_version(output: str) -> tuple[int, int, int] | None:
    """Parse the output of `git --version`.

    Handles vendor suffixes such as "2.43.0.windows.1".
    """
    text = output.strip()
    if not text.startswith("git version "):
        return None
    match = _VERSION_RE.match(text[len("git version "):])
    if not match:
        return None
    return tuple(int(part) for part in match.groups())


def _matches(requirement: str, version: tuple[int, int, int]) -> bool:
    if requirement.startswith(">="):
        return version >= parse_requirement(requirement[2:])
    if requirement.startswith("~"):
        base = parse_requirement(requirement[1:])
        return version[:2] == base[:2] and version[2] >= base[2]
    raise ValueError(f"Unknown version requirement: {requirement}")


def parse_requirement(text: str) -> tuple[int, int, int]:
    match = _VERSION_RE.match(text)
    if not match:
        raise ValueError(f"Invalid version: {text}")
    return tuple(int(part) for part in match.groups())


def is_supported(version: tuple[int, int, int]) -> bool:
    return any(_matches(req, version) for req in SUPPORTED_GIT_VERSIONS)


def supported_versions_text() -> str:
    return ", ".join(SUPPORTED_GIT_VERSIONS)
