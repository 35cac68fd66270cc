"""Default path resolution.

Uses environment variables when available, falls back to conventional
defaults.

Environment variables:
    SUBRECON_DIR: directory commands run in (default: the current directory)
    SUBRECON_CONFIG: settings file (default: ~/.config/subrecon/config.yaml)
"""

from __future__ import annotations

import os
from pathlib import Path

_DEFAULT_CONFIG = Path.home() / ".config" / "subrecon" / "config.yaml"

LOCK_FILE_NAME = "subrecon.lock"


def working_dir() -> Path:
    """Return the directory git commands run in."""
    return Path(os.environ.get("SUBRECON_DIR", "."))


def config_path() -> Path:
    """Return the path to the settings file."""
    env = os.environ.get("SUBRECON_CONFIG")
    if env:
        return Path(env)
    return _DEFAULT_CONFIG
