"""Load the optional settings file.

The settings are a small YAML mapping; everything has a default, so a
missing file simply yields ``Settings()``. Command-line flags are applied
on top with ``Settings.override``.
"""

from dataclasses import dataclass, replace
from pathlib import Path

import yaml

from subrecon.errors import ConfigFileError
from subrecon.paths import LOCK_FILE_NAME, config_path


@dataclass(frozen=True)
class Settings:
    """Explicit runtime configuration passed through the CLI and core."""

    verbose: bool = False
    quiet: bool = False
    lock_poll_interval: float = 1.0
    lock_file: str = LOCK_FILE_NAME

    def override(self, verbose: bool = False, quiet: bool = False) -> "Settings":
        """Apply command-line flags. Flags can only switch a setting on."""
        return replace(
            self,
            verbose=self.verbose or verbose,
            quiet=self.quiet or quiet,
        )


_FIELD_TYPES = {
    "verbose": bool,
    "quiet": bool,
    "lock_poll_interval": (int, float),
    "lock_file": str,
}


def load_settings(path: Path | str | None = None) -> Settings:
    """Read settings from a YAML file.

    Args:
        path: Settings file. Defaults to $SUBRECON_CONFIG or
            ~/.config/subrecon/config.yaml. An explicitly given path must
            exist; the default location may be absent.

    Returns:
        Settings with file values applied over the defaults.

    Raises:
        ConfigFileError: If the file is malformed or holds a value of the
            wrong type.
    """
    explicit = path is not None
    settings_path = Path(path) if explicit else config_path()
    if not settings_path.is_file():
        if explicit:
            raise ConfigFileError(f"settings file not found: {settings_path}")
        return Settings()

    try:
        with open(settings_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigFileError(f"{settings_path} is not valid YAML: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigFileError(f"{settings_path} is not a YAML mapping")

    values = {}
    for key, expected in _FIELD_TYPES.items():
        if key not in data:
            continue
        value = data[key]
        # bool is an int subclass; don't accept `true` as an interval
        if not isinstance(value, expected) or (expected != bool and isinstance(value, bool)):
            raise ConfigFileError(f"{settings_path}: invalid value for '{key}': {value!r}")
        values[key] = value

    interval = values.get("lock_poll_interval")
    if interval is not None:
        if interval <= 0:
            raise ConfigFileError(
                f"{settings_path}: 'lock_poll_interval' must be positive"
            )
        values["lock_poll_interval"] = float(interval)
    if "lock_file" in values and ("/" in values["lock_file"] or not values["lock_file"]):
        raise ConfigFileError(f"{settings_path}: 'lock_file' must be a plain file name")

    return Settings(**values)
