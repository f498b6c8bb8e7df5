"""Persisted profile storage for bkt.

The profile lives in a small JSON file. Its location is resolved once and
passed to ``ConfigStore``:

1. ``BKT_CONFIG`` environment variable (takes priority)
2. ``~/.bkt/config.json``

File Format:
    {
        "access_key": "AKIA...",
        "secret_key": "...",
        "bucket": "my-bucket",
        "endpoint": "-",
        "region": "us-east-1"
    }

Use "-" for whichever of endpoint/region is not configured.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from bkt.models import Profile

CONFIG_ENV_VAR = "BKT_CONFIG"
CONFIG_DIR_NAME = ".bkt"
CONFIG_FILE_NAME = "config.json"

# Fields written to and required in the profile file
PROFILE_FIELDS = [
    "access_key",
    "secret_key",
    "bucket",
    "endpoint",
    "region",
]

SET_CONFIG_HINT = (
    "run\n  bkt set --config <access-key> <secret-key> <bucket> <endpoint> <region>"
)


class ConfigError(Exception):
    """Raised when the profile cannot be read or written."""

    pass


class ConfigMissing(ConfigError):
    """Raised when no profile has been saved yet."""

    pass


class ConfigCorrupt(ConfigError):
    """Raised when the profile file exists but cannot be parsed."""

    pass


class ConfigWriteError(ConfigError):
    """Raised when the profile file or its directory cannot be written."""

    pass


def default_config_path(home: Optional[Path] = None) -> Path:
    """Resolve the profile location.

    Args:
        home: Home directory to use instead of the current user's.

    Returns:
        ``$BKT_CONFIG`` when set, otherwise ``~/.bkt/config.json``.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()

    base = home if home is not None else Path.home()
    return base / CONFIG_DIR_NAME / CONFIG_FILE_NAME


class ConfigStore:
    """Reads and writes the profile at a fixed path."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def save(self, profile: Profile) -> None:
        """Write the profile, replacing any existing file.

        The file is written next to its destination and moved into place, so
        readers never see a partial profile.

        Raises:
            ConfigWriteError: If the directory or file cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigWriteError(
                f"Could not create config directory {self.path.parent}: {e}"
            ) from e

        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=".config-", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(profile.to_dict(), f, indent=2)
                    f.write("\n")
                os.replace(tmp_name, self.path)
            except Exception:
                if os.path.exists(tmp_name):
                    os.remove(tmp_name)
                raise
        except OSError as e:
            raise ConfigWriteError(f"Could not write {self.path}: {e}") from e

    def load(self) -> Profile:
        """Read the saved profile.

        Raises:
            ConfigMissing: If no profile file exists.
            ConfigCorrupt: If the file is not valid JSON or lacks a field.
        """
        if not self.path.exists():
            raise ConfigMissing(f"Config file is not set, please {SET_CONFIG_HINT}")

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigCorrupt(f"Invalid JSON in config file {self.path}: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigCorrupt(f"Could not read config file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigCorrupt(f"Config file {self.path} must contain a JSON object")

        for field in PROFILE_FIELDS:
            if field not in data:
                raise ConfigCorrupt(
                    f"Missing required field '{field}' in {self.path}; to fix it, "
                    f"{SET_CONFIG_HINT}"
                )
            if not isinstance(data[field], str):
                raise ConfigCorrupt(f"Field '{field}' in {self.path} must be a string")

        return Profile(**{field: data[field] for field in PROFILE_FIELDS})
