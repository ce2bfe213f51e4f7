"""Configuration file parsing utilities."""

import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from scoutfix.config.schemas import DockerCliConfig, RemediationSettings
from scoutfix.errors import RemediationError
from scoutfix.utils.platform import get_env, get_home_directory

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


class ConfigError(RemediationError):
    """Error loading or writing configuration."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message, hint=str(path) if path else None)


class ConfigParseError(ConfigError):
    """A config file exists but is not in the expected format."""


def load_json(path: Path) -> dict[str, Any]:
    """Load and parse a JSON object from a file.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed JSON as a dictionary

    Raises:
        ConfigError: If the file cannot be read
        ConfigParseError: If the file is not a JSON object
    """
    if not path.exists():
        raise ConfigError(f"File not found: {path}", path)

    try:
        with open(path, encoding="utf-8-sig") as f:
            result = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigParseError(f"Invalid JSON in {path}: {e}", path) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e

    if not isinstance(result, dict):
        raise ConfigParseError(f"JSON file must contain an object: {path}", path)
    return result


def save_json(path: Path, data: dict[str, Any], indent: int = 2) -> None:
    """Save data to a JSON file.

    Args:
        path: Path to write to
        data: Data to serialize
        indent: JSON indentation level
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
            f.write("\n")
    except OSError as e:
        raise ConfigError(f"Cannot write {path}: {e}", path) from e


def parse_docker_config(document: dict[str, Any], path: Path | None = None) -> DockerCliConfig:
    """Validate the managed fields of a Docker CLI config document.

    Raises:
        ConfigParseError: If a managed field has an unexpected shape
    """
    try:
        return DockerCliConfig.model_validate(document)
    except ValidationError as e:
        raise ConfigParseError(f"Invalid Docker config: {e}", path) from e


def backup_path_for(path: Path, tool_id: str, now: datetime | None = None) -> Path:
    """Pick a backup file name next to ``path`` that does not exist yet.

    Names follow ``<name>.backup-by-<tool>-<YYYYMMDD_HHMMSS>.json``; a ``-<n>``
    suffix is added if a backup from the same second already exists.
    """
    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    base = f"{path.name}.backup-by-{tool_id}-{stamp}"
    candidate = path.with_name(f"{base}.json")
    counter = 1
    while candidate.exists():
        candidate = path.with_name(f"{base}-{counter}.json")
        counter += 1
    return candidate


def backup_file(path: Path, tool_id: str, now: datetime | None = None) -> Path:
    """Copy a file to a fresh timestamped backup in the same directory.

    Args:
        path: File to back up
        tool_id: Tool identifier embedded in the backup name
        now: Timestamp for the name (defaults to the current time)

    Returns:
        Path to the backup

    Raises:
        ConfigError: If the copy fails
    """
    backup = backup_path_for(path, tool_id, now)
    try:
        shutil.copy2(path, backup)
    except OSError as e:
        raise ConfigError(f"Cannot back up {path}: {e}", path) from e
    logger.debug("Backed up %s to %s", path, backup)
    return backup


def load_settings(home: Path | None = None) -> RemediationSettings:
    """Build settings from defaults and SCOUTFIX_* environment variables.

    Args:
        home: Explicit home directory (takes precedence over SCOUTFIX_HOME)

    Raises:
        ConfigError: If an override is invalid
    """
    data: dict[str, Any] = {}
    if home is None:
        home_override = get_env("SCOUTFIX_HOME")
        home = Path(home_override) if home_override else get_home_directory()
    data["home"] = home

    release_url = get_env("SCOUTFIX_RELEASE_URL")
    if release_url:
        data["release_url"] = release_url
    timeout = get_env("SCOUTFIX_TIMEOUT")
    if timeout:
        data["timeout"] = timeout

    try:
        return RemediationSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e
