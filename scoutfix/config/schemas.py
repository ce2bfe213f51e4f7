"""Pydantic schemas for scoutfix configuration.

This module defines the data models for:
- the Docker CLI config.json fields scoutfix manages
- the remediation settings (release host, timeouts, target paths)
"""

import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

# =============================================================================
# Common Constants
# =============================================================================

PLUGINS_FIELD = "cliPluginsExtraDirs"
DEFAULT_RELEASE_URL = "https://github.com/docker/scout-cli"
DEFAULT_TOOL_ID = "scoutfix"
PLUGIN_NAME = "docker-scout"


def normalize_dir(path: str) -> str:
    """Comparison key for a plugin directory (case-insensitive, no trailing separator)."""
    return path.strip().rstrip("\\/").casefold()


# =============================================================================
# Docker CLI Config Models
# =============================================================================


class DockerCliConfig(BaseModel):
    """The part of ~/.docker/config.json that scoutfix manages.

    Only ``cliPluginsExtraDirs`` is modelled; every other key of the
    document is left to the Docker CLI and never re-serialized from here.
    """

    model_config = {"extra": "ignore"}

    cli_plugins_extra_dirs: list[str] = Field(default_factory=list, alias=PLUGINS_FIELD)

    @field_validator("cli_plugins_extra_dirs", mode="before")
    @classmethod
    def normalize_dirs(cls, v: Any) -> list[str]:
        """Coerce to a list of trimmed, non-empty, unique directory strings."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, list):
            raise ValueError(f"{PLUGINS_FIELD} must be an array of strings")

        dirs: list[str] = []
        seen: set[str] = set()
        for entry in v:
            if not isinstance(entry, str):
                raise ValueError(f"{PLUGINS_FIELD} entries must be strings, got {entry!r}")
            entry = entry.strip()
            if not entry or normalize_dir(entry) in seen:
                continue
            seen.add(normalize_dir(entry))
            dirs.append(entry)
        return dirs

    def contains(self, directory: str) -> bool:
        """Check whether a directory is registered (case-insensitive)."""
        key = normalize_dir(directory)
        return any(normalize_dir(d) == key for d in self.cli_plugins_extra_dirs)


# =============================================================================
# Remediation Settings
# =============================================================================


class RemediationSettings(BaseModel):
    """Tunables for a remediation run.

    The plugin directory and config path are derived from ``home``.
    """

    release_url: str = DEFAULT_RELEASE_URL
    timeout: int = Field(default=30, gt=0)  # seconds
    tool_id: str = DEFAULT_TOOL_ID
    home: Path

    @field_validator("release_url")
    @classmethod
    def validate_release_url(cls, v: str) -> str:
        """Require an https repository URL without a trailing slash."""
        if not v.startswith("https://"):
            raise ValueError(f"Release URL must use https: {v}")
        return v.rstrip("/")

    @field_validator("tool_id")
    @classmethod
    def validate_tool_id(cls, v: str) -> str:
        """Tool identifier is embedded in backup file names."""
        if not re.match(r"^[A-Za-z0-9][A-Za-z0-9_-]*$", v):
            raise ValueError(f"Invalid tool identifier: {v}")
        return v

    @property
    def docker_dir(self) -> Path:
        return self.home / ".docker"

    @property
    def plugin_dir(self) -> Path:
        return self.docker_dir / "scout"

    @property
    def config_path(self) -> Path:
        return self.docker_dir / "config.json"

    @property
    def latest_url(self) -> str:
        """The "latest release" alias that redirects to the newest tag."""
        return f"{self.release_url}/releases/latest"

    def download_url(self, version: str, os_name: str, arch: str) -> str:
        """Build the archive URL for a version and platform."""
        return (
            f"{self.release_url}/releases/download/v{version}/"
            f"{PLUGIN_NAME}_{version}_{os_name}_{arch}.zip"
        )
