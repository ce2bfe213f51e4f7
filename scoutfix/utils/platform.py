"""Platform and OS detection utilities."""

import logging
import os
import platform
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from scoutfix.errors import RemediationError

logger = logging.getLogger(__name__)

PlatformOS = Literal["windows", "linux", "macos"]
ArchLabel = Literal["amd64", "arm64"]

MINIMUM_PYTHON = (3, 11)


class EnvironmentUnsupportedError(RemediationError):
    """The host platform or runtime cannot run the remediation."""


@dataclass(frozen=True)
class Environment:
    """Facts about the host, probed once at startup."""

    os: PlatformOS
    arch: ArchLabel
    python_version: str
    home: Path

    @property
    def executable_suffix(self) -> str:
        return ".exe" if self.os == "windows" else ""


def get_os() -> PlatformOS:
    """Get the current operating system.

    Returns:
        One of: "windows", "linux", "macos"
    """
    system = platform.system().lower()
    if system == "darwin":
        return "macos"
    elif system == "windows":
        return "windows"
    else:
        return "linux"


def get_arch() -> ArchLabel:
    """Get the release arch label for the current CPU.

    Returns:
        "amd64" or "arm64"

    Raises:
        EnvironmentUnsupportedError: If no release variant exists for the CPU
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "amd64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    raise EnvironmentUnsupportedError(
        f"Unsupported CPU architecture: {platform.machine() or 'unknown'}",
        hint="Only amd64 and arm64 builds are published",
    )


def get_home_directory() -> Path:
    """Get the user's home directory."""
    return Path(os.path.expanduser("~"))


def get_env(name: str, default: str | None = None) -> str | None:
    """Get an environment variable.

    Args:
        name: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.environ.get(name, default)


def get_python_version() -> str:
    """Get the Python version string (e.g. "3.11.4")."""
    return platform.python_version()


def probe_environment(home: Path | None = None, require_windows: bool = True) -> Environment:
    """Determine OS, runtime version and arch label for this run.

    Args:
        home: Override for the user's home directory
        require_windows: Reject any OS other than Windows

    Returns:
        Environment for the run

    Raises:
        EnvironmentUnsupportedError: If the platform or runtime is unsupported
    """
    current_os = get_os()
    if require_windows and current_os != "windows":
        raise EnvironmentUnsupportedError(
            f"Unsupported operating system: {platform.system()}",
            hint="This tool only targets Windows",
        )

    if sys.version_info[:2] < MINIMUM_PYTHON:
        floor = ".".join(str(part) for part in MINIMUM_PYTHON)
        raise EnvironmentUnsupportedError(
            f"Python {floor} or newer is required (running {get_python_version()})",
        )

    environment = Environment(
        os=current_os,
        arch=get_arch(),
        python_version=get_python_version(),
        home=home if home is not None else get_home_directory(),
    )
    logger.debug("Probed environment: %s", environment)
    return environment
