"""Install planning: decide whether to skip, install or upgrade the plugin."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from scoutfix.core.confirm import Confirm, UserDeclined
from scoutfix.utils.platform import ArchLabel
from scoutfix.utils.version import ReleaseVersion, extract_version_token

logger = logging.getLogger(__name__)

PlanAction = Literal["skip", "fresh-install", "upgrade"]


@dataclass(frozen=True)
class InstallPlan:
    """What the installer should do in this run."""

    action: PlanAction
    version: ReleaseVersion
    arch: ArchLabel
    installed: ReleaseVersion | None = None

    @property
    def needs_install(self) -> bool:
        return self.action != "skip"


class InstalledVersionProbe:
    """Reads the version of an installed plugin by running ``<exe> version``.

    Output parsing is text based, so any failure to run or to find a
    ``vX.Y.Z`` token means "unknown" rather than an error.
    """

    DEFAULT_TIMEOUT = 30  # seconds

    def __init__(self, timeout: int | None = None):
        self._timeout = timeout or self.DEFAULT_TIMEOUT

    def query(self, executable: Path) -> ReleaseVersion | None:
        """Get the installed version, or None if absent or unparsable."""
        if not executable.is_file():
            logger.debug("No installed plugin at %s", executable)
            return None

        try:
            result = subprocess.run(
                [str(executable), "version"],
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Could not run %s: %s", executable, e)
            return None

        version = extract_version_token(f"{result.stdout}\n{result.stderr}")
        logger.debug("Installed plugin reports version %s", version)
        return version


def plan_install(
    installed: ReleaseVersion | None,
    latest: ReleaseVersion,
    arch: ArchLabel,
    confirm: Confirm,
) -> InstallPlan:
    """Decide the install action.

    Versions are compared for equality only: any differing "latest" is
    offered as an upgrade, even if it is older than what is installed.

    Args:
        installed: Currently installed version, if any
        latest: Latest released version
        arch: Target architecture
        confirm: Confirmation gate

    Returns:
        The plan; a declined upgrade becomes a skip that still carries
        the latest version

    Raises:
        UserDeclined: If a fresh install is declined
    """
    if installed is None:
        if not confirm(f"Docker Scout is not installed. Install {latest.tag} ({arch})?"):
            raise UserDeclined("Installation of Docker Scout was declined")
        return InstallPlan(action="fresh-install", version=latest, arch=arch)

    if installed == latest:
        logger.debug("Installed version %s is current", installed)
        return InstallPlan(action="skip", version=latest, arch=arch, installed=installed)

    if confirm(f"Docker Scout {installed.tag} is installed. Replace it with {latest.tag}?"):
        return InstallPlan(action="upgrade", version=latest, arch=arch, installed=installed)

    logger.info("Keeping installed version %s", installed)
    return InstallPlan(action="skip", version=latest, arch=arch, installed=installed)
