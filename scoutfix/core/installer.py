"""Plugin installation.

Downloads the release archive into an isolated workspace, unpacks it, and
copies the plugin executable into the plugin directory. The destination is
only written once a payload has been found in a fully extracted archive.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from urllib.parse import urlparse

from scoutfix.config.schemas import PLUGIN_NAME, RemediationSettings
from scoutfix.core.planner import InstallPlan
from scoutfix.errors import RemediationError
from scoutfix.release.github import ReleaseClient
from scoutfix.utils.filesystem import (
    copy_file,
    create_workspace,
    extract_archive,
    find_files,
    remove_directory,
)
from scoutfix.utils.platform import Environment

logger = logging.getLogger(__name__)


class InstallError(RemediationError):
    """Error during plugin installation."""


class PayloadNotFoundError(InstallError):
    """The extracted archive contains no plugin executable."""


@dataclass
class InstallResult:
    """Result of a plugin installation."""

    path: Path
    version: str
    warnings: list[str] = field(default_factory=list)


class ScoutInstaller:
    """Installs a Docker Scout release into the plugin directory."""

    def __init__(
        self,
        client: ReleaseClient,
        settings: RemediationSettings,
        environment: Environment,
        workspace_root: Path | None = None,
    ):
        """Initialize the installer.

        Args:
            client: Release client used for the download
            settings: Remediation settings (release URL template)
            environment: Probed host environment
            workspace_root: Parent for temp workspaces (default: system temp dir)
        """
        self.client = client
        self.settings = settings
        self.environment = environment
        self.workspace_root = workspace_root

    @property
    def executable_name(self) -> str:
        return f"{PLUGIN_NAME}{self.environment.executable_suffix}"

    @property
    def payload_pattern(self) -> str:
        return f"{PLUGIN_NAME}*{self.environment.executable_suffix}"

    def install(
        self, plan: InstallPlan, dest_dir: Path, now: datetime | None = None
    ) -> InstallResult:
        """Download and install the plan's version into ``dest_dir``.

        Args:
            plan: Install plan (must not be a skip)
            dest_dir: Plugin directory (created if missing)
            now: Timestamp for the workspace name

        Returns:
            InstallResult with the installed path and any cleanup warnings

        Raises:
            DownloadError: If the archive cannot be downloaded
            ExtractionError: If the archive cannot be unpacked
            PayloadNotFoundError: If no executable is in the archive
            InstallError: If the workspace cannot be created or the executable
                cannot be copied into place
        """
        version = str(plan.version)
        url = self.settings.download_url(version, self.environment.os, plan.arch)
        logger.info("Installing %s %s (%s) into %s", PLUGIN_NAME, version, plan.arch, dest_dir)

        result = InstallResult(path=dest_dir / self.executable_name, version=version)
        try:
            workspace = create_workspace(self.workspace_root, now)
        except OSError as e:
            root = self.workspace_root or Path(tempfile.gettempdir())
            raise InstallError(
                f"Cannot create a temporary directory: {e}", hint=str(root)
            ) from e

        try:
            archive = self.client.download(url, workspace / Path(urlparse(url).path).name)
            extracted = extract_archive(archive, workspace / "extracted")

            matches = find_files(extracted, self.payload_pattern)
            if not matches:
                raise PayloadNotFoundError(
                    f"No file matching {self.payload_pattern} in {archive.name}", hint=url
                )
            if len(matches) > 1:
                logger.debug("Multiple payload candidates, using %s", matches[0])

            self._copy_into_place(matches[0], result.path)
        finally:
            warning = self._cleanup_workspace(workspace)
            if warning:
                result.warnings.append(warning)

        logger.info("Installed %s", result.path)
        return result

    def _copy_into_place(self, payload: Path, dest: Path) -> None:
        """Copy via a sibling temp file so ``dest`` is replaced in one step."""
        staging = dest.with_name(f"{dest.name}.partial")
        try:
            copy_file(payload, staging)
            os.replace(staging, dest)
        except OSError as e:
            if staging.exists():
                staging.unlink()
            raise InstallError(f"Cannot install {dest.name}: {e}", hint=str(dest)) from e

    def _cleanup_workspace(self, workspace: Path) -> str | None:
        """Remove the workspace; failure is reported, never raised."""
        try:
            remove_directory(workspace)
        except OSError as e:
            logger.warning("Could not remove temporary directory %s: %s", workspace, e)
            return f"Temporary directory was not removed: {workspace}"
        return None
