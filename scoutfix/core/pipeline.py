"""Remediation pipeline.

Runs the steps in order: probe the environment, resolve the latest release,
plan, install, and register the plugin directory with the Docker CLI. Each
step either completes, is skipped, or raises and aborts the run.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from scoutfix.config.schemas import PLUGIN_NAME, RemediationSettings
from scoutfix.core.confirm import Confirm
from scoutfix.core.installer import InstallResult, ScoutInstaller
from scoutfix.core.patcher import ConfigPatcher, PatchResult
from scoutfix.core.planner import InstalledVersionProbe, InstallPlan, plan_install
from scoutfix.release.github import ReleaseClient
from scoutfix.utils.platform import Environment

logger = logging.getLogger(__name__)

Notify = Callable[[str], None]


def _ignore(message: str) -> None:
    pass


@dataclass
class RemediationSummary:
    """Everything a run did."""

    plan: InstallPlan
    install: InstallResult | None = None
    patch: PatchResult | None = None
    warnings: list[str] = field(default_factory=list)


class Remediation:
    """Installs Docker Scout and registers it with the Docker CLI.

    Collaborators are injected so the network, the installed-version probe
    and the confirmation gate can be replaced.
    """

    def __init__(
        self,
        settings: RemediationSettings,
        environment: Environment,
        confirm: Confirm,
        client: ReleaseClient | None = None,
        probe: InstalledVersionProbe | None = None,
        installer: ScoutInstaller | None = None,
        patcher: ConfigPatcher | None = None,
        notify: Notify = _ignore,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings
        self.environment = environment
        self.confirm = confirm
        self.client = client or ReleaseClient(timeout=settings.timeout)
        self.probe = probe or InstalledVersionProbe()
        self.installer = installer or ScoutInstaller(self.client, settings, environment)
        self.patcher = patcher or ConfigPatcher(confirm, settings.tool_id, clock)
        self.notify = notify
        self.clock = clock

    def run(self) -> RemediationSummary:
        """Run every step once.

        Raises:
            UserDeclined: If the user stops the run at a confirmation gate
            RemediationError: On any fatal failure
        """
        plugin_dir = self.settings.plugin_dir
        executable = plugin_dir / self.installer.executable_name

        self.notify(f"Detected {self.environment.os}/{self.environment.arch}")
        latest = self.client.resolve_latest(self.settings.latest_url)
        self.notify(f"Latest {PLUGIN_NAME} release is {latest.tag}")

        installed = self.probe.query(executable)
        if installed is not None:
            self.notify(f"Installed {PLUGIN_NAME} version is {installed.tag}")

        plan = plan_install(installed, latest, self.environment.arch, self.confirm)
        logger.debug("Install plan: %s", plan)
        summary = RemediationSummary(plan=plan)

        if plan.needs_install:
            self.notify(f"Downloading {PLUGIN_NAME} {plan.version.tag} ({plan.arch})")
            summary.install = self.installer.install(plan, plugin_dir, self.clock())
            summary.warnings.extend(summary.install.warnings)

        summary.patch = self.patcher.ensure_plugin_dir(self.settings.config_path, plugin_dir)
        return summary
