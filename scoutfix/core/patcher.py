"""Docker CLI config patching.

Makes sure ``cliPluginsExtraDirs`` in ~/.docker/config.json lists the plugin
directory exactly once, keeping every other key as it was. Any overwrite of
an existing file is preceded by a timestamped backup next to it.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Literal

from scoutfix.config.parser import (
    ConfigParseError,
    backup_file,
    load_json,
    parse_docker_config,
    save_json,
)
from scoutfix.config.schemas import DEFAULT_TOOL_ID, PLUGINS_FIELD
from scoutfix.core.confirm import Confirm, require

logger = logging.getLogger(__name__)

PatchOutcome = Literal["created", "appended", "rebuilt", "unchanged"]


@dataclass(frozen=True)
class PatchResult:
    """Result of patching a config file."""

    outcome: PatchOutcome
    path: Path
    backup: Path | None = None


def merge_plugin_dir(document: dict[str, Any], directory: str) -> bool:
    """Ensure ``directory`` is listed in the document's plugin directories.

    The field is created if absent and normalized on write. Comparison is
    case-insensitive.

    Args:
        document: Parsed config document, modified in place
        directory: Directory to register

    Returns:
        True if the document changed

    Raises:
        ValueError: If the directory is blank
        ConfigParseError: If the plugin directories field has an unexpected shape
    """
    if not directory.strip():
        raise ValueError("Plugin directory must not be empty")

    config = parse_docker_config(document)
    if config.contains(directory):
        return False

    document[PLUGINS_FIELD] = [*config.cli_plugins_extra_dirs, directory.strip()]
    return True


class ConfigPatcher:
    """Registers a plugin directory in a Docker CLI config file."""

    def __init__(
        self,
        confirm: Confirm,
        tool_id: str = DEFAULT_TOOL_ID,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the patcher.

        Args:
            confirm: Confirmation gate asked before every write
            tool_id: Tool identifier used in backup names
            clock: Source of timestamps for backup names
        """
        self.confirm = confirm
        self.tool_id = tool_id
        self.clock = clock

    def ensure_plugin_dir(self, config_path: Path, plugin_dir: Path | str) -> PatchResult:
        """Make ``config_path`` register ``plugin_dir`` exactly once.

        Args:
            config_path: Path to config.json (may not exist yet)
            plugin_dir: Directory to register

        Returns:
            PatchResult describing what was done

        Raises:
            UserDeclined: If creating or updating the file is declined
            ConfigParseError: If the file is unparsable and rebuilding is declined
            ConfigError: If the file cannot be read, backed up or written
        """
        directory = str(plugin_dir)

        if not config_path.exists():
            require(
                self.confirm,
                f"Create {config_path} with {directory} in {PLUGINS_FIELD}?",
                f"Creating {config_path} was declined",
            )
            document: dict[str, Any] = {}
            merge_plugin_dir(document, directory)
            save_json(config_path, document)
            logger.info("Created %s", config_path)
            return PatchResult(outcome="created", path=config_path)

        backup: Path | None = None
        rebuilt = False
        try:
            document = load_json(config_path)
            parse_docker_config(document, config_path)
        except ConfigParseError as e:
            logger.warning("%s", e)
            if not self.confirm(
                f"{config_path} is not a valid Docker config. "
                "Back it up and replace it with a minimal config?"
            ):
                raise
            backup = backup_file(config_path, self.tool_id, self.clock())
            document = {}
            rebuilt = True

        if not merge_plugin_dir(document, directory):
            logger.info("%s already lists %s", config_path, directory)
            return PatchResult(outcome="unchanged", path=config_path)

        # The rebuild path already backed up the original file
        if not rebuilt:
            require(
                self.confirm,
                f"Add {directory} to {PLUGINS_FIELD} in {config_path}?",
                f"Updating {config_path} was declined",
            )
            backup = backup_file(config_path, self.tool_id, self.clock())

        save_json(config_path, document)
        logger.info("Updated %s (backup: %s)", config_path, backup)
        return PatchResult(
            outcome="rebuilt" if rebuilt else "appended", path=config_path, backup=backup
        )
