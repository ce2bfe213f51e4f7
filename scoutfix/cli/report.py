"""Leveled console output: INFO / WARN / OK / ERROR lines."""

from rich.console import Console
from rich.markup import escape

from scoutfix.config.schemas import PLUGIN_NAME
from scoutfix.core.pipeline import RemediationSummary


class Reporter:
    """Writes progress and results for a human operator."""

    def __init__(self, console: Console | None = None, error_console: Console | None = None):
        self.console = console or Console()
        self.error_console = error_console or Console(stderr=True)

    def info(self, message: str) -> None:
        self.console.print(f"[cyan]INFO[/cyan]  {escape(message)}")

    def warn(self, message: str) -> None:
        self.console.print(f"[yellow]WARN[/yellow]  {escape(message)}")

    def ok(self, message: str) -> None:
        self.console.print(f"[green]OK[/green]    {escape(message)}")

    def error(self, message: str, hint: str | None = None) -> None:
        """Print an error message to stderr, with its location hint if any."""
        self.error_console.print(f"[red]ERROR[/red] {escape(message)}")
        if hint:
            self.error_console.print(f"      at {escape(hint)}", style="dim")

    def summary(self, summary: RemediationSummary) -> None:
        """Report the outcome of a completed run."""
        plan = summary.plan

        if summary.install is not None:
            self.ok(f"Installed {PLUGIN_NAME} v{summary.install.version} at {summary.install.path}")
        elif plan.installed == plan.version:
            self.ok(f"{PLUGIN_NAME} {plan.version.tag} is already up to date")
        elif plan.installed is not None:
            self.warn(f"Kept {PLUGIN_NAME} {plan.installed.tag}; {plan.version.tag} is available")

        for warning in summary.warnings:
            self.warn(warning)

        patch = summary.patch
        if patch is not None:
            if patch.outcome == "unchanged":
                self.ok(f"{patch.path} already registers the plugin directory")
            elif patch.outcome == "created":
                self.ok(f"Created {patch.path}")
            else:
                self.ok(f"Updated {patch.path}")
                if patch.outcome == "rebuilt":
                    self.warn("The previous file was not a valid Docker config and was replaced")
            if patch.backup is not None:
                self.info(f"Backup written to {patch.backup}")

        self.ok("Done. Verify with: docker scout version")
