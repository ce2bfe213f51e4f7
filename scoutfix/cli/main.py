"""Command-line entry point for scoutfix."""

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from scoutfix import __version__
from scoutfix.cli.report import Reporter
from scoutfix.config.parser import load_settings
from scoutfix.core.confirm import UserDeclined, always_confirm, prompt_confirm
from scoutfix.core.pipeline import Remediation
from scoutfix.core.planner import InstalledVersionProbe
from scoutfix.errors import RemediationError
from scoutfix.release.github import ReleaseClient
from scoutfix.utils.platform import probe_environment

app = typer.Typer(
    name="scoutfix",
    help="Install the Docker Scout CLI plugin and register it with Docker",
    add_completion=False,
)

console = Console()
error_console = Console(stderr=True)

# Set up logger for the scoutfix package
logger = logging.getLogger("scoutfix")


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2=DEBUG, 3+=DEBUG with source paths
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logger.setLevel(level)

    # Only add handler if not already configured
    if not logger.handlers:
        handler = RichHandler(
            console=error_console,
            show_time=verbosity >= 2,
            show_path=verbosity >= 3,
            rich_tracebacks=True,
        )
        handler.setLevel(level)
        logger.addHandler(handler)
    else:
        for h in logger.handlers:
            h.setLevel(level)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"scoutfix {__version__}")
        raise typer.Exit()


@app.command()
def main(
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Answer yes to every confirmation (non-interactive)",
        ),
    ] = False,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v info, -vv debug, -vvv with source paths)",
        ),
    ] = 0,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show the scoutfix version and exit",
        ),
    ] = False,
) -> None:
    """Install or upgrade Docker Scout and add it to cliPluginsExtraDirs.

    Every step that changes the system asks first unless --yes is given.
    """
    setup_logging(verbose)
    reporter = Reporter(console, error_console)

    try:
        settings = load_settings()
        environment = probe_environment(home=settings.home)
        confirm = always_confirm if yes else prompt_confirm(console)

        remediation = Remediation(
            settings,
            environment,
            confirm,
            client=ReleaseClient(timeout=settings.timeout),
            probe=InstalledVersionProbe(timeout=settings.timeout),
            notify=reporter.info,
        )
        summary = remediation.run()
    except UserDeclined as e:
        reporter.warn(f"{e}. No further changes were made.")
        raise typer.Exit(0) from e
    except RemediationError as e:
        reporter.error(str(e), hint=e.hint)
        raise typer.Exit(1) from e
    except KeyboardInterrupt as e:
        reporter.error("Interrupted")
        raise typer.Exit(130) from e

    reporter.summary(summary)


if __name__ == "__main__":
    app()
