"""Integration tests for the scoutfix command."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from conftest import FakeProbe, FakeReleaseClient
from typer.testing import CliRunner

from scoutfix import __version__
from scoutfix.cli.main import app


@pytest.fixture
def runner():
    """Get a CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_host(home_dir: Path):
    """Windows host with a stubbed release host and version probe."""
    client = FakeReleaseClient(entries={"docker-scout.exe": b"version=1.18.2"})
    with (
        patch.dict("os.environ", {"SCOUTFIX_HOME": str(home_dir)}),
        patch("platform.system", return_value="Windows"),
        patch("platform.machine", return_value="AMD64"),
        patch("scoutfix.cli.main.ReleaseClient", return_value=client),
        patch("scoutfix.cli.main.InstalledVersionProbe", return_value=FakeProbe()),
    ):
        yield client


class TestVersionOption:
    def test_shows_version(self, runner: CliRunner):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"scoutfix {__version__}" in result.output


class TestRun:
    """Tests for a full scoutfix run."""

    def test_auto_confirm_installs_and_registers(
        self, runner: CliRunner, fake_host: FakeReleaseClient, home_dir: Path
    ):
        result = runner.invoke(app, ["--yes"])

        assert result.exit_code == 0, result.output
        plugin_dir = home_dir / ".docker" / "scout"
        assert (plugin_dir / "docker-scout.exe").exists()
        config = json.loads((home_dir / ".docker" / "config.json").read_text())
        assert config == {"cliPluginsExtraDirs": [str(plugin_dir)]}
        assert "INFO" in result.output
        assert "OK" in result.output

    def test_second_run_reports_up_to_date(
        self, runner: CliRunner, fake_host: FakeReleaseClient, home_dir: Path
    ):
        runner.invoke(app, ["-y"])

        result = runner.invoke(app, ["-y"])

        assert result.exit_code == 0, result.output
        assert "already up to date" in result.output
        assert len(fake_host.downloads) == 1

    def test_declining_exits_cleanly(
        self, runner: CliRunner, fake_host: FakeReleaseClient, home_dir: Path
    ):
        result = runner.invoke(app, [], input="n\n")

        assert result.exit_code == 0, result.output
        assert "WARN" in result.output
        assert "declined" in result.output
        assert not (home_dir / ".docker").exists()

    def test_unparsable_config_declined_is_error(
        self, runner: CliRunner, fake_host: FakeReleaseClient, home_dir: Path
    ):
        plugin_dir = home_dir / ".docker" / "scout"
        plugin_dir.mkdir(parents=True)
        (plugin_dir / "docker-scout.exe").write_text("version=1.18.2")
        config_path = home_dir / ".docker" / "config.json"
        config_path.write_text("{broken")

        result = runner.invoke(app, [], input="n\n")

        assert result.exit_code == 1
        assert "ERROR" in result.output
        assert config_path.read_text() == "{broken"

    def test_resolution_error_exits_1(
        self, runner: CliRunner, fake_host: FakeReleaseClient, home_dir: Path
    ):
        fake_host.fail_resolve = True

        result = runner.invoke(app, ["--yes"])

        assert result.exit_code == 1
        assert "ERROR" in result.output
        assert "releases/latest" in result.output

    def test_unwritable_docker_dir_exits_1(
        self, runner: CliRunner, fake_host: FakeReleaseClient, home_dir: Path
    ):
        docker_dir = home_dir / ".docker"
        docker_dir.write_text("not a directory")

        result = runner.invoke(app, ["--yes"])

        assert result.exit_code == 1
        assert "ERROR" in result.output
        assert "Cannot install docker-scout.exe" in result.output
        assert docker_dir.read_text() == "not a directory"


class TestUnsupportedEnvironment:
    def test_non_windows_exits_1(self, runner: CliRunner, home_dir: Path):
        with (
            patch.dict("os.environ", {"SCOUTFIX_HOME": str(home_dir)}),
            patch("platform.system", return_value="Linux"),
            patch("scoutfix.cli.main.ReleaseClient") as mock_client,
        ):
            result = runner.invoke(app, ["--yes"])

        assert result.exit_code == 1
        assert "Unsupported operating system" in result.output
        mock_client.assert_not_called()
