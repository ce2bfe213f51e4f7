"""Shared fixtures for scoutfix tests."""

import shutil
import tempfile
import zipfile
from collections.abc import Generator
from datetime import datetime
from pathlib import Path

import pytest

from scoutfix.config.schemas import RemediationSettings
from scoutfix.release.github import DownloadError, ResolutionError
from scoutfix.utils.platform import Environment
from scoutfix.utils.version import ReleaseVersion

FIXED_NOW = datetime(2024, 5, 17, 9, 30, 15)


def make_zip(path: Path, entries: dict[str, bytes]) -> Path:
    """Write a zip archive with the given member names and contents."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return path


class FakeReleaseClient:
    """Release client double: fixed latest version, archives built on demand."""

    def __init__(
        self,
        latest: str = "1.18.2",
        entries: dict[str, bytes] | None = None,
        fail_resolve: bool = False,
        fail_download: bool = False,
    ):
        self.latest = latest
        self.entries = entries if entries is not None else {"docker-scout.exe": b"MZ scout"}
        self.fail_resolve = fail_resolve
        self.fail_download = fail_download
        self.resolved_urls: list[str] = []
        self.downloads: list[str] = []

    def resolve_latest(self, latest_url: str) -> ReleaseVersion:
        self.resolved_urls.append(latest_url)
        if self.fail_resolve:
            raise ResolutionError("Release host did not redirect", url=latest_url)
        return ReleaseVersion.parse(self.latest)

    def download(self, url: str, dest: Path) -> Path:
        self.downloads.append(url)
        if self.fail_download:
            raise DownloadError(f"HTTP 404: Not Found for {url}", url=url, status_code=404)
        return make_zip(dest, self.entries)


class FakeProbe:
    """Installed-version probe double that reads a version from the file itself."""

    def query(self, executable: Path) -> ReleaseVersion | None:
        if not executable.is_file():
            return None
        text = executable.read_text(encoding="utf-8", errors="ignore")
        marker = "version="
        if marker not in text:
            return None
        return ReleaseVersion.parse(text.split(marker, 1)[1].strip())


class ScriptedConfirm:
    """Confirm double: returns scripted answers and records the questions."""

    def __init__(self, *answers: bool, default: bool | None = None):
        self.answers = list(answers)
        self.default = default
        self.questions: list[str] = []

    def __call__(self, message: str) -> bool:
        self.questions.append(message)
        if self.answers:
            return self.answers.pop(0)
        if self.default is None:
            raise AssertionError(f"Unexpected confirmation: {message}")
        return self.default


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory."""
    path = Path(tempfile.mkdtemp(prefix="scoutfix_test_"))
    yield path
    if path.exists():
        shutil.rmtree(path)


@pytest.fixture
def home_dir(temp_dir: Path) -> Path:
    """A fake user home directory."""
    home = temp_dir / "home"
    home.mkdir()
    return home


@pytest.fixture
def settings(home_dir: Path) -> RemediationSettings:
    """Settings rooted at the fake home directory."""
    return RemediationSettings(home=home_dir)


@pytest.fixture
def windows_env(home_dir: Path) -> Environment:
    """A Windows amd64 environment."""
    return Environment(os="windows", arch="amd64", python_version="3.11.9", home=home_dir)


@pytest.fixture
def fake_client() -> FakeReleaseClient:
    """Release client reporting 1.18.2 as latest."""
    return FakeReleaseClient()
