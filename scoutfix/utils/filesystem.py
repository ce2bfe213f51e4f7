"""Filesystem utilities for scoutfix."""

import fnmatch
import logging
import secrets
import shutil
import tarfile
import tempfile
import zipfile
from datetime import datetime
from pathlib import Path, PurePosixPath

from scoutfix.errors import RemediationError

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "scoutfix"


class ExtractionError(RemediationError):
    """A downloaded archive could not be unpacked."""


def copy_file(src: Path, dest: Path) -> Path:
    """Copy a file to a destination.

    Args:
        src: Source file path
        dest: Destination path (file or directory)

    Returns:
        Path to the copied file
    """
    if dest.is_dir():
        dest = dest / src.name
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dest)
    return dest


def remove_directory(path: Path) -> bool:
    """Remove a directory and its contents.

    Args:
        path: Directory path to remove

    Returns:
        True if the directory was removed, False if it didn't exist
    """
    if not path.exists():
        return False
    shutil.rmtree(path)
    return True


def create_workspace(root: Path | None = None, now: datetime | None = None) -> Path:
    """Create a uniquely named scratch directory.

    The name combines a timestamp with a random token, so runs never share a
    workspace.

    Args:
        root: Parent directory (defaults to the system temp directory)
        now: Timestamp to embed (defaults to the current time)

    Returns:
        Path to the new, empty directory
    """
    root = Path(tempfile.gettempdir()) if root is None else root
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    workspace = root / f"{WORKSPACE_PREFIX}-{stamp}-{secrets.token_hex(4)}"
    workspace.mkdir(parents=True, exist_ok=False)
    logger.debug("Created workspace %s", workspace)
    return workspace


def _check_member_path(name: str, archive: Path) -> None:
    member_path = PurePosixPath(name.replace("\\", "/"))
    if member_path.is_absolute() or ".." in member_path.parts or ":" in name:
        raise ExtractionError(f"Unsafe path in archive: {name}", hint=str(archive))


def extract_archive(archive_path: Path, dest_dir: Path) -> Path:
    """Extract a .zip or .tar.gz archive to a destination directory.

    Args:
        archive_path: Path to the archive
        dest_dir: Destination directory

    Returns:
        The destination directory

    Raises:
        ExtractionError: If the archive is corrupt, unsupported or unsafe
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    name = archive_path.name.lower()

    try:
        if name.endswith(".zip"):
            with zipfile.ZipFile(archive_path) as archive:
                # Security: prevent path traversal
                for member in archive.namelist():
                    _check_member_path(member, archive_path)
                archive.extractall(dest_dir)
        elif name.endswith((".tar.gz", ".tgz")):
            with tarfile.open(archive_path, "r:gz") as tar:
                for tar_member in tar.getmembers():
                    _check_member_path(tar_member.name, archive_path)
                tar.extractall(dest_dir)
        else:
            raise ExtractionError(
                f"Unsupported archive format: {archive_path.name}", hint=str(archive_path)
            )
    except (zipfile.BadZipFile, tarfile.TarError, EOFError) as e:
        raise ExtractionError(
            f"Corrupt archive {archive_path.name}: {e}", hint=str(archive_path)
        ) from e
    except OSError as e:
        raise ExtractionError(
            f"Cannot extract {archive_path.name}: {e}", hint=str(archive_path)
        ) from e

    logger.debug("Extracted %s into %s", archive_path, dest_dir)
    return dest_dir


def find_files(root: Path, pattern: str) -> list[Path]:
    """Recursively find files whose name matches a glob, case-insensitively.

    Args:
        root: Directory to search
        pattern: Filename glob (e.g. "docker-scout*.exe")

    Returns:
        Matching files, sorted by path
    """
    pattern = pattern.lower()
    return sorted(
        p for p in root.rglob("*") if p.is_file() and fnmatch.fnmatchcase(p.name.lower(), pattern)
    )
