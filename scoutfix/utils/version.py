"""Release version parsing utilities."""

import re
from dataclasses import dataclass

# A "vX.Y.Z" token anywhere in free text (e.g. `docker-scout version` output)
_VERSION_TOKEN = re.compile(r"v(\d+\.\d+\.\d+)")


@dataclass(frozen=True)
class ReleaseVersion:
    """A major.minor.patch release version.

    Versions are compared by equality only; there is no ordering.
    """

    major: int
    minor: int
    patch: int

    _PATTERN = re.compile(r"^v?(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)$")

    @classmethod
    def parse(cls, version_str: str) -> "ReleaseVersion":
        """Parse a version string, with or without a leading "v".

        Args:
            version_str: Version string (e.g., "1.18.2", "v1.18.2")

        Returns:
            ReleaseVersion instance

        Raises:
            ValueError: If the string is not a major.minor.patch triple
        """
        match = cls._PATTERN.match(version_str.strip())
        if not match:
            raise ValueError(f"Invalid release version: {version_str}")

        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
        )

    @property
    def tag(self) -> str:
        """Release tag for this version (e.g. "v1.18.2")."""
        return f"v{self}"

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def extract_version_token(text: str) -> ReleaseVersion | None:
    """Find the first "vX.Y.Z" token in free-form text.

    Args:
        text: Text to search

    Returns:
        The parsed version, or None if no token is present
    """
    match = _VERSION_TOKEN.search(text)
    if match is None:
        return None
    return ReleaseVersion.parse(match.group(1))
