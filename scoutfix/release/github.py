"""GitHub release client: latest-version resolution and artifact download."""

from __future__ import annotations

import logging
import re
import shutil
import ssl
from pathlib import Path
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from scoutfix.errors import RemediationError
from scoutfix.utils.version import ReleaseVersion

logger = logging.getLogger(__name__)

# Tag segment at the end of a resolved release URL path
_TAG_PATTERN = re.compile(r"/tag/v(\d+\.\d+\.\d+)/?$")

# Status codes that mean "this server does not do HEAD here"
_HEAD_REJECTED = (403, 405, 501)


class ReleaseError(RemediationError):
    """Error talking to the release host."""

    def __init__(self, message: str, url: str | None = None, status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message, hint=url)


class ResolutionError(ReleaseError):
    """The latest release version could not be determined."""


class DownloadError(ReleaseError):
    """A release artifact could not be downloaded."""


def create_ssl_context() -> ssl.SSLContext:
    """Default verifying context with TLS 1.2 as the floor."""
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    return context


def parse_tag_url(url: str) -> ReleaseVersion | None:
    """Extract the release version from a ``.../tag/vX.Y.Z`` URL.

    Args:
        url: Resolved release page URL

    Returns:
        The version, or None if the URL is not a tag page
    """
    match = _TAG_PATTERN.search(urlparse(url).path)
    if match is None:
        return None
    return ReleaseVersion.parse(match.group(1))


class ReleaseClient:
    """Client for a GitHub-style release host.

    The latest version is found by following the redirect of
    ``<repo>/releases/latest`` to ``<repo>/releases/tag/vX.Y.Z``.
    Nothing is retried: a failed request fails the run.
    """

    DEFAULT_TIMEOUT = 30  # seconds
    CHUNK_SIZE = 64 * 1024

    def __init__(
        self,
        timeout: int | None = None,
        headers: dict[str, str] | None = None,
        ssl_context: ssl.SSLContext | None = None,
    ):
        """Initialize the release client.

        Args:
            timeout: Request timeout in seconds (default: 30)
            headers: Optional extra HTTP headers
            ssl_context: TLS context (default: create_ssl_context())
        """
        self._timeout = timeout or self.DEFAULT_TIMEOUT
        self._headers = {"User-Agent": "scoutfix", **(headers or {})}
        self._ssl_context = ssl_context or create_ssl_context()

    def _build_request(self, url: str, method: str) -> Request:
        request = Request(url, method=method)
        for key, value in self._headers.items():
            request.add_header(key, value)
        return request

    def _final_url(self, url: str, method: str) -> str:
        """Issue a request, following redirects, and return the final URL."""
        logger.debug("Making %s request to %s", method, url)
        request = self._build_request(url, method)
        with urlopen(request, timeout=self._timeout, context=self._ssl_context) as response:
            final_url: str = response.geturl()
        logger.debug("%s %s resolved to %s", method, url, final_url)
        return final_url

    def resolve_latest(self, latest_url: str) -> ReleaseVersion:
        """Resolve the newest release version behind a "latest" alias URL.

        Args:
            latest_url: URL that redirects to the newest release tag page

        Returns:
            The latest release version

        Raises:
            ResolutionError: If the host is unreachable, does not redirect,
                or redirects somewhere that is not a tag page
        """
        logger.info("Resolving latest release from %s", latest_url)
        try:
            try:
                final_url = self._final_url(latest_url, "HEAD")
            except HTTPError as e:
                if e.code not in _HEAD_REJECTED:
                    raise
                logger.debug("HEAD rejected with %d, falling back to GET", e.code)
                final_url = self._final_url(latest_url, "GET")
        except HTTPError as e:
            raise ResolutionError(
                f"HTTP {e.code}: {e.reason} while resolving the latest release",
                url=latest_url,
                status_code=e.code,
            ) from e
        except URLError as e:
            raise ResolutionError(
                f"Failed to connect to release host: {e.reason}", url=latest_url
            ) from e
        except (TimeoutError, OSError) as e:
            raise ResolutionError(
                f"Request failed while resolving the latest release: {e}", url=latest_url
            ) from e

        if final_url.rstrip("/") == latest_url.rstrip("/"):
            raise ResolutionError("Release host did not redirect to a release tag", url=latest_url)

        version = parse_tag_url(final_url)
        if version is None:
            raise ResolutionError(
                f"Unexpected release URL (no vX.Y.Z tag): {final_url}", url=latest_url
            )

        logger.info("Latest release is %s", version.tag)
        return version

    def download(self, url: str, dest: Path) -> Path:
        """Download a URL to a local file.

        Args:
            url: URL to download
            dest: Destination file path

        Returns:
            Path to the downloaded file

        Raises:
            DownloadError: If the download fails; no partial file is left behind
        """
        logger.info("Downloading %s", url)
        dest.parent.mkdir(parents=True, exist_ok=True)
        try:
            request = self._build_request(url, "GET")
            with (
                urlopen(request, timeout=self._timeout, context=self._ssl_context) as response,
                open(dest, "wb") as f,
            ):
                shutil.copyfileobj(response, f, self.CHUNK_SIZE)
        except HTTPError as e:
            dest.unlink(missing_ok=True)
            raise DownloadError(
                f"HTTP {e.code}: {e.reason} for {url}", url=url, status_code=e.code
            ) from e
        except URLError as e:
            dest.unlink(missing_ok=True)
            raise DownloadError(f"Failed to connect to {url}: {e.reason}", url=url) from e
        except (TimeoutError, OSError) as e:
            dest.unlink(missing_ok=True)
            raise DownloadError(f"Download failed for {url}: {e}", url=url) from e

        logger.debug("Downloaded %d bytes to %s", dest.stat().st_size, dest)
        return dest
