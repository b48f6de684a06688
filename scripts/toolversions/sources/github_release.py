"""
GitHub Releases adapter: reads the latest published release of a repository.
"""

import logging
import time
from typing import Optional

import requests

from toolversions.exceptions import MalformedResponse, SourceUnavailable
from toolversions.fetcher import VersionInfo
from toolversions.sources.base import SourceAdapter
from toolversions.sources.registry import SourceType

logger = logging.getLogger(__name__)

# Request settings
GITHUB_API = "https://api.github.com"
USER_AGENT = "DevOps-Learning-Platform"
ACCEPT = "application/vnd.github.v3+json"
REQUEST_TIMEOUT = 30


class GitHubReleaseAdapter(SourceAdapter):
    """Fetch the latest release from the GitHub REST API."""

    def __init__(
        self,
        api_url: str = GITHUB_API,
        timeout: float = REQUEST_TIMEOUT,
        max_attempts: int = 2,
        backoff_seconds: float = 1.0,
        token: Optional[str] = None,
        user_agent: str = USER_AGENT,
        accept: str = ACCEPT,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            api_url: API host, without trailing slash.
            timeout: Per-request timeout in seconds.
            max_attempts: Attempts per fetch; only transient failures retry.
            backoff_seconds: Delay before the second attempt, growing linearly.
            token: Optional API token sent as a bearer credential.
            user_agent: Value of the User-Agent header.
            accept: Value of the Accept header.
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self.headers = {"User-Agent": user_agent, "Accept": accept}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    @property
    def name(self) -> str:
        return "GitHub Releases"

    @property
    def source_type(self) -> SourceType:
        return SourceType.GITHUB_RELEASE

    def release_url(self, locator: str) -> str:
        """Build the latest-release endpoint URL for ``owner/repo``."""
        return f"{self.api_url}/repos/{locator.strip('/')}/releases/latest"

    @property
    def call_timeout(self) -> float:
        """Upper bound for one fetch_latest call, including retries and backoff."""
        backoff_total = self.backoff_seconds * self.max_attempts * (self.max_attempts - 1) / 2
        return self.timeout * self.max_attempts + backoff_total

    def _new_session(self) -> requests.Session:
        """Create a session for a single fetch; cookies never outlive the call."""
        session = requests.Session()
        session.headers.update(self.headers)
        return session

    def fetch_latest(self, locator: str) -> VersionInfo:
        url = self.release_url(locator)

        session = self._new_session()
        try:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    response = self._get(session, url)
                except SourceUnavailable as e:
                    if not e.retryable or attempt == self.max_attempts:
                        raise
                    delay = self.backoff_seconds * attempt
                    logger.debug("Attempt %d for %s failed (%s), retrying in %.1fs", attempt, locator, e, delay)
                    time.sleep(delay)
                    continue
                return self._parse_release(response, locator)
        finally:
            session.close()

        # Unreachable: the loop either returns or raises
        raise SourceUnavailable(f"No attempts made for {url}")

    def _get(self, session: requests.Session, url: str) -> requests.Response:
        """GET a URL, translating transport errors and non-200 statuses."""
        try:
            response = session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise SourceUnavailable(f"Timeout fetching {url}") from e
        except requests.exceptions.RequestException as e:
            raise SourceUnavailable(f"Request failed for {url}: {e}") from e

        if response.status_code != 200:
            raise SourceUnavailable(f"HTTP {response.status_code} for {url}", status_code=response.status_code)
        return response

    def _parse_release(self, response: requests.Response, locator: str) -> VersionInfo:
        """Map a release payload to VersionInfo."""
        try:
            release = response.json()
        except ValueError as e:
            raise MalformedResponse(f"Failed to parse JSON for {locator}") from e

        if not isinstance(release, dict):
            raise MalformedResponse(f"Expected a JSON object for {locator}, got {type(release).__name__}")

        try:
            return VersionInfo(
                version=release.get("tag_name"),
                release_date=release.get("published_at"),
                url=release.get("html_url"),
            )
        except ValueError as e:
            raise MalformedResponse(f"Unusable release for {locator}: {e}") from e
