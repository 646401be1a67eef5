"""
Fetch module for the Fixture Watcher pipeline.

This module handles fetching fixture pages from configured URLs with
proper error handling. Failed fetches are reported once, without retries.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

import requests

from fixture_watcher.utils import get_logger


# Module logger
logger = get_logger("fetch")

# Default configuration
DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class FetchError(Exception):
    """Raised when a source page could not be fetched."""

    def __init__(self, source: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"could not get html from {source}: {message}")
        self.source = source
        self.status_code = status_code


@dataclass
class FetchResult:
    """
    Represents the result of fetching a single URL.

    Attributes:
        source_url: The original URL that was fetched.
        html_content: Raw HTML content if successful, None otherwise.
        success: Whether the fetch was successful.
        error_message: Error description if fetch failed, None otherwise.
        status_code: HTTP status code if request was made, None otherwise.
    """
    source_url: str
    html_content: Optional[str]
    success: bool
    error_message: Optional[str] = None
    status_code: Optional[int] = None

    def raise_for_failure(self) -> str:
        """
        Return the page body, or raise if the fetch failed.

        Raises:
            FetchError: If the fetch was not successful.
        """
        if not self.success or self.html_content is None:
            raise FetchError(
                self.source_url,
                self.error_message or "no content",
                status_code=self.status_code
            )
        return self.html_content


def create_session() -> requests.Session:
    """
    Create a requests session with browser-like default headers.

    Returns:
        Configured requests.Session instance.
    """
    session = requests.Session()

    session.headers.update({
        "User-Agent": DEFAULT_USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "de-DE,de;q=0.9,en;q=0.5",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
    })

    return session


def validate_url(url: str) -> bool:
    """
    Validate that a URL is well-formed and uses HTTP/HTTPS.

    Args:
        url: URL string to validate.

    Returns:
        True if URL is valid, False otherwise.
    """
    try:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)
    except ValueError:
        return False


def _failed(url: str, message: str, status_code: Optional[int] = None) -> FetchResult:
    return FetchResult(
        source_url=url,
        html_content=None,
        success=False,
        error_message=message,
        status_code=status_code
    )


def fetch_source(
    url: str,
    session: requests.Session,
    timeout: float = DEFAULT_TIMEOUT
) -> FetchResult:
    """
    Fetch a single fixture page and return the result.

    Network problems are reported in the result rather than raised, so
    callers decide whether a broken source ends the run.

    Args:
        url: URL to fetch.
        session: Configured requests session.
        timeout: Request timeout in seconds.

    Returns:
        FetchResult containing the fetch outcome.
    """
    logger.debug(f"Fetching URL: {url}")

    if not validate_url(url):
        logger.warning(f"Invalid URL format: {url}")
        return _failed(url, "Invalid URL format")

    try:
        response = session.get(url, timeout=timeout)
    except requests.exceptions.Timeout:
        logger.warning(f"Timeout fetching {url} after {timeout}s")
        return _failed(url, "Request timeout")
    except requests.exceptions.ConnectionError as e:
        logger.warning(f"Connection error for {url}: {e}")
        return _failed(url, f"Connection error: {e}")
    except requests.exceptions.RequestException as e:
        logger.error(f"Request exception for {url}: {e}")
        return _failed(url, f"Request failed: {e}")

    if response.status_code != 200:
        logger.warning(f"HTTP {response.status_code} for {url}")
        return _failed(url, f"HTTP {response.status_code}", response.status_code)

    logger.info(f"Fetched {url} ({len(response.text)} bytes)")
    return FetchResult(
        source_url=url,
        html_content=response.text,
        success=True,
        status_code=response.status_code
    )
