"""
Tests for the fetch module.

Tests cover:
- Successful page fetching
- HTTP error handling
- Timeout and connection error handling
- URL validation
- Turning failed results into FetchError
"""

from unittest.mock import Mock

import pytest
import requests

from fixture_watcher.fetch import (
    DEFAULT_TIMEOUT,
    FetchError,
    FetchResult,
    create_session,
    fetch_source,
    validate_url,
)


class TestValidateUrl:
    """Tests for URL validation function."""

    def test_valid_urls(self):
        """Test that valid HTTP and HTTPS URLs pass validation."""
        assert validate_url("http://example.com") is True
        assert validate_url("https://example.com/spielplan?team=1") is True

    def test_invalid_urls(self):
        """Test that invalid URLs fail validation."""
        assert validate_url("") is False
        assert validate_url("not-a-url") is False
        assert validate_url("ftp://example.com") is False
        assert validate_url("//example.com") is False
        assert validate_url("https://") is False


class TestCreateSession:
    """Tests for session creation."""

    def test_session_has_headers(self):
        """Test that created session has browser-like headers."""
        session = create_session()

        assert "User-Agent" in session.headers
        assert "Accept" in session.headers


class TestFetchSource:
    """Tests for single page fetching."""

    def test_successful_fetch(self):
        """Test successful fetch returns content."""
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.text = "<html><body>Spielplan</body></html>"

        mock_session = Mock()
        mock_session.get.return_value = mock_response

        result = fetch_source("https://example.com/plan", mock_session, timeout=10)

        assert result.success is True
        assert result.html_content == "<html><body>Spielplan</body></html>"
        assert result.status_code == 200
        mock_session.get.assert_called_once_with("https://example.com/plan", timeout=10)

    def test_default_timeout(self):
        """Test that the default timeout is passed to the session."""
        mock_session = Mock()
        mock_session.get.return_value = Mock(status_code=200, text="")

        fetch_source("https://example.com/plan", mock_session)

        mock_session.get.assert_called_once_with("https://example.com/plan", timeout=DEFAULT_TIMEOUT)

    def test_http_error(self):
        """Test that a non-200 status is reported as failure."""
        mock_session = Mock()
        mock_session.get.return_value = Mock(status_code=404)

        result = fetch_source("https://example.com/missing", mock_session)

        assert result.success is False
        assert result.html_content is None
        assert result.status_code == 404
        assert "404" in result.error_message

    def test_timeout(self):
        """Test that a timeout is reported as failure."""
        mock_session = Mock()
        mock_session.get.side_effect = requests.exceptions.Timeout()

        result = fetch_source("https://example.com/slow", mock_session)

        assert result.success is False
        assert result.error_message == "Request timeout"

    def test_connection_error(self):
        """Test that a connection error is reported as failure."""
        mock_session = Mock()
        mock_session.get.side_effect = requests.exceptions.ConnectionError("refused")

        result = fetch_source("https://example.com/down", mock_session)

        assert result.success is False
        assert "Connection error" in result.error_message

    def test_invalid_url_is_not_requested(self):
        """Test that invalid URLs fail without a request."""
        mock_session = Mock()

        result = fetch_source("not-a-url", mock_session)

        assert result.success is False
        mock_session.get.assert_not_called()


class TestRaiseForFailure:
    """Tests for converting results into page bodies or errors."""

    def test_success_returns_body(self):
        """Test that a successful result returns its HTML."""
        result = FetchResult(source_url="https://example.com", html_content="<html/>", success=True)

        assert result.raise_for_failure() == "<html/>"

    def test_failure_raises(self):
        """Test that a failed result raises FetchError with the source."""
        result = FetchResult(
            source_url="https://example.com",
            html_content=None,
            success=False,
            error_message="HTTP 503",
            status_code=503
        )

        with pytest.raises(FetchError) as exc_info:
            result.raise_for_failure()

        assert exc_info.value.source == "https://example.com"
        assert exc_info.value.status_code == 503
        assert "HTTP 503" in str(exc_info.value)
