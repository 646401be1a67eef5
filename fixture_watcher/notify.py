"""
Notify module for the Fixture Watcher pipeline.

This module sends one Pushover notification per upcoming match. The
message text comes from the configured template; credentials are
resolved only when there is something to send.
"""

from string import Template
from typing import Any, Dict, List, Optional, Pattern, Tuple

import requests

from fixture_watcher.config import Config, PushoverConfig
from fixture_watcher.filter import is_home_match
from fixture_watcher.parse import Match
from fixture_watcher.utils import get_logger


# Module logger
logger = get_logger("notify")

# Pushover API configuration
PUSHOVER_API_URL = "https://api.pushover.net/1/messages.json"
PUSHOVER_TOKEN_ENV = "PUSHOVER_API_TOKEN"
PUSHOVER_USER_KEY_ENV = "PUSHOVER_API_USER_KEY"

# Pushover low priority, delivered without sound or vibration
DEFAULT_PRIORITY = -1
REQUEST_TIMEOUT = 30


class PushoverAPIError(Exception):
    """Custom exception for Pushover API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


def get_pushover_credentials(pushover: PushoverConfig) -> Tuple[str, str]:
    """
    Resolve the Pushover application token and user key.

    Returns:
        Tuple of (token, user_key).

    Raises:
        SecretError: If a secret cannot be resolved.
    """
    token = pushover.token.resolve(PUSHOVER_TOKEN_ENV)
    user_key = pushover.user_key.resolve(PUSHOVER_USER_KEY_ENV)
    return token, user_key


def create_pushover_session() -> requests.Session:
    """Create a requests session for the Pushover API."""
    session = requests.Session()
    session.headers.update({
        "Accept": "application/json",
        "User-Agent": "FixtureWatcher/1.0"
    })
    return session


def build_template_context(match: Match, team_pattern: Pattern[str]) -> Dict[str, str]:
    """
    Values available to the notification template.

    Args:
        match: Match to describe.
        team_pattern: Pattern for the team of interest.

    Returns:
        Mapping of placeholder name to text.
    """
    home = is_home_match(match, team_pattern)
    return {
        "home_team": match.home_team,
        "away_team": match.away_team,
        "formatted_date": match.time.format(),
        "opponent": match.away_team if home else match.home_team,
        "venue": "home" if home else "away",
        "is_home_match": "true" if home else "false",
    }


def render_message(template_text: str, match: Match, team_pattern: Pattern[str]) -> str:
    """Render the notification message for a match."""
    return Template(template_text).substitute(build_template_context(match, team_pattern))


def build_payload(
    token: str,
    user_key: str,
    title: str,
    message: str,
    sound: str,
    priority: int = DEFAULT_PRIORITY
) -> Dict[str, Any]:
    """Build the JSON body for the Pushover messages endpoint."""
    return {
        "token": token,
        "user": user_key,
        "title": title,
        "message": message,
        "html": 1,
        "priority": priority,
        "sound": sound,
    }


def send_message(
    session: requests.Session,
    payload: Dict[str, Any],
    timeout: float = REQUEST_TIMEOUT
) -> Dict[str, Any]:
    """
    Post a single message to Pushover.

    Args:
        session: Configured requests session.
        payload: Message body from build_payload.
        timeout: Request timeout in seconds.

    Returns:
        Decoded response body.

    Raises:
        PushoverAPIError: If the request fails or Pushover does not answer 200.
    """
    try:
        response = session.post(PUSHOVER_API_URL, json=payload, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise PushoverAPIError(f"Request to Pushover failed: {e}") from e

    if response.status_code != 200:
        raise PushoverAPIError(
            f"server did not respond with 200: {response.text}",
            status_code=response.status_code,
            response=response.text
        )

    try:
        return response.json()
    except ValueError:
        return {}


def send_matches(
    matches: List[Match],
    config: Config,
    session: Optional[requests.Session] = None,
    dry_run: bool = False
) -> int:
    """
    Send one notification per match, in order.

    Args:
        matches: Filtered, ordered matches.
        config: Pipeline configuration.
        session: Optional session to reuse; a new one is created otherwise.
        dry_run: If True, render and log messages without sending.

    Returns:
        Number of notifications sent (or rendered, in dry run mode).

    Raises:
        SecretError: If credentials cannot be resolved.
        PushoverAPIError: If a message cannot be delivered.
    """
    if not matches:
        logger.info("No matches to notify about")
        return 0

    pushover = config.pushover

    if dry_run:
        for match in matches:
            message = render_message(pushover.notification_message, match, config.team_pattern)
            logger.info(f"[DRY RUN] Would send '{pushover.notification_title}': {message}")
        return len(matches)

    token, user_key = get_pushover_credentials(pushover)

    owns_session = session is None
    if session is None:
        session = create_pushover_session()

    sent = 0
    try:
        for match in matches:
            logger.info(f"Sending push notification for a game on {match.time} to {PUSHOVER_API_URL}")
            payload = build_payload(
                token=token,
                user_key=user_key,
                title=pushover.notification_title,
                message=render_message(pushover.notification_message, match, config.team_pattern),
                sound=pushover.notification_sound,
            )
            send_message(session, payload, timeout=config.timeout)
            sent += 1
    finally:
        if owns_session:
            session.close()

    logger.info(f"Sent {sent} notification(s)")
    return sent
