"""
Configuration loading for the Fixture Watcher pipeline.

The configuration is a JSON file. Everything is validated at load time,
including the team pattern and the message template, so that a broken
configuration is reported before any page is fetched.
"""

import json
import os
from dataclasses import dataclass
from datetime import timezone
from string import Template
from typing import Any, Dict, List, Optional, Pattern

from fixture_watcher.fetch import DEFAULT_TIMEOUT, validate_url
from fixture_watcher.filter import compile_team_pattern
from fixture_watcher.utils import get_logger, parse_utc_offset, read_json_file, read_text_file


# Module logger
logger = get_logger("config")

DEFAULT_CONFIG_PATH = "config.json"
CONFIG_PATH_ENV = "FIXTURE_WATCHER_CONFIG"

DEFAULT_NOTIFICATION_SOUND = "intermission"
MAX_DEFAULT_WORKERS = 8

SOURCE_ERROR_POLICIES = ("abort", "skip")

# Placeholders available in notification_message
TEMPLATE_FIELDS = {
    "home_team": "Home",
    "away_team": "Away",
    "formatted_date": "01.01.2024 12:00",
    "opponent": "Away",
    "venue": "home",
    "is_home_match": "true",
}


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""


class SecretError(Exception):
    """Raised when a secret cannot be resolved."""


@dataclass(frozen=True)
class Secret:
    """
    Where a credential comes from.

    Attributes:
        kind: One of "env", "plain" or "file".
        value: Variable name for "env" (None means the caller's default),
               the literal secret for "plain", the path for "file".
    """
    kind: str = "env"
    value: Optional[str] = None

    def __repr__(self) -> str:
        # Never print plain secrets
        shown = "***" if self.kind == "plain" else self.value
        return f"Secret(kind={self.kind}, value={shown})"

    def resolve(self, default_env_name: str) -> str:
        """
        Resolve the secret value.

        Args:
            default_env_name: Environment variable used for a bare "env" secret.

        Returns:
            The secret.

        Raises:
            SecretError: If the variable is unset or the file is unreadable.
        """
        if self.kind == "plain":
            return self.value or ""

        if self.kind == "file":
            try:
                return read_text_file(self.value or "")
            except OSError as e:
                raise SecretError(f"could not read secret file {self.value}: {e}") from e

        env_name = self.value or default_env_name
        value = os.environ.get(env_name)
        if value is None:
            raise SecretError(f"environment variable '{env_name}' is not set")
        return value


def parse_secret(raw: Any, name: str) -> Secret:
    """
    Parse a secret specification.

    Accepted forms: "env", {"env": "NAME"}, {"plain": "value"},
    {"file": "path"}. A missing value means "env".

    Raises:
        ConfigError: If the specification is not understood.
    """
    if raw is None or raw == "env":
        return Secret("env")

    if isinstance(raw, dict) and len(raw) == 1:
        kind, value = next(iter(raw.items()))
        if kind in ("env", "plain", "file") and (value is None or isinstance(value, str)):
            if kind != "env" and not value:
                raise ConfigError(f"pushover.{name}: '{kind}' secret needs a value")
            return Secret(kind, value)

    raise ConfigError(
        f"pushover.{name}: expected \"env\", {{\"env\": NAME}}, "
        f"{{\"plain\": VALUE}} or {{\"file\": PATH}}, got {raw!r}"
    )


@dataclass(frozen=True)
class PushoverConfig:
    """Pushover delivery settings."""
    token: Secret
    user_key: Secret
    notification_title: str
    notification_message: str
    notification_sound: str = DEFAULT_NOTIFICATION_SOUND


@dataclass(frozen=True)
class Config:
    """
    Validated pipeline configuration.

    Attributes:
        scrape_urls: Fixture pages to scrape, in order.
        utc_offset: Fixed offset for kickoff times and for "today".
        search_duration_in_days: Days ahead that count as upcoming.
        team_regex: Team pattern source text.
        team_pattern: Compiled team pattern.
        pushover: Delivery settings.
        timeout: HTTP timeout in seconds.
        on_source_error: "abort" or "skip".
        max_workers: Parallel fetches.
    """
    scrape_urls: List[str]
    utc_offset: timezone
    search_duration_in_days: int
    team_regex: str
    team_pattern: Pattern[str]
    pushover: PushoverConfig
    timeout: float = DEFAULT_TIMEOUT
    on_source_error: str = "abort"
    max_workers: int = 1


def _require(data: Dict[str, Any], key: str, prefix: str = "") -> Any:
    if key not in data or data[key] is None:
        raise ConfigError(f"missing required setting '{prefix}{key}'")
    return data[key]


def _parse_pushover(data: Any) -> PushoverConfig:
    if not isinstance(data, dict):
        raise ConfigError("'pushover' must be an object")

    title = _require(data, "notification_title", "pushover.")
    message = _require(data, "notification_message", "pushover.")
    sound = data.get("notification_sound", DEFAULT_NOTIFICATION_SOUND)

    for name, value in (("notification_title", title), ("notification_message", message),
                        ("notification_sound", sound)):
        if not isinstance(value, str):
            raise ConfigError(f"pushover.{name} must be a string")

    try:
        Template(message).substitute(TEMPLATE_FIELDS)
    except (KeyError, ValueError) as e:
        raise ConfigError(f"invalid pushover.notification_message template: {e}") from e

    return PushoverConfig(
        token=parse_secret(data.get("token"), "token"),
        user_key=parse_secret(data.get("user_key"), "user_key"),
        notification_title=title,
        notification_message=message,
        notification_sound=sound,
    )


def parse_config(data: Any) -> Config:
    """
    Validate decoded configuration data.

    Args:
        data: Decoded JSON object.

    Returns:
        Config instance.

    Raises:
        ConfigError: If a setting is missing or invalid.
        FilterConfigError: If the team pattern does not compile.
    """
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a JSON object")

    urls = _require(data, "scrape_urls")
    if not isinstance(urls, list) or not urls:
        raise ConfigError("'scrape_urls' must be a non-empty list")
    for url in urls:
        if not isinstance(url, str) or not validate_url(url):
            raise ConfigError(f"invalid URL in 'scrape_urls': {url!r}")

    try:
        utc_offset = parse_utc_offset(str(_require(data, "utc_offset")))
    except ValueError as e:
        raise ConfigError(str(e)) from e

    days = _require(data, "search_duration_in_days")
    if isinstance(days, bool) or not isinstance(days, int) or days < 0:
        raise ConfigError("'search_duration_in_days' must be a non-negative integer")

    team_regex = _require(data, "team_regex")
    if not isinstance(team_regex, str):
        raise ConfigError("'team_regex' must be a string")
    # FilterConfigError propagates as-is
    team_pattern = compile_team_pattern(team_regex)

    timeout = data.get("timeout", DEFAULT_TIMEOUT)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError("'timeout' must be a positive number")

    policy = data.get("on_source_error", "abort")
    if policy not in SOURCE_ERROR_POLICIES:
        raise ConfigError(
            f"'on_source_error' must be one of {', '.join(SOURCE_ERROR_POLICIES)}, got {policy!r}"
        )

    max_workers = data.get("max_workers", min(MAX_DEFAULT_WORKERS, len(urls)))
    if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
        raise ConfigError("'max_workers' must be a positive integer")

    known = {
        "scrape_urls", "utc_offset", "search_duration_in_days", "team_regex",
        "pushover", "timeout", "on_source_error", "max_workers",
    }
    extra = {k: v for k, v in data.items() if k not in known}
    if extra:
        logger.warning(f"Ignoring unknown setting(s): {', '.join(sorted(extra))}")

    return Config(
        scrape_urls=list(urls),
        utc_offset=utc_offset,
        search_duration_in_days=days,
        team_regex=team_regex,
        team_pattern=team_pattern,
        pushover=_parse_pushover(_require(data, "pushover")),
        timeout=timeout,
        on_source_error=policy,
        max_workers=max_workers,
    )


def resolve_config_path(config_path: Optional[str] = None) -> str:
    """
    Work out which configuration file to use.

    Priority:
    1. Provided config_path parameter
    2. FIXTURE_WATCHER_CONFIG environment variable
    3. Default config file path
    """
    if config_path:
        return config_path

    env_path = os.environ.get(CONFIG_PATH_ENV, "").strip()
    return env_path or DEFAULT_CONFIG_PATH


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load and validate the configuration file.

    Args:
        config_path: Optional path to the configuration file.

    Returns:
        Config instance.

    Raises:
        ConfigError: If the file cannot be read or is invalid.
        FilterConfigError: If the team pattern does not compile.
    """
    path = resolve_config_path(config_path)

    try:
        data = read_json_file(path)
    except OSError as e:
        raise ConfigError(f"failed to read config from {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"failed to parse config from {path}: {e}") from e

    try:
        config = parse_config(data)
    except ConfigError as e:
        raise ConfigError(f"invalid config in {path}: {e}") from e

    logger.info(
        f"Loaded config from {path}: {len(config.scrape_urls)} source(s), "
        f"{config.search_duration_in_days} day window"
    )
    return config
