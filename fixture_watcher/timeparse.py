"""
Time parsing for the Fixture Watcher pipeline.

Fixture pages announce each match day either with a kickoff time
("10.05.2024 18:30") or with the bare date ("10.05.2024"). This module
turns that text into a MatchTime, which is one of two variants:

- Kickoff: timezone-aware datetime with a fixed UTC offset
- MatchDay: calendar date without time of day

Both variants share ``as_date()`` so filtering and ordering never need
to care which one they have.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timezone

from fixture_watcher.utils import get_logger


# Module logger
logger = get_logger("timeparse")

# Layouts used by the fixture pages (strict two-digit fields)
DATETIME_PATTERN = re.compile(r"(\d{2})\.(\d{2})\.(\d{4}) (\d{2}):(\d{2})", re.ASCII)
DATE_PATTERN = re.compile(r"(\d{2})\.(\d{2})\.(\d{4})", re.ASCII)

# Rendering layouts; years are always four digits
DATETIME_FORMAT = "{0.day:02d}.{0.month:02d}.{0.year:04d} {0.hour:02d}:{0.minute:02d}"
DATE_FORMAT = "{0.day:02d}.{0.month:02d}.{0.year:04d}"


class TimeParseError(Exception):
    """Raised when text is neither a date with time nor a bare date."""

    def __init__(self, text: str):
        super().__init__(
            f"could not parse '{text}' as either a date with or without time"
        )
        self.text = text


class MatchTime(ABC):
    """When a match takes place, with or without a kickoff time."""

    @abstractmethod
    def as_date(self) -> date:
        """Calendar date of the match."""

    @abstractmethod
    def format(self) -> str:
        """Render in the layout the fixture pages use."""


@dataclass(frozen=True)
class Kickoff(MatchTime):
    """Match with a known kickoff time."""

    value: datetime

    def as_date(self) -> date:
        return self.value.date()

    def format(self) -> str:
        return DATETIME_FORMAT.format(self.value)

    def __str__(self) -> str:
        return self.value.isoformat()


@dataclass(frozen=True)
class MatchDay(MatchTime):
    """Match whose kickoff time has not been announced yet."""

    value: date

    def as_date(self) -> date:
        return self.value

    def format(self) -> str:
        return DATE_FORMAT.format(self.value)

    def __str__(self) -> str:
        return self.value.isoformat()


def _parse_datetime(text: str, utc_offset: timezone) -> Kickoff:
    match = DATETIME_PATTERN.fullmatch(text)
    if not match:
        raise ValueError(f"'{text}' does not match DD.MM.YYYY HH:MM")

    day, month, year, hour, minute = (int(g) for g in match.groups())
    # datetime() rejects out-of-range fields such as month 13 or hour 24
    return Kickoff(datetime(year, month, day, hour, minute, tzinfo=utc_offset))


def _parse_date(text: str) -> MatchDay:
    match = DATE_PATTERN.fullmatch(text)
    if not match:
        raise ValueError(f"'{text}' does not match DD.MM.YYYY")

    day, month, year = (int(g) for g in match.groups())
    return MatchDay(date(year, month, day))


def parse_match_time(text: str, utc_offset: timezone) -> MatchTime:
    """
    Parse a date header from a fixture page.

    The full layout ``DD.MM.YYYY HH:MM`` is tried first and interpreted
    in the given fixed offset (never the system's local time). If that
    fails the bare layout ``DD.MM.YYYY`` is tried.

    Args:
        text: Text to parse. It is not trimmed here.
        utc_offset: Fixed offset attached to kickoff times.

    Returns:
        Kickoff or MatchDay.

    Raises:
        TimeParseError: If neither layout matches.
    """
    try:
        return _parse_datetime(text, utc_offset)
    except ValueError:
        pass

    try:
        return _parse_date(text)
    except ValueError as e:
        logger.debug(f"Unparseable match time {text!r}: {e}")
        raise TimeParseError(text) from e
