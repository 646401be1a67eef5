"""
Filter module for the Fixture Watcher pipeline.

This module selects the matches worth a notification:
- Played today or within the configured number of days ahead
- Involving a team matched by the configured team pattern
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional, Pattern

from fixture_watcher.parse import Match
from fixture_watcher.utils import get_logger


# Module logger
logger = get_logger("filter")


class FilterConfigError(Exception):
    """Raised when the configured team pattern is not a valid regex."""

    def __init__(self, pattern: str, message: str):
        super().__init__(f"could not create regex from '{pattern}': {message}")
        self.pattern = pattern


@dataclass(frozen=True)
class FilterCriteria:
    """
    Selection criteria for one pipeline run.

    Attributes:
        now: Today's date.
        window_days: Days after today that still count as upcoming.
        team_pattern: Compiled pattern for the teams of interest.
    """
    now: date
    window_days: int
    team_pattern: Pattern[str]


def compile_team_pattern(pattern: str) -> Pattern[str]:
    """
    Compile the team pattern.

    Called while validating configuration so that filtering itself
    never fails.

    Args:
        pattern: Regular expression source.

    Returns:
        Compiled pattern.

    Raises:
        FilterConfigError: If the pattern does not compile.
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise FilterConfigError(pattern, str(e)) from e


def today_in(utc_offset: timezone) -> date:
    """Current calendar date at the given fixed offset."""
    return datetime.now(utc_offset).date()


def build_criteria(
    window_days: int,
    team_pattern: Pattern[str],
    utc_offset: timezone,
    now: Optional[date] = None
) -> FilterCriteria:
    """
    Build the criteria for a run.

    Args:
        window_days: Days ahead to look.
        team_pattern: Compiled team pattern.
        utc_offset: Offset used to determine today's date.
        now: Override for today's date.

    Returns:
        FilterCriteria instance.
    """
    return FilterCriteria(
        now=now if now is not None else today_in(utc_offset),
        window_days=window_days,
        team_pattern=team_pattern,
    )


def is_within_window(match: Match, now: date, window_days: int) -> bool:
    """
    Check whether a match is played today or within the window.

    Only the date matters, a kickoff time is ignored.

    Args:
        match: Match to check.
        now: Today's date.
        window_days: Inclusive number of days ahead.

    Returns:
        True if 0 <= days until match <= window_days.
    """
    delta = (match.time.as_date() - now).days
    return 0 <= delta <= window_days


def involves_team(match: Match, team_pattern: Pattern[str]) -> bool:
    """Check whether either team is matched by the team pattern."""
    return bool(team_pattern.search(match.home_team) or team_pattern.search(match.away_team))


def is_home_match(match: Match, team_pattern: Pattern[str]) -> bool:
    """Check whether the team of interest plays at home."""
    return bool(team_pattern.search(match.home_team))


def filter_matches(matches: List[Match], criteria: FilterCriteria) -> List[Match]:
    """
    Select and order the matches to notify about.

    The input list is left untouched. The result is sorted by match
    date; matches on the same date keep their input order.

    Args:
        matches: Matches aggregated from all sources.
        criteria: Selection criteria.

    Returns:
        Matches within the window that involve a team of interest.
    """
    if not matches:
        logger.info("No matches to filter")
        return []

    logger.info(f"Filtering {len(matches)} match(es)")

    filtered = []
    stats = {
        "total": len(matches),
        "out_of_window": 0,
        "other_teams": 0,
        "passed": 0
    }

    for match in matches:
        if not is_within_window(match, criteria.now, criteria.window_days):
            stats["out_of_window"] += 1
            logger.debug(f"Filtered (out of window): {match.home_team} - {match.away_team} on {match.time}")
            continue

        if not involves_team(match, criteria.team_pattern):
            stats["other_teams"] += 1
            logger.debug(f"Filtered (other teams): {match.home_team} - {match.away_team}")
            continue

        stats["passed"] += 1
        filtered.append(match)
        logger.debug(f"Passed: {match.home_team} - {match.away_team} on {match.time}")

    logger.info(
        f"Filter results: {stats['passed']}/{stats['total']} passed "
        f"(out_of_window={stats['out_of_window']}, "
        f"other_teams={stats['other_teams']})"
    )

    # sorted() is stable, so same-day matches stay in document order
    return sorted(filtered, key=lambda m: m.time.as_date())
