"""
Tests for the filter module.

Tests cover:
- Inclusive date window boundaries
- Team pattern matching on home and away side
- Stable ordering by match date
- Purity of the filter
- Team pattern compilation
"""

import re
from datetime import date, datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from fixture_watcher.filter import (
    FilterConfigError,
    FilterCriteria,
    build_criteria,
    compile_team_pattern,
    filter_matches,
    involves_team,
    is_home_match,
    is_within_window,
)
from fixture_watcher.parse import Match
from fixture_watcher.timeparse import Kickoff, MatchDay


NOW = date(2024, 5, 10)


def on(day, home="Rovers", away="City"):
    """Match on a bare date."""
    return Match(home, away, MatchDay(day))


@pytest.fixture
def criteria():
    """Criteria matching every team, one week window."""
    return FilterCriteria(now=NOW, window_days=7, team_pattern=re.compile("Rovers"))


class TestIsWithinWindow:
    """Tests for the date window check."""

    def test_boundaries(self):
        """Test that today and today + window are both inside."""
        assert is_within_window(on(date(2024, 5, 10)), NOW, 7) is True
        assert is_within_window(on(date(2024, 5, 17)), NOW, 7) is True

    def test_outside(self):
        """Test that yesterday and the day after the window are outside."""
        assert is_within_window(on(date(2024, 5, 9)), NOW, 7) is False
        assert is_within_window(on(date(2024, 5, 18)), NOW, 7) is False

    def test_zero_window(self):
        """Test that a zero-day window only keeps today's matches."""
        assert is_within_window(on(date(2024, 5, 10)), NOW, 0) is True
        assert is_within_window(on(date(2024, 5, 11)), NOW, 0) is False

    def test_kickoff_time_is_ignored(self):
        """Test that only the date of a kickoff counts, not the hour."""
        late_yesterday = Match("Rovers", "City", Kickoff(datetime(2024, 5, 9, 23, 59, tzinfo=timezone.utc)))
        early_today = Match("Rovers", "City", Kickoff(datetime(2024, 5, 10, 0, 1, tzinfo=timezone.utc)))

        assert is_within_window(late_yesterday, NOW, 7) is False
        assert is_within_window(early_today, NOW, 7) is True


class TestTeamMatching:
    """Tests for team pattern matching."""

    def test_home_or_away(self):
        """Test that either side can match."""
        pattern = re.compile("^Rovers$")

        assert involves_team(Match("Rovers", "City", MatchDay(NOW)), pattern) is True
        assert involves_team(Match("City", "Rovers", MatchDay(NOW)), pattern) is True
        assert involves_team(Match("Town", "United", MatchDay(NOW)), pattern) is False

    def test_case_sensitive(self):
        """Test that matching is case-sensitive unless the pattern says otherwise."""
        match = Match("rovers", "City", MatchDay(NOW))

        assert involves_team(match, re.compile("Rovers")) is False
        assert involves_team(match, re.compile("(?i)Rovers")) is True

    def test_unanchored_search(self):
        """Test that an unanchored pattern matches inside a name."""
        assert involves_team(Match("SV Rovers II", "City", MatchDay(NOW)), re.compile("Rovers")) is True

    def test_is_home_match(self):
        """Test home detection for the team of interest."""
        pattern = re.compile("Rovers")

        assert is_home_match(Match("Rovers", "City", MatchDay(NOW)), pattern) is True
        assert is_home_match(Match("City", "Rovers", MatchDay(NOW)), pattern) is False


class TestFilterMatches:
    """Tests for the full filter."""

    def test_window_boundaries(self):
        """Test that only matches from today through the window end survive."""
        matches = [
            on(date(2024, 5, 17)),
            on(date(2024, 5, 9)),
            on(date(2024, 5, 18)),
            on(date(2024, 5, 10)),
        ]
        criteria = FilterCriteria(now=NOW, window_days=7, team_pattern=re.compile(".*"))

        result = filter_matches(matches, criteria)

        assert [m.time.as_date() for m in result] == [date(2024, 5, 10), date(2024, 5, 17)]

    def test_team_filter(self):
        """Test that matches without the team of interest are dropped."""
        matches = [on(NOW, "Rovers", "City"), on(NOW, "Town", "United")]
        criteria = FilterCriteria(now=NOW, window_days=7, team_pattern=re.compile("^Rovers$"))

        result = filter_matches(matches, criteria)

        assert result == [matches[0]]

    def test_stable_order_for_same_day(self, criteria):
        """Test that same-day matches keep their input order."""
        first = on(date(2024, 5, 12), "Rovers", "A")
        second = Match("B", "Rovers", Kickoff(datetime(2024, 5, 12, 9, 0, tzinfo=timezone.utc)))
        third = on(date(2024, 5, 12), "Rovers", "C")
        earlier = on(date(2024, 5, 11), "Rovers", "D")

        result = filter_matches([first, second, third, earlier], criteria)

        assert result == [earlier, first, second, third]

    def test_mixed_precision_ordering(self, criteria):
        """Test that kickoffs and bare dates are ordered by date together."""
        kickoff = Match("Rovers", "A", Kickoff(datetime(2024, 5, 14, 18, 0, tzinfo=timezone.utc)))
        day = on(date(2024, 5, 13))

        assert filter_matches([kickoff, day], criteria) == [day, kickoff]

    def test_empty_input(self, criteria):
        """Test that no matches is a normal outcome."""
        assert filter_matches([], criteria) == []

    def test_nothing_survives(self, criteria):
        """Test that an empty result is not an error."""
        assert filter_matches([on(date(2024, 1, 1))], criteria) == []

    def test_idempotent_and_pure(self, criteria):
        """Test that filtering twice gives the same result and leaves the input alone."""
        matches = [on(date(2024, 5, 15)), on(date(2024, 5, 11)), on(date(2024, 5, 1))]
        snapshot = list(matches)

        first = filter_matches(matches, criteria)
        second = filter_matches(matches, criteria)

        assert first == second
        assert matches == snapshot


class TestCompileTeamPattern:
    """Tests for team pattern compilation."""

    def test_valid(self):
        """Test that a valid pattern compiles."""
        assert compile_team_pattern("^Rovers$").search("Rovers")

    def test_invalid(self):
        """Test that an invalid pattern raises FilterConfigError."""
        with pytest.raises(FilterConfigError) as exc_info:
            compile_team_pattern("Rovers(")

        assert exc_info.value.pattern == "Rovers("
        assert "Rovers(" in str(exc_info.value)
        assert not isinstance(exc_info.value, ValueError)


class TestBuildCriteria:
    """Tests for criteria construction."""

    def test_explicit_now(self):
        """Test that an explicit date is used as-is."""
        pattern = re.compile("Rovers")

        criteria = build_criteria(7, pattern, timezone.utc, now=NOW)

        assert criteria == FilterCriteria(now=NOW, window_days=7, team_pattern=pattern)

    def test_now_uses_configured_offset(self):
        """Test that today's date is taken at the configured offset."""
        offset = timezone(timedelta(hours=2))

        with patch("fixture_watcher.filter.today_in", return_value=date(2024, 5, 11)) as mock_today:
            criteria = build_criteria(7, re.compile("x"), offset)

        mock_today.assert_called_once_with(offset)
        assert criteria.now == date(2024, 5, 11)
