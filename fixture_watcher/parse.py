"""
Parse module for the Fixture Watcher pipeline.

This module extracts match records from fixture-list pages. The pages
group fixtures under date headers and carry no date on the fixture rows
themselves, so extraction happens in two steps:

1. ``flatten_document`` reduces the HTML to a flat list of header and
   fixture nodes, in document order.
2. ``walk_nodes`` walks those nodes, carrying the most recent header
   date forward onto every fixture that follows it.
"""

from dataclasses import dataclass
from datetime import timezone
from typing import List, Optional, Union

from bs4 import BeautifulSoup, Tag

from fixture_watcher.timeparse import MatchTime, TimeParseError, parse_match_time
from fixture_watcher.utils import get_logger


# Module logger
logger = get_logger("parse")


# Selectors for the fixture-list markup
CONTAINER_SELECTOR = "div.module-gameplan"
ROW_SELECTOR = "div.match, div.hs-head"
MATCH_SELECTOR = "div.match"
HEADER_DATE_SELECTOR = "div.match-date"
HOME_TEAM_SELECTOR = "div.team-name.team-name-home"
AWAY_TEAM_SELECTOR = "div.team-name.team-name-away"


class StructureError(Exception):
    """Raised when a fixture page does not have the expected structure."""

    def __init__(self, message: str, field: Optional[str] = None, fragment: Optional[str] = None):
        details = []
        if field:
            details.append(f"field={field}")
        if fragment is not None:
            details.append(f"fragment={fragment!r}")
        super().__init__(f"{message} ({', '.join(details)})" if details else message)
        self.message = message
        self.field = field
        self.fragment = fragment


@dataclass(frozen=True)
class Match:
    """
    A scheduled match scraped from a fixture page.

    Attributes:
        home_team: Home team name exactly as scraped.
        away_team: Away team name exactly as scraped.
        time: Kickoff or match day inherited from the section header.
    """
    home_team: str
    away_team: str
    time: MatchTime

    def __post_init__(self):
        if not self.home_team:
            raise ValueError("home_team must not be empty")
        if not self.away_team:
            raise ValueError("away_team must not be empty")


@dataclass(frozen=True)
class HeaderNode:
    """Section header. ``date_text`` is None when it carries no date element."""
    date_text: Optional[str]


@dataclass(frozen=True)
class FixtureNode:
    """Fixture row. Team texts are None when the element is missing."""
    home_team: Optional[str]
    away_team: Optional[str]


Node = Union[HeaderNode, FixtureNode]


def aggregate_text(element: Optional[Tag]) -> Optional[str]:
    """
    Concatenate all descendant text nodes of an element.

    No separators are inserted and no whitespace is collapsed.

    Args:
        element: Element to read, or None.

    Returns:
        Concatenated text, or None if the element is missing.
    """
    if element is None:
        return None
    return "".join(element.strings)


def _to_node(element: Tag) -> Node:
    if element.name == "div" and "match" in (element.get("class") or []):
        return FixtureNode(
            home_team=aggregate_text(element.select_one(HOME_TEAM_SELECTOR)),
            away_team=aggregate_text(element.select_one(AWAY_TEAM_SELECTOR)),
        )
    return HeaderNode(date_text=aggregate_text(element.select_one(HEADER_DATE_SELECTOR)))


def flatten_document(html: str) -> List[Node]:
    """
    Reduce a fixture page to its header and fixture rows.

    Only the first fixture container is used. Rows are taken in document
    order; any other markup inside the container is ignored.

    Args:
        html: Raw HTML content.

    Returns:
        List of HeaderNode and FixtureNode values.

    Raises:
        StructureError: If the page has no fixture container.
    """
    soup = BeautifulSoup(html, "html.parser")

    container = soup.select_one(CONTAINER_SELECTOR)
    if container is None:
        raise StructureError("missing fixture container", fragment=CONTAINER_SELECTOR)

    return [_to_node(element) for element in container.select(ROW_SELECTOR)]


def _team_name(value: Optional[str], field: str) -> str:
    if value is None:
        raise StructureError("missing/empty team name", field=field)
    if not value:
        raise StructureError("missing/empty team name", field=field, fragment=value)
    return value


def walk_nodes(nodes: List[Node], utc_offset: timezone) -> List[Match]:
    """
    Turn flattened nodes into matches.

    Every header replaces the current date, a header without a date
    clears it. Every fixture takes the current date.

    Args:
        nodes: Header and fixture nodes in document order.
        utc_offset: Fixed offset for kickoff times in header dates.

    Returns:
        Matches in document order.

    Raises:
        TimeParseError: If a header date cannot be parsed.
        StructureError: If a fixture has no date or lacks a team name.
    """
    current_date: Optional[MatchTime] = None
    matches: List[Match] = []

    for node in nodes:
        if isinstance(node, HeaderNode):
            if node.date_text is None:
                current_date = None
                continue
            try:
                current_date = parse_match_time(node.date_text.strip(), utc_offset)
            except TimeParseError:
                logger.debug(f"Could not parse datetime from header {node.date_text!r}")
                raise
            continue

        if current_date is None:
            raise StructureError(
                "no date for current match",
                fragment=f"{node.home_team} - {node.away_team}"
            )

        home_team = _team_name(node.home_team, "home_team")
        away_team = _team_name(node.away_team, "away_team")

        matches.append(Match(home_team, away_team, current_date))

    return matches


def extract_matches(html: str, utc_offset: timezone) -> List[Match]:
    """
    Extract all matches from a fixture page.

    Any failure aborts the whole page; there is no partial result.

    Args:
        html: Raw HTML content.
        utc_offset: Fixed offset for kickoff times.

    Returns:
        Matches in document order.

    Raises:
        StructureError: If the page structure is not as expected.
        TimeParseError: If a header date cannot be parsed.
    """
    nodes = flatten_document(html)
    matches = walk_nodes(nodes, utc_offset)

    logger.debug(f"Extracted {len(matches)} match(es) from {len(nodes)} row(s)")

    return matches
