#!/usr/bin/env python3
"""
Main orchestration module for the Fixture Watcher pipeline.

This module coordinates the complete pipeline:
fetch → parse → filter → notify

It handles command line parsing, logging setup, and error handling
for the entire workflow.
"""

import argparse
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import List, Optional

import requests

from fixture_watcher import __version__
from fixture_watcher.config import Config, ConfigError, SecretError, load_config
from fixture_watcher.fetch import FetchError, create_session, fetch_source
from fixture_watcher.filter import FilterConfigError, build_criteria, filter_matches
from fixture_watcher.notify import PushoverAPIError, send_matches
from fixture_watcher.parse import Match, StructureError, extract_matches
from fixture_watcher.timeparse import TimeParseError
from fixture_watcher.utils import get_logger, is_truthy, setup_logging


# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


class SourceError(Exception):
    """A single source could not be fetched or parsed."""

    def __init__(self, source: str, cause: Exception):
        super().__init__(f"could not get games from {source}: {cause}")
        self.source = source
        self.cause = cause


def scrape_source(
    url: str,
    session: Optional[requests.Session],
    config: Config
) -> List[Match]:
    """
    Fetch one fixture page and extract its matches.

    Args:
        url: Source URL.
        session: HTTP session to use; a new one is created and closed
                 for this source otherwise.
        config: Pipeline configuration.

    Returns:
        Matches in document order.

    Raises:
        SourceError: If fetching or extraction fails.
    """
    logger = get_logger("main")
    logger.info(f"Checking matches from {url}")

    owns_session = session is None
    if session is None:
        session = create_session()

    try:
        html = fetch_source(url, session, timeout=config.timeout).raise_for_failure()
        matches = extract_matches(html, config.utc_offset)
    except (FetchError, StructureError, TimeParseError) as e:
        raise SourceError(url, e) from e
    finally:
        if owns_session:
            session.close()

    logger.info(f"Found {len(matches)} match(es) at {url}")
    return matches


def collect_matches(
    config: Config,
    session: Optional[requests.Session] = None
) -> List[Match]:
    """
    Scrape all sources in parallel and aggregate their matches.

    The result keeps the configured source order no matter in which
    order the fetches finish. Without a session every source gets its
    own, so no session is used by two threads.

    Args:
        config: Pipeline configuration.
        session: Optional session shared by all fetches.

    Returns:
        Matches from all sources.

    Raises:
        SourceError: For the first failing source in configured order,
                     unless on_source_error is "skip".
    """
    logger = get_logger("main")

    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        futures = [
            executor.submit(scrape_source, url, session, config)
            for url in config.scrape_urls
        ]

    matches: List[Match] = []
    failed = 0
    for future in futures:
        try:
            matches.extend(future.result())
        except SourceError as e:
            if config.on_source_error != "skip":
                raise
            failed += 1
            logger.warning(f"Skipping source {e.source}: {e.cause}")

    logger.info(
        f"Collected {len(matches)} match(es) from "
        f"{len(config.scrape_urls) - failed}/{len(config.scrape_urls)} source(s)"
    )
    return matches


def run_pipeline(
    config: Config,
    dry_run: bool = False,
    session: Optional[requests.Session] = None,
    today: Optional[date] = None
) -> List[Match]:
    """
    Execute the complete fixture watcher pipeline.

    Pipeline stages:
    1. Fetch and parse all fixture pages
    2. Filter for upcoming matches of the configured teams
    3. Notify about each of them

    Args:
        config: Pipeline configuration.
        dry_run: If True, skip actual notification.
        session: Optional HTTP session for fetching.
        today: Override for today's date.

    Returns:
        The matches that were notified about, in order.

    Raises:
        SourceError: If a source fails and on_source_error is "abort".
        SecretError: If Pushover credentials cannot be resolved.
        PushoverAPIError: If a notification cannot be delivered.
    """
    logger = get_logger("main")

    logger.info(f"[Stage 1/3] Scraping {len(config.scrape_urls)} source(s)...")
    matches = collect_matches(config, session)

    logger.info("[Stage 2/3] Filtering matches...")
    criteria = build_criteria(
        config.search_duration_in_days,
        config.team_pattern,
        config.utc_offset,
        now=today
    )
    upcoming = filter_matches(matches, criteria)

    if not upcoming:
        logger.info("No matches from sources matched configured filters")
        return []

    logger.info(
        f"[Stage 3/3] {len(upcoming)} match(es) from sources matched configured filters, "
        f"sending notifications!"
    )
    send_matches(upcoming, config, dry_run=dry_run)

    return upcoming


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="fixture-watcher",
        description="Notify about upcoming matches scraped from fixture pages."
    )
    parser.add_argument(
        "-c", "--config-file",
        default=None,
        help="configuration file (default: $FIXTURE_WATCHER_CONFIG or config.json)"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="logging level (default: $LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="render notifications without sending them"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("run", help="scrape, filter and notify once")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the Fixture Watcher pipeline.

    Sets up logging and runs the pipeline with proper error handling.

    Returns:
        Exit code for the process.
    """
    args = build_parser().parse_args(argv)

    log_level = (args.log_level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    setup_logging(log_level)
    logger = get_logger("main")

    dry_run = args.dry_run or is_truthy(os.environ.get("DRY_RUN"))
    if dry_run:
        logger.info("Running in DRY RUN mode - notifications will be skipped")

    try:
        config = load_config(args.config_file)
    except (ConfigError, FilterConfigError) as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    try:
        run_pipeline(config, dry_run=dry_run)
        return EXIT_SUCCESS

    except SourceError as e:
        logger.error(f"Pipeline aborted: {e}")
        return EXIT_FAILURE

    except SecretError as e:
        logger.error(f"Could not resolve Pushover credentials: {e}")
        return EXIT_CONFIG_ERROR

    except PushoverAPIError as e:
        logger.error(f"could not send out matches via pushover: {e}")
        return EXIT_FAILURE

    except KeyboardInterrupt:
        logger.warning("Pipeline interrupted by user")
        return EXIT_FAILURE

    except Exception as e:
        logger.exception(f"Unexpected error in pipeline: {e}")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
