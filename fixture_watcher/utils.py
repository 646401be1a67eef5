"""
Utility functions for the Fixture Watcher pipeline.

This module provides:
- Central logging configuration
- JSON and text file helpers
- Environment flag parsing
- UTC offset parsing shared by config and parsing code
"""

import json
import logging
import re
import sys
from datetime import timedelta, timezone
from pathlib import Path
from typing import Any, Optional


# Accepted textual UTC offsets: "+02:00", "-0530", "Z", "UTC"
_UTC_OFFSET_PATTERN = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure and return the root logger for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to INFO.

    Returns:
        Configured logger instance.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Configure root logger
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    logger = logging.getLogger("fixture_watcher")
    logger.setLevel(log_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Name for the logger, typically the module name.

    Returns:
        Logger instance configured as a child of the main application logger.
    """
    return logging.getLogger(f"fixture_watcher.{name}")


def read_json_file(filepath: str) -> Any:
    """
    Read and decode a JSON file.

    Args:
        filepath: Path to the JSON file.

    Returns:
        Parsed JSON data.

    Raises:
        OSError: If the file cannot be read.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    logger = get_logger("utils")

    with open(Path(filepath), "r", encoding="utf-8") as f:
        data = json.load(f)

    logger.debug(f"Successfully read JSON from {filepath}")
    return data


def read_text_file(filepath: str) -> str:
    """
    Read a text file, dropping one trailing newline.

    The trailing newline is not part of a secret stored in a file.

    Args:
        filepath: Path to the file.

    Returns:
        File contents.
    """
    with open(Path(filepath), "r", encoding="utf-8") as f:
        content = f.read()

    if content.endswith("\r\n"):
        return content[:-2]
    if content.endswith("\n"):
        return content[:-1]
    return content


def is_truthy(value: Optional[str]) -> bool:
    """Interpret an environment-style flag ("true", "1", "yes")."""
    return (value or "").strip().lower() in ("true", "1", "yes")


def parse_utc_offset(value: str) -> timezone:
    """
    Parse a fixed UTC offset such as "+02:00" into a timezone.

    Args:
        value: Offset text. "Z" and "UTC" mean zero offset.

    Returns:
        datetime.timezone with the given fixed offset.

    Raises:
        ValueError: If the text is not a valid offset.
    """
    text = value.strip()
    if text.upper() in ("Z", "UTC"):
        return timezone.utc

    match = _UTC_OFFSET_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid UTC offset '{value}', expected e.g. '+02:00'")

    sign, hours, minutes = match.groups()
    if int(hours) > 23 or int(minutes) > 59:
        raise ValueError(f"UTC offset out of range: '{value}'")

    delta = timedelta(hours=int(hours), minutes=int(minutes))
    if sign == "-":
        delta = -delta

    return timezone(delta)
