"""
Fixture Watcher - Automated match notification pipeline.

This package provides functionality to:
- Fetch fixture-list pages from configured sources
- Extract match records grouped under date headers
- Filter matches by team pattern and upcoming date window
- Notify via Pushover when matches of interest are coming up
"""

__version__ = "1.0.0"
__author__ = "Fixture Watcher Team"
