"""Scrape the Hacker News "newest" listing and audit its chronological order."""

__version__ = "0.1.0"
