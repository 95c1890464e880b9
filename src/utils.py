"""
Utility functions and constants for the catalog reconciler.
"""

import logging

# Global configuration constants
TMDB_API_BASE_URL = "https://api.themoviedb.org/3"

KEY_SEPARATOR = "|"

# Identifier cells that mean "we don't know the TMDB id yet"
UNKNOWN_IDENTIFIER_MARKERS = {"", "n/a", "na", "unknown", "none", "-", "?"}

AMBIGUITY_POLICIES = ("report", "reject", "prefer_year")

DEFAULT_MAX_WORKERS = 5
MAX_WORKER_LIMIT = 8
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_MAX_RETRIES = 3

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(level=logging.INFO):
    """Configure root logging for command-line runs."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


def is_unknown_identifier(value):
    """
    Check whether an identifier cell is empty or a sentinel "unknown" marker.

    Args:
        value: Identifier cell text

    Returns:
        Boolean, True if the identifier should be treated as absent
    """
    if value is None:
        return True
    return str(value).strip().lower() in UNKNOWN_IDENTIFIER_MARKERS


def clamp_workers(max_workers):
    """Keep the lookup pool between 1 and MAX_WORKER_LIMIT threads."""
    return max(1, min(int(max_workers), MAX_WORKER_LIMIT))
