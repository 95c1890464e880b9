"""
Check that titles stored next to a TMDB id still match TMDB's title.
"""

import logging
from dataclasses import dataclass

from metadata_client import TransportError
from utils import is_unknown_identifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Verified:
    title: str


@dataclass(frozen=True)
class Mismatched:
    expected_title: str
    actual_title: str


@dataclass(frozen=True)
class Skipped:
    reason: str


def titles_equal(a, b):
    """Compare titles ignoring case and repeated whitespace."""
    return " ".join(a.casefold().split()) == " ".join(b.casefold().split())


def verify_title(client, stored_title, identifier):
    """
    Compare a stored title with the canonical title for its TMDB id.

    Lookup problems never escalate: they come back as Skipped.

    Args:
        client: Object with fetch_by_identifier(identifier)
        stored_title: Title as it appears in the catalog
        identifier: TMDB movie id from the catalog

    Returns:
        Verified, Mismatched(expected_title, actual_title) or Skipped(reason)
    """
    if is_unknown_identifier(identifier):
        return Skipped("no identifier")

    identifier = str(identifier).strip()
    try:
        canonical = client.fetch_by_identifier(identifier)
    except TransportError as e:
        logger.warning("Could not fetch TMDB movie %s: %s", identifier, e)
        return Skipped(f"lookup failed: {e}")

    if canonical is None:
        return Skipped(f"no TMDB movie with id {identifier}")
    if not canonical.title:
        return Skipped(f"TMDB movie {identifier} has no title")

    if titles_equal(stored_title, canonical.title):
        return Verified(canonical.title)
    return Mismatched(stored_title, canonical.title)
