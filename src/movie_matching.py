"""
Title search against TMDB and classification of how many movies came back.
"""

import logging
from dataclasses import dataclass

from row_normalizer import normalize_title
from utils import AMBIGUITY_POLICIES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotFound:
    query: str


@dataclass(frozen=True)
class SingleMatch:
    candidate: object


@dataclass(frozen=True)
class Ambiguous:
    candidates: tuple


@dataclass(frozen=True)
class Unresolved:
    """Lookup failed, or an ambiguity was rejected by policy."""
    reason: str


def classify_candidates(query, candidates):
    """
    Classify a search result by cardinality.

    Args:
        query: Title that was searched
        candidates: Sequence of Candidate

    Returns:
        NotFound for zero results, SingleMatch for one, Ambiguous otherwise
    """
    candidates = tuple(candidates)
    if not candidates:
        return NotFound(query)
    if len(candidates) == 1:
        return SingleMatch(candidates[0])
    return Ambiguous(candidates)


def match_title(client, title, year=None, language=None):
    """
    Search TMDB for a catalog title and classify the result.

    No tie-breaking happens here; ambiguity is returned as-is.

    Args:
        client: Object with search(title, year, language)
        title: Stored title (normalized before querying)
        year: Optional release year filter
        language: Optional result language

    Returns:
        NotFound, SingleMatch or Ambiguous

    Raises:
        TransportError: Propagated from the client
    """
    query = normalize_title(title)
    candidates = client.search(query, year=year or None, language=language)
    return classify_candidates(query, candidates)


def apply_ambiguity_policy(result, year, policy="report"):
    """
    Decide what an Ambiguous result becomes.

    Args:
        result: Output of match_title
        year: The row's release year
        policy: "report" keeps every candidate, "reject" marks the row
            unresolved, "prefer_year" keeps the single candidate released in
            the row's year if there is exactly one

    Returns:
        Match result after the policy is applied
    """
    if policy not in AMBIGUITY_POLICIES:
        raise ValueError(f"Unknown ambiguity policy: {policy}")
    if not isinstance(result, Ambiguous) or policy == "report":
        return result

    if policy == "reject":
        return Unresolved(f"{len(result.candidates)} candidates, rejected by policy")

    same_year = [c for c in result.candidates if year and c.release_year == year]
    if len(same_year) == 1:
        logger.debug("Resolved ambiguity by year %s -> %s", year, same_year[0].identifier)
        return SingleMatch(same_year[0])
    return result
