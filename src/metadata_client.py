"""
TMDB client used for title searches and lookups by movie id.
"""

import logging
from dataclasses import dataclass

import requests
from requests.utils import quote
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from utils import TMDB_API_BASE_URL, DEFAULT_MAX_RETRIES, DEFAULT_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class MetadataError(Exception):
    """Base class for metadata service failures."""
    pass


class TransportError(MetadataError):
    """A metadata call failed: network error, timeout, non-2xx or bad JSON."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_transient(self):
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


@dataclass(frozen=True)
class Candidate:
    """A movie as TMDB describes it."""
    identifier: str
    title: str
    release_year: str = ""
    original_title: str = ""


def candidate_from_payload(movie):
    """
    Turn a TMDB movie object into a Candidate.

    Args:
        movie: Dictionary from a search result or /movie/{id} response

    Returns:
        Candidate, or None if the payload has no id
    """
    if not isinstance(movie, dict) or movie.get("id") is None:
        return None
    release_date = movie.get("release_date") or ""
    return Candidate(
        identifier=str(movie["id"]),
        title=movie.get("title") or "",
        release_year=release_date[:4],
        original_title=movie.get("original_title") or "",
    )


def _is_transient(exc):
    return isinstance(exc, TransportError) and exc.is_transient


class TMDbClient:
    """
    Thin wrapper over the TMDB v3 REST API.

    Every call carries a timeout. Transient failures (timeouts, connection
    errors, 429 and 5xx) are retried with exponential backoff before being
    raised as TransportError.
    """

    def __init__(self, api_key, language=None, timeout=DEFAULT_REQUEST_TIMEOUT,
                 max_retries=DEFAULT_MAX_RETRIES, session=None,
                 base_url=TMDB_API_BASE_URL, backoff_multiplier=0.5):
        self.api_key = api_key
        self.language = language
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self._get_json = retry(
            stop=stop_after_attempt(max(1, max_retries)),
            wait=wait_exponential(multiplier=backoff_multiplier, min=0, max=8),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )(self._request_json)

    @classmethod
    def from_config(cls, config, session=None):
        return cls(
            api_key=config.require_api_key(),
            language=config.language,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
            session=session,
        )

    def _request_json(self, path, params):
        url = f"{self.base_url}{path}"
        query = {"api_key": self.api_key}
        query.update({k: v for k, v in params.items() if v})
        try:
            response = self.session.get(url, params=query, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportError(f"Timed out after {self.timeout}s calling {path}") from e
        except requests.RequestException as e:
            raise TransportError(f"Request to {path} failed: {e}") from e

        if response.status_code == 404:
            return None
        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"HTTP {response.status_code} for {path}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Malformed JSON from {path}",
                                 status_code=response.status_code) from e

    def search(self, title, year=None, language=None):
        """
        Search movies by title.

        Args:
            title: Query text
            year: Optional release year filter
            language: Optional result language, defaults to the client's

        Returns:
            List of Candidate (first page of results)

        Raises:
            TransportError: If the call fails or the payload is malformed
        """
        logger.debug("Searching TMDB for %r (year=%s)", title, year)
        data = self._get_json("/search/movie", {
            "query": title,
            "year": year,
            "language": language or self.language,
        })
        if data is None:
            raise TransportError("HTTP 404 for /search/movie", status_code=404)
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise TransportError("Search payload has no results list")
        candidates = [candidate_from_payload(m) for m in results]
        return [c for c in candidates if c is not None]

    def fetch_by_identifier(self, identifier):
        """
        Fetch the canonical record for a TMDB movie id.

        Args:
            identifier: TMDB movie id

        Returns:
            Candidate, or None if TMDB has no such movie

        Raises:
            TransportError: If the call fails or the payload is malformed
        """
        logger.debug("Fetching TMDB movie %s", identifier)
        # Sheet cells go into the URL path
        path = "/movie/" + quote(str(identifier).strip(), safe="")
        data = self._get_json(path, {"language": self.language})
        if data is None:
            return None
        if not isinstance(data, dict):
            raise TransportError(f"Malformed movie payload for {identifier}")
        return candidate_from_payload(data)
