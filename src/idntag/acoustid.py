"""
AcoustID API client for fingerprint-based artist/title identification.

One rate-limited POST per lookup; the best match is the highest scoring
result that carries both an artist and a title.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from idntag.errors import IdentifyError
from idntag.fingerprint import FingerprintResult, calculate_fingerprint
from idntag.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


@dataclass
class AcoustIDMatch:
    """Artist/title candidate from an AcoustID lookup."""

    artist: str
    title: str
    score: float = 0.0


class AcoustIDClient:
    """
    AcoustID API client for fingerprint lookups.

    The rate limiter is supplied by the caller so that every client built from
    the same limiter shares the 3 requests/second budget.
    """

    BASE_URL = "https://api.acoustid.org/v2"
    LOOKUP_META = "recordings releasegroups compress"

    def __init__(
        self,
        api_key: str | None = None,
        rate_limiter: RateLimiter | None = None,
        base_url: str | None = None,
        timeout_s: float = 30.0,
        http_client: httpx.Client | None = None,
    ):
        """
        Initialize AcoustID client.

        Args:
            api_key: AcoustID application key (defaults to ACOUSTID_API_KEY env var)
            rate_limiter: Shared minimum-interval gate (default 1/3 s)
            base_url: API root, without trailing slash
            timeout_s: HTTP timeout in seconds
            http_client: Optional preconfigured httpx client
        """
        self.api_key = api_key or os.getenv("ACOUSTID_API_KEY")
        self.rate_limiter = rate_limiter or RateLimiter()
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self._client = http_client or httpx.Client(timeout=timeout_s)

    def lookup(self, fingerprint: FingerprintResult) -> list[AcoustIDMatch]:
        """
        Look up artist/title matches for a fingerprint.

        Returns:
            Matches with both artist and title, in response order

        Raises:
            IdentifyError: On missing API key, HTTP failure, API error status,
                unparseable body or no usable match
        """
        if not self.api_key:
            raise IdentifyError("AcoustID API key required (set ACOUSTID_API_KEY env var)")

        self.rate_limiter.wait()

        url = f"{self.base_url}/lookup"
        form = {
            "client": self.api_key,
            "fingerprint": fingerprint.fingerprint,
            "duration": str(fingerprint.duration_sec),
            "meta": self.LOOKUP_META,
            "format": "json",
        }

        try:
            response = self._client.post(url, data=form)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise IdentifyError(f"AcoustID request failed: {e}") from e
        except ValueError as e:
            raise IdentifyError(f"AcoustID returned invalid JSON: {e}") from e

        return self._parse_response(data)

    def _parse_response(self, data: Any) -> list[AcoustIDMatch]:
        """
        Parse AcoustID API response into artist/title matches.

        Only the first recording of each result is considered; results whose
        recording lacks an artist name or a title are skipped, as are results
        that do not have the documented shape.
        """
        if not isinstance(data, dict):
            raise IdentifyError(f"AcoustID returned {type(data).__name__}, expected an object")

        if data.get("status") != "ok":
            error = data.get("error")
            error_msg = error.get("message") if isinstance(error, dict) else error
            raise IdentifyError(f"AcoustID API error: {error_msg or 'Unknown error'}")

        results = data.get("results") or []
        if not isinstance(results, list) or not results:
            raise IdentifyError("AcoustID returned no results")

        matches: list[AcoustIDMatch] = []
        for result in results:
            try:
                match = self._match_from_result(result)
            except (AttributeError, TypeError, ValueError, KeyError, IndexError) as e:
                logger.debug("Skipping malformed AcoustID result %r: %s", result, e)
                continue
            if match is not None:
                matches.append(match)

        if not matches:
            raise IdentifyError("AcoustID returned no usable matches")

        logger.debug("AcoustID returned %d usable matches", len(matches))
        return matches

    @staticmethod
    def _match_from_result(result: dict[str, Any]) -> AcoustIDMatch | None:
        recordings = result.get("recordings") or []
        if not recordings:
            return None

        recording = recordings[0]
        artists = recording.get("artists") or []
        artist = artists[0].get("name") if artists else None
        title = recording.get("title")

        if not isinstance(artist, str) or not isinstance(title, str) or not artist or not title:
            return None

        return AcoustIDMatch(artist=artist, title=title, score=float(result.get("score") or 0.0))

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> AcoustIDClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def best_match(matches: list[AcoustIDMatch]) -> AcoustIDMatch:
    """Highest scoring match; the earliest wins a tie."""
    if not matches:
        raise IdentifyError("No matches to choose from")

    best = matches[0]
    for match in matches[1:]:
        if match.score > best.score:
            best = match
    return best


class Identifier:
    """Fingerprints a file and resolves it to (artist, title) via AcoustID."""

    def __init__(
        self,
        client: AcoustIDClient,
        fpcalc_path: Path | None = None,
        fpcalc_timeout_sec: int = 30,
    ):
        self.client = client
        self.fpcalc_path = fpcalc_path
        self.fpcalc_timeout_sec = fpcalc_timeout_sec

    def identify(self, path: Path) -> tuple[str, str]:
        """
        Identify an audio file.

        Raises:
            IdentifyError: If fingerprinting or lookup fails
        """
        fingerprint = calculate_fingerprint(
            path, fpcalc_path=self.fpcalc_path, timeout_sec=self.fpcalc_timeout_sec
        )
        match = best_match(self.client.lookup(fingerprint))
        logger.info(
            "Identified %s as %s - %s (score %.2f)", path, match.artist, match.title, match.score
        )
        return match.artist, match.title

    __call__ = identify


## Tests


def test_acoustid_parse_response():
    """Test parsing AcoustID API response."""
    client = AcoustIDClient(api_key="test_key")

    response_data = {
        "status": "ok",
        "results": [
            {
                "score": 0.85,
                "recordings": [{"title": "Yesterday", "artists": [{"name": "The Beatles"}]}],
            },
            {"score": 0.99, "recordings": [{"title": "No Artist"}]},
            {"score": 0.5},
            {
                "score": 0.95,
                "recordings": [{"title": "Let It Be", "artists": [{"name": "The Beatles"}]}],
            },
        ],
    }

    matches = client._parse_response(response_data)

    assert [m.title for m in matches] == ["Yesterday", "Let It Be"]
    assert best_match(matches).title == "Let It Be"


def test_best_match_first_wins_tie():
    matches = [AcoustIDMatch("A", "one", 0.9), AcoustIDMatch("B", "two", 0.9)]
    assert best_match(matches).artist == "A"
