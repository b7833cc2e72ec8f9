"""
REST Countries source for the canonical country dictionary.

Runs at generation time only; the quiz app never talks to the network.
A single request is made with a hard timeout. Failures are not retried:
a broken upstream stops the run instead of producing partial data.

Endpoint: https://restcountries.com/v3.1/all
"""

import logging
from typing import Any

import httpx

from .base import CanonicalBatch, SourceBase, SourceCapability, SourceError

logger = logging.getLogger(__name__)


# API Configuration
REST_COUNTRIES_URL = (
    "https://restcountries.com/v3.1/all"
    "?fields=cca2,name,translations,continents,subregion,landlocked,unMember,capital"
)
DEFAULT_TIMEOUT = 30.0
DATASET_ID = "countries_base"


def _first(value: Any) -> Any:
    """First element of a list, or None."""
    if isinstance(value, list) and value:
        return value[0]
    return None


def _get(data: Any, *keys: str) -> Any:
    """Walk nested dicts, returning None as soon as a level is missing."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def map_country(country: dict[str, Any]) -> dict[str, Any]:
    """
    Map one REST Countries payload row to a canonical candidate row.

    Values are extracted but not type-checked or defaulted.

    Args:
        country: Raw API object

    Returns:
        Candidate row with the canonical artifact keys
    """
    return {
        "id": country.get("cca2"),
        "label_primary": _get(country, "translations", "jpn", "common"),
        "label_fallback": _get(country, "name", "common"),
        "region": _first(country.get("continents")),
        "subregion": country.get("subregion"),
        "trait_flag": country.get("landlocked"),
        "membership_flag": country.get("unMember"),
        "capital": _first(country.get("capital")),
    }


class RestCountriesSource(SourceBase):
    """Canonical dictionary source backed by the REST Countries API."""

    capability = SourceCapability.CANONICAL

    def __init__(self, url: str = REST_COUNTRIES_URL, timeout: float = DEFAULT_TIMEOUT):
        """
        Args:
            url: Endpoint URL including the ``fields`` query
            timeout: Hard timeout in seconds for the whole request
        """
        super().__init__(source_id="rest-countries", name="REST Countries")
        self.url = url
        self.timeout = timeout

    async def fetch_datasets(self) -> list[CanonicalBatch]:
        data = await self._fetch()

        if not isinstance(data, list):
            raise SourceError(
                f"Unexpected REST Countries response: expected a JSON array, got {type(data).__name__}"
            )

        rows = [map_country(c) for c in data if isinstance(c, dict)]
        skipped = len(data) - len(rows)
        if skipped:
            logger.info("REST Countries: ignored %d non-object entries", skipped)

        logger.info("REST Countries: fetched %d countries", len(rows))
        return [CanonicalBatch(id=DATASET_ID, entities=rows)]

    async def _fetch(self) -> Any:
        """
        Fetch the raw country list.

        Raises:
            SourceError: On timeout, connection failure, a bad URL, an HTTP
                error status or invalid JSON
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                return response.json()

        except httpx.TimeoutException:
            raise SourceError(
                f"REST Countries did not respond within {self.timeout:g}s. URL: {self.url}"
            ) from None
        except httpx.HTTPStatusError as e:
            raise SourceError(
                f"REST Countries returned HTTP {e.response.status_code}: "
                f"{e.response.reason_phrase} ({self.url})"
            ) from None
        except httpx.RequestError as e:
            raise SourceError(
                f"Failed to connect to REST Countries. Check network/TLS settings. "
                f"URL: {self.url}. Cause: {e}"
            ) from None
        except httpx.InvalidURL as e:
            raise SourceError(f"Invalid REST Countries URL {self.url!r}: {e}") from None
        except httpx.HTTPError as e:
            raise SourceError(f"REST Countries request failed: {e} ({self.url})") from None
        except ValueError as e:
            raise SourceError(f"REST Countries returned invalid JSON: {e}") from e
