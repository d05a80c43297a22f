"""Celestrak GP catalog client.

Fetches TLE groups (active satellites, debris clouds) from Celestrak's
public GP endpoint. No account is needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import requests

from orbclear.core.catalog import ObjectKind, TrackedObject, parse_tle_blocks

logger = logging.getLogger(__name__)


@dataclass
class CelestrakClient:
    """Client for the Celestrak GP endpoint.

    Attributes:
        timeout_s: Request timeout in seconds.
    """

    timeout_s: float = 10.0
    _session: requests.Session = field(default_factory=requests.Session, repr=False)

    BASE_URL = "https://celestrak.org/NORAD/elements/gp.php"

    def _request(self, params: dict[str, str]) -> str:
        """GET the endpoint and return the body.

        Raises:
            requests.HTTPError: If the request fails.
        """
        response = self._session.get(self.BASE_URL, params=params, timeout=self.timeout_s)
        response.raise_for_status()
        return response.text

    def fetch_group(self, group: str, max_count: int = 150) -> list[TrackedObject]:
        """Fetch a TLE group.

        Objects in groups whose name contains ``debris`` are marked as debris.

        Args:
            group: Celestrak group name, e.g. ``"active"``.
            max_count: Maximum number of objects returned.

        Returns:
            Parsed objects, at most ``max_count``.

        Raises:
            requests.HTTPError: If the request fails.
        """
        text = self._request({"GROUP": group, "FORMAT": "tle"})
        if not text.strip():
            logger.info("Celestrak group %s returned no data", group)
            return []

        kind = ObjectKind.DEBRIS if "debris" in group.lower() else ObjectKind.SATELLITE
        objects = parse_tle_blocks(text, kind=kind)[:max_count]
        logger.debug("Fetched %d objects from Celestrak group %s", len(objects), group)
        return objects
