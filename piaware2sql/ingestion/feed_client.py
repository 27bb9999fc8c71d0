"""
dump1090 / PiAware feed client.

PiAware serves the receiver's current view of the sky as a single JSON
document, rewritten about once a second:

    {
        "now": 1610912345.6,
        "messages": 123456,
        "aircraft": [
            {"hex": "a1b2c3", "flight": "AAL123  ", "lat": 33.1, ...},
            ...
        ]
    }

The client only does transport and JSON decoding. Everything after the
aircraft list is extracted belongs to the pipeline.
"""

import json
import logging
from typing import Any, List, Optional

import requests

from piaware2sql.config import config
from piaware2sql.errors import FetchError, ParseError

logger = logging.getLogger(__name__)

AIRCRAFT_KEY = 'aircraft'


class FeedClient:
    """
    Client for the dump1090 aircraft.json endpoint.

    Handles:
    - GET requests with a fixed timeout
    - Mapping transport failures onto FetchError
    """

    def __init__(
        self,
        url: str,
        timeout: Optional[float] = 30,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls) -> 'FeedClient':
        """Create client from application configuration."""
        return cls(
            url=config.feed.url,
            timeout=config.feed.timeout_seconds,
        )

    def fetch(self) -> str:
        """
        Download the feed document as text.

        Raises:
            FetchError on network errors or non-200 responses
        """
        logger.debug(f'Fetching feed: {self.url}')

        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            logger.error('Feed request timed out')
            raise FetchError(f'timeout fetching {self.url}') from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else '?'
            logger.error(f'Feed returned HTTP {status}')
            raise FetchError(f'HTTP {status} from {self.url}') from e
        except requests.exceptions.RequestException as e:
            logger.error(f'Feed request failed: {e}')
            raise FetchError(str(e)) from e

        return response.text

    def close(self) -> None:
        self.session.close()


def parse_aircraft(document: str) -> List[Any]:
    """
    Decode a feed document and return its aircraft list.

    Raises:
        ParseError if the document is not JSON or has no aircraft list
    """
    try:
        data = json.loads(document)
    except (TypeError, ValueError) as e:
        raise ParseError(f'malformed feed document: {e}') from e

    if not isinstance(data, dict):
        raise ParseError('feed document is not a JSON object')

    aircraft = data.get(AIRCRAFT_KEY)
    if not isinstance(aircraft, list):
        raise ParseError(f"feed document has no '{AIRCRAFT_KEY}' list")

    logger.debug(f'Received {len(aircraft)} aircraft entries')
    return aircraft


def flight_sort_key(entry: Any) -> str:
    """Sort key by flight identifier; null or missing sorts as empty."""
    flight = entry.get('flight') if isinstance(entry, dict) else None
    return '' if flight is None else str(flight)


def sort_by_flight(aircraft: List[Any]) -> List[Any]:
    """Order entries by flight identifier, ascending string comparison."""
    return sorted(aircraft, key=flight_sort_key)
