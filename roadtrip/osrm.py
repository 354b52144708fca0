"""
osrm.py – the routing-backend client
────────────────────────────────────────────────────────────────────
Sole responsibility: talk to OSRM's /trip service over HTTP and return
normalised results.  Dispatch rules and statistics live elsewhere.

OSRM answers a request it cannot route with a well-formed JSON body whose
`code` is not "Ok" (NoTrips, InvalidQuery, TooBig, …).  Those become a
`RouteBackendError`.  Anything that is not such a body – connection
errors, timeouts, 5xx, unparsable payloads – is a `RouteTransportError`.

Public symbols
--------------
RouteTransportError  – exception the aggregator aborts on
OSRMClient           – resolve(coords) -> RouteOk | RouteBackendError
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import requests

from .config import APIConfig
from .models import Leg, Point, RouteBackendError, RouteOk, Trip
from .util import MalformedInputError, TransportError

log = logging.getLogger("roadtrip.osrm")

# Internal coordinate type: (lat, lon)
LatLon = Tuple[float, float]


class RouteTransportError(TransportError):
    """OSRM could not be reached or returned something that is not an OSRM response."""


class OSRMClient:
    """
    OSRM Adapter / Client

    - Convert internal (lat, lon) → OSRM (lon,lat)
    - Call /trip for a round trip through every coordinate
    - Return a tagged result
    """

    def __init__(self, api: APIConfig, limit: int, session: Optional[requests.Session] = None):
        self.base_url = api.osrm_base_url.rstrip("/")
        self.profile = api.osrm_profile
        self.timeout = api.request_timeout
        self.limit = limit
        self.session = session or requests.Session()

    # ----------------
    # helpers
    # ----------------
    @staticmethod
    def format_coordinates(coords: Sequence[LatLon]) -> str:
        """Convert list of (lat, lon) to OSRM format 'lon,lat;lon,lat;...'"""
        return ";".join(f"{lon},{lat}" for lat, lon in coords)

    def trip_url(self, coords: Sequence[LatLon]) -> str:
        return f"{self.base_url}/trip/v1/{self.profile}/{self.format_coordinates(coords)}"

    @staticmethod
    def parse_response(data: Dict[str, Any]) -> Union[RouteOk, RouteBackendError]:
        """Check the `code` discriminator before touching any other field."""
        code = data.get("code")
        if code is None:
            raise RouteTransportError("OSRM payload has no 'code' field")
        if code != "Ok":
            return RouteBackendError(reason=data.get("message") or code)

        try:
            raw = data["trips"][0]
            trip = Trip(
                geometry=raw["geometry"],
                distance=raw["distance"],
                duration=raw["duration"],
                legs=[Leg(distance=leg["distance"], duration=leg["duration"]) for leg in raw["legs"]],
            )
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise RouteTransportError(f"Malformed OSRM trip payload: {exc}") from exc
        return RouteOk(trip=trip)

    # ----------------
    # public
    # ----------------
    def resolve(self, points: Sequence[Union[Point, LatLon]]) -> Union[RouteOk, RouteBackendError]:
        """
        Ask OSRM for the optimal round trip through `points`.

        Returns RouteOk / RouteBackendError; raises RouteTransportError.
        """
        coords: List[LatLon] = [
            (p.lat, p.lon) if isinstance(p, Point) else (p[0], p[1]) for p in points
        ]
        if not coords:
            raise MalformedInputError("cannot route an empty coordinate list")
        if len(coords) > self.limit:
            raise MalformedInputError(
                f"{len(coords)} coordinates exceed the backend limit of {self.limit}"
            )

        try:
            response = self.session.get(
                self.trip_url(coords),
                params={"geometries": "polyline6", "overview": "full"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise RouteTransportError(f"OSRM request failed: {exc}") from exc

        if response.status_code >= 500:
            raise RouteTransportError(f"OSRM returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise RouteTransportError("OSRM returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise RouteTransportError("OSRM returned an unexpected JSON document")

        result = self.parse_response(data)
        if isinstance(result, RouteBackendError):
            log.debug("OSRM refused %d coordinates: %s", len(coords), result.reason)
        return result


__all__ = ["OSRMClient", "RouteTransportError"]
