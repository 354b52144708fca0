# File: roadtrip/overpass.py
"""
Point source: every OSM node matching a tag filter, via the Overpass API.

Two area scopes are supported.  NORTH_AMERICA asks once for the United
States, Canada and Mexico.  CONTIGUOUS_US issues one query per lower-48
state (plus DC) and unions the answers, which keeps islands and far-flung
territories out of brands that have them.
"""
import logging
import time
from enum import Enum
from typing import Dict, List, Optional

import requests

from .config import APIConfig
from .models import Point
from .util import TransportError

log = logging.getLogger("roadtrip.overpass")


class PointSourceError(TransportError):
    """Overpass could not be reached (after retries) or returned garbage."""


class AreaScope(Enum):
    NORTH_AMERICA = "north_america"
    CONTIGUOUS_US = "contiguous_us"


CONTIGUOUS_US_STATES = (
    "Alabama", "Arizona", "Arkansas", "California", "Colorado", "Connecticut",
    "Delaware", "District of Columbia", "Florida", "Georgia", "Idaho", "Illinois",
    "Indiana", "Iowa", "Kansas", "Kentucky", "Louisiana", "Maine", "Maryland",
    "Massachusetts", "Michigan", "Minnesota", "Mississippi", "Missouri", "Montana",
    "Nebraska", "Nevada", "New Hampshire", "New Jersey", "New Mexico", "New York",
    "North Carolina", "North Dakota", "Ohio", "Oklahoma", "Oregon", "Pennsylvania",
    "Rhode Island", "South Carolina", "South Dakota", "Tennessee", "Texas", "Utah",
    "Vermont", "Virginia", "Washington", "West Virginia", "Wisconsin", "Wyoming",
)


def north_america_query(filter_expr: str) -> str:
    return f"""
    [out:json];
    (
      area["name"="United States"];
      area["name"="Canada"];
      area["name"="Mexico"];
    )->.searchArea;
    node[{filter_expr}](area.searchArea);
    out;
    """


def region_query(filter_expr: str, region: str) -> str:
    return f"""
    [out:json];
    area["name"="{region}"]["admin_level"="4"]->.searchArea;
    node[{filter_expr}](area.searchArea);
    out;
    """


class OverpassClient:
    def __init__(self, api: APIConfig, session: Optional[requests.Session] = None):
        self.overpass_url = api.overpass_url
        self.timeout = api.request_timeout
        self.max_retries = api.max_retries
        self.retry_delay = api.retry_delay_s
        self.session = session or requests.Session()

    def fetch(self, filter_expr: str, scope: AreaScope = AreaScope.NORTH_AMERICA) -> List[Point]:
        """Return matching nodes as points, in source order, without duplicates."""
        if scope is AreaScope.CONTIGUOUS_US:
            queries = [region_query(filter_expr, region) for region in CONTIGUOUS_US_STATES]
        else:
            queries = [north_america_query(filter_expr)]

        seen: Dict[int, Point] = {}
        anonymous: List[Point] = []
        for query in queries:
            for point in self._parse_nodes(self._execute_overpass_query(query)):
                if point.id is None:
                    anonymous.append(point)
                elif point.id not in seen:
                    seen[point.id] = point

        points = list(seen.values()) + anonymous
        log.info("Overpass returned %d nodes for %s (%s)", len(points), filter_expr, scope.value)
        return points

    @staticmethod
    def _parse_nodes(data: Dict) -> List[Point]:
        points = []
        for element in data.get("elements", []):
            if element.get("type") != "node":
                continue
            tags = {k: str(v) for k, v in (element.get("tags") or {}).items()}
            points.append(Point(lat=element["lat"], lon=element["lon"], id=element.get("id"), tags=tags))
        return points

    def _execute_overpass_query(self, query: str) -> Dict:
        """Execute an Overpass API query with retries"""
        for attempt in range(self.max_retries):
            try:
                response = self.session.post(
                    self.overpass_url,
                    data={"data": query},
                    timeout=self.timeout,
                )
                response.raise_for_status()
                data = response.json()
                if not isinstance(data, dict):
                    raise ValueError("Overpass returned an unexpected JSON document")
                return data
            except (requests.RequestException, ValueError) as e:
                if attempt < self.max_retries - 1:
                    log.warning("Retry %d/%d after error: %s", attempt + 1, self.max_retries, e)
                    time.sleep(self.retry_delay * (attempt + 1))
                else:
                    log.error("Failed to execute Overpass query: %s", e)
                    raise PointSourceError(str(e)) from e

        raise PointSourceError("Overpass query was never attempted (max_retries < 1)")
