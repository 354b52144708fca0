import pytest

from roadtrip.cache import CacheStore
from roadtrip.config import CacheConfig
from roadtrip.models import Leg, Point, RouteBackendError, RouteOk, Trip


def make_points(coords, start_id=1):
    return [Point(lat=lat, lon=lon, id=start_id + i) for i, (lat, lon) in enumerate(coords)]


def make_trip(leg_distances, duration=3600.0):
    legs = [Leg(distance=d, duration=duration / len(leg_distances)) for d in leg_distances]
    return Trip(geometry="_p~iF~ps|U", distance=sum(leg_distances), duration=duration, legs=legs)


class FakeResolver:
    """Routes every partition; refuses any partition containing a point id in `refuse`."""

    def __init__(self, refuse=(), fault_on=()):
        self.refuse = set(refuse)
        self.fault_on = set(fault_on)
        self.calls = []

    def resolve(self, points):
        from roadtrip.osrm import RouteTransportError

        ids = {p.id for p in points}
        self.calls.append(sorted(ids))
        if ids & self.fault_on:
            raise RouteTransportError("connection reset")
        if ids & self.refuse:
            return RouteBackendError(reason="NoTrips")
        n = len(points)
        return RouteOk(trip=make_trip([1000.0 * (i + 1) for i in range(n)], duration=600.0 * n))


@pytest.fixture
def store(tmp_path):
    return CacheStore(CacheConfig(root=tmp_path / "cache"))


@pytest.fixture
def grid_points():
    # three well separated clumps of 40 points each
    coords = []
    for base_lat, base_lon in ((30.0, -95.0), (40.0, -75.0), (45.0, -120.0)):
        for i in range(40):
            coords.append((base_lat + (i % 8) * 0.01, base_lon + (i // 8) * 0.01))
    return make_points(coords)
