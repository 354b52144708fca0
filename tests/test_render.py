import polyline

from roadtrip.models import AggregateRoute, Leg, Trip
from roadtrip.render import MatplotlibRenderer, trip_coords

from conftest import make_points

COORDS = [(35.0, -80.0), (35.5, -80.5), (36.0, -81.0), (35.0, -80.0)]


def _route():
    trip = Trip(
        geometry=polyline.encode(COORDS, 6),
        distance=1.0,
        duration=1.0,
        legs=[Leg(distance=1.0, duration=1.0)],
    )
    return AggregateRoute(subject="wingstop", partitions=1, trips=[trip])


def test_trip_coords_are_lon_lat():
    coords = trip_coords(_route())[0]
    assert coords[1] == (-80.5, 35.5)


def test_render_produces_png():
    png = MatplotlibRenderer(width=300, height=200).render(_route(), make_points(COORDS[:3]))
    assert png.startswith(b"\x89PNG")
