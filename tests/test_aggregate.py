import pytest

from roadtrip.aggregate import merge, resolve_aggregate
from roadtrip.models import AggregateRoute, RouteBackendError
from roadtrip.osrm import RouteTransportError

from conftest import FakeResolver, make_points, make_trip


def test_every_partition_is_accounted_for(grid_points):
    resolver = FakeResolver(refuse={1})
    route = resolve_aggregate("wingstop", grid_points, resolver, limit=40)
    assert len(route.trips) + len(route.failures) == route.partitions == len(resolver.calls)
    assert len(route.failures) == 1
    assert route.failures[0].reason == "NoTrips"
    assert route.ok


def test_backend_errors_do_not_abort_siblings(grid_points):
    resolver = FakeResolver(refuse={1, 41, 81})
    route = resolve_aggregate("wingstop", grid_points, resolver, limit=40)
    assert len(resolver.calls) == route.partitions
    assert len(route.failures) == 3
    assert len(route.trips) == route.partitions - 3


def test_transport_fault_aborts_the_aggregate(grid_points):
    resolver = FakeResolver(fault_on={81})
    with pytest.raises(RouteTransportError):
        resolve_aggregate("wingstop", grid_points, resolver, limit=40)


def test_concurrent_dispatch_matches_sequential(grid_points):
    sequential = resolve_aggregate("wingstop", grid_points, FakeResolver(refuse={41}), limit=20)
    concurrent = resolve_aggregate("wingstop", grid_points, FakeResolver(refuse={41}), limit=20,
                                   max_workers=4)
    assert concurrent == sequential


def test_small_set_makes_one_request():
    points = make_points([(35.0, -80.0), (35.1, -80.1), (35.2, -80.2)])
    resolver = FakeResolver()
    route = resolve_aggregate("wingstop", points, resolver, limit=100)
    assert route.partitions == 1
    assert resolver.calls == [[1, 2, 3]]
    assert len(route.trips[0].legs) == 3


def test_merge_keeps_dispatch_order():
    parts = [make_points([(1, 1)], start_id=1), make_points([(2, 2)], start_id=2),
             make_points([(3, 3)], start_id=3)]
    ok_a = FakeResolver().resolve(parts[0])
    ok_c = FakeResolver().resolve(parts[2])
    route = merge("x", parts, [ok_a, RouteBackendError(reason="TooBig"), ok_c])
    assert route.trips == [ok_a.trip, ok_c.trip]
    assert [f.partition for f in route.failures] == [1]


def test_aggregate_route_rejects_unaccounted_partitions():
    with pytest.raises(ValueError):
        AggregateRoute(subject="x", partitions=3, trips=[make_trip([1.0, 2.0])])
