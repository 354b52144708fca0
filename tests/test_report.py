import pandas as pd

from roadtrip.cache import Stage
from roadtrip.models import AggregateRoute, PointSet, RouteFailure
from roadtrip.report import collect_payloads, export_summaries
from roadtrip.subjects import Subject

from conftest import make_points, make_trip
from test_stats import _summary


def test_collect_payloads_only_keeps_routed_subjects(store):
    ok, failed, missing = Subject(name="Wingstop"), Subject(name="Waffle House"), Subject(name="Krispy Kreme")
    for subject in (ok, failed):
        store.put(subject.key, Stage.POINTS, PointSet(subject=subject.key, points=make_points([(1, 1)])))
    store.put(ok.key, Stage.ROUTE, AggregateRoute(subject=ok.key, partitions=1, trips=[make_trip([1.0, 2.0])]))
    store.put(failed.key, Stage.ROUTE, AggregateRoute(
        subject=failed.key, partitions=1, failures=[RouteFailure(partition=0, size=1, reason="NoTrips")]))

    payloads = collect_payloads(store, [ok, failed, missing])

    assert [p.subject.key for p in payloads] == ["wingstop"]
    assert payloads[0].image == store.path("wingstop", Stage.ARTIFACT)


def test_export_summaries(tmp_path):
    out = export_summaries([_summary("a", 10), _summary("b", 20)], tmp_path / "out")
    df = pd.read_csv(out)
    assert list(df["subject"]) == ["a", "b"]
    assert "southernmost_lat" in df.columns
