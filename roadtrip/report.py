"""
report.py – gather finished subjects for slides, and a CSV of all summaries.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

import pandas as pd

from .cache import CacheMiss, CacheStore, Stage
from .models import AggregateRoute, PointSet, Summary
from .subjects import Subject

log = logging.getLogger("roadtrip.report")


@dataclass(frozen=True)
class Payload:
    subject: Subject
    points: PointSet
    route: AggregateRoute
    image: Path


def collect_payloads(store: CacheStore, subjects: Sequence[Subject]) -> List[Payload]:
    """Subjects with cached points and a route that has at least one trip."""
    payloads = []
    for subject in subjects:
        points = store.get_model(subject.key, Stage.POINTS, PointSet)
        route = store.get_model(subject.key, Stage.ROUTE, AggregateRoute)
        if isinstance(points, CacheMiss) or isinstance(route, CacheMiss) or not route.ok:
            continue
        payloads.append(Payload(subject, points, route, store.path(subject.key, Stage.ARTIFACT)))
    return payloads


def export_summaries(summaries: Sequence[Summary], out_dir: Path) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame([s.model_dump() for s in summaries])
    out_file = out_dir / "summaries.csv"
    df.to_csv(out_file, index=False)
    log.info("Summary table written to %s (%d rows)", out_file, len(df))
    return out_file
