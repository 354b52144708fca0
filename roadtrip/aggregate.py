"""
aggregate.py – one logical route out of many backend-sized requests
────────────────────────────────────────────────────────────────────
Partition the point set, resolve each partition, merge.

* A backend-reported routing error is recorded as a RouteFailure and the
  sibling partitions carry on.
* A transport fault on any partition propagates: the whole aggregate is
  abandoned and nothing is cached, so the next run retries everything.

Results are associated with their partition by position, so concurrent
dispatch does not change the outcome.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Protocol, Sequence

from .models import AggregateRoute, Point, RouteFailure, RouteResult, Trip
from .partition import split

log = logging.getLogger("roadtrip.aggregate")


class RouteResolver(Protocol):
    def resolve(self, points: Sequence[Point]) -> RouteResult:
        ...


def _dispatch(
    resolver: RouteResolver,
    partitions: List[List[Point]],
    max_workers: Optional[int],
) -> List[RouteResult]:
    if not max_workers or max_workers <= 1 or len(partitions) == 1:
        return [resolver.resolve(part) for part in partitions]
    with ThreadPoolExecutor(max_workers=min(max_workers, len(partitions))) as pool:
        # map() yields in submission order and re-raises the first failure
        return list(pool.map(resolver.resolve, partitions))


def merge(
    subject: str,
    partitions: List[List[Point]],
    results: Sequence[RouteResult],
) -> AggregateRoute:
    if len(results) != len(partitions):
        raise ValueError(f"{len(results)} results for {len(partitions)} partitions")

    trips: List[Trip] = []
    failures: List[RouteFailure] = []
    for idx, (part, result) in enumerate(zip(partitions, results)):
        if result.status == "ok":
            trips.append(result.trip)
        else:
            log.warning("%s: partition %d (%d points) not routed – %s",
                        subject, idx, len(part), result.reason)
            failures.append(RouteFailure(partition=idx, size=len(part), reason=result.reason))

    return AggregateRoute(subject=subject, partitions=len(partitions), trips=trips, failures=failures)


def resolve_aggregate(
    subject: str,
    points: Sequence[Point],
    resolver: RouteResolver,
    limit: int,
    *,
    random_state: int = 42,
    max_workers: Optional[int] = None,
) -> AggregateRoute:
    """Resolve every partition of `points`; raises on transport faults."""
    partitions = split(points, limit, random_state=random_state)
    results = _dispatch(resolver, partitions, max_workers)
    route = merge(subject, partitions, results)
    log.info("%s: %d/%d partitions routed", subject, len(route.trips), route.partitions)
    return route
