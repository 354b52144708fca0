"""
partition.py – cut an oversized point set into backend-sized clusters
────────────────────────────────────────────────────────────────────
The routing backend optimises the visiting order *inside* one request
only, so partitions should be geographically compact.  We run k-means
on (lat, lon) and keep bisecting any cluster that is still too big:

    first split of the whole set : k = ceil(n / limit) + 1
    any later split              : k = 2

The worklist is processed to a fixed point; every split strictly shrinks
the largest remaining group, so the loop terminates.

Public symbols
--------------
cluster_count(...)   – k for one split
split(...)           – list of partitions, each ≤ limit points
"""
from __future__ import annotations

import logging
import math
import warnings
from collections import deque
from typing import Deque, Dict, List, Sequence

import numpy as np
from sklearn.cluster import KMeans
from sklearn.exceptions import ConvergenceWarning

from .models import Point
from .util import MalformedInputError

log = logging.getLogger("roadtrip.partition")


def cluster_count(size: int, limit: int, first: bool) -> int:
    """Number of clusters for one split, never more than there are points."""
    k = math.ceil(size / limit) + 1 if first else 2
    return max(2, min(k, size))


def _groups_from_labels(points: Sequence[Point], labels: Sequence[int]) -> List[List[Point]]:
    """Group points by label; groups ordered by first appearance, members keep input order."""
    groups: Dict[int, List[Point]] = {}
    for point, label in zip(points, labels):
        groups.setdefault(int(label), []).append(point)
    return list(groups.values())


def _bisect(points: Sequence[Point]) -> List[List[Point]]:
    """Fallback when k-means cannot separate (e.g. identical coordinates)."""
    ordered = sorted(points, key=lambda p: (p.lat, p.lon))
    mid = len(ordered) // 2
    return [ordered[:mid], ordered[mid:]]


def _kmeans_split(points: Sequence[Point], k: int, random_state: int) -> List[List[Point]]:
    coords = np.array([[p.lat, p.lon] for p in points], dtype=float)
    with warnings.catch_warnings():
        # duplicate coordinates → fewer distinct clusters than k; handled below
        warnings.simplefilter("ignore", ConvergenceWarning)
        labels = KMeans(n_clusters=k, n_init=10, random_state=random_state).fit_predict(coords)

    groups = _groups_from_labels(points, labels)
    if len(groups) < 2:
        log.debug("k-means collapsed %d points into one group – bisecting", len(points))
        return _bisect(points)
    return groups


def split(points: Sequence[Point], limit: int, *, random_state: int = 42) -> List[List[Point]]:
    """
    Partition `points` so that no partition holds more than `limit` points.

    Partitions are disjoint and together contain every input point once.
    An empty input is a contract violation.
    """
    if not points:
        raise MalformedInputError("cannot partition an empty point set")
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    points = list(points)
    if len(points) < limit:
        return [points]

    worklist: Deque[List[Point]] = deque([points])
    done: List[List[Point]] = []
    first = True

    while worklist:
        part = worklist.popleft()
        if len(part) <= limit:
            done.append(part)
            continue

        k = cluster_count(len(part), limit, first)
        first = False
        groups = _kmeans_split(part, k, random_state)
        log.debug("Split %d points into %s", len(part), [len(g) for g in groups])
        worklist.extend(groups)

    log.info("Partitioned %d points into %d groups (limit %d)", len(points), len(done), limit)
    return done
