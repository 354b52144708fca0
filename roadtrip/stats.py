"""
stats.py – trip statistics and cross-brand leaderboards
────────────────────────────────────────────────────────────────────
Pure functions.  Distances come from the backend in metres and seconds;
everything stored is miles / hours rounded to 2 dp (rounding happens once,
on the final value, never on the partial sums).

Assumptions baked into the trip-length estimate:
  • every stop costs one hour (parking, ordering, eating)
  • `driving_hours_per_day` of driving + stopping per day
  • one pee break per three hours behind the wheel
"""
from __future__ import annotations

import logging
import math
from typing import Dict, List, Sequence

from .models import AggregateRoute, Leg, LeaderboardEntry, Point, Summary
from .util import MalformedInputError, meters_to_miles, median, round2, seconds_to_hours

log = logging.getLogger("roadtrip.stats")

# metric → ascending?  (True where a smaller value is the "better" end)
LEADERBOARD_METRICS: Dict[str, bool] = {
    "num_locations": False,
    "total_miles": False,
    "num_trips": False,
    "num_stops": False,
    "driving_hours": False,
    "days": False,
    "stops_per_day": False,
    "pee_breaks": False,
    "longest_leg_miles": False,
    "median_leg_miles": False,
    "sparsity": False,
    "density": False,
    "furthest_stop_miles": False,
    "northernmost_lat": False,
    "southernmost_lat": True,
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def count_stops(route: AggregateRoute) -> int:
    return sum(len(trip.legs) - 1 for trip in route.trips)


def furthest_stop_distance(legs: Sequence[Leg]) -> float:
    """
    Round-trip cost (metres) of the most isolated stop in one trip: the
    largest leg[i] + leg[i + 1] for i < len(legs) - 2.  Trips with fewer
    than three legs have no such pair and score 0.
    """
    best = 0.0
    for i in range(len(legs) - 2):
        best = max(best, legs[i].distance + legs[i + 1].distance)
    return best


def summarize(
    route: AggregateRoute,
    points: Sequence[Point],
    *,
    name: str,
    driving_hours_per_day: float,
) -> Summary:
    """Derive a Summary; raises MalformedInputError on routes with nothing to measure."""
    if not route.trips:
        raise MalformedInputError(f"{route.subject}: route has no trips to summarise")
    if not points:
        raise MalformedInputError(f"{route.subject}: no source points")

    legs = route.legs
    leg_miles = [meters_to_miles(leg.distance) for leg in legs]
    median_leg = median(leg_miles)

    num_stops = count_stops(route)
    if num_stops <= 0:
        raise MalformedInputError(f"{route.subject}: route has no stops")

    total_miles = meters_to_miles(sum(trip.distance for trip in route.trips))
    driving_hours = seconds_to_hours(sum(trip.duration for trip in route.trips))
    days = (driving_hours + num_stops) / driving_hours_per_day
    furthest = max(furthest_stop_distance(trip.legs) for trip in route.trips)
    lats = [p.lat for p in points]

    summary = Summary(
        subject=route.subject,
        name=name,
        num_locations=len(points),
        total_miles=round2(total_miles),
        num_trips=len(route.trips),
        num_stops=num_stops,
        driving_hours=round2(driving_hours),
        days=round2(days),
        stops_per_day=round2(num_stops / days),
        pee_breaks=_round_half_up(driving_hours / 3),
        longest_leg_miles=round2(max(leg_miles)),
        median_leg_miles=round2(median_leg),
        sparsity=round2(median_leg / num_stops),
        density=round2(num_stops / days),
        furthest_stop_miles=round2(meters_to_miles(furthest)),
        northernmost_lat=round2(max(lats)),
        southernmost_lat=round2(min(lats)),
    )
    log.debug("%s: %.0f mi, %d stops, %.2f days", name, summary.total_miles,
              summary.num_stops, summary.days)
    return summary


def leaderboard(summaries: Sequence[Summary], metric: str, top_n: int,
                ascending: bool = False) -> List[LeaderboardEntry]:
    """Top `top_n` subjects for one metric; ties keep the input order."""
    ranked = sorted(summaries, key=lambda s: getattr(s, metric), reverse=not ascending)
    return [
        LeaderboardEntry(subject=s.subject, name=s.name, value=getattr(s, metric))
        for s in ranked[:top_n]
    ]


def build_leaderboards(summaries: Sequence[Summary], top_n: int) -> Dict[str, List[LeaderboardEntry]]:
    return {
        metric: leaderboard(summaries, metric, top_n, ascending)
        for metric, ascending in LEADERBOARD_METRICS.items()
    }
