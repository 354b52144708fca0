"""Core records: points, trips, aggregate routes and per-subject summaries."""
from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


class Point(BaseModel):
    """One fetched location.  Immutable once fetched."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    id: Optional[int] = None
    tags: Dict[str, str] = Field(default_factory=dict)


class PointSet(BaseModel):
    """Ordered points for one subject (source order, no geographic meaning)."""

    model_config = ConfigDict(frozen=True)

    subject: str
    points: List[Point]

    def __len__(self) -> int:
        return len(self.points)


class Leg(BaseModel):
    model_config = ConfigDict(frozen=True)

    distance: float = Field(..., ge=0)   # metres
    duration: float = Field(..., ge=0)   # seconds


class Trip(BaseModel):
    """A resolved round trip over one partition's points."""

    model_config = ConfigDict(frozen=True)

    geometry: str                        # encoded polyline, precision 6
    distance: float = Field(..., ge=0)
    duration: float = Field(..., ge=0)
    legs: List[Leg]


class RouteFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    partition: int
    size: int
    reason: str


# ────────────────────────────────────────────────────────────────────────────
# resolver results – tagged on `status`, never guessed from the shape
# ────────────────────────────────────────────────────────────────────────────
class RouteOk(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["ok"] = "ok"
    trip: Trip


class RouteBackendError(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["backend-error"] = "backend-error"
    reason: str


RouteResult = Annotated[Union[RouteOk, RouteBackendError], Field(discriminator="status")]


class AggregateRoute(BaseModel):
    """
    Merged result for a subject.

    `trips` follow partition dispatch order; legs never connect across
    trip boundaries.
    """

    model_config = ConfigDict(frozen=True)

    subject: str
    partitions: int = Field(..., ge=0)
    trips: List[Trip] = Field(default_factory=list)
    failures: List[RouteFailure] = Field(default_factory=list)

    @model_validator(mode="after")
    def _accounted(self) -> "AggregateRoute":
        if len(self.trips) + len(self.failures) != self.partitions:
            raise ValueError(
                f"{len(self.trips)} trips + {len(self.failures)} failures "
                f"!= {self.partitions} partitions"
            )
        return self

    @property
    def ok(self) -> bool:
        return bool(self.trips)

    @property
    def legs(self) -> List[Leg]:
        return [leg for trip in self.trips for leg in trip.legs]


class Summary(BaseModel):
    """Derived metrics for one subject; every float rounded to 2 dp."""

    model_config = ConfigDict(frozen=True)

    subject: str
    name: str
    num_locations: int
    total_miles: float
    num_trips: int
    num_stops: int
    driving_hours: float
    days: float
    stops_per_day: float
    pee_breaks: int
    longest_leg_miles: float
    median_leg_miles: float
    sparsity: float
    density: float
    furthest_stop_miles: float
    northernmost_lat: float
    southernmost_lat: float


class LeaderboardEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject: str
    name: str
    value: float


SUMMARY_LIST = TypeAdapter(List[Summary])
LEADERBOARDS = TypeAdapter(Dict[str, List[LeaderboardEntry]])
