"""
render.py – static PNG of a route: one line per trip plus a marker per stop
"""
from __future__ import annotations

import io
import logging
from typing import List, Protocol, Sequence, Tuple

import polyline
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from .models import AggregateRoute, Point

log = logging.getLogger("roadtrip.render")

ROUTE_COLOR = "#cc4806"
MARKER_COLOR = "#1f3b73"
POLYLINE_PRECISION = 6


class ArtifactRenderer(Protocol):
    def render(self, route: AggregateRoute, points: Sequence[Point]) -> bytes:
        ...


def trip_coords(route: AggregateRoute) -> List[List[Tuple[float, float]]]:
    """Decoded trip geometries as (lon, lat) lists, ready to plot as x/y."""
    return [
        [(lon, lat) for lat, lon in polyline.decode(trip.geometry, POLYLINE_PRECISION)]
        for trip in route.trips
    ]


class MatplotlibRenderer:
    def __init__(self, width: int = 1200, height: int = 800, dpi: int = 100):
        self.width = width
        self.height = height
        self.dpi = dpi

    def render(self, route: AggregateRoute, points: Sequence[Point]) -> bytes:
        # no pyplot: renders run on worker threads
        fig = Figure(figsize=(self.width / self.dpi, self.height / self.dpi), dpi=self.dpi)
        FigureCanvasAgg(fig)
        ax = fig.add_subplot(1, 1, 1)

        for coords in trip_coords(route):
            if not coords:
                continue
            xs, ys = zip(*coords)
            ax.plot(xs, ys, color=ROUTE_COLOR, linewidth=1)

        if points:
            ax.scatter([p.lon for p in points], [p.lat for p in points],
                       s=6, color=MARKER_COLOR, zorder=3)

        ax.set_aspect("equal", adjustable="datalim")
        ax.set_axis_off()
        ax.set_title(route.subject)
        fig.tight_layout()

        buf = io.BytesIO()
        fig.savefig(buf, format="png")
        log.debug("Rendered %s (%d trips, %d points)", route.subject, len(route.trips), len(points))
        return buf.getvalue()
