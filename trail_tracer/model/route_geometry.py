"""RouteGeometry - A loaded route as one or more ordered tracks.

A route is built once from already-parsed point sequences (e.g. GPX track
segments) and never mutated afterwards. Tracks with fewer than 2 points are
dropped at construction; a route whose tracks are all dropped is empty and
every query on it returns None.

Queries:
- nearest_point_on_route: snap a position onto the closest segment
- nearest_endpoint: detect a position next to a track's first/last point
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Literal, Sequence, Union

import numpy as np

from trail_tracer.constants import GeoConfig
from trail_tracer.core.geo_calculator import GeoCalculator
from trail_tracer.model.geo_point import GeoPoint
from trail_tracer.model.rejection import InvalidGeometry

logger = logging.getLogger(__name__)

# Tracks may be given as GeoPoints or (lat, lon) pairs
PointLike = Union[GeoPoint, tuple[float, float]]

EndpointKind = Literal["start", "end"]


@dataclass(frozen=True)
class RouteSnap:
    """Result of snapping a position onto the route.

    Attributes:
        point: Projected point on the route
        distance_m: Distance from the query position to point
        track_index: Track containing the closest segment
        segment_index: Segment i runs from point i to point i+1 of the track
    """

    point: GeoPoint
    distance_m: float
    track_index: int
    segment_index: int


@dataclass(frozen=True)
class EndpointMatch:
    """A track start or end point within the join threshold.

    Attributes:
        which: "start" or "end"
        track_index: Track the endpoint belongs to
        point: The endpoint itself (snap target when joining)
        distance_m: Distance from the query position
    """

    which: EndpointKind
    track_index: int
    point: GeoPoint
    distance_m: float


def _to_point(value: PointLike) -> GeoPoint:
    if isinstance(value, GeoPoint):
        return value
    lat, lon = value
    return GeoPoint(lat=float(lat), lon=float(lon))


class RouteGeometry:
    """Immutable route made of ordered tracks.

    Attributes:
        name: Display label, only used in event payloads and logs
        tracks: Usable tracks (each at least 2 points)
        total_point_count: Sum of point counts across usable tracks
        dropped_track_count: Tracks discarded for having fewer than 2 points

    Example:
        route = RouteGeometry(name="Iron Horse", tracks=[[(37.77, -121.98), (37.78, -121.97)]])
        snap = route.nearest_point_on_route(GeoPoint(lat=37.775, lon=-121.976))
    """

    def __init__(self, tracks: Iterable[Sequence[PointLike]], name: str = "Route") -> None:
        self.name = name
        usable: list[tuple[GeoPoint, ...]] = []
        dropped = 0
        for raw_track in tracks:
            track = tuple(_to_point(value=pt) for pt in raw_track)
            if len(track) < 2:
                dropped += 1
                continue
            usable.append(track)

        self._tracks: tuple[tuple[GeoPoint, ...], ...] = tuple(usable)
        self._lats = [np.array([pt.lat for pt in track], dtype=np.float64) for track in self._tracks]
        self._lons = [np.array([pt.lon for pt in track], dtype=np.float64) for track in self._tracks]
        self._total_point_count = sum(len(track) for track in self._tracks)
        self.dropped_track_count = dropped

        self.rejection: InvalidGeometry | None = None
        if dropped or not self._tracks:
            self.rejection = InvalidGeometry(
                route_name=name,
                dropped_tracks=dropped,
                usable_tracks=len(self._tracks),
            )
            logger.warning(self.rejection.message)

    # =========================================================================
    # Read-only properties
    # =========================================================================

    @property
    def tracks(self) -> tuple[tuple[GeoPoint, ...], ...]:
        return self._tracks

    @property
    def track_count(self) -> int:
        return len(self._tracks)

    @property
    def total_point_count(self) -> int:
        return self._total_point_count

    @property
    def is_empty(self) -> bool:
        """True if no usable track survived construction."""
        return not self._tracks

    def track_point_count(self, track_index: int) -> int:
        """Number of points in a track, 0 for an unknown index."""
        if 0 <= track_index < len(self._tracks):
            return len(self._tracks[track_index])
        return 0

    @property
    def length_m(self) -> float:
        """Total length of all tracks in meters (sum of segment distances)."""
        total = 0.0
        for track in self._tracks:
            for a, b in zip(track, track[1:]):
                total += a.distance_to(other=b)
        return total

    @property
    def midpoint(self) -> GeoPoint | None:
        """Middle point of the first track, used to place a route label."""
        if not self._tracks:
            return None
        first = self._tracks[0]
        return first[len(first) // 2]

    @property
    def bounds(self) -> tuple[float, float, float, float] | None:
        """Bounding box (min_lat, min_lon, max_lat, max_lon) for fitting a map view."""
        if not self._tracks:
            return None
        lats = np.concatenate(self._lats)
        lons = np.concatenate(self._lons)
        return (float(lats.min()), float(lons.min()), float(lats.max()), float(lons.max()))

    # =========================================================================
    # Queries
    # =========================================================================

    def nearest_point_on_route(self, p: GeoPoint) -> RouteSnap | None:
        """Snap a position onto the closest segment of any track.

        Every segment of every track is scanned. Candidates within
        SNAP_TIE_TOLERANCE_M of the best distance count as ties, and ties go
        to the first segment found in track/segment order.

        Args:
            p: Query position

        Returns:
            RouteSnap, or None if the route has no usable track.
        """
        tolerance = GeoConfig.SNAP_TIE_TOLERANCE_M
        best_dist = np.inf
        best: tuple[int, int, float, float] | None = None

        for track_index, (lats, lons) in enumerate(zip(self._lats, self._lons)):
            projection = GeoCalculator.project_onto_segments(origin=p, lats=lats, lons=lons)
            ties = np.flatnonzero(projection.dist_m <= projection.dist_m.min() + tolerance)
            segment_index = int(ties[0])
            dist = float(projection.dist_m[segment_index])
            if dist < best_dist - tolerance:
                best_dist = dist
                best = (
                    track_index,
                    segment_index,
                    float(projection.x[segment_index]),
                    float(projection.y[segment_index]),
                )

        if best is None:
            return None

        track_index, segment_index, x, y = best
        lat, lon = GeoCalculator.from_local_xy(origin=p, x=x, y=y)
        point = GeoPoint(lat=lat, lon=lon)

        return RouteSnap(
            point=point,
            distance_m=p.distance_to(other=point),
            track_index=track_index,
            segment_index=segment_index,
        )

    def nearest_endpoint(self, p: GeoPoint, threshold_m: float) -> EndpointMatch | None:
        """Find the closest track start/end point strictly within a threshold.

        Args:
            p: Query position
            threshold_m: Maximum distance in meters (exclusive)

        Returns:
            EndpointMatch or None if no endpoint qualifies.
        """
        best_dist = threshold_m
        best: EndpointMatch | None = None

        for track_index, track in enumerate(self._tracks):
            candidates: tuple[tuple[EndpointKind, GeoPoint], ...] = (("start", track[0]), ("end", track[-1]))
            for which, endpoint in candidates:
                dist = p.distance_to(other=endpoint)
                if dist < best_dist:
                    best_dist = dist
                    best = EndpointMatch(which=which, track_index=track_index, point=endpoint, distance_m=dist)

        return best

    def __repr__(self) -> str:
        return (
            f"RouteGeometry(name={self.name!r}, tracks={self.track_count}, "
            f"points={self.total_point_count})"
        )
