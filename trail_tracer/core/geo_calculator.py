"""Geodesic and local planar calculations on Earth's surface.

Provides geographic helper functions for route tracing:
- Distance calculation (Haversine formula)
- Local azimuthal equidistant projection centred on a reference point (pyproj)
- Projection of a point onto polyline segments (shapely, vectorised)
- Closest point on a single finite segment

Distances use a spherical Earth (R = 6,371 km). The local projection uses the
same sphere, so planar distances from the frame centre equal great-circle
distances. Segment projection always runs in a frame centred on the query
point, so the single-segment helper and the route-wide search share one code
path.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from math import atan2, cos, radians, sin, sqrt
from typing import TYPE_CHECKING

import numpy as np
import pyproj
import shapely
from numpy.typing import NDArray
from pyproj.enums import TransformDirection

from trail_tracer.constants import GeoConfig

if TYPE_CHECKING:
    from trail_tracer.model.geo_point import GeoPoint

EARTH_RADIUS_M = GeoConfig.EARTH_RADIUS_M

# Geographic coordinates on the same sphere as the haversine formula
_SPHERE_LONLAT = pyproj.CRS.from_proj4(f"+proj=longlat +R={EARTH_RADIUS_M} +no_defs")

_FRAME_CENTRE = shapely.Point(0.0, 0.0)


@lru_cache(maxsize=GeoConfig.LOCAL_FRAME_CACHE_SIZE)
def _local_transformer(lat: float, lon: float) -> pyproj.Transformer:
    """Transformer from lon/lat to metres in an equidistant frame centred on (lat, lon)."""
    local = pyproj.CRS.from_proj4(
        f"+proj=aeqd +lat_0={lat:.12f} +lon_0={lon:.12f} +R={EARTH_RADIUS_M} +units=m +no_defs"
    )
    return pyproj.Transformer.from_crs(_SPHERE_LONLAT, local, always_xy=True)


@dataclass(frozen=True)
class SegmentProjection:
    """Projection of a reference point onto every segment of a polyline.

    All arrays have one entry per segment (len(points) - 1). Coordinates are
    metres in the local frame centred on the reference point.

    Attributes:
        t: Clamped segment parameter in [0, 1]
        x: Projected x coordinate (east)
        y: Projected y coordinate (north)
        dist_m: Planar distance from the reference point
    """

    t: NDArray[np.float64]
    x: NDArray[np.float64]
    y: NDArray[np.float64]
    dist_m: NDArray[np.float64]


class GeoCalculator:
    """Static methods for geodesic calculations on Earth's surface.

    Coordinates are in decimal degrees (WGS84).
    Distances are in meters.
    """

    EARTH_RADIUS_M = EARTH_RADIUS_M

    @staticmethod
    def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Calculate great-circle distance between two points using Haversine formula.

        Args:
            lat1: Latitude of first point (decimal degrees)
            lon1: Longitude of first point (decimal degrees)
            lat2: Latitude of second point (decimal degrees)
            lon2: Longitude of second point (decimal degrees)

        Returns:
            Distance in meters.
        """
        dlat = radians(lat2 - lat1)
        dlon = radians(lon2 - lon1)
        a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
        return EARTH_RADIUS_M * 2 * atan2(sqrt(a), sqrt(1 - a))

    @staticmethod
    def distance_m(a: GeoPoint, b: GeoPoint) -> float:
        """Haversine distance between two GeoPoints in meters."""
        return GeoCalculator.haversine_distance_m(lat1=a.lat, lon1=a.lon, lat2=b.lat, lon2=b.lon)

    @staticmethod
    def to_local_xy(
        origin: GeoPoint,
        lats: NDArray[np.float64],
        lons: NDArray[np.float64],
    ) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Project coordinates into an azimuthal equidistant frame centred on origin.

        The frame is continuous across the antimeridian, so tracks crossing
        it stay contiguous.

        Args:
            origin: Frame centre
            lats: Latitudes (decimal degrees)
            lons: Longitudes (decimal degrees)

        Returns:
            Tuple (x, y) in meters east/north of origin.
        """
        transformer = _local_transformer(lat=origin.lat, lon=origin.lon)
        x, y = transformer.transform(
            np.asarray(lons, dtype=np.float64),
            np.asarray(lats, dtype=np.float64),
        )
        return np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)

    @staticmethod
    def from_local_xy(origin: GeoPoint, x: float, y: float) -> tuple[float, float]:
        """Inverse of to_local_xy for a single point.

        Returns:
            Tuple (lat, lon) in decimal degrees.
        """
        transformer = _local_transformer(lat=origin.lat, lon=origin.lon)
        lon, lat = transformer.transform(x, y, direction=TransformDirection.INVERSE)
        lon = (float(lon) + 180.0) % 360.0 - 180.0
        return float(lat), lon

    @staticmethod
    def project_onto_segments(
        origin: GeoPoint,
        lats: NDArray[np.float64],
        lons: NDArray[np.float64],
    ) -> SegmentProjection:
        """Project origin onto each consecutive segment of a polyline.

        Segment i runs from point i to point i+1. The projection never leaves
        the segment. Degenerate segments (identical endpoints) project to
        their first point.

        Args:
            origin: Point to project (also the frame centre)
            lats: Polyline latitudes, at least 2 entries
            lons: Polyline longitudes, same length as lats

        Returns:
            SegmentProjection with one entry per segment.
        """
        x, y = GeoCalculator.to_local_xy(origin=origin, lats=lats, lons=lons)
        starts = np.column_stack([x[:-1], y[:-1]])
        ends = np.column_stack([x[1:], y[1:]])
        proper = np.any(starts != ends, axis=1)

        t = np.zeros(len(starts), dtype=np.float64)
        snapped = starts.copy()

        if proper.any():
            segments = shapely.linestrings(np.stack([starts[proper], ends[proper]], axis=1))
            along = shapely.line_locate_point(segments, _FRAME_CENTRE)
            snapped[proper] = shapely.get_coordinates(shapely.line_interpolate_point(segments, along))
            t[proper] = np.clip(along / shapely.length(segments), 0.0, 1.0)

        px, py = snapped[:, 0], snapped[:, 1]
        return SegmentProjection(t=t, x=px, y=py, dist_m=np.hypot(px, py))

    @staticmethod
    def closest_point_on_segment(p: GeoPoint, a: GeoPoint, b: GeoPoint) -> GeoPoint:
        """Return the point on the finite segment [a, b] closest to p.

        Args:
            p: Query point
            a: Segment start
            b: Segment end

        Returns:
            GeoPoint on the segment. Returns a when a == b.
        """
        from trail_tracer.model.geo_point import GeoPoint

        if a == b:
            return a
        projection = GeoCalculator.project_onto_segments(
            origin=p,
            lats=np.array([a.lat, b.lat]),
            lons=np.array([a.lon, b.lon]),
        )
        t = float(projection.t[0])
        if t <= 0.0:
            return a
        if t >= 1.0:
            return b
        lat, lon = GeoCalculator.from_local_xy(origin=p, x=float(projection.x[0]), y=float(projection.y[0]))
        return GeoPoint(lat=lat, lon=lon)
