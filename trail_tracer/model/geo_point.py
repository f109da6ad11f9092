"""GeoPoint - The fundamental geometry atom for route tracing.

A GeoPoint represents a single WGS84 coordinate. It is used for route
waypoints, live positions, snapped trace points and endpoint matches.

Proximity is never decided by float equality; callers compare distances
against metre thresholds.
"""

from dataclasses import dataclass
from math import isfinite

from trail_tracer.core.geo_calculator import GeoCalculator


@dataclass(frozen=True)
class GeoPoint:
    """Immutable latitude/longitude pair in decimal degrees (WGS84).

    Attributes:
        lat: Latitude in decimal degrees
        lon: Longitude in decimal degrees

    Example:
        point = GeoPoint(lat=37.779, lon=-121.984)
    """

    lat: float
    lon: float

    @property
    def is_valid(self) -> bool:
        """True if both coordinates are finite and within WGS84 range."""
        return (
            isfinite(self.lat)
            and isfinite(self.lon)
            and -90.0 <= self.lat <= 90.0
            and -180.0 <= self.lon <= 180.0
        )

    def distance_to(self, other: "GeoPoint") -> float:
        """Calculate haversine distance to another point in meters."""
        return GeoCalculator.distance_m(a=self, b=other)

    def __repr__(self) -> str:
        return f"GeoPoint(lat={self.lat:.6f}, lon={self.lon:.6f})"
