"""CoverageTracker - Which route points have been reached during a trace.

Points are identified by (track_index, point_index) pairs of the bound
RouteGeometry. Marking a snapped segment visits both of its endpoints, so
progress grows as the user moves along the route.
"""

from __future__ import annotations

import logging
from math import floor
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trail_tracer.model.route_geometry import RouteGeometry

logger = logging.getLogger(__name__)

PointKey = tuple[int, int]


def round_half_up(value: float) -> int:
    """Round to nearest integer with .5 going up (2.5 -> 3)."""
    return int(floor(value + 0.5))


class CoverageTracker:
    """Set of visited route points and the derived progress percentage.

    The visited set is always a subset of valid (track, point) pairs of the
    bound route, so its size never exceeds route.total_point_count.
    """

    def __init__(self, route: RouteGeometry | None = None) -> None:
        self._route: RouteGeometry | None = route
        self._visited: set[PointKey] = set()

    @property
    def route(self) -> RouteGeometry | None:
        return self._route

    @property
    def visited(self) -> frozenset[PointKey]:
        """Snapshot of visited (track_index, point_index) pairs."""
        return frozenset(self._visited)

    @property
    def visited_count(self) -> int:
        return len(self._visited)

    def bind(self, route: RouteGeometry | None) -> None:
        """Switch to another route and clear coverage."""
        self._route = route
        self._visited.clear()

    def reset(self) -> None:
        """Clear visited points, keeping the bound route."""
        self._visited.clear()

    def is_visited(self, track_index: int, point_index: int) -> bool:
        return (track_index, point_index) in self._visited

    def mark_near(self, track_index: int, segment_index: int) -> None:
        """Mark both endpoints of a segment as visited.

        The second endpoint is clamped to the last point of the track.
        Indices outside the bound route are ignored.

        Args:
            track_index: Track containing the segment
            segment_index: Segment i runs from point i to point i+1
        """
        point_count = self._route.track_point_count(track_index) if self._route is not None else 0
        if not 0 <= segment_index < point_count:
            logger.warning(f"Ignoring mark_near({track_index}, {segment_index}) outside bound route")
            return

        self._visited.add((track_index, segment_index))
        self._visited.add((track_index, min(segment_index + 1, point_count - 1)))

    def progress_percent(self) -> int:
        """Visited share of all route points as an integer percentage in [0, 100]."""
        total = self._route.total_point_count if self._route is not None else 0
        if total == 0:
            return 0
        return round_half_up(min(100.0, 100.0 * len(self._visited) / total))

    def __repr__(self) -> str:
        total = self._route.total_point_count if self._route is not None else 0
        return f"CoverageTracker(visited={len(self._visited)}/{total}, progress={self.progress_percent()}%)"
