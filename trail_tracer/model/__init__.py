"""Data model classes for route tracing.

- GeoPoint: Geometry atom (lat, lon)
- RouteGeometry: Loaded route made of ordered tracks
- RouteSnap / EndpointMatch: Results of route queries
- CoverageTracker: Visited route points and progress percentage
- TraceEvent: Events emitted by the tracing session
- Rejection: Non-fatal conditions absorbed by the session
"""

from trail_tracer.model.coverage_tracker import CoverageTracker
from trail_tracer.model.geo_point import GeoPoint
from trail_tracer.model.rejection import (
    InvalidGeometry,
    InvalidPosition,
    OperationOutOfState,
    Rejection,
)
from trail_tracer.model.route_geometry import EndpointMatch, RouteGeometry, RouteSnap
from trail_tracer.model.trace_event import (
    JoinPrompt,
    MilestoneReached,
    ProgressChanged,
    TraceEvent,
    TracePointAdded,
    TrailEnded,
)

__all__ = [
    "GeoPoint",
    "RouteGeometry",
    "RouteSnap",
    "EndpointMatch",
    "CoverageTracker",
    "TraceEvent",
    "JoinPrompt",
    "TracePointAdded",
    "ProgressChanged",
    "MilestoneReached",
    "TrailEnded",
    "Rejection",
    "InvalidGeometry",
    "InvalidPosition",
    "OperationOutOfState",
]
