"""Trail Tracer - Follow a loaded route with a live position stream.

A geometric route-tracing and progress-tracking engine featuring:
- Nearest-point-on-polyline snapping in a local planar frame
- Endpoint proximity detection with a debounced "join this trail" prompt
- Coverage accounting and progress percentage
- State machine-based tracing lifecycle with milestone and early-stop awards

Modules:
    core: Foundation (geo calculations, scoring policy, length labels)
    model: Data structures (GeoPoint, RouteGeometry, CoverageTracker, events)
    session: Tracing lifecycle (state machine, TraceSession, position feed)

Example:
    from trail_tracer.model import GeoPoint, RouteGeometry
    from trail_tracer.session import TraceSession
"""
