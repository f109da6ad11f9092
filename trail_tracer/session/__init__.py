"""Tracing session: lifecycle state machine, facade and position feed."""

from trail_tracer.session.position_feed import PositionFeed, PositionFix
from trail_tracer.session.state_machine import (
    TraceContext,
    TraceLoggingListener,
    TraceStateMachine,
)
from trail_tracer.session.trace_session import TraceSession

__all__ = [
    "TraceSession",
    "TraceStateMachine",
    "TraceContext",
    "TraceLoggingListener",
    "PositionFeed",
    "PositionFix",
]
