"""State machine for the trail tracing lifecycle.

Uses python-statemachine for robust state management with:
- Clear state definitions
- Entry hooks for context cleanup
- Explicit event-driven transitions

Architecture Overview
---------------------
TraceStateMachine owns the lifecycle only. TraceSession (trace_session.py)
feeds it position updates, runs the geometry queries and emits events to
collaborators. The split keeps transitions instant while all route work
happens in the facade:

1. Position update arrives -> TraceSession decides which event applies
2. try_transition() fires the event; hooks update TraceContext
3. TraceLoggingListener logs every transition

States (4 states):
    IDLE: No active trace. A bound route is checked for nearby endpoints.
    PROMPT_PENDING: Join prompt shown, waiting for the user's decision
    TRACING: Positions are snapped onto the route and coverage accumulates
    ENDED: Transient state between stopping a trace and returning to idle

Transitions:
    IDLE -> PROMPT_PENDING: prompt_join (position within join threshold of an endpoint)
    PROMPT_PENDING -> TRACING: confirm_join
    PROMPT_PENDING -> IDLE: cancel_join
    TRACING -> ENDED: end_trail (early stop, route exit or route rebind)
    ENDED -> IDLE: settle

Events fired from a state that does not allow them raise TransitionNotAllowed
inside the machine. try_transition() turns that into a logged
OperationOutOfState and a False return, so callers never see an exception for
ordinary races such as a prompt dismissed twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from trail_tracer.core.geo_calculator import GeoCalculator
from trail_tracer.model.coverage_tracker import CoverageTracker
from trail_tracer.model.geo_point import GeoPoint
from trail_tracer.model.rejection import OperationOutOfState, Rejection

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from trail_tracer.model.route_geometry import EndpointMatch, RouteGeometry


@dataclass
class PromptContext:
    """Join prompt state."""

    match: EndpointMatch | None = None
    last_prompt_at: float | None = None  # seconds, same clock as position timestamps

    def clear_pending(self) -> None:
        self.match = None

    def clear(self) -> None:
        self.match = None
        self.last_prompt_at = None

    def is_debounced(self, now: float, debounce_s: float) -> bool:
        """True if a prompt was shown less than debounce_s seconds before now.

        A timestamp earlier than the last prompt (provider restart, replayed
        fixes on another clock) ends the debounce.
        """
        if self.last_prompt_at is None:
            return False
        return 0.0 <= now - self.last_prompt_at < debounce_s


@dataclass
class TracePathContext:
    """Snapped points of the visual trace and the time tracing started."""

    points: list[GeoPoint] = field(default_factory=list)
    started_at: float | None = None  # seconds, session clock

    @property
    def last_point(self) -> GeoPoint | None:
        return self.points[-1] if self.points else None

    @property
    def length_m(self) -> float:
        """Length of the trace path in meters."""
        return sum(GeoCalculator.distance_m(a=a, b=b) for a, b in zip(self.points, self.points[1:]))

    def append(self, point: GeoPoint) -> None:
        self.points.append(point)

    def duration_s(self, now: float) -> float:
        """Seconds since tracing started, 0 if unknown or the clock went backwards."""
        if self.started_at is None:
            return 0.0
        return max(0.0, now - self.started_at)

    def clear(self) -> None:
        self.points = []
        self.started_at = None


@dataclass
class TraceContext:
    """Shared context/model for the state machine.

    Holds all mutable state that persists across transitions: the bound
    route, its coverage, the pending join prompt, the trace path and the
    per-route award flag.

    Note: The 'state' field is managed by python-statemachine when this
    object is passed as the model. It stores the current state value.
    """

    # State managed by python-statemachine (model pattern)
    state: str | None = None

    route: RouteGeometry | None = None
    coverage: CoverageTracker = field(default_factory=CoverageTracker)
    prompt: PromptContext = field(default_factory=PromptContext)
    trace: TracePathContext = field(default_factory=TracePathContext)
    award_issued: bool = False
    last_rejection: Rejection | None = None

    def has_route(self) -> bool:
        """Check if a usable route is bound."""
        return self.route is not None and not self.route.is_empty

    def clear_trace(self) -> None:
        """Stop-of-trace cleanup: coverage, trace path and award flag."""
        self.coverage.reset()
        self.trace.clear()
        self.award_issued = False

    def bind_route(self, route: RouteGeometry | None) -> None:
        """Bind a new route (or none) with fresh coverage and debounce state."""
        self.route = route
        self.coverage.bind(route)
        self.trace.clear()
        self.prompt.clear()
        self.award_issued = False

    def __repr__(self) -> str:
        route_name = self.route.name if self.route is not None else None
        return (
            f"TraceContext(state={self.state}, route={route_name!r}, "
            f"visited={self.coverage.visited_count}, trace_points={len(self.trace.points)}, "
            f"award_issued={self.award_issued})"
        )


class TraceLoggingListener:
    """Listener that logs every state transition.

    Usage:
        sm = TraceStateMachine(context=context)
        sm.add_listener(TraceLoggingListener())
    """

    def after_transition(self, event: str, source: State, target: State) -> None:
        logger.info(f"[STATE] {source.name} --({event})--> {target.name}")


class TraceStateMachine(StateMachine):
    """State machine for the tracing lifecycle.

    See module docstring for complete transition documentation.

    States:
        idle: No active trace
        prompt_pending: Waiting for join confirmation
        tracing: Snapping positions and accumulating coverage
        ended: Trace stopped, cleanup before returning to idle
    """

    # ==========================================================================
    # State Definitions
    # ==========================================================================

    idle = State("Idle", initial=True)
    prompt_pending = State("PromptPending")
    tracing = State("Tracing")
    ended = State("Ended")

    # ==========================================================================
    # Transitions
    # ==========================================================================

    # Endpoint detected while idle
    prompt_join = idle.to(prompt_pending)
    # User accepted the prompt
    confirm_join = prompt_pending.to(tracing)
    # User dismissed the prompt
    cancel_join = prompt_pending.to(idle)
    # Trace stopped (early stop, exit or rebind)
    end_trail = tracing.to(ended)
    # Cleanup done
    settle = ended.to(idle)

    # ==========================================================================
    # State Check Properties
    # ==========================================================================

    @property
    def is_idle(self) -> bool:
        return self.idle.is_active

    @property
    def is_prompt_pending(self) -> bool:
        return self.prompt_pending.is_active

    @property
    def is_tracing(self) -> bool:
        return self.tracing.is_active

    @property
    def is_ended(self) -> bool:
        return self.ended.is_active

    # ==========================================================================
    # Entry Hooks
    # ==========================================================================

    def on_enter_idle(self) -> None:
        """Hook: Entering idle state."""
        self.context.prompt.clear_pending()

    def on_enter_ended(self) -> None:
        """Hook: Entering ended state - coverage, trace and award flag reset."""
        self.context.clear_trace()

    # ==========================================================================
    # Transition Actions (before_* hooks)
    # ==========================================================================

    def before_prompt_join(self, match: EndpointMatch, timestamp: float) -> None:
        """Action before showing the join prompt."""
        self.context.prompt.match = match
        self.context.prompt.last_prompt_at = timestamp

    def before_confirm_join(self, timestamp: float | None = None) -> None:
        """Action before tracing starts - trace begins at the matched endpoint."""
        self.context.coverage.reset()
        self.context.trace.clear()
        self.context.trace.started_at = timestamp
        match = self.context.prompt.match
        if match is not None:
            self.context.trace.append(match.point)
        self.context.prompt.clear_pending()

    # ==========================================================================
    # Initialization
    # ==========================================================================

    def __init__(self, context: TraceContext | None = None) -> None:
        """Initialize state machine with model pattern.

        Args:
            context: Shared context/model (creates new if None)
        """
        model = context or TraceContext()
        super().__init__(model=model)

    # ==========================================================================
    # Utility Methods
    # ==========================================================================

    @property
    def context(self) -> TraceContext:
        """Alias for model."""
        return self.model

    def get_state_name(self) -> str:
        """Get current state name for display."""
        return self.current_state.name

    def get_available_actions(self) -> list[str]:
        """Get list of available transition names."""
        return [t.event for t in self.current_state.transitions]

    def __repr__(self) -> str:
        return f"TraceStateMachine(state={self.get_state_name()}, model={self.context!r})"

    def try_transition(self, event: str, **kwargs: Any) -> bool:
        """Attempt a transition, returning success/failure.

        Args:
            event: Transition event name
            **kwargs: Arguments for transition hooks

        Returns:
            True if transition succeeded, False otherwise.
        """
        try:
            self.send(event, **kwargs)
            return True
        except TransitionNotAllowed:
            rejection = OperationOutOfState(operation=event, state=self.get_state_name())
            self.context.last_rejection = rejection
            logger.warning(rejection.message)
            return False

    def return_to_idle(self) -> None:
        """Force the machine back to idle through the regular transitions.

        Tracing passes through ENDED so the stop-of-trace cleanup always runs.
        """
        if self.is_tracing:
            self.end_trail()
        if self.is_ended:
            self.settle()
        if self.is_prompt_pending:
            self.cancel_join()

    @staticmethod
    def create(add_logging_listener: bool = True) -> tuple["TraceStateMachine", TraceContext]:
        """Factory method to create state machine with context and optional logging listener.

        Args:
            add_logging_listener: If True, adds TraceLoggingListener.

        Returns:
            Tuple of (TraceStateMachine, TraceContext)
        """
        context = TraceContext()
        sm = TraceStateMachine(context=context)
        if add_logging_listener:
            sm.add_listener(TraceLoggingListener())
            logger.info("Created TraceStateMachine with TraceLoggingListener")
        else:
            logger.info("Created TraceStateMachine without listener")
        return sm, context
