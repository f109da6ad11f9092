"""Rejection - Non-fatal conditions the tracing core absorbs instead of raising.

Each rejection records why an input was ignored:
- Route tracks dropped (or whole route unusable) at bind time
- Position updates with non-finite or out-of-range coordinates
- Operations called from a state that does not allow them

They arise from ordinary asynchronous races (a prompt dismissed just as a new
one would fire, a GPS glitch) so they are logged and exposed as values, never
thrown across the session boundary.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Rejection(ABC):
    """Abstract base class for absorbed runtime conditions.

    Use isinstance() to check the rejection type.
    """

    @property
    @abstractmethod
    def message(self) -> str:
        """Human-readable description for logs."""

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class InvalidGeometry(Rejection):
    """Route tracks with fewer than 2 points, or no usable track at all.

    Attributes:
        route_name: Display label of the route
        dropped_tracks: Number of tracks filtered out
        usable_tracks: Number of tracks kept
    """

    route_name: str
    dropped_tracks: int
    usable_tracks: int
    rejection_type: str = "InvalidGeometry"

    @property
    def message(self) -> str:
        if self.usable_tracks == 0:
            return f"Route '{self.route_name}' has no usable track - treated as no route bound"
        return f"Route '{self.route_name}': dropped {self.dropped_tracks} track(s) with fewer than 2 points"


@dataclass(frozen=True)
class InvalidPosition(Rejection):
    """Position update with non-finite or out-of-range coordinates.

    Attributes:
        lat: Rejected latitude
        lon: Rejected longitude
    """

    lat: float
    lon: float
    rejection_type: str = "InvalidPosition"

    @property
    def message(self) -> str:
        return f"Position ({self.lat}, {self.lon}) dropped - coordinates not finite or out of range"


@dataclass(frozen=True)
class OperationOutOfState(Rejection):
    """Operation that does not apply to the current session state.

    Attributes:
        operation: Name of the ignored operation
        state: Name of the state the session was in
    """

    operation: str
    state: str
    rejection_type: str = "OperationOutOfState"

    @property
    def message(self) -> str:
        return f"'{self.operation}' ignored in state {self.state}"
