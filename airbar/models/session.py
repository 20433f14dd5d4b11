"""
Session state shared between the coordinator and the presentation layer
"""
import copy
import enum
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, List, Optional

if TYPE_CHECKING:
    from airbar.schemas.air_quality import AirQualityReading

logger = logging.getLogger(__name__)

INITIAL_STATUS = "Fetching location and air quality..."


class CoordinatorPhase(str, enum.Enum):
    """Refresh cycle phases"""
    IDLE = "idle"
    REQUESTING_AUTHORIZATION = "requesting_authorization"
    ACQUIRING_LOCATION = "acquiring_location"
    RETRYING = "retrying"
    RESOLVING = "resolving"  # reverse geocoding and air quality fetch
    SETTLED = "settled"


@dataclass(frozen=True)
class LocationFix:
    """A location reported by the location service"""
    latitude: float
    longitude: float
    name: Optional[str] = None

    def with_name(self, name: str) -> "LocationFix":
        return replace(self, name=name)


Listener = Callable[["SessionState"], None]


class SessionState:
    """
    Observable state of the current refresh cycle

    Created once per process and updated in place. Only the coordinator
    writes to it, through `update`; consumers read attributes, take a
    `snapshot`, or `subscribe` to be called after every update.
    """

    def __init__(self):
        self.status: str = INITIAL_STATUS
        self.is_loading: bool = False
        self.location: Optional[LocationFix] = None
        self.reading: Optional["AirQualityReading"] = None
        self.phase: CoordinatorPhase = CoordinatorPhase.IDLE
        self.generation: int = 0
        self.updated_at: Optional[datetime] = None
        self._listeners: List[Listener] = []

    _FIELDS = ("status", "is_loading", "location", "reading", "phase", "generation")

    def update(self, **changes) -> None:
        """Apply all changes at once, then notify listeners"""
        unknown = set(changes) - set(self._FIELDS)
        if unknown:
            raise AttributeError(f"Unknown session fields: {', '.join(sorted(unknown))}")

        for name, value in changes.items():
            setattr(self, name, value)
        self.updated_at = datetime.now(timezone.utc)

        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Session listener %r failed", listener)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> "SessionState":
        """Copy without listeners, safe to hand to consumers"""
        clone = copy.copy(self)
        clone._listeners = []
        return clone

    def __repr__(self):
        return (
            f"<SessionState gen={self.generation} phase={self.phase.value} "
            f"loading={self.is_loading} status={self.status!r}>"
        )
