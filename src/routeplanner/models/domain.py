"""Domain models for stops and vehicles."""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True, slots=True)
class Stop:
    """A delivery or pickup location.

    ``demand`` is expressed in load units (loading metres for the default
    vehicle catalogue). Instances are immutable; use :meth:`replace` to derive
    an updated copy.
    """

    stop_id: str
    latitude: float
    longitude: float
    demand: float = 0.0
    name: Optional[str] = None
    time_window: Optional[str] = None
    locality: Optional[str] = None

    def replace(self, **changes) -> "Stop":
        return replace(self, **changes)

    @property
    def coordinate(self) -> tuple[float, float]:
        """(lat, lon) pair, the order used by the geospatial helpers."""
        return (self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class VehicleSpec:
    """A vehicle available for planning. ``capacity=None`` means unconstrained."""

    capacity: Optional[float] = None
    name: Optional[str] = None
