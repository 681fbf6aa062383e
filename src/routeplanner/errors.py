"""Exceptions raised by the route planning core."""

from __future__ import annotations


class RoutePlanningError(ValueError):
    """Base class for input problems rejected before any optimization runs."""


class InsufficientInputError(RoutePlanningError):
    """Fewer stops or vehicles than the requested operation needs."""


class InvalidCoordinateError(RoutePlanningError):
    """A stop carries a non-finite latitude or longitude."""

    def __init__(self, stop_id: str, latitude: float, longitude: float) -> None:
        super().__init__(
            f"Stop '{stop_id}' has invalid coordinates (lat={latitude}, lon={longitude}). "
            "All coordinates must be finite numbers."
        )
        self.stop_id = stop_id
        self.latitude = latitude
        self.longitude = longitude


class InvalidDemandError(RoutePlanningError):
    """A stop carries a negative or non-finite demand."""


class PlanningCancelledError(RuntimeError):
    """Fleet planning was cancelled between vehicle clusters."""
