"""Assignment of stops to vehicles by (capacity constrained) k-means clustering."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
from sklearn.cluster import KMeans

from ...config import settings
from ...models.domain import Stop

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ClusterAssignment:
    """Vehicle index per stop (input order) plus the resulting vehicle loads."""

    labels: list[int]
    loads: list[float]
    capacities: list[Optional[float]]
    centroids: list[tuple[float, float]] = field(default_factory=list)
    iterations: int = 0

    @property
    def vehicle_count(self) -> int:
        return len(self.loads)

    @property
    def overloaded_vehicles(self) -> list[int]:
        return [
            index
            for index, (load, capacity) in enumerate(zip(self.loads, self.capacities))
            if capacity is not None and load > capacity
        ]

    def stops_for_vehicle(self, vehicle_index: int, stops: Sequence[Stop]) -> list[Stop]:
        return [stop for stop, label in zip(stops, self.labels) if label == vehicle_index]


def _coordinates(stops: Sequence[Stop]) -> np.ndarray:
    """(lon, lat) rows, the x/y convention of the clustering space."""
    return np.array([(stop.longitude, stop.latitude) for stop in stops], dtype=float).reshape(-1, 2)


def initial_centroids(coordinates: np.ndarray, k: int) -> np.ndarray:
    """Evenly strided sample of the points ordered by longitude, then latitude."""
    order = np.lexsort((coordinates[:, 1], coordinates[:, 0]))
    picks = np.linspace(0, len(coordinates) - 1, num=k).round().astype(int)
    return coordinates[order[picks]].copy()


class CapacityClusterer:
    """Iterative k-means where every vehicle only accepts stops it still has room for.

    Stops that fit no vehicle are force-assigned to the vehicle with the most
    remaining capacity. That vehicle ends up overloaded; the overload is left
    in the result for the caller to report. This is an admission policy, not
    a feasibility guarantee.
    """

    def __init__(
        self,
        *,
        max_iterations: int = settings.cluster_max_iterations,
        tolerance: float = settings.cluster_tolerance,
    ) -> None:
        self.max_iterations = max_iterations
        self.tolerance = tolerance

    def _assign(
        self,
        coordinates: np.ndarray,
        demands: np.ndarray,
        capacity: np.ndarray,
        centroids: np.ndarray,
        order: np.ndarray,
    ) -> tuple[np.ndarray, np.ndarray]:
        labels = np.full(len(coordinates), -1, dtype=int)
        loads = np.zeros(len(capacity), dtype=float)
        deferred: list[int] = []

        for index in order:
            eligible = np.flatnonzero(capacity - loads >= demands[index])
            if eligible.size == 0:
                deferred.append(int(index))
                continue
            squared = ((centroids[eligible] - coordinates[index]) ** 2).sum(axis=1)
            vehicle = int(eligible[int(np.argmin(squared))])
            labels[index] = vehicle
            loads[vehicle] += demands[index]

        for index in deferred:
            vehicle = int(np.argmax(capacity - loads))
            labels[index] = vehicle
            loads[vehicle] += demands[index]

        return labels, loads

    def fit(self, stops: Sequence[Stop], capacities: Sequence[Optional[float]]) -> ClusterAssignment:
        if not capacities:
            raise ValueError("At least one vehicle capacity is required")
        for capacity in capacities:
            if capacity is not None and capacity <= 0:
                raise ValueError("Vehicle capacities must be > 0")

        capacity = np.array([math.inf if c is None else float(c) for c in capacities], dtype=float)
        if not stops:
            return ClusterAssignment(labels=[], loads=[0.0] * len(capacity), capacities=list(capacities))

        coordinates = _coordinates(stops)
        demands = np.array([stop.demand or 0.0 for stop in stops], dtype=float)
        # First-fit-decreasing bias: heaviest stops claim capacity first.
        order = np.argsort(-demands, kind="stable")
        centroids = initial_centroids(coordinates, len(capacity))

        labels = np.zeros(len(stops), dtype=int)
        loads = np.zeros(len(capacity), dtype=float)
        iterations = 0
        for iterations in range(1, self.max_iterations + 1):
            labels, loads = self._assign(coordinates, demands, capacity, centroids, order)

            updated = centroids.copy()
            for vehicle in range(len(capacity)):
                members = coordinates[labels == vehicle]
                if len(members):
                    updated[vehicle] = members.mean(axis=0)
            shift = float(np.max(np.linalg.norm(updated - centroids, axis=1)))
            centroids = updated
            if shift < self.tolerance:
                break

        assignment = ClusterAssignment(
            labels=[int(label) for label in labels],
            loads=[float(load) for load in loads],
            capacities=list(capacities),
            centroids=[(float(x), float(y)) for x, y in centroids],
            iterations=iterations,
        )
        if assignment.overloaded_vehicles:
            logger.warning(
                f"Capacity overflow after clustering {len(stops)} stops over {len(capacity)} vehicles: "
                f"overloaded vehicles {assignment.overloaded_vehicles}, loads={assignment.loads}"
            )
        return assignment


def cluster_by_count(
    stops: Sequence[Stop],
    vehicle_count: int,
    *,
    max_iterations: int = settings.cluster_max_iterations,
) -> ClusterAssignment:
    """Plain k-means on coordinates when vehicles carry no capacities.

    With more vehicles than distinct stop locations the surplus vehicles stay empty.
    """
    if vehicle_count < 1:
        raise ValueError("vehicle_count must be >= 1")
    if not stops:
        return ClusterAssignment(labels=[], loads=[0.0] * vehicle_count, capacities=[None] * vehicle_count)

    coordinates = _coordinates(stops)
    locations = np.unique(coordinates, axis=0)
    n_clusters = min(vehicle_count, len(locations))
    kmeans = KMeans(
        n_clusters=n_clusters,
        init=initial_centroids(locations, n_clusters),
        n_init=1,
        max_iter=max_iterations,
    )
    labels = kmeans.fit_predict(coordinates)

    loads = [0.0] * vehicle_count
    for stop, label in zip(stops, labels):
        loads[int(label)] += stop.demand or 0.0

    centroids = [(float(x), float(y)) for x, y in kmeans.cluster_centers_]
    return ClusterAssignment(
        labels=[int(label) for label in labels],
        loads=loads,
        capacities=[None] * vehicle_count,
        centroids=centroids,
        iterations=int(kmeans.n_iter_),
    )
