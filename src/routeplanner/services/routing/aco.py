"""Ant colony construction of an initial depot-to-depot tour."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from ...config import settings
from .matrix import tour_distance

logger = logging.getLogger(__name__)

# Added to every distance so coincident stops keep a finite heuristic.
DISTANCE_EPSILON = 0.01
INITIAL_PHEROMONE = 1.0
MIN_TOUR_DISTANCE = 1e-9


@dataclass(slots=True)
class ACOConfig:
    num_ants: Optional[int] = None
    num_iterations: Optional[int] = None
    alpha: float = settings.aco_alpha
    beta: float = settings.aco_beta
    evaporation_rate: float = settings.aco_evaporation_rate
    q: float = settings.aco_q

    def resolve(self, node_count: int) -> "ACOConfig":
        """Fill the size-dependent fields for a working set of ``node_count`` stops."""
        return replace(
            self,
            num_ants=self.num_ants if self.num_ants is not None else min(node_count, settings.aco_max_ants),
            num_iterations=self.num_iterations
            if self.num_iterations is not None
            else min(settings.aco_max_iterations, node_count * 2),
        )


@dataclass(slots=True)
class Ant:
    tour: list[int]
    distance: float


class AntColonyOptimizer:
    """Probabilistic tour construction guided by a pheromone matrix.

    The pheromone matrix is owned by the optimizer and lives for a single
    :meth:`optimize` call. Index 0 of the distance matrix is the depot.
    """

    def __init__(
        self,
        distance_matrix: np.ndarray,
        config: ACOConfig | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.distance_matrix = distance_matrix
        self.node_count = len(distance_matrix)
        self.config = (config or ACOConfig()).resolve(self.node_count)
        self.rng = rng if rng is not None else np.random.default_rng(settings.random_seed)
        self.best_distance = math.inf
        self._heuristic = (1.0 / (distance_matrix + DISTANCE_EPSILON)) ** self.config.beta
        self._pheromone = np.empty((0, 0))

    def _construct_ant_solution(self) -> Ant:
        n = self.node_count
        visited = np.zeros(n, dtype=bool)
        visited[0] = True
        tour = [0]
        current = 0

        for _ in range(n - 1):
            nxt = self._select_next(current, visited)
            tour.append(nxt)
            visited[nxt] = True
            current = nxt

        tour.append(0)
        return Ant(tour=tour, distance=tour_distance(self.distance_matrix, tour))

    def _select_next(self, current: int, visited: np.ndarray) -> int:
        candidates = np.flatnonzero(~visited)
        weights = (self._pheromone[current, candidates] ** self.config.alpha) * self._heuristic[current, candidates]
        total = float(weights.sum())
        if total <= 0.0 or not math.isfinite(total):
            return int(candidates[0])

        # Roulette wheel: first candidate whose cumulative weight exceeds the draw.
        threshold = self.rng.random() * total
        position = int(np.searchsorted(np.cumsum(weights), threshold, side="right"))
        return int(candidates[min(position, len(candidates) - 1)])

    def _update_pheromones(self, ants: list[Ant]) -> None:
        self._pheromone *= 1.0 - self.config.evaporation_rate
        for ant in ants:
            deposit = self.config.q / max(ant.distance, MIN_TOUR_DISTANCE)
            origins = np.asarray(ant.tour[:-1], dtype=int)
            targets = np.asarray(ant.tour[1:], dtype=int)
            np.add.at(self._pheromone, (origins, targets), deposit)
            np.add.at(self._pheromone, (targets, origins), deposit)

    def optimize(self) -> list[int]:
        """Run the colony and return the best closed tour found."""
        if self.node_count == 0:
            return []
        if self.node_count == 1:
            self.best_distance = 0.0
            return [0]

        start_time = time.perf_counter()
        self._pheromone = np.full((self.node_count, self.node_count), INITIAL_PHEROMONE, dtype=float)
        best_tour: list[int] = []
        best_distance = math.inf

        for _ in range(self.config.num_iterations):
            ants: list[Ant] = []
            for _ in range(self.config.num_ants):
                ant = self._construct_ant_solution()
                ants.append(ant)
                if ant.distance < best_distance:
                    best_distance = ant.distance
                    best_tour = list(ant.tour)
            self._update_pheromones(ants)

        self.best_distance = best_distance
        logger.info(
            f"ACO finished for {self.node_count} stops: {self.config.num_ants} ants x "
            f"{self.config.num_iterations} iterations, best={best_distance:.3f}km "
            f"in {(time.perf_counter() - start_time) * 1000:.0f}ms"
        )
        return best_tour
