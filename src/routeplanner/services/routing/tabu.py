"""Tabu search refinement of a tour using 2-opt moves."""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from dataclasses import dataclass, replace
from typing import Optional, Sequence

import numpy as np

from ...config import settings
from .matrix import tour_distance

logger = logging.getLogger(__name__)

# Below this many positions (depot included) no 2-opt move changes the tour length.
MIN_REFINABLE_POSITIONS = 4


@dataclass(slots=True)
class TabuConfig:
    max_iterations: Optional[int] = None
    tabu_tenure: Optional[int] = None

    def resolve(self, node_count: int) -> "TabuConfig":
        return replace(
            self,
            max_iterations=self.max_iterations
            if self.max_iterations is not None
            else min(settings.tabu_max_iterations, node_count * 3),
            tabu_tenure=self.tabu_tenure if self.tabu_tenure is not None else math.isqrt(node_count),
        )


def two_opt_swap(tour: Sequence[int], i: int, k: int) -> list[int]:
    """Reverse the segment ``tour[i:k + 1]``."""
    return [*tour[:i], *reversed(tour[i : k + 1]), *tour[k + 1 :]]


class TabuRefiner:
    """Best-improvement 2-opt with a FIFO tabu list and an aspiration criterion.

    Move keys are position pairs ``(i, k)``. A tabu move is still accepted when
    it would beat the best distance seen so far.
    """

    def __init__(self, distance_matrix: np.ndarray, config: TabuConfig | None = None) -> None:
        self.distance_matrix = distance_matrix
        self._config = config or TabuConfig()
        self.best_distance = math.inf
        self.iterations_run = 0
        self.move_history: list[tuple[int, int]] = []
        self.tabu_list: deque[tuple[int, int]] = deque()

    def _move_delta(self, tour: Sequence[int], i: int, k: int) -> float:
        matrix = self.distance_matrix
        before, first, last, after = tour[i - 1], tour[i], tour[k], tour[k + 1]
        return float(
            matrix[before, last] + matrix[first, after] - matrix[before, first] - matrix[last, after]
        )

    def optimize(self, initial_tour: Sequence[int]) -> list[int]:
        current_tour = list(initial_tour)
        current_distance = tour_distance(self.distance_matrix, current_tour)
        best_tour = list(current_tour)
        best_distance = current_distance
        self.best_distance = best_distance
        self.iterations_run = 0
        self.move_history = []
        self.tabu_list = deque()

        n = len(current_tour) - 1  # closing return to the depot excluded
        if n < MIN_REFINABLE_POSITIONS:
            return best_tour

        config = self._config.resolve(n)
        tabu_list = self.tabu_list
        start_time = time.perf_counter()

        for _ in range(config.max_iterations):
            best_move: tuple[int, int] | None = None
            best_candidate_distance = math.inf

            for i in range(1, n - 1):
                for k in range(i + 1, n):
                    candidate_distance = current_distance + self._move_delta(current_tour, i, k)
                    move = (i, k)
                    if move in tabu_list and candidate_distance >= best_distance:
                        continue
                    if candidate_distance < best_candidate_distance:
                        best_move = move
                        best_candidate_distance = candidate_distance

            if best_move is None:
                break

            current_tour = two_opt_swap(current_tour, *best_move)
            current_distance = tour_distance(self.distance_matrix, current_tour)
            tabu_list.append(best_move)
            self.move_history.append(best_move)
            if len(tabu_list) > config.tabu_tenure:
                tabu_list.popleft()

            self.iterations_run += 1
            if current_distance < best_distance:
                best_tour = list(current_tour)
                best_distance = current_distance

        self.best_distance = best_distance
        logger.info(
            f"Tabu search finished for {n} stops after {self.iterations_run} iterations: "
            f"best={best_distance:.3f}km in {(time.perf_counter() - start_time) * 1000:.0f}ms"
        )
        return best_tour
