"""Straight-line distance matrices and tour lengths."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ...models.domain import Stop
from ..geospatial import haversine_km


def build_distance_matrix(stops: Sequence[Stop]) -> np.ndarray:
    """Return the symmetric (n, n) haversine matrix in kilometres with a zero diagonal."""

    n = len(stops)
    matrix = np.zeros((n, n), dtype=float)
    for i in range(n):
        for j in range(i + 1, n):
            dist = haversine_km(stops[i].latitude, stops[i].longitude, stops[j].latitude, stops[j].longitude)
            matrix[i, j] = dist
            matrix[j, i] = dist
    return matrix


def tour_distance(matrix: np.ndarray, tour: Sequence[int]) -> float:
    if len(tour) < 2:
        return 0.0
    indices = np.asarray(tour, dtype=int)
    return float(matrix[indices[:-1], indices[1:]].sum())
