import numpy as np
import pytest

from src.routeplanner.models.domain import Stop
from src.routeplanner.services.geospatial import haversine_km
from src.routeplanner.services.routing.matrix import build_distance_matrix, tour_distance


def _stops() -> list[Stop]:
    return [
        Stop("AMS", 52.37, 4.89),
        Stop("UTR", 52.09, 5.12),
        Stop("RTM", 51.92, 4.48),
        Stop("DHG", 52.07, 4.30),
    ]


def test_matrix_is_symmetric_with_zero_diagonal():
    matrix = build_distance_matrix(_stops())

    assert matrix.shape == (4, 4)
    assert np.allclose(matrix, matrix.T)
    assert np.all(np.diag(matrix) == 0.0)
    assert np.all(matrix >= 0.0)


def test_matrix_entries_match_haversine():
    stops = _stops()
    matrix = build_distance_matrix(stops)
    assert matrix[0, 2] == pytest.approx(haversine_km(52.37, 4.89, 51.92, 4.48))


def test_trivial_matrices():
    assert build_distance_matrix([]).shape == (0, 0)
    single = build_distance_matrix([Stop("A", 52.0, 5.0)])
    assert single.shape == (1, 1)
    assert single[0, 0] == 0.0


def test_tour_distance_sums_consecutive_edges():
    matrix = build_distance_matrix(_stops())
    tour = [0, 1, 2, 0]
    assert tour_distance(matrix, tour) == pytest.approx(matrix[0, 1] + matrix[1, 2] + matrix[2, 0])
    assert tour_distance(matrix, [0]) == 0.0
