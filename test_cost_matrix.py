import numpy as np
import pytest

from cost_matrix import (InvalidInput, as_cost_matrix, as_tour, check_start_index,
                         haversine_matrix, load_cost_matrix, matrix_report)


def test_as_cost_matrix_converts():
    D = as_cost_matrix([[0, 1], [2, 0]])
    assert D.dtype == np.float64
    assert D.flags["C_CONTIGUOUS"]
    assert D.shape == (2, 2)


def test_as_cost_matrix_keeps_inf():
    D = as_cost_matrix([[0, np.inf], [1, 0]])
    assert np.isinf(D[0, 1])


@pytest.mark.parametrize("cost", [[], [[]], [[0, 1]], [1, 2, 3], "abc"])
def test_as_cost_matrix_rejects(cost):
    with pytest.raises(InvalidInput):
        as_cost_matrix(cost)


def test_check_start_index():
    assert check_start_index(np.int32(2), 3) == 2
    with pytest.raises(InvalidInput):
        check_start_index(3, 3)
    with pytest.raises(InvalidInput):
        check_start_index("0", 3)


def test_as_tour():
    assert as_tour([2, 0, 1], 3).tolist() == [2, 0, 1]
    with pytest.raises(InvalidInput):
        as_tour([0, 1], 3)
    with pytest.raises(InvalidInput):
        as_tour([[0, 1, 2]], 3)
    with pytest.raises(InvalidInput):
        as_tour([0.0, 1.0, 2.0], 3)
    with pytest.raises(InvalidInput):
        as_tour([0, -1, 2], 3)


def test_load_cost_matrix(tmp_path):
    path = tmp_path / "tour3.csv"
    path.write_text("0,1.5,2\n1.5,0,inf\n2,3,0\n")
    D = load_cost_matrix(str(path))
    assert D.shape == (3, 3)
    assert D[0, 1] == 1.5
    assert np.isinf(D[1, 2])


def test_load_single_value(tmp_path):
    path = tmp_path / "tour1.csv"
    path.write_text("0\n")
    assert load_cost_matrix(str(path)).shape == (1, 1)


def test_load_non_square(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("0,1,2\n1,0,2\n")
    with pytest.raises(InvalidInput):
        load_cost_matrix(str(path))


def test_haversine_matrix():
    paris, london = (48.8566, 2.3522), (51.5074, -0.1278)
    D = haversine_matrix([paris, london])
    assert D[0, 0] == 0.0 and D[1, 1] == 0.0
    assert D[0, 1] == pytest.approx(D[1, 0])
    assert D[0, 1] == pytest.approx(343_500, rel=0.01)


@pytest.mark.parametrize("coords", [[], [1, 2], [[1, 2, 3]]])
def test_haversine_rejects(coords):
    with pytest.raises(InvalidInput):
        haversine_matrix(coords)


def test_matrix_report():
    D = np.array([[0, 1, np.inf],
                  [1, 0, 4],
                  [np.inf, 4, 0]])
    rep = matrix_report(D)
    assert rep["n"] == 3
    assert rep["symmetric"] is True
    assert rep["sparsity"] == pytest.approx(2 / 9)
    assert rep["min_cost"] == 1.0
    assert rep["max_cost"] == 4.0
    assert rep["mean_cost"] == pytest.approx(2.5)


def test_matrix_report_asymmetric():
    rep = matrix_report([[0, 1], [5, 0]])
    assert rep["symmetric"] is False
    assert rep["sparsity"] == 0.0


def test_matrix_report_single_point():
    rep = matrix_report([[0]])
    assert rep["min_cost"] == rep["max_cost"] == rep["mean_cost"] == 0.0
