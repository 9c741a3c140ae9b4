"""Unit tests for network validation and visit-ratio rescaling."""

import numpy as np
import pytest

from cmva.errors import InvalidArgumentError, InvalidVisitRatioError
from cmva.network import ClosedNetwork, multiserver_service_times, normalize


def test_normalize_rescales_visits_on_a_copy():
    V = [2.0, 4.0, 2.0]
    network = normalize(2, [1.0, 0.5], [0.3, 0.2], V, Z=1.5)
    assert V == [2.0, 4.0, 2.0]
    np.testing.assert_allclose(network.visits, [1.0, 2.0, 1.0])
    np.testing.assert_allclose(network.demands, [1.5, 1.0, 1.0])
    assert network.M == 3


def test_empty_S_gives_single_center():
    network = normalize(1, [], [0.7], [3.0])
    assert network.M == 1
    np.testing.assert_allclose(network.visits, [1.0])
    np.testing.assert_allclose(network.demands, [0.0])


def test_column_vector_is_flattened():
    network = ClosedNetwork(N=1, S=[[1.0], [2.0]], Sld=[0.5], V=[1.0, 1.0, 1.0])
    assert network.M == 3
    np.testing.assert_allclose(network.S, [1.0, 2.0])


@pytest.mark.parametrize("N", [-1, 2.5, True, "3"])
def test_population_must_be_non_negative_integer(N):
    with pytest.raises(InvalidArgumentError) as exc:
        normalize(N, [1.0], [0.5, 0.5], [1.0, 1.0])
    assert exc.value.parameter == "N"


def test_matrix_S_is_rejected():
    with pytest.raises(InvalidArgumentError) as exc:
        normalize(1, [[1.0, 2.0], [3.0, 4.0]], [0.5], [1.0] * 5)
    assert exc.value.parameter == "S"


def test_sld_length_must_match_population():
    with pytest.raises(InvalidArgumentError) as exc:
        normalize(3, [1.0], [0.5, 0.5], [1.0, 1.0])
    assert exc.value.parameter == "Sld"
    assert "3 elements" in str(exc.value)


def test_sld_entries_must_be_non_negative():
    with pytest.raises(InvalidArgumentError):
        normalize(2, [1.0], [0.5, -0.1], [1.0, 1.0])


def test_visit_ratio_length_names_expected_size():
    with pytest.raises(InvalidArgumentError) as exc:
        normalize(1, [1.0, 2.0], [0.5], [1.0, 1.0])
    assert exc.value.parameter == "V"
    assert "3 elements" in str(exc.value)


def test_negative_visit_ratio_is_rejected():
    with pytest.raises(InvalidArgumentError):
        normalize(1, [1.0], [0.5], [-1.0, 1.0])


def test_zero_visit_ratio_at_load_dependent_center():
    with pytest.raises(InvalidVisitRatioError) as exc:
        normalize(2, [1.0], [0.5, 0.5], [1.0, 0.0])
    assert isinstance(exc.value, InvalidArgumentError)
    assert isinstance(exc.value, ValueError)


def test_negative_think_time_is_rejected():
    with pytest.raises(InvalidArgumentError) as exc:
        normalize(1, [1.0], [0.5], [1.0, 1.0], Z=-1.0)
    assert exc.value.parameter == "Z"


def test_non_finite_entries_are_rejected():
    with pytest.raises(InvalidArgumentError):
        normalize(1, [float("inf")], [0.5], [1.0, 1.0])


def test_multiserver_service_times():
    np.testing.assert_allclose(multiserver_service_times(4.0, 2, 4), [4.0, 2.0, 2.0, 2.0])
    np.testing.assert_allclose(multiserver_service_times(1.0, 5, 3), [1.0, 1 / 2, 1 / 3])
    assert multiserver_service_times(1.0, 1, 0).size == 0


def test_multiserver_requires_a_server():
    with pytest.raises(InvalidArgumentError):
        multiserver_service_times(1.0, 0, 3)
