"""Cross-checks of CMVA against MVA and convolution."""

import numpy as np
import pytest

from cmva.cmva_core import solve
from cmva.errors import InvalidArgumentError
from cmva.network import multiserver_service_times
from cmva.reference import convolution_ld, load_dependent_matrix, mva, mva_ld
from cmva.scenarios import SCENARIOS

TOL = 1e-5


def assert_metrics_close(actual, expected, rtol=TOL):
    for a, b in zip(actual, expected):
        np.testing.assert_allclose(a, b, rtol=rtol)


def test_constant_load_dependent_center_matches_mva():
    N = 5
    S = [1.0, 0.3, 0.8, 0.9]
    V = [1.0, 1.0, 1.0, 1.0]
    cmva = solve(N, S[:3], [S[3]] * N, V)
    assert_metrics_close(cmva, mva(N, S, V))


def test_constant_rates_with_think_time_match_mva():
    N = 7
    S = [0.25, 1.5, 0.6]
    V = [2.0, 0.5, 1.0]
    cmva = solve(N, S[:2], [S[2]] * N, V, Z=4.0)
    assert_metrics_close(cmva, mva(N, S, V, Z=4.0))


@pytest.mark.parametrize("name", ["multiserver", "delay"])
def test_scenarios_match_load_dependent_mva(name):
    scenario = SCENARIOS[name]
    cmva = solve(scenario.N, scenario.S, scenario.Sld, scenario.V, scenario.Z)
    matrix = load_dependent_matrix(scenario.S, scenario.Sld)
    assert_metrics_close(cmva, mva_ld(scenario.N, matrix, scenario.V, scenario.Z))
    assert_metrics_close(cmva, convolution_ld(scenario.N, matrix, scenario.V, scenario.Z))


def test_multiserver_law_matches_convolution():
    N = 8
    S = [0.5, 1.2]
    Sld = multiserver_service_times(2.0, 3, N)
    V = [0.7, 1.3, 1.0]
    cmva = solve(N, S, Sld, V, Z=2.5)
    conv = convolution_ld(N, load_dependent_matrix(S, Sld), V, Z=2.5)
    assert_metrics_close(cmva, conv)
    assert np.isclose(cmva.throughput, conv.throughput, rtol=TOL)


def test_large_population_stays_accurate():
    N = 60
    Sld = multiserver_service_times(4.0, 8, N)
    cmva = solve(N, [], Sld, [1.0], Z=10.0)
    conv = convolution_ld(N, [Sld], [1.0], Z=10.0)
    assert_metrics_close(cmva, conv)


def test_convolution_handles_populations_past_factorial_range():
    N = 200
    Sld = multiserver_service_times(4.0, 8, N)
    conv = convolution_ld(N, [Sld], [1.0], Z=10.0)
    assert np.isfinite(conv.throughput)
    assert_metrics_close(conv, solve(N, [], Sld, [1.0], Z=10.0))


def test_mva_and_convolution_agree_on_load_independent_network():
    N = 4
    S = [1.0, 2.0]
    V = [1.0, 0.5]
    matrix = load_dependent_matrix(S[:1], [S[1]] * N)
    assert_metrics_close(mva(N, S, V, Z=1.0), convolution_ld(N, matrix, V, Z=1.0))


def test_reference_methods_return_zeros_for_empty_network():
    for metrics in (
        mva(0, [1.0, 2.0], [1.0, 1.0]),
        mva_ld(0, np.zeros((2, 0)), [1.0, 1.0]),
        convolution_ld(0, np.zeros((2, 0)), [1.0, 1.0]),
    ):
        assert metrics.M == 2
        assert np.all(metrics.X == 0.0)


def test_load_dependent_matrix_needs_N_columns():
    with pytest.raises(InvalidArgumentError):
        mva_ld(3, [[1.0, 1.0]], [1.0])


def test_non_numeric_think_time_is_rejected():
    with pytest.raises(InvalidArgumentError):
        mva(2, [1.0], [1.0], Z="abc")
    with pytest.raises(InvalidArgumentError):
        convolution_ld(2, [[1.0, 1.0]], [1.0], Z=None)
