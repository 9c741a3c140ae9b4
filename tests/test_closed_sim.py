"""Integration-style checks for the closed network simulation."""

import numpy as np
import pytest

from cmva.closed_sim import SimulationParams, run_closed
from cmva.cmva_core import solve
from cmva.errors import NumericalDegeneracyError
from cmva.network import ClosedNetwork


def test_simulation_agrees_with_cmva_within_ten_percent():
    network = ClosedNetwork(N=3, S=[1.0, 0.5], Sld=[0.8, 0.5, 0.4], V=[1.0, 1.0, 1.0], Z=1.0)
    params = SimulationParams(seed=42, warmup=1_000.0, horizon=20_000.0)
    result = run_closed(network, params)
    exact = solve(network.N, network.S, network.Sld, network.V, network.Z)

    np.testing.assert_allclose(result.X, exact.X, rtol=0.10)
    np.testing.assert_allclose(result.Q, exact.Q, rtol=0.10)
    np.testing.assert_allclose(result.U, exact.U, rtol=0.10)
    # Little's law on the simulated estimates
    np.testing.assert_allclose(result.Q, result.X * result.R, rtol=0.10)


def test_empty_network_skips_simulation():
    network = ClosedNetwork(N=0, S=[1.0], Sld=[], V=[1.0, 1.0])
    result = run_closed(network, SimulationParams(seed=1, warmup=0.0, horizon=10.0))
    assert np.all(result.to_metrics().X == 0.0)
    assert result.completions == [0, 0]


def test_simulation_params_validation():
    with pytest.raises(ValueError):
        SimulationParams(seed=1, warmup=-1.0, horizon=10.0)
    with pytest.raises(ValueError):
        SimulationParams(seed=1, warmup=10.0, horizon=10.0)


def test_simulation_without_service_or_think_time_is_rejected():
    network = ClosedNetwork(N=2, S=[0.0], Sld=[0.0, 0.0], V=[1.0, 1.0])
    with pytest.raises(NumericalDegeneracyError):
        run_closed(network, SimulationParams(seed=1, warmup=0.0, horizon=10.0))


def test_zero_time_cycle_through_load_dependent_center_is_rejected():
    network = ClosedNetwork(N=2, S=[], Sld=[1.0, 0.0], V=[1.0])
    with pytest.raises(NumericalDegeneracyError):
        run_closed(network, SimulationParams(seed=1, warmup=0.0, horizon=10.0))
