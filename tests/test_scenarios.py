"""Tests for the named scenario registry and the command line helpers."""

import argparse

import numpy as np
import pytest

from cmva.scenarios import get_network, list_scenarios
from run_cmva import parse_float_list
from stability_sweep import sweep_row


def test_scenarios_are_listed_and_valid():
    assert list(list_scenarios()) == ["constant", "delay", "multiserver"]
    for name in list_scenarios():
        network = get_network(name)
        assert network.Sld.size == network.N
        assert network.visits[-1] == 1.0


def test_unknown_scenario_raises():
    with pytest.raises(KeyError):
        get_network("missing")


def test_parse_float_list():
    assert parse_float_list("1, 0.3,,0.8") == [1.0, 0.3, 0.8]
    with pytest.raises(argparse.ArgumentTypeError):
        parse_float_list("1,x")


def test_sweep_row_methods_agree_for_small_population():
    row = sweep_row(5, service=4.0, servers=2, Z=10.0)
    assert np.isclose(row["R_cmva"], row["R_convolution"], rtol=1e-8)
    assert np.isclose(row["R_cmva"], row["R_mva"], rtol=1e-8)


def test_sweep_row_stays_finite_for_large_population():
    row = sweep_row(180, service=4.0, servers=8, Z=10.0)
    assert np.isfinite(row["R_convolution"])
    assert np.isclose(row["R_cmva"], row["R_convolution"], rtol=1e-5)
