"""Conditional MVA for closed networks with one load-dependent center."""

from .closed_sim import SimulationParams, SimulationResult, run_closed
from .cmva_core import Layer, extract, iter_layers, solve
from .errors import (
    CMVAError,
    InvalidArgumentError,
    InvalidVisitRatioError,
    NumericalDegeneracyError,
)
from .metrics import NetworkMetrics, max_relative_error, relative_error
from .network import ClosedNetwork, multiserver_service_times, normalize
from .reference import convolution_ld, load_dependent_matrix, mva, mva_ld
from .scenarios import Scenario, get_network, list_scenarios

__version__ = "0.1.0"

__all__ = [
    "CMVAError",
    "ClosedNetwork",
    "InvalidArgumentError",
    "InvalidVisitRatioError",
    "Layer",
    "NetworkMetrics",
    "NumericalDegeneracyError",
    "Scenario",
    "SimulationParams",
    "SimulationResult",
    "convolution_ld",
    "extract",
    "get_network",
    "iter_layers",
    "list_scenarios",
    "load_dependent_matrix",
    "max_relative_error",
    "multiserver_service_times",
    "mva",
    "mva_ld",
    "normalize",
    "relative_error",
    "run_closed",
    "solve",
]
