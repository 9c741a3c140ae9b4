"""Pre-defined networks used to cross-check CMVA against classical methods."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

from .network import ClosedNetwork, multiserver_service_times


@dataclass(frozen=True)
class Scenario:
    name: str
    N: int
    S: Tuple[float, ...]
    Sld: Tuple[float, ...]
    V: Tuple[float, ...]
    Z: float = 0.0


SCENARIOS: Dict[str, Scenario] = {
    # Constant Sld: center M behaves like an ordinary queue.
    "constant": Scenario(
        name="constant", N=5, S=(1.0, 0.3, 0.8), Sld=(0.9,) * 5, V=(1.0, 1.0, 1.0, 1.0)
    ),
    # Center M is a 5-server station with unit service time.
    "multiserver": Scenario(
        name="multiserver",
        N=5,
        S=(1.0, 1.0, 1.0),
        Sld=tuple(multiserver_service_times(1.0, 5, 5)),
        V=(1.0, 1.0, 1.0, 1.0),
    ),
    "delay": Scenario(
        name="delay",
        N=5,
        S=(1.0, 1.0, 1.0),
        Sld=tuple(multiserver_service_times(1.0, 5, 5)),
        V=(1.0, 2.0, 1.0, 1.0),
        Z=3.0,
    ),
}


def list_scenarios() -> Iterable[str]:
    """Return available scenario identifiers."""
    return sorted(SCENARIOS.keys())


def get_network(name: str) -> ClosedNetwork:
    """Return the `ClosedNetwork` of a named scenario."""
    key = name.lower()
    if key not in SCENARIOS:
        raise KeyError(f"Scenario '{name}' is not defined. Available: {list(list_scenarios())}")
    scenario = SCENARIOS[key]
    return ClosedNetwork(N=scenario.N, S=scenario.S, Sld=scenario.Sld, V=scenario.V, Z=scenario.Z)
