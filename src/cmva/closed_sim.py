"""Discrete-event simulation of a closed network with a load-dependent center."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Tuple

import numpy as np
import simpy

from .errors import NumericalDegeneracyError
from .metrics import NetworkMetrics
from .network import ClosedNetwork


@dataclass(frozen=True)
class SimulationParams:
    """Simulation parameters bundled for convenience."""

    seed: int
    warmup: float
    horizon: float

    def __post_init__(self) -> None:
        if self.horizon <= 0:
            raise ValueError("Simulation horizon must be positive.")
        if self.warmup < 0:
            raise ValueError("Warm-up period must be non-negative.")
        if self.warmup >= self.horizon:
            raise ValueError("Warm-up period must end before the horizon.")


@dataclass
class SimulationResult:
    """Per-center estimates of one replication."""

    seed: int
    warmup: float
    horizon: float
    N: int
    Z: float
    U: np.ndarray
    R: np.ndarray
    Q: np.ndarray
    X: np.ndarray
    completions: List[int] = field(default_factory=list)
    obs_time: float = 0.0

    @property
    def throughput(self) -> float:
        """Completions per unit time at the load-dependent center."""
        return float(self.X[-1])

    def to_metrics(self) -> NetworkMetrics:
        return NetworkMetrics(
            U=self.U,
            R=self.R,
            Q=self.Q,
            X=self.X,
            N=self.N,
            Z=self.Z,
            throughput=self.throughput,
            method="simulation",
        )

    def as_dict(self) -> Dict[str, object]:
        row = self.to_metrics().as_dict()
        row.update(
            seed=self.seed,
            warmup=self.warmup,
            horizon=self.horizon,
            obs_time=self.obs_time,
            completions=int(sum(self.completions)),
        )
        return row


class Station:
    """
    FCFS station whose exponential service mean depends on the number present.

    The service rate is re-drawn on every arrival; exponential service makes
    that equivalent to changing the rate of the job in service.
    """

    def __init__(
        self,
        env: simpy.Environment,
        rng: np.random.Generator,
        mean_service: Callable[[int], float],
        params: SimulationParams,
    ):
        self.env = env
        self.rng = rng
        self.mean_service = mean_service
        self.params = params
        self.queue: Deque[Tuple[float, simpy.Event]] = deque()
        self.arrived = env.event()
        self.sojourn_samples: List[float] = []
        self.completions = 0
        self.area_Q = 0.0
        self.busy_time = 0.0
        self.last_event_time = 0.0
        env.process(self._server())

    def visit(self):
        """Join the queue and wait until served."""
        self.update_time_integrals()
        done = self.env.event()
        self.queue.append((self.env.now, done))
        if not self.arrived.triggered:
            self.arrived.succeed()
        yield done

    def _server(self):
        while True:
            if self.arrived.triggered:
                self.arrived = self.env.event()
            if not self.queue:
                yield self.arrived
                continue

            mean = self.mean_service(len(self.queue))
            completion = self.env.timeout(self.rng.exponential(mean) if mean > 0 else 0.0)
            fired = yield completion | self.arrived
            if completion not in fired:
                # Arrival first: memoryless service, draw again at the new rate.
                # The abandoned timeout stays scheduled and later fires with no
                # callbacks attached.
                continue

            self.update_time_integrals()
            arrival_time, done = self.queue.popleft()
            now = self.env.now
            if self.params.warmup <= arrival_time and now <= self.params.horizon:
                self.sojourn_samples.append(now - arrival_time)
            if self.params.warmup <= now <= self.params.horizon:
                self.completions += 1
            done.succeed()

    def update_time_integrals(self, target_time: float | None = None) -> None:
        """Integrate queue length and busy time restricted to the observation window."""
        now = self.env.now if target_time is None else target_time
        start = self.last_event_time
        self.last_event_time = now

        window_start = max(start, self.params.warmup)
        window_end = min(now, self.params.horizon)
        dt = window_end - window_start
        if dt <= 0:
            return

        self.area_Q += len(self.queue) * dt
        if self.queue:
            self.busy_time += dt


class ClosedNetworkSystem:
    """The think-time loop of the N circulating requests."""

    def __init__(self, env: simpy.Environment, network: ClosedNetwork, params: SimulationParams):
        self.env = env
        self.network = network
        self.params = params
        self.rng = np.random.default_rng(seed=params.seed)

        visits = network.visits
        self.routing = visits / visits.sum()
        self.exit_probability = 1.0 / visits.sum()

        self.stations = [
            Station(env, self.rng, self._constant(s), params) for s in network.S
        ]
        self.stations.append(Station(env, self.rng, self._load_dependent, params))

    @staticmethod
    def _constant(mean: float) -> Callable[[int], float]:
        return lambda _n: mean

    def _load_dependent(self, n: int) -> float:
        return self.network.Sld[n - 1]

    def request(self):
        """One request cycling forever: think, then a random walk over the centers."""
        while True:
            if self.network.Z > 0:
                yield self.env.timeout(self.rng.exponential(self.network.Z))
            while True:
                k = self.rng.choice(len(self.stations), p=self.routing)
                yield from self.stations[k].visit()
                if self.rng.random() < self.exit_probability:
                    break


def run_closed(network: ClosedNetwork, params: SimulationParams) -> SimulationResult:
    """Run one replication and return per-center estimates."""
    obs_time = params.horizon - params.warmup
    M = network.M
    if network.N == 0:
        zeros = np.zeros(M)
        return SimulationResult(
            seed=params.seed,
            warmup=params.warmup,
            horizon=params.horizon,
            N=0,
            Z=network.Z,
            U=zeros.copy(),
            R=zeros.copy(),
            Q=zeros.copy(),
            X=zeros.copy(),
            completions=[0] * M,
            obs_time=obs_time,
        )

    # With no think time and no load-independent demand, a zero Sld entry lets
    # requests cycle through the load-dependent center without the clock moving.
    if network.demands.sum() == 0 and np.any(network.Sld == 0):
        raise NumericalDegeneracyError(
            "zero think time, zero load-independent demand and a zero Sld entry; "
            "time cannot advance"
        )

    env = simpy.Environment()
    system = ClosedNetworkSystem(env, network, params)
    for _ in range(network.N):
        env.process(system.request())
    env.run(until=params.horizon)

    for station in system.stations:
        station.update_time_integrals(target_time=params.horizon)

    stations = system.stations
    U = np.array([s.busy_time / obs_time for s in stations])
    Q = np.array([s.area_Q / obs_time for s in stations])
    X = np.array([s.completions / obs_time for s in stations])
    R = np.array(
        [float(np.mean(s.sojourn_samples)) if s.sojourn_samples else 0.0 for s in stations]
    )

    return SimulationResult(
        seed=params.seed,
        warmup=params.warmup,
        horizon=params.horizon,
        N=network.N,
        Z=network.Z,
        U=U,
        R=R,
        Q=Q,
        X=X,
        completions=[s.completions for s in stations],
        obs_time=obs_time,
    )
