"""
Conditional MVA (CMVA) for closed networks with one load-dependent center.

The recursion follows G. Casale, "A note on stable flow-equivalent
aggregation in closed networks", Queueing Systems 60:193-202 (2008). The
flow-equivalent demand of the load-dependent center is updated through a
ratio of throughputs instead of a product of service-rate ratios, which keeps
the recursion free of the cancellation that plain MVA suffers when the
service rate changes steeply with the population.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np

from .errors import NumericalDegeneracyError
from .metrics import NetworkMetrics, zero_metrics
from .network import ClosedNetwork, VectorLike, normalize


@dataclass(frozen=True, eq=False)
class Layer:
    """
    All cells of the recursion for one population `n`.

    Column `j` holds shift index `t = j + 1`, for `t = 1..N-n+1`. `R_li` and
    `Q_li` have one row per load-independent center.
    """

    n: int
    DM: np.ndarray
    R_li: np.ndarray
    R_ld: np.ndarray
    Xs: np.ndarray
    Q_li: np.ndarray
    Q_ld: np.ndarray

    @property
    def width(self) -> int:
        return self.Xs.size


def _first_bad_column(values: np.ndarray) -> Optional[int]:
    bad = np.flatnonzero((values == 0) | ~np.isfinite(values))
    return int(bad[0]) if bad.size else None


def iter_layers(network: ClosedNetwork) -> Iterator[Layer]:
    """
    Yield the recursion layers for `n = 1..N` in increasing order.

    Only the previous layer is kept, so memory stays O(M·N). A consumer may
    stop iterating after any layer; each yielded layer is self-consistent.
    """
    N = network.N
    D = network.demands
    Z = D[0]
    D_li = D[1:, np.newaxis]

    # n = 0 boundary: empty queues for t = 1..N+1
    Q_li_prev = np.zeros((network.M - 1, N + 1))
    Q_ld_prev = np.zeros(N + 1)
    Xs_prev: Optional[np.ndarray] = None
    DM_prev: Optional[np.ndarray] = None

    for n in range(1, N + 1):
        width = N - n + 1
        if n == 1:
            DM = network.Sld[:width].copy()
        else:
            divisor = Xs_prev[1 : width + 1]
            bad = _first_bad_column(divisor)
            if bad is not None:
                raise NumericalDegeneracyError(
                    "throughput vanished while updating the flow-equivalent demand",
                    n=n,
                    t=bad + 1,
                )
            DM = Xs_prev[:width] / divisor * DM_prev[:width]

        R_li = D_li * (1.0 + Q_li_prev[:, :width])
        R_ld = DM * (1.0 + Q_ld_prev[1 : width + 1])

        total = Z + R_li.sum(axis=0) + R_ld
        bad = _first_bad_column(total)
        if bad is not None:
            raise NumericalDegeneracyError(
                "total residence time is zero or not finite", n=n, t=bad + 1
            )
        Xs = n / total

        # Little's law per center
        Q_li = R_li * Xs
        Q_ld = R_ld * Xs

        yield Layer(n=n, DM=DM, R_li=R_li, R_ld=R_ld, Xs=Xs, Q_li=Q_li, Q_ld=Q_ld)

        Q_li_prev, Q_ld_prev = Q_li, Q_ld
        Xs_prev, DM_prev = Xs, DM


def extract(network: ClosedNetwork, layer: Layer) -> NetworkMetrics:
    """Read per-center metrics from the layer `n = N` and undo the visit rescaling."""
    visits = network.visits
    throughput = float(layer.Xs[0])
    X = throughput * visits
    Q = np.append(layer.Q_li[:, 0], layer.Q_ld[0])
    residence = np.append(layer.R_li[:, 0], layer.R_ld[0])
    demands = np.append(network.demands[1:], layer.DM[0])

    never_visited = visits == 0
    if np.any(never_visited):
        centers = ", ".join(str(k) for k in np.flatnonzero(never_visited) + 1)
        warnings.warn(
            f"Center(s) {centers} have zero visit ratio; their response time and "
            "utilization are undefined (NaN).",
            RuntimeWarning,
            stacklevel=3,
        )
    with np.errstate(divide="ignore", invalid="ignore"):
        R = residence / visits
        U = demands * X / visits

    return NetworkMetrics(U=U, R=R, Q=Q, X=X, N=network.N, Z=network.Z, throughput=throughput)


def solve(
    N: int,
    S: VectorLike,
    Sld: VectorLike,
    V: VectorLike,
    Z: float = 0.0,
) -> NetworkMetrics:
    """
    Solve the network with the conditional MVA recursion.

    Args:
        N: population, `N >= 0`.
        S: service times of the load-independent centers `1..M-1` (may be empty).
        Sld: service times of center M with `1..N` requests present (`1/mu(n)`).
        V: visit ratios of centers `1..M`; `V[M-1]` must be positive.
        Z: think time of the delay center.

    Returns:
        `NetworkMetrics`, which unpacks as `U, R, Q, X`.

    Raises:
        InvalidArgumentError: malformed parameters.
        InvalidVisitRatioError: `V[M-1] <= 0`.
        NumericalDegeneracyError: a zero throughput or residence time.
    """
    network = normalize(N, S, Sld, V, Z)
    if network.N == 0:
        return zero_metrics(network.M, Z=network.Z)

    last = None
    for last in iter_layers(network):
        pass
    return extract(network, last)
