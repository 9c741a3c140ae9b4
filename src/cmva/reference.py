"""
Classical solution methods for closed single-class networks.

These are the textbook algorithms CMVA is checked against: exact MVA for
load-independent centers, MVA with load-dependent centers through marginal
queue-length probabilities, and Buzen's convolution with load-dependent
centers. They return the same `NetworkMetrics` bundle as `cmva.solve`.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from .errors import InvalidArgumentError, NumericalDegeneracyError
from .metrics import NetworkMetrics, zero_metrics
from .network import VectorLike, _as_vector, _check_population


def _check_common(N: int, V: VectorLike, Z: float, K: int) -> Tuple[int, np.ndarray, float]:
    N = _check_population(N)
    V = _as_vector("V", V)
    if V.size != K or np.any(V < 0):
        raise InvalidArgumentError("V", f"must be a vector with {K} elements >= 0")
    try:
        Z = float(Z)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError("Z", "think time must be a number") from exc
    if not np.isfinite(Z) or Z < 0:
        raise InvalidArgumentError("Z", "think time must be >= 0")
    return N, V, Z


def _as_ld_matrix(S: Sequence[Sequence[float]], N: int) -> np.ndarray:
    S = np.array(S, dtype=float)
    if S.ndim == 1:
        S = S[np.newaxis, :]
    if S.ndim != 2 or S.shape[1] != N:
        raise InvalidArgumentError("S", f"must be a matrix with {N} columns")
    if np.any(S < 0) or not np.all(np.isfinite(S)):
        raise InvalidArgumentError("S", "service times must be finite and >= 0")
    return S


def load_dependent_matrix(S: VectorLike, Sld: VectorLike) -> np.ndarray:
    """Stack constant rows for the load-independent centers over the `Sld` row."""
    S = _as_vector("S", S)
    Sld = _as_vector("Sld", Sld)
    rows = np.repeat(S[:, np.newaxis], Sld.size, axis=1)
    return np.vstack([rows, Sld])


def mva(N: int, S: VectorLike, V: VectorLike, Z: float = 0.0) -> NetworkMetrics:
    """Exact MVA for single-server load-independent centers."""
    S = _as_vector("S", S)
    if S.size == 0:
        raise InvalidArgumentError("S", "at least one service center is required")
    if np.any(S < 0):
        raise InvalidArgumentError("S", "service times must be >= 0")
    N, V, Z = _check_common(N, V, Z, S.size)
    if N == 0:
        return zero_metrics(S.size, Z=Z, method="mva")

    Q = np.zeros(S.size)
    for n in range(1, N + 1):
        R = S * (1.0 + Q)
        total = Z + np.dot(V, R)
        if total <= 0:
            raise NumericalDegeneracyError("total residence time is zero", n=n)
        X = n / total
        Q = X * V * R

    return NetworkMetrics(
        U=X * V * S, R=R, Q=Q, X=X * V, N=N, Z=Z, throughput=float(X), method="mva"
    )


def mva_ld(
    N: int, S: Sequence[Sequence[float]], V: VectorLike, Z: float = 0.0
) -> NetworkMetrics:
    """
    MVA with load-dependent centers.

    `S[k][j-1]` is the service time of center k when `j` requests are there.
    The probability of an empty center is obtained by subtraction, which
    loses precision once the service rate varies strongly with `j`.
    """
    N = _check_population(N)
    S = _as_ld_matrix(S, N)
    K = S.shape[0]
    N, V, Z = _check_common(N, V, Z, K)
    if N == 0:
        return zero_metrics(K, Z=Z, method="mva_ld")

    # p[k, j]: probability of j requests at center k
    p = np.zeros((K, N + 1))
    p[:, 0] = 1.0
    jobs = np.arange(1, N + 1)
    for n in range(1, N + 1):
        j = jobs[:n]
        R = (j * S[:, :n] * p[:, :n]).sum(axis=1)
        total = Z + np.dot(V, R)
        if total <= 0:
            raise NumericalDegeneracyError("total residence time is zero", n=n)
        X = n / total
        new_p = np.zeros_like(p)
        new_p[:, 1 : n + 1] = (V * X)[:, np.newaxis] * S[:, :n] * p[:, :n]
        new_p[:, 0] = 1.0 - new_p[:, 1 : n + 1].sum(axis=1)
        p = new_p

    Q = (np.arange(N + 1) * p).sum(axis=1)
    return NetworkMetrics(
        U=1.0 - p[:, 0], R=R, Q=Q, X=X * V, N=N, Z=Z, throughput=float(X), method="mva_ld"
    )


def _center_factors(S_row: np.ndarray, visit: float, N: int) -> np.ndarray:
    """f(j) = prod_{i<=j} V S(i), j = 0..N."""
    f = np.ones(N + 1)
    f[1:] = np.cumprod(visit * S_row)
    return f


def _convolve(a: np.ndarray, b: np.ndarray, N: int) -> np.ndarray:
    return np.convolve(a, b)[: N + 1]


def convolution_ld(
    N: int, S: Sequence[Sequence[float]], V: VectorLike, Z: float = 0.0
) -> NetworkMetrics:
    """
    Convolution algorithm with load-dependent centers.

    `S` has the same layout as in `mva_ld`. Utilization is `1 - p(0)` for
    every center, so it also covers multi-server stations.
    """
    N = _check_population(N)
    S = _as_ld_matrix(S, N)
    K = S.shape[0]
    N, V, Z = _check_common(N, V, Z, K)
    if N == 0:
        return zero_metrics(K, Z=Z, method="convolution")

    # Z^j / j! as a running product so that large N stays within float range
    delay = np.ones(N + 1)
    for j in range(1, N + 1):
        delay[j] = delay[j - 1] * Z / j
    factors = [_center_factors(S[k], V[k], N) for k in range(K)]

    G = delay
    for f in factors:
        G = _convolve(G, f, N)
    if G[N] == 0 or not np.isfinite(G[N]):
        raise NumericalDegeneracyError("normalization constant G(N) is zero or not finite", n=N)
    X = G[N - 1] / G[N]

    jobs = np.arange(N + 1)
    U = np.empty(K)
    Q = np.empty(K)
    for k in range(K):
        G_rest = delay
        for i, f in enumerate(factors):
            if i != k:
                G_rest = _convolve(G_rest, f, N)
        marginal = factors[k] * G_rest[::-1] / G[N]
        U[k] = 1.0 - marginal[0]
        Q[k] = np.dot(jobs, marginal)

    X_k = X * V
    with np.errstate(divide="ignore", invalid="ignore"):
        R = Q / X_k
    return NetworkMetrics(
        U=U, R=R, Q=Q, X=X_k, N=N, Z=Z, throughput=float(X), method="convolution"
    )
