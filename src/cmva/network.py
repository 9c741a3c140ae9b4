"""Validation and canonical form of a closed network description."""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from .errors import InvalidArgumentError, InvalidVisitRatioError

VectorLike = Union[Sequence[float], np.ndarray, float]


def _as_vector(name: str, values: VectorLike) -> np.ndarray:
    """Return a private 1-D float copy of `values` (row or column vectors accepted)."""
    try:
        arr = np.array(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(name, "must be a sequence of numbers") from exc
    if arr.ndim > 1 and sum(dim > 1 for dim in arr.shape) > 1:
        raise InvalidArgumentError(name, f"must be a vector, got shape {arr.shape}")
    arr = arr.reshape(-1)
    if not np.all(np.isfinite(arr)):
        raise InvalidArgumentError(name, "entries must be finite")
    return arr


def _check_population(N: int) -> int:
    if isinstance(N, bool) or not isinstance(N, numbers.Integral):
        raise InvalidArgumentError("N", "population must be an integer")
    if N < 0:
        raise InvalidArgumentError("N", "population must be >= 0")
    return int(N)


@dataclass(frozen=True, eq=False)
class ClosedNetwork:
    """
    Single-class closed network: a delay center, load-independent centers
    `1..M-1` and the load-dependent center `M`.

    `S` holds the per-visit service times of the load-independent centers,
    `Sld[n-1]` the service time of center M when `n` requests are there, and
    `V` the visit ratios of all `M` centers (the last one for center M).
    """

    N: int
    S: VectorLike
    Sld: VectorLike
    V: VectorLike
    Z: float = 0.0

    def __post_init__(self) -> None:
        N = _check_population(self.N)

        S = _as_vector("S", self.S)
        if np.any(S < 0):
            raise InvalidArgumentError("S", "service times must be >= 0")
        M = S.size + 1

        Sld = _as_vector("Sld", self.Sld)
        if Sld.size != N or np.any(Sld < 0):
            raise InvalidArgumentError("Sld", f"must be a vector with {N} elements >= 0")

        V = _as_vector("V", self.V)
        if V.size != M or np.any(V < 0):
            raise InvalidArgumentError("V", f"must be a vector with {M} elements >= 0")
        if V[-1] <= 0:
            raise InvalidVisitRatioError(
                "V", f"visit ratio of the load-dependent center V[{M - 1}] must be > 0"
            )

        try:
            Z = float(self.Z)
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError("Z", "think time must be a number") from exc
        if not np.isfinite(Z) or Z < 0:
            raise InvalidArgumentError("Z", "think time must be >= 0")

        object.__setattr__(self, "N", N)
        object.__setattr__(self, "S", S)
        object.__setattr__(self, "Sld", Sld)
        object.__setattr__(self, "V", V)
        object.__setattr__(self, "Z", Z)

    @property
    def M(self) -> int:
        """Number of service centers, the delay center excluded."""
        return self.S.size + 1

    @property
    def visits(self) -> np.ndarray:
        """Visit ratios rescaled so that the load-dependent center has ratio 1."""
        return self.V / self.V[-1]

    @property
    def demands(self) -> np.ndarray:
        """Service demands `[Z, S_1 V_1, ..., S_{M-1} V_{M-1}]` on rescaled visits."""
        return np.concatenate(([self.Z], self.S * self.visits[:-1]))


def normalize(
    N: int,
    S: VectorLike,
    Sld: VectorLike,
    V: VectorLike,
    Z: float = 0.0,
) -> ClosedNetwork:
    """Validate the raw parameters and return the canonical `ClosedNetwork`."""
    return ClosedNetwork(N=N, S=S, Sld=Sld, V=V, Z=Z)


def multiserver_service_times(S: float, servers: int, N: int) -> np.ndarray:
    """Return `S / min(n, servers)` for `n = 1..N` (an `servers`-server station)."""
    if S < 0:
        raise InvalidArgumentError("S", "service time must be >= 0")
    if isinstance(servers, bool) or not isinstance(servers, numbers.Integral) or servers < 1:
        raise InvalidArgumentError("servers", "number of servers must be an integer >= 1")
    N = _check_population(N)
    n = np.arange(1, N + 1)
    return float(S) / np.minimum(n, servers)
