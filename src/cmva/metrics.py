"""Per-center performance metrics of a closed network."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator

import numpy as np
import pandas as pd


@dataclass(frozen=True, eq=False)
class NetworkMetrics:
    """
    Steady-state metrics, one entry per service center.

    Vectors are ordered as the load-independent centers in input order,
    followed by the load-dependent center. `throughput` is the system
    throughput measured at the reference (load-dependent) center.
    """

    U: np.ndarray
    R: np.ndarray
    Q: np.ndarray
    X: np.ndarray
    N: int = 0
    Z: float = 0.0
    throughput: float = 0.0
    method: str = "cmva"

    def __iter__(self) -> Iterator[np.ndarray]:
        """Unpack as `U, R, Q, X`."""
        return iter((self.U, self.R, self.Q, self.X))

    @property
    def M(self) -> int:
        return len(self.U)

    @property
    def system_response_time(self) -> float:
        """`N / X - Z`, the time spent at the service centers per cycle."""
        if self.throughput == 0:
            return 0.0
        return self.N / self.throughput - self.Z

    def as_dict(self) -> Dict[str, object]:
        """Flatten to `{"U_1": ..., "R_1": ..., ...}` (handy for DataFrame rows)."""
        row: Dict[str, object] = {
            "method": self.method,
            "N": self.N,
            "Z": self.Z,
            "throughput": self.throughput,
            "system_response_time": self.system_response_time,
        }
        for name in ("U", "R", "Q", "X"):
            for k, value in enumerate(getattr(self, name), start=1):
                row[f"{name}_{k}"] = float(value)
        return row

    def to_frame(self) -> pd.DataFrame:
        """One row per center; the last row is the load-dependent center."""
        centers = [f"LI{k}" for k in range(1, self.M)] + ["LD"]
        return pd.DataFrame(
            {"center": centers, "U": self.U, "R": self.R, "Q": self.Q, "X": self.X}
        )


def zero_metrics(M: int, N: int = 0, Z: float = 0.0, method: str = "cmva") -> NetworkMetrics:
    """Metrics of an empty network (`N == 0`)."""
    zeros = np.zeros(M)
    return NetworkMetrics(
        U=zeros.copy(), R=zeros.copy(), Q=zeros.copy(), X=zeros.copy(), N=N, Z=Z, method=method
    )


def relative_error(value: float, reference_value: float) -> float:
    """Return |value-ref| / |ref| guarding division by zero."""
    if reference_value == 0:
        return 0.0 if value == 0 else float("inf")
    return abs(value - reference_value) / abs(reference_value)


def max_relative_error(metrics: NetworkMetrics, reference: NetworkMetrics) -> Dict[str, float]:
    """Largest per-center relative error of each of U, R, Q and X."""
    errors = {}
    for name in ("U", "R", "Q", "X"):
        pairs = zip(getattr(metrics, name), getattr(reference, name))
        errors[name] = max((relative_error(float(a), float(b)) for a, b in pairs), default=0.0)
    return errors
