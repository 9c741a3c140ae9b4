"""Population sweep comparing MVA, convolution and CMVA on a multi-server center."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Dict

import matplotlib.pyplot as plt
import pandas as pd
from tqdm import trange

from cmva import (
    NumericalDegeneracyError,
    convolution_ld,
    multiserver_service_times,
    mva_ld,
    solve,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Response time of an m-server center plus think time, for N = 1..max-n."
    )
    parser.add_argument("--max-n", type=int, default=90, dest="max_n", help="Largest population.")
    parser.add_argument("--service", type=float, default=4.0, help="Per-server service time.")
    parser.add_argument("--servers", type=int, default=8, help="Number of servers m.")
    parser.add_argument("--Z", type=float, default=10.0, help="Think time.")
    parser.add_argument(
        "--results-out",
        type=Path,
        default=Path("outputs/stability_sweep.csv"),
        help="CSV with one row per population.",
    )
    parser.add_argument(
        "--reports-dir",
        type=Path,
        default=Path("reports"),
        help="Directory where the figure will be written.",
    )
    return parser.parse_args()


def sweep_row(N: int, service: float, servers: int, Z: float) -> Dict[str, float]:
    """Response time of the m-server center at population N, by each method."""
    sld = multiserver_service_times(service, servers, N)
    row: Dict[str, float] = {"N": N}
    try:
        row["R_mva"] = float(mva_ld(N, [sld], [1.0], Z).R[0])
    except NumericalDegeneracyError:
        row["R_mva"] = float("nan")
    row["R_convolution"] = float(convolution_ld(N, [sld], [1.0], Z).R[0])
    row["R_cmva"] = float(solve(N, [], sld, [1.0], Z).R[0])
    return row


def plot_response_times(df: pd.DataFrame, servers: int, reports_dir: Path) -> Path:
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.plot(df["N"], df["R_mva"], label="MVA", linewidth=2)
    ax.plot(df["N"], df["R_convolution"], label="Convolution", linewidth=2)
    ax.plot(df["N"], df["R_cmva"], label="CMVA", linewidth=2, linestyle="--")
    ax.set_xlabel("Population size (N)")
    ax.set_ylabel("Response time")
    ax.set_ylim(bottom=0)
    ax.set_title(f"{servers}-server center with think time")
    ax.legend(loc="upper left", frameon=False)
    fig.tight_layout()
    out = reports_dir / "stability_sweep.png"
    fig.savefig(out, dpi=150)
    plt.close(fig)
    return out


def main() -> None:
    args = parse_args()
    if args.max_n < 1:
        raise SystemExit("--max-n must be >= 1.")
    if args.servers < 1:
        raise SystemExit("--servers must be >= 1.")

    rows = [
        sweep_row(N, args.service, args.servers, args.Z)
        for N in trange(1, args.max_n + 1, desc="Population", unit="N")
    ]
    df = pd.DataFrame(rows)
    df["mva_vs_cmva"] = (df["R_mva"] - df["R_cmva"]).abs()
    df["convolution_vs_cmva"] = (df["R_convolution"] - df["R_cmva"]).abs()

    args.results_out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(args.results_out, index=False)

    args.reports_dir.mkdir(parents=True, exist_ok=True)
    figure = plot_response_times(df, args.servers, args.reports_dir)

    print(f"Largest |MVA - CMVA|         : {df['mva_vs_cmva'].max():.3e}")
    print(f"Largest |Convolution - CMVA| : {df['convolution_vs_cmva'].max():.3e}")
    print(f"Results saved to {args.results_out.resolve()}")
    print(f"Figure saved to {figure.resolve()}")


if __name__ == "__main__":
    main()
