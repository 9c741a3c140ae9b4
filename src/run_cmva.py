"""Command line interface to solve a closed network with CMVA."""

from __future__ import annotations

import argparse
import math
from pathlib import Path
from typing import Iterable, List

import pandas as pd
from tqdm import trange

from cmva import (
    ClosedNetwork,
    CMVAError,
    NetworkMetrics,
    SimulationParams,
    SimulationResult,
    get_network,
    list_scenarios,
    multiserver_service_times,
    relative_error,
    run_closed,
    solve,
)


def parse_float_list(spec: str) -> List[float]:
    values = []
    for chunk in spec.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            values.append(float(chunk))
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"Invalid number '{chunk}'.") from exc
    return values


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Solve a closed network with one load-dependent center using CMVA."
    )
    parser.add_argument(
        "--scenario",
        type=str,
        choices=list(list_scenarios()),
        help="Named network shortcut.",
    )
    parser.add_argument("--N", type=int, help="Population (required unless --scenario).")
    parser.add_argument(
        "--S",
        type=parse_float_list,
        default=[],
        help='Service times of the load-independent centers, e.g. "1,0.3,0.8".',
    )
    parser.add_argument(
        "--sld",
        type=parse_float_list,
        help="Service times of the load-dependent center with 1..N requests present.",
    )
    parser.add_argument(
        "--servers",
        type=int,
        help="Build --sld as an m-server station (uses --ld-service).",
    )
    parser.add_argument(
        "--ld-service",
        type=float,
        default=1.0,
        dest="ld_service",
        help="Per-server service time when --servers is given.",
    )
    parser.add_argument(
        "--V",
        type=parse_float_list,
        help="Visit ratios of all centers, load-dependent one last (default: all ones).",
    )
    parser.add_argument("--Z", type=float, default=0.0, help="Think time of the delay center.")
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Also run simulation replications and report relative errors.",
    )
    parser.add_argument("--seed", type=int, default=123, help="Base random seed.")
    parser.add_argument("--warmup", type=float, default=1_000.0, help="Warm-up time to discard.")
    parser.add_argument("--horizon", type=float, default=20_000.0, help="Total simulation time.")
    parser.add_argument("--replications", type=int, default=5, help="Number of replications.")
    parser.add_argument(
        "--outputs",
        type=Path,
        default=Path("outputs/cmva.csv"),
        help="Path where the per-center CSV will be written.",
    )
    return parser.parse_args()


def resolve_network(args: argparse.Namespace) -> ClosedNetwork:
    """Build the network from --scenario or from the explicit flags."""
    if args.scenario:
        return get_network(args.scenario)

    if args.N is None:
        raise SystemExit("Either --scenario or --N must be provided.")
    if args.servers is not None:
        sld = multiserver_service_times(args.ld_service, args.servers, args.N)
    elif args.sld is not None:
        sld = args.sld
    else:
        raise SystemExit("Provide --sld or --servers for the load-dependent center.")
    visits = args.V if args.V is not None else [1.0] * (len(args.S) + 1)
    return ClosedNetwork(N=args.N, S=args.S, Sld=sld, V=visits, Z=args.Z)


def run_replications(network: ClosedNetwork, args: argparse.Namespace) -> Iterable[SimulationResult]:
    """Yield SimulationResult for each replication."""
    for rep in trange(args.replications, desc="Simulating", unit="rep"):
        params = SimulationParams(seed=args.seed + rep, warmup=args.warmup, horizon=args.horizon)
        yield run_closed(network, params)


def summarize(results: Iterable[SimulationResult]) -> pd.DataFrame:
    return pd.DataFrame([r.as_dict() for r in results])


def compare_with_simulation(metrics: NetworkMetrics, df: pd.DataFrame) -> pd.DataFrame:
    """Per-center mean, 95% half-width and relative error against CMVA."""
    n = len(df)
    rows = []
    for name in ("U", "R", "Q", "X"):
        for k, exact in enumerate(getattr(metrics, name), start=1):
            series = df[f"{name}_{k}"]
            mean = float(series.mean())
            std = float(series.std(ddof=1)) if n > 1 else 0.0
            half = 1.96 * std / math.sqrt(n) if n > 1 else 0.0
            rows.append(
                {
                    "metric": f"{name}_{k}",
                    "cmva": float(exact),
                    "sim_mean": mean,
                    "ci95_halfwidth": half,
                    "relative_error_pct": relative_error(mean, float(exact)) * 100,
                    "replications": n,
                }
            )
    return pd.DataFrame(rows)


def main() -> None:
    args = parse_args()
    try:
        network = resolve_network(args)
        metrics = solve(network.N, network.S, network.Sld, network.V, network.Z)
    except CMVAError as exc:
        raise SystemExit(f"Invalid network: {exc}") from exc

    frame = metrics.to_frame()
    args.outputs.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(args.outputs, index=False)

    print(f"\nCMVA (N={network.N}, M={network.M}, Z={network.Z:g}):")
    print(frame.to_string(index=False, float_format=lambda v: f"{v:10.6f}"))
    print(f"\n  system throughput    : {metrics.throughput:>10.6f}")
    print(f"  system response time : {metrics.system_response_time:>10.6f}")

    if args.simulate:
        sim_df = summarize(run_replications(network, args))
        sim_path = args.outputs.parent / "simulation.csv"
        sim_df.to_csv(sim_path, index=False)
        summary = compare_with_simulation(metrics, sim_df)
        summary_path = args.outputs.parent / "simulation_summary.csv"
        summary.to_csv(summary_path, index=False)

        print("\nSimulation vs. CMVA (relative error):")
        for _, row in summary.iterrows():
            print(
                f"  {row['metric']:<6}: {row['sim_mean']:>10.6f} vs {row['cmva']:>10.6f} "
                f"({row['relative_error_pct']:>7.3f}%, +/-{row['ci95_halfwidth']:.4f})"
            )
        print(f"\nReplications saved to {sim_path.resolve()}")
        print(f"Summary saved to {summary_path.resolve()}")

    print(f"\nResults saved to {args.outputs.resolve()}")


if __name__ == "__main__":
    main()
