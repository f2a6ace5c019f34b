"""Command-line driver: simulate, summarize and write histograms."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import DEFAULT_SCHEMES, RunConfig
from .core import SchemeComparison
from .parameters import Parameters
from .variates import GENERATORS, ConfigurationError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    defaults = RunConfig()
    p = defaults.params
    parser = argparse.ArgumentParser(
        prog="gbmschemes",
        description="Compare Exact, Euler-Maruyama and Milstein paths of geometric Brownian motion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gbmschemes
  gbmschemes --paths 5000 --steps 50 --maturity 2.0 --output-dir out/
  gbmschemes --generator sobol --paths 1000 --steps 10 --seed 7
        """,
    )
    parser.add_argument("--paths", type=int, default=defaults.n_paths,
                        help=f"Number of simulated paths (default: {defaults.n_paths})")
    parser.add_argument("--steps", type=int, default=defaults.n_steps,
                        help=f"Number of time steps (default: {defaults.n_steps})")
    parser.add_argument("--bins", type=int, default=defaults.n_bins,
                        help=f"Number of histogram bins (default: {defaults.n_bins})")
    parser.add_argument("--t0", type=float, default=p.t0, help=f"Initial time (default: {p.t0})")
    parser.add_argument("--maturity", type=float, default=p.T, help=f"Maturity T (default: {p.T})")
    parser.add_argument("--s0", type=float, default=p.S0, help=f"Initial price (default: {p.S0})")
    parser.add_argument("--sigma", type=float, default=p.sigma, help=f"Volatility (default: {p.sigma})")
    parser.add_argument("--mu", type=float, default=p.mu, help=f"Drift (default: {p.mu})")
    parser.add_argument("--generator", choices=sorted(GENERATORS), default=defaults.generator,
                        help=f"Gaussian variate strategy (default: {defaults.generator})")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs")
    parser.add_argument("--schemes", nargs="+", default=[s.value for s in DEFAULT_SCHEMES],
                        help="Schemes to run, in order (default: exact milstein euler_maruyama)")
    parser.add_argument("--output-dir", type=Path, default=defaults.output_dir,
                        help="Directory for histogram files (default: current directory)")
    parser.add_argument("--no-files", action="store_true", help="Skip writing histogram files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    """Build a validated :class:`RunConfig` from parsed arguments."""
    try:
        params = Parameters(t0=args.t0, T=args.maturity, S0=args.s0, sigma=args.sigma, mu=args.mu)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    return RunConfig(
        params=params,
        n_paths=args.paths,
        n_steps=args.steps,
        n_bins=args.bins,
        generator=args.generator,
        seed=args.seed,
        output_dir=args.output_dir,
        schemes=tuple(args.schemes),
    )


def run(config: RunConfig, write_files: bool = True) -> SchemeComparison:
    """Run every configured scheme and optionally write histograms."""
    comparison = SchemeComparison(
        config.params,
        config.n_paths,
        config.n_steps,
        generator=config.generator,
        seed=config.seed,
        n_bins=config.n_bins,
    )
    for result in comparison.run_all(config.schemes).values():
        print(result.result_to_string())
    if "exact" in comparison.results:
        m, v = comparison.log_return_moments("exact")
        print(f"\nExpected Exact log returns: {m:.6f}\nVariance Exact log returns: {v:.6f}\n")
    if write_files:
        comparison.write_histograms(config.output_dir, config.n_bins)
    return comparison


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the ``gbmschemes`` console script."""
    args = build_parser().parse_args(argv)
    logging.getLogger(__package__).setLevel(logging.DEBUG if args.verbose else logging.INFO)
    try:
        config = config_from_args(args)
        run(config, write_files=not args.no_files)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
