r"""

gbmschemes.core
===============

Run several discretization schemes on one shared variate stream and compare them.

This module provides:

* :class:`~gbmschemes.core.SchemeResult` – summary of one scheme at maturity.
* :class:`~gbmschemes.core.SchemeComparison` – owns the variate source, runs
  schemes, compares metrics and writes histograms.

Controlled comparison
---------------------

:class:`SchemeComparison` builds a single :class:`~gbmschemes.variates.VariateSource`
of length ``n_paths * n_steps`` and calls
:meth:`~gbmschemes.variates.VariateSource.reset_to_start` before every scheme,
so each scheme consumes the identical ordered sequence of draws. Differences
between schemes are then discretization error, not sampling noise.

Histogram files
---------------

:meth:`SchemeComparison.write_histograms` names files after the scheme prefix
(``EX``, ``M``, ``EM``), the maturity and the step count, e.g.
``EX_time_1_timesteps_10.txt``, plus ``EX_time_1_log_rets_at_timestep10.txt``
for the Exact log returns.
"""

from __future__ import annotations

import logging
import operator
import time
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import numpy as np

from . import empirical
from .config import DEFAULT_SCHEMES
from .parameters import Parameters
from .schemes import Scheme, SchemeSimulation, simulate
from .stats_engine import DEFAULT_ENGINE, StatsContext, StatsEngine
from .utils import autocrit
from .variates import VariateSource, make_variates

# Package-level handler; module loggers propagate to it
_package_logger = logging.getLogger(__package__)  # pragma: no cover
if not _package_logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    _package_logger.addHandler(handler)
    _package_logger.setLevel(logging.INFO)

logger = logging.getLogger(__name__)


@dataclass
class SchemeResult:
    r"""
    Summary of one scheme's cross-section at maturity.

    Attributes
    ----------
    scheme : Scheme
        Scheme that produced the paths.
    final_prices : ndarray of float
        Simulated prices at step ``n_steps``.
    n_paths : int
        Number of paths.
    n_steps : int
        Number of time steps.
    execution_time : float
        Wall-clock construction time in seconds.
    mean : float
        Empirical mean of :attr:`final_prices`.
    variance : float
        Population variance of :attr:`final_prices`.
    histogram : dict[float, float]
        Density histogram of :attr:`final_prices`.
    stats : dict
        Accuracy statistics from the stats engine (e.g. ``"ci_mean"``,
        ``"mean_bias"``, ``"pathwise_error"``).
    metadata : dict
        Includes ``"analytic_mean"``, ``"analytic_variance"``, ``"dt"``,
        ``"generator"`` and ``"timestamp"``.
    """

    scheme: Scheme
    final_prices: np.ndarray
    n_paths: int
    n_steps: int
    execution_time: float
    mean: float
    variance: float
    histogram: dict[float, float] = field(default_factory=dict)
    stats: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def std(self) -> float:
        return float(np.sqrt(self.variance))

    def result_to_string(self, confidence: float = 0.95, method: str = "auto") -> str:
        r"""
        Human-readable summary.

        Parameters
        ----------
        confidence : float, default ``0.95``
            Confidence level of the displayed CI.
        method : {"auto", "z", "t"}, default ``"auto"``
            Critical value choice.

        Returns
        -------
        str
            Multiline summary.
        """
        n = int(self.n_paths)
        crit, kind = autocrit(confidence, n, method)
        se = self.std / np.sqrt(max(1, n))
        lines = [
            "=" * 20 + f" {self.scheme.value.upper()} " + "=" * 20,
            f"  Paths x steps: {self.n_paths} x {self.n_steps}",
            f"  Execution time: {self.execution_time:.4f} seconds",
            f"  Expected value: {self.mean:.5f}   (SE: {se:.5f}, "
            f"{int(confidence * 100)}% {kind}-CI: [{self.mean - crit * se:.5f}, {self.mean + crit * se:.5f}])",
            f"  Variance (population): {self.variance:.5f}",
        ]
        if "analytic_mean" in self.metadata:
            lines.append(
                f"  Analytic mean: {self.metadata['analytic_mean']:.5f}   "
                f"Analytic variance: {self.metadata['analytic_variance']:.5f}"
            )
        if self.stats:
            lines.append("Additional Stats:")
        for k, v in self.stats.items():
            lines.append(f"  {k}: {v}")
        lines.append("=" * 20 + " END " + "=" * 20)
        return "\n".join(lines)


class SchemeComparison:
    r"""
    Runs discretization schemes on a shared, replayed variate stream.

    Parameters
    ----------
    params : Parameters
        GBM parameters.
    n_paths : int
        Number of paths per scheme.
    n_steps : int
        Number of time steps per scheme.
    variates : VariateSource, optional
        Stream to use. If omitted one of length ``n_paths * n_steps`` is built
        from ``generator`` and ``seed``.
    generator : str, default ``"mersenne_twister"``
        Strategy name for :func:`~gbmschemes.variates.make_variates`.
    seed : int, optional
        Seed for the generated stream.
    stats_engine : StatsEngine, optional
        Engine for :attr:`SchemeResult.stats`; defaults to
        :data:`~gbmschemes.stats_engine.DEFAULT_ENGINE`.
    n_bins : int, default 10
        Bins for result histograms.

    Examples
    --------
    >>> from gbmschemes import Parameters, SchemeComparison
    >>> cmp = SchemeComparison(Parameters(), n_paths=1_000, n_steps=10, seed=1)
    >>> results = cmp.run_all()  # doctest: +SKIP
    >>> cmp.compare_results(["exact", "milstein"], metric="mean")  # doctest: +SKIP
    {'exact': 105.1..., 'milstein': 105.1...}
    """

    def __init__(
        self,
        params: Parameters,
        n_paths: int,
        n_steps: int,
        variates: Optional[VariateSource] = None,
        generator: str = "mersenne_twister",
        seed: Optional[int] = None,
        stats_engine: Optional[StatsEngine] = None,
        n_bins: int = 10,
    ):
        n_paths, n_steps = operator.index(n_paths), operator.index(n_steps)
        if n_paths <= 0 or n_steps <= 0:
            raise ValueError("n_paths and n_steps must be positive")
        self.params = params
        self.n_paths = n_paths
        self.n_steps = n_steps
        self.n_bins = int(n_bins)
        self.generator = generator if variates is None else type(variates).__name__
        self.variates = variates if variates is not None else make_variates(
            generator, self.n_paths * self.n_steps, seed=seed
        )
        self.stats_engine = stats_engine or DEFAULT_ENGINE
        self.simulations: dict[str, SchemeSimulation] = {}
        self.results: dict[str, SchemeResult] = {}
        # schemes whose last run started from the beginning of the stream
        self._replayed: set[str] = set()

    def run_scheme(self, scheme: Union[Scheme, str], *, reset: bool = True) -> SchemeResult:
        r"""
        Simulate one scheme and summarize its terminal cross-section.

        Parameters
        ----------
        scheme : Scheme or str
            Scheme to run.
        reset : bool, default ``True``
            Reset the shared stream to its start first. Passing ``False``
            continues from the current cursor, so the scheme sees different
            draws than the previous one.

        Returns
        -------
        SchemeResult
        """
        scheme = Scheme(scheme)
        if reset:
            self.variates.reset_to_start()
        logger.info(f"Running {scheme.value} scheme with {self.n_paths} paths and {self.n_steps} steps...")
        t0 = time.time()
        sim = simulate(scheme, self.params, self.n_paths, self.n_steps, self.variates)
        exec_time = time.time() - t0

        final = sim.final_row
        ctx = StatsContext.for_parameters(
            self.params, final.size, reference=self._exact_reference(scheme, reset)
        )
        try:
            stats = self.stats_engine.compute(final, ctx)
        except Exception as e:
            logger.error(f"Stats engine failed: {e}")
            stats = {}

        result = SchemeResult(
            scheme=scheme,
            final_prices=final,
            n_paths=self.n_paths,
            n_steps=self.n_steps,
            execution_time=exec_time,
            mean=empirical.expected_value(final),
            variance=empirical.variance(final),
            histogram=empirical.create_density_hist(final, self.n_bins),
            stats=stats,
            metadata={
                "analytic_mean": self.params.analytic_mean(),
                "analytic_variance": self.params.analytic_variance(),
                "dt": sim.dt,
                "generator": self.generator,
                "replayed": reset,
                "timestamp": time.time(),
            },
        )
        self.simulations[scheme.value] = sim
        self.results[scheme.value] = result
        if reset:
            self._replayed.add(scheme.value)
        else:
            self._replayed.discard(scheme.value)
        return result

    def _exact_reference(self, scheme: Scheme, reset: bool) -> Optional[np.ndarray]:
        # pathwise comparison needs both runs to have consumed the same draws
        if scheme is Scheme.exact or not reset or Scheme.exact.value not in self._replayed:
            return None
        return self.simulations[Scheme.exact.value].final_row

    def run_all(self, schemes: Iterable[Union[Scheme, str]] = DEFAULT_SCHEMES) -> dict[str, SchemeResult]:
        """Run ``schemes`` in order, resetting the stream before each one."""
        return {Scheme(s).value: self.run_scheme(s) for s in schemes}

    def _get(self, name: Union[Scheme, str]) -> str:
        key = Scheme(name).value
        if key not in self.results:
            raise ValueError(f"No results found for scheme '{key}'")
        return key

    def compare_results(
        self,
        names: Iterable[Union[Scheme, str]],
        metric: str = "mean",
    ) -> dict[str, float]:
        r"""
        Extract one metric across previously run schemes.

        Parameters
        ----------
        names : iterable of Scheme or str
            Schemes that have been run.
        metric : {"mean", "variance", "std", "bias", "var_bias"}, default ``"mean"``
            ``"bias"`` is the mean minus the analytic mean; ``"var_bias"``
            the variance minus the analytic variance.

        Raises
        ------
        ValueError
            If a scheme has no results or the metric is unknown.
        """
        out: dict[str, float] = {}
        for name in names:
            key = self._get(name)
            r = self.results[key]
            if metric == "mean":
                out[key] = r.mean
            elif metric == "variance":
                out[key] = r.variance
            elif metric == "std":
                out[key] = r.std
            elif metric == "bias":
                out[key] = r.mean - r.metadata["analytic_mean"]
            elif metric == "var_bias":
                out[key] = r.variance - r.metadata["analytic_variance"]
            else:
                raise ValueError(f"Unknown metric: {metric}")
        return out

    def mean_abs_difference(
        self,
        a: Union[Scheme, str],
        b: Union[Scheme, str],
        step: Optional[int] = None,
    ) -> float:
        r"""
        Pathwise distance :math:`\frac1N\sum_i |S^a_{k,i} - S^b_{k,i}|` at step ``k``.

        Only meaningful when both schemes replayed the same draws.
        ``step`` defaults to maturity.
        """
        sa = self.simulations[self._get(a)]
        sb = self.simulations[self._get(b)]
        k = self.n_steps if step is None else step
        return float(np.mean(np.abs(sa.get_row(k) - sb.get_row(k))))

    def write_histograms(
        self,
        output_dir: Union[str, PathLike] = ".",
        n_bins: Optional[int] = None,
    ) -> list[Path]:
        r"""
        Write density histograms of every completed scheme at maturity.

        For the Exact scheme the histogram of log returns
        :math:`\log(S_T / S_0)` is written as well.

        Returns
        -------
        list of pathlib.Path
            Files written, in run order.
        """
        out_dir = Path(output_dir)
        bins = self.n_bins if n_bins is None else int(n_bins)
        maturity = f"{self.params.T:g}"
        written: list[Path] = []
        for key, sim in self.simulations.items():
            scheme = Scheme(key)
            name = f"{scheme.label}_time_{maturity}_timesteps_{sim.n_steps}.txt"
            hist = empirical.create_density_hist(sim.final_row, bins)
            written.append(empirical.write_hist_to_file(hist, out_dir / name))
            if scheme is Scheme.exact:
                rets = empirical.log_returns(sim.final_row, sim.get_row(0))
                name = f"{scheme.label}_time_{maturity}_log_rets_at_timestep{sim.n_steps}.txt"
                hist = empirical.create_density_hist(rets, bins)
                written.append(empirical.write_hist_to_file(hist, out_dir / name))
        return written

    def log_return_moments(self, scheme: Union[Scheme, str] = Scheme.exact) -> tuple[float, float]:
        """Mean and population variance of :math:`\\log(S_T / S_0)` for ``scheme``."""
        sim = self.simulations[self._get(scheme)]
        rets = empirical.log_returns(sim.final_row, sim.get_row(0))
        return empirical.expected_value(rets), empirical.variance(rets)


__all__ = [
    "SchemeResult",
    "SchemeComparison",
]
