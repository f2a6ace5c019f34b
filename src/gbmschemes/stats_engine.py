r"""
gbmschemes.stats_engine
=======================
Accuracy statistics for one scheme's cross-section at maturity.

A scheme is judged two ways: against the closed-form GBM moments
(:meth:`~gbmschemes.parameters.Parameters.analytic_mean` and
:meth:`~gbmschemes.parameters.Parameters.analytic_variance`), which measures
weak error, and pathwise against the Exact scheme run on the same replayed
draws, which measures strong error. This module defines:

- :class:`StatsContext`: sample size, confidence level and the references a
  scheme is compared with.
- :class:`FnMetric`: a frozen adapter that names a metric function.
- :class:`StatsEngine`: evaluates a list of metrics over one cross-section.

Metrics: :func:`mean`, :func:`std`, :func:`ci_mean`, :func:`mean_bias`,
:func:`bias_zscore`, :func:`variance_bias` and :func:`pathwise_error`. A metric
whose reference is missing from the context raises :class:`MissingReference`
and the engine leaves it out of the result.

See Also
--------
gbmschemes.utils.autocrit
    Selects a z/t critical value for a target confidence level and sample size.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, Iterable, Optional, Protocol, Sequence, TypeVar

import numpy as np

from .parameters import Parameters
from .utils import autocrit

logger = logging.getLogger(__name__)


class MissingReference(ValueError):
    """Raised by a metric when the context lacks the reference it compares against."""


@dataclass(slots=True)
class StatsContext:
    r"""
    What a scheme's terminal prices are measured against.

    Attributes
    ----------
    n : int
        Number of paths in the cross-section.
    confidence : float, default 0.95
        Confidence level in :math:`(0, 1)` for :func:`ci_mean`.
    ci_method : {"auto", "z", "t"}, default "auto"
        Critical value choice, see :func:`gbmschemes.utils.autocrit`.
    analytic_mean : float, optional
        :math:`\mathbb{E}[S_T]` for :func:`mean_bias` and :func:`bias_zscore`.
    analytic_variance : float, optional
        :math:`\operatorname{Var}[S_T]` for :func:`variance_bias`.
    reference : ndarray, optional
        Exact-scheme prices at the same step, produced from the same ordered
        draws, for :func:`pathwise_error`.

    Examples
    --------
    >>> ctx = StatsContext.for_parameters(Parameters(), n=1000)
    >>> round(ctx.analytic_mean, 4)
    105.1271
    """

    n: int
    confidence: float = 0.95
    ci_method: str = "auto"
    analytic_mean: Optional[float] = None
    analytic_variance: Optional[float] = None
    reference: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        if self.n <= 0:
            raise ValueError("n must be positive")
        if not (0.0 < self.confidence < 1.0):
            raise ValueError("confidence must be in (0,1)")
        if self.ci_method not in ("auto", "z", "t"):
            raise ValueError(f"Unknown ci_method: {self.ci_method}")
        if self.reference is not None and np.shape(self.reference) != (self.n,):
            raise ValueError(f"reference must have shape ({self.n},), got {np.shape(self.reference)}")

    @classmethod
    def for_parameters(
        cls,
        params: Parameters,
        n: int,
        t: Optional[float] = None,
        reference: Optional[np.ndarray] = None,
        **kwargs: Any,
    ) -> "StatsContext":
        """Context carrying the closed-form moments of ``params`` at time ``t`` (default maturity)."""
        return cls(
            n=n,
            analytic_mean=params.analytic_mean(t),
            analytic_variance=params.analytic_variance(t),
            reference=reference,
            **kwargs,
        )

    def with_overrides(self, **changes) -> "StatsContext":
        """Return a copy with selected fields replaced."""
        return replace(self, **changes)


class Metric(Protocol):
    r"""
    Protocol for metric callables used by :class:`StatsEngine`.

    ``metric(x: numpy.ndarray, ctx: StatsContext) -> Any`` with a ``name``
    attribute used as the result key.
    """

    name: str

    def __call__(self, x: np.ndarray, ctx: StatsContext, /) -> Any: ...


T = TypeVar("T")


@dataclass(frozen=True)
class FnMetric(Generic[T]):
    r"""
    Binds a result key to a metric function.

    Parameters
    ----------
    name : str
        Key under which :meth:`StatsEngine.compute` stores the value.
    fn : callable
        ``fn(x: ndarray, ctx: StatsContext) -> T``.
    doc : str, optional
        Short description.
    """

    name: str
    fn: Callable[[np.ndarray, StatsContext], T]
    doc: str = ""

    def __call__(self, x: np.ndarray, ctx: StatsContext) -> T:
        return self.fn(x, ctx)


class StatsEngine:
    r"""
    Evaluates a set of metrics over one cross-section.

    Parameters
    ----------
    metrics : iterable of Metric
        Callables with a ``name`` and signature ``metric(x, ctx)``.

    Examples
    --------
    >>> eng = StatsEngine([FnMetric("mean", mean), FnMetric("std", std)])
    >>> eng.compute(np.array([1., 2., 3.]), StatsContext(n=3))
    {'mean': 2.0, 'std': 1.0}
    """

    def __init__(self, metrics: Iterable[Metric]):
        self._metrics = list(metrics)

    def available(self) -> tuple[str, ...]:
        return tuple(m.name for m in self._metrics)

    def compute(
        self,
        x: np.ndarray,
        ctx: StatsContext,
        select: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        r"""
        Evaluate the registered metrics on ``x``.

        Parameters
        ----------
        x : ndarray
            Prices of every path at one step.
        ctx : StatsContext
            Sample size and references.
        select : sequence of str, optional
            Compute only the metrics with these names.

        Returns
        -------
        dict
            Metric name to value. Metrics raising :class:`MissingReference`
            are omitted; any other error propagates.
        """
        arr = np.asarray(x, dtype=float)
        if arr.shape != (ctx.n,):
            raise ValueError(f"sample has shape {arr.shape}, context expects ({ctx.n},)")
        wanted = None if select is None else set(select)
        out: dict[str, Any] = {}
        for m in self._metrics:
            if wanted is not None and m.name not in wanted:
                continue
            try:
                out[m.name] = m(arr, ctx)
            except MissingReference as e:
                logger.debug(f"Skipping metric {m.name}: {e}")
        return out


def mean(x: np.ndarray, ctx: StatsContext) -> float:
    r"""Sample mean :math:`\bar S_T`."""
    return float(np.mean(x))


def std(x: np.ndarray, ctx: StatsContext) -> float:
    """Sample standard deviation with Bessel's correction (``0.0`` for one path)."""
    return float(np.std(x, ddof=1)) if x.size > 1 else 0.0


def ci_mean(x: np.ndarray, ctx: StatsContext) -> dict[str, float | str]:
    r"""
    Confidence interval for :math:`\mathbb{E}[S_T]` under the simulated scheme.

    .. math::
       \bar S_T \pm c \cdot \frac{s}{\sqrt{n}},

    with :math:`c` from :func:`gbmschemes.utils.autocrit`. For a weakly
    consistent scheme the interval should cover ``ctx.analytic_mean``; the
    ``covers_analytic`` key reports it when that mean is known.
    """
    if x.size < 2:
        return {"confidence": ctx.confidence, "method": ctx.ci_method,
                "low": float("nan"), "high": float("nan")}
    mu = float(np.mean(x))
    se = float(np.std(x, ddof=1)) / np.sqrt(x.size)
    crit, kind = autocrit(ctx.confidence, x.size, ctx.ci_method)
    out: dict[str, Any] = {
        "confidence": ctx.confidence,
        "method": kind,
        "se": float(se),
        "crit": float(crit),
        "low": float(mu - crit * se),
        "high": float(mu + crit * se),
    }
    if ctx.analytic_mean is not None:
        out["covers_analytic"] = bool(out["low"] <= ctx.analytic_mean <= out["high"])
    return out


def mean_bias(x: np.ndarray, ctx: StatsContext) -> float:
    r"""Weak error :math:`\bar S_T - \mathbb{E}[S_T]`."""
    if ctx.analytic_mean is None:
        raise MissingReference("mean_bias requires ctx.analytic_mean")
    return float(np.mean(x) - ctx.analytic_mean)


def bias_zscore(x: np.ndarray, ctx: StatsContext) -> float:
    r"""
    Bias in standard errors, :math:`(\bar S_T - \mathbb{E}[S_T]) / (s/\sqrt n)`.

    Values of a few units are Monte Carlo noise; larger ones expose
    discretization bias. Infinite when the sample has zero spread but a
    non-zero bias.
    """
    bias = mean_bias(x, ctx)
    se = std(x, ctx) / np.sqrt(x.size)
    if se == 0.0:
        return 0.0 if bias == 0.0 else float(np.copysign(np.inf, bias))
    return float(bias / se)


def variance_bias(x: np.ndarray, ctx: StatsContext) -> float:
    r"""Population variance of the sample minus :math:`\operatorname{Var}[S_T]`."""
    if ctx.analytic_variance is None:
        raise MissingReference("variance_bias requires ctx.analytic_variance")
    return float(np.var(x) - ctx.analytic_variance)


def pathwise_error(x: np.ndarray, ctx: StatsContext) -> float:
    r"""
    Strong error :math:`\frac1N\sum_i |S_{T,i} - S^{\text{exact}}_{T,i}|`.

    Only meaningful when ``ctx.reference`` came from the same ordered draws.
    """
    if ctx.reference is None:
        raise MissingReference("pathwise_error requires ctx.reference")
    return float(np.mean(np.abs(x - np.asarray(ctx.reference, dtype=float))))


def build_default_engine(include_reference_metrics: bool = True) -> StatsEngine:
    r"""
    Construct a :class:`StatsEngine` with the metrics used for scheme summaries.

    Parameters
    ----------
    include_reference_metrics : bool, default True
        Include :func:`mean_bias`, :func:`bias_zscore`, :func:`variance_bias`
        and :func:`pathwise_error`.
    """
    metrics: list[Metric] = [
        FnMetric[float]("mean", mean, "Sample mean"),
        FnMetric[float]("std", std, "Sample standard deviation (ddof=1)"),
        FnMetric[dict[str, float | str]]("ci_mean", ci_mean, "z/t CI for the mean"),
    ]
    if include_reference_metrics:
        metrics.extend(
            [
                FnMetric[float]("mean_bias", mean_bias, "Mean minus analytic mean"),
                FnMetric[float]("bias_zscore", bias_zscore, "Mean bias in standard errors"),
                FnMetric[float]("variance_bias", variance_bias, "Population variance minus analytic variance"),
                FnMetric[float]("pathwise_error", pathwise_error, "Mean absolute distance to the Exact paths"),
            ]
        )
    return StatsEngine(metrics)


DEFAULT_ENGINE = build_default_engine()

__all__ = [
    "MissingReference",
    "StatsContext",
    "Metric",
    "FnMetric",
    "StatsEngine",
    "mean",
    "std",
    "ci_mean",
    "mean_bias",
    "bias_zscore",
    "variance_bias",
    "pathwise_error",
    "build_default_engine",
    "DEFAULT_ENGINE",
]
