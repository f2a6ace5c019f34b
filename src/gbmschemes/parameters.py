r"""
Model parameters for geometric Brownian motion.

The process simulated by every scheme in this package is

.. math::

   dS_t = \mu S_t \, dt + \sigma S_t \, dW_t, \qquad S_{t_0} = S_0 .
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

__all__ = ["Parameters"]


@dataclass(frozen=True, slots=True)
class Parameters:
    r"""
    Immutable configuration record shared by all discretization schemes.

    Attributes
    ----------
    t0 : float, default ``0.0``
        Initial time.
    T : float, default ``1.0``
        Maturity. Must satisfy :math:`T > t_0`.
    S0 : float, default ``100.0``
        Initial price, strictly positive.
    sigma : float, default ``0.2``
        Volatility, non-negative.
    mu : float, default ``0.05``
        Drift.

    Examples
    --------
    >>> p = Parameters()
    >>> p.horizon
    1.0
    >>> p.with_overrides(T=2.0).horizon
    2.0
    """

    t0: float = 0.0
    T: float = 1.0
    S0: float = 100.0
    sigma: float = 0.2
    mu: float = 0.05

    def __post_init__(self) -> None:
        r"""
        Validate field ranges.

        Raises
        ------
        ValueError
            If any field is non-finite or outside its allowed range.
        """
        for name in ("t0", "T", "S0", "sigma", "mu"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"{name} must be finite")
        if self.T <= self.t0:
            raise ValueError("T must be greater than t0")
        if self.S0 <= 0.0:
            raise ValueError("S0 must be positive")
        if self.sigma < 0.0:
            raise ValueError("sigma must be >= 0")

    def with_overrides(self, **changes) -> "Parameters":
        """Return a copy with selected fields replaced (validated again)."""
        return replace(self, **changes)

    @property
    def horizon(self) -> float:
        """Length of the simulated interval, :math:`T - t_0`."""
        return self.T - self.t0

    def analytic_mean(self, t: float | None = None) -> float:
        r"""
        Closed-form :math:`\mathbb{E}[S_t] = S_0 e^{\mu (t - t_0)}`.

        Parameters
        ----------
        t : float, optional
            Evaluation time. Defaults to the maturity :attr:`T`.
        """
        tau = (self.T if t is None else t) - self.t0
        return self.S0 * math.exp(self.mu * tau)

    def analytic_variance(self, t: float | None = None) -> float:
        r"""
        Closed-form :math:`\operatorname{Var}[S_t]`.

        .. math::

           \operatorname{Var}[S_t] = S_0^2 e^{2\mu\tau}\left(e^{\sigma^2\tau} - 1\right),
           \qquad \tau = t - t_0 .
        """
        tau = (self.T if t is None else t) - self.t0
        return self.S0**2 * math.exp(2.0 * self.mu * tau) * math.expm1(self.sigma**2 * tau)
