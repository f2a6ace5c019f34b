r"""
gbmschemes.schemes
==================

Discretization schemes for geometric Brownian motion.

Every scheme advances all paths one step at a time with a multiplicative
update

.. math::

   S_{k+1} = S_k \cdot g(Z_{k+1}), \qquad Z_{k+1} \sim \mathcal{N}(0, I_N),

where the step factor :math:`g` depends on the scheme:

Exact
    :math:`g(z) = \exp\!\big((\mu - \tfrac12\sigma^2)\Delta t + \sigma\sqrt{\Delta t}\,z\big)`.
    No discretization error, only Monte Carlo error.
Euler-Maruyama
    :math:`g(z) = 1 + \mu\Delta t + \sigma\sqrt{\Delta t}\,z`.
    Strong order 1/2, weak order 1.
Milstein
    :math:`g(z) = \sigma\sqrt{\Delta t}\,z + \tfrac12\sigma^2\Delta t\,z^2 + 1 + \Delta t(\mu - \tfrac12\sigma^2)`.
    Strong order 1 for multiplicative noise.

The set of schemes is closed: :class:`Scheme` enumerates it and
:data:`STEP_FACTORS` maps each member to its step factor.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Union

import numpy as np

from .parameters import Parameters
from .simulation import Simulation
from .variates import VariateSource

logger = logging.getLogger(__name__)

__all__ = [
    "Scheme",
    "STEP_FACTORS",
    "exact_factor",
    "euler_maruyama_factor",
    "milstein_factor",
    "SchemeSimulation",
    "ExactPath",
    "EulerMaruyama",
    "Milstein",
    "simulate",
]


class Scheme(str, Enum):
    r"""
    Available discretization schemes.

    Attributes
    ----------
    exact : str
        Closed-form GBM solution.
    euler_maruyama : str
        First-order Euler-Maruyama recurrence.
    milstein : str
        Euler-Maruyama plus the Itô correction term.
    """

    exact = "exact"
    euler_maruyama = "euler_maruyama"
    milstein = "milstein"

    @property
    def label(self) -> str:
        """Short prefix used for histogram file names."""
        return _LABELS[self]


_LABELS = {
    Scheme.exact: "EX",
    Scheme.euler_maruyama: "EM",
    Scheme.milstein: "M",
}


def exact_factor(z: np.ndarray, params: Parameters, dt: float) -> np.ndarray:
    """Closed-form growth factor over one step."""
    drift = (params.mu - 0.5 * params.sigma * params.sigma) * dt
    return np.exp(drift + params.sigma * np.sqrt(dt) * z)


def euler_maruyama_factor(z: np.ndarray, params: Parameters, dt: float) -> np.ndarray:
    """Euler-Maruyama growth factor over one step."""
    return (1.0 + params.mu * dt) + params.sigma * np.sqrt(dt) * z


def milstein_factor(z: np.ndarray, params: Parameters, dt: float) -> np.ndarray:
    """Milstein growth factor over one step."""
    half_var = 0.5 * params.sigma * params.sigma
    factor = params.sigma * np.sqrt(dt) * z + half_var * dt * z * z
    return factor + (1.0 + dt * (params.mu - half_var))


StepFactor = Callable[[np.ndarray, Parameters, float], np.ndarray]

STEP_FACTORS: dict[Scheme, StepFactor] = {
    Scheme.exact: exact_factor,
    Scheme.euler_maruyama: euler_maruyama_factor,
    Scheme.milstein: milstein_factor,
}


class SchemeSimulation(Simulation):
    r"""
    A :class:`~gbmschemes.simulation.Simulation` filled by one scheme.

    The constructor populates the whole matrix in one pass and freezes it.
    The variate source is only borrowed during construction; it is not kept
    on the instance. If construction fails the exception propagates and no
    partially filled instance is returned.

    Parameters
    ----------
    params : Parameters
        Model parameters.
    n_paths : int
        Number of paths :math:`N`.
    n_steps : int
        Number of time steps.
    variates : VariateSource
        Stream of standard normals; ``n_paths`` values are drawn per step.

    Notes
    -----
    Subclasses only set :attr:`scheme`. Given the same ordered variate
    sequence the resulting matrix is fully deterministic.
    """

    scheme: Scheme

    def __init__(
        self,
        params: Parameters,
        n_paths: int,
        n_steps: int,
        variates: VariateSource,
    ):
        super().__init__(params, n_paths, n_steps)
        logger.info(
            f"Constructing {self.scheme.value} scheme: {self.n_paths} paths x {self.n_steps} steps"
        )
        self._populate(variates)
        self._complete()

    def _populate(self, variates: VariateSource) -> None:
        factor = STEP_FACTORS[self.scheme]
        prev = self.get_row(0)
        for k in range(1, self.n_steps + 1):
            z = variates.produce(self.n_paths)
            row = prev * factor(z, self.params, self.dt)
            self.set_row(k, row)
            prev = self.get_row(k)


class ExactPath(SchemeSimulation):
    """Paths from the closed-form GBM solution."""

    scheme = Scheme.exact


class EulerMaruyama(SchemeSimulation):
    """Paths from the Euler-Maruyama discretization."""

    scheme = Scheme.euler_maruyama


class Milstein(SchemeSimulation):
    """Paths from the Milstein discretization."""

    scheme = Scheme.milstein


_SCHEME_CLASSES: dict[Scheme, type[SchemeSimulation]] = {
    Scheme.exact: ExactPath,
    Scheme.euler_maruyama: EulerMaruyama,
    Scheme.milstein: Milstein,
}


def simulate(
    scheme: Union[Scheme, str],
    params: Parameters,
    n_paths: int,
    n_steps: int,
    variates: VariateSource,
) -> SchemeSimulation:
    r"""
    Build the simulation for ``scheme``.

    Parameters
    ----------
    scheme : Scheme or str
        A :class:`Scheme` member or its value (``"exact"``,
        ``"euler_maruyama"``, ``"milstein"``).

    Returns
    -------
    SchemeSimulation
        A completed simulation.

    Raises
    ------
    ValueError
        If ``scheme`` is not a known scheme.

    Examples
    --------
    >>> from gbmschemes.variates import MersenneTwisterVariates
    >>> src = MersenneTwisterVariates(100 * 10, seed=1)
    >>> sim = simulate("milstein", Parameters(), 100, 10, src)
    >>> sim.final_row.shape
    (100,)
    """
    return _SCHEME_CLASSES[Scheme(scheme)](params, n_paths, n_steps, variates)
