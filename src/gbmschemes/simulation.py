r"""
Path-matrix storage shared by all discretization schemes.

This module provides:

Classes
    :class:`Simulation` – owns the price matrix, the time grid and the row accessors

The matrix has ``n_steps + 1`` rows and ``n_paths`` columns. Row ``k`` is the
cross-section of all simulated prices at :math:`t_0 + k\,\Delta t` with
:math:`\Delta t = (T - t_0) / n_\text{steps}`; row 0 is :math:`S_0` everywhere.

See Also
--------
gbmschemes.schemes
    The Exact, Euler-Maruyama and Milstein recurrences that fill the matrix.
"""

from __future__ import annotations

import operator

import numpy as np

from .parameters import Parameters

__all__ = ["Simulation"]


class Simulation:
    r"""
    Storage and accessors for a matrix of simulated GBM prices.

    No scheme-specific logic lives here; subclasses fill rows ``1..n_steps``
    through :meth:`set_row` and then call :meth:`_complete`, after which the
    matrix is read-only.

    Parameters
    ----------
    params : Parameters
        Model parameters.
    n_paths : int
        Number of simulated paths :math:`N`.
    n_steps : int
        Number of time steps.

    Attributes
    ----------
    params : Parameters
    n_paths : int
    n_steps : int
    dt : float
        Step size :math:`\Delta t`.

    Raises
    ------
    TypeError
        If ``n_paths`` or ``n_steps`` is not an integer; floats are not truncated.
    ValueError
        If either size is not positive.
    """

    def __init__(self, params: Parameters, n_paths: int, n_steps: int):
        n_paths = operator.index(n_paths)
        n_steps = operator.index(n_steps)
        if n_paths <= 0:
            raise ValueError("n_paths must be positive")
        if n_steps <= 0:
            raise ValueError("n_steps must be positive")
        self.params = params
        self.n_paths = n_paths
        self.n_steps = n_steps
        self.dt = (params.T - params.t0) / self.n_steps
        self._prices = np.empty((self.n_steps + 1, self.n_paths), dtype=float)
        self._prices[0] = params.S0
        self._completed = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_paths={self.n_paths}, n_steps={self.n_steps}, dt={self.dt:g})"

    def _check_step(self, k: int) -> int:
        k = operator.index(k)
        if not 0 <= k <= self.n_steps:
            raise IndexError(f"step {k} outside [0, {self.n_steps}]")
        return k

    def get_row(self, k: int) -> np.ndarray:
        r"""
        Cross-section of all paths at step ``k``.

        Returns a view into the matrix; the view is read-only once the
        simulation is complete.

        Raises
        ------
        IndexError
            If ``k`` is outside ``[0, n_steps]``.
        TypeError
            If ``k`` is not an integer.
        """
        return self._prices[self._check_step(k)]

    def set_row(self, k: int, values: np.ndarray) -> None:
        r"""
        Install the cross-section for step ``k``.

        Raises
        ------
        IndexError
            If ``k`` is outside ``[0, n_steps]``.
        ValueError
            If ``values`` does not hold exactly ``n_paths`` elements.
        RuntimeError
            If the simulation is already complete.
        """
        k = self._check_step(k)
        if self._completed:
            raise RuntimeError(f"{type(self).__name__} is complete; rows are read-only")
        arr = np.asarray(values, dtype=float)
        if arr.shape != (self.n_paths,):
            raise ValueError(f"row must have shape ({self.n_paths},), got {arr.shape}")
        self._prices[k] = arr

    def _complete(self) -> None:
        self._prices.flags.writeable = False
        self._completed = True

    @property
    def is_complete(self) -> bool:
        return self._completed

    @property
    def times(self) -> np.ndarray:
        """Time grid :math:`t_0 + k\\,\\Delta t` for ``k = 0..n_steps``."""
        return self.params.t0 + self.dt * np.arange(self.n_steps + 1)

    @property
    def paths(self) -> np.ndarray:
        """Read-only view of the full ``(n_steps + 1, n_paths)`` matrix."""
        view = self._prices.view()
        view.flags.writeable = False
        return view

    @property
    def final_row(self) -> np.ndarray:
        """Cross-section at maturity (step ``n_steps``)."""
        return self.get_row(self.n_steps)
