r"""
gbmschemes.variates
===================

Replayable streams of standard-normal variates.

Every discretization scheme draws its Gaussian increments from a
:class:`VariateSource`. A source materializes ``n`` variates once, at
construction, and then hands them out in order through :meth:`VariateSource.produce`.
Passing the *same* source to several schemes, with
:meth:`VariateSource.reset_to_start` called in between, makes each scheme
consume an identical ordered sequence of draws, so differences between schemes
are discretization effects rather than sampling noise.

This module provides:

* :class:`VariateSource` – abstract base holding the buffer and the cursor.
* :class:`MersenneTwisterVariates` – Mersenne-Twister + NumPy normal sampler.
* :class:`LaggedFibonacciVariates` – lagged-Fibonacci uniforms + Ziggurat.
* :class:`SobolVariates` – Sobol quasi-random points + inverse error function.
* :func:`make_variates` – build a source from its name.

Exhaustion
----------
When the cursor reaches the end of the buffer, the next draw reshuffles the
buffer in place and restarts from position 0. The values are reused in a new
order; no fresh randomness is generated.
"""

from __future__ import annotations

import logging
import operator
import threading
import warnings
from abc import ABC, abstractmethod
from typing import Optional, Union

import numpy as np
from scipy.special import erfinv
from scipy.stats import qmc

from .generators import LaggedFibonacci607, ZigguratNormal

logger = logging.getLogger(__name__)

__all__ = [
    "ConfigurationError",
    "VariateSource",
    "MersenneTwisterVariates",
    "LaggedFibonacciVariates",
    "SobolVariates",
    "GENERATORS",
    "make_variates",
]

SeedLike = Union[int, np.random.SeedSequence, None]


class ConfigurationError(ValueError):
    """Raised when a variate source cannot be built with the requested settings."""


class VariateSource(ABC):
    r"""
    Abstract base for a fixed-length, replayable standard-normal stream.

    Subclass this and implement :meth:`_generate`.

    Parameters
    ----------
    n : int
        Stream length :math:`N_\_`, typically ``n_paths * n_steps``.
    seed : int, SeedSequence or None, optional
        Seed for reproducible streams. ``None`` draws entropy from the OS.

    Attributes
    ----------
    seed_seq : numpy.random.SeedSequence
        Root seed sequence. Its first child seeds generation, the second
        seeds the reshuffling generator.
    max_size : int or None
        Upper bound on ``n`` for strategies backed by a bounded table.

    Notes
    -----
    The cursor is shared by everything that holds a reference to the source.
    Callers must call :meth:`reset_to_start` between schemes; forgetting to do
    so is not detected and yields statistically different (not invalid)
    paths. Cursor updates are serialized by an instance lock.
    """

    max_size: Optional[int] = None

    def __init__(self, n: int, seed: SeedLike = None):
        n = operator.index(n)
        if n <= 0:
            raise ConfigurationError("number of variates must be positive")
        if self.max_size is not None and n > self.max_size:
            raise ConfigurationError(
                f"{type(self).__name__} supports at most {self.max_size} variates, got {n}"
            )
        self.seed_seq = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
        gen_seq, shuffle_seq = self.seed_seq.spawn(2)
        self._shuffler = np.random.Generator(np.random.MT19937(shuffle_seq))
        self._lock = threading.Lock()
        self._size = n
        self._cursor = 0
        self._data = np.ascontiguousarray(self._generate(n, gen_seq), dtype=float)
        if self._data.shape != (n,):
            raise ConfigurationError(f"generator returned shape {self._data.shape}, expected ({n},)")
        logger.debug(f"{type(self).__name__} materialized {n} Gaussian variates")

    @abstractmethod
    def _generate(self, n: int, seed_seq: np.random.SeedSequence) -> np.ndarray:
        r"""
        Produce the ``n`` standard-normal values backing the stream.

        Notes
        -----
        Subclasses must implement this method.
        """

    def __len__(self) -> int:
        return self._size

    def __call__(self) -> float:
        """Return the next single variate."""
        return float(self.produce(1)[0])

    @property
    def cursor(self) -> int:
        """Position of the next value to be read."""
        return self._cursor

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the buffer in its current order."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    def produce(self, n: int) -> np.ndarray:
        r"""
        Return the next ``n`` variates and advance the cursor.

        Parameters
        ----------
        n : int
            Number of draws. May exceed the stream length; the buffer is
            reshuffled each time it is exhausted.

        Returns
        -------
        ndarray
            A fresh array of length ``n``.
        """
        n = operator.index(n)
        if n < 0:
            raise ValueError("n must be non-negative")
        out = np.empty(n, dtype=float)
        with self._lock:
            filled = 0
            while filled < n:
                if self._cursor == self._size:
                    self._reshuffle()
                take = min(n - filled, self._size - self._cursor)
                out[filled : filled + take] = self._data[self._cursor : self._cursor + take]
                self._cursor += take
                filled += take
        return out

    def reset_to_start(self) -> None:
        """Move the cursor back to 0 without regenerating or reshuffling."""
        with self._lock:
            self._cursor = 0
        logger.debug(f"{type(self).__name__} reset to start")

    def _reshuffle(self) -> None:
        # caller holds the lock
        self._shuffler.shuffle(self._data)
        self._cursor = 0
        logger.debug(f"{type(self).__name__} exhausted; reshuffled {self._size} variates")


class MersenneTwisterVariates(VariateSource):
    r"""
    Normals from a Mersenne-Twister engine (:class:`numpy.random.MT19937`).

    Notes
    -----
    NumPy ships only the 32-bit MT19937 (period :math:`2^{19937} - 1`), not
    the 64-bit MT19937-64 variant. Outputs therefore differ from a 64-bit
    engine for the same seed; the stream is still standard normal and
    reproducible from ``seed``.

    Examples
    --------
    >>> src = MersenneTwisterVariates(1_000, seed=42)
    >>> src.produce(3).shape
    (3,)
    """

    def _generate(self, n: int, seed_seq: np.random.SeedSequence) -> np.ndarray:
        rng = np.random.Generator(np.random.MT19937(seed_seq))
        return rng.standard_normal(n)


class LaggedFibonacciVariates(VariateSource):
    r"""
    Normals from a lagged-Fibonacci generator through a Ziggurat transform.

    The generator is created per instance, so independent sources never race
    on shared generator state.
    """

    def _generate(self, n: int, seed_seq: np.random.SeedSequence) -> np.ndarray:
        lfg = LaggedFibonacci607(seed_seq)
        return ZigguratNormal(lfg.random).sample(n)


class SobolVariates(VariateSource):
    r"""
    Normals from a one-dimensional Sobol sequence.

    Each quasi-uniform point :math:`u \in (0, 1)` is mapped through

    .. math::

       \Phi^{-1}(u) = \sqrt{2}\,\operatorname{erf}^{-1}(2u - 1),

    and the transformed sequence is shuffled once so that time-ordered
    consumption does not inherit the low-discrepancy ordering.

    Raises
    ------
    ConfigurationError
        If more than :attr:`max_size` variates are requested.
    """

    max_size = 10_000

    def _generate(self, n: int, seed_seq: np.random.SeedSequence) -> np.ndarray:
        engine = qmc.Sobol(d=1, scramble=False)
        engine.fast_forward(1)  # skip the origin, erfinv(-1) is -inf
        with warnings.catch_warnings():
            # balance-property warning for n not a power of two
            warnings.simplefilter("ignore", UserWarning)
            u = engine.random(n).ravel()
        z = np.sqrt(2.0) * erfinv(2.0 * u - 1.0)
        np.random.Generator(np.random.MT19937(seed_seq)).shuffle(z)
        return z


GENERATORS: dict[str, type[VariateSource]] = {
    "mersenne_twister": MersenneTwisterVariates,
    "lagged_fibonacci": LaggedFibonacciVariates,
    "sobol": SobolVariates,
}


def make_variates(kind: str, n: int, seed: SeedLike = None) -> VariateSource:
    r"""
    Build a variate source by name.

    Parameters
    ----------
    kind : {"mersenne_twister", "lagged_fibonacci", "sobol"}
        Generation strategy.
    n : int
        Stream length.
    seed : int, SeedSequence or None, optional
        Seed forwarded to the source.

    Raises
    ------
    ConfigurationError
        For an unknown ``kind`` or a size the strategy cannot serve.
    """
    try:
        cls = GENERATORS[kind]
    except KeyError:
        raise ConfigurationError(
            f"unknown generator '{kind}', expected one of {sorted(GENERATORS)}"
        ) from None
    return cls(n, seed=seed)
