r"""
Uniform and normal generators used by the lagged-Fibonacci variate source.

This module provides:

* :class:`LaggedFibonacci607` – additive lagged-Fibonacci generator of
  uniforms on :math:`[0, 1)` with lags :math:`(607, 273)`.
* :class:`ZigguratNormal` – Marsaglia–Tsang Ziggurat transform turning any
  uniform source into standard-normal variates.

Both are ordinary instances: each variate source creates its own generator,
so two sources never share state.

Notes
-----
The lagged-Fibonacci recurrence is

.. math::

   x_n = (x_{n-607} + x_{n-273}) \bmod 1 ,

which lets up to 273 new values be computed at once from the lag table.
NumPy's own Ziggurat (:meth:`numpy.random.Generator.standard_normal`) only
runs on NumPy bit generators, hence the explicit transform here.
"""

from __future__ import annotations

from typing import Callable, Optional, Union

import numpy as np

__all__ = ["LaggedFibonacci607", "ZigguratNormal", "ziggurat_tables"]

SeedLike = Union[int, np.random.SeedSequence, None]

_ZIG_LAYERS = 128
_ZIG_R = 3.442619855899  # right edge of the base layer
_ZIG_V = 9.91256303526217e-3  # common layer area


def _as_seed_sequence(seed: SeedLike) -> np.random.SeedSequence:
    if isinstance(seed, np.random.SeedSequence):
        return seed
    return np.random.SeedSequence(seed)


class LaggedFibonacci607:
    r"""
    Additive lagged-Fibonacci generator with lags :math:`(607, 273)`.

    Parameters
    ----------
    seed : int, SeedSequence or None
        Seeds the Mersenne-Twister that fills the initial lag table. ``None``
        draws entropy from the OS.

    Examples
    --------
    >>> g = LaggedFibonacci607(seed=7)
    >>> u = g.random(1000)
    >>> bool(((u >= 0.0) & (u < 1.0)).all())
    True
    """

    long_lag = 607
    short_lag = 273

    def __init__(self, seed: SeedLike = None):
        seed_seq = _as_seed_sequence(seed)
        filler = np.random.Generator(np.random.MT19937(seed_seq))
        # lag table, oldest value first: _history[i] = x_{n - 607 + i}
        self._history = filler.random(self.long_lag)

    def _next_block(self, k: int) -> np.ndarray:
        h = self._history
        offset = self.long_lag - self.short_lag
        block = h[:k] + h[offset : offset + k]
        block[block >= 1.0] -= 1.0
        self._history = np.concatenate((h[k:], block))
        return block

    def random(self, size: int) -> np.ndarray:
        """Return ``size`` uniforms on :math:`[0, 1)`."""
        size = int(size)
        if size < 0:
            raise ValueError("size must be non-negative")
        out = np.empty(size, dtype=float)
        filled = 0
        while filled < size:
            k = min(self.short_lag, size - filled)
            out[filled : filled + k] = self._next_block(k)
            filled += k
        return out


def ziggurat_tables(
    layers: int = _ZIG_LAYERS,
    r: float = _ZIG_R,
    v: float = _ZIG_V,
) -> tuple[np.ndarray, np.ndarray]:
    r"""
    Layer edges :math:`x_i` and heights :math:`f(x_i)` of the Ziggurat.

    With :math:`f(x) = e^{-x^2/2}`, the base layer has width
    :math:`x_0 = v / f(r)` and :math:`x_1 = r`; the remaining edges follow

    .. math::

       x_{i+1} = f^{-1}\!\left(\frac{v}{x_i} + f(x_i)\right),

    so every layer has area :math:`v`. The top edge :math:`x_{128}` is 0.

    Returns
    -------
    tuple of ndarray
        ``(x, f(x))``, each of length ``layers + 1``.
    """
    x = np.empty(layers + 1, dtype=float)
    x[0] = v / np.exp(-0.5 * r * r)
    x[1] = r
    for i in range(1, layers - 1):
        x[i + 1] = np.sqrt(-2.0 * np.log(v / x[i] + np.exp(-0.5 * x[i] * x[i])))
    x[layers] = 0.0
    return x, np.exp(-0.5 * x * x)


class ZigguratNormal:
    r"""
    Standard-normal sampler built on a uniform source.

    Parameters
    ----------
    uniform : callable
        ``uniform(size) -> ndarray`` of uniforms on :math:`[0, 1)`, e.g.
        :meth:`LaggedFibonacci607.random`.

    Notes
    -----
    Candidates are drawn in vectorized batches. A candidate in layer
    :math:`i` is :math:`x = u\,x_i` with :math:`u \sim U(-1, 1)`; it is accepted
    outright when :math:`|x| < x_{i+1}`, otherwise it goes through the wedge
    test (layers :math:`i \ge 1`) or the exponential tail sampler (base
    layer). Rejected candidates are redrawn.
    """

    _edges, _heights = ziggurat_tables()

    def __init__(self, uniform: Callable[[int], np.ndarray]):
        self._uniform = uniform

    def _tail(self, count: int) -> np.ndarray:
        # Marsaglia's tail method beyond r
        out = np.empty(count, dtype=float)
        filled = 0
        while filled < count:
            m = count - filled
            a = -np.log1p(-self._uniform(m)) / _ZIG_R
            b = -np.log1p(-self._uniform(m))
            ok = 2.0 * b > a * a
            kept = _ZIG_R + a[ok]
            out[filled : filled + kept.size] = kept
            filled += kept.size
        return out

    def sample(self, n: int, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Return ``n`` standard-normal variates."""
        n = int(n)
        if out is None:
            out = np.empty(n, dtype=float)
        edges, heights = self._edges, self._heights
        filled = 0
        while filled < n:
            m = n - filled
            layer = np.minimum((self._uniform(m) * _ZIG_LAYERS).astype(np.intp), _ZIG_LAYERS - 1)
            u = 2.0 * self._uniform(m) - 1.0
            x = u * edges[layer]
            accept = np.abs(x) < edges[layer + 1]

            tail = ~accept & (layer == 0)
            n_tail = int(tail.sum())
            if n_tail:
                x[tail] = np.sign(u[tail]) * self._tail(n_tail)
                accept |= tail

            wedge = ~accept
            n_wedge = int(wedge.sum())
            if n_wedge:
                li = layer[wedge]
                y = heights[li] + self._uniform(n_wedge) * (heights[li + 1] - heights[li])
                accept[wedge] = y < np.exp(-0.5 * x[wedge] ** 2)

            kept = x[accept]
            out[filled : filled + kept.size] = kept
            filled += kept.size
        return out
