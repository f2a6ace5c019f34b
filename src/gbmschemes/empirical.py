r"""
Empirical moments and density histograms of simulated cross-sections.

Histograms are plain ``dict`` objects mapping a bin's left edge to the
fraction of the sample falling in that bin, with keys in ascending order.
:func:`write_hist_to_file` stores them as tab-separated ``edge<TAB>density``
lines.
"""

from __future__ import annotations

import logging
from os import PathLike
from pathlib import Path
from typing import Mapping, Union

import numpy as np

logger = logging.getLogger(__name__)

__all__ = [
    "expected_value",
    "variance",
    "log_returns",
    "create_density_hist",
    "write_hist_to_file",
]


def _as_sample(values: np.ndarray) -> np.ndarray:
    arr = np.asarray(values, dtype=float).ravel()
    if arr.size == 0:
        raise ValueError("sample is empty")
    return arr


def expected_value(values: np.ndarray) -> float:
    """Arithmetic mean of the sample."""
    arr = _as_sample(values)
    return float(arr.sum() / arr.size)


def variance(values: np.ndarray) -> float:
    r"""
    Population variance :math:`\mathbb{E}[X^2] - \mathbb{E}[X]^2`.

    Examples
    --------
    >>> variance(np.array([1.0, 2.0, 3.0, 4.0]))
    1.25
    """
    arr = _as_sample(values)
    return expected_value(arr * arr) - expected_value(arr) ** 2


def log_returns(final: np.ndarray, initial: np.ndarray | float) -> np.ndarray:
    r"""Elementwise :math:`\log(S_\text{final} / S_\text{initial})`."""
    return np.log(np.asarray(final, dtype=float) / np.asarray(initial, dtype=float))


def create_density_hist(values: np.ndarray, num_bins: int = 100) -> dict[float, float]:
    r"""
    Density histogram of ``values``.

    The bin width is :math:`h = (\max - \min) / \text{num\_bins}`; each value
    :math:`v` is counted in the bin with left edge :math:`\lfloor v/h \rfloor h`,
    so edges sit on multiples of :math:`h` and up to ``num_bins + 1`` bins may
    be occupied. Counts are divided by the sample size.

    Parameters
    ----------
    values : ndarray
        Sample, e.g. one row of a path matrix.
    num_bins : int, default 100
        Number of bins spanning the sample range.

    Returns
    -------
    dict[float, float]
        Left edge to density, in ascending edge order. A sample with zero
        range yields ``{value: 1.0}``.

    Raises
    ------
    ValueError
        If ``num_bins < 1`` or the sample is empty.
    """
    if int(num_bins) < 1:
        raise ValueError("num_bins must be >= 1")
    arr = _as_sample(values)
    lo, hi = float(arr.min()), float(arr.max())
    width = (hi - lo) / int(num_bins)
    if width == 0.0:
        return {lo: 1.0}
    edges, counts = np.unique(np.floor(arr / width) * width, return_counts=True)
    return {float(e): float(c) / arr.size for e, c in zip(edges, counts)}


def write_hist_to_file(
    hist: Mapping[float, float],
    filename: Union[str, PathLike],
) -> Path:
    r"""
    Write a histogram as ``edge<TAB>density`` lines in ascending edge order.

    Parent directories are created when missing. I/O errors propagate.

    Returns
    -------
    pathlib.Path
        The written file.
    """
    path = Path(filename)
    logger.info(f"Writing results to file: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        for edge in sorted(hist):
            fh.write(f"{edge:g}\t{hist[edge]:g}\n")
    return path
