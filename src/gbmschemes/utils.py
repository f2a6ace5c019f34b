r"""
Critical values for confidence intervals.

:func:`autocrit` picks between the normal and Student-t critical values the
same way across the package: Student-t for small effective samples
(:math:`n < 30`), normal otherwise.
"""

from __future__ import annotations

from scipy.stats import norm
from scipy.stats import t as student_t

__all__ = ["z_crit", "t_crit", "autocrit"]


def _check_confidence(confidence: float) -> None:
    if not 0.0 < confidence < 1.0:
        raise ValueError("confidence must be in (0,1)")


def z_crit(confidence: float) -> float:
    r"""
    Two-sided normal critical value :math:`z_{1-\alpha/2}`.

    Examples
    --------
    >>> round(z_crit(0.95), 2)
    1.96
    """
    _check_confidence(confidence)
    return float(norm.ppf(0.5 + confidence / 2.0))


def t_crit(confidence: float, df: int) -> float:
    r"""Two-sided Student-t critical value with ``df`` degrees of freedom."""
    _check_confidence(confidence)
    if df < 1:
        raise ValueError("df must be >= 1")
    return float(student_t.ppf(0.5 + confidence / 2.0, df))


def autocrit(confidence: float, n: int, method: str = "auto") -> tuple[float, str]:
    r"""
    Select a critical value for a sample of size ``n``.

    Parameters
    ----------
    confidence : float
        Confidence level in :math:`(0, 1)`.
    n : int
        Effective sample size.
    method : {"auto", "z", "t"}, default ``"auto"``
        ``"auto"`` uses t when ``n < 30``.

    Returns
    -------
    tuple of (float, str)
        Critical value and the method actually used (``"z"`` or ``"t"``).
    """
    if method not in ("auto", "z", "t"):
        raise ValueError(f"method must be one of 'auto', 'z', 't', got '{method}'")
    if method == "z" or (method == "auto" and n >= 30):
        return z_crit(confidence), "z"
    return t_crit(confidence, max(1, int(n) - 1)), "t"
