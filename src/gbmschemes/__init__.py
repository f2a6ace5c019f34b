"""gbmschemes package public API."""

from .core import SchemeComparison, SchemeResult
from .parameters import Parameters
from .schemes import EulerMaruyama, ExactPath, Milstein, Scheme, SchemeSimulation, simulate
from .simulation import Simulation
from .stats_engine import DEFAULT_ENGINE, FnMetric, StatsContext, StatsEngine
from .utils import autocrit, t_crit, z_crit
from .variates import (
    ConfigurationError,
    LaggedFibonacciVariates,
    MersenneTwisterVariates,
    SobolVariates,
    VariateSource,
    make_variates,
)

__all__ = [
    "Parameters",
    "VariateSource",
    "MersenneTwisterVariates",
    "LaggedFibonacciVariates",
    "SobolVariates",
    "ConfigurationError",
    "make_variates",
    "Simulation",
    "Scheme",
    "SchemeSimulation",
    "ExactPath",
    "EulerMaruyama",
    "Milstein",
    "simulate",
    "SchemeResult",
    "SchemeComparison",
    "StatsEngine",
    "StatsContext",
    "FnMetric",
    "DEFAULT_ENGINE",
    "z_crit",
    "t_crit",
    "autocrit",
]

__version__ = "0.1.0"
