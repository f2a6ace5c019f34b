r"""
Run configuration for a scheme comparison.

:class:`RunConfig` gathers everything the comparison driver and the command
line need: model parameters, grid sizes, the variate strategy and where the
histograms go. Defaults reproduce the reference experiment: 10,000 paths,
10 steps, 10 histogram bins over one year.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from .parameters import Parameters
from .schemes import Scheme
from .variates import GENERATORS, ConfigurationError

__all__ = ["RunConfig", "DEFAULT_SCHEMES"]

# Exact first, then Milstein, then Euler-Maruyama, each replaying the same draws
DEFAULT_SCHEMES: tuple[Scheme, ...] = (Scheme.exact, Scheme.milstein, Scheme.euler_maruyama)


@dataclass(frozen=True)
class RunConfig:
    r"""
    Settings for one comparison run.

    Attributes
    ----------
    params : Parameters
        GBM parameters.
    n_paths : int, default 10_000
        Number of simulated paths.
    n_steps : int, default 10
        Number of time steps.
    n_bins : int, default 10
        Histogram bins.
    generator : {"mersenne_twister", "lagged_fibonacci", "sobol"}
        Variate strategy.
    seed : int, optional
        Seed for the variate source; ``None`` uses OS entropy.
    output_dir : pathlib.Path, default ``"."``
        Directory receiving histogram files.
    schemes : tuple of Scheme
        Schemes to run, in order.

    Raises
    ------
    ConfigurationError
        From ``__post_init__`` for invalid sizes, unknown generators or schemes.
    """

    params: Parameters = field(default_factory=Parameters)
    n_paths: int = 10_000
    n_steps: int = 10
    n_bins: int = 10
    generator: str = "mersenne_twister"
    seed: Optional[int] = None
    output_dir: Path = Path(".")
    schemes: tuple[Scheme, ...] = DEFAULT_SCHEMES

    def __post_init__(self) -> None:
        if self.n_paths <= 0:
            raise ConfigurationError("n_paths must be positive")
        if self.n_steps <= 0:
            raise ConfigurationError("n_steps must be positive")
        if self.n_bins <= 0:
            raise ConfigurationError("n_bins must be positive")
        if self.generator not in GENERATORS:
            raise ConfigurationError(
                f"unknown generator '{self.generator}', expected one of {sorted(GENERATORS)}"
            )
        try:
            schemes = tuple(Scheme(s) for s in self.schemes)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if not schemes:
            raise ConfigurationError("at least one scheme is required")
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "schemes", schemes)
        object.__setattr__(self, "output_dir", Path(self.output_dir))

    @property
    def n_variates(self) -> int:
        """Stream length needed for one scheme: ``n_paths * n_steps``."""
        return self.n_paths * self.n_steps

    def with_overrides(self, **changes) -> "RunConfig":
        """Return a copy with selected fields replaced."""
        return replace(self, **changes)
