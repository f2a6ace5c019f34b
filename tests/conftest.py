import numpy as np
import pytest

from gbmschemes import Parameters, SchemeComparison
from gbmschemes.variates import MersenneTwisterVariates, VariateSource


class ZeroVariates(VariateSource):
    """Deterministic stream of all-zero draws."""
    def _generate(self, n, seed_seq):
        return np.zeros(n)


class RangeVariates(VariateSource):
    """Stream 0, 1, ..., n-1 (not normal; used to check ordering)."""
    def _generate(self, n, seed_seq):
        return np.arange(n, dtype=float)


class FailingVariates(VariateSource):
    """Stream whose draws fail after the first call."""
    def _generate(self, n, seed_seq):
        return np.zeros(n)

    def produce(self, n):
        if self.cursor > 0:
            raise RuntimeError("stream broke")
        return super().produce(n)


@pytest.fixture
def params():
    """Reference parameters: t0=0, T=1, S0=100, sigma=0.2, mu=0.05."""
    return Parameters(t0=0.0, T=1.0, S0=100.0, sigma=0.2, mu=0.05)


@pytest.fixture
def zero_variates():
    return ZeroVariates(10_000 * 10)


@pytest.fixture
def range_variates():
    return RangeVariates(100)


@pytest.fixture
def failing_variates():
    return FailingVariates(50)


@pytest.fixture
def seeded_variates():
    """Small seeded Mersenne-Twister stream sized for 500 paths x 10 steps."""
    return MersenneTwisterVariates(500 * 10, seed=42)


@pytest.fixture
def sample_data():
    """Fixture providing sample data for testing"""
    return np.random.default_rng(42).normal(5.0, 2.0, 1000)


@pytest.fixture
def comparison(params):
    """Comparison over 2,000 paths x 20 steps, seeded."""
    return SchemeComparison(params, n_paths=2_000, n_steps=20, seed=123)
