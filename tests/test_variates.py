import numpy as np
import pytest

from gbmschemes.variates import (
    GENERATORS,
    ConfigurationError,
    LaggedFibonacciVariates,
    MersenneTwisterVariates,
    SobolVariates,
    make_variates,
)

ALL_SOURCES = [MersenneTwisterVariates, LaggedFibonacciVariates, SobolVariates]


class TestVariateSourceContract:
    """Cursor, reset and exhaustion behaviour shared by every strategy"""

    @pytest.mark.parametrize("cls", ALL_SOURCES)
    def test_length_and_initial_cursor(self, cls):
        src = cls(1_000, seed=1)
        assert len(src) == 1_000
        assert src.cursor == 0

    @pytest.mark.parametrize("cls", ALL_SOURCES)
    def test_produce_returns_buffer_in_order(self, cls):
        src = cls(1_000, seed=1)
        expected = src.values.copy()
        first = src.produce(400)
        second = src.produce(600)
        np.testing.assert_array_equal(np.concatenate([first, second]), expected)
        assert src.cursor == 1_000

    def test_single_draw_call(self, range_variates):
        assert range_variates() == 0.0
        assert range_variates() == 1.0
        assert range_variates.cursor == 2

    def test_produce_zero(self, range_variates):
        assert range_variates.produce(0).size == 0
        assert range_variates.cursor == 0

    def test_produce_negative_raises(self, range_variates):
        with pytest.raises(ValueError):
            range_variates.produce(-1)

    def test_reset_to_start_replays_same_sequence(self):
        src = MersenneTwisterVariates(500, seed=3)
        a = src.produce(300)
        src.reset_to_start()
        b = src.produce(300)
        np.testing.assert_array_equal(a, b)

    def test_reset_to_start_idempotent(self):
        src1 = MersenneTwisterVariates(500, seed=9)
        src2 = MersenneTwisterVariates(500, seed=9)
        src1.produce(123)
        src2.produce(123)
        src1.reset_to_start()
        src2.reset_to_start()
        src2.reset_to_start()
        np.testing.assert_array_equal(src1.produce(250), src2.produce(250))

    def test_reset_does_not_regenerate(self):
        src = LaggedFibonacciVariates(200, seed=5)
        before = src.values.copy()
        src.produce(50)
        src.reset_to_start()
        np.testing.assert_array_equal(src.values, before)

    def test_exhaustion_reshuffles_same_multiset(self):
        src = MersenneTwisterVariates(1_000, seed=11)
        original = src.values.copy()
        out = src.produce(2_000)
        first, second = out[:1_000], out[1_000:]
        np.testing.assert_array_equal(first, original)
        np.testing.assert_array_equal(np.sort(second), np.sort(first))
        assert not np.array_equal(second, first)

    def test_exhaustion_is_lazy(self, range_variates):
        range_variates.produce(100)
        assert range_variates.cursor == 100
        np.testing.assert_array_equal(range_variates.values, np.arange(100.0))

    def test_reset_after_exhaustion_replays_without_reshuffle(self, range_variates):
        range_variates.produce(100)
        range_variates.reset_to_start()
        np.testing.assert_array_equal(range_variates.produce(100), np.arange(100.0))

    def test_values_view_is_read_only(self, range_variates):
        with pytest.raises(ValueError):
            range_variates.values[0] = 1.0

    @pytest.mark.parametrize("n", [0, -5])
    def test_non_positive_size_raises(self, n):
        with pytest.raises(ConfigurationError):
            MersenneTwisterVariates(n)

    @pytest.mark.parametrize("n", [99.5, 100.0, "100"])
    def test_non_integer_size_not_truncated(self, n):
        with pytest.raises(TypeError):
            MersenneTwisterVariates(n)

    def test_non_integer_count_not_truncated(self, range_variates):
        with pytest.raises(TypeError):
            range_variates.produce(2.5)
        assert range_variates.cursor == 0

    @pytest.mark.parametrize("cls", ALL_SOURCES)
    def test_seed_reproducibility(self, cls):
        a = cls(2_000, seed=2024)
        b = cls(2_000, seed=2024)
        np.testing.assert_array_equal(a.values, b.values)

    @pytest.mark.parametrize("cls", [MersenneTwisterVariates, LaggedFibonacciVariates])
    def test_different_seeds_differ(self, cls):
        a = cls(2_000, seed=1)
        b = cls(2_000, seed=2)
        assert not np.array_equal(a.values, b.values)

    def test_unseeded_sources_use_entropy(self):
        a = MersenneTwisterVariates(100)
        b = MersenneTwisterVariates(100)
        assert a.seed_seq.entropy != b.seed_seq.entropy


class TestPseudoRandomStrategies:
    """Moments of the pseudo-random strategies"""

    @pytest.mark.parametrize("cls", [MersenneTwisterVariates, LaggedFibonacciVariates])
    def test_standard_normal_moments(self, cls):
        z = cls(100_000, seed=7).values
        assert abs(z.mean()) < 0.02
        assert abs(z.var() - 1.0) < 0.03
        assert np.isfinite(z).all()


class TestMersenneTwisterVariates:
    """Engine A is NumPy's 32-bit MT19937"""

    def test_matches_mt19937_standard_normal(self):
        seq = np.random.SeedSequence(5)
        gen_seq, _ = seq.spawn(2)
        expected = np.random.Generator(np.random.MT19937(gen_seq)).standard_normal(500)
        np.testing.assert_array_equal(MersenneTwisterVariates(500, seed=np.random.SeedSequence(5)).values, expected)

    def test_documents_32_bit_engine(self):
        assert "32-bit" in MersenneTwisterVariates.__doc__


class TestSobolVariates:
    """Sobol quasi-random strategy"""

    def test_too_many_variates_raises(self):
        with pytest.raises(ConfigurationError):
            SobolVariates(10_001)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            SobolVariates(20_000)

    def test_maximum_size_succeeds(self):
        z = SobolVariates(10_000, seed=3).values
        assert z.size == 10_000
        assert np.isfinite(z).all()
        assert abs(z.mean()) < 0.02
        assert abs(z.var() - 1.0) < 0.02

    def test_same_points_for_any_seed(self):
        a = SobolVariates(4_096, seed=1).values
        b = SobolVariates(4_096, seed=2).values
        np.testing.assert_array_equal(np.sort(a), np.sort(b))
        assert not np.array_equal(a, b)

    def test_shuffle_breaks_low_discrepancy_order(self):
        z = SobolVariates(1_024, seed=5).values
        # unshuffled van der Corput alternates sign on consecutive points
        signs = np.sign(z)
        assert np.mean(signs[1:] != signs[:-1]) < 0.75


class TestMakeVariates:
    """Factory by name"""

    @pytest.mark.parametrize("kind", sorted(GENERATORS))
    def test_builds_each_kind(self, kind):
        src = make_variates(kind, 500, seed=1)
        assert isinstance(src, GENERATORS[kind])
        assert len(src) == 500

    def test_unknown_kind_raises(self):
        with pytest.raises(ConfigurationError, match="unknown generator"):
            make_variates("box_muller", 10)

    def test_sobol_size_limit_through_factory(self):
        with pytest.raises(ConfigurationError):
            make_variates("sobol", 10_000 * 10)
