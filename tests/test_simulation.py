import numpy as np
import pytest

from gbmschemes import Parameters
from gbmschemes.simulation import Simulation


class TestParameters:
    """Parameter record"""

    def test_defaults(self):
        p = Parameters()
        assert (p.t0, p.T, p.S0, p.sigma, p.mu) == (0.0, 1.0, 100.0, 0.2, 0.05)

    def test_frozen(self, params):
        with pytest.raises(AttributeError):
            params.S0 = 50.0

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"T": 0.0}, "T must be greater"),
            ({"S0": 0.0}, "S0 must be positive"),
            ({"sigma": -0.1}, "sigma"),
            ({"mu": float("nan")}, "mu must be finite"),
        ],
    )
    def test_invalid(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            Parameters(**kwargs)

    def test_with_overrides_validates(self, params):
        assert params.with_overrides(T=2.0).horizon == 2.0
        with pytest.raises(ValueError):
            params.with_overrides(S0=-1.0)

    def test_analytic_moments(self, params):
        assert params.analytic_mean() == pytest.approx(100.0 * np.exp(0.05))
        expected_var = 100.0**2 * np.exp(0.1) * (np.exp(0.04) - 1.0)
        assert params.analytic_variance() == pytest.approx(expected_var)
        assert params.analytic_mean(params.t0) == pytest.approx(params.S0)


class TestSimulation:
    """Path-matrix storage"""

    def test_row_zero_is_s0(self, params):
        sim = Simulation(params, 50, 5)
        np.testing.assert_array_equal(sim.get_row(0), np.full(50, 100.0))

    def test_dt_and_times(self):
        sim = Simulation(Parameters(t0=1.0, T=3.0), 10, 4)
        assert sim.dt == pytest.approx(0.5)
        np.testing.assert_allclose(sim.times, [1.0, 1.5, 2.0, 2.5, 3.0])

    def test_matrix_shape(self, params):
        sim = Simulation(params, 7, 3)
        assert sim.paths.shape == (4, 7)

    @pytest.mark.parametrize("k", [-1, 6, 100])
    def test_get_row_out_of_range(self, params, k):
        sim = Simulation(params, 10, 5)
        with pytest.raises(IndexError):
            sim.get_row(k)

    @pytest.mark.parametrize("k", [-1, 6])
    def test_set_row_out_of_range(self, params, k):
        sim = Simulation(params, 10, 5)
        with pytest.raises(IndexError):
            sim.set_row(k, np.ones(10))

    def test_set_row_wrong_length(self, params):
        sim = Simulation(params, 10, 5)
        with pytest.raises(ValueError, match="shape"):
            sim.set_row(1, np.ones(9))

    def test_set_and_get_row(self, params):
        sim = Simulation(params, 3, 2)
        sim.set_row(2, [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(sim.get_row(2), [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(sim.final_row, [1.0, 2.0, 3.0])

    def test_complete_freezes_rows(self, params):
        sim = Simulation(params, 3, 2)
        sim._complete()
        assert sim.is_complete
        with pytest.raises(RuntimeError):
            sim.set_row(1, np.ones(3))
        with pytest.raises(ValueError):
            sim.get_row(1)[0] = 5.0

    def test_paths_view_is_read_only(self, params):
        sim = Simulation(params, 3, 2)
        with pytest.raises(ValueError):
            sim.paths[0, 0] = 1.0

    @pytest.mark.parametrize(("n_paths", "n_steps"), [(0, 10), (10, 0), (-1, 5)])
    def test_invalid_sizes(self, params, n_paths, n_steps):
        with pytest.raises(ValueError):
            Simulation(params, n_paths, n_steps)

    @pytest.mark.parametrize(("n_paths", "n_steps"), [(2.7, 3), (10, 4.0), ("5", 5)])
    def test_non_integer_sizes_not_truncated(self, params, n_paths, n_steps):
        with pytest.raises(TypeError):
            Simulation(params, n_paths, n_steps)

    @pytest.mark.parametrize("k", [1.7, 2.0, "1"])
    def test_non_integer_step_not_truncated(self, params, k):
        sim = Simulation(params, 10, 5)
        with pytest.raises(TypeError):
            sim.get_row(k)
        with pytest.raises(TypeError):
            sim.set_row(k, np.ones(10))

    def test_numpy_integers_accepted(self, params):
        sim = Simulation(params, np.int64(4), np.int32(2))
        assert sim.paths.shape == (3, 4)
        np.testing.assert_array_equal(sim.get_row(np.int64(0)), np.full(4, 100.0))
