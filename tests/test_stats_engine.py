import numpy as np
import pytest
from scipy import stats

from gbmschemes import ExactPath, MersenneTwisterVariates, Parameters
from gbmschemes.stats_engine import (
    DEFAULT_ENGINE,
    FnMetric,
    MissingReference,
    StatsContext,
    StatsEngine,
    bias_zscore,
    build_default_engine,
    ci_mean,
    mean,
    mean_bias,
    pathwise_error,
    std,
    variance_bias,
)
from gbmschemes.utils import autocrit, t_crit, z_crit


class TestStatsContext:
    """Context validation and construction from parameters"""

    def test_defaults(self):
        ctx = StatsContext(n=10)
        assert ctx.confidence == 0.95
        assert ctx.ci_method == "auto"
        assert ctx.analytic_mean is None
        assert ctx.reference is None

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"n": 0}, "n must be positive"),
            ({"confidence": 1.0}, "confidence"),
            ({"confidence": 0.0}, "confidence"),
            ({"ci_method": "bootstrap"}, "ci_method"),
            ({"reference": np.zeros(3)}, "reference"),
        ],
    )
    def test_validation_errors(self, kwargs, message):
        base = {"n": 5}
        base.update(kwargs)
        with pytest.raises(ValueError, match=message):
            StatsContext(**base)

    def test_for_parameters_uses_closed_form_moments(self, params):
        ctx = StatsContext.for_parameters(params, n=100)
        assert ctx.analytic_mean == pytest.approx(params.analytic_mean())
        assert ctx.analytic_variance == pytest.approx(params.analytic_variance())

    def test_for_parameters_at_intermediate_time(self, params):
        ctx = StatsContext.for_parameters(params, n=100, t=0.5)
        assert ctx.analytic_mean == pytest.approx(100.0 * np.exp(0.025))

    def test_with_overrides_revalidates(self):
        ctx = StatsContext(n=10)
        assert ctx.with_overrides(confidence=0.9).confidence == 0.9
        with pytest.raises(ValueError):
            ctx.with_overrides(confidence=2.0)


class TestMomentMetrics:
    """Mean, spread and interval for the mean"""

    def test_mean_and_std(self, sample_data):
        ctx = StatsContext(n=sample_data.size)
        assert mean(sample_data, ctx) == pytest.approx(np.mean(sample_data))
        assert std(sample_data, ctx) == pytest.approx(np.std(sample_data, ddof=1))

    def test_std_single_path(self):
        assert std(np.array([4.0]), StatsContext(n=1)) == 0.0

    def test_ci_large_sample_uses_z(self, sample_data):
        res = ci_mean(sample_data, StatsContext(n=sample_data.size))
        assert res["method"] == "z"
        assert res["crit"] == pytest.approx(1.959964, rel=1e-5)
        assert res["low"] < np.mean(sample_data) < res["high"]
        assert "covers_analytic" not in res

    def test_ci_small_sample_uses_t(self):
        res = ci_mean(np.array([1.0, 2.0, 3.0, 4.0, 5.0]), StatsContext(n=5))
        assert res["method"] == "t"
        assert res["crit"] == pytest.approx(stats.t.ppf(0.975, 4))

    def test_ci_forced_method(self):
        x = np.arange(10, dtype=float)
        assert ci_mean(x, StatsContext(n=10, ci_method="z"))["method"] == "z"

    def test_ci_half_width(self, sample_data):
        res = ci_mean(sample_data, StatsContext(n=sample_data.size))
        se = np.std(sample_data, ddof=1) / np.sqrt(sample_data.size)
        assert res["se"] == pytest.approx(se)
        assert res["high"] - res["low"] == pytest.approx(2.0 * res["crit"] * se)

    def test_ci_coverage_of_analytic_mean(self, sample_data):
        inside = StatsContext(n=sample_data.size, analytic_mean=float(np.mean(sample_data)))
        outside = inside.with_overrides(analytic_mean=1e6)
        assert ci_mean(sample_data, inside)["covers_analytic"] is True
        assert ci_mean(sample_data, outside)["covers_analytic"] is False

    def test_ci_too_small(self):
        res = ci_mean(np.array([1.0]), StatsContext(n=1))
        assert np.isnan(res["low"]) and np.isnan(res["high"])


class TestReferenceMetrics:
    """Weak and strong error against closed-form moments and Exact paths"""

    def test_mean_bias(self):
        x = np.array([9.0, 11.0, 13.0])
        assert mean_bias(x, StatsContext(n=3, analytic_mean=10.0)) == pytest.approx(1.0)

    def test_bias_zscore(self):
        x = np.array([9.0, 11.0, 13.0])
        # se = 2 / sqrt(3)
        z = bias_zscore(x, StatsContext(n=3, analytic_mean=10.0))
        assert z == pytest.approx(np.sqrt(3.0) / 2.0)

    def test_bias_zscore_zero_spread(self):
        x = np.full(4, 5.0)
        assert bias_zscore(x, StatsContext(n=4, analytic_mean=5.0)) == 0.0
        assert bias_zscore(x, StatsContext(n=4, analytic_mean=4.0)) == np.inf

    def test_variance_bias_uses_population_variance(self):
        x = np.array([1.0, 2.0, 3.0, 4.0])
        assert variance_bias(x, StatsContext(n=4, analytic_variance=1.0)) == pytest.approx(0.25)

    def test_pathwise_error(self):
        x = np.array([1.0, 2.0, 3.0])
        ctx = StatsContext(n=3, reference=np.array([1.5, 2.0, 2.0]))
        assert pathwise_error(x, ctx) == pytest.approx(0.5)

    @pytest.mark.parametrize("fn", [mean_bias, bias_zscore, variance_bias, pathwise_error])
    def test_missing_reference(self, fn):
        with pytest.raises(MissingReference):
            fn(np.array([1.0, 2.0]), StatsContext(n=2))

    def test_missing_reference_is_value_error(self):
        assert issubclass(MissingReference, ValueError)


class TestStatsEngine:
    """Engine orchestration"""

    def test_available(self):
        eng = StatsEngine([FnMetric("mean", mean), FnMetric("std", std)])
        assert eng.available() == ("mean", "std")

    def test_compute(self):
        eng = StatsEngine([FnMetric("mean", mean), FnMetric("std", std)])
        assert eng.compute(np.array([1.0, 2.0, 3.0]), StatsContext(n=3)) == {"mean": 2.0, "std": 1.0}

    def test_select(self, sample_data):
        res = DEFAULT_ENGINE.compute(sample_data, StatsContext(n=sample_data.size), select=("mean", "ci_mean"))
        assert set(res) == {"mean", "ci_mean"}

    def test_reference_metrics_skipped_without_references(self, sample_data):
        res = DEFAULT_ENGINE.compute(sample_data, StatsContext(n=sample_data.size))
        assert set(res) == {"mean", "std", "ci_mean"}

    def test_all_metrics_with_references(self, params, sample_data):
        ctx = StatsContext.for_parameters(params, sample_data.size, reference=sample_data + 1.0)
        res = DEFAULT_ENGINE.compute(sample_data, ctx)
        assert set(res) == {"mean", "std", "ci_mean", "mean_bias", "bias_zscore", "variance_bias", "pathwise_error"}
        assert res["pathwise_error"] == pytest.approx(1.0)
        assert res["mean_bias"] == pytest.approx(np.mean(sample_data) - params.analytic_mean())

    def test_no_sample_variance_in_default_engine(self):
        assert "variance" not in DEFAULT_ENGINE.available()

    def test_sample_size_mismatch(self):
        with pytest.raises(ValueError, match="context expects"):
            DEFAULT_ENGINE.compute(np.zeros(4), StatsContext(n=5))

    def test_other_errors_propagate(self):
        def boom(x, ctx):
            raise ValueError("bad input")

        eng = StatsEngine([FnMetric("boom", boom)])
        with pytest.raises(ValueError, match="bad input"):
            eng.compute(np.array([1.0, 2.0]), StatsContext(n=2))

    def test_build_without_reference_metrics(self):
        assert build_default_engine(include_reference_metrics=False).available() == ("mean", "std", "ci_mean")

    def test_exact_scheme_is_unbiased_on_simulated_prices(self):
        p = Parameters()
        sim = ExactPath(p, 5_000, 10, MersenneTwisterVariates(5_000 * 10, seed=17))
        res = DEFAULT_ENGINE.compute(sim.final_row, StatsContext.for_parameters(p, 5_000))
        assert abs(res["bias_zscore"]) < 5.0


class TestCriticalValues:
    """z and t critical values"""

    def test_z_crit(self):
        assert z_crit(0.95) == pytest.approx(1.959964, rel=1e-5)

    def test_t_crit(self):
        assert t_crit(0.95, 10) == pytest.approx(stats.t.ppf(0.975, 10))

    def test_t_crit_invalid_df(self):
        with pytest.raises(ValueError):
            t_crit(0.95, 0)

    @pytest.mark.parametrize("confidence", [0.0, 1.0, 1.5])
    def test_invalid_confidence(self, confidence):
        with pytest.raises(ValueError):
            z_crit(confidence)

    @pytest.mark.parametrize(("n", "kind"), [(5, "t"), (29, "t"), (30, "z"), (1_000, "z")])
    def test_autocrit_switch(self, n, kind):
        assert autocrit(0.95, n)[1] == kind

    def test_autocrit_invalid_method(self):
        with pytest.raises(ValueError):
            autocrit(0.95, 100, "bootstrap")
