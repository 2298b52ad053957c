"""
Tests for skew-symmetric affine regression (the regression driver).
"""

import logging

import numpy as np
import pytest

from skewreg.config import FitConfig
from skewreg.data_collection import (
    Dataset,
    PlanarRotationTrajectory,
    RotationTrajectory,
    random_skew_matrix,
)
from skewreg.system_id import skew_id
from skewreg.system_id.diagnostics import ShapeMismatch, WarningKind
from skewreg.system_id.minimize import minimize
from skewreg.system_id.objective import evaluate, residuals
from skewreg.system_id.skew_id import (
    SkewAffineModel,
    SkewSymmetricRegression,
    fit,
    fit_skew_model,
    warm_start,
)
from skewreg.system_id.skew_param import skew_dim, vectorize


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def exact_data():
    """Noise-free samples of dX = X M + y with known M and y."""
    rng = np.random.default_rng(21)
    M = random_skew_matrix(4, seed=22)
    y = rng.normal(size=4)
    X = rng.normal(size=(40, 4))
    return X, X @ M + y, M, y


@pytest.fixture
def noisy_data(exact_data):
    X, dX, M, y = exact_data
    rng = np.random.default_rng(23)
    return X, dX + rng.normal(0, 0.1, dX.shape)


@pytest.fixture
def rotation_scenario():
    """25 samples of a 4-D rotation with noisy derivatives (sigma = 0.01)."""
    rng = np.random.default_rng(5)
    basis, _ = np.linalg.qr(rng.normal(size=(4, 4)))
    generator = PlanarRotationTrajectory(
        frequencies=[1.5, 0.6],
        x0=np.array([1.0, 0.2, -0.5, 0.8]),
        y=np.array([0.05, -0.1, 0.0, 0.02]),
        basis=basis
    )
    times = np.linspace(0, 4, 25)
    sequence = generator.get_sequence(times)
    X = sequence['states']
    dX = sequence['derivatives'] + rng.normal(0, 0.01, X.shape)
    return X, dX, generator


def closed_form(X, dX):
    """Least squares solution from the linear map z -> X M + y, built column by column."""
    k = X.shape[1]
    n = skew_dim(k) + k
    columns = []
    for i in range(n):
        e = np.zeros(n)
        e[i] = 1.0
        columns.append((dX - residuals(e, X, dX)).ravel())
    z, *_ = np.linalg.lstsq(np.column_stack(columns), dX.ravel(), rcond=None)
    return skew_id.split_params(z, k)


@pytest.fixture
def precise_config():
    """Fit settings that run the minimizer to numerical convergence."""
    return FitConfig(max_evals=1000, stall_threshold=500, ftol=0.0)


# =============================================================================
# FIT TESTS
# =============================================================================

class TestFit:
    """Tests for the fit entry point."""

    def test_returns_matrix_offset_and_trace(self, noisy_data):
        X, dX = noisy_data
        M, y, trace = fit(dX, X)
        assert M.shape == (4, 4)
        assert y.shape == (4,)
        assert len(trace) >= 1

    def test_exact_recovery(self, exact_data):
        """Test noise-free data recovers the generating M and y."""
        X, dX, M_true, y_true = exact_data
        M, y, trace = fit(dX, X)
        np.testing.assert_allclose(M, M_true, atol=1e-7)
        np.testing.assert_allclose(y, y_true, atol=1e-7)
        assert trace[-1] < 1e-12

    def test_fitted_matrix_is_skew_symmetric(self, noisy_data):
        X, dX = noisy_data
        M, _, _ = fit(dX, X)
        np.testing.assert_allclose(M + M.T, 0.0, atol=1e-9)
        np.testing.assert_array_equal(np.diag(M), np.zeros(4))

    def test_warm_and_cold_starts_agree(self, noisy_data):
        """Test the convex objective has one minimizer whatever the start."""
        X, dX = noisy_data
        M, y, _ = fit(dX, X)

        z_cold, _, _ = minimize(np.zeros(skew_dim(4) + 4), evaluate, 1000, X, dX)
        M_cold, y_cold = skew_id.split_params(z_cold, 4)

        np.testing.assert_allclose(M, M_cold, atol=1e-6)
        np.testing.assert_allclose(y, y_cold, atol=1e-6)

    def test_matches_closed_form_on_badly_scaled_data(self):
        """Test default settings reach the least squares optimum when one column dominates."""
        rng = np.random.default_rng(31)
        X = rng.normal(size=(60, 6))
        X[:, 2] *= 100.0
        dX = X @ random_skew_matrix(6, scale=0.1, seed=32) + rng.normal(0, 0.1, (60, 6))

        M, y, _ = fit(dX, X)
        M_opt, y_opt = closed_form(X, dX)

        np.testing.assert_allclose(M, M_opt, atol=1e-5)
        np.testing.assert_allclose(y, y_opt, atol=1e-5)

    def test_zero_gradient_at_solution(self, noisy_data, precise_config):
        X, dX = noisy_data
        M, y, _ = fit(dX, X, config=precise_config)
        _, g = evaluate(np.concatenate([vectorize(M), y]), X, dX)
        np.testing.assert_allclose(g, 0.0, atol=1e-5)

    def test_rotation_scenario(self, rotation_scenario):
        X, dX, generator = rotation_scenario
        M, y, trace = fit(dX, X)

        np.testing.assert_allclose(M + M.T, 0.0, atol=1e-9)
        assert np.all(np.diff(trace) <= 0)
        assert trace[-1] < 0.05

    def test_not_worse_than_warm_start(self, noisy_data):
        X, dX = noisy_data
        _, _, trace = fit(dX, X)
        assert trace[-1] <= evaluate(warm_start(dX, X), X, dX)[0]


class TestWarmStart:
    """Tests for the initial guess."""

    def test_layout(self, noisy_data):
        X, dX = noisy_data
        assert warm_start(dX, X).shape == (skew_dim(4) + 4,)

    def test_exact_for_pure_rotation_without_offset(self):
        """Test OLS is already skew when the data has no offset."""
        rng = np.random.default_rng(8)
        M_true = random_skew_matrix(3, seed=9)
        X = rng.normal(size=(30, 3))
        z0 = warm_start(X @ M_true, X)
        np.testing.assert_allclose(z0[:3], vectorize(M_true), atol=1e-10)
        np.testing.assert_allclose(z0[3:], 0.0, atol=1e-10)

    def test_offset_is_mean_residual(self, noisy_data):
        X, dX = noisy_data
        z0 = warm_start(dX, X)
        M0, y0 = skew_id.split_params(z0, 4)
        np.testing.assert_allclose(y0, np.mean(dX - X @ M0, axis=0))


# =============================================================================
# VALIDATION AND DIAGNOSTICS TESTS
# =============================================================================

class TestValidation:
    """Input validation and non-fatal warnings."""

    def test_shape_mismatch_raises_before_optimizing(self, monkeypatch):
        calls = []
        monkeypatch.setattr(skew_id, "minimize", lambda *a, **kw: calls.append(a))

        X = np.ones((10, 4))
        dX = np.ones((10, 3))
        with pytest.raises(ShapeMismatch) as exc_info:
            fit(dX, X)

        assert exc_info.value.x_shape == (10, 4)
        assert exc_info.value.dx_shape == (10, 3)
        assert calls == []

    def test_one_dimensional_input_raises(self):
        with pytest.raises(ShapeMismatch):
            fit(np.ones(30), np.ones(30))

    def test_short_series_warns_but_fits(self):
        rng = np.random.default_rng(1)
        X = rng.normal(size=(10, 3))
        dX = rng.normal(size=(10, 3))

        regression = SkewSymmetricRegression()
        model = regression.fit(dX, X)

        assert [w.kind for w in model.warnings] == [WarningKind.SUSPICIOUS_SHAPE]
        assert "dX and X" in model.warnings[0].message
        np.testing.assert_allclose(model.M + model.M.T, 0.0, atol=1e-9)

    def test_wide_input_warns_rank_deficiency(self):
        rng = np.random.default_rng(2)
        X = rng.normal(size=(5, 6))
        dX = rng.normal(size=(5, 6))

        model = SkewSymmetricRegression().fit(dX, X)

        kinds = [w.kind for w in model.warnings]
        assert kinds == [WarningKind.SUSPICIOUS_SHAPE, WarningKind.RANK_DEFICIENCY_RISK]
        assert model.M.shape == (6, 6)

    def test_large_state_dimension_warns(self):
        rng = np.random.default_rng(3)
        X = rng.normal(size=(60, 21))
        dX = rng.normal(size=(60, 21))

        model = SkewSymmetricRegression().fit(dX, X)
        assert WarningKind.SUSPICIOUS_SHAPE in {w.kind for w in model.warnings}

    def test_well_shaped_input_has_no_warnings(self, noisy_data):
        X, dX = noisy_data
        model = SkewSymmetricRegression().fit(dX, X)
        assert model.warnings == []

    def test_stall_warning_keeps_result(self, noisy_data):
        X, dX = noisy_data
        config = FitConfig(max_evals=1000, stall_threshold=1)

        model = SkewSymmetricRegression(config).fit(dX, X)

        stalled = [w for w in model.warnings if w.kind == WarningKind.OPTIMIZER_STALLED]
        assert len(stalled) == 1
        assert str(model.n_line_searches) in stalled[0].message
        M_ref, y_ref, _ = fit(dX, X)
        np.testing.assert_allclose(model.M, M_ref)
        np.testing.assert_allclose(model.y, y_ref)

    def test_warnings_are_logged(self, caplog):
        rng = np.random.default_rng(4)
        X = rng.normal(size=(8, 2))
        dX = rng.normal(size=(8, 2))

        with caplog.at_level(logging.WARNING, logger="skewreg.system_id.skew_id"):
            fit(dX, X)

        shape_records = [r for r in caplog.records if "suspicious_shape" in r.getMessage()]
        assert len(shape_records) == 1


# =============================================================================
# MODEL AND IDENTIFIER TESTS
# =============================================================================

class TestSkewAffineModel:
    """Tests for the fitted model container."""

    def test_predict_single_and_batch(self):
        M = random_skew_matrix(3, seed=0)
        y = np.array([1.0, 2.0, 3.0])
        model = SkewAffineModel(M=M, y=y)
        X = np.random.default_rng(0).normal(size=(5, 3))

        np.testing.assert_allclose(model.predict(X), X @ M + y)
        np.testing.assert_allclose(model.predict(X[0]), X[0] @ M + y)

    def test_predict_sequence_matches_generator(self):
        M = random_skew_matrix(4, seed=1)
        y = np.array([0.1, 0.0, -0.2, 0.3])
        x0 = np.array([1.0, -1.0, 0.5, 0.0])
        times = np.linspace(0, 2, 9)

        model = SkewAffineModel(M=M, y=y)
        expected = RotationTrajectory(M, x0, y).get_sequence(times)['states']

        states = model.predict_sequence(x0, times)
        assert states.shape == (9, 4)
        np.testing.assert_allclose(states, expected, atol=1e-12)
        np.testing.assert_allclose(states[0], x0)

    def test_rotation_frequencies(self):
        rng = np.random.default_rng(6)
        basis, _ = np.linalg.qr(rng.normal(size=(5, 5)))
        generator = PlanarRotationTrajectory([0.5, 2.0], x0=np.ones(5), basis=basis)

        model = SkewAffineModel(M=generator.M, y=np.zeros(5))
        np.testing.assert_allclose(model.rotation_frequencies(), [2.0, 0.5], atol=1e-10)

    def test_final_loss(self):
        model = SkewAffineModel(M=np.zeros((2, 2)), y=np.zeros(2), trace=[3.0, 1.0, 0.5])
        assert model.final_loss == 0.5
        assert model.state_dim == 2


class TestSkewSymmetricRegression:
    """Tests for the identifier object."""

    def test_predict_before_fit_raises(self):
        with pytest.raises(ValueError):
            SkewSymmetricRegression().predict(np.zeros(3))

    def test_fit_info(self, exact_data):
        X, dX, _, _ = exact_data
        regression = SkewSymmetricRegression()
        model = regression.fit(dX, X)
        info = regression.get_fit_info()

        assert info['n_samples'] == 40
        assert info['r2'] == pytest.approx(1.0, abs=1e-9)
        assert info['loss'] == pytest.approx(model.final_loss, abs=1e-12)
        assert info['n_line_searches'] == model.n_line_searches
        assert info['trace_length'] == len(model.trace)
        assert info['warnings'] == []

    def test_fit_info_is_a_copy(self, noisy_data):
        X, dX = noisy_data
        regression = SkewSymmetricRegression()
        regression.fit(dX, X)
        regression.get_fit_info()['r2'] = -1.0
        assert regression.get_fit_info()['r2'] != -1.0

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            SkewSymmetricRegression(FitConfig(max_evals=0))


class TestFitSkewModel:
    """Tests for the dataset convenience function."""

    def test_skew_method(self, rotation_scenario):
        X, dX, _ = rotation_scenario
        result = fit_skew_model(Dataset(states=X, derivatives=dX))
        assert isinstance(result['model'], SkewAffineModel)
        assert isinstance(result['identifier'], SkewSymmetricRegression)
        assert 'r2' in result['info']

    def test_unconstrained_fits_at_least_as_well(self, rotation_scenario):
        X, dX, _ = rotation_scenario
        dataset = Dataset(states=X, derivatives=dX)
        skew = fit_skew_model(dataset, method='skew')
        free = fit_skew_model(dataset, method='unconstrained')
        assert free['info']['r2'] >= skew['info']['r2'] - 1e-9

    def test_unknown_method(self, rotation_scenario):
        X, dX, _ = rotation_scenario
        with pytest.raises(ValueError):
            fit_skew_model(Dataset(states=X, derivatives=dX), method='ridge')


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
