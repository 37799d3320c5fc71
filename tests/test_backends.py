"""
Test backend selection and the CPU least-squares solver.
"""

from dataclasses import fields

import pytest
import numpy as np

from pyairreg._backends import (
    get_backend,
    list_available_backends,
    CPUBackendFP64,
)
from pyairreg.exceptions import DegenerateDesignError, ValidationError


class TestBackendSelection:
    """Test backend lookup."""

    def test_list_backends(self):
        backends = list_available_backends()
        assert isinstance(backends, list)
        assert 'cpu' in backends

    @pytest.mark.parametrize('name', ['auto', 'cpu'])
    def test_named_backends(self, name):
        backend = get_backend(name)
        assert isinstance(backend, CPUBackendFP64)

    def test_instance_passes_through(self):
        backend = CPUBackendFP64()
        assert get_backend(backend) is backend

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown backend"):
            get_backend('pytorch')


class TestCPUBackend:
    """Test CPU backend (always available)."""

    def test_cpu_backend_creation(self):
        backend = get_backend('cpu')
        assert backend.name == 'cpu_fp64'
        assert backend.precision == 'fp64'

    def test_cpu_device_info(self):
        info = get_backend('cpu').get_device_info()
        assert info['backend'] == 'cpu'
        assert info['precision'] == 'fp64'
        assert 'NumPy' in info['library']

    def test_cpu_simple_regression(self, rng):
        """Recovers the generating coefficients and matches lstsq."""
        backend = get_backend('cpu')

        n, p = 100, 3
        X = rng.normal(size=(n, p))
        beta_true = np.array([1.0, 2.0, -1.5])
        y = 0.5 + X @ beta_true + 0.1 * rng.normal(size=n)

        result = backend.fit_linear_model(X, y)

        assert result.coef.shape == (p + 1,)
        assert result.residuals.shape == (n,)
        assert result.fitted_values.shape == (n,)
        assert result.rank == p + 1
        assert result.df_residual == n - p - 1
        np.testing.assert_allclose(result.coef[1:], beta_true, atol=0.1)

        X1 = np.column_stack([np.ones(n), X])
        expected, *_ = np.linalg.lstsq(X1, y, rcond=None)
        np.testing.assert_allclose(result.coef, expected, rtol=1e-10, atol=1e-12)

    def test_result_fields(self, rng):
        """Every field of the result is consumed by LinearModel."""
        result = get_backend('cpu').fit_linear_model(rng.normal(size=(20, 2)), rng.normal(size=20))
        assert {f.name for f in fields(result)} == {
            'coef', 'residuals', 'fitted_values', 'rank',
            'df_residual', 'cov_unscaled', 'condition_number',
        }
        assert np.isfinite(result.condition_number) and result.condition_number >= 1.0

    def test_cov_unscaled_is_xtx_inverse(self, rng):
        backend = get_backend('cpu')
        X = rng.normal(size=(40, 2)) * [1.0, 1000.0]
        y = rng.normal(size=40)

        result = backend.fit_linear_model(X, y)

        X1 = np.column_stack([np.ones(40), X])
        np.testing.assert_allclose(result.cov_unscaled, np.linalg.inv(X1.T @ X1), rtol=1e-8)
        np.testing.assert_allclose(result.cov_unscaled, result.cov_unscaled.T, rtol=1e-10, atol=1e-14)

    def test_intercept_only(self, rng):
        y = rng.normal(size=10)
        result = get_backend('cpu').fit_linear_model(np.empty((10, 0)), y)
        np.testing.assert_allclose(result.coef, [y.mean()])
        assert result.rank == 1

    def test_aliased_columns_are_named(self, rng):
        x = rng.normal(size=20)
        X = np.column_stack([x, 3 * x])
        with pytest.raises(DegenerateDesignError, match="aliased column"):
            get_backend('cpu').fit_linear_model(X, rng.normal(size=20), names=['a', 'b'])

    def test_zero_column(self, rng):
        X = np.column_stack([rng.normal(size=10), np.zeros(10)])
        with pytest.raises(DegenerateDesignError, match="identically zero"):
            get_backend('cpu').fit_linear_model(X, rng.normal(size=10))

    def test_rejects_non_finite(self):
        X = np.array([[1.0], [np.nan], [3.0]])
        with pytest.raises(ValidationError):
            get_backend('cpu').fit_linear_model(X, np.array([1.0, 2.0, 3.0]))

    def test_rejects_length_mismatch(self):
        with pytest.raises(ValueError):
            get_backend('cpu').fit_linear_model(np.ones((3, 1)), np.ones(4))

    def test_looser_tolerance_flags_near_collinearity(self, rng):
        x = rng.normal(size=50)
        X = np.column_stack([x, x + 1e-5 * rng.normal(size=50)])
        y = rng.normal(size=50)

        backend = get_backend('cpu')
        assert backend.fit_linear_model(X, y).rank == 3
        with pytest.raises(DegenerateDesignError):
            backend.fit_linear_model(X, y, tol=1e-3)
