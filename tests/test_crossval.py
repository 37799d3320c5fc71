"""
Test fold assignment and k-fold cross-validation.
"""

import logging

import pytest
import numpy as np
import pandas as pd

from pyairreg.crossval import cross_validate, make_folds
from pyairreg.exceptions import DegenerateDesignError, InvalidFoldCountError, MissingColumnError


class TestFolds:

    def test_disjoint_exhaustive_sorted(self):
        folds = make_folds(23, 5, seed=12)
        assert len(folds) == 5
        combined = np.concatenate(folds)
        np.testing.assert_array_equal(np.sort(combined), np.arange(23))
        for fold in folds:
            np.testing.assert_array_equal(fold, np.sort(fold))

    def test_sizes_differ_by_at_most_one(self):
        sizes = [len(f) for f in make_folds(23, 5, seed=1)]
        assert max(sizes) - min(sizes) <= 1
        assert sum(sizes) == 23

    def test_seeded(self):
        a = make_folds(50, 10, seed=12)
        b = make_folds(50, 10, seed=12)
        c = make_folds(50, 10, seed=13)
        for fa, fb in zip(a, b):
            np.testing.assert_array_equal(fa, fb)
        assert any(not np.array_equal(fa, fc) for fa, fc in zip(a, c))

    @pytest.mark.parametrize('k', [0, 1, 24, 2.5, True, '10'])
    def test_invalid_k(self, k):
        with pytest.raises(InvalidFoldCountError):
            make_folds(23, k, seed=12)


class TestCrossValidate:

    def test_result_shape(self, prsa_table):
        result = cross_validate(prsa_table, 'pm2.5', 'Iws', k=10, seed=12)
        assert result.k == 10
        assert result.fold_rmse.shape == (10,)
        assert result.formula == 'pm2.5 ~ Iws'
        np.testing.assert_allclose(result.rmse, result.fold_rmse.mean())
        np.testing.assert_allclose(result.rmse_sd, result.fold_rmse.std(ddof=1))
        assert np.all(result.fold_mae <= result.fold_rmse + 1e-12)
        assert np.all((result.fold_rsquared >= 0) & (result.fold_rsquared <= 1))
        assert list(result.to_frame().columns) == ['fold', 'n_test', 'RMSE', 'MAE', 'Rsquared']

    def test_reproducible(self, prsa_table):
        a = cross_validate(prsa_table, 'pm2.5', 'DEWP + TEMP + cbwd', k=5, seed=12)
        b = cross_validate(prsa_table, 'pm2.5', 'DEWP + TEMP + cbwd', k=5, seed=12)
        np.testing.assert_array_equal(a.fold_rmse, b.fold_rmse)
        np.testing.assert_array_equal(a.fold_rsquared, b.fold_rsquared)

    def test_leave_one_out_intercept_only(self, rng):
        """LOO on y ~ 1: each error is n/(n-1) * (y_i - mean(y))."""
        y = rng.normal(10, 3, size=12)
        table = pd.DataFrame({'y': y})
        n = len(y)

        result = cross_validate(table, 'y', [], k=n, seed=3)

        expected = np.empty(n)
        for i, fold in enumerate(result.folds):
            j = fold[0]
            expected[i] = n / (n - 1) * abs(y[j] - y.mean())
        np.testing.assert_allclose(result.fold_mae, expected, rtol=1e-10)
        np.testing.assert_allclose(result.fold_rmse, expected, rtol=1e-10)
        # Single-row folds have no correlation
        assert np.all(np.isnan(result.fold_rsquared))
        assert np.isnan(result.rsquared)

    def test_invalid_k_before_fitting(self, cars):
        with pytest.raises(InvalidFoldCountError):
            cross_validate(cars, 'dist', 'speed', k=51)
        with pytest.raises(InvalidFoldCountError):
            cross_validate(cars, 'dist', 'speed', k=1)

    def test_missing_column(self, cars):
        with pytest.raises(MissingColumnError):
            cross_validate(cars, 'dist', 'weight', k=5)

    def test_degenerate_training_fold_aborts(self):
        # A column that is non-zero on one row only: the fold holding that
        # row out trains on an all-zero column
        table = pd.DataFrame({
            'x': [0.0] * 9 + [1.0],
            'y': np.arange(10, dtype=float),
        })
        with pytest.raises(DegenerateDesignError):
            cross_validate(table, 'y', 'x', k=10, seed=1)

    def test_logs_folds_at_debug(self, cars, caplog):
        with caplog.at_level(logging.DEBUG, logger='pyairreg.crossval'):
            cross_validate(cars, 'dist', 'speed', k=5, seed=12)
        assert sum('fold' in r.getMessage() for r in caplog.records) >= 5
