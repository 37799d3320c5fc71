"""
k-fold cross-validation of a fixed term set.

Each fold is held out once; the model is refit on the remaining folds and
scored on the held-out rows. Fold assignment depends only on (n, k, seed),
so two runs with the same inputs produce identical folds and scores.
"""

import logging
import numbers
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ._backends import BackendBase
from .design import build_design
from .exceptions import InvalidFoldCountError
from .lm import fit_design
from .prediction import point_predictions
from .table import ObservationTable, as_table
from .terms import TermLike, formula, parse_terms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CrossValidationResult:
    """
    Scores of one k-fold run.

    Attributes
    ----------
    fold_rmse, fold_mae, fold_rsquared : ndarray, shape (k,)
        Per-fold metrics, indexed by fold number. fold_rsquared is the
        squared correlation of observed and predicted values and is NaN for
        folds with fewer than two rows or no variance.
    rmse, mae, rsquared : float
        Means over folds (NaN folds skipped for rsquared)
    rmse_sd, mae_sd, rsquared_sd : float
        Sample standard deviations over folds (ddof=1)
    """
    formula: str
    k: int
    seed: int
    folds: Tuple[np.ndarray, ...]
    fold_rmse: np.ndarray
    fold_mae: np.ndarray
    fold_rsquared: np.ndarray
    rmse: float
    mae: float
    rsquared: float
    rmse_sd: float
    mae_sd: float
    rsquared_sd: float

    def to_frame(self) -> pd.DataFrame:
        """Per-fold scores, one row per fold."""
        return pd.DataFrame({
            'fold': np.arange(1, self.k + 1),
            'n_test': [len(f) for f in self.folds],
            'RMSE': self.fold_rmse,
            'MAE': self.fold_mae,
            'Rsquared': self.fold_rsquared,
        })

    def __repr__(self):
        return (
            f"CrossValidationResult({self.formula!r}, k={self.k}, "
            f"RMSE={self.rmse:.4f}, MAE={self.mae:.4f}, Rsquared={self.rsquared:.4f})"
        )


def _check_k(k, n_rows: int) -> int:
    if isinstance(k, bool) or not isinstance(k, numbers.Integral) or not 2 <= k <= n_rows:
        raise InvalidFoldCountError(k, n_rows)
    return int(k)


def make_folds(n: int, k: int, seed: int) -> Tuple[np.ndarray, ...]:
    """
    Split row indices 0..n-1 into k disjoint, exhaustive folds.

    Rows are shuffled with `numpy.random.default_rng(seed)` and split into
    contiguous chunks whose sizes differ by at most one. Each fold is
    returned sorted.

    Raises
    ------
    InvalidFoldCountError
        Unless 2 <= k <= n
    """
    k = _check_k(k, n)
    order = np.random.default_rng(seed).permutation(n)
    return tuple(np.sort(chunk) for chunk in np.array_split(order, k))


def _squared_correlation(observed: np.ndarray, predicted: np.ndarray) -> float:
    if len(observed) < 2:
        return np.nan
    if np.ptp(observed) == 0 or np.ptp(predicted) == 0:
        return np.nan
    r = np.corrcoef(observed, predicted)[0, 1]
    return float(r * r)


def _mean_sd(values: np.ndarray) -> Tuple[float, float]:
    finite = values[~np.isnan(values)]
    if len(finite) == 0:
        return np.nan, np.nan
    sd = float(np.std(finite, ddof=1)) if len(finite) > 1 else np.nan
    return float(np.mean(finite)), sd


def cross_validate(
    table: Union[ObservationTable, pd.DataFrame],
    response: str,
    terms: Union[str, Sequence[TermLike]],
    k: int = 10,
    seed: int = 12,
    backend: Union[str, BackendBase] = 'auto',
) -> CrossValidationResult:
    """
    Estimate out-of-sample error of `response ~ terms` by k-fold CV.

    Parameters
    ----------
    table : ObservationTable or DataFrame
    response : str
    terms : str or sequence of Term/str
    k : int
        Number of folds, 2 <= k <= number of rows
    seed : int
        Seed for fold assignment

    Returns
    -------
    CrossValidationResult

    Raises
    ------
    InvalidFoldCountError
        Bad k; raised before any model is fit
    DegenerateDesignError
        A training fold cannot support the model; aborts the run
    """
    table = as_table(table)
    k = _check_k(k, table.n_rows)
    terms = parse_terms(terms)
    # Validates columns and duplicates up front, on the full table
    build_design(table, response, terms)

    folds = make_folds(table.n_rows, k, seed)
    all_rows = np.arange(table.n_rows)
    y = table.numeric(response)

    fold_rmse = np.full(k, np.nan)
    fold_mae = np.full(k, np.nan)
    fold_rsquared = np.full(k, np.nan)
    for i, test_idx in enumerate(folds):
        train_idx = np.setdiff1d(all_rows, test_idx, assume_unique=True)
        model = fit_design(build_design(table.take(train_idx), response, terms), backend=backend)
        predicted = point_predictions(model, table.take(test_idx))
        errors = y[test_idx] - predicted

        fold_rmse[i] = np.sqrt(np.mean(errors ** 2))
        fold_mae[i] = np.mean(np.abs(errors))
        fold_rsquared[i] = _squared_correlation(y[test_idx], predicted)
        logger.debug(
            f"fold {i + 1}/{k}: train={len(train_idx)} test={len(test_idx)} "
            f"RMSE={fold_rmse[i]:.4f}"
        )

    rmse, rmse_sd = _mean_sd(fold_rmse)
    mae, mae_sd = _mean_sd(fold_mae)
    rsquared, rsquared_sd = _mean_sd(fold_rsquared)

    result = CrossValidationResult(
        formula=formula(response, terms),
        k=k,
        seed=seed,
        folds=folds,
        fold_rmse=fold_rmse,
        fold_mae=fold_mae,
        fold_rsquared=fold_rsquared,
        rmse=rmse,
        mae=mae,
        rsquared=rsquared,
        rmse_sd=rmse_sd,
        mae_sd=mae_sd,
        rsquared_sd=rsquared_sd,
    )
    logger.debug(repr(result))
    return result


__all__ = ["CrossValidationResult", "make_folds", "cross_validate"]
