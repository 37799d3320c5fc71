"""
Point predictions and confidence / prediction intervals for new rows.
"""

import numbers
from collections.abc import Mapping

import numpy as np
import pandas as pd
from scipy import stats

from ._utils import check_columns
from .design import evaluate_terms
from .exceptions import InvalidConfidenceLevelError, ValidationError
from .table import ObservationTable

INTERVAL_KINDS = ('confidence', 'prediction')


def _check_level(confidence_level) -> float:
    if (isinstance(confidence_level, bool)
            or not isinstance(confidence_level, numbers.Real)
            or not 0 < confidence_level < 1):
        raise InvalidConfidenceLevelError(confidence_level)
    return float(confidence_level)


def _as_frame(new_rows) -> pd.DataFrame:
    if isinstance(new_rows, pd.DataFrame):
        return new_rows
    if isinstance(new_rows, Mapping):
        # A mapping of scalars is a single row
        if all(np.ndim(v) == 0 for v in new_rows.values()):
            return pd.DataFrame([dict(new_rows)])
        return pd.DataFrame(dict(new_rows))
    return pd.DataFrame(list(new_rows))


def _new_design(model, new_rows) -> np.ndarray:
    """Evaluate the model's terms on new rows, intercept column first."""
    base_cols = list(model.base_columns)
    if isinstance(new_rows, ObservationTable):
        table = new_rows
        table.require(base_cols)
        mistyped = [c for c in base_cols if table.is_categorical(c) != (c in model.levels)]
        if mistyped:
            raise ValidationError(
                f"new rows type {mistyped} differently from the fitted model "
                f"(categorical at fit time: {sorted(model.levels)})"
            )
        # Indicator columns must line up with the training schema
        if any(table.levels(c) != lv for c, lv in model.levels.items()):
            table = ObservationTable.from_dataframe(
                table.to_dataframe()[base_cols].astype({c: str for c in model.levels}),
                categorical=list(model.levels),
                levels=model.levels,
            )
    else:
        frame = _as_frame(new_rows)
        check_columns(frame.columns, base_cols)
        # Typed by the fitted schema, never re-inferred
        table = ObservationTable.from_dataframe(
            frame[base_cols],
            categorical=list(model.levels),
            levels=model.levels,
        )

    labels, X, _ = evaluate_terms(table, model.terms)
    return np.column_stack([np.ones(table.n_rows), X])


def point_predictions(model, new_rows) -> np.ndarray:
    """Fitted response for each new row, in input order."""
    X0 = _new_design(model, new_rows)
    return X0 @ model.coefficients


def predict(model, new_rows, interval_kind="confidence", confidence_level=0.95) -> pd.DataFrame:
    """
    Point predictions with confidence or prediction intervals.

    Parameters
    ----------
    model : LinearModel
        Fitted model
    new_rows : DataFrame, ObservationTable, mapping or list of mappings
        Rows to score. Every base column the model's terms read must be
        present; categorical values must be training levels.
    interval_kind : {'confidence', 'prediction'}
        'confidence' bounds the mean response; 'prediction' bounds a new
        observation and adds the residual variance.
    confidence_level : float
        Coverage in (0, 1)

    Returns
    -------
    DataFrame
        Columns 'fit', 'lower', 'upper', one row per input row

    Raises
    ------
    InvalidConfidenceLevelError
        confidence_level outside (0, 1); checked before anything else
    MissingColumnError
        A required base column is absent
    ValidationError
        Unknown categorical level or non-finite values
    """
    level = _check_level(confidence_level)
    if interval_kind not in INTERVAL_KINDS:
        raise ValueError(
            f"interval_kind must be one of {INTERVAL_KINDS}, got {interval_kind!r}"
        )

    X0 = _new_design(model, new_rows)
    fit = X0 @ model.coefficients

    # se_fit = sigma * sqrt(x0' (X'X)^-1 x0), row by row
    leverage = np.einsum('ij,jk,ik->i', X0, model.cov_unscaled, X0)
    se_fit = model.sigma * np.sqrt(leverage)
    if interval_kind == 'prediction':
        se = np.sqrt(se_fit ** 2 + model.sigma ** 2)
    else:
        se = se_fit

    if model.df_residual > 0:
        t_crit = stats.t.ppf((1 + level) / 2, model.df_residual)
    else:
        t_crit = np.nan
    half_width = t_crit * se

    return pd.DataFrame({
        'fit': fit,
        'lower': fit - half_width,
        'upper': fit + half_width,
    })


__all__ = ["predict", "point_predictions", "INTERVAL_KINDS"]
