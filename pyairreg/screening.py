"""
Exploratory screening: correlations, univariate models, augmentation rounds.

These helpers fit families of related models and rank them, replacing the
one-model-at-a-time inspection of an interactive session.
"""

from typing import Sequence, Union

import numpy as np
import pandas as pd

from ._backends import BackendBase
from .exceptions import ValidationError
from .lm import LinearModel, fit
from .table import ObservationTable, as_table
from .terms import TermLike, parse_terms


def rank_correlations(
    table: Union[ObservationTable, pd.DataFrame],
    response: str,
) -> pd.Series:
    """
    Pearson correlation of every numeric column with the response.

    Returns
    -------
    Series
        Indexed by column name, sorted by absolute correlation descending.
        The first entry is the most strongly correlated column. Constant
        columns have NaN correlation and sort last.
    """
    table = as_table(table)
    y = table.numeric(response)
    corr = {}
    for name in table.numeric_columns:
        if name == response:
            continue
        x = table.numeric(name)
        if np.ptp(x) == 0 or np.ptp(y) == 0:
            corr[name] = np.nan
        else:
            corr[name] = float(np.corrcoef(x, y)[0, 1])
    series = pd.Series(corr, dtype=np.float64, name=response)
    order = series.abs().sort_values(ascending=False, kind='stable', na_position='last').index
    return series.loc[order]


def _model_row(label: str, model: LinearModel) -> dict:
    return {
        'term': label,
        'r_squared': model.r_squared,
        'adj_r_squared': model.adj_r_squared,
        'f_pvalue': model.f_pvalue,
        'aic': model.aic,
    }


def _ranked(rows) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=['term', 'r_squared', 'adj_r_squared', 'f_pvalue', 'aic'])
    return df.sort_values('adj_r_squared', ascending=False, kind='stable').reset_index(drop=True)


def screen_univariate(
    table: Union[ObservationTable, pd.DataFrame],
    response: str,
    predictors: Union[str, Sequence[TermLike]],
    backend: Union[str, BackendBase] = 'auto',
) -> pd.DataFrame:
    """
    Fit `response ~ term` separately for each term.

    Returns
    -------
    DataFrame
        Columns term, r_squared, adj_r_squared, f_pvalue, aic; sorted by
        adjusted R² descending (ties keep input order)
    """
    table = as_table(table)
    rows = []
    for term in parse_terms(predictors):
        rows.append(_model_row(term.name, fit(table, response, [term], backend=backend)))
    return _ranked(rows)


def compare_augmentations(
    table: Union[ObservationTable, pd.DataFrame],
    response: str,
    base_terms: Union[str, Sequence[TermLike]],
    extra_terms: Union[str, Sequence[TermLike]],
    backend: Union[str, BackendBase] = 'auto',
) -> pd.DataFrame:
    """
    Fit `response ~ base + extra` for each extra term.

    Extra terms already in the base set are skipped.

    Returns
    -------
    DataFrame
        Same columns as `screen_univariate`, 'term' naming the added term
    """
    table = as_table(table)
    base = parse_terms(base_terms)
    present = {t.key for t in base}
    rows = []
    for term in parse_terms(extra_terms):
        if term.key in present:
            continue
        rows.append(_model_row(term.name, fit(table, response, base + (term,), backend=backend)))
    return _ranked(rows)


def choose_best(models: Sequence[LinearModel]) -> LinearModel:
    """Model with the highest adjusted R²; the first one wins ties."""
    if not models:
        raise ValidationError("choose_best needs at least one model")
    best = models[0]
    for model in models[1:]:
        if model.adj_r_squared > best.adj_r_squared:
            best = model
    return best


__all__ = ["rank_correlations", "screen_univariate", "compare_augmentations", "choose_best"]
