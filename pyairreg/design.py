"""
Design matrix construction.

Design evaluates a term set against an ObservationTable and holds the
resulting response vector and predictor columns (WITHOUT intercept; the
backend adds it). Immutable after construction.
"""

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

import numpy as np

from ._utils import check_vector, readonly
from .exceptions import ValidationError
from .table import ObservationTable
from .terms import Term, TermLike, base_columns, check_term_set, parse_terms


@dataclass(frozen=True)
class Design:
    """
    Evaluated design for one response and one term set.

    Attributes
    ----------
    response : str
        Response column name
    terms : tuple of Term
        Terms in model order
    X : ndarray, shape (n, p)
        Predictor columns without the intercept
    y : ndarray, shape (n,)
        Response vector
    labels : tuple of str
        Column labels of X
    spans : tuple of (start, stop)
        Column range of X occupied by each term, parallel to `terms`
    levels : dict
        Level order of every categorical column the terms read
    """
    response: str
    terms: Tuple[Term, ...]
    X: np.ndarray
    y: np.ndarray
    labels: Tuple[str, ...]
    spans: Tuple[Tuple[int, int], ...]
    levels: Dict[str, Tuple[str, ...]]

    @property
    def n(self) -> int:
        return self.X.shape[0]

    @property
    def p(self) -> int:
        """Number of design columns, intercept included."""
        return self.X.shape[1] + 1

    def select(self, terms: Sequence[Term]) -> 'Design':
        """Sub-design over a subset of this design's terms, in the given order."""
        index = {t.key: i for i, t in enumerate(self.terms)}
        cols = []
        labels = []
        spans = []
        for term in terms:
            if term.key not in index:
                raise ValueError(f"term {term.name!r} is not part of this design")
            start, stop = self.spans[index[term.key]]
            spans.append((len(cols), len(cols) + stop - start))
            cols.extend(range(start, stop))
            labels.extend(self.labels[start:stop])
        X = readonly(self.X[:, cols])
        used = base_columns(terms)
        return Design(
            response=self.response,
            terms=tuple(terms),
            X=X,
            y=self.y,
            labels=tuple(labels),
            spans=tuple(spans),
            levels={c: lv for c, lv in self.levels.items() if c in used},
        )


def build_design(
    table: ObservationTable,
    response: str,
    terms: Sequence[TermLike],
) -> Design:
    """
    Evaluate `terms` against `table`.

    Raises
    ------
    MissingColumnError
        Response or a referenced base column is not in the table
    DuplicateTermError
        The term set repeats a term
    ValidationError
        Categorical or non-finite response, or non-finite predictor values
    """
    terms = parse_terms(terms)
    check_term_set(terms)
    required = [response] + [c for c in base_columns(terms) if c != response]
    table.require(required)
    if table.is_categorical(response):
        raise ValidationError(f"response {response!r} is categorical, expected numeric")
    if response in base_columns(terms):
        raise ValidationError(f"response {response!r} also appears as a predictor")

    y = check_vector(table.numeric(response), name=response)
    labels, X, spans = evaluate_terms(table, terms)

    levels = {c: table.levels(c) for c in base_columns(terms) if table.is_categorical(c)}
    return Design(
        response=response,
        terms=terms,
        X=readonly(X),
        y=readonly(y.copy()),
        labels=tuple(labels),
        spans=tuple(spans),
        levels=levels,
    )


def evaluate_terms(
    table: ObservationTable,
    terms: Sequence[Term],
) -> Tuple[list, np.ndarray, list]:
    """
    Evaluate every term against every row.

    Returns
    -------
    labels : list of str
    X : ndarray, shape (n_rows, n_columns)
        Predictor columns without the intercept
    spans : list of (start, stop)
        Column range of each term

    Raises
    ------
    ValidationError
        If any evaluated value is NaN or Inf
    """
    blocks = []
    labels = []
    spans = []
    for term in terms:
        term_labels, block = term.evaluate(table)
        spans.append((len(labels), len(labels) + len(term_labels)))
        labels.extend(term_labels)
        blocks.append(block)

    if blocks:
        X = np.column_stack(blocks).astype(np.float64)
    else:
        X = np.empty((table.n_rows, 0), dtype=np.float64)
    if not np.all(np.isfinite(X)):
        bad = sorted({labels[j] for j in np.where(~np.isfinite(X).all(axis=0))[0]})
        raise ValidationError(f"design columns contain NaN or Inf: {bad}")
    return labels, X, spans


__all__ = ["Design", "build_design", "evaluate_terms"]
