"""
Best-subset selection by adjusted R² (R's leaps::regsubsets).

For each subset size the best term combination is found exhaustively when the
number of combinations is small enough, and by sequential replacement
otherwise. Sequential replacement is a local search: results it produces are
flagged ``exact=False`` and may not be the true optimum.
"""

import logging
from dataclasses import dataclass
from itertools import combinations
from math import comb
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ._backends import BackendBase
from .design import Design, build_design
from .lm import fit_design
from .table import ObservationTable, as_table
from .terms import Term, TermLike, formula, parse_terms

logger = logging.getLogger(__name__)

DEFAULT_NVMAX = 8


@dataclass(frozen=True)
class SubsetResult:
    """Best term set found for one subset size."""
    size: int
    terms: Tuple[Term, ...]
    adj_r_squared: float
    r_squared: float
    rss: float
    exact: bool

    def formula(self, response: str) -> str:
        return formula(response, self.terms)


class _Scorer:
    """Fits sub-designs of one full design, memoized by column positions."""

    def __init__(self, design: Design, backend):
        self.design = design
        self.backend = backend
        self._cache = {}

    def __call__(self, idx: Tuple[int, ...]):
        key = tuple(sorted(idx))
        if key not in self._cache:
            terms = [self.design.terms[i] for i in key]
            self._cache[key] = fit_design(self.design.select(terms), backend=self.backend)
        return self._cache[key]


def _rank_value(adj: float) -> float:
    # Saturated fits have no adjusted R²; they never beat a defined one
    return -np.inf if np.isnan(adj) else adj


def _exhaustive(score: _Scorer, m: int, size: int) -> Tuple[int, ...]:
    best_idx = None
    best_adj = None
    for idx in combinations(range(m), size):
        adj = _rank_value(score(idx).adj_r_squared)
        if best_adj is None or adj > best_adj:
            best_idx, best_adj = idx, adj
    return best_idx


def _sequential_replacement(score: _Scorer, m: int, size: int) -> Tuple[int, ...]:
    # Greedy forward start
    chosen: List[int] = []
    while len(chosen) < size:
        best = None
        for j in range(m):
            if j in chosen:
                continue
            adj = _rank_value(score(tuple(chosen + [j])).adj_r_squared)
            if best is None or adj > best[1]:
                best = (j, adj)
        chosen.append(best[0])

    # Best single swap until none improves
    current = _rank_value(score(tuple(chosen)).adj_r_squared)
    while True:
        best = None
        for pos in range(size):
            for j in range(m):
                if j in chosen:
                    continue
                trial = chosen[:pos] + [j] + chosen[pos + 1:]
                adj = _rank_value(score(tuple(trial)).adj_r_squared)
                if adj > current and (best is None or adj > best[1]):
                    best = (trial, adj)
        if best is None:
            return tuple(sorted(chosen))
        chosen, current = best


def best_subsets(
    table: Union[ObservationTable, pd.DataFrame],
    response: str,
    candidate_terms: Union[str, Sequence[TermLike]],
    max_size: Optional[int] = None,
    max_combinations: int = 5000,
    backend: Union[str, BackendBase] = 'auto',
) -> Tuple[SubsetResult, ...]:
    """
    Best term subset of each size 1..max_size by adjusted R².

    Parameters
    ----------
    table : ObservationTable or DataFrame
    response : str
    candidate_terms : str or sequence of Term/str
        Candidate pool; terms in a winning subset keep pool order
    max_size : int, optional
        Largest subset size; defaults to min(8, number of candidates)
    max_combinations : int
        Sizes with more combinations than this use sequential replacement

    Returns
    -------
    tuple of SubsetResult
        One per size, sorted by adjusted R² descending (stable)

    Raises
    ------
    ValueError
        max_size outside 1..number of candidates
    DegenerateDesignError
        A subset fit fails; the search is aborted
    """
    table = as_table(table)
    candidates = parse_terms(candidate_terms)
    m = len(candidates)
    if max_size is None:
        max_size = min(DEFAULT_NVMAX, m)
    if isinstance(max_size, bool) or not isinstance(max_size, int) or not 1 <= max_size <= m:
        raise ValueError(f"max_size must be an integer in 1..{m}, got {max_size!r}")

    design = build_design(table, response, candidates)
    score = _Scorer(design, backend)

    results = []
    for size in range(1, max_size + 1):
        n_comb = comb(m, size)
        exact = n_comb <= max_combinations
        if exact:
            idx = _exhaustive(score, m, size)
        else:
            logger.info(
                f"size {size}: {n_comb} combinations exceed {max_combinations}, "
                f"using sequential replacement (approximate)"
            )
            idx = _sequential_replacement(score, m, size)
        model = score(idx)
        results.append(SubsetResult(
            size=size,
            terms=tuple(candidates[i] for i in idx),
            adj_r_squared=model.adj_r_squared,
            r_squared=model.r_squared,
            rss=model.rss,
            exact=exact,
        ))
        logger.debug(f"size {size}: {formula(response, results[-1].terms)} "
                     f"adjR2={model.adj_r_squared:.4f}")

    # NaN sorts last
    return tuple(sorted(results, key=lambda r: _rank_value(r.adj_r_squared), reverse=True))


__all__ = ["SubsetResult", "best_subsets"]
