"""
Stepwise term selection by information criterion (R's step / stepAIC).

The search runs over a declared, ordered universe of terms. A step is taken
only when it strictly lowers n log(RSS/n) + penalty * edf, so the search
always terminates. Candidates are scanned in universe order and compared
strictly, which makes the earliest candidate win ties.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from ._backends import BackendBase
from .lm import LinearModel, fit
from .table import ObservationTable, as_table
from .terms import Term, TermLike, check_term_set, parse_terms

logger = logging.getLogger(__name__)

DIRECTIONS = ('forward', 'backward', 'both')


@dataclass(frozen=True)
class TraceStep:
    """One accepted step: '+' added or '-' removed `term`."""
    action: str
    term: Term
    criterion: float

    def __str__(self):
        return f"{self.action} {self.term.name}  (criterion {self.criterion:.4f})"


def select(
    table: Union[ObservationTable, pd.DataFrame],
    response: str,
    initial_terms: Union[str, Sequence[TermLike]],
    universe: Union[str, Sequence[TermLike]],
    direction: str = "backward",
    penalty: float = 2.0,
    backend: Union[str, BackendBase] = 'auto',
) -> Tuple[LinearModel, Tuple[TraceStep, ...]]:
    """
    Greedy stepwise search.

    Parameters
    ----------
    table : ObservationTable or DataFrame
    response : str
    initial_terms : str or sequence of Term/str
        Starting term set; must be a subset of `universe`
    universe : str or sequence of Term/str
        Ordered candidate terms; order breaks ties
    direction : {'forward', 'backward', 'both'}
        'backward' only removes, 'forward' only adds, 'both' considers
        every single removal and addition at each step
    penalty : float
        Penalty per estimated coefficient: 2 for AIC, log(n) for BIC

    Returns
    -------
    model : LinearModel
        Final model; its terms are a subset of `universe`
    trace : tuple of TraceStep
        Accepted steps in order

    Raises
    ------
    ValueError
        Unknown direction, or initial terms outside the universe
    DegenerateDesignError
        Any candidate fit fails; the search is aborted
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")

    table = as_table(table)
    universe = parse_terms(universe)
    check_term_set(universe)
    order = {t.key: i for i, t in enumerate(universe)}

    current = parse_terms(initial_terms)
    check_term_set(current)
    outside = [t.name for t in current if t.key not in order]
    if outside:
        raise ValueError(f"initial terms are not in the universe: {outside}")
    # Keep the working set in universe order so candidate models are deterministic
    current = tuple(sorted(current, key=lambda t: order[t.key]))

    model = fit(table, response, current, backend=backend)
    best_crit = model.information_criterion(penalty)
    logger.debug(f"start: {model.formula}  criterion={best_crit:.4f}")

    trace: List[TraceStep] = []
    while True:
        step: Optional[Tuple[str, Term, Tuple[Term, ...], LinearModel, float]] = None
        present = {t.key for t in current}

        for term in universe:
            if term.key in present:
                if direction == 'forward':
                    continue
                action = '-'
                candidate = tuple(t for t in current if t.key != term.key)
            else:
                if direction == 'backward':
                    continue
                action = '+'
                candidate = tuple(t for t in universe if t.key in present or t.key == term.key)

            cand_model = fit(table, response, candidate, backend=backend)
            crit = cand_model.information_criterion(penalty)
            logger.debug(f"  {action} {term.name}: criterion={crit:.4f}")
            if crit < best_crit and (step is None or crit < step[4]):
                step = (action, term, candidate, cand_model, crit)

        if step is None:
            break
        action, term, current, model, best_crit = step
        trace.append(TraceStep(action, term, best_crit))
        logger.debug(f"step {len(trace)}: {action} {term.name}  criterion={best_crit:.4f}")

    logger.debug(f"final: {model.formula}  criterion={best_crit:.4f}")
    return model, tuple(trace)


__all__ = ["TraceStep", "select", "DIRECTIONS"]
