"""
Model terms: named, pure transformations of base columns.

A model is an intercept plus an ordered tuple of distinct terms. Terms are
frozen values, so they hash, compare and can be collected into universes for
stepwise and best-subset searches.

Supported forms (R formula names in parentheses):
    Identity('TEMP')            numeric column                  (TEMP)
    Identity('cbwd')            categorical -> indicators       (cbwd)
    Power('month', 2)           numeric power                   (I(month^2))
    Interaction('month', 'TEMP') product of two columns         (month:TEMP)
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from itertools import combinations
from typing import FrozenSet, Iterable, List, Sequence, Tuple, Union

import numpy as np

from .exceptions import DuplicateTermError, ValidationError
from .table import ObservationTable


class Term(ABC):
    """Base class for model terms."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def columns(self) -> Tuple[str, ...]:
        """Base columns this term reads."""
        pass

    @property
    @abstractmethod
    def key(self) -> FrozenSet:
        """Identity used for duplicate detection."""
        pass

    @abstractmethod
    def evaluate(self, table: ObservationTable) -> Tuple[List[str], np.ndarray]:
        """Return (column labels, n x m matrix) for this term."""
        pass

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class Identity(Term):
    column: str

    @property
    def name(self) -> str:
        return self.column

    @property
    def columns(self) -> Tuple[str, ...]:
        return (self.column,)

    @property
    def key(self) -> FrozenSet:
        return frozenset([('identity', self.column)])

    def evaluate(self, table):
        if table.is_categorical(self.column):
            return table.indicators(self.column)
        return [self.column], table.numeric(self.column)[:, np.newaxis]


@dataclass(frozen=True)
class Power(Term):
    column: str
    degree: int = 2

    def __post_init__(self):
        if not isinstance(self.degree, (int, np.integer)) or self.degree < 2:
            raise ValueError(f"Power degree must be an integer >= 2, got {self.degree!r}")

    @property
    def name(self) -> str:
        return f"I({self.column}^{self.degree})"

    @property
    def columns(self) -> Tuple[str, ...]:
        return (self.column,)

    @property
    def key(self) -> FrozenSet:
        return frozenset([('power', self.column, int(self.degree))])

    def evaluate(self, table):
        if table.is_categorical(self.column):
            raise ValidationError(
                f"{self.name}: column {self.column!r} is categorical, powers need a numeric column"
            )
        values = table.numeric(self.column) ** self.degree
        return [self.name], values[:, np.newaxis]


@dataclass(frozen=True)
class Interaction(Term):
    left: str
    right: str

    def __post_init__(self):
        if self.left == self.right:
            raise ValueError(
                f"Interaction of {self.left!r} with itself; use Power({self.left!r}, 2)"
            )

    @property
    def name(self) -> str:
        return f"{self.left}:{self.right}"

    @property
    def columns(self) -> Tuple[str, ...]:
        return (self.left, self.right)

    @property
    def key(self) -> FrozenSet:
        # a:b and b:a are the same term
        return frozenset([('interaction', self.left), ('interaction', self.right)])

    def evaluate(self, table):
        left_labels, left = _expand(table, self.left)
        right_labels, right = _expand(table, self.right)
        labels = []
        blocks = []
        for j, rl in enumerate(right_labels):
            for i, ll in enumerate(left_labels):
                labels.append(f"{ll}:{rl}")
                blocks.append(left[:, i] * right[:, j])
        if not blocks:
            return [], np.empty((table.n_rows, 0))
        return labels, np.column_stack(blocks)


def _expand(table: ObservationTable, column: str) -> Tuple[List[str], np.ndarray]:
    if table.is_categorical(column):
        return table.indicators(column)
    return [column], table.numeric(column)[:, np.newaxis]


TermLike = Union[Term, str]

_POWER_RE = re.compile(r"^I\(\s*([^\s^()]+)\s*\^\s*(\d+)\s*\)$")


def parse_term(text: str) -> Term:
    """
    Parse one R-style term: 'TEMP', 'I(month^2)' or 'month:TEMP'.
    """
    text = text.strip()
    if not text:
        raise ValueError("empty term")
    match = _POWER_RE.match(text)
    if match:
        return Power(match.group(1), int(match.group(2)))
    if ':' in text:
        parts = [p.strip() for p in text.split(':')]
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"only pairwise interactions are supported, got {text!r}")
        return Interaction(parts[0], parts[1])
    if any(ch in text for ch in '()^+*'):
        raise ValueError(f"cannot parse term {text!r}")
    return Identity(text)


def parse_terms(terms: Union[str, Iterable[TermLike]]) -> Tuple[Term, ...]:
    """
    Normalize a formula right-hand side or a sequence of terms/strings.

    '1' or an empty string means intercept only.

    >>> parse_terms('year + I(month^2) + month:TEMP + cbwd')
    """
    if isinstance(terms, str):
        parts = [p for p in (s.strip() for s in terms.split('+')) if p and p != '1']
        return tuple(parse_term(p) for p in parts)
    if isinstance(terms, Term):
        return (terms,)
    return tuple(t if isinstance(t, Term) else parse_term(t) for t in terms)


def check_term_set(terms: Sequence[Term]) -> None:
    """Raise DuplicateTermError if any term appears twice."""
    seen = set()
    for term in terms:
        if term.key in seen:
            raise DuplicateTermError(term.name)
        seen.add(term.key)


def base_columns(terms: Iterable[Term]) -> Tuple[str, ...]:
    """Base columns referenced by `terms`, first-seen order."""
    return tuple(dict.fromkeys(c for t in terms for c in t.columns))


def expand_universe(
    columns: Sequence[str],
    squares: Iterable[str] = (),
    interactions: Iterable[Tuple[str, str]] = (),
    all_interactions: bool = False,
) -> Tuple[Term, ...]:
    """
    Declarative term universe.

    Parameters
    ----------
    columns : sequence of str
        Main effects, in order.
    squares : iterable of str
        Columns that also get an I(col^2) term.
    interactions : iterable of (str, str)
        Explicit pairwise interactions.
    all_interactions : bool
        Add every pairwise interaction of `columns` (after explicit ones).

    Returns
    -------
    tuple of Term
        Main effects, then squares, then interactions; duplicates removed.
    """
    universe = [Identity(c) for c in columns]
    universe += [Power(c, 2) for c in squares]
    universe += [Interaction(a, b) for a, b in interactions]
    if all_interactions:
        universe += [Interaction(a, b) for a, b in combinations(columns, 2)]
    seen = set()
    unique = []
    for term in universe:
        if term.key not in seen:
            seen.add(term.key)
            unique.append(term)
    return tuple(unique)


def formula(response: str, terms: Sequence[Term]) -> str:
    """R-style formula text, e.g. 'pm2.5 ~ Iws + cbwd'."""
    rhs = ' + '.join(t.name for t in terms) if terms else '1'
    return f"{response} ~ {rhs}"


__all__ = [
    "Term",
    "Identity",
    "Power",
    "Interaction",
    "parse_term",
    "parse_terms",
    "check_term_set",
    "base_columns",
    "expand_universe",
    "formula",
]
