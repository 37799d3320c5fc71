"""
Exception hierarchy for PyAirReg.

Every library error derives from PyAirRegError. Input problems are
ValidationError (also a ValueError) and are raised before any computation;
numerical failures are NumericalError and are never retried or skipped.
"""

from typing import Optional, Sequence


class PyAirRegError(Exception):
    """Base exception for all PyAirReg errors."""
    pass


class ValidationError(PyAirRegError, ValueError):
    """Caller-supplied input failed validation."""
    pass


class InvalidFoldCountError(ValidationError):
    """Cross-validation fold count outside 2 <= k <= n_rows."""

    def __init__(self, k, n_rows: int):
        super().__init__(
            f"k must be an integer with 2 <= k <= {n_rows} (row count), got {k!r}"
        )
        self.k = k
        self.n_rows = n_rows


class InvalidConfidenceLevelError(ValidationError):
    """Confidence level outside the open interval (0, 1)."""

    def __init__(self, level):
        super().__init__(
            f"confidence_level must lie strictly between 0 and 1, got {level!r}"
        )
        self.level = level


class MissingColumnError(ValidationError):
    """
    One or more required columns are absent.

    Attributes
    ----------
    missing : tuple of str
        Names of the absent columns, in the order they were requested.
    """

    def __init__(self, missing: Sequence[str], available: Optional[Sequence[str]] = None):
        self.missing = tuple(missing)
        self.available = tuple(available) if available is not None else None
        msg = f"Missing column(s): {list(self.missing)}"
        if self.available is not None:
            msg += f". Available: {list(self.available)}"
        super().__init__(msg)


class DuplicateTermError(ValidationError):
    """A term set lists the same term more than once."""

    def __init__(self, term_name: str):
        super().__init__(f"Duplicate term in term set: {term_name!r}")
        self.term_name = term_name


class NumericalError(PyAirRegError):
    """Numerical computation failed."""
    pass


class DegenerateDesignError(NumericalError):
    """
    Design matrix is rank deficient or underdetermined.

    Attributes
    ----------
    rank : int or None
        Numerical rank found by the pivoted QR (None if not computed)
    expected_rank : int
        Number of design columns, intercept included
    n_obs : int
        Number of rows in the design
    """

    def __init__(
        self,
        message: str,
        rank: Optional[int] = None,
        expected_rank: Optional[int] = None,
        n_obs: Optional[int] = None,
    ):
        super().__init__(message)
        self.rank = rank
        self.expected_rank = expected_rank
        self.n_obs = n_obs


__all__ = [
    "PyAirRegError",
    "ValidationError",
    "InvalidFoldCountError",
    "InvalidConfidenceLevelError",
    "MissingColumnError",
    "DuplicateTermError",
    "NumericalError",
    "DegenerateDesignError",
]
