"""
Utility functions.
"""

import numpy as np
from typing import Iterable, Sequence

from .exceptions import ValidationError, MissingColumnError


def check_array(X, name='X', dtype=np.float64):
    """Validate 2-D numeric input."""
    X = np.asarray(X, dtype=dtype)
    if X.ndim != 2:
        raise ValidationError(f"{name} must be 2-dimensional, got shape {X.shape}")
    if not np.all(np.isfinite(X)):
        raise ValidationError(f"{name} contains NaN or Inf")
    return X


def check_vector(y, name='y', dtype=np.float64):
    """Validate 1-D numeric input."""
    y = np.asarray(y, dtype=dtype)
    if y.ndim != 1:
        raise ValidationError(f"{name} must be 1-dimensional, got shape {y.shape}")
    if not np.all(np.isfinite(y)):
        n_bad = int(np.sum(~np.isfinite(y)))
        raise ValidationError(f"{name} contains {n_bad} NaN or Inf value(s)")
    return y


def check_columns(available: Iterable[str], required: Sequence[str]) -> None:
    """Raise MissingColumnError listing every required name not in `available`."""
    available = list(available)
    present = set(available)
    missing = [c for c in dict.fromkeys(required) if c not in present]
    if missing:
        raise MissingColumnError(missing, available)


def readonly(a: np.ndarray) -> np.ndarray:
    """Return `a` with the writeable flag cleared."""
    a = np.asarray(a)
    a.setflags(write=False)
    return a
