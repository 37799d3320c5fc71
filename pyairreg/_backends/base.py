"""
Abstract base classes for backends.

Defines the interface all backends must implement.
"""

from abc import ABC, abstractmethod
import numpy as np
from typing import Optional, Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class LinearModelResult:
    """Complete least-squares solution for one design."""
    coef: np.ndarray            # Intercept first, then design columns
    residuals: np.ndarray
    fitted_values: np.ndarray
    rank: int
    df_residual: int
    cov_unscaled: np.ndarray    # (X'X)^-1, intercept included
    condition_number: float     # 2-norm condition of the equilibrated R


class BackendBase(ABC):
    """Abstract base class for all backends."""

    name: str = "base"

    @abstractmethod
    def fit_linear_model(
        self,
        X: np.ndarray,
        y: np.ndarray,
        tol: Optional[float] = None,
        names: Optional[Sequence[str]] = None,
    ) -> LinearModelResult:
        """
        Fit linear model - complete computation.

        Parameters
        ----------
        X : ndarray, shape (n, p)
            Design matrix (WITHOUT intercept)
        y : ndarray, shape (n,)
            Response vector
        tol : float, optional
            Relative tolerance for rank determination
        names : sequence of str, optional
            Column labels of X, used in error messages

        Returns
        -------
        LinearModelResult

        Raises
        ------
        DegenerateDesignError
            Fewer rows than columns, or a rank-deficient design
        """
        pass

    @abstractmethod
    def get_device_info(self) -> dict:
        """Get backend information."""
        pass


class CPUBackend(BackendBase):
    """CPU backend base class (always FP64)."""
    pass
