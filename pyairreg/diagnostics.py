"""
Residual diagnostics for a fitted model.

Numeric counterparts of R's plot(fitted, resid), hist(resid), qqnorm and
qqline. Nothing is drawn here; the pairs and counts are what a plotting
layer needs.
"""

from dataclasses import dataclass
from typing import Dict

import numpy as np
import pandas as pd
from scipy import stats


@dataclass(frozen=True)
class ResidualDiagnostics:
    """
    Attributes
    ----------
    fitted_residual_pairs : DataFrame
        Columns 'fitted', 'residual', aligned with the training rows
    residual_summary : dict
        min, q1, median, q3, max, mean, std, skewness, kurtosis (excess)
    histogram_counts : ndarray
    histogram_edges : ndarray
        Sturges' rule bins, len(counts) + 1 edges
    quantile_pairs : DataFrame
        Columns 'theoretical', 'sample'; sorted residuals against normal
        quantiles at ppoints(n)
    qq_line : (intercept, slope)
        Line through the first and third quartile pairs
    """
    fitted_residual_pairs: pd.DataFrame
    residual_summary: Dict[str, float]
    histogram_counts: np.ndarray
    histogram_edges: np.ndarray
    quantile_pairs: pd.DataFrame
    qq_line: tuple

    @property
    def histogram(self):
        return self.histogram_counts, self.histogram_edges


def ppoints(n: int) -> np.ndarray:
    """Probability points (i - a) / (n + 1 - 2a), a = 3/8 if n <= 10 else 1/2."""
    a = 3.0 / 8.0 if n <= 10 else 0.5
    return (np.arange(1, n + 1) - a) / (n + 1 - 2 * a)


def qq_line(sample: np.ndarray):
    """Intercept and slope of R's qqline for a normal reference."""
    y = np.quantile(sample, [0.25, 0.75])
    x = stats.norm.ppf([0.25, 0.75])
    slope = (y[1] - y[0]) / (x[1] - x[0])
    return float(y[0] - slope * x[0]), float(slope)


def diagnose(model) -> ResidualDiagnostics:
    """
    Residual diagnostics of a fitted LinearModel.

    Pure: the model is only read.
    """
    residuals = np.asarray(model.residuals, dtype=np.float64)
    n = len(residuals)

    pairs = pd.DataFrame({
        'fitted': np.asarray(model.fitted_values, dtype=np.float64),
        'residual': residuals,
    })

    q = np.quantile(residuals, [0.0, 0.25, 0.5, 0.75, 1.0])
    summary = {
        'min': float(q[0]),
        'q1': float(q[1]),
        'median': float(q[2]),
        'q3': float(q[3]),
        'max': float(q[4]),
        'mean': float(np.mean(residuals)),
        'std': float(np.std(residuals, ddof=1)) if n > 1 else np.nan,
        'skewness': float(stats.skew(residuals)),
        'kurtosis': float(stats.kurtosis(residuals)),
    }

    counts, edges = np.histogram(residuals, bins='sturges')

    theoretical = stats.norm.ppf(ppoints(n))
    quantiles = pd.DataFrame({
        'theoretical': theoretical,
        'sample': np.sort(residuals),
    })

    return ResidualDiagnostics(
        fitted_residual_pairs=pairs,
        residual_summary=summary,
        histogram_counts=counts,
        histogram_edges=edges,
        quantile_pairs=quantiles,
        qq_line=qq_line(residuals),
    )


__all__ = ["ResidualDiagnostics", "diagnose", "ppoints", "qq_line"]
