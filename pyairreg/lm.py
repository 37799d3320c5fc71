"""
Linear regression with R-style interface and output.

This is the user-facing API that statisticians actually use.
"""

import numpy as np
import pandas as pd
from typing import Dict, Optional, Sequence, Tuple, Union
from dataclasses import dataclass
from scipy import stats

from ._backends import BackendBase, get_backend
from ._utils import readonly
from .design import Design, build_design
from .table import ObservationTable, as_table
from .terms import Term, TermLike, formula


@dataclass(frozen=True, eq=False)
class LinearModel:
    """
    Fitted ordinary-least-squares model (like the object R's lm() returns).

    Immutable: created by one call to `fit` and never modified. The fitted
    values and residuals are aligned index-for-index with the training rows.

    Examples
    --------
    >>> from pyairreg import lm
    >>>
    >>> model = lm(y='pm2.5', X='DEWP + TEMP + cbwd', data=table)
    >>> model.summary()          # Prints a table like R
    >>>
    >>> model.coef               # Named coefficients
    >>> model.pvalues            # P-values for each coefficient
    >>> model.conf_int()         # Confidence intervals
    >>> model.predict(new_rows, interval='prediction')
    """
    response: str
    terms: Tuple[Term, ...]
    var_names: Tuple[str, ...]
    coefficients: np.ndarray
    std_errors: np.ndarray
    t_values: np.ndarray
    pvalues: np.ndarray
    sigma: float
    df_residual: int
    rank: int
    n_obs: int
    rss: float
    tss: float
    r_squared: float
    adj_r_squared: float
    f_statistic: float
    f_pvalue: float
    fitted_values: np.ndarray
    residuals: np.ndarray
    cov_unscaled: np.ndarray
    condition_number: float
    levels: Dict[str, Tuple[str, ...]]
    backend_name: str

    @property
    def coef(self):
        """Named coefficients (pandas Series)."""
        return pd.Series(self.coefficients, index=list(self.var_names))

    @property
    def vcov(self) -> np.ndarray:
        """Variance-covariance matrix of coefficients, sigma^2 (X'X)^-1."""
        return self.sigma ** 2 * self.cov_unscaled

    @property
    def formula(self) -> str:
        return formula(self.response, self.terms)

    @property
    def base_columns(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(c for t in self.terms for c in t.columns))

    def information_criterion(self, penalty: float = 2.0) -> float:
        """
        R's extractAIC for lm: n log(RSS/n) + penalty * edf.

        penalty=2 gives AIC, penalty=log(n) gives BIC. Only differences
        between models fit to the same rows are meaningful.
        """
        with np.errstate(divide='ignore'):
            return float(self.n_obs * np.log(self.rss / self.n_obs) + penalty * self.rank)

    @property
    def aic(self) -> float:
        return self.information_criterion(2.0)

    @property
    def bic(self) -> float:
        return self.information_criterion(np.log(self.n_obs))

    def conf_int(self, alpha: float = 0.05):
        """
        Confidence intervals for coefficients.

        Parameters
        ----------
        alpha : float
            Significance level (default: 0.05 for 95% CI)

        Returns
        -------
        DataFrame
            Confidence intervals with columns 'lower' and 'upper'
        """
        if not 0 < alpha < 1:
            raise ValueError(f"alpha must lie strictly between 0 and 1, got {alpha!r}")
        t_crit = stats.t.ppf(1 - alpha / 2, self.df_residual) if self.df_residual > 0 else np.nan
        lower = self.coefficients - t_crit * self.std_errors
        upper = self.coefficients + t_crit * self.std_errors

        return pd.DataFrame({
            'lower': lower,
            'upper': upper
        }, index=list(self.var_names))

    def coefficient_table(self) -> pd.DataFrame:
        """Estimate / Std. Error / t value / Pr(>|t|) per coefficient."""
        return pd.DataFrame({
            'Estimate': self.coefficients,
            'Std. Error': self.std_errors,
            't value': self.t_values,
            'Pr(>|t|)': self.pvalues,
        }, index=list(self.var_names))

    def format_summary(self) -> str:
        """R-style summary (summary.lm) as text."""
        lines = [
            "",
            "=" * 80,
            "LINEAR REGRESSION RESULTS",
            "=" * 80,
            "",
            f"Formula: {self.formula}",
            f"Number of observations: {self.n_obs}",
            f"Degrees of freedom: {self.df_residual} (residual), {self.rank - 1} (model)",
            "",
        ]

        # Residuals
        q = np.quantile(self.residuals, [0.0, 0.25, 0.5, 0.75, 1.0])
        lines.append("Residuals:")
        for label, value in zip(('Min:', '1Q:', 'Median:', '3Q:', 'Max:'), q):
            lines.append(f"  {label:<8}{value:>10.4f}")
        lines.append("")

        # Coefficients table
        lines.append("Coefficients:")
        lines.append("-" * 80)
        lines.append(f"{'Variable':<20} {'Estimate':>12} {'Std. Error':>12} {'t value':>10} {'Pr(>|t|)':>12}")
        lines.append("-" * 80)

        for i, name in enumerate(self.var_names):
            p = self.pvalues[i]
            if np.isnan(p):
                sig = ''
                p_str = 'NA'
            else:
                sig = _significance_stars(p)
                p_str = f"{p:.4f}" if p >= 0.0001 else "<.0001"

            lines.append(
                f"{name:<20} {self.coefficients[i]:>12.4f} {self.std_errors[i]:>12.4f} "
                f"{self.t_values[i]:>10.3f} {p_str:>12}{sig}"
            )

        lines.append("-" * 80)
        lines.append("Signif. codes:  0 '***' 0.001 '**' 0.01 '*' 0.05 '.' 0.1 ' ' 1")
        lines.append("")

        # Model fit statistics
        lines.append(f"Residual standard error: {self.sigma:.4f} on {self.df_residual} degrees of freedom")
        lines.append(f"Multiple R-squared:      {self.r_squared:.4f}")
        lines.append(f"Adjusted R-squared:      {self.adj_r_squared:.4f}")

        if not np.isnan(self.f_statistic):
            f_pval_str = f"{self.f_pvalue:.4e}" if self.f_pvalue >= 2.2e-16 else "< 2.2e-16"
            lines.append(
                f"F-statistic:             {self.f_statistic:.2f} on {self.rank - 1} and "
                f"{self.df_residual} DF, p-value: {f_pval_str}"
            )
        lines.append(f"AIC (extractAIC):        {self.aic:.2f}")
        lines.append(f"Condition number:        {self.condition_number:.3g}")

        lines.append("")
        lines.append(f"Backend: {self.backend_name}")
        lines.append("=" * 80)
        lines.append("")
        return "\n".join(lines)

    def summary(self):
        """
        Print summary of regression results (like R's summary.lm).

        This is what statisticians actually want to see.
        """
        print(self.format_summary())

    def predict(
        self,
        newdata,
        interval: Optional[str] = None,
        level: float = 0.95,
    ) -> Union[np.ndarray, pd.DataFrame]:
        """
        Predict response for new data.

        Parameters
        ----------
        newdata : DataFrame, ObservationTable, mapping or list of mappings
            New rows; must supply every base column the model's terms read
        interval : {None, 'confidence', 'prediction'}
            None returns point predictions only (array). Otherwise a
            DataFrame with columns 'fit', 'lower', 'upper'.
        level : float
            Confidence level in (0, 1)

        Returns
        -------
        array or DataFrame
        """
        from .prediction import predict, point_predictions

        if interval is None:
            return point_predictions(self, newdata)
        return predict(self, newdata, interval_kind=interval, confidence_level=level)

    def __repr__(self):
        return (
            f"LinearModel({self.formula!r}, n={self.n_obs}, p={self.rank - 1}, "
            f"R²={self.r_squared:.3f})"
        )


def _significance_stars(p: float) -> str:
    if p < 0.001:
        return ' ***'
    elif p < 0.01:
        return ' **'
    elif p < 0.05:
        return ' *'
    elif p < 0.1:
        return ' .'
    return ''


def fit_design(
    design: Design,
    backend: Union[str, BackendBase] = 'auto',
    tol: Optional[float] = None,
) -> LinearModel:
    """
    Fit an already-evaluated design.

    Shared solve path for `fit` and the searches that reuse one design
    (best subset), so every caller gets the same rank checks and errors.
    """
    backend = get_backend(backend)
    result = backend.fit_linear_model(design.X, design.y, tol=tol, names=design.labels)

    y = design.y
    n = design.n
    df = result.df_residual
    residuals = result.residuals
    fitted = result.fitted_values

    # Sums of squares (summary.lm: r.squared = mss / (mss + rss))
    rss = float(residuals @ residuals)
    tss = float(np.sum((y - np.mean(y)) ** 2))
    mss = float(np.sum((fitted - np.mean(fitted)) ** 2))
    r_squared = mss / (mss + rss) if (mss + rss) > 0 else 0.0

    # Residual standard error and coefficient inference
    if df > 0:
        sigma = float(np.sqrt(rss / df))
        adj_r_squared = 1 - (1 - r_squared) * (n - 1) / df
        std_errors = sigma * np.sqrt(np.diag(result.cov_unscaled))
        with np.errstate(divide='ignore', invalid='ignore'):
            t_values = result.coef / std_errors
        pvalues = 2 * stats.t.sf(np.abs(t_values), df)
    else:
        sigma = np.nan
        adj_r_squared = np.nan
        std_errors = np.full(result.coef.shape, np.nan)
        t_values = np.full(result.coef.shape, np.nan)
        pvalues = np.full(result.coef.shape, np.nan)

    # F-statistic
    p = result.rank - 1  # Exclude intercept
    if p > 0 and df > 0:
        if rss > 0:
            f_statistic = (mss / p) / (rss / df)
            f_pvalue = float(stats.f.sf(f_statistic, p, df))
        else:
            f_statistic = np.inf
            f_pvalue = 0.0
    else:
        f_statistic = np.nan
        f_pvalue = np.nan

    return LinearModel(
        response=design.response,
        terms=design.terms,
        var_names=('(Intercept)',) + tuple(design.labels),
        coefficients=readonly(result.coef),
        std_errors=readonly(std_errors),
        t_values=readonly(t_values),
        pvalues=readonly(pvalues),
        sigma=sigma,
        df_residual=df,
        rank=result.rank,
        n_obs=n,
        rss=rss,
        tss=tss,
        r_squared=r_squared,
        adj_r_squared=adj_r_squared,
        f_statistic=f_statistic,
        f_pvalue=f_pvalue,
        fitted_values=readonly(fitted),
        residuals=readonly(residuals),
        cov_unscaled=readonly(result.cov_unscaled),
        condition_number=result.condition_number,
        levels=dict(design.levels),
        backend_name=backend.name,
    )


def fit(
    table: Union[ObservationTable, pd.DataFrame],
    response: str,
    terms: Union[str, Sequence[TermLike]] = (),
    backend: Union[str, BackendBase] = 'auto',
    tol: Optional[float] = None,
) -> LinearModel:
    """
    Fit `response ~ terms` by ordinary least squares.

    Parameters
    ----------
    table : ObservationTable or DataFrame
        Training rows
    response : str
        Numeric response column
    terms : str or sequence of Term/str
        Predictor terms; a string is parsed as a formula right-hand side,
        e.g. 'year + I(month^2) + month:TEMP + cbwd'. Empty means
        intercept only.
    backend : str
        Computational backend: 'auto' or 'cpu'
    tol : float, optional
        Relative rank tolerance (default 1e-7, as in R)

    Returns
    -------
    LinearModel

    Raises
    ------
    MissingColumnError
        A referenced column is not in the table
    DuplicateTermError
        A term is listed twice
    DegenerateDesignError
        Fewer rows than coefficients, or a rank-deficient design
    """
    design = build_design(as_table(table), response, terms)
    return fit_design(design, backend=backend, tol=tol)


def lm(y, X='', data=None, **kwargs):
    """
    Fit linear regression model (convenience function).

    This is the main function statisticians should use.
    It's designed to feel like R's lm() but with Python/pandas.

    Parameters
    ----------
    y : str
        Response variable
    X : str or sequence of Term/str
        Predictor terms (formula right-hand side)
    data : ObservationTable or DataFrame
        Dataset
    **kwargs
        Additional arguments passed to `fit`

    Returns
    -------
    LinearModel
        Fitted model object

    Examples
    --------
    >>> model = lm(y='pm2.5', X='Iws', data=table)
    >>> model.summary()
    >>>
    >>> # Polynomial and interaction terms
    >>> model = lm('pm2.5', 'year + month + I(month^2) + month:TEMP + cbwd', data=table)
    """
    if data is None:
        raise ValueError("Must provide data")
    return fit(data, y, X, **kwargs)
