"""
End-to-end PM2.5 analysis: screening, model rounds, validation, selection,
diagnostics and prediction, driven by an AnalysisConfig.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

import pandas as pd

from .config import AnalysisConfig
from .crossval import CrossValidationResult, cross_validate
from .diagnostics import ResidualDiagnostics, diagnose
from .lm import LinearModel, fit
from .prediction import predict
from .screening import choose_best, compare_augmentations, rank_correlations, screen_univariate
from .stepwise import TraceStep, select
from .subsets import SubsetResult, best_subsets
from .table import ObservationTable, as_table
from .terms import parse_term

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisReport:
    """Everything one run of `run_analysis` produces."""
    correlations: pd.Series
    univariate: pd.DataFrame
    single_model: LinearModel
    single_cv: CrossValidationResult
    full_model: LinearModel
    full_cv: CrossValidationResult
    polynomial_round: pd.DataFrame
    polynomial_model: LinearModel
    forward_model: LinearModel
    forward_trace: Tuple[TraceStep, ...]
    backward_model: LinearModel
    backward_trace: Tuple[TraceStep, ...]
    interaction_round: pd.DataFrame
    interaction_model: LinearModel
    subsets: Tuple[SubsetResult, ...]
    subset_cv: CrossValidationResult
    diagnostics: Dict[str, ResidualDiagnostics]
    grid_model: LinearModel
    grid_predictions: pd.DataFrame
    chosen_model: LinearModel

    @property
    def models(self) -> Dict[str, LinearModel]:
        return {
            'single': self.single_model,
            'full': self.full_model,
            'polynomial': self.polynomial_model,
            'interaction': self.interaction_model,
        }


def run_analysis(
    table: Union[ObservationTable, pd.DataFrame],
    config: Optional[AnalysisConfig] = None,
) -> AnalysisReport:
    """
    Run the full analysis on a cleaned table.

    Steps, in order:

    1. Correlation ranking of numeric columns against the response.
    2. One model per predictor; the best one (adjusted R²) is cross-validated.
    3. Model with every predictor, cross-validated.
    4. Polynomial round: the full model plus each square term; best kept.
    5. Forward stepwise from the polynomial model over the full model's
       terms plus every square term, and backward stepwise within the
       polynomial model's own terms.
    6. Interaction round: the polynomial model plus each interaction with
       the anchor column; best kept.
    7. Best subset over the predictors; the top subset is cross-validated.
    8. Residual diagnostics of the round winners.
    9. `response ~ grid_column` predictions with confidence intervals over
       the configured grid.

    The chosen model is the round winner with the highest adjusted R².
    """
    config = config or AnalysisConfig()
    table = as_table(table)
    response = config.response
    base = config.base_terms()

    def cv(terms) -> CrossValidationResult:
        return cross_validate(table, response, terms, k=config.cv_folds, seed=config.seed)

    correlations = rank_correlations(table, response)
    logger.info(f"Strongest correlated variable: {correlations.index[0]}")

    # Single-predictor round
    univariate = screen_univariate(table, response, base)
    single_terms = [parse_term(univariate.loc[0, 'term'])]
    single_model = fit(table, response, single_terms)
    single_cv = cv(single_terms)
    logger.info(f"Best single predictor: {single_model.formula}, CV {single_cv.rmse:.4f} RMSE")

    # All predictors
    full_model = fit(table, response, base)
    full_cv = cv(base)
    logger.info(f"Full model adjR2={full_model.adj_r_squared:.4f}, CV RMSE={full_cv.rmse:.4f}")

    # Polynomial round
    polynomial_round = compare_augmentations(table, response, base, config.polynomial_terms())
    poly_terms = base + (parse_term(polynomial_round.loc[0, 'term']),)
    polynomial_model = fit(table, response, poly_terms)
    logger.info(f"Polynomial round winner: {polynomial_model.formula}")

    # Stepwise on the polynomial model
    forward_model, forward_trace = select(
        table, response, poly_terms, base + config.polynomial_terms(),
        direction='forward', penalty=config.stepwise_penalty,
    )
    backward_model, backward_trace = select(
        table, response, poly_terms, poly_terms,
        direction='backward', penalty=config.stepwise_penalty,
    )
    logger.info(
        f"Stepwise: forward {len(forward_trace)} step(s), backward {len(backward_trace)} step(s)"
    )

    # Interaction round
    interaction_round = compare_augmentations(
        table, response, poly_terms, config.interaction_terms()
    )
    inter_terms = poly_terms + (parse_term(interaction_round.loc[0, 'term']),)
    interaction_model = fit(table, response, inter_terms)
    logger.info(f"Interaction round winner: {interaction_model.formula}")

    # Best subset
    max_size = min(config.subset_max_size, len(base))
    subsets = best_subsets(
        table, response, base, max_size=max_size, max_combinations=config.max_combinations
    )
    subset_cv = cv(subsets[0].terms)
    logger.info(
        f"Best subset: {subsets[0].formula(response)} adjR2={subsets[0].adj_r_squared:.4f}"
    )

    models = {
        'single': single_model,
        'full': full_model,
        'polynomial': polynomial_model,
        'interaction': interaction_model,
    }
    diagnostics = {name: diagnose(model) for name, model in models.items()}

    # Prediction grid
    grid_model = fit(table, response, [config.grid_column])
    grid = pd.DataFrame({config.grid_column: list(config.grid_values)})
    grid_predictions = predict(
        grid_model, grid, interval_kind='confidence', confidence_level=config.confidence_level
    )
    grid_predictions.insert(0, config.grid_column, list(config.grid_values))

    chosen_model = choose_best(list(models.values()))
    logger.info(f"Chosen model: {chosen_model.formula}")

    return AnalysisReport(
        correlations=correlations,
        univariate=univariate,
        single_model=single_model,
        single_cv=single_cv,
        full_model=full_model,
        full_cv=full_cv,
        polynomial_round=polynomial_round,
        polynomial_model=polynomial_model,
        forward_model=forward_model,
        forward_trace=forward_trace,
        backward_model=backward_model,
        backward_trace=backward_trace,
        interaction_round=interaction_round,
        interaction_model=interaction_model,
        subsets=subsets,
        subset_cv=subset_cv,
        diagnostics=diagnostics,
        grid_model=grid_model,
        grid_predictions=grid_predictions,
        chosen_model=chosen_model,
    )


__all__ = ["AnalysisReport", "run_analysis"]
