"""
Analysis configuration for the PRSA PM2.5 workflow.
"""

from dataclasses import dataclass
from typing import Tuple

from .terms import Identity, Interaction, Power, Term


@dataclass(frozen=True)
class AnalysisConfig:
    # Schema
    response: str = "pm2.5"
    numeric_predictors: Tuple[str, ...] = (
        "year", "month", "day", "hour", "DEWP", "TEMP", "PRES", "Iws", "Is", "Ir",
    )
    categorical_predictors: Tuple[str, ...] = ("cbwd",)
    wind_column: str = "cbwd"
    wind_recode: Tuple[Tuple[str, str], ...] = (("cv", "SW"),)  # calm/variable -> SW
    drop_columns: Tuple[str, ...] = ("No",)

    # Validation
    cv_folds: int = 10
    seed: int = 12
    confidence_level: float = 0.95

    # Selection
    subset_max_size: int = 8
    max_combinations: int = 5000
    stepwise_penalty: float = 2.0  # 2 = AIC

    # Augmentation rounds
    interaction_anchor: str = "month"

    # Prediction grid for the single-predictor model response ~ grid_column
    grid_column: str = "Iws"
    grid_values: Tuple[float, ...] = (10.0, 20.0, 30.0)

    def predictors(self) -> Tuple[str, ...]:
        return self.numeric_predictors + self.categorical_predictors

    def modeled_columns(self) -> Tuple[str, ...]:
        return (self.response,) + self.predictors()

    def base_terms(self) -> Tuple[Term, ...]:
        return tuple(Identity(c) for c in self.predictors())

    def polynomial_terms(self) -> Tuple[Term, ...]:
        """Square of every numeric predictor."""
        return tuple(Power(c, 2) for c in self.numeric_predictors)

    def interaction_terms(self) -> Tuple[Term, ...]:
        """Anchor column crossed with every other predictor."""
        return tuple(
            Interaction(self.interaction_anchor, c)
            for c in self.predictors()
            if c != self.interaction_anchor
        )


__all__ = ["AnalysisConfig"]
