"""
PyAirReg: OLS modeling of hourly PM2.5 air-quality data with R-compatible numerics.

Copyright (C) 2024 SGCX
Licensed under GPL-3.0
"""

__version__ = "0.1.0"

# Import main user-facing API
from .lm import lm, fit, LinearModel
from .table import ObservationTable
from .terms import Identity, Power, Interaction, parse_terms, expand_universe
from .crossval import cross_validate, make_folds, CrossValidationResult
from .stepwise import select, TraceStep
from .subsets import best_subsets, SubsetResult
from .diagnostics import diagnose, ResidualDiagnostics
from .prediction import predict
from .config import AnalysisConfig

# Import backend utilities (for advanced users)
from ._backends import get_backend, list_available_backends

__all__ = [
    'lm',
    'fit',
    'LinearModel',
    'ObservationTable',
    'Identity',
    'Power',
    'Interaction',
    'parse_terms',
    'expand_universe',
    'cross_validate',
    'make_folds',
    'CrossValidationResult',
    'select',
    'TraceStep',
    'best_subsets',
    'SubsetResult',
    'diagnose',
    'ResidualDiagnostics',
    'predict',
    'AnalysisConfig',
    'get_backend',
    'list_available_backends',
]
