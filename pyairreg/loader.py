"""
Reader for the Beijing PRSA PM2.5 dataset (CSV or Excel).
"""

import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from ._utils import check_columns
from .config import AnalysisConfig
from .exceptions import ValidationError
from .table import ObservationTable

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {'.xlsx', '.xlsm'}


def read_frame(path: Union[str, Path]) -> pd.DataFrame:
    """Read a CSV or Excel file into a DataFrame, untouched."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    suffix = path.suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        return pd.read_excel(path, engine='openpyxl')
    if suffix == '.xls':
        raise ValidationError(f"legacy .xls workbooks are not supported, save {path.name} as .xlsx or .csv")
    return pd.read_csv(path)


def clean_prsa(df: pd.DataFrame, config: Optional[AnalysisConfig] = None) -> pd.DataFrame:
    """
    Apply the PRSA cleaning steps to a raw frame.

    Drops the row-number column, recodes the wind direction codes, keeps the
    modeled columns and drops rows with a missing value in any of them.
    """
    config = config or AnalysisConfig()
    df = df.drop(columns=[c for c in config.drop_columns if c in df.columns])
    check_columns(df.columns, config.modeled_columns())
    df = df.loc[:, list(config.modeled_columns())].copy()

    wind = config.wind_column
    if wind in df.columns:
        df[wind] = df[wind].replace(dict(config.wind_recode))

    n_before = len(df)
    df = df.dropna().reset_index(drop=True)
    dropped = n_before - len(df)
    if dropped:
        logger.info(f"Dropped {dropped} of {n_before} rows with missing values")
    if df.empty:
        raise ValidationError("no complete rows left after dropping missing values")
    return df


def load_prsa(
    path: Union[str, Path],
    config: Optional[AnalysisConfig] = None,
) -> ObservationTable:
    """
    Load, clean and type a PRSA data file.

    Parameters
    ----------
    path : str or Path
        CSV, or an .xlsx workbook (read by pandas with openpyxl)
    config : AnalysisConfig, optional
        Column roles and recodes; defaults to AnalysisConfig()

    Returns
    -------
    ObservationTable
        Numeric predictors and response as float64, categorical predictors
        with lexical levels
    """
    config = config or AnalysisConfig()
    raw = read_frame(path)
    logger.info(f"Read {len(raw)} rows x {raw.shape[1]} columns from {path}")
    df = clean_prsa(raw, config)
    table = ObservationTable.from_dataframe(df, categorical=config.categorical_predictors)
    logger.info(f"Loaded table: {table}")
    return table


__all__ = ["load_prsa", "clean_prsa", "read_frame"]
