"""
Observation table: an immutable, schema-typed in-memory dataset.

Columns are typed once, at construction, as numeric or categorical. Categorical
columns get an explicit level order (lexical unless declared) that every later
step reuses, so indicator expansion is identical for the full table, for any
row subset taken from it, and for new rows scored against a fitted model.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ._utils import check_columns, readonly
from .exceptions import ValidationError


class ObservationTable:
    """
    Immutable table of observations with a fixed column schema.

    Construct with `from_dataframe` or `from_records`; the constructor itself
    assumes an already-typed frame.

    Examples
    --------
    >>> table = ObservationTable.from_dataframe(df, categorical=['cbwd'])
    >>> table.levels('cbwd')
    ('NE', 'NW', 'SE', 'SW')
    >>> train = table.take([0, 2, 5])
    """

    def __init__(self, frame: pd.DataFrame, levels: Mapping[str, Tuple[str, ...]]):
        self._frame = frame
        self._levels = dict(levels)

    # === Construction ===

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        categorical: Optional[Iterable[str]] = None,
        levels: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> 'ObservationTable':
        """
        Type a DataFrame into an ObservationTable.

        Parameters
        ----------
        df : DataFrame
            Source data; it is copied, never modified.
        categorical : iterable of str, optional
            Columns to treat as categorical. If None, object, string,
            category and bool columns are categorical and the rest numeric.
        levels : mapping, optional
            Declared level order per categorical column. Values outside the
            declared levels raise ValidationError. Undeclared categorical
            columns get their observed levels in lexical order.
        """
        if not isinstance(df, pd.DataFrame):
            raise ValidationError(f"expected a pandas DataFrame, got {type(df).__name__}")
        if df.columns.has_duplicates:
            dupes = df.columns[df.columns.duplicated()].tolist()
            raise ValidationError(f"duplicate column names: {dupes}")

        levels = dict(levels or {})
        if categorical is None:
            categorical = [
                c for c in df.columns
                if not pd.api.types.is_numeric_dtype(df[c])
                or pd.api.types.is_bool_dtype(df[c])
            ]
        categorical = set(categorical) | set(levels)
        check_columns(df.columns, sorted(categorical, key=str))

        columns = {}
        table_levels = {}
        for key in df.columns:
            series = df[key]
            name = str(key)
            if key in categorical:
                if series.isna().any():
                    raise ValidationError(
                        f"categorical column {name!r} has {int(series.isna().sum())} missing value(s)"
                    )
                values = series.astype(str)
                if key in levels:
                    declared = tuple(str(v) for v in levels[key])
                    unknown = sorted(set(values) - set(declared))
                    if unknown:
                        raise ValidationError(
                            f"column {name!r} has values outside the declared levels "
                            f"{list(declared)}: {unknown}"
                        )
                else:
                    declared = tuple(sorted(set(values)))
                columns[name] = pd.Categorical(values, categories=declared)
                table_levels[name] = declared
            else:
                try:
                    columns[name] = pd.to_numeric(series, errors='raise').astype(np.float64).to_numpy()
                except (ValueError, TypeError) as e:
                    raise ValidationError(f"column {name!r} is not numeric: {e}") from e

        frame = pd.DataFrame(columns, index=pd.RangeIndex(len(df)))
        return cls(frame, table_levels)

    @classmethod
    def from_records(
        cls,
        records: Union[Mapping, Sequence[Mapping]],
        categorical: Optional[Iterable[str]] = None,
        levels: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> 'ObservationTable':
        """Build a table from a mapping of columns or a sequence of row mappings."""
        if isinstance(records, Mapping):
            df = pd.DataFrame(dict(records))
        else:
            df = pd.DataFrame(list(records))
        return cls.from_dataframe(df, categorical=categorical, levels=levels)

    # === Schema ===

    @property
    def columns(self) -> Tuple[str, ...]:
        return tuple(self._frame.columns)

    @property
    def n_rows(self) -> int:
        return len(self._frame)

    def __len__(self) -> int:
        return self.n_rows

    def __contains__(self, name) -> bool:
        return name in self._frame.columns

    @property
    def numeric_columns(self) -> Tuple[str, ...]:
        return tuple(c for c in self._frame.columns if c not in self._levels)

    @property
    def categorical_columns(self) -> Tuple[str, ...]:
        return tuple(c for c in self._frame.columns if c in self._levels)

    @property
    def schema(self) -> Dict[str, Tuple[str, ...]]:
        """Level order of every categorical column."""
        return dict(self._levels)

    def is_categorical(self, name: str) -> bool:
        self.require([name])
        return name in self._levels

    def levels(self, name: str) -> Tuple[str, ...]:
        self.require([name])
        if name not in self._levels:
            raise ValidationError(f"column {name!r} is numeric and has no levels")
        return self._levels[name]

    def require(self, names: Sequence[str]) -> None:
        """Raise MissingColumnError unless every name is a column."""
        check_columns(self._frame.columns, names)

    # === Data access ===

    def column(self, name: str) -> np.ndarray:
        """Read-only copy of a column (float64, or str objects for categoricals)."""
        self.require([name])
        if name in self._levels:
            values = np.asarray(self._frame[name].astype(str), dtype=object)
        else:
            values = self._frame[name].to_numpy(dtype=np.float64, copy=True)
        return readonly(values)

    def numeric(self, name: str) -> np.ndarray:
        """Read-only float64 column; categorical columns are rejected."""
        if self.is_categorical(name):
            raise ValidationError(f"column {name!r} is categorical, expected numeric")
        return self.column(name)

    def indicators(self, name: str) -> Tuple[List[str], np.ndarray]:
        """
        Treatment-coded indicators for a categorical column.

        The first level is the reference and gets no column. Labels follow R:
        column name immediately followed by the level, e.g. 'cbwdNW'.
        """
        levels = self.levels(name)
        codes = self._frame[name].cat.codes.to_numpy()
        matrix = (codes[:, np.newaxis] == np.arange(1, len(levels))).astype(np.float64)
        labels = [f"{name}{level}" for level in levels[1:]]
        return labels, matrix

    def take(self, indices) -> 'ObservationTable':
        """Row subset in the given order, keeping the schema and level order."""
        idx = np.asarray(indices, dtype=np.intp)
        frame = self._frame.iloc[idx].reset_index(drop=True)
        return ObservationTable(frame, self._levels)

    def to_dataframe(self) -> pd.DataFrame:
        """Copy of the underlying data."""
        return self._frame.copy()

    def __repr__(self):
        return (
            f"ObservationTable(n_rows={self.n_rows}, "
            f"numeric={list(self.numeric_columns)}, "
            f"categorical={list(self.categorical_columns)})"
        )


def as_table(data, levels: Optional[Mapping[str, Sequence[str]]] = None) -> ObservationTable:
    """Coerce a DataFrame, mapping or record list to an ObservationTable."""
    if isinstance(data, ObservationTable):
        return data
    if isinstance(data, pd.DataFrame):
        return ObservationTable.from_dataframe(data, levels=levels)
    return ObservationTable.from_records(data, levels=levels)
