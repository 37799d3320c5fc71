"""
Shared fixtures: R's cars dataset and a synthetic PRSA-like table.
"""

import numpy as np
import pandas as pd
import pytest

from pyairreg.table import ObservationTable


# R: datasets::cars
CARS_SPEED = [4, 4, 7, 7, 8, 9, 10, 10, 10, 11, 11, 12, 12, 12, 12, 13, 13, 13, 13, 14,
              14, 14, 14, 15, 15, 15, 16, 16, 17, 17, 17, 18, 18, 18, 18, 19, 19, 19, 20, 20,
              20, 20, 20, 22, 23, 24, 24, 24, 24, 25]
CARS_DIST = [2, 10, 4, 22, 16, 10, 18, 26, 34, 17, 28, 14, 20, 24, 28, 26, 34, 34, 46, 26,
             36, 60, 80, 20, 26, 54, 32, 40, 32, 40, 50, 42, 56, 76, 84, 36, 46, 68, 32, 48,
             52, 56, 64, 66, 54, 70, 92, 93, 120, 85]


@pytest.fixture
def rng():
    return np.random.default_rng(12)


@pytest.fixture
def cars():
    return ObservationTable.from_dataframe(
        pd.DataFrame({'speed': CARS_SPEED, 'dist': CARS_DIST}).astype(float)
    )


def make_prsa_frame(n=240, seed=12):
    """Raw frame shaped like PRSA_data: row numbers, 'cv' wind codes, some NA."""
    rng = np.random.default_rng(seed)
    year = rng.integers(2010, 2015, n)
    month = rng.integers(1, 13, n)
    day = rng.integers(1, 29, n)
    hour = rng.integers(0, 24, n)
    dewp = rng.normal(2, 14, n).round()
    temp = rng.normal(12, 12, n).round()
    pres = rng.normal(1016, 10, n).round()
    iws = rng.gamma(1.5, 15, n).round(2)
    is_ = rng.poisson(0.3, n).astype(float)
    ir = rng.poisson(0.4, n).astype(float)
    cbwd = rng.choice(['NE', 'NW', 'SE', 'cv'], n)
    wind_effect = pd.Series(cbwd).map({'NE': -20.0, 'NW': -35.0, 'SE': 10.0, 'cv': 15.0}).to_numpy()
    pm25 = (
        90 + 4.0 * dewp - 5.5 * temp - 1.2 * (pres - 1016) - 0.8 * iws
        + 3.0 * month - 0.2 * month ** 2 + 0.05 * month * temp
        + wind_effect + rng.normal(0, 25, n)
    )
    df = pd.DataFrame({
        'No': np.arange(1, n + 1),
        'year': year,
        'month': month,
        'day': day,
        'hour': hour,
        'pm2.5': pm25.round(1),
        'DEWP': dewp,
        'TEMP': temp,
        'PRES': pres,
        'cbwd': cbwd,
        'Iws': iws,
        'Is': is_,
        'Ir': ir,
    })
    df.loc[[3, 50, 101], 'pm2.5'] = np.nan
    return df


@pytest.fixture
def prsa_frame():
    return make_prsa_frame()


@pytest.fixture
def prsa_table(prsa_frame):
    df = prsa_frame.drop(columns=['No']).dropna().reset_index(drop=True)
    df['cbwd'] = df['cbwd'].replace({'cv': 'SW'})
    return ObservationTable.from_dataframe(df, categorical=['cbwd'])
