"""
Test PRSA file loading and cleaning.
"""

import logging

import pytest
import numpy as np

from pyairreg.config import AnalysisConfig
from pyairreg.exceptions import MissingColumnError, ValidationError
from pyairreg.loader import clean_prsa, load_prsa


def test_clean_prsa(prsa_frame):
    df = clean_prsa(prsa_frame)

    assert 'No' not in df.columns
    assert 'cv' not in set(df['cbwd'])
    assert 'SW' in set(df['cbwd'])
    assert len(df) == len(prsa_frame) - 3
    assert not df.isna().any().any()


def test_clean_does_not_modify_input(prsa_frame):
    before = prsa_frame.copy()
    clean_prsa(prsa_frame)
    assert before.equals(prsa_frame)


def test_missing_modeled_column(prsa_frame):
    with pytest.raises(MissingColumnError) as excinfo:
        clean_prsa(prsa_frame.drop(columns=['Iws']))
    assert excinfo.value.missing == ('Iws',)


def test_load_csv(tmp_path, prsa_frame, caplog):
    path = tmp_path / "PRSA_data.csv"
    prsa_frame.to_csv(path, index=False)

    with caplog.at_level(logging.INFO, logger='pyairreg.loader'):
        table = load_prsa(path)

    assert table.n_rows == len(prsa_frame) - 3
    assert table.categorical_columns == ('cbwd',)
    assert table.levels('cbwd') == ('NE', 'NW', 'SE', 'SW')
    assert table.numeric('year').dtype == np.float64
    assert any('Dropped 3' in r.getMessage() for r in caplog.records)


def test_load_xlsx(tmp_path, prsa_frame):
    pytest.importorskip('openpyxl')
    path = tmp_path / "PRSA_data.xlsx"
    prsa_frame.to_excel(path, index=False)
    table = load_prsa(path)
    assert table.n_rows == len(prsa_frame) - 3


def test_custom_recode(tmp_path, prsa_frame):
    path = tmp_path / "data.csv"
    prsa_frame.to_csv(path, index=False)
    table = load_prsa(path, AnalysisConfig(wind_recode=()))
    assert 'cv' in table.levels('cbwd')


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_prsa(tmp_path / "nope.csv")


def test_legacy_xls_rejected(tmp_path):
    path = tmp_path / "PRSA_data.xls"
    path.write_bytes(b"\xd0\xcf\x11\xe0")
    with pytest.raises(ValidationError, match=r"\.xls"):
        load_prsa(path)
