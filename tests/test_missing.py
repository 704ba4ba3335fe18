import os

import numpy as np
import pandas as pd
import pytest

from crx_missing.missing import (co_missing_groups, heuristic_missingness_assessment, incomplete_vs_class_pvalue,
                                 missing_by_class, missing_table, missingness_profile, save_missing_report)


@pytest.fixture
def small():
    return pd.DataFrame({
        "A": [1.0, np.nan, 3.0, np.nan],
        "B": ["x", np.nan, "y", "z"],
        "C": [np.nan, 1.0, 2.0, np.nan],
        "V16": ["+", "+", "-", "-"],
    })


def test_missing_table(small):
    t = missing_table(small)
    assert t["column"].tolist() == ["A", "C", "B", "V16"]
    assert t.set_index("column")["missing_count"].to_dict() == {"A": 2, "C": 2, "B": 1, "V16": 0}
    assert t.set_index("column").loc["B", "missing_percent"] == 25.0


def test_missing_by_class(small):
    t = missing_by_class(small, target="V16").set_index(["column", "class"])
    assert "V16" not in t.index.get_level_values("column")
    assert t.loc[("A", "+"), "missing_percent"] == 50.0
    assert t.loc[("B", "+"), "missing_percent"] == 50.0
    assert t.loc[("B", "-"), "missing_percent"] == 0.0
    assert t.loc[("C", "-"), "n_class"] == 2


def test_missing_by_class_requires_target(small):
    with pytest.raises(KeyError):
        missing_by_class(small, target="nope")


def test_co_missing_groups_exact_sets(small):
    g = co_missing_groups(small)
    assert g["columns"].tolist() == [("A", "B"), ("A", "C"), ("C",)]
    assert g["label"].tolist() == ["A & B", "A & C", "C"]
    assert g["count"].sum() == 3  # one record is complete


def test_co_missing_groups_sorted_by_count():
    df = pd.DataFrame({
        "A": [np.nan, np.nan, np.nan, 1, 1],
        "B": [np.nan, 1, 1, np.nan, 1],
    })
    g = co_missing_groups(df)
    assert g["label"].tolist() == ["A", "A & B", "B"]
    assert g["count"].tolist() == [2, 1, 1]
    assert g["percent"].tolist() == [40.0, 20.0, 20.0]


def test_co_missing_groups_complete_table():
    g = co_missing_groups(pd.DataFrame({"A": [1, 2]}))
    assert g.empty


def test_profile_on_synthetic_table(crx_table, n_missing_cells, n_incomplete_rows):
    prof = missingness_profile(crx_table, target="V16")
    assert prof["n_incomplete_rows"] == n_incomplete_rows
    assert prof["overall"]["missing_count"].sum() == n_missing_cells
    assert prof["groups"]["count"].sum() == n_incomplete_rows
    assert ("V4", "V5") in prof["groups"]["columns"].tolist()
    expected = n_missing_cells / (crx_table.shape[0] * crx_table.shape[1]) * 100
    assert prof["overall_percent"] == pytest.approx(expected, abs=1e-3)


def test_save_missing_report(tmp_path, crx_table):
    paths = save_missing_report(missingness_profile(crx_table), str(tmp_path))
    for p in paths.values():
        assert os.path.isfile(p)
    saved = pd.read_csv(paths["csv"])
    assert len(saved) == crx_table.shape[1]


def test_assessment_without_missing():
    df = pd.DataFrame({"A": [1, 2], "V16": ["+", "-"]})
    assert heuristic_missingness_assessment(df) == "No missing values detected."


def test_assessment_low_missingness(crx_table):
    note = heuristic_missingness_assessment(crx_table, threshold_pct=5.0)
    assert note.startswith("Missing values present but all columns <= 5.0%")
    assert "Chi-square" in note


def test_pvalue(crx_table):
    p = incomplete_vs_class_pvalue(crx_table)
    assert 0.0 <= p <= 1.0
    assert incomplete_vs_class_pvalue(crx_table.dropna()) is None
