import math
import os

import numpy as np
import pandas as pd
import pytest

from crx_missing.evaluate import confusion_table, derive_metrics, evaluate_all, evaluate_model, save_evaluation
from crx_missing.load_data import complete_cases
from crx_missing.tree_model import TreeModel


@pytest.fixture
def model(crx_table):
    complete = crx_table.dropna()
    return TreeModel(seed=42).fit(complete.drop(columns=["V16"]), complete["V16"])


def test_confusion_table_orientation():
    y_true = ["-", "-", "-", "+", "+"]
    y_pred = ["-", "+", "-", "+", "-"]
    cm = confusion_table(y_true, y_pred, positive="-", negative="+")
    assert cm.index.tolist() == ["-", "+"]
    assert cm.columns.tolist() == ["-", "+"]
    assert cm.loc["-", "-"] == 2
    assert cm.loc["-", "+"] == 1
    assert cm.loc["+", "-"] == 1
    assert cm.loc["+", "+"] == 1
    assert cm.values.sum() == 5


def test_derive_metrics():
    cm = confusion_table(["-", "-", "-", "+", "+"], ["-", "+", "-", "+", "-"], positive="-", negative="+")
    m = derive_metrics(cm, positive="-")
    assert m["accuracy"] == pytest.approx(3 / 5)
    assert m["sensitivity"] == pytest.approx(2 / 3)
    assert m["specificity"] == pytest.approx(1 / 2)
    # swapping the positive class swaps the two rates
    m2 = derive_metrics(cm, positive="+")
    assert m2["sensitivity"] == pytest.approx(m["specificity"])
    assert m2["specificity"] == pytest.approx(m["sensitivity"])


def test_rates_undefined_without_class_members():
    cm = confusion_table(["+", "+"], ["+", "-"], positive="-", negative="+")
    m = derive_metrics(cm, positive="-")
    assert math.isnan(m["sensitivity"])
    assert m["specificity"] == pytest.approx(0.5)


def test_unknown_labels_rejected():
    with pytest.raises(ValueError):
        confusion_table(["+", "x"], ["+", "+"], positive="-", negative="+")


def test_evaluate_model_conserves_records(model, crx_table):
    res = evaluate_model(model, crx_table, target="V16", positive="-", model_name="m", test_name="full")
    assert int(res["confusion"].values.sum()) == len(crx_table)
    assert res["n_test"] == len(crx_table)
    assert 0.0 <= res["accuracy"] <= 1.0
    assert res["positive"] == "-"


def test_evaluate_model_unknown_positive(model, crx_table):
    with pytest.raises(ValueError):
        evaluate_model(model, crx_table, target="V16", positive="yes")


def test_evaluate_all_and_save(tmp_path, model, crx_table):
    other = TreeModel(seed=1).fit(crx_table.dropna().drop(columns=["V16"]), crx_table.dropna()["V16"])
    tests = {"full": crx_table, "complete": complete_cases(crx_table)}
    results, summary = evaluate_all({"a": model, "b": other}, tests, target="V16", positive="-")
    assert len(results) == 4
    assert summary[["model", "test_set"]].apply(tuple, axis=1).tolist() == [
        ("a", "full"), ("a", "complete"), ("b", "full"), ("b", "complete")
    ]
    for r in results:
        assert int(r["confusion"].values.sum()) == len(tests[r["test_set"]])

    paths = save_evaluation(results, summary, str(tmp_path / "results"), str(tmp_path / "figs"))
    saved = pd.read_csv(paths["metrics"])
    assert len(saved) == 4
    assert len(paths["confusion_png"]) == 4
    assert all(os.path.isfile(p) for p in paths["confusion_png"])
    assert np.isclose(saved["accuracy"].values, summary["accuracy"].values).all()
