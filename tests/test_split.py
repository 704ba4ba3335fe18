import numpy as np
import pandas as pd
import pytest

from crx_missing.split import class_proportions, save_split_summary, stratified_split


@pytest.fixture
def credit_shaped():
    # class counts of the Credit Approval data: 307 approved, 383 not approved
    labels = ["+"] * 307 + ["-"] * 383
    rng = np.random.RandomState(1)
    rng.shuffle(labels)
    return pd.DataFrame({"x": np.arange(690), "V16": labels})


def test_sizes_match_per_class_rounding(credit_shaped):
    s = stratified_split(credit_shaped, target="V16", train_prop=0.8, seed=42)
    assert len(s.train) == 552
    assert len(s.test) == 138
    assert (s.train["V16"] == "+").sum() == 246
    assert (s.train["V16"] == "-").sum() == 306


def test_disjoint_and_covering(credit_shaped):
    s = stratified_split(credit_shaped, target="V16", seed=3)
    train_ids, test_ids = set(s.train["x"]), set(s.test["x"])
    assert train_ids.isdisjoint(test_ids)
    assert train_ids | test_ids == set(credit_shaped["x"])
    assert set(s.train_idx) | set(s.test_idx) == set(range(len(credit_shaped)))


def test_class_proportions_preserved(crx_table):
    s = stratified_split(crx_table, target="V16", seed=42)
    source = crx_table["V16"].value_counts(normalize=True)
    for part in (s.train, s.test):
        props = part["V16"].value_counts(normalize=True)
        for cls in source.index:
            assert abs(props[cls] - source[cls]) <= 0.05


def test_deterministic_for_seed(crx_table):
    a = stratified_split(crx_table, target="V16", seed=7)
    b = stratified_split(crx_table, target="V16", seed=7)
    np.testing.assert_array_equal(a.train_idx, b.train_idx)
    np.testing.assert_array_equal(a.test_idx, b.test_idx)
    pd.testing.assert_frame_equal(a.train, b.train)
    c = stratified_split(crx_table, target="V16", seed=8)
    assert not np.array_equal(a.test_idx, c.test_idx)


def test_keeps_missing_values_and_index(crx_table):
    s = stratified_split(crx_table, target="V16", seed=42)
    assert s.train.isna().sum().sum() + s.test.isna().sum().sum() == crx_table.isna().sum().sum()
    pd.testing.assert_frame_equal(s.train, crx_table.iloc[s.train_idx])


@pytest.mark.parametrize("prop", [0.0, 1.0, -0.2, 1.5])
def test_invalid_proportion(credit_shaped, prop):
    with pytest.raises(ValueError):
        stratified_split(credit_shaped, target="V16", train_prop=prop)


def test_class_too_small():
    df = pd.DataFrame({"x": range(6), "V16": ["+"] * 5 + ["-"]})
    with pytest.raises(ValueError):
        stratified_split(df, target="V16")


def test_class_leaves_empty_side():
    # round(0.8 * 2) == 2 leaves no test record for "-"
    df = pd.DataFrame({"x": range(12), "V16": ["+"] * 10 + ["-"] * 2})
    with pytest.raises(ValueError):
        stratified_split(df, target="V16", train_prop=0.8)


def test_missing_target_rejected():
    df = pd.DataFrame({"x": range(6), "V16": ["+", "-", None, "+", "-", "+"]})
    with pytest.raises(ValueError):
        stratified_split(df, target="V16")


def test_class_proportions_and_summary(tmp_path, crx_table):
    s = stratified_split(crx_table, target="V16", seed=42)
    props = class_proportions({"source": crx_table, "train": s.train, "test": s.test}, target="V16")
    assert set(props["subset"]) == {"source", "train", "test"}
    for _, group in props.groupby("subset"):
        assert group["proportion"].sum() == pytest.approx(1.0)
    path = save_split_summary(s, str(tmp_path))
    assert (tmp_path / "train_idx.npy").exists()
    assert path.endswith("split_summary.json")
