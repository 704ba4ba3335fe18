"""Pytest configuration and shared fixtures."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from crx_missing.config import COLUMNS
from crx_missing.load_data import load_credit

# (column(s), number of records) set to "?" in the synthetic file
MISSING_PATTERN = [
    (["V1"], 4),
    (["V2"], 4),
    (["V4", "V5"], 3),
    (["V6", "V7"], 3),
    (["V14"], 4),
]


def make_crx_frame(n: int = 300, seed: int = 0) -> pd.DataFrame:
    """
    Raw-text table shaped like crx.data: 16 columns, '+'/'-' response in V16,
    '?' for missing. V9 carries most of the signal, V11 and V8 some.
    """
    rng = np.random.RandomState(seed)
    v9 = rng.choice(["t", "f"], size=n, p=[0.5, 0.5])
    v11 = rng.poisson(2.5, size=n)
    v8 = np.round(rng.gamma(1.5, 1.5, size=n), 3)
    score = np.where(v9 == "t", 2.0, -2.0) + 0.25 * (v11 - 2.5) + 0.2 * (v8 - 2.25)
    prob = 1.0 / (1.0 + np.exp(-score))
    v16 = np.where(rng.uniform(size=n) < prob, "+", "-")

    v4 = rng.choice(["u", "y", "l"], size=n, p=[0.75, 0.23, 0.02])
    v5 = np.array([{"u": "g", "y": "p", "l": "gg"}[x] for x in v4])
    df = pd.DataFrame({
        "V1": rng.choice(["a", "b"], size=n, p=[0.3, 0.7]),
        "V2": [f"{x:.2f}" for x in rng.uniform(15, 70, size=n)],
        "V3": [f"{x:.3f}" for x in rng.gamma(1.5, 3.0, size=n)],
        "V4": v4,
        "V5": v5,
        "V6": rng.choice(["c", "q", "w", "i", "aa", "ff", "k"], size=n),
        "V7": rng.choice(["v", "h", "bb", "ff"], size=n, p=[0.6, 0.2, 0.1, 0.1]),
        "V8": [f"{x:.3f}" for x in v8],
        "V9": v9,
        "V10": rng.choice(["t", "f"], size=n),
        "V11": [str(x) for x in v11],
        "V12": rng.choice(["t", "f"], size=n),
        "V13": rng.choice(["g", "s", "p"], size=n, p=[0.9, 0.08, 0.02]),
        "V14": [f"{x:05d}" for x in rng.randint(0, 1000, size=n)],
        "V15": [str(x) for x in rng.randint(0, 5000, size=n)],
        "V16": v16,
    }, columns=COLUMNS)

    rows = rng.permutation(n)
    start = 0
    for cols, count in MISSING_PATTERN:
        for r in rows[start:start + count]:
            df.loc[r, cols] = "?"
        start += count
    return df


def write_crx(df: pd.DataFrame, path) -> str:
    df.to_csv(path, header=False, index=False)
    return str(path)


@pytest.fixture
def crx_raw():
    return make_crx_frame()


@pytest.fixture
def crx_path(tmp_path, crx_raw):
    return write_crx(crx_raw, tmp_path / "crx.data")


@pytest.fixture
def crx_table(crx_path):
    return load_credit(crx_path)


@pytest.fixture
def n_missing_cells():
    return sum(len(cols) * count for cols, count in MISSING_PATTERN)


@pytest.fixture
def n_incomplete_rows():
    return sum(count for _, count in MISSING_PATTERN)
