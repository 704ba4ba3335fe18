"""
impute.py
Chained random-forest imputation with predictive mean matching.

Every column with missing values is modelled from all other columns with a
random forest; missing cells then take the observed value of a donor drawn at
random among the pmm_k observed rows whose predictions are closest. Iteration
stops when the mean out-of-bag error stops improving or after max_iter rounds.
"""

from typing import List

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype
from sklearn.ensemble import RandomForestClassifier, RandomForestRegressor

from .config import IMPUTE_MAX_ITER, IMPUTE_TREES, PMM_K, SEED


class ImputationError(RuntimeError):
    """Raised when imputation leaves missing values behind."""


def _design_matrix(frame: pd.DataFrame) -> np.ndarray:
    cols = []
    for c in frame.columns:
        s = frame[c]
        if is_numeric_dtype(s):
            cols.append(s.astype(float).values)
        else:
            cols.append(pd.Categorical(s.astype(object)).codes.astype(float))
    if not cols:
        return np.zeros((len(frame), 0), dtype=float)
    return np.column_stack(cols)


def _visit_order(mask: pd.DataFrame) -> List[str]:
    counts = mask.sum()
    cols = [c for c in mask.columns if counts[c] > 0]
    return sorted(cols, key=lambda c: counts[c])


def _pmm_draw(pred_obs: np.ndarray, pred_mis: np.ndarray, y_obs: np.ndarray, k: int,
              rng: np.random.RandomState) -> np.ndarray:
    """For each missing row pick one of the k observed rows with the nearest prediction."""
    if pred_obs.ndim == 1:
        pred_obs = pred_obs.reshape(-1, 1)
        pred_mis = pred_mis.reshape(-1, 1)
    k = min(k, len(y_obs))
    out = np.empty(len(pred_mis), dtype=object)
    for i in range(len(pred_mis)):
        dists = np.linalg.norm(pred_obs - pred_mis[i], axis=1)
        donors = np.argsort(dists, kind="stable")[:k]
        out[i] = y_obs[donors[rng.randint(len(donors))]]
    return out


def _impute_column(data: pd.DataFrame, col: str, missing: np.ndarray, numeric: bool, pmm_k: int,
                   n_trees: int, rng: np.random.RandomState):
    feats = [c for c in data.columns if c != col]
    X = _design_matrix(data[feats])
    observed = ~missing
    y_obs = data.loc[observed, col].to_numpy()

    forest_cls = RandomForestRegressor if numeric else RandomForestClassifier
    forest = forest_cls(n_estimators=n_trees, oob_score=True, random_state=rng.randint(np.iinfo(np.int32).max), n_jobs=-1)
    forest.fit(X[observed], y_obs)
    oob_error = 1.0 - forest.oob_score_

    X_mis = X[missing]
    if pmm_k == 0:
        filled = forest.predict(X_mis)
    elif numeric:
        filled = _pmm_draw(forest.predict(X[observed]), forest.predict(X_mis), y_obs, pmm_k, rng)
    else:
        filled = _pmm_draw(forest.predict_proba(X[observed]), forest.predict_proba(X_mis), y_obs, pmm_k, rng)

    if numeric:
        filled = np.asarray(filled, dtype=float)
    return filled, oob_error


def rf_pmm_impute(df: pd.DataFrame, pmm_k: int = PMM_K, seed: int = SEED, max_iter: int = IMPUTE_MAX_ITER,
                  n_trees: int = IMPUTE_TREES, verbose: bool = True) -> pd.DataFrame:
    """
    Fill every missing cell of df. All columns (including the response, if
    present) serve as features for each other. Returns a new DataFrame with the
    same index, columns and dtypes family; raises ImputationError if any cell
    is still missing at the end.
    """
    if pmm_k < 0:
        raise ValueError(f"pmm_k must be >= 0, got {pmm_k}")
    if max_iter < 1:
        raise ValueError(f"max_iter must be >= 1, got {max_iter}")

    data = df.copy()
    mask = data.isna()
    order = _visit_order(mask)
    if not order:
        return data

    empty = [c for c in order if mask[c].all()]
    if empty:
        raise ValueError(f"Columns with no observed values cannot be imputed: {empty}")

    rng = np.random.RandomState(seed)
    numeric = {c: is_numeric_dtype(data[c]) for c in order}

    # start from random draws of each column's own observed values
    for c in order:
        miss = mask[c].values
        observed_vals = data.loc[~miss, c].to_numpy()
        data.loc[miss, c] = observed_vals[rng.randint(len(observed_vals), size=int(miss.sum()))]

    best = data.copy()
    best_error = np.inf
    for it in range(1, max_iter + 1):
        errors = []
        for c in order:
            filled, err = _impute_column(data, c, mask[c].values, numeric[c], pmm_k, n_trees, rng)
            data.loc[mask[c].values, c] = filled
            errors.append(err)
        error = float(np.nanmean(errors))
        if verbose:
            print(f"  imputation iteration {it}: mean OOB error = {error:.4f}")
        if error >= best_error:
            if verbose:
                print(f"  OOB error stopped improving; keeping iteration {it - 1}")
            break
        best_error = error
        best = data.copy()

    remaining = int(best.isna().sum().sum())
    if remaining:
        raise ImputationError(f"Imputation left {remaining} missing values in columns {best.columns[best.isna().any()].tolist()}")
    return best
