from typing import Any, Dict, Optional

import pandas as pd

from .config import IMPUTE_MAX_ITER, IMPUTE_TREES, PMM_K, SEED, TARGET
from .impute import ImputationError, rf_pmm_impute
from .load_data import complete_cases
from .tree_model import TreeModel


def _fit_tree(table: pd.DataFrame, target: str, tree_params: Optional[Dict[str, Any]], seed: int) -> TreeModel:
    X = table.drop(columns=[target])
    y = table[target]
    return TreeModel(params=tree_params, seed=seed).fit(X, y)


def train_reduced(train_df: pd.DataFrame, target: str = TARGET, tree_params: Optional[Dict[str, Any]] = None,
                  seed: int = SEED) -> Dict[str, Any]:
    """Complete-case filter the training split, then fit the tree."""
    complete = complete_cases(train_df)
    n_dropped = len(train_df) - len(complete)
    print(f"Reduced model: dropped {n_dropped} of {len(train_df)} training rows with missing values")
    if complete.empty:
        raise ValueError("No complete training rows left after dropping missing values")

    model = _fit_tree(complete, target, tree_params, seed)
    return {
        "name": "reduced",
        "model": model,
        "n_rows": int(len(complete)),
        "n_dropped": int(n_dropped),
        "importance": model.importance(),
    }


def train_imputed(train_df: pd.DataFrame, target: str = TARGET, pmm_k: int = PMM_K, seed: int = SEED,
                  tree_params: Optional[Dict[str, Any]] = None, max_iter: int = IMPUTE_MAX_ITER,
                  n_trees: int = IMPUTE_TREES) -> Dict[str, Any]:
    """Fill the training split with random-forest PMM imputation, then fit the tree."""
    n_missing = int(train_df.isna().sum().sum())
    print(f"Imputed model: filling {n_missing} missing cells (pmm_k={pmm_k}, seed={seed})")
    imputed = rf_pmm_impute(train_df, pmm_k=pmm_k, seed=seed, max_iter=max_iter, n_trees=n_trees)
    if imputed.isna().any().any():
        raise ImputationError("Imputed training table still has missing values")

    model = _fit_tree(imputed, target, tree_params, seed)
    return {
        "name": "imputed",
        "model": model,
        "n_rows": int(len(imputed)),
        "n_dropped": 0,
        "n_imputed": n_missing,
        "imputed": imputed,
        "importance": model.importance(),
    }
