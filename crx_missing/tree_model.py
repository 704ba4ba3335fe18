from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.tree import DecisionTreeClassifier, export_text

from .config import SEED, TREE_PARAMS


def _detect_columns(df: pd.DataFrame) -> Tuple[List[str], List[str]]:
    numeric_cols = df.select_dtypes(include=[np.number]).columns.tolist()
    categorical_cols = [c for c in df.columns if c not in numeric_cols]
    return numeric_cols, categorical_cols


def fit_encoder(df: pd.DataFrame) -> Dict[str, Any]:
    """
    Learn the layout of the design matrix: numeric columns pass through,
    nominal columns expand to one indicator per level seen in df (first-seen order).
    Features follow the column order of df.
    """
    numeric_cols, categorical_cols = _detect_columns(df)
    cats = {}
    for c in categorical_cols:
        seen = []
        for val in df[c].astype(object).tolist():
            if pd.isna(val):
                continue
            if val not in seen:
                seen.append(val)
        cats[c] = seen

    feature_names = []
    sources = []
    for c in df.columns:
        if c in cats:
            for cat in cats[c]:
                feature_names.append(f"{c}={cat}")
                sources.append(c)
        else:
            feature_names.append(c)
            sources.append(c)
    return {
        "columns": list(df.columns),
        "numeric_cols": numeric_cols,
        "categorical_cols": categorical_cols,
        "categories": cats,
        "feature_names": feature_names,
        "sources": sources,
    }


def transform(df: pd.DataFrame, encoder: Dict[str, Any]) -> np.ndarray:
    """
    Build the float design matrix. A missing nominal value sets all of its
    indicators to NaN so the tree can route it; an unseen level leaves them at 0.
    """
    absent = [c for c in encoder["columns"] if c not in df.columns]
    if absent:
        raise KeyError(f"Columns missing from input: {absent}")

    arrays = []
    for c in encoder["columns"]:
        if c not in encoder["categories"]:
            arrays.append(df[c].astype(float).to_numpy().reshape(-1, 1))
            continue
        cats = encoder["categories"][c]
        mat = np.zeros((len(df), len(cats)), dtype=float)
        index = {cat: j for j, cat in enumerate(cats)}
        for i, val in enumerate(df[c].astype(object).values):
            if pd.isna(val):
                mat[i, :] = np.nan
                continue
            j = index.get(val)
            if j is not None:
                mat[i, j] = 1.0
        arrays.append(mat)
    if not arrays:
        return np.zeros((len(df), 0), dtype=float)
    return np.hstack(arrays)


class TreeModel:
    """
    Unpruned CART classifier over a mixed nominal/continuous table.

    Missing predictors at prediction time follow scikit-learn's policy for
    features never seen missing during fitting: the sample goes to the child
    holding more training samples.

    Exactly tied candidate splits go to whichever feature comes first in
    scikit-learn's feature permutation drawn from seed, not to the first
    column of the table. A fixed seed always makes the same choice.
    """

    def __init__(self, params: Optional[Dict[str, Any]] = None, seed: int = SEED):
        self.params = dict(TREE_PARAMS if params is None else params)
        self.seed = seed
        self.encoder = None
        self.tree = None
        self.n_train = 0

    @property
    def classes_(self) -> np.ndarray:
        self._check_fitted()
        return self.tree.classes_

    def _check_fitted(self):
        if self.tree is None:
            raise RuntimeError("TreeModel is not fitted yet")

    def fit(self, X: pd.DataFrame, y: pd.Series) -> "TreeModel":
        if len(X) == 0:
            raise ValueError("Cannot fit a tree on an empty table")
        if pd.isna(y).any():
            raise ValueError("Response has missing values")
        self.encoder = fit_encoder(X)
        X_mat = transform(X, self.encoder)
        self.tree = DecisionTreeClassifier(random_state=self.seed, **self.params)
        self.tree.fit(X_mat, np.asarray(y))
        self.n_train = len(X)
        return self

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        self._check_fitted()
        return self.tree.predict(transform(X, self.encoder))

    def importance(self) -> pd.DataFrame:
        """
        Impurity-reduction importance per original predictor, in percent of the
        total reduction. Indicator columns are summed back onto their source
        column; predictors that are never used are left out.
        """
        self._check_fitted()
        per_feature = pd.Series(self.tree.feature_importances_, index=self.encoder["feature_names"])
        per_source = per_feature.groupby(pd.Index(self.encoder["sources"]), sort=False).sum()
        per_source = per_source[per_source > 0]
        total = per_source.sum()
        if total > 0:
            per_source = per_source / total * 100
        table = per_source.rename("importance").rename_axis("variable").reset_index()
        return table.sort_values("importance", ascending=False, kind="stable").reset_index(drop=True)

    def describe(self) -> str:
        self._check_fitted()
        return export_text(self.tree, feature_names=self.encoder["feature_names"], show_weights=True)

    def summary(self) -> Dict[str, int]:
        self._check_fitted()
        return {
            "n_train": int(self.n_train),
            "depth": int(self.tree.get_depth()),
            "n_leaves": int(self.tree.get_n_leaves()),
        }
