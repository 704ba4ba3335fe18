import os
import json
from typing import Dict, NamedTuple

import numpy as np
import pandas as pd

from .config import SEED, TARGET, TRAIN_PROP
from .utils import ensure_dir


class Split(NamedTuple):
    train: pd.DataFrame
    test: pd.DataFrame
    train_idx: np.ndarray
    test_idx: np.ndarray


def stratified_split(df: pd.DataFrame, target: str = TARGET, train_prop: float = TRAIN_PROP, seed: int = SEED) -> Split:
    """
    Stratified train/test partition. Within each response class the row
    positions are shuffled with RandomState(seed) and round(train_prop * n_class)
    of them go to train. Positions index into df; the returned frames keep
    df's original index labels.
    """
    if not 0.0 < train_prop < 1.0:
        raise ValueError(f"train_prop must be in (0, 1), got {train_prop}")
    if target not in df.columns:
        raise KeyError(f"Target column '{target}' not found in DataFrame columns: {list(df.columns)}")
    y = df[target]
    if y.isna().any():
        raise ValueError(f"Target column '{target}' has {int(y.isna().sum())} missing values; cannot stratify")

    rng = np.random.RandomState(seed)
    positions = np.arange(len(df))

    classes = {}
    for pos, label in zip(positions, y.values):
        classes.setdefault(label, []).append(pos)

    train_idx_list = []
    test_idx_list = []

    for label in sorted(classes):
        idxs = np.array(classes[label])
        if len(idxs) < 2:
            raise ValueError(f"Class '{label}' has {len(idxs)} record(s); at least 2 are needed to stratify")
        rng.shuffle(idxs)
        n_train = int(np.round(len(idxs) * train_prop))
        if n_train == 0 or n_train == len(idxs):
            raise ValueError(
                f"Class '{label}' with {len(idxs)} records leaves an empty side at train_prop={train_prop}"
            )
        train_idx_list.append(idxs[:n_train])
        test_idx_list.append(idxs[n_train:])

    train_idx = np.sort(np.concatenate(train_idx_list))
    test_idx = np.sort(np.concatenate(test_idx_list))

    return Split(
        train=df.iloc[train_idx].copy(),
        test=df.iloc[test_idx].copy(),
        train_idx=train_idx,
        test_idx=test_idx,
    )


def class_proportions(frames: Dict[str, pd.DataFrame], target: str = TARGET) -> pd.DataFrame:
    """Long table of (subset, class, count, proportion) for each named frame."""
    rows = []
    for name, frame in frames.items():
        counts = frame[target].value_counts().sort_index()
        total = counts.sum()
        for cls, n in counts.items():
            rows.append({"subset": name, "class": cls, "count": int(n), "proportion": float(n / total) if total else 0.0})
    return pd.DataFrame(rows, columns=["subset", "class", "count", "proportion"])


def save_split_summary(split: Split, outdir: str, target: str = TARGET) -> str:
    ensure_dir(outdir)
    np.save(os.path.join(outdir, "train_idx.npy"), split.train_idx)
    np.save(os.path.join(outdir, "test_idx.npy"), split.test_idx)
    props = class_proportions({"train": split.train, "test": split.test}, target=target)
    path = os.path.join(outdir, "split_summary.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump({
            "n_train": int(len(split.train_idx)),
            "n_test": int(len(split.test_idx)),
            "train_idx_path": "train_idx.npy",
            "test_idx_path": "test_idx.npy",
            "class_proportions": props.to_dict(orient="records"),
        }, f, indent=2)
    return path
