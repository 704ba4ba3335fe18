"""
evaluate.py
Confusion matrices and derived rates for fitted tree models on test tables.

Each (model, test variant) pair yields one result dict:
  model, test_set, n_test, confusion (2x2 DataFrame, rows actual / columns
  predicted, ordered [positive, negative]), accuracy, sensitivity, specificity.
"""

import os
from typing import Any, Dict, List, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from sklearn.metrics import confusion_matrix

from .config import POSITIVE_CLASS, TARGET
from .tree_model import TreeModel
from .utils import ensure_dir

sns.set(style="whitegrid", context="talk")


def _other_class(classes, positive) -> Any:
    classes = list(classes)
    if positive not in classes:
        raise ValueError(f"Positive class '{positive}' not among model classes {classes}")
    others = [c for c in classes if c != positive]
    if len(others) != 1:
        raise ValueError(f"Expected a binary response, got classes {classes}")
    return others[0]


def confusion_table(y_true, y_pred, positive, negative) -> pd.DataFrame:
    labels = [positive, negative]
    unknown = set(pd.unique(np.asarray(y_true, dtype=object))) - set(labels)
    if unknown:
        raise ValueError(f"Test labels {sorted(unknown)} are not in {labels}")
    cm = confusion_matrix(np.asarray(y_true, dtype=object), np.asarray(y_pred, dtype=object), labels=labels)
    return pd.DataFrame(
        cm,
        index=pd.Index(labels, name="actual"),
        columns=pd.Index(labels, name="predicted"),
    )


def _rate(num, den) -> float:
    return float(num / den) if den > 0 else float("nan")


def derive_metrics(cm: pd.DataFrame, positive) -> Dict[str, float]:
    """
    accuracy = (TP + TN) / total
    sensitivity = TP / (TP + FN)  for the positive class
    specificity = TN / (TN + FP)  i.e. the recall of the other class
    """
    negative = [c for c in cm.index if c != positive][0]
    tp = cm.loc[positive, positive]
    fn = cm.loc[positive, negative]
    fp = cm.loc[negative, positive]
    tn = cm.loc[negative, negative]
    total = tp + fn + fp + tn
    return {
        "accuracy": _rate(tp + tn, total),
        "sensitivity": _rate(tp, tp + fn),
        "specificity": _rate(tn, tn + fp),
    }


def evaluate_model(model: TreeModel, test_df: pd.DataFrame, target: str = TARGET, positive=POSITIVE_CLASS,
                   model_name: str = "model", test_name: str = "test") -> Dict[str, Any]:
    negative = _other_class(model.classes_, positive)
    y_true = test_df[target].to_numpy()
    y_pred = model.predict(test_df.drop(columns=[target]))
    cm = confusion_table(y_true, y_pred, positive, negative)
    if int(cm.values.sum()) != len(test_df):
        raise RuntimeError(f"Confusion matrix covers {int(cm.values.sum())} records, test set has {len(test_df)}")
    result = {
        "model": model_name,
        "test_set": test_name,
        "n_test": int(len(test_df)),
        "positive": positive,
        "confusion": cm,
    }
    result.update(derive_metrics(cm, positive))
    return result


def evaluate_all(models: Dict[str, TreeModel], test_sets: Dict[str, pd.DataFrame], target: str = TARGET,
                 positive=POSITIVE_CLASS) -> Tuple[List[Dict[str, Any]], pd.DataFrame]:
    """Evaluate every model on every test variant; returns results and a summary table."""
    results = []
    for model_name, model in models.items():
        for test_name, test_df in test_sets.items():
            res = evaluate_model(model, test_df, target=target, positive=positive,
                                 model_name=model_name, test_name=test_name)
            print(f"  {model_name:>8} on {test_name:<10} n={res['n_test']:<4} acc={res['accuracy']:.4f} "
                  f"sens={res['sensitivity']:.4f} spec={res['specificity']:.4f}")
            results.append(res)
    summary = pd.DataFrame(
        [{k: r[k] for k in ("model", "test_set", "n_test", "accuracy", "sensitivity", "specificity")} for r in results]
    )
    return results, summary


def _plot_confusion(cm: pd.DataFrame, outpath: str, title: str):
    ensure_dir(os.path.dirname(outpath) or ".")
    plt.figure(figsize=(5, 4))
    sns.heatmap(cm.values, annot=True, fmt="d", cmap="Blues", xticklabels=cm.columns, yticklabels=cm.index)
    plt.xlabel("Predicted")
    plt.ylabel("Actual")
    plt.title(title)
    plt.tight_layout()
    plt.savefig(outpath, dpi=150)
    plt.close()


def save_evaluation(results: List[Dict[str, Any]], summary: pd.DataFrame, results_dir: str, figs_dir: str,
                    make_figs: bool = True) -> Dict[str, Any]:
    ensure_dir(results_dir)
    metrics_path = os.path.join(results_dir, "final_metrics.csv")
    summary.to_csv(metrics_path, index=False)

    cm_paths = []
    fig_paths = []
    for r in results:
        stem = f"{r['model']}_{r['test_set']}"
        cm_path = os.path.join(results_dir, f"{stem}_confusion_matrix.csv")
        r["confusion"].to_csv(cm_path)
        cm_paths.append(cm_path)
        if make_figs:
            fig_path = os.path.join(figs_dir, f"{stem}_confusion_matrix.png")
            _plot_confusion(r["confusion"], fig_path, f"{r['model']} / {r['test_set']}  Confusion Matrix")
            fig_paths.append(fig_path)
    print("Saved final metrics to:", metrics_path)
    return {"metrics": metrics_path, "confusion_csv": cm_paths, "confusion_png": fig_paths}
