import os
from typing import Dict, Optional

import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd

from .utils import ensure_dir

sns.set(style="whitegrid", context="talk")


def _save_fig(fig, filepath: str):
    fig.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return filepath


def plot_missing_percent(table: pd.DataFrame, outdir: str, only_missing: bool = True) -> str:
    """Bar chart of missing_percent per column (from missing.missing_table)."""
    ensure_dir(outdir)
    data = table[table["missing_count"] > 0] if only_missing else table
    fig, ax = plt.subplots(figsize=(8, 5))
    if data.empty:
        ax.text(0.5, 0.5, "No missing values", ha="center", va="center", transform=ax.transAxes)
    else:
        sns.barplot(data=data, x="column", y="missing_percent", color="#2b8cbe", ax=ax)
    ax.set_title("Missing values per column")
    ax.set_xlabel("Column")
    ax.set_ylabel("Missing (%)")
    return _save_fig(fig, os.path.join(outdir, "missing_percent.png"))


def plot_missing_by_class(by_class: pd.DataFrame, outdir: str, only_missing: bool = True) -> str:
    """Grouped bars of missing_percent per column, one bar per response class."""
    ensure_dir(outdir)
    data = by_class
    if only_missing:
        cols = by_class.groupby("column", sort=False)["missing_count"].sum()
        data = by_class[by_class["column"].isin(cols[cols > 0].index)]
    fig, ax = plt.subplots(figsize=(9, 5))
    if data.empty:
        ax.text(0.5, 0.5, "No missing values", ha="center", va="center", transform=ax.transAxes)
    else:
        sns.barplot(data=data, x="column", y="missing_percent", hue="class", palette="muted", ax=ax)
        ax.legend(title="Class")
    ax.set_title("Missing values per column by class")
    ax.set_xlabel("Column")
    ax.set_ylabel("Missing within class (%)")
    return _save_fig(fig, os.path.join(outdir, "missing_by_class.png"))


def plot_co_missing(groups: pd.DataFrame, outdir: str, top: Optional[int] = 15) -> str:
    """Horizontal bars of record counts per exact co-missing column set."""
    ensure_dir(outdir)
    data = groups.head(top) if top else groups
    fig, ax = plt.subplots(figsize=(8, max(3, 0.5 * len(data) + 1.5)))
    if data.empty:
        ax.text(0.5, 0.5, "No incomplete records", ha="center", va="center", transform=ax.transAxes)
    else:
        sns.barplot(data=data, x="count", y="label", color="#f03b20", orient="h", ax=ax)
        for i, n in enumerate(data["count"]):
            ax.text(n, i, f" {n}", va="center", fontsize=11)
    ax.set_title("Records by set of co-missing columns")
    ax.set_xlabel("Records")
    ax.set_ylabel("Missing columns")
    return _save_fig(fig, os.path.join(outdir, "co_missing_groups.png"))


def plot_class_proportions(props: pd.DataFrame, outdir: str) -> str:
    """Response class proportions per subset (from split.class_proportions)."""
    ensure_dir(outdir)
    fig, ax = plt.subplots(figsize=(7, 5))
    sns.barplot(data=props, x="subset", y="proportion", hue="class", palette="muted", ax=ax)
    ax.set_ylim(0, 1)
    ax.set_title("Class proportions")
    ax.set_xlabel("")
    ax.set_ylabel("Proportion")
    ax.legend(title="Class")
    return _save_fig(fig, os.path.join(outdir, "class_proportions.png"))


def plot_importance(importances: Dict[str, pd.DataFrame], outdir: str) -> str:
    """Side-by-side variable importance (percent) for each named model."""
    ensure_dir(outdir)
    frames = []
    for name, table in importances.items():
        t = table.copy()
        t["model"] = name
        frames.append(t)
    data = pd.concat(frames, ignore_index=True) if frames else pd.DataFrame(columns=["variable", "importance", "model"])
    order = data.groupby("variable")["importance"].max().sort_values(ascending=False).index.tolist()
    fig, ax = plt.subplots(figsize=(8, max(4, 0.45 * len(order) + 1.5)))
    if data.empty:
        ax.text(0.5, 0.5, "No splits in any tree", ha="center", va="center", transform=ax.transAxes)
    else:
        sns.barplot(data=data, x="importance", y="variable", hue="model", order=order, orient="h", palette="crest", ax=ax)
        ax.legend(title="Model")
    ax.set_title("Variable importance")
    ax.set_xlabel("Share of impurity reduction (%)")
    ax.set_ylabel("")
    return _save_fig(fig, os.path.join(outdir, "variable_importance.png"))
