"""
missing.py
Missing-value profile of the credit table:
- per-column counts and percentages
- the same percentages conditioned on the response class
- co-missingness groups (exact sets of columns missing together on a record)
plus helpers to save the profile and a short plain-language assessment.
"""

import os
from typing import Dict, Optional

import pandas as pd
import scipy.stats as stats

from .config import TARGET
from .utils import ensure_dir


def missing_table(df: pd.DataFrame) -> pd.DataFrame:
    """
    Build a DataFrame with columns: column, missing_count, missing_percent.
    - missing_count: number of NaNs in the column
    - missing_percent: missing_count / total_rows * 100
    Sorted by missing_percent descending; ties keep schema order.
    """
    total = len(df)
    cols = []
    for col in df.columns:
        miss = df[col].isna().sum()
        pct = (miss / total) * 100 if total > 0 else 0.0
        cols.append({"column": col, "missing_count": int(miss), "missing_percent": round(pct, 3)})
    table = pd.DataFrame(cols, columns=["column", "missing_count", "missing_percent"])
    table = table.sort_values("missing_percent", ascending=False, kind="stable").reset_index(drop=True)
    return table


def missing_by_class(df: pd.DataFrame, target: str = TARGET) -> pd.DataFrame:
    """
    Missing percentage of every predictor restricted to the records of each
    response class. One row per (column, class) pair, in schema order.
    """
    if target not in df.columns:
        raise KeyError(f"Target column '{target}' not found in DataFrame columns: {list(df.columns)}")

    rows = []
    classes = sorted(df[target].dropna().unique())
    for col in df.columns:
        if col == target:
            continue
        for cls in classes:
            subset = df.loc[df[target] == cls, col]
            miss = int(subset.isna().sum())
            n_class = len(subset)
            pct = (miss / n_class) * 100 if n_class > 0 else 0.0
            rows.append({
                "column": col,
                "class": cls,
                "missing_count": miss,
                "n_class": n_class,
                "missing_percent": round(pct, 3),
            })
    return pd.DataFrame(rows, columns=["column", "class", "missing_count", "n_class", "missing_percent"])


def co_missing_groups(df: pd.DataFrame) -> pd.DataFrame:
    """
    Group incomplete records by the exact set of columns missing on them.
    Each record is counted in one group only. Groups are sorted by count
    descending, ties in schema order of their first differing column.
    """
    out_cols = ["columns", "label", "n_columns", "count", "percent"]
    mask = df.isna()
    incomplete = mask[mask.any(axis=1)]
    if incomplete.empty:
        return pd.DataFrame(columns=out_cols)

    position = {c: i for i, c in enumerate(df.columns)}
    counts: Dict[tuple, int] = {}
    for row in incomplete.itertuples(index=False, name=None):
        key = tuple(c for c, is_missing in zip(df.columns, row) if is_missing)
        counts[key] = counts.get(key, 0) + 1

    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], [position[c] for c in kv[0]]))
    total = len(df)
    rows = []
    for key, n in ordered:
        rows.append({
            "columns": key,
            "label": " & ".join(key),
            "n_columns": len(key),
            "count": n,
            "percent": round(n / total * 100, 3),
        })
    return pd.DataFrame(rows, columns=out_cols)


def missingness_profile(df: pd.DataFrame, target: str = TARGET) -> Dict[str, pd.DataFrame]:
    n_cells = df.shape[0] * df.shape[1]
    overall_pct = df.isna().sum().sum() / n_cells * 100 if n_cells > 0 else 0.0
    return {
        "overall": missing_table(df),
        "by_class": missing_by_class(df, target=target),
        "groups": co_missing_groups(df),
        "n_rows": len(df),
        "n_incomplete_rows": int(df.isna().any(axis=1).sum()),
        "overall_percent": round(float(overall_pct), 3),
    }


def save_missing_report(profile: Dict, outdir: str, filename: str = "missing_report.csv") -> Dict[str, str]:
    """
    Save the profile tables as CSV plus a readable text summary of the
    per-column table. Creates outdir if needed. Returns the written paths.
    """
    ensure_dir(outdir)
    table = profile["overall"]
    csv_path = os.path.join(outdir, filename)
    txt_path = os.path.join(outdir, filename.replace(".csv", ".txt"))
    by_class_path = os.path.join(outdir, "missing_by_class.csv")
    groups_path = os.path.join(outdir, "co_missing_groups.csv")

    table.to_csv(csv_path, index=False)
    profile["by_class"].to_csv(by_class_path, index=False)
    profile["groups"].drop(columns=["columns"]).to_csv(groups_path, index=False)

    with open(txt_path, "w", encoding="utf-8") as f:
        f.write(f"rows: {profile['n_rows']}, incomplete rows: {profile['n_incomplete_rows']}, "
                f"missing cells: {profile['overall_percent']}%\n")
        f.write("column,missing_count,missing_percent\n")
        for _, row in table.iterrows():
            f.write(f"{row['column']},{row['missing_count']},{row['missing_percent']}%\n")
        if not profile["groups"].empty:
            f.write("\nco-missing groups (exact sets)\n")
            for _, row in profile["groups"].iterrows():
                f.write(f"{row['label']}: {row['count']}\n")

    return {"csv": csv_path, "txt": txt_path, "by_class": by_class_path, "groups": groups_path}


def incomplete_vs_class_pvalue(df: pd.DataFrame, target: str = TARGET) -> Optional[float]:
    """
    p-value of a chi-square test of independence between "record has a missing
    predictor" and the response class. None when the 2xK table is degenerate.
    """
    predictors = [c for c in df.columns if c != target]
    labelled = df[df[target].notna()]
    incomplete = labelled[predictors].isna().any(axis=1)
    table = pd.crosstab(incomplete, labelled[target])
    if table.shape[0] < 2 or table.shape[1] < 2:
        return None
    _, p_value, _, _ = stats.chi2_contingency(table.values)
    return float(p_value)


def heuristic_missingness_assessment(df: pd.DataFrame, target_col: str = TARGET, threshold_pct: float = 5.0) -> str:
    """
    Short heuristic note about missingness. Not a formal MCAR test; it only
    says whether missingness is low, concentrated or widespread and how the
    rate differs between response classes.
    """
    table = missing_table(df)
    if table["missing_count"].sum() == 0:
        return "No missing values detected."

    high = table[table["missing_percent"] > threshold_pct]
    n_incomplete = int(df.isna().any(axis=1).sum())
    rows_note = f"{n_incomplete} of {len(df)} records ({n_incomplete / len(df) * 100:.2f}%) have at least one missing value."

    if target_col in df.columns:
        by_target = []
        predictors = [c for c in df.columns if c != target_col]
        for val in sorted(df[target_col].dropna().unique()):
            subset = df.loc[df[target_col] == val, predictors]
            pct_missing = subset.isna().sum().sum() / subset.size * 100 if subset.size > 0 else 0
            by_target.append((val, round(pct_missing, 3)))
        target_note = "Missingness by class (share of predictor cells): " + "; ".join(f"{v}:{p}%" for v, p in by_target)
        p_value = incomplete_vs_class_pvalue(df, target_col)
        if p_value is not None:
            target_note += f". Chi-square test of incomplete records vs class: p = {p_value:.3f}"
    else:
        target_note = "Target column not found; cannot compare missingness by class."

    if len(high) == 0:
        return f"Missing values present but all columns <= {threshold_pct}% missing (likely low or random). {rows_note} {target_note}"
    cols = ", ".join(high["column"].tolist())
    if len(high) <= 3:
        return f"Missingness concentrated in columns: {cols} (each > {threshold_pct}%). {rows_note} {target_note}"
    return f"Multiple columns ({len(high)}) have > {threshold_pct}% missing: {cols}. Investigate systematic causes. {rows_note} {target_note}"
