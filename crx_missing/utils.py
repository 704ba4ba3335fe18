import os
import io

import numpy as np
import pandas as pd

from .config import TARGET


def ensure_dir(path):
    os.makedirs(path, exist_ok=True)


def save_text(path, text):
    ensure_dir(os.path.dirname(path) or ".")
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


def _levels_text(df: pd.DataFrame) -> str:
    lines = []
    for col in df.select_dtypes(exclude=[np.number]).columns:
        counts = df[col].value_counts(dropna=True).sort_index()
        levels = ", ".join(f"{lvl}={n}" for lvl, n in counts.items())
        lines.append(f"{col} ({len(counts)} levels): {levels}")
    return "\n".join(lines)


def save_initial_audit(df, outdir, target_col=TARGET):
    """
    Write a first look at the loaded table: head, dtypes, numeric summary,
    nominal levels and the response distribution. Returns the written paths.
    """
    ensure_dir(outdir)
    paths = {}

    paths["head"] = os.path.join(outdir, "head.txt")
    save_text(paths["head"], df.head(10).to_csv(index=False))

    buf = io.StringIO()
    df.info(buf=buf)
    paths["info"] = os.path.join(outdir, "info.txt")
    save_text(paths["info"], buf.getvalue())

    numeric = df.select_dtypes(include=[np.number])
    paths["describe"] = os.path.join(outdir, "describe.txt")
    save_text(paths["describe"], numeric.describe().to_string() if not numeric.empty else "No numeric columns.")

    paths["levels"] = os.path.join(outdir, "levels.txt")
    save_text(paths["levels"], _levels_text(df))

    paths["class_distribution"] = os.path.join(outdir, "class_distribution.txt")
    if target_col in df.columns:
        counts = df[target_col].value_counts(dropna=False).sort_index()
        percents = df[target_col].value_counts(normalize=True, dropna=False).sort_index() * 100
        lines = ["Value\tCount\tPercent"]
        for val in counts.index:
            lines.append(f"{val}\t{counts.loc[val]}\t{percents.loc[val]:.2f}%")
        save_text(paths["class_distribution"], "\n".join(lines))
    else:
        save_text(
            paths["class_distribution"],
            f"Target column '{target_col}' not found in DataFrame columns: {list(df.columns)}",
        )
    return paths


def fmt_pct(value) -> str:
    """Render a 0-1 rate as a percentage, or 'n/a' when undefined."""
    if value is None or pd.isna(value):
        return "n/a"
    return f"{value * 100:.1f}%"
