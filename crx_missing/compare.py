import os
from typing import Any, Dict

import pandas as pd

from .config import POSITIVE_CLASS
from .utils import ensure_dir, fmt_pct, save_text


def _row(summary: pd.DataFrame, model: str, test_set: str) -> pd.Series:
    match = summary[(summary["model"] == model) & (summary["test_set"] == test_set)]
    if match.empty:
        raise RuntimeError(f"No evaluation result for model '{model}' on '{test_set}'")
    return match.iloc[0]


def importance_comparison(reduced: Dict[str, Any], imputed: Dict[str, Any]) -> pd.DataFrame:
    """Variable importance (%) of both models side by side, sorted by the larger of the two."""
    a = reduced["importance"].set_index("variable")["importance"].rename(reduced["name"])
    b = imputed["importance"].set_index("variable")["importance"].rename(imputed["name"])
    table = pd.concat([a, b], axis=1).fillna(0.0)
    table = table.loc[table.max(axis=1).sort_values(ascending=False, kind="stable").index]
    return table.rename_axis("variable").reset_index()


def compare_models(summary: pd.DataFrame, reduced: Dict[str, Any], imputed: Dict[str, Any],
                   positive=POSITIVE_CLASS, out_path: str = None) -> str:
    """
    Plain-language comparison of the reduced and imputed models across all
    test variants in summary. Optionally written to out_path.
    """
    rn, im = reduced["name"], imputed["name"]
    lines = [
        f"The {rn} model was trained on {reduced['n_rows']} complete training records "
        f"({reduced['n_dropped']} dropped); the {im} model was trained on all {imputed['n_rows']} "
        f"training records after filling {imputed.get('n_imputed', 0)} missing cells.",
        f"Sensitivity is the recall of class '{positive}'; specificity is the recall of the other class.",
    ]
    for test_set in summary["test_set"].drop_duplicates():
        r = _row(summary, rn, test_set)
        i = _row(summary, im, test_set)
        lines.append(
            f"On the {test_set} test set (n={int(r['n_test'])}): accuracy {fmt_pct(r['accuracy'])} vs "
            f"{fmt_pct(i['accuracy'])}, sensitivity {fmt_pct(r['sensitivity'])} vs {fmt_pct(i['sensitivity'])}, "
            f"specificity {fmt_pct(r['specificity'])} vs {fmt_pct(i['specificity'])} ({rn} vs {im})."
        )

    sens_diff = (summary.loc[summary["model"] == im, "sensitivity"].mean()
                 - summary.loc[summary["model"] == rn, "sensitivity"].mean())
    spec_diff = (summary.loc[summary["model"] == im, "specificity"].mean()
                 - summary.loc[summary["model"] == rn, "specificity"].mean())
    acc_diff = (summary.loc[summary["model"] == im, "accuracy"].mean()
                - summary.loc[summary["model"] == rn, "accuracy"].mean())
    if pd.notna(sens_diff) and pd.notna(spec_diff):
        lines.append(
            f"Averaged over test sets, imputation changes accuracy by {acc_diff * 100:+.1f} points, "
            f"sensitivity by {sens_diff * 100:+.1f} points and specificity by {spec_diff * 100:+.1f} points."
        )
    if pd.isna(acc_diff):
        lines.append("Accuracy could not be compared on these test sets.")
    elif abs(acc_diff) < 0.01:
        lines.append("Overall accuracy is essentially unchanged, so the choice rests on which error type matters more.")
    elif acc_diff > 0:
        lines.append(f"The {im} model is the more accurate of the two on these test sets.")
    else:
        lines.append(f"The {rn} model is the more accurate of the two on these test sets.")

    para = " ".join(lines)
    if out_path:
        save_text(out_path, para + "\n")
    return para


def save_tree_descriptions(trained: Dict[str, Dict[str, Any]], outdir: str) -> Dict[str, str]:
    ensure_dir(outdir)
    paths = {}
    for name, res in trained.items():
        model = res["model"]
        info = model.summary()
        header = f"{name} tree: {info['n_train']} training rows, depth {info['depth']}, {info['n_leaves']} leaves\n\n"
        imp = res["importance"].to_string(index=False, float_format=lambda v: f"{v:.2f}")
        text = header + model.describe() + "\nVariable importance (%):\n" + imp + "\n"
        path = os.path.join(outdir, f"{name}_tree.txt")
        save_text(path, text)
        paths[name] = path
    return paths
