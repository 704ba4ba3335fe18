"""
pipeline.py
End-to-end study, run in memory:

1. Load the raw table and convert the continuous columns
2. Profile missingness and save the report
3. Stratified train/test split
4. Train the reduced (complete-case) and imputed (RF + PMM) trees
5. Evaluate both trees on the full test split and its complete-case subset
6. Write the comparison paragraph, tree descriptions and charts
"""

import os
from typing import Any, Dict, Optional

from . import eda
from .compare import compare_models, importance_comparison, save_tree_descriptions
from .config import (IMPUTE_MAX_ITER, IMPUTE_TREES, PMM_K, POSITIVE_CLASS, RAW_DATA, REPORTS_DIR, SEED,
                     TARGET, TRAIN_PROP)
from .evaluate import evaluate_all, save_evaluation
from .load_data import complete_cases, load_credit
from .missing import heuristic_missingness_assessment, missingness_profile, save_missing_report
from .split import class_proportions, save_split_summary, stratified_split
from .train import train_imputed, train_reduced
from .utils import ensure_dir, save_text


def _banner(name: str):
    print(f"=== Step: {name} ===")


def run_pipeline(data_path: str = RAW_DATA, reports_dir: str = REPORTS_DIR, target: str = TARGET,
                 train_prop: float = TRAIN_PROP, seed: int = SEED, pmm_k: int = PMM_K,
                 positive=POSITIVE_CLASS, tree_params: Optional[Dict[str, Any]] = None,
                 impute_max_iter: int = IMPUTE_MAX_ITER, impute_trees: int = IMPUTE_TREES,
                 make_figs: bool = True) -> Dict[str, Any]:
    figs_dir = os.path.join(reports_dir, "figs")
    results_dir = os.path.join(reports_dir, "results")

    _banner("Load")
    df = load_credit(data_path)
    print(f"Loaded {len(df)} records x {df.shape[1]} columns from {data_path}")

    _banner("Missingness profile")
    profile = missingness_profile(df, target=target)
    ensure_dir(reports_dir)
    report_paths = save_missing_report(profile, reports_dir)
    note = heuristic_missingness_assessment(df, target_col=target)
    save_text(os.path.join(reports_dir, "missing_assessment.txt"), note + "\n")
    print(f"Missing cells: {profile['overall_percent']}%, incomplete records: {profile['n_incomplete_rows']}")
    print("Missingness assessment:", note)

    _banner("Split")
    split = stratified_split(df, target=target, train_prop=train_prop, seed=seed)
    save_split_summary(split, results_dir, target=target)
    props = class_proportions({"source": df, "train": split.train, "test": split.test}, target=target)
    print(f"Train: {len(split.train)} records, test: {len(split.test)} records")

    _banner("Train")
    reduced = train_reduced(split.train, target=target, tree_params=tree_params, seed=seed)
    imputed = train_imputed(split.train, target=target, pmm_k=pmm_k, seed=seed, tree_params=tree_params,
                            max_iter=impute_max_iter, n_trees=impute_trees)
    trained = {"reduced": reduced, "imputed": imputed}
    tree_paths = save_tree_descriptions(trained, results_dir)
    for name, res in trained.items():
        print(f"--- {name} tree ---")
        print(res["model"].describe())

    importance = importance_comparison(reduced, imputed)
    importance.to_csv(os.path.join(results_dir, "variable_importance.csv"), index=False)
    print("Variable importance (%):")
    print(importance.to_string(index=False, float_format=lambda v: f"{v:.2f}"))

    _banner("Evaluate")
    test_sets = {"full": split.test, "complete": complete_cases(split.test)}
    models = {name: res["model"] for name, res in trained.items()}
    results, summary = evaluate_all(models, test_sets, target=target, positive=positive)
    eval_paths = save_evaluation(results, summary, results_dir, figs_dir, make_figs=make_figs)

    _banner("Compare")
    para = compare_models(summary, reduced, imputed, positive=positive,
                          out_path=os.path.join(results_dir, "model_comparison.txt"))
    print(para)

    fig_paths = []
    if make_figs:
        fig_paths = [
            eda.plot_missing_percent(profile["overall"], figs_dir),
            eda.plot_missing_by_class(profile["by_class"], figs_dir),
            eda.plot_co_missing(profile["groups"], figs_dir),
            eda.plot_class_proportions(props, figs_dir),
            eda.plot_importance({n: r["importance"] for n, r in trained.items()}, figs_dir),
        ] + eval_paths["confusion_png"]

    return {
        "data": df,
        "profile": profile,
        "split": split,
        "class_proportions": props,
        "trained": trained,
        "results": results,
        "summary": summary,
        "importance": importance,
        "comparison": para,
        "paths": {
            "missing_report": report_paths,
            "trees": tree_paths,
            "evaluation": eval_paths,
            "figures": fig_paths,
        },
    }
