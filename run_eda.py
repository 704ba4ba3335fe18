"""
run_eda.py
Write the initial data audit and the missingness and class-balance charts.
Run from the project root.
"""

import os

from crx_missing import eda
from crx_missing.config import FIGS_DIR, RAW_DATA, REPORTS_DIR, SEED, TARGET, TRAIN_PROP
from crx_missing.load_data import load_credit
from crx_missing.missing import missingness_profile
from crx_missing.split import class_proportions, stratified_split
from crx_missing.utils import save_initial_audit


def main():
    df = load_credit(RAW_DATA)
    audit_paths = save_initial_audit(df, os.path.join(REPORTS_DIR, "audit"), target_col=TARGET)

    profile = missingness_profile(df, target=TARGET)
    split = stratified_split(df, target=TARGET, train_prop=TRAIN_PROP, seed=SEED)
    props = class_proportions({"source": df, "train": split.train, "test": split.test}, target=TARGET)

    figs = [
        eda.plot_missing_percent(profile["overall"], FIGS_DIR),
        eda.plot_missing_by_class(profile["by_class"], FIGS_DIR),
        eda.plot_co_missing(profile["groups"], FIGS_DIR),
        eda.plot_class_proportions(props, FIGS_DIR),
    ]
    print("Audit saved to:", ", ".join(audit_paths.values()))
    print("EDA finished. Figures saved to:", FIGS_DIR)
    for p in figs:
        print(" -", p)


if __name__ == "__main__":
    main()
