"""
run_missing.py
Run only the missing-value report and heuristic assessment.
"""

import os

from crx_missing.config import RAW_DATA, REPORTS_DIR, TARGET
from crx_missing.load_data import load_credit
from crx_missing.missing import heuristic_missingness_assessment, missingness_profile, save_missing_report
from crx_missing.utils import save_text


def main():
    df = load_credit(RAW_DATA)
    profile = missingness_profile(df, target=TARGET)
    paths = save_missing_report(profile, REPORTS_DIR)
    note = heuristic_missingness_assessment(df, target_col=TARGET, threshold_pct=5.0)
    save_text(os.path.join(REPORTS_DIR, "missing_assessment.txt"), note + "\n")
    print(profile["overall"].to_string(index=False))
    print(profile["groups"][["label", "count", "percent"]].to_string(index=False))
    print("Missing report saved to:", paths["csv"])
    print("Missingness assessment:", note)


if __name__ == "__main__":
    main()
