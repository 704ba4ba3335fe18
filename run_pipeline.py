"""
run_pipeline.py
End-to-end study runner. Run from the project root with the dataset at data/raw/crx.data.

Sequence:
1. Load and profile missingness
2. Stratified 80/20 train/test split
3. Train the reduced (complete-case) and imputed (random forest + PMM) trees
4. Evaluate both on the full test split and its complete-case subset
5. Write the comparison, tree structures, metrics and figures under reports/
"""

import sys

from crx_missing.config import RAW_DATA, REPORTS_DIR
from crx_missing.pipeline import run_pipeline


def main():
    try:
        out = run_pipeline(data_path=RAW_DATA, reports_dir=REPORTS_DIR)
        print("Final metrics:")
        print(out["summary"].to_string(index=False, float_format=lambda v: f"{v:.4f}"))
        print("Pipeline finished successfully.")
    except Exception as e:
        print("Pipeline failed:", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
