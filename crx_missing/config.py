import os

# Reproducibility
SEED = 42
TRAIN_PROP = 0.8

# File locations
RAW_DATA = os.path.join("data", "raw", "crx.data")
REPORTS_DIR = "reports"
FIGS_DIR = os.path.join(REPORTS_DIR, "figs")
RESULTS_DIR = os.path.join(REPORTS_DIR, "results")

# Dataset layout: 15 anonymised predictors + response, no header row
N_COLUMNS = 16
COLUMNS = [f"V{i}" for i in range(1, N_COLUMNS + 1)]
TARGET = "V16"
MISSING_TOKEN = "?"

# Continuous attributes. V2 and V14 arrive as text because of the "?" marker.
NUMERIC_COLUMNS = ["V2", "V3", "V8", "V11", "V14", "V15"]

# Class designated as "positive" for sensitivity/specificity ("-" = not approved)
POSITIVE_CLASS = "-"

# Decision tree: Gini splits, no cost-complexity pruning.
# Stopping rules follow the usual recursive-partitioning defaults (minsplit=20, minbucket=7).
TREE_PARAMS = {
    "criterion": "gini",
    "min_samples_split": 20,
    "min_samples_leaf": 7,
    "max_depth": 30,
    "ccp_alpha": 0.0,
}

# Random-forest imputation with predictive mean matching
PMM_K = 5                 # number of donor candidates per missing cell (0 = use raw predictions)
IMPUTE_MAX_ITER = 10      # upper bound on chained iterations
IMPUTE_TREES = 100        # trees per forest
