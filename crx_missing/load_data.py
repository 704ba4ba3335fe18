import csv
import os
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import COLUMNS, MISSING_TOKEN, N_COLUMNS, NUMERIC_COLUMNS


class MalformedDataError(IOError):
    """Raised when the input file does not have the expected fixed layout."""


def _bad_field_counts(path: str, n_cols: int) -> List[Tuple[int, int]]:
    """(line number, field count) for every non-blank line that does not have n_cols fields."""
    bad = []
    with open(path, newline="", encoding="utf-8") as f:
        for lineno, fields in enumerate(csv.reader(f), start=1):
            if fields and len(fields) != n_cols:
                bad.append((lineno, len(fields)))
    return bad


def load_raw(path: str, n_cols: int = N_COLUMNS, names: Sequence[str] = COLUMNS) -> pd.DataFrame:
    """
    Read a headerless comma-delimited file keeping every value as raw text.
    Columns are named positionally (V1..V16 by default).
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Data file not found at: {path}")
    if len(names) != n_cols:
        raise ValueError(f"Expected {n_cols} column names, got {len(names)}")

    # pandas pads short rows (with NaN or "" depending on version), so count fields per line first
    bad = _bad_field_counts(path, n_cols)
    if bad:
        shown = ", ".join(f"line {ln}: {n} fields" for ln, n in bad[:10])
        raise MalformedDataError(f"Expected {n_cols} fields per record in {path}; {shown}")

    try:
        df = pd.read_csv(path, header=None, dtype=str, keep_default_na=False, na_values=[], skip_blank_lines=True)
    except pd.errors.EmptyDataError as e:
        raise MalformedDataError(f"Data file is empty: {path}") from e
    except pd.errors.ParserError as e:
        raise MalformedDataError(f"Could not parse {path}: {e}") from e

    if df.shape[1] != n_cols:
        raise MalformedDataError(f"Expected {n_cols} columns in {path}, found {df.shape[1]}")

    df.columns = list(names)
    return df


def mark_missing(df: pd.DataFrame, token: str = MISSING_TOKEN) -> pd.DataFrame:
    return df.mask(df == token, np.nan)


def to_numeric(df: pd.DataFrame, cols: Sequence[str]) -> pd.DataFrame:
    """Convert the given columns to numeric; values that do not parse become missing."""
    out = df.copy()
    for c in cols:
        if c not in out.columns:
            raise KeyError(f"Column '{c}' not in table: {list(out.columns)}")
        out[c] = pd.to_numeric(out[c], errors="coerce")
    return out


def load_credit(path: str, token: str = MISSING_TOKEN, numeric_cols: List[str] = NUMERIC_COLUMNS,
                n_cols: int = N_COLUMNS, names: Sequence[str] = COLUMNS) -> pd.DataFrame:
    df_raw = load_raw(path, n_cols=n_cols, names=names)
    df = mark_missing(df_raw, token=token)
    df = to_numeric(df, numeric_cols)
    return df


def complete_cases(df: pd.DataFrame) -> pd.DataFrame:
    return df.dropna(how="any")
