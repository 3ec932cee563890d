from __future__ import annotations

"""
Data preparation utilities: load an observation table and split it.
"""

from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from .exceptions import ShapeMismatchError


def load_observations(csv_path: Path, columns: Sequence[str]) -> pd.DataFrame:
    """
    Read a CSV and keep only the columns a model needs.

    Rows with missing values in those columns are dropped.
    """
    df = pd.read_csv(csv_path)
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ShapeMismatchError(f"{csv_path} has no column(s) {missing}")
    return df[list(dict.fromkeys(columns))].dropna().reset_index(drop=True)


def parse_values(text: str) -> list[float]:
    """Parse "0,1,2" or a "start:stop:step" range (stop inclusive) into floats."""
    text = text.strip()
    if ":" in text:
        parts = [float(p) for p in text.split(":")]
        if len(parts) != 3 or parts[2] == 0:
            raise ValueError(f"Expected start:stop:step with a non-zero step, got {text!r}")
        start, stop, step = parts
        return np.arange(start, stop + step / 2, step).tolist()
    return [float(v) for v in text.split(",") if v.strip()]


def make_train_test_split(
    data: pd.DataFrame,
    test_size: float = 0.2,
    random_state: int | None = 42,
    stratify_column: str | None = None,
):
    """Split row labels randomly, optionally stratified on one column."""
    if not 0.0 < test_size < 1.0:
        raise ValueError(f"test_size must lie strictly between 0 and 1, got {test_size}")
    stratify_target = data[stratify_column] if stratify_column is not None else None
    train_ids, test_ids = train_test_split(
        data.index, test_size=test_size, random_state=random_state, stratify=stratify_target
    )
    return train_ids, test_ids
