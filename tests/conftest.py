from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def perfect_line() -> pd.DataFrame:
    return pd.DataFrame({"x": [0.0, 1.0, 2.0, 3.0, 4.0], "y": [1.0, 3.0, 5.0, 7.0, 9.0]})


@pytest.fixture
def real_estate() -> pd.DataFrame:
    """Small stand-in for the Taiwan real estate table: price per area by age group."""
    rng = np.random.default_rng(7)
    n = 60
    n_convenience = rng.integers(0, 11, size=n)
    age = rng.choice(["0 to 15", "15 to 30", "30 to 45"], size=n)
    dist = rng.uniform(20, 6000, size=n)
    price = 8.0 + 0.8 * n_convenience - 0.05 * np.sqrt(dist) + rng.normal(0, 1.0, size=n)
    return pd.DataFrame(
        {
            "n_convenience": n_convenience,
            "house_age_years": age,
            "dist_to_mrt_m": dist,
            "price_twd_msq": price,
        }
    )


@pytest.fixture
def churn() -> pd.DataFrame:
    """Overlapping classes so the maximum likelihood estimate is finite."""
    return pd.DataFrame(
        {
            "time_since_first_purchase": [0.5, 1.0, 1.5, 2.0, 2.5, 3.0, 3.5, 4.0, 4.5, 5.0, 0.8, 4.2],
            "has_churned": [0, 0, 1, 0, 0, 1, 0, 1, 1, 1, 1, 0],
        }
    )


@pytest.fixture
def separable() -> pd.DataFrame:
    return pd.DataFrame(
        {"x": [-3.0, -2.0, -1.0, 1.0, 2.0, 3.0], "y": [0, 0, 0, 1, 1, 1]}
    )


def write_csv(frame: pd.DataFrame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, index=False)
    return path


@pytest.fixture
def real_estate_csv(tmp_path: Path, real_estate: pd.DataFrame) -> Path:
    return write_csv(real_estate, tmp_path / "real_estate.csv")


@pytest.fixture
def churn_csv(tmp_path: Path, churn: pd.DataFrame) -> Path:
    return write_csv(churn, tmp_path / "churn.csv")
