from __future__ import annotations

"""
Predictions from fitted models, back-transforms for power-transformed
responses, and helpers that append predictions to explanatory tables.
"""

from typing import Iterable

import numpy as np
import pandas as pd

from .constants import DEFAULT_THRESHOLD, INTERCEPT_NAME
from .exceptions import ShapeMismatchError
from .logistic import sigmoid
from .model import FittedModel

MODES = ("response", "link")


def query_matrix(model: FittedModel, X_new) -> np.ndarray:
    """Encode a query table with the same term structure the model was fitted on."""
    if model.design is not None:
        if not isinstance(X_new, pd.DataFrame):
            raise ShapeMismatchError(
                "Model was fitted from an observation table; pass the query as a DataFrame."
            )
        return model.design.transform(X_new).to_numpy(dtype=float)

    names = model.term_names
    if isinstance(X_new, pd.DataFrame):
        missing = [name for name in names if name not in X_new.columns]
        if missing:
            raise ShapeMismatchError(f"Query table is missing required term(s): {missing}")
        return X_new[names].to_numpy(dtype=float)

    arr = np.asarray(X_new, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1) if len(names) == 1 else arr.reshape(1, -1)
    if arr.ndim != 2 or arr.shape[1] != len(names):
        raise ShapeMismatchError(
            f"Query has shape {arr.shape}; the model expects {len(names)} columns {names}"
        )
    return arr


def predict(model: FittedModel, X_new, mode: str = "response") -> np.ndarray:
    """
    Predict from a fitted model.

    ``mode="link"`` returns the linear predictor X b; ``mode="response"``
    applies the inverse link (the sigmoid for logistic models, identity for
    linear ones).
    """
    if mode not in MODES:
        raise ValueError(f"Unknown prediction mode: {mode!r} (expected one of {MODES})")
    eta = query_matrix(model, X_new) @ model.coef.to_numpy()
    if mode == "response" and model.is_logistic:
        return sigmoid(eta)
    return eta


def back_transform(values, power: float) -> np.ndarray:
    """Undo a ``response ** power`` transform by raising to ``1 / power``."""
    if power == 0:
        raise ValueError("A power of zero cannot be inverted.")
    return np.asarray(values, dtype=float) ** (1.0 / power)


def _suffix(power: float) -> str:
    return f"{power:g}".replace(".", "")


def prediction_table(
    model: FittedModel,
    explanatory: pd.DataFrame,
    response_name: str | None = None,
    mode: str = "response",
    back_transform_power: float | None = None,
) -> pd.DataFrame:
    """
    Return ``explanatory`` with the predictions appended as a new column.

    With ``back_transform_power`` the transformed-scale prediction is kept as
    ``<name>_<power digits>`` (e.g. ``n_clicks_025``) and ``<name>`` holds the
    back-transformed value.
    """
    name = response_name or model.response_name
    out = explanatory.copy()
    preds = predict(model, explanatory, mode=mode)
    if back_transform_power is None:
        out[name] = preds
    else:
        out[f"{name}_{_suffix(back_transform_power)}"] = preds
        out[name] = back_transform(preds, back_transform_power)
    return out


def most_likely_outcome(probabilities, threshold: float = DEFAULT_THRESHOLD) -> np.ndarray:
    """1 where the probability reaches ``threshold``, 0 elsewhere."""
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must lie in [0, 1], got {threshold}")
    return (np.asarray(probabilities, dtype=float) >= threshold).astype(int)


def logistic_outcomes(
    model: FittedModel,
    explanatory: pd.DataFrame,
    response_name: str | None = None,
    threshold: float = DEFAULT_THRESHOLD,
) -> pd.DataFrame:
    """The four usual ways to state a logistic prediction, one column each."""
    if not model.is_logistic:
        raise ValueError("logistic_outcomes needs a logistic model.")
    name = response_name or model.response_name
    out = explanatory.copy()
    probs = predict(model, explanatory, mode="response")
    with np.errstate(divide="ignore"):
        odds = probs / (1.0 - probs)
    out[name] = probs
    out["most_likely_outcome"] = most_likely_outcome(probs, threshold)
    out["odds_ratio"] = odds
    out["log_odds_ratio"] = predict(model, explanatory, mode="link")
    return out


def explanatory_grid(column: str, values: Iterable) -> pd.DataFrame:
    """One-column table of explanatory values to predict at."""
    return pd.DataFrame({column: list(values)})


def manual_predictions(model: FittedModel, explanatory: pd.DataFrame) -> np.ndarray:
    """
    intercept + sum(slope * x), read straight off the coefficients.

    Only valid for models whose terms are plain numeric columns.
    """
    coef = model.coef
    preds = np.full(len(explanatory), coef.get(INTERCEPT_NAME, 0.0))
    for name, slope in coef.items():
        if name == INTERCEPT_NAME:
            continue
        if name not in explanatory.columns:
            raise ShapeMismatchError(f"Query table is missing required term '{name}'.")
        preds = preds + slope * explanatory[name].to_numpy(dtype=float)
    return preds
