from __future__ import annotations

"""
Ordinary least squares through a QR decomposition of the design matrix.
"""

from typing import Sequence

import numpy as np
import pandas as pd
from scipy.linalg import solve_triangular

from .constants import RANK_TOL
from .design import TermLike, as_design_frame, as_term, build_design_matrix, response_vector
from .exceptions import SingularDesignError
from .model import GAUSSIAN, FittedModel


def collinear_columns(X: np.ndarray, r: np.ndarray | None = None) -> list[int]:
    """
    Indices of columns that add nothing to the span of the columns before them.

    A column is collinear when its QR pivot is tiny relative to its own norm.
    """
    if r is None:
        r = np.linalg.qr(X, mode="r")
    pivots = np.abs(np.diag(r))
    norms = np.linalg.norm(X, axis=0)
    return [j for j in range(X.shape[1]) if norms[j] == 0 or pivots[j] <= RANK_TOL * norms[j]]


def least_squares(X: np.ndarray, y: np.ndarray, names: Sequence[str]) -> np.ndarray:
    """Solve min ||y - X b|| for full-rank X; raise SingularDesignError otherwise."""
    n, p = X.shape
    if p > n:
        raise SingularDesignError(list(names)[n:])
    q, r = np.linalg.qr(X)
    bad = collinear_columns(X, r)
    if bad:
        raise SingularDesignError([names[j] for j in bad])
    return solve_triangular(r, q.T @ y)


def _check_inputs(X: pd.DataFrame, y) -> np.ndarray:
    y_arr = np.asarray(y, dtype=float).ravel()
    if X.shape[0] != len(y_arr):
        raise ValueError(
            f"Design matrix has {X.shape[0]} rows but the response has {len(y_arr)} values"
        )
    if X.shape[0] == 0:
        raise ValueError("Cannot fit a model to zero observations.")
    if not np.all(np.isfinite(X.to_numpy())) or not np.all(np.isfinite(y_arr)):
        raise ValueError("Design matrix and response must be finite.")
    return y_arr


def fit_linear(X, y, term_names: Sequence[str] | None = None, design=None, response_name: str = "y"):
    """
    Fit ``y ~ X`` by least squares.

    ``X`` is the design matrix itself (include a column of ones for an
    intercept). DataFrame columns, or ``term_names``, name the coefficients.
    """
    X_df = as_design_frame(X, term_names)
    y_arr = _check_inputs(X_df, y)
    names = list(X_df.columns)
    X_arr = X_df.to_numpy()

    beta = least_squares(X_arr, y_arr, names)
    fitted = X_arr @ beta

    return FittedModel(
        family=GAUSSIAN,
        coef=pd.Series(beta, index=names),
        fitted_values=fitted,
        design_matrix=X_arr,
        response=y_arr,
        residuals=y_arr - fitted,
        design=design,
        response_name=response_name,
    )


def ols(
    data: pd.DataFrame,
    response: TermLike,
    terms: Sequence[TermLike],
    intercept: bool = True,
) -> FittedModel:
    """
    Fit a linear model straight from an observation table.

    ``terms`` are column names or ``Term`` objects; ``response`` may be a
    ``Term`` with a power to fit a transformed response.
    """
    X, info = build_design_matrix(data, terms, intercept=intercept)
    y = response_vector(data, response)
    return fit_linear(X, y, design=info, response_name=as_term(response).label)
