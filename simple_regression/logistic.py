from __future__ import annotations

"""
Maximum-likelihood logistic regression fitted with iteratively reweighted
least squares (IRLS), plus a small estimator wrapper with the usual
fit / predict_proba / predict interface.
"""

import warnings
from typing import Sequence

import numpy as np
import pandas as pd

from .constants import (
    DEFAULT_MAX_ITER,
    DEFAULT_THRESHOLD,
    DEFAULT_TOL,
    INTERCEPT_NAME,
    PROBABILITY_EPS,
    SEPARATION_TOL,
)
from .design import TermLike, as_design_frame, as_term, build_design_matrix, response_vector
from .exceptions import (
    ConvergenceError,
    FittedProbabilityWarning,
    SeparationError,
    SingularDesignError,
)
from .linear import collinear_columns, least_squares
from .model import BINOMIAL, FittedModel


def sigmoid(z) -> np.ndarray:
    z = np.clip(np.asarray(z, dtype=float), -500, 500)
    return 1.0 / (1.0 + np.exp(-z))


def log_likelihood(y: np.ndarray, eta: np.ndarray) -> float:
    """Binomial log-likelihood written in terms of the linear predictor."""
    return float(-np.sum(y * np.logaddexp(0.0, -eta) + (1.0 - y) * np.logaddexp(0.0, eta)))


def binary_response(y, positive_label=None) -> np.ndarray:
    """
    Coerce a response to floats in {0, 1}.

    With ``positive_label`` any two-valued response containing that label is
    accepted and the label maps to 1; otherwise the values must already be 0/1.
    """
    values = pd.Series(np.asarray(y).ravel())
    if values.isna().any():
        raise ValueError("Response contains missing values.")
    if positive_label is not None:
        labels = set(values.unique())
        if len(labels) > 2:
            raise ValueError(f"Binary response expected, found labels {sorted(map(str, labels))}")
        if positive_label not in labels:
            raise ValueError(
                f"Positive label {positive_label!r} does not occur in the response; "
                f"found labels {sorted(map(str, labels))}"
            )
        return (values == positive_label).to_numpy(dtype=float)

    arr = values.to_numpy(dtype=float)
    if not np.isin(arr, (0.0, 1.0)).all():
        raise ValueError("Logistic response must contain only 0 and 1; pass positive_label otherwise.")
    return arr


def fit_logistic(
    X,
    y,
    max_iter: int = DEFAULT_MAX_ITER,
    tol: float = DEFAULT_TOL,
    term_names: Sequence[str] | None = None,
    positive_label=None,
    verbose: bool = False,
    design=None,
    response_name: str = "y",
) -> FittedModel:
    """
    Fit ``P(y = 1) = sigmoid(X b)`` by IRLS.

    Iteration stops when the relative change in deviance drops below ``tol``.
    Raises ConvergenceError after ``max_iter`` iterations, SeparationError
    when the classes are perfectly separated or the weights collapse, and
    SingularDesignError when ``X`` is rank deficient.
    """
    if max_iter < 1:
        raise ValueError("max_iter must be at least 1")
    if tol <= 0:
        raise ValueError("tol must be positive")

    X_df = as_design_frame(X, term_names)
    y_arr = binary_response(y, positive_label)
    if X_df.shape[0] != len(y_arr):
        raise ValueError(
            f"Design matrix has {X_df.shape[0]} rows but the response has {len(y_arr)} values"
        )
    if X_df.shape[0] == 0:
        raise ValueError("Cannot fit a model to zero observations.")
    names = list(X_df.columns)
    X_arr = X_df.to_numpy()
    if not np.all(np.isfinite(X_arr)):
        raise ValueError("Design matrix must be finite.")
    if X_arr.shape[1] > X_arr.shape[0]:
        raise SingularDesignError(names[X_arr.shape[0]:])
    bad = collinear_columns(X_arr)
    if bad:
        raise SingularDesignError([names[j] for j in bad])

    mu = (y_arr + 0.5) / 2.0
    eta = np.log(mu / (1.0 - mu))
    dev_old = -2.0 * log_likelihood(y_arr, eta)
    beta = np.zeros(X_arr.shape[1])

    for step in range(1, max_iter + 1):
        weights = mu * (1.0 - mu)
        good = weights > 0
        if not good.any():
            raise SeparationError("All IRLS weights collapsed to zero; the classes are separated.")

        z = eta[good] + (y_arr[good] - mu[good]) / weights[good]
        sw = np.sqrt(weights[good])
        try:
            beta = least_squares(X_arr[good] * sw[:, None], z * sw, names)
        except SingularDesignError as exc:
            raise SeparationError(
                f"Weighted least-squares step is singular at iteration {step}; "
                "the classes are separated."
            ) from exc

        eta = X_arr @ beta
        mu = sigmoid(eta)
        dev = -2.0 * log_likelihood(y_arr, eta)

        if verbose:
            print(f"[IRLS] iter={step}, deviance={dev:.6f}")

        if np.max(np.abs(y_arr - mu)) < SEPARATION_TOL:
            raise SeparationError(
                f"Every observation is fitted perfectly after {step} iterations; "
                "the classes are separated and the coefficients are unbounded."
            )

        if abs(dev - dev_old) / (abs(dev) + 0.1) < tol:
            break
        dev_old = dev
    else:
        raise ConvergenceError(
            f"IRLS did not converge in {max_iter} iterations (deviance {dev:.6g})."
        )

    if np.any((mu < PROBABILITY_EPS) | (mu > 1.0 - PROBABILITY_EPS)):
        warnings.warn(
            "Fitted probabilities numerically 0 or 1 occurred.",
            FittedProbabilityWarning,
            stacklevel=2,
        )

    return FittedModel(
        family=BINOMIAL,
        coef=pd.Series(beta, index=names),
        fitted_values=mu,
        design_matrix=X_arr,
        response=y_arr,
        converged=True,
        n_iter=step,
        design=design,
        response_name=response_name,
    )


def logit(
    data: pd.DataFrame,
    response: TermLike,
    terms: Sequence[TermLike],
    intercept: bool = True,
    positive_label=None,
    max_iter: int = DEFAULT_MAX_ITER,
    tol: float = DEFAULT_TOL,
    verbose: bool = False,
) -> FittedModel:
    """Fit a logistic model straight from an observation table."""
    X, info = build_design_matrix(data, terms, intercept=intercept)
    y = response_vector(data, as_term(response).column)
    return fit_logistic(
        X,
        y,
        max_iter=max_iter,
        tol=tol,
        positive_label=positive_label,
        verbose=verbose,
        design=info,
        response_name=as_term(response).column,
    )


class LogisticRegressionIRLS:
    """
    Unpenalized logistic regression trained with IRLS.
    An intercept column is added to the raw feature matrix.
    """

    def __init__(
        self,
        max_iter: int = DEFAULT_MAX_ITER,
        tol: float = DEFAULT_TOL,
        fit_intercept: bool = True,
        verbose: bool = False,
    ):
        self.max_iter = max_iter
        self.tol = tol
        self.fit_intercept = fit_intercept
        self.verbose = verbose
        self.model_: FittedModel | None = None
        self.n_iter_: int = 0

    def _add_bias(self, X: np.ndarray) -> np.ndarray:
        if not self.fit_intercept:
            return X
        return np.hstack([np.ones((X.shape[0], 1)), X])

    def _feature_names(self, X) -> list[str]:
        if isinstance(X, pd.DataFrame):
            names = [str(c) for c in X.columns]
        else:
            names = [f"x{i}" for i in range(np.asarray(X).reshape(len(X), -1).shape[1])]
        return ([INTERCEPT_NAME] if self.fit_intercept else []) + names

    def fit(self, X, y, positive_label=None):
        """Train the model with IRLS."""
        X_arr = np.asarray(X, dtype=float).reshape(len(X), -1)
        self.model_ = fit_logistic(
            self._add_bias(X_arr),
            y,
            max_iter=self.max_iter,
            tol=self.tol,
            term_names=self._feature_names(X),
            positive_label=positive_label,
            verbose=self.verbose,
        )
        weights = self.model_.coef.to_numpy()
        self.intercept_ = float(weights[0]) if self.fit_intercept else 0.0
        self.coef_ = weights[1:] if self.fit_intercept else weights
        self.n_iter_ = self.model_.n_iter
        return self

    def predict_proba(self, X) -> np.ndarray:
        """Return P(y=1) for each row in X."""
        if self.model_ is None:
            raise RuntimeError("Model is not fitted.")
        X_arr = np.asarray(X, dtype=float).reshape(len(X), -1)
        return sigmoid(self._add_bias(X_arr) @ self.model_.coef.to_numpy())

    def predict(self, X, threshold: float = DEFAULT_THRESHOLD) -> np.ndarray:
        """Binary predictions using the provided threshold."""
        return (self.predict_proba(X) >= threshold).astype(int)
