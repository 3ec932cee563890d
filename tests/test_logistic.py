from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
from scipy.optimize import minimize

from simple_regression import (
    INTERCEPT_NAME,
    ConvergenceError,
    FittedProbabilityWarning,
    LogisticRegressionIRLS,
    SeparationError,
    SingularDesignError,
    fit_logistic,
    logit,
    predict,
    sigmoid,
)


def _design(frame: pd.DataFrame, column: str) -> np.ndarray:
    return np.column_stack([np.ones(len(frame)), frame[column].to_numpy(dtype=float)])


def _reference_fit(X: np.ndarray, y: np.ndarray) -> np.ndarray:
    def nll(beta):
        eta = X @ beta
        return np.sum(np.logaddexp(0.0, eta) - y * eta)

    def grad(beta):
        return X.T @ (sigmoid(X @ beta) - y)

    return minimize(nll, np.zeros(X.shape[1]), jac=grad, method="BFGS", options={"gtol": 1e-10}).x


def test_irls_matches_direct_likelihood_maximization(churn: pd.DataFrame) -> None:
    X = _design(churn, "time_since_first_purchase")
    y = churn["has_churned"].to_numpy(dtype=float)

    model = fit_logistic(X, y)

    assert model.converged
    assert 1 <= model.n_iter <= 25
    np.testing.assert_allclose(model.coef.to_numpy(), _reference_fit(X, y), atol=1e-4)


def test_score_equations_hold_at_the_estimate(churn: pd.DataFrame) -> None:
    model = logit(churn, "has_churned", ["time_since_first_purchase"])

    score = model.design_matrix.T @ (model.response - model.fitted_values)
    np.testing.assert_allclose(score, 0.0, atol=1e-4)
    assert model.residuals is None
    assert model.term_names == [INTERCEPT_NAME, "time_since_first_purchase"]


def test_separable_data_raises_instead_of_diverging(separable: pd.DataFrame) -> None:
    with pytest.raises(SeparationError, match="fitted perfectly"):
        logit(separable, "y", ["x"])


def test_quasi_separation_converges_with_warning() -> None:
    data = pd.DataFrame(
        {"x": [-3.0, -2.0, -1.0, 0.0, 0.0, 1.0, 2.0, 3.0], "y": [0, 0, 0, 0, 1, 1, 1, 1]}
    )

    with pytest.warns(FittedProbabilityWarning, match="numerically 0 or 1"):
        model = logit(data, "y", ["x"])

    assert model.converged
    assert model.coef["x"] > 0


def test_singular_weighted_step_raises_separation_error(
    churn: pd.DataFrame, monkeypatch: pytest.MonkeyPatch
) -> None:
    def singular_step(X, y, names):
        raise SingularDesignError(names[-1:])

    monkeypatch.setattr("simple_regression.logistic.least_squares", singular_step)

    with pytest.raises(SeparationError, match="singular at iteration 1"):
        logit(churn, "has_churned", ["time_since_first_purchase"])


def test_collapsed_weights_raise_separation_error(
    churn: pd.DataFrame, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("simple_regression.logistic.sigmoid", lambda z: np.ones_like(z, dtype=float))

    with pytest.raises(SeparationError, match="weights collapsed"):
        logit(churn, "has_churned", ["time_since_first_purchase"])


def test_separation_error_is_a_convergence_error() -> None:
    assert issubclass(SeparationError, ConvergenceError)


def test_iteration_limit_raises_convergence_error(churn: pd.DataFrame) -> None:
    with pytest.raises(ConvergenceError, match="did not converge in 1 iterations"):
        logit(churn, "has_churned", ["time_since_first_purchase"], max_iter=1)


def test_positive_label_maps_text_response(churn: pd.DataFrame) -> None:
    labelled = churn.assign(has_churned=churn["has_churned"].map({1: "yes", 0: "no"}))

    text_model = logit(labelled, "has_churned", ["time_since_first_purchase"], positive_label="yes")
    numeric_model = logit(churn, "has_churned", ["time_since_first_purchase"])

    np.testing.assert_allclose(text_model.coef, numeric_model.coef)


def test_absent_positive_label_is_named(churn: pd.DataFrame) -> None:
    labelled = churn.assign(has_churned=churn["has_churned"].map({1: "yes", 0: "no"}))

    with pytest.raises(ValueError, match="'Yes' does not occur.*'no', 'yes'"):
        logit(labelled, "has_churned", ["time_since_first_purchase"], positive_label="Yes")


def test_boolean_response_is_accepted(churn: pd.DataFrame) -> None:
    flagged = churn.assign(has_churned=churn["has_churned"].astype(bool))

    model = logit(flagged, "has_churned", ["time_since_first_purchase"])

    assert model.converged


def test_non_binary_response_is_rejected(churn: pd.DataFrame) -> None:
    X = _design(churn, "time_since_first_purchase")
    y = np.arange(len(churn))

    with pytest.raises(ValueError):
        fit_logistic(X, y)


def test_collinear_design_is_rejected_before_iterating(churn: pd.DataFrame) -> None:
    x = churn["time_since_first_purchase"].to_numpy()
    X = pd.DataFrame({INTERCEPT_NAME: 1.0, "t": x, "t_again": x})

    with pytest.raises(SingularDesignError, match="t_again"):
        fit_logistic(X, churn["has_churned"])


def test_verbose_prints_deviance(churn: pd.DataFrame, capsys: pytest.CaptureFixture[str]) -> None:
    logit(churn, "has_churned", ["time_since_first_purchase"], verbose=True)

    assert "[IRLS] iter=1, deviance=" in capsys.readouterr().out


def test_estimator_wrapper_agrees_with_functional_api(churn: pd.DataFrame) -> None:
    features = churn[["time_since_first_purchase"]]
    estimator = LogisticRegressionIRLS().fit(features, churn["has_churned"])
    model = logit(churn, "has_churned", ["time_since_first_purchase"])

    assert estimator.intercept_ == pytest.approx(model.coef[INTERCEPT_NAME])
    np.testing.assert_allclose(estimator.predict_proba(features), predict(model, churn))
    assert set(estimator.predict(features)) <= {0, 1}


def test_estimator_requires_fit() -> None:
    with pytest.raises(RuntimeError):
        LogisticRegressionIRLS().predict_proba(np.zeros((2, 1)))
