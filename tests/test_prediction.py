from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from simple_regression import (
    ShapeMismatchError,
    Term,
    back_transform,
    explanatory_grid,
    fit_linear,
    logistic_outcomes,
    logit,
    manual_predictions,
    most_likely_outcome,
    ols,
    predict,
    prediction_table,
    sigmoid,
)


def test_linear_prediction_on_explanatory_grid(perfect_line: pd.DataFrame) -> None:
    model = ols(perfect_line, "y", ["x"])
    explanatory = explanatory_grid("x", range(0, 11))

    preds = predict(model, explanatory)

    np.testing.assert_allclose(preds, 1.0 + 2.0 * np.arange(11))
    np.testing.assert_allclose(predict(model, explanatory, mode="link"), preds)


def test_impossible_inputs_still_extrapolate(perfect_line: pd.DataFrame) -> None:
    model = ols(perfect_line, "y", ["x"])

    assert predict(model, pd.DataFrame({"x": [-1.0]}))[0] == pytest.approx(-1.0)
    assert predict(model, pd.DataFrame({"x": [2.5]}))[0] == pytest.approx(6.0)


def test_manual_predictions_match_predict(real_estate: pd.DataFrame) -> None:
    model = ols(real_estate, "price_twd_msq", ["n_convenience"])
    explanatory = explanatory_grid("n_convenience", range(11))

    np.testing.assert_allclose(manual_predictions(model, explanatory), predict(model, explanatory))


def test_logistic_response_is_sigmoid_of_link(churn: pd.DataFrame) -> None:
    model = logit(churn, "has_churned", ["time_since_first_purchase"])
    explanatory = explanatory_grid("time_since_first_purchase", np.linspace(-10, 20, 31))

    response = predict(model, explanatory, mode="response")
    link = predict(model, explanatory, mode="link")

    assert np.all((response >= 0.0) & (response <= 1.0))
    np.testing.assert_allclose(sigmoid(link), response)


def test_predict_is_idempotent(churn: pd.DataFrame) -> None:
    model = logit(churn, "has_churned", ["time_since_first_purchase"])
    coef_before = model.coef.copy()

    first = predict(model, churn)
    second = predict(model, churn)

    np.testing.assert_array_equal(first, second)
    pd.testing.assert_series_equal(model.coef, coef_before)


def test_back_transformed_power_response_recovers_original_scale() -> None:
    impressions = np.linspace(0, 3e6, 13)
    clicks = (1.0 + 0.05 * impressions**0.25) ** 4
    ads = pd.DataFrame({"n_impressions": impressions, "n_clicks": clicks})
    model = ols(ads, Term("n_clicks", 0.25), [Term("n_impressions", 0.25)])
    explanatory = explanatory_grid("n_impressions", np.arange(0, 3e6 + 1, 5e5))

    table = prediction_table(model, explanatory, response_name="n_clicks", back_transform_power=0.25)

    expected = (1.0 + 0.05 * explanatory["n_impressions"] ** 0.25) ** 4
    np.testing.assert_allclose(table["n_clicks"], expected, rtol=1e-8)
    np.testing.assert_allclose(table["n_clicks_025"], expected**0.25, rtol=1e-8)
    assert model.response_name == "I(n_clicks^0.25)"


def test_prediction_table_without_transform_keeps_transformed_scale(perfect_line: pd.DataFrame) -> None:
    model = ols(perfect_line, "y", ["x"])

    table = prediction_table(model, explanatory_grid("x", [10]))

    assert list(table.columns) == ["x", "y"]
    assert table["y"].iloc[0] == pytest.approx(21.0)


def test_back_transform_rejects_zero_power() -> None:
    with pytest.raises(ValueError):
        back_transform([1.0], 0)
    np.testing.assert_allclose(back_transform([2.0, 3.0], 0.25), [16.0, 81.0])


def test_logistic_outcomes_columns(churn: pd.DataFrame) -> None:
    model = logit(churn, "has_churned", ["time_since_first_purchase"])
    explanatory = explanatory_grid("time_since_first_purchase", [-1.0, 0.0, 2.0, 6.0])

    outcomes = logistic_outcomes(model, explanatory)

    probs = outcomes["has_churned"].to_numpy()
    np.testing.assert_allclose(outcomes["odds_ratio"], probs / (1 - probs))
    np.testing.assert_allclose(outcomes["log_odds_ratio"], np.log(outcomes["odds_ratio"]))
    np.testing.assert_array_equal(outcomes["most_likely_outcome"], (probs >= 0.5).astype(int))


def test_most_likely_outcome_threshold_is_inclusive() -> None:
    np.testing.assert_array_equal(most_likely_outcome([0.2, 0.5, 0.7]), [0, 1, 1])
    np.testing.assert_array_equal(most_likely_outcome([0.2, 0.5, 0.7], threshold=0.6), [0, 0, 1])
    with pytest.raises(ValueError):
        most_likely_outcome([0.2], threshold=1.5)


def test_missing_term_column_is_named(real_estate: pd.DataFrame) -> None:
    model = ols(real_estate, "price_twd_msq", ["n_convenience", "house_age_years"])

    with pytest.raises(ShapeMismatchError, match="house_age_years"):
        predict(model, explanatory_grid("n_convenience", [1, 2]))


def test_unseen_category_level_is_rejected(real_estate: pd.DataFrame) -> None:
    model = ols(real_estate, "price_twd_msq", ["house_age_years"])

    with pytest.raises(ShapeMismatchError, match="45 to 60"):
        predict(model, pd.DataFrame({"house_age_years": ["45 to 60"]}))


def test_raw_design_model_checks_query_columns() -> None:
    X = pd.DataFrame({"const": 1.0, "x": [0.0, 1.0, 2.0, 3.0]})
    model = fit_linear(X, [1.0, 3.0, 5.0, 7.0])

    np.testing.assert_allclose(predict(model, pd.DataFrame({"x": [4.0], "const": [1.0]})), [9.0])
    np.testing.assert_allclose(predict(model, np.array([[1.0, 4.0]])), [9.0])
    with pytest.raises(ShapeMismatchError, match="const"):
        predict(model, pd.DataFrame({"x": [4.0]}))
    with pytest.raises(ShapeMismatchError):
        predict(model, np.ones((2, 3)))


def test_unknown_mode_is_rejected(perfect_line: pd.DataFrame) -> None:
    model = ols(perfect_line, "y", ["x"])

    with pytest.raises(ValueError, match="Unknown prediction mode"):
        predict(model, perfect_line, mode="probability")
