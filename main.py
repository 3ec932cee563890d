from __future__ import annotations

"""
CLI entrypoint for the regression workflows. Pick the workflow via
--experiment: linear (OLS fit, predictions, fit quality) or logistic
(IRLS fit, predicted outcomes, confusion matrix).
"""

import argparse
from pathlib import Path

import numpy as np
import pandas as pd
from sklearn.linear_model import LogisticRegression

from simple_regression import (
    DEFAULT_MAX_ITER,
    DEFAULT_THRESHOLD,
    DEFAULT_TOL,
    Term,
    confusion_matrix,
    evaluate_classifier,
    explanatory_grid,
    glance,
    logistic_outcomes,
    logit,
    most_likely_outcome,
    ols,
    predict,
    prediction_table,
    tidy,
    top_influential,
)
from simple_regression.data_prep import load_observations, make_train_test_split, parse_values


def print_coefficients(model):
    print("Coefficients:")
    print(tidy(model).to_string(index=False, float_format=lambda v: f"{v:.4f}"))


def print_glance(label: str, stats: dict):
    """One line per model-level statistic."""
    print(f"[{label}]")
    for key, value in stats.items():
        print(f"    {key}: {value:.4f}" if isinstance(value, float) else f"    {key}: {value}")


def print_metrics(label: str, metrics: dict):
    """Nicely format the metric dict produced by evaluate_classifier."""
    cm = metrics["confusion_matrix"]
    print(
        f"[{label}] Acc {metrics['accuracy']:.3f} | "
        f"Sens {metrics['sensitivity']:.3f} | Spec {metrics['specificity']:.3f} | "
        f"Prec {metrics['precision']:.3f} | F1 {metrics['f1']:.3f} | "
        f"ROC-AUC {metrics['roc_auc']:.3f}"
    )
    print(f"    Confusion matrix [[TN, FP], [FN, TP]]: {cm.to_array().tolist()}")


def build_arg_parser():
    """CLI parser with knobs for the model terms, solver and evaluation."""
    parser = argparse.ArgumentParser(
        description="Fit simple linear or logistic regressions and assess them."
    )
    parser.add_argument("--csv-path", type=Path, required=True)
    parser.add_argument(
        "--experiment",
        choices=["linear", "logistic"],
        default="linear",
        help="linear: OLS fit + predictions + fit quality; logistic: IRLS fit + confusion matrix.",
    )
    parser.add_argument("--response", required=True, help="Response column.")
    parser.add_argument(
        "--explanatory",
        required=True,
        help="Comma-separated explanatory columns.",
    )
    parser.add_argument("--no-intercept", action="store_true", help="Drop the intercept term.")
    parser.add_argument(
        "--response-power",
        type=float,
        default=None,
        help="Fit the response raised to this power and back-transform predictions.",
    )
    parser.add_argument(
        "--explanatory-power",
        type=float,
        default=None,
        help="Raise every numeric explanatory column to this power (0.5 = square root).",
    )
    parser.add_argument(
        "--predict-at",
        type=str,
        default=None,
        help="Values of the first explanatory column to predict at: '0,1,2' or 'start:stop:step'.",
    )
    parser.add_argument(
        "--positive-label",
        type=str,
        default="1",
        help="Response value counted as the positive class (logistic only).",
    )
    parser.add_argument("--threshold", type=float, default=DEFAULT_THRESHOLD)
    parser.add_argument("--max-iter", type=int, default=DEFAULT_MAX_ITER, help="Max IRLS iterations.")
    parser.add_argument("--tol", type=float, default=DEFAULT_TOL, help="Relative deviance tolerance.")
    parser.add_argument(
        "--test-size",
        type=float,
        default=None,
        help="Hold out this share of rows for the logistic confusion matrix.",
    )
    parser.add_argument("--random-state", type=int, default=42)
    parser.add_argument("--top-n", type=int, default=6, help="Rows to show for leverage/influence.")
    parser.add_argument("--verbose", action="store_true", help="Print IRLS progress.")
    return parser


def _terms(args: argparse.Namespace, data: pd.DataFrame) -> list:
    names = [c.strip() for c in args.explanatory.split(",") if c.strip()]
    if args.explanatory_power is None:
        return names
    return [
        Term(name, args.explanatory_power) if pd.api.types.is_numeric_dtype(data[name]) else name
        for name in names
    ]


def _coerce_label(raw: str, values: pd.Series):
    """Match the CLI's string label to the response column's dtype."""
    if pd.api.types.is_bool_dtype(values):
        return raw.strip().lower() in {"1", "true", "yes"}
    if pd.api.types.is_numeric_dtype(values):
        return type(values.iloc[0].item())(float(raw))
    return raw


def run_linear(args: argparse.Namespace):
    """OLS fit, predictions at chosen values, and fit-quality diagnostics."""
    columns = [c.strip() for c in args.explanatory.split(",")] + [args.response]
    data = load_observations(args.csv_path, columns)
    terms = _terms(args, data)
    response = Term(args.response, args.response_power) if args.response_power else args.response

    model = ols(data, response, terms, intercept=not args.no_intercept)
    print(f"Observations: {model.nobs}, terms: {model.term_names}")
    print_coefficients(model)
    print_glance("Model fit", glance(model))

    if args.predict_at:
        first = terms[0].column if isinstance(terms[0], Term) else terms[0]
        explanatory = explanatory_grid(first, parse_values(args.predict_at))
        table = prediction_table(
            model,
            explanatory,
            response_name=args.response,
            back_transform_power=args.response_power,
        )
        print("\nPredictions:")
        print(table.to_string(index=False))

    print(f"\nHighest leverage (top {args.top_n}):")
    print(top_influential(model, by=".hat", n=args.top_n).to_string(index=False))
    print(f"\nMost influential by Cook's distance (top {args.top_n}):")
    print(top_influential(model, by=".cooksd", n=args.top_n).to_string(index=False))


def run_logistic(args: argparse.Namespace):
    """IRLS fit, predicted outcomes, confusion matrix and a scikit-learn reference."""
    columns = [c.strip() for c in args.explanatory.split(",")] + [args.response]
    data = load_observations(args.csv_path, columns)
    terms = _terms(args, data)
    positive_label = _coerce_label(args.positive_label, data[args.response])

    if args.test_size:
        data["_positive"] = (data[args.response] == positive_label).astype(int)
        train_ids, test_ids = make_train_test_split(
            data, test_size=args.test_size, random_state=args.random_state, stratify_column="_positive"
        )
        train, test = data.loc[train_ids], data.loc[test_ids]
        print(f"Train size: {len(train_ids)}, Test size: {len(test_ids)}")
    else:
        train = test = data

    model = logit(
        train,
        args.response,
        terms,
        intercept=not args.no_intercept,
        positive_label=positive_label,
        max_iter=args.max_iter,
        tol=args.tol,
        verbose=args.verbose,
    )
    print(f"Observations: {model.nobs}, IRLS iterations: {model.n_iter}")
    print_coefficients(model)
    print_glance("Model fit", glance(model))

    if args.predict_at:
        first = terms[0].column if isinstance(terms[0], Term) else terms[0]
        explanatory = explanatory_grid(first, parse_values(args.predict_at))
        outcomes = logistic_outcomes(
            model, explanatory, response_name=args.response, threshold=args.threshold
        )
        print("\nPredicted outcomes:")
        print(outcomes.to_string(index=False))

    probs = predict(model, test, mode="response")
    actual = (test[args.response] == positive_label).astype(int).to_numpy()
    cm = confusion_matrix(actual, most_likely_outcome(probs, args.threshold), positive_label=1)
    print("\nConfusion matrix (rows predicted, columns actual):")
    print(cm.as_frame().to_string())
    print_metrics("IRLS logistic", evaluate_classifier(actual, probs, threshold=args.threshold))

    # Scikit-learn logistic regression (reference, unpenalized)
    X_train = model.design.transform(train)
    X_test = model.design.transform(test)
    sk_model = LogisticRegression(penalty=None, fit_intercept=False, max_iter=5000)
    sk_model.fit(X_train.to_numpy(), model.response.astype(int))
    sk_probs = sk_model.predict_proba(X_test.to_numpy())[:, 1]
    print_metrics(
        "sklearn LogisticRegression", evaluate_classifier(actual, sk_probs, threshold=args.threshold)
    )
    sk_coef = pd.Series(sk_model.coef_[0], index=model.term_names)
    print(f"\nCoefficient gap vs. sklearn (max abs): {np.max(np.abs(sk_coef - model.coef)):.2e}")


def main(args: argparse.Namespace | None = None):
    """Dispatch to the selected workflow."""
    args = args or build_arg_parser().parse_args()

    if args.experiment == "linear":
        run_linear(args)
    else:
        run_logistic(args)


if __name__ == "__main__":
    main()
