"""
Simple linear and logistic regression: fitting, prediction, fit assessment and
confusion-matrix metrics.

This package contains a QR-based least-squares fitter, an IRLS logistic
fitter, prediction helpers, and evaluation utilities used by main.py.
"""

from .assessment import augment, glance, tidy, top_influential
from .constants import DEFAULT_MAX_ITER, DEFAULT_THRESHOLD, DEFAULT_TOL, INTERCEPT_NAME
from .design import DesignInfo, Term, build_design_matrix
from .exceptions import (
    ConvergenceError,
    FittedProbabilityWarning,
    FittingError,
    RegressionError,
    SeparationError,
    ShapeMismatchError,
    SingularDesignError,
    UndefinedMetricError,
    UndefinedMetricWarning,
)
from .linear import fit_linear, ols
from .logistic import LogisticRegressionIRLS, fit_logistic, logit, sigmoid
from .metrics import (
    ConfusionMatrix,
    classification_metrics,
    confusion_matrix,
    evaluate_classifier,
    summary_metrics,
)
from .model import FittedModel
from .prediction import (
    back_transform,
    explanatory_grid,
    logistic_outcomes,
    manual_predictions,
    most_likely_outcome,
    predict,
    prediction_table,
)

__all__ = [
    "DEFAULT_MAX_ITER",
    "DEFAULT_THRESHOLD",
    "DEFAULT_TOL",
    "INTERCEPT_NAME",
    "ConfusionMatrix",
    "ConvergenceError",
    "DesignInfo",
    "FittedModel",
    "FittedProbabilityWarning",
    "FittingError",
    "LogisticRegressionIRLS",
    "RegressionError",
    "SeparationError",
    "ShapeMismatchError",
    "SingularDesignError",
    "Term",
    "UndefinedMetricError",
    "UndefinedMetricWarning",
    "augment",
    "back_transform",
    "build_design_matrix",
    "classification_metrics",
    "confusion_matrix",
    "evaluate_classifier",
    "explanatory_grid",
    "fit_linear",
    "fit_logistic",
    "glance",
    "logistic_outcomes",
    "logit",
    "manual_predictions",
    "most_likely_outcome",
    "ols",
    "predict",
    "prediction_table",
    "sigmoid",
    "summary_metrics",
    "tidy",
    "top_influential",
]
