from __future__ import annotations

"""
Confusion matrices and the performance metrics derived from them.
"""

import math
import warnings
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn import metrics

from .constants import DEFAULT_THRESHOLD
from .exceptions import UndefinedMetricError, UndefinedMetricWarning
from .prediction import most_likely_outcome

ON_UNDEFINED = ("warn", "raise")


@dataclass(frozen=True)
class ConfusionMatrix:
    """Counts of each (actual, predicted) outcome for a binary classifier."""

    true_positive: int
    false_negative: int
    false_positive: int
    true_negative: int
    positive_label: object = 1
    negative_label: object = 0

    def __post_init__(self):
        for name in ("true_positive", "false_negative", "false_positive", "true_negative"):
            value = getattr(self, name)
            if int(value) != value or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value}")
            object.__setattr__(self, name, int(value))

    @property
    def total(self) -> int:
        return self.true_positive + self.false_negative + self.false_positive + self.true_negative

    @property
    def actual_positive(self) -> int:
        return self.true_positive + self.false_negative

    @property
    def actual_negative(self) -> int:
        return self.true_negative + self.false_positive

    def to_array(self) -> np.ndarray:
        """[[TN, FP], [FN, TP]], the layout scikit-learn uses."""
        return np.array(
            [[self.true_negative, self.false_positive], [self.false_negative, self.true_positive]]
        )

    def as_frame(self) -> pd.DataFrame:
        """Predicted outcomes as rows, actual outcomes as columns."""
        labels = [self.negative_label, self.positive_label]
        table = pd.DataFrame(
            [[self.true_negative, self.false_negative], [self.false_positive, self.true_positive]],
            index=pd.Index(labels, name="predicted"),
            columns=pd.Index(labels, name="actual"),
        )
        return table


def confusion_matrix(actual, predicted, positive_label) -> ConfusionMatrix:
    """
    Tally actual vs. predicted outcomes.

    ``positive_label`` says which label is the event of interest; it is never
    inferred from label order. At most two distinct labels may appear.
    """
    actual = pd.Series(np.asarray(actual).ravel())
    predicted = pd.Series(np.asarray(predicted).ravel())
    if len(actual) != len(predicted):
        raise ValueError(
            f"actual has {len(actual)} values but predicted has {len(predicted)}"
        )

    labels = set(actual.unique()) | set(predicted.unique())
    others = labels - {positive_label}
    if len(others) > 1:
        raise ValueError(
            f"Expected a binary outcome with positive label {positive_label!r}, "
            f"found labels {sorted(map(str, labels))}"
        )
    negative_label = others.pop() if others else _default_negative(positive_label)

    actual_pos = (actual == positive_label).to_numpy()
    pred_pos = (predicted == positive_label).to_numpy()
    return ConfusionMatrix(
        true_positive=int(np.sum(actual_pos & pred_pos)),
        false_negative=int(np.sum(actual_pos & ~pred_pos)),
        false_positive=int(np.sum(~actual_pos & pred_pos)),
        true_negative=int(np.sum(~actual_pos & ~pred_pos)),
        positive_label=positive_label,
        negative_label=negative_label,
    )


def _default_negative(positive_label):
    if positive_label in (0, 1) and not isinstance(positive_label, str):
        return 1 - int(positive_label)
    return f"not {positive_label}"


def _ratio(numerator: int, denominator: int, name: str, on_undefined: str) -> float:
    if denominator == 0:
        message = f"{name} is undefined: its denominator is zero"
        if on_undefined == "raise":
            raise UndefinedMetricError(message)
        warnings.warn(message, UndefinedMetricWarning, stacklevel=3)
        return float("nan")
    return numerator / denominator


def _check_on_undefined(on_undefined: str):
    if on_undefined not in ON_UNDEFINED:
        raise ValueError(f"on_undefined must be one of {ON_UNDEFINED}, got {on_undefined!r}")


def classification_metrics(cm: ConfusionMatrix, on_undefined: str = "warn") -> dict[str, float]:
    """
    Accuracy, sensitivity and specificity of a confusion matrix.

    A metric with a zero denominator is NaN plus an UndefinedMetricWarning,
    or an UndefinedMetricError with ``on_undefined="raise"``.
    """
    _check_on_undefined(on_undefined)
    return {
        "accuracy": _ratio(
            cm.true_positive + cm.true_negative, cm.total, "accuracy", on_undefined
        ),
        "sensitivity": _ratio(cm.true_positive, cm.actual_positive, "sensitivity", on_undefined),
        "specificity": _ratio(cm.true_negative, cm.actual_negative, "specificity", on_undefined),
    }


def summary_metrics(cm: ConfusionMatrix, on_undefined: str = "warn") -> dict[str, float]:
    """The three core metrics plus the other common confusion-matrix summaries."""
    core = classification_metrics(cm, on_undefined=on_undefined)
    precision = _ratio(
        cm.true_positive, cm.true_positive + cm.false_positive, "precision", on_undefined
    )
    npv = _ratio(
        cm.true_negative, cm.true_negative + cm.false_negative, "npv", on_undefined
    )
    if math.isnan(precision) or math.isnan(core["sensitivity"]):
        f1 = float("nan")
    else:
        f1 = _ratio(
            2 * cm.true_positive,
            2 * cm.true_positive + cm.false_positive + cm.false_negative,
            "f1",
            on_undefined,
        )
    return {
        **core,
        "error_rate": 1.0 - core["accuracy"],
        "precision": precision,
        "npv": npv,
        "f1": f1,
        "balanced_accuracy": (core["sensitivity"] + core["specificity"]) / 2,
    }


def evaluate_classifier(
    actual,
    probabilities,
    positive_label=1,
    threshold: float = DEFAULT_THRESHOLD,
    on_undefined: str = "warn",
):
    """
    Threshold probabilities of the positive class and summarize performance.

    ``actual`` may use any two labels; ``positive_label`` names the event.
    """
    probs = np.asarray(probabilities, dtype=float)
    actual_pos = (np.asarray(actual).ravel() == positive_label).astype(int)
    predicted = most_likely_outcome(probs, threshold)
    cm = confusion_matrix(actual_pos, predicted, positive_label=1)
    result = summary_metrics(cm, on_undefined=on_undefined)
    try:
        result["roc_auc"] = metrics.roc_auc_score(actual_pos, probs)
    except ValueError:
        result["roc_auc"] = float("nan")
    result["confusion_matrix"] = cm
    return result
