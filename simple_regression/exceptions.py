"""Errors and warnings raised by the fitters, the predictor and the metrics."""


class RegressionError(Exception):
    """Base exception for the package."""


class FittingError(RegressionError):
    """Raised when a model cannot be fitted to the given data."""


class SingularDesignError(FittingError, ValueError):
    """Raised when the design matrix is rank deficient."""

    def __init__(self, collinear_terms=None):
        self.collinear_terms = list(collinear_terms or [])
        if self.collinear_terms:
            message = "singular design matrix; collinear terms: " + ", ".join(
                self.collinear_terms
            )
        else:
            message = "singular design matrix"
        super().__init__(message)


class ConvergenceError(FittingError, RuntimeError):
    """Raised when IRLS hits the iteration limit without meeting the tolerance."""


class SeparationError(ConvergenceError):
    """Raised when the response is perfectly separated by the explanatory terms."""


class ShapeMismatchError(RegressionError, ValueError):
    """Raised when a query table does not match the terms of a fitted model."""


class UndefinedMetricError(RegressionError, ZeroDivisionError):
    """Raised when a metric has a zero denominator and the caller asked to fail."""


class UndefinedMetricWarning(RuntimeWarning):
    """Emitted when a metric has a zero denominator and is reported as NaN."""


class FittedProbabilityWarning(RuntimeWarning):
    """Emitted when a converged logistic fit has probabilities numerically 0 or 1."""
