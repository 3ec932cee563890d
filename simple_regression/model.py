from __future__ import annotations

"""
Immutable container returned by the linear and logistic fitters.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd

from .constants import INTERCEPT_NAME
from .design import DesignInfo

GAUSSIAN = "gaussian"
BINOMIAL = "binomial"


def _frozen(values) -> np.ndarray:
    arr = np.array(values, dtype=float, copy=True)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class FittedModel:
    """
    Coefficients and the artifacts derived from them.

    ``residuals`` is only set for linear models; ``converged`` and
    ``n_iter`` only carry information for logistic models. ``design`` is the
    recipe used to encode query tables when the model was fitted from an
    observation table rather than a raw design matrix.
    """

    family: str
    coef: pd.Series
    fitted_values: np.ndarray
    design_matrix: np.ndarray
    response: np.ndarray
    residuals: np.ndarray | None = None
    converged: bool = True
    n_iter: int = 0
    design: DesignInfo | None = None
    response_name: str = "y"

    def __post_init__(self):
        coef = pd.Series(self.coef, dtype=float).copy()
        coef.values.setflags(write=False)
        object.__setattr__(self, "coef", coef)
        object.__setattr__(self, "fitted_values", _frozen(self.fitted_values))
        object.__setattr__(self, "design_matrix", _frozen(self.design_matrix))
        object.__setattr__(self, "response", _frozen(self.response))
        if self.residuals is not None:
            object.__setattr__(self, "residuals", _frozen(self.residuals))

    @property
    def term_names(self) -> list[str]:
        return list(self.coef.index)

    @property
    def has_intercept(self) -> bool:
        return INTERCEPT_NAME in self.coef.index

    @property
    def nobs(self) -> int:
        return int(self.design_matrix.shape[0])

    @property
    def n_params(self) -> int:
        return int(self.design_matrix.shape[1])

    @property
    def df_residual(self) -> int:
        return self.nobs - self.n_params

    @property
    def is_logistic(self) -> bool:
        return self.family == BINOMIAL

    def __repr__(self) -> str:
        coefs = ", ".join(f"{name}={value:.4g}" for name, value in self.coef.items())
        return f"FittedModel(family={self.family!r}, {coefs})"
