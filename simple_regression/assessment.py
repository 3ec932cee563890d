from __future__ import annotations

"""
Model-level, coefficient-level and observation-level summaries of a fit.

glance  -> one dict of fit statistics (R squared, residual standard error, ...)
tidy    -> one row per coefficient with standard errors and p-values
augment -> one row per observation with fitted values, leverage and influence
"""

import numpy as np
import pandas as pd
from scipy import stats
from scipy.linalg import solve_triangular

from .constants import INTERCEPT_NAME
from .model import FittedModel


def _weights(model: FittedModel) -> np.ndarray:
    if model.is_logistic:
        mu = model.fitted_values
        return mu * (1.0 - mu)
    return np.ones(model.nobs)


def _weighted_qr(model: FittedModel):
    sw = np.sqrt(_weights(model))
    return np.linalg.qr(model.design_matrix * sw[:, None])


def leverage(model: FittedModel) -> np.ndarray:
    """Diagonal of the (weighted) hat matrix."""
    q, _ = _weighted_qr(model)
    return np.sum(q**2, axis=1)


def _unscaled_cov(model: FittedModel) -> np.ndarray:
    _, r = _weighted_qr(model)
    r_inv = solve_triangular(r, np.eye(r.shape[0]))
    return r_inv @ r_inv.T


def _rss(model: FittedModel) -> float:
    return float(np.sum(model.residuals**2))


def residual_standard_error(model: FittedModel) -> float:
    if model.df_residual <= 0:
        return float("nan")
    return float(np.sqrt(_rss(model) / model.df_residual))


def _tss(model: FittedModel) -> float:
    y = model.response
    if model.has_intercept:
        return float(np.sum((y - y.mean()) ** 2))
    return float(np.sum(y**2))


def r_squared(model: FittedModel) -> float:
    """
    Share of response variance explained by the model. Models without an
    intercept are measured against the uncentered sum of squares.
    """
    tss = _tss(model)
    if tss == 0:
        return float("nan")
    return float(1.0 - _rss(model) / tss)


def null_deviance(model: FittedModel) -> float:
    y = model.response
    mu = y.mean() if model.has_intercept else 0.5
    if mu in (0.0, 1.0):
        return 0.0
    return float(-2.0 * np.sum(y * np.log(mu) + (1.0 - y) * np.log(1.0 - mu)))


def deviance(model: FittedModel) -> float:
    if not model.is_logistic:
        return _rss(model)
    eta = model.design_matrix @ model.coef.to_numpy()
    y = model.response
    return float(2.0 * np.sum(y * np.logaddexp(0.0, -eta) + (1.0 - y) * np.logaddexp(0.0, eta)))


def glance(model: FittedModel) -> dict[str, float]:
    n, p = model.nobs, model.n_params
    df_model = p - int(model.has_intercept)

    if model.is_logistic:
        dev = deviance(model)
        log_lik = -dev / 2.0
        return {
            "null_deviance": null_deviance(model),
            "df_null": n - int(model.has_intercept),
            "deviance": dev,
            "df_residual": model.df_residual,
            "log_likelihood": log_lik,
            "aic": dev + 2 * p,
            "bic": dev + np.log(n) * p,
            "nobs": n,
            "iterations": model.n_iter,
        }

    rss = _rss(model)
    r2 = r_squared(model)
    df_resid = model.df_residual
    if df_resid > 0:
        adj_r2 = 1.0 - (1.0 - r2) * (n - int(model.has_intercept)) / df_resid
    else:
        adj_r2 = float("nan")
    tss = _tss(model)
    if df_model > 0 and df_resid > 0 and rss > 0 and tss > 0:
        f_stat = ((tss - rss) / df_model) / (rss / df_resid)
        f_p = float(stats.f.sf(f_stat, df_model, df_resid))
    else:
        f_stat, f_p = float("nan"), float("nan")
    log_lik = -n / 2.0 * (np.log(2 * np.pi) + np.log(rss / n) + 1.0) if rss > 0 else float("inf")
    return {
        "r_squared": r2,
        "adj_r_squared": adj_r2,
        "sigma": residual_standard_error(model),
        "f_statistic": f_stat,
        "f_p_value": f_p,
        "df": df_model,
        "df_residual": df_resid,
        "log_likelihood": log_lik,
        "aic": -2 * log_lik + 2 * (p + 1),
        "bic": -2 * log_lik + np.log(n) * (p + 1),
        "nobs": n,
    }


def tidy(model: FittedModel) -> pd.DataFrame:
    """Estimate, standard error, t (linear) or z (logistic) statistic and p-value per term."""
    cov = _unscaled_cov(model)
    if not model.is_logistic:
        cov = cov * residual_standard_error(model) ** 2
    std_error = np.sqrt(np.diag(cov))
    estimate = model.coef.to_numpy()
    with np.errstate(divide="ignore", invalid="ignore"):
        statistic = estimate / std_error
    if model.is_logistic:
        p_value = 2 * stats.norm.sf(np.abs(statistic))
    else:
        p_value = 2 * stats.t.sf(np.abs(statistic), model.df_residual)
    return pd.DataFrame(
        {
            "term": model.term_names,
            "estimate": estimate,
            "std_error": std_error,
            "statistic": statistic,
            "p_value": p_value,
        }
    )


def augment(model: FittedModel) -> pd.DataFrame:
    """
    Training observations with fitted values and diagnostics.

    Linear models get residuals, standardized residuals and Cook's distance;
    every model gets leverage (``.hat``).
    """
    columns = [name for name in model.term_names if name != INTERCEPT_NAME]
    X = pd.DataFrame(model.design_matrix, columns=model.term_names)[columns]
    out = pd.concat([pd.DataFrame({model.response_name: model.response}), X], axis=1)
    hat = leverage(model)
    out[".fitted"] = model.fitted_values
    if not model.is_logistic:
        sigma = residual_standard_error(model)
        resid = model.residuals
        with np.errstate(divide="ignore", invalid="ignore"):
            std_resid = resid / (sigma * np.sqrt(1.0 - hat))
            cooksd = std_resid**2 * hat / (model.n_params * (1.0 - hat))
        out[".resid"] = resid
        out[".hat"] = hat
        out[".std_resid"] = std_resid
        out[".cooksd"] = cooksd
    else:
        out[".hat"] = hat
    return out


def top_influential(model: FittedModel, by: str = ".cooksd", n: int = 6) -> pd.DataFrame:
    """Observations sorted by descending leverage (``.hat``) or Cook's distance."""
    table = augment(model)
    if by not in table.columns:
        raise ValueError(f"Cannot rank by {by!r}; choose from {[c for c in table if c.startswith('.')]}")
    return table.sort_values(by, ascending=False).head(n)
