from __future__ import annotations

"""
Design-matrix construction from observation tables.

Numeric columns become one term each (optionally raised to a power, e.g. the
square root of a distance). Categorical columns (object, category or bool
dtype) become indicator columns. With an intercept the first level of each
categorical column is the reference and gets no column; without an intercept
the first categorical column keeps every level.
"""

from dataclasses import dataclass, field
from typing import Iterable, Sequence, Union

import numpy as np
import pandas as pd
from pandas.api import types as ptypes

from .constants import INTERCEPT_NAME
from .exceptions import ShapeMismatchError


@dataclass(frozen=True)
class Term:
    """One explanatory column, optionally raised to a power."""

    column: str
    power: float | None = None

    @property
    def label(self) -> str:
        if self.power is None or self.power == 1:
            return self.column
        if self.power == 0.5:
            return f"sqrt({self.column})"
        return f"I({self.column}^{self.power:g})"

    def apply(self, values: pd.Series) -> pd.Series:
        values = values.astype(float)
        if self.power is None or self.power == 1:
            return values
        return values ** self.power


TermLike = Union[str, Term]


def as_term(item: TermLike) -> Term:
    if isinstance(item, Term):
        return item
    if isinstance(item, str):
        return Term(item)
    raise TypeError(f"Expected a column name or Term, got {type(item).__name__}")


def is_categorical(values: pd.Series) -> bool:
    return (
        ptypes.is_object_dtype(values)
        or isinstance(values.dtype, pd.CategoricalDtype)
        or ptypes.is_bool_dtype(values)
        or ptypes.is_string_dtype(values)
    )


def _levels(values: pd.Series) -> tuple:
    if isinstance(values.dtype, pd.CategoricalDtype):
        return tuple(values.cat.categories)
    unique = values.dropna().unique()
    try:
        return tuple(sorted(unique))
    except TypeError:
        # mixed types, e.g. ints and strings in one object column
        return tuple(sorted(unique, key=str))


@dataclass(frozen=True)
class DesignInfo:
    """Recipe for rebuilding a design matrix from new explanatory values."""

    terms: tuple[Term, ...]
    intercept: bool = True
    levels: dict[str, tuple] = field(default_factory=dict)

    def _encoded_levels(self, term: Term, full_rank_slot: bool) -> tuple:
        levels = self.levels[term.column]
        return levels if full_rank_slot else levels[1:]

    @property
    def column_names(self) -> list[str]:
        names = [INTERCEPT_NAME] if self.intercept else []
        full_rank_slot = not self.intercept
        for term in self.terms:
            if term.column in self.levels:
                names.extend(
                    f"{term.column}[{level}]"
                    for level in self._encoded_levels(term, full_rank_slot)
                )
                full_rank_slot = False
            else:
                names.append(term.label)
        return names

    def transform(self, data: pd.DataFrame) -> pd.DataFrame:
        """Encode a table of explanatory values with this recipe."""
        for term in self.terms:
            if term.column not in data.columns:
                raise ShapeMismatchError(
                    f"Query table is missing required term '{term.label}' "
                    f"(column '{term.column}')."
                )

        columns: dict[str, pd.Series] = {}
        if self.intercept:
            columns[INTERCEPT_NAME] = pd.Series(1.0, index=data.index)

        full_rank_slot = not self.intercept
        for term in self.terms:
            values = data[term.column]
            if term.column in self.levels:
                known = set(self.levels[term.column])
                unseen = sorted({str(v) for v in values.dropna().unique() if v not in known})
                if unseen:
                    raise ShapeMismatchError(
                        f"Column '{term.column}' has levels not seen when fitting: {unseen}"
                    )
                for level in self._encoded_levels(term, full_rank_slot):
                    columns[f"{term.column}[{level}]"] = (values == level).astype(float)
                full_rank_slot = False
            else:
                if is_categorical(values):
                    raise ShapeMismatchError(
                        f"Column '{term.column}' was numeric when fitting but is "
                        f"{values.dtype} in the query table."
                    )
                columns[term.label] = term.apply(values)

        X = pd.DataFrame(columns, index=data.index)
        if X.isna().to_numpy().any():
            raise ValueError("Explanatory values contain missing entries.")
        return X


def make_design_info(
    data: pd.DataFrame, terms: Iterable[TermLike], intercept: bool = True
) -> DesignInfo:
    """Inspect the observation table to fix term types and categorical levels."""
    term_list = tuple(as_term(t) for t in terms)
    if not term_list and not intercept:
        raise ValueError("A model needs at least one term or an intercept.")

    levels: dict[str, tuple] = {}
    for term in term_list:
        if term.column not in data.columns:
            raise ShapeMismatchError(f"Observation table has no column '{term.column}'.")
        values = data[term.column]
        if is_categorical(values):
            if term.power is not None:
                raise ValueError(f"Cannot apply a power to categorical column '{term.column}'.")
            levels[term.column] = _levels(values)
    return DesignInfo(terms=term_list, intercept=intercept, levels=levels)


def build_design_matrix(
    data: pd.DataFrame, terms: Sequence[TermLike], intercept: bool = True
) -> tuple[pd.DataFrame, DesignInfo]:
    """Return the design matrix for ``terms`` and the recipe that produced it."""
    info = make_design_info(data, terms, intercept=intercept)
    return info.transform(data), info


def response_vector(data: pd.DataFrame, response: TermLike) -> pd.Series:
    """Pull the (optionally power-transformed) response column out of a table."""
    term = as_term(response)
    if term.column not in data.columns:
        raise ShapeMismatchError(f"Observation table has no response column '{term.column}'.")
    values = data[term.column]
    if term.power is None or term.power == 1:
        return values.rename(term.label)
    return term.apply(values).rename(term.label)


def as_design_frame(X, term_names: Sequence[str] | None = None) -> pd.DataFrame:
    """Coerce an array-like design matrix to a float DataFrame with term names."""
    if isinstance(X, pd.DataFrame):
        frame = X.astype(float)
        if term_names is not None:
            frame.columns = list(term_names)
        return frame
    arr = np.asarray(X, dtype=float)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise ValueError(f"Design matrix must be 2-D, got shape {arr.shape}")
    names = list(term_names) if term_names is not None else [f"x{i}" for i in range(arr.shape[1])]
    if len(names) != arr.shape[1]:
        raise ValueError(
            f"Got {len(names)} term names for a design matrix with {arr.shape[1]} columns"
        )
    return pd.DataFrame(arr, columns=names)
