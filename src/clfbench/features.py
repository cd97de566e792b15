# src/clfbench/features.py
"""
Feature encoding for the clfbench harness.

This module is intentionally strict:
- Encoder parameters are estimated on the TRAINING partition only
- Column order is canonical (schema order) and must not drift between train/test
- The fitted state is an explicit, immutable value passed to every apply call

Two strategies:
- numeric fields     : min-max normalisation with training min/max.
                       Test values are NOT clamped and may fall outside [0,1].
                       A degenerate field (max == min) encodes to 0 everywhere.
- categorical fields : one-hot over the training vocabulary in first-seen order
                       (sklearn OneHotEncoder, handle_unknown="ignore"), so a
                       category unseen in training encodes to an all-zero block.

It produces:
- EncoderState : fitted parameters + output feature names
- X            : dense float matrix (n_rows, n_features)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.preprocessing import OneHotEncoder

from clfbench.exceptions import EncodingError, SchemaError
from clfbench.schema import DatasetSchema

logger = logging.getLogger("clfbench.features")


# ---------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class EncoderState:
    """Parameters estimated once on the training partition.

    Every mapping is a read-only view; the state never changes after fit.
    """
    field_order: Tuple[str, ...]
    numeric_fields: Tuple[str, ...]
    categorical_fields: Tuple[str, ...]
    mins: Mapping[str, float]
    maxs: Mapping[str, float]
    encoders: Mapping[str, OneHotEncoder]
    categories: Mapping[str, Tuple[str, ...]]
    feature_names: Tuple[str, ...]

    @property
    def n_features(self) -> int:
        return len(self.feature_names)


# ---------------------------------------------------------------------
# Helpers / validation
# ---------------------------------------------------------------------
def _assert_columns_present(df: pd.DataFrame, cols: Sequence[str], *, name: str) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise SchemaError(f"Missing required columns in {name}: {missing}")


def _numeric_values(df: pd.DataFrame, col: str) -> np.ndarray:
    try:
        return df[col].to_numpy(dtype=float)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Numeric field {col!r} holds non-numeric values.") from e


def first_seen_categories(values: pd.Series) -> Tuple[str, ...]:
    """
    Distinct values in order of first appearance (stable category indices).
    """
    return tuple(str(v) for v in pd.unique(values.astype(str)))


def fit_categorical_encoder(df_cat: pd.DataFrame, categories: Sequence[str]) -> OneHotEncoder:
    """
    Fits a single-column OneHotEncoder with an explicit category order.
    """
    enc = OneHotEncoder(
        categories=[list(categories)],
        handle_unknown="ignore",
        sparse_output=False,
        dtype=float,
    )
    enc.fit(df_cat.astype(str))
    return enc


def encode_numeric(values: np.ndarray, vmin: float, vmax: float) -> np.ndarray:
    """
    (x - min) / (max - min); 0 for every row when the field is degenerate.
    """
    span = vmax - vmin
    if span == 0:
        return np.zeros_like(values, dtype=float)
    return (values - vmin) / span


def encode_categorical(df_cat: pd.DataFrame, encoder: OneHotEncoder) -> np.ndarray:
    X = encoder.transform(df_cat.astype(str))
    if hasattr(X, "toarray"):
        X = X.toarray()
    return np.asarray(X, dtype=float)


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------
def fit_encoder(train_records: pd.DataFrame, schema: DatasetSchema) -> EncoderState:
    """
    Train-time: estimates min/max per numeric field and the category
    vocabulary per categorical field. Only ever call this on the training
    partition.
    """
    _assert_columns_present(train_records, schema.feature_fields, name="training records")
    if train_records.empty:
        raise EncodingError("Cannot fit the encoder on an empty training partition.")

    mins: Dict[str, float] = {}
    maxs: Dict[str, float] = {}
    encoders: Dict[str, OneHotEncoder] = {}
    categories: Dict[str, Tuple[str, ...]] = {}
    feature_names: List[str] = []

    for col in schema.feature_fields:
        if col in schema.numeric_fields:
            values = _numeric_values(train_records, col)
            mins[col] = float(np.min(values))
            maxs[col] = float(np.max(values))
            if maxs[col] == mins[col]:
                logger.debug("Numeric field %s is degenerate (constant %s); encodes to 0", col, mins[col])
            feature_names.append(col)
        else:
            cats = first_seen_categories(train_records[col])
            categories[col] = cats
            encoders[col] = fit_categorical_encoder(train_records[[col]], cats)
            feature_names.extend(f"{col}={c}" for c in cats)

    state = EncoderState(
        field_order=tuple(schema.feature_fields),
        numeric_fields=tuple(schema.numeric_fields),
        categorical_fields=tuple(schema.categorical_fields),
        mins=MappingProxyType(mins),
        maxs=MappingProxyType(maxs),
        encoders=MappingProxyType(encoders),
        categories=MappingProxyType(categories),
        feature_names=tuple(feature_names),
    )
    logger.info(
        "Encoder fitted on %d rows: %d numeric, %d categorical -> %d features",
        len(train_records),
        len(state.numeric_fields),
        len(state.categorical_fields),
        state.n_features,
    )
    return state


def apply_encoder(state: EncoderState, records: pd.DataFrame) -> np.ndarray:
    """
    Encode any partition with a previously fitted state. No parameter is
    re-estimated, so the same state gives the same columns for train and test.

    Returns:
      X: np.ndarray (n_rows, state.n_features)
    """
    _assert_columns_present(records, state.field_order, name="records to encode")

    blocks: List[np.ndarray] = []
    for col in state.field_order:
        if col in state.mins:
            values = _numeric_values(records, col)
            blocks.append(encode_numeric(values, state.mins[col], state.maxs[col]).reshape(-1, 1))
        else:
            blocks.append(encode_categorical(records[[col]], state.encoders[col]))

    if blocks:
        X = np.concatenate(blocks, axis=1)
    else:
        X = np.zeros((len(records), 0), dtype=float)

    if X.shape[1] != state.n_features:
        raise EncodingError(
            f"Encoded width drifted: expected {state.n_features} features, got {X.shape[1]}"
        )
    return X


def feature_block(state: EncoderState, field: str) -> slice:
    """
    Column slice of `field` inside an encoded matrix.
    """
    start = 0
    for col in state.field_order:
        width = 1 if col in state.mins else len(state.categories[col])
        if col == field:
            return slice(start, start + width)
        start += width
    raise KeyError(f"Field {field!r} is not part of the encoder state.")
