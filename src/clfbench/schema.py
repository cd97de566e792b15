# src/clfbench/schema.py
"""
Record schemas for the datasets the harness knows how to benchmark.

A schema fixes, for one dataset variant:
- the declared column order (columns are read positionally)
- which fields are numeric and which are categorical
- the label field and its raw-token -> bool mapping
- the split mode the dataset is normally run with

Column order is canonical and must not drift between the train and test
sources. Records are never mutated: validation returns a cleaned copy.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Sequence, Tuple

import pandas as pd

from clfbench.config import DEFAULT_SEPARATOR, SPLIT_PRESPLIT, SPLIT_RANDOM
from clfbench.exceptions import ConfigurationError, MalformedRowError, SchemaError
from clfbench.io import load_dataframe
from clfbench.labels import NUMERIC_BINARY_LABELS, YES_NO_LABELS, LabelMapping, validate_mapping


# ---------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class DatasetSchema:
    """Typed description of one input row (raw fields + label)."""
    name: str
    columns: Tuple[str, ...]
    numeric_fields: Tuple[str, ...]
    categorical_fields: Tuple[str, ...]
    label_field: str
    label_mapping: LabelMapping
    default_split_mode: str = SPLIT_RANDOM

    def __post_init__(self) -> None:
        _validate_schema_definition(self)

    @property
    def feature_fields(self) -> Tuple[str, ...]:
        """Numeric + categorical fields, in declared column order."""
        feature_set = set(self.numeric_fields) | set(self.categorical_fields)
        return tuple(c for c in self.columns if c in feature_set)


def _validate_schema_definition(schema: DatasetSchema) -> None:
    if len(set(schema.columns)) != len(schema.columns):
        raise ConfigurationError(f"Schema {schema.name!r} declares duplicate columns.")

    overlap = set(schema.numeric_fields) & set(schema.categorical_fields)
    if overlap:
        raise ConfigurationError(
            f"Schema {schema.name!r}: fields cannot be both numeric and categorical: {sorted(overlap)}"
        )

    declared = set(schema.numeric_fields) | set(schema.categorical_fields) | {schema.label_field}
    if declared != set(schema.columns):
        raise ConfigurationError(
            f"Schema {schema.name!r}: every column must be numeric, categorical or the label.\n"
            f"Columns: {list(schema.columns)}\n"
            f"Declared: {sorted(declared)}"
        )

    if schema.label_field in schema.numeric_fields or schema.label_field in schema.categorical_fields:
        raise ConfigurationError(f"Schema {schema.name!r}: label field cannot also be a feature.")

    if not schema.numeric_fields and not schema.categorical_fields:
        raise ConfigurationError(f"Schema {schema.name!r} declares no feature fields.")

    validate_mapping(schema.label_mapping)


# ============================================================
# Built-in schemas
# ============================================================

# Heart disease: all-numeric features, 0/1 label, shipped as separate
# train/test files.
HEART_SCHEMA = DatasetSchema(
    name="heart",
    columns=(
        "Age",
        "Gender",
        "BloodPressure",
        "Cholesterol",
        "HeartRate",
        "QuantumPatternFeature",
        "HeartDisease",
    ),
    numeric_fields=(
        "Age",
        "Gender",
        "BloodPressure",
        "Cholesterol",
        "HeartRate",
        "QuantumPatternFeature",
    ),
    categorical_fields=(),
    label_field="HeartDisease",
    label_mapping=NUMERIC_BINARY_LABELS,
    default_split_mode=SPLIT_PRESPLIT,
)

# Thyroid cancer recurrence: one numeric field, the rest one-hot encoded,
# Yes/No label, single file split at random.
THYROID_SCHEMA = DatasetSchema(
    name="thyroid",
    columns=(
        "Age",
        "Gender",
        "HxRadiothreapy",
        "Adenopathy",
        "Pathology",
        "Focality",
        "Risk",
        "T",
        "N",
        "M",
        "Stage",
        "Response",
        "Recurred",
    ),
    numeric_fields=("Age",),
    categorical_fields=(
        "Gender",
        "HxRadiothreapy",
        "Adenopathy",
        "Pathology",
        "Focality",
        "Risk",
        "T",
        "N",
        "M",
        "Stage",
        "Response",
    ),
    label_field="Recurred",
    label_mapping=YES_NO_LABELS,
    default_split_mode=SPLIT_RANDOM,
)

SCHEMAS: Dict[str, DatasetSchema] = {
    HEART_SCHEMA.name: HEART_SCHEMA,
    THYROID_SCHEMA.name: THYROID_SCHEMA,
}


def get_schema(name: str) -> DatasetSchema:
    try:
        return SCHEMAS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown dataset schema {name!r}; expected one of {sorted(SCHEMAS)}"
        ) from None


# ---------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------
def _assert_columns_present(df: pd.DataFrame, cols: Sequence[str], *, name: str) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise SchemaError(f"Missing required columns in {name}: {missing}")


def _bad_rows(mask: pd.Series, limit: int = 10) -> List[int]:
    # positional row numbers, so messages match the file regardless of index
    positions = [i for i, bad in enumerate(mask.to_numpy()) if bad]
    return positions[:limit]


def validate_records(
    df: pd.DataFrame,
    schema: DatasetSchema,
    *,
    source: str = "records",
) -> pd.DataFrame:
    """
    Returns a validated copy of df restricted to the schema columns:
      - numeric fields coerced to float (unparseable -> MalformedRowError)
      - categorical / label strings stripped of surrounding whitespace
      - any missing feature or label cell -> MalformedRowError
    """
    _assert_columns_present(df, schema.columns, name=source)
    out = df[list(schema.columns)].copy().reset_index(drop=True)

    if out.empty:
        raise MalformedRowError(f"No records found in {source}.")

    for c in schema.numeric_fields:
        raw = out[c]
        coerced = pd.to_numeric(raw, errors="coerce")
        bad = coerced.isna() & raw.notna()
        if bad.any():
            raise MalformedRowError(
                f"Non-numeric values in numeric field {c!r} of {source} at rows {_bad_rows(bad)}"
            )
        out[c] = coerced.astype(float)

    for c in list(schema.categorical_fields) + [schema.label_field]:
        col = out[c]
        if col.dtype == object:
            out[c] = col.map(lambda v: v.strip() if isinstance(v, str) else v)

    for c in schema.feature_fields:
        missing = out[c].isna()
        if c in schema.categorical_fields:
            missing = missing | (out[c].astype(str) == "")
        if missing.any():
            raise MalformedRowError(
                f"Missing values in field {c!r} of {source} at rows {_bad_rows(missing)}"
            )

    if out[schema.label_field].isna().any():
        raise MalformedRowError(
            f"Missing label values in {schema.label_field!r} of {source} "
            f"at rows {_bad_rows(out[schema.label_field].isna())}"
        )

    for c in schema.categorical_fields:
        out[c] = out[c].astype(str)

    return out


# ---------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------
def read_records(
    path: str | Path,
    schema: DatasetSchema,
    *,
    has_header: bool = True,
    separator: str = DEFAULT_SEPARATOR,
) -> pd.DataFrame:
    """
    Read one delimited source and return validated records.

    Columns are mapped positionally onto schema.columns (column i of the
    file is schema column i), so header names in the file do not need to
    match the schema names; the column count does.
    """
    source = str(path)
    try:
        df = load_dataframe(path, sep=separator, has_header=has_header)
    except ValueError as e:
        # pandas parser / empty-file / decoding errors
        raise MalformedRowError(f"{source}: cannot be parsed as a table: {e}") from e

    if df.shape[1] != len(schema.columns):
        raise SchemaError(
            f"{source}: expected {len(schema.columns)} columns for schema {schema.name!r}, "
            f"found {df.shape[1]}"
        )

    df = df.copy()
    df.columns = list(schema.columns)
    return validate_records(df, schema, source=source)


def record_summary(df: pd.DataFrame, schema: DatasetSchema) -> Mapping[str, int]:
    """Row count plus per-categorical-field distinct counts, for logging."""
    summary: Dict[str, int] = {"rows": int(len(df))}
    for c in schema.categorical_fields:
        summary[f"{c}_levels"] = int(df[c].nunique())
    return summary
