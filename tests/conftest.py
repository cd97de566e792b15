"""Shared fixtures for the clfbench tests.

All tests use real pandas frames and real estimators. Hand-written
estimators below implement the same fit/predict surface as sklearn so the
harness can be exercised without mocks.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from clfbench.labels import NUMERIC_BINARY_LABELS
from clfbench.schema import HEART_SCHEMA, THYROID_SCHEMA, DatasetSchema


# ---------------------------------------------------------------------------
# Small estimators
# ---------------------------------------------------------------------------

class ThresholdClassifier:
    """Predicts positive when column 0 exceeds a fixed threshold."""

    def __init__(self, threshold: float):
        self.threshold = threshold

    def fit(self, X, y):
        self.classes_ = np.array([0, 1])
        return self

    def predict(self, X):
        return (np.asarray(X)[:, 0] > self.threshold).astype(int)

    def decision_function(self, X):
        return np.asarray(X)[:, 0] - self.threshold


class ExplodingClassifier:
    """Fails in fit (or in predict when fail_in='predict')."""

    def __init__(self, fail_in: str = "fit"):
        self.fail_in = fail_in

    def fit(self, X, y):
        if self.fail_in == "fit":
            raise RuntimeError("fit exploded")
        return self

    def predict(self, X):
        raise RuntimeError("predict exploded")


class ConstantClassifier:
    """Always predicts the negative class."""

    def fit(self, X, y):
        return self

    def predict(self, X):
        return np.zeros(len(X), dtype=int)


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

@pytest.fixture
def age_schema() -> DatasetSchema:
    return DatasetSchema(
        name="ages",
        columns=("age", "label"),
        numeric_fields=("age",),
        categorical_fields=(),
        label_field="label",
        label_mapping=NUMERIC_BINARY_LABELS,
    )


@pytest.fixture
def mixed_schema() -> DatasetSchema:
    # numeric and categorical fields interleaved on purpose
    return DatasetSchema(
        name="mixed",
        columns=("color", "age", "size", "weight", "label"),
        numeric_fields=("age", "weight"),
        categorical_fields=("color", "size"),
        label_field="label",
        label_mapping={"Yes": True, "No": False},
    )


# ---------------------------------------------------------------------------
# Frames
# ---------------------------------------------------------------------------

@pytest.fixture
def age_records() -> pd.DataFrame:
    return pd.DataFrame({"age": [50.0, 30.0, 70.0, 40.0], "label": [1.0, 0.0, 1.0, 0.0]})


def make_heart_frame(n: int = 80, seed: int = 7) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    age = rng.integers(30, 80, n).astype(float)
    gender = rng.integers(0, 2, n).astype(float)
    bp = rng.normal(130, 15, n).round(1)
    chol = rng.normal(220, 30, n).round(1)
    hr = rng.normal(75, 10, n).round(1)
    quantum = rng.uniform(0, 10, n).round(3)
    risk = (age - 55) / 10 + (chol - 220) / 30 + rng.normal(0, 0.3, n)
    label = (risk > 0).astype(float)
    return pd.DataFrame(
        {
            "Age": age,
            "Gender": gender,
            "BloodPressure": bp,
            "Cholesterol": chol,
            "HeartRate": hr,
            "QuantumPatternFeature": quantum,
            "HeartDisease": label,
        },
        columns=list(HEART_SCHEMA.columns),
    )


def make_thyroid_frame(n: int = 90, seed: int = 11) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    responses = np.array(["Excellent", "Indeterminate", "Structural Incomplete", "Biochemical Incomplete"])
    response = responses[rng.integers(0, len(responses), n)]
    recurred = np.where(np.isin(response, ["Structural Incomplete", "Biochemical Incomplete"]), "Yes", "No")

    def pick(*options):
        return np.array(options)[rng.integers(0, len(options), n)]

    return pd.DataFrame(
        {
            "Age": rng.integers(18, 80, n).astype(float),
            "Gender": pick("F", "M"),
            "HxRadiothreapy": pick("No", "Yes"),
            "Adenopathy": pick("No", "Right", "Left", "Bilateral"),
            "Pathology": pick("Papillary", "Micropapillary", "Follicular"),
            "Focality": pick("Uni-Focal", "Multi-Focal"),
            "Risk": pick("Low", "Intermediate", "High"),
            "T": pick("T1a", "T1b", "T2", "T3a"),
            "N": pick("N0", "N1a", "N1b"),
            "M": pick("M0", "M1"),
            "Stage": pick("I", "II", "III"),
            "Response": response,
            "Recurred": recurred,
        },
        columns=list(THYROID_SCHEMA.columns),
    )


@pytest.fixture
def heart_frame() -> pd.DataFrame:
    return make_heart_frame()


@pytest.fixture
def thyroid_frame() -> pd.DataFrame:
    return make_thyroid_frame()


@pytest.fixture
def write_csv(tmp_path: Path):
    def _write(df: pd.DataFrame, name: str, **kwargs) -> Path:
        p = tmp_path / name
        df.to_csv(p, index=False, **kwargs)
        return p

    return _write
