# src/clfbench/trainers.py
"""
Trainer registry: the classifier variants the harness benchmarks.

Each variant is a TrainerDescriptor, a tagged record of
  - key / name                  how it is selected / reported
  - factory                     zero-arg callable returning an unfitted estimator
  - produces_calibrated_scores  whether its scores are class probabilities

Descriptors all expose the same two operations (fit -> FittedModel,
FittedModel.transform -> Predictions); concrete algorithms are plain
sklearn / CatBoost estimators behind the factory, not subclasses.

Estimators only need the sklearn-like surface:
  fit(X, y), predict(X), and predict_proba(X) or decision_function(X).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np
from sklearn.ensemble import GradientBoostingClassifier, RandomForestClassifier
from sklearn.feature_selection import VarianceThreshold
from sklearn.linear_model import LogisticRegression, SGDClassifier
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import SplineTransformer
from sklearn.svm import SVC, LinearSVC

from clfbench.config import RANDOM_SEED
from clfbench.exceptions import ConfigurationError

logger = logging.getLogger("clfbench.trainers")


# ---------------------------
# Data structures
# ---------------------------
@dataclass(frozen=True)
class Predictions:
    """
    Output of FittedModel.transform for n rows:
      predicted_label : bool (n,)
      score           : float (n,), higher means more positive
      probability     : float (n,) P(positive), calibrated trainers only
    """
    predicted_label: np.ndarray
    score: np.ndarray
    probability: Optional[np.ndarray] = None

    def __len__(self) -> int:
        return int(self.predicted_label.shape[0])


@dataclass(frozen=True)
class FittedModel:
    """A fitted estimator plus the descriptor facts needed to use it."""
    name: str
    estimator: Any
    produces_calibrated_scores: bool

    def transform(self, X: np.ndarray) -> Predictions:
        predicted = _as_bool_labels(self.estimator.predict(X))
        score = _predict_score(self.estimator, X)
        probability = _predict_positive_proba(self.estimator, X) if self.produces_calibrated_scores else None
        return Predictions(predicted_label=predicted, score=score, probability=probability)


@dataclass(frozen=True)
class TrainerDescriptor:
    key: str
    name: str
    factory: Callable[[], Any]
    produces_calibrated_scores: bool

    def fit(self, X_train: np.ndarray, y_train: np.ndarray) -> FittedModel:
        """
        Build a fresh estimator and fit it. Labels are passed as 0/1 ints so
        every backend reports classes the same way.
        """
        estimator = self.factory()
        estimator.fit(X_train, np.asarray(y_train, dtype=bool).astype(int))
        return FittedModel(
            name=self.name,
            estimator=estimator,
            produces_calibrated_scores=self.produces_calibrated_scores,
        )


# ---------------------------
# Helpers
# ---------------------------
def _to_1d(x: Any) -> np.ndarray:
    x = np.asarray(x)
    if x.ndim == 2 and x.shape[1] == 1:
        return x[:, 0]
    if x.ndim != 1:
        raise ValueError(f"Expected 1D array, got shape {x.shape}")
    return x


def _as_bool_labels(pred: Any) -> np.ndarray:
    pred = _to_1d(pred)
    if pred.dtype == bool:
        return pred
    return pred.astype(float) > 0.5


def _positive_column(estimator: Any) -> int:
    classes = getattr(estimator, "classes_", None)
    if classes is None:
        return 1
    for i, c in enumerate(np.asarray(classes).tolist()):
        if c in (1, True, "1", "True"):
            return i
    raise ValueError(f"Estimator classes {list(classes)} do not include the positive class.")


def _predict_positive_proba(estimator: Any, X: np.ndarray) -> np.ndarray:
    """
    Returns P(positive) as float array shape (n,).
    Prefers predict_proba. Falls back to decision_function->sigmoid.
    """
    if hasattr(estimator, "predict_proba"):
        proba = np.asarray(estimator.predict_proba(X), dtype=float)
        if proba.ndim == 2 and proba.shape[1] >= 2:
            return proba[:, _positive_column(estimator)]
        return _to_1d(proba)

    if hasattr(estimator, "decision_function"):
        scores = _to_1d(np.asarray(estimator.decision_function(X), dtype=float))
        return 1.0 / (1.0 + np.exp(-scores))

    raise TypeError("Calibrated trainer must implement predict_proba or decision_function.")


def _predict_score(estimator: Any, X: np.ndarray) -> np.ndarray:
    """
    Raw (possibly uncalibrated) score: decision_function, else P(positive),
    else the hard label as 0/1.
    """
    if hasattr(estimator, "decision_function"):
        return _to_1d(np.asarray(estimator.decision_function(X), dtype=float))
    if hasattr(estimator, "predict_proba"):
        return _predict_positive_proba(estimator, X)
    return _as_bool_labels(estimator.predict(X)).astype(float)


# ---------------------------
# Estimator factories
# ---------------------------
def _catboost_classifier(seed: int):
    try:
        from catboost import CatBoostClassifier  # type: ignore
    except Exception as e:
        raise ImportError("CatBoost is required for the CatBoost GBDT trainer. Install catboost.") from e

    return CatBoostClassifier(
        loss_function="Logloss",
        random_seed=seed,
        verbose=False,
        iterations=300,
        learning_rate=0.1,
        depth=6,
        task_type="CPU",
        allow_writing_files=False,
    )


def _spline_gam(seed: int):
    # additive model: per-feature spline basis, then a linear logit on top.
    # Constant columns are dropped first; splines need a non-empty range.
    return make_pipeline(
        VarianceThreshold(),
        SplineTransformer(n_knots=5, degree=3),
        LogisticRegression(max_iter=1000, random_state=seed),
    )


def default_registry(seed: int = RANDOM_SEED) -> List[TrainerDescriptor]:
    """
    The full line-up, in report order.
    """
    return [
        TrainerDescriptor(
            key="sgd_logreg",
            name="Logistic Regression (SGD)",
            factory=partial(SGDClassifier, loss="log_loss", max_iter=1000, tol=1e-3, random_state=seed),
            produces_calibrated_scores=True,
        ),
        TrainerDescriptor(
            key="lbfgs_logreg",
            name="Logistic Regression (L-BFGS)",
            factory=partial(LogisticRegression, solver="lbfgs", max_iter=1000, random_state=seed),
            produces_calibrated_scores=True,
        ),
        TrainerDescriptor(
            key="averaged_perceptron",
            name="Averaged Perceptron",
            factory=partial(
                SGDClassifier,
                loss="perceptron",
                penalty=None,
                learning_rate="constant",
                eta0=1.0,
                average=True,
                max_iter=1000,
                tol=1e-3,
                random_state=seed,
            ),
            produces_calibrated_scores=False,
        ),
        TrainerDescriptor(
            key="linear_svm",
            name="Linear SVM",
            factory=partial(LinearSVC, C=1.0, max_iter=5000, random_state=seed),
            produces_calibrated_scores=False,
        ),
        TrainerDescriptor(
            key="rbf_svm",
            name="RBF SVM (non-linear)",
            factory=partial(SVC, kernel="rbf", gamma="scale", random_state=seed),
            produces_calibrated_scores=False,
        ),
        TrainerDescriptor(
            key="gbdt",
            name="Gradient Boosted Trees",
            factory=partial(
                GradientBoostingClassifier,
                n_estimators=100,
                learning_rate=0.2,
                max_leaf_nodes=20,
                random_state=seed,
            ),
            produces_calibrated_scores=True,
        ),
        TrainerDescriptor(
            key="catboost",
            name="CatBoost GBDT",
            factory=partial(_catboost_classifier, seed),
            produces_calibrated_scores=True,
        ),
        TrainerDescriptor(
            key="random_forest",
            name="Random Forest",
            factory=partial(RandomForestClassifier, n_estimators=100, random_state=seed),
            produces_calibrated_scores=False,
        ),
        TrainerDescriptor(
            key="gam",
            name="GAM (Spline Additive)",
            factory=partial(_spline_gam, seed),
            produces_calibrated_scores=True,
        ),
    ]


TRAINER_KEYS = tuple(d.key for d in default_registry())


def validate_registry(registry: Sequence[TrainerDescriptor]) -> None:
    """
    Hard-fail on an empty registry or duplicate report names.
    """
    if not registry:
        raise ConfigurationError("Trainer registry is empty; configure at least one trainer.")
    seen: Dict[str, int] = {}
    for d in registry:
        seen[d.name] = seen.get(d.name, 0) + 1
    dupes = sorted(n for n, k in seen.items() if k > 1)
    if dupes:
        raise ConfigurationError(f"Duplicate trainer names in registry: {dupes}")


def select_trainers(keys: Sequence[str], *, seed: int = RANDOM_SEED) -> List[TrainerDescriptor]:
    """
    Pick descriptors by key, in the order the keys are given.
    """
    if not keys:
        raise ConfigurationError("Trainer registry is empty; configure at least one trainer.")

    by_key = {d.key: d for d in default_registry(seed)}
    unknown = [k for k in keys if k not in by_key]
    if unknown:
        raise ConfigurationError(f"Unknown trainers {unknown}; expected keys from {list(TRAINER_KEYS)}")

    registry = [by_key[k] for k in keys]
    validate_registry(registry)
    logger.debug("Selected trainers: %s", [d.name for d in registry])
    return registry
