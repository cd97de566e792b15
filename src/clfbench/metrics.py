# src/clfbench/metrics.py
"""
Metrics engine for the clfbench harness.

Primary use:
- Turn one trainer's test-set predictions into an EvaluationResult

Notes:
- Confusion matrix index convention is fixed: row = actual, column = predicted,
  negative before positive in both dimensions ([[TN, FP], [FN, TP]]).
- Precision / recall are NaN when undefined (no predicted / no actual
  positives), never a ZeroDivisionError and never silently 0.
- AUC is computed only for trainers that produce calibrated scores;
  for the rest it is None ("not applicable"), which is not the same as 0.5.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np
from sklearn.metrics import confusion_matrix, roc_auc_score

from clfbench.exceptions import EvaluationError
from clfbench.trainers import Predictions


@dataclass(frozen=True)
class ConfusionMatrix:
    tn: int
    fp: int
    fn: int
    tp: int

    @classmethod
    def from_labels(cls, y_true: np.ndarray, y_pred: np.ndarray) -> "ConfusionMatrix":
        cm = confusion_matrix(y_true, y_pred, labels=[False, True])
        return cls(tn=int(cm[0, 0]), fp=int(cm[0, 1]), fn=int(cm[1, 0]), tp=int(cm[1, 1]))

    @property
    def counts(self) -> np.ndarray:
        """2x2 array indexed [actual][predicted]."""
        return np.array([[self.tn, self.fp], [self.fn, self.tp]], dtype=int)

    @property
    def total(self) -> int:
        return self.tn + self.fp + self.fn + self.tp


@dataclass(frozen=True)
class EvaluationResult:
    model_name: str
    accuracy: float
    auc: Optional[float]
    f1: float
    precision: float
    recall: float
    confusion: ConfusionMatrix

    @property
    def succeeded(self) -> bool:
        return True

    def as_row(self) -> Dict[str, Any]:
        return {
            "Model": self.model_name,
            "Status": "ok",
            "Accuracy": self.accuracy,
            "AUC": self.auc,
            "F1": self.f1,
            "Precision": self.precision,
            "Recall": self.recall,
            "TP": self.confusion.tp,
            "FP": self.confusion.fp,
            "FN": self.confusion.fn,
            "TN": self.confusion.tn,
            "Error": None,
        }


# ---------------------------
# Ratios
# ---------------------------
def _ratio(num: int, den: int) -> float:
    return float(num) / float(den) if den else math.nan


def accuracy(cm: ConfusionMatrix) -> float:
    return _ratio(cm.tp + cm.tn, cm.total)


def positive_precision(cm: ConfusionMatrix) -> float:
    return _ratio(cm.tp, cm.tp + cm.fp)


def positive_recall(cm: ConfusionMatrix) -> float:
    return _ratio(cm.tp, cm.tp + cm.fn)


def f1_score(cm: ConfusionMatrix) -> float:
    """
    Harmonic mean of precision and recall, written as 2TP / (2TP + FP + FN)
    so it stays defined (0) whenever TP == 0.
    """
    den = 2 * cm.tp + cm.fp + cm.fn
    return 2.0 * cm.tp / den if den else 0.0


def area_under_roc(y_true: np.ndarray, probability: np.ndarray) -> float:
    """
    ROC AUC of calibrated probabilities. NaN when the test labels hold a
    single class (AUC is undefined there).
    """
    if np.unique(y_true).size < 2:
        return math.nan
    return float(roc_auc_score(y_true, probability))


# ---------------------------
# Evaluate
# ---------------------------
def evaluate(
    model_name: str,
    y_true: np.ndarray,
    predictions: Predictions,
    *,
    produces_calibrated_scores: bool,
) -> EvaluationResult:
    """
    Score one trainer's predictions against the test labels.
    """
    y_true = np.asarray(y_true, dtype=bool)
    y_pred = np.asarray(predictions.predicted_label, dtype=bool)

    if y_true.ndim != 1 or y_pred.shape != y_true.shape:
        raise EvaluationError(
            f"Shape mismatch: y_true {y_true.shape} vs predicted labels {y_pred.shape}"
        )
    if y_true.size == 0:
        raise EvaluationError("Cannot evaluate on an empty test partition.")

    cm = ConfusionMatrix.from_labels(y_true, y_pred)

    auc: Optional[float] = None
    if produces_calibrated_scores:
        if predictions.probability is None:
            raise EvaluationError(f"{model_name}: calibrated trainer returned no probabilities.")
        probability = np.asarray(predictions.probability, dtype=float)
        if probability.shape != y_true.shape:
            raise EvaluationError(
                f"Shape mismatch: y_true {y_true.shape} vs probabilities {probability.shape}"
            )
        auc = area_under_roc(y_true, probability)

    return EvaluationResult(
        model_name=model_name,
        accuracy=accuracy(cm),
        auc=auc,
        f1=f1_score(cm),
        precision=positive_precision(cm),
        recall=positive_recall(cm),
        confusion=cm,
    )
