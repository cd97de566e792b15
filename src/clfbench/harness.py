# src/clfbench/harness.py
"""
Benchmark harness for the clfbench pipeline.

One pass per run:
  Idle -> EncoderFit -> PartitionEncoded -> {PerModel: fit -> predict -> evaluate}* -> Done

This module:
1) resolves labels and fits the feature encoder ONCE, on the training partition
2) encodes both partitions with that single EncoderState
3) fits every registered trainer on the same encoded training set
4) predicts the encoded test set and scores it with the metrics engine
5) returns one outcome per trainer, in registry order

Failure policy:
- schema / label / config errors are fatal and raised before any training
- anything that goes wrong inside a single trainer becomes a ModelFailure
  entry for that trainer and the run moves on to the next one
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from clfbench.config import BenchmarkConfig, validate_config
from clfbench.exceptions import BenchmarkError, ConfigurationError
from clfbench.features import EncoderState, apply_encoder, fit_encoder
from clfbench.labels import resolve_labels
from clfbench.metrics import EvaluationResult, evaluate
from clfbench.schema import DatasetSchema, get_schema, record_summary
from clfbench.split import load_partitions
from clfbench.trainers import TrainerDescriptor, default_registry, select_trainers, validate_registry

logger = logging.getLogger("clfbench.harness")


class HarnessStage(str, Enum):
    IDLE = "Idle"
    CONFIG = "Config"
    LOAD = "Load"
    ENCODER_FIT = "EncoderFit"
    PARTITION_ENCODED = "PartitionEncoded"
    PER_MODEL = "PerModel"
    DONE = "Done"


# -----------------------------
# Dataclasses
# -----------------------------
@dataclass(frozen=True)
class ModelFailure:
    """A trainer that could not produce an EvaluationResult."""
    model_name: str
    error: str
    error_type: str
    phase: str  # "fit", "predict" or "evaluate"

    @property
    def succeeded(self) -> bool:
        return False

    def as_row(self) -> Dict[str, Any]:
        return {
            "Model": self.model_name,
            "Status": "failed",
            "Accuracy": None,
            "AUC": None,
            "F1": None,
            "Precision": None,
            "Recall": None,
            "TP": None,
            "FP": None,
            "FN": None,
            "TN": None,
            "Error": f"{self.phase}: {self.error_type}: {self.error}",
        }


ModelOutcome = Union[EvaluationResult, ModelFailure]


@dataclass(frozen=True)
class EncodedPartitions:
    X_train: np.ndarray
    y_train: np.ndarray
    X_test: np.ndarray
    y_test: np.ndarray
    state: EncoderState


@dataclass(frozen=True)
class BenchmarkRun:
    outcomes: Tuple[ModelOutcome, ...]
    encoder_state: EncoderState
    train_size: int
    test_size: int

    @property
    def successes(self) -> List[EvaluationResult]:
        return [o for o in self.outcomes if isinstance(o, EvaluationResult)]

    @property
    def failures(self) -> List[ModelFailure]:
        return [o for o in self.outcomes if isinstance(o, ModelFailure)]

    @property
    def model_names(self) -> List[str]:
        return [o.model_name for o in self.outcomes]


# -----------------------------
# Stage bookkeeping
# -----------------------------
@contextmanager
def _stage(stage: HarnessStage) -> Iterator[None]:
    logger.debug("Harness stage -> %s", stage.value)
    try:
        yield
    except BenchmarkError as exc:
        if exc.stage is None:
            exc.stage = stage.value
        raise


# -----------------------------
# Encoding
# -----------------------------
def encode_partitions(
    train: pd.DataFrame,
    test: pd.DataFrame,
    schema: DatasetSchema,
) -> EncodedPartitions:
    """
    Resolve labels for both partitions, fit the encoder on train only, and
    apply the one fitted state to both partitions.
    """
    y_train = resolve_labels(train[schema.label_field], schema.label_mapping, source="training partition")
    y_test = resolve_labels(test[schema.label_field], schema.label_mapping, source="test partition")

    state = fit_encoder(train, schema)
    X_train = apply_encoder(state, train)
    X_test = apply_encoder(state, test)

    return EncodedPartitions(X_train=X_train, y_train=y_train, X_test=X_test, y_test=y_test, state=state)


# -----------------------------
# Per-model
# -----------------------------
def run_trainer(
    descriptor: TrainerDescriptor,
    X_train: np.ndarray,
    y_train: np.ndarray,
    X_test: np.ndarray,
    y_test: np.ndarray,
) -> ModelOutcome:
    """
    Fit -> predict -> evaluate for one trainer. Never raises for a
    trainer-level problem; returns a ModelFailure instead.
    """
    logger.info("Training model: %s", descriptor.name)
    start = time.time()
    phase = "fit"
    try:
        model = descriptor.fit(X_train, y_train)
        phase = "predict"
        predictions = model.transform(X_test)
        phase = "evaluate"
        result = evaluate(
            descriptor.name,
            y_test,
            predictions,
            produces_calibrated_scores=descriptor.produces_calibrated_scores,
        )
    except Exception as exc:
        logger.warning(
            "Error training or evaluating model %r during %s: %s",
            descriptor.name,
            phase,
            exc,
        )
        return ModelFailure(
            model_name=descriptor.name,
            error=str(exc) or repr(exc),
            error_type=type(exc).__name__,
            phase=phase,
        )

    logger.info(
        "Model %s: accuracy=%.3f auc=%s f1=%.3f elapsed=%.2fs",
        descriptor.name,
        result.accuracy,
        "N/A" if result.auc is None else f"{result.auc:.3f}",
        result.f1,
        time.time() - start,
    )
    return result


# -----------------------------
# Top-level harness
# -----------------------------
def run_harness(
    train: pd.DataFrame,
    test: pd.DataFrame,
    schema: DatasetSchema,
    registry: Sequence[TrainerDescriptor],
    *,
    n_jobs: int = 1,
) -> BenchmarkRun:
    """
    Run every trainer in `registry` against one shared encoding of the data.

    With n_jobs != 1 trainers are fitted in parallel via joblib; outcomes
    still come back in registry order and each trainer's failure stays its own.
    """
    with _stage(HarnessStage.IDLE):
        validate_registry(registry)
        if n_jobs == 0:
            raise ConfigurationError("n_jobs must be non-zero.")

    with _stage(HarnessStage.ENCODER_FIT):
        encoded = encode_partitions(train, test, schema)

    with _stage(HarnessStage.PARTITION_ENCODED):
        logger.info(
            "Encoded partitions: X_train %s, X_test %s (positives: train=%d, test=%d)",
            encoded.X_train.shape,
            encoded.X_test.shape,
            int(encoded.y_train.sum()),
            int(encoded.y_test.sum()),
        )

    with _stage(HarnessStage.PER_MODEL):
        args = (encoded.X_train, encoded.y_train, encoded.X_test, encoded.y_test)
        if n_jobs == 1:
            outcomes = [run_trainer(d, *args) for d in registry]
        else:
            outcomes = Parallel(n_jobs=n_jobs)(delayed(run_trainer)(d, *args) for d in registry)

    n_failed = sum(1 for o in outcomes if isinstance(o, ModelFailure))
    logger.info(
        "Benchmark run complete: %d succeeded, %d failed out of %d trainers",
        len(outcomes) - n_failed,
        n_failed,
        len(outcomes),
    )
    logger.debug("Harness stage -> %s", HarnessStage.DONE.value)

    return BenchmarkRun(
        outcomes=tuple(outcomes),
        encoder_state=encoded.state,
        train_size=int(len(train)),
        test_size=int(len(test)),
    )


def resolve_registry(config: BenchmarkConfig) -> List[TrainerDescriptor]:
    if config.trainers is not None:
        return select_trainers(config.trainers, seed=config.random_seed)
    return default_registry(config.random_seed)


def run_from_config(
    config: BenchmarkConfig,
    *,
    registry: Optional[Sequence[TrainerDescriptor]] = None,
) -> BenchmarkRun:
    """
    End-to-end: validate config, resolve schema + registry (before any data
    is read), load and partition the data, then run the harness.
    """
    with _stage(HarnessStage.CONFIG):
        validate_config(config)
        schema = get_schema(config.dataset_schema)
        trainers = list(registry) if registry is not None else resolve_registry(config)
        validate_registry(trainers)

    with _stage(HarnessStage.LOAD):
        parts = load_partitions(config, schema)
        logger.debug("Train summary: %s", record_summary(parts.train, schema))
        logger.debug("Test summary: %s", record_summary(parts.test, schema))

    return run_harness(parts.train, parts.test, schema, trainers, n_jobs=config.n_jobs)
