"""Tests for the benchmark harness: encoding once, isolation, ordering, determinism."""

from __future__ import annotations

from functools import partial

import numpy as np
import pandas as pd
import pytest
from sklearn.svm import SVC

from clfbench.config import BenchmarkConfig
from clfbench.exceptions import ConfigurationError, MalformedRowError, UnmappedLabelError
from clfbench.harness import (
    BenchmarkRun,
    HarnessStage,
    ModelFailure,
    encode_partitions,
    run_from_config,
    run_harness,
    run_trainer,
)
from clfbench.metrics import EvaluationResult
from clfbench.report import report_frame
from clfbench.schema import HEART_SCHEMA, THYROID_SCHEMA
from clfbench.split import random_partitions, split_indices
from clfbench.trainers import TrainerDescriptor, select_trainers

from conftest import ExplodingClassifier, ThresholdClassifier, make_heart_frame


def _descriptor(name, factory, calibrated=False):
    return TrainerDescriptor(key=name.lower(), name=name, factory=factory, produces_calibrated_scores=calibrated)


class TestAgeScenario:
    SEED = 2024

    def _encoded_threshold(self, age_records):
        # raw age 45 separates the classes; map it into this split's encoded space
        s = split_indices(len(age_records), test_fraction=0.5, seed=self.SEED)
        train_ages = age_records["age"].to_numpy()[s.train_idx]
        lo, hi = train_ages.min(), train_ages.max()
        return (45.0 - lo) / (hi - lo)

    def test_perfect_threshold_trainer(self, age_schema, age_records):
        threshold = self._encoded_threshold(age_records)
        registry = [_descriptor("Age threshold", partial(ThresholdClassifier, threshold))]

        parts = random_partitions(age_records, test_fraction=0.5, seed=self.SEED)
        assert len(parts.train) == 2
        assert len(parts.test) == 2

        run = run_harness(parts.train, parts.test, age_schema, registry)
        (result,) = run.outcomes
        assert isinstance(result, EvaluationResult)
        assert result.confusion.total == 2
        assert result.accuracy == 1.0
        assert result.auc is None

    def test_split_is_reproducible(self, age_records):
        a = random_partitions(age_records, test_fraction=0.5, seed=self.SEED)
        b = random_partitions(age_records, test_fraction=0.5, seed=self.SEED)
        pd.testing.assert_frame_equal(a.test, b.test)


class TestEncodePartitions:
    def test_encoder_fitted_on_train_only(self, heart_frame):
        train, test = heart_frame.iloc[:50], heart_frame.iloc[50:]
        encoded = encode_partitions(train, test, HEART_SCHEMA)
        assert encoded.state.mins["Age"] == train["Age"].min()
        assert encoded.state.maxs["Age"] == train["Age"].max()
        assert encoded.X_train.shape[1] == encoded.X_test.shape[1] == encoded.state.n_features
        assert encoded.y_train.dtype == bool
        assert len(encoded.y_test) == len(test)

    def test_unmapped_test_label_is_fatal(self, thyroid_frame):
        train, test = thyroid_frame.iloc[:60], thyroid_frame.iloc[60:].copy()
        test.iloc[0, test.columns.get_loc("Recurred")] = "Maybe"
        with pytest.raises(UnmappedLabelError, match="test partition"):
            encode_partitions(train, test, THYROID_SCHEMA)


class TestRunTrainer:
    def test_fit_failure_becomes_model_failure(self, heart_frame):
        encoded = encode_partitions(heart_frame.iloc[:60], heart_frame.iloc[60:], HEART_SCHEMA)
        outcome = run_trainer(
            _descriptor("Broken", ExplodingClassifier),
            encoded.X_train,
            encoded.y_train,
            encoded.X_test,
            encoded.y_test,
        )
        assert isinstance(outcome, ModelFailure)
        assert outcome.model_name == "Broken"
        assert outcome.phase == "fit"
        assert outcome.error_type == "RuntimeError"
        assert "fit exploded" in outcome.error
        assert outcome.succeeded is False

    def test_predict_failure_phase(self, heart_frame):
        encoded = encode_partitions(heart_frame.iloc[:60], heart_frame.iloc[60:], HEART_SCHEMA)
        outcome = run_trainer(
            _descriptor("Broken predict", partial(ExplodingClassifier, "predict")),
            encoded.X_train,
            encoded.y_train,
            encoded.X_test,
            encoded.y_test,
        )
        assert isinstance(outcome, ModelFailure)
        assert outcome.phase == "predict"

    def test_calibrated_without_probability_source(self, heart_frame):
        # tagged calibrated, but no probability source at all
        class LabelsOnly:
            def fit(self, X, y):
                return self

            def predict(self, X):
                return np.zeros(len(X), dtype=int)

        encoded = encode_partitions(heart_frame.iloc[:60], heart_frame.iloc[60:], HEART_SCHEMA)
        outcome = run_trainer(
            _descriptor("Labels only", LabelsOnly, calibrated=True),
            encoded.X_train,
            encoded.y_train,
            encoded.X_test,
            encoded.y_test,
        )
        assert isinstance(outcome, ModelFailure)
        assert outcome.phase == "predict"
        assert outcome.error_type == "TypeError"


class TestRunHarness:
    def test_failures_are_isolated_and_order_kept(self, heart_frame):
        registry = [
            select_trainers(["lbfgs_logreg"])[0],
            _descriptor("Broken", ExplodingClassifier),
            _descriptor("Threshold", partial(ThresholdClassifier, 0.5)),
            select_trainers(["random_forest"])[0],
        ]
        run = run_harness(heart_frame.iloc[:60], heart_frame.iloc[60:], HEART_SCHEMA, registry)

        assert run.model_names == [
            "Logistic Regression (L-BFGS)",
            "Broken",
            "Threshold",
            "Random Forest",
        ]
        assert [o.succeeded for o in run.outcomes] == [True, False, True, True]
        assert [f.model_name for f in run.failures] == ["Broken"]
        assert len(run.successes) == 3
        for r in run.successes:
            assert r.confusion.total == run.test_size == 20
        assert run.train_size == 60

    def test_all_failing_still_reports_every_model(self, heart_frame):
        registry = [_descriptor(f"Broken {i}", ExplodingClassifier) for i in range(3)]
        run = run_harness(heart_frame.iloc[:60], heart_frame.iloc[60:], HEART_SCHEMA, registry)
        assert run.model_names == ["Broken 0", "Broken 1", "Broken 2"]
        assert not run.successes

    def test_single_class_training_fails_per_model(self, heart_frame):
        train = heart_frame[heart_frame["HeartDisease"] == 1.0].iloc[:20]
        run = run_harness(train, heart_frame.iloc[60:], HEART_SCHEMA, select_trainers(["lbfgs_logreg", "rbf_svm"]))
        assert [o.succeeded for o in run.outcomes] == [False, False]

    def test_empty_registry_is_fatal(self, heart_frame):
        with pytest.raises(ConfigurationError) as exc_info:
            run_harness(heart_frame.iloc[:60], heart_frame.iloc[60:], HEART_SCHEMA, [])
        assert exc_info.value.stage == HarnessStage.IDLE.value

    def test_data_error_raised_before_any_training(self, thyroid_frame):
        fitted = []

        class Recording:
            def fit(self, X, y):
                fitted.append(True)
                return self

            def predict(self, X):
                return np.zeros(len(X), dtype=int)

        train = thyroid_frame.iloc[:60].copy()
        train.iloc[3, train.columns.get_loc("Recurred")] = "Unknown"
        with pytest.raises(UnmappedLabelError) as exc_info:
            run_harness(train, thyroid_frame.iloc[60:], THYROID_SCHEMA, [_descriptor("Recording", Recording)])
        assert exc_info.value.stage == HarnessStage.ENCODER_FIT.value
        assert fitted == []

    def test_parallel_matches_sequential(self, heart_frame):
        registry = select_trainers(["lbfgs_logreg", "gbdt", "random_forest"]) + [
            _descriptor("Bad kernel", partial(SVC, kernel="not-a-kernel")),
        ]
        args = (heart_frame.iloc[:60], heart_frame.iloc[60:], HEART_SCHEMA, registry)
        sequential = run_harness(*args)
        parallel = run_harness(*args, n_jobs=2)

        assert parallel.model_names == sequential.model_names
        assert [o.succeeded for o in parallel.outcomes] == [True, True, True, False]
        for a, b in zip(sequential.successes, parallel.successes):
            assert a.confusion == b.confusion
            assert a.accuracy == b.accuracy


class TestRunFromConfig:
    def test_random_mode_is_idempotent(self, write_csv, thyroid_frame):
        path = write_csv(thyroid_frame, "thyroid.csv")
        config = BenchmarkConfig(
            dataset_schema="thyroid",
            split_mode="random",
            test_fraction=0.3,
            random_seed=7,
            trainers=("sgd_logreg", "lbfgs_logreg", "averaged_perceptron", "gbdt", "random_forest"),
            data_path=str(path),
        )
        first = run_from_config(config)
        second = run_from_config(config)

        assert isinstance(first, BenchmarkRun)
        assert first.test_size == round(0.3 * len(thyroid_frame))
        assert all(o.succeeded for o in first.outcomes)
        assert [o.confusion for o in first.outcomes] == [o.confusion for o in second.outcomes]
        pd.testing.assert_frame_equal(report_frame(first.outcomes), report_frame(second.outcomes))

    def test_presplit_mode(self, write_csv):
        train = write_csv(make_heart_frame(60, seed=1), "train.csv")
        test = write_csv(make_heart_frame(25, seed=2), "test.csv")
        config = BenchmarkConfig(
            dataset_schema="heart",
            split_mode="pre-split",
            trainers=("lbfgs_logreg", "linear_svm"),
            train_path=str(train),
            test_path=str(test),
        )
        run = run_from_config(config)
        assert run.train_size == 60
        assert run.test_size == 25
        lbfgs, svm = run.outcomes
        assert lbfgs.auc is not None
        assert svm.auc is None
        assert lbfgs.confusion.total == svm.confusion.total == 25

    def test_config_errors_before_data_is_read(self, tmp_path):
        config = BenchmarkConfig(
            dataset_schema="thyroid",
            split_mode="random",
            test_fraction=1.5,
            data_path=str(tmp_path / "does-not-exist.csv"),
        )
        with pytest.raises(ConfigurationError) as exc_info:
            run_from_config(config)
        assert exc_info.value.stage == HarnessStage.CONFIG.value

    def test_unknown_trainer_is_a_config_error(self, tmp_path):
        config = BenchmarkConfig(
            dataset_schema="thyroid",
            data_path=str(tmp_path / "does-not-exist.csv"),
            trainers=("lightgbm",),
        )
        with pytest.raises(ConfigurationError, match="lightgbm"):
            run_from_config(config)

    def test_malformed_source_reports_load_stage(self, write_csv, heart_frame):
        bad = heart_frame.astype({"Cholesterol": object})
        bad.loc[4, "Cholesterol"] = "high"
        train = write_csv(bad, "train.csv")
        test = write_csv(heart_frame, "test.csv")
        config = BenchmarkConfig(
            dataset_schema="heart",
            split_mode="pre-split",
            trainers=("lbfgs_logreg",),
            train_path=str(train),
            test_path=str(test),
        )
        with pytest.raises(MalformedRowError, match="Cholesterol") as exc_info:
            run_from_config(config)
        assert exc_info.value.stage == HarnessStage.LOAD.value
        assert "train.csv" in str(exc_info.value)


def test_full_default_registry_on_heart(heart_frame):
    pytest.importorskip("catboost")
    from clfbench.trainers import default_registry

    run = run_harness(heart_frame.iloc[:60], heart_frame.iloc[60:], HEART_SCHEMA, default_registry())
    assert run.model_names == [d.name for d in default_registry()]
    for o in run.outcomes:
        assert o.succeeded, o
        assert o.confusion.total == 20
        assert (o.auc is not None) == (o.model_name in {
            "Logistic Regression (SGD)",
            "Logistic Regression (L-BFGS)",
            "Gradient Boosted Trees",
            "CatBoost GBDT",
            "GAM (Spline Additive)",
        })
