#!/usr/bin/env python3
"""
Benchmark every configured classifier on one dataset and print the comparison.

Usage examples:

  # heart disease, separate train/test files
  python scripts/run_benchmark.py \
    --schema heart \
    --split-mode pre-split \
    --train data/HeartPredictionQuantumDataset_Train.csv \
    --test data/HeartPredictionQuantumDataset_Test.csv

  # thyroid recurrence, one file split 70/30 with a fixed seed
  python scripts/run_benchmark.py \
    --schema thyroid \
    --data data/filtered_thyroid_data.csv \
    --test-frac 0.3 --seed 0 \
    --trainers sgd_logreg lbfgs_logreg gbdt random_forest linear_svm averaged_perceptron \
    --out results/thyroid_benchmark.csv

  # everything from a JSON document (keys = BenchmarkConfig fields)
  python scripts/run_benchmark.py --config configs/thyroid.json

Exit status is 2 when the run aborts on a configuration or data error.
Trainer-level failures do not change the exit status; they are reported
in the table.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict

from clfbench.config import RANDOM_SEED, SPLIT_MODES, TEST_FRAC, BenchmarkConfig
from clfbench.exceptions import BenchmarkError, ConfigurationError
from clfbench.harness import run_from_config
from clfbench.io import load_json
from clfbench.report import format_report, report_frame, save_run_manifest, save_table
from clfbench.schema import SCHEMAS
from clfbench.trainers import TRAINER_KEYS


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Benchmark binary classifiers on one shared feature encoding.")
    p.add_argument("--config", help="JSON config file (overrides all dataset/split flags).")
    p.add_argument("--schema", choices=sorted(SCHEMAS), help="Dataset schema.")
    p.add_argument("--split-mode", choices=list(SPLIT_MODES), help="Defaults to the schema's usual mode.")
    p.add_argument("--data", help="Single source for random-split mode.")
    p.add_argument("--train", help="Training source for pre-split mode.")
    p.add_argument("--test", help="Test source for pre-split mode.")
    p.add_argument("--test-frac", type=float, default=TEST_FRAC, help="Test fraction in random-split mode.")
    p.add_argument("--seed", type=int, default=RANDOM_SEED, help="Random seed (split + trainers).")
    p.add_argument(
        "--trainers",
        nargs="*",
        default=None,
        help=f"Trainer keys in report order (omit for all). Known: {', '.join(TRAINER_KEYS)}",
    )
    p.add_argument("--no-header", action="store_true", help="Sources have no header row.")
    p.add_argument("--sep", default=",", help="Field separator.")
    p.add_argument("--n-jobs", type=int, default=1, help="Fit trainers in parallel (joblib).")
    p.add_argument(
        "--out",
        help="Optional path for the results table (csv, xlsx, parquet); a <stem>_manifest.json is written beside it.",
    )
    p.add_argument("--verbose", action="store_true", help="Debug logging.")
    return p.parse_args()


def build_config(args: argparse.Namespace) -> BenchmarkConfig:
    if args.config:
        try:
            data = load_json(args.config)
        except ValueError as exc:
            raise ConfigurationError(f"Unreadable config file {args.config}: {exc}") from exc
        return BenchmarkConfig.from_dict(data)

    if not args.schema:
        raise SystemExit("error: --schema is required unless --config is given")

    split_mode = args.split_mode or SCHEMAS[args.schema].default_split_mode
    data: Dict[str, Any] = {
        "dataset_schema": args.schema,
        "split_mode": split_mode,
        "test_fraction": args.test_frac,
        "random_seed": args.seed,
        "trainers": None if args.trainers is None else list(args.trainers),
        "data_path": args.data,
        "train_path": args.train,
        "test_path": args.test,
        "has_header": not args.no_header,
        "separator": args.sep,
        "n_jobs": args.n_jobs,
    }
    return BenchmarkConfig.from_dict(data)


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = build_config(args)
        run = run_from_config(config)
    except BenchmarkError as exc:
        stage = exc.stage or "startup"
        print(f"\n=== BENCHMARK ABORTED [{stage}] ===", file=sys.stderr)
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError as exc:
        print("\n=== BENCHMARK ABORTED [Load] ===", file=sys.stderr)
        print(f"Input not found: {exc}", file=sys.stderr)
        return 2

    print()
    for line in format_report(run.outcomes):
        print(line)

    print("\nTrain rows:", run.train_size, "| Test rows:", run.test_size,
          "| Features:", run.encoder_state.n_features)
    if run.failures:
        print("Failed trainers:", ", ".join(f.model_name for f in run.failures))

    if args.out:
        out_path = save_table(report_frame(run.outcomes), args.out)
        print("Saved:", str(out_path))
        manifest_path = save_run_manifest(config, run, out_path.with_name(out_path.stem + "_manifest.json"))
        print("Saved:", str(manifest_path))

    return 0


if __name__ == "__main__":
    sys.exit(main())
