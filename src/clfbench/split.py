# src/clfbench/split.py
"""
Train/test partitioning for the clfbench harness.

Two modes, selected by configuration and never mixed within one run:
- pre-split : two independent sources are used as train and test as-is
- random    : one source is shuffled with a fixed seed and cut into
              test_size = round(f * n) test rows and n - test_size train rows

The random split is label-agnostic (no stratification). Identical seed and
fraction always give identical partitions.

This module provides:
- split_indices(): returns integer row positions for each partition
- random_partitions() / presplit_partitions(): return a Partitions bundle
- load_partitions(): reads the configured sources and partitions them
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from clfbench.config import SPLIT_PRESPLIT, SPLIT_RANDOM, BenchmarkConfig, validate_test_fraction
from clfbench.exceptions import ConfigurationError, PartitionError
from clfbench.schema import DatasetSchema, read_records

logger = logging.getLogger("clfbench.split")


@dataclass(frozen=True)
class SplitResult:
    train_idx: np.ndarray
    test_idx: np.ndarray


@dataclass(frozen=True)
class Partitions:
    train: pd.DataFrame
    test: pd.DataFrame
    mode: str


def split_indices(n: int, *, test_fraction: float, seed: int) -> SplitResult:
    """
    Create deterministic split positions for n rows.

    Returns:
      SplitResult with integer positions (0..n-1); the two arrays are
      disjoint and together cover every row.
    """
    validate_test_fraction(test_fraction)
    if n <= 0:
        raise PartitionError("Cannot split an empty dataset.")

    rng = np.random.default_rng(seed)
    idx = rng.permutation(n)

    n_test = int(round(test_fraction * n))
    n_train = n - n_test
    if n_test == 0 or n_train == 0:
        raise PartitionError(
            f"test_fraction={test_fraction} on {n} rows leaves an empty partition "
            f"(train={n_train}, test={n_test})."
        )

    return SplitResult(train_idx=idx[n_test:], test_idx=idx[:n_test])


def random_partitions(df: pd.DataFrame, *, test_fraction: float, seed: int) -> Partitions:
    """
    Returns (train, test) as copies with fresh positional indices.
    """
    s = split_indices(len(df), test_fraction=test_fraction, seed=seed)
    train = df.iloc[s.train_idx].reset_index(drop=True)
    test = df.iloc[s.test_idx].reset_index(drop=True)
    return Partitions(train=train, test=test, mode=SPLIT_RANDOM)


def presplit_partitions(train: pd.DataFrame, test: pd.DataFrame) -> Partitions:
    if train.empty or test.empty:
        raise PartitionError(
            f"Pre-split sources must both be non-empty (train={len(train)}, test={len(test)})."
        )
    return Partitions(
        train=train.reset_index(drop=True),
        test=test.reset_index(drop=True),
        mode=SPLIT_PRESPLIT,
    )


def load_partitions(config: BenchmarkConfig, schema: DatasetSchema) -> Partitions:
    """
    Read the configured source(s) and produce the train/test partitions.
    """
    read_opts = {"has_header": config.has_header, "separator": config.separator}

    if config.split_mode == SPLIT_RANDOM:
        df = read_records(config.data_path, schema, **read_opts)
        parts = random_partitions(df, test_fraction=config.test_fraction, seed=config.random_seed)
    elif config.split_mode == SPLIT_PRESPLIT:
        train = read_records(config.train_path, schema, **read_opts)
        test = read_records(config.test_path, schema, **read_opts)
        parts = presplit_partitions(train, test)
    else:
        raise ConfigurationError(f"Unknown split_mode {config.split_mode!r}")

    logger.info(
        "Partitions ready (%s): train=%d rows, test=%d rows",
        parts.mode,
        len(parts.train),
        len(parts.test),
    )
    return parts
