# src/clfbench/config.py
"""
Global configuration for the clfbench harness.

This file is the SINGLE SOURCE OF TRUTH for:
- Random seed and default split fraction
- Recognised split modes
- The BenchmarkConfig record and its startup validation

Nothing in this file should depend on runtime data. validate_config()
must run before any dataset is read.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Sequence, Tuple

from clfbench.exceptions import ConfigurationError


# ============================================================
# Reproducibility
# ============================================================

RANDOM_SEED: int = 0

# Seeds are handed to numpy and every sklearn random_state
MAX_SEED: int = 2**32 - 1

# Fraction of rows held out for testing in random-split mode
TEST_FRAC: float = 0.3


# ============================================================
# Split modes
# ============================================================

SPLIT_PRESPLIT = "pre-split"
SPLIT_RANDOM = "random"

SPLIT_MODES = (SPLIT_PRESPLIT, SPLIT_RANDOM)


# ============================================================
# Input format
# ============================================================

DEFAULT_SEPARATOR = ","


# ============================================================
# Run configuration
# ============================================================

@dataclass(frozen=True)
class BenchmarkConfig:
    """
    Everything a single harness run needs.

    trainers is an ordered tuple of trainer names. None (not given) selects
    the full default registry in its declared order; an empty tuple is a
    configuration error.
    """
    dataset_schema: str
    split_mode: str = SPLIT_RANDOM
    test_fraction: float = TEST_FRAC
    random_seed: int = RANDOM_SEED
    trainers: Optional[Tuple[str, ...]] = None
    data_path: Optional[str] = None
    train_path: Optional[str] = None
    test_path: Optional[str] = None
    has_header: bool = True
    separator: str = DEFAULT_SEPARATOR
    n_jobs: int = 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BenchmarkConfig":
        """
        Build a config from a plain dict (e.g. a JSON document).
        Unknown keys are rejected rather than ignored.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {unknown}")
        if "dataset_schema" not in data:
            raise ConfigurationError("Configuration is missing 'dataset_schema'.")

        kwargs = dict(data)
        if kwargs.get("trainers") is not None:
            trainers = kwargs["trainers"]
            if isinstance(trainers, str) or not isinstance(trainers, Sequence):
                raise ConfigurationError("'trainers' must be a list of trainer names.")
            kwargs["trainers"] = tuple(trainers)
        return cls(**kwargs)


# ============================================================
# Guardrails
# ============================================================

def validate_config(config: BenchmarkConfig) -> None:
    """
    Hard-fail if the configuration is unusable.
    This should be called once at startup, before any data is read.
    """
    # Imported here: schema.py depends on this module for split constants
    from clfbench.schema import get_schema

    # 1) Dataset schema must be known
    get_schema(config.dataset_schema)

    # 2) Split mode must be one of the two supported modes
    if config.split_mode not in SPLIT_MODES:
        raise ConfigurationError(
            f"Unknown split_mode {config.split_mode!r}; expected one of {list(SPLIT_MODES)}"
        )

    # 3) Mode-specific inputs (modes are never mixed)
    if config.split_mode == SPLIT_RANDOM:
        validate_test_fraction(config.test_fraction)
        if not config.data_path:
            raise ConfigurationError("Random-split mode requires 'data_path'.")
        if config.train_path or config.test_path:
            raise ConfigurationError(
                "Random-split mode takes a single 'data_path'; "
                "'train_path'/'test_path' belong to pre-split mode."
            )
    else:
        if not config.train_path or not config.test_path:
            raise ConfigurationError("Pre-split mode requires both 'train_path' and 'test_path'.")
        if config.data_path:
            raise ConfigurationError("Pre-split mode does not take 'data_path'.")

    # 4) Seed must be an integer numpy and sklearn both accept
    if isinstance(config.random_seed, bool) or not isinstance(config.random_seed, int):
        raise ConfigurationError(f"random_seed must be an integer, got {config.random_seed!r}")
    if not 0 <= config.random_seed <= MAX_SEED:
        raise ConfigurationError(f"random_seed must be in [0, {MAX_SEED}], got {config.random_seed}")

    # 5) An explicit trainer list must name at least one trainer
    if config.trainers is not None and len(config.trainers) == 0:
        raise ConfigurationError(
            "Trainer registry is empty; list at least one trainer or omit 'trainers' for the default line-up."
        )

    # 6) joblib treats 0 as meaningless
    if config.n_jobs == 0:
        raise ConfigurationError("n_jobs must be non-zero (use 1 for sequential, -1 for all cores).")

    if not config.separator:
        raise ConfigurationError("separator must be a non-empty string.")


def validate_test_fraction(test_fraction: float) -> None:
    if isinstance(test_fraction, bool) or not isinstance(test_fraction, (int, float)):
        raise ConfigurationError(f"test_fraction must be a number, got {test_fraction!r}")
    if not 0.0 < float(test_fraction) < 1.0:
        raise ConfigurationError(f"test_fraction must be in (0, 1), got {test_fraction}")
