# src/clfbench/exceptions.py
"""
Error taxonomy for the clfbench harness.

Fatal errors (configuration, schema/data) abort a run before any model is
trained. Per-model errors are never raised out of the harness; they are
recorded as a ModelFailure entry for that trainer instead.

All exceptions inherit from BenchmarkError so callers can catch broadly
or narrowly as needed.
"""

from __future__ import annotations

from typing import Optional


class BenchmarkError(Exception):
    """Base exception for all clfbench errors.

    `stage` is filled in by the harness with the pipeline stage that was
    running when the error surfaced (e.g. "EncoderFit").
    """

    def __init__(self, message: str, *, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigurationError(BenchmarkError):
    """Invalid run configuration (split fraction, registry, schema name)."""


# ---------------------------------------------------------------------------
# Schema / data
# ---------------------------------------------------------------------------

class DataError(BenchmarkError):
    """Input records cannot be trusted."""


class SchemaError(DataError):
    """Missing or unexpected columns in an input source."""


class MalformedRowError(DataError):
    """A row holds a missing or unparseable value in a required field."""


class UnmappedLabelError(DataError):
    """A raw label value is outside the declared label mapping."""


class PartitionError(DataError):
    """Partitioning produced an empty train or test set."""


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class EncodingError(BenchmarkError):
    """Encoder state and records disagree (e.g. width drift)."""


class EvaluationError(BenchmarkError):
    """Predictions cannot be scored against the test labels."""
