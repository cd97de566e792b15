"""
clfbench

Multi-model binary-classification benchmark harness: one shared feature
encoding, many classifiers, one uniform metrics protocol.

Public API:
- Configuration and schemas
- Label resolution and feature encoding
- Partitioning, trainer registry, harness
- Metrics and report formatting
"""

# Package version
__version__ = "0.1.0"

# ------------------------------------------------------------
# Configuration / errors
# ------------------------------------------------------------
from .config import (
    RANDOM_SEED,
    TEST_FRAC,
    SPLIT_MODES,
    SPLIT_PRESPLIT,
    SPLIT_RANDOM,
    BenchmarkConfig,
    validate_config,
)
from .exceptions import (
    BenchmarkError,
    ConfigurationError,
    DataError,
    SchemaError,
    MalformedRowError,
    UnmappedLabelError,
    PartitionError,
    EncodingError,
    EvaluationError,
)

# ------------------------------------------------------------
# Schemas / labels / features / split
# ------------------------------------------------------------
from .schema import (
    DatasetSchema,
    HEART_SCHEMA,
    THYROID_SCHEMA,
    SCHEMAS,
    get_schema,
    read_records,
    validate_records,
)
from .labels import (
    NUMERIC_BINARY_LABELS,
    YES_NO_LABELS,
    resolve,
    resolve_labels,
)
from .features import EncoderState, apply_encoder, fit_encoder
from .split import Partitions, load_partitions, random_partitions, presplit_partitions, split_indices

# ------------------------------------------------------------
# Trainers / harness / metrics / report
# ------------------------------------------------------------
from .trainers import (
    FittedModel,
    Predictions,
    TrainerDescriptor,
    TRAINER_KEYS,
    default_registry,
    select_trainers,
)
from .metrics import ConfusionMatrix, EvaluationResult, evaluate
from .harness import BenchmarkRun, ModelFailure, run_from_config, run_harness
from .report import format_report, report_frame, run_manifest, save_run_manifest, save_table

__all__ = [
    # config / errors
    "RANDOM_SEED",
    "TEST_FRAC",
    "SPLIT_MODES",
    "SPLIT_PRESPLIT",
    "SPLIT_RANDOM",
    "BenchmarkConfig",
    "validate_config",
    "BenchmarkError",
    "ConfigurationError",
    "DataError",
    "SchemaError",
    "MalformedRowError",
    "UnmappedLabelError",
    "PartitionError",
    "EncodingError",
    "EvaluationError",

    # schemas / labels / features / split
    "DatasetSchema",
    "HEART_SCHEMA",
    "THYROID_SCHEMA",
    "SCHEMAS",
    "get_schema",
    "read_records",
    "validate_records",
    "NUMERIC_BINARY_LABELS",
    "YES_NO_LABELS",
    "resolve",
    "resolve_labels",
    "EncoderState",
    "apply_encoder",
    "fit_encoder",
    "Partitions",
    "load_partitions",
    "random_partitions",
    "presplit_partitions",
    "split_indices",

    # trainers / harness / metrics / report
    "FittedModel",
    "Predictions",
    "TrainerDescriptor",
    "TRAINER_KEYS",
    "default_registry",
    "select_trainers",
    "ConfusionMatrix",
    "EvaluationResult",
    "evaluate",
    "BenchmarkRun",
    "ModelFailure",
    "run_from_config",
    "run_harness",
    "format_report",
    "report_frame",
    "run_manifest",
    "save_run_manifest",
    "save_table",
]
