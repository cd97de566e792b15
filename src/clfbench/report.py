# src/clfbench/report.py
"""
Presentation layer over harness outcomes.

- report_frame(): one row per trainer, registry order, every column present
- format_report(): fixed-width console lines (AUC "N/A" when not applicable)
- save_table(): CSV / XLSX (or Parquet / Feather) by extension
- save_run_manifest(): JSON record of the config and run shape next to the table
"""

from __future__ import annotations

import math
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from clfbench import __version__
from clfbench.config import BenchmarkConfig
from clfbench.harness import BenchmarkRun, ModelFailure, ModelOutcome
from clfbench.io import ensure_parent_dir, save_dataframe, save_json

REPORT_COLUMNS = [
    "Model",
    "Status",
    "Accuracy",
    "AUC",
    "F1",
    "Precision",
    "Recall",
    "TP",
    "FP",
    "FN",
    "TN",
    "Error",
]


def report_frame(outcomes: Iterable[ModelOutcome]) -> pd.DataFrame:
    """
    Table format:
      Model | Status | Accuracy | AUC | F1 | Precision | Recall | TP | FP | FN | TN | Error
    AUC is left empty (None) for uncalibrated trainers; failed trainers keep
    their row with Status="failed" and the error description.
    """
    rows = [o.as_row() for o in outcomes]
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def _fmt(value: Optional[float], width: int) -> str:
    if value is None:
        return f"{'N/A':>{width}}"
    if math.isnan(value):
        return f"{'NaN':>{width}}"
    return f"{value:{width}.3f}"


def format_report(outcomes: Iterable[ModelOutcome], *, title: str = "Model Performance on Test Data:") -> List[str]:
    outcomes = list(outcomes)
    lines = [
        title,
        f"{'Model':<30} {'Accuracy':>8} {'AUC':>6} {'F1':>6} {'Precision':>9} {'Recall':>7}"
        "   ConfusionMatrix (TP/FP/FN/TN)",
    ]
    for o in outcomes:
        if isinstance(o, ModelFailure):
            lines.append(f"{o.model_name:<30} FAILED during {o.phase}: {o.error_type}: {o.error}")
            continue
        cm = o.confusion
        lines.append(
            f"{o.model_name:<30} {_fmt(o.accuracy, 8)} {_fmt(o.auc, 6)} {_fmt(o.f1, 6)} "
            f"{_fmt(o.precision, 9)} {_fmt(o.recall, 7)}"
            f"   TP={cm.tp}, FP={cm.fp}, FN={cm.fn}, TN={cm.tn}"
        )

    undefined_auc = [
        o.model_name
        for o in outcomes
        if not isinstance(o, ModelFailure) and o.auc is not None and math.isnan(o.auc)
    ]
    if undefined_auc:
        lines.append("")
        lines.append(
            f"Note: AUC is NaN (undefined) for {', '.join(undefined_auc)}: "
            "the test partition holds a single class."
        )
    return lines


def save_table(df: pd.DataFrame, out_path: str | Path) -> Path:
    """
    Save the report table. Uses extension to choose format.
    """
    p = ensure_parent_dir(out_path)
    suffix = p.suffix.lower()
    if suffix == ".xlsx":
        df.to_excel(p, index=False)
        return p
    if suffix in (".csv", ".parquet", ".pq", ".feather"):
        return save_dataframe(df, p)
    # default to csv
    df.to_csv(p, index=False)
    return p


def run_manifest(config: BenchmarkConfig, run: BenchmarkRun) -> Dict[str, Any]:
    """
    JSON-safe summary of one run: the effective config, partition sizes,
    encoded feature names and per-trainer status.
    """
    config_out = asdict(config)
    config_out["trainers"] = None if config.trainers is None else list(config.trainers)
    return {
        "clfbench_version": __version__,
        "saved_utc": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "config": config_out,
        "train_size": run.train_size,
        "test_size": run.test_size,
        "feature_names": list(run.encoder_state.feature_names),
        "models": [
            {"name": o.model_name, "status": "ok" if o.succeeded else "failed"}
            for o in run.outcomes
        ],
    }


def save_run_manifest(config: BenchmarkConfig, run: BenchmarkRun, out_path: str | Path) -> Path:
    return save_json(run_manifest(config, run), out_path)
