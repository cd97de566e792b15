# src/clfbench/io.py
"""
File I/O for benchmark sources and outputs.

Sources:
- delimited text (any suffix not listed below), read with a configurable
  separator and optional header row; a UTF-8 BOM is tolerated
- Parquet (.parquet / .pq) and Feather (.feather)

Outputs:
- result tables in the same formats (CSV by default)
- JSON documents (run configs in, run manifests out)

Column naming and validation belong to clfbench.schema, not here.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import pandas as pd

# suffix -> storage format; anything else is delimited text
_BINARY_FORMATS = {
    ".parquet": "parquet",
    ".pq": "parquet",
    ".feather": "feather",
}


# -----------------------------
# Paths
# -----------------------------
def as_path(path: str | Path) -> Path:
    return Path(path).expanduser().resolve()


def ensure_parent_dir(path: str | Path) -> Path:
    out = as_path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    return out


def _existing(path: str | Path, *, what: str) -> Path:
    src = as_path(path)
    if not src.is_file():
        raise FileNotFoundError(f"{what} not found: {src}")
    return src


def storage_format(path: str | Path) -> str:
    return _BINARY_FORMATS.get(Path(path).suffix.lower(), "text")


# -----------------------------
# Tables
# -----------------------------
def load_dataframe(
    path: str | Path,
    *,
    sep: str = ",",
    has_header: bool = True,
) -> pd.DataFrame:
    """
    Read one tabular source.

    Delimited text keeps every column (no index column is inferred);
    without a header row, columns come back numbered 0..k-1. Only empty
    cells read as missing.
    """
    src = _existing(path, what="Data source")
    fmt = storage_format(src)

    if fmt == "parquet":
        return pd.read_parquet(src)
    if fmt == "feather":
        return pd.read_feather(src)

    return pd.read_csv(
        src,
        sep=sep,
        header=0 if has_header else None,
        index_col=False,
        skipinitialspace=True,
        # only empty cells are missing; "None" / "NA" / "null" are real tokens
        keep_default_na=False,
        na_values=[""],
        encoding="utf-8-sig",
    )


def save_dataframe(df: pd.DataFrame, path: str | Path) -> Path:
    """
    Write a table; the suffix picks the format, plain CSV otherwise.
    The frame's index is never written.
    """
    out = ensure_parent_dir(path)
    fmt = storage_format(out)

    if fmt == "parquet":
        df.to_parquet(out, index=False)
    elif fmt == "feather":
        df.reset_index(drop=True).to_feather(out)
    else:
        df.to_csv(out, index=False)
    return out


# -----------------------------
# JSON
# -----------------------------
def load_json(path: str | Path) -> Dict[str, Any]:
    src = _existing(path, what="JSON document")
    with src.open(encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{src}: expected a JSON object at the top level, got {type(data).__name__}")
    return data


def save_json(data: Dict[str, Any], path: str | Path) -> Path:
    out = ensure_parent_dir(path)
    with out.open("w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, sort_keys=True)
        fh.write("\n")
    return out
