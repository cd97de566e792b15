# src/clfbench/labels.py
"""
Label resolution: raw label tokens -> canonical boolean labels.

A mapping is a total function over exactly two raw tokens, one per class
(e.g. 1.0/0.0 or "Yes"/"No"). Anything outside the mapping is a fatal
data error, never a default class.
"""

from __future__ import annotations

import math
from numbers import Number
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional

import numpy as np

from clfbench.exceptions import ConfigurationError, UnmappedLabelError

LabelMapping = Mapping[Hashable, bool]

# Canonical mappings used by the built-in schemas
NUMERIC_BINARY_LABELS: Dict[Hashable, bool] = {1.0: True, 0.0: False}
YES_NO_LABELS: Dict[Hashable, bool] = {"Yes": True, "No": False}


def validate_mapping(mapping: LabelMapping) -> None:
    """
    Hard-fail unless the mapping has exactly two tokens, one per class.
    """
    if len(mapping) != 2:
        raise ConfigurationError(
            f"Label mapping must declare exactly two raw tokens, got {len(mapping)}: {dict(mapping)}"
        )
    targets = sorted(bool(v) for v in mapping.values())
    if targets != [False, True]:
        raise ConfigurationError(f"Label mapping must map one token to each class, got {dict(mapping)}")


def _is_numeric_key(key: Any) -> bool:
    return isinstance(key, Number) and not isinstance(key, bool)


def _as_float(raw: Any) -> Optional[float]:
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(value) else value


def resolve(raw: Any, mapping: LabelMapping) -> bool:
    """
    Resolve one raw label value to its canonical boolean.

    Lookup order:
      1) exact key
      2) numeric value, for mappings keyed by numbers (1, "1", 1.0 are one token)
      3) whitespace-stripped string
    Raises UnmappedLabelError otherwise.
    """
    try:
        if raw in mapping:
            return bool(mapping[raw])
    except TypeError:
        # unhashable raw value: cannot be a declared token
        pass

    if any(_is_numeric_key(k) for k in mapping):
        value = _as_float(raw)
        if value is not None:
            for key, target in mapping.items():
                if _is_numeric_key(key) and float(key) == value:
                    return bool(target)

    if isinstance(raw, str):
        stripped = raw.strip()
        if stripped in mapping:
            return bool(mapping[stripped])

    raise UnmappedLabelError(
        f"Label value {raw!r} is not in the declared mapping {sorted(map(repr, mapping))}"
    )


def resolve_labels(
    values: Iterable[Any],
    mapping: LabelMapping,
    *,
    source: Optional[str] = None,
) -> np.ndarray:
    """
    Resolve a whole label column to a boolean array.

    Every unmapped distinct value is collected first so that the error
    message lists all of them at once.
    """
    resolved: List[bool] = []
    unmapped: Dict[str, Any] = {}
    for raw in values:
        try:
            resolved.append(resolve(raw, mapping))
        except UnmappedLabelError:
            unmapped.setdefault(repr(raw), raw)

    if unmapped:
        where = f" in {source}" if source else ""
        shown = list(unmapped)[:10]
        raise UnmappedLabelError(
            f"Unmapped label values{where}: {shown}"
            f" (expected one of {sorted(map(repr, mapping))})"
        )

    return np.asarray(resolved, dtype=bool)
