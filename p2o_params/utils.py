# MIT License
from __future__ import annotations
import hashlib, json
from typing import Any, List, Sequence

import numpy as np

from .params import ParameterTree


def tree_hash(tree: ParameterTree) -> str:
    """Compute a stable hash for a parameter tree.

    Serialises the tree to JSON (with sorted keys) and computes a
    SHA256 hash.  Used to check that two runs derived the same numbers.

    Parameters
    ----------
    tree:
        ParameterTree instance.

    Returns
    -------
    str
        Hexadecimal string representation of the hash.
    """
    tree_json = tree.model_dump(mode="json")
    # ensure deterministic key ordering
    payload = json.dumps(tree_json, sort_keys=True).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def as_array(values: Sequence[Any]) -> np.ndarray:
    """Copy a (nested) list of numbers into a float array."""
    return np.array(values, dtype=float)


def to_list(arr: np.ndarray) -> List[Any]:
    """Convert an array back into the nested-list form stored on the tree."""
    return np.asarray(arr, dtype=float).tolist()
