# MIT License
"""Cross-field reconciliation of a parameter tree.

:func:`validate_parameters` runs after every mutating stage.  It never
rejects a tree; instead it pulls it back into the physically meaningful
region:

* rate fields are clamped into ``[0, 1]`` and processing rates to ``>= 0``;
* for each plastic type and year the six reduce/substitute rates may not
  sum to more than 1.  A group that does is scaled down proportionally so
  that it sums to exactly 1;
* waste-type shares (per year) and zone shares are renormalised to 1.

Groups that are already within :data:`TOLERANCE` of the target are left
untouched, which makes the function idempotent bit for bit.
"""
from __future__ import annotations

import logging
from typing import List, Tuple

import numpy as np

from .constants import REDUCE_SUBSTITUTE_FIELDS, SHIFT_FIELDS
from .diagnostics import Diagnostic, warn
from .params import ParameterTree
from .utils import as_array, to_list

logger = logging.getLogger(__name__)

STAGE = "validation"
TOLERANCE = 1e-12


def _clamp(values: np.ndarray, lo: float, hi: float = np.inf) -> Tuple[np.ndarray, int]:
    out = np.clip(values, lo, hi)
    return out, int(np.count_nonzero(out != values))


def clamp_rates(tree: ParameterTree, diagnostics: List[Diagnostic]) -> None:
    """Clamp every bounded rate field in place."""
    bounded = [("demand", name, 1.0) for name in REDUCE_SUBSTITUTE_FIELDS + SHIFT_FIELDS]
    bounded += [("flows", "a", 1.0), ("flows", "enforced_proportion", 1.0), ("flows", "processing_rate", np.inf)]
    for section_name, field, hi in bounded:
        section = getattr(tree, section_name)
        values, n_changed = _clamp(as_array(getattr(section, field)), 0.0, hi)
        if n_changed:
            bounds = "[0, 1]" if hi == 1.0 else ">= 0"
            warn(diagnostics, logger, STAGE, "rate_clamped", f"{section_name}.{field}: {n_changed} value(s) clamped to {bounds}")
            setattr(section, field, to_list(values))


def cap_reduce_substitute(tree: ParameterTree, diagnostics: List[Diagnostic]) -> None:
    """Scale down reduce/substitute groups whose total exceeds 1."""
    stack = np.stack([as_array(getattr(tree.demand, name)) for name in REDUCE_SUBSTITUTE_FIELDS])
    total = stack.sum(axis=0)
    over = total > 1.0 + TOLERANCE
    if not over.any():
        return
    stack[:, over] = stack[:, over] / total[over]
    for name, table in zip(REDUCE_SUBSTITUTE_FIELDS, stack):
        setattr(tree.demand, name, to_list(table))
    warn(
        diagnostics, logger, STAGE, "reduce_substitute_capped",
        f"reduce/substitute rates exceeded 100% in {int(over.sum())} type-year group(s); scaled down proportionally",
    )


def _normalise(shares: np.ndarray, label: str, diagnostics: List[Diagnostic]) -> Tuple[np.ndarray, bool]:
    """Renormalise ``shares`` along axis 0.  Returns the array and whether it changed."""
    columns = shares.reshape(shares.shape[0], -1)
    out = np.clip(columns, 0.0, None)
    changed = bool(np.any(out != columns))
    sums = out.sum(axis=0)
    empty = sums <= 0.0
    if np.any(empty):
        out[:, empty] = 1.0 / out.shape[0]
        warn(diagnostics, logger, STAGE, "empty_proportions", f"{label}: all-zero shares replaced by equal shares")
        changed = True
        sums = out.sum(axis=0)
    off = np.abs(sums - 1.0) > TOLERANCE
    if np.any(off):
        out[:, off] = out[:, off] / sums[off]
        changed = True
    return out.reshape(shares.shape), changed


def normalise_proportions(tree: ParameterTree, diagnostics: List[Diagnostic]) -> None:
    waste, changed = _normalise(as_array(tree.demand.waste_proportion), "demand.waste_proportion", diagnostics)
    if changed:
        tree.demand.waste_proportion = to_list(waste)
    zones, changed = _normalise(as_array(tree.zones.proportions), "zones.proportions", diagnostics)
    if changed:
        tree.zones.proportions = to_list(zones)


def validate_parameters(tree: ParameterTree) -> Tuple[ParameterTree, List[Diagnostic]]:
    """Reconcile ``tree`` in place and return it with any diagnostics.

    Parameters
    ----------
    tree:
        Parameter tree produced by an earlier pipeline stage.

    Returns
    -------
    Tuple[ParameterTree, List[Diagnostic]]
        The same tree object, now satisfying every invariant, and one
        diagnostic per kind of correction that had to be made.
    """
    diagnostics: List[Diagnostic] = []
    clamp_rates(tree, diagnostics)
    cap_reduce_substitute(tree, diagnostics)
    normalise_proportions(tree, diagnostics)
    logger.debug("parameter validation complete (%d diagnostic(s))", len(diagnostics))
    return tree, diagnostics
