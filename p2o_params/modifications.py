# MIT License
"""User modifications ("knobs") layered on top of a derived scenario.

A modification set is a plain mapping from knob name to value, e.g.::

    mods = create_parameter_modifications()
    mods = increase_recycling_rate(mods, 0.3)
    mods = reduce_waste_generation(mods, 0.1)
    tree, diagnostics = apply_modifications(tree, mods)

Every knob is registered in :data:`KNOBS`, which maps its name to the
function that mutates the tree and to the nominal range of its value.
Names outside the table are reported and skipped.  Values outside the
nominal range are reported but still applied; the reconciler that runs
after the last knob clamps them back into bounds.
"""
from __future__ import annotations

import logging
import math
import numbers
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Tuple

import numpy as np

from .appliers import set_flow_rate
from .constants import (
    CHEMICAL_P2F_FLOW,
    CHEMICAL_P2P_FLOW,
    CLOSED_LOOP_MR_FLOW,
    FLEXIBLE_TYPE_INDEX,
    FORMAL_COLLECTION_FLOW,
    FORMAL_SORTING_FLOW,
)
from .diagnostics import Diagnostic, warn
from .params import FlowParams, ParameterTree
from .utils import as_array, to_list
from .validation import validate_parameters

logger = logging.getLogger(__name__)

STAGE = "modifications"

CUSTOM_FLOW_FIELDS = FlowParams.MATRIX_FIELDS + ("timeseries",)


class Knob(NamedTuple):
    apply: Callable[[ParameterTree, Any, List[Diagnostic]], None]
    nominal_range: Optional[Tuple[float, float]]
    scalar: bool = True


def _fill_demand(tree: ParameterTree, field: str, value: float) -> None:
    table = as_array(getattr(tree.demand, field))
    table[:, :] = value
    setattr(tree.demand, field, to_list(table))


def _collection_efficiency(tree: ParameterTree, value: float, diagnostics: List[Diagnostic]) -> None:
    set_flow_rate(tree, FORMAL_COLLECTION_FLOW, value)


def _recycling_rate(tree: ParameterTree, value: float, diagnostics: List[Diagnostic]) -> None:
    set_flow_rate(tree, CLOSED_LOOP_MR_FLOW, value)


def _sorting_efficiency(tree: ParameterTree, value: float, diagnostics: List[Diagnostic]) -> None:
    set_flow_rate(tree, FORMAL_SORTING_FLOW, value)


def _chemical_recycling_rate(tree: ParameterTree, value: float, diagnostics: List[Diagnostic]) -> None:
    set_flow_rate(tree, CHEMICAL_P2P_FLOW, value * 0.6)
    set_flow_rate(tree, CHEMICAL_P2F_FLOW, value * 0.4)


def _waste_reduction(tree: ParameterTree, value: float, diagnostics: List[Diagnostic]) -> None:
    _fill_demand(tree, "reduce_eliminate", value)


def _waste_prevention(tree: ParameterTree, value: float, diagnostics: List[Diagnostic]) -> None:
    tree.demand.reduce_eliminate = to_list(as_array(tree.demand.reduce_eliminate) + value)


def _single_use_reduction(tree: ParameterTree, value: float, diagnostics: List[Diagnostic]) -> None:
    # single-use items are mostly flexible packaging
    table = as_array(tree.demand.reduce_eliminate)
    table[FLEXIBLE_TYPE_INDEX, :] = value
    tree.demand.reduce_eliminate = to_list(table)


def _paper_substitution(tree: ParameterTree, value: float, diagnostics: List[Diagnostic]) -> None:
    _fill_demand(tree, "substitute_paper", value)


def _compostable_substitution(tree: ParameterTree, value: float, diagnostics: List[Diagnostic]) -> None:
    _fill_demand(tree, "substitute_compostables", value)


def _population_growth(tree: ParameterTree, value: float, diagnostics: List[Diagnostic]) -> None:
    years = np.arange(tree.basic.duration)
    tree.demand.population = to_list(tree.demand.population[0] * (1.0 + value) ** years)


def _custom_flow_params(tree: ParameterTree, value: Any, diagnostics: List[Diagnostic]) -> None:
    if not isinstance(value, Mapping):
        warn(diagnostics, logger, STAGE, "invalid_value", "custom_flow_params must be a mapping of flow field -> values")
        return
    for field, replacement in value.items():
        if field not in CUSTOM_FLOW_FIELDS:
            warn(diagnostics, logger, STAGE, "unknown_flow_field", f"custom_flow_params: unknown flow field '{field}'")
            continue
        current = as_array(getattr(tree.flows, field))
        try:
            new = as_array(replacement)
        except (TypeError, ValueError):
            warn(diagnostics, logger, STAGE, "invalid_value", f"custom_flow_params.{field}: values are not numeric")
            continue
        if new.shape != current.shape:
            warn(
                diagnostics, logger, STAGE, "shape_mismatch",
                f"custom_flow_params.{field}: expected shape {current.shape}, got {new.shape}",
            )
            continue
        setattr(tree.flows, field, to_list(new))
        logger.info("custom flow parameter modified: %s", field)


def _parse_multipliers(value: Any) -> Optional[Tuple[float, float]]:
    if isinstance(value, Mapping):
        opex = value.get("opex_multiplier")
        capex = value.get("capex_multiplier", opex)
        if opex is None:
            opex = 1.0 if capex is not None else None
        parts = (opex, capex)
    elif isinstance(value, (tuple, list)) and 1 <= len(value) <= 2:
        parts = (value[0], value[-1])
    else:
        parts = (value, value)
    if not all(_is_number(p) for p in parts):
        return None
    return float(parts[0]), float(parts[1])


def _economic_multipliers(tree: ParameterTree, value: Any, diagnostics: List[Diagnostic]) -> None:
    parsed = _parse_multipliers(value)
    if parsed is None:
        warn(diagnostics, logger, STAGE, "invalid_value", f"economic_multipliers: cannot interpret {value!r}")
        return
    opex, capex = parsed
    if opex < 0 or capex < 0:
        warn(diagnostics, logger, STAGE, "invalid_value", f"economic_multipliers must be non-negative, got OPEX={opex}, CAPEX={capex}")
        return
    for process in tree.economics.processes.values():
        process.opex_initial_rate *= opex
        process.capex_initial_rate *= capex
    logger.info("economic multipliers applied: OPEX=%.2f, CAPEX=%.2f", opex, capex)


KNOBS: Dict[str, Knob] = {
    "collection_efficiency": Knob(_collection_efficiency, (0.0, 1.0)),
    "recycling_rate": Knob(_recycling_rate, (0.0, 1.0)),
    "sorting_efficiency": Knob(_sorting_efficiency, (0.0, 1.0)),
    "chemical_recycling_rate": Knob(_chemical_recycling_rate, (0.0, 1.0)),
    "waste_reduction": Knob(_waste_reduction, (0.0, 1.0)),
    "waste_prevention": Knob(_waste_prevention, (0.0, 1.0)),
    "single_use_reduction": Knob(_single_use_reduction, (0.0, 1.0)),
    "paper_substitution": Knob(_paper_substitution, (0.0, 1.0)),
    "compostable_substitution": Knob(_compostable_substitution, (0.0, 1.0)),
    "population_growth": Knob(_population_growth, (-0.1, 0.1)),
    "custom_flow_params": Knob(_custom_flow_params, None, scalar=False),
    "economic_multipliers": Knob(_economic_multipliers, None, scalar=False),
}


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def _range_warning(name: str, value: float, nominal_range: Tuple[float, float]) -> Optional[str]:
    lo, hi = nominal_range
    if lo <= value <= hi:
        return None
    return f"{name}={value:g} is outside the nominal range [{lo:g}, {hi:g}]"


def apply_modifications(
    tree: ParameterTree, modifications: Optional[Mapping[str, Any]]
) -> Tuple[ParameterTree, List[Diagnostic]]:
    """Apply knob values to ``tree`` in mapping order, then reconcile.

    Parameters
    ----------
    tree:
        A validated parameter tree.
    modifications:
        Mapping of knob name to value.  ``None`` or an empty mapping only
        re-runs the reconciler.

    Returns
    -------
    Tuple[ParameterTree, List[Diagnostic]]
        The same tree object and the diagnostics of both the knobs and the
        final validation pass.
    """
    diagnostics: List[Diagnostic] = []
    for name, value in (modifications or {}).items():
        knob = KNOBS.get(name)
        if knob is None:
            warn(diagnostics, logger, STAGE, "unknown_knob", f"Unknown modification field: {name}")
            continue
        if knob.scalar:
            if not _is_number(value):
                warn(diagnostics, logger, STAGE, "invalid_value", f"{name}: expected a finite number, got {value!r}")
                continue
            message = _range_warning(name, float(value), knob.nominal_range)
            if message:
                warn(diagnostics, logger, STAGE, "out_of_range", message)
            value = float(value)
        knob.apply(tree, value, diagnostics)
        logger.info("modification applied: %s", name)
    tree, validation_diagnostics = validate_parameters(tree)
    diagnostics.extend(validation_diagnostics)
    return tree, diagnostics


# --------------------------------------------------------------------------
# builders

def create_parameter_modifications() -> Dict[str, Any]:
    """Return an empty modification set."""
    return {}


def _with(mods: Mapping[str, Any], name: str, value: Any) -> Dict[str, Any]:
    nominal_range = KNOBS[name].nominal_range
    if nominal_range is not None and _is_number(value):
        message = _range_warning(name, float(value), nominal_range)
        if message:
            logger.warning("%s; value may be invalid", message)
    updated = dict(mods)
    updated[name] = value
    return updated


def improve_collection_efficiency(mods: Mapping[str, Any], efficiency: float) -> Dict[str, Any]:
    return _with(mods, "collection_efficiency", efficiency)


def increase_recycling_rate(mods: Mapping[str, Any], rate: float) -> Dict[str, Any]:
    return _with(mods, "recycling_rate", rate)


def reduce_waste_generation(mods: Mapping[str, Any], reduction_fraction: float) -> Dict[str, Any]:
    return _with(mods, "waste_reduction", reduction_fraction)


def add_paper_substitution(mods: Mapping[str, Any], substitution_rate: float) -> Dict[str, Any]:
    return _with(mods, "paper_substitution", substitution_rate)


def apply_population_growth(mods: Mapping[str, Any], annual_growth_rate: float) -> Dict[str, Any]:
    return _with(mods, "population_growth", annual_growth_rate)


def modify_economics(
    mods: Mapping[str, Any], opex_multiplier: float, capex_multiplier: Optional[float] = None
) -> Dict[str, Any]:
    """Scale OPEX and CAPEX initial rates; CAPEX defaults to the OPEX multiplier."""
    if capex_multiplier is None:
        capex_multiplier = opex_multiplier
    return _with(
        mods,
        "economic_multipliers",
        {"opex_multiplier": opex_multiplier, "capex_multiplier": capex_multiplier},
    )


def set_custom_flow_parameter(mods: Mapping[str, Any], parameter_name: str, values: Any) -> Dict[str, Any]:
    """Replace one ``flows`` matrix wholesale, keeping earlier custom fields."""
    custom = dict(mods.get("custom_flow_params", {}))
    custom[parameter_name] = values
    return _with(mods, "custom_flow_params", custom)
