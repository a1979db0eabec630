# MIT License
"""Archetype, scenario and zone presets.

Each applier takes the tree produced by the previous stage, overwrites the
leaves its selector controls and returns the same tree together with a
list of diagnostics.  An unknown selector is reported as a warning and the
tree is left exactly as it was.

Archetypes set the socioeconomic baseline (population, waste generation,
urban/rural split and collection rates).  Scenarios lay a policy
trajectory over it: some scale flow rates once, others ramp reduce and
substitute rates linearly over the run.  Zones scale operating costs.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Tuple

import numpy as np

from .constants import (
    ARCHETYPE_NAMES,
    ARCHETYPE_PRESETS,
    CLOSED_LOOP_MR_FLOW,
    FORMAL_COLLECTION_FLOW,
    FORMAL_SORTING_FLOW,
    INFORMAL_COLLECTION_FLOW,
    OPEN_LOOP_MR_FLOW,
    SCENARIO_NAMES,
    ZONE_NAMES,
    ZONE_OPEX_MULTIPLIERS,
)
from .diagnostics import Diagnostic, warn
from .params import ParameterTree
from .utils import as_array, to_list

logger = logging.getLogger(__name__)


def set_flow_rate(tree: ParameterTree, flow_id: int, value) -> None:
    """Overwrite coefficient ``a`` of one flow for every plastic type."""
    a = as_array(tree.flows.a)
    a[flow_id - 1, :] = value
    tree.flows.a = to_list(a)


def flow_rate(tree: ParameterTree, flow_id: int) -> np.ndarray:
    return as_array(tree.flows.a)[flow_id - 1, :]


def linear_growth(tree: ParameterTree) -> np.ndarray:
    """Ramp from 0 in the first year to 1 in the final year."""
    years = np.arange(1, tree.basic.duration + 1)
    return (years - 1) / (tree.basic.duration - 1)


def _set_for_all_types(tree: ParameterTree, field: str, per_year: np.ndarray) -> None:
    n_types = tree.basic.n_plastic_types
    setattr(tree.demand, field, to_list(np.tile(per_year, (n_types, 1))))


# --------------------------------------------------------------------------
# archetypes

def apply_archetype(tree: ParameterTree, archetype_id: int) -> Tuple[ParameterTree, List[Diagnostic]]:
    """Apply the socioeconomic preset for ``archetype_id`` (1-8).

    Overwrites population, waste per capita, zone proportions and the
    formal/informal collection rates.
    """
    diagnostics: List[Diagnostic] = []
    preset = ARCHETYPE_PRESETS.get(archetype_id)
    if preset is None:
        warn(diagnostics, logger, "archetype", "unknown_archetype", f"Unknown archetype ID: {archetype_id}. Using defaults.")
        return tree, diagnostics
    population, waste_per_capita, zones, formal, informal = preset
    years = tree.basic.duration
    tree.demand.population = [float(population)] * years
    tree.demand.waste_per_capita = [float(waste_per_capita)] * years
    tree.zones.proportions = [float(z) for z in zones]
    set_flow_rate(tree, FORMAL_COLLECTION_FLOW, formal)
    set_flow_rate(tree, INFORMAL_COLLECTION_FLOW, informal)
    logger.info("applied archetype %d (%s)", archetype_id, ARCHETYPE_NAMES[archetype_id])
    return tree, diagnostics


# --------------------------------------------------------------------------
# scenarios

def _baseline(tree: ParameterTree) -> None:
    pass


def _current_commitments(tree: ParameterTree) -> None:
    set_flow_rate(tree, FORMAL_COLLECTION_FLOW, np.minimum(0.9, flow_rate(tree, FORMAL_COLLECTION_FLOW) * 1.2))
    set_flow_rate(tree, CLOSED_LOOP_MR_FLOW, np.minimum(0.3, flow_rate(tree, CLOSED_LOOP_MR_FLOW) + 0.1))


def _linear(tree: ParameterTree) -> None:
    years = np.arange(1, tree.basic.duration + 1)
    _set_for_all_types(tree, "reduce_eliminate", np.minimum(0.1, (years - 1) * 0.004))


def _recycling(tree: ParameterTree) -> None:
    set_flow_rate(tree, FORMAL_SORTING_FLOW, np.minimum(0.8, flow_rate(tree, FORMAL_SORTING_FLOW) * 1.5))
    set_flow_rate(tree, CLOSED_LOOP_MR_FLOW, np.minimum(0.4, flow_rate(tree, CLOSED_LOOP_MR_FLOW) * 2))
    set_flow_rate(tree, OPEN_LOOP_MR_FLOW, np.minimum(0.3, flow_rate(tree, OPEN_LOOP_MR_FLOW) * 1.5))


def _reduce_and_substitute(tree: ParameterTree) -> None:
    growth = linear_growth(tree)
    _set_for_all_types(tree, "reduce_eliminate", 0.15 * growth)
    _set_for_all_types(tree, "substitute_paper", 0.1 * growth)
    _set_for_all_types(tree, "substitute_compostables", 0.05 * growth)


def _combined(tree: ParameterTree) -> None:
    _recycling(tree)
    # milder reduce/substitute ramp than the R&S scenario
    growth = linear_growth(tree)
    _set_for_all_types(tree, "reduce_eliminate", 0.08 * growth)
    _set_for_all_types(tree, "substitute_paper", 0.05 * growth)


SCENARIO_TRANSFORMS: Dict[int, Callable[[ParameterTree], None]] = {
    1: _baseline,
    2: _current_commitments,
    3: _linear,
    4: _recycling,
    5: _reduce_and_substitute,
    6: _combined,
}


def apply_scenario(tree: ParameterTree, scenario_id: int) -> Tuple[ParameterTree, List[Diagnostic]]:
    """Apply the policy narrative for ``scenario_id`` (1-6)."""
    diagnostics: List[Diagnostic] = []
    transform = SCENARIO_TRANSFORMS.get(scenario_id)
    if transform is None:
        warn(diagnostics, logger, "scenario", "unknown_scenario", f"Unknown scenario ID: {scenario_id}. Using defaults.")
        return tree, diagnostics
    transform(tree)
    logger.info("applied scenario %d (%s)", scenario_id, SCENARIO_NAMES[scenario_id])
    return tree, diagnostics


# --------------------------------------------------------------------------
# zones

def apply_zone(tree: ParameterTree, zone_id: int) -> Tuple[ParameterTree, List[Diagnostic]]:
    """Scale every process's initial OPEX for a dense (1) or sparse (2) zone."""
    diagnostics: List[Diagnostic] = []
    multiplier = ZONE_OPEX_MULTIPLIERS.get(zone_id)
    if multiplier is None:
        warn(diagnostics, logger, "zone", "unknown_zone", f"Unknown zone ID: {zone_id}. Using defaults.")
        return tree, diagnostics
    for process in tree.economics.processes.values():
        process.opex_initial_rate *= multiplier
    logger.info("applied zone %d (%s), OPEX x%.1f", zone_id, ZONE_NAMES[zone_id], multiplier)
    return tree, diagnostics
