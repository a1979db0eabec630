# MIT License
"""End-to-end derivation of a P2O run configuration.

The stages run in a fixed order::

    defaults -> archetype -> scenario -> zone -> validate
             -> modifications (+ validate) -> legacy files

:func:`load_scenario_parameters` covers everything up to the first
validation, :func:`run_scenario` adds the user modifications and writes the
engine files.  Every run builds its own tree, so independent runs (for
example the points of :func:`run_sensitivity_sweep`) never share state as
long as each one gets its own output directory.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd
from pydantic import BaseModel

from .appliers import apply_archetype, apply_scenario, apply_zone
from .constants import DEFAULT_DURATION
from .defaults import initialize_base_parameters
from .diagnostics import Diagnostic
from .legacy_format import LegacyFormatSettings, Topology, convert_params_to_legacy_format
from .modifications import apply_modifications
from .params import ParameterTree
from .utils import tree_hash
from .validation import validate_parameters

logger = logging.getLogger(__name__)


class RunResult(BaseModel):
    """Outcome of one :func:`run_scenario` call."""

    archetype_id: int
    scenario_id: int
    zone_id: int
    tree: ParameterTree
    diagnostics: List[Diagnostic]
    files: Dict[str, Path]


def load_scenario_parameters(
    archetype_id: int, scenario_id: int, zone_id: int, duration: int = DEFAULT_DURATION
) -> Tuple[ParameterTree, List[Diagnostic]]:
    """Derive and validate the parameter tree for one selector triple.

    Unknown selectors are reported in the returned diagnostics and leave
    the tree at the values of the previous stage.
    """
    diagnostics: List[Diagnostic] = []
    tree = initialize_base_parameters(duration)
    for stage, selector in ((apply_archetype, archetype_id), (apply_scenario, scenario_id), (apply_zone, zone_id)):
        tree, stage_diagnostics = stage(tree, selector)
        diagnostics.extend(stage_diagnostics)
    tree, stage_diagnostics = validate_parameters(tree)
    diagnostics.extend(stage_diagnostics)
    return tree, diagnostics


def run_scenario(
    archetype_id: int,
    scenario_id: int,
    zone_id: int,
    modifications: Optional[Mapping[str, Any]] = None,
    output_dir: Union[str, Path] = "config_files_temp",
    topology: Optional[Topology] = None,
    settings: Optional[LegacyFormatSettings] = None,
    duration: int = DEFAULT_DURATION,
) -> RunResult:
    """Build the parameter tree for one run and write the engine files.

    Parameters
    ----------
    archetype_id, scenario_id, zone_id:
        Preset selectors (1-8, 1-6, 1-2).
    modifications:
        Optional knob mapping, see :mod:`p2o_params.modifications`.
    output_dir:
        Directory that receives the engine files.  The run assumes it owns
        the directory.
    topology, settings:
        Passed through to :func:`convert_params_to_legacy_format`.

    Returns
    -------
    RunResult
        Final tree, every diagnostic in stage order and the written files.
    """
    logger.info("P2O run: archetype %s, scenario %s, zone %s", archetype_id, scenario_id, zone_id)
    tree, diagnostics = load_scenario_parameters(archetype_id, scenario_id, zone_id, duration)
    if modifications:
        tree, mod_diagnostics = apply_modifications(tree, modifications)
        diagnostics.extend(mod_diagnostics)
    files = convert_params_to_legacy_format(
        tree, archetype_id, scenario_id, zone_id, output_dir, topology=topology, settings=settings
    )
    return RunResult(
        archetype_id=archetype_id,
        scenario_id=scenario_id,
        zone_id=zone_id,
        tree=tree,
        diagnostics=diagnostics,
        files=files,
    )


def run_sensitivity_sweep(
    knob: str,
    values: Iterable[Any],
    archetype_id: int = 7,
    scenario_id: int = 1,
    zone_id: int = 1,
    output_root: Union[str, Path] = "sensitivity_runs",
    base_modifications: Optional[Mapping[str, Any]] = None,
) -> pd.DataFrame:
    """Run one independent configuration per knob value.

    Each run writes to ``output_root/<knob>_<i>``.  Returns one row per
    run with the value, output directory, number of files, number of
    warnings and the tree hash.
    """
    rows = []
    for i, value in enumerate(values, start=1):
        mods = dict(base_modifications or {})
        mods[knob] = value
        out_dir = Path(output_root) / f"{knob}_{i}"
        result = run_scenario(archetype_id, scenario_id, zone_id, mods, out_dir)
        rows.append(dict(
            run=i,
            value=value,
            output_dir=str(out_dir),
            n_files=len(result.files),
            n_warnings=len(result.diagnostics),
            tree_hash=tree_hash(result.tree),
        ))
    df = pd.DataFrame(rows)
    logger.info("sensitivity sweep over %s: %d run(s)", knob, len(df))
    return df
