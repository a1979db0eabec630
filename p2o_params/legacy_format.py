# MIT License
"""Render a parameter tree into the P2O engine's configuration files.

The engine reads a fixed set of header-less CSV tables.  Each ``build_*``
function in this module flattens one or more tree sections into a
:class:`pandas.DataFrame` with exactly the rows and columns the engine
expects; :func:`convert_params_to_legacy_format` writes them all.

Shared files (``basic_info.csv``, ``interaction_parameters.csv`` ...) are
written under a fixed name.  Economic and demand tables are specific to an
archetype/scenario/zone combination and are named
``{Archetype}_{Scenario}_Plastic_2_Zone_{zone}_{Suffix}.csv``.

Every field is written even when it still holds its default value.  GHG
and jobs series that the tree does not carry are backfilled with the flat
defaults in :class:`LegacyFormatSettings`.  Any other missing or
mis-shaped field raises :class:`~p2o_params.errors.MissingFieldError`.
"""
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from pydantic import BaseModel, Field

from .constants import (
    ARCHETYPE_NAMES,
    GHG_JOBS_PROCESSES,
    PRICE_STREAMS,
    PROCESSES,
    REDUCE_SUBSTITUTE_FIELDS,
    SCENARIO_NAMES,
    SEED_TOPOLOGY,
    SHIFT_FIELDS,
    TIMESERIES_PROCESSES,
)
from .errors import EncodingError, MissingFieldError, OutputDirectoryError
from .params import ParameterTree, ProcessEconomics

logger = logging.getLogger(__name__)

Topology = Mapping[Tuple[int, int], int]

DEMAND_ROWS = 33
COSTS_COLUMNS = 17
GHG_JOBS_COLUMNS = 6
TIMESERIES_ROWS = 17


class LegacyFormatSettings(BaseModel):
    """Fixed values of the engine's file format."""

    start_year: int = Field(2020, description="Calendar year of simulation year 1.")
    default_pedigree: int = Field(2, description="Uncertainty category written where the tree has none.")
    default_ghg_factor: float = Field(1000.0, description="Backfill for a missing GHG series (kgCO2eq/tonne).")
    default_jobs_factor: float = Field(5.0, description="Backfill for a missing jobs series (jobs/1000 tonnes).")
    padded_list_length: int = Field(10, description="Length to which plastic types and finite sinks are padded.")
    columns_per_plastic_type: int = Field(18, ge=17, description="Width of one plastic-type block in interaction_parameters.csv.")
    production_calculation_type: int = Field(1)
    create_figures: int = Field(1)
    capex_type: int = Field(1)
    plastic_file_tag: str = Field("Plastic_2", description="Fixed infix of scenario file names.")


# --------------------------------------------------------------------------
# field access

def _array(values, field: str, shape: Optional[Tuple[int, ...]] = None) -> np.ndarray:
    if values is None:
        raise MissingFieldError(field)
    try:
        arr = np.array(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise MissingFieldError(field, detail=str(exc)) from exc
    if shape is not None and arr.shape != shape:
        raise MissingFieldError(field, detail=f"expected shape {shape}, got {arr.shape}")
    return arr


def _process(tree: ParameterTree, name: str) -> ProcessEconomics:
    try:
        return tree.economics.processes[name]
    except KeyError:
        raise MissingFieldError(f"economics.processes.{name}") from None


def _series_or_default(series: Mapping[str, Sequence[float]], label: str, name: str, years: int, default: float) -> np.ndarray:
    if name not in series:
        logger.debug("%s.%s missing; using flat default %g", label, name, default)
        return np.full(years, default)
    return _array(series[name], f"economics.{label}.{name}", (years,))


def _padded(values: Sequence[float], length: int, field: str) -> np.ndarray:
    if len(values) > length:
        raise MissingFieldError(field, detail=f"more than {length} entries")
    out = np.zeros(length)
    out[: len(values)] = values
    return out


def _with_pedigree(rows: np.ndarray, pedigree: float) -> np.ndarray:
    return np.column_stack([np.full(rows.shape[0], pedigree), rows])


# --------------------------------------------------------------------------
# shared tables

def build_basic_info(tree: ParameterTree, settings: LegacyFormatSettings) -> pd.DataFrame:
    """Stack run-level scalars and short lists into a single column."""
    b = tree.basic
    n = settings.padded_list_length
    parts = [
        [b.duration],
        _padded(b.plastic_types, n, "basic.plastic_types"),
        [b.n_MC_iterations],
        [b.MC_distribution_type],
        [settings.production_calculation_type],
        [settings.create_figures],
        [settings.start_year],
        [b.output_resolution],
        [b.n_stocks],
        [b.production_interaction],
        [b.waste_generated_box_number],
        [b.imports_interaction],
        _padded(b.finite_sinks, n, "basic.finite_sinks"),
        b.pedigree_values,
    ]
    return pd.DataFrame(np.concatenate([np.asarray(p, dtype=float) for p in parts]))


def build_interaction_parameters(tree: ParameterTree, settings: LegacyFormatSettings) -> pd.DataFrame:
    """One row per flow; an 18-column coefficient block per plastic type."""
    flows = tree.flows
    n_flows = flows.n_interactions
    n_types = tree.basic.n_plastic_types
    width = settings.columns_per_plastic_type
    shape = (n_flows, n_types)

    def field(name: str) -> np.ndarray:
        return _array(getattr(flows, name, None), f"flows.{name}", shape)

    # column offset within a block -> source matrix
    layout = {
        0: field("plug"),
        1: field("relative_absolute"),
        2: field("a"),
        3: field("b"),
        4: field("c"),
        5: field("time_series_pedigree"),
        6: field("d"),
        8: np.full(shape, float(tree.basic.duration)),  # intervention end; start (7) stays 0
        12: field("max_annual_flow_rate"),
        13: field("equation_or_timeseries"),
        14: field("enforced_proportion"),
        15: field("processing_rate"),
        16: field("function_type"),
    }
    out = np.zeros((n_flows, n_types * width))
    for t in range(n_types):
        for offset, matrix in layout.items():
            out[:, t * width + offset] = matrix[:, t]
    return pd.DataFrame(out)


def _capacity_table(tree: ParameterTree, prefix: str) -> pd.DataFrame:
    n = tree.basic.n_stocks
    columns = [
        _array(getattr(tree.capacity, f"{prefix}_{suffix}", None), f"capacity.{prefix}_{suffix}", (n,))
        for suffix in ("multiplier", "CAGR", "t_start", "t_end")
    ]
    return pd.DataFrame(np.column_stack(columns))


def build_box_conditions(tree: ParameterTree) -> pd.DataFrame:
    """Mass capacity envelope per stock."""
    return _capacity_table(tree, "mass")


def build_box_flow_capacity(tree: ParameterTree) -> pd.DataFrame:
    """Flow capacity envelope per stock."""
    return _capacity_table(tree, "flow")


def build_stock_stock_interactions(tree: ParameterTree, topology: Optional[Topology] = None) -> pd.DataFrame:
    """Square stock x stock matrix holding the id of the flow between two stocks.

    Without ``topology`` only the seed flows (production, export and the
    two collection routes) are filled in; the complete network is
    configuration supplied by the caller.
    """
    n = tree.basic.n_stocks
    out = np.zeros((n, n))
    for (src, dst), flow_id in (SEED_TOPOLOGY if topology is None else topology).items():
        if not (1 <= src <= n and 1 <= dst <= n):
            raise EncodingError(f"topology edge ({src}, {dst}) is outside stocks 1..{n}")
        out[src - 1, dst - 1] = flow_id
    return pd.DataFrame(out)


def build_time_series(tree: ParameterTree) -> pd.DataFrame:
    """Two zero header rows, then per plastic type one row per flow: id and yearly values."""
    n_flows = tree.flows.n_interactions
    years = tree.basic.duration
    series = _array(tree.flows.timeseries, "flows.timeseries", (n_flows, years))
    block = np.column_stack([np.arange(1, n_flows + 1), series])
    blocks = [np.zeros((2, 1 + years))] + [block] * tree.basic.n_plastic_types
    return pd.DataFrame(np.vstack(blocks))


# --------------------------------------------------------------------------
# scenario tables

def build_demand(tree: ParameterTree, settings: LegacyFormatSettings) -> pd.DataFrame:
    """33 rows of pedigree + yearly values; rows past the shift rows stay zero."""
    d = tree.demand
    years = tree.basic.duration
    n_types = tree.basic.n_plastic_types
    rows = [
        _array(d.population, "demand.population", (years,)),
        _array(d.waste_per_capita, "demand.waste_per_capita", (years,)),
    ]
    rows.extend(_array(d.waste_proportion, "demand.waste_proportion", (n_types, years)))
    tables = {name: _array(getattr(d, name), f"demand.{name}", (n_types, years)) for name in REDUCE_SUBSTITUTE_FIELDS}
    for t in range(n_types):
        rows.extend(tables[name][t] for name in REDUCE_SUBSTITUTE_FIELDS)
    rows.extend(_array(getattr(d, name), f"demand.{name}", (years,)) for name in SHIFT_FIELDS)
    if len(rows) > DEMAND_ROWS:
        raise MissingFieldError("demand", detail=f"{len(rows)} rows do not fit the {DEMAND_ROWS}-row layout")
    out = np.zeros((DEMAND_ROWS, 1 + years))
    out[: len(rows)] = _with_pedigree(np.vstack(rows), settings.default_pedigree)
    return pd.DataFrame(out)


def build_costs(tree: ParameterTree, settings: LegacyFormatSettings) -> pd.DataFrame:
    """OPEX and CAPEX columns per process.

    The engine schema repeats the CAPEX pedigree next to several unrelated
    columns; the layout is reproduced as is.
    """
    rows = []
    for name in PROCESSES:
        p = _process(tree, name)
        rows.append([
            p.opex_initial_rate,
            p.opex_learning_rate,
            p.opex_pedigree,
            p.capex_asset_cost,
            p.capex_pedigree,
            p.capex_asset_capacity,
            p.capex_pedigree,
            p.capex_asset_duration,
            p.capex_pedigree,
            p.capex_learning_rate,
            p.capex_pedigree,
            p.capex_pedigree,
            p.capex_initial_rate,
            p.capex_pedigree,
            p.capex_pedigree,
            p.capex_initial_rate,
            settings.capex_type,
        ])
    return pd.DataFrame(np.array(rows, dtype=float))


def build_ghg_jobs(tree: ParameterTree, settings: LegacyFormatSettings) -> pd.DataFrame:
    """First-year GHG and jobs factors per process, written twice."""
    years = tree.basic.duration
    econ = tree.economics
    pedigree = settings.default_pedigree
    rows = []
    for name in GHG_JOBS_PROCESSES:
        ghg = _series_or_default(econ.ghg, "ghg", name, years, settings.default_ghg_factor)[0]
        jobs = _series_or_default(econ.jobs, "jobs", name, years, settings.default_jobs_factor)[0]
        rows.append([ghg, jobs, pedigree, ghg, jobs, pedigree])
    return pd.DataFrame(np.array(rows, dtype=float))


def build_prices(tree: ParameterTree, settings: LegacyFormatSettings) -> pd.DataFrame:
    years = tree.basic.duration
    prices = tree.economics.prices
    rows = []
    for stream in PRICE_STREAMS:
        if stream not in prices:
            raise MissingFieldError(f"economics.prices.{stream}")
        rows.append(_array(prices[stream], f"economics.prices.{stream}", (years,)))
    return pd.DataFrame(_with_pedigree(np.vstack(rows), settings.default_pedigree))


def build_capex(tree: ParameterTree, settings: LegacyFormatSettings) -> pd.DataFrame:
    """Flat CAPEX series for each reduce/substitute mechanism."""
    years = tree.basic.duration
    rows = [np.full(years, _process(tree, name).capex_initial_rate) for name in REDUCE_SUBSTITUTE_FIELDS]
    return pd.DataFrame(_with_pedigree(np.vstack(rows), settings.default_pedigree))


def _factor_timeseries(series: Mapping[str, Sequence[float]], label: str, years: int, default: float, pedigree: float) -> pd.DataFrame:
    rows = [_series_or_default(series, label, name, years, default) for name in TIMESERIES_PROCESSES]
    return pd.DataFrame(_with_pedigree(np.vstack(rows), pedigree))


def build_ghg_timeseries(tree: ParameterTree, settings: LegacyFormatSettings) -> pd.DataFrame:
    return _factor_timeseries(
        tree.economics.ghg, "ghg", tree.basic.duration, settings.default_ghg_factor, settings.default_pedigree
    )


def build_jobs_timeseries(tree: ParameterTree, settings: LegacyFormatSettings) -> pd.DataFrame:
    return _factor_timeseries(
        tree.economics.jobs, "jobs", tree.basic.duration, settings.default_jobs_factor, settings.default_pedigree
    )


def build_proportions(tree: ParameterTree) -> pd.DataFrame:
    """Zone proportions as a single column."""
    return pd.DataFrame(_array(tree.zones.proportions, "zones.proportions").reshape(-1, 1))


# --------------------------------------------------------------------------
# writing

def _format_value(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return f"{value:.15g}"


def write_table(table: pd.DataFrame, path: Union[str, Path]) -> Path:
    """Write a header-less numeric table, overwriting ``path``."""
    path = Path(path)
    text = table.astype(float).apply(lambda column: column.map(_format_value))
    text.to_csv(path, header=False, index=False, lineterminator="\n")
    return path


def scenario_file_prefix(
    archetype_id: int, scenario_id: int, zone_id: int, settings: Optional[LegacyFormatSettings] = None
) -> str:
    """File name prefix such as ``LI_Urban_BAUI_Plastic_2_Zone_1``."""
    settings = settings or LegacyFormatSettings()
    if archetype_id not in ARCHETYPE_NAMES:
        raise EncodingError(f"no file name for archetype ID {archetype_id}")
    if scenario_id not in SCENARIO_NAMES:
        raise EncodingError(f"no file name for scenario ID {scenario_id}")
    return f"{ARCHETYPE_NAMES[archetype_id]}_{SCENARIO_NAMES[scenario_id]}_{settings.plastic_file_tag}_Zone_{zone_id}"


def build_legacy_tables(
    tree: ParameterTree,
    archetype_id: int,
    scenario_id: int,
    zone_id: int,
    topology: Optional[Topology] = None,
    settings: Optional[LegacyFormatSettings] = None,
) -> Dict[str, pd.DataFrame]:
    """Build every table without touching the filesystem, keyed by file name."""
    settings = settings or LegacyFormatSettings()
    prefix = scenario_file_prefix(archetype_id, scenario_id, zone_id, settings)
    return {
        "basic_info.csv": build_basic_info(tree, settings),
        "interaction_parameters.csv": build_interaction_parameters(tree, settings),
        "box_conditions.csv": build_box_conditions(tree),
        "stock_stock_interactions.csv": build_stock_stock_interactions(tree, topology),
        "time_series_imported.csv": build_time_series(tree),
        "box_flow_capacity.csv": build_box_flow_capacity(tree),
        f"{prefix}_Demand.csv": build_demand(tree, settings),
        f"{prefix}_Costs.csv": build_costs(tree, settings),
        f"{prefix}_GHGJobs.csv": build_ghg_jobs(tree, settings),
        f"{prefix}_Prices.csv": build_prices(tree, settings),
        f"{prefix}_CAPEX.csv": build_capex(tree, settings),
        f"{prefix}_GHGTimeseries.csv": build_ghg_timeseries(tree, settings),
        f"{prefix}_JobsTimeseries.csv": build_jobs_timeseries(tree, settings),
        f"{prefix}_Proportions.csv": build_proportions(tree),
    }


def convert_params_to_legacy_format(
    tree: ParameterTree,
    archetype_id: int,
    scenario_id: int,
    zone_id: int,
    output_dir: Union[str, Path] = "config_files",
    topology: Optional[Topology] = None,
    settings: Optional[LegacyFormatSettings] = None,
) -> Dict[str, Path]:
    """Write the complete engine file set for one run.

    Parameters
    ----------
    tree:
        Validated parameter tree.
    archetype_id, scenario_id, zone_id:
        Selectors the tree was derived with; they name the scenario files.
    output_dir:
        Target directory.  Created if absent; files of the same name are
        overwritten.
    topology:
        Optional ``(from_stock, to_stock) -> flow_id`` mapping replacing the
        seed flow network.
    settings:
        Format constants; defaults to :class:`LegacyFormatSettings`.

    Returns
    -------
    Dict[str, pathlib.Path]
        Written path per file name.
    """
    tables = build_legacy_tables(tree, archetype_id, scenario_id, zone_id, topology, settings)
    out_dir = Path(output_dir)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputDirectoryError(f"cannot create output directory {out_dir}: {exc}") from exc
    written = {name: write_table(table, out_dir / name) for name, table in tables.items()}
    logger.info("legacy format files created in %s (%d files)", out_dir, len(written))
    return written
