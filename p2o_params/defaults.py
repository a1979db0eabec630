# MIT License
"""Baseline parameter tree.

:func:`initialize_base_parameters` returns a tree in which every field the
legacy encoder reads is populated with a conservative default: uniform
Monte-Carlo distribution, unlimited stock capacities, no interventions and
flat price, GHG and jobs curves.
"""
from __future__ import annotations

import math
from typing import List

from .constants import DEFAULT_DURATION, N_INTERACTIONS, N_STOCKS, PRICE_STREAMS, PROCESSES
from .params import (
    BasicParams,
    CapacityParams,
    DemandParams,
    EconomicsParams,
    FlowParams,
    ParameterTree,
    ProcessEconomics,
    ZoneParams,
)

BASE_POPULATION = 1_000_000.0
BASE_WASTE_PER_CAPITA = 0.1
BASE_WASTE_PROPORTION = (0.40, 0.35, 0.25)  # rigid, multilayer, flexible
BASE_ZONE_PROPORTIONS = (0.6, 0.4)

BASE_PRICES = {
    "closed_loop_MR": 800.0,
    "open_loop_MR": 400.0,
    "chemical_conversion_P2P": 600.0,
    "chemical_conversion_P2F": 300.0,
    "thermal_treatment_energy": 50.0,
}
BASE_GHG_FACTOR = 1000.0
BASE_JOBS_FACTOR = 5.0


def _flat(value: float, n: int) -> List[float]:
    return [float(value)] * n


def _grid(value: float, rows: int, cols: int) -> List[List[float]]:
    return [[float(value)] * cols for _ in range(rows)]


def initialize_demand(duration: int, n_types: int) -> DemandParams:
    shares = list(BASE_WASTE_PROPORTION)
    if n_types != len(shares):
        shares = [1.0 / n_types] * n_types
    return DemandParams(
        population=_flat(BASE_POPULATION, duration),
        waste_per_capita=_flat(BASE_WASTE_PER_CAPITA, duration),
        waste_proportion=[_flat(s, duration) for s in shares],
        reduce_eliminate=_grid(0.0, n_types, duration),
        reduce_reuse=_grid(0.0, n_types, duration),
        reduce_new_delivery=_grid(0.0, n_types, duration),
        substitute_paper=_grid(0.0, n_types, duration),
        substitute_coated_paper=_grid(0.0, n_types, duration),
        substitute_compostables=_grid(0.0, n_types, duration),
        shift_multi_to_rigid=_flat(0.0, duration),
        shift_multi_to_flexible=_flat(0.0, duration),
        shift_flexible_to_rigid=_flat(0.0, duration),
    )


def initialize_flows(duration: int, n_types: int, n_interactions: int = N_INTERACTIONS) -> FlowParams:
    return FlowParams(
        n_interactions=n_interactions,
        plug=_grid(0.0, n_interactions, n_types),
        relative_absolute=_grid(1, n_interactions, n_types),
        equation_or_timeseries=_grid(1, n_interactions, n_types),
        function_type=_grid(1, n_interactions, n_types),
        time_series_pedigree=_grid(2, n_interactions, n_types),
        max_annual_flow_rate=_grid(math.inf, n_interactions, n_types),
        enforced_proportion=_grid(0.0, n_interactions, n_types),
        processing_rate=_grid(1.0, n_interactions, n_types),
        a=_grid(0.0, n_interactions, n_types),
        b=_grid(0.0, n_interactions, n_types),
        c=_grid(0.0, n_interactions, n_types),
        d=_grid(0.0, n_interactions, n_types),
        timeseries=_grid(0.0, n_interactions, duration),
    )


def initialize_economic_parameters(duration: int) -> EconomicsParams:
    """Flat cost, price, GHG and jobs assumptions for every process."""
    return EconomicsParams(
        processes={name: ProcessEconomics() for name in PROCESSES},
        prices={stream: _flat(BASE_PRICES[stream], duration) for stream in PRICE_STREAMS},
        ghg={name: _flat(BASE_GHG_FACTOR, duration) for name in PROCESSES},
        jobs={name: _flat(BASE_JOBS_FACTOR, duration) for name in PROCESSES},
    )


def initialize_capacity_parameters(duration: int, n_stocks: int = N_STOCKS) -> CapacityParams:
    """No capacity limit and no growth for any stock."""
    return CapacityParams(
        mass_multiplier=_flat(math.inf, n_stocks),
        mass_CAGR=_flat(0.0, n_stocks),
        mass_t_start=_flat(0.0, n_stocks),
        mass_t_end=_flat(duration, n_stocks),
        flow_multiplier=_flat(math.inf, n_stocks),
        flow_CAGR=_flat(0.0, n_stocks),
        flow_t_start=_flat(0.0, n_stocks),
        flow_t_end=_flat(duration, n_stocks),
    )


def initialize_base_parameters(duration: int = DEFAULT_DURATION) -> ParameterTree:
    """Build a fully populated parameter tree with default values.

    Parameters
    ----------
    duration:
        Number of simulated years.  Every time-indexed table gets one
        column per year.

    Returns
    -------
    ParameterTree
        A new tree, independent of any previously returned one.
    """
    basic = BasicParams(duration=duration, n_stocks=N_STOCKS)
    n_types = basic.n_plastic_types
    return ParameterTree(
        basic=basic,
        demand=initialize_demand(duration, n_types),
        zones=ZoneParams(proportions=list(BASE_ZONE_PROPORTIONS)),
        flows=initialize_flows(duration, n_types),
        economics=initialize_economic_parameters(duration),
        capacity=initialize_capacity_parameters(duration, basic.n_stocks),
    )
