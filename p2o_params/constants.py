# MIT License
"""Static lookup tables for the P2O parameter builder.

Flow ids and stock numbers follow the 1-based numbering used by the P2O
engine's configuration files.  Convert with ``flow_id - 1`` when indexing
a flow matrix row.
"""
from __future__ import annotations

from typing import Dict, Tuple

DEFAULT_DURATION = 25
N_INTERACTIONS = 44
N_STOCKS = 23

PLASTIC_TYPES: Tuple[str, ...] = ("rigid", "multilayer", "flexible")
FLEXIBLE_TYPE_INDEX = 2

# engine flow ids
FORMAL_COLLECTION_FLOW = 3
INFORMAL_COLLECTION_FLOW = 4
FORMAL_SORTING_FLOW = 5
CLOSED_LOOP_MR_FLOW = 7
OPEN_LOOP_MR_FLOW = 8
CHEMICAL_P2P_FLOW = 8
CHEMICAL_P2F_FLOW = 9

REDUCE_SUBSTITUTE_FIELDS: Tuple[str, ...] = (
    "reduce_eliminate",
    "reduce_reuse",
    "reduce_new_delivery",
    "substitute_paper",
    "substitute_coated_paper",
    "substitute_compostables",
)

SHIFT_FIELDS: Tuple[str, ...] = (
    "shift_multi_to_rigid",
    "shift_multi_to_flexible",
    "shift_flexible_to_rigid",
)

PROCESSES: Tuple[str, ...] = (
    "virgin_plastic_production",
    "plastic_conversion",
    "formal_collection",
    "informal_collection",
    "formal_sorting",
    "closed_loop_MR",
    "open_loop_MR",
    "chemical_conversion_P2P",
    "chemical_conversion_P2F",
    "thermal_treatment",
    "engineered_landfills",
    "import_sorting",
    "reduce_eliminate",
    "reduce_reuse",
    "reduce_new_delivery",
    "substitute_paper",
    "substitute_coated_paper",
    "substitute_compostables",
    "substitute_paper_waste",
    "substitute_coated_paper_waste",
    "substitute_compostables_waste",
)

# GHGJobs.csv covers the processes up to and including the substitutes
GHG_JOBS_PROCESSES: Tuple[str, ...] = PROCESSES[:18]

# GHGTimeseries / JobsTimeseries row order; open_burning has no cost record
TIMESERIES_PROCESSES: Tuple[str, ...] = (
    "virgin_plastic_production",
    "plastic_conversion",
    "formal_collection",
    "formal_sorting",
    "closed_loop_MR",
    "open_loop_MR",
    "chemical_conversion_P2P",
    "chemical_conversion_P2F",
    "thermal_treatment",
    "engineered_landfills",
    "open_burning",
    "reduce_eliminate",
    "reduce_reuse",
    "reduce_new_delivery",
    "substitute_paper",
    "substitute_coated_paper",
    "substitute_compostables",
)

PRICE_STREAMS: Tuple[str, ...] = (
    "closed_loop_MR",
    "open_loop_MR",
    "chemical_conversion_P2P",
    "chemical_conversion_P2F",
    "thermal_treatment_energy",
)

ARCHETYPE_NAMES: Dict[int, str] = {
    1: "HI_Urban",
    2: "HI_Rural",
    3: "UMI_Urban",
    4: "UMI_Rural",
    5: "LMI_Urban",
    6: "LMI_Rural",
    7: "LI_Urban",
    8: "LI_Rural",
}

SCENARIO_NAMES: Dict[int, str] = {
    1: "BAUI",
    2: "CurrentCommitments",
    3: "LinearScenario",
    4: "RecyclingScenario",
    5: "RandSScenario",
    6: "ScenarioX",
}

ZONE_NAMES: Dict[int, str] = {1: "Urban", 2: "Rural"}

# zone id -> OPEX multiplier
ZONE_OPEX_MULTIPLIERS: Dict[int, float] = {1: 1.2, 2: 0.8}

# archetype id -> (population, waste kg/person/day, zone proportions, formal rate, informal rate)
ARCHETYPE_PRESETS: Dict[int, Tuple[float, float, Tuple[float, float], float, float]] = {
    1: (2_000_000, 0.15, (0.8, 0.2), 0.8, 0.10),
    2: (500_000, 0.12, (0.2, 0.8), 0.6, 0.20),
    3: (1_500_000, 0.10, (0.7, 0.3), 0.7, 0.15),
    4: (800_000, 0.08, (0.3, 0.7), 0.5, 0.25),
    5: (1_200_000, 0.06, (0.6, 0.4), 0.6, 0.20),
    6: (600_000, 0.05, (0.4, 0.6), 0.4, 0.30),
    7: (1_000_000, 0.04, (0.5, 0.5), 0.5, 0.25),
    8: (400_000, 0.03, (0.3, 0.7), 0.3, 0.35),
}

# seed of the stock->stock flow topology: (from stock, to stock) -> flow id
SEED_TOPOLOGY: Dict[Tuple[int, int], int] = {
    (1, 2): 1,
    (1, 17): 2,
    (2, 3): 3,
    (2, 4): 4,
}
