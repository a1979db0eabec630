# MIT License
"""Data models for the P2O scenario parameter tree.

All data models are defined using [`pydantic.BaseModel`](https://docs.pydantic.dev/)
to provide type checking, validation and JSON serialisation.  Each model
holds one section of the parameter set consumed by the P2O engine.

Time-indexed tables are stored as nested lists (rows = plastic types or
flow ids, columns = years) so that a tree can be compared with ``==`` and
dumped to JSON without custom encoders.  Stages that do arithmetic on the
tables convert them with :func:`numpy.asarray` and write them back with
``tolist()``.

The top-level :class:`ParameterTree` groups the sections.  Use
:func:`p2o_params.defaults.initialize_base_parameters` to build a fully
populated tree; the table fields have no defaults of their own because
their shape depends on the run duration.
"""
from __future__ import annotations

from typing import ClassVar, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import PROCESSES, REDUCE_SUBSTITUTE_FIELDS, SHIFT_FIELDS


class _TreeModel(BaseModel):
    # capacity envelopes default to infinity; keep it through a JSON round trip
    model_config = ConfigDict(ser_json_inf_nan="constants")


class BasicParams(_TreeModel):
    """Run-level configuration written to ``basic_info.csv``."""

    duration: int = Field(25, ge=2, le=200, description="Run duration (years).")
    plastic_types: List[int] = Field(default_factory=lambda: [1, 2, 3], description="Plastic type ids (rigid, multilayer, flexible).")
    n_MC_iterations: int = Field(500, ge=1, description="Monte-Carlo iterations performed by the engine.")
    MC_distribution_type: int = Field(2, ge=1, le=2, description="1 = normal, 2 = uniform.")
    output_resolution: int = Field(1, ge=1)
    n_stocks: int = Field(23, ge=1, description="Number of stocks (boxes) in the flow network.")
    production_interaction: int = Field(1, ge=1)
    waste_generated_box_number: int = Field(2, ge=1)
    imports_interaction: int = Field(17, ge=1)
    finite_sinks: List[int] = Field(default_factory=lambda: [17, 18, 19, 20, 21, 22, 23], description="Stocks that only accumulate.")
    pedigree_values: List[float] = Field(default_factory=lambda: [1, 5, 10, 20, 50], description="Uncertainty scale per pedigree category.")

    @property
    def n_plastic_types(self) -> int:
        return len(self.plastic_types)

    @field_validator("plastic_types", "finite_sinks")
    @classmethod
    def _at_most_ten(cls, v: List[int]) -> List[int]:
        # basic_info.csv pads these lists to ten entries
        if len(v) > 10:
            raise ValueError("at most 10 entries are supported")
        return v


class DemandParams(_TreeModel):
    """Waste generation and reduce/substitute interventions.

    Attributes
    ----------
    population, waste_per_capita:
        One value per year.  Waste is in kg per person per day.
    waste_proportion:
        Share of each plastic type in generated waste, one column per year.
        Columns must sum to 1.
    reduce_*, substitute_*:
        Fraction of demand removed by each mechanism, per plastic type and
        year.  The six mechanisms together may not exceed 1.
    shift_*:
        Yearly fraction of demand shifted between plastic types.
    """

    population: List[float] = Field(..., description="Population per year.")
    waste_per_capita: List[float] = Field(..., description="Waste generation (kg/person/day) per year.")
    waste_proportion: List[List[float]] = Field(..., description="Waste-type shares, plastic type x year.")
    reduce_eliminate: List[List[float]]
    reduce_reuse: List[List[float]]
    reduce_new_delivery: List[List[float]]
    substitute_paper: List[List[float]]
    substitute_coated_paper: List[List[float]]
    substitute_compostables: List[List[float]]
    shift_multi_to_rigid: List[float]
    shift_multi_to_flexible: List[float]
    shift_flexible_to_rigid: List[float]


class ZoneParams(_TreeModel):
    proportions: List[float] = Field(..., description="Share of demand in each zone (urban, rural).")


class FlowParams(_TreeModel):
    """Per-interaction coefficients, one row per flow and one column per plastic type."""

    MATRIX_FIELDS: ClassVar[Tuple[str, ...]] = (
        "plug",
        "relative_absolute",
        "equation_or_timeseries",
        "function_type",
        "time_series_pedigree",
        "max_annual_flow_rate",
        "enforced_proportion",
        "processing_rate",
        "a",
        "b",
        "c",
        "d",
    )

    n_interactions: int = Field(44, ge=1)
    plug: List[List[float]]
    relative_absolute: List[List[float]] = Field(..., description="1 = relative, 2 = absolute.")
    equation_or_timeseries: List[List[float]] = Field(..., description="1 = equation, 2 = time series.")
    function_type: List[List[float]]
    time_series_pedigree: List[List[float]] = Field(..., description="Uncertainty category per flow.")
    max_annual_flow_rate: List[List[float]]
    enforced_proportion: List[List[float]]
    processing_rate: List[List[float]]
    a: List[List[float]] = Field(..., description="Rate coefficient.")
    b: List[List[float]]
    c: List[List[float]]
    d: List[List[float]]
    timeseries: List[List[float]] = Field(..., description="Flow id x year values for table-driven flows.")


class ProcessEconomics(_TreeModel):
    """OPEX and CAPEX assumptions for one process."""

    opex_initial_rate: float = Field(100.0, description="OPEX ($/tonne).")
    opex_learning_rate: float = Field(0.05)
    opex_pedigree: int = Field(2)
    capex_asset_cost: float = Field(1000.0, description="Asset cost ($/tonne/year capacity).")
    capex_asset_capacity: float = Field(1000.0, description="Asset capacity (tonnes/year).")
    capex_asset_duration: float = Field(10.0, description="Asset lifetime (years).")
    capex_learning_rate: float = Field(0.1)
    capex_initial_rate: float = Field(200.0, description="CAPEX ($/tonne).")
    capex_pedigree: int = Field(2)


class EconomicsParams(_TreeModel):
    processes: Dict[str, ProcessEconomics]
    prices: Dict[str, List[float]] = Field(..., description="Revenue per tonne per year for each output stream.")
    ghg: Dict[str, List[float]] = Field(..., description="kgCO2eq per tonne per year for each process.")
    jobs: Dict[str, List[float]] = Field(..., description="Jobs per 1000 tonnes per year for each process.")

    @field_validator("processes")
    @classmethod
    def _known_processes(cls, v: Dict[str, ProcessEconomics]) -> Dict[str, ProcessEconomics]:
        unknown = sorted(set(v) - set(PROCESSES))
        if unknown:
            raise ValueError(f"unknown processes: {unknown}")
        return v


class CapacityParams(_TreeModel):
    """Mass and flow capacity envelopes, one entry per stock."""

    mass_multiplier: List[float]
    mass_CAGR: List[float]
    mass_t_start: List[float]
    mass_t_end: List[float]
    flow_multiplier: List[float]
    flow_CAGR: List[float]
    flow_t_start: List[float]
    flow_t_end: List[float]


class ParameterTree(_TreeModel):
    """The complete parameter set for one P2O run."""

    basic: BasicParams = Field(default_factory=BasicParams)
    demand: DemandParams
    zones: ZoneParams
    flows: FlowParams
    economics: EconomicsParams
    capacity: CapacityParams

    @model_validator(mode="after")
    def _consistent_shapes(self) -> "ParameterTree":
        years = self.basic.duration
        n_types = self.basic.n_plastic_types
        for name in ("population", "waste_per_capita") + SHIFT_FIELDS:
            if len(getattr(self.demand, name)) != years:
                raise ValueError(f"demand.{name} must have {years} entries")
        for name in ("waste_proportion",) + REDUCE_SUBSTITUTE_FIELDS:
            table = getattr(self.demand, name)
            if len(table) != n_types or any(len(row) != years for row in table):
                raise ValueError(f"demand.{name} must be {n_types} x {years}")
        for name in FlowParams.MATRIX_FIELDS:
            table = getattr(self.flows, name)
            if len(table) != self.flows.n_interactions or any(len(row) != n_types for row in table):
                raise ValueError(f"flows.{name} must be {self.flows.n_interactions} x {n_types}")
        return self
