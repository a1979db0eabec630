"""Scenario parameter builder for the P2O plastic-waste stock-flow model.

This package derives the complete parameter set for one run of the
external P2O engine (defaults, archetype, scenario and zone presets, user
modifications) and writes it out as the engine's header-less CSV
configuration files.  It does not simulate flows.

Each submodule exposes plain functions that take and return a
:class:`ParameterTree` together with a list of :class:`Diagnostic`
warnings.  The high-level :func:`run_scenario` helper in `pipeline.py`
composes them for one run.
"""

from .params import ParameterTree, BasicParams, DemandParams, ZoneParams, FlowParams, ProcessEconomics, EconomicsParams, CapacityParams
from .diagnostics import Diagnostic
from .errors import P2OParameterError, EncodingError, MissingFieldError, OutputDirectoryError
from .defaults import initialize_base_parameters
from .appliers import apply_archetype, apply_scenario, apply_zone
from .modifications import apply_modifications, create_parameter_modifications
from .validation import validate_parameters
from .legacy_format import LegacyFormatSettings, convert_params_to_legacy_format
from .pipeline import RunResult, load_scenario_parameters, run_scenario, run_sensitivity_sweep

__all__ = [
    "ParameterTree",
    "BasicParams",
    "DemandParams",
    "ZoneParams",
    "FlowParams",
    "ProcessEconomics",
    "EconomicsParams",
    "CapacityParams",
    "Diagnostic",
    "P2OParameterError",
    "EncodingError",
    "MissingFieldError",
    "OutputDirectoryError",
    "initialize_base_parameters",
    "apply_archetype",
    "apply_scenario",
    "apply_zone",
    "apply_modifications",
    "create_parameter_modifications",
    "validate_parameters",
    "LegacyFormatSettings",
    "convert_params_to_legacy_format",
    "RunResult",
    "load_scenario_parameters",
    "run_scenario",
    "run_sensitivity_sweep",
]
