"""Unit tests for the default tree and the preset appliers.

These tests verify the baseline values produced by the default
initializer, the archetype lookup table, the six scenario transforms and
the zone cost multipliers, including the handling of unknown selectors.
"""

import math

import pytest

from p2o_params.appliers import apply_archetype, apply_scenario, apply_zone, set_flow_rate
from p2o_params.constants import PROCESSES
from p2o_params.defaults import initialize_base_parameters


def test_default_tree_shapes():
    tree = initialize_base_parameters()
    assert tree.basic.duration == 25
    assert tree.basic.n_plastic_types == 3
    assert tree.basic.MC_distribution_type == 2  # uniform
    assert len(tree.demand.population) == 25
    assert len(tree.demand.waste_proportion) == 3
    assert all(len(row) == 25 for row in tree.demand.waste_proportion)
    assert len(tree.flows.a) == 44 and all(len(row) == 3 for row in tree.flows.a)
    assert len(tree.flows.timeseries) == 44 and len(tree.flows.timeseries[0]) == 25
    assert set(tree.economics.processes) == set(PROCESSES)
    assert len(tree.capacity.mass_multiplier) == 23


def test_default_tree_is_conservative():
    tree = initialize_base_parameters()
    # no interventions
    assert all(v == 0.0 for row in tree.demand.reduce_eliminate for v in row)
    assert all(v == 0.0 for v in tree.demand.shift_multi_to_rigid)
    # unlimited capacity
    assert all(math.isinf(v) for v in tree.capacity.mass_multiplier)
    assert all(math.isinf(v) for v in tree.capacity.flow_multiplier)
    assert tree.capacity.mass_t_end[0] == 25
    # flat curves
    assert len(set(tree.economics.prices["closed_loop_MR"])) == 1
    assert tree.economics.ghg["thermal_treatment"][0] == 1000.0
    assert tree.economics.jobs["formal_sorting"][-1] == 5.0


def test_default_trees_are_independent():
    first = initialize_base_parameters()
    second = initialize_base_parameters()
    first.demand.population[0] = 42.0
    first.economics.processes["formal_collection"].opex_initial_rate = 1.0
    assert second.demand.population[0] == 1_000_000.0
    assert second.economics.processes["formal_collection"].opex_initial_rate == 100.0


def test_custom_duration():
    tree = initialize_base_parameters(duration=10)
    assert len(tree.demand.population) == 10
    assert len(tree.flows.timeseries[0]) == 10
    assert len(tree.economics.prices["open_loop_MR"]) == 10


def test_archetype_presets():
    tree, diagnostics = apply_archetype(initialize_base_parameters(), 1)
    assert diagnostics == []
    assert tree.demand.population == [2_000_000.0] * 25
    assert tree.demand.waste_per_capita[10] == 0.15
    assert tree.zones.proportions == [0.8, 0.2]
    # formal collection is flow 3, informal flow 4
    assert tree.flows.a[2] == [0.8, 0.8, 0.8]
    assert tree.flows.a[3] == [0.1, 0.1, 0.1]
    assert tree.flows.a[6] == [0.0, 0.0, 0.0]


def test_li_rural_archetype():
    tree, _ = apply_archetype(initialize_base_parameters(), 8)
    assert tree.demand.population[0] == 400_000.0
    assert tree.zones.proportions == [0.3, 0.7]
    assert tree.flows.a[3][1] == 0.35


def test_unknown_archetype_keeps_defaults():
    baseline = initialize_base_parameters()
    tree, diagnostics = apply_archetype(initialize_base_parameters(), 9)
    assert tree.demand.population == baseline.demand.population
    assert tree.demand.waste_per_capita == baseline.demand.waste_per_capita
    assert tree.zones.proportions == baseline.zones.proportions
    assert tree.model_dump() == baseline.model_dump()
    assert [d.code for d in diagnostics] == ["unknown_archetype"]


def test_baseline_scenario_is_noop():
    tree, _ = apply_archetype(initialize_base_parameters(), 7)
    before = tree.model_dump()
    tree, diagnostics = apply_scenario(tree, 1)
    assert diagnostics == []
    assert tree.model_dump() == before


def test_current_commitments_caps():
    tree, _ = apply_archetype(initialize_base_parameters(), 1)
    tree, _ = apply_scenario(tree, 2)
    # 0.8 * 1.2 = 0.96 is capped at 0.9
    assert tree.flows.a[2] == pytest.approx([0.9, 0.9, 0.9])
    assert tree.flows.a[6] == pytest.approx([0.1, 0.1, 0.1])

    tree, _ = apply_archetype(initialize_base_parameters(), 8)
    set_flow_rate(tree, 7, 0.25)
    tree, _ = apply_scenario(tree, 2)
    assert tree.flows.a[2] == pytest.approx([0.36] * 3)
    assert tree.flows.a[6] == pytest.approx([0.3] * 3)


def test_linear_scenario_ramp():
    tree, _ = apply_scenario(initialize_base_parameters(), 3)
    assert tree.demand.reduce_eliminate[0][0] == 0.0
    assert tree.demand.reduce_eliminate[1][10] == pytest.approx(0.04)
    assert tree.demand.reduce_eliminate[2][24] == pytest.approx(0.096)
    assert max(max(row) for row in tree.demand.reduce_eliminate) <= 0.1


def test_linear_scenario_is_capped_for_long_runs():
    tree, _ = apply_scenario(initialize_base_parameters(duration=40), 3)
    assert tree.demand.reduce_eliminate[0][39] == 0.1


def test_recycling_scenario():
    tree = initialize_base_parameters()
    set_flow_rate(tree, 5, 0.4)
    set_flow_rate(tree, 7, 0.15)
    set_flow_rate(tree, 8, 0.1)
    tree, _ = apply_scenario(tree, 4)
    assert tree.flows.a[4] == pytest.approx([0.6] * 3)
    assert tree.flows.a[6] == pytest.approx([0.3] * 3)
    assert tree.flows.a[7] == pytest.approx([0.15] * 3)

    tree = initialize_base_parameters()
    set_flow_rate(tree, 5, 0.7)
    set_flow_rate(tree, 7, 0.3)
    set_flow_rate(tree, 8, 0.25)
    tree, _ = apply_scenario(tree, 4)
    assert tree.flows.a[4] == pytest.approx([0.8] * 3)
    assert tree.flows.a[6] == pytest.approx([0.4] * 3)
    assert tree.flows.a[7] == pytest.approx([0.3] * 3)


def test_reduce_and_substitute_scenario():
    tree, _ = apply_scenario(initialize_base_parameters(), 5)
    d = tree.demand
    for t in range(3):
        assert d.reduce_eliminate[t][0] == 0.0
        assert d.reduce_eliminate[t][24] == pytest.approx(0.15)
        assert d.substitute_paper[t][24] == pytest.approx(0.1)
        assert d.substitute_compostables[t][24] == pytest.approx(0.05)
    # year 13 is half way
    assert d.reduce_eliminate[0][12] == pytest.approx(0.075)
    assert d.substitute_coated_paper[0][24] == 0.0


def test_combined_scenario():
    tree = initialize_base_parameters()
    set_flow_rate(tree, 5, 0.6)
    tree, _ = apply_scenario(tree, 6)
    assert tree.flows.a[4] == pytest.approx([0.8] * 3)
    assert tree.demand.reduce_eliminate[1][24] == pytest.approx(0.08)
    assert tree.demand.substitute_paper[1][24] == pytest.approx(0.05)
    assert tree.demand.substitute_compostables[1][24] == 0.0


def test_unknown_scenario_is_noop():
    tree = initialize_base_parameters()
    before = tree.model_dump()
    tree, diagnostics = apply_scenario(tree, 0)
    assert tree.model_dump() == before
    assert diagnostics[0].code == "unknown_scenario"
    assert diagnostics[0].stage == "scenario"


def test_zone_multipliers():
    dense, _ = apply_zone(initialize_base_parameters(), 1)
    sparse, _ = apply_zone(initialize_base_parameters(), 2)
    for name in PROCESSES:
        assert math.isclose(dense.economics.processes[name].opex_initial_rate, 120.0)
        assert math.isclose(sparse.economics.processes[name].opex_initial_rate, 80.0)
        assert dense.economics.processes[name].capex_initial_rate == 200.0
    # price, GHG and jobs tables are untouched
    assert dense.economics.prices["closed_loop_MR"][0] == 800.0
    assert dense.economics.ghg["formal_collection"][0] == 1000.0


def test_unknown_zone_is_noop():
    tree, diagnostics = apply_zone(initialize_base_parameters(), 3)
    assert tree.economics.processes["formal_sorting"].opex_initial_rate == 100.0
    assert diagnostics[0].code == "unknown_zone"
