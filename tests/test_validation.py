"""Tests for the validator/reconciler.

These tests check the invariants that must hold after every validation
pass (proportions sum to one, rates are bounded, reduce/substitute groups
do not exceed 100%) for every selector triple, and that reconciling an
already reconciled tree changes nothing.
"""

import itertools

import numpy as np
import pytest

from p2o_params.constants import REDUCE_SUBSTITUTE_FIELDS, SHIFT_FIELDS
from p2o_params.defaults import initialize_base_parameters
from p2o_params.pipeline import load_scenario_parameters
from p2o_params.validation import validate_parameters

TOL = 1e-9


def _assert_invariants(tree):
    d = tree.demand
    waste = np.array(d.waste_proportion)
    assert np.allclose(waste.sum(axis=0), 1.0, atol=TOL)
    assert abs(sum(tree.zones.proportions) - 1.0) <= TOL
    for name in REDUCE_SUBSTITUTE_FIELDS + SHIFT_FIELDS:
        values = np.array(getattr(d, name))
        assert values.min() >= 0.0 and values.max() <= 1.0, name
    a = np.array(tree.flows.a)
    assert a.min() >= 0.0 and a.max() <= 1.0
    assert np.array(tree.flows.processing_rate).min() >= 0.0
    total = sum(np.array(getattr(d, name)) for name in REDUCE_SUBSTITUTE_FIELDS)
    assert total.max() <= 1.0 + TOL


def _messy_tree():
    rng = np.random.default_rng(7)
    tree = initialize_base_parameters()
    shape = (3, 25)
    for name in REDUCE_SUBSTITUTE_FIELDS:
        setattr(tree.demand, name, rng.uniform(-0.3, 0.6, size=shape).tolist())
    tree.demand.shift_multi_to_rigid = rng.uniform(-0.5, 1.5, size=25).tolist()
    tree.demand.waste_proportion = rng.uniform(0.0, 3.0, size=shape).tolist()
    tree.zones.proportions = [3.0, 1.0]
    tree.flows.a = rng.uniform(-1.0, 2.0, size=(44, 3)).tolist()
    tree.flows.processing_rate = rng.uniform(-1.0, 2.0, size=(44, 3)).tolist()
    return tree


@pytest.mark.parametrize("archetype_id,scenario_id,zone_id", list(itertools.product(range(1, 9), range(1, 7), range(1, 3))))
def test_invariants_hold_for_every_selector_triple(archetype_id, scenario_id, zone_id):
    tree, diagnostics = load_scenario_parameters(archetype_id, scenario_id, zone_id)
    assert diagnostics == []
    _assert_invariants(tree)


def test_messy_tree_is_reconciled():
    tree, diagnostics = validate_parameters(_messy_tree())
    _assert_invariants(tree)
    codes = {d.code for d in diagnostics}
    assert "rate_clamped" in codes
    assert "reduce_substitute_capped" in codes


def test_validation_is_idempotent():
    once, _ = validate_parameters(_messy_tree())
    twice, _ = validate_parameters(_messy_tree())
    twice, second_diagnostics = validate_parameters(twice)
    assert once.model_dump() == twice.model_dump()
    assert second_diagnostics == []


@pytest.mark.parametrize("archetype_id,scenario_id,zone_id", [(7, 1, 1), (1, 6, 2), (4, 5, 1)])
def test_validation_is_idempotent_on_pipeline_trees(archetype_id, scenario_id, zone_id):
    tree, _ = load_scenario_parameters(archetype_id, scenario_id, zone_id)
    before = tree.model_dump()
    tree, diagnostics = validate_parameters(tree)
    assert tree.model_dump() == before
    assert diagnostics == []


def test_reduce_substitute_cap_scales_by_two_thirds():
    tree = initialize_base_parameters()
    rates = [0.3, 0.3, 0.3, 0.3, 0.15, 0.15]  # sums to 1.5
    for name, value in zip(REDUCE_SUBSTITUTE_FIELDS, rates):
        getattr(tree.demand, name)[1][4] = value
    tree, diagnostics = validate_parameters(tree)
    capped = [getattr(tree.demand, name)[1][4] for name in REDUCE_SUBSTITUTE_FIELDS]
    for before, after in zip(rates, capped):
        assert after == pytest.approx(before * 2.0 / 3.0, abs=1e-12)
    assert sum(capped) == pytest.approx(1.0, abs=TOL)
    # other groups untouched
    assert tree.demand.reduce_eliminate[1][5] == 0.0
    assert [d.code for d in diagnostics] == ["reduce_substitute_capped"]


def test_groups_at_exactly_one_are_not_rescaled():
    tree = initialize_base_parameters()
    tree.demand.reduce_eliminate[0][0] = 0.5
    tree.demand.substitute_paper[0][0] = 0.5
    tree, diagnostics = validate_parameters(tree)
    assert tree.demand.reduce_eliminate[0][0] == 0.5
    assert tree.demand.substitute_paper[0][0] == 0.5
    assert diagnostics == []


def test_proportions_are_renormalised():
    tree = initialize_base_parameters()
    tree.demand.waste_proportion[0][3] = 2.0
    tree.demand.waste_proportion[1][3] = 1.0
    tree.demand.waste_proportion[2][3] = 1.0
    tree.zones.proportions = [3.0, 1.0]
    tree, diagnostics = validate_parameters(tree)
    assert [row[3] for row in tree.demand.waste_proportion] == pytest.approx([0.5, 0.25, 0.25])
    assert tree.zones.proportions == pytest.approx([0.75, 0.25])
    # untouched years keep their exact defaults
    assert [row[0] for row in tree.demand.waste_proportion] == [0.4, 0.35, 0.25]
    assert diagnostics == []


def test_all_zero_zone_proportions_become_equal_shares():
    tree = initialize_base_parameters()
    tree.zones.proportions = [0.0, 0.0]
    tree, diagnostics = validate_parameters(tree)
    assert tree.zones.proportions == [0.5, 0.5]
    assert [d.code for d in diagnostics] == ["empty_proportions"]


def test_negative_shares_are_clamped_before_normalising():
    tree = initialize_base_parameters()
    tree.zones.proportions = [-1.0, 2.0]
    tree, _ = validate_parameters(tree)
    assert tree.zones.proportions == [0.0, 1.0]


def test_rates_are_clamped():
    tree = initialize_base_parameters()
    tree.flows.a[2] = [-0.2, 1.3, 0.5]
    tree.flows.processing_rate[0] = [-1.0, 2.5, 1.0]
    tree.demand.shift_flexible_to_rigid[0] = 1.5
    tree, diagnostics = validate_parameters(tree)
    assert tree.flows.a[2] == [0.0, 1.0, 0.5]
    # processing rates are only bounded below
    assert tree.flows.processing_rate[0] == [0.0, 2.5, 1.0]
    assert tree.demand.shift_flexible_to_rigid[0] == 1.0
    assert {d.code for d in diagnostics} == {"rate_clamped"}


def test_default_tree_needs_no_corrections():
    tree = initialize_base_parameters()
    before = tree.model_dump()
    tree, diagnostics = validate_parameters(tree)
    assert diagnostics == []
    assert tree.model_dump() == before
