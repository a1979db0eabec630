"""Tests for the end-to-end pipeline.

These tests run complete configurations through every stage and check
that the results, diagnostics and written files fit together, including
independent runs in a sensitivity sweep.
"""

import pytest

from p2o_params.diagnostics import has_code
from p2o_params.errors import EncodingError
from p2o_params.pipeline import load_scenario_parameters, run_scenario, run_sensitivity_sweep
from p2o_params.utils import tree_hash
from scripts.build_config import main, parse_knobs


def test_run_scenario_writes_files(tmp_path):
    result = run_scenario(7, 1, 1, output_dir=tmp_path)
    assert result.diagnostics == []
    assert len(result.files) == 14
    assert all(path.parent == tmp_path for path in result.files.values())
    assert "LI_Urban_BAUI_Plastic_2_Zone_1_Demand.csv" in result.files
    assert result.tree.flows.a[2] == [0.5] * 3


def test_run_scenario_applies_modifications(tmp_path):
    result = run_scenario(7, 1, 1, {"recycling_rate": 0.3, "waste_reduction": 0.1}, output_dir=tmp_path)
    assert result.tree.flows.a[6] == [0.3] * 3
    assert result.tree.demand.reduce_eliminate[0][0] == 0.1
    assert result.diagnostics == []


def test_run_scenario_collects_diagnostics_in_stage_order(tmp_path):
    result = run_scenario(7, 1, 3, {"recycling_rate": 1.2}, output_dir=tmp_path)
    assert [d.stage for d in result.diagnostics] == ["zone", "modifications", "validation"]
    assert [d.code for d in result.diagnostics] == ["unknown_zone", "out_of_range", "rate_clamped"]
    # the zone id only names the files
    assert "LI_Urban_BAUI_Plastic_2_Zone_3_Costs.csv" in result.files


def test_unknown_archetype_is_reported_then_rejected_by_encoder(tmp_path):
    tree, diagnostics = load_scenario_parameters(9, 1, 1)
    assert has_code(diagnostics, "unknown_archetype")
    assert tree.demand.population[0] == 1_000_000.0
    with pytest.raises(EncodingError):
        run_scenario(9, 1, 1, output_dir=tmp_path / "out")
    assert not (tmp_path / "out").exists()


def test_runs_are_reproducible(tmp_path):
    first = run_scenario(2, 6, 2, {"population_growth": 0.01}, output_dir=tmp_path / "a")
    second = run_scenario(2, 6, 2, {"population_growth": 0.01}, output_dir=tmp_path / "b")
    assert tree_hash(first.tree) == tree_hash(second.tree)
    for name in first.files:
        assert first.files[name].read_bytes() == second.files[name].read_bytes()


def test_custom_duration(tmp_path):
    result = run_scenario(7, 3, 1, output_dir=tmp_path, duration=10)
    assert len(result.tree.demand.population) == 10
    assert result.files["basic_info.csv"].read_text().splitlines()[0] == "10"


def test_sensitivity_sweep(tmp_path):
    df = run_sensitivity_sweep("recycling_rate", [0.1, 0.2, 0.3], output_root=tmp_path)
    assert df["run"].tolist() == [1, 2, 3]
    assert df["value"].tolist() == [0.1, 0.2, 0.3]
    assert (df["n_files"] == 14).all()
    assert (df["n_warnings"] == 0).all()
    assert df["tree_hash"].nunique() == 3
    for i in (1, 2, 3):
        assert (tmp_path / f"recycling_rate_{i}" / "basic_info.csv").exists()


def test_sensitivity_sweep_keeps_base_modifications(tmp_path):
    df = run_sensitivity_sweep(
        "waste_reduction", [0.0, 1.5], output_root=tmp_path, base_modifications={"recycling_rate": 0.3}
    )
    assert df["n_warnings"].tolist() == [0, 2]


def test_parse_knobs():
    assert parse_knobs(["recycling_rate=0.3", " waste_reduction =0.1"]) == {
        "recycling_rate": 0.3,
        "waste_reduction": 0.1,
    }


def test_command_line_entry_point(tmp_path, capsys):
    assert main(["7", "1", "1", "--set", "recycling_rate=0.3", "--output-dir", str(tmp_path)]) == 0
    printed = capsys.readouterr().out.splitlines()
    assert len(printed) == 14
    assert (tmp_path / "basic_info.csv").exists()
