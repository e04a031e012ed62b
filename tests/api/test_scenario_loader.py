"""
Tests for analytics.scenario_loader:

- YAML / JSON loading, meta.source_path breadcrumb and file-level errors.
- build_inputs normalisation (defaults, opex forms, aliases, debt selection).
"""

from __future__ import annotations

import json

import pytest

from analytics.scenario_loader import (
    ScenarioConfigError,
    build_inputs,
    load_scenario_config,
    scenario_name_for,
)


def test_load_yaml_attaches_source_path(plan_config, write_scenario):
    path = write_scenario(plan_config)
    cfg = load_scenario_config(path)
    assert cfg["loan"]["rate"] == 0.08
    assert cfg["meta"]["source_path"] == str(path)


def test_load_json(plan_config, tmp_path):
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps(plan_config), encoding="utf-8")
    assert load_scenario_config(path)["scenario_name"] == "unit_case"


def test_missing_file_raises_file_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_scenario_config(tmp_path / "nope.yaml")


def test_unsupported_extension(tmp_path):
    path = tmp_path / "scenario.toml"
    path.write_text("a = 1", encoding="utf-8")
    with pytest.raises(ScenarioConfigError, match="Unsupported"):
        load_scenario_config(path)


def test_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ScenarioConfigError, match="Empty"):
        load_scenario_config(path)


def test_non_mapping_top_level(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ScenarioConfigError, match="mapping"):
        load_scenario_config(path)


def test_build_inputs_happy_path(plan_config):
    params, selection = build_inputs(plan_config)
    assert sum(params.revenue.values()) == pytest.approx(1e12)
    assert params.opex.total == pytest.approx(8e11)
    assert params.rate == 0.08
    assert params.term_years == 10
    assert params.grace_years == 2
    assert params.payment_type == "annuity"
    assert params.debt_type == "outstanding_balance"
    assert params.min_dscr == 2.5
    assert selection.allowed_debt_override is None
    assert selection.requested_draw is None


def test_build_inputs_defaults_optional_fields(plan_config):
    for key in ("growth", "reserve", "financing"):
        plan_config.pop(key)
    del plan_config["loan"]["grace_years"]
    del plan_config["loan"]["payment_type"]
    del plan_config["loan"]["debt_type"]

    params, _ = build_inputs(plan_config)
    assert params.rev_growth == 0.0
    assert params.opex_growth == 0.0
    assert params.grace_years == 0
    assert params.reserve_ratio == 0.0
    assert params.init_reserve == 0.0
    assert params.financing_receipts == 0.0
    assert params.payment_type == "annuity"
    assert params.debt_type == "outstanding_balance"


def test_opex_override_and_bare_number(plan_config):
    plan_config["opex"]["override"] = 123.0
    params, _ = build_inputs(plan_config)
    assert params.opex.total == 123.0

    plan_config["opex"] = 456.0
    params, _ = build_inputs(plan_config)
    assert params.opex.total == 456.0


def test_debt_type_alias_and_case(plan_config):
    plan_config["loan"]["debt_type"] = "PTSMI_Other"
    plan_config["loan"]["payment_type"] = "Equal_Principal"
    params, _ = build_inputs(plan_config)
    assert params.debt_type == "outstanding_balance"
    assert params.payment_type == "equal_principal"


@pytest.mark.parametrize("field, value", [("payment_type", "balloon"), ("debt_type", "lease")])
def test_unknown_enum_values_raise(plan_config, field, value):
    plan_config["loan"][field] = value
    with pytest.raises(ScenarioConfigError, match=field):
        build_inputs(plan_config)


@pytest.mark.parametrize(
    "section, value",
    [("loan", [0.08, 10]), ("growth", 0.05), ("coverage", "2.5"), ("debt", 5e11)],
)
def test_non_mapping_section_raises(plan_config, section, value):
    plan_config[section] = value
    with pytest.raises(ScenarioConfigError, match=f"Section '{section}' must be a mapping"):
        build_inputs(plan_config)


def test_null_section_falls_back_to_defaults(plan_config):
    plan_config["growth"] = None
    params, _ = build_inputs(plan_config)
    assert params.rev_growth == 0.0
    assert params.opex_growth == 0.0


def test_debt_selection_from_config(plan_config):
    plan_config["debt"] = {"allowed_override": "3035611568926", "requested_draw": 1e12}
    _, selection = build_inputs(plan_config)
    assert selection.allowed_debt_override == pytest.approx(3035611568926.0)
    assert selection.requested_draw == pytest.approx(1e12)


def test_scenario_name_fallbacks(plan_config, tmp_path):
    assert scenario_name_for(plan_config) == "unit_case"
    plan_config.pop("scenario_name")
    assert scenario_name_for(plan_config, tmp_path / "downside.yaml") == "downside"
    assert scenario_name_for(plan_config) == "scenario"
