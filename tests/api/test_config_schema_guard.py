"""
Unit tests for analytics.config_schema + analytics.schema_guard.

- analytics.scenario_loader registers the plan's fields in the registry;
- validate_config() raises, logs or skips depending on the mode.
"""

from __future__ import annotations

import logging

import pytest

# Import the loader to trigger its module-level schema registration
from analytics import scenario_loader  # noqa: F401
from analytics.config_schema import (
    RequiredFieldSpec,
    get_required_fields,
    register_required_fields,
)
from analytics.schema_guard import ConfigValidationError, collect_failures, validate_config


def test_plan_fields_are_registered():
    names = {s.name for s in get_required_fields("plan")}
    assert {"revenue", "opex", "rate", "term_years", "grace_years", "min_dscr"} <= names


def test_reregistering_replaces_spec():
    first = RequiredFieldSpec(module="reserve_audit", name="ratio", paths=[("reserve", "ratio")])
    second = RequiredFieldSpec(
        module="reserve_audit", name="ratio", paths=[("reserve", "ratio")], required=False
    )
    register_required_fields("reserve_audit", [first])
    register_required_fields("reserve_audit", [second])

    specs = get_required_fields("reserve_audit")
    assert specs == [second]
    assert all(s.module != "reserve_audit" for s in get_required_fields("plan"))


def test_valid_config_passes(plan_config):
    validate_config(plan_config, config_path="unit.yaml", mode="strict")
    assert collect_failures(plan_config, ["plan"]) == ([], [])


@pytest.mark.parametrize(
    "mutate, field",
    [
        (lambda c: c.pop("revenue"), "revenue"),
        (lambda c: c.__setitem__("revenue", {"pad": "n/a"}), "revenue"),
        (lambda c: c["loan"].__setitem__("rate", "eight"), "rate"),
        (lambda c: c["loan"].__setitem__("term_years", 0), "term_years"),
        (lambda c: c["loan"].__setitem__("term_years", 7.5), "term_years"),
        (lambda c: c["loan"].__setitem__("grace_years", -1), "grace_years"),
        (lambda c: c["loan"].__setitem__("payment_type", "balloon"), "payment_type"),
        (lambda c: c["loan"].__setitem__("debt_type", "lease"), "debt_type"),
        (lambda c: c["coverage"].__setitem__("min_dscr", 0), "min_dscr"),
    ],
)
def test_strict_mode_names_failing_field(plan_config, mutate, field):
    mutate(plan_config)
    with pytest.raises(ConfigValidationError) as exc_info:
        validate_config(plan_config, config_path="bad.yaml", mode="strict")
    msg = str(exc_info.value)
    assert "bad.yaml" in msg
    assert field in msg


def test_strict_mode_lists_every_failure(plan_config):
    plan_config.pop("revenue")
    plan_config["coverage"]["min_dscr"] = -1
    errors, _ = collect_failures(plan_config, ["plan"])
    assert len(errors) == 2


def test_alias_debt_type_is_valid(plan_config):
    plan_config["loan"]["debt_type"] = "ptsmi_other"
    validate_config(plan_config, config_path="alias.yaml", mode="strict")


def test_relaxed_mode_logs_instead_of_raising(plan_config, caplog):
    plan_config["coverage"]["min_dscr"] = 0
    with caplog.at_level(logging.WARNING, logger="analytics.schema_guard"):
        validate_config(plan_config, config_path="relaxed.yaml", mode="relaxed")
    assert "min_dscr" in caplog.text


def test_warning_severity_never_blocks(plan_config, caplog):
    plan_config["reserve"]["ratio"] = 1.5
    with caplog.at_level(logging.WARNING, logger="analytics.schema_guard"):
        validate_config(plan_config, config_path="ratio.yaml", mode="strict")
    assert "reserve_ratio" in caplog.text


def test_none_mode_skips(plan_config):
    plan_config.pop("revenue")
    validate_config(plan_config, config_path="skip.yaml", mode="none")


def test_unknown_mode_rejected(plan_config):
    with pytest.raises(ValueError, match="Unknown validation mode"):
        validate_config(plan_config, config_path="x.yaml", mode="lenient")
