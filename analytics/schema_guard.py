"""
Schema guard for scenario configs.

This module sits on top of analytics.config_schema and:
  * lazily imports the modules that own config fields so that their
    registration side-effects run; and
  * validates a raw config dict against all registered field specs.

Usage::

    from analytics.schema_guard import validate_config

    validate_config(
        raw_config=config,
        config_path="scenarios/base_case.yaml",
        modules=["plan"],
        mode="strict",
    )
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from analytics.config_schema import get_required_fields
from finance.utils import get_nested

logger = logging.getLogger(__name__)

PathSpec = Tuple[str, ...]

VALIDATION_MODES = ("strict", "relaxed", "none")


class ConfigValidationError(RuntimeError):
    """Raised when a YAML / JSON config is missing required fields."""


# Logical module name -> import path
_MODULE_IMPORTS: Dict[str, str] = {
    "plan": "analytics.scenario_loader",
}


def _ensure_module_registered(name: str) -> None:
    """
    Import the module that owns ``name`` so that register_required_fields ran.

    Unknown names are a no-op.
    """
    module_path = _MODULE_IMPORTS.get(name)
    if not module_path:
        return
    importlib.import_module(module_path)


def _first_resolved_value(raw_config: Mapping[str, Any], paths: Sequence[PathSpec]) -> Any:
    """Try each candidate path in order and return the first resolved value."""
    for path in paths:
        if not path:
            continue
        value = get_nested(raw_config, path)
        if value is not None:
            return value
    return None


def collect_failures(
    raw_config: Mapping[str, Any],
    modules: Sequence[str],
) -> Tuple[List[str], List[str]]:
    """
    Check every registered spec for ``modules``.

    Returns (errors, warnings): human-readable failure labels split by the
    spec's severity.
    """
    for m in modules:
        _ensure_module_registered(m)

    errors: List[str] = []
    warnings: List[str] = []

    for m in modules:
        for spec in get_required_fields(m):
            val = _first_resolved_value(raw_config, spec.paths)
            ok = True

            if val is None:
                ok = not spec.required
            elif spec.validator is not None:
                try:
                    ok = bool(spec.validator(val))
                except (TypeError, ValueError):
                    ok = False

            if ok:
                continue

            path_labels = [".".join(p) for p in spec.paths] or ["<no paths registered>"]
            label = f"{spec.name} (paths: {', '.join(path_labels)})"
            if spec.description:
                label = f"{label}: {spec.description}"
            if spec.severity.lower() == "error":
                errors.append(label)
            else:
                warnings.append(label)

    return sorted(errors), sorted(warnings)


def validate_config(
    raw_config: Dict[str, Any],
    config_path: str,
    modules: Sequence[str] = ("plan",),
    mode: str = "strict",
) -> None:
    """
    Validate a raw YAML/JSON config against the registered field specs.

    Modes:
      - "strict": error-severity failures raise ConfigValidationError.
      - "relaxed": every failure is logged as a warning.
      - "none": validation is skipped.

    Raises:
        ValueError: unknown ``mode``.
        ConfigValidationError: strict mode and at least one error failure.
    """
    if mode not in VALIDATION_MODES:
        raise ValueError(
            f"Unknown validation mode '{mode}'; expected one of {', '.join(VALIDATION_MODES)}"
        )
    if mode == "none":
        logger.debug("Schema validation skipped for %s", config_path)
        return

    errors, warnings = collect_failures(raw_config, modules)

    for w in warnings:
        logger.warning("Config '%s': %s", config_path, w)

    if not errors:
        return

    if mode == "relaxed":
        for e in errors:
            logger.warning("Config '%s' (relaxed): %s", config_path, e)
        return

    details = "; ".join(errors)
    raise ConfigValidationError(
        f"Config '{config_path}' is missing or has invalid required fields: {details}"
    )


__all__ = [
    "ConfigValidationError",
    "VALIDATION_MODES",
    "collect_failures",
    "validate_config",
]
