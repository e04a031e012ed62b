"""Registry of the config fields each evaluation stage needs.

Field owners register at import time; analytics.schema_guard reads the
registry back when validating a scenario file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

ValidatorFn = Callable[[Any], bool]
PathSpec = Tuple[str, ...]


@dataclass(frozen=True)
class RequiredFieldSpec:
    """
    One scenario config field.

    Attributes
    ----------
    module:
        Stage that reads the field (the planner registers under "plan").
    name:
        Logical key ("rate", "term_years", "min_dscr", ...).
    paths:
        Candidate YAML paths tried in order, e.g. ("loan", "term_years").
    required:
        Missing required fields fail validation; optional ones are only
        checked when present.
    severity:
        "error" blocks evaluation in strict mode; "warning" is only logged.
    description:
        Shown in validation messages.
    validator:
        Predicate over the resolved value; None accepts anything.
    """

    module: str
    name: str
    paths: Sequence[PathSpec]
    required: bool = True
    severity: str = "error"
    description: str = ""
    validator: Optional[ValidatorFn] = field(default=None)


# module -> field name -> spec (insertion ordered)
_REGISTRY: Dict[str, Dict[str, RequiredFieldSpec]] = {}


def register_required_fields(module: str, specs: Iterable[RequiredFieldSpec]) -> None:
    """Register ``specs`` under ``module``; a repeated name replaces the earlier spec."""
    fields = _REGISTRY.setdefault(module, {})
    for spec in specs:
        fields.pop(spec.name, None)
        fields[spec.name] = spec


def get_required_fields(module: Optional[str] = None) -> List[RequiredFieldSpec]:
    if module is None:
        return [spec for fields in _REGISTRY.values() for spec in fields.values()]
    return list(_REGISTRY.get(module, {}).values())


__all__ = [
    "PathSpec",
    "RequiredFieldSpec",
    "ValidatorFn",
    "get_required_fields",
    "register_required_fields",
]
