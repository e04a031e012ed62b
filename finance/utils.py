"""Coercion helpers for values read from scenario configs."""
from typing import Any, Dict, Iterable, Mapping, Optional

def get_nested(d: Mapping[str, Any], path: Iterable[str], default: Any = None) -> Any:
    """Safely get nested dict value by walking a sequence of keys."""
    result = d
    for key in path:
        if not isinstance(result, Mapping):
            return default
        result = result.get(key, default)
        if result is default:
            return default
    return result

def as_float(v: Any, default: Optional[float] = None) -> Optional[float]:
    """Safely convert value to float with fallback."""
    if v is None:
        return default
    try:
        return float(v)
    except (ValueError, TypeError):
        return default

def as_int(v: Any, default: Optional[int] = None) -> Optional[int]:
    """Safely convert value to int with fallback.

    Floats are truncated (``10.7`` -> ``10``) so that year counts typed as
    decimals in a spreadsheet-exported config still land on whole years.
    """
    if v is None:
        return default
    try:
        return int(float(v))
    except (ValueError, TypeError):
        return default

def as_amounts(v: Any) -> Dict[str, float]:
    """Coerce a mapping of named amounts (revenue or opex lines) to floats.

    Non-numeric entries count as zero; a non-mapping yields an empty dict.
    """
    if not isinstance(v, Mapping):
        return {}
    return {str(name): float(as_float(amount, 0.0)) for name, amount in v.items()}
