"""
Argument validation for service entry points.

Blueprints pass raw JSON values straight through; these helpers normalise
them and raise ValidationError with a field-level ``details`` entry, so the
same rules apply whether a service is called over HTTP, from the CLI or
from a test.
"""

import math

from civifix.core.exceptions import ValidationError


def require_text(value, field: str, max_len: int | None = None) -> str:
    """Return ``value`` stripped; reject non-strings, empty strings and, with
    ``max_len``, anything longer than the backing column.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", details={field: "required"})
    value = value.strip()
    if max_len is not None and len(value) > max_len:
        raise ValidationError(
            f"{field} exceeds maximum length of {max_len} characters",
            details={field: "too_long"},
        )
    return value


def optional_text(value, field: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={field: "invalid"})
    return value


def require_choice(value, choices, field: str) -> str:
    """Return ``value`` if it is one of ``choices`` (exact match, no coercion)."""
    if value not in choices:
        raise ValidationError(
            f"Invalid {field} '{value}'. Allowed: {', '.join(choices)}",
            details={field: "invalid"},
        )
    return value


def require_bool(value, field: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be true or false", details={field: "invalid"})
    return value


def require_coordinate(value, field: str, limit: float) -> float:
    """Return ``value`` as float if it is a finite number within [-limit, limit]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number", details={field: "invalid"})
    # range check before float(): an oversized int would overflow the conversion
    if (isinstance(value, float) and math.isnan(value)) or not -limit <= value <= limit:
        raise ValidationError(
            f"{field} must be between -{limit:g} and {limit:g}", details={field: "out_of_range"},
        )
    return float(value)


def require_id(value, field: str) -> str:
    """Identifiers cross the boundary as opaque non-empty strings."""
    return require_text(value, field)
