from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_latitude(value) -> float:
    lat = _as_float(value, "latitude")
    if not -90.0 <= lat <= 90.0:
        raise ValidationError("latitude must be within [-90, 90]")
    return lat


def require_longitude(value) -> float:
    lon = _as_float(value, "longitude")
    if not -180.0 <= lon <= 180.0:
        raise ValidationError("longitude must be within [-180, 180]")
    return lon


def optional_text(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def _as_float(value, field_name: str) -> float:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
