from __future__ import annotations
from datetime import datetime
from medstock.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


PASSWORD_MIN_LENGTH = 6


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(ValueError):
    """404-level: a referenced row does not exist."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., row still referenced)."""


class DuplicateNameError(ConflictError):
    """409: a name collides case-insensitively within its uniqueness scope."""


class InsufficientStockError(ConflictError):
    """409: the movement (or a replay) would drive quantity below zero."""

    def __init__(self, message: str, *, item_id: int | None = None, available: int | None = None,
                 requested: int | None = None):
        super().__init__(message)
        self.item_id = item_id
        self.available = available
        self.requested = requested


class InternalError(RuntimeError):
    """500: unexpected persistence failure."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    """Strict integer coercion: rejects bools, floats, decimals and scientific notation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("false", "0", "no", ""):
            return False
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Optional text fields: "" is stored as NULL
        if isinstance(col.type, (String, Text)) and col.nullable and val == "":
            val = None

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def require_name(payload: dict | None, key: str = "name", max_length: int = 200) -> str:
    """Trimmed, non-blank name from a JSON payload."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    raw = payload.get(key)
    if raw is None or not isinstance(raw, str) or not raw.strip():
        raise ValidationError(f"{key} is required")
    name = raw.strip()
    if len(name) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return name


def enforce_rules_item(patch: dict) -> None:
    """Business rules on item payloads that column metadata does not capture."""
    if "min_quantity" in patch and patch["min_quantity"] is not None:
        if patch["min_quantity"] < 0:
            raise ValidationError("min_quantity must be >= 0")
    if "unit" in patch and patch["unit"] is not None and patch["unit"] == "":
        raise ValidationError("unit cannot be blank")


def parse_optional_int(value: Any, key: str) -> int | None:
    """Query-string / payload helper: None or "" -> None, else strict int."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return coerce_int(key, value)
