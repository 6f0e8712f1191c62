from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .models import ORDER_STATUSES, PAYMENT_STATUSES, INQUIRY_STATUSES, INQUIRY_USER_TYPES


# numeric(10,2) ceiling
MAX_PRICE = 99_999_999.99

PINCODE_RE = re.compile(r"^\d{6}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

TRUE_STRINGS = {"true", "1", "yes"}
FALSE_STRINGS = {"false", "0", "no"}


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (duplicate order number, duplicate owner)."""


class NotFoundError(LookupError):
    """404-level missing row."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Per-route allowlist:
    - writable_fields: what clients may set (anything else is rejected)
    - required_on_create: fields a POST must carry
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    return {c.key: c for c in model.__mapper__.columns}


def _as_number(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"{key} must be a number")


def _as_integer(key: str, value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    if isinstance(value, str):
        stripped = value.strip()
        # "1e3" and "2.0" are rejected rather than silently rounded
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    raise ValidationError(f"{key} must be an integer")


def _as_boolean(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ValidationError(f"{key} must be true or false")


def _coerce_value(col, value: Any):
    coltype = col.type

    # Numeric before Integer: money columns accept ints, floats and numeric strings
    if isinstance(coltype, Numeric):
        return _as_number(col.key, value)
    if isinstance(coltype, Integer):
        return _as_integer(col.key, value)
    if isinstance(coltype, Boolean):
        return _as_boolean(col.key, value)
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
    Validate and normalize a JSON body against the model's columns and the
    route's policy. Returns a patch dict holding only writable fields.

    partial=False: create (required_on_create enforced)
    partial=True: patch (only the provided keys are checked)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in (policy.required_on_create or set()) if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload:
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

        if isinstance(val, str):
            if val == "" and not col.nullable:
                raise ValidationError(f"{k} cannot be blank")
            length = getattr(col.type, "length", None)
            if length and len(val) > length:
                raise ValidationError(f"{k} exceeds max length {length}")

        patch[k] = val

    return patch


# =============================================================================
# TABLE RULES (beyond column metadata)
# =============================================================================

def _check_email(patch: dict) -> None:
    email = patch.get("email")
    if email and not EMAIL_RE.match(email):
        raise ValidationError("email must be a valid email address")


def _check_pincode(patch: dict) -> None:
    if "pincode" in patch and not PINCODE_RE.match(patch["pincode"] or ""):
        raise ValidationError("pincode must be 6 digits")


def enforce_rules_product(patch: dict) -> None:
    price = patch.get("price")
    if price is not None:
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE:,.2f}")

    stock = patch.get("stock_quantity")
    if stock is not None and stock < 0:
        raise ValidationError("stock_quantity must be >= 0")


def enforce_rules_inquiry(patch: dict) -> None:
    if "user_type" in patch and patch["user_type"] not in INQUIRY_USER_TYPES:
        raise ValidationError(f"user_type must be one of: {', '.join(INQUIRY_USER_TYPES)}")
    if "status" in patch and patch["status"] not in INQUIRY_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(INQUIRY_STATUSES)}")
    _check_email(patch)


def enforce_rules_address(patch: dict) -> None:
    _check_pincode(patch)


def enforce_rules_profile(patch: dict) -> None:
    _check_email(patch)


def validate_order_status(status: str | None, payment_status: str | None = None) -> None:
    if status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}")
    if payment_status is not None and payment_status not in PAYMENT_STATUSES:
        raise ValidationError(f"payment_status must be one of: {', '.join(PAYMENT_STATUSES)}")
