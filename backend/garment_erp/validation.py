from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Numeric(10, 2) holds at most 99,999,999.99
MAX_PRICE = Decimal("99999999.99")

# Integer column range
MAX_QUANTITY = 2_147_483_647


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """
    400-level uniqueness conflict (duplicate serial number, username, email).

    `field` names the offending input so the client can highlight it.
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"serial_number", "price", "composition"},
    required_on_create={"serial_number", "price"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(value: Any, field: str) -> int:
    """Strict integer coercion: ints and plain digit strings only."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15") and decimals
        if "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be a plain integer")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def coerce_decimal(value: Any, field: str, places: int = 2) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, float):
        value = repr(value)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not number.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return number.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(value, col.key)

    if isinstance(coltype, Numeric):
        return coerce_decimal(value, col.key, places=coltype.scale or 0)

    # Strings / Text
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
    Validates + normalizes incoming form/JSON fields against:
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
        raise ValidationError("Invalid payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
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

        if isinstance(col.type, (String, Text)) and isinstance(val, str) and val == "":
            if not col.nullable:
                raise ValidationError(f"{k} cannot be blank")
            # Blank optional text clears the field
            val = None

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    """
    if "price" in patch and patch["price"] is not None:
        price = patch["price"]
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE}")


def validate_product_fields(payload: dict, *, partial: bool) -> dict:
    from .models import Product

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=partial)
    enforce_rules_product(patch)
    return patch


def decode_variants(raw: Any) -> list | None:
    """
    Accepts the variants field as sent by clients: a JSON string (multipart
    forms) or an already-decoded list (JSON bodies). None means "not sent".
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        if not raw.strip():
            return None
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError("variants must be a JSON array")
    if not isinstance(raw, list):
        raise ValidationError("variants must be a list")
    return raw


def _variant_text(item: dict, key: str, max_length: int, index: int) -> str:
    value = item.get(key)
    if value is None or not isinstance(value, (str, int)) or isinstance(value, bool):
        raise ValidationError(f"variants[{index}].{key} is required")
    text = str(value).strip()
    if not text:
        raise ValidationError(f"variants[{index}].{key} cannot be blank")
    if len(text) > max_length:
        raise ValidationError(f"variants[{index}].{key} exceeds max length {max_length}")
    return text


def validate_variants(items: list | None) -> list[dict]:
    """
    Normalizes a variant list into [{"color", "size", "quantity"}, ...].

    Rejects an empty list, missing color/size, negative or non-integer
    quantities and repeated (color, size) pairs.
    """
    if not items:
        raise ValidationError("At least one variant is required")

    cleaned: list[dict] = []
    seen: set[tuple[str, str]] = set()

    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"variants[{index}] must be an object")

        color = _variant_text(item, "color", 64, index)
        size = _variant_text(item, "size", 32, index)

        raw_quantity = item.get("quantity", 0)
        if raw_quantity is None or raw_quantity == "":
            raw_quantity = 0
        quantity = coerce_int(raw_quantity, f"variants[{index}].quantity")
        if quantity < 0:
            raise ValidationError(f"variants[{index}].quantity must be >= 0")
        if quantity > MAX_QUANTITY:
            raise ValidationError(f"variants[{index}].quantity cannot exceed {MAX_QUANTITY}")

        if (color, size) in seen:
            raise ValidationError(f"Duplicate variant: {color}/{size}")
        seen.add((color, size))

        cleaned.append({"color": color, "size": size, "quantity": quantity})

    return cleaned
