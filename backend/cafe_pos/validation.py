from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text

from cafe_pos.time_utils import parse_iso_datetime


# 9,999,999.99 in cents
MAX_PRICE_CENTS = 999_999_999


class ValidationError(ValueError):
    """Client sent a payload or query argument we cannot accept (HTTP 400)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    What a client may send for one model.

    - writable_fields: the only keys accepted in a JSON body
    - required_on_create: keys a POST must carry
    - choices: closed vocabularies (position, category, unit, ...)
    - money_fields: integer cents, 0..MAX_PRICE_CENTS
    """
    writable_fields: frozenset
    required_on_create: frozenset = frozenset()
    choices: Mapping[str, tuple] = field(default_factory=dict)
    money_fields: frozenset = frozenset()


def _coerce_int(key: str, value: Any) -> int:
    # bool is an int subclass; true/false is never a count or an amount
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    if isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text[:1] in "+-" else text
        # isdigit() also accepts superscripts and other non-ASCII digits
        if not (digits.isascii() and digits.isdigit()):
            raise ValidationError(f"{key} must be a plain integer")
        return int(text)
    raise ValidationError(f"{key} must be an integer")


def _coerce_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number")


def _coerce_datetime(key: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise ValidationError(f"{key} must be an ISO-8601 datetime")


def _coerce_text(key: str, value: Any) -> str:
    if isinstance(value, (dict, list)):
        raise ValidationError(f"{key} must be a string")
    return str(value).strip()


_COERCERS = (
    (Boolean, lambda key, value: bool(value)),
    (Integer, _coerce_int),
    (Float, _coerce_float),
    (DateTime, _coerce_datetime),
    ((String, Text), _coerce_text),
)


def _coerce(column, value: Any):
    for column_type, coercer in _COERCERS:
        if isinstance(column.type, column_type):
            return coercer(column.key, value)
    return value


def _check_column(column, value) -> None:
    if isinstance(value, str) and isinstance(column.type, (String, Text)):
        if value == "" and not column.nullable:
            raise ValidationError(f"{column.key} cannot be blank")
        length = getattr(column.type, "length", None)
        if length and len(value) > length:
            raise ValidationError(f"{column.key} exceeds max length {length}")


def _check_money(key: str, amount: int) -> None:
    if amount < 0:
        raise ValidationError(f"{key} must be >= 0")
    if amount > MAX_PRICE_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE_CENTS}")


def validate_payload(*, model, payload, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Turn a JSON body into a clean attribute dict for `model`.

    Column metadata supplies types, nullability and String lengths; the policy
    supplies the allowlist, required keys, closed choices and money bounds.
    partial=True is PUT semantics: only the keys present are checked.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(policy.required_on_create - set(payload))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}
    cleaned: dict = {}

    for key, raw in payload.items():
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        column = columns.get(key)
        if column is None:
            raise ValidationError(f"Unknown field: {key}")

        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            cleaned[key] = None
            continue

        value = _coerce(column, raw)
        _check_column(column, value)

        allowed = policy.choices.get(key)
        if allowed is not None and value not in allowed:
            raise ValidationError(f"{key} must be one of: {', '.join(allowed)}")
        if key in policy.money_fields:
            _check_money(key, value)

        cleaned[key] = value

    return cleaned


def parse_query_datetime(args, key: str, *, required: bool = False) -> datetime | None:
    """Read an ISO-8601 value from query args or a JSON body."""
    raw = args.get(key)
    if raw is None or not str(raw).strip():
        if required:
            raise ValidationError(f"{key} is required")
        return None
    try:
        return parse_iso_datetime(str(raw))
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 date or datetime")


def parse_non_negative_int(value, key: str, default: int = 0) -> int:
    if value is None:
        return default
    number = _coerce_int(key, value)
    if number < 0:
        raise ValidationError(f"{key} must be >= 0")
    return number
