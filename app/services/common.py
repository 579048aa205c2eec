"""Shared query helpers for service managers."""

from __future__ import annotations

import enum

from fastapi import HTTPException
from sqlalchemy import asc, desc
from sqlalchemy.orm import Query


def coerce_id(value: int | str | None, label: str = "id") -> int | None:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label}") from None


def apply_ordering(query: Query, order_by: str, order_dir: str, allowed_columns: dict):
    if order_by not in allowed_columns:
        allowed = ", ".join(sorted(allowed_columns))
        raise HTTPException(
            status_code=400,
            detail=f"Invalid order_by. Allowed: {allowed}",
        )
    column = allowed_columns[order_by]
    if order_dir == "desc":
        return query.order_by(desc(column))
    return query.order_by(asc(column))


def apply_pagination(query: Query, limit: int, offset: int):
    return query.limit(limit).offset(offset)


def validate_enum(value: str | None, enum_cls: type[enum.Enum], label: str):
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label}") from None
