from __future__ import annotations

import math
from numbers import Real
from typing import Any, Optional, Sequence

from ..core.constants import DESCRIPTOR_LENGTH
from ..core.exceptions import InvalidDescriptor, ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} không hợp lệ")
    return value.strip()


def require_positive(value: Any, field_name: str, *, maximum: Optional[float] = None) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} không hợp lệ")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field_name} không hợp lệ")
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} không hợp lệ")
    if number <= 0:
        raise ValidationError(f"{field_name} phải lớn hơn 0")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field_name} không được vượt quá {maximum:g}")
    return number


def require_descriptor(values: Optional[Sequence[Any]], field_name: str = "descriptor") -> tuple[float, ...]:
    """Return a 128-component float tuple or raise InvalidDescriptor."""

    if values is None or isinstance(values, (str, bytes)):
        raise InvalidDescriptor(f"{field_name} is missing")
    items = list(values)
    if len(items) != DESCRIPTOR_LENGTH:
        raise InvalidDescriptor(f"{field_name} must have {DESCRIPTOR_LENGTH} components, got {len(items)}")

    out = []
    for v in items:
        if isinstance(v, bool) or not isinstance(v, Real) or not math.isfinite(v):
            raise InvalidDescriptor(f"{field_name} contains a non-numeric component: {v!r}")
        out.append(float(v))
    return tuple(out)
