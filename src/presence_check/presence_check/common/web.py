"""Small helpers shared by the Flask controllers."""

from __future__ import annotations

import math
from functools import wraps
from typing import Any, Optional

from flask import jsonify, request, session

from ..core.exceptions import ValidationError


def current_teacher_id() -> Optional[str]:
    # Set by the external identity provider integration after login.
    value = session.get("teacher_id")
    return str(value) if value else None


def teacher_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_teacher_id():
            return jsonify({"success": False, "message": "Vui lòng đăng nhập để tiếp tục!"}), 401
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Dữ liệu gửi lên phải là JSON object")
    return data


def finite_or_none(value: Optional[float]) -> Optional[float]:
    """JSON has no Infinity/NaN; uncomparable distances are sent as null."""
    if value is None or math.isinf(value) or math.isnan(value):
        return None
    return value


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str) and value.strip().lower() in {"1", "true", "yes", "on"}:
        return True
    if isinstance(value, str) and value.strip().lower() in {"0", "false", "no", "off", ""}:
        return False
    raise ValidationError(f"Giá trị không hợp lệ: {value!r}")
