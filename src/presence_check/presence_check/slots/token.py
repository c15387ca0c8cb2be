"""Session token carried by the slot QR code: ``<class_id>_<slot_id>``."""

from __future__ import annotations

from ..core.constants import TOKEN_SEPARATOR
from ..core.context import RequestContext
from ..core.exceptions import ValidationError


def encode_token(class_id: str, slot_id: str) -> str:
    if TOKEN_SEPARATOR in class_id or TOKEN_SEPARATOR in slot_id:
        raise ValidationError("Mã lớp/slot không được chứa '_'")
    return f"{class_id}{TOKEN_SEPARATOR}{slot_id}"


def parse_token(token: str) -> RequestContext:
    value = (token or "").strip()
    class_id, sep, slot_id = value.partition(TOKEN_SEPARATOR)
    if not sep or not class_id or not slot_id or TOKEN_SEPARATOR in slot_id:
        raise ValidationError("Mã QR không hợp lệ")
    return RequestContext(class_id=class_id, slot_id=slot_id)
