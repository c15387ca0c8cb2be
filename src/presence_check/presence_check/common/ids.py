from __future__ import annotations

import secrets
import time


def new_id(prefix: str = "") -> str:
    """Time-ordered random id, e.g. ``s1718000000000a1b2c3``.

    Ids never contain ``_`` so they can be joined into a session token.
    """
    return f"{prefix}{int(time.time() * 1000)}{secrets.token_hex(4)}"
