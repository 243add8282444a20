"""
Request-scoped identity.

Authentication is handled upstream; the gateway forwards the caller's id in
the X-User-Id header.
"""
from typing import Optional

from fastapi import Header

from lifelog.core.errors import MissingUserError


def get_current_user_id(x_user_id: Optional[str] = Header(default=None, max_length=64)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise MissingUserError()
    return x_user_id.strip()
