"""
Session identity resolution.

Identity here is trust-on-assertion: whatever identifier the request
carries is accepted without verification. Replacing ``header_user_id``
with a dependency that validates a server-issued session token keeps the
per-owner partitioning contract intact.
"""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import Header

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"

# Matches the width of the stored user_id column
MAX_USER_ID_LENGTH = 255


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    s = value.strip()
    return s or None


# PUBLIC_INTERFACE
def header_user_id(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
) -> Optional[str]:
    """Return the identifier asserted in the X-User-Id header, if any."""
    return _clean(x_user_id)


# PUBLIC_INTERFACE
def resolve_user_id(header_value: Optional[str], payload_value: Optional[str]) -> str:
    """
    Pick the acting user id for list and create requests.

    Precedence: the header, then the query/body identifier, then a fresh
    random identifier. The random one lives for this request only, so a
    request carrying no identity can never see previously created tasks.
    """
    resolved = _clean(header_value) or _clean(payload_value)
    if resolved is not None:
        return resolved
    generated = str(uuid.uuid4())
    logger.debug("No user id on request; generated ephemeral id %s", generated)
    return generated


# PUBLIC_INTERFACE
def body_user_id(payload_value: Optional[str]) -> Optional[str]:
    """
    Identifier for update and delete requests: the body field only, with
    no header or generated fallback.
    """
    return _clean(payload_value)
