"""
Opaque page tokens for owner-partitioned listings.

A token is the URL-safe base64 of the last key returned; listings resume
strictly after it.
"""

import base64
import binascii
from typing import Optional

from sales_ledger.app.core.exceptions import ValidationError


def encode_page_token(last_key: str) -> str:
    return base64.urlsafe_b64encode(last_key.encode("utf-8")).decode("ascii")


def decode_page_token(token: Optional[str]) -> Optional[str]:
    """Return the key encoded in `token`, or None for the first page."""
    if not token:
        return None
    try:
        key = base64.b64decode(token.encode("ascii"), altchars=b"-_", validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        raise ValidationError("Invalid page token", details={"page_token": token})
    if not key:
        raise ValidationError("Invalid page token", details={"page_token": token})
    return key


def resolve_page_size(page_size: Optional[int], default: int, maximum: int) -> int:
    return min(page_size or default, maximum)
