"""
Identifier and credential helpers.

- new_id: opaque unique identifier for new records
- hash_value: one-way SHA-256 digest, base64 encoded
- is_hashed: recognizes digest-shaped strings

Digest-shaped plaintext (any base64-looking string with a length that is a
multiple of 4) is reported as hashed. Columns flagged is_hashed rely on this.
"""

from __future__ import annotations

import base64
import hashlib
import re
import uuid
from typing import Any

_BASE64_RE = re.compile(r"[A-Za-z0-9+/]+={0,2}")


def new_id() -> str:
    """Generate a globally unique record identifier."""
    return str(uuid.uuid4())


def hash_value(value: Any) -> str:
    """Return base64(SHA-256(value)) for the text form of value."""
    digest = hashlib.sha256(str(value).encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def is_hashed(value: Any) -> bool:
    """Whether value looks like an encoded digest."""
    return (
        isinstance(value, str)
        and len(value) % 4 == 0
        and _BASE64_RE.fullmatch(value) is not None
    )
