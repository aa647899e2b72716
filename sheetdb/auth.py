"""
Bearer access tokens for the Users entity.

Tokens are HS256 JSON Web Tokens carrying the user's id and an expiry.
A user is authenticated when:
- some Users record stores the presented token
- the token's signature verifies against the secret key
- the token has not expired
- the id inside the token is the id of that user

This module only calls the public collection API (all, find_by_id).

Example:
    >>> token = issue_token(user["id"], secret)
    >>> db.Users.update(user["id"], {**user, "token": token})
    >>> validate_access_token(token, secret, db)["email"]
    'a@x.com'
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Optional

import jwt

from .errors import AuthenticationError

if TYPE_CHECKING:
    from .registry import Registry

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 3600


def issue_token(
    user_id: Any,
    secret: str,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    now: Optional[float] = None,
    **claims: Any,
) -> str:
    """Sign a token for user_id that expires ttl_seconds from now.

    Raises:
        AuthenticationError: If no secret is given
    """
    if not secret:
        raise AuthenticationError("Private key not found")
    issued_at = int(time.time() if now is None else now)
    payload = {**claims, "id": user_id, "exp": issued_at + int(ttl_seconds)}
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def parse_token(token: str, secret: str, now: Optional[float] = None) -> dict[str, Any]:
    """Verify signature and expiry, then return the claims without exp.

    Raises:
        AuthenticationError: On missing secret, malformed token, bad
            signature or expiry
    """
    if not secret:
        raise AuthenticationError("Private key not found")

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"verify_exp": False, "require": ["exp"]},
        )
    except jwt.InvalidSignatureError:
        raise AuthenticationError("Invalid signature") from None
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError(f"Invalid token: {exc}") from None

    current = time.time() if now is None else now
    exp = claims.pop("exp")
    if not isinstance(exp, (int, float)) or exp < current:
        raise AuthenticationError("The token has expired")

    return claims


def validate_access_token(
    token: Optional[str],
    secret: str,
    registry: Registry,
    token_column: str = "token",
    users_entity: str = "Users",
    now: Optional[float] = None,
) -> dict[str, Any]:
    """Authenticate a bearer token against the Users entity.

    Returns:
        The user record loaded at relation depth 1

    Raises:
        AuthenticationError: If the token is missing, unknown, invalid,
            expired, or issued for another user
    """
    if not token:
        raise AuthenticationError("No token provided")

    users = registry.collection(users_entity)
    holder = next((u for u in users.all() if u.get(token_column) == token), None)
    if holder is None:
        raise AuthenticationError("Invalid token")

    user = users.find_by_id(holder.get("id"), 1)
    if user is None:
        raise AuthenticationError("User not found")

    data = parse_token(token, secret, now=now)
    if data.get("id") != user.get("id"):
        logger.warning(f"Token presented for {users_entity} {user.get('id')} names another user")
        raise AuthenticationError("Invalid token")

    return user
