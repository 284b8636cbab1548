"""Read-only inspection of sandbox JWTs for display."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import jwt


def describe_jwt(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Decode the claims of a sandbox JWT without verifying its signature.

    The token is only shown to the user; the sandbox API is what validates it.

    Returns:
        Dict with the raw `claims` and `expires_at` (None when there is no exp
        claim), or None when the token cannot be decoded
    """
    if not token:
        return None
    try:
        claims = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.exceptions.InvalidTokenError:
        return None

    expires_at = None
    if isinstance(claims.get("exp"), (int, float)):
        expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)

    return {
        "claims": claims,
        "expires_at": expires_at,
        "expired": expires_at is not None and expires_at <= datetime.now(timezone.utc),
    }
