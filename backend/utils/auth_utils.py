from typing import Any, Dict, Optional

from fastapi import HTTPException, status, Request
from jose import jwt
from jose.exceptions import JWTError, ExpiredSignatureError, JWTClaimsError

import config


def get_current_user(request: Request) -> Optional[Dict[str, Any]]:
    """
    FastAPI dependency that decodes the bearer token issued by the auth service.

    Returns the token claims, or None for anonymous callers (no Authorization
    header). Postings made by anonymous callers carry created_by = NULL.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    # The token is expected to be in the format "Bearer <token>"
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    if not config.AUTH_SECRET_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token verification is not configured",
        )

    try:
        return jwt.decode(parts[1], config.AUTH_SECRET_KEY, algorithms=[config.AUTH_ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except JWTClaimsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: {e}"
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token validation failed: {e}"
        )


def get_user_identifier(user: Optional[Dict[str, Any]]) -> Optional[str]:
    """Stable caller id used for created_by / updated_by columns."""
    if not user:
        return None
    for claim in ("sub", "user_id", "username", "email"):
        value = user.get(claim)
        if value is not None:
            return str(value)
    return None

