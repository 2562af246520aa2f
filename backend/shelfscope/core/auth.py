"""
Bearer-token authentication against Supabase access tokens, verified locally.

The service keeps no user table of its own: the token's `sub` claim is the user id.
"""
import logging
from typing import Any, Dict

from fastapi import HTTPException, Request, status
from jose import JWTError, jwt

from shelfscope.core.config import settings

logger = logging.getLogger(__name__)


def _unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_bearer_token(request: Request) -> str:
    auth = request.headers.get("Authorization")
    if not auth:
        raise _unauthorized("Missing Authorization header")

    parts = auth.split()
    if len(parts) != 2:
        raise _unauthorized("Invalid Authorization header format. Expected 'Bearer <token>'")

    scheme, token = parts
    if scheme.lower() != "bearer":
        raise _unauthorized("Invalid auth scheme. Expected 'Bearer'")

    return token


def decode_supabase_jwt(token: str) -> Dict[str, Any]:
    """Validate signature (HS256), audience and issuer; return the claims."""
    try:
        settings.require_supabase()
    except RuntimeError as e:
        logger.error(f"Supabase configuration missing: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Supabase environment variables not configured. Authentication is not available.",
        )

    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            audience=settings.SUPABASE_JWT_AUD,
            issuer=settings.SUPABASE_JWT_ISS,
        )
    except JWTError as e:
        logger.warning(f"Supabase token validation failed: {e}")
        raise _unauthorized("Token validation failed")


async def get_current_user_id(request: Request) -> str:
    """FastAPI dependency returning the authenticated Supabase user id."""
    token = _extract_bearer_token(request)
    claims = decode_supabase_jwt(token)

    user_id = claims.get("sub")
    if not user_id:
        raise _unauthorized("Token missing subject (sub)")
    return str(user_id)
