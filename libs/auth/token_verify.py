# libs/auth/token_verify.py
"""
Access-token verification for FastAPI.

- verify_token:        FastAPI dependency to protect routes
- get_current_user_id: convenience dependency returning the ``sub`` claim
- router:              /auth/verify endpoint for quick health check

The hosted auth service signs access tokens with the project JWT secret
(HS256) and audience ``authenticated``.
"""

from typing import Optional

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from common.constants import ALGORITHMS
from libs.config import config

# ---------- Security scheme ----------
security = HTTPBearer()


def decode_access_token(token: str, secret: Optional[str] = None) -> dict:
    """Decode and validate an access token; raises jwt.InvalidTokenError."""
    return jwt.decode(
        token,
        secret or config.AUTH_JWT_SECRET or "",
        algorithms=ALGORITHMS,
        audience=config.AUTH_JWT_AUDIENCE,
    )


def verify_token(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """
    Verify a hosted-auth access token.
    Use as a FastAPI dependency on protected routes.
    """
    token = credentials.credentials
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired"
        ) from e
    except jwt.InvalidAudienceError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid audience"
        ) from e
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token verification failed: {e}",
        ) from e

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has no subject"
        )
    return payload


def get_current_user_id(payload: dict = Depends(verify_token)) -> str:
    return payload["sub"]


# ---------- Router ----------
router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/verify")
def verify(payload: dict = Depends(verify_token)):
    """Protected endpoint, returns user info if token is valid."""
    return {"message": "Token valid", "user": payload.get("sub")}
