"""JWT token handling for authentication."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt, ExpiredSignatureError
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from config import settings
from utils.errors import AuthenticationError

# Setup logging
logger = logging.getLogger(__name__)

# Clock skew tolerance (in seconds) for minor time differences between servers
JWT_LEEWAY_SECONDS = 60

# auto_error=False so a missing header is reported as 401 like any other auth failure
security = HTTPBearer(auto_error=False)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data to encode in the token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token with 'exp' (expiration), 'iat' (issued at) and
        'jti' (token id, used for logout revocation) claims
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.access_token_expire_minutes)

    # Add standard JWT claims
    to_encode.update({
        "exp": expire,  # Expiration time
        "iat": now,     # Issued at
        "nbf": now,     # Not before (token valid from now)
    })
    to_encode.setdefault("jti", uuid.uuid4().hex)

    logger.debug(f"Creating JWT token for user_id={data.get('user_id')}")

    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def create_session_token(user_id: int, email: str) -> str:
    """Issue the session token handed out at register/login."""
    return create_access_token({"user_id": user_id, "email": email})


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Validates the signature, the expiration (with clock skew tolerance)
    and the presence of the user_id/email/jti claims.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        AuthenticationError: If token is invalid, expired, or signature doesn't match
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_nbf": True,
                "verify_iat": True,
                "require_exp": True,
                "leeway": JWT_LEEWAY_SECONDS,
            }
        )
    except ExpiredSignatureError as e:
        logger.info("Token expired for request")
        raise AuthenticationError("Token has expired") from e
    except JWTError as e:
        # Invalid signature, malformed token, or other JWT error
        logger.warning(f"JWT validation failed: {type(e).__name__}: {str(e)}")
        raise AuthenticationError("Could not validate credentials") from e

    if not all(claim in payload for claim in ("user_id", "email", "jti")):
        logger.warning("Token missing required claims (user_id, email or jti)")
        raise AuthenticationError("Invalid token claims")

    return payload


async def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Dict[str, Any]:
    """
    FastAPI dependency returning the verified bearer token payload.

    Raises:
        AuthenticationError: If the header is missing or the token is invalid
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")
    return verify_access_token(credentials.credentials)


__all__ = [
    "create_access_token",
    "create_session_token",
    "verify_access_token",
    "get_token_payload",
]
