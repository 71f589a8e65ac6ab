"""
Bearer token verification.

Tokens are issued by the identity service; this module only checks the
signature and expiry and returns the claims.
"""
import jwt

from taskboard.core import config
from taskboard.core.errors import AuthenticationError


def verify_jwt_token(token: str) -> dict:
    """
    Verify a JWT and return its payload.

    Args:
        token: JWT token from Authorization header

    Returns:
        Decoded JWT payload; ``sub`` holds the user id

    Raises:
        AuthenticationError: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            config.JWT_SECRET,
            algorithms=[config.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(f"Invalid token: {str(e)}")

    return payload
